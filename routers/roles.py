# routers/roles.py

from fastapi import APIRouter, Depends

from core.context import AppContext, get_context
from dependencies.auth import CurrentUser, get_current_user
from models.role import RoleAssign, RoleCreate, RoleUpdate
from services import roles


router = APIRouter(
    prefix="/roles",
    tags=["Roles"],
)


@router.get("", summary="List granular roles")
def list_roles(
    current_user: CurrentUser = Depends(get_current_user),
    ctx: AppContext = Depends(get_context),
):
    return roles.list_roles(ctx.store, current_user)


@router.post("", status_code=201, summary="Create a role")
def create_role(
    payload: RoleCreate,
    current_user: CurrentUser = Depends(get_current_user),
    ctx: AppContext = Depends(get_context),
):
    return roles.create_role(ctx, current_user, payload)


# Declared before /{role_id} so "assign" is not taken for an id
@router.put("/assign", response_model=CurrentUser, summary="Attach or detach a role")
def assign_role(
    payload: RoleAssign,
    current_user: CurrentUser = Depends(get_current_user),
    ctx: AppContext = Depends(get_context),
):
    return roles.assign_role(ctx, current_user, payload)


@router.patch("/{role_id}", summary="Update a role")
def update_role(
    role_id: str,
    payload: RoleUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    ctx: AppContext = Depends(get_context),
):
    return roles.update_role(ctx, current_user, role_id, payload)


@router.delete("/{role_id}", summary="Delete a role")
def delete_role(
    role_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    ctx: AppContext = Depends(get_context),
):
    detached = roles.delete_role(ctx, current_user, role_id)
    return {"message": "Role deleted.", "users_detached": detached}
