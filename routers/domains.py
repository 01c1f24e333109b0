# routers/domains.py

from fastapi import APIRouter, Depends

from core.context import AppContext, get_context
from dependencies.auth import CurrentUser, get_current_user
from models.domain import DomainConfigUpdate, PermissionsUpdate
from services import domains


router = APIRouter(
    prefix="/domains",
    tags=["Domains"],
)


@router.get("", summary="Full domain map")
def list_domains(
    current_user: CurrentUser = Depends(get_current_user),
    ctx: AppContext = Depends(get_context),
):
    return domains.get_domains(ctx.store, current_user)


# -----------------------------------------------------
# Add member (uniqueness across all domains is checked first)
# -----------------------------------------------------
@router.post("/update-config", summary="Add a member to a domain")
def update_config(
    payload: DomainConfigUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    ctx: AppContext = Depends(get_context),
):
    domain = domains.add_member(ctx, current_user, payload)
    return {"message": "Member added successfully.", "domain": domain}


@router.post("/permissions", summary="Domain, lead, member and special-role edits")
def update_permissions(
    payload: PermissionsUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    ctx: AppContext = Depends(get_context),
):
    return domains.apply_permissions_update(ctx, current_user, payload)
