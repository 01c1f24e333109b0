# routers/documentation.py

from typing import Optional

from fastapi import APIRouter, Depends, Query

from core.context import AppContext, get_context
from dependencies.auth import CurrentUser, get_current_user
from models.documentation import DocItemCreate, DocItemUpdate
from services import documentation


router = APIRouter(
    prefix="/documentation",
    tags=["Documentation"],
)


@router.get("", summary="Documentation items visible to the current user")
def list_items(
    parent_id: Optional[str] = Query(None, description="Only children of this folder"),
    current_user: CurrentUser = Depends(get_current_user),
    ctx: AppContext = Depends(get_context),
):
    return documentation.list_items(ctx.store, current_user, parent_id)


@router.post("", status_code=201, summary="Create a folder or file entry")
def create_item(
    payload: DocItemCreate,
    current_user: CurrentUser = Depends(get_current_user),
    ctx: AppContext = Depends(get_context),
):
    return documentation.create_item(ctx, current_user, payload)


@router.put("/{item_id}", summary="Rename or change visibility")
def update_item(
    item_id: str,
    payload: DocItemUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    ctx: AppContext = Depends(get_context),
):
    return documentation.update_item(ctx, current_user, item_id, payload)


@router.delete("/{item_id}", summary="Delete an item (folders recursively)")
def delete_item(
    item_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    ctx: AppContext = Depends(get_context),
):
    result = documentation.delete_item(ctx, current_user, item_id)
    return {"message": "Deleted.", **result}
