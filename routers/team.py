# routers/team.py

from typing import Optional

from fastapi import APIRouter, Depends, Query

from core.context import AppContext, get_context
from core.permissions import Permission
from dependencies.auth import CurrentUser, requires_permission
from services.team import get_team


router = APIRouter(
    prefix="/team",
    tags=["Team"],
)


@router.get("", summary="Leads and members per domain")
def list_team(
    domain: Optional[str] = Query(None),
    current_user: CurrentUser = Depends(requires_permission(Permission.users_read)),
    ctx: AppContext = Depends(get_context),
):
    return get_team(ctx.store, domain)
