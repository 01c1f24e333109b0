# routers/leaderboard.py

from typing import Optional

from fastapi import APIRouter, Depends, Query

from core.context import AppContext, get_context
from core.permission_helpers import has_permission
from core.permissions import Permission
from dependencies.auth import CurrentUser, requires_permission
from services.leaderboard import LeaderboardView


router = APIRouter(
    prefix="/leaderboard",
    tags=["Leaderboard"],
)


@router.get("", summary="Member and lead rankings")
def get_leaderboard(
    domain: Optional[str] = Query(None),
    current_user: CurrentUser = Depends(requires_permission(Permission.leaderboard_read)),
    ctx: AppContext = Depends(get_context),
):
    with LeaderboardView(ctx.hub, domain) as view:
        board = view.value

    result = {"domain": domain, "members": board["members"]}
    if has_permission(current_user, Permission.leaderboard_leads):
        result["leads"] = board["leads"]
    return result
