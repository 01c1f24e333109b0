# routers/logs.py

from typing import Optional

from fastapi import APIRouter, Depends, Query

from core.context import AppContext, get_context
from core.permissions import Permission
from dependencies.auth import CurrentUser, requires_permission
from models.enums import LogCategory
from services.logs import fetch_logs_page


router = APIRouter(
    prefix="/logs",
    tags=["Logs"],
)


@router.get("", summary="Activity log, newest first")
def list_logs(
    cursor: Optional[str] = Query(None, description="Id of the first (prev) or last (next) entry on the current page"),
    direction: str = Query("next", pattern="^(next|prev)$"),
    category: Optional[LogCategory] = Query(None),
    email: Optional[str] = Query(None, description="Acting user's email"),
    current_user: CurrentUser = Depends(requires_permission(Permission.logs_read)),
    ctx: AppContext = Depends(get_context),
):
    return fetch_logs_page(
        ctx.store,
        page_size=ctx.settings.LOGS_PAGE_SIZE,
        cursor=cursor,
        direction=direction,
        category=category.value if category else None,
        email=email,
    )
