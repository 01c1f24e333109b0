# routers/site_status.py

from fastapi import APIRouter, Depends

from core.context import AppContext, get_context
from core.permissions import Permission
from dependencies.auth import CurrentUser, requires_permission
from models.site_status import SiteStatus, SiteStatusUpdate
from services.site_status import get_site_status, update_site_status


router = APIRouter(
    prefix="/site-status",
    tags=["Site Status"],
)


# No auth: clients read this to render the maintenance page
@router.get("", response_model=SiteStatus, summary="Maintenance and shutdown switches")
def read_site_status(ctx: AppContext = Depends(get_context)):
    return get_site_status(ctx.store)


@router.put("", response_model=SiteStatus, summary="Toggle maintenance or emergency shutdown")
def write_site_status(
    payload: SiteStatusUpdate,
    current_user: CurrentUser = Depends(requires_permission(Permission.site_status_manage)),
    ctx: AppContext = Depends(get_context),
):
    return update_site_status(ctx.store, payload, current_user)
