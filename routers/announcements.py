# routers/announcements.py

from fastapi import APIRouter, BackgroundTasks, Depends

from core.context import AppContext, get_context
from dependencies.auth import CurrentUser, get_current_user
from models.announcement import AnnouncementCreate, AnnouncementUpdate
from services import announcements


router = APIRouter(
    prefix="/announcements",
    tags=["Announcements"],
)


@router.get("", summary="Announcements visible to the current user")
def list_announcements(
    current_user: CurrentUser = Depends(get_current_user),
    ctx: AppContext = Depends(get_context),
):
    return announcements.list_announcements(ctx.store, current_user)


@router.post("", status_code=201, summary="Create an announcement")
def create_announcement(
    payload: AnnouncementCreate,
    background: BackgroundTasks,
    current_user: CurrentUser = Depends(get_current_user),
    ctx: AppContext = Depends(get_context),
):
    return announcements.create_announcement(ctx, current_user, payload, background)


@router.put("/{announcement_id}", summary="Update an announcement")
def update_announcement(
    announcement_id: str,
    payload: AnnouncementUpdate,
    background: BackgroundTasks,
    current_user: CurrentUser = Depends(get_current_user),
    ctx: AppContext = Depends(get_context),
):
    return announcements.update_announcement(ctx, current_user, announcement_id, payload, background)


@router.post("/{announcement_id}/publish", summary="Publish and notify the audience")
def publish_announcement(
    announcement_id: str,
    background: BackgroundTasks,
    current_user: CurrentUser = Depends(get_current_user),
    ctx: AppContext = Depends(get_context),
):
    return announcements.publish_announcement(ctx, current_user, announcement_id, background)


@router.delete("/{announcement_id}", summary="Delete an announcement")
def delete_announcement(
    announcement_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    ctx: AppContext = Depends(get_context),
):
    announcements.delete_announcement(ctx, current_user, announcement_id)
    return {"message": "Announcement deleted."}
