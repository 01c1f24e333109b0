# services/announcements.py

"""
Announcements with targeted audiences.

Targets are "all", "role-<role>", "domain-<name>" or an email address.
Notification emails go out once per announcement; `sent` records it.
"""

from typing import List

from core.activity_log import log_activity
from core.email_utils import send_announcement_email
from core.errors import NotFoundError, ValidationError
from core.permission_helpers import authorize, require
from core.permissions import Permission
from core.store import DocumentStore, Query, utc_now_iso
from models.announcement import AnnouncementCreate, AnnouncementUpdate
from models.enums import AnnouncementStatus, LogCategory
from models.user import UserRecord
from services.accounts import USERS_COLLECTION


ANNOUNCEMENTS_COLLECTION = "announcements"


def get_announcement(store: DocumentStore, announcement_id: str) -> dict:
    announcement = store.get(ANNOUNCEMENTS_COLLECTION, announcement_id)
    if announcement is None:
        raise NotFoundError("Announcement not found.")
    return announcement


def list_announcements(store: DocumentStore, user: UserRecord) -> List[dict]:
    require(user, Permission.announcements_read)
    query = Query(order_by="created_at", descending=True)
    return [
        a for a in store.query(ANNOUNCEMENTS_COLLECTION, query)
        if authorize(user, Permission.announcements_read, a)
    ]


def resolve_recipients(users: List[dict], targets: List[str]) -> List[str]:
    emails = []
    for user in users:
        email = user.get("email")
        if not email:
            continue
        for target in targets or ["all"]:
            if (
                target == "all"
                or target == f"role-{user.get('role')}"
                or (user.get("domain") and target == f"domain-{user['domain']}")
                or target.lower() == email.lower()
            ):
                emails.append(email)
                break

    # Direct email targets that have not signed in yet still get the message
    emails += [t for t in targets or [] if "@" in t]
    return list(dict.fromkeys(e.lower() for e in emails))


def _publish(ctx, announcement: dict, background) -> dict:
    changes = {"status": AnnouncementStatus.published.value}
    if not announcement.get("published_at"):
        changes["published_at"] = utc_now_iso()

    send = not announcement.get("sent")
    if send:
        changes["sent"] = True

    updated = ctx.store.update(ANNOUNCEMENTS_COLLECTION, announcement["id"], changes)

    if send:
        recipients = resolve_recipients(ctx.store.query(USERS_COLLECTION), updated.get("targets") or ["all"])
        ctx.mailer.dispatch(
            background, "Announcement email",
            send_announcement_email, ctx.mailer, updated, recipients,
        )
    return updated


def create_announcement(ctx, user: UserRecord, payload: AnnouncementCreate, background=None) -> dict:
    store = ctx.store
    require(user, Permission.announcements_manage)

    title = payload.title.strip()
    if not title or not payload.content.strip():
        raise ValidationError("Title and content are required.")

    announcement = store.add(ANNOUNCEMENTS_COLLECTION, {
        "title": title,
        "content": payload.content,
        "attachment": payload.attachment,
        "targets": payload.targets or ["all"],
        "status": AnnouncementStatus.draft.value,
        "author": user.snapshot().model_dump(),
        "created_at": utc_now_iso(),
        "published_at": None,
        "sent": False,
    })
    log_activity(store, f'Announcement "{title}" created', LogCategory.announcements, user)

    if payload.status == AnnouncementStatus.published.value:
        announcement = _publish(ctx, announcement, background)
    elif payload.status == AnnouncementStatus.archived.value:
        announcement = store.update(ANNOUNCEMENTS_COLLECTION, announcement["id"], {"status": payload.status})
    return announcement


def update_announcement(ctx, user: UserRecord, announcement_id: str, payload: AnnouncementUpdate, background=None) -> dict:
    store = ctx.store
    announcement = get_announcement(store, announcement_id)
    require(user, Permission.announcements_manage, announcement)

    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("No update data provided.")

    status = changes.pop("status", None)
    if changes:
        changes["updated_at"] = utc_now_iso()
        announcement = store.update(ANNOUNCEMENTS_COLLECTION, announcement_id, changes)

    if status == AnnouncementStatus.published.value:
        announcement = _publish(ctx, announcement, background)
    elif status is not None and status != announcement.get("status"):
        announcement = store.update(ANNOUNCEMENTS_COLLECTION, announcement_id, {"status": status})

    log_activity(store, f'Announcement "{announcement["title"]}" updated', LogCategory.announcements, user)
    return announcement


def publish_announcement(ctx, user: UserRecord, announcement_id: str, background=None) -> dict:
    store = ctx.store
    announcement = get_announcement(store, announcement_id)
    require(user, Permission.announcements_manage, announcement)

    updated = _publish(ctx, announcement, background)
    log_activity(store, f'Announcement "{announcement["title"]}" published', LogCategory.announcements, user)
    return updated


def delete_announcement(ctx, user: UserRecord, announcement_id: str):
    store = ctx.store
    announcement = get_announcement(store, announcement_id)
    require(user, Permission.announcements_manage, announcement)

    store.delete(ANNOUNCEMENTS_COLLECTION, announcement_id)
    log_activity(store, f'Announcement "{announcement["title"]}" deleted', LogCategory.announcements, user)
