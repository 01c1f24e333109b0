# services/site_status.py

from core.activity_log import log_activity
from core.errors import ValidationError
from core.permission_helpers import is_admin
from core.store import DocumentStore
from models.enums import LogCategory
from models.site_status import SiteStatus, SiteStatusUpdate
from models.user import UserRecord


CONFIG_COLLECTION = "config"
SITE_STATUS_ID = "siteStatus"


def get_site_status(store: DocumentStore) -> SiteStatus:
    """Current status; an absent document means everything is off."""
    doc = store.get(CONFIG_COLLECTION, SITE_STATUS_ID)
    if doc is None:
        return SiteStatus()
    return SiteStatus(**{k: v for k, v in doc.items() if k in SiteStatus.model_fields})


def is_locked_out(user: UserRecord, status: SiteStatus) -> bool:
    """Non-admins are locked out during maintenance or emergency shutdown."""
    return (status.maintenance_mode or status.emergency_shutdown) and not is_admin(user)


def update_site_status(store: DocumentStore, payload: SiteStatusUpdate, user: UserRecord) -> SiteStatus:
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("No update data provided.")

    current = get_site_status(store)
    updated = current.model_copy(update=changes)

    # ETA only makes sense while maintenance mode is on
    if "maintenance_mode" in changes:
        updated.maintenance_eta = (changes.get("maintenance_eta") or current.maintenance_eta) if updated.maintenance_mode else None

    store.set(CONFIG_COLLECTION, SITE_STATUS_ID, updated.model_dump())

    for field, label in (("maintenance_mode", "Maintenance Mode"), ("emergency_shutdown", "Emergency Shutdown")):
        if field in changes and getattr(current, field) != getattr(updated, field):
            state = "enabled" if getattr(updated, field) else "disabled"
            log_activity(store, f"{label} {state}", LogCategory.site_status, user)

    return updated
