# core/activity_log.py

from typing import Optional, Union

from core.logging_config import logger
from core.store import DocumentStore, utc_now_iso
from models.enums import LogCategory
from models.user import UserRecord


LOGS_COLLECTION = "logs"


def build_log_entry(message: str, category: Union[LogCategory, str], user: Optional[UserRecord]) -> dict:
    entry = {
        "message": message,
        "category": str(category),
        "timestamp": utc_now_iso(),
    }
    if user is not None:
        entry["user"] = {
            "id": user.id,
            "email": user.email or "N/A",
            "name": user.name or "Anonymous",
        }
    return entry


def log_activity(
    store: DocumentStore,
    message: str,
    category: Union[LogCategory, str],
    user: Optional[UserRecord] = None,
) -> Optional[dict]:
    """
    Append one audit record to the `logs` collection.

    Best-effort: a failed write is logged and swallowed so it never aborts
    the operation being documented. Returns the stored entry or None.
    """
    try:
        return store.add(LOGS_COLLECTION, build_log_entry(message, category, user))
    except Exception as e:
        logger.error(f"Failed to log activity ({category}): {e}")
        return None
