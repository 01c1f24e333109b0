# services/logs.py

"""
Audit log viewer: newest first, fixed page size, cursor windowing.

Going back never keeps a cursor stack. A "prev" request windows before
the first id of the current page; when that window reaches the start of
the log, a fresh first-page query is issued instead.
"""

from typing import Optional

from core.activity_log import LOGS_COLLECTION
from core.errors import ValidationError
from core.store import DocumentStore, Query


def _base_query(page_size: int, category: Optional[str], email: Optional[str]) -> Query:
    filters = {}
    if category:
        filters["category"] = category
    if email:
        filters["user.email"] = email.strip().lower()
    return Query(filters=filters, order_by="timestamp", descending=True, limit=page_size + 1)


def fetch_logs_page(
    store: DocumentStore,
    page_size: int = 15,
    cursor: Optional[str] = None,
    direction: str = "next",
    category: Optional[str] = None,
    email: Optional[str] = None,
) -> dict:
    if direction not in ("next", "prev"):
        raise ValidationError('direction must be "next" or "prev"')

    base = _base_query(page_size, category, email)

    if direction == "prev" and cursor:
        window = store.query(LOGS_COLLECTION, Query(
            base.filters, base.order_by, base.descending, base.limit, end_before=cursor,
        ))
        if len(window) > page_size:
            page = window[-page_size:]
            return _page(page, page_size, has_prev=True, has_next=True)
        # Reached the start
        cursor = None

    if direction == "next" and cursor:
        window = store.query(LOGS_COLLECTION, Query(
            base.filters, base.order_by, base.descending, base.limit, start_after=cursor,
        ))
        return _page(window[:page_size], page_size, has_prev=True, has_next=len(window) > page_size)

    # First page (also "prev" from page 1)
    window = store.query(LOGS_COLLECTION, base)
    return _page(window[:page_size], page_size, has_prev=False, has_next=len(window) > page_size)


def _page(logs, page_size: int, has_prev: bool, has_next: bool) -> dict:
    return {
        "logs": logs,
        "page_size": page_size,
        "has_prev": has_prev and bool(logs),
        "has_next": has_next,
        "prev_cursor": logs[0]["id"] if has_prev and logs else None,
        "next_cursor": logs[-1]["id"] if has_next and logs else None,
    }
