# routers/realtime.py

"""
Server-sent events: one full snapshot per event, on subscribe and after
every write to the collection. Clients re-derive their view from each one.
"""

import json
import queue
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse

from core.context import AppContext, get_context
from core.logging_config import logger
from core.permission_helpers import authorize, require
from core.permissions import Permission
from core.realtime import SnapshotChannel
from core.store import Query as StoreQuery
from dependencies.auth import CurrentUser, get_current_user
from services.documentation import visible_items
from services.suggestions import present as present_suggestion


router = APIRouter(
    prefix="/realtime",
    tags=["Realtime"],
)

KEEPALIVE_SECONDS = 15

# collection → (read permission, whether it is checked per document)
STREAMS = {
    "tasks": (Permission.tasks_read, True),
    "suggestions": (Permission.suggestions_read, True),
    "announcements": (Permission.announcements_read, True),
    "documentation": (Permission.documentation_read, True),
    "logs": (Permission.logs_read, False),
    "users": (Permission.users_read, False),
    "domains": (Permission.domains_read, False),
}


def _visible(user: CurrentUser, collection: str, snapshot: list) -> list:
    permission, per_document = STREAMS[collection]
    if collection == "documentation":
        return visible_items(user, snapshot)
    if per_document:
        snapshot = [doc for doc in snapshot if authorize(user, permission, doc)]
    if collection == "suggestions":
        snapshot = [present_suggestion(doc, user) for doc in snapshot]
    return snapshot


@router.get("/{collection}", summary="Live snapshots of a collection (SSE)")
def stream(
    collection: str,
    limit: Optional[int] = Query(None, ge=1, description="Close after this many snapshots"),
    current_user: CurrentUser = Depends(get_current_user),
    ctx: AppContext = Depends(get_context),
):
    if collection not in STREAMS:
        raise HTTPException(404, f"Unknown collection: {collection}")
    require(current_user, STREAMS[collection][0])

    query = None
    if collection == "logs":
        query = StoreQuery(order_by="timestamp", descending=True, limit=ctx.settings.LOGS_PAGE_SIZE)

    def events():
        # Subscribed only once the response body is actually consumed
        channel = SnapshotChannel(ctx.hub, collection, query)
        sent = 0
        try:
            while limit is None or sent < limit:
                try:
                    snapshot = channel.get(timeout=KEEPALIVE_SECONDS)
                except queue.Empty:
                    yield ": keep-alive\n\n"
                    continue
                if snapshot is None:
                    return
                payload = json.dumps(_visible(current_user, collection, snapshot), default=str)
                yield f"event: snapshot\ndata: {payload}\n\n"
                sent += 1
        finally:
            channel.close()
            logger.debug(f"Realtime stream for {collection} closed ({sent} snapshot(s))")

    return StreamingResponse(events(), media_type="text/event-stream")
