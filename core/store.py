# core/store.py

"""
Persistent document store interface.

Documents are plain dicts carrying their key under "id". Collections are
flat; hierarchy (documentation folders) is expressed by back-references.

Two backends:
  • MemoryStore:   local development and tests
  • SupabaseStore: production (core/supabase_client.py)

Every committed write notifies change listeners with the collection name.
The subscription hub (core/realtime.py) is the only listener in practice.
"""

import copy
import uuid
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Callable, Dict, List, Optional, Tuple

from core.errors import NotFoundError, ValidationError
from core.logging_config import logger


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_id() -> str:
    return uuid.uuid4().hex


# ============================================================
# Query constraints
# ============================================================
class Query:
    """
    Equality filters, ordering, limit and cursor windowing.

    Cursors are document ids; the cursor document's position in the
    ordering decides the window (like Firestore startAfter / endBefore).
    """

    def __init__(
        self,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        start_after: Optional[str] = None,
        end_before: Optional[str] = None,
    ):
        if start_after and end_before:
            raise ValidationError("start_after and end_before are mutually exclusive")
        if limit is not None and limit < 1:
            raise ValidationError("limit must be positive")

        self.filters = dict(filters or {})
        self.order_by = order_by
        self.descending = descending
        self.limit = limit
        self.start_after = start_after
        self.end_before = end_before

    def where(self, **filters) -> "Query":
        merged = {**self.filters, **filters}
        return Query(
            merged, self.order_by, self.descending,
            self.limit, self.start_after, self.end_before,
        )

    def key(self) -> Tuple:
        return (
            tuple(sorted((k, repr(v)) for k, v in self.filters.items())),
            self.order_by, self.descending, self.limit,
            self.start_after, self.end_before,
        )

    def __repr__(self):
        return f"Query(filters={self.filters}, order_by={self.order_by}, desc={self.descending}, limit={self.limit})"


def field_value(doc: dict, field: str) -> Any:
    """Resolve a dotted path such as "user.email"."""
    value: Any = doc
    for part in field.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def _sort_value(value: Any) -> Tuple:
    # None sorts before any value
    if value is None:
        return (0, "")
    return (1, value)


def sort_key(doc: dict, order_by: Optional[str]) -> Tuple:
    if order_by is None:
        return (doc.get("id") or "",)
    return (_sort_value(field_value(doc, order_by)), doc.get("id") or "")


def apply_query(docs: List[dict], query: Optional[Query], cursor_lookup: Callable[[str], Optional[dict]]) -> List[dict]:
    """Apply a Query to an unordered list of documents."""
    if query is None:
        return sorted(docs, key=lambda d: d.get("id") or "")

    matched = [
        d for d in docs
        if all(field_value(d, field) == value for field, value in query.filters.items())
    ]
    matched.sort(key=lambda d: sort_key(d, query.order_by), reverse=query.descending)

    def position_after(candidate: dict, cursor: dict) -> bool:
        a = sort_key(candidate, query.order_by)
        b = sort_key(cursor, query.order_by)
        return a < b if query.descending else a > b

    if query.start_after:
        cursor = cursor_lookup(query.start_after)
        if cursor is None:
            raise NotFoundError(f"Cursor document {query.start_after} not found")
        matched = [d for d in matched if position_after(d, cursor)]
        if query.limit:
            matched = matched[: query.limit]

    elif query.end_before:
        cursor = cursor_lookup(query.end_before)
        if cursor is None:
            raise NotFoundError(f"Cursor document {query.end_before} not found")
        matched = [d for d in matched if position_after(cursor, d)]
        # Window ends right before the cursor: keep the last `limit`
        if query.limit:
            matched = matched[-query.limit:]

    elif query.limit:
        matched = matched[: query.limit]

    return matched


# ============================================================
# Batched writes
# ============================================================
class WriteBatch:
    """
    Collects set/update/delete operations and commits them all-or-nothing.
    """

    def __init__(self, store: "DocumentStore"):
        self._store = store
        self._ops: List[Tuple[str, str, str, Optional[dict]]] = []
        self._committed = False

    def set(self, collection: str, doc_id: str, data: dict) -> "WriteBatch":
        self._ops.append(("set", collection, doc_id, data))
        return self

    def update(self, collection: str, doc_id: str, data: dict) -> "WriteBatch":
        self._ops.append(("update", collection, doc_id, data))
        return self

    def delete(self, collection: str, doc_id: str) -> "WriteBatch":
        self._ops.append(("delete", collection, doc_id, None))
        return self

    @property
    def operations(self) -> List[Tuple[str, str, str, Optional[dict]]]:
        return list(self._ops)

    def __len__(self):
        return len(self._ops)

    def commit(self):
        if self._committed:
            raise ValidationError("Batch already committed")
        self._store._commit(self._ops)
        self._committed = True


# ============================================================
# Store interface
# ============================================================
class DocumentStore:
    """
    Collection-based CRUD plus change notification.
    Subclasses implement the underscore methods.
    """

    def __init__(self):
        self._listeners: List[Callable[[str], None]] = []
        self._listeners_lock = Lock()

    # -----------------------------------------------------
    # Change listeners
    # -----------------------------------------------------
    def add_change_listener(self, listener: Callable[[str], None]):
        with self._listeners_lock:
            self._listeners.append(listener)

    def remove_change_listener(self, listener: Callable[[str], None]):
        with self._listeners_lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _notify(self, *collections: str):
        with self._listeners_lock:
            listeners = list(self._listeners)
        for collection in dict.fromkeys(collections):
            for listener in listeners:
                try:
                    listener(collection)
                except Exception as e:
                    logger.error(f"Change listener failed for {collection}: {e}", exc_info=True)

    # -----------------------------------------------------
    # Public API
    # -----------------------------------------------------
    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        raise NotImplementedError

    def query(self, collection: str, query: Optional[Query] = None) -> List[dict]:
        raise NotImplementedError

    def add(self, collection: str, data: dict) -> dict:
        doc_id = data.get("id") or new_id()
        return self.set(collection, doc_id, data)

    def set(self, collection: str, doc_id: str, data: dict) -> dict:
        self._commit([("set", collection, doc_id, data)])
        return self.get(collection, doc_id)

    def update(self, collection: str, doc_id: str, data: dict) -> dict:
        self._commit([("update", collection, doc_id, data)])
        return self.get(collection, doc_id)

    def delete(self, collection: str, doc_id: str):
        self._commit([("delete", collection, doc_id, None)])

    def batch(self) -> WriteBatch:
        return WriteBatch(self)

    def _commit(self, ops):
        raise NotImplementedError

    def ping(self) -> dict:
        return {"service": type(self).__name__, "status": "ok"}


# ============================================================
# In-memory backend
# ============================================================
class MemoryStore(DocumentStore):
    """
    Thread-safe in-memory store. Reads return deep copies so callers
    never alias stored state.
    """

    def __init__(self, seed: Optional[Dict[str, List[dict]]] = None):
        super().__init__()
        self._data: Dict[str, Dict[str, dict]] = {}
        self._lock = Lock()
        for collection, docs in (seed or {}).items():
            for doc in docs:
                doc_id = doc.get("id") or new_id()
                self._data.setdefault(collection, {})[doc_id] = {**copy.deepcopy(doc), "id": doc_id}

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        with self._lock:
            doc = self._data.get(collection, {}).get(doc_id)
            return copy.deepcopy(doc) if doc is not None else None

    def query(self, collection: str, query: Optional[Query] = None) -> List[dict]:
        with self._lock:
            docs = list(self._data.get(collection, {}).values())
            table = self._data.get(collection, {})
            result = apply_query(docs, query, lambda cid: table.get(cid))
            return copy.deepcopy(result)

    def _commit(self, ops):
        with self._lock:
            # Validate every op before touching state
            present = {
                (collection, doc_id)
                for collection, table in self._data.items()
                for doc_id in table
            }
            for kind, collection, doc_id, _ in ops:
                if not doc_id:
                    raise ValidationError("Document id is required")
                if kind == "update" and (collection, doc_id) not in present:
                    raise NotFoundError(f"{collection}/{doc_id} not found")
                if kind == "set":
                    present.add((collection, doc_id))
                elif kind == "delete":
                    present.discard((collection, doc_id))

            for kind, collection, doc_id, data in ops:
                table = self._data.setdefault(collection, {})
                if kind == "set":
                    table[doc_id] = {**copy.deepcopy(data), "id": doc_id}
                elif kind == "update":
                    table[doc_id] = {**table[doc_id], **copy.deepcopy(data), "id": doc_id}
                elif kind == "delete":
                    table.pop(doc_id, None)

        self._notify(*[op[1] for op in ops])
