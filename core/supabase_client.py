# core/supabase_client.py

from typing import List, Optional

from supabase import create_client, Client

from core.config import Settings
from core.errors import NotFoundError, handle_store_error
from core.logging_config import logger
from core.store import DocumentStore, Query, field_value


# ============================================================
# Supabase Client Factory (ALWAYS service role)
# ============================================================

def get_supabase_client(settings: Settings) -> Optional[Client]:
    """
    Creates a Supabase client using the SERVICE ROLE KEY.
    REQUIRED for:
        - auth.get_user (token validation)
        - auth.admin.sign_out (session revocation)
        - full read/write on all collection tables
    """
    try:
        supabase_url = settings.SUPABASE_URL
        supabase_key = settings.SUPABASE_SERVICE_ROLE_KEY  # MUST be service-role

        if not supabase_url or not supabase_key:
            logger.error("Missing Supabase credentials")
            logger.error(f"   URL: {supabase_url}")
            logger.error(f"   SERVICE ROLE KEY: {'SET' if supabase_key else 'MISSING'}")
            return None

        return create_client(supabase_url, supabase_key)

    except Exception as e:
        logger.error(f"Supabase Init Error: {e}", exc_info=True)
        return None


def _as_text(value) -> str:
    # data->>field yields text, so compare against text
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _json_path(field: str) -> str:
    # "user.email" -> data->user->>email
    parts = field.split(".")
    return "->".join(["data"] + parts[:-1]) + f"->>{parts[-1]}"


def _quoted(value) -> str:
    # Reserved characters (",.:()") are safe inside a double-quoted filter value
    text = _as_text(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


def _after_cursor(column: str, value, cursor_id: str, op: str) -> str:
    # Strictly past (value, id) in (column, id) order
    return (
        f"{column}.{op}.{_quoted(value)},"
        f"and({column}.eq.{_quoted(value)},id.{op}.{_quoted(cursor_id)})"
    )


# ============================================================
# Supabase-backed document store
# ============================================================
class SupabaseStore(DocumentStore):
    """
    One table per collection, each shaped (id text primary key, data jsonb).
    Multi-document batches go through the `apply_batch` SQL function so they
    commit in one transaction (see database/schema.sql).
    """

    def __init__(self, client: Client):
        super().__init__()
        self._client = client

    @staticmethod
    def _row_to_doc(row: dict) -> dict:
        return {**(row.get("data") or {}), "id": row["id"]}

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        try:
            result = (
                self._client.table(collection)
                .select("id,data")
                .eq("id", doc_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise handle_store_error(e, f"Failed to fetch {collection}/{doc_id}")

        rows = result.data or []
        return self._row_to_doc(rows[0]) if rows else None

    def query(self, collection: str, query: Optional[Query] = None) -> List[dict]:
        query = query or Query()
        order_column = _json_path(query.order_by) if query.order_by else "id"

        # end_before windows are read in reverse and flipped back
        reverse_read = bool(query.end_before)
        descending = query.descending != reverse_read

        try:
            q = self._client.table(collection).select("id,data")
            for field, value in query.filters.items():
                if value is None:
                    q = q.is_(_json_path(field), "null")
                else:
                    q = q.eq(_json_path(field), _as_text(value))

            cursor_id = query.start_after or query.end_before
            if cursor_id:
                cursor = self.get(collection, cursor_id)
                if cursor is None:
                    raise NotFoundError(f"Cursor document {cursor_id} not found")
                op = "lt" if descending else "gt"
                if query.order_by:
                    cursor_value = field_value(cursor, query.order_by)
                    q = q.or_(_after_cursor(order_column, cursor_value, cursor["id"], op))
                else:
                    q = getattr(q, op)("id", cursor["id"])

            q = q.order(order_column, desc=descending)
            if query.order_by:
                # Ties on the order field break by id
                q = q.order("id", desc=descending)
            if query.limit:
                q = q.limit(query.limit)

            result = q.execute()
        except NotFoundError:
            raise
        except Exception as e:
            raise handle_store_error(e, f"Failed to query {collection}")

        docs = [self._row_to_doc(row) for row in (result.data or [])]
        if reverse_read:
            docs.reverse()
        return docs

    def _commit(self, ops):
        try:
            if len(ops) == 1:
                self._apply_single(*ops[0])
            else:
                payload = [
                    {"op": kind, "collection": collection, "id": doc_id, "data": data}
                    for kind, collection, doc_id, data in ops
                ]
                self._client.rpc("apply_batch", {"ops": payload}).execute()
        except NotFoundError:
            raise
        except Exception as e:
            raise handle_store_error(e, "Failed to commit write")

        self._notify(*[op[1] for op in ops])

    def _apply_single(self, kind: str, collection: str, doc_id: str, data: Optional[dict]):
        table = self._client.table(collection)

        if kind == "set":
            payload = {k: v for k, v in data.items() if k != "id"}
            table.upsert({"id": doc_id, "data": payload}).execute()

        elif kind == "update":
            existing = self.get(collection, doc_id)
            if existing is None:
                raise NotFoundError(f"{collection}/{doc_id} not found")
            merged = {**existing, **data}
            merged.pop("id", None)
            table.update({"data": merged}).eq("id", doc_id).execute()

        elif kind == "delete":
            table.delete().eq("id", doc_id).execute()

    def ping(self) -> dict:
        """
        Simple connectivity check against the main collections.
        """
        tables = ["users", "domains", "tasks", "logs"]
        results = {}

        for t in tables:
            try:
                res = self._client.table(t).select("id").limit(1).execute()
                results[t] = {
                    "status": "ok",
                    "rows_found": len(res.data or []),
                }
            except Exception as err:
                results[t] = {"status": "error", "detail": str(err)}

        return {
            "service": "Supabase",
            "status": "ok",
            "tables": results,
        }


# ============================================================
# Auth provider (token validation + session revocation)
# ============================================================
class SupabaseAuth:
    """
    Wraps Supabase GoTrue. The provider has no pre-sign-in hook, so
    authorization runs after authentication and revokes on failure.
    """

    def __init__(self, client: Client):
        self._client = client

    def get_user(self, token: str) -> Optional[dict]:
        """Validate a JWT; returns {id, email, name, avatar_url} or None."""
        try:
            auth_resp = self._client.auth.get_user(token)
        except Exception as e:
            logger.warning(f"Token validation failed: {type(e).__name__}")
            return None

        if not auth_resp or not auth_resp.user:
            return None

        auth_user = auth_resp.user
        metadata = auth_user.user_metadata or {}
        return {
            "id": auth_user.id,
            "email": (auth_user.email or "").strip().lower() or None,
            "name": metadata.get("full_name") or metadata.get("name"),
            "avatar_url": metadata.get("avatar_url"),
        }

    def revoke(self, token: str):
        """Terminate the provider session behind `token`."""
        self._client.auth.admin.sign_out(token)

    def update_profile(self, user_id: str, metadata: dict):
        """Mirror display name / avatar into the provider's user metadata."""
        self._client.auth.admin.update_user_by_id(user_id, {"user_metadata": metadata})
