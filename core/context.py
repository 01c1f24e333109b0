# core/context.py

"""
Application context: every shared handle the handlers need, constructed
once in create_app() and reached through the get_context dependency.
"""

from typing import Any, Optional

from fastapi import Request

from core.config import Settings
from core.logging_config import logger
from core.notifications import Mailer
from core.rate_limiter import RateLimiter
from core.realtime import SubscriptionHub
from core.s3_client import ObjectStorage
from core.store import DocumentStore, MemoryStore


class AppContext:
    def __init__(
        self,
        settings: Settings,
        store: DocumentStore,
        storage: ObjectStorage,
        mailer: Mailer,
        auth: Optional[Any] = None,
    ):
        self.settings = settings
        self.store = store
        self.hub = SubscriptionHub(store)
        self.storage = storage
        self.mailer = mailer
        self.auth = auth
        self.rate_limiter = RateLimiter()

    def close(self):
        self.hub.close()


def create_context(settings: Settings) -> AppContext:
    """Build the context for the configured backend."""
    store: DocumentStore
    auth = None

    if settings.STORE_BACKEND == "supabase":
        from core.supabase_client import SupabaseAuth, SupabaseStore, get_supabase_client

        client = get_supabase_client(settings)
        if client is None:
            raise RuntimeError("STORE_BACKEND=supabase but Supabase is not configured")
        store = SupabaseStore(client)
        auth = SupabaseAuth(client)
    else:
        logger.warning("Using in-memory store — data is lost on restart.")
        store = MemoryStore()

    return AppContext(
        settings=settings,
        store=store,
        storage=ObjectStorage(settings),
        mailer=Mailer(settings),
        auth=auth,
    )


def get_context(request: Request) -> AppContext:
    return request.app.state.context
