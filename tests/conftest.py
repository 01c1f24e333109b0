# tests/conftest.py

"""
Pytest configuration and shared fixtures for testing.

Every test gets a fresh in-memory store seeded with two domains, one
special-role admin and the matching user records. Object storage and the
auth provider are mocks; SMTP is replaced on the mailer.
"""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import Mock
from typing import Generator

from core.config import Settings
from core.context import AppContext
from core.notifications import Mailer
from core.store import MemoryStore
from dependencies.auth import get_current_user
from main import create_app
from services.accounts import load_user


DOMAINS = [
    {"id": "Engineering", "name": "Engineering",
     "leads": ["lead@example.com"], "members": ["member@example.com", "member2@example.com"]},
    {"id": "Design", "name": "Design",
     "leads": ["designlead@example.com"], "members": ["designer@example.com", "newhire@example.com"]},
    {"id": "Documentation", "name": "Documentation",
     "leads": ["doclead@example.com"], "members": []},
]

USERS = [
    {"id": "admin-1", "name": "Ada Admin", "email": "admin@example.com", "role": "admin", "domain": None},
    {"id": "lead-1", "name": "Lee Lead", "email": "lead@example.com", "role": "domain-lead", "domain": "Engineering"},
    {"id": "member-1", "name": "Mia Member", "email": "member@example.com", "role": "member", "domain": "Engineering"},
    {"id": "member-2", "name": "Max Member", "email": "member2@example.com", "role": "member", "domain": "Engineering"},
    {"id": "designlead-1", "name": "Dee Designlead", "email": "designlead@example.com", "role": "domain-lead", "domain": "Design"},
    {"id": "designer-1", "name": "Dan Designer", "email": "designer@example.com", "role": "member", "domain": "Design"},
    {"id": "doclead-1", "name": "Doc Lead", "email": "doclead@example.com", "role": "domain-lead", "domain": "Documentation"},
]


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        ADMIN_NOTIFY_EMAIL="alerts@example.com",
        APP_URL="http://testserver",
        PASSWORD_RESET_NOTICE_LIMIT=5,
        PASSWORD_RESET_NOTICE_WINDOW_SECONDS=60,
    )


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore(seed={
        "domains": DOMAINS,
        "config": [{"id": "specialRoles", "admin@example.com": "admin"}],
        "users": USERS,
    })


@pytest.fixture
def mock_storage():
    """Object storage double; put/get/delete/presigned_url are Mocks."""
    storage = Mock()
    storage.presigned_url.return_value = "https://storage.example.com/signed"
    return storage


@pytest.fixture
def mock_auth():
    """Auth provider double: token "token-<user id>" resolves to that seeded user."""
    auth = Mock()
    by_token = {
        f"token-{u['id']}": {"id": u["id"], "email": u["email"], "name": u["name"], "avatar_url": None}
        for u in USERS
    }
    auth.get_user.side_effect = lambda token: by_token.get(token)
    return auth


@pytest.fixture
def mailer(test_settings):
    mailer = Mailer(test_settings)
    mailer.send_email = Mock(return_value=True)
    mailer.send_webhook_message = Mock()
    return mailer


@pytest.fixture
def ctx(test_settings, store, mock_storage, mailer, mock_auth) -> AppContext:
    context = AppContext(
        settings=test_settings,
        store=store,
        storage=mock_storage,
        mailer=mailer,
        auth=mock_auth,
    )
    yield context
    context.close()


@pytest.fixture(scope="function")
def app(ctx):
    """Create a test FastAPI application instance bound to the test context."""
    return create_app(ctx)


@pytest.fixture(scope="function")
def client(app) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def login(app, store):
    """
    Act as a seeded user by overriding get_current_user.
    Usage: login("member-1")
    """
    def _login(user_id: str):
        user = load_user(store, user_id)
        app.dependency_overrides[get_current_user] = lambda: user
        return user

    yield _login
    app.dependency_overrides.clear()


@pytest.fixture
def admin_user(store):
    return load_user(store, "admin-1")


@pytest.fixture
def lead_user(store):
    return load_user(store, "lead-1")


@pytest.fixture
def member_user(store):
    return load_user(store, "member-1")


@pytest.fixture
def designer_user(store):
    return load_user(store, "designer-1")


@pytest.fixture
def doclead_user(store):
    return load_user(store, "doclead-1")
