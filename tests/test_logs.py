# tests/test_logs.py

"""
Tests for the activity log writer and the paged log viewer.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from unittest.mock import Mock

from core.activity_log import build_log_entry, log_activity
from services.logs import fetch_logs_page


def _seed_logs(store, count, start=None):
    start = start or datetime(2026, 1, 1, tzinfo=timezone.utc)
    for i in range(count):
        store.set("logs", f"log-{i:03d}", {
            "message": f"entry {i}",
            "category": "Task Management" if i % 2 else "Authentication",
            "timestamp": (start + timedelta(minutes=i)).isoformat(),
            "user": {"id": "u", "email": "member@example.com" if i % 3 == 0 else "lead@example.com", "name": "x"},
        })


# -----------------------------------------------------
# Writer
# -----------------------------------------------------
def test_build_log_entry_snapshot(member_user):
    entry = build_log_entry("did a thing", "Submissions", member_user)
    assert entry["user"] == {"id": "member-1", "email": "member@example.com", "name": "Mia Member"}
    assert entry["category"] == "Submissions"
    assert "timestamp" in entry


def test_system_entries_have_no_user():
    assert "user" not in build_log_entry("system", "Error", None)


def test_log_activity_swallows_store_failures():
    store = Mock()
    store.add.side_effect = RuntimeError("store down")
    assert log_activity(store, "x", "Error") is None


# -----------------------------------------------------
# Pagination
# -----------------------------------------------------
@pytest.mark.parametrize("total", [0, 1, 15, 16, 44, 45])
def test_next_pages_are_disjoint_and_cover_everything(store, total):
    _seed_logs(store, total)

    seen = []
    page = fetch_logs_page(store, page_size=15)
    assert page["has_prev"] is False
    while True:
        assert len(page["logs"]) <= 15
        seen += [log["id"] for log in page["logs"]]
        if not page["has_next"]:
            break
        page = fetch_logs_page(store, page_size=15, cursor=page["next_cursor"])

    assert len(seen) == len(set(seen)) == total
    # Newest first
    assert seen == [f"log-{i:03d}" for i in reversed(range(total))]


def test_prev_from_first_page_is_noop(store):
    _seed_logs(store, 40)
    first = fetch_logs_page(store, page_size=15)

    again = fetch_logs_page(store, page_size=15, cursor=None, direction="prev")
    assert again == first

    back = fetch_logs_page(store, page_size=15, cursor=first["logs"][0]["id"], direction="prev")
    assert back == first


def test_prev_walks_back(store):
    _seed_logs(store, 40)
    p1 = fetch_logs_page(store, page_size=15)
    p2 = fetch_logs_page(store, page_size=15, cursor=p1["next_cursor"])
    p3 = fetch_logs_page(store, page_size=15, cursor=p2["next_cursor"])
    assert len(p3["logs"]) == 10

    back_to_2 = fetch_logs_page(store, page_size=15, cursor=p3["prev_cursor"], direction="prev")
    assert back_to_2["logs"] == p2["logs"]

    back_to_1 = fetch_logs_page(store, page_size=15, cursor=back_to_2["prev_cursor"], direction="prev")
    assert back_to_1["logs"] == p1["logs"]
    assert back_to_1["has_prev"] is False


def test_filters(store):
    _seed_logs(store, 30)
    by_category = fetch_logs_page(store, page_size=15, category="Authentication")
    assert {log["category"] for log in by_category["logs"]} == {"Authentication"}

    by_email = fetch_logs_page(store, page_size=15, email="Member@Example.com")
    assert len(by_email["logs"]) == 10
    assert {log["user"]["email"] for log in by_email["logs"]} == {"member@example.com"}


def test_logs_route(client: TestClient, login, store):
    _seed_logs(store, 20)

    login("member-1")
    assert client.get("/logs").status_code == 403

    login("admin-1")
    first = client.get("/logs").json()
    assert len(first["logs"]) == 15
    second = client.get("/logs", params={"cursor": first["next_cursor"]}).json()
    assert len(second["logs"]) == 5

    assert client.get("/logs", params={"direction": "sideways"}).status_code == 400
    assert client.get("/logs", params={"category": "Bogus"}).status_code == 400
