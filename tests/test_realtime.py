# tests/test_realtime.py

"""
Tests for snapshot subscriptions, channels and derived views.
"""

import json
import queue

import pytest
from fastapi.responses import StreamingResponse
from fastapi.testclient import TestClient
from unittest.mock import Mock

from core.realtime import DerivedView, SnapshotChannel, SubscriptionHub
from core.store import MemoryStore, Query
from routers.realtime import stream
from services.accounts import load_user


@pytest.fixture
def hub():
    store = MemoryStore(seed={"tasks": [{"id": "t1", "domain": "A"}]})
    hub = SubscriptionHub(store)
    yield hub
    hub.close()


def test_subscribe_delivers_immediately_and_on_change(hub):
    callback = Mock()
    hub.subscribe("tasks", Query(filters={"domain": "A"}), callback)
    assert callback.call_args.args[0] == [{"id": "t1", "domain": "A"}]

    hub.store.set("tasks", "t2", {"domain": "A"})
    assert [d["id"] for d in callback.call_args.args[0]] == ["t1", "t2"]
    assert callback.call_count == 2


def test_other_collections_do_not_deliver(hub):
    callback = Mock()
    hub.subscribe("tasks", callback=callback)
    hub.store.set("users", "u1", {"name": "x"})
    assert callback.call_count == 1


def test_unsubscribe_is_idempotent(hub):
    callback = Mock()
    sub = hub.subscribe("tasks", callback=callback)
    sub.unsubscribe()
    sub.unsubscribe()

    hub.store.set("tasks", "t2", {})
    assert callback.call_count == 1
    assert hub.active_count("tasks") == 0


def test_delivery_errors_go_to_on_error(hub):
    on_error = Mock()
    hub.subscribe("tasks", callback=Mock(side_effect=ValueError("bad")), on_error=on_error)
    assert isinstance(on_error.call_args.args[0], ValueError)


def test_snapshot_channel_yields_until_closed(hub):
    with SnapshotChannel(hub, "tasks") as channel:
        first = channel.get(timeout=1)
        hub.store.delete("tasks", "t1")
        second = channel.get(timeout=1)
        assert [d["id"] for d in first] == ["t1"]
        assert second == []

        with pytest.raises(queue.Empty):
            channel.get(timeout=0.01)

    assert channel.closed
    assert channel.get(timeout=1) is None
    assert hub.active_count("tasks") == 0


def test_snapshot_channel_keeps_only_latest(hub):
    with SnapshotChannel(hub, "tasks") as channel:
        for i in range(5):
            hub.store.set("tasks", f"burst-{i}", {"domain": "A"})

        latest = channel.get(timeout=1)
        assert len(latest) == 6
        assert channel.dropped == 5

        with pytest.raises(queue.Empty):
            channel.get(timeout=0.01)


def test_derived_view_waits_for_every_source(hub):
    compute = Mock(side_effect=lambda tasks, users: (len(tasks), len(users)))
    view = DerivedView(
        hub,
        sources={"tasks": ("tasks", None), "users": ("users", None)},
        compute=compute,
    )

    # Both sources delivered on subscribe; one computation
    assert view.ready
    assert view.value == (1, 0)
    assert view.computations == 1

    hub.store.set("users", "u1", {})
    assert view.value == (1, 1)
    assert view.computations == 2
    view.close()


def test_derived_view_not_ready_without_all_snapshots():
    """A source that has not delivered yet holds back every computation."""

    class FlakyStore(MemoryStore):
        failures = 1

        def query(self, collection, query=None):
            if collection == "users" and self.failures:
                self.failures -= 1
                raise RuntimeError("users unavailable")
            return super().query(collection, query)

    store = FlakyStore(seed={"tasks": [{"id": "t1"}]})
    hub = SubscriptionHub(store)
    compute = Mock(return_value="joined")
    view = DerivedView(hub, sources={"tasks": ("tasks", None), "users": ("users", None)}, compute=compute)

    assert not view.ready
    store.set("tasks", "t2", {})
    assert compute.call_count == 0

    store.set("users", "u1", {})
    assert view.ready
    assert view.value == "joined"
    assert compute.call_count == 1
    hub.close()


def test_sse_stream_sends_visible_snapshots(client: TestClient, login, store):
    store.set("tasks", "mine", {"title": "Mine", "domain": "Engineering", "assignees": [{"id": "member-1"}]})
    store.set("tasks", "theirs", {"title": "Theirs", "domain": "Design", "assignees": [{"id": "designer-1"}]})
    login("member-1")

    with client.stream("GET", "/realtime/tasks", params={"limit": 1}) as response:
        assert response.status_code == 200
        body = "".join(response.iter_text())

    data_line = next(line for line in body.splitlines() if line.startswith("data: "))
    snapshot = json.loads(data_line[len("data: "):])
    assert [t["id"] for t in snapshot] == ["mine"]


def test_sse_unknown_collection(client: TestClient, login):
    login("admin-1")
    assert client.get("/realtime/secrets").status_code == 404


def test_sse_logs_need_permission(client: TestClient, login):
    login("member-1")
    assert client.get("/realtime/logs", params={"limit": 1}).status_code == 403


def test_sse_stream_releases_subscription(client: TestClient, login, ctx):
    login("member-1")
    with client.stream("GET", "/realtime/tasks", params={"limit": 1}) as response:
        "".join(response.iter_text())

    assert ctx.hub.active_count("tasks") == 0


def test_unconsumed_stream_never_subscribes(ctx, store):
    user = load_user(store, "member-1")
    response = stream("tasks", limit=None, current_user=user, ctx=ctx)

    assert isinstance(response, StreamingResponse)
    assert ctx.hub.active_count("tasks") == 0
