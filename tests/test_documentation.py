# tests/test_documentation.py

"""
Tests for the documentation hub.
"""

import pytest
from fastapi.testclient import TestClient

from core.errors import AppError


@pytest.fixture
def tree(store):
    """
    root/
      guide.pdf
      sub/
        design.md        (storage delete fails)
        deeper/
          notes.txt
    other.txt          (outside the tree)
    """
    docs = [
        {"id": "root", "type": "folder", "name": "root", "parent_id": None, "viewable_by": []},
        {"id": "guide", "type": "file", "name": "guide.pdf", "parent_id": "root", "file_path": "docs/guide.pdf"},
        {"id": "sub", "type": "folder", "name": "sub", "parent_id": "root"},
        {"id": "design", "type": "file", "name": "design.md", "parent_id": "sub", "file_path": "docs/design.md"},
        {"id": "deeper", "type": "folder", "name": "deeper", "parent_id": "sub"},
        {"id": "notes", "type": "file", "name": "notes.txt", "parent_id": "deeper", "file_path": "docs/notes.txt"},
        {"id": "other", "type": "file", "name": "other.txt", "parent_id": None, "file_path": "docs/other.txt"},
    ]
    for doc in docs:
        store.set("documentation", doc["id"], doc)
    return docs


def test_recursive_delete_survives_storage_failure(client: TestClient, login, store, mock_storage, tree):
    def delete(key):
        if key == "docs/design.md":
            raise AppError("storage unavailable")

    mock_storage.delete.side_effect = delete
    login("doclead-1")

    response = client.delete("/documentation/root")

    assert response.status_code == 200
    assert response.json()["deleted"] == 6
    assert response.json()["storage_failures"] == ["docs/design.md"]

    # Every file below the folder was attempted, including after the failure
    attempted = sorted(c.args[0] for c in mock_storage.delete.call_args_list)
    assert attempted == ["docs/design.md", "docs/guide.pdf", "docs/notes.txt"]

    assert [d["id"] for d in store.query("documentation")] == ["other"]


def test_delete_file_only_touches_that_file(client: TestClient, login, store, mock_storage, tree):
    login("admin-1")
    response = client.delete("/documentation/notes")
    assert response.json()["deleted"] == 1
    mock_storage.delete.assert_called_once_with("docs/notes.txt")
    assert store.get("documentation", "deeper") is not None


def test_management_limited_to_admins_and_documentation_lead(client: TestClient, login, tree):
    login("lead-1")
    assert client.delete("/documentation/root").status_code == 403
    assert client.post("/documentation", json={"type": "folder", "name": "x"}).status_code == 403


def test_create_validations(client: TestClient, login, tree):
    login("doclead-1")

    folder = client.post("/documentation", json={"type": "folder", "name": "New", "parent_id": "root"})
    assert folder.status_code == 201
    assert folder.json()["created_by"]["id"] == "doclead-1"

    assert client.post("/documentation", json={"type": "file", "name": "a.txt"}).status_code == 400
    assert client.post("/documentation", json={"type": "folder", "name": "x", "parent_id": "guide"}).status_code == 400
    assert client.post("/documentation", json={"type": "folder", "name": "x", "parent_id": "missing"}).status_code == 404

    file = client.post("/documentation", json={
        "type": "file", "name": "b.txt", "parent_id": "root", "file_path": "docs/b.txt",
    })
    assert file.json()["mime_type"] == "application/octet-stream"


def test_visibility_filter(client: TestClient, login, store):
    store.set("documentation", "open", {"type": "file", "name": "open", "viewable_by": []})
    store.set("documentation", "leads", {"type": "file", "name": "leads", "viewable_by": ["domain-lead"]})
    store.set("documentation", "eng", {"type": "file", "name": "eng", "viewable_by": ["Engineering-member"]})

    login("member-1")
    assert {d["id"] for d in client.get("/documentation").json()} == {"open", "eng"}

    login("designer-1")
    assert {d["id"] for d in client.get("/documentation").json()} == {"open"}

    login("admin-1")
    assert {d["id"] for d in client.get("/documentation").json()} == {"open", "leads", "eng"}


def test_hidden_folder_hides_its_contents(client: TestClient, login, store):
    store.set("documentation", "board", {"type": "folder", "name": "board", "parent_id": None,
                                         "viewable_by": ["admin"]})
    store.set("documentation", "minutes", {"type": "folder", "name": "minutes", "parent_id": "board",
                                           "viewable_by": []})
    store.set("documentation", "q1", {"type": "file", "name": "q1.pdf", "parent_id": "minutes",
                                      "viewable_by": []})
    store.set("documentation", "handbook", {"type": "file", "name": "handbook.pdf", "parent_id": None})

    login("member-1")
    assert [d["id"] for d in client.get("/documentation").json()] == ["handbook"]
    assert client.get("/documentation", params={"parent_id": "minutes"}).json() == []

    login("admin-1")
    assert [d["id"] for d in client.get("/documentation", params={"parent_id": "minutes"}).json()] == ["q1"]


def test_update_item(client: TestClient, login, tree):
    login("doclead-1")
    response = client.put("/documentation/guide", json={"name": "Guide v2", "viewable_by": ["admin"]})
    assert response.status_code == 200
    assert response.json()["name"] == "Guide v2"
    assert client.put("/documentation/guide", json={}).status_code == 400
