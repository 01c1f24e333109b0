# tests/test_tasks.py

"""
Tests for task routes, submissions, ratings and reminders.
"""

import pytest
from fastapi.testclient import TestClient

from services.tasks import average_rating, unsubmitted_assignees


def _sub(author_id, score=None):
    return {"id": f"s-{author_id}-{score}", "author": {"id": author_id}, "quality_score": score}


# -----------------------------------------------------
# Pure helpers
# -----------------------------------------------------
@pytest.mark.parametrize("scores,expected", [
    ([0, 3, 5], 4.0),
    ([None, 3, 5], 4.0),
    ([0, None], None),
    ([], None),
    ([2], 2.0),
    ([1, 2, 2], 1.67),
])
def test_average_rating_excludes_unrated(scores, expected):
    task = {"submissions": [_sub(f"u{i}", s) for i, s in enumerate(scores)]}
    assert average_rating(task) == expected


def test_unsubmitted_assignees():
    task = {
        "assignees": [{"id": "a"}, {"id": "b"}, {"id": "c"}],
        "submissions": [_sub("b")],
    }
    assert [a["id"] for a in unsubmitted_assignees(task)] == ["a", "c"]


# -----------------------------------------------------
# Routes
# -----------------------------------------------------
@pytest.fixture
def task_id(client: TestClient, login):
    login("lead-1")
    response = client.post("/tasks", json={
        "title": "Build API",
        "description": "First version",
        "due_date": "2026-11-01T00:00:00Z",
        "assignee_ids": ["member-1", "member-2"],
    })
    assert response.status_code == 201
    return response.json()["id"]


def test_create_task_defaults(client: TestClient, login, store, mailer, task_id):
    task = store.get("tasks", task_id)
    assert task["domain"] == "Engineering"
    assert task["status"] == "Pending"
    assert task["assigned_to_lead"]["id"] == "lead-1"
    assert [a["id"] for a in task["assignees"]] == ["member-1", "member-2"]
    assert task["due_date"].startswith("2026-11-01T00:00:00")

    # Assignment email went to both assignees with the lead in cc
    subject, _, recipients = mailer.send_email.call_args.args[:3]
    assert "Build API" in subject
    assert recipients == ["member@example.com", "member2@example.com"]
    assert mailer.send_email.call_args.kwargs["cc"] == ["lead@example.com"]

    assert any(log["category"] == "Task Management" for log in store.query("logs"))


def test_create_task_without_notify_sends_nothing(client: TestClient, login, mailer):
    login("lead-1")
    response = client.post("/tasks", json={"title": "Quiet", "assignee_ids": ["member-1"], "notify": False})
    assert response.status_code == 201
    mailer.send_email.assert_not_called()


def test_email_failure_does_not_fail_create(client: TestClient, login, mailer):
    mailer.send_email.side_effect = RuntimeError("smtp down")
    login("lead-1")
    response = client.post("/tasks", json={"title": "Still works", "assignee_ids": ["member-1"]})
    assert response.status_code == 201
    mailer.send_webhook_message.assert_called_once()


def test_create_task_permissions(client: TestClient, login):
    login("member-1")
    assert client.post("/tasks", json={"title": "Nope"}).status_code == 403

    login("lead-1")
    assert client.post("/tasks", json={"title": "Other", "domain": "Design"}).status_code == 403

    login("admin-1")
    assert client.post("/tasks", json={"title": "No domain"}).status_code == 400
    assert client.post("/tasks", json={"title": "Ghost", "domain": "Marketing"}).status_code == 404
    assert client.post("/tasks", json={"domain": "Design"}).status_code == 400


def test_visibility(client: TestClient, login, task_id):
    login("member-1")
    assert [t["id"] for t in client.get("/tasks").json()] == [task_id]

    login("designer-1")
    assert client.get("/tasks").json() == []

    login("admin-1")
    assert len(client.get("/tasks").json()) == 1


def test_submit_rate_and_average(client: TestClient, login, store, task_id):
    login("member-1")
    first = client.post(f"/tasks/{task_id}/submissions", json={"file": "uploads/a.pdf"})
    assert first.status_code == 201
    assert first.json()["status"] == "In Progress"

    login("member-2")
    client.post(f"/tasks/{task_id}/submissions", json={"file": "uploads/b.pdf"})

    login("designer-1")
    assert client.post(f"/tasks/{task_id}/submissions", json={"file": "x"}).status_code == 403

    subs = store.get("tasks", task_id)["submissions"]
    login("lead-1")
    client.post(f"/tasks/{task_id}/submissions/{subs[0]['id']}/rating", json={"quality_score": 3})
    rated = client.post(
        f"/tasks/{task_id}/submissions/{subs[1]['id']}/rating",
        json={"quality_score": 5, "remarks": "Great"},
    )
    assert rated.json()["average_rating"] == 4.0

    # 0 clears the score; the average ignores it
    cleared = client.post(f"/tasks/{task_id}/submissions/{subs[0]['id']}/rating", json={"quality_score": 0})
    assert cleared.json()["average_rating"] == 5.0

    summary = client.get(f"/tasks/{task_id}/rating").json()
    assert summary == {
        "task_id": task_id,
        "average_rating": 5.0,
        "rated_submissions": 1,
        "total_submissions": 2,
    }


def test_rating_out_of_range(client: TestClient, login, store, task_id):
    login("member-1")
    client.post(f"/tasks/{task_id}/submissions", json={"file": "a"})
    sid = store.get("tasks", task_id)["submissions"][0]["id"]

    login("lead-1")
    response = client.post(f"/tasks/{task_id}/submissions/{sid}/rating", json={"quality_score": 6})
    assert response.status_code == 400

    login("member-1")
    response = client.post(f"/tasks/{task_id}/submissions/{sid}/rating", json={"quality_score": 5})
    assert response.status_code == 403


def test_delete_submission_removes_file(client: TestClient, login, store, mock_storage, task_id):
    login("member-1")
    client.post(f"/tasks/{task_id}/submissions", json={"file": "uploads/a.pdf"})
    sid = store.get("tasks", task_id)["submissions"][0]["id"]

    login("member-2")
    assert client.delete(f"/tasks/{task_id}/submissions/{sid}").status_code == 403

    login("member-1")
    response = client.delete(f"/tasks/{task_id}/submissions/{sid}")
    assert response.status_code == 200
    assert response.json()["submissions"] == []
    mock_storage.delete.assert_called_once_with("uploads/a.pdf")


def test_remind_only_unsubmitted(client: TestClient, login, mailer, task_id):
    login("member-1")
    client.post(f"/tasks/{task_id}/submissions", json={"file": "a"})
    mailer.send_email.reset_mock()

    login("lead-1")
    response = client.post(f"/tasks/{task_id}/remind")
    assert response.json()["reminded"] == 1
    assert mailer.send_email.call_args.args[2] == ["member2@example.com"]

    login("member-2")
    client.post(f"/tasks/{task_id}/submissions", json={"file": "b"})
    login("lead-1")
    assert client.post(f"/tasks/{task_id}/remind").json()["reminded"] == 0


def test_comments_and_updates(client: TestClient, login, task_id):
    login("member-1")
    commented = client.post(f"/tasks/{task_id}/comments", json={"text": "On it"})
    assert commented.status_code == 201
    assert commented.json()["comments"][0]["author"]["id"] == "member-1"
    assert client.patch(f"/tasks/{task_id}", json={"title": "Mine now"}).status_code == 403

    login("lead-1")
    updated = client.patch(f"/tasks/{task_id}", json={"status": "Completed", "assignee_ids": ["member-1"]})
    assert updated.status_code == 200
    assert updated.json()["status"] == "Completed"
    assert [a["id"] for a in updated.json()["assignees"]] == ["member-1"]

    assert client.patch(f"/tasks/{task_id}", json={"status": "Done"}).status_code == 400


def test_delete_task(client: TestClient, login, store, task_id):
    login("designlead-1")
    assert client.delete(f"/tasks/{task_id}").status_code == 403

    login("lead-1")
    assert client.delete(f"/tasks/{task_id}").status_code == 200
    assert store.get("tasks", task_id) is None
    assert client.delete(f"/tasks/{task_id}").status_code == 404
