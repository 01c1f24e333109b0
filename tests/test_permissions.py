# tests/test_permissions.py

"""
Tests for the authorization policy and role administration.
"""

import pytest
from fastapi.testclient import TestClient

from core.errors import AuthorizationError
from core.permission_helpers import (
    authorize,
    can_see_announcement,
    can_view_doc_item,
    get_effective_permissions,
    has_permission,
    require,
)
from core.permissions import ROLE_PERMISSIONS, Permission
from models.user import UserRecord


ENG_TASK = {
    "id": "t1",
    "domain": "Engineering",
    "assignees": [{"id": "member-1"}],
    "assigned_to_lead": {"id": "lead-1"},
}
DESIGN_TASK = {
    "id": "t2",
    "domain": "Design",
    "assignees": [{"id": "designer-1"}],
    "assigned_to_lead": {"id": "lead-1"},
}


def test_every_role_permission_is_known():
    known = set(Permission.list()) | {"*"}
    for role, permissions in ROLE_PERMISSIONS.items():
        assert set(permissions) <= known, role


def test_super_admin_is_master_key():
    root = UserRecord(id="r", email="root@example.com", role="super-admin")
    assert get_effective_permissions(root) == {"*"}
    assert all(authorize(root, p, DESIGN_TASK) for p in Permission)


def test_role_record_permissions_extend_defaults(member_user):
    assert not has_permission(member_user, Permission.logs_read)
    member_user.permissions = ["logs:read"]
    assert has_permission(member_user, Permission.logs_read)


def test_none_user_is_denied():
    assert authorize(None, Permission.tasks_read) is False


# -----------------------------------------------------
# Tasks
# -----------------------------------------------------
def test_admin_manages_any_task(admin_user):
    for action in (Permission.tasks_update, Permission.tasks_delete, Permission.tasks_review):
        assert authorize(admin_user, action, DESIGN_TASK)


def test_lead_scoped_to_domain_or_assignment(lead_user):
    assert authorize(lead_user, Permission.tasks_create, {"domain": "Engineering"})
    assert not authorize(lead_user, Permission.tasks_create, {"domain": "Design"})

    assert authorize(lead_user, Permission.tasks_update, ENG_TASK)
    # Not their domain, but assigned to them as lead
    assert authorize(lead_user, Permission.tasks_update, DESIGN_TASK)
    assert not authorize(lead_user, Permission.tasks_update, {**DESIGN_TASK, "assigned_to_lead": {"id": "x"}})


def test_member_submits_only_to_assigned_tasks(member_user):
    assert authorize(member_user, Permission.tasks_submit, ENG_TASK)
    assert not authorize(member_user, Permission.tasks_submit, DESIGN_TASK)
    assert not authorize(member_user, Permission.tasks_update, ENG_TASK)
    assert authorize(member_user, Permission.tasks_read, ENG_TASK)
    assert not authorize(member_user, Permission.tasks_read, DESIGN_TASK)


def test_require_raises_authorization_error(member_user):
    with pytest.raises(AuthorizationError):
        require(member_user, Permission.tasks_delete, ENG_TASK)


# -----------------------------------------------------
# Documentation
# -----------------------------------------------------
def test_documentation_management(admin_user, doclead_user, lead_user):
    assert authorize(admin_user, Permission.documentation_manage)
    assert authorize(doclead_user, Permission.documentation_manage)
    assert not authorize(lead_user, Permission.documentation_manage)


@pytest.mark.parametrize("viewable_by,expected", [
    ([], True),
    (["member"], True),
    (["Engineering-member"], True),
    (["Design-member"], False),
    (["domain-lead"], False),
])
def test_doc_visibility(member_user, viewable_by, expected):
    assert can_view_doc_item(member_user, {"viewable_by": viewable_by}) is expected


def test_admin_sees_restricted_docs(admin_user):
    assert can_view_doc_item(admin_user, {"viewable_by": ["domain-lead"]})


# -----------------------------------------------------
# Announcements
# -----------------------------------------------------
@pytest.mark.parametrize("targets,expected", [
    (["all"], True),
    (["role-member"], True),
    (["role-domain-lead"], False),
    (["domain-Engineering"], True),
    (["domain-Design"], False),
    (["member@example.com"], True),
    (["someone@example.com"], False),
])
def test_announcement_targets(member_user, targets, expected):
    announcement = {"status": "published", "targets": targets, "author": {"id": "admin-1"}}
    assert can_see_announcement(member_user, announcement) is expected


def test_drafts_visible_to_author_only(member_user, lead_user):
    draft = {"status": "draft", "targets": ["all"], "author": {"id": "lead-1"}}
    assert can_see_announcement(lead_user, draft)
    assert not can_see_announcement(member_user, draft)


def test_leads_manage_only_their_announcements(lead_user):
    assert authorize(lead_user, Permission.announcements_manage, {"author": {"id": "lead-1"}})
    assert not authorize(lead_user, Permission.announcements_manage, {"author": {"id": "admin-1"}})


# -----------------------------------------------------
# Roles administration
# -----------------------------------------------------
def test_role_crud_and_assignment(client: TestClient, login, store):
    login("admin-1")

    created = client.post("/roles", json={"name": "Auditor", "permissions": ["logs:read"]})
    assert created.status_code == 201
    role_id = created.json()["id"]

    assert client.post("/roles", json={"name": "auditor"}).status_code == 409
    assert client.post("/roles", json={"name": "Bad", "permissions": ["logs:write"]}).status_code == 400

    assigned = client.put("/roles/assign", json={"user_id": "member-1", "role_id": role_id})
    assert assigned.status_code == 200
    assert assigned.json()["permissions"] == ["logs:read"]

    # The member can now read logs
    login("member-1")
    assert client.get("/logs").status_code == 200

    login("admin-1")
    deleted = client.delete(f"/roles/{role_id}")
    assert deleted.json()["users_detached"] == 1
    assert store.get("users", "member-1")["role_id"] is None


def test_roles_forbidden_for_members(client: TestClient, login):
    login("member-1")
    assert client.get("/roles").status_code == 403
    assert client.post("/roles", json={"name": "X"}).status_code == 403
