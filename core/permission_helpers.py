"""
Single authorization policy: authorize(user, action, resource).

Every route and service asks this module; nothing else compares role or
domain strings. A decision is made in three steps:

  1. the action must be in the user's effective permissions
     (role defaults ∪ attached Role record), or granted by a subject rule
  2. admins and super-admins stop here
  3. when a resource document is given, the action's resource rule decides
"""

from typing import Callable, Dict, Optional, Union

from core.config import settings
from core.errors import AuthorizationError
from core.permissions import ROLE_PERMISSIONS, Permission
from models.enums import ADMIN_ROLES, UserRole
from models.user import UserRecord


Action = Union[Permission, str]


# -----------------------------------------------------
# Collect effective permissions:
#   • role-based permissions
#   • permissions from the attached Role record (user.permissions)
# -----------------------------------------------------
def get_effective_permissions(user: UserRecord) -> set:
    # Super admin = master key
    if user.role == UserRole.super_admin.value:
        return {"*"}

    role_perms = set(ROLE_PERMISSIONS.get(user.role, []))

    granular = set()
    raw = getattr(user, "permissions", None)
    if isinstance(raw, list):
        granular = set(raw)

    return role_perms.union(granular)


def has_permission(user: Optional[UserRecord], permission: Action) -> bool:
    if user is None:
        return False

    effective = get_effective_permissions(user)

    # Wildcard grants everything
    if "*" in effective:
        return True

    return str(permission) in effective


# ============================================================
# ROLE HELPERS
# ============================================================

def is_admin(user: Optional[UserRecord]) -> bool:
    """Admin or super-admin (bypasses resource rules)."""
    return user is not None and user.role in ADMIN_ROLES


def is_lead_of(user: UserRecord, domain: Optional[str]) -> bool:
    return (
        user.role == UserRole.domain_lead.value
        and domain is not None
        and user.domain == domain
    )


def _snapshot_id(value) -> Optional[str]:
    if isinstance(value, dict):
        return value.get("id")
    return None


# ============================================================
# SUBJECT RULES: grant an action from who the user is
# ============================================================

def _documentation_lead(user: UserRecord) -> bool:
    return is_lead_of(user, settings.DOCUMENTATION_DOMAIN)


_SUBJECT_RULES: Dict[str, Callable[[UserRecord], bool]] = {
    Permission.documentation_manage.value: _documentation_lead,
}


# ============================================================
# RESOURCE RULES: non-admin checks against one document
# ============================================================

def _manages_task(user: UserRecord, task: dict) -> bool:
    return (
        is_lead_of(user, task.get("domain"))
        or _snapshot_id(task.get("assigned_to_lead")) == user.id
    )


def _assigned_to_task(user: UserRecord, task: dict) -> bool:
    return any(_snapshot_id(a) == user.id for a in task.get("assignees") or [])


def _reads_task(user: UserRecord, task: dict) -> bool:
    return _manages_task(user, task) or _assigned_to_task(user, task)


def _creates_in_domain(user: UserRecord, target: dict) -> bool:
    return is_lead_of(user, target.get("domain"))


def _authored(user: UserRecord, doc: dict) -> bool:
    return _snapshot_id(doc.get("author")) == user.id


def _manages_suggestion(user: UserRecord, suggestion: dict) -> bool:
    return is_lead_of(user, suggestion.get("domain"))


def _responds_to_suggestion(user: UserRecord, suggestion: dict) -> bool:
    return _manages_suggestion(user, suggestion) or _snapshot_id(suggestion.get("submitter")) == user.id


def can_view_doc_item(user: UserRecord, item: dict) -> bool:
    """
    Empty viewable_by means visible to all (older items carry no list).
    Entries match the bare role or "<domain>-<role>".
    """
    viewable_by = item.get("viewable_by") or []
    if not viewable_by:
        return True
    if is_admin(user):
        return True

    user_roles = {user.role}
    if user.domain:
        user_roles.add(f"{user.domain}-{user.role}")

    return any(role in user_roles for role in viewable_by)


def can_see_announcement(user: UserRecord, announcement: dict) -> bool:
    if _authored(user, announcement):
        return True
    if announcement.get("status") != "published":
        return False

    targets = announcement.get("targets") or ["all"]
    for target in targets:
        if target == "all":
            return True
        if target == f"role-{user.role}":
            return True
        if user.domain and target == f"domain-{user.domain}":
            return True
        if user.email and target == user.email:
            return True
    return False


_RESOURCE_RULES: Dict[str, Callable[[UserRecord, dict], bool]] = {
    Permission.tasks_read.value: _reads_task,
    Permission.tasks_create.value: _creates_in_domain,
    Permission.tasks_update.value: _manages_task,
    Permission.tasks_delete.value: _manages_task,
    Permission.tasks_review.value: _manages_task,
    Permission.tasks_remind.value: _manages_task,
    Permission.tasks_submit.value: _assigned_to_task,

    Permission.suggestions_read.value: _responds_to_suggestion,
    Permission.suggestions_status.value: _manages_suggestion,
    Permission.suggestions_respond.value: _responds_to_suggestion,

    Permission.announcements_read.value: can_see_announcement,
    Permission.announcements_manage.value: _authored,

    Permission.documentation_read.value: can_view_doc_item,
}


# ============================================================
# POLICY
# ============================================================

def authorize(user: Optional[UserRecord], action: Action, resource: Optional[dict] = None) -> bool:
    """Pure decision: may `user` perform `action` (on `resource`)?"""
    if user is None:
        return False

    action = str(action)
    subject_rule = _SUBJECT_RULES.get(action)
    granted = has_permission(user, action) or bool(subject_rule and subject_rule(user))
    if not granted:
        return False

    if is_admin(user) or resource is None:
        return True

    rule = _RESOURCE_RULES.get(action)
    if rule is None:
        return True
    return rule(user, resource)


def require(user: Optional[UserRecord], action: Action, resource: Optional[dict] = None):
    """Raise AuthorizationError unless authorize() allows."""
    if not authorize(user, action, resource):
        raise AuthorizationError("You do not have permission to perform this action.")
