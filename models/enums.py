from enum import Enum


class BaseStrEnum(str, Enum):
    """
    Base enum that serializes cleanly to a string
    and provides a .list() method for UI dropdowns.
    """

    def __str__(self):
        return str(self.value)

    @classmethod
    def list(cls):
        return [item.value for item in cls]


# -----------------------------------------------------
# USER ROLE
# -----------------------------------------------------
class UserRole(BaseStrEnum):
    """Coarse role carried on every user record."""

    super_admin = "super-admin"
    admin = "admin"
    domain_lead = "domain-lead"
    member = "member"


ADMIN_ROLES = (UserRole.super_admin.value, UserRole.admin.value)
DOMAIN_ROLES = (UserRole.domain_lead.value, UserRole.member.value)


# -----------------------------------------------------
# LOG CATEGORY
# -----------------------------------------------------
class LogCategory(BaseStrEnum):
    """Audit log categories."""

    authentication = "Authentication"
    task_management = "Task Management"
    permissions = "Permissions"
    domain_management = "Domain Management"
    site_status = "Site Status"
    submissions = "Submissions"
    suggestions = "Suggestions"
    documentation = "Documentation Hub"
    announcements = "Announcements"
    error = "Error"


# -----------------------------------------------------
# TASK STATUS
# -----------------------------------------------------
class TaskStatus(BaseStrEnum):
    pending = "Pending"
    in_progress = "In Progress"
    completed = "Completed"


# -----------------------------------------------------
# SUGGESTIONS
# -----------------------------------------------------
class SuggestionStatus(BaseStrEnum):
    """Forward-only workflow: Open → In Progress → Resolved → Closed."""

    open = "Open"
    in_progress = "In Progress"
    resolved = "Resolved"
    closed = "Closed"


SUGGESTION_STATUS_ORDER = SuggestionStatus.list()


class SuggestionPriority(BaseStrEnum):
    low = "Low"
    medium = "Medium"
    high = "High"


# -----------------------------------------------------
# ANNOUNCEMENTS
# -----------------------------------------------------
class AnnouncementStatus(BaseStrEnum):
    draft = "draft"
    published = "published"
    archived = "archived"


# -----------------------------------------------------
# DOCUMENTATION
# -----------------------------------------------------
class DocItemType(BaseStrEnum):
    folder = "folder"
    file = "file"


# -----------------------------------------------------
# PRESIGNED URL ACTION
# -----------------------------------------------------
class PresignAction(BaseStrEnum):
    upload = "upload"
    download = "download"
