# -------------------------
# Enums
# -------------------------
from .enums import (
    UserRole,
    LogCategory,
    TaskStatus,
    SuggestionStatus,
    SuggestionPriority,
    AnnouncementStatus,
    DocItemType,
    PresignAction,
)

# -------------------------
# Users / Roles / Domains
# -------------------------
from .user import UserSnapshot, UserRecord, ProfileUpdate, PasswordResetNotice
from .role import RoleCreate, RoleUpdate, RoleAssign
from .domain import DomainRecord, DomainConfigUpdate, PermissionAction, PermissionsUpdate

# -------------------------
# Work items
# -------------------------
from .task import TaskCreate, TaskUpdate, SubmissionCreate, RatingUpdate, CommentCreate
from .suggestion import SuggestionCreate, SuggestionStatusUpdate, SuggestionResponseCreate
from .announcement import AnnouncementCreate, AnnouncementUpdate
from .documentation import DocItemCreate, DocItemUpdate

# -------------------------
# Misc
# -------------------------
from .uploads import PresignRequest
from .site_status import SiteStatus, SiteStatusUpdate
