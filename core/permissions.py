from models.enums import BaseStrEnum


# ============================================
# PERMISSION ENUMERATION
# ============================================
class Permission(BaseStrEnum):
    # Tasks
    tasks_read = "tasks:read"
    tasks_create = "tasks:create"
    tasks_update = "tasks:update"
    tasks_delete = "tasks:delete"
    tasks_submit = "tasks:submit"
    tasks_review = "tasks:review"
    tasks_remind = "tasks:remind"

    # Suggestions
    suggestions_read = "suggestions:read"
    suggestions_create = "suggestions:create"
    suggestions_respond = "suggestions:respond"
    suggestions_status = "suggestions:status"

    # Announcements
    announcements_read = "announcements:read"
    announcements_manage = "announcements:manage"

    # Documentation hub
    documentation_read = "documentation:read"
    documentation_manage = "documentation:manage"

    # Domains, special roles, granular roles
    domains_read = "domains:read"
    domains_manage = "domains:manage"
    permissions_manage = "permissions:manage"
    roles_read = "roles:read"
    roles_manage = "roles:manage"

    # Users / dashboards
    users_read = "users:read"
    logs_read = "logs:read"
    leaderboard_read = "leaderboard:read"
    leaderboard_leads = "leaderboard:leads"
    site_status_manage = "site_status:manage"

    # Object storage
    uploads_presign = "uploads:presign"
    uploads_download = "uploads:download"


# ============================================
# CENTRALIZED ROLE → PERMISSIONS MAP
# ============================================
ROLE_PERMISSIONS = {

    # =====================================================
    # SUPER ADMIN: full access to everything
    # =====================================================
    "super-admin": ["*"],

    # =====================================================
    # ADMIN
    # =====================================================
    "admin": [
        "tasks:read", "tasks:create", "tasks:update", "tasks:delete",
        "tasks:review", "tasks:remind",

        "suggestions:read", "suggestions:create",
        "suggestions:respond", "suggestions:status",

        "announcements:read", "announcements:manage",

        "documentation:read", "documentation:manage",

        "domains:read", "domains:manage",
        "permissions:manage",
        "roles:read", "roles:manage",

        "users:read",
        "logs:read",
        "leaderboard:read", "leaderboard:leads",
        "site_status:manage",

        "uploads:presign", "uploads:download",
    ],

    # =====================================================
    # DOMAIN LEAD: scoped to their own domain
    # =====================================================
    "domain-lead": [
        "tasks:read", "tasks:create", "tasks:update", "tasks:delete",
        "tasks:review", "tasks:remind",

        "suggestions:read", "suggestions:create",
        "suggestions:respond", "suggestions:status",

        "announcements:read", "announcements:manage",

        "documentation:read",

        "domains:read",
        "users:read",
        "leaderboard:read", "leaderboard:leads",

        "uploads:presign", "uploads:download",
    ],

    # =====================================================
    # MEMBER
    # =====================================================
    "member": [
        "tasks:read", "tasks:submit",
        "suggestions:read", "suggestions:create",
        "announcements:read",
        "documentation:read",
        "domains:read",
        "users:read",
        "leaderboard:read",
        "uploads:presign", "uploads:download",
    ],
}
