# services/accounts.py

from typing import Optional

from core.activity_log import log_activity
from core.domain_config import DomainConfig
from core.email_utils import send_role_resolution_alert
from core.errors import (
    AppError,
    AuthenticationError,
    AuthorizationError,
    RoleResolutionError,
    ValidationError,
)
from core.logging_config import logger
from core.store import DocumentStore
from core.utils import sanitize
from models.enums import LogCategory
from models.user import ProfileUpdate, UserRecord


USERS_COLLECTION = "users"
ROLES_COLLECTION = "roles"

_USER_FIELDS = set(UserRecord.model_fields) - {"permissions"}


def load_user(store: DocumentStore, user_id: str) -> Optional[UserRecord]:
    """User record with the attached Role record's permissions filled in."""
    doc = store.get(USERS_COLLECTION, user_id)
    if doc is None:
        return None

    permissions = []
    if doc.get("role_id"):
        role = store.get(ROLES_COLLECTION, doc["role_id"])
        if role:
            permissions = list(role.get("permissions") or [])

    fields = {k: v for k, v in doc.items() if k in _USER_FIELDS}
    return UserRecord(**fields, permissions=permissions)


def _revoke(ctx, token: str, email: str):
    try:
        ctx.auth.revoke(token)
    except Exception as e:
        # The rejection still stands; the provider session will expire
        logger.error(f"Failed to revoke session for {email}: {e}")


def sign_in(ctx, token: str) -> UserRecord:
    """
    Complete a sign-in after the auth provider has authenticated `token`.

    Authenticate-then-revoke: the provider validates first, then the
    domain configuration decides. Rejected sessions are revoked.
    """
    if ctx.auth is None:
        raise AppError("Auth provider not configured")

    identity = ctx.auth.get_user(token)
    if not identity or not identity.get("email"):
        raise AuthenticationError("Invalid or expired authentication token")

    store = ctx.store
    email = identity["email"]
    config = DomainConfig(store)

    if not config.is_authorized(email):
        _revoke(ctx, token, email)
        log_activity(store, f"Unauthorized sign-in attempt by {email}", LogCategory.authentication, None)
        raise AuthorizationError("You are not authorized to access this application.")

    try:
        role, domain = config.resolve_role(email)
    except RoleResolutionError:
        _revoke(ctx, token, email)
        log_activity(
            store,
            f"Role resolution failed for {email}; administrator attention required",
            LogCategory.error,
            None,
        )
        ctx.mailer.run_best_effort("Role resolution alert", send_role_resolution_alert, ctx.mailer, email)
        raise

    user_id = identity["id"]
    existing = store.get(USERS_COLLECTION, user_id)

    if existing is None:
        store.set(USERS_COLLECTION, user_id, {
            "name": identity.get("name"),
            "email": email,
            "avatar_url": identity.get("avatar_url"),
            "phone_number": None,
            "role": role,
            "domain": domain,
            "role_id": None,
            "role_state": None,
        })
        message = f"New user {email} signed in for the first time as {role}"
    else:
        # Domain configuration is the source of truth for role/domain
        store.update(USERS_COLLECTION, user_id, {
            "email": email,
            "role": role,
            "domain": domain,
            "name": existing.get("name") or identity.get("name"),
            "role_state": None,
        })
        message = f"User {email} signed in"

    user = load_user(store, user_id)
    log_activity(store, message, LogCategory.authentication, user)
    return user


def update_profile(ctx, user: UserRecord, payload: ProfileUpdate) -> UserRecord:
    """Self-service edit of name, avatar and phone number."""
    updates = {
        k: v for k, v in sanitize(payload.model_dump(exclude_unset=True)).items()
        if v is not None or k == "phone_number"
    }
    if not updates:
        raise ValidationError("No update data provided.")

    provider_meta = {}
    if updates.get("name"):
        provider_meta["full_name"] = updates["name"]
    if updates.get("avatar_url"):
        provider_meta["avatar_url"] = updates["avatar_url"]

    # Provider first, then the users collection
    if provider_meta and ctx.auth is not None:
        ctx.auth.update_profile(user.id, provider_meta)

    ctx.store.update(USERS_COLLECTION, user.id, updates)
    logger.info(f"User {user.id} updated their profile")
    return load_user(ctx.store, user.id)
