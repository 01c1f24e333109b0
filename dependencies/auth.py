from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from core.context import AppContext, get_context
from core.errors import RoleResolutionError, ServiceUnavailableError
from core.permission_helpers import authorize
from models.user import ROLE_UNRESOLVED, UserRecord
from services.accounts import load_user
from services.site_status import get_site_status, is_locked_out


bearer_scheme = HTTPBearer(auto_error=False)


# Identity handed to every route: the stored user record with the
# attached Role record's permissions filled in.
CurrentUser = UserRecord


def _unauthorized(detail: str = "Invalid or expired authentication token") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


# ============================================================
# BEARER TOKEN
# ============================================================
def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Not authenticated")
    return credentials.credentials


# ============================================================
# AUTH DECODING (Supabase validates the token, store holds the record)
# ============================================================
def get_current_user(
    token: str = Depends(get_bearer_token),
    ctx: AppContext = Depends(get_context),
) -> CurrentUser:

    if ctx.auth is None:
        raise HTTPException(500, "Auth provider not configured")

    # ---------------------------------------------------------
    # Validate token via the auth provider
    # ---------------------------------------------------------
    try:
        identity = ctx.auth.get_user(token)
    except Exception:
        raise _unauthorized()

    if not identity or not identity.get("id"):
        raise _unauthorized()

    # ---------------------------------------------------------
    # Stored record (created by POST /auth/session)
    # ---------------------------------------------------------
    user = load_user(ctx.store, identity["id"])
    if user is None:
        raise _unauthorized("Session not established. Sign in first.")

    # ---------------------------------------------------------
    # Membership revoked since sign-in
    # ---------------------------------------------------------
    if user.role_state == ROLE_UNRESOLVED:
        raise RoleResolutionError(user.email)

    # ---------------------------------------------------------
    # Maintenance / emergency lockout (admins pass)
    # ---------------------------------------------------------
    site_status = get_site_status(ctx.store)
    if is_locked_out(user, site_status):
        if site_status.emergency_shutdown:
            raise ServiceUnavailableError("The site is temporarily unavailable.")
        raise ServiceUnavailableError("The site is under maintenance. Please try again later.")

    return user


# ============================================================
# PERMISSION CHECK (DELEGATES TO permission_helpers)
# ============================================================
def requires_permission(permission: str):
    """
    Route-level guard for actions with no resource document.
    Resource-scoped checks happen in the services via authorize().
    """
    def checker(current_user: CurrentUser = Depends(get_current_user)):
        if not authorize(current_user, permission):
            raise HTTPException(
                status_code=403,
                detail=f"Missing permission: {permission}",
            )
        return current_user
    return checker
