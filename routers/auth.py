from fastapi import APIRouter, BackgroundTasks, Depends, Request

from core.activity_log import log_activity
from core.context import AppContext, get_context
from core.email_utils import send_password_reset_notice
from core.rate_limiter import require_rate_limit
from dependencies.auth import CurrentUser, get_bearer_token, get_current_user
from models.enums import LogCategory
from models.user import PasswordResetNotice, ProfileUpdate
from services import accounts


router = APIRouter(
    prefix="/auth",
    tags=["Auth"],
)


# ============================================================
# SESSION (authenticate-then-revoke)
# ============================================================
@router.post("/session", response_model=CurrentUser, summary="Establish an authorized session")
def create_session(
    token: str = Depends(get_bearer_token),
    ctx: AppContext = Depends(get_context),
):
    """
    Called by the client right after the auth provider signs the user in.
    Emails outside the domain configuration get their session revoked (403).
    """
    return accounts.sign_in(ctx, token)


# ============================================================
# CURRENT USER
# ============================================================
@router.get("/me", response_model=CurrentUser, summary="Current authenticated user")
def read_me(current_user: CurrentUser = Depends(get_current_user)):
    return current_user


@router.patch("/me", response_model=CurrentUser, summary="Update current user profile")
def update_profile(
    payload: ProfileUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    ctx: AppContext = Depends(get_context),
):
    """
    Self-service edit of name, avatar and phone number.
    Role and domain come from the domain configuration only.
    """
    return accounts.update_profile(ctx, current_user, payload)


# ============================================================
# PASSWORD RESET NOTICE (admin heads-up, rate limited)
# ============================================================
@router.post("/password-reset-notice", summary="Notify the administrator of a password reset")
def password_reset_notice(
    payload: PasswordResetNotice,
    request: Request,
    background: BackgroundTasks,
    ctx: AppContext = Depends(get_context),
):
    email = payload.email.strip().lower()
    require_rate_limit(
        ctx.rate_limiter,
        request,
        key=email,
        max_requests=ctx.settings.PASSWORD_RESET_NOTICE_LIMIT,
        window_seconds=ctx.settings.PASSWORD_RESET_NOTICE_WINDOW_SECONDS,
    )

    log_activity(ctx.store, f"Password reset requested for {email}", LogCategory.authentication, None)
    ctx.mailer.dispatch(background, "Password reset notice", send_password_reset_notice, ctx.mailer, email)
    return {"message": "Notification queued."}
