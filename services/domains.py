# services/domains.py

"""
Audited domain configuration edits.

Membership changes resync the affected user record, when one exists,
so role and domain stay in step with the configuration.
"""

from typing import Optional

from core.activity_log import log_activity
from core.domain_config import DomainConfig, normalize_email
from core.email_utils import send_role_resolution_alert
from core.errors import RoleResolutionError, ValidationError
from core.logging_config import logger
from core.permission_helpers import require
from core.permissions import Permission
from core.store import DocumentStore, Query
from models.domain import DomainConfigUpdate, PermissionAction, PermissionsUpdate
from models.enums import LogCategory
from models.user import ROLE_UNRESOLVED, UserRecord
from services.accounts import USERS_COLLECTION


def sync_user_role(ctx, email: str, actor: Optional[UserRecord] = None):
    """
    Re-resolve role/domain for the user record with `email`, if any.

    A record that no longer resolves is marked unresolved, which blocks
    every authenticated request until the configuration is fixed.
    """
    store = ctx.store
    email = normalize_email(email)
    users = store.query(USERS_COLLECTION, Query(filters={"email": email}))
    if not users:
        return

    config = DomainConfig(store)
    try:
        role, domain = config.resolve_role(email)
    except RoleResolutionError:
        for user in users:
            store.update(USERS_COLLECTION, user["id"], {"role_state": ROLE_UNRESOLVED})
        logger.warning(f"{email} no longer resolves to a role; access revoked")
        log_activity(
            store,
            f"Role resolution failed for {email}; administrator attention required",
            LogCategory.error,
            actor,
        )
        ctx.mailer.run_best_effort("Role resolution alert", send_role_resolution_alert, ctx.mailer, email)
        return

    for user in users:
        store.update(USERS_COLLECTION, user["id"], {"role": role, "domain": domain, "role_state": None})


def get_domains(store: DocumentStore, user: UserRecord) -> dict:
    require(user, Permission.domains_read)
    return DomainConfig(store).get_domain_map()


def add_member(ctx, user: UserRecord, payload: DomainConfigUpdate) -> dict:
    store = ctx.store
    require(user, Permission.domains_manage)

    doc = DomainConfig(store).add_member(payload.domain, payload.email)
    email = normalize_email(payload.email)
    sync_user_role(ctx, email, user)
    log_activity(store, f"Added {email} to {payload.domain} members", LogCategory.domain_management, user)
    return doc


def apply_permissions_update(ctx, user: UserRecord, payload: PermissionsUpdate) -> dict:
    """Dispatch one action from the permissions panel."""
    store = ctx.store
    require(user, Permission.permissions_manage)
    config = DomainConfig(store)
    action = payload.action
    email = normalize_email(payload.email)

    if action == PermissionAction.add_domain.value:
        result = config.add_domain(payload.domain)
        log_activity(store, f'Domain "{payload.domain}" created', LogCategory.domain_management, user)
        return {"message": "Domain created.", "domain": result}

    if action == PermissionAction.delete_domain.value:
        removed = config.delete_domain(payload.domain)
        log_activity(
            store,
            f'Domain "{payload.domain}" deleted with {removed} task(s)',
            LogCategory.domain_management,
            user,
        )
        return {"message": "Domain deleted.", "tasks_deleted": removed}

    if action in (PermissionAction.add_member.value, PermissionAction.add_lead.value):
        list_name = "lead" if action == PermissionAction.add_lead.value else "member"
        adder = config.add_lead if list_name == "lead" else config.add_member
        result = adder(payload.domain, payload.email)
        sync_user_role(ctx, email, user)
        log_activity(store, f"Added {email} as {list_name} of {payload.domain}", LogCategory.permissions, user)
        return {"message": f"{list_name.capitalize()} added.", "domain": result}

    if action in (PermissionAction.remove_member.value, PermissionAction.remove_lead.value):
        list_name = "lead" if action == PermissionAction.remove_lead.value else "member"
        remover = config.remove_lead if list_name == "lead" else config.remove_member
        result = remover(payload.domain, payload.email)
        sync_user_role(ctx, email, user)
        log_activity(store, f"Removed {email} as {list_name} of {payload.domain}", LogCategory.permissions, user)
        return {"message": f"{list_name.capitalize()} removed.", "domain": result}

    if action == PermissionAction.add_special_role.value:
        roles = config.set_special_role(payload.email, payload.role)
        sync_user_role(ctx, email, user)
        log_activity(store, f"Granted {payload.role} to {email}", LogCategory.permissions, user)
        return {"message": "Special role granted.", "special_roles": roles}

    if action == PermissionAction.remove_special_role.value:
        roles = config.remove_special_role(payload.email)
        sync_user_role(ctx, email, user)
        log_activity(store, f"Revoked special role from {email}", LogCategory.permissions, user)
        return {"message": "Special role revoked.", "special_roles": roles}

    raise ValidationError(f"Unsupported action: {action}")
