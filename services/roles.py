# services/roles.py

from typing import List

from core.activity_log import log_activity
from core.errors import ConflictError, NotFoundError, ValidationError
from core.permission_helpers import require
from core.permissions import Permission
from core.store import DocumentStore, Query, utc_now_iso
from models.enums import LogCategory
from models.role import RoleAssign, RoleCreate, RoleUpdate
from models.user import UserRecord
from services.accounts import ROLES_COLLECTION, USERS_COLLECTION, load_user


def _check_permissions(permissions: List[str]) -> List[str]:
    known = set(Permission.list())
    unknown = [p for p in permissions if p not in known]
    if unknown:
        raise ValidationError(f"Unknown permissions: {', '.join(unknown)}")
    return list(dict.fromkeys(permissions))


def _check_name(store: DocumentStore, name: str, exclude_id: str = None) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Role name is required.")
    for role in store.query(ROLES_COLLECTION):
        if role.get("name", "").lower() == name.lower() and role["id"] != exclude_id:
            raise ConflictError(f'Role "{name}" already exists.')
    return name


def get_role(store: DocumentStore, role_id: str) -> dict:
    role = store.get(ROLES_COLLECTION, role_id)
    if role is None:
        raise NotFoundError("Role not found.")
    return role


def list_roles(store: DocumentStore, user: UserRecord) -> List[dict]:
    require(user, Permission.roles_read)
    return store.query(ROLES_COLLECTION, Query(order_by="name"))


def create_role(ctx, user: UserRecord, payload: RoleCreate) -> dict:
    store = ctx.store
    require(user, Permission.roles_manage)

    role = store.add(ROLES_COLLECTION, {
        "name": _check_name(store, payload.name),
        "permissions": _check_permissions(payload.permissions),
        "created_at": utc_now_iso(),
    })
    log_activity(store, f'Role "{role["name"]}" created', LogCategory.permissions, user)
    return role


def update_role(ctx, user: UserRecord, role_id: str, payload: RoleUpdate) -> dict:
    store = ctx.store
    require(user, Permission.roles_manage)
    get_role(store, role_id)

    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("No update data provided.")
    if "name" in changes:
        changes["name"] = _check_name(store, changes["name"], exclude_id=role_id)
    if "permissions" in changes:
        changes["permissions"] = _check_permissions(changes["permissions"] or [])

    role = store.update(ROLES_COLLECTION, role_id, changes)
    log_activity(store, f'Role "{role["name"]}" updated', LogCategory.permissions, user)
    return role


def delete_role(ctx, user: UserRecord, role_id: str) -> int:
    """Delete the role and detach it from its users in one batch. Returns users detached."""
    store = ctx.store
    require(user, Permission.roles_manage)
    role = get_role(store, role_id)

    holders = store.query(USERS_COLLECTION, Query(filters={"role_id": role_id}))
    batch = store.batch()
    for holder in holders:
        batch.update(USERS_COLLECTION, holder["id"], {"role_id": None})
    batch.delete(ROLES_COLLECTION, role_id)
    batch.commit()

    log_activity(store, f'Role "{role["name"]}" deleted', LogCategory.permissions, user)
    return len(holders)


def assign_role(ctx, user: UserRecord, payload: RoleAssign) -> UserRecord:
    store = ctx.store
    require(user, Permission.roles_manage)

    target = store.get(USERS_COLLECTION, payload.user_id)
    if target is None:
        raise NotFoundError("User not found.")

    if payload.role_id:
        role = get_role(store, payload.role_id)
        message = f'Role "{role["name"]}" assigned to {target.get("email")}'
    else:
        message = f'Role removed from {target.get("email")}'

    store.update(USERS_COLLECTION, payload.user_id, {"role_id": payload.role_id})
    log_activity(store, message, LogCategory.permissions, user)
    return load_user(store, payload.user_id)
