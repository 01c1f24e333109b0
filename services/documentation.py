# services/documentation.py

"""
Documentation hub: folders and files linked by parent_id back-references.
"""

from typing import List, Optional

from core.activity_log import log_activity
from core.errors import NotFoundError, ValidationError
from core.logging_config import logger
from core.permission_helpers import authorize, require
from core.permissions import Permission
from core.store import DocumentStore, Query, utc_now_iso
from models.documentation import DocItemCreate, DocItemUpdate
from models.enums import DocItemType, LogCategory
from models.user import UserRecord


DOCS_COLLECTION = "documentation"


def _ordering(item: dict):
    # Folders first, then by name
    return (item.get("type") != DocItemType.folder.value, (item.get("name") or "").lower())


def get_item(store: DocumentStore, item_id: str) -> dict:
    item = store.get(DOCS_COLLECTION, item_id)
    if item is None:
        raise NotFoundError("Documentation item not found.")
    return item


def visible_items(user: UserRecord, items: List[dict]) -> List[dict]:
    """
    Items the user may read. An item is hidden when it, or any folder
    above it, is hidden. `items` must hold the ancestors to check.
    """
    by_id = {item["id"]: item for item in items}
    verdicts = {}

    def visible(item: dict) -> bool:
        chain = []
        current = item
        while current is not None and current["id"] not in verdicts:
            if current["id"] in chain:
                # parent_id cycle; judge by the items themselves
                break
            chain.append(current["id"])
            current = by_id.get(current.get("parent_id"))

        inherited = verdicts.get(current["id"], True) if current is not None else True
        for item_id in reversed(chain):
            inherited = inherited and authorize(user, Permission.documentation_read, by_id[item_id])
            verdicts[item_id] = inherited
        return verdicts[item["id"]]

    return [item for item in items if visible(item)]


def list_items(store: DocumentStore, user: UserRecord, parent_id: Optional[str] = None) -> List[dict]:
    require(user, Permission.documentation_read)

    items = visible_items(user, store.query(DOCS_COLLECTION))
    if parent_id:
        items = [item for item in items if item.get("parent_id") == parent_id]
    return sorted(items, key=_ordering)


def collect_descendants(store: DocumentStore, root_id: str) -> List[dict]:
    """Every item below root_id, breadth first."""
    found = []
    frontier = [root_id]
    seen = {root_id}
    while frontier:
        parent = frontier.pop(0)
        for child in store.query(DOCS_COLLECTION, Query(filters={"parent_id": parent})):
            if child["id"] in seen:
                continue
            seen.add(child["id"])
            found.append(child)
            if child.get("type") == DocItemType.folder.value:
                frontier.append(child["id"])
    return found


def create_item(ctx, user: UserRecord, payload: DocItemCreate) -> dict:
    store = ctx.store
    require(user, Permission.documentation_manage)

    name = payload.name.strip()
    if not name:
        raise ValidationError("Name is required.")

    if payload.parent_id:
        parent = get_item(store, payload.parent_id)
        if parent.get("type") != DocItemType.folder.value:
            raise ValidationError("Parent must be a folder.")

    data = {
        "type": payload.type,
        "name": name,
        "parent_id": payload.parent_id,
        "viewable_by": payload.viewable_by,
        "created_by": user.snapshot().model_dump(),
        "created_at": utc_now_iso(),
    }
    if payload.type == DocItemType.file.value:
        if not payload.file_path:
            raise ValidationError("file_path is required for files.")
        data["file_path"] = payload.file_path
        data["mime_type"] = payload.mime_type or "application/octet-stream"

    item = store.add(DOCS_COLLECTION, data)
    log_activity(store, f'{payload.type.capitalize()} "{name}" created', LogCategory.documentation, user)
    return item


def update_item(ctx, user: UserRecord, item_id: str, payload: DocItemUpdate) -> dict:
    store = ctx.store
    require(user, Permission.documentation_manage)
    item = get_item(store, item_id)

    changes = payload.model_dump(exclude_unset=True)
    if "name" in changes:
        changes["name"] = (changes["name"] or "").strip()
        if not changes["name"]:
            raise ValidationError("Name is required.")
    if "viewable_by" in changes and changes["viewable_by"] is None:
        changes["viewable_by"] = []
    if not changes:
        raise ValidationError("No update data provided.")

    updated = store.update(DOCS_COLLECTION, item_id, changes)
    log_activity(store, f'"{item["name"]}" updated', LogCategory.documentation, user)
    return updated


def delete_item(ctx, user: UserRecord, item_id: str) -> dict:
    """
    Delete an item and, for folders, everything below it.

    Storage deletion is attempted for every file and a failure does not
    stop the walk; all record deletes commit in one batch.
    """
    store = ctx.store
    require(user, Permission.documentation_manage)
    item = get_item(store, item_id)

    targets = [item]
    if item.get("type") == DocItemType.folder.value:
        targets += collect_descendants(store, item_id)

    storage_failures = []
    for target in targets:
        key = target.get("file_path")
        if target.get("type") != DocItemType.file.value or not key:
            continue
        try:
            ctx.storage.delete(key)
        except Exception as e:
            logger.warning(f"Failed to delete stored file {key}: {e}")
            storage_failures.append(key)

    batch = store.batch()
    for target in targets:
        batch.delete(DOCS_COLLECTION, target["id"])
    batch.commit()

    log_activity(
        store,
        f'"{item["name"]}" deleted ({len(targets)} item(s))',
        LogCategory.documentation,
        user,
    )
    return {"deleted": len(targets), "storage_failures": storage_failures}
