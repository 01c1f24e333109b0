# services/tasks.py

"""
Task lifecycle: create/update/delete, submissions, review, comments and
reminders. Every decision goes through core.permission_helpers.authorize.

Mutations return the stored document; live views come from subscriptions.
"""

from typing import List, Optional

from core.activity_log import log_activity
from core.domain_config import DOMAINS_COLLECTION
from core.email_utils import send_reminder_email, send_task_assigned_email
from core.errors import AuthorizationError, NotFoundError, ValidationError
from core.logging_config import logger
from core.permission_helpers import authorize, require
from core.permissions import Permission
from core.store import DocumentStore, Query, new_id, utc_now_iso
from core.utils import sanitize
from models.enums import LogCategory, TaskStatus
from models.task import CommentCreate, RatingUpdate, SubmissionCreate, TaskCreate, TaskUpdate
from models.user import UserRecord
from services.accounts import USERS_COLLECTION


TASKS_COLLECTION = "tasks"


# ============================================================
# Pure helpers
# ============================================================

def rated_scores(task: dict) -> List[int]:
    """Scores set by a reviewer. 0 or unset means not yet rated."""
    return [
        s["quality_score"] for s in task.get("submissions") or []
        if s.get("quality_score")
    ]


def average_rating(task: dict) -> Optional[float]:
    scores = rated_scores(task)
    if not scores:
        return None
    return round(sum(scores) / len(scores), 2)


def unsubmitted_assignees(task: dict) -> List[dict]:
    submitted = {(s.get("author") or {}).get("id") for s in task.get("submissions") or []}
    return [a for a in task.get("assignees") or [] if a.get("id") not in submitted]


def with_rating(task: dict) -> dict:
    return {**task, "average_rating": average_rating(task)}


def _iso(value) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat() if hasattr(value, "isoformat") else str(value)


def _user_snapshot(store: DocumentStore, user_id: str) -> dict:
    doc = store.get(USERS_COLLECTION, user_id)
    if doc is None:
        raise NotFoundError(f"User {user_id} not found.")
    return {"id": doc["id"], "name": doc.get("name"), "email": doc.get("email")}


def _snapshot_of(user: UserRecord) -> dict:
    return user.snapshot().model_dump()


def _find_submission(task: dict, submission_id: str) -> dict:
    for submission in task.get("submissions") or []:
        if submission.get("id") == submission_id:
            return submission
    raise NotFoundError("Submission not found.")


# ============================================================
# Reads
# ============================================================

def get_task(store: DocumentStore, task_id: str) -> dict:
    task = store.get(TASKS_COLLECTION, task_id)
    if task is None:
        raise NotFoundError("Task not found.")
    return task


def list_tasks(store: DocumentStore, user: UserRecord, domain: Optional[str] = None) -> List[dict]:
    """Admins see every task, leads their domain and tasks assigned to them, members their assignments."""
    require(user, Permission.tasks_read)

    query = Query(order_by="due_date")
    if domain:
        query = query.where(domain=domain)

    return [
        with_rating(task) for task in store.query(TASKS_COLLECTION, query)
        if authorize(user, Permission.tasks_read, task)
    ]


def get_visible_task(store: DocumentStore, user: UserRecord, task_id: str) -> dict:
    task = get_task(store, task_id)
    require(user, Permission.tasks_read, task)
    return task


def task_rating(store: DocumentStore, user: UserRecord, task_id: str) -> dict:
    task = get_visible_task(store, user, task_id)
    return {
        "task_id": task["id"],
        "average_rating": average_rating(task),
        "rated_submissions": len(rated_scores(task)),
        "total_submissions": len(task.get("submissions") or []),
    }


# ============================================================
# Task CRUD
# ============================================================

def create_task(ctx, user: UserRecord, payload: TaskCreate, background=None) -> dict:
    store = ctx.store
    domain = payload.domain or user.domain
    if not domain:
        raise ValidationError("Domain is required.")

    require(user, Permission.tasks_create, {"domain": domain})

    if store.get(DOMAINS_COLLECTION, domain) is None:
        raise NotFoundError(f'Domain "{domain}" not found.')

    assignees = [_user_snapshot(store, uid) for uid in dict.fromkeys(payload.assignee_ids)]

    if payload.assigned_to_lead_id:
        lead = _user_snapshot(store, payload.assigned_to_lead_id)
    elif user.domain == domain:
        lead = _snapshot_of(user)
    else:
        lead = None

    task = store.add(TASKS_COLLECTION, sanitize({
        "title": payload.title,
        "description": payload.description,
        "due_date": _iso(payload.due_date),
        "attachment": payload.attachment,
    }) | {
        "status": TaskStatus.pending.value,
        "domain": domain,
        "assignees": assignees,
        "assigned_to_lead": lead,
        "submissions": [],
        "comments": [],
        "created_by": _snapshot_of(user),
        "created_at": utc_now_iso(),
    })

    log_activity(store, f'Task "{task["title"]}" created in {domain}', LogCategory.task_management, user)

    if payload.notify and assignees:
        ctx.mailer.dispatch(
            background, "Task assignment email",
            send_task_assigned_email, ctx.mailer, task, (lead or {}).get("email"),
        )

    return with_rating(task)


def update_task(ctx, user: UserRecord, task_id: str, payload: TaskUpdate) -> dict:
    store = ctx.store
    task = get_task(store, task_id)
    require(user, Permission.tasks_update, task)

    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("No update data provided.")

    if "due_date" in changes:
        changes["due_date"] = _iso(changes["due_date"])
    if "assignee_ids" in changes:
        ids = changes.pop("assignee_ids") or []
        changes["assignees"] = [_user_snapshot(store, uid) for uid in dict.fromkeys(ids)]
    if "assigned_to_lead_id" in changes:
        lead_id = changes.pop("assigned_to_lead_id")
        changes["assigned_to_lead"] = _user_snapshot(store, lead_id) if lead_id else None

    changes["updated_at"] = utc_now_iso()
    updated = store.update(TASKS_COLLECTION, task_id, changes)

    if "status" in changes and changes["status"] != task.get("status"):
        message = f'Task "{task["title"]}" status changed to {changes["status"]}'
    else:
        message = f'Task "{task["title"]}" updated'
    log_activity(store, message, LogCategory.task_management, user)

    return with_rating(updated)


def delete_task(ctx, user: UserRecord, task_id: str):
    store = ctx.store
    task = get_task(store, task_id)
    require(user, Permission.tasks_delete, task)

    store.delete(TASKS_COLLECTION, task_id)
    log_activity(store, f'Task "{task["title"]}" deleted', LogCategory.task_management, user)


# ============================================================
# Submissions & review
# ============================================================

def submit_work(ctx, user: UserRecord, task_id: str, payload: SubmissionCreate) -> dict:
    store = ctx.store
    task = get_task(store, task_id)
    require(user, Permission.tasks_submit, task)

    submission = {
        "id": new_id(),
        "author": _snapshot_of(user),
        "file": payload.file,
        "timestamp": utc_now_iso(),
        "quality_score": None,
        "remarks": None,
    }
    changes = {"submissions": list(task.get("submissions") or []) + [submission]}
    if task.get("status") == TaskStatus.pending.value:
        changes["status"] = TaskStatus.in_progress.value

    updated = store.update(TASKS_COLLECTION, task_id, changes)
    log_activity(store, f'Submission added to task "{task["title"]}"', LogCategory.submissions, user)
    return with_rating(updated)


def delete_submission(ctx, user: UserRecord, task_id: str, submission_id: str) -> dict:
    """Authors may withdraw their own submission; reviewers may remove any."""
    store = ctx.store
    task = get_task(store, task_id)
    submission = _find_submission(task, submission_id)

    is_author = (submission.get("author") or {}).get("id") == user.id
    if not is_author and not authorize(user, Permission.tasks_review, task):
        raise AuthorizationError("You do not have permission to perform this action.")

    remaining = [s for s in task.get("submissions") or [] if s.get("id") != submission_id]
    updated = store.update(TASKS_COLLECTION, task_id, {"submissions": remaining})

    if submission.get("file"):
        try:
            ctx.storage.delete(submission["file"])
        except Exception as e:
            # Record is gone either way; the object is orphaned
            logger.warning(f"Failed to delete submission file {submission['file']}: {e}")

    log_activity(store, f'Submission removed from task "{task["title"]}"', LogCategory.submissions, user)
    return with_rating(updated)


def rate_submission(ctx, user: UserRecord, task_id: str, submission_id: str, payload: RatingUpdate) -> dict:
    store = ctx.store
    task = get_task(store, task_id)
    require(user, Permission.tasks_review, task)
    _find_submission(task, submission_id)

    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("No update data provided.")
    if "quality_score" in changes and not changes["quality_score"]:
        changes["quality_score"] = None

    submissions = [
        {**s, **changes} if s.get("id") == submission_id else s
        for s in task.get("submissions") or []
    ]
    updated = store.update(TASKS_COLLECTION, task_id, {"submissions": submissions})

    score = changes.get("quality_score")
    message = (
        f'Submission on task "{task["title"]}" rated {score}/5' if score
        else f'Submission review updated on task "{task["title"]}"'
    )
    log_activity(store, message, LogCategory.submissions, user)
    return with_rating(updated)


def add_comment(ctx, user: UserRecord, task_id: str, payload: CommentCreate) -> dict:
    store = ctx.store
    task = get_task(store, task_id)
    require(user, Permission.tasks_read, task)

    comment = {
        "id": new_id(),
        "author": _snapshot_of(user),
        "text": payload.text.strip(),
        "timestamp": utc_now_iso(),
    }
    if not comment["text"]:
        raise ValidationError("Comment text is required.")

    updated = store.update(TASKS_COLLECTION, task_id, {
        "comments": list(task.get("comments") or []) + [comment],
    })
    log_activity(store, f'Comment added to task "{task["title"]}"', LogCategory.task_management, user)
    return with_rating(updated)


def remind_unsubmitted(ctx, user: UserRecord, task_id: str, background=None) -> int:
    """Email assignees without a submission. Returns how many were reminded."""
    store = ctx.store
    task = get_task(store, task_id)
    require(user, Permission.tasks_remind, task)

    pending = unsubmitted_assignees(task)
    if not pending:
        return 0

    lead_email = (task.get("assigned_to_lead") or {}).get("email")
    ctx.mailer.dispatch(
        background, "Task reminder email",
        send_reminder_email, ctx.mailer, task, pending, lead_email,
    )
    log_activity(
        store,
        f'Reminder sent for task "{task["title"]}" to {len(pending)} assignee(s)',
        LogCategory.task_management,
        user,
    )
    return len(pending)
