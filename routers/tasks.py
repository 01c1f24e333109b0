# routers/tasks.py

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query

from core.context import AppContext, get_context
from dependencies.auth import CurrentUser, get_current_user
from models.task import CommentCreate, RatingUpdate, SubmissionCreate, TaskCreate, TaskUpdate
from services import tasks


router = APIRouter(
    prefix="/tasks",
    tags=["Tasks"],
)


# -----------------------------------------------------
# LIST / CREATE
# -----------------------------------------------------
@router.get("", summary="Tasks visible to the current user")
def list_tasks(
    domain: Optional[str] = Query(None, description="Restrict to one domain"),
    current_user: CurrentUser = Depends(get_current_user),
    ctx: AppContext = Depends(get_context),
):
    return tasks.list_tasks(ctx.store, current_user, domain)


@router.post("", status_code=201, summary="Create a task")
def create_task(
    payload: TaskCreate,
    background: BackgroundTasks,
    current_user: CurrentUser = Depends(get_current_user),
    ctx: AppContext = Depends(get_context),
):
    """
    Leads create tasks in their own domain; admins in any domain.
    Assignees are emailed after the response unless notify is false.
    """
    return tasks.create_task(ctx, current_user, payload, background)


# -----------------------------------------------------
# UPDATE / DELETE
# -----------------------------------------------------
@router.patch("/{task_id}", summary="Update a task")
def update_task(
    task_id: str,
    payload: TaskUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    ctx: AppContext = Depends(get_context),
):
    return tasks.update_task(ctx, current_user, task_id, payload)


@router.delete("/{task_id}", summary="Delete a task")
def delete_task(
    task_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    ctx: AppContext = Depends(get_context),
):
    tasks.delete_task(ctx, current_user, task_id)
    return {"message": "Task deleted."}


# -----------------------------------------------------
# RATING SUMMARY
# -----------------------------------------------------
@router.get("/{task_id}/rating", summary="Average rating over rated submissions")
def get_rating(
    task_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    ctx: AppContext = Depends(get_context),
):
    return tasks.task_rating(ctx.store, current_user, task_id)


# -----------------------------------------------------
# SUBMISSIONS
# -----------------------------------------------------
@router.post("/{task_id}/submissions", status_code=201, summary="Submit work")
def submit_work(
    task_id: str,
    payload: SubmissionCreate,
    current_user: CurrentUser = Depends(get_current_user),
    ctx: AppContext = Depends(get_context),
):
    return tasks.submit_work(ctx, current_user, task_id, payload)


@router.delete("/{task_id}/submissions/{submission_id}", summary="Remove a submission")
def delete_submission(
    task_id: str,
    submission_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    ctx: AppContext = Depends(get_context),
):
    return tasks.delete_submission(ctx, current_user, task_id, submission_id)


@router.post("/{task_id}/submissions/{submission_id}/rating", summary="Rate a submission (0 clears)")
def rate_submission(
    task_id: str,
    submission_id: str,
    payload: RatingUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    ctx: AppContext = Depends(get_context),
):
    return tasks.rate_submission(ctx, current_user, task_id, submission_id, payload)


# -----------------------------------------------------
# COMMENTS / REMINDERS
# -----------------------------------------------------
@router.post("/{task_id}/comments", status_code=201, summary="Comment on a task")
def add_comment(
    task_id: str,
    payload: CommentCreate,
    current_user: CurrentUser = Depends(get_current_user),
    ctx: AppContext = Depends(get_context),
):
    return tasks.add_comment(ctx, current_user, task_id, payload)


@router.post("/{task_id}/remind", summary="Remind assignees who have not submitted")
def remind(
    task_id: str,
    background: BackgroundTasks,
    current_user: CurrentUser = Depends(get_current_user),
    ctx: AppContext = Depends(get_context),
):
    reminded = tasks.remind_unsubmitted(ctx, current_user, task_id, background)
    if not reminded:
        return {"message": "Everyone has submitted.", "reminded": 0}
    return {"message": f"Reminder sent to {reminded} assignee(s).", "reminded": reminded}
