# routers/suggestions.py

from fastapi import APIRouter, BackgroundTasks, Depends

from core.context import AppContext, get_context
from dependencies.auth import CurrentUser, get_current_user
from models.suggestion import SuggestionCreate, SuggestionResponseCreate, SuggestionStatusUpdate
from services import suggestions


router = APIRouter(
    prefix="/suggestions",
    tags=["Suggestions"],
)


@router.get("", summary="Suggestions visible to the current user")
def list_suggestions(
    current_user: CurrentUser = Depends(get_current_user),
    ctx: AppContext = Depends(get_context),
):
    return suggestions.list_suggestions(ctx.store, current_user)


@router.post("", status_code=201, summary="Submit a suggestion")
def create_suggestion(
    payload: SuggestionCreate,
    background: BackgroundTasks,
    current_user: CurrentUser = Depends(get_current_user),
    ctx: AppContext = Depends(get_context),
):
    return suggestions.create_suggestion(ctx, current_user, payload, background)


@router.patch("/{suggestion_id}/status", summary="Move a suggestion forward")
def update_status(
    suggestion_id: str,
    payload: SuggestionStatusUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    ctx: AppContext = Depends(get_context),
):
    return suggestions.update_status(ctx, current_user, suggestion_id, payload)


@router.post("/{suggestion_id}/responses", status_code=201, summary="Respond to a suggestion")
def add_response(
    suggestion_id: str,
    payload: SuggestionResponseCreate,
    background: BackgroundTasks,
    current_user: CurrentUser = Depends(get_current_user),
    ctx: AppContext = Depends(get_context),
):
    return suggestions.add_response(ctx, current_user, suggestion_id, payload, background)
