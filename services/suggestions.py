# services/suggestions.py

from typing import List, Optional

from core.activity_log import log_activity
from core.domain_config import DomainConfig
from core.email_utils import send_new_suggestion_email, send_suggestion_response_email
from core.errors import NotFoundError, ValidationError
from core.permission_helpers import authorize, is_admin, require
from core.permissions import Permission
from core.store import DocumentStore, Query, new_id, utc_now_iso
from models.enums import ADMIN_ROLES, SUGGESTION_STATUS_ORDER, LogCategory, SuggestionStatus
from models.suggestion import SuggestionCreate, SuggestionResponseCreate, SuggestionStatusUpdate
from models.user import UserRecord
from services.accounts import USERS_COLLECTION


SUGGESTIONS_COLLECTION = "suggestions"


def get_suggestion(store: DocumentStore, suggestion_id: str) -> dict:
    suggestion = store.get(SUGGESTIONS_COLLECTION, suggestion_id)
    if suggestion is None:
        raise NotFoundError("Suggestion not found.")
    return suggestion


def present(suggestion: dict, user: UserRecord) -> dict:
    """Hide the submitter of anonymous suggestions from everyone but admins and the submitter."""
    if not suggestion.get("is_anonymous") or is_admin(user):
        return suggestion
    if (suggestion.get("submitter") or {}).get("id") == user.id:
        return suggestion
    return {**suggestion, "submitter": None}


def list_suggestions(store: DocumentStore, user: UserRecord) -> List[dict]:
    require(user, Permission.suggestions_read)
    query = Query(order_by="created_at", descending=True)
    return [
        present(s, user) for s in store.query(SUGGESTIONS_COLLECTION, query)
        if authorize(user, Permission.suggestions_read, s)
    ]


def _reviewer_emails(store: DocumentStore, domain: Optional[str]) -> List[str]:
    emails = [
        u["email"] for u in store.query(USERS_COLLECTION)
        if u.get("role") in ADMIN_ROLES and u.get("email")
    ]
    if domain:
        emails += DomainConfig(store).get_domain_map().get(domain, {}).get("leads", [])
    return list(dict.fromkeys(emails))


def create_suggestion(ctx, user: UserRecord, payload: SuggestionCreate, background=None) -> dict:
    store = ctx.store
    require(user, Permission.suggestions_create)

    title = payload.title.strip()
    description = payload.description.strip()
    if not title or not description:
        raise ValidationError("Title and description are required.")

    suggestion = store.add(SUGGESTIONS_COLLECTION, {
        "title": title,
        "description": description,
        "category": payload.category,
        "priority": payload.priority,
        "status": SuggestionStatus.open.value,
        "submitter": user.snapshot().model_dump(),
        "is_anonymous": payload.is_anonymous,
        "domain": user.domain,
        "responses": [],
        "created_at": utc_now_iso(),
    })

    log_activity(store, f'Suggestion "{title}" submitted', LogCategory.suggestions, user)

    ctx.mailer.dispatch(
        background, "New suggestion email",
        send_new_suggestion_email, ctx.mailer, suggestion, _reviewer_emails(store, user.domain),
    )
    return present(suggestion, user)


def update_status(ctx, user: UserRecord, suggestion_id: str, payload: SuggestionStatusUpdate) -> dict:
    """Status only moves forward: Open → In Progress → Resolved → Closed."""
    store = ctx.store
    suggestion = get_suggestion(store, suggestion_id)
    require(user, Permission.suggestions_status, suggestion)

    current = suggestion.get("status") or SuggestionStatus.open.value
    if SUGGESTION_STATUS_ORDER.index(payload.status) <= SUGGESTION_STATUS_ORDER.index(current):
        raise ValidationError(f'Cannot move suggestion from "{current}" to "{payload.status}".')

    updated = store.update(SUGGESTIONS_COLLECTION, suggestion_id, {
        "status": payload.status,
        "updated_at": utc_now_iso(),
    })
    log_activity(
        store,
        f'Suggestion "{suggestion["title"]}" moved to {payload.status}',
        LogCategory.suggestions,
        user,
    )
    return present(updated, user)


def add_response(ctx, user: UserRecord, suggestion_id: str, payload: SuggestionResponseCreate, background=None) -> dict:
    store = ctx.store
    suggestion = get_suggestion(store, suggestion_id)
    require(user, Permission.suggestions_respond, suggestion)

    text = payload.text.strip()
    if not text:
        raise ValidationError("Response text is required.")

    response = {
        "id": new_id(),
        "author": user.snapshot().model_dump(),
        "text": text,
        "timestamp": utc_now_iso(),
    }
    updated = store.update(SUGGESTIONS_COLLECTION, suggestion_id, {
        "responses": list(suggestion.get("responses") or []) + [response],
    })
    log_activity(store, f'Response added to suggestion "{suggestion["title"]}"', LogCategory.suggestions, user)

    if (suggestion.get("submitter") or {}).get("id") != user.id:
        ctx.mailer.dispatch(
            background, "Suggestion response email",
            send_suggestion_response_email, ctx.mailer, updated, user.name,
        )
    return present(updated, user)
