# core/email_utils.py

from html import escape
from typing import Iterable, List, Optional

from core.logging_config import logger
from core.notifications import Mailer


def _emails(users: Iterable[dict]) -> List[str]:
    return [u.get("email") for u in users if u and u.get("email")]


def _due(task: dict) -> str:
    due = task.get("due_date")
    return escape(str(due)[:10]) if due else "No due date"


def send_task_assigned_email(mailer: Mailer, task: dict, lead_email: Optional[str] = None) -> bool:
    recipients = _emails(task.get("assignees") or [])
    if not recipients:
        logger.warning(f"Task {task.get('id')} has no assignee emails — skipping email.")
        return False

    subject = f"New Task Assigned: {task.get('title')}"
    html_body = f"""
      <h1>New Task: {escape(task.get('title') or '')}</h1>
      <p>A new task has been assigned to you.</p>
      <h2>Details:</h2>
      <p><strong>Description:</strong> {escape(task.get('description') or '')}</p>
      <p><strong>Due Date:</strong> {_due(task)}</p>
      <p>Please log in to {escape(mailer.settings.MAIL_FROM_NAME)} to view the full details.</p>
    """
    return mailer.send_email(subject, html_body, recipients, cc=[lead_email] if lead_email else None)


def send_reminder_email(mailer: Mailer, task: dict, members: List[dict], lead_email: Optional[str] = None) -> bool:
    recipients = _emails(members)
    if not recipients:
        return False

    task_url = f"{mailer.settings.APP_URL}/dashboard"
    subject = f'Reminder: Task Submission Required for "{task.get("title")}"'
    html_body = f"""
      <h1>Task Reminder</h1>
      <p>Hello team,</p>
      <p>This is a friendly reminder that the following task is awaiting your submission:</p>
      <h2>{escape(task.get('title') or '')}</h2>
      <p><strong>Due Date:</strong> {_due(task)}</p>
      <p><a href="{task_url}">View Task and Submit</a></p>
      <p>Please complete your submission as soon as possible.</p>
    """
    return mailer.send_email(subject, html_body, recipients, cc=[lead_email] if lead_email else None)


def send_new_suggestion_email(mailer: Mailer, suggestion: dict, recipients: List[str]) -> bool:
    if not recipients:
        return False

    submitter = "Anonymous" if suggestion.get("is_anonymous") else (suggestion.get("submitter") or {}).get("name")
    subject = f"[New Suggestion] {suggestion.get('priority')}: {suggestion.get('title')}"
    html_body = f"""
      <h1>New Suggestion Submitted</h1>
      <p>A new suggestion has been submitted on the platform.</p>
      <ul>
        <li><strong>Title:</strong> {escape(suggestion.get('title') or '')}</li>
        <li><strong>Submitter:</strong> {escape(submitter or 'Unknown')}</li>
        <li><strong>Category:</strong> {escape(suggestion.get('category') or '')}</li>
        <li><strong>Priority:</strong> {escape(str(suggestion.get('priority') or ''))}</li>
      </ul>
      <p><strong>Description:</strong></p>
      <p>{escape(suggestion.get('description') or '')}</p>
      <a href="{mailer.settings.APP_URL}/dashboard/suggestions">View Suggestion</a>
    """
    return mailer.send_email(subject, html_body, recipients)


def send_suggestion_response_email(mailer: Mailer, suggestion: dict, responder_name: Optional[str]) -> bool:
    submitter_email = (suggestion.get("submitter") or {}).get("email")
    if not submitter_email or suggestion.get("is_anonymous"):
        return False

    subject = f'Response to your suggestion: "{suggestion.get("title")}"'
    html_body = f"""
      <h1>Response to your Suggestion</h1>
      <p><strong>{escape(responder_name or 'A reviewer')}</strong> has responded to your suggestion titled
      "<strong>{escape(suggestion.get('title') or '')}</strong>".</p>
      <a href="{mailer.settings.APP_URL}/dashboard/suggestions">View Response</a>
    """
    return mailer.send_email(subject, html_body, [submitter_email])


def send_announcement_email(mailer: Mailer, announcement: dict, recipients: List[str]) -> bool:
    if not recipients:
        return False

    author = (announcement.get("author") or {}).get("name") or "An administrator"
    attachment = ""
    if announcement.get("attachment"):
        link = f"{mailer.settings.APP_URL}/api/download/{escape(announcement['attachment'])}"
        attachment = f'<p><a href="{link}">View attachment</a></p>'

    subject = f"New Announcement: {announcement.get('title')}"
    html_body = f"""
      <h1>{escape(announcement.get('title') or '')}</h1>
      <p>{escape(announcement.get('content') or '')}</p>
      {attachment}
      <p><em>Posted by {escape(author)}</em></p>
    """
    return mailer.send_email(subject, html_body, recipients)


def send_password_reset_notice(mailer: Mailer, email: str) -> bool:
    admin_email = mailer.settings.ADMIN_NOTIFY_EMAIL
    if not admin_email:
        logger.warning("ADMIN_NOTIFY_EMAIL not configured — skipping password reset notice.")
        return False

    html_body = f"""
      <h2>Password Reset Request</h2>
      <p>A password reset has been initiated for the following user:</p>
      <p><strong>User Email:</strong> {escape(email)}</p>
      <p>If you were not expecting this, check the activity logs for more details.</p>
    """
    return mailer.send_email("Password Reset Request Notification", html_body, [admin_email])


def send_role_resolution_alert(mailer: Mailer, email: str) -> bool:
    admin_email = mailer.settings.ADMIN_NOTIFY_EMAIL
    if not admin_email:
        return False

    html_body = f"""
      <h2>Account Needs Attention</h2>
      <p><strong>{escape(email)}</strong> matches no domain and no special role.
      Its session was rejected and access is revoked until the configuration is fixed.</p>
      <p>Add the address to a domain or assign a special role.</p>
    """
    return mailer.send_email("Account needs attention: unresolved role", html_body, [admin_email])
