# core/notifications.py
import re
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Callable, List, Optional

import requests

from core.config import Settings
from core.logging_config import logger


def _html_to_text(html_body: str) -> str:
    text = re.sub(r"<br\s*/?>|</p>|</li>|</h\d>", "\n", html_body)
    text = re.sub(r"<[^>]+>", "", text)
    return re.sub(r"\n\s*\n+", "\n\n", text).strip()


class Mailer:
    """
    SMTP sender plus the webhook side channel. Built once per app context.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    # -----------------------------------------------------
    # 📨 Send webhook (Discord, Slack, etc.)
    # -----------------------------------------------------
    def send_webhook_message(self, message: str):
        webhook_url = self.settings.SYNC_WEBHOOK_URL
        if not webhook_url:
            logger.debug("Webhook URL not configured — skipping.")
            return

        try:
            response = requests.post(webhook_url, json={"content": message}, timeout=10)
            logger.info(f"Webhook sent (status {response.status_code})")
        except Exception as e:
            logger.warning(f"Webhook failed: {e}")

    # -----------------------------------------------------
    # 📧 Send email (SMTP)
    # -----------------------------------------------------
    def send_email(
        self,
        subject: str,
        html_body: str,
        recipients: List[str],
        cc: Optional[List[str]] = None,
    ) -> bool:
        """
        Send an HTML email (with a plain-text alternative).
        Returns False when skipped; raises on transport failure.
        """
        settings = self.settings
        recipient_list = [r for r in dict.fromkeys(recipients or []) if r]
        cc_list = [c for c in dict.fromkeys(cc or []) if c and c not in recipient_list]

        if not recipient_list:
            logger.warning("No recipients specified — skipping email.")
            return False

        if not all([settings.SMTP_HOST, settings.SMTP_PORT, settings.SMTP_USER, settings.SMTP_PASS]):
            logger.warning("Email credentials missing — skipping email.")
            return False

        try:
            msg = MIMEMultipart("alternative")
            msg["From"] = f'"{settings.MAIL_FROM_NAME}" <{settings.SMTP_USER}>'
            msg["To"] = ", ".join(recipient_list)
            if cc_list:
                msg["Cc"] = ", ".join(cc_list)
            msg["Subject"] = subject

            msg.attach(MIMEText(_html_to_text(html_body), "plain"))
            msg.attach(MIMEText(html_body, "html"))

            with smtplib.SMTP_SSL(settings.SMTP_HOST, settings.SMTP_PORT) as server:
                server.login(settings.SMTP_USER, settings.SMTP_PASS)
                server.send_message(msg, to_addrs=recipient_list + cc_list)

            logger.info(f"Email sent to {', '.join(recipient_list + cc_list)}")
            return True

        except Exception as e:
            logger.error(f"Email failed: {e}")
            raise

    # -----------------------------------------------------
    # Best-effort dispatch
    # -----------------------------------------------------
    def run_best_effort(self, label: str, fn: Callable, *args, **kwargs):
        """
        Run a secondary effect (notification email, etc.). Failures are
        logged and reported to the webhook, never raised to the caller.
        """
        try:
            return fn(*args, **kwargs)
        except Exception as e:
            logger.error(f"{label} failed: {e}", exc_info=True)
            self.send_webhook_message(f"⚠️ {label} failed: {e}")
            return None

    def dispatch(self, background, label: str, fn: Callable, *args, **kwargs):
        """
        Schedule a best-effort effect on FastAPI BackgroundTasks so it runs
        after the response; without one, run it inline.
        """
        if background is None:
            return self.run_best_effort(label, fn, *args, **kwargs)
        background.add_task(self.run_best_effort, label, fn, *args, **kwargs)
