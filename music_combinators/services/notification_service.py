# music_combinators/services/notification_service.py
"""
Outbound email notifications for admin decisions.

Delivery is best-effort: a failure is logged and never undoes or fails
the state change that triggered it.
"""

import html
import logging
from typing import Callable

from music_combinators.core.email_client import SmtpConfig, send_email

logger = logging.getLogger(__name__)

WAITLIST_APPROVED = "waitlist-approved"
CREATOR_APPROVED = "creator-approved"
CREATOR_REJECTED = "creator-rejected"

# kind -> (subject, plain-text body)
TEMPLATES: dict[str, tuple[str, str]] = {
    WAITLIST_APPROVED: (
        "You're off the waitlist!",
        "Hi {username},\n\n"
        "Your Music Combinators account has been approved. "
        "You can now sign in and start exploring tracks and reels.\n",
    ),
    CREATOR_APPROVED: (
        "Your creator application was approved",
        "Hi {username},\n\n"
        "Congratulations! Your application as {artist_name} has been approved. "
        "You can now upload tracks and reels.\n",
    ),
    CREATOR_REJECTED: (
        "Update on your creator application",
        "Hi {username},\n\n"
        "Thanks for applying as {artist_name}. Unfortunately your application "
        "was not approved this time.\n"
        "{reason_line}",
    ),
}


def render(kind: str, context: dict[str, str | None]) -> tuple[str, str, str]:
    """
    Build (subject, text, html) for a notification kind.

    Raises:
        KeyError: if `kind` has no template.
    """
    subject, text_template = TEMPLATES[kind]
    values = {
        "username": context.get("username") or "there",
        "artist_name": context.get("artist_name") or "a creator",
        "reason_line": (
            f"Reason: {context['reason']}\n" if context.get("reason") else ""
        ),
    }
    text_body = text_template.format(**values)
    html_body = "".join(
        f"<p>{html.escape(line)}</p>" for line in text_body.split("\n") if line.strip()
    )
    return subject, text_body, html_body


class Notifier:
    """
    Sends templated emails through an injectable sender.

    `notify` returns whether the message went out; it never raises.
    """

    def __init__(
        self,
        sender: Callable[..., None] = send_email,
        config: SmtpConfig | None = None,
    ):
        self.sender = sender
        self.config = config

    def notify(
        self,
        kind: str,
        recipient: str | None,
        context: dict[str, str | None] | None = None,
    ) -> bool:
        if not recipient:
            logger.warning("Skipping %s notification: no recipient", kind)
            return False

        try:
            subject, text_body, html_body = render(kind, context or {})
            config = self.config or SmtpConfig.from_env()
            self.sender(
                to_email=recipient,
                subject=subject,
                text_body=text_body,
                html_body=html_body,
                config=config,
            )
        except Exception:
            logger.warning(
                "Failed to send %s notification to %s", kind, recipient, exc_info=True
            )
            return False

        logger.info("Sent %s notification to %s", kind, recipient)
        return True


def get_notifier() -> Notifier:
    """FastAPI dependency; override in tests."""
    return Notifier()
