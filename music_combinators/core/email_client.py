# music_combinators/core/email_client.py
from __future__ import annotations

"""
SMTP transport used by the notifier.

Configuration comes from the environment (see SmtpConfig.from_env):

    SMTP_HOST=smtp.gmail.com
    SMTP_PORT=465
    SMTP_USERNAME=noreply@example.com
    SMTP_PASSWORD=<app password>
    SMTP_FROM_EMAIL=noreply@example.com
    SMTP_FROM_NAME=Music Combinators
    SMTP_USE_TLS=false
    SMTP_USE_SSL=true

Port 465 pairs with SSL; port 587 pairs with STARTTLS.
"""

import os
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage

TRUTHY = {"1", "true", "yes", "y"}


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    return default if raw is None else raw.strip().lower() in TRUTHY


@dataclass(frozen=True)
class SmtpConfig:
    host: str | None
    port: int
    username: str | None
    password: str | None
    from_email: str
    from_name: str
    use_tls: bool
    use_ssl: bool

    @classmethod
    def from_env(cls) -> "SmtpConfig":
        username = os.getenv("SMTP_USERNAME")
        return cls(
            host=os.getenv("SMTP_HOST"),
            port=int(os.getenv("SMTP_PORT", "587")),
            username=username,
            password=os.getenv("SMTP_PASSWORD"),
            from_email=os.getenv("SMTP_FROM_EMAIL", username or ""),
            from_name=os.getenv("SMTP_FROM_NAME", "Music Combinators"),
            use_tls=_env_flag("SMTP_USE_TLS", True),
            use_ssl=_env_flag("SMTP_USE_SSL", False),
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.host and self.username and self.password)

    @property
    def sender(self) -> str:
        """Value of the From header."""
        if self.from_email:
            return f"{self.from_name} <{self.from_email}>"
        return self.username or ""


def build_message(
    config: SmtpConfig,
    to_email: str,
    subject: str,
    text_body: str,
    html_body: str | None = None,
) -> EmailMessage:
    """Plain-text message, with an HTML alternative when given."""
    msg = EmailMessage()
    msg["From"] = config.sender
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(text_body)
    if html_body:
        msg.add_alternative(html_body, subtype="html")
    return msg


def _connect(config: SmtpConfig) -> smtplib.SMTP:
    if config.use_ssl:
        return smtplib.SMTP_SSL(config.host, config.port, timeout=30)
    server = smtplib.SMTP(config.host, config.port, timeout=30)
    if config.use_tls:
        server.starttls()
    return server


def send_email(
    to_email: str,
    subject: str,
    text_body: str,
    html_body: str | None = None,
    config: SmtpConfig | None = None,
) -> None:
    """
    Deliver one message.

    Raises
    ------
    RuntimeError:
        If SMTP host or credentials are missing.
    smtplib.SMTPException:
        If the connection, login or send fails.
    """
    config = config or SmtpConfig.from_env()
    if not config.is_configured:
        raise RuntimeError(
            "SMTP is not configured: set SMTP_HOST, SMTP_USERNAME and SMTP_PASSWORD"
        )

    msg = build_message(config, to_email, subject, text_body, html_body)
    server = _connect(config)
    try:
        server.login(config.username, config.password)  # type: ignore[arg-type]
        server.send_message(msg)
    finally:
        try:
            server.quit()
        except smtplib.SMTPException:
            pass
