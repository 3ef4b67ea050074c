"""
Outbound email transports.

The quota gate only knows `deliver(to, subject, body)`. Which transport
is used comes from EMAIL_TRANSPORT:
- log:  writes the message to the application log (development default)
- smtp: sends through the configured SMTP relay

A transport signals failure by raising EmailDeliveryError.
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from ..core.config import settings


logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """The transport could not hand the message off."""


class EmailTransport:
    """Base transport. Subclasses implement deliver()."""

    def deliver(self, to: str, subject: str, body: str) -> None:
        raise NotImplementedError


class LogTransport(EmailTransport):
    """Logs instead of sending. Used in development and tests."""

    def deliver(self, to: str, subject: str, body: str) -> None:
        logger.info(f"[email] to={to} subject={subject!r} ({len(body)} bytes)")


class SMTPTransport(EmailTransport):
    """Send HTML email through an SMTP relay."""

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: Optional[bool] = None,
    ):
        self.smtp_host = host or settings.smtp_host
        self.smtp_port = port or settings.smtp_port
        self.smtp_username = username if username is not None else settings.smtp_username
        self.smtp_password = password if password is not None else settings.smtp_password
        self.use_tls = settings.smtp_use_tls if use_tls is None else use_tls
        self.from_email = settings.from_email
        self.from_name = settings.from_name

    def _build_message(self, to: str, subject: str, body: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = to
        msg.attach(MIMEText(body, "html"))
        return msg

    def deliver(self, to: str, subject: str, body: str) -> None:
        msg = self._build_message(to, subject, body)
        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=30) as server:
                if self.use_tls:
                    server.starttls()
                # Local relays (Mailpit, Maildev) accept unauthenticated mail
                if self.smtp_username and self.smtp_password:
                    server.login(self.smtp_username, self.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise EmailDeliveryError(f"SMTP delivery to {to} failed: {e}") from e

        logger.info(f"Email sent successfully to {to}")


def get_transport() -> EmailTransport:
    """Transport selected by settings.email_transport."""
    if settings.email_transport == "smtp":
        return SMTPTransport()
    return LogTransport()
