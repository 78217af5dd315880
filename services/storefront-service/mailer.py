"""Gmail SMTP sender."""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from config import settings
from packages.shared.retry import create_retry_decorator

logger = logging.getLogger(__name__)

# Connection-level failures are retried; auth/recipient errors are not.
_TRANSIENT_SMTP_ERRORS = (
    smtplib.SMTPServerDisconnected,
    smtplib.SMTPConnectError,
    ConnectionError,
    TimeoutError,
)


def build_message(to: str, subject: str, html: str, text: Optional[str] = None) -> MIMEMultipart:
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = settings.gmail_user
    msg["To"] = to
    if text:
        msg.attach(MIMEText(text, "plain", "utf-8"))
    msg.attach(MIMEText(html, "html", "utf-8"))
    return msg


@create_retry_decorator("mailer", retryable_exceptions=_TRANSIENT_SMTP_ERRORS)
def _deliver(msg: MIMEMultipart) -> None:
    with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=30) as server:
        server.starttls()
        server.login(settings.gmail_user, settings.gmail_app_password)
        server.send_message(msg)


def send_email(to: str, subject: str, html: str, text: Optional[str] = None) -> bool:
    """Send one email. Returns False when SMTP is not configured.

    SMTP failures propagate after retries so callers can record them.
    """
    if not settings.mail_configured:
        logger.warning("Email is not configured. Set GMAIL_USER and GMAIL_APP_PASSWORD.")
        return False
    _deliver(build_message(to, subject, html, text))
    logger.info("Email sent to %s: %s", to, subject)
    return True
