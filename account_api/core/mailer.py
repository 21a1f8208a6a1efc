"""
SMTP notifier for account emails (reset instructions, password changes).

``send_email`` never raises: an unconfigured or failing transport is logged
and reported as ``False``.
"""

from __future__ import annotations

from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional
import logging
import smtplib
import ssl

from .config import Settings, get_settings

logger = logging.getLogger(__name__)

SMTPS_PORT = 465


def _smtp_configured(settings: Settings) -> bool:
    return all((settings.smtp_host, settings.smtp_user, settings.smtp_password, settings.smtp_from, settings.smtp_port))


def build_message(sender: str, to_email: str, subject: str, html_body: str, text_body: Optional[str] = None) -> MIMEMultipart:
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = sender
    msg["To"] = to_email
    msg.attach(MIMEText(text_body or html_body, "plain", "utf-8"))
    msg.attach(MIMEText(html_body, "html", "utf-8"))
    return msg


def _open_transport(settings: Settings) -> smtplib.SMTP:
    context = ssl.create_default_context()
    if settings.smtp_port == SMTPS_PORT:
        return smtplib.SMTP_SSL(settings.smtp_host, settings.smtp_port, context=context)
    server = smtplib.SMTP(settings.smtp_host, settings.smtp_port)
    server.ehlo()
    server.starttls(context=context)
    return server


def send_email(
    subject: str,
    to_email: str,
    html_body: str,
    text_body: Optional[str] = None,
    *,
    settings: Optional[Settings] = None,
) -> bool:
    """Deliver one message through the SMTP server described by ``settings``."""
    settings = settings or get_settings()
    if not _smtp_configured(settings):
        logger.info("SMTP not configured; skipping email to %s", to_email)
        return False
    msg = build_message(settings.smtp_from, to_email, subject, html_body, text_body)
    try:
        with _open_transport(settings) as server:
            server.login(settings.smtp_user, settings.smtp_password)
            server.sendmail(settings.smtp_from, [to_email], msg.as_string())
    except (smtplib.SMTPException, OSError) as exc:
        logger.warning("Failed to send email to %s: %s", to_email, exc)
        return False
    return True
