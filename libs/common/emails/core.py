"""
Core email sending over SMTP.
"""

import asyncio
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from libs.common.config import get_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)


def _build_message(
    sender: str,
    to_email: str,
    subject: str,
    body: str,
    html_body: Optional[str],
):
    if html_body:
        msg = MIMEMultipart("alternative")
        msg.attach(MIMEText(body, "plain"))
        msg.attach(MIMEText(html_body, "html"))
    else:
        msg = MIMEText(body, "plain")

    msg["Subject"] = subject
    msg["From"] = sender
    msg["To"] = to_email
    return msg


def _deliver(sender_email: str, to_email: str, message: str) -> None:
    settings = get_settings()
    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as server:
        server.starttls()
        server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        server.sendmail(sender_email, to_email, message)


async def send_email(
    to_email: str,
    subject: str,
    body: str,
    html_body: Optional[str] = None,
    from_email: Optional[str] = None,
    from_name: Optional[str] = None,
) -> bool:
    """
    Send an email over SMTP.

    The blocking SMTP conversation runs in a worker thread so request
    handlers are never held up by the mail server.

    Returns:
        True if email was sent successfully, False otherwise
    """
    settings = get_settings()

    if not settings.SMTP_USERNAME or not settings.SMTP_PASSWORD:
        logger.warning("SMTP credentials not configured - email not sent")
        logger.info(f"Would have sent email to {to_email}: {subject}")
        return False

    sender_email = from_email or settings.DEFAULT_FROM_EMAIL
    sender_name = from_name or settings.DEFAULT_FROM_NAME
    msg = _build_message(
        f"{sender_name} <{sender_email}>", to_email, subject, body, html_body
    )

    try:
        logger.info(f"Sending email to {to_email}: {subject}")
        await asyncio.to_thread(_deliver, sender_email, to_email, msg.as_string())
        logger.info(f"Email sent successfully to {to_email}")
        return True
    except smtplib.SMTPAuthenticationError as e:
        logger.error(f"SMTP authentication failed: {e}")
        return False
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"SMTP error sending email to {to_email}: {e}")
        return False
