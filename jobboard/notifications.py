"""
Outgoing email.

Messages go through SMTP when ``EMAIL_HOST`` is configured and are only
logged otherwise. Callers on request paths use :func:`notify`, which never
lets a delivery failure escape.
"""
from __future__ import annotations

import smtplib
from html import escape
from email.message import EmailMessage

from .config import settings
from .logging_config import get_logger

logger = get_logger(__name__)


def send_email(to: str, subject: str, html: str) -> bool:
    if not settings.EMAIL_HOST:
        logger.info("Email not sent (no EMAIL_HOST): to=%s subject=%r", to, subject)
        return False

    msg = EmailMessage()
    msg["From"] = f"{settings.APP_NAME} <{settings.EMAIL_FROM}>"
    msg["To"] = to
    msg["Subject"] = subject
    msg.set_content("This message requires an HTML capable mail client.")
    msg.add_alternative(html, subtype="html")

    smtp_cls = smtplib.SMTP_SSL if settings.EMAIL_SECURE else smtplib.SMTP
    with smtp_cls(settings.EMAIL_HOST, settings.EMAIL_PORT, timeout=30) as smtp:
        if not settings.EMAIL_SECURE:
            smtp.starttls()
        if settings.EMAIL_USER and settings.EMAIL_PASS:
            smtp.login(settings.EMAIL_USER, settings.EMAIL_PASS)
        smtp.send_message(msg)
    logger.info("Email sent: to=%s subject=%r", to, subject)
    return True


def notify(send, *args) -> bool:
    """Run a ``send_*`` helper; failures are logged and reported as False."""
    try:
        return bool(send(*args))
    except Exception:
        logger.exception("Notification %s failed", getattr(send, "__name__", send))
        return False


def send_verification_email(email: str, name: str, token: str) -> bool:
    url = f"{settings.CLIENT_URL}/verify-email?token={token}"
    return send_email(
        email,
        "Verify your email address",
        f"<h1>Hello {escape(name)}</h1>"
        f"<p>Please verify your email address by clicking the link below:</p>"
        f'<a href="{url}">Verify Email</a>'
        f"<p>This link will expire in 24 hours.</p>",
    )


def send_password_reset_email(email: str, name: str, token: str) -> bool:
    url = f"{settings.CLIENT_URL}/reset-password?token={token}"
    return send_email(
        email,
        "Reset your password",
        f"<h1>Hello {escape(name)}</h1>"
        f"<p>You requested to reset your password.</p>"
        f'<a href="{url}">Reset Password</a>'
        f"<p>This link will expire in 1 hour. If you didn't request this, ignore this email.</p>",
    )


def send_job_post_notification(email: str, name: str, job_title: str, job_id: int) -> bool:
    url = f"{settings.CLIENT_URL}/jobs/{job_id}"
    return send_email(
        email,
        "Your job has been submitted for review",
        f"<h1>Hello {escape(name)}</h1>"
        f"<p>Your job listing for <strong>{escape(job_title)}</strong> was received and is awaiting approval.</p>"
        f'<a href="{url}">View Job Posting</a>',
    )


def send_job_status_notification(email: str, name: str, job_title: str, status: str, notes: str | None) -> bool:
    notes_html = f"<p>Reviewer notes: {escape(notes)}</p>" if notes else ""
    return send_email(
        email,
        f"Your job posting is now {status.lower()}",
        f"<h1>Hello {escape(name)}</h1>"
        f"<p>The status of <strong>{escape(job_title)}</strong> changed to {status}.</p>{notes_html}",
    )
