"""
Email Service using Resend

Notification emails for the admission workflow:
- Submission confirmation
- Missing requirements
- Admission result (admitted / rejected)
- Custom notification

Sending never raises: failures are logged and queued in the EmailQueue for
the retry job.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from html import escape
from typing import Any

import resend

from app.core.config import settings
from app.core.email_queue import EmailQueue, get_email_queue

logger = logging.getLogger(__name__)

resend.api_key = settings.resend_api_key

SCHOOL_NAME = "Exact Colleges of Asia"
CONTACT_EMAIL = "info@exactcolleges.edu.ph"

NOTIFICATION_TYPES = {"general", "reminder", "urgent", "info"}

_NOTIFICATION_ACCENTS = {
    "general": "#1B9AAA",
    "reminder": "#FFC300",
    "urgent": "#E63946",
    "info": "#0D1B2A",
}


async def send_email(to_email: str, subject: str, html_content: str) -> bool:
    """
    Send an email using Resend.

    Returns:
        True if the email was sent (or logged when no API key is configured)
    """
    if not resend.api_key:
        logger.warning("RESEND_API_KEY not set - logging email instead of sending")
        logger.info(f"EMAIL TO: {to_email} | SUBJECT: {subject}")
        return True

    try:
        params: resend.Emails.SendParams = {
            "from": settings.email_from,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }

        # Resend's client is synchronous
        email = await asyncio.to_thread(resend.Emails.send, params)
        logger.info(f"Email sent successfully, id: {email['id']}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email '{subject}': {e}")
        return False


def _layout(title: str, body: str, accent: str = "#1B9AAA") -> str:
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <style>
            body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #343A40; }}
            .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
            .banner {{ background: linear-gradient(135deg, #0D1B2A, {accent}); color: white; padding: 30px; text-align: center; border-radius: 10px 10px 0 0; }}
            .content {{ background: #f8f9fa; padding: 30px; border-radius: 0 0 10px 10px; }}
            .panel {{ background: white; padding: 20px; border-radius: 8px; margin: 20px 0; border-left: 4px solid {accent}; }}
            .button {{ display: inline-block; background: {accent}; color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px; font-weight: bold; }}
            .footer {{ text-align: center; margin-top: 20px; color: #6c757d; font-size: 14px; }}
        </style>
    </head>
    <body>
        <div class="container">
            <div class="banner">
                <h1>{SCHOOL_NAME}</h1>
                <p>Student Admission Management System</p>
            </div>
            <div class="content">
                <h2>{title}</h2>
                {body}
                <p>If you have any questions, please contact us at
                   <a href="mailto:{CONTACT_EMAIL}">{CONTACT_EMAIL}</a>.</p>
                <a href="{settings.frontend_url}" class="button">Visit Our Website</a>
            </div>
            <div class="footer">
                <p>&copy; {datetime.now(UTC).year} {SCHOOL_NAME}. All rights reserved.</p>
            </div>
        </div>
    </body>
    </html>
    """


def render_submission_confirmation(student_name: str, application_id: str) -> tuple[str, str]:
    """Subject and HTML for the post-submission email."""
    body = f"""
        <p>Dear <strong>{escape(student_name)}</strong>,</p>
        <p>Thank you for applying to {SCHOOL_NAME}. We have received your application
           and it is now under review.</p>
        <div class="panel">
            <p><strong>Application ID:</strong> {escape(application_id)}</p>
            <p><strong>Status:</strong> Pending Review</p>
        </div>
        <p><strong>Please wait for our response.</strong> We will contact you within
           3-5 business days with updates on your application.</p>
    """
    return (
        f"Application Submitted Successfully - {SCHOOL_NAME}",
        _layout("Application Submitted Successfully!", body),
    )


def render_missing_requirements(
    student_name: str,
    missing_items: list[str],
    custom_message: str | None = None,
) -> tuple[str, str]:
    """Subject and HTML listing the requirements an applicant still owes."""
    items = "".join(f"<li>{escape(item)}</li>" for item in missing_items)
    instructions = (
        f'<div class="panel"><h3>Additional Instructions:</h3><p>{escape(custom_message)}</p></div>'
        if custom_message
        else ""
    )
    body = f"""
        <p>Dear <strong>{escape(student_name)}</strong>,</p>
        <p>We have reviewed your application and found that some requirements are
           missing or incomplete. Please submit the following items:</p>
        <div class="panel"><h3>Missing Requirements:</h3><ul>{items}</ul></div>
        {instructions}
        <p>Please submit these requirements within <strong>7 days</strong> to avoid
           delays in processing your application.</p>
    """
    return (
        f"Missing Requirements - Action Required - {SCHOOL_NAME}",
        _layout("Missing Requirements - Action Required", body, accent="#E63946"),
    )


def render_admission_result(student_name: str, status: str, course: str) -> tuple[str, str]:
    """Subject and HTML for an admitted or rejected decision."""
    admitted = status == "admitted"
    decision_date = datetime.now(UTC).strftime("%B %d, %Y")

    if admitted:
        title = "Congratulations! You've Been Admitted!"
        body = f"""
            <p>Dear <strong>{escape(student_name)}</strong>,</p>
            <p>We are pleased to inform you that you have been <strong>admitted</strong>
               to {SCHOOL_NAME}!</p>
            <div class="panel">
                <p><strong>Program:</strong> {escape(course)}</p>
                <p><strong>Status:</strong> Admitted</p>
                <p><strong>Decision Date:</strong> {decision_date}</p>
            </div>
            <p>Our admissions team will contact you in the next few days about enrollment
               procedures, orientation and next steps.</p>
        """
    else:
        title = "Application Update"
        body = f"""
            <p>Dear <strong>{escape(student_name)}</strong>,</p>
            <p>After careful review of your application, we regret to inform you that we
               are unable to offer you admission at this time.</p>
            <div class="panel">
                <p><strong>Program:</strong> {escape(course)}</p>
                <p><strong>Status:</strong> Not Admitted</p>
                <p><strong>Decision Date:</strong> {decision_date}</p>
            </div>
            <p>We encourage you to consider applying again in a future term.</p>
        """

    subject_tag = "Congratulations!" if admitted else "Application Update"
    return (
        f"Admission Decision - {subject_tag} - {SCHOOL_NAME}",
        _layout(title, body, accent="#22c55e" if admitted else "#E63946"),
    )


def render_custom_notification(
    student_name: str,
    subject: str,
    message: str,
    notification_type: str = "general",
) -> tuple[str, str]:
    """Subject and HTML for a free-form message from the admissions office."""
    # Preserve line breaks from the admin's message
    safe_message = escape(message).replace("\n", "<br>")
    body = f"""
        <p>Dear <strong>{escape(student_name)}</strong>,</p>
        <div class="panel">{safe_message}</div>
    """
    return (
        f"{subject} - {SCHOOL_NAME}",
        _layout(escape(subject), body, accent=_NOTIFICATION_ACCENTS.get(notification_type, "#1B9AAA")),
    )


TEMPLATES: dict[str, Callable[..., tuple[str, str]]] = {
    "submission_confirmation": render_submission_confirmation,
    "missing_requirements": render_missing_requirements,
    "admission_result": render_admission_result,
    "custom_notification": render_custom_notification,
}


async def send_templated_email(
    to_email: str,
    template: str,
    data: dict[str, Any],
    queue: EmailQueue | None = None,
) -> bool:
    """
    Render a template and send it, queueing the email for retry on failure.

    Args:
        to_email: Recipient address
        template: Key in TEMPLATES
        data: Keyword arguments for the template (must be JSON-serializable)
        queue: Retry queue (defaults to the process-wide queue)

    Returns:
        True if the email was sent now, False if it was queued
    """
    subject, html_content = TEMPLATES[template](**data)
    sent = await send_email(to_email, subject, html_content)

    if not sent:
        queue = queue or await asyncio.to_thread(get_email_queue)
        await asyncio.to_thread(queue.enqueue, to_email, template, data)

    return sent


async def process_email_queue(queue: EmailQueue | None = None) -> dict[str, int]:
    """
    Retry every queued email that is due.

    Returns:
        Dict with processed, sent and failed counts
    """
    queue = queue or await asyncio.to_thread(get_email_queue)
    due = await asyncio.to_thread(queue.due)
    sent = 0

    if due:
        logger.info(f"Retrying {len(due)} queued emails")

    for entry in due:
        subject, html_content = TEMPLATES[entry["template"]](**entry["data"])
        success = await send_email(entry["to_email"], subject, html_content)
        await asyncio.to_thread(queue.record_attempt, entry["id"], success)
        sent += int(success)

    return {"processed": len(due), "sent": sent, "failed": len(due) - sent}
