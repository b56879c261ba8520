"""
Applications Background Jobs

Retries applicant emails that could not be delivered when they were first
sent (submission confirmations, missing requirements, admission results and
custom notifications all fall back to the retry queue).

Schedule:
- email_queue_retry runs every 5 minutes; an entry is only retried once its
  last attempt is older than the queue's retry interval
"""

import logging
from datetime import UTC, datetime
from typing import Any

from apscheduler.triggers.interval import IntervalTrigger

from app.core.email import process_email_queue
from app.core.scheduler import register_job

logger = logging.getLogger(__name__)

JOB_ID_EMAIL_QUEUE_RETRY = "email_queue_retry"
EMAIL_RETRY_INTERVAL_MINUTES = 5


async def retry_queued_emails() -> dict[str, Any]:
    """
    Retry every due entry in the email queue.

    Returns:
        Dict with executed_at plus processed, sent and failed counts
    """
    executed_at = datetime.now(UTC)
    results = await process_email_queue()

    if results["processed"]:
        logger.info(
            f"Email queue retry completed. "
            f"Sent: {results['sent']}, Still failing: {results['failed']}"
        )

    return {"executed_at": executed_at.isoformat(), **results}


def register_application_jobs() -> None:
    """Register application background jobs. Call before the scheduler starts."""
    register_job(
        job_id=JOB_ID_EMAIL_QUEUE_RETRY,
        func=retry_queued_emails,
        trigger=IntervalTrigger(minutes=EMAIL_RETRY_INTERVAL_MINUTES),
    )
    logger.info(
        f"Registered job: {JOB_ID_EMAIL_QUEUE_RETRY} "
        f"(interval: {EMAIL_RETRY_INTERVAL_MINUTES} minutes)"
    )
