"""
Exports Background Jobs

Schedule:
- exports_cleanup runs daily at 03:00 and deletes export files older than
  the retention period
"""

import asyncio
import logging
from datetime import UTC, datetime
from typing import Any

from apscheduler.triggers.cron import CronTrigger

from app.core.scheduler import register_job
from app.modules.exports.service import get_export_service

logger = logging.getLogger(__name__)

JOB_ID_EXPORTS_CLEANUP = "exports_cleanup"
CLEANUP_HOUR = 3


async def cleanup_exports() -> dict[str, Any]:
    executed_at = datetime.now(UTC)
    cleaned = await asyncio.to_thread(get_export_service().cleanup_old_exports)
    return {"executed_at": executed_at.isoformat(), "cleaned": cleaned}


def register_export_jobs() -> None:
    """Register export background jobs. Call before the scheduler starts."""
    register_job(
        job_id=JOB_ID_EXPORTS_CLEANUP,
        func=cleanup_exports,
        trigger=CronTrigger(hour=CLEANUP_HOUR, minute=0),
    )
    logger.info(f"Registered job: {JOB_ID_EXPORTS_CLEANUP} (daily at {CLEANUP_HOUR:02d}:00)")
