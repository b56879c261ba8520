"""
Backup Background Jobs

Schedule:
- backups_full_daily runs at 02:00 every day
- backups_incremental runs every 6 hours and covers applications changed
  since the previous backup
"""

import logging
from typing import Any

from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from app.core.scheduler import register_job
from app.modules.backups.service import get_backup_service

logger = logging.getLogger(__name__)

JOB_ID_FULL_BACKUP = "backups_full_daily"
JOB_ID_INCREMENTAL_BACKUP = "backups_incremental"

FULL_BACKUP_HOUR = 2
INCREMENTAL_INTERVAL_HOURS = 6


async def run_full_backup() -> dict[str, Any]:
    backup = await get_backup_service().create_full_backup()
    return {"backup": backup.name, "size": backup.size}


async def run_incremental_backup() -> dict[str, Any]:
    backup = await get_backup_service().create_incremental_backup()
    return {"backup": backup.name, "applications": backup.record_counts.get("applications", 0)}


def register_backup_jobs() -> None:
    """Register backup background jobs. Call before the scheduler starts."""
    register_job(
        job_id=JOB_ID_FULL_BACKUP,
        func=run_full_backup,
        trigger=CronTrigger(hour=FULL_BACKUP_HOUR, minute=0),
    )
    register_job(
        job_id=JOB_ID_INCREMENTAL_BACKUP,
        func=run_incremental_backup,
        trigger=IntervalTrigger(hours=INCREMENTAL_INTERVAL_HOURS),
    )
    logger.info(
        f"Registered jobs: {JOB_ID_FULL_BACKUP} (daily at {FULL_BACKUP_HOUR:02d}:00), "
        f"{JOB_ID_INCREMENTAL_BACKUP} (every {INCREMENTAL_INTERVAL_HOURS} hours)"
    )
