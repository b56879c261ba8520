"""
Jobs Router

Endpoints:
- GET /admin/jobs - Registered background jobs and their next run time
- POST /admin/jobs/{job_id}/trigger - Run a job now, bypassing its schedule
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.auth import AdminUser, get_current_admin_user
from app.core.scheduler import list_registered_jobs, trigger_job_manually

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def list_jobs(admin: AdminUser = Depends(get_current_admin_user)) -> dict[str, Any]:
    return {"jobs": list_registered_jobs()}


@router.post("/{job_id}/trigger")
async def trigger_job(
    job_id: str,
    admin: AdminUser = Depends(get_current_admin_user),
) -> dict[str, Any]:
    """
    Run a registered job immediately.

    Raises:
        HTTPException 404: If job_id is not registered
    """
    logger.info(f"Admin {admin.id} triggered job {job_id}")
    try:
        return await trigger_job_manually(job_id)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "JOB_NOT_FOUND", "message": str(e)},
        ) from e
