"""
Enrollment Import Router

Endpoints:
- POST /enrollment-import/batch-enrollment - Upload a registrar file (.xlsx or .csv)
  and mark matching applications as enrolled
"""

import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AdminUser, get_current_admin_user
from app.core.database import get_db
from app.core.rate_limit import RateLimitExceeded, check_rate_limit
from app.modules.enrollment_import import service
from app.modules.enrollment_import.errors import EnrollmentImportError
from app.modules.enrollment_import.schemas import BatchEnrollmentResponse

logger = logging.getLogger(__name__)

router = APIRouter()

RATE_LIMIT_IMPORT = (10, 60)  # 10 imports per minute per admin


@router.post("/batch-enrollment", response_model=BatchEnrollmentResponse)
async def batch_enrollment(
    file: UploadFile | None = File(None),
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin_user),
) -> BatchEnrollmentResponse:
    """
    Match a registrar spreadsheet against applications.

    Raises:
        HTTPException 400: No file, unreadable file, empty file or missing columns
        HTTPException 429: Too many imports
    """
    limit, window = RATE_LIMIT_IMPORT
    if not await check_rate_limit(f"admin:enrollment_import:{admin.id}", limit, window):
        logger.warning(f"Rate limit exceeded for admin {admin.id} on enrollment import")
        raise RateLimitExceeded(limit, window)

    try:
        content = await file.read() if file else b""
        result = await service.import_batch(db, content, file.filename if file else None)
        logger.info(f"Admin {admin.id} ran batch enrollment import")
        return result
    except EnrollmentImportError as e:
        logger.warning(f"Batch enrollment rejected: {e.message}")
        raise HTTPException(
            status_code=e.status_code,
            detail={
                "error": e.error_code,
                "message": e.message,
            },
        ) from e
    except Exception as e:
        logger.exception(f"Batch enrollment import error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "INTERNAL_ERROR",
                "message": "Server error while processing the batch enrollment file. "
                "Please try again.",
            },
        ) from e
