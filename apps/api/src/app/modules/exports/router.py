"""
Exports Router

Endpoints:
- GET /export/applications/csv - Download applications as CSV
- GET /export/applications/excel - Download applications as an Excel workbook
- GET /export/stats - System statistics
- GET /export/package - Download a zip with every export
- POST /export/cleanup - Delete old export files

Downloaded files are removed once the response has been sent.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse
from starlette.background import BackgroundTask

from app.core.auth import AdminUser, get_current_admin_user
from app.modules.exports.schemas import CleanupResponse, SystemStats
from app.modules.exports.service import (
    ExportFile,
    ExportService,
    ExportServiceError,
    get_export_service,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _handle_service_error(e: ExportServiceError) -> None:
    """Convert service errors to HTTPExceptions."""
    raise HTTPException(
        status_code=e.status_code,
        detail={
            "error": e.error_code,
            "message": e.message,
        },
    ) from e


def _internal_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )


def _download(export: ExportFile) -> FileResponse:
    return FileResponse(
        export.path,
        media_type=export.media_type,
        filename=export.filename,
        background=BackgroundTask(export.path.unlink, missing_ok=True),
    )


@router.get("/applications/csv", response_class=FileResponse)
async def export_applications_csv(
    export_service: ExportService = Depends(get_export_service),
    admin: AdminUser = Depends(get_current_admin_user),
) -> FileResponse:
    try:
        export = await export_service.export_applications_csv()
    except ExportServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Unexpected error exporting CSV: {e}")
        raise _internal_error() from e

    logger.info(f"Admin {admin.id} exported applications as CSV")
    return _download(export)


@router.get("/applications/excel", response_class=FileResponse)
async def export_applications_excel(
    export_service: ExportService = Depends(get_export_service),
    admin: AdminUser = Depends(get_current_admin_user),
) -> FileResponse:
    try:
        export = await export_service.export_applications_excel()
    except ExportServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Unexpected error exporting Excel: {e}")
        raise _internal_error() from e

    logger.info(f"Admin {admin.id} exported applications as Excel")
    return _download(export)


@router.get("/stats", response_model=SystemStats)
async def export_stats(
    export_service: ExportService = Depends(get_export_service),
    admin: AdminUser = Depends(get_current_admin_user),
) -> SystemStats:
    try:
        return await export_service.generate_system_stats()
    except Exception as e:
        logger.exception(f"Unexpected error generating system stats: {e}")
        raise _internal_error() from e


@router.get("/package", response_class=FileResponse)
async def export_package(
    export_service: ExportService = Depends(get_export_service),
    admin: AdminUser = Depends(get_current_admin_user),
) -> FileResponse:
    """Zip of the CSV, Excel and statistics exports plus a manifest."""
    try:
        export = await export_service.create_export_package()
    except ExportServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Unexpected error creating export package: {e}")
        raise _internal_error() from e

    logger.info(f"Admin {admin.id} downloaded export package {export.filename}")
    return _download(export)


@router.post("/cleanup", response_model=CleanupResponse)
async def cleanup_exports(
    export_service: ExportService = Depends(get_export_service),
    admin: AdminUser = Depends(get_current_admin_user),
) -> CleanupResponse:
    try:
        cleaned = await asyncio.to_thread(export_service.cleanup_old_exports)
    except OSError as e:
        logger.exception(f"Export cleanup failed: {e}")
        raise _internal_error() from e

    return CleanupResponse(message=f"Cleaned up {cleaned} old export files", cleaned=cleaned)
