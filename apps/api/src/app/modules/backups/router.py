"""
Backup Router

Endpoints:
- POST /backup/create-full - Run a full backup now
- POST /backup/create-incremental - Run an incremental backup now
- GET /backup/list - Backups, newest first
- GET /backup/stats - Backup totals
- POST /backup/restore/{name} - Restore a full backup
- GET /backup/download/{name} - Download a backup as zip
- DELETE /backup/delete/{name} - Delete a backup
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse

from app.core.auth import AdminUser, get_current_admin_user
from app.modules.backups.schemas import (
    BackupCreateResponse,
    BackupDeleteResponse,
    BackupListResponse,
    BackupStats,
    RestoreResponse,
)
from app.modules.backups.service import BackupService, BackupServiceError, get_backup_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _handle_service_error(e: BackupServiceError) -> None:
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


@router.post("/create-full", response_model=BackupCreateResponse)
async def create_full_backup(
    backup_service: BackupService = Depends(get_backup_service),
    admin: AdminUser = Depends(get_current_admin_user),
) -> BackupCreateResponse:
    try:
        backup = await backup_service.create_full_backup()
    except BackupServiceError as e:
        _handle_service_error(e)

    logger.info(f"Admin {admin.id} created full backup {backup.name}")
    return BackupCreateResponse(message="Full backup created successfully", backup=backup)


@router.post("/create-incremental", response_model=BackupCreateResponse)
async def create_incremental_backup(
    backup_service: BackupService = Depends(get_backup_service),
    admin: AdminUser = Depends(get_current_admin_user),
) -> BackupCreateResponse:
    try:
        backup = await backup_service.create_incremental_backup()
    except BackupServiceError as e:
        _handle_service_error(e)

    logger.info(f"Admin {admin.id} created incremental backup {backup.name}")
    return BackupCreateResponse(message="Incremental backup created successfully", backup=backup)


@router.get("/list", response_model=BackupListResponse)
async def list_backups(
    backup_service: BackupService = Depends(get_backup_service),
    admin: AdminUser = Depends(get_current_admin_user),
) -> BackupListResponse:
    try:
        backups = await asyncio.to_thread(backup_service.list_backups)
    except OSError as e:
        logger.exception(f"Could not list backups: {e}")
        raise _internal_error() from e

    return BackupListResponse(backups=backups)


@router.get("/stats", response_model=BackupStats)
async def backup_stats(
    backup_service: BackupService = Depends(get_backup_service),
    admin: AdminUser = Depends(get_current_admin_user),
) -> BackupStats:
    try:
        return await asyncio.to_thread(backup_service.get_stats)
    except OSError as e:
        logger.exception(f"Could not read backup stats: {e}")
        raise _internal_error() from e


@router.post("/restore/{name}", response_model=RestoreResponse)
async def restore_backup(
    name: str,
    backup_service: BackupService = Depends(get_backup_service),
    admin: AdminUser = Depends(get_current_admin_user),
) -> RestoreResponse:
    """
    Replace applications, admins and course targets with a full backup.

    Raises:
        HTTPException 400: Invalid name or not a full backup
        HTTPException 404: Backup not found
        HTTPException 500: Restore failed (the database is left unchanged)
    """
    logger.warning(f"Admin {admin.id} is restoring backup {name}")
    try:
        restored = await backup_service.restore(name)
    except BackupServiceError as e:
        _handle_service_error(e)

    return RestoreResponse(message=f"Backup {name} restored successfully", restored=restored)


@router.get("/download/{name}", response_class=FileResponse)
async def download_backup(
    name: str,
    backup_service: BackupService = Depends(get_backup_service),
    admin: AdminUser = Depends(get_current_admin_user),
) -> FileResponse:
    try:
        zip_path = await asyncio.to_thread(backup_service.get_download_path, name)
    except BackupServiceError as e:
        _handle_service_error(e)
    except OSError as e:
        logger.exception(f"Could not package backup {name}: {e}")
        raise _internal_error() from e

    return FileResponse(zip_path, media_type="application/zip", filename=zip_path.name)


@router.delete("/delete/{name}", response_model=BackupDeleteResponse)
async def delete_backup(
    name: str,
    backup_service: BackupService = Depends(get_backup_service),
    admin: AdminUser = Depends(get_current_admin_user),
) -> BackupDeleteResponse:
    try:
        await asyncio.to_thread(backup_service.delete, name)
    except BackupServiceError as e:
        _handle_service_error(e)
    except OSError as e:
        logger.exception(f"Could not delete backup {name}: {e}")
        raise _internal_error() from e

    logger.info(f"Admin {admin.id} deleted backup {name}")
    return BackupDeleteResponse(message=f"Backup {name} deleted successfully")
