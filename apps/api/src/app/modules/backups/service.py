"""
Backup Service

File-based backups of the admissions database.

Layout of a backup directory (a zip of the same contents sits beside it):

    full-backup-<timestamp>/
        applications.json
        admins.json
        course_targets.json
        statistics.json
        file-manifest.json      photo and signature URLs per application
        manifest.json           type, timestamp, version, cutoff, sizes, counts

    incremental-backup-<timestamp>/
        applications.json       applications updated since the cutoff
        manifest.json

Only full backups can be restored. A restore replaces applications, admins
and course targets in one transaction.
"""

import asyncio
import logging
import re
import shutil
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import async_session_maker
from app.core.files import file_timestamp, read_json, write_json, zip_directory
from app.modules.admins.repository import AdminRepository
from app.modules.admins.schemas import AdminSnapshot
from app.modules.applications import repository as applications_repository
from app.modules.applications.schemas import ApplicationSnapshot
from app.modules.backups.schemas import BackupInfo, BackupStats
from app.modules.course_targets import repository as course_targets_repository
from app.modules.course_targets.schemas import CourseTargetSnapshot

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AsyncSession]

BACKUP_VERSION = "1.0"
INCREMENTAL_FALLBACK_WINDOW = timedelta(hours=6)

APPLICATIONS_FILE = "applications.json"
ADMINS_FILE = "admins.json"
COURSE_TARGETS_FILE = "course_targets.json"
STATISTICS_FILE = "statistics.json"
FILE_MANIFEST_FILE = "file-manifest.json"
MANIFEST_FILE = "manifest.json"

BACKUP_NAME_PATTERN = re.compile(r"^(full|incremental)-backup-\d{4}-\d{2}-\d{2}T[\d-]+Z$")


class BackupServiceError(Exception):
    """Base exception for backup errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class InvalidBackupNameError(BackupServiceError):
    def __init__(self, name: str):
        super().__init__(
            message=f"Invalid backup name: {name}",
            error_code="INVALID_BACKUP_NAME",
            status_code=400,
        )


class BackupNotFoundError(BackupServiceError):
    def __init__(self, name: str):
        super().__init__(
            message=f"Backup {name} not found",
            error_code="BACKUP_NOT_FOUND",
            status_code=404,
        )


class BackupNotRestorableError(BackupServiceError):
    def __init__(self, name: str, reason: str):
        super().__init__(
            message=f"Backup {name} cannot be restored: {reason}",
            error_code="BACKUP_NOT_RESTORABLE",
            status_code=400,
        )


class BackupFailedError(BackupServiceError):
    def __init__(self, operation: str, reason: str):
        super().__init__(
            message=f"{operation} failed: {reason}",
            error_code="BACKUP_FAILED",
            status_code=500,
        )


def _dump(snapshot: type[BaseModel], records: list[Any]) -> list[dict[str, Any]]:
    return [snapshot.model_validate(record).model_dump(mode="json") for record in records]


def _load(snapshot: type[BaseModel], rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [snapshot.model_validate(row).model_dump(exclude_none=True) for row in rows]


def _directory_size(path: Path) -> int:
    return sum(f.stat().st_size for f in path.rglob("*") if f.is_file())


class BackupService:
    """Creates, lists, restores and deletes backups under an injected directory."""

    def __init__(self, backup_dir: Path, session_factory: SessionFactory = async_session_maker):
        self.backup_dir = Path(backup_dir)
        self.session_factory = session_factory
        self.backup_dir.mkdir(parents=True, exist_ok=True)

    # ============================================
    # Paths
    # ============================================

    def _resolve(self, name: str) -> Path:
        """
        Directory of a named backup.

        Raises:
            InvalidBackupNameError: Name is not a backup name (path traversal included)
            BackupNotFoundError: No such backup
        """
        if not BACKUP_NAME_PATTERN.match(name):
            raise InvalidBackupNameError(name)

        path = self.backup_dir / name
        if not path.is_dir():
            raise BackupNotFoundError(name)
        return path

    def _zip_path(self, name: str) -> Path:
        return self.backup_dir / f"{name}.zip"

    # ============================================
    # Writing
    # ============================================

    def _write_backup(
        self,
        path: Path,
        name: str,
        backup_type: str,
        timestamp: datetime,
        cutoff: datetime | None,
        payloads: dict[str, Any],
        counts: dict[str, int],
    ) -> BackupInfo:
        path.mkdir(parents=True)
        try:
            sizes = {filename: write_json(path / filename, data) for filename, data in payloads.items()}
            manifest = {
                "type": backup_type,
                "timestamp": timestamp.isoformat(),
                "version": BACKUP_VERSION,
                "cutoffDate": cutoff.isoformat() if cutoff else None,
                "files": sizes,
                "database": counts,
            }
            write_json(path / MANIFEST_FILE, manifest)
            zip_directory(path, self._zip_path(name))
        except OSError:
            shutil.rmtree(path, ignore_errors=True)
            self._zip_path(name).unlink(missing_ok=True)
            raise

        return BackupInfo(
            name=name,
            type=backup_type,
            timestamp=timestamp,
            size=_directory_size(path),
            cutoff_date=cutoff,
            record_counts=counts,
        )

    async def create_full_backup(self) -> BackupInfo:
        """
        Back up every application, admin and course target.

        Raises:
            BackupFailedError: Reading the database or writing files failed
        """
        timestamp = datetime.now(UTC)
        name = f"full-backup-{file_timestamp(timestamp)}"
        logger.info(f"Starting full backup: {name}")

        try:
            async with self.session_factory() as session:
                applications = await applications_repository.list_all(session)
                admins = await AdminRepository.list_all(session)
                targets = await course_targets_repository.list_all(session)
                overview = await applications_repository.get_overview_stats(session)

            payloads = {
                APPLICATIONS_FILE: _dump(ApplicationSnapshot, applications),
                ADMINS_FILE: _dump(AdminSnapshot, admins),
                COURSE_TARGETS_FILE: _dump(CourseTargetSnapshot, targets),
                STATISTICS_FILE: {
                    "generatedAt": timestamp.isoformat(),
                    "total": overview["total"],
                    "recent": overview["recent"],
                    "statusBreakdown": dict(overview["status_breakdown"]),
                    "courseBreakdown": dict(overview["course_breakdown"]),
                },
                FILE_MANIFEST_FILE: {
                    "generatedAt": timestamp.isoformat(),
                    "files": [
                        {
                            "applicationId": str(a.id),
                            "photoUrl": a.photo_url,
                            "signatureUrl": a.signature_url,
                        }
                        for a in applications
                    ],
                },
            }
            counts = {
                "applications": len(applications),
                "admins": len(admins),
                "courseTargets": len(targets),
            }

            info = await asyncio.to_thread(
                self._write_backup,
                self.backup_dir / name,
                name,
                "full",
                timestamp,
                None,
                payloads,
                counts,
            )
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Full backup {name} failed: {e}")
            raise BackupFailedError("Full backup", str(e)) from e

        logger.info(f"Full backup completed: {name} ({info.size} bytes)")
        return info

    async def create_incremental_backup(self) -> BackupInfo:
        """
        Back up applications changed since the last backup.

        Without a previous backup the last 6 hours are covered.

        Raises:
            BackupFailedError: Reading the database or writing files failed
        """
        timestamp = datetime.now(UTC)
        name = f"incremental-backup-{file_timestamp(timestamp)}"
        cutoff = await asyncio.to_thread(self.last_backup_time)
        if cutoff is None:
            cutoff = timestamp - INCREMENTAL_FALLBACK_WINDOW

        try:
            async with self.session_factory() as session:
                applications = await applications_repository.updated_since(session, cutoff)

            info = await asyncio.to_thread(
                self._write_backup,
                self.backup_dir / name,
                name,
                "incremental",
                timestamp,
                cutoff,
                {APPLICATIONS_FILE: _dump(ApplicationSnapshot, applications)},
                {"applications": len(applications)},
            )
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Incremental backup {name} failed: {e}")
            raise BackupFailedError("Incremental backup", str(e)) from e

        logger.info(
            f"Incremental backup completed: {name} "
            f"({len(applications)} applications since {cutoff.isoformat()})"
        )
        return info

    # ============================================
    # Reading
    # ============================================

    def _read_info(self, path: Path) -> BackupInfo | None:
        manifest_path = path / MANIFEST_FILE
        if not manifest_path.is_file():
            return None
        try:
            manifest = read_json(manifest_path)
            return BackupInfo(
                name=path.name,
                type=manifest["type"],
                timestamp=manifest["timestamp"],
                size=_directory_size(path),
                cutoff_date=manifest.get("cutoffDate"),
                record_counts=manifest.get("database", {}),
            )
        except (ValueError, KeyError, ValidationError) as e:
            logger.warning(f"Skipping backup {path.name} with unreadable manifest: {e}")
            return None

    def list_backups(self) -> list[BackupInfo]:
        """Every readable backup, newest first."""
        backups = []
        for path in self.backup_dir.iterdir():
            if path.is_dir() and BACKUP_NAME_PATTERN.match(path.name):
                info = self._read_info(path)
                if info is not None:
                    backups.append(info)

        backups.sort(key=lambda b: b.timestamp, reverse=True)
        return backups

    def last_backup_time(self) -> datetime | None:
        backups = self.list_backups()
        return backups[0].timestamp if backups else None

    def get_stats(self) -> BackupStats:
        backups = self.list_backups()
        return BackupStats(
            total_backups=len(backups),
            total_size=sum(b.size for b in backups),
            last_backup=backups[0].timestamp if backups else None,
            full_backups=sum(1 for b in backups if b.type == "full"),
            incremental_backups=sum(1 for b in backups if b.type == "incremental"),
        )

    # ============================================
    # Restore, download, delete
    # ============================================

    async def restore(self, name: str) -> dict[str, int]:
        """
        Replace applications, admins and course targets with a full backup.

        Returns:
            Number of restored rows per table

        Raises:
            InvalidBackupNameError, BackupNotFoundError: Unknown backup
            BackupNotRestorableError: Not a full backup, or its files are unreadable
            BackupFailedError: The database rejected the restore (nothing is changed)
        """
        path = self._resolve(name)
        if not name.startswith("full-"):
            raise BackupNotRestorableError(name, "only full backups can be restored")

        try:
            applications = _load(
                ApplicationSnapshot, await asyncio.to_thread(read_json, path / APPLICATIONS_FILE)
            )
            admins = _load(AdminSnapshot, await asyncio.to_thread(read_json, path / ADMINS_FILE))
            targets = _load(
                CourseTargetSnapshot, await asyncio.to_thread(read_json, path / COURSE_TARGETS_FILE)
            )
        except (OSError, ValueError) as e:
            raise BackupNotRestorableError(name, str(e)) from e

        try:
            async with self.session_factory() as session:
                restored = {
                    "applications": await applications_repository.replace_all(
                        session, applications
                    ),
                    "admins": await AdminRepository.replace_all(session, admins),
                    "courseTargets": await course_targets_repository.replace_all(
                        session, targets
                    ),
                }
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Restore from {name} failed: {e}")
            raise BackupFailedError("Restore", str(e)) from e

        logger.info(f"Restored backup {name}: {restored}")
        return restored

    def get_download_path(self, name: str) -> Path:
        """
        Zip of a backup, created on demand when missing.

        Raises:
            InvalidBackupNameError, BackupNotFoundError: Unknown backup
        """
        path = self._resolve(name)
        zip_path = self._zip_path(name)
        if not zip_path.is_file():
            zip_directory(path, zip_path)
        return zip_path

    def delete(self, name: str) -> None:
        """
        Raises:
            InvalidBackupNameError, BackupNotFoundError: Unknown backup
        """
        path = self._resolve(name)
        shutil.rmtree(path)
        self._zip_path(name).unlink(missing_ok=True)
        logger.info(f"Deleted backup {name}")


@lru_cache
def get_backup_service() -> BackupService:
    return BackupService(settings.backup_dir)
