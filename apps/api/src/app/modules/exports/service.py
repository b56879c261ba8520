"""
Export Service

Produces downloadable exports of the admissions data:
- applications as CSV
- applications as an Excel workbook
- system statistics as JSON
- a zip package with all three plus a manifest

Files are written to the export directory and removed by cleanup once they
are older than the retention period.
"""

import asyncio
import csv
import logging
import platform
import shutil
import sys
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from pathlib import Path
from typing import Any

from openpyxl import Workbook
from openpyxl.styles import Font
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import async_session_maker
from app.core.files import file_timestamp, write_json, zip_directory
from app.modules.admins.repository import AdminRepository
from app.modules.applications import repository as applications_repository
from app.modules.applications.models import ApplicantRecord
from app.modules.applications.schemas import BreakdownItem
from app.modules.exports.schemas import MonthlyCount, StatsSummary, SystemInfo, SystemStats

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AsyncSession]

EXPORT_COLUMNS: list[tuple[str, str]] = [
    ("ID", "id"),
    ("Name", "name"),
    ("Email", "email"),
    ("Contact", "contact"),
    ("Course Applied", "course_applied"),
    ("Status", "status"),
    ("Photo URL", "photo_url"),
    ("Signature URL", "signature_url"),
    ("Created At", "created_at"),
    ("Updated At", "updated_at"),
]

DEFAULT_MAX_AGE = timedelta(days=7)
RECENT_DAYS = 7

_STARTED_AT = time.monotonic()


class ExportServiceError(Exception):
    """Base exception for export errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 500):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class NoDataToExportError(ExportServiceError):
    def __init__(self):
        super().__init__(
            message="No applications found",
            error_code="NO_DATA_TO_EXPORT",
            status_code=404,
        )


class ExportFailedError(ExportServiceError):
    def __init__(self, what: str, reason: str):
        super().__init__(
            message=f"{what} export failed: {reason}",
            error_code="EXPORT_FAILED",
            status_code=500,
        )


@dataclass(frozen=True)
class ExportFile:
    filename: str
    path: Path
    media_type: str


def _cell(record: ApplicantRecord, attribute: str) -> Any:
    value = getattr(record, attribute)
    if value is None:
        return ""
    if hasattr(value, "value"):
        return value.value
    if isinstance(value, datetime):
        return value.astimezone(UTC).isoformat()
    return str(value)


def _table(records: list[ApplicantRecord]) -> list[list[Any]]:
    return [[_cell(record, attribute) for _, attribute in EXPORT_COLUMNS] for record in records]


def write_csv(path: Path, records: list[ApplicantRecord]) -> None:
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow([header for header, _ in EXPORT_COLUMNS])
        writer.writerows(_table(records))


def write_workbook(path: Path, records: list[ApplicantRecord]) -> None:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Applications"

    sheet.append([header for header, _ in EXPORT_COLUMNS])
    for cell in sheet[1]:
        cell.font = Font(bold=True)

    for row in _table(records):
        sheet.append(row)

    for index, (header, _) in enumerate(EXPORT_COLUMNS, start=1):
        sheet.column_dimensions[sheet.cell(row=1, column=index).column_letter].width = max(
            12, len(header) + 4
        )
    sheet.freeze_panes = "A2"

    workbook.save(path)


class ExportService:
    """Writes export files into an injected directory."""

    def __init__(
        self,
        export_dir: Path,
        session_factory: SessionFactory = async_session_maker,
        max_age: timedelta = DEFAULT_MAX_AGE,
    ):
        self.export_dir = Path(export_dir)
        self.session_factory = session_factory
        self.max_age = max_age
        self.export_dir.mkdir(parents=True, exist_ok=True)

    async def _load_applications(self) -> list[ApplicantRecord]:
        async with self.session_factory() as session:
            return await applications_repository.list_all(session)

    async def _export_applications(
        self, suffix: str, media_type: str, writer: Callable[[Path, list], None], what: str
    ) -> ExportFile:
        records = await self._load_applications()
        if not records:
            raise NoDataToExportError()

        filename = f"applications-export-{file_timestamp()}.{suffix}"
        path = self.export_dir / filename

        try:
            await asyncio.to_thread(writer, path, records)
        except OSError as e:
            logger.error(f"{what} export failed: {e}")
            path.unlink(missing_ok=True)
            raise ExportFailedError(what, str(e)) from e

        logger.info(f"{what} export written: {filename} ({len(records)} applications)")
        return ExportFile(filename=filename, path=path, media_type=media_type)

    async def export_applications_csv(self) -> ExportFile:
        """
        Raises:
            NoDataToExportError: No applications exist
            ExportFailedError: The file could not be written
        """
        return await self._export_applications("csv", "text/csv", write_csv, "CSV")

    async def export_applications_excel(self) -> ExportFile:
        """
        Raises:
            NoDataToExportError: No applications exist
            ExportFailedError: The file could not be written
        """
        return await self._export_applications(
            "xlsx",
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            write_workbook,
            "Excel",
        )

    async def generate_system_stats(self) -> SystemStats:
        async with self.session_factory() as session:
            overview = await applications_repository.get_overview_stats(
                session, recent_days=RECENT_DAYS
            )
            monthly = await applications_repository.get_monthly_counts(session)
            oldest, newest = await applications_repository.get_submission_range(session)
            total_admins = await AdminRepository.count(session)

        return SystemStats(
            export_date=datetime.now(UTC),
            summary=StatsSummary(
                total_applications=overview["total"],
                total_admins=total_admins,
                oldest_application=oldest,
                newest_application=newest,
            ),
            status_breakdown=[
                BreakdownItem(name=n, count=c) for n, c in overview["status_breakdown"]
            ],
            course_breakdown=[
                BreakdownItem(name=n, count=c) for n, c in overview["course_breakdown"]
            ],
            monthly_applications=[MonthlyCount(year=y, month=m, count=c) for y, m, c in monthly],
            recent_applications=overview["recent"],
            system_info=SystemInfo(
                python_version=sys.version.split()[0],
                platform=platform.platform(),
                uptime_seconds=round(time.monotonic() - _STARTED_AT, 1),
            ),
        )

    async def export_system_stats(self) -> ExportFile:
        stats = await self.generate_system_stats()
        filename = f"system-stats-{file_timestamp()}.json"
        path = self.export_dir / filename

        try:
            await asyncio.to_thread(write_json, path, stats.model_dump(mode="json", by_alias=True))
        except OSError as e:
            raise ExportFailedError("Statistics", str(e)) from e

        return ExportFile(filename=filename, path=path, media_type="application/json")

    async def create_export_package(self) -> ExportFile:
        """
        Zip the CSV, workbook and statistics exports with a manifest.

        The application exports are left out when there are no applications.
        """
        package_name = f"sam-export-{file_timestamp()}"
        package_dir = self.export_dir / package_name
        package_dir.mkdir(parents=True, exist_ok=True)

        try:
            parts: list[ExportFile] = []
            for export in (self.export_applications_csv, self.export_applications_excel):
                try:
                    parts.append(await export())
                except NoDataToExportError:
                    logger.info("No applications to include in export package")
                    break
            parts.append(await self.export_system_stats())

            for part in parts:
                shutil.move(part.path, package_dir / part.filename)

            manifest = {
                "packageName": package_name,
                "created": datetime.now(UTC).isoformat(),
                "files": [part.filename for part in parts],
                "description": "Complete SAM System Export Package",
            }
            await asyncio.to_thread(write_json, package_dir / "manifest.json", manifest)

            zip_path = self.export_dir / f"{package_name}.zip"
            await asyncio.to_thread(zip_directory, package_dir, zip_path)
        except OSError as e:
            logger.error(f"Export package creation failed: {e}")
            raise ExportFailedError("Package", str(e)) from e
        finally:
            shutil.rmtree(package_dir, ignore_errors=True)

        logger.info(f"Export package created: {zip_path.name}")
        return ExportFile(filename=zip_path.name, path=zip_path, media_type="application/zip")

    def cleanup_old_exports(self, now: float | None = None) -> int:
        """Delete export files older than max_age. Returns the number removed."""
        now = now if now is not None else time.time()
        cutoff = now - self.max_age.total_seconds()
        cleaned = 0

        for path in self.export_dir.iterdir():
            if path.is_file() and path.stat().st_mtime < cutoff:
                path.unlink()
                cleaned += 1

        logger.info(f"Cleaned up {cleaned} old export files")
        return cleaned


@lru_cache
def get_export_service() -> ExportService:
    return ExportService(settings.export_dir)
