"""
Unit tests for ExportService.
"""

import csv
import os
import time
import zipfile
from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from openpyxl import load_workbook

from app.modules.applications.models import ApplicationStatus
from app.modules.exports.service import EXPORT_COLUMNS, ExportService, NoDataToExportError

SERVICE = "app.modules.exports.service"

STAMP = datetime(2025, 2, 1, 8, 0, tzinfo=UTC)


@pytest.fixture
def records(application_factory):
    return [
        application_factory(created_at=STAMP, updated_at=STAMP),
        application_factory(
            given_name="ben",
            email="b@x.com",
            status=ApplicationStatus.ENROLLED,
            created_at=STAMP,
            updated_at=None,
        ),
    ]


@pytest.fixture
def repositories(records):
    applications = MagicMock()
    applications.list_all = AsyncMock(return_value=records)
    applications.get_overview_stats = AsyncMock(
        return_value={
            "total": 2,
            "recent": 0,
            "status_breakdown": [("pending", 1), ("enrolled", 1)],
            "course_breakdown": [("Bachelor of Science in Nursing", 2)],
        }
    )
    applications.get_monthly_counts = AsyncMock(return_value=[(2025, 2, 2)])
    applications.get_submission_range = AsyncMock(return_value=(STAMP, STAMP))

    admins = MagicMock()
    admins.count = AsyncMock(return_value=3)

    with (
        patch(f"{SERVICE}.applications_repository", applications),
        patch(f"{SERVICE}.AdminRepository", admins),
    ):
        yield SimpleNamespace(applications=applications, admins=admins)


@pytest.fixture
def service(tmp_path, session_factory):
    return ExportService(tmp_path / "exports", session_factory)


class TestApplicationExports:
    """Tests for CSV and Excel exports."""

    @pytest.mark.asyncio
    async def test_csv_has_header_and_one_row_per_application(self, service, repositories):
        export = await service.export_applications_csv()

        with export.path.open(newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))

        assert export.filename.endswith(".csv")
        assert export.media_type == "text/csv"
        assert rows[0] == [header for header, _ in EXPORT_COLUMNS]
        assert len(rows) == 3
        assert rows[1][5] == "pending"
        assert rows[2][5] == "enrolled"
        assert rows[2][9] == ""

    @pytest.mark.asyncio
    async def test_excel_workbook_is_readable(self, service, repositories):
        export = await service.export_applications_excel()

        workbook = load_workbook(export.path)
        sheet = workbook.active

        assert sheet.title == "Applications"
        assert sheet["A1"].value == "ID"
        assert sheet["A1"].font.bold
        assert sheet.max_row == 3

    @pytest.mark.asyncio
    async def test_no_applications(self, service, repositories):
        repositories.applications.list_all.return_value = []

        with pytest.raises(NoDataToExportError) as exc_info:
            await service.export_applications_csv()

        assert exc_info.value.status_code == 404


class TestStatistics:
    @pytest.mark.asyncio
    async def test_system_stats(self, service, repositories):
        stats = await service.generate_system_stats()

        assert stats.summary.total_applications == 2
        assert stats.summary.total_admins == 3
        assert [item.name for item in stats.status_breakdown] == ["pending", "enrolled"]
        assert stats.monthly_applications[0].month == 2
        assert stats.system_info.python_version


class TestExportPackage:
    """Tests for the zip package."""

    @pytest.mark.asyncio
    async def test_package_contains_every_export(self, service, repositories):
        export = await service.create_export_package()

        with zipfile.ZipFile(export.path) as zf:
            names = zf.namelist()

        assert export.media_type == "application/zip"
        assert "manifest.json" in names
        assert any(name.endswith(".csv") for name in names)
        assert any(name.endswith(".xlsx") for name in names)
        assert any(name.startswith("system-stats-") for name in names)
        assert [p.name for p in service.export_dir.iterdir()] == [export.filename]

    @pytest.mark.asyncio
    async def test_package_without_applications_has_only_stats(self, service, repositories):
        repositories.applications.list_all.return_value = []

        export = await service.create_export_package()

        with zipfile.ZipFile(export.path) as zf:
            names = zf.namelist()

        assert len(names) == 2
        assert "manifest.json" in names


class TestCleanup:
    def test_removes_only_expired_files(self, service):
        old = service.export_dir / "applications-export-old.csv"
        fresh = service.export_dir / "applications-export-new.csv"
        old.write_text("old")
        fresh.write_text("new")
        eight_days_ago = time.time() - 8 * 24 * 3600
        os.utime(old, (eight_days_ago, eight_days_ago))

        cleaned = service.cleanup_old_exports()

        assert cleaned == 1
        assert not old.exists()
        assert fresh.exists()
