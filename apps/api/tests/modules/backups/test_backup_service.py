"""
Unit tests for BackupService.

Backups are written to a temporary directory; repositories are mocked.
"""

import zipfile
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.core.files import read_json, write_json
from app.modules.admins.models import AdminRole
from app.modules.backups.service import (
    BackupFailedError,
    BackupNotFoundError,
    BackupNotRestorableError,
    BackupService,
    InvalidBackupNameError,
)
from app.modules.course_targets.models import AcademicTerm

SERVICE = "app.modules.backups.service"


def _admin():
    return SimpleNamespace(
        id=uuid4(),
        email="registrar@x.com",
        password_hash="$2b$12$hash",
        name="Registrar",
        role=AdminRole.ADMIN,
        is_active=True,
        created_at=datetime(2025, 1, 1, tzinfo=UTC),
        updated_at=None,
    )


def _target():
    return SimpleNamespace(
        id=uuid4(),
        course_name="Bachelor of Science in Nursing",
        target=50,
        academic_year="2025",
        term=AcademicTerm.ALL,
        is_active=True,
        created_by=None,
        updated_by=None,
        created_at=None,
        updated_at=None,
    )


def _write_fake_backup(backup_dir, name, backup_type, timestamp):
    path = backup_dir / name
    path.mkdir(parents=True)
    write_json(
        path / "manifest.json",
        {
            "type": backup_type,
            "timestamp": timestamp.isoformat(),
            "version": "1.0",
            "cutoffDate": None,
            "files": {},
            "database": {"applications": 0},
        },
    )
    return path


@pytest.fixture
def service(tmp_path, session_factory):
    return BackupService(tmp_path / "backups", session_factory)


@pytest.fixture
def repositories(application_factory):
    applications = MagicMock()
    applications.list_all = AsyncMock(return_value=[application_factory(), application_factory()])
    applications.get_overview_stats = AsyncMock(
        return_value={
            "total": 2,
            "recent": 1,
            "status_breakdown": [("pending", 2)],
            "course_breakdown": [("Bachelor of Science in Nursing", 2)],
        }
    )
    applications.updated_since = AsyncMock(return_value=[application_factory()])
    applications.replace_all = AsyncMock(return_value=2)

    admins = MagicMock()
    admins.list_all = AsyncMock(return_value=[_admin()])
    admins.replace_all = AsyncMock(return_value=1)

    targets = MagicMock()
    targets.list_all = AsyncMock(return_value=[_target()])
    targets.replace_all = AsyncMock(return_value=1)

    with (
        patch(f"{SERVICE}.applications_repository", applications),
        patch(f"{SERVICE}.AdminRepository", admins),
        patch(f"{SERVICE}.course_targets_repository", targets),
    ):
        yield SimpleNamespace(applications=applications, admins=admins, targets=targets)


class TestCreateBackups:
    """Tests for full and incremental backups."""

    @pytest.mark.asyncio
    async def test_full_backup_writes_files_and_zip(self, service, repositories):
        info = await service.create_full_backup()

        path = service.backup_dir / info.name
        assert info.type == "full"
        assert info.record_counts == {"applications": 2, "admins": 1, "courseTargets": 1}
        assert sorted(p.name for p in path.iterdir()) == [
            "admins.json",
            "applications.json",
            "course_targets.json",
            "file-manifest.json",
            "manifest.json",
            "statistics.json",
        ]

        manifest = read_json(path / "manifest.json")
        assert manifest["type"] == "full"
        assert manifest["version"] == "1.0"
        assert manifest["cutoffDate"] is None

        admins = read_json(path / "admins.json")
        assert admins[0]["password_hash"] == "$2b$12$hash"

        with zipfile.ZipFile(service.backup_dir / f"{info.name}.zip") as zf:
            assert "applications.json" in zf.namelist()

    @pytest.mark.asyncio
    async def test_incremental_without_previous_backup_covers_six_hours(
        self, service, repositories
    ):
        info = await service.create_incremental_backup()

        assert info.type == "incremental"
        assert info.timestamp - info.cutoff_date == timedelta(hours=6)
        assert info.record_counts == {"applications": 1}

    @pytest.mark.asyncio
    async def test_incremental_uses_last_backup_as_cutoff(self, service, repositories):
        last = datetime(2025, 3, 1, 2, 0, tzinfo=UTC)
        _write_fake_backup(
            service.backup_dir, "full-backup-2025-03-01T02-00-00-000Z", "full", last
        )

        info = await service.create_incremental_backup()

        assert info.cutoff_date == last
        repositories.applications.updated_since.assert_awaited_once()
        assert repositories.applications.updated_since.call_args.args[1] == last

    @pytest.mark.asyncio
    async def test_write_failure_leaves_nothing_behind(self, service, repositories):
        with patch(f"{SERVICE}.write_json", side_effect=OSError("disk full")):
            with pytest.raises(BackupFailedError):
                await service.create_full_backup()

        assert list(service.backup_dir.iterdir()) == []


class TestListing:
    def test_list_is_newest_first(self, service):
        _write_fake_backup(
            service.backup_dir,
            "full-backup-2025-03-01T02-00-00-000Z",
            "full",
            datetime(2025, 3, 1, 2, 0, tzinfo=UTC),
        )
        _write_fake_backup(
            service.backup_dir,
            "incremental-backup-2025-03-01T08-00-00-000Z",
            "incremental",
            datetime(2025, 3, 1, 8, 0, tzinfo=UTC),
        )
        (service.backup_dir / "notes.txt").write_text("ignored")

        backups = service.list_backups()
        stats = service.get_stats()

        assert [b.type for b in backups] == ["incremental", "full"]
        assert stats.total_backups == 2
        assert stats.full_backups == 1
        assert stats.incremental_backups == 1
        assert stats.last_backup == datetime(2025, 3, 1, 8, 0, tzinfo=UTC)

    def test_empty_directory(self, service):
        assert service.list_backups() == []
        assert service.last_backup_time() is None


class TestRestore:
    """Tests for restoring a full backup."""

    @pytest.mark.asyncio
    async def test_restore_replaces_tables_in_one_commit(self, service, repositories, mock_db):
        info = await service.create_full_backup()

        restored = await service.restore(info.name)

        assert restored == {"applications": 2, "admins": 1, "courseTargets": 1}
        mock_db.commit.assert_awaited_once()
        rows = repositories.applications.replace_all.call_args.args[1]
        assert len(rows) == 2
        assert rows[0]["course_applied"] == "Bachelor of Science in Nursing"

    @pytest.mark.asyncio
    async def test_database_error_does_not_commit(self, service, repositories, mock_db):
        info = await service.create_full_backup()
        repositories.admins.replace_all.side_effect = SQLAlchemyError("constraint")

        with pytest.raises(BackupFailedError):
            await service.restore(info.name)

        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_incremental_cannot_be_restored(self, service):
        _write_fake_backup(
            service.backup_dir,
            "incremental-backup-2025-03-01T08-00-00-000Z",
            "incremental",
            datetime(2025, 3, 1, 8, 0, tzinfo=UTC),
        )

        with pytest.raises(BackupNotRestorableError):
            await service.restore("incremental-backup-2025-03-01T08-00-00-000Z")

    @pytest.mark.asyncio
    async def test_path_traversal_is_rejected(self, service):
        with pytest.raises(InvalidBackupNameError):
            await service.restore("../etc")

    @pytest.mark.asyncio
    async def test_unknown_backup(self, service):
        with pytest.raises(BackupNotFoundError):
            await service.restore("full-backup-2020-01-01T00-00-00-000Z")


class TestDownloadAndDelete:
    def test_download_zips_on_demand(self, service):
        name = "full-backup-2025-03-01T02-00-00-000Z"
        _write_fake_backup(
            service.backup_dir, name, "full", datetime(2025, 3, 1, 2, 0, tzinfo=UTC)
        )

        zip_path = service.get_download_path(name)

        assert zip_path.name == f"{name}.zip"
        with zipfile.ZipFile(zip_path) as zf:
            assert zf.namelist() == ["manifest.json"]

    def test_delete_removes_directory_and_zip(self, service):
        name = "full-backup-2025-03-01T02-00-00-000Z"
        _write_fake_backup(
            service.backup_dir, name, "full", datetime(2025, 3, 1, 2, 0, tzinfo=UTC)
        )
        service.get_download_path(name)

        service.delete(name)

        assert list(service.backup_dir.iterdir()) == []

        with pytest.raises(BackupNotFoundError):
            service.delete(name)
