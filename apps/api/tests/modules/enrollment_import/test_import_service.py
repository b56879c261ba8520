"""
Unit tests for the batch enrollment import service.
"""

from unittest.mock import AsyncMock, patch

import pytest

from app.modules.applications.models import ApplicationStatus
from app.modules.enrollment_import.errors import ColumnResolutionError, EmptyFileError
from app.modules.enrollment_import.matcher import INSUFFICIENT_FIELDS_REASON, NO_MATCH_REASON
from app.modules.enrollment_import.service import apply_enrollments, import_batch

REGISTRAR_CSV = (
    "First Name,Last Name,Email Address,Birthdate\n"
    "Ana,Cruz,a@x.com,01/01/2000\n"
    "Ben,Santos,b@x.com,1999-12-31\n"
    "Carla,Reyes,,\n"
    "Nobody,Known,nobody@x.com,1980-01-01\n"
).encode()


class TestImportBatch:
    """Tests for import_batch."""

    @pytest.mark.asyncio
    async def test_enrolls_matched_rows_and_summarizes(
        self, mock_db, session_factory, application_factory
    ):
        ana = application_factory()
        ben = application_factory(
            last_name="santos",
            given_name="ben",
            email="b@x.com",
            status=ApplicationStatus.ENROLLED,
        )

        with patch("app.modules.enrollment_import.service.applications_repository") as mock_repo:
            mock_repo.find_applications = AsyncMock(return_value=[ana, ben])
            mock_repo.update_status = AsyncMock()

            result = await import_batch(
                mock_db, REGISTRAR_CSV, "registrar.csv", session_factory=session_factory
            )

            mock_repo.find_applications.assert_awaited_once_with(mock_db)
            mock_repo.update_status.assert_awaited_once_with(
                mock_db, ana.id, ApplicationStatus.ENROLLED
            )

        assert result.summary.total_rows == 4
        assert result.summary.matched_and_updated == 1
        assert result.summary.already_enrolled == 1
        assert result.summary.unmatched == 2
        assert [s.reason for s in result.unmatched_samples] == [
            INSUFFICIENT_FIELDS_REASON,
            NO_MATCH_REASON,
        ]
        assert result.unmatched_samples[0].row["First Name"] == "Carla"

    @pytest.mark.asyncio
    async def test_response_uses_camel_case_keys(self, mock_db, session_factory):
        with patch("app.modules.enrollment_import.service.applications_repository") as mock_repo:
            mock_repo.find_applications = AsyncMock(return_value=[])
            mock_repo.update_status = AsyncMock()

            result = await import_batch(
                mock_db, REGISTRAR_CSV, "registrar.csv", session_factory=session_factory
            )

        payload = result.model_dump(by_alias=True)
        assert payload["summary"]["totalRows"] == 4
        assert payload["summary"]["matchedAndUpdated"] == 0
        assert "unmatchedSamples" in payload

    @pytest.mark.asyncio
    async def test_missing_columns_abort_before_matching(self, mock_db, session_factory):
        content = b"First Name,Last Name,Email Address\nAna,Cruz,a@x.com\n"

        with patch("app.modules.enrollment_import.service.applications_repository") as mock_repo:
            mock_repo.find_applications = AsyncMock()

            with pytest.raises(ColumnResolutionError):
                await import_batch(mock_db, content, "registrar.csv", session_factory=session_factory)

            mock_repo.find_applications.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_file_aborts(self, mock_db, session_factory):
        with pytest.raises(EmptyFileError):
            await import_batch(
                mock_db,
                b"First Name,Last Name,Email Address,Birthdate\n",
                "registrar.csv",
                session_factory=session_factory,
            )


class TestApplyEnrollments:
    @pytest.mark.asyncio
    async def test_each_id_written_in_its_own_session(self, mock_db, session_factory):
        ids = ["id-1", "id-2", "id-3"]

        with patch("app.modules.enrollment_import.service.applications_repository") as mock_repo:
            mock_repo.update_status = AsyncMock()

            await apply_enrollments(ids, session_factory)

            assert mock_repo.update_status.await_count == 3
            written = {call.args[1] for call in mock_repo.update_status.await_args_list}
            assert written == set(ids)

    @pytest.mark.asyncio
    async def test_no_ids_no_writes(self, session_factory):
        with patch("app.modules.enrollment_import.service.applications_repository") as mock_repo:
            mock_repo.update_status = AsyncMock()

            await apply_enrollments([], session_factory)

            mock_repo.update_status.assert_not_awaited()
