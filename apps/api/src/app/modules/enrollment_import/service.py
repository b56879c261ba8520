"""
Enrollment Import Service

Batch enrollment from a registrar spreadsheet: read the file, resolve its
identity columns, match rows against every non-archived application and mark
the matched applications as enrolled.

Status writes run concurrently, each in its own database session. The matcher
hands out each application to at most one row per run, so no application is
written twice.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import date, datetime
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import async_session_maker
from app.modules.applications import repository as applications_repository
from app.modules.applications.models import ApplicationStatus
from app.modules.enrollment_import.matcher import match, resolve_columns
from app.modules.enrollment_import.parser import read_rows
from app.modules.enrollment_import.schemas import (
    BatchEnrollmentResponse,
    ImportSummary,
    UnmatchedSample,
)

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AsyncSession]


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime | date):
        return value.isoformat()
    if value is None or isinstance(value, str | int | float | bool):
        return value
    return str(value)


async def _enroll(session_factory: SessionFactory, application_id: UUID) -> None:
    async with session_factory() as session:
        await applications_repository.update_status(
            session, application_id, ApplicationStatus.ENROLLED
        )


async def apply_enrollments(
    application_ids: list[UUID],
    session_factory: SessionFactory = async_session_maker,
) -> None:
    """Set every application in `application_ids` to enrolled, concurrently."""
    if not application_ids:
        return
    await asyncio.gather(*(_enroll(session_factory, id) for id in application_ids))


async def import_batch(
    db: AsyncSession,
    content: bytes,
    filename: str | None,
    session_factory: SessionFactory = async_session_maker,
) -> BatchEnrollmentResponse:
    """
    Run a batch enrollment import.

    Args:
        db: Session used to load match candidates
        content: Uploaded file bytes
        filename: Uploaded file name (extension selects the reader)
        session_factory: Creates the sessions used for status writes

    Returns:
        Summary counts and up to 10 unmatched samples with reasons

    Raises:
        UnsupportedFileError: Missing or unreadable file
        EmptyFileError: No data rows
        ColumnResolutionError: An identity column is missing
    """
    headers, rows = read_rows(content, filename)
    columns = resolve_columns(headers)

    candidates = await applications_repository.find_applications(db)
    logger.info(f"Matching {len(rows)} registrar rows against {len(candidates)} applications")

    outcome = match(rows, candidates, columns)

    await apply_enrollments([record.id for _, record in outcome.matched], session_factory)

    summary = ImportSummary(
        total_rows=outcome.total_rows,
        matched_and_updated=len(outcome.matched),
        already_enrolled=len(outcome.already_enrolled),
        unmatched=outcome.total_rows - len(outcome.matched) - len(outcome.already_enrolled),
    )
    logger.info(
        f"Batch enrollment completed: rows={summary.total_rows}, "
        f"enrolled={summary.matched_and_updated}, already={summary.already_enrolled}, "
        f"unmatched={summary.unmatched}"
    )

    return BatchEnrollmentResponse(
        summary=summary,
        unmatched_samples=[
            UnmatchedSample(
                row={key: _jsonable(value) for key, value in sample.row.items()},
                reason=sample.reason,
            )
            for sample in outcome.unmatched_samples()
        ],
    )
