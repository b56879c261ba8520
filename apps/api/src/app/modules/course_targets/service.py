"""
Course Targets Service

Business logic for per-course enrollment targets: listing, upserting,
bulk updates and seeding the default target table.
"""

import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.course_targets import repository
from app.modules.course_targets.models import AcademicTerm, CourseTarget
from app.modules.course_targets.schemas import (
    BulkCourseTargetRequest,
    CourseTargetCreate,
)

logger = logging.getLogger(__name__)


class CourseTargetServiceError(Exception):
    """Base exception for course target service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class CourseTargetNotFoundError(CourseTargetServiceError):
    """Raised when a course target is not found."""

    def __init__(self, target_id: UUID | None = None):
        super().__init__(
            message=(
                f"Course target {target_id} not found" if target_id else "Course target not found"
            ),
            error_code="COURSE_TARGET_NOT_FOUND",
            status_code=404,
        )


def current_academic_year() -> str:
    return str(datetime.now(UTC).year)


async def list_targets(
    db: AsyncSession,
    academic_year: str | None = None,
    term: AcademicTerm | None = None,
) -> list[CourseTarget]:
    """
    Active targets for a year (current year by default).

    A term of ALL, or no term, lists every term of the year.
    """
    year = academic_year or current_academic_year()
    term_filter = term if term and term != AcademicTerm.ALL else None
    return await repository.list_active(db, year, term_filter)


async def save_target(
    db: AsyncSession, data: CourseTargetCreate, admin_id: UUID | None = None
) -> tuple[CourseTarget, bool]:
    """
    Create or update the target for (course, year, term).

    Returns:
        Tuple of (course target, True if newly created)
    """
    course_target, created = await repository.upsert(
        db,
        course_name=data.course_name.strip(),
        target=data.target,
        academic_year=data.academic_year or current_academic_year(),
        term=data.term or AcademicTerm.ALL,
        admin_id=admin_id,
    )
    logger.info(
        f"Course target {'created' if created else 'updated'}: {course_target.id} "
        f"({course_target.academic_year}/{course_target.term.value})"
    )
    return course_target, created


async def update_target(
    db: AsyncSession, target_id: UUID, target: int, admin_id: UUID | None = None
) -> CourseTarget:
    """
    Raises:
        CourseTargetNotFoundError: If the target doesn't exist
    """
    course_target = await repository.update_target(db, target_id, target, admin_id)
    if not course_target:
        raise CourseTargetNotFoundError(target_id)
    return course_target


async def delete_target(db: AsyncSession, target_id: UUID) -> None:
    """
    Raises:
        CourseTargetNotFoundError: If the target doesn't exist
    """
    if not await repository.delete_by_id(db, target_id):
        raise CourseTargetNotFoundError(target_id)
    logger.info(f"Deleted course target {target_id}")


async def bulk_save(
    db: AsyncSession, data: BulkCourseTargetRequest, admin_id: UUID | None = None
) -> list[CourseTarget]:
    """Upsert every complete entry for one year/term; incomplete entries are skipped."""
    entries = [
        (entry.course_name.strip(), entry.target)
        for entry in data.targets
        if entry.course_name and entry.course_name.strip() and entry.target is not None
    ]

    saved = await repository.bulk_upsert(
        db,
        entries,
        academic_year=data.academic_year or current_academic_year(),
        term=data.term or AcademicTerm.ALL,
        admin_id=admin_id,
    )
    logger.info(
        f"Bulk course target update: saved={len(saved)}, "
        f"skipped={len(data.targets) - len(entries)}"
    )
    return saved


async def seed_defaults(
    db: AsyncSession,
    defaults: Mapping[str, int],
    years: list[str],
) -> dict[str, int]:
    """
    Seed the default target table (term ALL) for each year in `years`.

    Does nothing if targets already exist for the first year.

    Returns:
        {year: number of targets written}
    """
    if not years or await repository.count_for(db, years[0], AcademicTerm.ALL):
        return {}

    written: dict[str, int] = {}
    for year in years:
        saved = await repository.bulk_upsert(
            db, defaults.items(), academic_year=year, term=AcademicTerm.ALL
        )
        written[year] = len(saved)

    return written
