"""
Analytics Service

Loads applications and course targets for the requested window and hands
them to the analytics engine. Archived applications are never counted.
"""

import logging
from collections.abc import Mapping

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.modules.analytics import engine
from app.modules.applications import repository as applications_repository
from app.modules.course_targets import repository as targets_repository
from app.modules.course_targets.models import AcademicTerm

logger = logging.getLogger(__name__)


async def get_enrollment_analytics(
    db: AsyncSession,
    year: int,
    term: AcademicTerm | None = None,
    default_targets: Mapping[str, int] | None = None,
) -> engine.EnrollmentReport:
    """
    Achievement report for a year/term.

    Persisted targets take precedence (for ALL, every term of the year is
    read); courses in the default table without a persisted target use the
    default.
    """
    term = term or AcademicTerm.ALL
    window = engine.term_window(year, term)

    records = await applications_repository.find_applications(
        db, submitted_from=window.start, submitted_to=window.end
    )
    persisted = await targets_repository.targets_for(db, str(year), term)
    targets = engine.resolve_targets(
        persisted,
        settings.default_course_targets if default_targets is None else default_targets,
    )

    logger.info(
        f"Enrollment analytics {year}/{term.value}: {len(records)} applications, "
        f"{len(persisted)} persisted targets"
    )
    return engine.compute_enrollment(year, term, records, targets)


async def get_comparison(db: AsyncSession, year: int) -> engine.ComparisonReport:
    """Three-year comparison ending at `year`."""
    years = engine.comparison_years(year)
    window = engine.year_window(years[0], years[-1])

    records = await applications_repository.find_applications(
        db, submitted_from=window.start, submitted_to=window.end
    )
    return engine.compute_comparison(year, records)


async def get_course_detail(db: AsyncSession, course_name: str, year: int) -> engine.CourseDetail:
    """Status and monthly breakdown for one course in one year."""
    window = engine.term_window(year)

    records = await applications_repository.find_applications(
        db, submitted_from=window.start, submitted_to=window.end, course=course_name
    )
    return engine.compute_course_detail(course_name, records)
