"""
Applications Repository

Database operations for admission applications. All functions take an
AsyncSession and contain no business rules; filtering by date range, status,
course and archival flag is shared by the admin list, the analytics engine,
the batch enrollment import and the backup/export services.
"""

from collections.abc import Iterable, Sequence
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from sqlalchemy import delete, desc, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from .models import ApplicantRecord, ApplicationStatus

UPDATABLE_FIELDS = {"name", "email", "contact", "course_applied", "status"}


async def create(db: AsyncSession, **fields: Any) -> ApplicantRecord:
    """Create a new application."""
    application = ApplicantRecord(**fields)

    db.add(application)
    await db.commit()
    await db.refresh(application)

    return application


async def get_by_id(db: AsyncSession, id: UUID) -> ApplicantRecord | None:
    """Get application by ID."""
    return await db.get(ApplicantRecord, id)


def _apply_course_filter(query: Select, course: str | Sequence[str] | None) -> Select:
    if course is None:
        return query
    if isinstance(course, str):
        return query.where(ApplicantRecord.course_applied == course)
    return query.where(ApplicantRecord.course_applied.in_(list(course)))


async def find_applications(
    db: AsyncSession,
    *,
    submitted_from: datetime | None = None,
    submitted_to: datetime | None = None,
    status: ApplicationStatus | None = None,
    course: str | Sequence[str] | None = None,
    include_archived: bool = False,
) -> list[ApplicantRecord]:
    """
    Find applications by the filters the analytics and import code use.

    Args:
        db: Database session
        submitted_from: Inclusive lower bound on submitted_at
        submitted_to: Inclusive upper bound on submitted_at
        status: Exact status
        course: Exact course name, or a collection of names (membership)
        include_archived: Archived records are excluded unless True

    Returns:
        Matching applications, oldest submission first
    """
    query = select(ApplicantRecord)

    if submitted_from is not None:
        query = query.where(ApplicantRecord.submitted_at >= submitted_from)
    if submitted_to is not None:
        query = query.where(ApplicantRecord.submitted_at <= submitted_to)
    if status is not None:
        query = query.where(ApplicantRecord.status == status)
    query = _apply_course_filter(query, course)
    if not include_archived:
        query = query.where(ApplicantRecord.archived.is_(False))

    result = await db.execute(query.order_by(ApplicantRecord.submitted_at))
    return list(result.scalars().all())


async def list_applications(
    db: AsyncSession,
    *,
    status: ApplicationStatus | None = None,
    courses: list[str] | None = None,
    course_contains: str | None = None,
    search: str | None = None,
    skip: int = 0,
    limit: int = 10,
) -> tuple[list[ApplicantRecord], int]:
    """
    Get non-archived applications for the admin dashboard, newest first.

    Returns:
        Tuple of (page of applications, total count matching filters)
    """
    query = select(ApplicantRecord).where(ApplicantRecord.archived.is_(False))

    if status:
        query = query.where(ApplicantRecord.status == status)

    if courses:
        query = query.where(ApplicantRecord.course_applied.in_(courses))
    elif course_contains:
        query = query.where(ApplicantRecord.course_applied.ilike(f"%{course_contains}%"))

    if search:
        search_pattern = f"%{search}%"
        query = query.where(
            or_(
                ApplicantRecord.name.ilike(search_pattern),
                ApplicantRecord.email.ilike(search_pattern),
            )
        )

    count_query = select(func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    query = query.order_by(desc(ApplicantRecord.submitted_at)).offset(skip).limit(limit)
    result = await db.execute(query)

    return list(result.scalars().all()), total


async def list_archived(
    db: AsyncSession,
    *,
    skip: int = 0,
    limit: int = 10,
) -> tuple[list[ApplicantRecord], int]:
    """Get archived applications, most recently archived first."""
    query = select(ApplicantRecord).where(ApplicantRecord.archived.is_(True))

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar() or 0

    query = (
        query.order_by(
            desc(ApplicantRecord.archived_at).nulls_last(),
            desc(ApplicantRecord.created_at),
        )
        .offset(skip)
        .limit(limit)
    )
    result = await db.execute(query)

    return list(result.scalars().all()), total


async def update_status(db: AsyncSession, id: UUID, status: ApplicationStatus) -> ApplicantRecord:
    """
    Set an application's status.

    Raises:
        ValueError: If application not found
    """
    application = await get_by_id(db, id)
    if not application:
        raise ValueError(f"Application {id} not found")

    application.status = status

    await db.commit()
    await db.refresh(application)

    return application


async def update_fields(db: AsyncSession, id: UUID, **fields: Any) -> ApplicantRecord | None:
    """Apply a partial update. Unknown fields are ignored."""
    application = await get_by_id(db, id)
    if not application:
        return None

    for key, value in fields.items():
        if key in UPDATABLE_FIELDS:
            setattr(application, key, value)

    await db.commit()
    await db.refresh(application)

    return application


async def set_archived(db: AsyncSession, id: UUID, archived: bool) -> ApplicantRecord | None:
    """Archive or restore an application, stamping archived_at."""
    application = await get_by_id(db, id)
    if not application:
        return None

    application.archived = archived
    application.archived_at = datetime.now(UTC) if archived else None

    await db.commit()
    await db.refresh(application)

    return application


async def delete_by_id(db: AsyncSession, id: UUID) -> bool:
    """Delete an application. Returns False when it does not exist."""
    application = await get_by_id(db, id)
    if not application:
        return False

    await db.delete(application)
    await db.commit()

    return True


async def get_overview_stats(db: AsyncSession, recent_days: int = 7) -> dict:
    """
    Aggregate counts for the dashboard overview.

    Returns:
        Dict with total, recent, status_breakdown and course_breakdown
        (both breakdowns as (name, count) pairs, course sorted by count desc)
    """
    total = (await db.execute(select(func.count(ApplicantRecord.id)))).scalar() or 0

    since = datetime.now(UTC) - timedelta(days=recent_days)
    recent = (
        await db.execute(
            select(func.count(ApplicantRecord.id)).where(ApplicantRecord.submitted_at >= since)
        )
    ).scalar() or 0

    status_rows = await db.execute(
        select(ApplicantRecord.status, func.count(ApplicantRecord.id)).group_by(
            ApplicantRecord.status
        )
    )
    course_count = func.count(ApplicantRecord.id)
    course_rows = await db.execute(
        select(ApplicantRecord.course_applied, course_count)
        .group_by(ApplicantRecord.course_applied)
        .order_by(desc(course_count))
    )

    return {
        "total": total,
        "recent": recent,
        "status_breakdown": [(row[0].value, row[1]) for row in status_rows.all()],
        "course_breakdown": [(row[0], row[1]) for row in course_rows.all()],
    }


async def list_all(db: AsyncSession) -> list[ApplicantRecord]:
    """Every application, archived included, newest first."""
    result = await db.execute(select(ApplicantRecord).order_by(desc(ApplicantRecord.submitted_at)))
    return list(result.scalars().all())


async def updated_since(db: AsyncSession, cutoff: datetime) -> list[ApplicantRecord]:
    """Applications created or modified after `cutoff`."""
    result = await db.execute(
        select(ApplicantRecord)
        .where(ApplicantRecord.updated_at > cutoff)
        .order_by(ApplicantRecord.updated_at)
    )
    return list(result.scalars().all())


async def count(db: AsyncSession) -> int:
    return (await db.execute(select(func.count(ApplicantRecord.id)))).scalar() or 0


async def replace_all(db: AsyncSession, rows: Iterable[dict[str, Any]]) -> int:
    """
    Delete every application and insert `rows`. The caller commits.

    Used by backup restore. Returns the number of inserted rows.
    """
    await db.execute(delete(ApplicantRecord))

    inserted = 0
    for row in rows:
        db.add(ApplicantRecord(**row))
        inserted += 1

    await db.flush()
    return inserted


async def get_monthly_counts(db: AsyncSession) -> list[tuple[int, int, int]]:
    """(year, month, count) of submissions per calendar month, oldest first."""
    year = func.extract("year", ApplicantRecord.submitted_at)
    month = func.extract("month", ApplicantRecord.submitted_at)
    result = await db.execute(
        select(year, month, func.count(ApplicantRecord.id))
        .group_by(year, month)
        .order_by(year, month)
    )
    return [(int(row[0]), int(row[1]), row[2]) for row in result.all()]


async def get_submission_range(db: AsyncSession) -> tuple[datetime | None, datetime | None]:
    """Oldest and newest submitted_at."""
    result = await db.execute(
        select(func.min(ApplicantRecord.submitted_at), func.max(ApplicantRecord.submitted_at))
    )
    oldest, newest = result.one()
    return oldest, newest
