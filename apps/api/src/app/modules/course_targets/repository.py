"""
Course Targets Repository

Database operations for course enrollment targets. Writes are upserts keyed
by (course_name, academic_year, term).
"""

from collections.abc import Iterable
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import AcademicTerm, CourseTarget


async def get_by_id(db: AsyncSession, id: UUID) -> CourseTarget | None:
    """Get course target by ID."""
    return await db.get(CourseTarget, id)


async def get_by_key(
    db: AsyncSession, course_name: str, academic_year: str, term: AcademicTerm
) -> CourseTarget | None:
    """Get the target for a (course, year, term) triple."""
    result = await db.execute(
        select(CourseTarget)
        .where(
            CourseTarget.course_name == course_name,
            CourseTarget.academic_year == academic_year,
            CourseTarget.term == term,
        )
        .order_by(CourseTarget.created_at)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def list_active(
    db: AsyncSession, academic_year: str, term: AcademicTerm | None = None
) -> list[CourseTarget]:
    """Active targets for a year, optionally for one term, sorted by course name."""
    query = select(CourseTarget).where(
        CourseTarget.academic_year == academic_year,
        CourseTarget.is_active.is_(True),
    )
    if term is not None:
        query = query.where(CourseTarget.term == term)

    result = await db.execute(query.order_by(CourseTarget.course_name))
    return list(result.scalars().all())


async def targets_for(db: AsyncSession, academic_year: str, term: AcademicTerm) -> dict[str, int]:
    """
    Active targets for a year and term, as {course_name: target}.

    A specific term reads only that term's targets. ALL reads every term of
    the year: a course's `all` target wins, otherwise its per-term targets
    are summed.
    """
    if term != AcademicTerm.ALL:
        targets = await list_active(db, academic_year, term)
        return {t.course_name: t.target for t in targets}

    whole_year: dict[str, int] = {}
    per_term: dict[str, int] = {}
    for t in await list_active(db, academic_year, None):
        if t.term == AcademicTerm.ALL:
            whole_year[t.course_name] = t.target
        else:
            per_term[t.course_name] = per_term.get(t.course_name, 0) + t.target

    return {**per_term, **whole_year}


async def _upsert(
    db: AsyncSession,
    *,
    course_name: str,
    target: int,
    academic_year: str,
    term: AcademicTerm,
    admin_id: UUID | None,
) -> tuple[CourseTarget, bool]:
    existing = await get_by_key(db, course_name, academic_year, term)

    if existing:
        existing.target = target
        existing.is_active = True
        existing.updated_by = admin_id
        return existing, False

    course_target = CourseTarget(
        course_name=course_name,
        target=target,
        academic_year=academic_year,
        term=term,
        is_active=True,
        created_by=admin_id,
        updated_by=admin_id,
    )
    db.add(course_target)
    await db.flush()
    return course_target, True


async def upsert(
    db: AsyncSession,
    *,
    course_name: str,
    target: int,
    academic_year: str,
    term: AcademicTerm = AcademicTerm.ALL,
    admin_id: UUID | None = None,
) -> tuple[CourseTarget, bool]:
    """
    Create or update the target for (course, year, term).

    Returns:
        Tuple of (course target, True if it was created)
    """
    course_target, created = await _upsert(
        db,
        course_name=course_name,
        target=target,
        academic_year=academic_year,
        term=term,
        admin_id=admin_id,
    )

    await db.commit()
    await db.refresh(course_target)

    return course_target, created


async def bulk_upsert(
    db: AsyncSession,
    entries: Iterable[tuple[str, int]],
    *,
    academic_year: str,
    term: AcademicTerm,
    admin_id: UUID | None = None,
) -> list[CourseTarget]:
    """Upsert (course_name, target) pairs for one year/term in a single transaction."""
    saved: list[CourseTarget] = []
    for course_name, target in entries:
        course_target, _ = await _upsert(
            db,
            course_name=course_name,
            target=target,
            academic_year=academic_year,
            term=term,
            admin_id=admin_id,
        )
        saved.append(course_target)

    await db.commit()
    for course_target in saved:
        await db.refresh(course_target)

    return saved


async def update_target(
    db: AsyncSession, id: UUID, target: int, admin_id: UUID | None = None
) -> CourseTarget | None:
    course_target = await get_by_id(db, id)
    if not course_target:
        return None

    course_target.target = target
    course_target.updated_by = admin_id

    await db.commit()
    await db.refresh(course_target)

    return course_target


async def delete_by_id(db: AsyncSession, id: UUID) -> bool:
    course_target = await get_by_id(db, id)
    if not course_target:
        return False

    await db.delete(course_target)
    await db.commit()

    return True


async def count_for(db: AsyncSession, academic_year: str, term: AcademicTerm) -> int:
    result = await db.execute(
        select(func.count(CourseTarget.id)).where(
            CourseTarget.academic_year == academic_year,
            CourseTarget.term == term,
        )
    )
    return result.scalar() or 0


async def list_all(db: AsyncSession) -> list[CourseTarget]:
    result = await db.execute(
        select(CourseTarget).order_by(CourseTarget.academic_year, CourseTarget.course_name)
    )
    return list(result.scalars().all())


async def replace_all(db: AsyncSession, rows: Iterable[dict[str, Any]]) -> int:
    """Delete every target and insert `rows` (backup restore). The caller commits."""
    await db.execute(delete(CourseTarget))

    inserted = 0
    for row in rows:
        db.add(CourseTarget(**row))
        inserted += 1

    await db.flush()
    return inserted
