"""
Course Targets Models

Enrollment targets per course, academic year and term.
"""

import enum
import uuid

from sqlalchemy import Boolean, CheckConstraint, Enum, Index, Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.modules.shared import IdMixin, TimestampMixin


class AcademicTerm(str, enum.Enum):
    """Term of an academic year. ALL covers the whole calendar year."""

    ALL = "all"
    FIRST = "1st"
    SECOND = "2nd"
    SUMMER = "summer"


class CourseTarget(IdMixin, TimestampMixin, Base):
    """
    Enrollment target for one course in one (academic year, term).

    At most one active row exists per (course_name, academic_year, term); the
    repository upserts on that triple instead of relying on a unique index.
    """

    __tablename__ = "course_targets"

    course_name: Mapped[str] = mapped_column(String(200), nullable=False)
    target: Mapped[int] = mapped_column(Integer, nullable=False)
    academic_year: Mapped[str] = mapped_column(String(10), nullable=False)
    term: Mapped[AcademicTerm] = mapped_column(
        Enum(
            AcademicTerm,
            name="academic_term",
            values_callable=lambda cls: [member.value for member in cls],
        ),
        nullable=False,
        default=AcademicTerm.ALL,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Audit (admin ids, kept without a foreign key so deleted admins leave history intact)
    created_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    updated_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)

    __table_args__ = (
        CheckConstraint("target >= 0", name="ck_course_targets_target_non_negative"),
        Index("ix_course_targets_course_year_term", "course_name", "academic_year", "term"),
    )
