"""
Applications Models

Applicant records submitted through the public admission form.
"""

import enum
from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, Enum, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, validates

from app.core.database import Base
from app.modules.shared import IdMixin, TimestampMixin


class ApplicationStatus(str, enum.Enum):
    """Lifecycle status of an application."""

    PENDING = "pending"
    VERIFIED = "verified"
    INCOMPLETE = "incomplete"
    ADMITTED = "admitted"
    REJECTED = "rejected"
    ENROLLED = "enrolled"


class Sex(str, enum.Enum):
    MALE = "Male"
    FEMALE = "Female"


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class ApplicantRecord(IdMixin, TimestampMixin, Base):
    """
    An admission application.

    Email is trimmed and lower-cased whenever it is assigned, so lookups and
    batch-import matching never depend on how the applicant typed it.
    """

    __tablename__ = "applications"

    # Identity
    name: Mapped[str] = mapped_column(String(300), nullable=False)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    given_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    middle_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    contact: Mapped[str] = mapped_column(String(50), nullable=False)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    sex: Mapped[Sex | None] = mapped_column(
        Enum(Sex, name="applicant_sex", values_callable=_enum_values), nullable=True
    )

    # Program and background
    course_applied: Mapped[str] = mapped_column(String(200), nullable=False)
    school_last_attended: Mapped[str | None] = mapped_column(String(300), nullable=True)
    present_address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    date_signed: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Uploaded documents
    photo_url: Mapped[str] = mapped_column(String(500), nullable=False)
    signature_url: Mapped[str] = mapped_column(String(500), nullable=False)

    # Examination permit (maritime programs)
    exam_date_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    examiner_date_signed: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    examiner_signature_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Status tracking
    status: Mapped[ApplicationStatus] = mapped_column(
        Enum(ApplicationStatus, name="application_status", values_callable=_enum_values),
        nullable=False,
        default=ApplicationStatus.PENDING,
    )
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Archival
    archived: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    archived_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_applications_email", "email"),
        Index("ix_applications_status", "status"),
        Index("ix_applications_course_applied", "course_applied"),
        Index("ix_applications_submitted_at", "submitted_at"),
    )

    @validates("email")
    def _normalize_email(self, _key: str, value: str) -> str:
        return value.strip().lower() if value else value
