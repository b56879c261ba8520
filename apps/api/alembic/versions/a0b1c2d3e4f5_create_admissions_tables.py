"""create admissions tables

Revision ID: a0b1c2d3e4f5
Revises:
Create Date: 2026-10-18 09:00:00.000000

This migration:
1. Creates the admins table with the admin_role enum
2. Creates the applications table with the application_status and
   applicant_sex enums
3. Creates the course_targets table with the academic_term enum
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "a0b1c2d3e4f5"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

ADMIN_ROLE = postgresql.ENUM("admin", "super_admin", name="admin_role", create_type=False)
APPLICATION_STATUS = postgresql.ENUM(
    "pending",
    "verified",
    "incomplete",
    "admitted",
    "rejected",
    "enrolled",
    name="application_status",
    create_type=False,
)
APPLICANT_SEX = postgresql.ENUM("Male", "Female", name="applicant_sex", create_type=False)
ACADEMIC_TERM = postgresql.ENUM(
    "all", "1st", "2nd", "summer", name="academic_term", create_type=False
)

ENUMS = (ADMIN_ROLE, APPLICATION_STATUS, APPLICANT_SEX, ACADEMIC_TERM)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Create admins, applications and course_targets."""
    for enum_type in ENUMS:
        enum_type.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "admins",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=True),
        sa.Column("role", ADMIN_ROLE, nullable=False, server_default="admin"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_admins_email"), "admins", ["email"], unique=True)

    op.create_table(
        "applications",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        # Identity
        sa.Column("name", sa.String(length=300), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=True),
        sa.Column("given_name", sa.String(length=100), nullable=True),
        sa.Column("middle_name", sa.String(length=100), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("contact", sa.String(length=50), nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("age", sa.Integer(), nullable=True),
        sa.Column("sex", APPLICANT_SEX, nullable=True),
        # Program and background
        sa.Column("course_applied", sa.String(length=200), nullable=False),
        sa.Column("school_last_attended", sa.String(length=300), nullable=True),
        sa.Column("present_address", sa.String(length=500), nullable=True),
        sa.Column("date_signed", sa.String(length=50), nullable=True),
        # Uploaded documents
        sa.Column("photo_url", sa.String(length=500), nullable=False),
        sa.Column("signature_url", sa.String(length=500), nullable=False),
        # Examination permit
        sa.Column("exam_date_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("examiner_date_signed", sa.DateTime(timezone=True), nullable=True),
        sa.Column("examiner_signature_url", sa.String(length=500), nullable=True),
        # Status tracking
        sa.Column("status", APPLICATION_STATUS, nullable=False, server_default="pending"),
        sa.Column(
            "submitted_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        # Archival
        sa.Column("archived", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_applications_email", "applications", ["email"], unique=False)
    op.create_index("ix_applications_status", "applications", ["status"], unique=False)
    op.create_index(
        "ix_applications_course_applied", "applications", ["course_applied"], unique=False
    )
    op.create_index(
        "ix_applications_submitted_at", "applications", ["submitted_at"], unique=False
    )

    op.create_table(
        "course_targets",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        sa.Column("course_name", sa.String(length=200), nullable=False),
        sa.Column("target", sa.Integer(), nullable=False),
        sa.Column("academic_year", sa.String(length=10), nullable=False),
        sa.Column("term", ACADEMIC_TERM, nullable=False, server_default="all"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        # Admin ids without a foreign key
        sa.Column("created_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("updated_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("target >= 0", name="ck_course_targets_target_non_negative"),
    )
    op.create_index(
        "ix_course_targets_course_year_term",
        "course_targets",
        ["course_name", "academic_year", "term"],
        unique=False,
    )


def downgrade() -> None:
    """Drop the admissions tables and their enum types."""
    op.drop_index("ix_course_targets_course_year_term", table_name="course_targets")
    op.drop_table("course_targets")

    op.drop_index("ix_applications_submitted_at", table_name="applications")
    op.drop_index("ix_applications_course_applied", table_name="applications")
    op.drop_index("ix_applications_status", table_name="applications")
    op.drop_index("ix_applications_email", table_name="applications")
    op.drop_table("applications")

    op.drop_index(op.f("ix_admins_email"), table_name="admins")
    op.drop_table("admins")

    for enum_type in reversed(ENUMS):
        enum_type.drop(op.get_bind(), checkfirst=True)
