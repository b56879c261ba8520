"""
Applications Schemas

Pydantic schemas for request validation and response serialization.
Response schemas are camelCase on the wire (see CamelModel).
"""

from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.modules.applications.models import ApplicationStatus, Sex
from app.modules.shared import CamelModel, PaginationInfo

NotificationType = Literal["general", "reminder", "urgent", "info"]


class ApplicationCreate(BaseModel):
    """Validated fields of the public admission form (files handled separately)."""

    name: str = Field(..., min_length=1, max_length=300)
    email: EmailStr
    contact: str = Field(..., min_length=1, max_length=50)
    course_applied: str = Field(..., min_length=1, max_length=200)
    last_name: str | None = Field(None, max_length=100)
    given_name: str | None = Field(None, max_length=100)
    middle_name: str | None = Field(None, max_length=100)
    date_of_birth: date | None = None
    age: int | None = Field(None, ge=0, le=150)
    sex: Sex | None = None
    school_last_attended: str | None = Field(None, max_length=300)
    present_address: str | None = Field(None, max_length=500)
    date_signed: str | None = Field(None, max_length=50)


class ApplicationUpdate(CamelModel):
    """Partial update from the admin dashboard. Only provided fields change."""

    name: str | None = Field(None, min_length=1, max_length=300)
    email: EmailStr | None = None
    contact: str | None = Field(None, min_length=1, max_length=50)
    course_applied: str | None = Field(None, min_length=1, max_length=200)
    status: str | None = Field(None, description="One of the application statuses")


class StatusUpdateRequest(BaseModel):
    status: str = Field(..., description="New status (pending, verified, incomplete, ...)")


class MissingRequirementsRequest(CamelModel):
    """Body for send-missing-requirements."""

    missing_items: list[str] = Field(..., min_length=1)
    custom_message: str | None = Field(None, max_length=2000)


class CustomNotificationRequest(CamelModel):
    """Body for send-custom-notification."""

    subject: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=10000)
    notification_type: NotificationType = "general"


class ApplicationResponse(CamelModel):
    """Full application as shown to admins."""

    id: UUID
    name: str
    last_name: str | None = None
    given_name: str | None = None
    middle_name: str | None = None
    email: str
    contact: str
    course_applied: str
    school_last_attended: str | None = None
    present_address: str | None = None
    date_of_birth: date | None = None
    age: int | None = None
    sex: Sex | None = None
    date_signed: str | None = None
    status: ApplicationStatus
    photo_url: str
    signature_url: str
    exam_date_time: datetime | None = None
    examiner_date_signed: datetime | None = None
    examiner_signature_url: str | None = None
    submitted_at: datetime
    archived: bool
    archived_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class SubmitApplicationResponse(CamelModel):
    message: str = "Application submitted successfully"
    application_id: UUID


class ApplicationListResponse(CamelModel):
    applications: list[ApplicationResponse]
    pagination: PaginationInfo


class ApplicationActionResponse(CamelModel):
    """Message plus the affected application."""

    message: str
    application: ApplicationResponse


class NotificationResponse(CamelModel):
    """Result of an admin-triggered email. Undelivered emails are queued for retry."""

    message: str
    sent: bool


class BreakdownItem(CamelModel):
    name: str | None
    count: int


class ApplicationStatsOverview(CamelModel):
    total_applications: int
    recent_applications: int
    status_breakdown: list[BreakdownItem]
    course_breakdown: list[BreakdownItem]


class ApplicationSnapshot(BaseModel):
    """
    Column-for-column copy of an application, used by backups.

    Kept in snake_case so a backup file maps straight back onto the model.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    last_name: str | None = None
    given_name: str | None = None
    middle_name: str | None = None
    email: str
    contact: str
    course_applied: str
    school_last_attended: str | None = None
    present_address: str | None = None
    date_of_birth: date | None = None
    age: int | None = None
    sex: Sex | None = None
    date_signed: str | None = None
    status: ApplicationStatus
    photo_url: str
    signature_url: str
    exam_date_time: datetime | None = None
    examiner_date_signed: datetime | None = None
    examiner_signature_url: str | None = None
    submitted_at: datetime
    archived: bool = False
    archived_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
