"""
Applications Service Layer

Business logic for admission applications: public submission with document
uploads, the admin review workflow (status changes, archival, edits) and
applicant notifications.

Email delivery never fails a request. Undelivered emails are placed on the
retry queue by send_templated_email and picked up by the email_queue_retry job.
"""

import asyncio
import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.email import send_templated_email
from app.core.storage import upload_file
from app.modules.applications import repository
from app.modules.applications.models import ApplicantRecord, ApplicationStatus
from app.modules.applications.schemas import (
    ApplicationCreate,
    ApplicationStatsOverview,
    ApplicationUpdate,
    BreakdownItem,
)
from app.modules.shared import PaginationInfo, page_count

logger = logging.getLogger(__name__)

DEFAULT_MISSING_ITEMS = ["Updated photo", "Clear signature", "Additional documents"]
DECISION_STATUSES = {ApplicationStatus.ADMITTED, ApplicationStatus.REJECTED}
MAX_PAGE_SIZE = 100


class ApplicationServiceError(Exception):
    """Base exception for application service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class ApplicationNotFoundError(ApplicationServiceError):
    """Raised when an application is not found."""

    def __init__(self, application_id: UUID | None = None):
        message = (
            f"Application {application_id} not found" if application_id else "Application not found"
        )
        super().__init__(
            message=message,
            error_code="APPLICATION_NOT_FOUND",
            status_code=404,
        )


class InvalidStatusError(ApplicationServiceError):
    """Raised when a status value is outside the fixed enumeration."""

    def __init__(self, value: str):
        valid = ", ".join(s.value for s in ApplicationStatus)
        super().__init__(
            message=f"Invalid status '{value}'. Valid statuses: {valid}",
            error_code="INVALID_STATUS",
            status_code=400,
        )


class UploadFailedError(ApplicationServiceError):
    """Raised when a document could not be stored."""

    def __init__(self, field: str, reason: str | None = None):
        message = f"Failed to upload {field}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message=message,
            error_code="UPLOAD_FAILED",
            status_code=502,
        )


class FileTooLargeError(ApplicationServiceError):
    """Raised when an uploaded document exceeds the size limit."""

    def __init__(self, field: str, limit_bytes: int):
        super().__init__(
            message=f"{field} exceeds the {limit_bytes // (1024 * 1024)}MB limit",
            error_code="FILE_TOO_LARGE",
            status_code=413,
        )


class InvalidFileError(ApplicationServiceError):
    """Raised when a required document is missing or is not an image."""

    def __init__(self, field: str):
        super().__init__(
            message=f"{field} must be an image file",
            error_code="INVALID_FILE",
            status_code=400,
        )


def parse_status(value: str | ApplicationStatus) -> ApplicationStatus:
    """
    Convert a raw status value to ApplicationStatus.

    Raises:
        InvalidStatusError: If the value is not a known status
    """
    if isinstance(value, ApplicationStatus):
        return value
    try:
        return ApplicationStatus(value.strip().lower())
    except (ValueError, AttributeError) as e:
        raise InvalidStatusError(str(value)) from e


def validate_document(field: str, content: bytes, content_type: str | None) -> None:
    """
    Check an uploaded document before it is sent to storage.

    Raises:
        InvalidFileError: Empty file or non-image content type
        FileTooLargeError: Larger than settings.max_upload_bytes
    """
    if not content or not (content_type or "").startswith("image/"):
        raise InvalidFileError(field)
    if len(content) > settings.max_upload_bytes:
        raise FileTooLargeError(field, settings.max_upload_bytes)


async def _get_or_raise(db: AsyncSession, application_id: UUID) -> ApplicantRecord:
    application = await repository.get_by_id(db, application_id)
    if not application:
        logger.warning(f"Application not found: {application_id}")
        raise ApplicationNotFoundError(application_id)
    return application


async def _notify(to_email: str, template: str, data: dict) -> bool:
    """Send a templated email, logging instead of raising on failure."""
    try:
        return await send_templated_email(to_email, template, data)
    except Exception as e:
        logger.error(f"Exception sending '{template}' email: {e}")
        return False


# ============================================
# Public submission
# ============================================


async def submit_application(
    db: AsyncSession,
    data: ApplicationCreate,
    photo: bytes,
    signature: bytes,
) -> ApplicantRecord:
    """
    Store a new application with its photo and signature.

    Both documents are uploaded concurrently; the record is only created when
    both uploads succeed.

    Raises:
        UploadFailedError: If either upload fails or times out
    """
    photo_result, signature_result = await asyncio.gather(
        upload_file(photo, "photos"),
        upload_file(signature, "signatures"),
    )

    if not photo_result.success:
        raise UploadFailedError("photo", photo_result.error)
    if not signature_result.success:
        raise UploadFailedError("signature", signature_result.error)

    application = await repository.create(
        db,
        **data.model_dump(),
        photo_url=photo_result.url,
        signature_url=signature_result.url,
        status=ApplicationStatus.PENDING,
    )
    logger.info(f"Created application {application.id} for course: {application.course_applied}")

    return application


async def send_submission_confirmation(
    to_email: str, student_name: str, application_id: str
) -> bool:
    """Confirmation email sent after the submit response has gone out."""
    return await _notify(
        to_email,
        "submission_confirmation",
        {"student_name": student_name, "application_id": application_id},
    )


# ============================================
# Admin queries
# ============================================


async def list_applications(
    db: AsyncSession,
    *,
    status: str | None = None,
    course: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 10,
) -> dict:
    """
    Paginated list of non-archived applications.

    A comma-separated `course` filters by membership; a single value is a
    case-insensitive substring match.
    """
    page = max(1, page)
    limit = min(max(1, limit), MAX_PAGE_SIZE)

    courses: list[str] | None = None
    course_contains: str | None = None
    if course:
        if "," in course:
            courses = [c.strip() for c in course.split(",") if c.strip()]
        else:
            course_contains = course.strip()

    applications, total = await repository.list_applications(
        db,
        status=parse_status(status) if status else None,
        courses=courses,
        course_contains=course_contains,
        search=search.strip() if search else None,
        skip=(page - 1) * limit,
        limit=limit,
    )

    logger.info(f"Found {total} applications, returning {len(applications)}")

    return {
        "applications": applications,
        "pagination": PaginationInfo(current=page, pages=page_count(total, limit), total=total),
    }


async def list_archived(db: AsyncSession, *, page: int = 1, limit: int = 10) -> dict:
    """Paginated list of archived applications."""
    page = max(1, page)
    limit = min(max(1, limit), MAX_PAGE_SIZE)

    applications, total = await repository.list_archived(db, skip=(page - 1) * limit, limit=limit)

    return {
        "applications": applications,
        "pagination": PaginationInfo(current=page, pages=page_count(total, limit), total=total),
    }


async def get_application(db: AsyncSession, application_id: UUID) -> ApplicantRecord:
    """
    Raises:
        ApplicationNotFoundError: If the application doesn't exist
    """
    return await _get_or_raise(db, application_id)


async def get_overview_stats(db: AsyncSession) -> ApplicationStatsOverview:
    stats = await repository.get_overview_stats(db)
    return ApplicationStatsOverview(
        total_applications=stats["total"],
        recent_applications=stats["recent"],
        status_breakdown=[BreakdownItem(name=n, count=c) for n, c in stats["status_breakdown"]],
        course_breakdown=[BreakdownItem(name=n, count=c) for n, c in stats["course_breakdown"]],
    )


# ============================================
# Admin mutations
# ============================================


async def update_application(
    db: AsyncSession, application_id: UUID, data: ApplicationUpdate
) -> ApplicantRecord:
    """
    Partially update an application.

    Raises:
        ApplicationNotFoundError: If the application doesn't exist
        InvalidStatusError: If a provided status is not a known value
    """
    fields = data.model_dump(exclude_none=True)
    if "status" in fields:
        fields["status"] = parse_status(fields["status"])

    application = await repository.update_fields(db, application_id, **fields)
    if not application:
        raise ApplicationNotFoundError(application_id)

    logger.info(f"Updated application {application_id}: {sorted(fields)}")
    return application


async def update_status(
    db: AsyncSession, application_id: UUID, status_value: str
) -> ApplicantRecord:
    """
    Change an application's status and notify the applicant.

    `incomplete` sends the missing-requirements email with the default item
    list; `admitted` and `rejected` send the admission result.

    Raises:
        InvalidStatusError: If the status is not a known value
        ApplicationNotFoundError: If the application doesn't exist
    """
    new_status = parse_status(status_value)
    await _get_or_raise(db, application_id)

    application = await repository.update_status(db, application_id, new_status)
    logger.info(f"Application {application_id} status set to {new_status.value}")

    if new_status == ApplicationStatus.INCOMPLETE:
        await _notify(
            application.email,
            "missing_requirements",
            {"student_name": application.name, "missing_items": DEFAULT_MISSING_ITEMS},
        )
    elif new_status in DECISION_STATUSES:
        await _notify(
            application.email,
            "admission_result",
            {
                "student_name": application.name,
                "status": new_status.value,
                "course": application.course_applied,
            },
        )

    return application


async def set_archived(db: AsyncSession, application_id: UUID, archived: bool) -> ApplicantRecord:
    """
    Raises:
        ApplicationNotFoundError: If the application doesn't exist
    """
    application = await repository.set_archived(db, application_id, archived)
    if not application:
        raise ApplicationNotFoundError(application_id)

    logger.info(f"Application {application_id} {'archived' if archived else 'unarchived'}")
    return application


async def delete_application(db: AsyncSession, application_id: UUID) -> None:
    """
    Raises:
        ApplicationNotFoundError: If the application doesn't exist
    """
    if not await repository.delete_by_id(db, application_id):
        raise ApplicationNotFoundError(application_id)
    logger.info(f"Deleted application {application_id}")


# ============================================
# Notifications
# ============================================


async def send_missing_requirements(
    db: AsyncSession,
    application_id: UUID,
    missing_items: list[str],
    custom_message: str | None = None,
) -> bool:
    """
    Email the applicant the list of missing requirements.

    Returns:
        True if delivered now, False if queued for retry
    """
    application = await _get_or_raise(db, application_id)
    return await _notify(
        application.email,
        "missing_requirements",
        {
            "student_name": application.name,
            "missing_items": missing_items,
            "custom_message": custom_message,
        },
    )


async def send_custom_notification(
    db: AsyncSession,
    application_id: UUID,
    subject: str,
    message: str,
    notification_type: str = "general",
) -> bool:
    """
    Email the applicant a free-form message from the admissions office.

    Returns:
        True if delivered now, False if queued for retry
    """
    application = await _get_or_raise(db, application_id)
    return await _notify(
        application.email,
        "custom_notification",
        {
            "student_name": application.name,
            "subject": subject,
            "message": message,
            "notification_type": notification_type,
        },
    )
