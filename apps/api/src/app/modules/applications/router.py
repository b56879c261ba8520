"""
Applications Router

Endpoints:
- POST /applications - Submit an application (public, multipart)
- GET /applications - List applications with filters and pagination
- GET /applications/archived - List archived applications
- GET /applications/stats/overview - Dashboard statistics
- GET /applications/{id} - Application details
- PUT /applications/{id} - Partial update
- DELETE /applications/{id} - Delete
- PATCH /applications/{id}/status - Change status (emails the applicant)
- POST /applications/{id}/send-missing-requirements
- POST /applications/{id}/send-custom-notification
- PATCH /applications/{id}/archive, /unarchive

Everything except submission requires an admin token.
"""

import logging
from datetime import date
from uuid import UUID

from fastapi import (
    APIRouter,
    BackgroundTasks,
    Depends,
    File,
    Form,
    HTTPException,
    Query,
    Request,
    UploadFile,
    status,
)
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AdminUser, get_current_admin_user
from app.core.database import get_db
from app.core.rate_limit import client_key, enforce_rate_limit
from app.modules.applications import service
from app.modules.applications.models import Sex
from app.modules.applications.schemas import (
    ApplicationActionResponse,
    ApplicationCreate,
    ApplicationListResponse,
    ApplicationResponse,
    ApplicationStatsOverview,
    ApplicationUpdate,
    CustomNotificationRequest,
    MissingRequirementsRequest,
    NotificationResponse,
    StatusUpdateRequest,
    SubmitApplicationResponse,
)
from app.modules.applications.service import ApplicationServiceError

logger = logging.getLogger(__name__)

router = APIRouter()

RATE_LIMIT_SUBMIT = (5, 3600)  # 5 submissions per hour per client


def _handle_service_error(e: ApplicationServiceError) -> None:
    """Convert service errors to HTTPExceptions."""
    raise HTTPException(
        status_code=e.status_code,
        detail={
            "error": e.error_code,
            "message": e.message,
        },
    ) from e


def _internal_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )


def _notification_response(sent: bool, what: str) -> NotificationResponse:
    if sent:
        return NotificationResponse(message=f"{what} sent successfully", sent=True)
    return NotificationResponse(message=f"{what} queued for retry", sent=False)


# ============================================
# Public submission
# ============================================


@router.post(
    "",
    response_model=SubmitApplicationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_application(
    request: Request,
    background_tasks: BackgroundTasks,
    name: str = Form(...),
    email: str = Form(...),
    contact: str = Form(...),
    course_applied: str = Form(..., alias="courseApplied"),
    last_name: str | None = Form(None, alias="lastName"),
    given_name: str | None = Form(None, alias="givenName"),
    middle_name: str | None = Form(None, alias="middleName"),
    date_of_birth: date | None = Form(None, alias="dateOfBirth"),
    age: int | None = Form(None),
    sex: Sex | None = Form(None),
    school_last_attended: str | None = Form(None, alias="schoolLastAttended"),
    present_address: str | None = Form(None, alias="presentAddress"),
    date_signed: str | None = Form(None, alias="dateSigned"),
    photo: UploadFile = File(...),
    signature: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
) -> SubmitApplicationResponse:
    """
    Submit an admission application with photo and signature images.

    Raises:
        HTTPException 400: Missing fields or non-image documents
        HTTPException 413: Document larger than the upload limit
        HTTPException 502: Document storage failed
    """
    await enforce_rate_limit(client_key(request, "submit_application"), *RATE_LIMIT_SUBMIT)

    try:
        data = ApplicationCreate(
            name=name,
            email=email,
            contact=contact,
            course_applied=course_applied,
            last_name=last_name,
            given_name=given_name,
            middle_name=middle_name,
            date_of_birth=date_of_birth,
            age=age,
            sex=sex,
            school_last_attended=school_last_attended,
            present_address=present_address,
            date_signed=date_signed,
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "VALIDATION_ERROR",
                "message": "; ".join(err["msg"] for err in e.errors()),
            },
        ) from e

    try:
        photo_bytes = await photo.read()
        signature_bytes = await signature.read()
        service.validate_document("photo", photo_bytes, photo.content_type)
        service.validate_document("signature", signature_bytes, signature.content_type)

        application = await service.submit_application(db, data, photo_bytes, signature_bytes)
    except ApplicationServiceError as e:
        logger.error(f"Application service error: {e.message}")
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Unexpected error submitting application: {e}")
        raise _internal_error() from e

    background_tasks.add_task(
        service.send_submission_confirmation,
        application.email,
        application.name,
        str(application.id),
    )

    return SubmitApplicationResponse(application_id=application.id)


# ============================================
# Admin queries
# ============================================


@router.get("", response_model=ApplicationListResponse)
async def list_applications(
    status_filter: str | None = Query(None, alias="status"),
    course: str | None = Query(None, description="Course name, or comma-separated list"),
    search: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin_user),
) -> ApplicationListResponse:
    """List non-archived applications, newest first."""
    try:
        result = await service.list_applications(
            db, status=status_filter, course=course, search=search, page=page, limit=limit
        )
        return ApplicationListResponse(
            applications=[ApplicationResponse.model_validate(a) for a in result["applications"]],
            pagination=result["pagination"],
        )
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error listing applications: {e}")
        raise _internal_error() from e


@router.get("/archived", response_model=ApplicationListResponse)
async def list_archived_applications(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin_user),
) -> ApplicationListResponse:
    """List archived applications, most recently archived first."""
    try:
        result = await service.list_archived(db, page=page, limit=limit)
        return ApplicationListResponse(
            applications=[ApplicationResponse.model_validate(a) for a in result["applications"]],
            pagination=result["pagination"],
        )
    except Exception as e:
        logger.exception(f"Error listing archived applications: {e}")
        raise _internal_error() from e


@router.get("/stats/overview", response_model=ApplicationStatsOverview)
async def get_overview_stats(
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin_user),
) -> ApplicationStatsOverview:
    """Totals, last-7-days count, status and course breakdowns."""
    try:
        return await service.get_overview_stats(db)
    except Exception as e:
        logger.exception(f"Error getting application stats: {e}")
        raise _internal_error() from e


@router.get("/{application_id}", response_model=ApplicationResponse)
async def get_application(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin_user),
) -> ApplicationResponse:
    try:
        application = await service.get_application(db, application_id)
        return ApplicationResponse.model_validate(application)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error getting application {application_id}: {e}")
        raise _internal_error() from e


# ============================================
# Admin mutations
# ============================================


@router.put("/{application_id}", response_model=ApplicationActionResponse)
async def update_application(
    application_id: UUID,
    data: ApplicationUpdate,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin_user),
) -> ApplicationActionResponse:
    """Update name, email, contact, course or status."""
    try:
        application = await service.update_application(db, application_id, data)
        logger.info(f"Admin {admin.id} updated application {application_id}")
        return ApplicationActionResponse(
            message="Application updated successfully",
            application=ApplicationResponse.model_validate(application),
        )
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error updating application {application_id}: {e}")
        raise _internal_error() from e


@router.delete("/{application_id}")
async def delete_application(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin_user),
) -> dict:
    try:
        await service.delete_application(db, application_id)
        logger.info(f"Admin {admin.id} deleted application {application_id}")
        return {"message": "Application deleted successfully"}
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error deleting application {application_id}: {e}")
        raise _internal_error() from e


@router.patch("/{application_id}/status", response_model=ApplicationActionResponse)
async def update_application_status(
    application_id: UUID,
    body: StatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin_user),
) -> ApplicationActionResponse:
    """
    Change an application's status.

    Raises:
        HTTPException 400: Unknown status value
        HTTPException 404: Application not found
    """
    try:
        application = await service.update_status(db, application_id, body.status)
        logger.info(
            f"Admin {admin.id} set application {application_id} to {application.status.value}"
        )
        return ApplicationActionResponse(
            message="Application status updated successfully",
            application=ApplicationResponse.model_validate(application),
        )
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error updating status of application {application_id}: {e}")
        raise _internal_error() from e


@router.patch("/{application_id}/archive", response_model=ApplicationActionResponse)
async def archive_application(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin_user),
) -> ApplicationActionResponse:
    try:
        application = await service.set_archived(db, application_id, True)
        return ApplicationActionResponse(
            message="Application archived successfully",
            application=ApplicationResponse.model_validate(application),
        )
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error archiving application {application_id}: {e}")
        raise _internal_error() from e


@router.patch("/{application_id}/unarchive", response_model=ApplicationActionResponse)
async def unarchive_application(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin_user),
) -> ApplicationActionResponse:
    try:
        application = await service.set_archived(db, application_id, False)
        return ApplicationActionResponse(
            message="Application unarchived successfully",
            application=ApplicationResponse.model_validate(application),
        )
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error unarchiving application {application_id}: {e}")
        raise _internal_error() from e


# ============================================
# Notifications
# ============================================


@router.post("/{application_id}/send-missing-requirements", response_model=NotificationResponse)
async def send_missing_requirements(
    application_id: UUID,
    body: MissingRequirementsRequest,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin_user),
) -> NotificationResponse:
    try:
        sent = await service.send_missing_requirements(
            db, application_id, body.missing_items, body.custom_message
        )
        logger.info(f"Admin {admin.id} sent missing requirements for {application_id}")
        return _notification_response(sent, "Missing requirements notification")
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error sending missing requirements for {application_id}: {e}")
        raise _internal_error() from e


@router.post("/{application_id}/send-custom-notification", response_model=NotificationResponse)
async def send_custom_notification(
    application_id: UUID,
    body: CustomNotificationRequest,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin_user),
) -> NotificationResponse:
    try:
        sent = await service.send_custom_notification(
            db, application_id, body.subject, body.message, body.notification_type
        )
        logger.info(f"Admin {admin.id} sent custom notification for {application_id}")
        return _notification_response(sent, "Custom notification")
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error sending custom notification for {application_id}: {e}")
        raise _internal_error() from e
