"""
Course Targets Router

Endpoints:
- GET /course-targets - Active targets for a year (and term)
- POST /course-targets - Create or update a target
- PUT /course-targets/{id} - Change a target value
- DELETE /course-targets/{id} - Delete a target
- POST /course-targets/bulk - Upsert many targets for one year/term
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AdminUser, get_current_admin_user
from app.core.database import get_db
from app.modules.course_targets import service
from app.modules.course_targets.models import AcademicTerm
from app.modules.course_targets.schemas import (
    BulkCourseTargetRequest,
    BulkCourseTargetResponse,
    CourseTargetActionResponse,
    CourseTargetCreate,
    CourseTargetResponse,
    CourseTargetUpdate,
)
from app.modules.course_targets.service import CourseTargetServiceError

logger = logging.getLogger(__name__)

router = APIRouter()


def _handle_service_error(e: CourseTargetServiceError) -> None:
    raise HTTPException(
        status_code=e.status_code,
        detail={
            "error": e.error_code,
            "message": e.message,
        },
    ) from e


def _internal_error(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"error": "INTERNAL_ERROR", "message": message},
    )


@router.get("", response_model=list[CourseTargetResponse])
async def list_course_targets(
    year: str | None = Query(None, min_length=4, max_length=10),
    term: AcademicTerm | None = Query(None),
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin_user),
) -> list[CourseTargetResponse]:
    try:
        targets = await service.list_targets(db, year, term)
        return [CourseTargetResponse.model_validate(t) for t in targets]
    except Exception as e:
        logger.exception(f"Error fetching course targets: {e}")
        raise _internal_error("Server error while fetching course targets") from e


@router.post("", response_model=CourseTargetActionResponse)
async def save_course_target(
    data: CourseTargetCreate,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin_user),
) -> CourseTargetActionResponse:
    """Create the target for (course, year, term), or update it if it exists."""
    try:
        course_target, created = await service.save_target(db, data, admin.id)
        return CourseTargetActionResponse(
            message=(
                "Course target created successfully"
                if created
                else "Course target updated successfully"
            ),
            target=CourseTargetResponse.model_validate(course_target),
        )
    except Exception as e:
        logger.exception(f"Error saving course target: {e}")
        raise _internal_error("Server error while saving course target") from e


@router.post("/bulk", response_model=BulkCourseTargetResponse)
async def bulk_save_course_targets(
    data: BulkCourseTargetRequest,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin_user),
) -> BulkCourseTargetResponse:
    try:
        saved = await service.bulk_save(db, data, admin.id)
        return BulkCourseTargetResponse(
            targets=[CourseTargetResponse.model_validate(t) for t in saved],
            count=len(saved),
        )
    except Exception as e:
        logger.exception(f"Error in bulk course target update: {e}")
        raise _internal_error("Server error during bulk update") from e


@router.put("/{target_id}", response_model=CourseTargetActionResponse)
async def update_course_target(
    target_id: UUID,
    data: CourseTargetUpdate,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin_user),
) -> CourseTargetActionResponse:
    try:
        course_target = await service.update_target(db, target_id, data.target, admin.id)
        return CourseTargetActionResponse(
            message="Course target updated successfully",
            target=CourseTargetResponse.model_validate(course_target),
        )
    except CourseTargetServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error updating course target {target_id}: {e}")
        raise _internal_error("Server error while updating course target") from e


@router.delete("/{target_id}")
async def delete_course_target(
    target_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin_user),
) -> dict:
    try:
        await service.delete_target(db, target_id)
        return {"message": "Course target deleted successfully"}
    except CourseTargetServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error deleting course target {target_id}: {e}")
        raise _internal_error("Server error while deleting course target") from e
