"""
Analytics Router

Endpoints:
- GET /analytics/enrollment - Achievement against course targets for a year/term
- GET /analytics/comparison - Three-year comparison and top courses
- GET /analytics/course/{course_name} - One course's status and monthly breakdown
"""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AdminUser, get_current_admin_user
from app.core.database import get_db
from app.modules.analytics import service
from app.modules.analytics.schemas import (
    ComparisonResponse,
    CourseAnalyticsResponse,
    EnrollmentAnalyticsResponse,
)
from app.modules.course_targets.models import AcademicTerm

logger = logging.getLogger(__name__)

router = APIRouter()


def _current_year() -> int:
    return datetime.now(UTC).year


def _internal_error(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"error": "INTERNAL_ERROR", "message": message},
    )


@router.get("/enrollment", response_model=EnrollmentAnalyticsResponse)
async def get_enrollment_analytics(
    year: int | None = Query(None, ge=1900, le=9999),
    term: AcademicTerm = Query(AcademicTerm.ALL),
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin_user),
) -> EnrollmentAnalyticsResponse:
    try:
        report = await service.get_enrollment_analytics(db, year or _current_year(), term)
        return EnrollmentAnalyticsResponse.model_validate(report)
    except Exception as e:
        logger.exception(f"Analytics enrollment error: {e}")
        raise _internal_error("Server error while fetching analytics data") from e


@router.get("/comparison", response_model=ComparisonResponse)
async def get_comparison(
    year: int | None = Query(None, ge=1900, le=9999),
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin_user),
) -> ComparisonResponse:
    try:
        report = await service.get_comparison(db, year or _current_year())
        return ComparisonResponse.model_validate(report)
    except Exception as e:
        logger.exception(f"Analytics comparison error: {e}")
        raise _internal_error("Server error while fetching comparison data") from e


@router.get("/course/{course_name}", response_model=CourseAnalyticsResponse)
async def get_course_analytics(
    course_name: str,
    year: int | None = Query(None, ge=1900, le=9999),
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin_user),
) -> CourseAnalyticsResponse:
    try:
        detail = await service.get_course_detail(db, course_name, year or _current_year())
        return CourseAnalyticsResponse.model_validate(detail)
    except Exception as e:
        logger.exception(f"Course analytics error: {e}")
        raise _internal_error("Server error while fetching course analytics") from e
