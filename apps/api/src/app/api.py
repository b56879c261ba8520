from fastapi import APIRouter

from app.modules.analytics import router as analytics_router
from app.modules.applications import router as applications_router
from app.modules.auth import router as auth_router
from app.modules.backups import router as backups_router
from app.modules.course_targets import router as course_targets_router
from app.modules.enrollment_import import router as enrollment_import_router
from app.modules.exports import router as exports_router
from app.modules.jobs import router as jobs_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])

api_router.include_router(applications_router, prefix="/applications", tags=["Applications"])

api_router.include_router(
    enrollment_import_router, prefix="/enrollment-import", tags=["Enrollment Import"]
)

api_router.include_router(analytics_router, prefix="/analytics", tags=["Analytics"])

api_router.include_router(
    course_targets_router, prefix="/course-targets", tags=["Course Targets"]
)

api_router.include_router(backups_router, prefix="/backup", tags=["Admin - Backups"])

api_router.include_router(exports_router, prefix="/export", tags=["Admin - Exports"])

api_router.include_router(jobs_router, prefix="/admin/jobs", tags=["Admin - Jobs"])
