"""Course Targets Schemas"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.modules.course_targets.models import AcademicTerm
from app.modules.shared import CamelModel


class CourseTargetCreate(CamelModel):
    course_name: str = Field(..., min_length=1, max_length=200)
    target: int = Field(..., ge=0)
    academic_year: str | None = Field(None, min_length=4, max_length=10)
    term: AcademicTerm | None = None


class CourseTargetUpdate(CamelModel):
    target: int = Field(..., ge=0)


class BulkTargetEntry(CamelModel):
    """One bulk entry. Entries without a course name or target are skipped."""

    course_name: str | None = None
    target: int | None = Field(None, ge=0)


class BulkCourseTargetRequest(CamelModel):
    targets: list[BulkTargetEntry]
    academic_year: str | None = Field(None, min_length=4, max_length=10)
    term: AcademicTerm | None = None


class CourseTargetResponse(CamelModel):
    id: UUID
    course_name: str
    target: int
    academic_year: str
    term: AcademicTerm
    is_active: bool
    created_by: UUID | None = None
    updated_by: UUID | None = None
    created_at: datetime
    updated_at: datetime


class CourseTargetActionResponse(CamelModel):
    message: str
    target: CourseTargetResponse


class BulkCourseTargetResponse(CamelModel):
    message: str = "Bulk update completed successfully"
    targets: list[CourseTargetResponse]
    count: int


class CourseTargetSnapshot(BaseModel):
    """Column-for-column copy of a course target, used by backups."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    course_name: str
    target: int
    academic_year: str
    term: AcademicTerm
    is_active: bool = True
    created_by: UUID | None = None
    updated_by: UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
