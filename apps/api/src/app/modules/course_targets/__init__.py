"""Course Targets Module"""

from app.modules.course_targets.models import AcademicTerm, CourseTarget
from app.modules.course_targets.router import router

__all__ = ["AcademicTerm", "CourseTarget", "router"]
