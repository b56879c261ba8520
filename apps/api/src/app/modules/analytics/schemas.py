"""Analytics response schemas. Field names match the admin dashboard (camelCase)."""

from app.modules.shared import CamelModel


class CourseData(CamelModel):
    course_name: str
    target: int
    actual: int
    achievement: int
    variance: int


class EnrollmentAnalyticsResponse(CamelModel):
    total_enrolled: int
    total_target: int
    courses_meeting_target: int
    courses_below_target: int
    average_achievement: int
    course_data: list[CourseData]


class YearlyData(CamelModel):
    year: int
    total_applications: int
    admissions: int
    enrollments: int
    enrollment: int
    enrollment_rate: int
    admission_to_enrollment_rate: int
    growth: int


class TopCourse(CamelModel):
    name: str
    enrollment: int
    previous: int
    growth: int


class ComparisonResponse(CamelModel):
    yearly_data: list[YearlyData]
    top_courses: list[TopCourse]


class MonthlyBreakdownItem(CamelModel):
    month: int
    count: int
    month_name: str


class CourseAnalyticsResponse(CamelModel):
    course_name: str
    total_applications: int
    status_breakdown: dict[str, int]
    monthly_breakdown: list[MonthlyBreakdownItem]
