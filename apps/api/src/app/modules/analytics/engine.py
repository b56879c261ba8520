"""
Enrollment Analytics Engine

Turns application records and per-course targets into dashboard metrics:
achievement against target, variance, year-over-year growth and
status/course/month breakdowns.

Pure functions over already-loaded records. A record needs `submitted_at`,
`status` and `course_applied`.

Term windows (inclusive, by submission date):
    1st     January - March
    2nd     May - August
    summer  September - December
    all     the whole calendar year
April belongs to no term.
"""

import calendar
import math
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from app.modules.applications.models import ApplicationStatus
from app.modules.course_targets.models import AcademicTerm

TERM_MONTHS: dict[AcademicTerm, tuple[int, int]] = {
    AcademicTerm.ALL: (1, 12),
    AcademicTerm.FIRST: (1, 3),
    AcademicTerm.SECOND: (5, 8),
    AcademicTerm.SUMMER: (9, 12),
}

ADMITTED_STATUSES = {ApplicationStatus.ADMITTED, ApplicationStatus.ENROLLED}
MEETING_TARGET_THRESHOLD = 100
BELOW_TARGET_THRESHOLD = 80
COMPARISON_YEARS = 3
TOP_COURSES_LIMIT = 5


# ============================================
# Arithmetic
# ============================================


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3, -2.5 -> -2)."""
    return math.floor(value + 0.5)


def percentage(part: int, whole: int) -> int:
    """Whole-number percentage of part/whole; 0 when whole is not positive."""
    if whole <= 0:
        return 0
    return round_half_up(part / whole * 100)


def growth_rate(current: int, previous: int) -> int:
    """
    Percentage change from previous to current.

    A previous value of 0 gives 100 when current is positive, else 0.
    """
    if previous == 0:
        return 100 if current > 0 else 0
    return round_half_up((current - previous) / previous * 100)


# ============================================
# Windows and targets
# ============================================


@dataclass(frozen=True)
class DateWindow:
    """Inclusive submission-date range."""

    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=UTC)
        return self.start <= moment <= self.end


def term_window(year: int, term: AcademicTerm | None = None) -> DateWindow:
    """Window for a year and optional term (None means the whole year)."""
    first_month, last_month = TERM_MONTHS[term or AcademicTerm.ALL]
    last_day = calendar.monthrange(year, last_month)[1]
    return DateWindow(
        start=datetime(year, first_month, 1, tzinfo=UTC),
        end=datetime(year, last_month, last_day, 23, 59, 59, 999999, tzinfo=UTC),
    )


def year_window(first_year: int, last_year: int) -> DateWindow:
    """Window spanning whole calendar years first_year..last_year."""
    return DateWindow(
        start=term_window(first_year).start,
        end=term_window(last_year).end,
    )


def resolve_targets(
    persisted: Mapping[str, int],
    defaults: Mapping[str, int],
) -> dict[str, int]:
    """Persisted targets, plus the default for every course they do not cover."""
    targets = dict(persisted)
    for course_name, target in defaults.items():
        if course_name not in targets:
            targets[course_name] = target
    return targets


def _is_enrolled(record: Any) -> bool:
    return record.status == ApplicationStatus.ENROLLED


def _year_of(record: Any) -> int:
    submitted_at = record.submitted_at
    if submitted_at.tzinfo is not None:
        submitted_at = submitted_at.astimezone(UTC)
    return submitted_at.year


# ============================================
# Enrollment report
# ============================================


@dataclass(frozen=True)
class CourseAchievement:
    course_name: str
    target: int
    actual: int
    achievement: int
    variance: int


@dataclass
class EnrollmentReport:
    total_enrolled: int
    total_target: int
    courses_meeting_target: int
    courses_below_target: int
    average_achievement: int
    course_data: list[CourseAchievement] = field(default_factory=list)


def compute_enrollment(
    year: int,
    term: AcademicTerm | None,
    records: Iterable[Any],
    targets: Mapping[str, int],
) -> EnrollmentReport:
    """
    Achievement report for a year/term.

    Args:
        year: Calendar year
        term: Term, or None for the whole year
        records: Applications (anything outside the window is ignored)
        targets: Resolved {course_name: target}

    Returns:
        EnrollmentReport. total_enrolled counts every enrolled record in the
        window, including courses without a target.
    """
    window = term_window(year, term)
    enrolled = [r for r in records if _is_enrolled(r) and window.contains(r.submitted_at)]
    per_course = Counter(r.course_applied for r in enrolled)

    course_data = []
    for course_name, target in targets.items():
        actual = per_course.get(course_name, 0)
        course_data.append(
            CourseAchievement(
                course_name=course_name,
                target=target,
                actual=actual,
                achievement=percentage(actual, target),
                variance=actual - target,
            )
        )

    achievements = [c.achievement for c in course_data]

    return EnrollmentReport(
        total_enrolled=len(enrolled),
        total_target=sum(targets.values()),
        courses_meeting_target=sum(1 for a in achievements if a >= MEETING_TARGET_THRESHOLD),
        courses_below_target=sum(1 for a in achievements if a < BELOW_TARGET_THRESHOLD),
        average_achievement=(
            round_half_up(sum(achievements) / len(achievements)) if achievements else 0
        ),
        course_data=course_data,
    )


# ============================================
# Year comparison
# ============================================


@dataclass(frozen=True)
class YearSummary:
    year: int
    total_applications: int
    admissions: int
    enrollments: int
    enrollment_rate: int
    admission_to_enrollment_rate: int
    growth: int

    @property
    def enrollment(self) -> int:
        """Enrollment count under the key the dashboard reads."""
        return self.enrollments


@dataclass(frozen=True)
class CourseGrowth:
    name: str
    enrollment: int
    previous: int
    growth: int


@dataclass
class ComparisonReport:
    yearly_data: list[YearSummary] = field(default_factory=list)
    top_courses: list[CourseGrowth] = field(default_factory=list)


def comparison_years(year: int) -> list[int]:
    return list(range(year - COMPARISON_YEARS + 1, year + 1))


def compute_comparison(year: int, records: Iterable[Any]) -> ComparisonReport:
    """
    Three-year trailing comparison ending at `year`.

    Growth is year-over-year on enrollments (the first year is 0). Top
    courses are the five with the most enrollments in `year`, with growth
    against the previous year.
    """
    years = comparison_years(year)
    by_year: dict[int, list[Any]] = {y: [] for y in years}
    for record in records:
        record_year = _year_of(record)
        if record_year in by_year:
            by_year[record_year].append(record)

    yearly_data: list[YearSummary] = []
    for y in years:
        applications = by_year[y]
        admissions = sum(1 for r in applications if r.status in ADMITTED_STATUSES)
        enrollments = sum(1 for r in applications if _is_enrolled(r))
        growth = growth_rate(enrollments, yearly_data[-1].enrollments) if yearly_data else 0

        yearly_data.append(
            YearSummary(
                year=y,
                total_applications=len(applications),
                admissions=admissions,
                enrollments=enrollments,
                enrollment_rate=percentage(enrollments, len(applications)),
                admission_to_enrollment_rate=percentage(enrollments, admissions),
                growth=growth,
            )
        )

    current = Counter(r.course_applied for r in by_year[year] if _is_enrolled(r))
    previous = Counter(r.course_applied for r in by_year.get(year - 1, []) if _is_enrolled(r))

    ranked = sorted(current.items(), key=lambda item: (-item[1], item[0]))[:TOP_COURSES_LIMIT]
    top_courses = [
        CourseGrowth(
            name=name,
            enrollment=count,
            previous=previous.get(name, 0),
            growth=growth_rate(count, previous.get(name, 0)),
        )
        for name, count in ranked
    ]

    return ComparisonReport(yearly_data=yearly_data, top_courses=top_courses)


# ============================================
# Course detail
# ============================================


@dataclass(frozen=True)
class MonthCount:
    month: int  # 0 = January
    count: int
    month_name: str


@dataclass
class CourseDetail:
    course_name: str
    total_applications: int
    status_breakdown: dict[str, int]
    monthly_breakdown: list[MonthCount]


def compute_course_detail(course_name: str, records: Sequence[Any]) -> CourseDetail:
    """Status and month-of-submission breakdown for one course's applications."""
    statuses = Counter(
        r.status.value if isinstance(r.status, ApplicationStatus) else str(r.status)
        for r in records
    )
    months = Counter(
        (r.submitted_at.astimezone(UTC) if r.submitted_at.tzinfo else r.submitted_at).month - 1
        for r in records
    )

    return CourseDetail(
        course_name=course_name,
        total_applications=len(records),
        status_breakdown=dict(statuses),
        monthly_breakdown=[
            MonthCount(month=i, count=months.get(i, 0), month_name=calendar.month_abbr[i + 1])
            for i in range(12)
        ],
    )
