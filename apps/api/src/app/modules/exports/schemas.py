"""Export schemas."""

from datetime import datetime

from app.modules.applications.schemas import BreakdownItem
from app.modules.shared import CamelModel


class StatsSummary(CamelModel):
    total_applications: int
    total_admins: int
    oldest_application: datetime | None = None
    newest_application: datetime | None = None


class MonthlyCount(CamelModel):
    year: int
    month: int
    count: int


class SystemInfo(CamelModel):
    python_version: str
    platform: str
    uptime_seconds: float


class SystemStats(CamelModel):
    """Statistics snapshot written by the stats export and export packages."""

    export_date: datetime
    summary: StatsSummary
    status_breakdown: list[BreakdownItem]
    course_breakdown: list[BreakdownItem]
    monthly_applications: list[MonthlyCount]
    recent_applications: int
    system_info: SystemInfo


class CleanupResponse(CamelModel):
    message: str
    cleaned: int
