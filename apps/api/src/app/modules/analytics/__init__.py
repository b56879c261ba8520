"""
Analytics Module

Enrollment achievement, year-over-year comparison and per-course breakdowns.
"""

from app.modules.analytics.router import router

__all__ = ["router"]
