"""
Applications Module

Admission applications submitted by prospective students, and the admin
workflow around them.
"""

from app.modules.applications.jobs import register_application_jobs
from app.modules.applications.models import ApplicantRecord, ApplicationStatus, Sex
from app.modules.applications.router import router

__all__ = [
    "ApplicantRecord",
    "ApplicationStatus",
    "Sex",
    "register_application_jobs",
    "router",
]
