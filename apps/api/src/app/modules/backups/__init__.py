"""
Backups Module

Scheduled and on-demand JSON backups of applications, admins and course
targets, with restore.
"""

from app.modules.backups.jobs import register_backup_jobs
from app.modules.backups.router import router

__all__ = ["register_backup_jobs", "router"]
