"""
Admins module - staff accounts for the admissions dashboard.
"""

from app.modules.admins.models import Admin, AdminRole
from app.modules.admins.repository import AdminRepository

__all__ = ["Admin", "AdminRole", "AdminRepository"]
