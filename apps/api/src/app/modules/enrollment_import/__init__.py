"""
Enrollment Import Module

Batch enrollment from registrar spreadsheets using fuzzy identity matching.
"""

from app.modules.enrollment_import.router import router

__all__ = ["router"]
