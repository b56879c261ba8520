"""
Exports Module

Downloadable CSV, Excel, statistics and zip package exports.
"""

from app.modules.exports.jobs import register_export_jobs
from app.modules.exports.router import router

__all__ = ["register_export_jobs", "router"]
