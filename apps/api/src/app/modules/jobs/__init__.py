"""Background job administration."""

from app.modules.jobs.router import router

__all__ = ["router"]
