"""
Shared fixtures for API tests.

Database access is mocked: services receive an AsyncMock session, and code
that opens its own sessions receives a factory yielding that same mock.
"""

from contextlib import asynccontextmanager
from datetime import UTC, date, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from app.modules.applications.models import ApplicationStatus


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.refresh = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def session_factory(mock_db):
    """Session factory whose sessions are all `mock_db`."""

    @asynccontextmanager
    async def factory():
        yield mock_db

    return factory


def make_application(
    *,
    last_name: str | None = "cruz",
    given_name: str | None = "ana",
    email: str = "a@x.com",
    date_of_birth: date | None = date(2000, 1, 1),
    status: ApplicationStatus = ApplicationStatus.PENDING,
    course_applied: str = "Bachelor of Science in Nursing",
    submitted_at: datetime | None = None,
    **extra,
) -> SimpleNamespace:
    """Lightweight stand-in for an ApplicantRecord."""
    fields = {
        "id": uuid4(),
        "name": " ".join(part for part in (given_name, last_name) if part) or "Applicant",
        "last_name": last_name,
        "given_name": given_name,
        "middle_name": None,
        "email": email,
        "contact": "09171234567",
        "date_of_birth": date_of_birth,
        "status": status,
        "course_applied": course_applied,
        "submitted_at": submitted_at or datetime(2025, 2, 1, 8, 0, tzinfo=UTC),
        "photo_url": "https://res.cloudinary.com/sam/photos/p.jpg",
        "signature_url": "https://res.cloudinary.com/sam/signatures/s.png",
        "archived": False,
    }
    fields.update(extra)
    return SimpleNamespace(**fields)


@pytest.fixture
def application_factory():
    return make_application
