"""
Shared Module Helpers

Base schema and ORM mixins reused across feature modules.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy import DateTime, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column


class CamelModel(BaseModel):
    """
    Response/request schema serialized with camelCase keys.

    The admin dashboard consumes camelCase JSON (totalEnrolled, courseName, ...);
    Python code keeps snake_case attribute names.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class IdMixin:
    """UUID primary key."""

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)


class TimestampMixin:
    """created_at / updated_at audit columns."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class PaginationInfo(CamelModel):
    """Page metadata for list endpoints."""

    current: int
    pages: int
    total: int


def page_count(total: int, limit: int) -> int:
    """Number of pages needed for `total` items at `limit` per page."""
    return (total + limit - 1) // limit if limit > 0 else 0
