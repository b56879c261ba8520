"""
Admin Models

Staff accounts that sign in to the admissions dashboard.
"""

from enum import Enum

from sqlalchemy import Boolean, String, Text
from sqlalchemy.dialects.postgresql import ENUM
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.modules.shared import IdMixin, TimestampMixin


class AdminRole(str, Enum):
    """Staff roles."""

    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class Admin(IdMixin, TimestampMixin, Base):
    """Administrator account (email + bcrypt password hash)."""

    __tablename__ = "admins"

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    role: Mapped[AdminRole] = mapped_column(
        ENUM(AdminRole, name="admin_role", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=AdminRole.ADMIN,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Admin(id={self.id}, email={self.email}, role={self.role.value})>"
