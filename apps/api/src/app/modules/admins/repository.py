"""
Admin Repository

Database operations for administrator accounts.
"""

import logging
from collections.abc import Iterable
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.admins.models import Admin, AdminRole

logger = logging.getLogger(__name__)


class AdminRepository:
    """Repository for admin database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        email: str,
        password_hash: str,
        name: str | None = None,
        role: AdminRole = AdminRole.ADMIN,
        is_active: bool = True,
    ) -> Admin:
        """
        Create a new admin.

        Args:
            db: Database session
            email: Login email (stored lower-cased)
            password_hash: bcrypt hash
            name: Display name
            role: Admin role
            is_active: Whether the account may log in

        Returns:
            Created Admin instance
        """
        admin = Admin(
            email=email.strip().lower(),
            password_hash=password_hash,
            name=name,
            role=role,
            is_active=is_active,
        )

        db.add(admin)
        await db.commit()
        await db.refresh(admin)

        logger.info(f"Created admin: {admin.id} ({admin.role.value})")
        return admin

    @staticmethod
    async def get_by_id(db: AsyncSession, admin_id: UUID) -> Admin | None:
        return await db.get(Admin, admin_id)

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> Admin | None:
        """Look up an admin by email (case-insensitive)."""
        result = await db.execute(select(Admin).where(Admin.email == email.strip().lower()))
        return result.scalar_one_or_none()

    @staticmethod
    async def list_all(db: AsyncSession) -> list[Admin]:
        result = await db.execute(select(Admin).order_by(Admin.created_at))
        return list(result.scalars().all())

    @staticmethod
    async def count(db: AsyncSession) -> int:
        result = await db.execute(select(func.count()).select_from(Admin))
        return result.scalar() or 0

    @staticmethod
    async def updated_since(db: AsyncSession, cutoff: datetime) -> list[Admin]:
        result = await db.execute(
            select(Admin).where(Admin.updated_at > cutoff).order_by(Admin.updated_at)
        )
        return list(result.scalars().all())

    @staticmethod
    async def replace_all(db: AsyncSession, rows: Iterable[dict[str, Any]]) -> int:
        """
        Replace every admin row (backup restore). The caller commits.

        Returns:
            Number of admins written
        """
        await db.execute(delete(Admin))
        admins = [Admin(**row) for row in rows]
        db.add_all(admins)
        await db.flush()
        return len(admins)
