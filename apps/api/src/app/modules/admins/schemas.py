"""Admin schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from app.modules.admins.models import AdminRole


class AdminSnapshot(BaseModel):
    """Column-for-column copy of an admin account, used by backups."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    password_hash: str
    name: str | None = None
    role: AdminRole = AdminRole.ADMIN
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None
