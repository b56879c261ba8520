"""Backup schemas."""

from datetime import datetime
from typing import Literal

from app.modules.shared import CamelModel

BackupType = Literal["full", "incremental"]


class BackupInfo(CamelModel):
    name: str
    type: BackupType
    timestamp: datetime
    size: int
    cutoff_date: datetime | None = None
    record_counts: dict[str, int] = {}


class BackupListResponse(CamelModel):
    backups: list[BackupInfo]


class BackupStats(CamelModel):
    total_backups: int
    total_size: int
    last_backup: datetime | None = None
    full_backups: int
    incremental_backups: int


class BackupCreateResponse(CamelModel):
    message: str
    backup: BackupInfo


class RestoreResponse(CamelModel):
    message: str
    restored: dict[str, int]


class BackupDeleteResponse(CamelModel):
    message: str
