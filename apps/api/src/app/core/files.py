"""
Local file helpers shared by backups and exports.

All functions here block; call them through asyncio.to_thread from async code.
"""

import json
import zipfile
from datetime import UTC, datetime
from pathlib import Path
from typing import Any


def file_timestamp(moment: datetime | None = None) -> str:
    """Filesystem-safe UTC timestamp, e.g. 2025-03-01T02-00-00-000Z."""
    moment = (moment or datetime.now(UTC)).astimezone(UTC)
    return moment.strftime("%Y-%m-%dT%H-%M-%S-") + f"{moment.microsecond // 1000:03d}Z"


def write_json(path: Path, payload: Any) -> int:
    """Write pretty-printed JSON and return the file size in bytes."""
    path.write_text(json.dumps(payload, indent=2, default=str), encoding="utf-8")
    return path.stat().st_size


def read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def zip_directory(source_dir: Path, zip_path: Path) -> int:
    """Zip the contents of source_dir (paths relative to it). Returns the zip size."""
    with zipfile.ZipFile(zip_path, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as zf:
        for file_path in sorted(source_dir.rglob("*")):
            if file_path.is_file():
                zf.write(file_path, file_path.relative_to(source_dir))
    return zip_path.stat().st_size
