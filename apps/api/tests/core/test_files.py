"""
Unit tests for the local file helpers.
"""

import zipfile
from datetime import UTC, datetime

from app.core.files import file_timestamp, read_json, write_json, zip_directory


def test_file_timestamp_is_filesystem_safe():
    moment = datetime(2025, 3, 1, 2, 0, 5, 123456, tzinfo=UTC)

    assert file_timestamp(moment) == "2025-03-01T02-00-05-123Z"


def test_write_and_read_json(tmp_path):
    path = tmp_path / "payload.json"

    size = write_json(path, {"count": 2, "when": datetime(2025, 1, 1, tzinfo=UTC)})

    assert size == path.stat().st_size
    assert read_json(path) == {"count": 2, "when": "2025-01-01 00:00:00+00:00"}


def test_zip_directory_uses_relative_paths(tmp_path):
    source = tmp_path / "bundle"
    (source / "nested").mkdir(parents=True)
    (source / "a.json").write_text("{}")
    (source / "nested" / "b.json").write_text("[]")

    zip_directory(source, tmp_path / "bundle.zip")

    with zipfile.ZipFile(tmp_path / "bundle.zip") as zf:
        assert sorted(zf.namelist()) == ["a.json", "nested/b.json"]
