"""
Registrar spreadsheet reading.

Turns an uploaded .xlsx (first worksheet) or .csv into header-keyed rows.
Columns without a header are dropped and blank rows are skipped.
"""

import csv
import io
import logging
import zipfile
from pathlib import PurePath
from typing import Any

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from app.modules.enrollment_import.errors import EmptyFileError, UnsupportedFileError

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = {".xlsx", ".xlsm"}
CSV_SUFFIXES = {".csv"}


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _build_rows(header: list[Any], records: list[list[Any]]) -> tuple[list[str], list[dict[str, Any]]]:
    columns = [
        (index, str(name).strip()) for index, name in enumerate(header) if not _is_blank(name)
    ]
    headers = [name for _, name in columns]

    rows: list[dict[str, Any]] = []
    for record in records:
        row = {
            name: ("" if index >= len(record) or record[index] is None else record[index])
            for index, name in columns
        }
        if all(_is_blank(value) for value in row.values()):
            continue
        rows.append(row)

    return headers, rows


def _read_excel(content: bytes) -> list[list[Any]]:
    workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    try:
        sheet = workbook.worksheets[0]
        return [list(values) for values in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def _read_csv(content: bytes) -> list[list[Any]]:
    text = content.decode("utf-8-sig")
    return [list(record) for record in csv.reader(io.StringIO(text))]


def read_rows(content: bytes, filename: str | None) -> tuple[list[str], list[dict[str, Any]]]:
    """
    Read a registrar file into (headers, rows).

    Raises:
        UnsupportedFileError: No content, unknown extension or unreadable file
        EmptyFileError: No data rows after the header
    """
    if not content:
        raise UnsupportedFileError("No file uploaded. Please select a file first.")

    suffix = PurePath(filename or "").suffix.lower()

    try:
        if suffix in CSV_SUFFIXES:
            records = _read_csv(content)
        elif suffix in EXCEL_SUFFIXES:
            records = _read_excel(content)
        else:
            raise UnsupportedFileError()
    except (InvalidFileException, zipfile.BadZipFile, UnicodeDecodeError, csv.Error, KeyError) as e:
        logger.warning(f"Could not read registrar file '{filename}': {e}")
        raise UnsupportedFileError() from e

    if not records:
        raise EmptyFileError()

    headers, rows = _build_rows(records[0], records[1:])
    if not rows:
        raise EmptyFileError()

    return headers, rows
