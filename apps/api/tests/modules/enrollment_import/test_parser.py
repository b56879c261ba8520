"""
Unit tests for registrar spreadsheet reading.
"""

import io
from datetime import datetime

import pytest
from openpyxl import Workbook

from app.modules.enrollment_import.errors import EmptyFileError, UnsupportedFileError
from app.modules.enrollment_import.parser import read_rows


def _xlsx_bytes(*rows) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(list(row))
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


class TestReadCsv:
    """Tests for CSV uploads."""

    def test_reads_header_keyed_rows(self):
        content = (
            "First Name,Last Name,Email,Birthdate\n"
            "Ana,Cruz,a@x.com,2000-01-01\n"
            "Ben,Santos,b@x.com,1999-12-31\n"
        ).encode()

        headers, rows = read_rows(content, "registrar.csv")

        assert headers == ["First Name", "Last Name", "Email", "Birthdate"]
        assert rows[0] == {
            "First Name": "Ana",
            "Last Name": "Cruz",
            "Email": "a@x.com",
            "Birthdate": "2000-01-01",
        }
        assert len(rows) == 2

    def test_strips_bom_and_skips_blank_rows_and_unnamed_columns(self):
        content = "\ufeffFirst Name,,Email\nAna,ignored,a@x.com\n,,\n".encode()

        headers, rows = read_rows(content, "REGISTRAR.CSV")

        assert headers == ["First Name", "Email"]
        assert rows == [{"First Name": "Ana", "Email": "a@x.com"}]

    def test_short_rows_are_padded_with_empty_values(self):
        headers, rows = read_rows(b"First Name,Email\nAna\n", "registrar.csv")

        assert rows == [{"First Name": "Ana", "Email": ""}]

    def test_header_only_file_is_empty(self):
        with pytest.raises(EmptyFileError):
            read_rows(b"First Name,Last Name,Email,Birthdate\n", "registrar.csv")


class TestReadExcel:
    """Tests for .xlsx uploads."""

    def test_reads_first_sheet_with_native_dates(self):
        content = _xlsx_bytes(
            ["First Name", "Last Name", "Email", "Birthdate"],
            ["Ana", "Cruz", "a@x.com", datetime(2000, 1, 1)],
        )

        headers, rows = read_rows(content, "registrar.xlsx")

        assert headers == ["First Name", "Last Name", "Email", "Birthdate"]
        assert rows[0]["Birthdate"] == datetime(2000, 1, 1)
        assert rows[0]["Email"] == "a@x.com"

    def test_empty_cells_become_empty_strings(self):
        content = _xlsx_bytes(["First Name", "Email"], ["Ana", None])

        _, rows = read_rows(content, "registrar.xlsx")

        assert rows == [{"First Name": "Ana", "Email": ""}]

    def test_corrupt_workbook_is_unsupported(self):
        with pytest.raises(UnsupportedFileError):
            read_rows(b"definitely not a zip archive", "registrar.xlsx")


class TestRejectedUploads:
    def test_missing_content(self):
        with pytest.raises(UnsupportedFileError) as exc_info:
            read_rows(b"", "registrar.csv")

        assert exc_info.value.error_code == "UNSUPPORTED_FILE"

    def test_unknown_extension(self):
        with pytest.raises(UnsupportedFileError):
            read_rows(b"First Name\nAna\n", "registrar.pdf")
