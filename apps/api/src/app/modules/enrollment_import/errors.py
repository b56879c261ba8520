"""Enrollment import errors. Structural problems reject the whole file."""


class EnrollmentImportError(Exception):
    """Base exception for enrollment import errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class UnsupportedFileError(EnrollmentImportError):
    """Raised when no file was sent or it cannot be read as a spreadsheet."""

    def __init__(self, message: str = "Unsupported file. Please upload an .xlsx or .csv file."):
        super().__init__(message=message, error_code="UNSUPPORTED_FILE", status_code=400)


class EmptyFileError(EnrollmentImportError):
    """Raised when the spreadsheet has no data rows."""

    def __init__(self):
        super().__init__(
            message="The uploaded file appears to be empty.",
            error_code="EMPTY_FILE",
            status_code=400,
        )


class ColumnResolutionError(EnrollmentImportError):
    """Raised when one of the four identity columns cannot be found in the header."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(
            message=(
                "Required columns not found. Please make sure your template includes "
                "First Name, Last Name, Email Address, and Birthdate."
            ),
            error_code="MISSING_COLUMNS",
            status_code=400,
        )
