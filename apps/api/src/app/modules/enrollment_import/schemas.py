"""Enrollment import response schemas."""

from typing import Any

from app.modules.shared import CamelModel


class ImportSummary(CamelModel):
    total_rows: int
    matched_and_updated: int
    already_enrolled: int
    unmatched: int


class UnmatchedSample(CamelModel):
    row: dict[str, Any]
    reason: str


class BatchEnrollmentResponse(CamelModel):
    message: str = "Batch enrollment matching completed."
    summary: ImportSummary
    unmatched_samples: list[UnmatchedSample]
