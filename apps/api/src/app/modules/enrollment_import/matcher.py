"""
Enrollment Identity Matcher

Reconciles registrar spreadsheet rows against stored applications.

A row identifies an applicant through four fields: first name, last name,
email and date of birth. Column names in registrar files vary, so headers are
resolved through an alias table before matching. Matching per row:

1. Rows with fewer than three populated fields are never scored.
2. The full (last, first, email, dob) key is looked up in an exact index.
3. Otherwise every candidate is scored by the number of equal non-empty
   fields; the best candidate wins only with a score of at least three and
   no other candidate at the same score.

This module does no I/O. The caller loads candidates and persists the
status changes for `MatchOutcome.matched`.
"""

import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Any

from app.modules.applications.models import ApplicationStatus
from app.modules.enrollment_import.errors import ColumnResolutionError

Row = Mapping[str, Any]
MatchKey = tuple[str, str, str, str]

FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "first_name": ("First Name", "Given Name", "Firstname", "first_name"),
    "last_name": ("Last Name", "Surname", "Lastname", "last_name"),
    "email": ("Email", "Email Address", "email"),
    "date_of_birth": ("Birthdate", "Date of Birth", "Birthday", "DOB", "birth_date"),
}

INSUFFICIENT_FIELDS_REASON = "Need at least three of: first name, last name, email, birthdate"
NO_MATCH_REASON = "No matching application found (needs at least 3 of 4 fields to match)"

MIN_POPULATED_FIELDS = 3
MIN_MATCH_SCORE = 3
MAX_UNMATCHED_SAMPLES = 10

DATE_FORMATS = (
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%m-%d-%Y",
    "%Y/%m/%d",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%d %b %Y",
)

_NON_ALPHANUMERIC = re.compile(r"[^a-zA-Z0-9]")


# ============================================
# Normalization
# ============================================


def normalize_header(value: str) -> str:
    """Strip everything but letters and digits, then lower-case."""
    return _NON_ALPHANUMERIC.sub("", str(value)).lower()


def normalize_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip().lower()


def parse_date_key(value: Any) -> str:
    """
    Canonical YYYY-MM-DD key for a date value.

    Accepts date/datetime objects and date strings (ISO 8601 or one of
    DATE_FORMATS). Aware datetimes are converted to UTC first. Anything else,
    including bare numbers, gives an empty key.
    """
    if value is None or value == "":
        return ""

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(UTC)
        return value.date().isoformat()

    if isinstance(value, date):
        return value.isoformat()

    if not isinstance(value, str):
        return ""

    text = value.strip()
    if not text:
        return ""

    try:
        return parse_date_key(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        pass

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date().isoformat()
        except ValueError:
            continue

    return ""


# ============================================
# Column resolution
# ============================================


@dataclass(frozen=True)
class ResolvedColumns:
    """Original header names holding each identity field."""

    first_name: str
    last_name: str
    email: str
    date_of_birth: str


def _resolve_column(normalized_headers: dict[str, str], aliases: Sequence[str]) -> str | None:
    alias_keys = [normalize_header(alias) for alias in aliases]

    for key in alias_keys:
        if key and key in normalized_headers:
            return normalized_headers[key]

    for norm, original in normalized_headers.items():
        if any(key and key in norm for key in alias_keys):
            return original

    return None


def resolve_columns(
    headers: Iterable[str],
    aliases: Mapping[str, Sequence[str]] = FIELD_ALIASES,
) -> ResolvedColumns:
    """
    Map the four identity fields onto spreadsheet headers.

    An exact alias match (case and punctuation ignored) wins; otherwise the
    first header containing an alias is used.

    Raises:
        ColumnResolutionError: If any field cannot be resolved
    """
    normalized_headers: dict[str, str] = {}
    for header in headers:
        if header is None:
            continue
        normalized_headers[normalize_header(header)] = header

    resolved = {name: _resolve_column(normalized_headers, aliases[name]) for name in FIELD_ALIASES}
    missing = [name for name, column in resolved.items() if column is None]

    if missing:
        raise ColumnResolutionError(missing)

    return ResolvedColumns(**resolved)


# ============================================
# Matching
# ============================================


@dataclass(frozen=True)
class MatchCandidate:
    """A stored application with its normalized identity key."""

    record: Any
    key: MatchKey

    @classmethod
    def from_record(cls, record: Any) -> "MatchCandidate":
        return cls(
            record=record,
            key=(
                normalize_text(record.last_name),
                normalize_text(record.given_name),
                normalize_text(record.email),
                parse_date_key(record.date_of_birth),
            ),
        )

    @property
    def is_enrolled(self) -> bool:
        return self.record.status == ApplicationStatus.ENROLLED

    def score(self, row_key: MatchKey) -> int:
        return sum(1 for mine, theirs in zip(self.key, row_key, strict=True) if mine and mine == theirs)


@dataclass(frozen=True)
class UnmatchedRow:
    row: Row
    reason: str


@dataclass
class MatchOutcome:
    total_rows: int = 0
    matched: list[tuple[Row, Any]] = field(default_factory=list)
    already_enrolled: list[Row] = field(default_factory=list)
    unmatched: list[UnmatchedRow] = field(default_factory=list)

    def unmatched_samples(self, limit: int = MAX_UNMATCHED_SAMPLES) -> list[UnmatchedRow]:
        return self.unmatched[:limit]


def row_key(row: Row, columns: ResolvedColumns) -> MatchKey:
    return (
        normalize_text(row.get(columns.last_name)),
        normalize_text(row.get(columns.first_name)),
        normalize_text(row.get(columns.email)),
        parse_date_key(row.get(columns.date_of_birth)),
    )


def _build_exact_index(candidates: Sequence[MatchCandidate]) -> dict[MatchKey, MatchCandidate]:
    index: dict[MatchKey, MatchCandidate] = {}
    for candidate in candidates:
        index.setdefault(candidate.key, candidate)
    return index


def _best_candidate(key: MatchKey, candidates: Sequence[MatchCandidate]) -> MatchCandidate | None:
    best: MatchCandidate | None = None
    best_score = 0
    best_count = 0

    for candidate in candidates:
        score = candidate.score(key)
        if score > best_score:
            best, best_score, best_count = candidate, score, 1
        elif score == best_score and score > 0:
            best_count += 1

    if best_score >= MIN_MATCH_SCORE and best_count == 1:
        return best
    return None


def match(
    rows: Sequence[Row],
    candidates: Iterable[Any],
    columns: ResolvedColumns,
) -> MatchOutcome:
    """
    Match spreadsheet rows to stored applications.

    Args:
        rows: Header-keyed spreadsheet rows
        candidates: Stored applications (non-archived)
        columns: Resolved identity columns

    Returns:
        MatchOutcome. `matched` pairs need their status set to enrolled;
        rows whose application is already enrolled, or was already claimed
        by an earlier row in this run, land in `already_enrolled`.
    """
    indexed = [MatchCandidate.from_record(record) for record in candidates]
    exact_index = _build_exact_index(indexed)
    claimed: set[int] = set()
    outcome = MatchOutcome(total_rows=len(rows))

    for row in rows:
        key = row_key(row, columns)

        if sum(1 for value in key if value) < MIN_POPULATED_FIELDS:
            outcome.unmatched.append(UnmatchedRow(row, INSUFFICIENT_FIELDS_REASON))
            continue

        candidate = exact_index.get(key) or _best_candidate(key, indexed)

        if candidate is None:
            outcome.unmatched.append(UnmatchedRow(row, NO_MATCH_REASON))
            continue

        if candidate.is_enrolled or id(candidate) in claimed:
            outcome.already_enrolled.append(row)
            continue

        claimed.add(id(candidate))
        outcome.matched.append((row, candidate.record))

    return outcome
