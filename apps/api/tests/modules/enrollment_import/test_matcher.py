"""
Unit tests for the enrollment identity matcher.

These tests cover:
- Header normalization and column resolution
- Text and date normalization
- Row matching: insufficient fields, exact index, best-score scan, ties
- Already-enrolled and repeated-candidate handling
"""

from datetime import UTC, date, datetime, timedelta, timezone

import pytest

from app.modules.applications.models import ApplicationStatus
from app.modules.enrollment_import.errors import ColumnResolutionError
from app.modules.enrollment_import.matcher import (
    INSUFFICIENT_FIELDS_REASON,
    MAX_UNMATCHED_SAMPLES,
    NO_MATCH_REASON,
    MatchCandidate,
    MatchOutcome,
    ResolvedColumns,
    UnmatchedRow,
    match,
    normalize_header,
    normalize_text,
    parse_date_key,
    resolve_columns,
    row_key,
)

COLUMNS = ResolvedColumns(
    first_name="First Name",
    last_name="Last Name",
    email="Email Address",
    date_of_birth="Birthdate",
)


def _row(last="cruz", first="ana", email="a@x.com", dob="2000-01-01"):
    return {"Last Name": last, "First Name": first, "Email Address": email, "Birthdate": dob}


class TestNormalization:
    """Tests for header, text and date normalization."""

    def test_normalize_header_strips_punctuation_and_case(self):
        assert normalize_header("E-mail Address") == "emailaddress"
        assert normalize_header(" Date of Birth ") == "dateofbirth"
        assert normalize_header("first_name") == "firstname"

    def test_normalize_text_trims_and_lowercases(self):
        assert normalize_text("  Ana  ") == "ana"
        assert normalize_text(None) == ""
        assert normalize_text("") == ""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("2000-01-01", "2000-01-01"),
            ("2000-01-01T00:00:00Z", "2000-01-01"),
            ("2000-1-2", "2000-01-02"),
            ("01/15/2000", "2000-01-15"),
            ("January 5, 2000", "2000-01-05"),
            (date(2000, 1, 1), "2000-01-01"),
            (datetime(2000, 1, 1, 8, 30), "2000-01-01"),
        ],
    )
    def test_parse_date_key_accepts_dates_and_date_strings(self, value, expected):
        assert parse_date_key(value) == expected

    def test_parse_date_key_converts_aware_datetimes_to_utc(self):
        moment = datetime(2000, 1, 1, 22, 0, tzinfo=timezone(timedelta(hours=-5)))
        assert parse_date_key(moment) == "2000-01-02"

    @pytest.mark.parametrize("value", [None, "", "   ", "not a date", 36526, 36526.0])
    def test_parse_date_key_unparseable_gives_empty_key(self, value):
        assert parse_date_key(value) == ""


class TestResolveColumns:
    """Tests for mapping spreadsheet headers onto identity fields."""

    def test_resolves_exact_aliases_ignoring_case_and_punctuation(self):
        columns = resolve_columns(["FIRST NAME", "Surname", "E-mail Address", "Date of Birth"])

        assert columns == ResolvedColumns(
            first_name="FIRST NAME",
            last_name="Surname",
            email="E-mail Address",
            date_of_birth="Date of Birth",
        )

    def test_falls_back_to_substring_match(self):
        columns = resolve_columns(
            ["Student First Name", "Student Last Name", "Personal Email", "DOB (mm/dd/yyyy)"]
        )

        assert columns.first_name == "Student First Name"
        assert columns.last_name == "Student Last Name"
        assert columns.email == "Personal Email"
        assert columns.date_of_birth == "DOB (mm/dd/yyyy)"

    def test_missing_column_rejects_whole_file(self):
        with pytest.raises(ColumnResolutionError) as exc_info:
            resolve_columns(["First Name", "Last Name", "Email"])

        assert exc_info.value.missing == ["date_of_birth"]
        assert exc_info.value.error_code == "MISSING_COLUMNS"
        assert exc_info.value.status_code == 400


class TestMatchCandidate:
    """Tests for candidate keys and scoring."""

    def test_key_uses_normalized_identity_fields(self, application_factory):
        record = application_factory(
            last_name=" Cruz ", given_name="ANA", email="A@X.com", date_of_birth=date(2000, 1, 1)
        )

        candidate = MatchCandidate.from_record(record)

        assert candidate.key == ("cruz", "ana", "a@x.com", "2000-01-01")

    def test_empty_fields_never_score(self, application_factory):
        candidate = MatchCandidate.from_record(application_factory(email=""))

        assert candidate.score(("cruz", "ana", "", "2000-01-01")) == 3


class TestMatch:
    """Tests for the row matching algorithm."""

    def test_rows_with_fewer_than_three_fields_are_never_scored(self, application_factory):
        candidates = [application_factory()]
        rows = [_row(email="", dob=""), _row(first="", last="", email="a@x.com", dob="")]

        outcome = match(rows, candidates, COLUMNS)

        assert outcome.matched == []
        assert [u.reason for u in outcome.unmatched] == [INSUFFICIENT_FIELDS_REASON] * 2

    def test_three_of_four_fields_match_single_candidate(self, application_factory):
        record = application_factory()

        outcome = match([_row(email="")], [record], COLUMNS)

        assert outcome.matched == [(_row(email=""), record)]
        assert outcome.unmatched == []

    def test_exact_key_wins_over_best_score_scan(self, application_factory):
        first = application_factory()
        duplicate = application_factory()

        outcome = match([_row()], [first, duplicate], COLUMNS)

        # A scan alone would tie at 4; the exact index returns the first inserted
        assert outcome.matched == [(_row(), first)]

    def test_exact_key_matches_with_an_empty_field(self, application_factory):
        record = application_factory(email="")
        other = application_factory(email="b@x.com")

        outcome = match([_row(email="")], [other, record], COLUMNS)

        assert outcome.matched == [(_row(email=""), record)]

    def test_tie_at_best_score_is_unmatched(self, application_factory):
        candidates = [application_factory(email="a@x.com"), application_factory(email="b@x.com")]

        outcome = match([_row(email="")], candidates, COLUMNS)

        assert outcome.matched == []
        assert outcome.unmatched == [UnmatchedRow(_row(email=""), NO_MATCH_REASON)]

    def test_best_score_below_three_is_unmatched(self, application_factory):
        candidates = [application_factory(email="other@x.com", date_of_birth=date(1999, 5, 5))]

        outcome = match([_row()], candidates, COLUMNS)

        assert outcome.matched == []
        assert outcome.unmatched[0].reason == NO_MATCH_REASON

    def test_unique_higher_score_beats_lower_scores(self, application_factory):
        partial = application_factory(email="b@x.com", date_of_birth=date(1999, 5, 5))
        better = application_factory(email="b@x.com")

        outcome = match([_row()], [partial, better], COLUMNS)

        assert outcome.matched == [(_row(), better)]

    def test_already_enrolled_candidate_is_not_matched_again(self, application_factory):
        record = application_factory(status=ApplicationStatus.ENROLLED)

        outcome = match([_row()], [record], COLUMNS)

        assert outcome.matched == []
        assert outcome.already_enrolled == [_row()]

    def test_second_import_reports_already_enrolled(self, application_factory):
        records = [
            application_factory(),
            application_factory(last_name="santos", given_name="ben", email="b@x.com"),
        ]
        rows = [_row(), _row(last="santos", first="ben", email="b@x.com")]

        first = match(rows, records, COLUMNS)
        for _, record in first.matched:
            record.status = ApplicationStatus.ENROLLED
        second = match(rows, records, COLUMNS)

        assert len(first.matched) == 2
        assert second.matched == []
        assert second.already_enrolled == rows

    def test_candidate_is_claimed_by_one_row_per_run(self, application_factory):
        record = application_factory()

        outcome = match([_row(), _row(email="")], [record], COLUMNS)

        assert outcome.matched == [(_row(), record)]
        assert outcome.already_enrolled == [_row(email="")]

    def test_row_order_and_totals(self, application_factory):
        rows = [_row(), _row(first="", email=""), _row(last="nobody", first="x", email="z@x.com")]

        outcome = match(rows, [application_factory()], COLUMNS)

        assert outcome.total_rows == 3
        assert len(outcome.matched) == 1
        assert [u.reason for u in outcome.unmatched] == [
            INSUFFICIENT_FIELDS_REASON,
            NO_MATCH_REASON,
        ]

    def test_row_key_reads_resolved_columns(self):
        row = {
            "Last Name": "CRUZ",
            "First Name": " Ana",
            "Email Address": "A@X.COM",
            "Birthdate": datetime(2000, 1, 1, tzinfo=UTC),
            "Program": "BSN",
        }

        assert row_key(row, COLUMNS) == ("cruz", "ana", "a@x.com", "2000-01-01")


class TestMatchOutcome:
    def test_unmatched_samples_are_capped(self):
        outcome = MatchOutcome(
            total_rows=15,
            unmatched=[UnmatchedRow({"n": i}, NO_MATCH_REASON) for i in range(15)],
        )

        samples = outcome.unmatched_samples()

        assert len(samples) == MAX_UNMATCHED_SAMPLES
        assert samples[0].row == {"n": 0}
