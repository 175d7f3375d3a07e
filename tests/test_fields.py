"""Unit tests for the shared field normalizers."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from govcon_ingest.normalize import (
    clean_text,
    detect_phase,
    detect_program,
    is_defense_agency,
    normalize_phase,
    parse_bool,
    parse_date,
    parse_datetime,
    parse_decimal,
    parse_int,
)


class TestParseDate:
    """Tests for the date fallback chain."""

    @pytest.mark.parametrize(
        "value",
        [
            "2024-01-15",
            "2024-01-15T10:00:00",
            "2024-01-15T10:00:00-05:00",
            "2024-01-15T10:00:00Z",
            "01/15/2024",
        ],
    )
    def test_supported_shapes_give_same_calendar_date(self, value: str) -> None:
        """Every supported shape normalizes to 2024-01-15."""
        assert parse_date(value) == date(2024, 1, 15)

    def test_offset_timestamp_keeps_local_date(self) -> None:
        """A late-evening offset timestamp is not shifted into the next UTC day."""
        assert parse_date("2024-01-15T23:30:00-05:00") == date(2024, 1, 15)

    def test_unparseable_is_absent(self) -> None:
        """Garbage normalizes to None without raising."""
        assert parse_date("not-a-date") is None

    def test_blank_and_none(self) -> None:
        """Blank or missing input is None."""
        assert parse_date(None) is None
        assert parse_date("   ") is None

    def test_date_objects_pass_through(self) -> None:
        """date and datetime values are accepted as-is."""
        assert parse_date(date(2024, 1, 15)) == date(2024, 1, 15)
        assert parse_date(datetime(2024, 1, 15, 8, 0)) == date(2024, 1, 15)


class TestParseDatetime:
    """Tests for parse_datetime."""

    def test_zulu_is_utc(self) -> None:
        """Z suffix is read as UTC."""
        assert parse_datetime("2025-03-02T09:30:00Z") == datetime(2025, 3, 2, 9, 30, tzinfo=timezone.utc)

    def test_offset_converted_to_utc(self) -> None:
        """Offsets are converted to UTC."""
        result = parse_datetime("2025-03-02T09:30:00-05:00")
        assert result == datetime(2025, 3, 2, 14, 30, tzinfo=timezone.utc)
        assert result.utcoffset() == timedelta(0)

    def test_naive_taken_as_utc(self) -> None:
        """Naive timestamps are assumed UTC."""
        assert parse_datetime("2024-02-01 12:34:56") == datetime(2024, 2, 1, 12, 34, 56, tzinfo=timezone.utc)

    def test_us_date_falls_back_to_midnight(self) -> None:
        """A bare US-format date becomes midnight UTC."""
        assert parse_datetime("02/01/2024") == datetime(2024, 2, 1, tzinfo=timezone.utc)

    def test_garbage(self) -> None:
        """Unparseable input is None."""
        assert parse_datetime("yesterday") is None

    @pytest.mark.parametrize("value", ["0001-01-01T00:00:00+05:00", "9999-12-31T23:00:00-05:00"])
    def test_out_of_range_after_conversion(self, value: str) -> None:
        """Offsets that push a timestamp past the datetime range give None."""
        assert parse_datetime(value) is None


class TestParseDecimal:
    """Tests for parse_decimal."""

    def test_currency_formatting_stripped(self) -> None:
        """Dollar signs and thousands separators are removed."""
        assert parse_decimal("$1,250.00") == Decimal("1250.00")

    def test_negative(self) -> None:
        """Negative amounts (de-obligations) survive."""
        assert parse_decimal("-5,000") == Decimal("-5000")

    def test_float_keeps_shortest_repr(self) -> None:
        """Floats are converted through str so no binary noise leaks in."""
        assert parse_decimal(0.1) == Decimal("0.1")

    def test_int(self) -> None:
        """Integers convert exactly."""
        assert parse_decimal(4500000) == Decimal(4500000)

    @pytest.mark.parametrize("value", [None, "", "N/A", "1.2.3", "-", True])
    def test_unparseable(self, value: object) -> None:
        """Missing, non-numeric or malformed amounts are None."""
        assert parse_decimal(value) is None

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf"), Decimal("NaN"), Decimal("Infinity")])
    def test_non_finite(self, value: object) -> None:
        """NaN and infinities are not amounts."""
        assert parse_decimal(value) is None

    def test_finite_decimal_passes_through(self) -> None:
        """A finite Decimal is returned as is."""
        assert parse_decimal(Decimal("12.50")) == Decimal("12.50")


class TestParseIntAndBool:
    """Tests for parse_int and parse_bool."""

    def test_int_with_separator(self) -> None:
        """Thousands separators are accepted."""
        assert parse_int("1,024") == 1024

    def test_int_garbage(self) -> None:
        """Non-integers are None."""
        assert parse_int("twelve") is None
        assert parse_int(None) is None

    @pytest.mark.parametrize("value", ["Y", "yes", "TRUE", "1", True])
    def test_truthy(self, value: object) -> None:
        """Y, Yes, true and 1 are True in any case."""
        assert parse_bool(value) is True

    @pytest.mark.parametrize("value", ["N", "no", "false", "0", "maybe"])
    def test_falsy(self, value: str) -> None:
        """Any other non-blank text is False."""
        assert parse_bool(value) is False

    def test_blank_is_unknown(self) -> None:
        """Blank or missing is None, not False."""
        assert parse_bool("") is None
        assert parse_bool(None) is None


class TestPhaseDetection:
    """Tests for SBIR/STTR phase precedence."""

    def test_phase_three_never_one(self) -> None:
        """PHASE III detects III."""
        assert detect_phase("SBIR PHASE III Follow-On Production") == "III"

    def test_phase_two_never_one(self) -> None:
        """PHASE II detects II."""
        assert detect_phase("Topic AF241-001 Phase II") == "II"

    def test_phase_one_alone(self) -> None:
        """PHASE I alone detects I."""
        assert detect_phase("phase i feasibility study") == "I"

    def test_arabic_numerals(self) -> None:
        """Phase 2 and Phase 3 are understood."""
        assert detect_phase("Phase 2 prototype") == "II"
        assert detect_phase("PHASE 3") == "III"

    def test_no_phase(self) -> None:
        """Text without a marker gives None."""
        assert detect_phase("Janitorial services") is None
        assert detect_phase(None) is None

    @pytest.mark.parametrize("text", ["PHASE IV study", "Phase 10 rollout", "PHASE 1000", "Phase Ia"])
    def test_longer_numerals_are_not_phases(self, text: str) -> None:
        """A marker must end at a word boundary."""
        assert detect_phase(text) is None

    def test_highest_marker_wins(self) -> None:
        """Phase I text that also names Phase III reports III."""
        assert detect_phase("Phase I feasibility leading to Phase III") == "III"

    @pytest.mark.parametrize(
        "value, expected",
        [("Phase I", "I"), ("Phase II", "II"), ("II", "II"), ("3", "III"), ("", None), (None, None)],
    )
    def test_normalize_phase_field(self, value: object, expected: object) -> None:
        """Structured phase fields map to roman numerals."""
        assert normalize_phase(value) == expected


class TestProgramAndAgency:
    """Tests for program flags and defense detection."""

    def test_program_flags(self) -> None:
        """SBIR and STTR markers are detected independently."""
        assert detect_program("SBIR/STTR Joint Topic") == (True, True)
        assert detect_program("STTR Phase I") == (False, True)
        assert detect_program("Facilities maintenance") == (False, False)

    def test_program_without_text(self) -> None:
        """No text means unknown."""
        assert detect_program(None) == (None, None)

    @pytest.mark.parametrize(
        "agency, expected",
        [
            ("DEPT OF DEFENSE", True),
            ("Department of the Navy", True),
            ("DOD", True),
            ("National Aeronautics and Space Administration", False),
            (None, None),
        ],
    )
    def test_defense_agency(self, agency: object, expected: object) -> None:
        """Defense components are recognized by name."""
        assert is_defense_agency(agency) is expected


class TestCleanText:
    """Tests for clean_text."""

    def test_strips(self) -> None:
        """Whitespace is trimmed; blank becomes None."""
        assert clean_text("  hello ") == "hello"
        assert clean_text("   ") is None

    def test_truncates_with_ellipsis(self) -> None:
        """Long text is cut to max_length including the ellipsis."""
        assert clean_text("abcdefghij", max_length=6) == "abc..."
