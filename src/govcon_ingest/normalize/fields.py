"""Field normalizers shared by every source.

Each function is total: unparseable input returns None (logged at DEBUG)
instead of raising, so one bad field never costs the whole record.
"""

import logging
import re
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

logger = logging.getLogger(__name__)

CALENDAR_DATE_FORMAT = "%Y-%m-%d"
# SAM.gov emits archive dates and query dates in US order
US_DATE_FORMAT = "%m/%d/%Y"

_NUMERIC_JUNK = re.compile(r"[^0-9.\-]")
_TRUE_VALUES = frozenset({"y", "yes", "true", "1"})
_DEFENSE_MARKERS = ("defense", "dod", "army", "navy", "air force", "marine")
_PHASE_MARKER = re.compile(r"\bPHASE\s+(III|II|I|3|2|1)\b")
_PHASE_NUMERALS = {"III": "III", "II": "II", "I": "I", "3": "III", "2": "II", "1": "I"}


def clean_text(value: Any, max_length: Optional[int] = None) -> Optional[str]:
    """Strip a text value; blank or missing becomes None."""
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    if max_length is not None and len(text) > max_length:
        text = text[: max_length - 3] + "..."
    return text


def _parse_iso(value: str) -> Optional[datetime]:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def parse_date(value: Any) -> Optional[date]:
    """
    Parse an upstream date to a calendar date.
    Tries, in order: YYYY-MM-DD, ISO timestamp without zone, ISO timestamp
    with offset, then MM/DD/YYYY. Timestamps keep their local calendar date.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None

    try:
        return datetime.strptime(text, CALENDAR_DATE_FORMAT).date()
    except ValueError:
        pass

    # fromisoformat covers both the naive and the offset timestamp shapes
    parsed = _parse_iso(text)
    if parsed is not None:
        return parsed.date()

    try:
        return datetime.strptime(text, US_DATE_FORMAT).date()
    except ValueError:
        pass

    logger.debug("Unable to parse date: %r", value)
    return None


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an upstream timestamp to an aware UTC datetime; naive input is taken as UTC."""
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed: Optional[datetime] = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if not text:
            return None
        parsed = _parse_iso(text)
        if parsed is None:
            day = parse_date(text)
            parsed = datetime(day.year, day.month, day.day) if day else None
    if parsed is None:
        logger.debug("Unable to parse timestamp: %r", value)
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except (OverflowError, ValueError):
        # an offset can push year 1 or year 9999 outside the datetime range
        logger.debug("Timestamp out of range in UTC: %r", value)
        return None


def parse_decimal(value: Any) -> Optional[Decimal]:
    """
    Parse a currency-formatted amount to an exact Decimal.
    Everything but digits, '.' and '-' is stripped first ("$1,250.00" -> 1250.00).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        return Decimal(value)
    elif isinstance(value, float):
        # str() first so 0.1 stays 0.1
        result = Decimal(str(value))
    else:
        cleaned = _NUMERIC_JUNK.sub("", str(value))
        if not cleaned:
            return None
        try:
            result = Decimal(cleaned)
        except InvalidOperation:
            logger.debug("Unable to parse amount: %r", value)
            return None
    if not result.is_finite():
        logger.debug("Non-finite amount: %r", value)
        return None
    return result


def parse_int(value: Any) -> Optional[int]:
    """Parse an integer count or year; None on anything else."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip().replace(",", "")
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        logger.debug("Unable to parse integer: %r", value)
        return None


def parse_bool(value: Any) -> Optional[bool]:
    """
    Y / Yes / true / 1 (any case) are True, any other non-blank text is False,
    blank or missing is None (unknown, not False).
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    text = str(value).strip()
    if not text:
        return None
    return text.lower() in _TRUE_VALUES


def detect_phase(text: Optional[str]) -> Optional[str]:
    """
    Detect an SBIR/STTR phase marker in free text.
    When several markers appear the highest phase wins. "PHASE IV" and
    "PHASE 10" are not phase markers.
    """
    if not text:
        return None
    found = {_PHASE_NUMERALS[m] for m in _PHASE_MARKER.findall(text.upper())}
    for phase in ("III", "II", "I"):
        if phase in found:
            return phase
    return None


def normalize_phase(value: Any) -> Optional[str]:
    """Map a phase field ("Phase II", "2", "II") to its roman numeral."""
    text = clean_text(value)
    if text is None:
        return None
    if not text.upper().startswith("PHASE"):
        text = f"PHASE {text}"
    return detect_phase(text)


def detect_program(text: Optional[str]) -> tuple[Optional[bool], Optional[bool]]:
    """Return (is_sbir, is_sttr) from free text; (None, None) when there is no text."""
    if not text:
        return None, None
    upper = text.upper()
    return "SBIR" in upper, "STTR" in upper


def is_defense_agency(agency: Optional[str]) -> Optional[bool]:
    """Whether an agency name looks like a Department of Defense component."""
    if not agency:
        return None
    lowered = agency.lower()
    return any(marker in lowered for marker in _DEFENSE_MARKERS)
