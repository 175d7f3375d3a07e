"""Pure field normalizers."""

from govcon_ingest.normalize.fields import (
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

__all__ = [
    "clean_text",
    "detect_phase",
    "detect_program",
    "is_defense_agency",
    "normalize_phase",
    "parse_bool",
    "parse_date",
    "parse_datetime",
    "parse_decimal",
    "parse_int",
]
