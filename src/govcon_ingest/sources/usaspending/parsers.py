"""Field mapping for USAspending.gov award records (Catalog C)."""

import re
from datetime import date
from typing import Any, Optional

from govcon_ingest.models.opportunity import CandidateOpportunity
from govcon_ingest.models.raw import RawRecord
from govcon_ingest.normalize import (
    clean_text,
    is_defense_agency,
    parse_date,
    parse_datetime,
    parse_decimal,
)

KEY_PREFIX = "USASPEND-"
INTERNAL_KEY_PREFIX = "USASPEND-INT-"
AWARD_URL = "https://www.usaspending.gov/award/{internal_id}"
MAX_TITLE_LENGTH = 500

_KEY_JUNK = re.compile(r"[^A-Za-z0-9-]")


def _internal_id(data: dict[str, Any]) -> Optional[str]:
    return clean_text(data.get("generated_internal_id")) or clean_text(data.get("internal_id"))


def natural_key(data: dict[str, Any]) -> Optional[str]:
    """
    Award ID namespaced as USASPEND-<id>, falling back to the generated internal id.
    Characters outside [A-Za-z0-9-] are dropped before namespacing.
    """
    award_id = _KEY_JUNK.sub("", clean_text(data.get("Award ID")) or "")
    if award_id:
        return KEY_PREFIX + award_id
    internal_id = _KEY_JUNK.sub("", _internal_id(data) or "")
    if internal_id:
        return INTERNAL_KEY_PREFIX + internal_id
    return None


def _code_and_description(value: Any, description: Any) -> tuple[Optional[str], Optional[str]]:
    # Newer responses nest {"code": ..., "description": ...}
    if isinstance(value, dict):
        return clean_text(value.get("code")), clean_text(value.get("description"))
    return clean_text(value), clean_text(description)


def build_title(data: dict[str, Any]) -> str:
    """'<recipient> - <agency> (<award type>)', or a fallback naming the award id."""
    recipient = clean_text(data.get("Recipient Name"))
    agency = clean_text(data.get("Awarding Agency"))
    award_type = clean_text(data.get("Contract Award Type"))

    title = " - ".join(part for part in (recipient, agency) if part)
    if title and award_type:
        title = f"{title} ({award_type})"
    if not title:
        title = f"USAspending Award: {clean_text(data.get('Award ID')) or _internal_id(data) or 'unknown'}"
    return clean_text(title, max_length=MAX_TITLE_LENGTH) or title


def award_status(end_date: Optional[date], today: date) -> str:
    """Closed once the period of performance has ended, awarded otherwise."""
    if end_date is not None and end_date < today:
        return "closed"
    return "awarded"


def to_candidate(raw: RawRecord, today: date, source_id: str = "usaspending") -> CandidateOpportunity:
    """Convert one spending_by_award result to a candidate."""
    d = raw.data
    agency = clean_text(d.get("Awarding Agency"))
    amount = parse_decimal(d.get("Award Amount"))
    end_date = parse_date(d.get("End Date"))
    naics_code, naics_description = _code_and_description(d.get("NAICS Code") or d.get("NAICS"), d.get("NAICS Description"))
    psc_code, _ = _code_and_description(d.get("PSC Code") or d.get("PSC"), None)
    internal_id = _internal_id(d)

    return CandidateOpportunity(
        source=source_id,
        natural_key=natural_key(d),
        title=build_title(d),
        description=clean_text(d.get("Description")),
        opportunity_type=clean_text(d.get("Contract Award Type")) or clean_text(d.get("Award Type")),
        naics_code=naics_code,
        naics_description=naics_description,
        psc_code=psc_code,
        agency=agency,
        sub_agency=clean_text(d.get("Awarding Sub Agency")),
        posted_date=parse_date(d.get("Start Date")),
        response_deadline=end_date,
        award_amount=amount,
        estimated_value_low=amount,
        estimated_value_high=amount,
        contract_number=clean_text(d.get("Award ID")),
        award_id=clean_text(d.get("Award ID")),
        incumbent_contractor=clean_text(d.get("Recipient Name")),
        url=AWARD_URL.format(internal_id=internal_id) if internal_id else None,
        pop_city=clean_text(d.get("Place of Performance City")),
        pop_state=clean_text(d.get("Place of Performance State")),
        pop_zip=clean_text(d.get("Place of Performance Zip")),
        pop_country=clean_text(d.get("Place of Performance Country")) or "USA",
        is_dod=is_defense_agency(agency),
        status=award_status(end_date, today),
        source_modified_at=parse_datetime(d.get("Last Modified Date")),
    )
