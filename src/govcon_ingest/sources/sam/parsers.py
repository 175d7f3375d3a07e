"""Field mapping for SAM.gov opportunity records (Catalog A)."""

from typing import Any, Optional

from govcon_ingest.models.opportunity import CandidateOpportunity
from govcon_ingest.models.raw import RawRecord
from govcon_ingest.normalize import (
    clean_text,
    detect_phase,
    detect_program,
    is_defense_agency,
    parse_date,
    parse_datetime,
    parse_decimal,
)


def natural_key(data: dict[str, Any]) -> Optional[str]:
    """Solicitation number; records without one are not ingestable."""
    return clean_text(data.get("solicitationNumber"))


def split_parent_path(data: dict[str, Any]) -> tuple[Optional[str], Optional[str], Optional[str]]:
    """
    Return (agency, sub_agency, office).
    SAM.gov gives a dotted fullParentPathName ("DEPT OF DEFENSE.DEPT OF THE ARMY.W6QK ACC");
    older payloads carry department/subTier/office instead.
    """
    path = clean_text(data.get("fullParentPathName"))
    if path:
        parts = [p.strip() for p in path.split(".") if p.strip()]
        agency = parts[0] if parts else None
        sub_agency = parts[1] if len(parts) > 1 else None
        office = parts[-1] if len(parts) > 2 else None
        return agency, sub_agency, office
    return (
        clean_text(data.get("department")),
        clean_text(data.get("subTier")),
        clean_text(data.get("office")),
    )


def _place_of_performance(data: dict[str, Any]) -> dict[str, Optional[str]]:
    pop = data.get("placeOfPerformance") or {}
    if not isinstance(pop, dict):
        return {}

    def _nested(key: str, inner: str) -> Optional[str]:
        value = pop.get(key)
        if isinstance(value, dict):
            return clean_text(value.get(inner))
        return clean_text(value)

    return {
        "pop_city": _nested("city", "name"),
        "pop_state": _nested("state", "code"),
        "pop_zip": clean_text(pop.get("zip")),
        "pop_country": _nested("country", "code"),
    }


def _status(active: Any) -> Optional[str]:
    text = clean_text(active)
    if text is None:
        return None
    return "active" if text.lower() in ("yes", "true", "y") else "inactive"


def to_candidate(raw: RawRecord, source_id: str = "sam") -> CandidateOpportunity:
    """Convert one opportunitiesData entry to a candidate."""
    d = raw.data
    title = clean_text(d.get("title"))
    agency, sub_agency, office = split_parent_path(d)
    is_sbir, is_sttr = detect_program(title)

    award = d.get("award") if isinstance(d.get("award"), dict) else {}
    awardee = award.get("awardee") if isinstance(award.get("awardee"), dict) else {}

    # description is a link to a separate, key-protected endpoint
    description = clean_text(d.get("description"))
    if description and description.lower().startswith("http"):
        description = None

    return CandidateOpportunity(
        source=source_id,
        natural_key=natural_key(d),
        title=title,
        description=description,
        opportunity_type=clean_text(d.get("type")) or clean_text(d.get("baseType")),
        solicitation_number=natural_key(d),
        naics_code=clean_text(d.get("naicsCode")),
        psc_code=clean_text(d.get("classificationCode")),
        agency=agency,
        sub_agency=sub_agency,
        office=office,
        set_aside=clean_text(d.get("typeOfSetAsideDescription")) or clean_text(d.get("typeOfSetAside")),
        posted_date=parse_date(d.get("postedDate")),
        response_deadline=parse_date(d.get("responseDeadLine")),
        archive_date=parse_date(d.get("archiveDate")),
        award_amount=parse_decimal(award.get("amount")),
        contract_number=clean_text(award.get("number")),
        incumbent_contractor=clean_text(awardee.get("name")),
        url=clean_text(d.get("uiLink")),
        is_sbir=is_sbir,
        is_sttr=is_sttr,
        sbir_phase=detect_phase(title),
        is_dod=is_defense_agency(agency),
        status=_status(d.get("active")),
        source_modified_at=parse_datetime(d.get("modifiedDate")),
        **_place_of_performance(d),
    )
