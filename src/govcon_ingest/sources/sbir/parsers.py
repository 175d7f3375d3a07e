"""Field mapping for SBIR.gov award and solicitation records (Catalog B)."""

from typing import Any, Optional

from govcon_ingest.models.opportunity import CandidateOpportunity
from govcon_ingest.models.raw import RawRecord
from govcon_ingest.normalize import (
    clean_text,
    detect_program,
    is_defense_agency,
    normalize_phase,
    parse_bool,
    parse_date,
    parse_decimal,
    parse_int,
)

KEY_PREFIX = "SBIR"
SOLICITATION_KEY_PREFIX = "SBIR-SOL"


def natural_key(data: dict[str, Any]) -> Optional[str]:
    """
    (agency, agency tracking number) rendered as SBIR:<AGENCY>:<tracking>.
    The agency is case-folded so "nasa" and "NASA" name the same award;
    the tracking number is kept exactly as given.
    """
    agency = clean_text(data.get("agency"))
    tracking = clean_text(data.get("agency_tracking_number"))
    if not agency or not tracking:
        return None
    return f"{KEY_PREFIX}:{agency.upper()}:{tracking}"


def solicitation_key(data: dict[str, Any]) -> Optional[str]:
    """(agency, solicitation number) rendered as SBIR-SOL:<AGENCY>:<number>."""
    agency = clean_text(data.get("agency"))
    number = clean_text(data.get("solicitation_number"))
    if not agency or not number:
        return None
    return f"{SOLICITATION_KEY_PREFIX}:{agency.upper()}:{number}"


def _is_dod(agency: Optional[str]) -> Optional[bool]:
    if not agency:
        return None
    return agency.upper() == "DOD" or bool(is_defense_agency(agency))


def _program_flags(program: Optional[str]) -> tuple[Optional[bool], Optional[bool]]:
    if not program:
        return None, None
    upper = program.upper()
    return upper == "SBIR", upper == "STTR"


def to_candidate(raw: RawRecord, source_id: str = "sbir") -> CandidateOpportunity:
    """Convert one SBIR.gov award to a candidate."""
    d = raw.data
    agency = clean_text(d.get("agency"))
    program = clean_text(d.get("program"))
    is_sbir, is_sttr = _program_flags(program)
    amount = parse_decimal(d.get("award_amount"))

    return CandidateOpportunity(
        source=source_id,
        natural_key=natural_key(d),
        title=clean_text(d.get("award_title"), max_length=500),
        description=clean_text(d.get("abstract")),
        opportunity_type=f"{program} Award" if program else None,
        solicitation_number=clean_text(d.get("solicitation_number")),
        topic_code=clean_text(d.get("topic_code")),
        agency=agency,
        sub_agency=clean_text(d.get("branch")),
        posted_date=parse_date(d.get("proposal_award_date")),
        archive_date=parse_date(d.get("contract_end_date")),
        award_amount=amount,
        estimated_value_low=amount,
        estimated_value_high=amount,
        contract_number=clean_text(d.get("contract")),
        incumbent_contractor=clean_text(d.get("firm")),
        url=clean_text(d.get("award_link")),
        pop_city=clean_text(d.get("city")),
        pop_state=clean_text(d.get("state")),
        pop_zip=clean_text(d.get("zip")),
        is_sbir=is_sbir,
        is_sttr=is_sttr,
        sbir_phase=normalize_phase(d.get("phase")),
        is_dod=_is_dod(agency),
        status="awarded",
        award_year=parse_int(d.get("award_year")),
        solicitation_year=parse_int(d.get("solicitation_year")),
        number_employees=parse_int(d.get("number_employees")),
        hubzone_owned=parse_bool(d.get("hubzone_owned")),
        women_owned=parse_bool(d.get("women_owned")),
        socially_economically_disadvantaged=parse_bool(d.get("socially_economically_disadvantaged")),
    )


def _topic_code(topics: Any) -> Optional[str]:
    """The topic number of a single-topic solicitation; None when there are several."""
    if not isinstance(topics, list) or len(topics) != 1 or not isinstance(topics[0], dict):
        return None
    return clean_text(topics[0].get("topic_number"))


def solicitation_to_candidate(raw: RawRecord, source_id: str = "sbir") -> CandidateOpportunity:
    """Convert one SBIR.gov open solicitation to a candidate."""
    d = raw.data
    agency = clean_text(d.get("agency"))
    program = clean_text(d.get("program"))
    # program is "SBIR", "STTR" or "SBIR/STTR" for joint solicitations
    is_sbir, is_sttr = detect_program(program)
    status = clean_text(d.get("current_status"))

    return CandidateOpportunity(
        source=source_id,
        natural_key=solicitation_key(d),
        title=clean_text(d.get("solicitation_title"), max_length=500),
        opportunity_type=f"{program} Solicitation" if program else None,
        solicitation_number=clean_text(d.get("solicitation_number")),
        topic_code=_topic_code(d.get("solicitation_topics")),
        agency=agency,
        sub_agency=clean_text(d.get("branch")),
        posted_date=parse_date(d.get("release_date")) or parse_date(d.get("open_date")),
        response_deadline=parse_date(d.get("close_date")),
        url=clean_text(d.get("solicitation_agency_url")),
        is_sbir=is_sbir,
        is_sttr=is_sttr,
        sbir_phase=normalize_phase(d.get("phase")),
        is_dod=_is_dod(agency),
        status=status.lower() if status else "open",
        solicitation_year=parse_int(d.get("solicitation_year")),
    )
