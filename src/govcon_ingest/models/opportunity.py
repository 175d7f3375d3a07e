"""Candidate and canonical opportunity models."""

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OpportunityFields(BaseModel):
    """
    Descriptive fields shared by candidates and canonical records.
    None means "not known"; reconciliation never copies a None over a value.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    opportunity_type: Optional[str] = None

    solicitation_number: Optional[str] = None
    naics_code: Optional[str] = None
    naics_description: Optional[str] = None
    psc_code: Optional[str] = None
    topic_code: Optional[str] = None

    agency: Optional[str] = None
    sub_agency: Optional[str] = None
    office: Optional[str] = None
    set_aside: Optional[str] = None

    posted_date: Optional[date] = None
    response_deadline: Optional[date] = None
    archive_date: Optional[date] = None

    award_amount: Optional[Decimal] = None
    estimated_value_low: Optional[Decimal] = None
    estimated_value_high: Optional[Decimal] = None

    contract_number: Optional[str] = None
    award_id: Optional[str] = None
    incumbent_contractor: Optional[str] = None
    url: Optional[str] = None

    pop_city: Optional[str] = None
    pop_state: Optional[str] = None
    pop_zip: Optional[str] = None
    pop_country: Optional[str] = None

    is_sbir: Optional[bool] = None
    is_sttr: Optional[bool] = None
    sbir_phase: Optional[str] = None
    is_dod: Optional[bool] = None
    status: Optional[str] = None

    award_year: Optional[int] = None
    solicitation_year: Optional[int] = None
    number_employees: Optional[int] = None
    hubzone_owned: Optional[bool] = None
    women_owned: Optional[bool] = None
    socially_economically_disadvantaged: Optional[bool] = None

    source_modified_at: Optional[datetime] = None

    @classmethod
    def field_names(cls) -> list[str]:
        """Names of the mergeable descriptive fields."""
        return list(OpportunityFields.model_fields.keys())


class CandidateOpportunity(OpportunityFields):
    """One normalized observation of an opportunity from a single source."""

    source: str = Field(..., description="Adapter source id, e.g. 'sam'")
    natural_key: Optional[str] = Field(
        default=None,
        description="Deduplication key; None when the record is not ingestable",
    )

    def present_fields(self) -> dict[str, Any]:
        """Return descriptive fields this observation actually supplies."""
        present: dict[str, Any] = {}
        for name in self.field_names():
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, str) and not value.strip():
                continue
            present[name] = value
        return present


class CanonicalOpportunity(OpportunityFields):
    """Merged, source-agnostic record; exactly one exists per natural key."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    natural_key: str
    source: str = Field(..., description="Source of the latest observation")
    sources: list[str] = Field(default_factory=list, description="Every source that has contributed")

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
