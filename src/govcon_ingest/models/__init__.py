"""Data models for raw, candidate and canonical opportunities."""

from govcon_ingest.models.opportunity import (
    CandidateOpportunity,
    CanonicalOpportunity,
    OpportunityFields,
)
from govcon_ingest.models.raw import RawRecord
from govcon_ingest.models.results import (
    IngestionRunResult,
    PartitionOutcome,
    ReconcileOutcome,
    RunState,
)

__all__ = [
    "CandidateOpportunity",
    "CanonicalOpportunity",
    "IngestionRunResult",
    "OpportunityFields",
    "PartitionOutcome",
    "RawRecord",
    "ReconcileOutcome",
    "RunState",
]
