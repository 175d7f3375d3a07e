"""Outcome types reported by the orchestrator, engine and coordinator."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from govcon_ingest.models.opportunity import CandidateOpportunity
from govcon_ingest.models.raw import RawRecord


class ReconcileOutcome(str, Enum):
    """Result of reconciling one candidate."""

    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"


class RunState(str, Enum):
    """Lifecycle of a single ingestion run. There is no failed state."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    COMPLETED = "completed"


class PartitionOutcome(BaseModel):
    """Result of fetching and normalizing one partition."""

    partition: str
    records: list[RawRecord] = Field(default_factory=list)
    candidates: list[CandidateOpportunity] = Field(default_factory=list)
    rejected: int = Field(default=0, description="Raw records whose field mapping raised")
    failure: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.failure is not None


class IngestionRunResult(BaseModel):
    """Summary of one run; logged and returned, never persisted."""

    source: str = "all"
    new_count: int = 0
    updated_count: int = 0
    skipped_count: int = 0
    failed_partitions: int = 0
    duration_ms: int = 0

    def __add__(self, other: "IngestionRunResult") -> "IngestionRunResult":
        return IngestionRunResult(
            source="all",
            new_count=self.new_count + other.new_count,
            updated_count=self.updated_count + other.updated_count,
            skipped_count=self.skipped_count + other.skipped_count,
            failed_partitions=self.failed_partitions + other.failed_partitions,
            duration_ms=self.duration_ms + other.duration_ms,
        )

    def to_message(self) -> str:
        """One-line summary for logs and CLI output."""
        return (
            f"{self.source} ingestion completed in {self.duration_ms}ms. "
            f"New: {self.new_count}, Updated: {self.updated_count}, "
            f"Skipped: {self.skipped_count}, Failed partitions: {self.failed_partitions}"
        )
