"""Exception hierarchy for the ingestion pipeline.

Partition- and record-scoped errors are recovered close to where they are
raised and turned into counts; only OrchestrationFault is meant to escape a run.
"""

from typing import Optional


class IngestError(Exception):
    """Base exception for all ingestion failures."""


class ConfigError(IngestError):
    """Raised for an unreadable or invalid configuration file."""


class FetchError(IngestError):
    """Raised by a source adapter when one partition cannot be fetched."""

    def __init__(self, message: str, *, source: Optional[str] = None, partition: Optional[str] = None):
        super().__init__(message)
        self.source = source
        self.partition = partition


class ReconciliationError(IngestError):
    """Raised by the store when a canonical record cannot be written."""


class OrchestrationFault(IngestError):
    """Raised when fetch tasks cannot be scheduled or joined at all."""
