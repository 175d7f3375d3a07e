"""Capability every source adapter provides."""

from typing import Protocol, runtime_checkable

from govcon_ingest.models.opportunity import CandidateOpportunity
from govcon_ingest.models.raw import RawRecord


@runtime_checkable
class SourceAdapter(Protocol):
    """
    Standard interface for upstream sources.
    New sources implement these members; there is no base class to extend.
    """

    source_id: str

    def list_partitions(self) -> list[str]:
        """
        Partition keys this source is fetched by, from configuration.
        Sources with several kinds of partition also accept an optional kind
        argument that lists only that kind.
        """
        ...

    def fetch(self, partition: str) -> list[RawRecord]:
        """
        Fetch every raw record of one partition.
        Raises FetchError on transport, auth, rate-limit or decoding failure;
        an empty list always means the partition really is empty.
        """
        ...

    def to_candidate(self, raw: RawRecord) -> CandidateOpportunity:
        """Map one raw record to a normalized candidate."""
        ...
