"""Bounded-concurrency fan-out of partition fetches for one adapter."""

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Optional, Sequence

from govcon_ingest.errors import FetchError, OrchestrationFault
from govcon_ingest.models.opportunity import CandidateOpportunity
from govcon_ingest.models.results import PartitionOutcome
from govcon_ingest.sources.base import SourceAdapter

logger = logging.getLogger(__name__)

DEADLINE_EXCEEDED = "deadline exceeded"


class FetchOrchestrator:
    """
    Fetches every partition of an adapter on a bounded thread pool.
    A failing partition is recorded on its PartitionOutcome and never stops
    the others; only a failure to schedule or join tasks raises.
    """

    def __init__(self, max_workers: int = 4, deadline_seconds: Optional[float] = None):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.max_workers = max_workers
        self.deadline_seconds = deadline_seconds

    def _run_partition(
        self,
        adapter: SourceAdapter,
        partition: str,
        deadline: Optional[float],
    ) -> PartitionOutcome:
        """Fetch one partition and normalize its records; never raises."""
        if deadline is not None and time.monotonic() > deadline:
            logger.warning("%s partition %s not started before deadline", adapter.source_id, partition)
            return PartitionOutcome(partition=partition, failure=DEADLINE_EXCEEDED)

        logger.info("Fetching %s partition %s", adapter.source_id, partition)
        try:
            records = adapter.fetch(partition)
        except FetchError as e:
            logger.warning("Fetch failed for %s partition %s: %s", adapter.source_id, partition, e)
            return PartitionOutcome(partition=partition, failure=str(e))
        except Exception as e:
            logger.exception("Unexpected error fetching %s partition %s", adapter.source_id, partition)
            return PartitionOutcome(partition=partition, failure=f"{type(e).__name__}: {e}")

        candidates: list[CandidateOpportunity] = []
        rejected = 0
        for raw in records:
            try:
                candidates.append(adapter.to_candidate(raw))
            except Exception:
                rejected += 1
                logger.exception("Could not normalize %s record in partition %s", adapter.source_id, partition)

        logger.info(
            "Fetched %d records for %s partition %s (%d rejected)",
            len(records),
            adapter.source_id,
            partition,
            rejected,
        )
        return PartitionOutcome(
            partition=partition,
            records=records,
            candidates=candidates,
            rejected=rejected,
        )

    def fetch_all(
        self,
        adapter: SourceAdapter,
        partitions: Optional[Sequence[str]] = None,
    ) -> list[PartitionOutcome]:
        """
        Fetch the given partitions (default: adapter.list_partitions()).
        Returns one outcome per partition once every task has finished;
        order is not guaranteed.
        """
        try:
            keys = list(partitions) if partitions is not None else list(adapter.list_partitions())
        except Exception as e:
            raise OrchestrationFault(f"Could not list partitions for {adapter.source_id}: {e}") from e
        if not keys:
            logger.info("No partitions configured for %s", adapter.source_id)
            return []

        deadline = time.monotonic() + self.deadline_seconds if self.deadline_seconds else None
        workers = min(self.max_workers, len(keys))
        futures: list[Future] = []
        try:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"fetch-{adapter.source_id}") as pool:
                for key in keys:
                    futures.append(pool.submit(self._run_partition, adapter, key, deadline))
                wait(futures)
        except RuntimeError as e:
            raise OrchestrationFault(f"Could not schedule fetch tasks for {adapter.source_id}: {e}") from e

        outcomes: list[PartitionOutcome] = []
        for future in futures:
            try:
                outcomes.append(future.result())
            except Exception as e:
                raise OrchestrationFault(f"Fetch task for {adapter.source_id} could not be joined: {e}") from e
        return outcomes
