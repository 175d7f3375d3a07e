"""Run coordination: fetch -> normalize -> reconcile, per adapter or across all."""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Mapping, Optional, Union

from govcon_ingest.config import IngestionSettings
from govcon_ingest.ingest.orchestrator import FetchOrchestrator
from govcon_ingest.models.results import IngestionRunResult, RunState
from govcon_ingest.reconcile.engine import CanonicalStore, ReconciliationEngine
from govcon_ingest.sources.base import SourceAdapter

logger = logging.getLogger(__name__)


@dataclass
class IngestionRun:
    """One invocation of the pipeline: NOT_STARTED -> RUNNING -> COMPLETED."""

    source: str
    state: RunState = RunState.NOT_STARTED
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    result: Optional[IngestionRunResult] = field(default=None, repr=False)

    def start(self) -> None:
        if self.state is not RunState.NOT_STARTED:
            raise RuntimeError(f"Run for {self.source} already {self.state.value}")
        self.state = RunState.RUNNING
        self.started_at = datetime.now(timezone.utc)

    def complete(self, result: IngestionRunResult) -> None:
        if self.state is not RunState.RUNNING:
            raise RuntimeError(f"Run for {self.source} is {self.state.value}, not running")
        self.result = result
        self.state = RunState.COMPLETED
        self.finished_at = datetime.now(timezone.utc)


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


class RunCoordinator:
    """
    Composes the fetch orchestrator and reconciliation engine into runs.
    Partition failures and record failures end up in the result counts; only
    an OrchestrationFault propagates out of a run.
    """

    def __init__(
        self,
        adapters: Union[Mapping[str, SourceAdapter], Iterable[SourceAdapter]],
        store: CanonicalStore,
        settings: Optional[IngestionSettings] = None,
    ):
        self.settings = settings or IngestionSettings()
        if isinstance(adapters, Mapping):
            self._adapters = dict(adapters)
        else:
            self._adapters = {a.source_id: a for a in adapters}
        self.store = store
        self._orchestrator = FetchOrchestrator(
            max_workers=self.settings.max_workers,
            deadline_seconds=self.settings.deadline_seconds,
        )
        self._engine = ReconciliationEngine(store, reject_stale=self.settings.reject_stale_updates)
        self._lock = threading.Lock()
        self.last_run: Optional[IngestionRun] = None

    @property
    def adapters(self) -> dict[str, SourceAdapter]:
        return dict(self._adapters)

    @property
    def state(self) -> RunState:
        """State of the most recently started run."""
        with self._lock:
            run = self.last_run
        return run.state if run is not None else RunState.NOT_STARTED

    def _resolve(self, adapter: Union[str, SourceAdapter]) -> SourceAdapter:
        if not isinstance(adapter, str):
            return adapter
        found = self._adapters.get(adapter.lower())
        if found is None:
            raise ValueError(f"Unknown source: {adapter}. Available: {list(self._adapters.keys())}")
        return found

    def _track(self, run: IngestionRun) -> None:
        with self._lock:
            self.last_run = run

    def _partitions_of_kind(self, source: SourceAdapter, kind: str) -> list[str]:
        try:
            return list(source.list_partitions(kind))
        except TypeError as e:
            raise ValueError(f"{source.source_id} does not support partition kinds") from e

    def run_for_adapter(
        self,
        adapter: Union[str, SourceAdapter],
        kind: Optional[str] = None,
    ) -> IngestionRunResult:
        """
        Fetch every partition of one adapter, then reconcile the fanned-in candidates.
        With a kind (e.g. "sources-sought" for SAM.gov) only partitions of that kind
        are fetched; an adapter without kinds, or an unknown kind, is a ValueError.
        """
        source = self._resolve(adapter)
        partitions = self._partitions_of_kind(source, kind) if kind is not None else None
        run = IngestionRun(source=source.source_id)
        self._track(run)
        return self._run_adapter(source, run, partitions)

    def _run_adapter(
        self,
        source: SourceAdapter,
        run: Optional[IngestionRun] = None,
        partitions: Optional[list[str]] = None,
    ) -> IngestionRunResult:
        """One adapter run. Only a run passed in is started and completed here."""
        if run is not None:
            run.start()
        started = time.monotonic()
        logger.info("Starting %s ingestion", source.source_id)

        outcomes = self._orchestrator.fetch_all(source, partitions)
        candidates = [c for outcome in outcomes for c in outcome.candidates]
        failed = sum(1 for outcome in outcomes if outcome.failed)
        rejected = sum(outcome.rejected for outcome in outcomes)
        logger.info(
            "Fetched %d candidates for %s from %d partitions (%d failed)",
            len(candidates),
            source.source_id,
            len(outcomes),
            failed,
        )

        tally = self._engine.reconcile_all(candidates, lanes=self.settings.reconcile_lanes)
        result = IngestionRunResult(
            source=source.source_id,
            new_count=tally.created,
            updated_count=tally.updated,
            skipped_count=tally.skipped + rejected,
            failed_partitions=failed,
            duration_ms=_elapsed_ms(started),
        )
        if run is not None:
            run.complete(result)
        logger.info("%s", result.to_message())
        return result

    def run_all(self) -> IngestionRunResult:
        """
        Run every adapter, up to adapter_concurrency at once, and sum the results.
        duration_ms is the wall-clock time of the whole composite run.
        """
        run = IngestionRun(source="all")
        self._track(run)
        run.start()
        started = time.monotonic()

        total = IngestionRunResult(source="all")
        adapters = list(self._adapters.values())
        if adapters:
            workers = min(self.settings.adapter_concurrency, len(adapters))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="adapter") as pool:
                for result in pool.map(self._run_adapter, adapters):
                    total = total + result

        result = total.model_copy(update={"source": "all", "duration_ms": _elapsed_ms(started)})
        run.complete(result)
        logger.info("%s", result.to_message())
        return result
