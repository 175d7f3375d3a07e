"""In-process interval scheduler with a one-shot startup run."""

import logging
import threading
from typing import Optional, Sequence

from govcon_ingest.ingest.coordinator import RunCoordinator
from govcon_ingest.models.results import IngestionRunResult

logger = logging.getLogger(__name__)


class IngestionScheduler:
    """
    Calls RunCoordinator.run_all() every interval_seconds on a daemon thread.
    A failing cycle is logged and the loop carries on.
    """

    def __init__(
        self,
        coordinator: RunCoordinator,
        interval_seconds: float = 86400,
        startup_sources: Sequence[str] = ("sam:sources-sought",),
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.coordinator = coordinator
        self.interval_seconds = interval_seconds
        self.startup_sources = list(startup_sources)
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_startup(self) -> list[IngestionRunResult]:
        """
        Run each configured startup source once; failures are logged, not raised.
        An entry is a source id ("sbir") or a source id and partition kind
        ("sam:sources-sought").
        """
        results: list[IngestionRunResult] = []
        for entry in self.startup_sources:
            source_id, _, kind = entry.partition(":")
            logger.info("Running startup ingestion for %s", entry)
            try:
                if kind:
                    results.append(self.coordinator.run_for_adapter(source_id, kind=kind))
                else:
                    results.append(self.coordinator.run_for_adapter(source_id))
            except Exception:
                logger.exception("Startup ingestion for %s failed", entry)
        return results

    def run_cycle(self) -> Optional[IngestionRunResult]:
        """One scheduled run of every adapter; returns None when the run raised."""
        logger.info("Starting scheduled ingestion cycle")
        try:
            return self.coordinator.run_all()
        except Exception:
            logger.exception("Scheduled ingestion cycle failed")
            return None

    def _loop(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            self.run_cycle()
        logger.info("Scheduler stopped")

    def start(self) -> None:
        if self.running:
            logger.debug("Scheduler already running")
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="ingestion-scheduler", daemon=True)
        self._thread.start()
        logger.info("Scheduler started; running every %ss", self.interval_seconds)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until stop() is called; True if it was."""
        return self._stop.wait(timeout)
