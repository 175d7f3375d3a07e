"""Fetch orchestration and run coordination."""

from govcon_ingest.ingest.coordinator import IngestionRun, RunCoordinator
from govcon_ingest.ingest.orchestrator import FetchOrchestrator

__all__ = ["FetchOrchestrator", "IngestionRun", "RunCoordinator"]
