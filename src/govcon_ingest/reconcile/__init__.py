"""Natural-key reconciliation of candidates into canonical records."""

from govcon_ingest.reconcile.engine import ReconcileTally, ReconciliationEngine

__all__ = ["ReconcileTally", "ReconciliationEngine"]
