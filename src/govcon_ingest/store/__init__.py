"""Persistent storage for canonical opportunities."""

from govcon_ingest.store.sqlite_store import OpportunityStore

__all__ = ["OpportunityStore"]
