"""Source adapters for upstream contracting catalogs."""

from govcon_ingest.sources.base import SourceAdapter
from govcon_ingest.sources.registry import AdapterRegistry

__all__ = ["AdapterRegistry", "SourceAdapter"]
