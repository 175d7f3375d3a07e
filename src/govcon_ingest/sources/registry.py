"""Registry for discovering and instantiating source adapters."""

from typing import Callable, Optional

from govcon_ingest.config import AppConfig
from govcon_ingest.sources.base import SourceAdapter
from govcon_ingest.sources.sam import SamOpportunityAdapter
from govcon_ingest.sources.sbir import SbirAwardAdapter
from govcon_ingest.sources.usaspending import UsaSpendingAwardAdapter

AdapterFactory = Callable[..., SourceAdapter]


class AdapterRegistry:
    """Maps source ids to adapter factories built from AppConfig sections."""

    _adapters: dict[str, AdapterFactory] = {
        "sam": lambda config, **kw: SamOpportunityAdapter(config.sam, **kw),
        "sbir": lambda config, **kw: SbirAwardAdapter(config.sbir, **kw),
        "usaspending": lambda config, **kw: UsaSpendingAwardAdapter(config.usaspending, **kw),
    }

    @classmethod
    def get(cls, source_id: str, config: Optional[AppConfig] = None, **kwargs) -> SourceAdapter:
        """Get an adapter for the given source. kwargs are passed to the adapter __init__."""
        factory = cls._adapters.get(source_id.lower())
        if not factory:
            raise ValueError(f"Unknown source: {source_id}. Available: {list(cls._adapters.keys())}")
        return factory(config or AppConfig(), **kwargs)

    @classmethod
    def available_sources(cls) -> list[str]:
        """Return list of available source identifiers."""
        return list(cls._adapters.keys())

    @classmethod
    def build_enabled(cls, config: AppConfig) -> dict[str, SourceAdapter]:
        """Instantiate every adapter whose config section is enabled."""
        enabled = {
            "sam": config.sam.enabled,
            "sbir": config.sbir.enabled,
            "usaspending": config.usaspending.enabled,
        }
        return {sid: cls.get(sid, config) for sid in cls.available_sources() if enabled.get(sid, True)}
