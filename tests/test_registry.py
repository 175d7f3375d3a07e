"""Unit tests for AdapterRegistry."""

import pytest

from govcon_ingest.config import AppConfig
from govcon_ingest.sources import AdapterRegistry, SourceAdapter
from govcon_ingest.sources.sam import SamOpportunityAdapter


class TestAdapterRegistry:
    """Tests for AdapterRegistry."""

    @pytest.mark.parametrize("source_id", ["sam", "sbir", "usaspending"])
    def test_get_each_source(self, source_id: str) -> None:
        """Every registered id builds an adapter satisfying the protocol."""
        adapter = AdapterRegistry.get(source_id)
        assert adapter.source_id == source_id
        assert isinstance(adapter, SourceAdapter)

    def test_get_case_insensitive(self) -> None:
        """Registry is case-insensitive."""
        assert AdapterRegistry.get("SAM").source_id == "sam"

    def test_unknown_source_raises(self) -> None:
        """Unknown source raises ValueError."""
        with pytest.raises(ValueError, match="Unknown source: fpds"):
            AdapterRegistry.get("fpds")

    def test_available_sources(self) -> None:
        """available_sources lists the three catalogs."""
        assert AdapterRegistry.available_sources() == ["sam", "sbir", "usaspending"]

    def test_config_section_passed_through(self) -> None:
        """The adapter receives its own configuration section."""
        config = AppConfig.model_validate({"sam": {"naics_codes": ["336411"]}})
        adapter = AdapterRegistry.get("sam", config)
        assert isinstance(adapter, SamOpportunityAdapter)
        assert adapter.list_partitions() == ["336411"]

    def test_build_enabled_skips_disabled(self) -> None:
        """Disabled sections are not built."""
        config = AppConfig.model_validate({"sbir": {"enabled": False}})
        assert sorted(AdapterRegistry.build_enabled(config)) == ["sam", "usaspending"]
