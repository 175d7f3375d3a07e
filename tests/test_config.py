"""Unit tests for configuration loading."""

from pathlib import Path

import pytest

from govcon_ingest.config import AppConfig, load_config
from govcon_ingest.errors import ConfigError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's environment out of config tests."""
    for name in ("SAM_API_KEY", "GOVCON_INGEST_DB", "GOVCON_INGEST_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


class TestLoadConfig:
    """Tests for load_config."""

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        """A path that does not exist yields default configuration."""
        config = load_config(tmp_path / "absent.yaml")
        assert config == AppConfig()
        assert config.ingestion.max_workers == 4
        assert config.sam.naics_codes == ["541511", "541512", "541519"]
        assert config.startup_sources == ["sam:sources-sought"]
        assert config.sam.sbir_keywords == []
        assert config.sbir.include_solicitations is True

    def test_reads_yaml(self, tmp_path: Path) -> None:
        """Values in the YAML file override defaults."""
        path = tmp_path / "config.yaml"
        path.write_text(
            "db_path: data/opps.db\n"
            "ingestion:\n"
            "  max_workers: 8\n"
            "  reconcile_lanes: 2\n"
            "sam:\n"
            "  sbir_keywords: [SBIR, STTR]\n"
            "  include_sources_sought: true\n"
            "sbir:\n"
            "  agencies: [dod, nasa]\n"
            "usaspending:\n"
            "  enabled: false\n",
            encoding="utf-8",
        )
        config = load_config(path)
        assert config.db_path == Path("data/opps.db")
        assert config.ingestion.max_workers == 8
        assert config.ingestion.reconcile_lanes == 2
        assert config.sbir.agencies == ["DOD", "NASA"]
        assert config.sam.sbir_keywords == ["SBIR", "STTR"]
        assert config.sam.include_sources_sought is True
        assert config.usaspending.enabled is False

    def test_empty_file(self, tmp_path: Path) -> None:
        """An empty file is the same as no file."""
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(path) == AppConfig()

    def test_env_overrides(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Environment variables win over the file."""
        path = tmp_path / "config.yaml"
        path.write_text("log_level: INFO\nsam:\n  api_key: from-file\n", encoding="utf-8")
        monkeypatch.setenv("SAM_API_KEY", "from-env")
        monkeypatch.setenv("GOVCON_INGEST_DB", "/tmp/env.db")
        monkeypatch.setenv("GOVCON_INGEST_LOG_LEVEL", "DEBUG")
        config = load_config(path)
        assert config.sam.api_key == "from-env"
        assert config.db_path == Path("/tmp/env.db")
        assert config.log_level == "DEBUG"

    def test_malformed_yaml(self, tmp_path: Path) -> None:
        """Broken YAML is a ConfigError."""
        path = tmp_path / "config.yaml"
        path.write_text("ingestion: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path)

    def test_non_mapping(self, tmp_path: Path) -> None:
        """A top-level list is a ConfigError."""
        path = tmp_path / "config.yaml"
        path.write_text("- sam\n- sbir\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(path)

    def test_invalid_values(self, tmp_path: Path) -> None:
        """Schema violations are ConfigErrors."""
        path = tmp_path / "config.yaml"
        path.write_text("ingestion:\n  max_workers: 0\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_config(path)
