"""Application configuration loaded from YAML with environment overrides."""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from govcon_ingest.errors import ConfigError


class SamSettings(BaseModel):
    """SAM.gov opportunities (Catalog A); partitions by NAICS code, Sources Sought and keyword."""

    enabled: bool = True
    base_url: str = "https://api.sam.gov/opportunities/v2/search"
    api_key: Optional[str] = None
    naics_codes: list[str] = Field(default_factory=lambda: ["541511", "541512", "541519"])
    posted_within_days: int = Field(default=30, ge=1, le=365)
    limit: int = Field(default=1000, ge=1, le=1000)
    ptype: str = Field(default="o,k,p", description="Procurement types: o, k, p, r, ...")
    set_aside: Optional[str] = None
    include_sources_sought: bool = Field(
        default=False,
        description="Also list a ptype=r partition per NAICS code in regular runs",
    )
    sbir_keywords: list[str] = Field(
        default_factory=list,
        description="Title keywords (e.g. SBIR, STTR) searched across all NAICS codes",
    )
    rate_limit_ms: int = Field(default=1000, ge=0)
    timeout_seconds: float = 30.0


class SbirSettings(BaseModel):
    """SBIR.gov awards (Catalog B); one partition per agency and award year, plus open solicitations."""

    enabled: bool = True
    base_url: str = "https://api.www.sbir.gov/public/api"
    agencies: list[str] = Field(default_factory=lambda: ["DOD", "NASA", "NSF", "DOE", "HHS"])
    year_lookback: int = Field(default=1, ge=0, description="Previous years fetched besides the current one")
    rows_per_request: int = Field(default=100, ge=1, le=5000)
    max_results: int = Field(default=1000, ge=1)
    include_solicitations: bool = Field(default=True, description="Also fetch open solicitations")
    rate_limit_ms: int = Field(default=1000, ge=0)
    timeout_seconds: float = 30.0

    @field_validator("agencies")
    @classmethod
    def _upper_agencies(cls, value: list[str]) -> list[str]:
        return [a.strip().upper() for a in value if a and a.strip()]


class UsaSpendingSettings(BaseModel):
    """USAspending.gov awards (Catalog C); partitions by NAICS code, else agency, else one."""

    enabled: bool = True
    base_url: str = "https://api.usaspending.gov/api/v2"
    naics_codes: list[str] = Field(default_factory=list)
    agencies: list[str] = Field(default_factory=list)
    award_types: list[str] = Field(default_factory=lambda: ["A", "B", "C", "D"])
    award_lookback_days: int = Field(default=90, ge=1)
    page_size: int = Field(default=100, ge=1, le=100)
    max_results: int = Field(default=1000, ge=1)
    rate_limit_ms: int = Field(default=500, ge=0)
    timeout_seconds: float = 60.0


class IngestionSettings(BaseModel):
    """Knobs for the fetch orchestrator, reconciliation engine and run coordinator."""

    max_workers: int = Field(default=4, ge=1, description="Concurrent partition fetches per adapter")
    adapter_concurrency: int = Field(default=3, ge=1, description="Adapters run at once by run_all")
    deadline_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Partitions not started by this many seconds into a fetch are skipped",
    )
    reconcile_lanes: int = Field(default=1, ge=1, description="Serialized reconcile lanes, sharded by key hash")
    reject_stale_updates: bool = False


class AppConfig(BaseModel):
    """Root configuration."""

    db_path: Path = Path("govcon_ingest.db")
    log_level: str = "INFO"
    schedule_interval_seconds: int = Field(default=86400, ge=60)
    startup_sources: list[str] = Field(
        default_factory=lambda: ["sam:sources-sought"],
        description="Sources run once at scheduler startup; <source>:<kind> narrows to one partition kind",
    )

    ingestion: IngestionSettings = Field(default_factory=IngestionSettings)
    sam: SamSettings = Field(default_factory=SamSettings)
    sbir: SbirSettings = Field(default_factory=SbirSettings)
    usaspending: UsaSpendingSettings = Field(default_factory=UsaSpendingSettings)


def _apply_env(data: dict) -> dict:
    """Overlay environment variables onto raw config data."""
    api_key = os.environ.get("SAM_API_KEY")
    if api_key:
        data.setdefault("sam", {})
        if isinstance(data["sam"], dict):
            data["sam"]["api_key"] = api_key
    db_path = os.environ.get("GOVCON_INGEST_DB")
    if db_path:
        data["db_path"] = db_path
    log_level = os.environ.get("GOVCON_INGEST_LOG_LEVEL")
    if log_level:
        data["log_level"] = log_level
    return data


def load_config(path: Optional[str | Path] = None) -> AppConfig:
    """
    Load AppConfig from a YAML file. A missing file gives defaults;
    malformed YAML or invalid values raise ConfigError.
    """
    data: dict = {}
    if path is not None:
        config_path = Path(path)
        if config_path.exists():
            try:
                loaded = yaml.safe_load(config_path.read_text(encoding="utf-8"))
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
            if loaded is None:
                loaded = {}
            if not isinstance(loaded, dict):
                raise ConfigError(f"Top-level config in {config_path} must be a mapping")
            data = loaded
    try:
        return AppConfig.model_validate(_apply_env(data))
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
