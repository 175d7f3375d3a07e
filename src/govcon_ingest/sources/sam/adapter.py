"""SAM.gov opportunities adapter (Catalog A).

Partitions come in three kinds:

    "541512"                  one NAICS code, searched with the configured ptype
    "sources-sought:541512"   one NAICS code, Sources Sought notices only (ptype=r)
    "keyword:SBIR"            a title search for SBIR/STTR topics, any NAICS

Each fetch is a single GET to the opportunities v2 search endpoint bounded by
the posted-date window.
"""

import logging
from datetime import date, timedelta
from typing import Callable, Optional

import httpx

from govcon_ingest.config import SamSettings
from govcon_ingest.errors import FetchError
from govcon_ingest.models.opportunity import CandidateOpportunity
from govcon_ingest.models.raw import RawRecord
from govcon_ingest.sources.http_client import build_client, request_json
from govcon_ingest.sources.throttle import RequestThrottle

from .parsers import to_candidate

logger = logging.getLogger(__name__)

QUERY_DATE_FORMAT = "%m/%d/%Y"

NAICS = "naics"
SOURCES_SOUGHT = "sources-sought"
KEYWORD = "keyword"
PARTITION_KINDS = (NAICS, SOURCES_SOUGHT, KEYWORD)
SOURCES_SOUGHT_PTYPE = "r"


def split_partition(partition: str) -> tuple[str, str]:
    """Split a partition key into (kind, value); a bare key is a NAICS code."""
    kind, sep, value = partition.partition(":")
    if not sep:
        return NAICS, partition
    if kind not in (SOURCES_SOUGHT, KEYWORD) or not value.strip():
        raise ValueError(f"Malformed SAM.gov partition: {partition!r}")
    return kind, value.strip()


class SamOpportunityAdapter:
    """Fetches SAM.gov opportunities by NAICS code, Sources Sought notice or title keyword."""

    source_id = "sam"

    def __init__(
        self,
        settings: Optional[SamSettings] = None,
        client: Optional[httpx.Client] = None,
        today: Callable[[], date] = date.today,
    ):
        self.settings = settings or SamSettings()
        self._client = client or build_client(self.settings.timeout_seconds)
        self._throttle = RequestThrottle(self.settings.rate_limit_ms)
        self._today = today

    def _naics_codes(self) -> list[str]:
        codes = [c.strip() for c in self.settings.naics_codes if c and c.strip()]
        return list(dict.fromkeys(codes))

    def list_partitions(self, kind: Optional[str] = None) -> list[str]:
        """
        Partition keys in configuration order, without duplicates.

        With no kind: every NAICS code, then the Sources Sought partitions when
        include_sources_sought is set, then one keyword partition per sbir_keyword.
        With a kind, only that kind is listed, whatever the include flags say.
        """
        if kind is not None and kind not in PARTITION_KINDS:
            raise ValueError(f"Unknown SAM.gov partition kind: {kind!r}. Available: {list(PARTITION_KINDS)}")
        codes = self._naics_codes()
        keywords = list(dict.fromkeys(k.strip() for k in self.settings.sbir_keywords if k and k.strip()))

        partitions: list[str] = []
        if kind in (None, NAICS):
            partitions.extend(codes)
        if kind == SOURCES_SOUGHT or (kind is None and self.settings.include_sources_sought):
            partitions.extend(f"{SOURCES_SOUGHT}:{code}" for code in codes)
        if kind in (None, KEYWORD):
            partitions.extend(f"{KEYWORD}:{keyword}" for keyword in keywords)
        return partitions

    def _params(self, partition: str) -> dict[str, str | int]:
        kind, value = split_partition(partition)
        today = self._today()
        posted_from = today - timedelta(days=self.settings.posted_within_days)
        params: dict[str, str | int] = {
            "api_key": self.settings.api_key or "",
            "postedFrom": posted_from.strftime(QUERY_DATE_FORMAT),
            "postedTo": today.strftime(QUERY_DATE_FORMAT),
            "limit": self.settings.limit,
        }
        if kind == KEYWORD:
            # title search spans every NAICS code and notice type
            params["title"] = value
            return params
        params["ptype"] = SOURCES_SOUGHT_PTYPE if kind == SOURCES_SOUGHT else self.settings.ptype
        params["ncode"] = value
        if self.settings.set_aside:
            params["typeOfSetAside"] = self.settings.set_aside
        return params

    def fetch(self, partition: str) -> list[RawRecord]:
        """Fetch opportunities posted within the window for one partition."""
        if not self.settings.api_key:
            raise FetchError(
                "SAM.gov API key is not configured (set SAM_API_KEY)",
                source=self.source_id,
                partition=partition,
            )
        try:
            params = self._params(partition)
        except ValueError as e:
            raise FetchError(str(e), source=self.source_id, partition=partition) from e
        payload = request_json(
            self._client,
            "GET",
            self.settings.base_url,
            source=self.source_id,
            partition=partition,
            throttle=self._throttle,
            params=params,
        )
        if payload is None:
            return []
        if not isinstance(payload, dict):
            raise FetchError(
                f"Unexpected SAM.gov response shape for {partition}",
                source=self.source_id,
                partition=partition,
            )
        items = payload.get("opportunitiesData") or []
        logger.debug(
            "SAM.gov %s: %d records (total available: %s)",
            partition,
            len(items),
            payload.get("totalRecords"),
        )
        return [RawRecord(data=item, partition=partition) for item in items if isinstance(item, dict)]

    def to_candidate(self, raw: RawRecord) -> CandidateOpportunity:
        return to_candidate(raw, source_id=self.source_id)
