"""USAspending.gov awards adapter (Catalog C).

Partitions are "naics:<code>" when NAICS codes are configured, otherwise
"agency:<name>" per configured agency, otherwise a single "all" partition.
Each partition pages through POST /search/spending_by_award/.
"""

import logging
from datetime import date, timedelta
from typing import Any, Callable, Optional

import httpx

from govcon_ingest.config import UsaSpendingSettings
from govcon_ingest.errors import FetchError
from govcon_ingest.models.opportunity import CandidateOpportunity
from govcon_ingest.models.raw import RawRecord
from govcon_ingest.sources.http_client import build_client, request_json
from govcon_ingest.sources.throttle import RequestThrottle

from .parsers import to_candidate

logger = logging.getLogger(__name__)

SEARCH_PATH = "/search/spending_by_award/"
ALL_PARTITION = "all"

RESULT_FIELDS = [
    "Award ID",
    "Recipient Name",
    "recipient_uei",
    "Start Date",
    "End Date",
    "Award Amount",
    "Description",
    "Awarding Agency",
    "Awarding Sub Agency",
    "Contract Award Type",
    "Award Type",
    "Place of Performance City",
    "Place of Performance State",
    "Place of Performance Zip",
    "Place of Performance Country",
    "NAICS Code",
    "NAICS Description",
    "PSC Code",
    "Last Modified Date",
    "generated_internal_id",
]


class UsaSpendingAwardAdapter:
    """Fetches federal contract awards partitioned by NAICS code or agency."""

    source_id = "usaspending"

    def __init__(
        self,
        settings: Optional[UsaSpendingSettings] = None,
        client: Optional[httpx.Client] = None,
        today: Callable[[], date] = date.today,
    ):
        self.settings = settings or UsaSpendingSettings()
        self._client = client or build_client(self.settings.timeout_seconds)
        self._throttle = RequestThrottle(self.settings.rate_limit_ms)
        self._today = today

    def list_partitions(self) -> list[str]:
        """NAICS partitions take precedence over agency partitions."""
        if self.settings.naics_codes:
            return [f"naics:{c}" for c in dict.fromkeys(self.settings.naics_codes)]
        if self.settings.agencies:
            return [f"agency:{a}" for a in dict.fromkeys(self.settings.agencies)]
        return [ALL_PARTITION]

    def build_filters(self, partition: str) -> dict[str, Any]:
        """Search filters for one partition."""
        end = self._today()
        start = end - timedelta(days=self.settings.award_lookback_days)
        filters: dict[str, Any] = {
            "award_type_codes": self.settings.award_types,
            "time_period": [{"start_date": start.isoformat(), "end_date": end.isoformat()}],
        }
        kind, _, value = partition.partition(":")
        if kind == "naics" and value:
            filters["naics_codes"] = [value]
        elif kind == "agency" and value:
            filters["agencies"] = [{"type": "awarding", "tier": "toptier", "name": value}]
        elif partition != ALL_PARTITION:
            raise FetchError(
                f"Malformed USAspending partition: {partition!r}",
                source=self.source_id,
                partition=partition,
            )
        return filters

    def fetch(self, partition: str) -> list[RawRecord]:
        """Page through award search results for one partition."""
        filters = self.build_filters(partition)
        url = self.settings.base_url.rstrip("/") + SEARCH_PATH
        page_size = self.settings.page_size
        max_pages = max(1, -(-self.settings.max_results // page_size))
        records: list[RawRecord] = []

        for page in range(1, max_pages + 1):
            body = {
                "filters": filters,
                "fields": RESULT_FIELDS,
                "page": page,
                "limit": page_size,
                "sort": "Award Amount",
                "order": "desc",
            }
            payload = request_json(
                self._client,
                "POST",
                url,
                source=self.source_id,
                partition=partition,
                throttle=self._throttle,
                json=body,
            )
            if payload is None:
                break
            if not isinstance(payload, dict):
                raise FetchError(
                    f"Unexpected USAspending response shape for {partition}",
                    source=self.source_id,
                    partition=partition,
                )
            results = payload.get("results") or []
            records.extend(RawRecord(data=item, partition=partition) for item in results if isinstance(item, dict))
            has_next = (payload.get("page_metadata") or {}).get("hasNext")
            logger.debug("USAspending %s: page %d returned %d awards", partition, page, len(results))
            if len(results) < page_size or has_next is False:
                break

        return records[: self.settings.max_results]

    def to_candidate(self, raw: RawRecord) -> CandidateOpportunity:
        return to_candidate(raw, today=self._today(), source_id=self.source_id)
