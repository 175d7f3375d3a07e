"""SBIR.gov adapter (Catalog B): awards and open solicitations.

Award partitions are "<AGENCY>:<year>" for every configured agency over the
current year and the configured number of previous years. When
include_solicitations is set there is one more partition, "solicitations:open",
for the topics currently accepting proposals. Every partition pages until a
short page or the configured result cap.
"""

import logging
from datetime import date
from typing import Any, Callable, Optional

import httpx

from govcon_ingest.config import SbirSettings
from govcon_ingest.errors import FetchError
from govcon_ingest.models.opportunity import CandidateOpportunity
from govcon_ingest.models.raw import RawRecord
from govcon_ingest.sources.http_client import build_client, request_json
from govcon_ingest.sources.throttle import RequestThrottle

from .parsers import solicitation_to_candidate, to_candidate

logger = logging.getLogger(__name__)

AWARDS = "awards"
SOLICITATIONS = "solicitations"
PARTITION_KINDS = (AWARDS, SOLICITATIONS)
OPEN_SOLICITATIONS = f"{SOLICITATIONS}:open"


def split_partition(partition: str) -> tuple[str, int]:
    """Split "DOD:2025" into ("DOD", 2025); ValueError on a malformed key."""
    agency, _, year = partition.rpartition(":")
    if not agency or not year.isdigit():
        raise ValueError(f"Malformed SBIR partition: {partition!r}")
    return agency, int(year)


class SbirAwardAdapter:
    """Fetches SBIR/STTR awards by agency and award year, plus open solicitations."""

    source_id = "sbir"

    def __init__(
        self,
        settings: Optional[SbirSettings] = None,
        client: Optional[httpx.Client] = None,
        today: Callable[[], date] = date.today,
    ):
        self.settings = settings or SbirSettings()
        self._client = client or build_client(self.settings.timeout_seconds)
        self._throttle = RequestThrottle(self.settings.rate_limit_ms)
        self._today = today

    def list_partitions(self, kind: Optional[str] = None) -> list[str]:
        """
        Agency:year keys, newest year first, then the open-solicitations key
        when include_solicitations is set. A kind lists only that kind.
        """
        if kind is not None and kind not in PARTITION_KINDS:
            raise ValueError(f"Unknown SBIR.gov partition kind: {kind!r}. Available: {list(PARTITION_KINDS)}")
        partitions: list[str] = []
        if kind in (None, AWARDS):
            current = self._today().year
            years = [current - offset for offset in range(self.settings.year_lookback + 1)]
            agencies = list(dict.fromkeys(self.settings.agencies))
            partitions.extend(f"{agency}:{year}" for year in years for agency in agencies)
        if kind == SOLICITATIONS or (kind is None and self.settings.include_solicitations):
            partitions.append(OPEN_SOLICITATIONS)
        return partitions

    def fetch(self, partition: str) -> list[RawRecord]:
        """Page through one partition; any failed page fails the whole partition."""
        base = self.settings.base_url.rstrip("/")
        if partition == OPEN_SOLICITATIONS:
            return self._paged(base + "/solicitations", partition, {"open": 1})
        try:
            agency, year = split_partition(partition)
        except ValueError as e:
            raise FetchError(str(e), source=self.source_id, partition=partition) from e
        return self._paged(base + "/awards", partition, {"agency": agency, "year": year})

    def _paged(self, url: str, partition: str, query: dict[str, Any]) -> list[RawRecord]:
        rows = self.settings.rows_per_request
        records: list[RawRecord] = []
        start = 0

        while start < self.settings.max_results:
            page = request_json(
                self._client,
                "GET",
                url,
                source=self.source_id,
                partition=partition,
                throttle=self._throttle,
                params={**query, "rows": rows, "start": start},
            )
            if page is None:
                break
            if not isinstance(page, list):
                raise FetchError(
                    f"Unexpected SBIR.gov response shape for {partition}",
                    source=self.source_id,
                    partition=partition,
                )
            records.extend(RawRecord(data=item, partition=partition) for item in page if isinstance(item, dict))
            logger.debug("SBIR.gov %s: page at %d returned %d records", partition, start, len(page))
            if len(page) < rows:
                break
            start += rows

        return records[: self.settings.max_results]

    def to_candidate(self, raw: RawRecord) -> CandidateOpportunity:
        if raw.partition == OPEN_SOLICITATIONS:
            return solicitation_to_candidate(raw, source_id=self.source_id)
        return to_candidate(raw, source_id=self.source_id)
