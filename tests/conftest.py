"""Pytest fixtures for govcon-ingest tests."""

import tempfile
import threading
import time
from pathlib import Path
from typing import Any, Callable, Optional, Union

import httpx
import pytest

from govcon_ingest.models.opportunity import CandidateOpportunity
from govcon_ingest.models.raw import RawRecord
from govcon_ingest.store import OpportunityStore

PartitionData = Union[list[dict[str, Any]], Exception]


class FakeAdapter:
    """
    In-memory SourceAdapter. Each partition maps to a list of record dicts or
    to an exception that fetch raises. Record dicts are CandidateOpportunity
    fields; a record with "explode" set makes to_candidate raise.
    """

    def __init__(
        self,
        partitions: dict[str, PartitionData],
        source_id: str = "fake",
        delay: float = 0.0,
    ):
        self.source_id = source_id
        self.partitions = partitions
        self.delay = delay
        self.fetched: list[str] = []
        self.active = 0
        self.peak = 0
        self._lock = threading.Lock()

    def list_partitions(self) -> list[str]:
        return list(self.partitions.keys())

    def fetch(self, partition: str) -> list[RawRecord]:
        with self._lock:
            self.fetched.append(partition)
            self.active += 1
            self.peak = max(self.peak, self.active)
        try:
            if self.delay:
                time.sleep(self.delay)
            data = self.partitions[partition]
            if isinstance(data, Exception):
                raise data
            return [RawRecord(data=dict(item), partition=partition) for item in data]
        finally:
            with self._lock:
                self.active -= 1

    def to_candidate(self, raw: RawRecord) -> CandidateOpportunity:
        data = dict(raw.data)
        if data.pop("explode", False):
            raise ValueError("unmappable record")
        return CandidateOpportunity(source=self.source_id, **data)


@pytest.fixture
def make_adapter() -> Callable[..., FakeAdapter]:
    """Factory for in-memory adapters."""
    return FakeAdapter


@pytest.fixture
def temp_db() -> Path:
    """Temporary database path for isolated tests."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        path = Path(f.name)
    yield path
    path.unlink(missing_ok=True)


@pytest.fixture
def store(temp_db: Path) -> OpportunityStore:
    """OpportunityStore with temporary database."""
    return OpportunityStore(temp_db)


def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
    """httpx client whose requests are answered by handler."""
    return httpx.Client(transport=httpx.MockTransport(handler))


@pytest.fixture
def client_for() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.Client]:
    """Build an httpx client backed by a MockTransport handler."""
    return mock_client


def sam_record(
    solicitation_number: Optional[str] = "SOL-1",
    title: str = "Cloud Modernization Support",
    **overrides: Any,
) -> dict[str, Any]:
    """One SAM.gov opportunitiesData entry."""
    record: dict[str, Any] = {
        "noticeId": "abc123",
        "title": title,
        "solicitationNumber": solicitation_number,
        "fullParentPathName": "DEPT OF DEFENSE.DEPT OF THE ARMY.W6QK ACC-APG",
        "postedDate": "2025-03-01",
        "type": "Solicitation",
        "baseType": "Combined Synopsis/Solicitation",
        "archiveDate": "04/15/2025",
        "typeOfSetAsideDescription": "Total Small Business Set-Aside (FAR 19.5)",
        "typeOfSetAside": "SBA",
        "responseDeadLine": "2025-03-31T17:00:00-04:00",
        "naicsCode": "541512",
        "classificationCode": "DA01",
        "active": "Yes",
        "description": "https://api.sam.gov/prod/opportunities/v1/noticedesc?noticeid=abc123",
        "uiLink": "https://sam.gov/opp/abc123/view",
        "modifiedDate": "2025-03-02T09:30:00Z",
        "placeOfPerformance": {
            "city": {"code": "4000", "name": "Aberdeen Proving Ground"},
            "state": {"code": "MD", "name": "Maryland"},
            "zip": "21005",
            "country": {"code": "USA", "name": "UNITED STATES"},
        },
    }
    record.update(overrides)
    return record


@pytest.fixture
def sample_sam_record() -> dict[str, Any]:
    """SAM.gov opportunity with solicitation number SOL-1."""
    return sam_record()


@pytest.fixture
def sample_sbir_award() -> dict[str, Any]:
    """One SBIR.gov /awards entry."""
    return {
        "firm": "Quantum Widgets LLC",
        "award_title": "Phase II: Radiation-Hardened Sensor Arrays",
        "agency": "DOD",
        "branch": "Air Force",
        "phase": "Phase II",
        "program": "SBIR",
        "agency_tracking_number": "F2-1234",
        "contract": "FA8650-24-C-1234",
        "proposal_award_date": "2024-06-15",
        "contract_end_date": "2026-06-14",
        "solicitation_number": "AF241-001",
        "topic_code": "AF241-0001",
        "award_year": "2024",
        "solicitation_year": "2024",
        "number_employees": "42",
        "hubzone_owned": "N",
        "women_owned": "Y",
        "socially_economically_disadvantaged": "",
        "award_amount": "1,249,987.50",
        "city": "Dayton",
        "state": "OH",
        "zip": "45433",
        "abstract": "Sensor arrays that survive high radiation environments.",
        "award_link": "https://www.sbir.gov/node/2700001",
    }


@pytest.fixture
def sample_usaspending_award() -> dict[str, Any]:
    """One spending_by_award result."""
    return {
        "internal_id": 123456789,
        "Award ID": "W911QX-24-C-0001",
        "Recipient Name": "ACME FEDERAL SERVICES INC",
        "Start Date": "2024-01-10",
        "End Date": "2027-01-09",
        "Award Amount": 4500000.0,
        "Description": "IT MODERNIZATION SUPPORT SERVICES",
        "Awarding Agency": "Department of Defense",
        "Awarding Sub Agency": "Department of the Army",
        "Contract Award Type": "Definitive Contract",
        "Place of Performance City": "ADELPHI",
        "Place of Performance State": "MD",
        "Place of Performance Zip": "20783",
        "Place of Performance Country": None,
        "NAICS Code": {"code": "541512", "description": "COMPUTER SYSTEMS DESIGN SERVICES"},
        "PSC Code": {"code": "DA01", "description": "IT AND TELECOM - BUSINESS APPLICATION"},
        "Last Modified Date": "2024-02-01 12:34:56",
        "generated_internal_id": "CONT_AWD_W911QX24C0001_9700_-NONE-_-NONE-",
    }
