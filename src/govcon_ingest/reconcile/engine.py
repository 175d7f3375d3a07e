"""Create-or-update of canonical opportunities keyed by natural key."""

import logging
import threading
import zlib
from concurrent.futures import ThreadPoolExecutor
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Iterator, Optional, Protocol

from govcon_ingest.models.opportunity import CandidateOpportunity, CanonicalOpportunity
from govcon_ingest.models.results import ReconcileOutcome

logger = logging.getLogger(__name__)


class CanonicalStore(Protocol):
    """What the engine needs from persistent storage."""

    def find_by_natural_key(self, natural_key: str) -> Optional[CanonicalOpportunity]: ...

    def save(self, record: CanonicalOpportunity) -> CanonicalOpportunity: ...

    def transaction(self) -> AbstractContextManager[None]: ...


@dataclass
class ReconcileTally:
    """Outcome counts for a batch of candidates."""

    created: int = 0
    updated: int = 0
    skipped: int = 0

    def add(self, outcome: ReconcileOutcome) -> None:
        if outcome is ReconcileOutcome.CREATED:
            self.created += 1
        elif outcome is ReconcileOutcome.UPDATED:
            self.updated += 1
        else:
            self.skipped += 1

    def merge(self, other: "ReconcileTally") -> "ReconcileTally":
        return ReconcileTally(
            created=self.created + other.created,
            updated=self.updated + other.updated,
            skipped=self.skipped + other.skipped,
        )


def build_canonical(candidate: CandidateOpportunity, now: datetime) -> CanonicalOpportunity:
    """New canonical record populated from every field the candidate supplies."""
    return CanonicalOpportunity(
        natural_key=candidate.natural_key,
        source=candidate.source,
        sources=[candidate.source],
        created_at=now,
        updated_at=now,
        **candidate.present_fields(),
    )


def merge_into(
    existing: CanonicalOpportunity,
    candidate: CandidateOpportunity,
    now: datetime,
) -> CanonicalOpportunity:
    """
    Overwrite the fields the candidate supplies; leave the rest untouched.
    id, natural_key and created_at never change.
    """
    sources = list(existing.sources)
    if candidate.source not in sources:
        sources.append(candidate.source)
    update = candidate.present_fields()
    update.update(source=candidate.source, sources=sources, updated_at=now)
    return existing.model_copy(update=update)


def is_stale(existing: CanonicalOpportunity, candidate: CandidateOpportunity) -> bool:
    """True when both carry an upstream modification time and the candidate's is older."""
    if existing.source_modified_at is None or candidate.source_modified_at is None:
        return False
    return candidate.source_modified_at < existing.source_modified_at


def lane_for(natural_key: Optional[str], lanes: int) -> int:
    """Stable lane index for a key; same key always maps to the same lane."""
    if lanes <= 1 or not natural_key:
        return 0
    return zlib.crc32(natural_key.encode("utf-8")) % lanes


class _KeyLocks:
    """One lock per natural key, dropped again once nobody holds or waits on it."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, tuple[threading.Lock, int]] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            lock, users = self._locks.get(key, (threading.Lock(), 0))
            self._locks[key] = (lock, users + 1)
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                lock, users = self._locks[key]
                if users <= 1:
                    del self._locks[key]
                else:
                    self._locks[key] = (lock, users - 1)


class ReconciliationEngine:
    """
    Upserts normalized candidates against the store.
    Reconciles of one key are serialized in-process by a key lock, and the
    lookup plus write run inside a single store transaction.
    """

    def __init__(self, store: CanonicalStore, reject_stale: bool = False):
        self._store = store
        self._reject_stale = reject_stale
        self._locks = _KeyLocks()

    def reconcile(self, candidate: CandidateOpportunity) -> ReconcileOutcome:
        """Create or update the canonical record for one candidate. Never raises."""
        key = candidate.natural_key
        if not key or not key.strip():
            logger.warning(
                "Skipping %s record without a natural key (title=%r)",
                candidate.source,
                candidate.title,
            )
            return ReconcileOutcome.SKIPPED

        try:
            with self._locks.hold(key), self._store.transaction():
                now = datetime.now(timezone.utc)
                existing = self._store.find_by_natural_key(key)
                if existing is None:
                    self._store.save(build_canonical(candidate, now))
                    logger.debug("Created %s from %s", key, candidate.source)
                    return ReconcileOutcome.CREATED

                if self._reject_stale and is_stale(existing, candidate):
                    logger.info(
                        "Skipping stale %s observation of %s (%s < %s)",
                        candidate.source,
                        key,
                        candidate.source_modified_at,
                        existing.source_modified_at,
                    )
                    return ReconcileOutcome.SKIPPED

                self._store.save(merge_into(existing, candidate, now))
                logger.debug("Updated %s from %s", key, candidate.source)
                return ReconcileOutcome.UPDATED
        except Exception:
            logger.exception("Failed to reconcile %s record %s", candidate.source, key)
            return ReconcileOutcome.SKIPPED

    def _reconcile_lane(self, candidates: list[CandidateOpportunity]) -> ReconcileTally:
        tally = ReconcileTally()
        for candidate in candidates:
            tally.add(self.reconcile(candidate))
        return tally

    def reconcile_all(self, candidates: Iterable[CandidateOpportunity], lanes: int = 1) -> ReconcileTally:
        """
        Reconcile a fanned-in batch.
        With one lane candidates are processed strictly in order. With more,
        they are sharded by key hash; each lane is sequential, so candidates
        sharing a key keep their relative order.
        """
        if lanes <= 1:
            return self._reconcile_lane(list(candidates))

        shards: list[list[CandidateOpportunity]] = [[] for _ in range(lanes)]
        for candidate in candidates:
            shards[lane_for(candidate.natural_key, lanes)].append(candidate)

        tally = ReconcileTally()
        with ThreadPoolExecutor(max_workers=lanes, thread_name_prefix="reconcile") as pool:
            for lane_tally in pool.map(self._reconcile_lane, [s for s in shards if s]):
                tally = tally.merge(lane_tally)
        return tally
