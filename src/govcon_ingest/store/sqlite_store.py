"""SQLite-backed canonical opportunity store keyed by natural key."""

import json
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from govcon_ingest.errors import ReconciliationError
from govcon_ingest.models.opportunity import CanonicalOpportunity


class OpportunityStore:
    """
    SQLite store for canonical opportunities.
    natural_key is UNIQUE, so a second row for one key can never be written.
    Calls made inside `with store.transaction():` on the same thread share
    one connection and one BEGIN IMMEDIATE transaction, which keeps a lookup
    and the write that follows it atomic with respect to other writers.
    """

    def __init__(self, db_path: str | Path = "govcon_ingest.db", timeout: float = 30.0):
        self._db_path = Path(db_path)
        self._timeout = timeout
        self._local = threading.local()
        self._ensure_schema()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _open(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, timeout=self._timeout, isolation_level=None)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Active transaction connection if there is one, else a short-lived autocommit one."""
        active = getattr(self._local, "conn", None)
        if active is not None:
            yield active
            return
        conn = self._open()
        try:
            yield conn
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        schema_path = Path(__file__).parent / "schema.sql"
        with self._connection() as conn:
            conn.executescript(schema_path.read_text())

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """
        Run the enclosed store calls as one write transaction.
        Commits on success, rolls back on any exception. Re-entrant per thread.
        """
        if getattr(self._local, "conn", None) is not None:
            yield
            return
        conn = self._open()
        conn.execute("BEGIN IMMEDIATE")
        self._local.conn = conn
        try:
            yield
        except BaseException:
            conn.rollback()
            raise
        else:
            conn.commit()
        finally:
            self._local.conn = None
            conn.close()

    def _serialize(self, record: CanonicalOpportunity) -> str:
        """Serialize record to JSON for storage."""
        return json.dumps(record.model_dump(mode="json"), default=str)

    def _deserialize(self, row: sqlite3.Row) -> CanonicalOpportunity:
        """Deserialize stored row to CanonicalOpportunity."""
        return CanonicalOpportunity.model_validate(json.loads(row["data"]))

    def find_by_natural_key(self, natural_key: str) -> Optional[CanonicalOpportunity]:
        """Return the canonical record for a natural key, if any."""
        with self._connection() as conn:
            row = conn.execute(
                "SELECT data FROM opportunities WHERE natural_key = ?",
                (natural_key,),
            ).fetchone()
        return self._deserialize(row) if row else None

    def save(self, record: CanonicalOpportunity) -> CanonicalOpportunity:
        """
        Insert or overwrite a record by id.
        Raises ReconciliationError if the write violates a constraint, such as
        a different record already holding the same natural key.
        """
        try:
            with self._connection() as conn:
                conn.execute(
                    """
                    INSERT INTO opportunities (id, natural_key, source, data, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        natural_key = excluded.natural_key,
                        source = excluded.source,
                        data = excluded.data,
                        updated_at = excluded.updated_at
                    """,
                    (
                        record.id,
                        record.natural_key,
                        record.source,
                        self._serialize(record),
                        record.created_at.isoformat(),
                        record.updated_at.isoformat(),
                    ),
                )
        except sqlite3.Error as e:
            raise ReconciliationError(f"Could not save {record.natural_key}: {e}") from e
        return record

    def get(self, record_id: str) -> Optional[CanonicalOpportunity]:
        """Get single record by system id."""
        with self._connection() as conn:
            row = conn.execute("SELECT data FROM opportunities WHERE id = ?", (record_id,)).fetchone()
        return self._deserialize(row) if row else None

    def get_all(self) -> list[CanonicalOpportunity]:
        """Return all records, most recently updated first."""
        with self._connection() as conn:
            rows = conn.execute("SELECT data FROM opportunities ORDER BY updated_at DESC").fetchall()
        return [self._deserialize(r) for r in rows]

    def get_by_source(self, source: str) -> list[CanonicalOpportunity]:
        """Return records whose latest observation came from the given source."""
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT data FROM opportunities WHERE source = ? ORDER BY updated_at DESC",
                (source,),
            ).fetchall()
        return [self._deserialize(r) for r in rows]

    def count(self, source: Optional[str] = None) -> int:
        """Number of canonical records, optionally for one source."""
        with self._connection() as conn:
            if source:
                row = conn.execute("SELECT COUNT(*) FROM opportunities WHERE source = ?", (source,)).fetchone()
            else:
                row = conn.execute("SELECT COUNT(*) FROM opportunities").fetchone()
        return int(row[0])
