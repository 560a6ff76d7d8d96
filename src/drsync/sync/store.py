"""SQLite-backed durable store for queued submissions."""

import json
import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator

from drsync.sync.models import Submission, SubmissionStatus

logger = logging.getLogger(__name__)

SUBMISSIONS_KEY = "dr_form_submissions"


class SubmissionStore:
    """Durable, ordered collection of submissions.

    The whole collection is kept as one JSON blob under a fixed key. Every
    mutation re-reads the blob, applies the change and writes it back inside
    one ``BEGIN IMMEDIATE`` transaction, so several processes (the running
    agent and one-shot CLI commands) can share the file without losing each
    other's writes. Records are ordered newest first.

    Reads always come from disk and return fresh copies; mutating a returned
    record has no effect until it goes through update().
    """

    def __init__(self, db_path: Path, busy_timeout: float = 10.0) -> None:
        """Open (or create) the store.

        Args:
            db_path: Path to the SQLite database file
            busy_timeout: Seconds to wait for another writer to commit
        """
        self.db_path = db_path
        db_path.parent.mkdir(parents=True, exist_ok=True)

        self._lock = threading.Lock()
        # Autocommit mode; write transactions are opened explicitly
        self._conn = sqlite3.connect(
            str(db_path),
            timeout=busy_timeout,
            check_same_thread=False,
            isolation_level=None,
        )
        self._conn.row_factory = sqlite3.Row
        self._create_table()

    def _create_table(self) -> None:
        """Create the key/value table if it doesn't exist."""
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT DEFAULT CURRENT_TIMESTAMP
            )
        """)

    def _read(self) -> list[Submission]:
        row = self._conn.execute(
            "SELECT value FROM kv_store WHERE key = ?",
            (SUBMISSIONS_KEY,),
        ).fetchone()
        if row is None:
            return []

        try:
            return [Submission.from_dict(item) for item in json.loads(row["value"])]
        except (ValueError, KeyError, TypeError) as e:
            logger.error("Failed to decode submission snapshot: %s", e)
            return []

    def _write(self, records: list[Submission]) -> None:
        blob = json.dumps([record.to_dict() for record in records])
        self._conn.execute(
            """
            INSERT INTO kv_store (key, value, updated_at)
            VALUES (?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at
            """,
            (SUBMISSIONS_KEY, blob),
        )

    @contextmanager
    def _editing(self) -> Iterator[list[Submission]]:
        """Yield the current records for in-place editing, then persist them.

        The read and the write happen in one write transaction. Raising
        inside the block rolls back and leaves the file untouched.
        """
        with self._lock:
            self._conn.execute("BEGIN IMMEDIATE")
            try:
                records = self._read()
                yield records
                self._write(records)
            except BaseException:
                self._conn.execute("ROLLBACK")
                raise
            self._conn.execute("COMMIT")

    def load_all(self) -> list[Submission]:
        """Read the persisted collection back from disk.

        Returns:
            Submissions in stored order (newest first). An unreadable blob
            is logged and treated as empty.
        """
        with self._lock:
            return self._read()

    def save_all(self, records: list[Submission]) -> None:
        """Replace the full snapshot with the given records."""
        with self._editing() as current:
            current[:] = records

    def append(self, record: Submission) -> None:
        """Insert a record at the head of the collection and persist.

        Args:
            record: Submission to store; its id is trusted as unique
        """
        with self._editing() as records:
            records.insert(0, record)

    def update(
        self,
        record_id: str,
        mutator: Callable[[Submission], None],
        only_if: Callable[[Submission], bool] | None = None,
    ) -> Submission | None:
        """Apply a field-level mutation to one record and persist.

        Args:
            record_id: Submission ID
            mutator: Function that mutates the record in place
            only_if: Optional check on the current persisted record; the
                mutation is skipped when it returns False

        Returns:
            The updated record, or None if the id is unknown or only_if
            rejected it
        """
        with self._editing() as records:
            for record in records:
                if record.id == record_id:
                    if only_if is not None and not only_if(record):
                        return None
                    mutator(record)
                    return record
        return None

    def delete(self, record_id: str) -> bool:
        """Remove a record and persist.

        Returns:
            True if a record was removed
        """
        with self._editing() as records:
            remaining = [r for r in records if r.id != record_id]
            removed = len(remaining) != len(records)
            records[:] = remaining
        return removed

    def get(self, record_id: str) -> Submission | None:
        for record in self.load_all():
            if record.id == record_id:
                return record
        return None

    def snapshot(self) -> list[Submission]:
        """Return fresh copies of all records, newest first."""
        return self.load_all()

    def get_stats(self) -> dict[str, int]:
        """Get store statistics.

        Returns:
            Dictionary with counts by status plus total
        """
        stats = {status.value: 0 for status in SubmissionStatus}
        stats["total"] = 0
        for record in self.load_all():
            stats[record.status.value] += 1
            stats["total"] += 1
        return stats

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
