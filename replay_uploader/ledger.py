"""Persistent ledger of replays that have been uploaded.

A single SQLite table holds one row per replay file name. Rows are
only ever inserted, never updated or deleted, so a restarted watcher
skips everything that was confirmed uploaded before it stopped.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from replay_uploader.errors import StorageInitError, StorageQueryError, StorageWriteError

logger = logging.getLogger(__name__)

_SCHEMA = (
    "CREATE TABLE IF NOT EXISTS posted_replays ("
    "replay_file_name TEXT PRIMARY KEY, "
    "uploaded_at TEXT NOT NULL)"
)


@dataclass(frozen=True)
class ReplayRecord:
    """A replay confirmed as uploaded."""
    identifier: str
    uploaded_at: str = ""


class ReplayLedger:
    """SQLite-backed, append-only set of uploaded replay identifiers."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._conn: sqlite3.Connection | None = None

    @property
    def path(self) -> Path:
        return self._path

    def initialize(self) -> None:
        """Open the database, creating the file and table if absent."""
        if self._conn is not None:
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self._path))
        except (OSError, sqlite3.Error) as exc:
            raise StorageInitError(
                f"Cannot open '{self._path}': {exc}"
            ) from exc
        try:
            with conn:
                conn.execute(_SCHEMA)
                self._upgrade_legacy_table(conn)
        except sqlite3.Error as exc:
            conn.close()
            raise StorageInitError(
                f"Cannot create the replay table in '{self._path}': {exc}"
            ) from exc
        self._conn = conn
        logger.debug("Replay ledger ready at %s", self._path)

    def contains(self, identifier: str) -> bool:
        conn = self._require(StorageQueryError)
        try:
            row = conn.execute(
                "SELECT COUNT(*) FROM posted_replays WHERE replay_file_name = ?",
                (identifier,),
            ).fetchone()
        except (sqlite3.Error, UnicodeError) as exc:
            raise StorageQueryError(
                f"Error checking whether replay '{identifier}' was uploaded: {exc}"
            ) from exc
        return row[0] != 0

    def record(self, identifier: str) -> None:
        """Record an uploaded replay. Recording the same name twice is a no-op."""
        conn = self._require(StorageWriteError)
        uploaded_at = datetime.now(timezone.utc).isoformat()
        try:
            with conn:
                conn.execute(
                    "INSERT OR IGNORE INTO posted_replays (replay_file_name, uploaded_at) "
                    "VALUES (?, ?)",
                    (identifier, uploaded_at),
                )
        except (sqlite3.Error, UnicodeError) as exc:
            raise StorageWriteError(
                f"Error recording that replay '{identifier}' was uploaded: {exc}"
            ) from exc

    def count(self) -> int:
        conn = self._require(StorageQueryError)
        try:
            return conn.execute("SELECT COUNT(*) FROM posted_replays").fetchone()[0]
        except (sqlite3.Error, UnicodeError) as exc:
            raise StorageQueryError(f"Error counting uploaded replays: {exc}") from exc

    def records(self) -> list[ReplayRecord]:
        conn = self._require(StorageQueryError)
        try:
            rows = conn.execute(
                "SELECT replay_file_name, uploaded_at FROM posted_replays "
                "ORDER BY uploaded_at, replay_file_name"
            ).fetchall()
        except (sqlite3.Error, UnicodeError) as exc:
            raise StorageQueryError(f"Error listing uploaded replays: {exc}") from exc
        return [ReplayRecord(identifier=name, uploaded_at=ts) for name, ts in rows]

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> ReplayLedger:
        self.initialize()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @staticmethod
    def _upgrade_legacy_table(conn: sqlite3.Connection) -> None:
        # Older ledgers have a single unkeyed replay_file_name column.
        columns = {row[1] for row in conn.execute("PRAGMA table_info(posted_replays)")}
        if "uploaded_at" in columns:
            return
        logger.info("Upgrading legacy replay ledger table")
        conn.execute(
            "CREATE UNIQUE INDEX IF NOT EXISTS posted_replays_file_name "
            "ON posted_replays (replay_file_name)"
        )
        conn.execute(
            "ALTER TABLE posted_replays ADD COLUMN uploaded_at TEXT NOT NULL DEFAULT ''"
        )

    def _require(self, error: type[Exception]) -> sqlite3.Connection:
        if self._conn is None:
            raise error(f"Replay ledger at '{self._path}' is not initialized")
        return self._conn
