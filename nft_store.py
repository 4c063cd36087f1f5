"""SQLite store for enriched NFT records, keyed uniquely by href."""

from __future__ import annotations

import logging
import os
import sqlite3
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from models import NftRecord

DEFAULT_DB_PATH = "nfts.db"
DEFAULT_RECENT_FEED_LIMIT = 15

LOGGER = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS nft_records (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    network TEXT NOT NULL,
    contract TEXT NOT NULL,
    token_id TEXT NOT NULL,
    href TEXT NOT NULL UNIQUE,
    metadata_uri TEXT NOT NULL,
    name TEXT NOT NULL,
    description TEXT NOT NULL,
    created_at TEXT NOT NULL
);
"""

_COLUMNS = (
    "id",
    "network",
    "contract",
    "token_id",
    "href",
    "metadata_uri",
    "name",
    "description",
    "created_at",
)


class PersistenceError(RuntimeError):
    """A record could not be written."""


class PersistenceConflict(PersistenceError):
    """A record with the same href already exists."""


class NftStore:
    """Append-only NFT record store.

    The store owns href uniqueness. Open it once per run and pass the handle
    to whatever needs it; use it as a context manager so the connection is
    closed on every exit path.
    """

    def __init__(self, path: str | Path = ":memory:") -> None:
        self.path = str(path)
        self.conn = sqlite3.connect(self.path)
        self.conn.row_factory = sqlite3.Row
        self.conn.executescript(_SCHEMA)
        self.conn.commit()
        LOGGER.info("Opened NFT store at %s", self.path)

    def __enter__(self) -> NftStore:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def exists(self, href: str) -> bool:
        row = self.conn.execute(
            "SELECT 1 FROM nft_records WHERE href = ? LIMIT 1", (href,)
        ).fetchone()
        return row is not None

    def create(self, record: NftRecord) -> NftRecord:
        """Insert a new record and return it with its id and created_at.

        Raises:
            PersistenceConflict: a record with the same href already exists.
            PersistenceError: any other write failure.
        """
        created_at = datetime.now(UTC)
        try:
            with self.conn:
                cursor = self.conn.execute(
                    "INSERT INTO nft_records "
                    "(network, contract, token_id, href, metadata_uri, name, description, created_at) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        record.network,
                        record.contract,
                        record.token_id,
                        record.href,
                        record.metadata_uri,
                        record.name,
                        record.description,
                        created_at.isoformat(),
                    ),
                )
        except sqlite3.IntegrityError as exc:
            if self.exists(record.href):
                raise PersistenceConflict(f"href already stored: {record.href}") from exc
            raise PersistenceError(f"Failed to save href={record.href}: {exc}") from exc
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to save href={record.href}: {exc}") from exc

        return _with_identity(record, cursor.lastrowid, created_at)

    def insert_if_absent(self, record: NftRecord) -> NftRecord | None:
        """Atomically insert the record unless its href is already stored.

        Returns the stored record, or None if the href was already present.
        """
        created_at = datetime.now(UTC)
        try:
            with self.conn:
                cursor = self.conn.execute(
                    "INSERT INTO nft_records "
                    "(network, contract, token_id, href, metadata_uri, name, description, created_at) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?) ON CONFLICT(href) DO NOTHING",
                    (
                        record.network,
                        record.contract,
                        record.token_id,
                        record.href,
                        record.metadata_uri,
                        record.name,
                        record.description,
                        created_at.isoformat(),
                    ),
                )
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to save href={record.href}: {exc}") from exc

        if cursor.rowcount == 0:
            return None
        return _with_identity(record, cursor.lastrowid, created_at)

    def recent(self, limit: int | None = None) -> list[NftRecord]:
        """Return the most recently created records, newest first.

        `limit` defaults to RECENT_FEED_LIMIT (15) and must be at least 1.
        """
        if limit is None:
            limit = int(os.getenv("RECENT_FEED_LIMIT", DEFAULT_RECENT_FEED_LIMIT))
        if limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")

        rows = self.conn.execute(
            f"SELECT {', '.join(_COLUMNS)} FROM nft_records ORDER BY id DESC LIMIT ?",
            (limit,),
        ).fetchall()
        return [_row_to_record(row) for row in rows]

    def count(self) -> int:
        return self.conn.execute("SELECT COUNT(*) FROM nft_records").fetchone()[0]

    def close(self) -> None:
        self.conn.close()


def open_store(path: str | Path | None = None) -> NftStore:
    """Open the store at path (default NFT_DB_PATH), creating parent directories."""
    db_path = Path(path or os.getenv("NFT_DB_PATH") or DEFAULT_DB_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return NftStore(db_path)


def _with_identity(record: NftRecord, record_id: int | None, created_at: datetime) -> NftRecord:
    return NftRecord(
        network=record.network,
        contract=record.contract,
        token_id=record.token_id,
        href=record.href,
        metadata_uri=record.metadata_uri,
        name=record.name,
        description=record.description,
        id=record_id,
        created_at=created_at,
    )


def _row_to_record(row: sqlite3.Row) -> NftRecord:
    return NftRecord(
        network=row["network"],
        contract=row["contract"],
        token_id=row["token_id"],
        href=row["href"],
        metadata_uri=row["metadata_uri"],
        name=row["name"],
        description=row["description"],
        id=row["id"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )
