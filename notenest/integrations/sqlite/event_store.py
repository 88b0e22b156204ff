"""SQLite implementation of EventStore.

Events live in a single append-only table. The autoincrement primary key
is the global stream position, and a unique index on
(aggregate_id, sequence_number) backs the optimistic concurrency check.
"""

import sqlite3
from datetime import datetime
from typing import Any

import aiosqlite
from ulid import ULID

from ...application.events import EventSerializer, EventStore, StoredEvent, default_serializer
from ...application.events.store import check_batch
from ...domain import Event
from ...domain.exceptions import ConcurrencyError
from .connection import SqliteConnectionMixin

SCHEMA = """
CREATE TABLE IF NOT EXISTS events (
    stream_position INTEGER PRIMARY KEY AUTOINCREMENT,
    event_id TEXT NOT NULL UNIQUE,
    aggregate_id TEXT NOT NULL,
    aggregate_type TEXT NOT NULL,
    event_type TEXT NOT NULL,
    event_data TEXT NOT NULL,
    metadata TEXT NOT NULL DEFAULT '{}',
    sequence_number INTEGER NOT NULL,
    created_at TEXT NOT NULL,
    UNIQUE (aggregate_id, sequence_number)
);
CREATE INDEX IF NOT EXISTS idx_events_aggregate ON events (aggregate_id, sequence_number);
"""

_COLUMNS = (
    "stream_position, event_id, aggregate_id, aggregate_type, event_type, "
    "event_data, metadata, sequence_number, created_at"
)


class SqliteEventStore(SqliteConnectionMixin, EventStore):
    """Durable event store in a single SQLite file.

    Examples:
        >>> store = SqliteEventStore("notenest-events.db")
        >>> await store.initialize_schema()
        >>> committed = await store.append(todo.pending_events(), expected_version=0)
    """

    def __init__(
        self,
        db_path: str,
        serializer: EventSerializer | None = None,
        timeout: float = 30.0,
        journal_mode: str = "WAL",
    ):
        self.db_path = db_path
        self.serializer = serializer or default_serializer()
        self.timeout = timeout
        self.journal_mode = journal_mode

    async def initialize_schema(self) -> None:
        await self._execute_script(SCHEMA)

    async def append(self, events: list[Event[Any]], expected_version: int) -> list[Event[Any]]:
        if not events:
            return []

        aggregate_id = check_batch(events, expected_version)
        committed: list[Event[Any]] = []

        async with self._conn() as db:
            await db.execute("BEGIN IMMEDIATE")
            try:
                current_version = await self._version(db, aggregate_id)
                if current_version != expected_version:
                    raise ConcurrencyError(
                        f"Expected version {expected_version}, got {current_version} "
                        f"for aggregate {aggregate_id}"
                    )

                for event in events:
                    record = self.serializer.to_record(event, stream_position=0)
                    cursor = await db.execute(
                        "INSERT INTO events (event_id, aggregate_id, aggregate_type, event_type,"
                        " event_data, metadata, sequence_number, created_at)"
                        " VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                        (
                            record.event_id,
                            record.aggregate_id,
                            record.aggregate_type,
                            record.kind,
                            record.payload,
                            record.metadata,
                            record.sequence_number,
                            record.timestamp.isoformat(),
                        ),
                    )
                    committed.append(
                        event.model_copy(update={"stream_position": cursor.lastrowid})
                    )
                await db.commit()
            except sqlite3.IntegrityError as error:
                await db.rollback()
                raise ConcurrencyError(
                    f"Concurrent append to aggregate {aggregate_id}: {error}"
                ) from error
            except BaseException:
                await db.rollback()
                raise

        return committed

    async def load_events(self, aggregate_id: ULID, min_version: int = 1) -> list[Event[Any]]:
        async with self._conn() as db:
            cursor = await db.execute(
                f"SELECT {_COLUMNS} FROM events"
                " WHERE aggregate_id = ? AND sequence_number >= ?"
                " ORDER BY sequence_number",
                (str(aggregate_id), min_version),
            )
            rows = await cursor.fetchall()
        return [self.serializer.from_record(_record(row)) for row in rows]

    async def current_version(self, aggregate_id: ULID) -> int:
        async with self._conn() as db:
            return await self._version(db, aggregate_id)

    async def load_since_position(self, position: int, batch_size: int) -> list[StoredEvent]:
        async with self._conn() as db:
            cursor = await db.execute(
                f"SELECT {_COLUMNS} FROM events WHERE stream_position > ?"
                " ORDER BY stream_position LIMIT ?",
                (position, batch_size),
            )
            rows = await cursor.fetchall()
        return [_record(row) for row in rows]

    async def current_position(self) -> int:
        async with self._conn() as db:
            cursor = await db.execute("SELECT COALESCE(MAX(stream_position), 0) FROM events")
            row = await cursor.fetchone()
        return int(row[0]) if row else 0

    @staticmethod
    async def _version(db: aiosqlite.Connection, aggregate_id: ULID) -> int:
        cursor = await db.execute(
            "SELECT COALESCE(MAX(sequence_number), 0) FROM events WHERE aggregate_id = ?",
            (str(aggregate_id),),
        )
        row = await cursor.fetchone()
        return int(row[0]) if row else 0


def _record(row: aiosqlite.Row) -> StoredEvent:
    return StoredEvent(
        stream_position=row["stream_position"],
        event_id=row["event_id"],
        aggregate_id=row["aggregate_id"],
        aggregate_type=row["aggregate_type"],
        kind=row["event_type"],
        payload=row["event_data"],
        sequence_number=row["sequence_number"],
        timestamp=datetime.fromisoformat(row["created_at"]),
        metadata=row["metadata"],
    )
