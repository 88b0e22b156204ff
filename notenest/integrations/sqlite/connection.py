"""Async SQLite connection management shared by the SQLite stores."""

import asyncio
import contextlib
import weakref
from collections.abc import AsyncIterator

import aiosqlite

# Per-event-loop locks to avoid "bound to different event loop" errors
_EVENT_LOOP_LOCKS: weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, asyncio.Lock] = (
    weakref.WeakKeyDictionary()
)


def _get_event_loop_lock() -> asyncio.Lock:
    loop = asyncio.get_running_loop()
    if loop not in _EVENT_LOOP_LOCKS:
        _EVENT_LOOP_LOCKS[loop] = asyncio.Lock()
    return _EVENT_LOOP_LOCKS[loop]


class SqliteConnectionMixin:
    """Mixin providing one configured aiosqlite connection per operation.

    Connections are serialized per event loop, which matches the single
    writer model and keeps SQLite from returning "database is locked" to
    concurrent writers in the same process.

    Usage:
        class SqliteTreeStore(SqliteConnectionMixin, TreeStore):
            async def get(self, node_id):
                async with self._conn() as db:
                    cursor = await db.execute("SELECT ...", (str(node_id),))
                    ...
    """

    db_path: str
    timeout: float = 30.0
    journal_mode: str = "WAL"

    @contextlib.asynccontextmanager
    async def _conn(self) -> AsyncIterator[aiosqlite.Connection]:
        async with _get_event_loop_lock():
            async with aiosqlite.connect(self.db_path, timeout=self.timeout) as db:
                db.row_factory = aiosqlite.Row
                await db.execute(f"PRAGMA journal_mode={self.journal_mode};")
                await db.execute("PRAGMA synchronous=NORMAL;")
                await db.execute("PRAGMA temp_store=MEMORY;")
                yield db

    async def _execute_script(self, script: str) -> None:
        async with self._conn() as db:
            await db.executescript(script)
            await db.commit()
