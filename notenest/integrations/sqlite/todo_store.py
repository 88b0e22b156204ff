import json
from datetime import date, datetime

import aiosqlite
from ulid import ULID

from ...application.projections.todos import TodoRow, TodoStore
from ...domain.todos import Priority
from .connection import SqliteConnectionMixin

SCHEMA = """
CREATE TABLE IF NOT EXISTS todo_view (
    id TEXT PRIMARY KEY,
    text TEXT NOT NULL,
    is_completed INTEGER NOT NULL DEFAULT 0,
    completed_at TEXT,
    due_date TEXT,
    priority INTEGER NOT NULL DEFAULT 1,
    is_favorite INTEGER NOT NULL DEFAULT 0,
    tags TEXT NOT NULL DEFAULT '[]',
    category_id TEXT,
    source_note_id TEXT,
    is_orphaned INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    modified_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_todo_view_category ON todo_view (category_id);
CREATE INDEX IF NOT EXISTS idx_todo_view_source_note ON todo_view (source_note_id);
"""

_SELECT = (
    "SELECT id, text, is_completed, completed_at, due_date, priority, is_favorite, tags,"
    " category_id, source_note_id, is_orphaned, created_at, modified_at FROM todo_view"
)


class SqliteTodoStore(SqliteConnectionMixin, TodoStore):
    def __init__(self, db_path: str, timeout: float = 30.0, journal_mode: str = "WAL"):
        self.db_path = db_path
        self.timeout = timeout
        self.journal_mode = journal_mode

    async def initialize_schema(self) -> None:
        await self._execute_script(SCHEMA)

    async def get(self, todo_id: ULID) -> TodoRow | None:
        rows = await self._query(f"{_SELECT} WHERE id = ?", (str(todo_id),))
        return rows[0] if rows else None

    async def upsert(self, row: TodoRow) -> None:
        async with self._conn() as db:
            await db.execute(
                "INSERT OR REPLACE INTO todo_view (id, text, is_completed, completed_at,"
                " due_date, priority, is_favorite, tags, category_id, source_note_id,"
                " is_orphaned, created_at, modified_at)"
                " VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    str(row.id),
                    row.text,
                    int(row.is_completed),
                    row.completed_at.isoformat() if row.completed_at else None,
                    row.due_date.isoformat() if row.due_date else None,
                    int(row.priority),
                    int(row.is_favorite),
                    json.dumps(row.tags),
                    str(row.category_id) if row.category_id else None,
                    str(row.source_note_id) if row.source_note_id else None,
                    int(row.is_orphaned),
                    row.created_at.isoformat(),
                    row.modified_at.isoformat(),
                ),
            )
            await db.commit()

    async def delete(self, todo_id: ULID) -> None:
        async with self._conn() as db:
            await db.execute("DELETE FROM todo_view WHERE id = ?", (str(todo_id),))
            await db.commit()

    async def list_all(self) -> list[TodoRow]:
        return await self._query(f"{_SELECT} ORDER BY created_at")

    async def list_by_category(self, category_id: ULID | None) -> list[TodoRow]:
        if category_id is None:
            return await self._query(f"{_SELECT} WHERE category_id IS NULL ORDER BY created_at")
        return await self._query(
            f"{_SELECT} WHERE category_id = ? ORDER BY created_at", (str(category_id),)
        )

    async def list_by_source_note(self, note_id: ULID) -> list[TodoRow]:
        return await self._query(
            f"{_SELECT} WHERE source_note_id = ? ORDER BY created_at", (str(note_id),)
        )

    async def clear(self) -> None:
        async with self._conn() as db:
            await db.execute("DELETE FROM todo_view")
            await db.commit()

    async def _query(self, sql: str, params: tuple = ()) -> list[TodoRow]:
        async with self._conn() as db:
            cursor = await db.execute(sql, params)
            rows = await cursor.fetchall()
        return [_row(row) for row in rows]


def _row(row: aiosqlite.Row) -> TodoRow:
    return TodoRow(
        id=ULID.from_str(row["id"]),
        text=row["text"],
        is_completed=bool(row["is_completed"]),
        completed_at=datetime.fromisoformat(row["completed_at"]) if row["completed_at"] else None,
        due_date=date.fromisoformat(row["due_date"]) if row["due_date"] else None,
        priority=Priority(row["priority"]),
        is_favorite=bool(row["is_favorite"]),
        tags=json.loads(row["tags"]),
        category_id=ULID.from_str(row["category_id"]) if row["category_id"] else None,
        source_note_id=ULID.from_str(row["source_note_id"]) if row["source_note_id"] else None,
        is_orphaned=bool(row["is_orphaned"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        modified_at=datetime.fromisoformat(row["modified_at"]),
    )
