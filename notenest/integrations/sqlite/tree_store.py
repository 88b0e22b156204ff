"""SQLite table backing the tree view.

The table deliberately has no foreign key on parent_id: the diagnostic and
repair queries must be able to see (and fix) rows that break the tree
invariants, which a constraint would hide by rejecting them up front.
"""

from collections.abc import Iterable
from datetime import datetime

import aiosqlite
from ulid import ULID

from ...application.projections.tree_store import TreeNode, TreeStore
from .connection import SqliteConnectionMixin

SCHEMA = """
CREATE TABLE IF NOT EXISTS tree_view (
    id TEXT PRIMARY KEY,
    parent_id TEXT,
    name TEXT NOT NULL,
    node_type TEXT NOT NULL,
    display_path TEXT NOT NULL,
    is_pinned INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    modified_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_tree_view_parent ON tree_view (parent_id);
"""

_SELECT = (
    "SELECT id, parent_id, name, node_type, display_path, is_pinned, created_at, modified_at"
    " FROM tree_view t"
)
_ORDER = " ORDER BY t.is_pinned DESC, t.node_type = 'note', LOWER(t.name)"


class SqliteTreeStore(SqliteConnectionMixin, TreeStore):
    def __init__(self, db_path: str, timeout: float = 30.0, journal_mode: str = "WAL"):
        self.db_path = db_path
        self.timeout = timeout
        self.journal_mode = journal_mode

    async def initialize_schema(self) -> None:
        await self._execute_script(SCHEMA)

    async def get(self, node_id: ULID) -> TreeNode | None:
        rows = await self._query(f"{_SELECT} WHERE t.id = ?", (str(node_id),))
        return rows[0] if rows else None

    async def upsert(self, node: TreeNode) -> None:
        async with self._conn() as db:
            await db.execute(
                "INSERT INTO tree_view (id, parent_id, name, node_type, display_path,"
                " is_pinned, created_at, modified_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?)"
                " ON CONFLICT(id) DO UPDATE SET"
                " parent_id = excluded.parent_id, name = excluded.name,"
                " node_type = excluded.node_type, display_path = excluded.display_path,"
                " is_pinned = excluded.is_pinned, modified_at = excluded.modified_at",
                (
                    str(node.id),
                    str(node.parent_id) if node.parent_id else None,
                    node.name,
                    node.node_type,
                    node.display_path,
                    int(node.is_pinned),
                    node.created_at.isoformat(),
                    node.modified_at.isoformat(),
                ),
            )
            await db.commit()

    async def delete(self, node_id: ULID) -> None:
        await self._delete([str(node_id)])

    async def children(self, parent_id: ULID) -> list[TreeNode]:
        return await self._query(f"{_SELECT} WHERE t.parent_id = ?{_ORDER}", (str(parent_id),))

    async def roots(self) -> list[TreeNode]:
        return await self._query(f"{_SELECT} WHERE t.parent_id IS NULL{_ORDER}")

    async def all_nodes(self) -> list[TreeNode]:
        return await self._query(f"{_SELECT}{_ORDER}")

    async def find_self_referencing(self) -> list[TreeNode]:
        return await self._query(f"{_SELECT} WHERE t.id = t.parent_id{_ORDER}")

    async def find_orphans(self) -> list[TreeNode]:
        return await self._query(
            f"{_SELECT} WHERE t.parent_id IS NOT NULL"
            " AND NOT EXISTS (SELECT 1 FROM tree_view p WHERE p.id = t.parent_id)"
            f"{_ORDER}"
        )

    async def count_nodes(self) -> int:
        return await self._scalar("SELECT COUNT(*) FROM tree_view")

    async def count_roots(self) -> int:
        return await self._scalar("SELECT COUNT(*) FROM tree_view WHERE parent_id IS NULL")

    async def clear_parent(self, node_ids: Iterable[ULID]) -> int:
        ids = sorted({str(node_id) for node_id in node_ids})
        if not ids:
            return 0
        placeholders = ", ".join("?" for _ in ids)
        async with self._conn() as db:
            cursor = await db.execute(
                f"UPDATE tree_view SET parent_id = NULL"
                f" WHERE parent_id IS NOT NULL AND id IN ({placeholders})",
                ids,
            )
            await db.commit()
            return cursor.rowcount

    async def delete_nodes(self, node_ids: Iterable[ULID]) -> int:
        return await self._delete(sorted({str(node_id) for node_id in node_ids}))

    async def clear(self) -> None:
        async with self._conn() as db:
            await db.execute("DELETE FROM tree_view")
            await db.commit()

    async def _delete(self, ids: list[str]) -> int:
        if not ids:
            return 0
        placeholders = ", ".join("?" for _ in ids)
        async with self._conn() as db:
            cursor = await db.execute(f"DELETE FROM tree_view WHERE id IN ({placeholders})", ids)
            await db.commit()
            return cursor.rowcount

    async def _query(self, sql: str, params: tuple = ()) -> list[TreeNode]:
        async with self._conn() as db:
            cursor = await db.execute(sql, params)
            rows = await cursor.fetchall()
        return [_node(row) for row in rows]

    async def _scalar(self, sql: str) -> int:
        async with self._conn() as db:
            cursor = await db.execute(sql)
            row = await cursor.fetchone()
        return int(row[0]) if row else 0


def _node(row: aiosqlite.Row) -> TreeNode:
    return TreeNode(
        id=ULID.from_str(row["id"]),
        parent_id=ULID.from_str(row["parent_id"]) if row["parent_id"] else None,
        name=row["name"],
        node_type=row["node_type"],
        display_path=row["display_path"],
        is_pinned=bool(row["is_pinned"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        modified_at=datetime.fromisoformat(row["modified_at"]),
    )
