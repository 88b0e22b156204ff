from datetime import datetime

from ...application.projections.checkpoint import Checkpoint, CheckpointStore
from .connection import SqliteConnectionMixin

SCHEMA = """
CREATE TABLE IF NOT EXISTS projection_checkpoints (
    projection_name TEXT PRIMARY KEY,
    last_processed_position INTEGER NOT NULL,
    updated_at TEXT NOT NULL
);
"""


class SqliteCheckpointStore(SqliteConnectionMixin, CheckpointStore):
    """Watermarks stored next to the projection tables they describe."""

    def __init__(self, db_path: str, timeout: float = 30.0, journal_mode: str = "WAL"):
        self.db_path = db_path
        self.timeout = timeout
        self.journal_mode = journal_mode

    async def initialize_schema(self) -> None:
        await self._execute_script(SCHEMA)

    async def load_checkpoint(self, projection_name: str) -> Checkpoint | None:
        async with self._conn() as db:
            cursor = await db.execute(
                "SELECT projection_name, last_processed_position, updated_at"
                " FROM projection_checkpoints WHERE projection_name = ?",
                (projection_name,),
            )
            row = await cursor.fetchone()
        if row is None:
            return None
        return Checkpoint(
            projection_name=row["projection_name"],
            last_processed_position=row["last_processed_position"],
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    async def _write(self, checkpoint: Checkpoint) -> None:
        async with self._conn() as db:
            await db.execute(
                "INSERT INTO projection_checkpoints"
                " (projection_name, last_processed_position, updated_at) VALUES (?, ?, ?)"
                " ON CONFLICT(projection_name) DO UPDATE SET"
                " last_processed_position = excluded.last_processed_position,"
                " updated_at = excluded.updated_at",
                (
                    checkpoint.projection_name,
                    checkpoint.last_processed_position,
                    checkpoint.updated_at.isoformat(),
                ),
            )
            await db.commit()
