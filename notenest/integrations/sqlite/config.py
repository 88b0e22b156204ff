"""SQLite configuration using pydantic-settings."""

from functools import cached_property
from typing import Literal

from pydantic_settings import BaseSettings

from .checkpoint import SqliteCheckpointStore
from .event_store import SqliteEventStore
from .todo_store import SqliteTodoStore
from .tree_store import SqliteTreeStore


class SqliteConfiguration(BaseSettings):
    """Configuration and factory for the SQLite-backed stores.

    Implements the HasLifecycle protocol: on startup every table is created
    if missing, so a fresh pair of database files is usable immediately.

    All settings can be configured via environment variables with the
    NOTENEST_SQLITE_ prefix. For example:
    - NOTENEST_SQLITE_EVENTS_PATH=/var/lib/notenest/events.db
    - NOTENEST_SQLITE_PROJECTIONS_PATH=/var/lib/notenest/projections.db

    Attributes:
        events_path: File holding the append-only event log.
        projections_path: File holding the read models and their checkpoints.
        timeout: Seconds a connection waits on a locked database.
        journal_mode: SQLite journal mode applied to every connection.

    Example:
        >>> config = SqliteConfiguration(events_path="events.db")
        >>> app = ApplicationBuilder().use_sqlite(config).build()
        >>> async with app:  # calls on_startup/on_shutdown
        ...     ...
    """

    events_path: str = "notenest-events.db"
    projections_path: str = "notenest-projections.db"
    timeout: float = 30.0
    journal_mode: Literal["WAL", "DELETE", "TRUNCATE", "MEMORY"] = "WAL"

    model_config = {"env_prefix": "NOTENEST_SQLITE_"}

    @cached_property
    def event_store(self) -> SqliteEventStore:
        return SqliteEventStore(
            self.events_path, timeout=self.timeout, journal_mode=self.journal_mode
        )

    @cached_property
    def checkpoint_store(self) -> SqliteCheckpointStore:
        return SqliteCheckpointStore(
            self.projections_path, timeout=self.timeout, journal_mode=self.journal_mode
        )

    @cached_property
    def tree_store(self) -> SqliteTreeStore:
        return SqliteTreeStore(
            self.projections_path, timeout=self.timeout, journal_mode=self.journal_mode
        )

    @cached_property
    def todo_store(self) -> SqliteTodoStore:
        return SqliteTodoStore(
            self.projections_path, timeout=self.timeout, journal_mode=self.journal_mode
        )

    # HasLifecycle protocol implementation

    async def on_startup(self) -> None:
        """Create any missing tables."""
        await self.event_store.initialize_schema()
        await self.checkpoint_store.initialize_schema()
        await self.tree_store.initialize_schema()
        await self.todo_store.initialize_schema()

    async def on_shutdown(self) -> None:
        """No-op; connections are opened per operation."""
        pass
