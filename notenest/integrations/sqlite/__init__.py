from .checkpoint import SqliteCheckpointStore
from .config import SqliteConfiguration
from .event_store import SqliteEventStore
from .todo_store import SqliteTodoStore
from .tree_store import SqliteTreeStore

__all__ = [
    "SqliteCheckpointStore",
    "SqliteConfiguration",
    "SqliteEventStore",
    "SqliteTodoStore",
    "SqliteTreeStore",
]
