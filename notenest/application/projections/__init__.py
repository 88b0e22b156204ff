from .checkpoint import Checkpoint, CheckpointStore, InMemoryCheckpointStore
from .orchestrator import DEFAULT_BATCH_SIZE, ProjectionOrchestrator, ProjectionStatus
from .projection import Projection
from .todos import InMemoryTodoStore, TodoRow, TodoStore, TodoViewProjection
from .tree import TreeViewProjection
from .tree_store import InMemoryTreeStore, TreeNode, TreeStore

__all__ = [
    "Checkpoint",
    "CheckpointStore",
    "DEFAULT_BATCH_SIZE",
    "InMemoryCheckpointStore",
    "InMemoryTodoStore",
    "InMemoryTreeStore",
    "Projection",
    "ProjectionOrchestrator",
    "ProjectionStatus",
    "TodoRow",
    "TodoStore",
    "TodoViewProjection",
    "TreeNode",
    "TreeStore",
    "TreeViewProjection",
]
