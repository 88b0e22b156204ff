from .cache import QueryCache
from .todos import TodoQueryService
from .tree import TreeQueryService

__all__ = ["QueryCache", "TodoQueryService", "TreeQueryService"]
