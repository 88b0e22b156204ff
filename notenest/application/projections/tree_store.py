"""Storage for the notes/categories tree read model."""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime
from typing import Literal

from pydantic import BaseModel
from ulid import ULID

NodeType = Literal["category", "note"]

PATH_SEPARATOR = "/"


class TreeNode(BaseModel):
    """One row of the tree view.

    Invariants of the persisted table: no node is its own parent, every
    non-null parent_id names an existing node, the parent relation is a
    forest, and the roots are exactly the nodes with a null parent_id.
    """

    id: ULID
    parent_id: ULID | None = None
    name: str
    node_type: NodeType
    display_path: str
    is_pinned: bool = False
    created_at: datetime
    modified_at: datetime

    @property
    def is_root(self) -> bool:
        return self.parent_id is None


def child_path(parent: TreeNode | None, name: str) -> str:
    return f"{parent.display_path}{PATH_SEPARATOR}{name}" if parent else name


class TreeStore(ABC):
    """Row storage for tree nodes.

    The diagnostic queries (`find_self_referencing`, `find_orphans`) and the
    repair statements (`clear_parent`, `delete_nodes`) work on whatever is
    persisted, including rows that violate the tree invariants.
    """

    @abstractmethod
    async def get(self, node_id: ULID) -> TreeNode | None: ...

    @abstractmethod
    async def upsert(self, node: TreeNode) -> None: ...

    @abstractmethod
    async def delete(self, node_id: ULID) -> None:
        """Delete a node if present. Children are left untouched."""
        ...

    @abstractmethod
    async def children(self, parent_id: ULID) -> list[TreeNode]: ...

    @abstractmethod
    async def roots(self) -> list[TreeNode]: ...

    @abstractmethod
    async def all_nodes(self) -> list[TreeNode]: ...

    @abstractmethod
    async def find_self_referencing(self) -> list[TreeNode]:
        """Rows whose parent_id equals their own id."""
        ...

    @abstractmethod
    async def find_orphans(self) -> list[TreeNode]:
        """Rows whose non-null parent_id matches no existing row."""
        ...

    @abstractmethod
    async def count_nodes(self) -> int: ...

    @abstractmethod
    async def count_roots(self) -> int: ...

    @abstractmethod
    async def clear_parent(self, node_ids: Iterable[ULID]) -> int:
        """Promote nodes to roots. Returns the number of rows changed."""
        ...

    @abstractmethod
    async def delete_nodes(self, node_ids: Iterable[ULID]) -> int:
        """Delete nodes. Returns the number of rows deleted."""
        ...

    @abstractmethod
    async def clear(self) -> None: ...

    async def ancestors(self, node_id: ULID) -> list[TreeNode]:
        """Walk parent pointers upwards from a node, nearest parent first.

        The walk stops at a root, at a dangling parent_id, or when it
        would revisit a node, so it terminates on a corrupted table too.
        """
        result: list[TreeNode] = []
        visited = {node_id}
        node = await self.get(node_id)
        while node is not None and node.parent_id is not None:
            if node.parent_id in visited:
                break
            visited.add(node.parent_id)
            node = await self.get(node.parent_id)
            if node is not None:
                result.append(node)
        return result

    async def is_descendant(self, node_id: ULID, ancestor_id: ULID) -> bool:
        """Whether ancestor_id appears on the parent chain of node_id."""
        return any(a.id == ancestor_id for a in await self.ancestors(node_id))

    async def descendants(self, node_id: ULID) -> list[TreeNode]:
        """Breadth-first walk of a subtree, excluding the node itself."""
        result: list[TreeNode] = []
        visited = {node_id}
        queue = [node_id]
        while queue:
            for child in await self.children(queue.pop(0)):
                if child.id in visited:
                    continue
                visited.add(child.id)
                result.append(child)
                queue.append(child.id)
        return result


class InMemoryTreeStore(TreeStore):
    def __init__(self) -> None:
        self._nodes: dict[ULID, TreeNode] = {}

    async def get(self, node_id: ULID) -> TreeNode | None:
        return self._nodes.get(node_id)

    async def upsert(self, node: TreeNode) -> None:
        self._nodes[node.id] = node

    async def delete(self, node_id: ULID) -> None:
        self._nodes.pop(node_id, None)

    async def children(self, parent_id: ULID) -> list[TreeNode]:
        return _sorted(n for n in self._nodes.values() if n.parent_id == parent_id)

    async def roots(self) -> list[TreeNode]:
        return _sorted(n for n in self._nodes.values() if n.parent_id is None)

    async def all_nodes(self) -> list[TreeNode]:
        return _sorted(self._nodes.values())

    async def find_self_referencing(self) -> list[TreeNode]:
        return _sorted(n for n in self._nodes.values() if n.parent_id == n.id)

    async def find_orphans(self) -> list[TreeNode]:
        return _sorted(
            n
            for n in self._nodes.values()
            if n.parent_id is not None and n.parent_id not in self._nodes
        )

    async def count_nodes(self) -> int:
        return len(self._nodes)

    async def count_roots(self) -> int:
        return sum(1 for n in self._nodes.values() if n.parent_id is None)

    async def clear_parent(self, node_ids: Iterable[ULID]) -> int:
        changed = 0
        for node_id in set(node_ids):
            node = self._nodes.get(node_id)
            if node is not None and node.parent_id is not None:
                self._nodes[node_id] = node.model_copy(update={"parent_id": None})
                changed += 1
        return changed

    async def delete_nodes(self, node_ids: Iterable[ULID]) -> int:
        return sum(1 for node_id in set(node_ids) if self._nodes.pop(node_id, None) is not None)

    async def clear(self) -> None:
        self._nodes.clear()


def _sorted(nodes: Iterable[TreeNode]) -> list[TreeNode]:
    # Pinned first, categories before notes, then by name
    return sorted(
        nodes, key=lambda n: (not n.is_pinned, n.node_type != "category", n.name.lower())
    )
