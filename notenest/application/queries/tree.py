from ulid import ULID

from ..projections.tree_store import TreeNode, TreeStore
from .cache import QueryCache


class TreeQueryService:
    """Cached reads over the tree view.

    Results stay cached until the next command invalidates the cache, so
    the walks below only hit the store once per command.
    """

    def __init__(self, store: TreeStore, cache: QueryCache):
        self.store = store
        self.cache = cache

    async def get_node(self, node_id: ULID) -> TreeNode | None:
        return await self.cache.get_or_load(
            ("tree.node", node_id), lambda: self.store.get(node_id)
        )

    async def get_children(self, parent_id: ULID) -> list[TreeNode]:
        return await self.cache.get_or_load(
            ("tree.children", parent_id), lambda: self.store.children(parent_id)
        )

    async def get_roots(self) -> list[TreeNode]:
        return await self.cache.get_or_load(("tree.roots",), self.store.roots)

    async def get_breadcrumb(self, node_id: ULID) -> list[TreeNode]:
        """Path from the root down to the node, inclusive.

        Empty when the node does not exist. The underlying walk stops on a
        revisited node, so a corrupted parent chain yields a truncated
        breadcrumb rather than a hang.
        """

        async def load() -> list[TreeNode]:
            node = await self.store.get(node_id)
            if node is None:
                return []
            return [*reversed(await self.store.ancestors(node_id)), node]

        return await self.cache.get_or_load(("tree.breadcrumb", node_id), load)

    async def is_descendant(self, node_id: ULID, ancestor_id: ULID) -> bool:
        return await self.cache.get_or_load(
            ("tree.is_descendant", node_id, ancestor_id),
            lambda: self.store.is_descendant(node_id, ancestor_id),
        )

    async def has_children(self, node_id: ULID) -> bool:
        return bool(await self.get_children(node_id))
