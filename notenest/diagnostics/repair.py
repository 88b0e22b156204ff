"""Operator-invoked repairs for the tree view.

Nothing in the application calls these automatically. The corrective
repairs promote the offending nodes to roots, which removes the bad edge
without losing any row. The destructive repair deletes rows and refuses to
run unless explicitly confirmed.

Multi-node cycles are reported by TreeIntegrityChecker but have no repair
here; the fix is to rebuild the projection, whose folds reject the moves
that would recreate them.
"""

import logging

from ..application.projections.tree_store import TreeStore
from ..application.queries import QueryCache
from ..domain.exceptions import ConfirmationRequiredError

LOGGER = logging.getLogger(__name__)


class TreeRepairTool:
    def __init__(self, store: TreeStore, cache: QueryCache | None = None):
        self.store = store
        self.cache = cache

    async def promote_self_referencing(self) -> int:
        """Set parent_id to null on every self-referencing row."""
        nodes = await self.store.find_self_referencing()
        changed = await self.store.clear_parent(node.id for node in nodes)
        self._after_repair("Promoted self-referencing nodes to root", changed)
        return changed

    async def promote_orphans(self) -> int:
        """Set parent_id to null on every row whose parent does not exist."""
        nodes = await self.store.find_orphans()
        changed = await self.store.clear_parent(node.id for node in nodes)
        self._after_repair("Promoted orphaned nodes to root", changed)
        return changed

    async def delete_self_referencing(self, confirm: bool = False) -> int:
        """Delete every self-referencing row.

        Raises:
            ConfirmationRequiredError: Unless confirm is True.
        """
        if not confirm:
            raise ConfirmationRequiredError(
                "Deleting self-referencing nodes is destructive; pass confirm=True"
            )
        nodes = await self.store.find_self_referencing()
        deleted = await self.store.delete_nodes(node.id for node in nodes)
        LOGGER.warning(
            "Deleted self-referencing nodes",
            extra={"count": deleted, "node_ids": [str(node.id) for node in nodes]},
        )
        if self.cache is not None:
            self.cache.invalidate()
        return deleted

    def _after_repair(self, message: str, changed: int) -> None:
        LOGGER.warning(message, extra={"count": changed})
        if self.cache is not None:
            self.cache.invalidate()
