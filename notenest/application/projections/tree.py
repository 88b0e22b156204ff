import logging

from ulid import ULID

from ...domain import Event
from ...domain.categories import (
    CategoryCreated,
    CategoryDeleted,
    CategoryMoved,
    CategoryPinned,
    CategoryRenamed,
    CategoryUnpinned,
)
from ...domain.exceptions import FoldRejectedError
from ...domain.notes import (
    NoteCreated,
    NoteDeleted,
    NoteMoved,
    NotePinned,
    NoteRenamed,
    NoteUnpinned,
)
from ...routing import handles_event
from .projection import Projection
from .tree_store import PATH_SEPARATOR, NodeType, TreeNode, TreeStore, child_path

LOGGER = logging.getLogger(__name__)


class TreeViewProjection(Projection):
    """Folds category and note events into the tree view.

    Every create or reparent is checked before it is written: the new parent
    must exist, must not be the node itself, and must not sit inside the
    node's own subtree. A violation raises FoldRejectedError and leaves the
    table as it was, since a cycle would make every parent walk (breadcrumbs,
    subtree queries) loop.

    Renames and moves of a category rewrite the display paths of its whole
    subtree.
    Deleting a category that still has children in the view promotes them to
    roots, so the view never holds a dangling parent.
    """

    name = "tree_view"

    def __init__(self, store: TreeStore):
        self.store = store

    async def clear(self) -> None:
        await self.store.clear()

    # Categories

    @handles_event
    async def on_category_created(self, event: Event[CategoryCreated]) -> None:
        await self._create_node(event, "category", event.data.name, event.data.parent_id)

    @handles_event
    async def on_category_renamed(self, event: Event[CategoryRenamed]) -> None:
        await self._rename_node(event, event.data.new_name)

    @handles_event
    async def on_category_moved(self, event: Event[CategoryMoved]) -> None:
        await self._move_node(event, event.data.new_parent_id)

    @handles_event
    async def on_category_pinned(self, event: Event[CategoryPinned]) -> None:
        await self._set_pinned(event, True)

    @handles_event
    async def on_category_unpinned(self, event: Event[CategoryUnpinned]) -> None:
        await self._set_pinned(event, False)

    @handles_event
    async def on_category_deleted(self, event: Event[CategoryDeleted]) -> None:
        await self._promote_children(event)
        await self.store.delete(event.aggregate_id)

    # Notes

    @handles_event
    async def on_note_created(self, event: Event[NoteCreated]) -> None:
        await self._create_node(event, "note", event.data.title, event.data.category_id)

    @handles_event
    async def on_note_renamed(self, event: Event[NoteRenamed]) -> None:
        await self._rename_node(event, event.data.new_title)

    @handles_event
    async def on_note_moved(self, event: Event[NoteMoved]) -> None:
        await self._move_node(event, event.data.new_category_id)

    @handles_event
    async def on_note_pinned(self, event: Event[NotePinned]) -> None:
        await self._set_pinned(event, True)

    @handles_event
    async def on_note_unpinned(self, event: Event[NoteUnpinned]) -> None:
        await self._set_pinned(event, False)

    @handles_event
    async def on_note_deleted(self, event: Event[NoteDeleted]) -> None:
        await self.store.delete(event.aggregate_id)

    # Folding helpers

    async def _create_node(
        self, event: Event, node_type: NodeType, name: str, parent_id: ULID | None
    ) -> None:
        parent = await self._checked_parent(event.aggregate_id, parent_id)
        existing = await self.store.get(event.aggregate_id)
        await self.store.upsert(
            TreeNode(
                id=event.aggregate_id,
                parent_id=parent_id,
                name=name,
                node_type=node_type,
                display_path=child_path(parent, name),
                is_pinned=existing.is_pinned if existing else False,
                created_at=existing.created_at if existing else event.timestamp,
                modified_at=event.timestamp,
            )
        )

    async def _rename_node(self, event: Event, name: str) -> None:
        node = await self._existing(event)
        if node is None:
            return
        parent = await self.store.get(node.parent_id) if node.parent_id else None
        renamed = node.model_copy(
            update={
                "name": name,
                "display_path": child_path(parent, name),
                "modified_at": event.timestamp,
            }
        )
        await self.store.upsert(renamed)
        await self._refresh_subtree_paths(renamed)

    async def _move_node(self, event: Event, parent_id: ULID | None) -> None:
        node = await self._existing(event)
        if node is None:
            return
        parent = await self._checked_parent(node.id, parent_id)
        moved = node.model_copy(
            update={
                "parent_id": parent_id,
                "display_path": child_path(parent, node.name),
                "modified_at": event.timestamp,
            }
        )
        await self.store.upsert(moved)
        await self._refresh_subtree_paths(moved)

    async def _set_pinned(self, event: Event, is_pinned: bool) -> None:
        node = await self._existing(event)
        if node is None:
            return
        await self.store.upsert(
            node.model_copy(update={"is_pinned": is_pinned, "modified_at": event.timestamp})
        )

    async def _promote_children(self, event: Event) -> None:
        # The delete was validated against a possibly stale view, so children
        # folded since then become roots rather than orphans.
        children = await self.store.children(event.aggregate_id)
        if not children:
            return
        LOGGER.warning(
            "Promoting children of deleted category to roots",
            extra={"aggregate_id": str(event.aggregate_id), "children": len(children)},
        )
        for child in children:
            promoted = child.model_copy(
                update={
                    "parent_id": None,
                    "display_path": child.name,
                    "modified_at": event.timestamp,
                }
            )
            await self.store.upsert(promoted)
            await self._refresh_subtree_paths(promoted)

    async def _existing(self, event: Event) -> TreeNode | None:
        node = await self.store.get(event.aggregate_id)
        if node is None:
            LOGGER.warning(
                "Tree node missing for event",
                extra={"event_kind": event.kind, "aggregate_id": str(event.aggregate_id)},
            )
        return node

    async def _checked_parent(self, node_id: ULID, parent_id: ULID | None) -> TreeNode | None:
        if parent_id is None:
            return None
        if parent_id == node_id:
            raise FoldRejectedError(f"Node {node_id} cannot be its own parent")

        parent = await self.store.get(parent_id)
        if parent is None:
            raise FoldRejectedError(f"Parent {parent_id} of node {node_id} does not exist")
        if await self.store.is_descendant(parent_id, ancestor_id=node_id):
            raise FoldRejectedError(
                f"Node {node_id} cannot move under its own descendant {parent_id}"
            )
        return parent

    async def _refresh_subtree_paths(self, root: TreeNode) -> None:
        paths: dict[ULID, str] = {root.id: root.display_path}
        for node in await self.store.descendants(root.id):
            parent_path = paths.get(node.parent_id) if node.parent_id else None
            if parent_path is None:
                continue
            path = f"{parent_path}{PATH_SEPARATOR}{node.name}"
            paths[node.id] = path
            if path != node.display_path:
                await self.store.upsert(node.model_copy(update={"display_path": path}))
