"""Tests for the operator repairs of the tree view."""

import pytest
import pytest_asyncio
from ulid import ULID

from notenest.diagnostics import TreeIntegrityChecker, TreeRepairTool
from notenest.domain import ConfirmationRequiredError


@pytest.fixture
def repair_tool(tree_store, cache) -> TreeRepairTool:
    return TreeRepairTool(tree_store, cache)


@pytest_asyncio.fixture
async def corrupted(tree_store, make_node):
    self_id = ULID()
    healthy = make_node("Work")
    self_ref = make_node("Loop", parent_id=self_id, node_id=self_id)
    orphan = make_node("Lost", parent_id=ULID())
    child = make_node("Projects", parent_id=healthy.id)
    for node in (healthy, self_ref, orphan, child):
        await tree_store.upsert(node)
    return {"healthy": healthy, "self_ref": self_ref, "orphan": orphan, "child": child}


@pytest.mark.asyncio
async def test_promote_self_referencing(repair_tool, tree_store, corrupted):
    """Self-referencing nodes become roots; nothing else changes."""
    assert await repair_tool.promote_self_referencing() == 1

    node = await tree_store.get(corrupted["self_ref"].id)
    assert node.parent_id is None
    assert await tree_store.find_self_referencing() == []
    assert len(await tree_store.find_orphans()) == 1
    assert (await tree_store.get(corrupted["child"].id)).parent_id == corrupted["healthy"].id


@pytest.mark.asyncio
async def test_promote_orphans(repair_tool, tree_store, corrupted):
    """Orphans become roots."""
    assert await repair_tool.promote_orphans() == 1
    assert (await tree_store.get(corrupted["orphan"].id)).is_root


@pytest.mark.asyncio
async def test_repairs_leave_a_healthy_tree(repair_tool, tree_store, corrupted):
    await repair_tool.promote_self_referencing()
    await repair_tool.promote_orphans()

    report = await TreeIntegrityChecker(tree_store).check()

    assert report.is_healthy
    assert report.total_nodes == 4


@pytest.mark.asyncio
async def test_repair_on_healthy_tree_changes_nothing(repair_tool, tree_store, make_node):
    await tree_store.upsert(make_node("Work"))

    assert await repair_tool.promote_self_referencing() == 0
    assert await repair_tool.promote_orphans() == 0


@pytest.mark.asyncio
async def test_delete_requires_confirmation(repair_tool, tree_store, corrupted):
    """The destructive repair refuses to run without confirmation."""
    with pytest.raises(ConfirmationRequiredError):
        await repair_tool.delete_self_referencing()

    assert await tree_store.count_nodes() == 4


@pytest.mark.asyncio
async def test_delete_self_referencing(repair_tool, tree_store, corrupted):
    assert await repair_tool.delete_self_referencing(confirm=True) == 1
    assert await tree_store.get(corrupted["self_ref"].id) is None
    assert await tree_store.count_nodes() == 3


@pytest.mark.asyncio
async def test_repair_invalidates_cache(repair_tool, cache, corrupted):
    generation = cache.generation

    await repair_tool.promote_orphans()

    assert cache.generation == generation + 1
