"""Tests for projection watermarks."""

import pytest


@pytest.mark.asyncio
async def test_missing_checkpoint_is_zero(checkpoints):
    assert await checkpoints.load("tree_view") == 0
    assert await checkpoints.load_checkpoint("tree_view") is None


@pytest.mark.asyncio
async def test_save_only_moves_forward(checkpoints):
    """Saving a position at or behind the watermark is ignored."""
    await checkpoints.save("tree_view", 5)
    await checkpoints.save("tree_view", 3)
    await checkpoints.save("tree_view", 5)

    assert await checkpoints.load("tree_view") == 5


@pytest.mark.asyncio
async def test_reset_moves_back_to_zero(checkpoints):
    """Reset is the one way back."""
    await checkpoints.save("tree_view", 5)
    await checkpoints.reset("tree_view")

    checkpoint = await checkpoints.load_checkpoint("tree_view")
    assert checkpoint.last_processed_position == 0


@pytest.mark.asyncio
async def test_watermarks_are_per_projection(checkpoints):
    await checkpoints.save("tree_view", 5)

    assert await checkpoints.load("todo_view") == 0
