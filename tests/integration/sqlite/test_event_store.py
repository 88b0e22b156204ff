"""Tests for the SQLite event store."""

import asyncio

import pytest
from ulid import ULID

from notenest.domain import ConcurrencyError, Todo
from notenest.domain.todos import TodoCompleted, TodoCreated


def _new_todo(text: str = "Buy milk") -> Todo:
    todo = Todo(id=ULID())
    todo.create(text)
    return todo


@pytest.fixture
def event_store(initialized_config):
    return initialized_config.event_store


@pytest.mark.asyncio
async def test_append_and_load(event_store):
    """Events round trip through the table with their metadata."""
    todo = _new_todo()
    todo.complete()

    committed = await event_store.append(todo.pending_events(), expected_version=0)
    loaded = await event_store.load_events(todo.id)

    assert [e.stream_position for e in committed] == [1, 2]
    assert [type(e.data) for e in loaded] == [TodoCreated, TodoCompleted]
    assert loaded[0].data.text == "Buy milk"
    assert loaded[0].id == committed[0].id
    assert loaded[1].stream_position == 2
    assert await event_store.current_version(todo.id) == 2


@pytest.mark.asyncio
async def test_stale_append_is_rejected_atomically(event_store):
    """A conflicting append stores none of its events."""
    todo = _new_todo()
    await event_store.append(todo.pending_events(), expected_version=0)

    stale = Todo(id=todo.id)
    stale.create("Buy bread")
    stale.complete()
    with pytest.raises(ConcurrencyError, match="Expected version 0, got 1"):
        await event_store.append(stale.pending_events(), expected_version=0)

    assert await event_store.current_position() == 1
    assert await event_store.current_version(todo.id) == 1


@pytest.mark.asyncio
async def test_concurrent_appends_have_one_winner(event_store):
    """Two writers racing on the same version: exactly one succeeds."""
    todo = _new_todo()
    await event_store.append(todo.pending_events(), expected_version=0)
    todo.mark_committed()

    first = todo.model_copy(deep=True)
    second = todo.model_copy(deep=True)
    first.complete()
    second.update_text("Buy bread")

    results = await asyncio.gather(
        event_store.append(first.pending_events(), expected_version=1),
        event_store.append(second.pending_events(), expected_version=1),
        return_exceptions=True,
    )

    assert sum(isinstance(r, ConcurrencyError) for r in results) == 1
    assert await event_store.current_version(todo.id) == 2


@pytest.mark.asyncio
async def test_load_since_position(event_store):
    """Records come back in stream order after the given position."""
    for text in ("a", "b", "c"):
        await event_store.append(_new_todo(text).pending_events(), expected_version=0)

    records = await event_store.load_since_position(1, batch_size=5)

    assert [r.stream_position for r in records] == [2, 3]
    assert records[0].kind == "todo.created"
    assert await event_store.current_position() == 3


@pytest.mark.asyncio
async def test_empty_store(event_store):
    assert await event_store.current_position() == 0
    assert await event_store.load_events(ULID()) == []
    assert await event_store.load_since_position(0, batch_size=10) == []
