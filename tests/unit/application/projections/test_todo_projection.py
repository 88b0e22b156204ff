"""Tests for folding todo events into the todo view."""

from datetime import date

import pytest
from ulid import ULID

from notenest.application.projections import TodoViewProjection
from notenest.domain import Priority
from notenest.domain.todos import (
    TodoCategoryChanged,
    TodoCompleted,
    TodoCreated,
    TodoDeleted,
    TodoDueDateChanged,
    TodoFavorited,
    TodoOrphaned,
    TodoPriorityChanged,
    TodoTagAdded,
    TodoTagRemoved,
    TodoTextUpdated,
    TodoUncompleted,
)
from notenest.testing import ProjectionScenario


@pytest.fixture
def projection(todo_store) -> TodoViewProjection:
    return TodoViewProjection(todo_store)


@pytest.mark.asyncio
async def test_created_todo_has_defaults(projection):
    """A new row starts open, normal priority and untagged."""
    note_id = ULID()
    async with ProjectionScenario(projection) as scenario:
        scenario.given(TodoCreated(text="Buy milk", source_note_id=note_id))
        scenario.should_have_state(
            scenario.default_aggregate_id,
            lambda row: (
                row.text == "Buy milk"
                and not row.is_completed
                and row.priority == Priority.NORMAL
                and row.tags == []
                and row.source_note_id == note_id
            ),
        )


@pytest.mark.asyncio
async def test_updates_are_folded(projection):
    """Every todo event updates its column."""
    category_id = ULID()
    async with ProjectionScenario(projection) as scenario:
        scenario.given(
            TodoCreated(text="Buy milk"),
            TodoTextUpdated(text="Buy oat milk"),
            TodoDueDateChanged(due_date=date(2026, 3, 1)),
            TodoPriorityChanged(priority=Priority.HIGH),
            TodoFavorited(),
            TodoCategoryChanged(category_id=category_id),
            TodoOrphaned(),
        )
        scenario.should_have_state(
            scenario.default_aggregate_id,
            lambda row: (
                row.text == "Buy oat milk"
                and row.due_date == date(2026, 3, 1)
                and row.priority == Priority.HIGH
                and row.is_favorite
                and row.category_id == category_id
                and row.is_orphaned
            ),
        )


@pytest.mark.asyncio
async def test_completion_round_trip(projection):
    """Uncompleting clears the completion time."""
    async with ProjectionScenario(projection) as scenario:
        scenario.given(TodoCreated(text="Buy milk"), TodoCompleted(), TodoUncompleted())
        scenario.should_have_state(
            scenario.default_aggregate_id,
            lambda row: not row.is_completed and row.completed_at is None,
        )


@pytest.mark.asyncio
async def test_tags_fold_idempotently(projection):
    """A tag folded twice appears once; removal drops it."""
    async with ProjectionScenario(projection) as scenario:
        scenario.given(
            TodoCreated(text="Buy milk"),
            TodoTagAdded(tag="home"),
            TodoTagAdded(tag="home"),
            TodoTagAdded(tag="errand"),
            TodoTagRemoved(tag="errand"),
        )
        scenario.should_have_state(scenario.default_aggregate_id, lambda row: row.tags == ["home"])


@pytest.mark.asyncio
async def test_refolded_create_keeps_later_changes(projection):
    """Folding a creation again does not reset a row that already exists."""
    todo_id = ULID()
    async with ProjectionScenario(projection) as scenario:
        scenario.given_for(todo_id, TodoCreated(text="Buy milk"), TodoCompleted())
        scenario.given_for(todo_id, TodoCreated(text="Buy milk"))
        scenario.should_have_state(todo_id, lambda row: row.is_completed)


@pytest.mark.asyncio
async def test_deleted_todo_is_removed(projection, todo_store):
    """Deleting removes the row."""
    async with ProjectionScenario(projection) as scenario:
        scenario.given(TodoCreated(text="Buy milk"), TodoDeleted())
        scenario.should_have_state(scenario.default_aggregate_id, lambda row: row is None)

    assert await todo_store.list_all() == []
