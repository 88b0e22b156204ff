"""Tests for the load, operate, persist, publish template of command handlers."""

import pytest
import pytest_asyncio
from ulid import ULID

from notenest.application.commands import (
    CompleteTodo,
    CreateTodo,
    MoveTodoToCategory,
    ToggleFavorite,
    UpdateTodoText,
)
from notenest.application.commands.todos import (
    CompleteTodoHandler,
    CreateTodoHandler,
    MoveTodoToCategoryHandler,
    ToggleFavoriteHandler,
    UpdateTodoTextHandler,
)
from notenest.domain import DomainEvent, Event, FailureKind, Todo
from notenest.domain.todos import TodoCreated


@pytest.fixture
def published(event_bus) -> list[Event]:
    events: list[Event] = []
    event_bus.subscribe(DomainEvent, events.append)
    return events


@pytest_asyncio.fixture
async def todo_id(todo_repository, event_bus) -> ULID:
    result = await CreateTodoHandler(todo_repository, event_bus).handle(
        CreateTodo(text="Buy milk")
    )
    return result.value.id


# Success


@pytest.mark.asyncio
async def test_create_persists_and_publishes(todo_repository, event_bus, event_store, published):
    """A successful command appends its events and publishes them with positions."""
    handler = CreateTodoHandler(todo_repository, event_bus)

    result = await handler.handle(CreateTodo(text="Buy milk"))

    assert result.is_success
    assert isinstance(result.value, Todo)
    assert result.value.version == 1
    assert await event_store.current_position() == 1
    [event] = published
    assert isinstance(event.data, TodoCreated)
    assert event.stream_position == 1


@pytest.mark.asyncio
async def test_favorite_toggle_increments_version(todo_repository, event_bus, todo_id):
    """Favoriting a todo appends one event."""
    handler = ToggleFavoriteHandler(todo_repository, event_bus)

    result = await handler.handle(ToggleFavorite(aggregate_id=todo_id, is_favorite=True))

    assert result.is_success
    assert result.value.is_favorite
    assert result.value.version == 2

    reloaded = await todo_repository.load(todo_id)
    assert reloaded.is_favorite
    assert reloaded.version == 2


@pytest.mark.asyncio
async def test_no_op_succeeds_without_appending(todo_repository, event_bus, event_store, todo_id):
    """Requesting the current favorite state succeeds and stores nothing."""
    handler = ToggleFavoriteHandler(todo_repository, event_bus)

    result = await handler.handle(ToggleFavorite(aggregate_id=todo_id, is_favorite=False))

    assert result.is_success
    assert await event_store.current_position() == 1


@pytest.mark.asyncio
async def test_move_to_current_category_succeeds_without_appending(
    todo_repository, event_bus, event_store, todo_id
):
    """Moving a todo into the category it is already in succeeds and stores nothing."""
    handler = MoveTodoToCategoryHandler(todo_repository, event_bus)
    category_id = ULID()
    await handler.handle(MoveTodoToCategory(aggregate_id=todo_id, category_id=category_id))
    position = await event_store.current_position()

    result = await handler.handle(
        MoveTodoToCategory(aggregate_id=todo_id, category_id=category_id)
    )

    assert result.is_success
    assert result.value.category_id == category_id
    assert await event_store.current_position() == position == 2
    assert (await todo_repository.load(todo_id)).version == 2


@pytest.mark.asyncio
async def test_result_is_a_snapshot(todo_repository, event_bus, todo_id):
    """The aggregate returned in the result is a copy detached from the handler."""
    handler = CompleteTodoHandler(todo_repository, event_bus)

    result = await handler.handle(CompleteTodo(aggregate_id=todo_id))
    result.value.text = "changed"

    reloaded = await todo_repository.load(todo_id)
    assert reloaded.text == "Buy milk"
    assert reloaded.is_completed


# Failures


@pytest.mark.asyncio
async def test_unknown_aggregate_is_not_found(todo_repository, event_bus):
    """Commands against a missing aggregate fail with NOT_FOUND."""
    handler = CompleteTodoHandler(todo_repository, event_bus)

    result = await handler.handle(CompleteTodo(aggregate_id=ULID()))

    assert not result.is_success
    assert result.kind == FailureKind.NOT_FOUND
    assert result.message == "Todo not found"


@pytest.mark.asyncio
async def test_validation_failure_appends_nothing(
    todo_repository, event_bus, event_store, published, todo_id
):
    """A rejected operation surfaces its message and leaves the store untouched."""
    handler = UpdateTodoTextHandler(todo_repository, event_bus)
    published.clear()

    result = await handler.handle(UpdateTodoText(aggregate_id=todo_id, text="x" * 501))

    assert result.kind == FailureKind.VALIDATION
    assert result.message == "Todo text cannot exceed 500 characters"
    assert await event_store.current_position() == 1
    assert published == []
    reloaded = await todo_repository.load(todo_id)
    assert reloaded.version == 1
    assert reloaded.text == "Buy milk"


@pytest.mark.asyncio
async def test_create_with_taken_id_is_a_concurrency_failure(todo_repository, event_bus, todo_id):
    """Creating a todo under an existing id conflicts with the stored stream."""
    handler = CreateTodoHandler(todo_repository, event_bus)

    result = await handler.handle(CreateTodo(aggregate_id=todo_id, text="Again"))

    assert result.kind == FailureKind.CONCURRENCY
    assert "Expected version 0, got 1" in result.message


@pytest.mark.asyncio
async def test_concurrent_writer_causes_concurrency_failure(
    todo_repository, event_bus, event_store, todo_id
):
    """An append landing between load and save makes the command fail."""

    class RacingHandler(CompleteTodoHandler):
        async def validate(self, aggregate, command):
            # Another writer commits while this command is in flight
            other = await todo_repository.load(aggregate.id)
            other.update_text("Buy bread")
            await todo_repository.save(other)

    result = await RacingHandler(todo_repository, event_bus).handle(
        CompleteTodo(aggregate_id=todo_id)
    )

    assert result.kind == FailureKind.CONCURRENCY
    stored = await todo_repository.load(todo_id)
    assert stored.text == "Buy bread"
    assert not stored.is_completed


@pytest.mark.asyncio
async def test_publish_failure_does_not_fail_command(todo_repository, event_bus, todo_id):
    """Events are durable before publishing, so a failing bus is only logged."""

    async def broken_publish(event):
        raise RuntimeError("bus down")

    event_bus.publish = broken_publish
    handler = CompleteTodoHandler(todo_repository, event_bus)

    result = await handler.handle(CompleteTodo(aggregate_id=todo_id))

    assert result.is_success
