"""Tests for the in-process event bus."""

import pytest
from ulid import ULID

from notenest.application.events import EventProcessor
from notenest.domain import DomainEvent, Event, Todo
from notenest.domain.todos import TodoCompleted, TodoCreated
from notenest.routing import handles_event


def _events() -> list[Event]:
    todo = Todo(id=ULID())
    todo.create("Buy milk")
    todo.complete()
    return todo.pending_events()


@pytest.mark.asyncio
async def test_subscribers_receive_matching_events(event_bus):
    """Subscribers only get events of the class they subscribed to."""
    completed: list[Event] = []
    event_bus.subscribe(TodoCompleted, completed.append)

    for event in _events():
        await event_bus.publish(event)

    assert [type(e.data) for e in completed] == [TodoCompleted]


@pytest.mark.asyncio
async def test_base_class_subscription_receives_everything(event_bus):
    """Subscribing to DomainEvent delivers every event."""
    received: list[Event] = []
    event_bus.subscribe(DomainEvent, received.append)

    for event in _events():
        await event_bus.publish(event)

    assert len(received) == 2


@pytest.mark.asyncio
async def test_failing_subscriber_does_not_stop_others(event_bus, caplog):
    """A raising subscriber is logged and the next subscriber still runs."""
    received: list[Event] = []

    def broken(event):
        raise RuntimeError("boom")

    event_bus.subscribe(TodoCreated, broken)
    event_bus.subscribe(TodoCreated, received.append)

    await event_bus.publish(_events()[0])

    assert len(received) == 1
    assert "Event subscriber failed" in caplog.text


@pytest.mark.asyncio
async def test_unsubscribe(event_bus):
    """An unsubscribed callback no longer receives events."""
    received: list[Event] = []
    event_bus.subscribe(TodoCreated, received.append)
    event_bus.unsubscribe(TodoCreated, received.append)

    await event_bus.publish(_events()[0])

    assert received == []


@pytest.mark.asyncio
async def test_subscribe_processor(event_bus):
    """A processor subscribed to the bus gets its routed handlers called."""

    class Counter(EventProcessor):
        def __init__(self):
            self.created = 0

        @handles_event
        async def on_created(self, event: TodoCreated) -> None:
            self.created += 1

    counter = Counter()
    event_bus.subscribe_processor(counter)

    for event in _events():
        await event_bus.publish(event)

    assert counter.created == 1
