"""Tests for handler routing and the Event[T] wrapper annotation."""

import pytest
from ulid import ULID

from notenest.application.events import EventProcessor
from notenest.domain import Event
from notenest.domain.notes import NoteCreated, NoteDeleted
from notenest.domain.todos import TodoCompleted
from notenest.routing import MessageRouter, RaiseHandler, handles_event


class PayloadOnlyProcessor(EventProcessor):
    """Processor that uses payload-only annotation."""

    def __init__(self):
        self.received: list[object] = []

    @handles_event
    async def on_deleted(self, event: NoteDeleted) -> None:
        self.received.append(event)


class WrapperProcessor(EventProcessor):
    """Processor that uses Event[T] wrapper annotation."""

    def __init__(self):
        self.received: list[Event] = []

    @handles_event
    async def on_created(self, event: Event[NoteCreated]) -> None:
        self.received.append(event)


def _envelope(data, sequence_number: int = 1) -> Event:
    return Event(
        aggregate_id=ULID(),
        aggregate_type="Note",
        data=data,
        sequence_number=sequence_number,
        stream_position=7,
    )


@pytest.mark.asyncio
async def test_payload_annotation_receives_payload():
    """A handler annotated with the payload type gets the bare domain event."""
    processor = PayloadOnlyProcessor()
    payload = NoteDeleted()

    await processor.handle(_envelope(payload))

    assert processor.received == [payload]


@pytest.mark.asyncio
async def test_wrapper_annotation_receives_envelope():
    """A handler annotated with Event[T] gets the envelope with its metadata."""
    processor = WrapperProcessor()
    envelope = _envelope(NoteCreated(category_id=ULID(), title="Ideas"), sequence_number=3)

    await processor.handle(envelope)

    assert processor.received == [envelope]
    assert processor.received[0].stream_position == 7
    assert processor.received[0].sequence_number == 3


@pytest.mark.asyncio
async def test_unhandled_events_are_ignored():
    """Processors ignore events they have no handler for."""
    processor = WrapperProcessor()

    assert await processor.handle(_envelope(TodoCompleted())) is None
    assert processor.received == []


def test_raise_handler_rejects_unregistered_types():
    """A router with a raising default refuses unknown messages."""
    router = MessageRouter(RaiseHandler(NoteCreated, "applier"))

    with pytest.raises(NotImplementedError, match="No applier registered"):
        router.route(object(), NoteDeleted())


def test_registered_types_lists_handled_messages():
    """registered_types exposes the explicitly routed message types."""
    assert WrapperProcessor._event_router.registered_types == frozenset({NoteCreated})


def test_handler_without_annotation_is_rejected():
    """Decorating a handler whose message parameter lacks an annotation fails."""
    with pytest.raises(ValueError, match="must have a type annotation"):

        class Broken(EventProcessor):
            @handles_event
            async def on_anything(self, event) -> None:
                pass
