"""In-process fan-out of committed events."""

import inspect
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Any

from ...domain import DomainEvent, Event
from .processor import EventProcessor

LOGGER = logging.getLogger(__name__)

Subscriber = Callable[[Event[Any]], Awaitable[None] | None]


class EventBus:
    """Best-effort publisher of committed events to in-process subscribers.

    Subscribers register for a domain event class and receive the stored
    envelope of every published event that is an instance of it. Subscribing
    to DomainEvent receives everything.

    A subscriber that raises is logged and skipped; the remaining subscribers
    still receive the event, and publish itself never raises for a subscriber
    failure since the event is already durable by the time it is published.

    Examples:
        >>> bus = EventBus()
        >>> bus.subscribe(TodoCompleted, refresh_todo_panel)
        >>> bus.subscribe_processor(OrphanedTodoProcessor(...))
        >>> await bus.publish(event)
    """

    def __init__(self) -> None:
        self._subscribers: dict[type[DomainEvent], list[Subscriber]] = defaultdict(list)

    def subscribe(self, event_type: type[DomainEvent], subscriber: Subscriber) -> None:
        self._subscribers[event_type].append(subscriber)

    def subscribe_processor(self, processor: EventProcessor) -> None:
        """Deliver every event to an EventProcessor's routed handlers."""
        self.subscribe(DomainEvent, processor.handle)

    def unsubscribe(self, event_type: type[DomainEvent], subscriber: Subscriber) -> None:
        if subscriber in self._subscribers.get(event_type, []):
            self._subscribers[event_type].remove(subscriber)

    def _subscribers_for(self, event_type: type) -> list[Subscriber]:
        subscribers: list[Subscriber] = []
        for klass in event_type.__mro__:
            subscribers.extend(self._subscribers.get(klass, []))
        return subscribers

    async def publish(self, event: Event[Any]) -> None:
        for subscriber in self._subscribers_for(type(event.data)):
            try:
                result = subscriber(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                LOGGER.exception(
                    "Event subscriber failed",
                    extra={
                        "event_kind": event.kind,
                        "aggregate_id": str(event.aggregate_id),
                        "subscriber": getattr(subscriber, "__qualname__", repr(subscriber)),
                    },
                )
