from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import BaseModel, Field
from ulid import ULID

from ..context import get_context
from ..routing import ensure_exhaustive, setup_event_applying
from .event import DomainEvent, Event, event_variants, utc_now

if TYPE_CHECKING:
    from ..routing import MessageRouter


class Aggregate(BaseModel):
    """Base class for all aggregates in the event sourcing system.

    Aggregates are consistency boundaries whose state changes only through
    recorded domain events. Domain operations validate their preconditions,
    raising DomainValidationError without touching state when they do not
    hold, and otherwise call `emit`, which applies the event and buffers it.

    Event application is routed with the @applies_event decorator. Each
    concrete aggregate declares the closed union of its events in
    `event_union`; defining an aggregate that lacks an applier for one of
    the variants raises TypeError.

    Persistence is an explicit two-step protocol: the repository appends the
    pending events, and only once the store has accepted them does it call
    `mark_committed`, which advances `version` and clears the buffer. The
    repository hands the committed events back to its caller, so nothing
    needs to snapshot the buffer beforehand.

    Examples:
        >>> class Todo(Aggregate):
        ...     aggregate_type = "Todo"
        ...     event_union = TodoEvent
        ...
        ...     def complete(self) -> None:
        ...         if self.is_completed:
        ...             raise DomainValidationError("Todo is already completed")
        ...         self.emit(TodoCompleted())
        ...
        ...     @applies_event
        ...     def _on_completed(self, event: TodoCompleted) -> None:
        ...         self.is_completed = True

    Attributes:
        id: Unique identifier for this aggregate instance.
        version: Number of committed events. Used as the expected version
            when saving.
        uncommitted_events: Events emitted but not yet persisted. Excluded
            from serialization.
    """

    id: ULID = Field(default_factory=ULID)
    version: int = 0
    uncommitted_events: list[Event[Any]] = Field(default_factory=list, exclude=True)

    aggregate_type: ClassVar[str] = "Aggregate"
    event_union: ClassVar[Any] = None

    _event_router: ClassVar["MessageRouter"]

    def __init_subclass__(cls, **kwargs: object) -> None:
        """Set up event routing and check it covers every event variant."""
        super().__init_subclass__(**kwargs)  # type: ignore[arg-type]
        cls._event_router = setup_event_applying(cls)
        if cls.event_union is not None:
            ensure_exhaustive(cls, cls._event_router, event_variants(cls.event_union))

    def apply(self, event: DomainEvent) -> None:
        """Route an event to its registered applier method.

        Appliers must be pure functions of the current state and the event
        payload. They are used both for live mutation and for replay.
        """
        self._event_router.route(self, event)

    def emit(self, data: DomainEvent) -> None:
        """Apply a domain event and add it to the pending buffer.

        The envelope is stamped with the next sequence number after the
        committed version and any already pending events, and with the
        correlation/causation ids of the current execution context.

        Args:
            data: The domain event describing what happened.
        """
        ctx = get_context()
        event: Event[Any] = Event(
            aggregate_id=self.id,
            aggregate_type=self.aggregate_type,
            sequence_number=self.version + len(self.uncommitted_events) + 1,
            data=data,
            timestamp=utc_now(),
            correlation_id=ctx.correlation_id,
            causation_id=ctx.command_id,
        )
        self.apply(data)
        self.uncommitted_events.append(event)

    @property
    def has_pending_events(self) -> bool:
        return bool(self.uncommitted_events)

    def pending_events(self) -> list[Event[Any]]:
        """Get a copy of the events that haven't been persisted yet."""
        return list(self.uncommitted_events)

    def mark_committed(self) -> None:
        """Advance the version past the pending events and clear the buffer.

        Must only be called once the event store has durably accepted every
        pending event.
        """
        self.version += len(self.uncommitted_events)
        self.uncommitted_events.clear()

    def discard_pending_events(self) -> None:
        self.uncommitted_events.clear()

    def replay(self, events: Sequence[Event[Any]]) -> None:
        """Rebuild state from a stream of committed events.

        Args:
            events: The aggregate's events in sequence order.
        """
        for event in events:
            self.apply(event.data)
            self.version = event.sequence_number
