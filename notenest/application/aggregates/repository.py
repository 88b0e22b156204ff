import logging
from typing import Any, Generic, TypeVar

from ulid import ULID

from ...domain import Aggregate, Event
from ...domain.exceptions import AggregateNotFoundError
from ..events import EventStore

LOGGER = logging.getLogger(__name__)

A = TypeVar("A", bound=Aggregate)


class AggregateFactory(Generic[A]):
    """Factory for creating aggregate instances of a specific type."""

    def __init__(self, aggregate_type: type[A]):
        self._aggregate_type = aggregate_type

    def get_type(self) -> type[A]:
        """Get the aggregate type this factory produces."""
        return self._aggregate_type

    def create(self, aggregate_id: ULID) -> A:
        """Create a new, empty aggregate instance with the given ID."""
        return self._aggregate_type(id=aggregate_id)


class AggregateRepository(Generic[A]):
    """Loads aggregates by replaying their streams and saves their new events.

    Aggregates are never cached: every load rebuilds a fresh instance from
    the store, so an instance only lives for the duration of one command.

    Saving is explicit about its effects. `save` appends the aggregate's
    pending events, marks the aggregate committed once the store accepted
    them, and returns the committed events to the caller.
    """

    __slots__ = ("aggregate_type", "factory", "event_store")

    def __init__(self, aggregate_factory: AggregateFactory[A], event_store: EventStore):
        self.aggregate_type = aggregate_factory.get_type()
        self.factory = aggregate_factory
        self.event_store = event_store

    def new(self, aggregate_id: ULID | None = None) -> A:
        """Create an empty aggregate that has not been persisted yet."""
        return self.factory.create(aggregate_id or ULID())

    async def load(self, aggregate_id: ULID) -> A | None:
        """Rebuild an aggregate from its event stream.

        Returns:
            The rebuilt aggregate, or None if the store has no events for it.
        """
        events = await self.event_store.load_events(aggregate_id)
        if not events:
            return None

        aggregate = self.factory.create(aggregate_id)
        aggregate.replay(events)
        return aggregate

    async def get(self, aggregate_id: ULID) -> A:
        """Like `load`, for callers that need the aggregate to exist.

        Raises:
            AggregateNotFoundError: If the store has no events for the id.
        """
        aggregate = await self.load(aggregate_id)
        if aggregate is None:
            raise AggregateNotFoundError(
                f"{self.aggregate_type.__name__} {aggregate_id} not found"
            )
        return aggregate

    async def save(self, aggregate: A) -> list[Event[Any]]:
        """Persist the aggregate's pending events.

        Returns:
            The committed events with their stream positions. Empty when the
            aggregate had nothing pending.

        Raises:
            ConcurrencyError: If another writer appended to the aggregate
                since it was loaded. The aggregate is left untouched.
        """
        pending = aggregate.pending_events()
        if not pending:
            return []

        committed = await self.event_store.append(pending, expected_version=aggregate.version)
        aggregate.mark_committed()
        LOGGER.debug(
            "Saved aggregate",
            extra={
                "aggregate_type": self.aggregate_type.aggregate_type,
                "aggregate_id": str(aggregate.id),
                "version": aggregate.version,
                "event_count": len(committed),
            },
        )
        return committed
