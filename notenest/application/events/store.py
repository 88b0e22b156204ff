"""Event store contract and in-memory implementation."""

import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any

from ulid import ULID

from ...domain import Event
from ...domain.exceptions import ConcurrencyError
from .serializer import EventSerializer, StoredEvent, default_serializer

LOGGER = logging.getLogger(__name__)


class EventStore(ABC):
    """Append-only log of domain events, the source of truth.

    Each aggregate has its own gapless stream of sequence numbers. Every
    appended event also receives a global stream position, which gives the
    total order projections catch up in.

    Appends are atomic per call and guarded by an optimistic concurrency
    check: the caller passes the version it loaded, and the append fails if
    another writer advanced the stream since.
    """

    @abstractmethod
    async def append(self, events: list[Event[Any]], expected_version: int) -> list[Event[Any]]:
        """Append events of one aggregate.

        Args:
            events: Events in sequence order, all for the same aggregate,
                numbered from expected_version + 1.
            expected_version: Version of the aggregate the caller loaded.

        Returns:
            The committed events, carrying their stream positions.

        Raises:
            ConcurrencyError: If the stored version differs from
                expected_version.
        """
        ...

    @abstractmethod
    async def load_events(self, aggregate_id: ULID, min_version: int = 1) -> list[Event[Any]]:
        """Load an aggregate's events with sequence_number >= min_version."""
        ...

    @abstractmethod
    async def current_version(self, aggregate_id: ULID) -> int:
        """Number of events stored for an aggregate (0 when there are none)."""
        ...

    @abstractmethod
    async def load_since_position(self, position: int, batch_size: int) -> list[StoredEvent]:
        """Load up to batch_size records with stream_position > position, in order."""
        ...

    @abstractmethod
    async def current_position(self) -> int:
        """Stream position of the most recently appended event (0 when empty)."""
        ...


def check_batch(events: list[Event[Any]], expected_version: int) -> ULID:
    """Validate that a batch targets one aggregate with contiguous sequence numbers."""
    aggregate_id = events[0].aggregate_id
    for offset, event in enumerate(events, start=1):
        if event.aggregate_id != aggregate_id:
            raise ValueError("All events in an append must belong to the same aggregate")
        if event.sequence_number != expected_version + offset:
            raise ValueError(
                f"Event sequence number {event.sequence_number} does not follow "
                f"version {expected_version}"
            )
    return aggregate_id


class InMemoryEventStore(EventStore):
    """Event store keeping serialized records in process memory.

    Records go through the same serializer as the durable store, so tests
    against it exercise kind registration and payload round trips.
    """

    def __init__(self, serializer: EventSerializer | None = None):
        self.serializer = serializer or default_serializer()
        self._streams: dict[str, list[StoredEvent]] = defaultdict(list)
        self._log: list[StoredEvent] = []

    async def append(self, events: list[Event[Any]], expected_version: int) -> list[Event[Any]]:
        if not events:
            return []

        aggregate_id = check_batch(events, expected_version)
        stream = self._streams[str(aggregate_id)]
        current_version = len(stream)
        if current_version != expected_version:
            raise ConcurrencyError(
                f"Expected version {expected_version}, got {current_version} "
                f"for aggregate {aggregate_id}"
            )

        records = [
            self.serializer.to_record(event, stream_position=len(self._log) + offset)
            for offset, event in enumerate(events, start=1)
        ]
        stream.extend(records)
        self._log.extend(records)
        return [
            event.model_copy(update={"stream_position": record.stream_position})
            for event, record in zip(events, records)
        ]

    async def load_events(self, aggregate_id: ULID, min_version: int = 1) -> list[Event[Any]]:
        return [
            self.serializer.from_record(record)
            for record in self._streams.get(str(aggregate_id), [])
            if record.sequence_number >= min_version
        ]

    async def current_version(self, aggregate_id: ULID) -> int:
        return len(self._streams.get(str(aggregate_id), []))

    async def load_since_position(self, position: int, batch_size: int) -> list[StoredEvent]:
        # Positions are 1-based and dense, so the log index is position - 1
        return self._log[position : position + batch_size]

    async def current_position(self) -> int:
        return len(self._log)
