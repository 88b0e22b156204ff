"""Translation between event envelopes and stored event records."""

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ulid import ULID

from ...domain import CategoryEvent, NoteEvent, TodoEvent
from ...domain.event import DomainEvent, Event, event_variants
from ...domain.exceptions import UnknownEventKindError


@dataclass(frozen=True)
class StoredEvent:
    """One row of the event log, with the payload still serialized.

    Catch-up works on these records so that a row whose kind is no longer
    known can be skipped without failing the whole batch.
    """

    stream_position: int
    event_id: str
    aggregate_id: str
    aggregate_type: str
    kind: str
    payload: str
    sequence_number: int
    timestamp: datetime
    metadata: str = "{}"


class EventSerializer:
    """Maps event kinds to event classes and envelopes to records.

    Examples:
        >>> serializer = EventSerializer(TodoEvent, CategoryEvent)
        >>> record = serializer.to_record(event, stream_position=1)
        >>> serializer.from_record(record) == event
        True
    """

    def __init__(self, *unions: Any):
        self._types: dict[str, type[DomainEvent]] = {}
        for union in unions:
            self.register(union)

    def register(self, union: Any) -> None:
        """Register an event class or every variant of an event union."""
        for event_type in event_variants(union):
            self._types[event_type.event_kind()] = event_type

    @property
    def kinds(self) -> frozenset[str]:
        return frozenset(self._types)

    def to_record(self, event: Event[Any], stream_position: int) -> StoredEvent:
        metadata = {
            "correlation_id": str(event.correlation_id) if event.correlation_id else None,
            "causation_id": str(event.causation_id) if event.causation_id else None,
        }
        return StoredEvent(
            stream_position=stream_position,
            event_id=str(event.id),
            aggregate_id=str(event.aggregate_id),
            aggregate_type=event.aggregate_type,
            kind=event.kind,
            payload=event.data.model_dump_json(),
            sequence_number=event.sequence_number,
            timestamp=event.timestamp,
            metadata=json.dumps(metadata),
        )

    def from_record(self, record: StoredEvent) -> Event[Any]:
        """Rebuild the envelope for a stored record.

        Raises:
            UnknownEventKindError: If no event class is registered for the
                record's kind.
        """
        event_type = self._types.get(record.kind)
        if event_type is None:
            raise UnknownEventKindError(f"Unknown event kind '{record.kind}'")

        metadata = json.loads(record.metadata or "{}")
        correlation_id = metadata.get("correlation_id")
        causation_id = metadata.get("causation_id")
        return Event(
            id=ULID.from_str(record.event_id),
            aggregate_id=ULID.from_str(record.aggregate_id),
            aggregate_type=record.aggregate_type,
            data=event_type.model_validate_json(record.payload),
            sequence_number=record.sequence_number,
            stream_position=record.stream_position,
            timestamp=record.timestamp,
            correlation_id=ULID.from_str(correlation_id) if correlation_id else None,
            causation_id=ULID.from_str(causation_id) if causation_id else None,
        )


def default_serializer() -> EventSerializer:
    """Serializer knowing every event of the Todo, Category and Note aggregates."""
    return EventSerializer(TodoEvent, CategoryEvent, NoteEvent)
