from datetime import datetime, timezone
from typing import Annotated, Any, Generic, TypeVar, get_args, get_origin

from pydantic import BaseModel, ConfigDict, Field
from ulid import ULID

T = TypeVar("T", bound=BaseModel)


def utc_now() -> datetime:
    """Get the current UTC timestamp.

    Used as default_factory for timestamps so that every event is stamped in
    UTC regardless of the system timezone.
    """
    return datetime.now(tz=timezone.utc)


class DomainEvent(BaseModel):
    """Immutable fact recorded by an aggregate.

    Every concrete event declares a ``kind`` literal that tags it within the
    closed set of events of its aggregate. The tag is what gets persisted as
    the event type and what discriminated unions dispatch on.

    Examples:
        >>> class TodoCompleted(DomainEvent):
        ...     kind: Literal["todo.completed"] = "todo.completed"
    """

    model_config = ConfigDict(frozen=True)

    kind: str
    occurred_at: datetime = Field(
        default_factory=utc_now,
        description="When the fact occurred (UTC timezone)",
    )

    @classmethod
    def event_kind(cls) -> str:
        """The kind tag declared by this event class."""
        return cls.model_fields["kind"].default


def event_variants(union: Any) -> tuple[type[DomainEvent], ...]:
    """List the event classes of a closed event union.

    Accepts a bare event class, a ``Union`` of event classes, or an
    ``Annotated`` discriminated union.
    """
    if get_origin(union) is Annotated:
        union = get_args(union)[0]
    return tuple(get_args(union)) or (union,)


class Event(BaseModel, Generic[T]):
    """Stored envelope around a domain event.

    The envelope combines the event payload with the metadata the event
    store needs for ordering and concurrency control:

    - **Ordered**: ``sequence_number`` is the 1-based, gapless position of the
      event within its aggregate's stream
    - **Globally positioned**: ``stream_position`` is assigned by the store on
      append and is what projections track their watermark against
    - **Traceable**: correlation/causation ids come from the execution context
      active when the aggregate emitted the event

    Envelopes are immutable. The store hands back copies carrying their
    ``stream_position`` once they are committed.

    Attributes:
        id: Unique identifier for this specific event instance
        aggregate_id: ID of the aggregate that produced this event
        aggregate_type: Name of the aggregate type that produced this event
        data: The domain event payload
        sequence_number: Position in the aggregate's event stream (1-indexed)
        stream_position: Global position in the store, None until committed
        timestamp: When the event was recorded (UTC timezone)
        correlation_id: Correlation ID of the logical operation
        causation_id: ID of what caused this event (typically the command_id)
    """

    model_config = ConfigDict(frozen=True)

    id: ULID = Field(
        default_factory=ULID,
        description="Unique identifier for this event instance",
    )
    aggregate_id: ULID = Field(description="ID of the aggregate that produced this event")
    aggregate_type: str = Field(description="Name of the aggregate type")
    data: T = Field(description="Domain event payload")
    sequence_number: int = Field(
        description="Position in aggregate's event stream (1-indexed, gapless)"
    )
    stream_position: int | None = Field(
        default=None,
        description="Global position assigned by the event store on append",
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event was recorded (UTC timezone)",
    )
    correlation_id: ULID | None = Field(
        default=None,
        description="Correlation ID for tracing the entire logical operation",
    )
    causation_id: ULID | None = Field(
        default=None,
        description="ID of what directly caused this event (typically the command_id)",
    )

    @property
    def kind(self) -> str:
        return self.data.kind  # type: ignore[attr-defined]
