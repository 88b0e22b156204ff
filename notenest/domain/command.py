"""Command base class for the write side."""

from pydantic import BaseModel, Field
from ulid import ULID


class Command(BaseModel):
    """Base class for all commands in the system.

    Commands represent intentions to change state and are dispatched to
    command handlers through the command bus. Every command targets one
    aggregate. Creation commands generate a fresh aggregate_id by default.

    Attributes:
        aggregate_id: ID of the aggregate this command operates on.
        correlation_id: Optional correlation ID for tracing.
        causation_id: Optional ID of what caused this command.
        command_id: Unique identifier for this command instance.

    Examples:
        >>> class CompleteTodo(Command):
        ...     pass
        >>>
        >>> await app.dispatch(CompleteTodo(aggregate_id=todo_id))
    """

    aggregate_id: ULID
    correlation_id: ULID | None = None
    causation_id: ULID | None = None
    command_id: ULID = Field(default_factory=ULID)
