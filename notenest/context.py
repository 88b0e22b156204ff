import contextvars
from dataclasses import dataclass, replace

from ulid import ULID


@dataclass(frozen=True)
class ExecutionContext:
    """Immutable context for tracking request flow through the system.

    ExecutionContext captures the causal relationship between commands and
    the events they produce so that log records and stored event metadata
    can be tied back to the operation that caused them.

    Attributes:
        correlation_id: Identifies the entire logical operation. Remains
            constant for every command and event produced by it.
        causation_id: ID of what directly caused the current operation. For
            events this is the command_id that triggered them.
        command_id: Identifier of the command currently being executed.
            Events emitted while it runs use it as their causation_id.

    Examples:
        >>> ctx = ExecutionContext.create()
        >>> cmd_ctx = ctx.for_command(command.command_id)
        >>> event_ctx = cmd_ctx.for_event(event.id)
    """

    correlation_id: ULID | None = None
    causation_id: ULID | None = None
    command_id: ULID | None = None

    @classmethod
    def create(cls, correlation_id: ULID | None = None) -> "ExecutionContext":
        """Create a new context at a system entry point.

        Args:
            correlation_id: Optional correlation ID. A new one is generated
                when omitted. The causation_id references the correlation_id
                at entry points.

        Returns:
            A new ExecutionContext instance.
        """
        if correlation_id is None:
            correlation_id = ULID()

        return cls(
            correlation_id=correlation_id,
            causation_id=correlation_id,
            command_id=None,
        )

    def for_command(self, command_id: ULID) -> "ExecutionContext":
        """Create a child context for executing a command."""
        return replace(self, command_id=command_id)

    def for_event(self, event_id: ULID) -> "ExecutionContext":
        """Create a child context for reacting to an event.

        The correlation_id is inherited, the causation_id becomes the event id
        and the command_id is cleared.
        """
        return replace(self, causation_id=event_id, command_id=None)


_context: contextvars.ContextVar[ExecutionContext | None] = contextvars.ContextVar(
    "execution_context", default=None
)


def get_context() -> ExecutionContext:
    """Get the current execution context.

    If no context has been set, returns an empty ExecutionContext with all
    fields None.
    """
    ctx = _context.get()
    if ctx is None:
        return ExecutionContext()
    return ctx


def set_context(context: ExecutionContext) -> None:
    """Set the current execution context."""
    _context.set(context)


def clear_context() -> None:
    """Clear the current execution context."""
    _context.set(None)


def get_or_create_context() -> ExecutionContext:
    """Get the current context, or create and set a new one if not set."""
    ctx = _context.get()
    if ctx is None:
        ctx = ExecutionContext.create()
        set_context(ctx)
    return ctx
