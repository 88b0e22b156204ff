"""Context propagation middleware for correlation and causation tracking."""

from typing import Any

from ulid import ULID

from ...context import ExecutionContext, clear_context, set_context
from ...domain import Command
from ...routing import intercepts
from .base import Handler, Middleware


class ContextPropagationMiddleware(Middleware):
    """Middleware that sets the execution context from incoming commands.

    Events emitted by aggregates while the command runs inherit the
    context, so stored event metadata and log records share one
    correlation id per user operation.

    **Context Setup**:
    - If command has correlation_id: use it, else generate one (entry point)
    - If command has causation_id: use it, else use the correlation_id
    - Always use command.command_id as the command id

    The context is cleared after the command completes, even on failure.
    """

    @intercepts
    async def propagate_context(self, command: Command, next: Handler) -> Any:
        correlation_id = command.correlation_id
        if correlation_id is None:
            correlation_id = ULID()

        causation_id = command.causation_id
        if causation_id is None:
            causation_id = correlation_id

        set_context(
            ExecutionContext(
                correlation_id=correlation_id,
                causation_id=causation_id,
                command_id=command.command_id,
            )
        )

        try:
            return await next(command)
        finally:
            clear_context()
