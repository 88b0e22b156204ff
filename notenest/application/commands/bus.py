"""Command bus and middleware chain."""

from collections.abc import Callable, Coroutine
from functools import reduce
from typing import Any

from ...domain import Command, CommandResult
from ..middleware import Middleware
from .handler import CommandHandler


class CommandBus:
    """Command bus for dispatching commands through middleware.

    Each command type maps to exactly one handler. Middleware is applied in
    registration order, the first registered being the outermost: the
    chain is composed once with ``reduce`` from the innermost step outwards.

    Args:
        handlers: The command handlers to route to.
        middleware: List of middleware to apply (in order).
    """

    def __init__(
        self,
        handlers: list[CommandHandler[Any, Any]],
        middleware: list[Middleware],
    ):
        self.handlers: dict[type[Command], CommandHandler[Any, Any]] = {}
        for handler in handlers:
            self.register(handler)
        self.middleware = middleware
        self.chain: Callable[[Command], Coroutine[Any, Any, Any]] = reduce(
            lambda next, mw: lambda cmd, n=next, m=mw: m(cmd, n),
            reversed(middleware),
            self._handle,
        )

    def register(self, handler: CommandHandler[Any, Any]) -> None:
        if handler.handles in self.handlers:
            raise ValueError(f"A handler for {handler.handles.__name__} is already registered")
        self.handlers[handler.handles] = handler

    async def _handle(self, command: Command) -> CommandResult[Any]:
        handler = self.handlers.get(type(command))
        if handler is None:
            raise NotImplementedError(f"No handler registered for {type(command).__name__}")
        return await handler.handle(command)

    async def dispatch(self, command: Command) -> CommandResult[Any]:
        """Dispatch command through the middleware chain to its handler.

        Returns:
            The handler's Success or Failure.
        """
        return await self.chain(command)
