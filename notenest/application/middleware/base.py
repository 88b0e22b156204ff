"""Base middleware class for commands.

Middleware components wrap command handling to provide cross-cutting
concerns like logging, context propagation, or projection synchronization.
"""

import inspect
from collections.abc import Callable, Coroutine
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import BaseModel

if TYPE_CHECKING:
    from ...routing import MessageRouter

Handler = Callable[[BaseModel], Coroutine[Any, Any, Any]]


class Middleware:
    """Base class for middleware with annotation-based routing.

    A middleware is a callable taking the command and the next step of the
    chain: ``await middleware(command, next)``. The command bus composes the
    registered middleware into a single chain once, at construction.

    Subclasses mark their interceptor methods with @intercepts; the
    annotation of the command parameter decides which commands they see.
    Annotate with Command to intercept everything. Commands no interceptor
    matches are forwarded to the next step unchanged.

    Examples:
        >>> class TimingMiddleware(Middleware):
        ...     @intercepts
        ...     async def time_command(self, cmd: Command, next: Handler) -> Any:
        ...         started = time.monotonic()
        ...         try:
        ...             return await next(cmd)
        ...         finally:
        ...             LOGGER.debug("took %.3fs", time.monotonic() - started)
    """

    _command_router: ClassVar["MessageRouter"]

    def __init_subclass__(cls, **kwargs: object) -> None:
        super().__init_subclass__(**kwargs)
        from ...routing import setup_middleware_routing

        cls._command_router = setup_middleware_routing(cls)

    async def __call__(self, message: BaseModel, next: Handler) -> Any:
        """Route the command to an interceptor method or forward it to next."""
        result = self._command_router.route(self, message, next)

        # IgnoreHandler returned None: nothing intercepts this type
        if result is None:
            return await next(message)
        elif inspect.isawaitable(result):
            return await result
        else:
            return result
