"""Command middleware.

- Middleware: Base class, ``await middleware(command, next)``
- ContextPropagationMiddleware: Sets the execution context per command
- LoggingMiddleware: Logs commands and their outcome with correlation ids
- ProjectionSyncMiddleware: Catches projections up after every command
"""

from .base import Handler, Middleware
from .context import ContextPropagationMiddleware
from .logging import LoggingMiddleware
from .sync import ProjectionSyncMiddleware

__all__ = [
    "ContextPropagationMiddleware",
    "Handler",
    "LoggingMiddleware",
    "Middleware",
    "ProjectionSyncMiddleware",
]
