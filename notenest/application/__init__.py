"""Application layer for notenest.

Command handling and the middleware chain, the event store and bus, the
projections with their catch-up orchestrator, the query services over the
read models, and the builder that wires them into an Application.
"""

from .application import Application, ApplicationBuilder, HasLifecycle
from .container import DependencyCircularReferenceError, DependencyNotFoundError
from .middleware import (
    ContextPropagationMiddleware,
    Handler,
    LoggingMiddleware,
    Middleware,
    ProjectionSyncMiddleware,
)
from .projections import Projection, ProjectionOrchestrator, ProjectionStatus
from .queries import QueryCache, TodoQueryService, TreeQueryService

__all__ = [
    # Application
    "Application",
    "ApplicationBuilder",
    "DependencyCircularReferenceError",
    "DependencyNotFoundError",
    "HasLifecycle",
    # Middleware
    "ContextPropagationMiddleware",
    "Handler",
    "LoggingMiddleware",
    "Middleware",
    "ProjectionSyncMiddleware",
    # Projections and queries
    "Projection",
    "ProjectionOrchestrator",
    "ProjectionStatus",
    "QueryCache",
    "TodoQueryService",
    "TreeQueryService",
]
