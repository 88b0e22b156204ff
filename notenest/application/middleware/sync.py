"""Read-after-write consistency for interactive commands."""

import logging
from typing import Any

from ...domain import Command
from ...routing import intercepts
from ..projections import ProjectionOrchestrator
from ..queries.cache import QueryCache
from .base import Handler, Middleware

LOGGER = logging.getLogger(__name__)


class ProjectionSyncMiddleware(Middleware):
    """Catches projections up and invalidates the query cache after every command.

    The command runs first and its result is kept. Then the orchestrator
    folds whatever the command appended and the query cache is invalidated,
    so the next read reflects the command.

    Synchronization is best effort. If the catch-up or the invalidation
    raises, the error is logged as a warning and the command's result is
    returned anyway: the events are already durable, and the next command
    (or the background sweep) catches the projections up. The cache is
    invalidated even when the catch-up fails part way.

    The middleware runs after failed commands too, which is what lets a
    later command reconcile a catch-up that failed earlier.
    """

    def __init__(self, orchestrator: ProjectionOrchestrator, cache: QueryCache):
        self.orchestrator = orchestrator
        self.cache = cache

    @intercepts
    async def synchronize(self, command: Command, next: Handler) -> Any:
        result = await next(command)

        extra = {
            "command_type": type(command).__name__,
            "aggregate_id": str(command.aggregate_id),
        }
        try:
            try:
                processed = await self.orchestrator.catch_up()
            finally:
                self.cache.invalidate()
        except Exception:
            LOGGER.warning("Projection sync failed after command", exc_info=True, extra=extra)
        else:
            LOGGER.debug(
                "Projections synchronized", extra={**extra, "events_processed": processed}
            )

        return result
