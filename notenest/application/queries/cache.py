import logging
from collections.abc import Awaitable, Callable, Hashable
from typing import Any, TypeVar

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class QueryCache:
    """Read-side cache owned by the query services.

    Holds query results keyed by an arbitrary hashable key until the next
    `invalidate()`. The projection sync middleware calls `invalidate()`
    after every command so readers never see a pre-command result.

    One instance is created per application and injected wherever it is
    needed; there is no module level cache.
    """

    def __init__(self) -> None:
        self._entries: dict[Hashable, Any] = {}
        self.generation = 0

    async def get_or_load(self, key: Hashable, loader: Callable[[], Awaitable[T]]) -> T:
        if key in self._entries:
            return self._entries[key]
        generation = self.generation
        value = await loader()
        # Drop results loaded across an invalidation, they may predate it
        if generation == self.generation:
            self._entries[key] = value
        return value

    def invalidate(self) -> None:
        self.generation += 1
        count = len(self._entries)
        self._entries.clear()
        LOGGER.debug("Query cache invalidated", extra={"entries": count})

    def __len__(self) -> int:
        return len(self._entries)
