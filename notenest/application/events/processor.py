"""Base class for components that react to committed events."""

import inspect
from typing import TYPE_CHECKING, Any, ClassVar

from ...domain import Event
from ...routing import setup_event_handling

if TYPE_CHECKING:
    from ...routing import MessageRouter


class EventProcessor:
    """Base class for event subscribers and projections.

    Subclasses declare the events they care about with @handles_event. The
    handler parameter annotation decides the routing: annotate it with the
    payload type to receive the domain event, or with ``Event[T]`` to receive
    the stored envelope (aggregate id, sequence number, stream position,
    timestamp). Events without a handler are ignored.

    Handlers may be plain or async functions.

    Example:
        >>> class OrphanedTodoProcessor(EventProcessor):
        ...     @handles_event
        ...     async def on_note_deleted(self, event: Event[NoteDeleted]) -> None:
        ...         ...
    """

    _event_router: ClassVar["MessageRouter"]

    def __init_subclass__(cls, **kwargs: object) -> None:
        super().__init_subclass__(**kwargs)
        cls._event_router = setup_event_handling(cls)

    async def handle(self, event: Event[Any]) -> Any:
        """Route an event envelope to the matching handler, if any."""
        result = self._event_router.route(self, event.data, event_wrapper=event)
        if inspect.isawaitable(result):
            return await result
        return result
