import inspect
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from functools import singledispatch
from typing import Any, TypeVar, get_args, get_origin

from pydantic import BaseModel

T = TypeVar("T")

# Marker for handlers that want the Event wrapper, not just payload
_WANTS_EVENT_WRAPPER_ATTR = "_wants_event_wrapper"


class DefaultHandler(ABC):
    """Base handler for unregistered message types."""

    __slots__ = ("base_type", "operation_name")

    def __init__(self, base_type: type, operation_name: str):
        """Initialize the default handler.

        Args:
            base_type: The base type for messages (e.g., DomainEvent,
                Command).
            operation_name: Name of the operation for error
                messages.
        """
        self.base_type = base_type
        self.operation_name = operation_name

    @abstractmethod
    def __call__(self, message: Any, instance: Any, *args: Any, **kwargs: Any) -> Any: ...


class RaiseHandler(DefaultHandler):
    """Raise NotImplementedError for unregistered message types."""

    __slots__ = ()

    def __call__(self, message: Any, instance: Any, *args: Any, **kwargs: Any) -> Any:
        raise NotImplementedError(
            f"No {self.operation_name} registered for "
            f"{self.base_type.__name__} type {type(message).__name__}"
        )


class IgnoreHandler(DefaultHandler):
    """Silently ignore unregistered message types."""

    __slots__ = ()

    def __call__(self, message: Any, instance: Any, *args: Any, **kwargs: Any) -> Any:
        pass


def _extract_handler_type(func: Callable[..., Any], param_index: int = 1) -> tuple[type, bool]:
    """Extract the type annotation from a handler method.

    For event handlers, this also detects if the handler wants the Event
    wrapper (annotated as `Event[T]`) or just the payload (annotated as `T`).

    Args:
        func: The handler method to inspect.
        param_index: Index of the parameter to extract
            (0=self, 1=first arg, etc.)

    Returns:
        A tuple of (payload_type, wants_wrapper).

    Raises:
        ValueError: If the parameter lacks a type annotation.
    """
    func_name = getattr(func, "__name__", repr(func))
    sig = inspect.signature(func)
    params = list(sig.parameters.values())

    if len(params) <= param_index:
        raise ValueError(f"Handler {func_name} must have at least {param_index + 1} parameters")

    param = params[param_index]
    if param.annotation is inspect.Parameter.empty:
        raise ValueError(
            f"Handler {func_name} parameter '{param.name}' must have a type annotation"
        )
    annotation = param.annotation

    from .domain.event import Event  # Import here to avoid circular dependency

    origin = get_origin(annotation)
    if origin is Event:
        args = get_args(annotation)
        if args:
            return (args[0], True)
        raise ValueError(
            f"Handler {func_name}: Event type must have a type"
            " argument, e.g., Event[TodoCreated]"
        )

    # Pydantic generics are concrete subclasses, not typing aliases
    if isinstance(annotation, type) and issubclass(annotation, Event):
        metadata = getattr(annotation, "__pydantic_generic_metadata__", None)
        if metadata:
            pydantic_origin = metadata.get("origin")
            pydantic_args = metadata.get("args", ())
            if pydantic_origin is Event and pydantic_args:
                return (pydantic_args[0], True)

    return (annotation, False)


class MessageRouter:
    """Generic router for dispatching messages to type-specific handlers.

    This class uses singledispatch to route messages (events, commands) to
    registered handler methods based on their type annotations.

    For event handlers, supports passing either the event payload or the full
    Event wrapper based on the handler's type annotation.
    """

    __slots__ = ("_dispatch",)

    def __init__(self, default_handler: DefaultHandler):
        @singledispatch
        def dispatch(message: object, instance: object, *args: Any, **kwargs: Any) -> object:
            return default_handler(message, instance, *args, **kwargs)

        self._dispatch = dispatch

    @property
    def registered_types(self) -> frozenset[type]:
        """Message types with an explicitly registered handler."""
        return frozenset(t for t in self._dispatch.registry if t is not object)

    def register(
        self,
        message_type: type,
        handler: Callable[..., object],
        wants_wrapper: bool = False,
    ) -> None:
        """Register a handler for a specific message type.

        Args:
            message_type: The message class this handler processes.
            handler: The method to call when handling this message type.
            wants_wrapper: If True, handler receives Event wrapper via
                'event_wrapper' kwarg. If False, receives just the payload.
        """
        if wants_wrapper:

            def wrapper(
                msg: object, inst: object, *args: Any, h: Any = handler, **kwargs: Any
            ) -> object:
                event_wrapper = kwargs.pop("event_wrapper", None)
                if event_wrapper is not None:
                    return h(inst, event_wrapper, *args, **kwargs)
                return h(inst, msg, *args, **kwargs)

            self._dispatch.register(message_type)(wrapper)
        else:

            def payload_wrapper(
                msg: object, inst: object, *args: Any, h: Any = handler, **kwargs: Any
            ) -> object:
                kwargs.pop("event_wrapper", None)
                return h(inst, msg, *args, **kwargs)

            self._dispatch.register(message_type)(payload_wrapper)

    def route(self, instance: Any, message: Any, *args: Any, **kwargs: Any) -> object:
        """Route a message to its registered handler.

        Args:
            instance: The instance to call the handler on (self).
            message: The message to route (the payload for events).
            *args: Additional positional arguments to pass to handler.
            **kwargs: Additional keyword arguments to pass to handler.
                For events, pass event_wrapper=<Event> to provide the
                full wrapper to handlers that want it.

        Returns:
            The result of the handler method.
        """
        return self._dispatch(message, instance, *args, **kwargs)


class HandlerDecorator:
    """Marks methods as handlers for the message type in their annotation."""

    def __init__(self, marker_attr: str, type_attr: str):
        self.marker_attr = marker_attr
        self.type_attr = type_attr

    def __call__(self, func: Callable[..., T]) -> Callable[..., T]:
        message_type, wants_wrapper = _extract_handler_type(func, param_index=1)
        setattr(func, self.type_attr, message_type)
        setattr(func, self.marker_attr, True)
        setattr(func, _WANTS_EVENT_WRAPPER_ATTR, wants_wrapper)
        return func


applies_event = HandlerDecorator("_is_event_applier", "_applies_event_type")
handles_event = HandlerDecorator("_is_event_handler", "_handles_event_type")
intercepts = HandlerDecorator("_is_command_interceptor", "_intercepts_command_type")

applies_event.__doc__ = """Decorator marking a method as an event applier.

The event type is automatically extracted from the method's type annotation.

Example:
    >>> class Todo(Aggregate):
    ...     @applies_event
    ...     def _on_completed(self, event: TodoCompleted) -> None:
    ...         self.is_completed = True
"""

handles_event.__doc__ = """Decorator marking a method as an event \
handler (for processors and projections).

Annotate the parameter as `Event[T]` to receive the stored envelope
(aggregate id, stream position, timestamp) instead of the bare payload.

Example:
    >>> class TreeViewProjection(Projection):
    ...     @handles_event
    ...     async def on_category_created(self, event: Event[CategoryCreated]):
    ...         ...
"""

intercepts.__doc__ = """Decorator marking a method as a \
command interceptor (for middleware).

Use the Command base type to intercept every command, or a specific
command type for targeted interception.

Example:
    >>> class LoggingMiddleware(Middleware):
    ...     @intercepts
    ...     async def log_command(self, cmd: Command, next: Handler):
    ...         LOGGER.info("Command %s", type(cmd).__name__)
    ...         return await next(cmd)
"""


def setup_routing(
    cls: type,
    marker_attr: str,
    type_attr: str,
    default_handler: DefaultHandler,
) -> MessageRouter:
    """Scan a class hierarchy for decorated methods and build a router.

    Args:
        cls: The class to set up routing for.
        marker_attr: Attribute name marking decorated methods.
        type_attr: Attribute name storing the message type.
        default_handler: Handler for unregistered message types.

    Returns:
        A configured MessageRouter.
    """
    router = MessageRouter(default_handler)

    # Walk the MRO from the base down so subclasses override their parents
    for klass in reversed(cls.__mro__):
        for value in klass.__dict__.values():
            if getattr(value, marker_attr, None) is True:
                message_type = getattr(value, type_attr)
                wants_wrapper = getattr(value, _WANTS_EVENT_WRAPPER_ATTR, False)
                router.register(message_type, value, wants_wrapper=wants_wrapper)

    return router


def setup_event_applying(cls: type) -> MessageRouter:
    """Set up event applying for an aggregate class.

    Unregistered events raise, since an aggregate that silently ignores one
    of its own events would replay into the wrong state.
    """
    from .domain.event import DomainEvent

    return setup_routing(
        cls,
        marker_attr="_is_event_applier",
        type_attr="_applies_event_type",
        default_handler=RaiseHandler(DomainEvent, "applier"),
    )


def setup_event_handling(cls: type) -> MessageRouter:
    """Set up event handling for a processor or projection class."""
    return setup_routing(
        cls,
        marker_attr="_is_event_handler",
        type_attr="_handles_event_type",
        default_handler=IgnoreHandler(BaseModel, "handler"),
    )


def setup_middleware_routing(cls: type) -> MessageRouter:
    """Set up command interception routing for middleware."""
    return setup_routing(
        cls,
        marker_attr="_is_command_interceptor",
        type_attr="_intercepts_command_type",
        default_handler=IgnoreHandler(BaseModel, "interceptor"),
    )


def ensure_exhaustive(owner: type, router: MessageRouter, variants: Iterable[type]) -> None:
    """Check that a router has a handler for every variant of a closed set.

    Called when a class is defined, so a missing applier fails at import
    time instead of on the first replay that hits the new event kind.

    Raises:
        TypeError: If one or more variants have no registered handler.
    """
    missing = sorted(v.__name__ for v in variants if v not in router.registered_types)
    if missing:
        raise TypeError(f"{owner.__name__} has no applier for: {', '.join(missing)}")
