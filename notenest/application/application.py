from collections.abc import Callable
from types import TracebackType
from typing import TYPE_CHECKING, Any, Protocol, TypeVar, runtime_checkable

from ..diagnostics import StartupDiagnostics, TreeIntegrityChecker, TreeRepairTool
from ..domain import Aggregate, Category, Command, CommandResult, Note, Todo
from .aggregates import AggregateFactory, AggregateRepository
from .commands import (
    CATEGORY_HANDLERS,
    NOTE_HANDLERS,
    TODO_HANDLERS,
    CommandBus,
    CommandHandler,
    OrphanedTodoProcessor,
)
from .container import ContextualBinding, DependencyContainer
from .events import (
    EventBus,
    EventProcessor,
    EventSerializer,
    EventStore,
    InMemoryEventStore,
    default_serializer,
)
from .middleware import (
    ContextPropagationMiddleware,
    LoggingMiddleware,
    Middleware,
    ProjectionSyncMiddleware,
)
from .projections import (
    DEFAULT_BATCH_SIZE,
    CheckpointStore,
    InMemoryCheckpointStore,
    InMemoryTodoStore,
    InMemoryTreeStore,
    Projection,
    ProjectionOrchestrator,
    TodoStore,
    TodoViewProjection,
    TreeStore,
    TreeViewProjection,
)
from .queries import QueryCache, TodoQueryService, TreeQueryService

if TYPE_CHECKING:
    from ..integrations.sqlite import SqliteConfiguration

T = TypeVar("T")


@runtime_checkable
class HasLifecycle(Protocol):
    async def on_startup(self) -> None:
        """Called when the application is started."""
        ...

    async def on_shutdown(self) -> None:
        """Called when the application is shutdown."""
        ...


class Application:
    """A wired NoteNest write model with its read models.

    Commands go through `dispatch`; reads go through `tree_queries` and
    `todo_queries`, which see every command's effects as soon as `dispatch`
    returns. Use the application as an async context manager so that schemas
    are created, projections caught up and the tree checked on startup.
    """

    def __init__(self, contextual_binding: ContextualBinding):
        self.contextual_binding = contextual_binding
        self.command_bus = self.resolve(CommandBus)
        self.event_bus = self.resolve(EventBus)
        self.event_store = self.resolve(EventStore)
        self.orchestrator = self.resolve(ProjectionOrchestrator)
        self.cache = self.resolve(QueryCache)
        self.tree_queries = self.resolve(TreeQueryService)
        self.todo_queries = self.resolve(TodoQueryService)
        self.checker = self.resolve(TreeIntegrityChecker)
        self.repair_tool = self.resolve(TreeRepairTool)

    async def dispatch(self, command: Command) -> CommandResult[Any]:
        """Dispatch a command through the middleware chain to its handler.

        Args:
            command: The command to dispatch.

        Returns:
            The handler's Success or Failure. Projection synchronization
            problems never change the result.
        """
        return await self.command_bus.dispatch(command)

    def resolve(self, type_to_resolve: type[T]) -> T:
        """Resolve a dependency from the application.

        Raises:
            DependencyNotFoundError: If the dependency cannot be resolved.
        """
        return self.contextual_binding.resolve(type_to_resolve)

    async def startup(self) -> None:
        """Call on_startup on every component implementing `HasLifecycle`.

        Components are started in the order of their registration: storage
        configuration first, then the projection catch-up, then the startup
        integrity check.
        """
        dependencies = self.contextual_binding.resolve_all_of_type(HasLifecycle)
        for dependency in dependencies:
            await dependency.on_startup()

    async def shutdown(self) -> None:
        """Call on_shutdown on every `HasLifecycle` component, in reverse order."""
        dependencies = self.contextual_binding.resolve_all_of_type(HasLifecycle)
        for dependency in reversed(dependencies):
            await dependency.on_shutdown()

    async def __aenter__(self) -> "Application":
        await self.startup()
        return self

    async def __aexit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc_value: BaseException | None,
        _traceback: TracebackType | None,
    ) -> None:
        await self.shutdown()


# The builder keeps the storage backends, the middleware chain and the
# projections swappable. Every dependency is a singleton in a root container;
# each aggregate additionally gets a child container holding its factory and
# repository, and the command handlers for that aggregate are resolved from
# it. Components that must run last (the projection sync middleware, the
# orchestrator and the startup diagnostics) are registered in `build` so that
# they come after anything the caller registered.


class ApplicationBuilder:
    """Builder for creating Application instances.

    Example:
        >>> app = (
        ...     ApplicationBuilder()
        ...     .use_sqlite(SqliteConfiguration())
        ...     .use_logging("DEBUG")
        ...     .build()
        ... )
        >>> async with app:
        ...     await app.dispatch(CreateCategory(name="Work"))
    """

    def __init__(self) -> None:
        self.container = DependencyContainer()
        self.contextual_binding = ContextualBinding(self.container)
        self.batch_size = DEFAULT_BATCH_SIZE
        self.handler_types: dict[type[Aggregate], list[type[CommandHandler[Any, Any]]]] = {}

        # Storage defaults:
        self.container.register_singleton(EventSerializer, default_serializer)
        self.container.register_singleton(EventStore, self._build_event_store)
        self.container.register_singleton(CheckpointStore, InMemoryCheckpointStore)
        self.container.register_singleton(TreeStore, InMemoryTreeStore)
        self.container.register_singleton(TodoStore, InMemoryTodoStore)

        # Messaging and reads:
        self.container.register_singleton(EventBus)
        self.container.register_singleton(QueryCache)
        self.container.register_singleton(TreeQueryService)
        self.container.register_singleton(TodoQueryService)
        self.container.register_singleton(TreeIntegrityChecker)
        self.container.register_singleton(TreeRepairTool, self._build_repair_tool)

        # Projections:
        self.container.register_singleton(TreeViewProjection)
        self.container.register_singleton(TodoViewProjection)

        # Aggregates and their handlers:
        self.register_aggregate(Category, CATEGORY_HANDLERS)
        self.register_aggregate(Note, NOTE_HANDLERS)
        self.register_aggregate(Todo, TODO_HANDLERS)
        self.contextual_binding.container_for(Todo).register_singleton(OrphanedTodoProcessor)

        self.use_correlation_tracking()

    def register_dependency(
        self,
        dependency_type: type[T],
        factory: Callable[..., T] | None = None,
    ) -> "ApplicationBuilder":
        """Register a singleton dependency, replacing any earlier registration.

        Annotated parameters of the factory (or of the type's __init__ when
        no factory is given) are resolved from the container.
        """
        self.container.register_singleton(dependency_type, factory or dependency_type)
        return self

    def register_aggregate(
        self,
        aggregate_type: type[Aggregate],
        handlers: list[type[CommandHandler[Any, Any]]],
    ) -> "ApplicationBuilder":
        """Register an aggregate with the command handlers that operate on it."""
        container = self.contextual_binding.container_for(aggregate_type)
        container.register_singleton(AggregateFactory, lambda: AggregateFactory(aggregate_type))
        container.register_singleton(AggregateRepository)
        for handler_type in handlers:
            container.register_singleton(handler_type)
        self.handler_types.setdefault(aggregate_type, []).extend(handlers)
        return self

    def register_middleware(
        self,
        middleware_type: type[Middleware],
        factory: Callable[..., Middleware] | None = None,
    ) -> "ApplicationBuilder":
        """Add middleware to the chain.

        Middleware runs in registration order, the first registered being
        the outermost. Projection synchronization always runs innermost.
        """
        self.container.register_singleton(middleware_type, factory or middleware_type)
        return self

    def register_projection(self, projection_type: type[Projection]) -> "ApplicationBuilder":
        self.container.register_singleton(projection_type)
        return self

    def use_correlation_tracking(self) -> "ApplicationBuilder":
        return self.register_middleware(ContextPropagationMiddleware)

    def use_logging(self, level: str = "INFO") -> "ApplicationBuilder":
        return self.register_middleware(LoggingMiddleware, lambda: LoggingMiddleware(level))

    def use_event_store(self, event_store: EventStore) -> "ApplicationBuilder":
        return self.register_dependency(EventStore, lambda: event_store)

    def use_checkpoint_store(self, checkpoints: CheckpointStore) -> "ApplicationBuilder":
        return self.register_dependency(CheckpointStore, lambda: checkpoints)

    def use_tree_store(self, store: TreeStore) -> "ApplicationBuilder":
        return self.register_dependency(TreeStore, lambda: store)

    def use_todo_store(self, store: TodoStore) -> "ApplicationBuilder":
        return self.register_dependency(TodoStore, lambda: store)

    def use_sqlite(self, config: "SqliteConfiguration | None" = None) -> "ApplicationBuilder":
        """Store events and read models in SQLite.

        The configuration is registered as a lifecycle component, so the
        tables are created when the application starts.
        """
        from ..integrations.sqlite import SqliteConfiguration

        config = config or SqliteConfiguration()
        self.register_dependency(SqliteConfiguration, lambda: config)
        self.register_dependency(EventSerializer, lambda: config.event_store.serializer)
        self.use_event_store(config.event_store)
        self.use_checkpoint_store(config.checkpoint_store)
        self.use_tree_store(config.tree_store)
        return self.use_todo_store(config.todo_store)

    def with_batch_size(self, batch_size: int) -> "ApplicationBuilder":
        self.batch_size = batch_size
        return self

    def build(self) -> Application:
        """Resolve every component and return the wired Application.

        Raises:
            DependencyNotFoundError: If a dependency cannot be resolved.
        """
        self.container.register_singleton(ProjectionOrchestrator, self._build_orchestrator)
        self.container.register_singleton(StartupDiagnostics)
        self.register_middleware(ProjectionSyncMiddleware)
        self.container.register_singleton(CommandBus, self._build_command_bus)

        application = Application(self.contextual_binding)
        processor = self.contextual_binding.container_for(Todo).resolve(OrphanedTodoProcessor)
        application.event_bus.subscribe_processor(processor)
        for subscriber in self.contextual_binding.resolve_all_of_type(EventProcessor):
            # Projections are only fed by the orchestrator
            if not isinstance(subscriber, Projection):
                application.event_bus.subscribe_processor(subscriber)
        return application

    def _build_event_store(self, serializer: EventSerializer) -> EventStore:
        return InMemoryEventStore(serializer)

    def _build_repair_tool(self, store: TreeStore, cache: QueryCache) -> TreeRepairTool:
        return TreeRepairTool(store, cache)

    def _build_orchestrator(
        self,
        event_store: EventStore,
        serializer: EventSerializer,
        checkpoints: CheckpointStore,
    ) -> ProjectionOrchestrator:
        projections = self.contextual_binding.resolve_all_of_type(Projection)
        return ProjectionOrchestrator(
            event_store, serializer, checkpoints, projections, batch_size=self.batch_size
        )

    def _build_command_bus(self) -> CommandBus:
        handlers = [
            self.contextual_binding.container_for(aggregate_type).resolve(handler_type)
            for aggregate_type, handler_types in self.handler_types.items()
            for handler_type in handler_types
        ]
        middleware = self.contextual_binding.resolve_all_of_type(Middleware)
        return CommandBus(handlers, middleware)
