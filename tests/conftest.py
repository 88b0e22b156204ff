"""Central test fixtures."""

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from ulid import ULID

from notenest.application import Application, ApplicationBuilder
from notenest.application.aggregates import AggregateFactory, AggregateRepository
from notenest.application.events import EventBus, InMemoryEventStore, default_serializer
from notenest.application.projections import (
    InMemoryCheckpointStore,
    InMemoryTodoStore,
    InMemoryTreeStore,
    TreeNode,
)
from notenest.application.queries import QueryCache, TreeQueryService
from notenest.context import clear_context
from notenest.domain import Category, Note, Todo, utc_now


@pytest.fixture(autouse=True)
def clear_execution_context():
    """Clear execution context before and after each test."""
    clear_context()
    yield
    clear_context()


@pytest.fixture
def aggregate_id() -> ULID:
    """Generate a unique aggregate ID."""
    return ULID()


@pytest.fixture
def serializer():
    return default_serializer()


@pytest.fixture
def event_store(serializer) -> InMemoryEventStore:
    """Create an in-memory event store."""
    return InMemoryEventStore(serializer)


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def checkpoints() -> InMemoryCheckpointStore:
    return InMemoryCheckpointStore()


@pytest.fixture
def tree_store() -> InMemoryTreeStore:
    return InMemoryTreeStore()


@pytest.fixture
def todo_store() -> InMemoryTodoStore:
    return InMemoryTodoStore()


@pytest.fixture
def cache() -> QueryCache:
    return QueryCache()


@pytest.fixture
def tree_queries(tree_store, cache) -> TreeQueryService:
    return TreeQueryService(tree_store, cache)


@pytest.fixture
def todo_repository(event_store) -> AggregateRepository[Todo]:
    return AggregateRepository(AggregateFactory(Todo), event_store)


@pytest.fixture
def category_repository(event_store) -> AggregateRepository[Category]:
    return AggregateRepository(AggregateFactory(Category), event_store)


@pytest.fixture
def note_repository(event_store) -> AggregateRepository[Note]:
    return AggregateRepository(AggregateFactory(Note), event_store)


@pytest_asyncio.fixture
async def app() -> AsyncIterator[Application]:
    """A started in-memory application."""
    application = ApplicationBuilder().build()
    async with application:
        yield application


@pytest.fixture
def make_node():
    """Factory for tree rows, including rows that break the tree invariants."""

    def make(
        name: str,
        parent_id: ULID | None = None,
        node_id: ULID | None = None,
        node_type: str = "category",
        display_path: str | None = None,
    ) -> TreeNode:
        now = utc_now()
        return TreeNode(
            id=node_id or ULID(),
            parent_id=parent_id,
            name=name,
            node_type=node_type,
            display_path=display_path or name,
            created_at=now,
            modified_at=now,
        )

    return make
