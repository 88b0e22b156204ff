"""Todo list read model."""

from abc import ABC, abstractmethod
from datetime import date, datetime

from pydantic import BaseModel, Field
from ulid import ULID

from ...domain import Event
from ...domain.todos import (
    Priority,
    TodoCategoryChanged,
    TodoCompleted,
    TodoCreated,
    TodoDeleted,
    TodoDueDateChanged,
    TodoFavorited,
    TodoOrphaned,
    TodoPriorityChanged,
    TodoTagAdded,
    TodoTagRemoved,
    TodoTextUpdated,
    TodoUncompleted,
    TodoUnfavorited,
)
from ...routing import handles_event
from .projection import Projection


class TodoRow(BaseModel):
    id: ULID
    text: str
    is_completed: bool = False
    completed_at: datetime | None = None
    due_date: date | None = None
    priority: Priority = Priority.NORMAL
    is_favorite: bool = False
    tags: list[str] = Field(default_factory=list)
    category_id: ULID | None = None
    source_note_id: ULID | None = None
    is_orphaned: bool = False
    created_at: datetime
    modified_at: datetime


class TodoStore(ABC):
    @abstractmethod
    async def get(self, todo_id: ULID) -> TodoRow | None: ...

    @abstractmethod
    async def upsert(self, row: TodoRow) -> None: ...

    @abstractmethod
    async def delete(self, todo_id: ULID) -> None: ...

    @abstractmethod
    async def list_all(self) -> list[TodoRow]: ...

    @abstractmethod
    async def list_by_category(self, category_id: ULID | None) -> list[TodoRow]: ...

    @abstractmethod
    async def list_by_source_note(self, note_id: ULID) -> list[TodoRow]: ...

    @abstractmethod
    async def clear(self) -> None: ...


class InMemoryTodoStore(TodoStore):
    def __init__(self) -> None:
        self._rows: dict[ULID, TodoRow] = {}

    async def get(self, todo_id: ULID) -> TodoRow | None:
        return self._rows.get(todo_id)

    async def upsert(self, row: TodoRow) -> None:
        self._rows[row.id] = row

    async def delete(self, todo_id: ULID) -> None:
        self._rows.pop(todo_id, None)

    async def list_all(self) -> list[TodoRow]:
        return sorted(self._rows.values(), key=lambda r: r.created_at)

    async def list_by_category(self, category_id: ULID | None) -> list[TodoRow]:
        return [r for r in await self.list_all() if r.category_id == category_id]

    async def list_by_source_note(self, note_id: ULID) -> list[TodoRow]:
        return [r for r in await self.list_all() if r.source_note_id == note_id]

    async def clear(self) -> None:
        self._rows.clear()


class TodoViewProjection(Projection):
    """Folds todo events into one row per live todo. Deleted todos are removed."""

    name = "todo_view"

    def __init__(self, store: TodoStore):
        self.store = store

    async def clear(self) -> None:
        await self.store.clear()

    @handles_event
    async def on_created(self, event: Event[TodoCreated]) -> None:
        existing = await self.store.get(event.aggregate_id)
        if existing is not None:
            return
        await self.store.upsert(
            TodoRow(
                id=event.aggregate_id,
                text=event.data.text,
                category_id=event.data.category_id,
                source_note_id=event.data.source_note_id,
                created_at=event.timestamp,
                modified_at=event.timestamp,
            )
        )

    @handles_event
    async def on_completed(self, event: Event[TodoCompleted]) -> None:
        await self._update(event, is_completed=True, completed_at=event.data.occurred_at)

    @handles_event
    async def on_uncompleted(self, event: Event[TodoUncompleted]) -> None:
        await self._update(event, is_completed=False, completed_at=None)

    @handles_event
    async def on_text_updated(self, event: Event[TodoTextUpdated]) -> None:
        await self._update(event, text=event.data.text)

    @handles_event
    async def on_due_date_changed(self, event: Event[TodoDueDateChanged]) -> None:
        await self._update(event, due_date=event.data.due_date)

    @handles_event
    async def on_priority_changed(self, event: Event[TodoPriorityChanged]) -> None:
        await self._update(event, priority=event.data.priority)

    @handles_event
    async def on_favorited(self, event: Event[TodoFavorited]) -> None:
        await self._update(event, is_favorite=True)

    @handles_event
    async def on_unfavorited(self, event: Event[TodoUnfavorited]) -> None:
        await self._update(event, is_favorite=False)

    @handles_event
    async def on_tag_added(self, event: Event[TodoTagAdded]) -> None:
        row = await self.store.get(event.aggregate_id)
        if row is not None and event.data.tag not in row.tags:
            await self._update(event, tags=[*row.tags, event.data.tag])

    @handles_event
    async def on_tag_removed(self, event: Event[TodoTagRemoved]) -> None:
        row = await self.store.get(event.aggregate_id)
        if row is not None:
            await self._update(event, tags=[t for t in row.tags if t != event.data.tag])

    @handles_event
    async def on_category_changed(self, event: Event[TodoCategoryChanged]) -> None:
        await self._update(event, category_id=event.data.category_id)

    @handles_event
    async def on_orphaned(self, event: Event[TodoOrphaned]) -> None:
        await self._update(event, is_orphaned=True)

    @handles_event
    async def on_deleted(self, event: Event[TodoDeleted]) -> None:
        await self.store.delete(event.aggregate_id)

    async def _update(self, event: Event, **changes: object) -> None:
        row = await self.store.get(event.aggregate_id)
        if row is None:
            return
        await self.store.upsert(
            row.model_copy(update={**changes, "modified_at": event.timestamp})
        )
