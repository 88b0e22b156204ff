"""Todo aggregate and its events."""

from datetime import date, datetime
from enum import IntEnum
from typing import Annotated, Literal, Union

from pydantic import Field
from ulid import ULID

from ..routing import applies_event
from .aggregate import Aggregate
from .event import DomainEvent
from .exceptions import DomainValidationError

MAX_TODO_TEXT_LENGTH = 500


class Priority(IntEnum):
    LOW = 0
    NORMAL = 1
    HIGH = 2
    URGENT = 3


class TodoCreated(DomainEvent):
    kind: Literal["todo.created"] = "todo.created"
    text: str
    category_id: ULID | None = None
    source_note_id: ULID | None = None


class TodoCompleted(DomainEvent):
    kind: Literal["todo.completed"] = "todo.completed"


class TodoUncompleted(DomainEvent):
    kind: Literal["todo.uncompleted"] = "todo.uncompleted"


class TodoTextUpdated(DomainEvent):
    kind: Literal["todo.text_updated"] = "todo.text_updated"
    text: str


class TodoDueDateChanged(DomainEvent):
    kind: Literal["todo.due_date_changed"] = "todo.due_date_changed"
    due_date: date | None = None


class TodoPriorityChanged(DomainEvent):
    kind: Literal["todo.priority_changed"] = "todo.priority_changed"
    priority: Priority


class TodoFavorited(DomainEvent):
    kind: Literal["todo.favorited"] = "todo.favorited"


class TodoUnfavorited(DomainEvent):
    kind: Literal["todo.unfavorited"] = "todo.unfavorited"


class TodoTagAdded(DomainEvent):
    kind: Literal["todo.tag_added"] = "todo.tag_added"
    tag: str


class TodoTagRemoved(DomainEvent):
    kind: Literal["todo.tag_removed"] = "todo.tag_removed"
    tag: str


class TodoCategoryChanged(DomainEvent):
    kind: Literal["todo.category_changed"] = "todo.category_changed"
    category_id: ULID | None = None


class TodoOrphaned(DomainEvent):
    kind: Literal["todo.orphaned"] = "todo.orphaned"


class TodoDeleted(DomainEvent):
    kind: Literal["todo.deleted"] = "todo.deleted"


TodoEvent = Annotated[
    Union[
        TodoCreated,
        TodoCompleted,
        TodoUncompleted,
        TodoTextUpdated,
        TodoDueDateChanged,
        TodoPriorityChanged,
        TodoFavorited,
        TodoUnfavorited,
        TodoTagAdded,
        TodoTagRemoved,
        TodoCategoryChanged,
        TodoOrphaned,
        TodoDeleted,
    ],
    Field(discriminator="kind"),
]


def _validated_text(text: str) -> str:
    text = text.strip()
    if not text:
        raise DomainValidationError("Todo text cannot be empty")
    if len(text) > MAX_TODO_TEXT_LENGTH:
        raise DomainValidationError(
            f"Todo text cannot exceed {MAX_TODO_TEXT_LENGTH} characters"
        )
    return text


class Todo(Aggregate):
    """A todo item, optionally extracted from a note and filed in a category."""

    aggregate_type = "Todo"
    event_union = TodoEvent

    text: str = ""
    is_completed: bool = False
    completed_at: datetime | None = None
    due_date: date | None = None
    priority: Priority = Priority.NORMAL
    is_favorite: bool = False
    tags: list[str] = Field(default_factory=list)
    category_id: ULID | None = None
    source_note_id: ULID | None = None
    is_orphaned: bool = False
    is_deleted: bool = False
    created_at: datetime | None = None

    def create(
        self,
        text: str,
        category_id: ULID | None = None,
        source_note_id: ULID | None = None,
    ) -> None:
        if self.created_at is not None:
            raise DomainValidationError("Todo already exists")
        self.emit(
            TodoCreated(
                text=_validated_text(text),
                category_id=category_id,
                source_note_id=source_note_id,
            )
        )

    def complete(self) -> None:
        self._ensure_not_deleted()
        if self.is_completed:
            raise DomainValidationError("Todo is already completed")
        self.emit(TodoCompleted())

    def uncomplete(self) -> None:
        self._ensure_not_deleted()
        if not self.is_completed:
            raise DomainValidationError("Todo is not completed")
        self.emit(TodoUncompleted())

    def update_text(self, text: str) -> None:
        self._ensure_not_deleted()
        text = _validated_text(text)
        if text == self.text:
            raise DomainValidationError("New text is the same as current text")
        self.emit(TodoTextUpdated(text=text))

    def set_due_date(self, due_date: date | None) -> None:
        self._ensure_not_deleted()
        if due_date == self.due_date:
            raise DomainValidationError("Due date is unchanged")
        self.emit(TodoDueDateChanged(due_date=due_date))

    def set_priority(self, priority: Priority) -> None:
        self._ensure_not_deleted()
        if priority == self.priority:
            raise DomainValidationError(f"Todo already has {priority.name.lower()} priority")
        self.emit(TodoPriorityChanged(priority=priority))

    def set_favorite(self, is_favorite: bool) -> None:
        """Move the todo into the requested favorite state.

        Requesting the state the todo is already in emits nothing.
        """
        self._ensure_not_deleted()
        if is_favorite == self.is_favorite:
            return
        self.emit(TodoFavorited() if is_favorite else TodoUnfavorited())

    def toggle_favorite(self) -> None:
        self.set_favorite(not self.is_favorite)

    def add_tag(self, tag: str) -> None:
        self._ensure_not_deleted()
        tag = tag.strip()
        if not tag:
            raise DomainValidationError("Tag cannot be empty")
        if self._find_tag(tag) is not None:
            raise DomainValidationError(f"Tag '{tag}' is already on this todo")
        self.emit(TodoTagAdded(tag=tag))

    def remove_tag(self, tag: str) -> None:
        self._ensure_not_deleted()
        existing = self._find_tag(tag.strip())
        if existing is None:
            raise DomainValidationError(f"Tag '{tag}' not found on this todo")
        self.emit(TodoTagRemoved(tag=existing))

    def move_to_category(self, category_id: ULID | None) -> None:
        """Move the todo into a category, or out of every category with None.

        Moving into the category the todo is already in emits nothing.
        """
        self._ensure_not_deleted()
        if category_id == self.category_id:
            return
        self.emit(TodoCategoryChanged(category_id=category_id))

    def mark_orphaned(self) -> None:
        self._ensure_not_deleted()
        if self.is_orphaned:
            raise DomainValidationError("Todo is already orphaned")
        self.emit(TodoOrphaned())

    def delete(self) -> None:
        self._ensure_not_deleted()
        self.emit(TodoDeleted())

    def _ensure_not_deleted(self) -> None:
        if self.is_deleted:
            raise DomainValidationError("Todo has been deleted")

    def _find_tag(self, tag: str) -> str | None:
        lowered = tag.lower()
        return next((t for t in self.tags if t.lower() == lowered), None)

    @applies_event
    def _on_created(self, event: TodoCreated) -> None:
        self.text = event.text
        self.category_id = event.category_id
        self.source_note_id = event.source_note_id
        self.created_at = event.occurred_at

    @applies_event
    def _on_completed(self, event: TodoCompleted) -> None:
        self.is_completed = True
        self.completed_at = event.occurred_at

    @applies_event
    def _on_uncompleted(self, event: TodoUncompleted) -> None:
        self.is_completed = False
        self.completed_at = None

    @applies_event
    def _on_text_updated(self, event: TodoTextUpdated) -> None:
        self.text = event.text

    @applies_event
    def _on_due_date_changed(self, event: TodoDueDateChanged) -> None:
        self.due_date = event.due_date

    @applies_event
    def _on_priority_changed(self, event: TodoPriorityChanged) -> None:
        self.priority = event.priority

    @applies_event
    def _on_favorited(self, event: TodoFavorited) -> None:
        self.is_favorite = True

    @applies_event
    def _on_unfavorited(self, event: TodoUnfavorited) -> None:
        self.is_favorite = False

    @applies_event
    def _on_tag_added(self, event: TodoTagAdded) -> None:
        self.tags = [*self.tags, event.tag]

    @applies_event
    def _on_tag_removed(self, event: TodoTagRemoved) -> None:
        self.tags = [t for t in self.tags if t != event.tag]

    @applies_event
    def _on_category_changed(self, event: TodoCategoryChanged) -> None:
        self.category_id = event.category_id

    @applies_event
    def _on_orphaned(self, event: TodoOrphaned) -> None:
        self.is_orphaned = True

    @applies_event
    def _on_deleted(self, event: TodoDeleted) -> None:
        self.is_deleted = True
