"""Todo use cases."""

import logging
from datetime import date
from typing import Any

from pydantic import Field
from ulid import ULID

from ...domain import Command, Event, Todo
from ...domain.notes import NoteDeleted
from ...domain.todos import Priority
from ...routing import handles_event
from ..events import EventProcessor
from ..queries import TodoQueryService
from .handler import CommandHandler, CreationHandler

LOGGER = logging.getLogger(__name__)


class CreateTodo(Command):
    aggregate_id: ULID = Field(default_factory=ULID)
    text: str
    category_id: ULID | None = None
    source_note_id: ULID | None = None


class CompleteTodo(Command):
    pass


class UncompleteTodo(Command):
    pass


class UpdateTodoText(Command):
    text: str


class SetTodoDueDate(Command):
    due_date: date | None = None


class SetTodoPriority(Command):
    priority: Priority


class ToggleFavorite(Command):
    """Set the favorite flag to `is_favorite`. Already being there is a success."""

    is_favorite: bool


class AddTag(Command):
    tag: str


class RemoveTag(Command):
    tag: str


class MoveTodoToCategory(Command):
    category_id: ULID | None = None


class MarkTodoOrphaned(Command):
    pass


class DeleteTodo(Command):
    pass


class TodoHandler(CommandHandler[Any, Todo]):
    not_found_message = "Todo not found"


class CreateTodoHandler(CreationHandler[CreateTodo, Todo]):
    handles = CreateTodo

    def execute(self, aggregate: Todo, command: CreateTodo) -> None:
        aggregate.create(command.text, command.category_id, command.source_note_id)


class CompleteTodoHandler(TodoHandler):
    handles = CompleteTodo

    def execute(self, aggregate: Todo, command: CompleteTodo) -> None:
        aggregate.complete()


class UncompleteTodoHandler(TodoHandler):
    handles = UncompleteTodo

    def execute(self, aggregate: Todo, command: UncompleteTodo) -> None:
        aggregate.uncomplete()


class UpdateTodoTextHandler(TodoHandler):
    handles = UpdateTodoText

    def execute(self, aggregate: Todo, command: UpdateTodoText) -> None:
        aggregate.update_text(command.text)


class SetTodoDueDateHandler(TodoHandler):
    handles = SetTodoDueDate

    def execute(self, aggregate: Todo, command: SetTodoDueDate) -> None:
        aggregate.set_due_date(command.due_date)


class SetTodoPriorityHandler(TodoHandler):
    handles = SetTodoPriority

    def execute(self, aggregate: Todo, command: SetTodoPriority) -> None:
        aggregate.set_priority(command.priority)


class ToggleFavoriteHandler(TodoHandler):
    handles = ToggleFavorite

    def execute(self, aggregate: Todo, command: ToggleFavorite) -> None:
        aggregate.set_favorite(command.is_favorite)


class AddTagHandler(TodoHandler):
    handles = AddTag

    def execute(self, aggregate: Todo, command: AddTag) -> None:
        aggregate.add_tag(command.tag)


class RemoveTagHandler(TodoHandler):
    handles = RemoveTag

    def execute(self, aggregate: Todo, command: RemoveTag) -> None:
        aggregate.remove_tag(command.tag)


class MoveTodoToCategoryHandler(TodoHandler):
    handles = MoveTodoToCategory

    def execute(self, aggregate: Todo, command: MoveTodoToCategory) -> None:
        aggregate.move_to_category(command.category_id)


class MarkTodoOrphanedHandler(TodoHandler):
    handles = MarkTodoOrphaned

    def execute(self, aggregate: Todo, command: MarkTodoOrphaned) -> None:
        aggregate.mark_orphaned()


class DeleteTodoHandler(TodoHandler):
    handles = DeleteTodo

    def execute(self, aggregate: Todo, command: DeleteTodo) -> None:
        aggregate.delete()


TODO_HANDLERS: list[type[CommandHandler[Any, Todo]]] = [
    CreateTodoHandler,
    CompleteTodoHandler,
    UncompleteTodoHandler,
    UpdateTodoTextHandler,
    SetTodoDueDateHandler,
    SetTodoPriorityHandler,
    ToggleFavoriteHandler,
    AddTagHandler,
    RemoveTagHandler,
    MoveTodoToCategoryHandler,
    MarkTodoOrphanedHandler,
    DeleteTodoHandler,
]


class OrphanedTodoProcessor(EventProcessor):
    """Marks todos extracted from a note as orphaned when the note is deleted.

    Runs as an event bus subscriber, so the note deletion is already
    committed. Each todo is marked through its own handler; a todo that
    cannot be marked is logged and the rest are still processed.
    """

    def __init__(self, todos: TodoQueryService, handler: MarkTodoOrphanedHandler):
        self.todos = todos
        self.handler = handler

    @handles_event
    async def on_note_deleted(self, event: Event[NoteDeleted]) -> None:
        for row in await self.todos.list_by_source_note(event.aggregate_id):
            if row.is_orphaned:
                continue
            result = await self.handler.handle(
                MarkTodoOrphaned(aggregate_id=row.id, causation_id=event.id)
            )
            if not result.is_success:
                LOGGER.warning(
                    "Could not mark todo orphaned: %s",
                    result.message,
                    extra={"todo_id": str(row.id), "note_id": str(event.aggregate_id)},
                )
