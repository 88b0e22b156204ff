from .bus import CommandBus
from .categories import (
    CATEGORY_HANDLERS,
    CreateCategory,
    DeleteCategory,
    MoveCategory,
    PinCategory,
    RenameCategory,
    UnpinCategory,
)
from .handler import CommandHandler, CreationHandler
from .notes import (
    NOTE_HANDLERS,
    CreateNote,
    DeleteNote,
    MoveNote,
    PinNote,
    RenameNote,
    UnpinNote,
)
from .todos import (
    TODO_HANDLERS,
    AddTag,
    CompleteTodo,
    CreateTodo,
    DeleteTodo,
    MarkTodoOrphaned,
    MarkTodoOrphanedHandler,
    MoveTodoToCategory,
    OrphanedTodoProcessor,
    RemoveTag,
    SetTodoDueDate,
    SetTodoPriority,
    ToggleFavorite,
    UncompleteTodo,
    UpdateTodoText,
)

__all__ = [
    "CATEGORY_HANDLERS",
    "NOTE_HANDLERS",
    "TODO_HANDLERS",
    "AddTag",
    "CommandBus",
    "CommandHandler",
    "CompleteTodo",
    "CreateCategory",
    "CreateNote",
    "CreateTodo",
    "CreationHandler",
    "DeleteCategory",
    "DeleteNote",
    "DeleteTodo",
    "MarkTodoOrphaned",
    "MarkTodoOrphanedHandler",
    "MoveCategory",
    "MoveNote",
    "MoveTodoToCategory",
    "OrphanedTodoProcessor",
    "PinCategory",
    "PinNote",
    "RemoveTag",
    "RenameCategory",
    "RenameNote",
    "SetTodoDueDate",
    "SetTodoPriority",
    "ToggleFavorite",
    "UncompleteTodo",
    "UnpinCategory",
    "UnpinNote",
    "UpdateTodoText",
]
