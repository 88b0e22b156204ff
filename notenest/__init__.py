"""NoteNest - event-sourced notes, categories and todos.

This module provides the public API: the application builder, the domain
aggregates and the commands that drive them.
"""

from .application import Application, ApplicationBuilder
from .application.commands import (
    AddTag,
    CompleteTodo,
    CreateCategory,
    CreateNote,
    CreateTodo,
    DeleteCategory,
    DeleteNote,
    DeleteTodo,
    MarkTodoOrphaned,
    MoveCategory,
    MoveNote,
    MoveTodoToCategory,
    PinCategory,
    PinNote,
    RemoveTag,
    RenameCategory,
    RenameNote,
    SetTodoDueDate,
    SetTodoPriority,
    ToggleFavorite,
    UncompleteTodo,
    UnpinCategory,
    UnpinNote,
    UpdateTodoText,
)
from .diagnostics import TreeIntegrityChecker, TreeIntegrityReport, TreeRepairTool
from .domain import (
    Aggregate,
    Category,
    Command,
    CommandResult,
    DomainEvent,
    Event,
    Failure,
    FailureKind,
    Note,
    Priority,
    Success,
    Todo,
)
from .routing import applies_event, handles_event, intercepts

__all__ = [
    # Application
    "Application",
    "ApplicationBuilder",
    # Domain primitives
    "Aggregate",
    "Category",
    "Command",
    "CommandResult",
    "DomainEvent",
    "Event",
    "Failure",
    "FailureKind",
    "Note",
    "Priority",
    "Success",
    "Todo",
    # Commands
    "AddTag",
    "CompleteTodo",
    "CreateCategory",
    "CreateNote",
    "CreateTodo",
    "DeleteCategory",
    "DeleteNote",
    "DeleteTodo",
    "MarkTodoOrphaned",
    "MoveCategory",
    "MoveNote",
    "MoveTodoToCategory",
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
    # Tree integrity
    "TreeIntegrityChecker",
    "TreeIntegrityReport",
    "TreeRepairTool",
    # Decorators
    "applies_event",
    "handles_event",
    "intercepts",
]
