"""Domain primitives and aggregates.

- Aggregate: Base class for aggregates that record domain events
- DomainEvent / Event: Event payload base and stored envelope
- Command: Base class for command messages
- Success / Failure: Discriminated command results
- Todo, Category, Note: The aggregates of the application
"""

from .aggregate import Aggregate
from .categories import Category, CategoryEvent
from .command import Command
from .event import DomainEvent, Event, event_variants, utc_now
from .exceptions import (
    AggregateNotFoundError,
    ConcurrencyError,
    ConfirmationRequiredError,
    DomainValidationError,
    FoldRejectedError,
    NoteNestError,
    UnknownEventKindError,
)
from .notes import Note, NoteEvent
from .result import CommandResult, Failure, FailureKind, Success
from .todos import Priority, Todo, TodoEvent

__all__ = [
    "Aggregate",
    "Category",
    "CategoryEvent",
    "Command",
    "CommandResult",
    "DomainEvent",
    "Event",
    "Failure",
    "FailureKind",
    "Note",
    "NoteEvent",
    "Priority",
    "Success",
    "Todo",
    "TodoEvent",
    "event_variants",
    "utc_now",
    "AggregateNotFoundError",
    "ConcurrencyError",
    "ConfirmationRequiredError",
    "DomainValidationError",
    "FoldRejectedError",
    "NoteNestError",
    "UnknownEventKindError",
]
