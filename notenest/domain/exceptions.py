"""Exceptions shared by the write and read sides."""


class NoteNestError(Exception):
    """Base class for errors raised by notenest."""


class DomainValidationError(NoteNestError):
    """Raised by an aggregate operation whose precondition does not hold.

    The message is human readable and is surfaced to the caller verbatim.
    Nothing has been applied or buffered when this is raised.
    """


class AggregateNotFoundError(NoteNestError):
    """Raised when an aggregate has no events in the store."""


class ConcurrencyError(NoteNestError):
    """Raised when an optimistic concurrency check fails.

    This exception indicates that another writer appended to the aggregate
    between when it was loaded and when its changes were saved.
    """


class UnknownEventKindError(NoteNestError):
    """Raised when a stored event kind has no registered event class."""


class FoldRejectedError(NoteNestError):
    """Raised by a projection that refuses to write an event's effects.

    Used when folding an event would break a read model invariant, for
    example reparenting a tree node under itself or one of its descendants.
    """


class ConfirmationRequiredError(NoteNestError):
    """Raised when a destructive operation is invoked without confirmation."""
