"""Note aggregate and its events."""

from typing import Annotated, Literal, Union

from pydantic import Field
from ulid import ULID

from ..routing import applies_event
from .aggregate import Aggregate
from .event import DomainEvent
from .exceptions import DomainValidationError

MAX_NOTE_TITLE_LENGTH = 255


class NoteCreated(DomainEvent):
    kind: Literal["note.created"] = "note.created"
    category_id: ULID
    title: str


class NoteRenamed(DomainEvent):
    kind: Literal["note.renamed"] = "note.renamed"
    old_title: str
    new_title: str


class NoteMoved(DomainEvent):
    kind: Literal["note.moved"] = "note.moved"
    old_category_id: ULID
    new_category_id: ULID


class NotePinned(DomainEvent):
    kind: Literal["note.pinned"] = "note.pinned"


class NoteUnpinned(DomainEvent):
    kind: Literal["note.unpinned"] = "note.unpinned"


class NoteDeleted(DomainEvent):
    kind: Literal["note.deleted"] = "note.deleted"


NoteEvent = Annotated[
    Union[NoteCreated, NoteRenamed, NoteMoved, NotePinned, NoteUnpinned, NoteDeleted],
    Field(discriminator="kind"),
]


def _validated_title(title: str) -> str:
    title = title.strip()
    if not title:
        raise DomainValidationError("Title cannot be empty")
    if len(title) > MAX_NOTE_TITLE_LENGTH:
        raise DomainValidationError(f"Title cannot exceed {MAX_NOTE_TITLE_LENGTH} characters")
    return title


class Note(Aggregate):
    """A note filed under exactly one category."""

    aggregate_type = "Note"
    event_union = NoteEvent

    title: str = ""
    category_id: ULID | None = None
    is_pinned: bool = False
    is_deleted: bool = False

    def create(self, category_id: ULID, title: str) -> None:
        if self.category_id is not None:
            raise DomainValidationError("Note already exists")
        self.emit(NoteCreated(category_id=category_id, title=_validated_title(title)))

    def rename(self, title: str) -> None:
        self._ensure_not_deleted()
        title = _validated_title(title)
        if title == self.title:
            raise DomainValidationError("New title is the same as current title")
        self.emit(NoteRenamed(old_title=self.title, new_title=title))

    def move(self, category_id: ULID) -> None:
        self._ensure_not_deleted()
        if category_id == self.category_id:
            raise DomainValidationError("Note is already in this category")
        self.emit(NoteMoved(old_category_id=self.category_id, new_category_id=category_id))

    def pin(self) -> None:
        self._ensure_not_deleted()
        if not self.is_pinned:
            self.emit(NotePinned())

    def unpin(self) -> None:
        self._ensure_not_deleted()
        if self.is_pinned:
            self.emit(NoteUnpinned())

    def delete(self) -> None:
        self._ensure_not_deleted()
        self.emit(NoteDeleted())

    def _ensure_not_deleted(self) -> None:
        if self.is_deleted:
            raise DomainValidationError("Note has been deleted")

    @applies_event
    def _on_created(self, event: NoteCreated) -> None:
        self.category_id = event.category_id
        self.title = event.title

    @applies_event
    def _on_renamed(self, event: NoteRenamed) -> None:
        self.title = event.new_title

    @applies_event
    def _on_moved(self, event: NoteMoved) -> None:
        self.category_id = event.new_category_id

    @applies_event
    def _on_pinned(self, event: NotePinned) -> None:
        self.is_pinned = True

    @applies_event
    def _on_unpinned(self, event: NoteUnpinned) -> None:
        self.is_pinned = False

    @applies_event
    def _on_deleted(self, event: NoteDeleted) -> None:
        self.is_deleted = True
