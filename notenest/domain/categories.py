"""Category aggregate and its events."""

from typing import Annotated, Literal, Union

from pydantic import Field
from ulid import ULID

from ..routing import applies_event
from .aggregate import Aggregate
from .event import DomainEvent
from .exceptions import DomainValidationError

MAX_CATEGORY_NAME_LENGTH = 255


class CategoryCreated(DomainEvent):
    kind: Literal["category.created"] = "category.created"
    name: str
    parent_id: ULID | None = None


class CategoryRenamed(DomainEvent):
    kind: Literal["category.renamed"] = "category.renamed"
    old_name: str
    new_name: str


class CategoryMoved(DomainEvent):
    kind: Literal["category.moved"] = "category.moved"
    old_parent_id: ULID | None = None
    new_parent_id: ULID | None = None


class CategoryPinned(DomainEvent):
    kind: Literal["category.pinned"] = "category.pinned"


class CategoryUnpinned(DomainEvent):
    kind: Literal["category.unpinned"] = "category.unpinned"


class CategoryDeleted(DomainEvent):
    kind: Literal["category.deleted"] = "category.deleted"


CategoryEvent = Annotated[
    Union[
        CategoryCreated,
        CategoryRenamed,
        CategoryMoved,
        CategoryPinned,
        CategoryUnpinned,
        CategoryDeleted,
    ],
    Field(discriminator="kind"),
]


def _validated_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise DomainValidationError("Category name cannot be empty")
    if len(name) > MAX_CATEGORY_NAME_LENGTH:
        raise DomainValidationError(
            f"Category name cannot exceed {MAX_CATEGORY_NAME_LENGTH} characters"
        )
    return name


class Category(Aggregate):
    """A folder in the notes tree.

    A category only knows its own parent. Rules that need the whole tree,
    such as refusing to move a category under one of its descendants, are
    checked by the command handlers against the tree read model and again
    by the tree projection when it folds the event.
    """

    aggregate_type = "Category"
    event_union = CategoryEvent

    name: str = ""
    parent_id: ULID | None = None
    is_pinned: bool = False
    is_deleted: bool = False
    is_created: bool = False

    def create(self, name: str, parent_id: ULID | None = None) -> None:
        if self.is_created:
            raise DomainValidationError("Category already exists")
        if parent_id == self.id:
            raise DomainValidationError("Category cannot be its own parent")
        self.emit(CategoryCreated(name=_validated_name(name), parent_id=parent_id))

    def rename(self, name: str) -> None:
        self._ensure_not_deleted()
        name = _validated_name(name)
        if name == self.name:
            raise DomainValidationError("New name is the same as current name")
        self.emit(CategoryRenamed(old_name=self.name, new_name=name))

    def move(self, parent_id: ULID | None) -> None:
        self._ensure_not_deleted()
        if parent_id == self.id:
            raise DomainValidationError("Category cannot be its own parent")
        if parent_id == self.parent_id:
            raise DomainValidationError("Category is already in this location")
        self.emit(CategoryMoved(old_parent_id=self.parent_id, new_parent_id=parent_id))

    def pin(self) -> None:
        self._ensure_not_deleted()
        if not self.is_pinned:
            self.emit(CategoryPinned())

    def unpin(self) -> None:
        self._ensure_not_deleted()
        if self.is_pinned:
            self.emit(CategoryUnpinned())

    def delete(self) -> None:
        self._ensure_not_deleted()
        self.emit(CategoryDeleted())

    def _ensure_not_deleted(self) -> None:
        if self.is_deleted:
            raise DomainValidationError("Category has been deleted")

    @applies_event
    def _on_created(self, event: CategoryCreated) -> None:
        self.name = event.name
        self.parent_id = event.parent_id
        self.is_created = True

    @applies_event
    def _on_renamed(self, event: CategoryRenamed) -> None:
        self.name = event.new_name

    @applies_event
    def _on_moved(self, event: CategoryMoved) -> None:
        self.parent_id = event.new_parent_id

    @applies_event
    def _on_pinned(self, event: CategoryPinned) -> None:
        self.is_pinned = True

    @applies_event
    def _on_unpinned(self, event: CategoryUnpinned) -> None:
        self.is_pinned = False

    @applies_event
    def _on_deleted(self, event: CategoryDeleted) -> None:
        self.is_deleted = True
