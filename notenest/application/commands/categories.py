"""Category use cases.

Rules about the shape of the tree are checked here against the tree view
before the aggregate is asked to change. The tree projection enforces the
same rules again when it folds the events, since the view these checks
read from may be stale.
"""

from typing import Any

from pydantic import Field
from ulid import ULID

from ...domain import Category, Command
from ...domain.exceptions import DomainValidationError
from ..aggregates import AggregateRepository
from ..events import EventBus
from ..queries import TreeQueryService
from .handler import CommandHandler, CreationHandler


class CreateCategory(Command):
    aggregate_id: ULID = Field(default_factory=ULID)
    name: str
    parent_id: ULID | None = None


class RenameCategory(Command):
    name: str


class MoveCategory(Command):
    parent_id: ULID | None = None


class PinCategory(Command):
    pass


class UnpinCategory(Command):
    pass


class DeleteCategory(Command):
    pass


class TreeAwareHandler(CommandHandler[Any, Category]):
    not_found_message = "Category not found"

    def __init__(
        self,
        repository: AggregateRepository[Category],
        event_bus: EventBus,
        tree: TreeQueryService,
    ):
        super().__init__(repository, event_bus)
        self.tree = tree

    async def ensure_category(self, category_id: ULID, message: str) -> None:
        node = await self.tree.get_node(category_id)
        if node is None or node.node_type != "category":
            raise DomainValidationError(message)


class CreateCategoryHandler(CreationHandler[CreateCategory, Category], TreeAwareHandler):
    handles = CreateCategory

    async def validate(self, aggregate: Category, command: CreateCategory) -> None:
        if command.parent_id is not None and command.parent_id != aggregate.id:
            await self.ensure_category(command.parent_id, "Parent category not found")

    def execute(self, aggregate: Category, command: CreateCategory) -> None:
        aggregate.create(command.name, command.parent_id)


class RenameCategoryHandler(TreeAwareHandler):
    handles = RenameCategory

    def execute(self, aggregate: Category, command: RenameCategory) -> None:
        aggregate.rename(command.name)


class MoveCategoryHandler(TreeAwareHandler):
    handles = MoveCategory

    async def validate(self, aggregate: Category, command: MoveCategory) -> None:
        target = command.parent_id
        if target is None or target == aggregate.id:
            return
        await self.ensure_category(target, "Target category not found")
        if await self.tree.is_descendant(target, ancestor_id=aggregate.id):
            raise DomainValidationError("Category cannot be moved into its own subcategory")

    def execute(self, aggregate: Category, command: MoveCategory) -> None:
        aggregate.move(command.parent_id)


class PinCategoryHandler(TreeAwareHandler):
    handles = PinCategory

    def execute(self, aggregate: Category, command: PinCategory) -> None:
        aggregate.pin()


class UnpinCategoryHandler(TreeAwareHandler):
    handles = UnpinCategory

    def execute(self, aggregate: Category, command: UnpinCategory) -> None:
        aggregate.unpin()


class DeleteCategoryHandler(TreeAwareHandler):
    handles = DeleteCategory

    async def validate(self, aggregate: Category, command: DeleteCategory) -> None:
        if await self.tree.has_children(aggregate.id):
            raise DomainValidationError("Category must be empty before it can be deleted")

    def execute(self, aggregate: Category, command: DeleteCategory) -> None:
        aggregate.delete()


CATEGORY_HANDLERS: list[type[TreeAwareHandler]] = [
    CreateCategoryHandler,
    RenameCategoryHandler,
    MoveCategoryHandler,
    PinCategoryHandler,
    UnpinCategoryHandler,
    DeleteCategoryHandler,
]
