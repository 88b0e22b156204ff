"""Note use cases."""

from typing import Any

from pydantic import Field
from ulid import ULID

from ...domain import Command, Note
from ...domain.exceptions import DomainValidationError
from ..aggregates import AggregateRepository
from ..events import EventBus
from ..queries import TreeQueryService
from .handler import CommandHandler, CreationHandler


class CreateNote(Command):
    aggregate_id: ULID = Field(default_factory=ULID)
    category_id: ULID
    title: str


class RenameNote(Command):
    title: str


class MoveNote(Command):
    category_id: ULID


class PinNote(Command):
    pass


class UnpinNote(Command):
    pass


class DeleteNote(Command):
    pass


class NoteHandler(CommandHandler[Any, Note]):
    not_found_message = "Note not found"

    def __init__(
        self,
        repository: AggregateRepository[Note],
        event_bus: EventBus,
        tree: TreeQueryService,
    ):
        super().__init__(repository, event_bus)
        self.tree = tree

    async def ensure_category(self, category_id: ULID) -> None:
        node = await self.tree.get_node(category_id)
        if node is None or node.node_type != "category":
            raise DomainValidationError("Category not found")


class CreateNoteHandler(CreationHandler[CreateNote, Note], NoteHandler):
    handles = CreateNote

    async def validate(self, aggregate: Note, command: CreateNote) -> None:
        await self.ensure_category(command.category_id)

    def execute(self, aggregate: Note, command: CreateNote) -> None:
        aggregate.create(command.category_id, command.title)


class RenameNoteHandler(NoteHandler):
    handles = RenameNote

    def execute(self, aggregate: Note, command: RenameNote) -> None:
        aggregate.rename(command.title)


class MoveNoteHandler(NoteHandler):
    handles = MoveNote

    async def validate(self, aggregate: Note, command: MoveNote) -> None:
        await self.ensure_category(command.category_id)

    def execute(self, aggregate: Note, command: MoveNote) -> None:
        aggregate.move(command.category_id)


class PinNoteHandler(NoteHandler):
    handles = PinNote

    def execute(self, aggregate: Note, command: PinNote) -> None:
        aggregate.pin()


class UnpinNoteHandler(NoteHandler):
    handles = UnpinNote

    def execute(self, aggregate: Note, command: UnpinNote) -> None:
        aggregate.unpin()


class DeleteNoteHandler(NoteHandler):
    handles = DeleteNote

    def execute(self, aggregate: Note, command: DeleteNote) -> None:
        aggregate.delete()


NOTE_HANDLERS: list[type[NoteHandler]] = [
    CreateNoteHandler,
    RenameNoteHandler,
    MoveNoteHandler,
    PinNoteHandler,
    UnpinNoteHandler,
    DeleteNoteHandler,
]
