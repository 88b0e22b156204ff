"""The load, operate, persist, publish template shared by every use case."""

import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Generic, TypeVar

from ...domain import Aggregate, Command, CommandResult, Event, Failure, Success
from ...domain.exceptions import AggregateNotFoundError, ConcurrencyError, DomainValidationError
from ..aggregates import AggregateRepository
from ..events import EventBus

LOGGER = logging.getLogger(__name__)

C = TypeVar("C", bound=Command)
A = TypeVar("A", bound=Aggregate)


class CommandHandler(ABC, Generic[C, A]):
    """Runs one use case against one aggregate.

    Steps, in order:

    1. Load the aggregate, failing with NOT_FOUND when it has no events.
    2. Run the domain operation (`execute`). A DomainValidationError
       becomes a VALIDATION failure carrying the message verbatim.
    3. Persist the pending events. The repository returns the committed
       events; a ConcurrencyError becomes a CONCURRENCY failure.
    4. Publish each committed event on the event bus. A failed publish is
       logged and the remaining events are still published.
    5. Return a Success carrying a snapshot of the aggregate.

    Handlers never retry. An operation that leaves nothing pending (for
    example favoriting a todo that already is one) succeeds without
    touching the store.

    Subclasses set `handles` to their command type and implement `execute`.
    """

    handles: ClassVar[type[Command]]
    not_found_message: ClassVar[str] = "Aggregate not found"

    def __init__(self, repository: AggregateRepository[A], event_bus: EventBus):
        self.repository = repository
        self.event_bus = event_bus

    @abstractmethod
    def execute(self, aggregate: A, command: C) -> None:
        """Invoke the domain operation for the command."""
        ...

    async def resolve(self, command: C) -> A:
        return await self.repository.get(command.aggregate_id)

    def result(self, aggregate: A) -> Any:
        return aggregate.model_copy(deep=True)

    async def validate(self, aggregate: A, command: C) -> None:
        """Checks needing I/O, run before `execute`. Raise DomainValidationError to reject."""

    async def handle(self, command: C) -> CommandResult[Any]:
        try:
            aggregate = await self.resolve(command)
        except AggregateNotFoundError:
            return Failure.not_found(self.not_found_message)

        try:
            await self.validate(aggregate, command)
            self.execute(aggregate, command)
        except DomainValidationError as error:
            aggregate.discard_pending_events()
            return Failure.validation(str(error))

        if not aggregate.has_pending_events:
            return Success(self.result(aggregate))

        try:
            committed = await self.repository.save(aggregate)
        except ConcurrencyError as error:
            LOGGER.info(
                "Concurrency conflict",
                extra={
                    "command_type": type(command).__name__,
                    "aggregate_id": str(aggregate.id),
                },
            )
            return Failure.concurrency(str(error))

        await self.publish(committed)
        return Success(self.result(aggregate))

    async def publish(self, events: list[Event[Any]]) -> None:
        for event in events:
            try:
                await self.event_bus.publish(event)
            except Exception:
                LOGGER.exception(
                    "Failed to publish committed event",
                    extra={"event_kind": event.kind, "aggregate_id": str(event.aggregate_id)},
                )


class CreationHandler(CommandHandler[C, A]):
    """Handler whose command creates the aggregate.

    The aggregate starts empty at version 0, so the append fails with a
    concurrency conflict if the id is already taken.
    """

    async def resolve(self, command: C) -> A:
        return self.repository.new(command.aggregate_id)
