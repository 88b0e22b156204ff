from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from ulid import ULID

from notenest.application.projections import Projection
from notenest.domain import DomainEvent, Event

from .core import Scenario, StateMatches

TRow = TypeVar("TRow", bound=BaseModel)


class ProjectionScenario(Scenario[TRow], Generic[TRow]):
    """A scenario for testing a projection's folds.

    This scenario allows you to test a projection by:
    - Given events of one or more aggregates, folded in order
    - Then a list of expectations on the resulting rows are met

    Rows are looked up by id through `load_row`, which defaults to the
    projection store's `get`:

        >>> async with ProjectionScenario(TreeViewProjection(store)) as scenario:
        ...     scenario.given_for(work_id, CategoryCreated(name="Work"))
        ...     scenario.should_have_state(work_id, lambda node: node.display_path == "Work")

    Events passed to plain `given` all belong to one generated aggregate.
    """

    def __init__(
        self,
        projection: Projection,
        load_row: Callable[[ULID], Awaitable[TRow | None]] | None = None,
    ):
        super().__init__()
        self.projection = projection
        self.load_row = load_row or projection.store.get  # type: ignore[attr-defined]
        self.default_aggregate_id = ULID()
        self.streams: list[tuple[ULID, DomainEvent]] = []

    def given_for(self, aggregate_id: ULID, *events: DomainEvent) -> "ProjectionScenario[TRow]":
        self.streams.extend((aggregate_id, event) for event in events)
        return self

    async def perform_actions(self) -> None:
        self.streams.extend(
            (self.default_aggregate_id, payload)
            for payload in self.event_payloads
            if isinstance(payload, DomainEvent)
        )
        sequence_numbers: dict[ULID, int] = {}
        for position, (aggregate_id, payload) in enumerate(self.streams, start=1):
            sequence_numbers[aggregate_id] = sequence_numbers.get(aggregate_id, 0) + 1
            event: Event[Any] = Event(
                aggregate_id=aggregate_id,
                aggregate_type=payload.kind.partition(".")[0].capitalize(),
                data=payload,
                sequence_number=sequence_numbers[aggregate_id],
                stream_position=position,
            )
            try:
                await self.projection.handle(event)
            except Exception as e:
                self.errors.append(e)

    def should_have_state(
        self, row_id: ULID, predicate: Callable[[TRow | None], bool]
    ) -> "ProjectionScenario[TRow]":
        self.expectations.append(StateMatches(row_id, predicate))
        return self

    async def get_state(self, state_key: Any) -> TRow | None:
        return await self.load_row(state_key)
