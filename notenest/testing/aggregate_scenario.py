from collections.abc import Callable
from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from ulid import ULID

from notenest.domain import Aggregate, DomainEvent, Event

from .core import (
    ContainsEventOfExactPayload,
    ContainsEventOfExactType,
    DoesNotHaveEvents,
    Scenario,
    StateMatches,
)

A = TypeVar("A", bound="Aggregate")


class AggregateScenario(Scenario[A], Generic[A]):
    """A scenario for testing an aggregate.

    This scenario allows you to test an aggregate by:
    - Given a list of events that have already been committed
    - When a list of domain operations are invoked on it
    - Then a list of expectations are met

    Operations are callables receiving the aggregate, so any domain method
    can be exercised without a command handler:

        >>> async with AggregateScenario(Todo) as scenario:
        ...     scenario.given(TodoCreated(text="Buy milk"))
        ...     scenario.when(lambda todo: todo.complete())
        ...     scenario.should_emit(TodoCompleted)

    The scenario runs the operations and asserts the expectations when the
    block exits. If an expectation is not met, an AssertionError is raised.
    """

    def __init__(self, aggregate: type[A], aggregate_id: ULID | None = None):
        super().__init__()
        self.aggregate_id = aggregate_id or ULID()
        self.aggregate = aggregate(id=self.aggregate_id)
        self.operations: list[Callable[[A], Any]] = []

    async def perform_actions(self) -> None:
        self._replay_given_events()
        self._invoke_operations()

    def _replay_given_events(self) -> None:
        # Given events are history: they are replayed as committed events so
        # that only what the operations emit ends up in the result.
        history = [
            Event(
                aggregate_id=self.aggregate_id,
                aggregate_type=self.aggregate.aggregate_type,
                data=payload,
                sequence_number=i,
            )
            for i, payload in enumerate(self.event_payloads, start=1)
            if isinstance(payload, DomainEvent)
        ]
        self.aggregate.replay(history)
        self.event_payloads.clear()

    def _invoke_operations(self) -> None:
        for operation in self.operations:
            try:
                operation(self.aggregate)
            except Exception as e:
                self.errors.append(e)

        self.event_payloads.extend(self.aggregate.pending_events())

    def when(self, *operations: Callable[[A], Any]) -> "AggregateScenario[A]":
        self.operations.extend(operations)
        return self

    def should_emit(
        self, *event_or_event_types: type[BaseModel] | BaseModel
    ) -> "AggregateScenario[A]":
        for e in event_or_event_types:
            if isinstance(e, BaseModel):
                self.expectations.append(ContainsEventOfExactPayload(e))
            else:
                self.expectations.append(ContainsEventOfExactType(e))
        return self

    def should_emit_nothing(self) -> "AggregateScenario[A]":
        self.expectations.append(DoesNotHaveEvents())
        return self

    def should_have_state(self, predicate: Callable[[A], bool]) -> "AggregateScenario[A]":
        self.expectations.append(StateMatches(self.aggregate_id, predicate))
        return self

    async def get_state(self, state_key: Any) -> A | None:
        return self.aggregate if state_key == self.aggregate_id else None
