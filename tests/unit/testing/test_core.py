"""Tests for core testing components."""

import pytest
from ulid import ULID

from notenest.domain import Event
from notenest.domain.todos import TodoCompleted, TodoCreated, TodoTagAdded
from notenest.testing.core import (
    ContainsErrorOfExactType,
    ContainsEventOfExactPayload,
    ContainsEventOfExactType,
    DoesNotHaveEvents,
    Result,
    StateMatches,
    same_payload,
)


def create_event(payload) -> Event:
    """Helper to create Event objects for testing."""
    return Event(
        aggregate_id=ULID(),
        aggregate_type="Todo",
        data=payload,
        sequence_number=1,
    )


class TestSamePayload:
    """Tests for payload comparison."""

    def test_ignores_occurrence_time(self):
        """Payloads differing only in occurred_at compare equal."""
        first = TodoTagAdded(tag="home")
        second = TodoTagAdded(tag="home")

        assert same_payload(first, second)

    def test_compares_fields(self):
        """Payloads with different fields are different."""
        assert not same_payload(TodoTagAdded(tag="home"), TodoTagAdded(tag="work"))

    def test_compares_types(self):
        """Payloads of different classes are different."""
        assert not same_payload(TodoCompleted(), TodoCreated(text="x"))


class TestResult:
    """Tests for Result class."""

    def test_result_initialization_without_states(self):
        """Test Result initialization without states."""
        result = Result(events=[], errors=[])

        assert result.events == []
        assert result.errors == []
        assert result.states == {}

    def test_contains_event_of_type(self):
        """Envelopes are matched on the type of their payload."""
        result = Result(events=[create_event(TodoCompleted())], errors=[])

        assert result.contains_event_of_type(TodoCompleted)
        assert not result.contains_event_of_type(TodoCreated)

    def test_contains_event_with_bare_payloads(self):
        """Bare payloads are matched as well as envelopes."""
        result = Result(events=[TodoTagAdded(tag="home")], errors=[])

        assert result.contains_event(TodoTagAdded(tag="home"))
        assert not result.contains_event(TodoTagAdded(tag="work"))

    def test_contains_error_with_message(self):
        """An error message, when given, must match exactly."""
        result = Result(events=[], errors=[ValueError("Todo not found")])

        assert result.contains_error_of_type(ValueError, None)
        assert result.contains_error_of_type(ValueError, "Todo not found")
        assert not result.contains_error_of_type(ValueError, "Note not found")
        assert not result.contains_error_of_type(TypeError, None)

    def test_state_matches_missing_key(self):
        """Test state_matches returns False when state key doesn't exist."""
        result = Result(events=[], errors=[], states={})

        assert not result.state_matches("missing_key", lambda s: True)


class TestExpectations:
    """Tests for the expectation classes."""

    def test_exact_payload(self):
        expectation = ContainsEventOfExactPayload(TodoTagAdded(tag="home"))

        assert expectation.was_met(Result([create_event(TodoTagAdded(tag="home"))], []))
        assert "should contain event with payload" in expectation.describe()

    def test_exact_type_failure(self):
        expectation = ContainsEventOfExactType(TodoCompleted)

        with pytest.raises(AssertionError, match="Expectation not met"):
            expectation.assert_met(Result(events=[], errors=[]))

    def test_error_with_message_describe(self):
        expectation = ContainsErrorOfExactType(ValueError, "boom")

        assert expectation.describe() == "should contain error ValueError('boom')"

    def test_does_not_have_events(self):
        expectation = DoesNotHaveEvents()

        assert expectation.was_met(Result(events=[], errors=[]))
        assert not expectation.was_met(Result(events=[create_event(TodoCompleted())], errors=[]))

    def test_state_matches_requires_its_key(self):
        expectation = StateMatches("key1", lambda s: s == 5)

        assert list(expectation.requires_state()) == ["key1"]
        assert expectation.was_met(Result(events=[], errors=[], states={"key1": 5}))
