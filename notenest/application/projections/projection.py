from abc import ABC, abstractmethod
from typing import ClassVar

from ..events.processor import EventProcessor


class Projection(EventProcessor, ABC):
    """A derived, rebuildable read model folded from the event stream.

    Projections are driven by the ProjectionOrchestrator, which feeds them
    every event after their watermark in stream order. Folds must be
    idempotent: after a partial failure the same event may be folded again,
    so handlers write with upserts and tolerate rows that already reflect
    the event.

    A fold that would break the read model's invariants raises
    FoldRejectedError; the orchestrator logs it and moves on without
    writing anything for that event.

    Attributes:
        name: Stable name the watermark is stored under.
    """

    name: ClassVar[str]

    @abstractmethod
    async def clear(self) -> None:
        """Delete every row of the read model, ahead of a rebuild."""
        ...
