"""Per-projection watermarks over the global event stream."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from ...domain import utc_now


@dataclass
class Checkpoint:
    """Checkpoint data for tracking catch-up progress.

    Attributes:
        projection_name: Name of the projection the watermark belongs to.
        last_processed_position: Stream position of the last event the
            projection has folded (or deliberately skipped).
        updated_at: When the watermark last moved.
    """

    projection_name: str
    last_processed_position: int
    updated_at: datetime


class CheckpointStore(ABC):
    """Abstract interface for persisting projection watermarks.

    Watermarks only move forward through `save`; `reset` is the one way
    back and is reserved for full rebuilds.
    """

    @abstractmethod
    async def load_checkpoint(self, projection_name: str) -> Checkpoint | None: ...

    @abstractmethod
    async def _write(self, checkpoint: Checkpoint) -> None: ...

    async def load(self, projection_name: str) -> int:
        """Last processed position for a projection, 0 if it never ran."""
        checkpoint = await self.load_checkpoint(projection_name)
        return checkpoint.last_processed_position if checkpoint else 0

    async def save(self, projection_name: str, position: int) -> None:
        """Advance a watermark. Positions at or behind the current one are ignored."""
        if position <= await self.load(projection_name):
            return
        await self._write(Checkpoint(projection_name, position, utc_now()))

    async def reset(self, projection_name: str) -> None:
        await self._write(Checkpoint(projection_name, 0, utc_now()))


class InMemoryCheckpointStore(CheckpointStore):
    """In-memory checkpoint storage, lost on restart."""

    def __init__(self) -> None:
        self._checkpoints: dict[str, Checkpoint] = {}

    async def load_checkpoint(self, projection_name: str) -> Checkpoint | None:
        return self._checkpoints.get(projection_name)

    async def _write(self, checkpoint: Checkpoint) -> None:
        self._checkpoints[checkpoint.projection_name] = checkpoint
