import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from ...domain.exceptions import FoldRejectedError, UnknownEventKindError
from ..events import EventSerializer, EventStore, StoredEvent
from .checkpoint import CheckpointStore
from .projection import Projection

LOGGER = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 1000


@dataclass(frozen=True)
class ProjectionStatus:
    name: str
    last_processed_position: int
    current_stream_position: int

    @property
    def lag(self) -> int:
        return max(self.current_stream_position - self.last_processed_position, 0)

    @property
    def is_up_to_date(self) -> bool:
        return self.lag == 0


class ProjectionOrchestrator:
    """Folds events that projections have not seen yet into their read models.

    Each projection keeps its own watermark in the checkpoint store. A
    catch-up reads the events after that watermark in batches, folds them
    in stream order and advances the watermark after every batch. When a
    fold fails the watermark is saved up to the last event that was folded
    and the error is re-raised, so the next catch-up resumes at the failing
    event; folds being idempotent, nothing is applied twice in effect.

    Two kinds of events are consumed without failing the catch-up:

    - events whose stored kind is unknown (logged and skipped), and
    - events a projection rejects with FoldRejectedError (logged as an
      integrity violation, nothing written).

    Catch-ups, rebuilds and status reads are serialized by one asyncio.Lock,
    so a command's synchronous catch-up and the background sweep never fold
    the same events concurrently.

    Examples:
        >>> orchestrator = ProjectionOrchestrator(
        ...     event_store, serializer, checkpoints,
        ...     [TreeViewProjection(tree_store), TodoViewProjection(todo_store)],
        ... )
        >>> processed = await orchestrator.catch_up()
    """

    def __init__(
        self,
        event_store: EventStore,
        serializer: EventSerializer,
        checkpoints: CheckpointStore,
        projections: Sequence[Projection],
        batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        self.event_store = event_store
        self.serializer = serializer
        self.checkpoints = checkpoints
        self.projections = list(projections)
        self.batch_size = batch_size
        self._lock = asyncio.Lock()

    async def catch_up(self) -> int:
        """Bring every projection up to the current end of the stream.

        Returns:
            The number of events folded across all projections.
        """
        async with self._lock:
            current = await self.event_store.current_position()
            processed = 0
            for projection in self.projections:
                processed += await self._catch_up_projection(projection, current)

        if processed:
            LOGGER.info(
                "Projections caught up",
                extra={"events_processed": processed, "stream_position": current},
            )
        return processed

    async def rebuild(self, name: str) -> int:
        """Clear one projection and fold the whole stream into it again.

        Raises:
            KeyError: If no projection has that name.
        """
        projection = self._projection_named(name)
        async with self._lock:
            processed = await self._rebuild_projection(projection)
        LOGGER.info(
            "Projection rebuilt", extra={"projection": name, "events_processed": processed}
        )
        return processed

    async def rebuild_all(self) -> int:
        async with self._lock:
            processed = 0
            for projection in self.projections:
                processed += await self._rebuild_projection(projection)
        LOGGER.info("All projections rebuilt", extra={"events_processed": processed})
        return processed

    async def status(self) -> list[ProjectionStatus]:
        async with self._lock:
            current = await self.event_store.current_position()
            return [
                ProjectionStatus(
                    name=projection.name,
                    last_processed_position=await self.checkpoints.load(projection.name),
                    current_stream_position=current,
                )
                for projection in self.projections
            ]

    async def run_continuously(
        self, poll_interval: float = 1.0, stop: asyncio.Event | None = None
    ) -> None:
        """Catch up every poll_interval seconds until stop is set or the task is cancelled.

        Errors from a sweep are logged and the loop carries on; the failing
        event is retried on the next sweep.
        """
        stop = stop or asyncio.Event()
        LOGGER.info("Continuous catch-up started", extra={"poll_interval": poll_interval})
        while not stop.is_set():
            try:
                await self.catch_up()
            except Exception:
                LOGGER.exception("Background catch-up failed")
            try:
                await asyncio.wait_for(stop.wait(), timeout=poll_interval)
            except asyncio.TimeoutError:
                pass
        LOGGER.info("Continuous catch-up stopped")

    # HasLifecycle

    async def on_startup(self) -> None:
        await self.catch_up()

    async def on_shutdown(self) -> None:
        pass

    def _projection_named(self, name: str) -> Projection:
        for projection in self.projections:
            if projection.name == name:
                return projection
        raise KeyError(f"Projection '{name}' not found")

    async def _rebuild_projection(self, projection: Projection) -> int:
        await projection.clear()
        await self.checkpoints.reset(projection.name)
        current = await self.event_store.current_position()
        return await self._catch_up_projection(projection, current)

    async def _catch_up_projection(self, projection: Projection, until: int) -> int:
        position = await self.checkpoints.load(projection.name)
        processed = 0
        while position < until:
            batch = await self.event_store.load_since_position(position, self.batch_size)
            if not batch:
                break
            try:
                for record in batch:
                    if record.stream_position > until:
                        return processed
                    await self._fold(projection, record)
                    position = record.stream_position
                    processed += 1
            finally:
                await self.checkpoints.save(projection.name, position)
        return processed

    async def _fold(self, projection: Projection, record: StoredEvent) -> None:
        try:
            event = self.serializer.from_record(record)
        except UnknownEventKindError:
            LOGGER.warning(
                "Skipping event of unknown kind",
                extra={
                    "projection": projection.name,
                    "event_kind": record.kind,
                    "stream_position": record.stream_position,
                },
            )
            return

        try:
            await projection.handle(event)
        except FoldRejectedError as error:
            LOGGER.error(
                "Projection rejected event: %s",
                error,
                extra={
                    "projection": projection.name,
                    "event_kind": record.kind,
                    "aggregate_id": record.aggregate_id,
                    "stream_position": record.stream_position,
                },
            )
            return

        LOGGER.debug(
            "Folded event",
            extra={
                "projection": projection.name,
                "event_kind": record.kind,
                "stream_position": record.stream_position,
            },
        )
