"""Concurrent virtual staging of listing photos."""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Coroutine, Sequence
from dataclasses import dataclass, field
from typing import Any

from listing_studio.domain.errors import StagingFailure
from listing_studio.domain.listings import Photo
from listing_studio.domain.staging import StagingState, StagingTask
from listing_studio.services.generation import ListingGateway

_logger = logging.getLogger(__name__)


@dataclass
class StagingRun:
    """Live collection of staging tasks for one selection of photos."""

    _tasks: dict[int, StagingTask] = field(default_factory=dict)
    _subscribers: list[asyncio.Queue[StagingTask]] = field(default_factory=list)
    _finished: asyncio.Event = field(default_factory=asyncio.Event)
    _handles: set[asyncio.Task[None]] = field(default_factory=set)

    def task(self, key: int) -> StagingTask:
        """Return the latest state of the task with the given key."""
        return self._tasks[key]

    def snapshot(self) -> list[StagingTask]:
        """Return the current state of every task, ordered by key."""
        return [self._tasks[key] for key in sorted(self._tasks)]

    @property
    def any_failed(self) -> bool:
        return any(task.state is StagingState.FAILED for task in self._tasks.values())

    @property
    def done(self) -> bool:
        return bool(self._tasks) and all(
            task.is_terminal for task in self._tasks.values()
        )

    async def wait(self) -> list[StagingTask]:
        """Wait until every task reached a terminal state."""
        await self._finished.wait()
        return self.snapshot()

    async def updates(self) -> AsyncIterator[StagingTask]:
        """Yield task updates as they happen until the run is done."""
        queue: asyncio.Queue[StagingTask] = asyncio.Queue()
        self._subscribers.append(queue)
        try:
            while not (self.done and queue.empty()):
                yield await queue.get()
        finally:
            self._subscribers.remove(queue)

    def publish(self, task: StagingTask) -> None:
        """Record a task state and notify subscribers."""
        self._tasks[task.key] = task
        for queue in self._subscribers:
            queue.put_nowait(task)
        if self.done:
            self._finished.set()

    def start(self, work: Coroutine[Any, Any, None]) -> None:
        """Run the work for a task in the background."""
        handle = asyncio.create_task(work)
        self._handles.add(handle)
        handle.add_done_callback(self._handles.discard)


@dataclass
class StagingOrchestrator:
    """Fans out one enhancement request per selected photo."""

    gateway: ListingGateway
    max_concurrency: int | None = None
    current: StagingRun | None = field(default=None, init=False)

    def stage(self, photos: Sequence[Photo]) -> StagingRun | None:
        """Start enhancing the given photos; must run inside an event loop."""
        if not photos:
            _logger.info("Staging requested with no photos; ignoring")
            return None

        run = StagingRun()
        for key, photo in enumerate(photos):
            run.publish(StagingTask(key=key, source=photo))
        limiter = (
            asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None
        )
        for key in range(len(photos)):
            run.publish(run.task(key).transition(StagingState.IN_PROGRESS))
            run.start(self._enhance(run, key, limiter))

        self.current = run
        _logger.info("Staging started for %s photo(s)", len(photos))
        return run

    async def _enhance(
        self, run: StagingRun, key: int, limiter: asyncio.Semaphore | None
    ) -> None:
        task = run.task(key)
        source = task.source
        try:
            async with limiter or contextlib.nullcontext():
                enhanced = await self.gateway.enhance_image(
                    source.data, source.mime_type
                )
        except StagingFailure as exc:
            run.publish(task.transition(StagingState.FAILED, error=exc.reason))
        except Exception as exc:
            _logger.exception("Unexpected staging error for %s", source.name)
            run.publish(task.transition(StagingState.FAILED, error=str(exc)))
        else:
            run.publish(task.transition(StagingState.SUCCEEDED, enhanced=enhanced))
