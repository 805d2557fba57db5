from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Job = Callable[[], Awaitable[T]]


@dataclass(frozen=True)
class JobOutcome(Generic[T]):
    label: str
    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class BackgroundWorkerPool:
    """
    Fixed number of asyncio workers draining one FIFO queue.

    ``submit`` never waits: it queues the job and hands back a future that
    resolves to a ``JobOutcome``. Job failures end up in the outcome, the
    future itself never carries an exception.
    """

    def __init__(self, size: int = 2, *, name: str = "pvpstats-db"):
        self.size = max(1, int(size))
        self.name = name
        self._queue: asyncio.Queue[tuple[str, Job[Any], asyncio.Future]] | None = None
        self._workers: list[asyncio.Task] = []
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            return
        self._queue = asyncio.Queue()
        self._workers = [
            asyncio.create_task(self._work(), name=f"{self.name}-{idx}")
            for idx in range(self.size)
        ]
        self._running = True
        logger.debug("Worker pool %s started with %s workers", self.name, self.size)

    def submit(self, label: str, job: Job[T]) -> "asyncio.Future[JobOutcome[T]]":
        if not self._running or self._queue is None:
            raise RuntimeError(f"Worker pool {self.name} is not running")
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._queue.put_nowait((label, job, future))
        return future

    async def drain(self) -> None:
        if self._queue is not None:
            await self._queue.join()

    async def close(self, timeout: float = 5.0) -> None:
        if not self._running or self._queue is None:
            return
        self._running = False
        try:
            await asyncio.wait_for(self._queue.join(), timeout)
        except asyncio.TimeoutError:
            logger.warning("Worker pool %s closed with %s jobs still queued", self.name, self._queue.qsize())
        for task in self._workers:
            task.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        while not self._queue.empty():
            label, _job, future = self._queue.get_nowait()
            logger.warning("Dropping queued job %s", label)
            future.cancel()
            self._queue.task_done()

    async def _work(self) -> None:
        assert self._queue is not None
        queue = self._queue
        while True:
            label, job, future = await queue.get()
            try:
                if future.cancelled():
                    continue
                try:
                    outcome = JobOutcome(label=label, value=await job())
                except asyncio.CancelledError:
                    future.cancel()
                    raise
                except Exception as exc:
                    outcome = JobOutcome(label=label, error=exc)
                if not future.done():
                    future.set_result(outcome)
            finally:
                queue.task_done()
