"""In-process background queue for work that must not block a request.

Used for verification mails and provisioning hand-off. A job is a zero-arg
coroutine factory; it runs after the request that scheduled it has already
committed and answered. Job failures are logged and never reach the caller.

Started/stopped by the FastAPI lifespan in src/main.py.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

Job = Callable[[], Awaitable[None]]


class BackgroundTaskQueue:
    def __init__(self, name: str, maxsize: int = 1000) -> None:
        self._name = name
        self._queue: asyncio.Queue[tuple[str, Job]] = asyncio.Queue(maxsize=maxsize)
        self._worker: asyncio.Task[None] | None = None

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def submit(self, description: str, job: Job) -> bool:
        """Enqueue a job. Returns False (and logs) when the queue is full."""
        try:
            self._queue.put_nowait((description, job))
        except asyncio.QueueFull:
            logger.error("[%s] queue full, dropping job: %s", self._name, description)
            return False
        return True

    async def run_pending(self) -> None:
        """Drain and run every queued job in order."""
        while not self._queue.empty():
            description, job = self._queue.get_nowait()
            await self._run(description, job)
            self._queue.task_done()

    async def start(self) -> None:
        if self._worker is None:
            self._worker = asyncio.create_task(self._loop(), name=self._name)

    async def stop(self, timeout: float = 10.0) -> None:
        """Give queued jobs `timeout` seconds to finish, then cancel the worker."""
        if self._worker is None:
            return
        try:
            await asyncio.wait_for(self._queue.join(), timeout)
        except TimeoutError:
            logger.warning("[%s] stopping with %d jobs unfinished", self._name, self.pending)
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None

    async def _loop(self) -> None:
        while True:
            description, job = await self._queue.get()
            try:
                await self._run(description, job)
            finally:
                self._queue.task_done()

    async def _run(self, description: str, job: Job) -> None:
        try:
            await job()
        except Exception:
            logger.exception("[%s] job failed: %s", self._name, description)


task_queue = BackgroundTaskQueue("bh.background")
