"""In-process fan-out queue and the worker that drains it."""

import asyncio
import logging

import sentry_sdk

from core.notifications.targets import FanoutRequest

logger = logging.getLogger(__name__)


class FanoutQueue:
    """Bounded FIFO of pending fan-out requests."""

    def __init__(self, maxsize: int = 1000):
        self._queue: asyncio.Queue[FanoutRequest] = asyncio.Queue(maxsize=maxsize)

    def __len__(self) -> int:
        return self._queue.qsize()

    def put(self, request: FanoutRequest) -> bool:
        """Enqueue without waiting. Returns False (and drops) when full."""
        try:
            self._queue.put_nowait(request)
            return True
        except asyncio.QueueFull:
            logger.error(f"Fan-out queue full, dropping {request.describe()}")
            return False

    async def get(self) -> FanoutRequest:
        return await self._queue.get()

    def task_done(self) -> None:
        self._queue.task_done()

    async def join(self) -> None:
        await self._queue.join()


class FanoutWorker:
    """Single consumer: delivers queued requests one at a time, in order."""

    def __init__(self, queue: FanoutQueue, service):
        self._queue = queue
        self._service = service
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if not self.running:
            self._task = asyncio.create_task(self._run())
            logger.info("Fan-out worker started")

    async def stop(self, drain_timeout: float = 5.0) -> None:
        """Wait briefly for queued requests, then stop the worker."""
        if not self.running:
            return
        try:
            await asyncio.wait_for(self._queue.join(), timeout=drain_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"Fan-out worker stopping with {len(self._queue)} request(s) undelivered"
            )
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Fan-out worker stopped")

    async def _run(self) -> None:
        while True:
            request = await self._queue.get()
            try:
                await self._service.deliver(request)
            except Exception as e:
                logger.error(f"Fan-out failed for {request.describe()}: {e}")
                sentry_sdk.capture_exception(e)
            finally:
                self._queue.task_done()
