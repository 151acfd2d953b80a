from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

Sender = Callable[[int, str], Awaitable[None]]


class FixedWindowLimiter:
    """At most `cap` acquisitions per fixed window of `interval_s` seconds."""

    def __init__(self, interval_s: float, cap: int, clock: Callable[[], float] = time.monotonic) -> None:
        if interval_s <= 0 or cap < 1:
            raise ValueError("interval_s must be > 0 and cap >= 1")
        self.interval_s = interval_s
        self.cap = cap
        self._clock = clock
        self._window_start: Optional[float] = None
        self._count = 0

    async def acquire(self) -> None:
        while True:
            now = self._clock()
            if self._window_start is None or now - self._window_start >= self.interval_s:
                self._window_start = now
                self._count = 0
            if self._count < self.cap:
                self._count += 1
                return
            await asyncio.sleep(self._window_start + self.interval_s - now)


class NotificationQueue:
    """
    Ordered, rate-limited dispatcher for outbound alert messages.

    `enqueue` returns immediately; a worker task delivers items in order
    through the limiter. A failed send is logged and skipped (no retry).
    While `enabled` is False, dequeued items are dropped silently.
    """

    def __init__(
        self,
        send: Sender,
        interval_ms: int = 500,
        interval_cap: int = 2,
        enabled: bool = True,
    ) -> None:
        self._send = send
        self._limiter = FixedWindowLimiter(interval_ms / 1000.0, interval_cap)
        self.enabled = enabled
        self._queue: asyncio.Queue[tuple[int, str]] = asyncio.Queue()
        self._worker: Optional[asyncio.Task] = None
        self.sent = 0
        self.failed = 0
        self.dropped = 0

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def enqueue(self, recipient: int, message: str) -> None:
        """Queue a message; must be called from within the running event loop."""
        loop = asyncio.get_running_loop()
        self._queue.put_nowait((recipient, message))
        if self._worker is None or self._worker.done():
            self._worker = loop.create_task(self._drain(), name="notification_queue")

    async def join(self) -> None:
        await self._queue.join()

    async def close(self) -> None:
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None

    async def _drain(self) -> None:
        while True:
            recipient, message = await self._queue.get()
            try:
                if not self.enabled:
                    self.dropped += 1
                    logger.debug("Notifications disabled, dropping message to %s", recipient)
                    continue
                await self._limiter.acquire()
                await self._send(recipient, message)
                self.sent += 1
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.failed += 1
                logger.error("Notification to %s failed: %s", recipient, e)
            finally:
                self._queue.task_done()
