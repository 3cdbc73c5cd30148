"""Background delivery of notifications, decoupled from the trade outcome."""

from __future__ import annotations

import asyncio
from typing import Sequence

from ..logger import get_logger
from .base import Notification, Notifier

logger = get_logger(__name__)


class NotificationQueue:
    """Queues notifications and delivers them from a consumer task.

    ``publish`` never blocks on delivery and never raises because a sink failed.
    """

    def __init__(self, notifiers: Sequence[Notifier], *, maxsize: int = 100):
        self.notifiers = list(notifiers)
        self._queue: asyncio.Queue[Notification | None] = asyncio.Queue(maxsize)
        self._consumer: asyncio.Task[None] | None = None

    async def __aenter__(self) -> "NotificationQueue":
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def start(self) -> None:
        if self._consumer is None:
            self._consumer = asyncio.create_task(self._run(), name="notifications")

    def publish(self, notification: Notification) -> None:
        try:
            self._queue.put_nowait(notification)
        except asyncio.QueueFull:
            logger.error("Notification queue full; dropping notification")

    async def _deliver(self, notification: Notification) -> None:
        results = await asyncio.gather(
            *[notifier.send(notification) for notifier in self.notifiers],
            return_exceptions=True,
        )
        for notifier, result in zip(self.notifiers, results):
            if isinstance(result, Exception):
                logger.error(
                    "Notification delivery via '%s' failed: %s", notifier.name, result
                )

    async def _run(self) -> None:
        while True:
            notification = await self._queue.get()
            try:
                if notification is None:
                    return
                await self._deliver(notification)
            finally:
                self._queue.task_done()

    async def close(self, timeout: float = 10.0) -> None:
        """Drain pending notifications, then stop the consumer."""
        if self._consumer is None:
            return
        await self._queue.put(None)
        try:
            await asyncio.wait_for(self._consumer, timeout)
        except asyncio.TimeoutError:
            logger.error("Timed out flushing notifications; cancelling delivery")
            self._consumer.cancel()
        self._consumer = None
