"""Fire-and-forget queue for outbound Slack calls.

Request handlers only enqueue jobs; a single worker task sends them after
the inbound request has been acknowledged. A failed job is logged and
dropped: whatever state change triggered it has already been persisted.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Tuple

logger = logging.getLogger(__name__)

Job = Callable[[], Awaitable[None]]


class Outbox:
    def __init__(self) -> None:
        self._queue: "asyncio.Queue[Tuple[str, Job]]" = asyncio.Queue()
        self._worker: Optional[asyncio.Task] = None

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def submit(self, label: str, job: Job) -> None:
        self._queue.put_nowait((label, job))
        logger.debug("Queued outbound job %s", label)

    async def _run_one(self, label: str, job: Job) -> None:
        try:
            await job()
        except Exception:  # noqa: BLE001
            logger.exception("Outbound job %s failed", label)

    async def _work(self) -> None:
        while True:
            label, job = await self._queue.get()
            try:
                await self._run_one(label, job)
            finally:
                self._queue.task_done()

    def start(self) -> None:
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(self._work())

    async def stop(self, timeout: float = 5.0) -> None:
        """Let the worker finish queued jobs for up to ``timeout`` seconds, then cancel it."""

        if self._worker is None:
            return
        try:
            await asyncio.wait_for(self._queue.join(), timeout)
        except asyncio.TimeoutError:
            logger.warning("Dropping %s outbound jobs on shutdown", self.pending)
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None

    async def flush(self) -> None:
        """Run every queued job in the current task, including ones they enqueue."""

        while not self._queue.empty():
            label, job = self._queue.get_nowait()
            try:
                await self._run_one(label, job)
            finally:
                self._queue.task_done()

    async def join(self) -> None:
        await self._queue.join()


__all__ = ["Job", "Outbox"]
