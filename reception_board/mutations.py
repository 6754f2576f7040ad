"""Single-consumer queue that runs state mutations one at a time."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Tuple

logger = logging.getLogger(__name__)

Unit = Callable[[], Awaitable[Any]]


class MutationQueue:
    """Runs submitted units strictly in submission order.

    ``submit`` never waits: it enqueues the unit and hands back a future that
    settles with that unit's own result or exception. One worker task drains
    the queue, awaiting each unit to completion before starting the next, so a
    failing unit never affects the ones queued behind it. Units are not
    cancelled when their caller stops waiting.
    """

    def __init__(self) -> None:
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._pending: Optional[asyncio.Queue[Tuple[Unit, asyncio.Future]]] = None
        self._worker: Optional[asyncio.Task] = None

    def submit(self, unit: Unit) -> asyncio.Future:
        pending = self._ensure_worker()
        future = asyncio.get_running_loop().create_future()
        pending.put_nowait((unit, future))
        return future

    async def join(self) -> None:
        """Wait until every unit submitted so far has finished."""

        if self._pending is not None and self._loop is asyncio.get_running_loop():
            await self._pending.join()

    async def aclose(self) -> None:
        await self.join()
        worker, self._worker = self._worker, None
        self._pending = None
        self._loop = None
        if worker is not None and not worker.done():
            worker.cancel()
            try:
                await worker
            except asyncio.CancelledError:
                pass

    def _ensure_worker(self) -> asyncio.Queue:
        loop = asyncio.get_running_loop()
        if self._loop is not loop or self._worker is None or self._worker.done():
            # queues and tasks are bound to the loop that first uses them
            self._loop = loop
            self._pending = asyncio.Queue()
            self._worker = loop.create_task(self._drain(self._pending))
        return self._pending

    async def _drain(self, pending: asyncio.Queue) -> None:
        while True:
            unit, future = await pending.get()
            try:
                result = await unit()
            except asyncio.CancelledError:
                if not future.done():
                    future.cancel()
                pending.task_done()
                raise
            except Exception as exc:  # noqa: BLE001
                logger.debug("Queued mutation failed: %s", exc)
                if not future.done():
                    future.set_exception(exc)
            else:
                if not future.done():
                    future.set_result(result)
            pending.task_done()


__all__ = ["MutationQueue"]
