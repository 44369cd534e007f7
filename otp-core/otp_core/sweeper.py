"""
Periodic Sweeper
================
Cancellable background task that reclaims expired in-process state.
"""

import asyncio
from typing import Awaitable, Callable, Optional
import structlog

logger = structlog.get_logger(__name__)


class PeriodicSweeper:
    """
    Runs an async sweep callable every ``interval`` seconds.

    The task is started lazily from inside a running event loop and is
    owned by the component that created it: ``stop()`` cancels it and
    waits for it to finish, so it never outlives its owner.
    """

    def __init__(
        self,
        name: str,
        sweep: Callable[[], Awaitable[int]],
        interval: float,
    ):
        self.name = name
        self.interval = interval
        self._sweep = sweep
        self._task: Optional[asyncio.Task] = None
        self._stopped = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the background task if it is not already running."""
        if self._stopped or self.running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=f"sweeper:{self.name}"
        )
        logger.debug("sweeper_started", sweeper=self.name, interval=self.interval)

    async def stop(self) -> None:
        """Cancel the background task. Safe to call more than once."""
        self._stopped = True
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug("sweeper_stopped", sweeper=self.name)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                removed = await self._sweep()
            except Exception as e:
                logger.error("sweep_failed", sweeper=self.name, error=str(e))
                continue
            if removed:
                logger.info("sweep_completed", sweeper=self.name, removed=removed)
