"""Fixed-delay periodic jobs on the asyncio loop."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Run a blocking ``job`` after ``initial_delay``, then every ``period`` seconds.

    The delay is measured from the end of one run to the start of the next,
    so runs of the same task never overlap. The job runs in the loop's
    default executor; an exception is logged and the schedule continues.
    """

    def __init__(self, name: str, job: Callable[[], object], initial_delay: float, period: float):
        self.name = name
        self.job = job
        self.initial_delay = initial_delay
        self.period = period
        self.runs = 0
        self._task: Optional[asyncio.Task] = None

    async def run_once(self) -> None:
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self.job)
        except Exception:  # pylint: disable=broad-exception-caught
            logger.error("Scheduled job %s failed", self.name, exc_info=True)
        finally:
            self.runs += 1

    async def _loop(self) -> None:
        await asyncio.sleep(self.initial_delay)
        while True:
            await self.run_once()
            await asyncio.sleep(self.period)

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            logger.info(
                "Scheduling %s (initial delay %ss, period %ss)", self.name, self.initial_delay, self.period
            )
            self._task = asyncio.get_running_loop().create_task(self._loop(), name=self.name)
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
