"""Process wide memory watchdog."""

from __future__ import annotations

import asyncio
import logging

import psutil

LOGGER = logging.getLogger("pdfjoin.service.monitor")


def memory_snapshot(process: psutil.Process | None = None) -> dict[str, int]:
    """Return the current memory figures of *process* in bytes."""

    info = (process or psutil.Process()).memory_info()
    return {"rss": info.rss, "vms": info.vms}


class MemoryWatchdog:
    """Sample resident memory periodically and warn above a high-water mark.

    The watchdog only logs. It runs on its own task and never touches request
    handling.
    """

    def __init__(
        self,
        threshold_bytes: int,
        interval: float = 30.0,
        process: psutil.Process | None = None,
    ) -> None:
        self.threshold_bytes = threshold_bytes
        self.interval = interval
        self._process = process or psutil.Process()
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sample(self) -> int:
        """Take one reading, log if it is above the threshold, and return it."""

        rss = self._process.memory_info().rss
        if rss > self.threshold_bytes:
            LOGGER.warning(
                "High memory usage: %.1f MiB resident (threshold %.1f MiB)",
                rss / (1024 * 1024),
                self.threshold_bytes / (1024 * 1024),
            )
        return rss

    async def _loop(self) -> None:
        while True:
            try:
                self.sample()
            except psutil.Error as exc:
                LOGGER.error("Memory sampling failed: %s", exc)
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._loop())
        LOGGER.debug("Memory watchdog started (interval %ss)", self.interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        LOGGER.debug("Memory watchdog stopped")


__all__ = ["MemoryWatchdog", "memory_snapshot"]
