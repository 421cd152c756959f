"""
Resource monitor for batch runs.

Samples CPU and resident memory of this process and its children (the
browser processes) on a fixed interval while a batch is running, and logs
each sample.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import psutil

logger = logging.getLogger(__name__)


@dataclass
class ResourceSample:
    """One CPU/memory reading."""

    cpu_percent: float
    memory_mb: float
    process_count: int
    taken_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ResourceMonitor:
    """Background sampler driven by the batch's event loop.

    Use as an async context manager around the work to watch::

        async with ResourceMonitor(interval_seconds=5):
            await orchestrator.run(queries)
    """

    def __init__(self, interval_seconds: float = 5.0, max_history: int = 100):
        """Initialize the monitor.

        Args:
            interval_seconds: Seconds between samples; 0 or less disables sampling
            max_history: Number of recent samples kept in ``history``
        """
        self.interval_seconds = interval_seconds
        self.max_history = max_history
        self.history: list[ResourceSample] = []
        self._process = psutil.Process()
        # cpu_percent() measures since the previous call on the same object,
        # so children are kept across samples rather than re-listed fresh.
        self._children: dict[int, psutil.Process] = {}
        self._task: asyncio.Task[None] | None = None

    @property
    def enabled(self) -> bool:
        return self.interval_seconds > 0

    @property
    def peak_memory_mb(self) -> float:
        return max((s.memory_mb for s in self.history), default=0.0)

    def _refresh_children(self) -> list[psutil.Process]:
        try:
            live = {child.pid: child for child in self._process.children(recursive=True)}
        except psutil.Error as e:
            logger.debug(f"Could not list child processes: {e}")
            return list(self._children.values())

        for pid in list(self._children):
            if pid not in live:
                del self._children[pid]
        for pid, child in live.items():
            # Process equality includes creation time, which catches reused pids
            if self._children.get(pid) != child:
                self._children[pid] = child
        return list(self._children.values())

    def sample(self) -> ResourceSample:
        """Take one reading across this process and its live children.

        A child's CPU share reads 0.0 on the first sample that sees it and
        is measured from then on.
        """
        processes = [self._process, *self._refresh_children()]

        cpu = 0.0
        rss = 0
        counted = 0
        for proc in processes:
            try:
                cpu += proc.cpu_percent(interval=None)
                rss += proc.memory_info().rss
                counted += 1
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                continue

        reading = ResourceSample(
            cpu_percent=round(cpu, 1),
            memory_mb=round(rss / (1024 ** 2), 1),
            process_count=counted,
        )

        self.history.append(reading)
        if len(self.history) > self.max_history:
            self.history.pop(0)
        return reading

    async def _run(self) -> None:
        while True:
            reading = self.sample()
            logger.info(
                f"Resources: cpu={reading.cpu_percent}% "
                f"memory={reading.memory_mb}MB processes={reading.process_count}"
            )
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        """Start sampling on the running event loop."""
        if not self.enabled or self._task is not None:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        """Stop sampling and wait for the task to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        if self.history:
            logger.info(f"Peak memory during run: {self.peak_memory_mb}MB")

    async def __aenter__(self) -> "ResourceMonitor":
        self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.stop()
