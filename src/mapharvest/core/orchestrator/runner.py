"""
Batch runner orchestrator.

Coordinates the full batch: chunk queries -> harvest concurrently ->
write per-query artifacts -> merge -> clean up.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable, Sequence, TypeVar

from mapharvest.core.backends.playwright_backend import PlaywrightBackend
from mapharvest.core.config.models import AppConfig, QueryEntry
from mapharvest.core.harvest.records import HarvestResult
from mapharvest.core.harvest.session import harvest_query
from mapharvest.core.logging import get_contextual_logger
from mapharvest.core.output.artifacts import artifact_name, write_dataset
from mapharvest.core.output.merge import MergeReducer, MergeStats

from .monitor import ResourceMonitor

logger = logging.getLogger(__name__)

T = TypeVar("T")

SessionRunner = Callable[[str, int], Awaitable[HarvestResult]]
"""Harvests one formatted query; receives the query and its chunk number."""

Sleeper = Callable[[float], Awaitable[Any]]


def chunked(items: Sequence[T], size: int) -> list[list[T]]:
    """Split ``items`` into ordered chunks of at most ``size``."""
    if size < 1:
        raise ValueError("chunk size must be >= 1")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


@dataclass
class BatchStats:
    """Statistics for a batch run.

    Per-query figures are keyed by the query's global index, so a name that
    appears twice in the query list is counted twice.
    """

    queries: int = 0
    chunks: int = 0
    formatted_queries: list[str] = field(default_factory=list)
    artifacts: list[Path] = field(default_factory=list)
    records_per_query: dict[int, int] = field(default_factory=dict)
    failed_indexes: set[int] = field(default_factory=set)
    tmp_dir: Path | None = None
    merge: MergeStats | None = None

    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime | None = None

    @property
    def total_records(self) -> int:
        return sum(self.records_per_query.values())

    @property
    def failed_queries(self) -> list[str]:
        """Failed query texts in query order."""
        return [self.formatted_queries[i] for i in sorted(self.failed_indexes)]

    @property
    def duration_seconds(self) -> float | None:
        """Get run duration in seconds."""
        if self.finished_at:
            return (self.finished_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "queries": self.queries,
            "chunks": self.chunks,
            "artifacts": len(self.artifacts),
            "total_records": self.total_records,
            "failed_queries": len(self.failed_queries),
            "unique_records": self.merge.unique_records if self.merge else 0,
            "duration_seconds": self.duration_seconds,
        }


class BatchOrchestrator:
    """Runs many harvest sessions in bounded-concurrency chunks.

    Chunks run strictly one after another; every session of a chunk runs
    concurrently and the chunk ends only when all of them have settled.
    Each session's dataset is written as soon as that session completes,
    so at most one chunk of results is held in memory.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        session_runner: SessionRunner | None = None,
        sleep: Sleeper = asyncio.sleep,
        merger: MergeReducer | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            config: Application config (defaults if omitted)
            session_runner: Harvests one query (default: Playwright session)
            sleep: Awaitable used for the inter-chunk cooldown
            merger: Merge step run after all chunks
        """
        self.config = config or AppConfig()
        self.session_runner = session_runner or self._default_session_runner
        self.sleep = sleep
        self.merger = merger or MergeReducer()

    async def _default_session_runner(self, query: str, chunk: int) -> HarvestResult:
        return await harvest_query(
            query,
            self.config,
            lambda: PlaywrightBackend.from_config(self.config.browser),
            chunk=chunk,
        )

    def format_queries(self, entries: Sequence[QueryEntry | str]) -> list[str]:
        """Apply the configured template to query names."""
        template = self.config.search.query_template
        return [
            entry.format(template) if isinstance(entry, QueryEntry) else QueryEntry(name=entry).format(template)
            for entry in entries
        ]

    async def _run_one(
        self,
        global_index: int,
        query: str,
        chunk_number: int,
        tmp_dir: Path,
        stats: BatchStats,
    ) -> None:
        log = get_contextual_logger("batch", query=query, chunk=chunk_number)
        result = await self.session_runner(query, chunk_number)

        stats.records_per_query[global_index] = result.item_count
        if result.error:
            stats.failed_indexes.add(global_index)

        path = tmp_dir / artifact_name(global_index)
        if write_dataset(result.rows(), path):
            stats.artifacts.append(path)
            log.info(f"Saved {result.item_count} records to {path.name}")
        else:
            log.warning("No records harvested; no artifact written")

    async def run_chunks(self, queries: Sequence[str], tmp_dir: Path) -> BatchStats:
        """Harvest every query chunk by chunk, writing artifacts into ``tmp_dir``.

        Args:
            queries: Formatted search strings, in order
            tmp_dir: Directory for per-query artifacts

        Returns:
            BatchStats for the chunked phase (no merge)
        """
        size = self.config.batch.concurrency
        chunks = chunked(queries, size)
        stats = BatchStats(
            queries=len(queries),
            chunks=len(chunks),
            formatted_queries=list(queries),
            tmp_dir=tmp_dir,
        )
        tmp_dir.mkdir(parents=True, exist_ok=True)

        for chunk_index, chunk in enumerate(chunks):
            chunk_number = chunk_index + 1
            logger.info(f"Processing chunk {chunk_number}/{len(chunks)} ({len(chunk)} queries)")

            outcomes = await asyncio.gather(
                *(
                    self._run_one(chunk_index * size + offset, query, chunk_number, tmp_dir, stats)
                    for offset, query in enumerate(chunk)
                ),
                return_exceptions=True,
            )

            for offset, (query, outcome) in enumerate(zip(chunk, outcomes)):
                if isinstance(outcome, BaseException):
                    logger.error(f"Query failed: {query}: {outcome}")
                    global_index = chunk_index * size + offset
                    stats.records_per_query.setdefault(global_index, 0)
                    stats.failed_indexes.add(global_index)

            if chunk_index < len(chunks) - 1 and self.config.batch.cooldown_ms > 0:
                logger.info(f"Cooling down for {self.config.batch.cooldown_ms} ms")
                await self.sleep(self.config.batch.cooldown_ms / 1000)

        stats.finished_at = datetime.now(timezone.utc)
        return stats

    def _new_tmp_dir(self) -> Path:
        return self.config.batch.tmp_root / str(int(time.time() * 1000))

    async def run(self, entries: Sequence[QueryEntry | str]) -> BatchStats:
        """Execute a complete batch: harvest, merge and clean up.

        Args:
            entries: Query names (template is applied here)

        Returns:
            BatchStats including the merge outcome
        """
        queries = self.format_queries(entries)
        tmp_dir = self._new_tmp_dir()
        batch = self.config.batch

        logger.info(
            f"Starting batch: {len(queries)} queries, concurrency={batch.concurrency}, "
            f"cooldown={batch.cooldown_ms}ms, tmp={tmp_dir}"
        )

        async with ResourceMonitor(interval_seconds=batch.monitor_interval_seconds):
            stats = await self.run_chunks(queries, tmp_dir)

        stats.merge = self.merger.merge(tmp_dir, batch.final_output)

        if batch.keep_tmp:
            logger.info(f"Keeping per-query artifacts in {tmp_dir}")
        else:
            shutil.rmtree(tmp_dir, ignore_errors=True)
            logger.debug(f"Removed {tmp_dir}")

        stats.finished_at = datetime.now(timezone.utc)
        logger.info(
            f"Batch finished: {stats.total_records} records from {stats.queries} queries, "
            f"{stats.merge.unique_records} unique, {len(stats.failed_queries)} failed"
        )
        logger.debug(f"Batch stats: {stats.to_dict()} merge: {stats.merge.to_dict()}")
        return stats


async def run_batch(
    entries: Sequence[QueryEntry | str],
    config: AppConfig | None = None,
) -> BatchStats:
    """Convenience function to run a batch with the Playwright backend.

    Args:
        entries: Query names
        config: Application config

    Returns:
        BatchStats with execution statistics
    """
    orchestrator = BatchOrchestrator(config)
    return await orchestrator.run(entries)
