"""Orchestrator - chunked batch runs, cooldowns, resource monitoring."""

from .monitor import ResourceMonitor, ResourceSample
from .runner import BatchOrchestrator, BatchStats, SessionRunner, chunked, run_batch

__all__ = [
    "BatchOrchestrator",
    "BatchStats",
    "SessionRunner",
    "chunked",
    "run_batch",
    "ResourceMonitor",
    "ResourceSample",
]
