"""Harvest - per-query search, feed scrolling and detail panel extraction."""

from .panel import DetailPanelController, PanelResult, PanelState
from .records import (
    DetailRecord,
    FeedEntry,
    FeedItem,
    HarvestResult,
    ItemOutcome,
    MergedRecord,
    SkipReason,
)
from .scroller import FeedScroller, ScrollOutcome, ScrollState
from .session import BackendFactory, HarvestSession, harvest_query

__all__ = [
    # Records
    "DetailRecord",
    "FeedEntry",
    "FeedItem",
    "HarvestResult",
    "ItemOutcome",
    "MergedRecord",
    "SkipReason",
    # Scrolling
    "FeedScroller",
    "ScrollOutcome",
    "ScrollState",
    # Detail panel
    "DetailPanelController",
    "PanelResult",
    "PanelState",
    # Session
    "BackendFactory",
    "HarvestSession",
    "harvest_query",
]
