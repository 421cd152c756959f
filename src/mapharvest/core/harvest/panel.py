"""
Detail panel open/extract/close protocol.

Per item: CLOSED -> OPENING -> OPEN -> EXTRACTING -> CLOSING -> CLOSED.
Scrolling the row into view, activating it and closing the panel are each
retried on their own; a scroll can succeed while the click still loses to
an animation in flight.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from mapharvest.core.backends.base import BrowserPage, ElementNotFound
from mapharvest.core.fetch.retries import RetryExecutor

from . import page_scripts
from .extract import extract_detail
from .records import DetailRecord, FeedEntry

logger = logging.getLogger(__name__)


class PanelState(str, Enum):
    """DetailPanelController states."""

    CLOSED = "closed"
    OPENING = "opening"
    OPEN = "open"
    EXTRACTING = "extracting"
    CLOSING = "closing"


@dataclass(frozen=True)
class PanelResult:
    """What the panel protocol produced for one feed entry."""

    opened: bool
    detail: DetailRecord | None = None
    closed: bool = False
    stuck: bool = False

    @property
    def left_open(self) -> bool:
        return self.opened and not self.closed


class DetailPanelController:
    """Opens, reads and closes the detail panel for one feed entry at a time.

    ``detail_open`` records whether this controller believes a panel is
    showing; the page-side checks look for a main container that does not
    host the feed rather than counting containers. A panel left open by an
    earlier entry is closed before the next one is activated, otherwise the
    open check would pass on the stale panel.
    """

    def __init__(
        self,
        page: BrowserPage,
        retry: RetryExecutor | None = None,
        log: logging.Logger | logging.LoggerAdapter | None = None,
    ):
        self.page = page
        self.log = log or logger
        self.retry = retry or RetryExecutor(log=self.log)
        self.state = PanelState.CLOSED
        self.detail_open = False

    async def _scroll_into_view(self, entry: FeedEntry, attempt: int) -> None:
        await self.page.scroll_into_view(entry.element)
        await self.page.wait_for_function(
            page_scripts.IN_VIEWPORT,
            arg=entry.element,
            timeout_ms=self.retry.timeout_for(attempt),
        )

    async def _activate(self, entry: FeedEntry, attempt: int) -> None:
        timeout_ms = self.retry.timeout_for(attempt)
        await self.page.click(entry.element, timeout_ms=timeout_ms)
        await self.page.wait_for_function(page_scripts.DETAIL_OPEN, timeout_ms=timeout_ms)

    async def _close(self, attempt: int) -> None:
        clicked = await self.page.evaluate(page_scripts.CLOSE_DETAIL)
        if not clicked:
            raise ElementNotFound("Close button not found in detail panel")
        await self.page.wait_for_function(
            page_scripts.DETAIL_CLOSED,
            timeout_ms=self.retry.timeout_for(attempt),
        )

    async def open(self, entry: FeedEntry) -> bool:
        """Scroll the row into view and activate it until the panel shows."""
        self.state = PanelState.OPENING

        scrolled = await self.retry.execute(
            lambda attempt: self._scroll_into_view(entry, attempt),
            f"Scrolling to item {entry.position}",
        )
        if not scrolled:
            self.state = PanelState.CLOSED
            return False

        activated = await self.retry.execute(
            lambda attempt: self._activate(entry, attempt),
            f"Opening details for item {entry.position}",
        )
        if not activated:
            self.state = PanelState.CLOSED
            return False

        self.state = PanelState.OPEN
        self.detail_open = True
        return True

    async def extract(self) -> DetailRecord | None:
        """Read the open panel. Missing controls come back as "N/A"."""
        self.state = PanelState.EXTRACTING
        return await extract_detail(self.page)

    async def close(self, entry: FeedEntry, action: str = "Closing details") -> bool:
        """Close the panel and wait until only the results view remains."""
        self.state = PanelState.CLOSING

        closed = await self.retry.execute(
            self._close,
            f"{action} for item {entry.position}",
        )
        self.state = PanelState.CLOSED
        self.detail_open = not closed
        return closed

    async def harvest(self, entry: FeedEntry) -> PanelResult:
        """Run the whole protocol for one entry.

        An entry that never opens is skipped without a close attempt. A
        failed close keeps the extracted detail; the caller moves on. If a
        panel is still open from an earlier entry and cannot be closed, the
        entry is not activated at all and comes back ``stuck``.
        """
        if self.detail_open:
            self.log.warning("Detail panel still open before item %d; closing it first", entry.position)
            if not await self.close(entry, action="Closing stale details"):
                self.log.error(
                    "Skipping item %d: stale detail panel did not close after %d attempts",
                    entry.position,
                    self.retry.max_attempts,
                )
                return PanelResult(opened=False, stuck=True)

        if not await self.open(entry):
            self.log.error(
                "Failed to open details for item %d after %d attempts",
                entry.position,
                self.retry.max_attempts,
            )
            return PanelResult(opened=False)

        try:
            detail = await self.extract()
        finally:
            closed = await self.close(entry)

        if not closed:
            self.log.error(
                "Failed to close details for item %d after %d attempts",
                entry.position,
                self.retry.max_attempts,
            )

        return PanelResult(opened=True, detail=detail, closed=closed)
