"""
Infinite-scroll feed exhaustion.

The results feed is virtualized and lazily rendered, so growth of its
scroll height is the only reliable signal that more rows arrived. The
scroller keeps over-scrolling until an explicit end-of-list marker shows
up, the height stops changing across two measurements, or the iteration
limit runs out.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from mapharvest.core.backends.base import BrowserPage, WaitTimeout
from mapharvest.core.config.models import ScrollConfig

from . import page_scripts

logger = logging.getLogger(__name__)


class ScrollState(str, Enum):
    """FeedScroller states."""

    INITIALIZING = "initializing"
    SCROLLING = "scrolling"
    STABILITY_CHECK = "stability_check"
    DONE = "done"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class ScrollOutcome:
    """Terminal state of one scroll run."""

    state: ScrollState
    iterations: int
    final_height: int
    reached_end_marker: bool = False

    @property
    def exhausted(self) -> bool:
        return self.state is ScrollState.EXHAUSTED


class FeedScroller:
    """Drives the results feed to its end.

    States: INITIALIZING -> SCROLLING -> STABILITY_CHECK -> {DONE | EXHAUSTED}.
    EXHAUSTED is a soft stop: whatever loaded so far is used.
    """

    def __init__(
        self,
        page: BrowserPage,
        config: ScrollConfig | None = None,
        log: logging.Logger | logging.LoggerAdapter | None = None,
    ):
        self.page = page
        self.config = config or ScrollConfig()
        self.log = log or logger
        self.state = ScrollState.INITIALIZING

    async def _feed_height(self) -> int:
        return int(await self.page.evaluate(page_scripts.FEED_HEIGHT))

    async def _initialize(self) -> int:
        """Wait for the feed to mount at least one row; return its height."""
        self.state = ScrollState.INITIALIZING
        await self.page.wait_for_selector(
            page_scripts.FEED_SELECTOR,
            timeout_ms=self.config.ready_timeout_ms,
        )
        await self.page.wait_for_function(
            page_scripts.FEED_READY,
            timeout_ms=self.config.ready_timeout_ms,
        )
        return await self._feed_height()

    async def _scroll(self, last_height: int) -> None:
        """Over-scroll to twice the content height, then wait for growth."""
        self.state = ScrollState.SCROLLING
        await self.page.evaluate(page_scripts.SCROLL_FEED)
        try:
            await self.page.wait_for_function(
                page_scripts.FEED_GREW,
                arg=last_height,
                timeout_ms=self.config.growth_timeout_ms,
            )
        except WaitTimeout:
            self.log.debug("Feed did not grow past %d within %d ms", last_height, self.config.growth_timeout_ms)

    async def _end_marker_visible(self) -> bool:
        return bool(
            await self.page.evaluate(
                page_scripts.END_OF_LIST_VISIBLE,
                self.config.end_marker_text,
            )
        )

    async def _settled_height(self) -> int:
        """Let a trailing loading indicator clear, then measure once more."""
        try:
            await self.page.wait_for_function(
                page_scripts.LOADING_CLEARED,
                timeout_ms=self.config.settle_timeout_ms,
            )
        except WaitTimeout:
            pass
        return await self._feed_height()

    async def scroll_to_end(self) -> ScrollOutcome:
        """Run the state machine to a terminal state.

        Returns:
            ScrollOutcome with DONE or EXHAUSTED

        Raises:
            WaitTimeout: If the feed never mounted (INITIALIZING failed)
        """
        last_height = await self._initialize()
        self.log.info("Scrolling to load all results...")

        iterations = 0
        while iterations < self.config.max_attempts:
            await self._scroll(last_height)

            self.state = ScrollState.STABILITY_CHECK
            if await self._end_marker_visible():
                self.state = ScrollState.DONE
                self.log.info("Reached the end of the list after %d scrolls", iterations + 1)
                return ScrollOutcome(
                    state=self.state,
                    iterations=iterations + 1,
                    final_height=await self._feed_height(),
                    reached_end_marker=True,
                )

            new_height = await self._feed_height()
            if new_height == last_height:
                final_check = await self._settled_height()
                if final_check == last_height:
                    self.state = ScrollState.DONE
                    self.log.info("No more results to load after %d scrolls", iterations + 1)
                    return ScrollOutcome(
                        state=self.state,
                        iterations=iterations + 1,
                        final_height=final_check,
                    )
                new_height = final_check

            last_height = new_height
            iterations += 1

            if iterations % self.config.progress_every == 0:
                self.log.info("Scrolled %d times...", iterations)

        self.state = ScrollState.EXHAUSTED
        self.log.warning("Reached maximum scroll attempts (%d)", self.config.max_attempts)
        return ScrollOutcome(
            state=self.state,
            iterations=iterations,
            final_height=last_height,
        )
