"""
One query's harvest: search, scroll the feed, walk every row.

A session owns exactly one browser page. Failures are contained at two
boundaries: a failing row becomes a skipped ``ItemOutcome`` and the loop
moves on; a failing search, scroll or enumeration ends the session with
whatever was collected so far. Nothing propagates to the batch.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from mapharvest.core.backends.base import Backend, BackendError, BrowserPage
from mapharvest.core.config.models import AppConfig
from mapharvest.core.fetch.retries import RetryExecutor
from mapharvest.core.logging import get_contextual_logger

from . import page_scripts
from .extract import extract_brief
from .panel import DetailPanelController
from .records import FeedEntry, HarvestResult, ItemOutcome, MergedRecord, SkipReason
from .scroller import FeedScroller

BackendFactory = Callable[[], Backend]


class HarvestSession:
    """Harvests every listing the results feed shows for one query."""

    def __init__(
        self,
        query: str,
        page: BrowserPage,
        config: AppConfig | None = None,
        chunk: int | None = None,
    ):
        """Initialize the session.

        Args:
            query: Fully formatted search text
            page: Page this session drives exclusively
            config: Application config (defaults if omitted)
            chunk: Batch chunk number, for log context only
        """
        self.query = query
        self.page = page
        self.config = config or AppConfig()
        self.log = get_contextual_logger("harvest", query=query, chunk=chunk)

        retry = RetryExecutor(
            max_attempts=self.config.retry.max_attempts,
            delay_ms=self.config.retry.delay_ms,
            base_timeout_ms=self.config.retry.base_timeout_ms,
            log=self.log,
        )
        self.scroller = FeedScroller(page, self.config.scroll, log=self.log)
        self.panel = DetailPanelController(page, retry=retry, log=self.log)

    async def _open_search(self) -> None:
        """Load the maps surface, submit the query and wait for results."""
        browser = self.config.browser
        search = self.config.search

        await self.page.goto(browser.maps_url, timeout_ms=browser.navigation_timeout_ms)
        await self.page.fill(page_scripts.SEARCH_INPUT, self.query, timeout_ms=browser.action_timeout_ms)
        await self.page.click_selector(page_scripts.SEARCH_BUTTON, timeout_ms=browser.action_timeout_ms)
        await self.page.wait_for_selector(
            page_scripts.results_marker(self.query),
            timeout_ms=search.results_timeout_ms,
        )

    async def _harvest_entry(self, entry: FeedEntry) -> ItemOutcome:
        brief = await extract_brief(self.page, entry)
        panel = await self.panel.harvest(entry)

        if panel.stuck:
            return ItemOutcome.skipped(
                entry.index,
                SkipReason.PANEL_STUCK,
                message="previous detail panel could not be closed",
            )

        if not panel.opened:
            return ItemOutcome.skipped(entry.index, SkipReason.OPEN_FAILED)

        if panel.detail is None:
            self.log.warning("No details extracted for item %d", entry.position)
            return ItemOutcome.skipped(
                entry.index,
                SkipReason.EXTRACTION_FAILED,
                message="detail panel vanished before extraction",
            )

        record = MergedRecord(detail=panel.detail, brief=brief)
        self.log.info("Extracted item %d: %s", entry.position, record.name)
        return ItemOutcome.kept(entry.index, record, panel_left_open=panel.left_open)

    async def run(self) -> HarvestResult:
        """Execute the session.

        Returns:
            HarvestResult; empty if the search never loaded, partial if
            scrolling or enumeration failed
        """
        result = HarvestResult(query=self.query)
        self.log.info(f"Searching: {self.query}")

        try:
            await self._open_search()
        except Exception as e:
            self.log.error(f"Search failed for '{self.query}': {e}")
            result.error = f"navigation failed: {e}"
            result.finished_at = datetime.now(timezone.utc)
            return result

        try:
            await self.scroller.scroll_to_end()
            elements = await self.page.query_all(page_scripts.FEED_ITEM_SELECTOR)
            result.total_items = len(elements)
            self.log.info(f"Found {result.total_items} items to process")

            for index, element in enumerate(elements):
                entry = FeedEntry(index=index, element=element)
                try:
                    outcome = await self._harvest_entry(entry)
                except Exception as e:
                    self.log.error(f"Error processing item {entry.position}: {e}")
                    outcome = ItemOutcome.skipped(entry.index, SkipReason.ITEM_ERROR, message=str(e))
                result.outcomes.append(outcome)

        except Exception as e:
            self.log.exception(f"Harvest aborted for '{self.query}'")
            result.error = str(e)

        result.finished_at = datetime.now(timezone.utc)
        self.log.info(
            "Harvested %d of %d items (skipped: %s)",
            result.item_count,
            result.total_items,
            {reason.value: count for reason, count in result.skipped.items()} or "none",
        )
        return result


async def harvest_query(
    query: str,
    config: AppConfig,
    backend_factory: BackendFactory,
    chunk: int | None = None,
) -> HarvestResult:
    """Run one session on a fresh backend and always release the backend.

    A backend that cannot start yields an empty result carrying the error.
    """
    backend = backend_factory()
    try:
        page = await backend.new_page()
        session = HarvestSession(query, page, config, chunk=chunk)
        return await session.run()
    except BackendError as e:
        log = get_contextual_logger("harvest", query=query, chunk=chunk)
        log.error(f"Browser unavailable for '{query}': {e}")
        result = HarvestResult(query=query, error=f"backend failed: {e}")
        result.finished_at = datetime.now(timezone.utc)
        return result
    finally:
        await backend.close()
