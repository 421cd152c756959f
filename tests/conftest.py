"""Shared fixtures: an in-memory map results page and fast configs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pytest

from mapharvest.core.backends.base import (
    ActionFailed,
    Backend,
    BrowserPage,
    NavigationTimeout,
    WaitTimeout,
)
from mapharvest.core.config.models import (
    AppConfig,
    BatchConfig,
    RetryPolicyConfig,
    ScrollConfig,
)
from mapharvest.core.harvest import page_scripts


@dataclass(eq=False)
class FakeListing:
    """One feed row and the detail panel it opens."""

    name: str
    address: str = "1 Main St, Keiraville NSW 2500, Australia"
    phone: str | None = "(02) 4229 1234"
    website: str | None = "example.com.au"
    href: str = ""
    rating_label: str | None = "4.5 stars 120 Reviews"
    first_row: str = "Restaurant · $$"

    # Number of clicks that fail before the panel opens; -1 means never opens.
    open_failures: int = 0
    # Panel opens but is gone by the time it is read.
    vanishes: bool = False
    close_button_missing: bool = False
    # Number of close clicks that miss before the panel closes.
    close_failures: int = 0
    brief_error: bool = False

    clicks: int = 0
    close_clicks: int = 0

    def brief_payload(self) -> dict[str, Any]:
        href = self.href or (
            "https://www.google.com/maps/place/x/data=!4m7!3m6"
            f"!8m2!3d-34.4100!4d150.8800!16s%2Fg%2F1!19sChIJ{abs(hash(self.name)) % 10000}?authuser=0"
        )
        return {"href": href, "ratingLabel": self.rating_label, "firstRow": self.first_row}

    def detail_payload(self) -> dict[str, Any] | None:
        if self.vanishes:
            return None
        return {
            "name": self.name,
            "address": self.address,
            "phone": self.phone,
            "websiteText": self.website,
            "websiteHref": f"https://{self.website}/" if self.website else None,
        }


class FakeMapsPage(BrowserPage):
    """BrowserPage that answers the page scripts from in-memory state.

    ``heights`` is the feed scroll height after 0, 1, 2, ... scrolls (the
    last value repeats). ``settle_growth`` lists scroll counts at which
    waiting for the loading indicator reveals one more height step.
    With ``late_swap`` a click made while a panel is showing leaves the old
    panel rendered until it has been read once more.
    """

    def __init__(
        self,
        listings: list[FakeListing] | None = None,
        heights: list[int] | None = None,
        end_marker_after: int | None = None,
        settle_growth: set[int] | None = None,
        navigation_fails: bool = False,
        feed_ready: bool = True,
        enumeration_fails: bool = False,
        late_swap: bool = False,
    ):
        self.listings = listings or []
        self.heights = heights or [1000, 1000]
        self.end_marker_after = end_marker_after
        self.settle_growth = settle_growth or set()
        self.navigation_fails = navigation_fails
        self.feed_ready = feed_ready
        self.enumeration_fails = enumeration_fails
        self.late_swap = late_swap

        self.scrolls = 0
        self.height_index = 0
        self.open_listing: FakeListing | None = None
        self.pending_listing: FakeListing | None = None
        self.close_attempts = 0
        self.filled: list[str] = []
        self.visited: list[str] = []
        self.closed = False

    # -- helpers ---------------------------------------------------------

    @property
    def height(self) -> int:
        return self.heights[min(self.height_index, len(self.heights) - 1)]

    def _predicate(self, script: str, arg: Any) -> bool:
        if script == page_scripts.FEED_READY:
            return self.feed_ready
        if script == page_scripts.FEED_GREW:
            return self.height > arg
        if script == page_scripts.LOADING_CLEARED:
            if self.scrolls in self.settle_growth:
                self.settle_growth.discard(self.scrolls)
                self.height_index += 1
            return True
        if script == page_scripts.IN_VIEWPORT:
            return True
        if script == page_scripts.DETAIL_OPEN:
            return self.open_listing is not None
        if script == page_scripts.DETAIL_CLOSED:
            return self.open_listing is None
        raise AssertionError(f"unexpected predicate: {script[:40]}")

    # -- BrowserPage -----------------------------------------------------

    async def goto(self, url: str, timeout_ms: int | None = None) -> None:
        self.visited.append(url)
        if self.navigation_fails:
            raise NavigationTimeout(f"Navigation timeout: {url}", url=url)

    async def fill(self, selector: str, value: str, timeout_ms: int | None = None) -> None:
        assert selector == page_scripts.SEARCH_INPUT
        self.filled.append(value)

    async def click_selector(self, selector: str, timeout_ms: int | None = None) -> None:
        assert selector == page_scripts.SEARCH_BUTTON

    async def wait_for_selector(self, selector: str, timeout_ms: int | None = None) -> None:
        if selector == page_scripts.FEED_SELECTOR and not self.feed_ready:
            raise WaitTimeout(f"Timed out waiting for {selector}")

    async def wait_for_function(self, script: str, arg: Any = None, timeout_ms: int | None = None) -> None:
        if not self._predicate(script, arg):
            raise WaitTimeout("Timed out waiting for page condition")

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        if script == page_scripts.FEED_HEIGHT:
            return self.height
        if script == page_scripts.SCROLL_FEED:
            self.scrolls += 1
            self.height_index += 1
            return None
        if script == page_scripts.END_OF_LIST_VISIBLE:
            return self.end_marker_after is not None and self.scrolls >= self.end_marker_after
        if script == page_scripts.CLOSE_DETAIL:
            self.close_attempts += 1
            if self.open_listing is None:
                return True
            listing = self.open_listing
            listing.close_clicks += 1
            if listing.close_button_missing or listing.close_clicks <= listing.close_failures:
                return False
            self.open_listing = None
            return True
        if script == page_scripts.DETAIL_INFO:
            if self.open_listing is None:
                return None
            payload = self.open_listing.detail_payload()
            if self.pending_listing is not None:
                self.open_listing, self.pending_listing = self.pending_listing, None
            return payload
        raise AssertionError(f"unexpected script: {script[:40]}")

    async def query_all(self, selector: str) -> list[FakeListing]:
        assert selector == page_scripts.FEED_ITEM_SELECTOR
        if self.enumeration_fails:
            raise RuntimeError("feed detached")
        return list(self.listings)

    async def evaluate_on(self, element: FakeListing, script: str) -> Any:
        assert script == page_scripts.BRIEF_INFO
        if element.brief_error:
            raise RuntimeError("element is not attached to the DOM")
        return element.brief_payload()

    async def scroll_into_view(self, element: FakeListing) -> None:
        pass

    async def click(self, element: FakeListing, timeout_ms: int | None = None) -> None:
        element.clicks += 1
        if element.open_failures < 0 or element.clicks <= element.open_failures:
            raise ActionFailed("Click timed out")
        if self.late_swap and self.open_listing is not None:
            self.pending_listing = element
        else:
            self.open_listing = element

    async def close(self) -> None:
        self.closed = True


class FakeBackend(Backend):
    """Backend handing out one prepared FakeMapsPage."""

    def __init__(self, page: FakeMapsPage):
        self.page = page
        self.closed = False

    @property
    def name(self) -> str:
        return "fake"

    async def new_page(self) -> FakeMapsPage:
        return self.page

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fast_config(tmp_path) -> AppConfig:
    """Config with every delay and timeout at zero."""
    return AppConfig(
        retry=RetryPolicyConfig(max_attempts=3, delay_ms=0, base_timeout_ms=0),
        scroll=ScrollConfig(
            max_attempts=10,
            ready_timeout_ms=0,
            growth_timeout_ms=0,
            settle_timeout_ms=0,
        ),
        batch=BatchConfig(
            concurrency=2,
            cooldown_ms=0,
            tmp_root=tmp_path / "tmp",
            final_output=tmp_path / "all_restaurants.csv",
            monitor_interval_seconds=0,
        ),
    )


@pytest.fixture
def keiraville_listings() -> list[FakeListing]:
    return [
        FakeListing(name="Little Prince Cafe", address="1 Robsons Rd, Keiraville NSW 2500, Australia"),
        FakeListing(name="Keira Thai", address="5 Gipps Rd, Keiraville NSW 2500, Australia", phone="(02) 4226 5555"),
        FakeListing(name="Uni Pizza", address="12 Northfields Ave, Keiraville NSW 2500, Australia", website=None),
    ]
