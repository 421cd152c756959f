"""Tests for one query's harvest session."""

import asyncio

from conftest import FakeBackend, FakeListing, FakeMapsPage
from mapharvest.core.backends.base import Backend, BackendError
from mapharvest.core.harvest.records import NA, SkipReason
from mapharvest.core.harvest.session import HarvestSession, harvest_query

KEIRAVILLE = "restaurant near Keiraville, New South Wales, Australia"


def _run(page, config, query=KEIRAVILLE):
    return asyncio.run(HarvestSession(query, page, config).run())


def test_keiraville_three_items(fast_config, keiraville_listings):
    page = FakeMapsPage(listings=keiraville_listings, heights=[1000, 2000, 2000])

    result = _run(page, fast_config)

    assert result.error is None
    assert result.total_items == 3
    assert result.item_count == 3
    assert [r.name for r in result.records] == ["Little Prince Cafe", "Keira Thai", "Uni Pizza"]
    assert all(r.name != NA for r in result.records)
    assert page.filled == [KEIRAVILLE]
    assert page.visited == [fast_config.browser.maps_url]
    assert result.elapsed_seconds is not None


def test_rows_merge_detail_and_brief_fields(fast_config, keiraville_listings):
    page = FakeMapsPage(listings=keiraville_listings[:1])

    row = _run(page, fast_config).rows()[0]

    assert list(row)[:2] == ["name", "phone_number"]
    assert row["full_address"] == "1 Robsons Rd, Keiraville NSW 2500, Australia"
    assert row["postcode"] == "2500"
    assert row["category"] == "Restaurant"
    assert row["google_rating"] == 4.5
    assert row["user_rating_count"] == 120
    assert row["latitude"] == -34.41


def test_item_count_excludes_open_and_extraction_failures(fast_config):
    listings = [
        FakeListing(name="Open Kitchen"),
        FakeListing(name="Never Opens", open_failures=-1),
        FakeListing(name="Vanishes", vanishes=True),
        FakeListing(name="Also Fine"),
    ]
    page = FakeMapsPage(listings=listings)

    result = _run(page, fast_config)

    assert result.total_items == 4
    assert result.item_count == 4 - 1 - 1
    assert [r.name for r in result.records] == ["Open Kitchen", "Also Fine"]
    assert result.skipped == {SkipReason.OPEN_FAILED: 1, SkipReason.EXTRACTION_FAILED: 1}
    assert listings[3].clicks == 1


def test_item_error_does_not_stop_loop(fast_config):
    listings = [FakeListing(name="Detached", brief_error=True), FakeListing(name="Next Door")]
    page = FakeMapsPage(listings=listings)

    result = _run(page, fast_config)

    assert [r.name for r in result.records] == ["Next Door"]
    outcome = result.outcomes[0]
    assert outcome.skip_reason is SkipReason.ITEM_ERROR
    assert "not attached" in outcome.message


def test_close_failure_keeps_record_and_continues(fast_config):
    # Sticky's panel resists its own three close attempts, then closes on the next one.
    listings = [
        FakeListing(name="Sticky", address="9 Stale Rd, Keiraville NSW 2500, Australia", close_failures=3),
        FakeListing(name="After", address="2 Fresh St, Keiraville NSW 2500, Australia"),
    ]
    page = FakeMapsPage(listings=listings, late_swap=True)

    result = _run(page, fast_config)

    assert result.item_count == 2
    assert result.outcomes[0].panel_left_open is True
    assert [r.name for r in result.records] == ["Sticky", "After"]
    assert result.records[1].detail.full_address.startswith("2 Fresh St")


def test_panel_that_never_closes_skips_next_item(fast_config):
    sticky = FakeListing(name="Sticky", close_button_missing=True)
    after = FakeListing(name="After")
    page = FakeMapsPage(listings=[sticky, after], late_swap=True)

    result = _run(page, fast_config)

    assert [r.name for r in result.records] == ["Sticky"]
    assert result.outcomes[1].skip_reason is SkipReason.PANEL_STUCK
    assert result.skipped == {SkipReason.PANEL_STUCK: 1}
    assert after.clicks == 0


def test_navigation_failure_returns_empty_result(fast_config):
    page = FakeMapsPage(listings=[FakeListing(name="Unreached")], navigation_fails=True)

    result = _run(page, fast_config)

    assert result.outcomes == []
    assert result.item_count == 0
    assert result.error.startswith("navigation failed")


def test_enumeration_failure_returns_partial_result(fast_config):
    page = FakeMapsPage(listings=[FakeListing(name="Unlisted")], enumeration_fails=True)

    result = _run(page, fast_config)

    assert result.item_count == 0
    assert result.error == "feed detached"
    assert result.finished_at is not None


def test_missing_feed_is_contained(fast_config):
    page = FakeMapsPage(feed_ready=False)

    result = _run(page, fast_config)

    assert result.item_count == 0
    assert result.error is not None


def test_harvest_query_closes_backend(fast_config, keiraville_listings):
    backend = FakeBackend(FakeMapsPage(listings=keiraville_listings))

    result = asyncio.run(harvest_query(KEIRAVILLE, fast_config, lambda: backend))

    assert result.item_count == 3
    assert backend.closed


class BrokenBackend(Backend):
    def __init__(self):
        self.closed = False

    @property
    def name(self) -> str:
        return "broken"

    async def new_page(self):
        raise BackendError("Failed to launch chromium browser")

    async def close(self) -> None:
        self.closed = True


def test_harvest_query_contains_backend_failure(fast_config):
    backend = BrokenBackend()

    result = asyncio.run(harvest_query(KEIRAVILLE, fast_config, lambda: backend))

    assert result.item_count == 0
    assert "Failed to launch" in result.error
    assert backend.closed
