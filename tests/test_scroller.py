"""Tests for feed scrolling termination."""

import asyncio

import pytest

from conftest import FakeMapsPage
from mapharvest.core.backends.base import WaitTimeout
from mapharvest.core.harvest.scroller import FeedScroller, ScrollState


def _scroll(page, fast_config, **overrides):
    config = fast_config.scroll.model_copy(update=overrides)
    scroller = FeedScroller(page, config)
    return scroller, asyncio.run(scroller.scroll_to_end())


def test_stops_when_height_stabilizes(fast_config):
    page = FakeMapsPage(heights=[1000, 2000, 3000, 3000])

    scroller, outcome = _scroll(page, fast_config)

    assert outcome.state is ScrollState.DONE
    assert outcome.iterations == 3
    assert outcome.final_height == 3000
    assert not outcome.reached_end_marker
    assert scroller.state is ScrollState.DONE


def test_stops_on_end_marker(fast_config):
    page = FakeMapsPage(heights=[1000, 2000, 3000, 4000, 5000], end_marker_after=2)

    _, outcome = _scroll(page, fast_config)

    assert outcome.state is ScrollState.DONE
    assert outcome.reached_end_marker
    assert outcome.iterations == 2
    assert page.scrolls == 2


def test_late_rows_after_settle_keep_scrolling(fast_config):
    page = FakeMapsPage(heights=[1000, 2000, 2000, 3000, 3000], settle_growth={2})

    _, outcome = _scroll(page, fast_config)

    assert outcome.state is ScrollState.DONE
    assert outcome.final_height == 3000
    assert page.scrolls == 3


def test_exhausts_at_max_attempts(fast_config):
    page = FakeMapsPage(heights=list(range(1000, 100000, 1000)))

    _, outcome = _scroll(page, fast_config, max_attempts=5)

    assert outcome.exhausted
    assert outcome.iterations == 5
    assert page.scrolls == 5


@pytest.mark.parametrize("plateau_at", [1, 3, 7])
def test_never_exceeds_attempt_bound(fast_config, plateau_at):
    heights = [1000 * (i + 1) for i in range(plateau_at)] + [1000 * plateau_at] * 3
    page = FakeMapsPage(heights=heights)

    _, outcome = _scroll(page, fast_config, max_attempts=10)

    assert outcome.state is ScrollState.DONE
    assert outcome.iterations <= 10
    assert page.scrolls == plateau_at


def test_missing_feed_raises(fast_config):
    page = FakeMapsPage(feed_ready=False)
    scroller = FeedScroller(page, fast_config.scroll)

    with pytest.raises(WaitTimeout):
        asyncio.run(scroller.scroll_to_end())

    assert scroller.state is ScrollState.INITIALIZING
