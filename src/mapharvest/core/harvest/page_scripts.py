"""
Selectors and in-page scripts for the map results layout.

Everything here targets one fixed page layout. Scripts are plain
JavaScript function sources evaluated through ``BrowserPage``.
"""

from __future__ import annotations

SEARCH_INPUT = "#searchboxinput"
SEARCH_BUTTON = "#searchbox-searchbutton"

FEED_SELECTOR = 'div[role="feed"]'
FEED_ITEM_SELECTOR = 'div[role="feed"] > div > div > a'


def results_marker(query: str) -> str:
    """Selector for the element labelling the result set of ``query``."""
    escaped = query.replace("\\", "\\\\").replace('"', '\\"')
    return f'[aria-label="Results for {escaped}"]'


# The detail view is the main container that does not host the feed.
_DETAIL_PANEL = """
const detailPanel = () => Array.from(document.querySelectorAll('div[role="main"]'))
    .find((el) => !el.querySelector('div[role="feed"]')) || null;
"""


# =============================================================================
# Feed scrolling
# =============================================================================

FEED_READY = """() => {
    const feed = document.querySelector('div[role="feed"]');
    return !!feed && feed.children.length > 0;
}"""

FEED_HEIGHT = """() => document.querySelector('div[role="feed"]').scrollHeight"""

SCROLL_FEED = """() => {
    const feed = document.querySelector('div[role="feed"]');
    feed.scrollTo(0, feed.scrollHeight * 2);
}"""

FEED_GREW = """(previousHeight) =>
    document.querySelector('div[role="feed"]').scrollHeight > previousHeight"""

END_OF_LIST_VISIBLE = """(marker) => {
    const node = document.evaluate(
        `//*[contains(text(), ${JSON.stringify(marker)})]`,
        document,
        null,
        XPathResult.FIRST_ORDERED_NODE_TYPE,
        null
    ).singleNodeValue;
    if (!node) return false;
    const box = node.getBoundingClientRect();
    return box.width > 0 && box.height > 0;
}"""

LOADING_CLEARED = """() => {
    const indicator = document.querySelector('.loading-indicator');
    return !indicator || indicator.style.display === 'none';
}"""


# =============================================================================
# Feed rows (brief info)
# =============================================================================

IN_VIEWPORT = """(el) => {
    const rect = el.getBoundingClientRect();
    return rect.top >= 0 && rect.bottom <= window.innerHeight;
}"""

BRIEF_INFO = """(item) => {
    const parent = item.parentElement;
    const rating = parent ? parent.querySelector('span.fontBodyMedium > span') : null;
    const body = parent ? parent.querySelector('div.fontBodyMedium') : null;
    const firstRow = body && body.children[0] ? body.children[0].textContent : '';
    return {
        href: item.href || '',
        ratingLabel: rating ? rating.getAttribute('aria-label') : null,
        firstRow: firstRow || '',
    };
}"""


# =============================================================================
# Detail panel
# =============================================================================

DETAIL_OPEN = "() => {" + _DETAIL_PANEL + "return detailPanel() !== null; }"

DETAIL_CLOSED = "() => {" + _DETAIL_PANEL + "return detailPanel() === null; }"

CLOSE_DETAIL = "() => {" + _DETAIL_PANEL + """
    const panel = detailPanel();
    if (!panel) return true;
    const button = panel.querySelector('button[aria-label="Close"]');
    if (!button) return false;
    button.click();
    return true;
}"""

DETAIL_INFO = "() => {" + _DETAIL_PANEL + """
    const panel = detailPanel();
    if (!panel) return null;

    const controlText = (selector) => {
        const control = panel.querySelector(selector);
        if (!control) return null;
        const value = control.querySelector(':scope > div > div:nth-child(2) > div');
        return (value || control).textContent;
    };
    const heading = panel.querySelector('h1, h2');
    const website = panel.querySelector('a[data-item-id^="authority"]');

    return {
        name: heading ? heading.textContent : null,
        address: controlText('button[data-item-id^="address"]'),
        phone: controlText('button[data-item-id^="phone"]'),
        websiteText: website ? website.textContent : null,
        websiteHref: website ? website.href : null,
    };
}"""
