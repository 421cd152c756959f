"""
Field extraction for feed rows and the detail panel.

The page scripts only collect raw text; the parsing helpers turn it into
records. Missing controls are data, not failures.
"""

from __future__ import annotations

from typing import Any

from mapharvest.core.backends.base import BrowserPage
from mapharvest.core.normalize.parsing import (
    clean_address,
    clean_text,
    extract_hostname,
    first_value,
    normalize_phone,
    parse_category,
    parse_place_link,
    parse_rating_label,
    split_address,
)

from . import page_scripts
from .records import NA, DetailRecord, FeedEntry, FeedItem


def brief_from_payload(payload: dict[str, Any] | None) -> FeedItem:
    """Build a FeedItem from the BRIEF_INFO script payload."""
    link = parse_place_link(first_value(payload, "href"))
    rating, count = parse_rating_label(first_value(payload, "ratingLabel"))

    return FeedItem(
        place_id=link.place_id,
        latitude=link.latitude,
        longitude=link.longitude,
        category=parse_category(first_value(payload, "firstRow")),
        google_rating=rating,
        user_rating_count=count,
    )


def detail_from_payload(payload: dict[str, Any]) -> DetailRecord:
    """Build a DetailRecord from the DETAIL_INFO script payload."""
    full_address = clean_address(first_value(payload, "address"))
    parts = split_address(full_address)
    website_url = first_value(payload, "websiteHref")

    return DetailRecord(
        name=clean_text(first_value(payload, "name")),
        phone_number=normalize_phone(first_value(payload, "phone")),
        website=extract_hostname(first_value(payload, "websiteText"), website_url),
        website_url=website_url or NA,
        full_address=full_address,
        suburb=parts.suburb,
        state=parts.state,
        postcode=parts.postcode,
        country=parts.country,
    )


async def extract_brief(page: BrowserPage, entry: FeedEntry) -> FeedItem:
    """Read brief info from a feed row without opening its detail panel."""
    payload = await page.evaluate_on(entry.element, page_scripts.BRIEF_INFO)
    return brief_from_payload(payload)


async def extract_detail(page: BrowserPage) -> DetailRecord | None:
    """Read detailed info from the open panel; None if the panel is gone."""
    payload = await page.evaluate(page_scripts.DETAIL_INFO)
    if not payload:
        return None
    return detail_from_payload(payload)
