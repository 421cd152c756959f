"""
Parsing utilities for normalizing extracted listing fields.

Turns raw text pulled out of the page into record values: place links into
ids and coordinates, rating labels into numbers, and address, phone and
website text into their cleaned forms. Nothing here raises on odd input;
unparseable text becomes the "N/A" sentinel or None.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

NA = "N/A"


# =============================================================================
# Place Links
# =============================================================================


PLACE_ID_PATTERN = re.compile(r"!19s(.*?)(?:\?|$)")
LATITUDE_PATTERN = re.compile(r"!3d(-?\d+\.\d+)")
LONGITUDE_PATTERN = re.compile(r"!4d(-?\d+\.\d+)")


@dataclass
class PlaceLink:
    """Identifiers encoded in a feed row's place link."""

    place_id: str
    latitude: float | None
    longitude: float | None


def parse_place_link(href: str | None) -> PlaceLink:
    """Extract the place id and coordinates from a place URL.

    Links look like ``.../data=!4m7!3m6!1s...!8m2!3d-34.41!4d150.88!16s...!19sChIJ...?authuser=0``.
    """
    href = href or ""

    place_id = NA
    match = PLACE_ID_PATTERN.search(href)
    if match and match.group(1):
        place_id = match.group(1)

    lat_match = LATITUDE_PATTERN.search(href)
    lng_match = LONGITUDE_PATTERN.search(href)

    return PlaceLink(
        place_id=place_id,
        latitude=float(lat_match.group(1)) if lat_match else None,
        longitude=float(lng_match.group(1)) if lng_match else None,
    )


# =============================================================================
# Ratings & Category
# =============================================================================


RATING_PATTERN = re.compile(r"(\d+(?:[.,]\d+)?)\s*stars?", re.IGNORECASE)
REVIEWS_PATTERN = re.compile(r"stars?\s*([\d,.\s]+?)\s*reviews?", re.IGNORECASE)


def parse_rating_label(label: str | None) -> tuple[float | None, int | None]:
    """Parse ``"4.5 stars 1,234 Reviews"`` into ``(4.5, 1234)``."""
    if not label:
        return None, None

    rating: float | None = None
    match = RATING_PATTERN.search(label)
    if match:
        rating = float(match.group(1).replace(",", "."))

    count: int | None = None
    match = REVIEWS_PATTERN.search(label)
    if match:
        digits = re.sub(r"\D", "", match.group(1))
        if digits:
            count = int(digits)

    return rating, count


def parse_category(first_row: str | None) -> str:
    """Category is the first "·"-separated segment of the row under the name."""
    if not first_row:
        return NA
    category = first_row.split("·")[0].strip()
    return category or NA


# =============================================================================
# Detail Fields
# =============================================================================


ADDRESS_STRIP_PATTERN = re.compile(r"[^\w\s,.\-/]")
WHITESPACE_PATTERN = re.compile(r"\s+")
PHONE_PATTERN = re.compile(
    r"(?:\+\d{1,3}[\s.\-]?)?\(?\d{1,4}\)?[\s.\-]?\d{1,4}[\s.\-]?\d{1,4}"
)
HOSTNAME_PATTERN = re.compile(
    r"(?:https?://)?(?:www\.)?([a-zA-Z0-9-]+(?:\.[a-zA-Z]{2,})+)"
)
STATE_POSTCODE_PATTERN = re.compile(
    r"\b(NSW|VIC|QLD|SA|WA|TAS|NT|ACT)\s+(\d{4})\b",
    re.IGNORECASE,
)
STREET_NUMBER_PATTERN = re.compile(r"^[\d/\-]+[a-zA-Z]?\s+")


def clean_text(value: str | None) -> str:
    """Collapse whitespace; empty or missing text becomes "N/A"."""
    if not value:
        return NA
    text = WHITESPACE_PATTERN.sub(" ", value).strip()
    return text or NA


def clean_address(value: str | None) -> str:
    """Strip icon glyphs and punctuation other than , . - / and normalize spaces."""
    if not value:
        return NA
    text = ADDRESS_STRIP_PATTERN.sub("", value)
    text = WHITESPACE_PATTERN.sub(" ", text).strip()
    return text or NA


def normalize_phone(value: str | None) -> str:
    """Reduce phone control text to digits, "+" and single spaces.

    ``"(02) 4229 1234"`` becomes ``"02 4229 1234"``.
    """
    if not value:
        return NA
    match = PHONE_PATTERN.search(value)
    if not match:
        return NA
    phone = re.sub(r"[^\d+]", " ", match.group(0))
    return WHITESPACE_PATTERN.sub(" ", phone).strip() or NA


def extract_hostname(text: str | None, href: str | None = None) -> str:
    """Hostname shown on the website control, falling back to the link target."""
    for candidate in (text, href):
        if not candidate:
            continue
        match = HOSTNAME_PATTERN.search(candidate)
        if match:
            return match.group(1).lower()
    return clean_text(text)


@dataclass
class AddressParts:
    """Decomposed Australian street address."""

    suburb: str = NA
    state: str = NA
    postcode: str = NA
    country: str = NA


def split_address(full_address: str | None) -> AddressParts:
    """Decompose ``"12 Foo St, Keiraville NSW 2500, Australia"`` style addresses.

    The state/postcode segment anchors the split: the suburb is whatever
    precedes the state in that segment (or the segment before it, minus a
    street number), and the country is the segment after it. Without a
    state/postcode match, the last segment is taken as the country.
    """
    parts_out = AddressParts()
    if not full_address or full_address == NA:
        return parts_out

    parts = [part.strip() for part in full_address.split(",") if part.strip()]
    if not parts:
        return parts_out

    for i in range(len(parts) - 1, -1, -1):
        match = STATE_POSTCODE_PATTERN.search(parts[i])
        if not match:
            continue

        parts_out.state = match.group(1).upper()
        parts_out.postcode = match.group(2)

        prefix = parts[i][: match.start()].strip()
        if prefix:
            parts_out.suburb = prefix
        elif i > 0:
            parts_out.suburb = STREET_NUMBER_PATTERN.sub("", parts[i - 1]).strip() or NA

        if i + 1 < len(parts):
            parts_out.country = parts[-1]
        return parts_out

    if len(parts) > 1:
        parts_out.country = parts[-1]
    if len(parts) > 2:
        parts_out.suburb = STREET_NUMBER_PATTERN.sub("", parts[-3]).strip() or NA
    return parts_out


def first_value(data: dict[str, Any] | None, key: str) -> str | None:
    """Read a string value from an evaluated script payload."""
    if not data:
        return None
    value = data.get(key)
    return value if isinstance(value, str) else None
