"""Tests for listing field normalization."""

import pytest

from mapharvest.core.normalize.parsing import (
    NA,
    clean_address,
    extract_hostname,
    normalize_phone,
    parse_category,
    parse_place_link,
    parse_rating_label,
    split_address,
)


def test_parse_place_link_reads_id_and_coordinates():
    href = (
        "https://www.google.com/maps/place/Keira+Thai/data=!4m7!3m6!1s0x6b1:0x2"
        "!8m2!3d-34.4049!4d150.8741!16s%2Fg%2F11b!19sChIJabc123?authuser=0&hl=en"
    )

    link = parse_place_link(href)

    assert link.place_id == "ChIJabc123"
    assert link.latitude == pytest.approx(-34.4049)
    assert link.longitude == pytest.approx(150.8741)


def test_parse_place_link_missing_parts():
    link = parse_place_link(None)

    assert link.place_id == NA
    assert link.latitude is None
    assert link.longitude is None


@pytest.mark.parametrize(
    "label, expected",
    [
        ("4.5 stars 1,234 Reviews", (4.5, 1234)),
        ("4.0 stars 12 Reviews", (4.0, 12)),
        ("No reviews", (None, None)),
        (None, (None, None)),
    ],
)
def test_parse_rating_label(label, expected):
    assert parse_rating_label(label) == expected


def test_parse_category_takes_first_segment():
    assert parse_category("Thai restaurant · $$ · 5 Gipps Rd") == "Thai restaurant"
    assert parse_category("") == NA


def test_clean_address_strips_icon_glyphs():
    assert clean_address("  1/5 Gipps Rd,\nKeiraville NSW 2500") == "1/5 Gipps Rd, Keiraville NSW 2500"
    assert clean_address(None) == NA


def test_normalize_phone():
    assert normalize_phone(" (02) 4229 1234") == "02 4229 1234"
    assert normalize_phone("+61 2 4229 1234") == "+61 2 4229 1234"
    assert normalize_phone("call us") == NA


def test_extract_hostname_prefers_link_text():
    assert extract_hostname("www.KeiraThai.com.au", "https://other.example/") == "keirathai.com.au"
    assert extract_hostname(None, "https://uni-pizza.com.au/menu") == "uni-pizza.com.au"
    assert extract_hostname(None, None) == NA


def test_split_address_australian_format():
    parts = split_address("12 Northfields Ave, Keiraville NSW 2500, Australia")

    assert parts.suburb == "Keiraville"
    assert parts.state == "NSW"
    assert parts.postcode == "2500"
    assert parts.country == "Australia"


def test_split_address_without_state_segment():
    parts = split_address("Shop 3, Crown St Mall, Wollongong")

    assert parts.state == NA
    assert parts.postcode == NA
    assert parts.country == "Wollongong"
