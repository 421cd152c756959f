"""Normalization of raw page text into listing field values."""

from .parsing import (
    NA,
    AddressParts,
    PlaceLink,
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

__all__ = [
    "NA",
    # Feed rows
    "PlaceLink",
    "parse_place_link",
    "parse_rating_label",
    "parse_category",
    # Detail panel
    "AddressParts",
    "clean_address",
    "clean_text",
    "extract_hostname",
    "normalize_phone",
    "split_address",
    "first_value",
]
