"""
Harvest data structures.

A feed row yields brief info, the detail panel yields detailed info, and
the two merge into one record per listing. Each processed feed entry ends
as an ``ItemOutcome``: either a record or a skip reason.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from mapharvest.core.backends.base import ElementRef
from mapharvest.core.normalize.parsing import NA


@dataclass(frozen=True)
class FeedEntry:
    """One feed row, carried explicitly through every step that touches it."""

    index: int
    element: ElementRef

    @property
    def position(self) -> int:
        """1-based position for logs."""
        return self.index + 1


@dataclass(frozen=True)
class FeedItem:
    """Brief info read from a feed row without opening its detail panel."""

    place_id: str = NA
    latitude: float | None = None
    longitude: float | None = None
    category: str = NA
    google_rating: float | None = None
    user_rating_count: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "place_id": self.place_id,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "category": self.category,
            "google_rating": self.google_rating,
            "user_rating_count": self.user_rating_count,
        }


@dataclass(frozen=True)
class DetailRecord:
    """Detailed info read from the opened detail panel."""

    name: str = NA
    phone_number: str = NA
    website: str = NA
    website_url: str = NA
    full_address: str = NA
    suburb: str = NA
    state: str = NA
    postcode: str = NA
    country: str = NA

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "phone_number": self.phone_number,
            "website": self.website,
            "website_url": self.website_url,
            "full_address": self.full_address,
            "suburb": self.suburb,
            "state": self.state,
            "postcode": self.postcode,
            "country": self.country,
        }


@dataclass(frozen=True)
class MergedRecord:
    """Union of detail and brief fields for one listing."""

    detail: DetailRecord
    brief: FeedItem

    @property
    def name(self) -> str:
        return self.detail.name

    def to_dict(self) -> dict[str, Any]:
        """Flatten to one row, detail fields first."""
        row = self.detail.to_dict()
        row.update(self.brief.to_dict())
        return row


class SkipReason(str, Enum):
    """Why a feed entry produced no record."""

    OPEN_FAILED = "open_failed"
    EXTRACTION_FAILED = "extraction_failed"
    PANEL_STUCK = "panel_stuck"
    ITEM_ERROR = "item_error"


@dataclass(frozen=True)
class ItemOutcome:
    """Result of processing one feed entry: a record or a skip reason."""

    index: int
    record: MergedRecord | None = None
    skip_reason: SkipReason | None = None
    message: str | None = None
    panel_left_open: bool = False

    @property
    def ok(self) -> bool:
        return self.record is not None

    @classmethod
    def kept(cls, index: int, record: MergedRecord, panel_left_open: bool = False) -> "ItemOutcome":
        return cls(index=index, record=record, panel_left_open=panel_left_open)

    @classmethod
    def skipped(cls, index: int, reason: SkipReason, message: str | None = None) -> "ItemOutcome":
        return cls(index=index, skip_reason=reason, message=message)


@dataclass
class HarvestResult:
    """Everything one harvest session produced for its query."""

    query: str
    outcomes: list[ItemOutcome] = field(default_factory=list)
    total_items: int = 0
    error: str | None = None

    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime | None = None

    @property
    def records(self) -> list[MergedRecord]:
        return [outcome.record for outcome in self.outcomes if outcome.record is not None]

    @property
    def item_count(self) -> int:
        return len(self.records)

    @property
    def skipped(self) -> dict[SkipReason, int]:
        """Count of skipped entries per reason."""
        counts: dict[SkipReason, int] = {}
        for outcome in self.outcomes:
            if outcome.skip_reason is not None:
                counts[outcome.skip_reason] = counts.get(outcome.skip_reason, 0) + 1
        return counts

    @property
    def elapsed_seconds(self) -> float | None:
        if self.finished_at:
            return (self.finished_at - self.started_at).total_seconds()
        return None

    def rows(self) -> list[dict[str, Any]]:
        """Dataset rows in harvest order."""
        return [record.to_dict() for record in self.records]
