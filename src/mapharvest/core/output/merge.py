"""
Merge per-query artifacts into one deduplicated dataset.

Listings are identified by lower-cased name plus lower-cased full address.
The first occurrence wins, and files are read in query-index order, so the
same artifact set always merges to the same output.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

from .artifacts import list_artifacts, read_dataset, write_dataset

logger = logging.getLogger(__name__)


def record_key(row: dict[str, Any]) -> str:
    """Identity of a listing across queries."""
    name = str(row.get("name") or "").lower()
    address = str(row.get("full_address") or "").lower()
    return f"{name}-{address}"


def dedupe(rows: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Drop rows whose key was already seen, keeping input order."""
    seen: set[str] = set()
    unique: list[dict[str, Any]] = []
    for row in rows:
        key = record_key(row)
        if key in seen:
            continue
        seen.add(key)
        unique.append(row)
    return unique


@dataclass
class MergeStats:
    """Outcome of one merge."""

    total_records: int = 0
    unique_records: int = 0
    files_read: int = 0
    output_path: Path | None = None

    @property
    def duplicates(self) -> int:
        return self.total_records - self.unique_records

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_records": self.total_records,
            "unique_records": self.unique_records,
            "duplicates": self.duplicates,
            "files_read": self.files_read,
            "output_path": str(self.output_path) if self.output_path else None,
        }


class MergeReducer:
    """Concatenates every artifact in a directory and removes duplicates."""

    def merge(self, directory: Path, output: Path) -> MergeStats:
        """Merge artifacts from ``directory`` into ``output``.

        Args:
            directory: Folder holding per-query CSV artifacts
            output: Combined artifact path

        Returns:
            MergeStats; ``output_path`` is None when nothing was written
        """
        stats = MergeStats()
        combined: list[dict[str, Any]] = []

        for path in list_artifacts(directory):
            rows = read_dataset(path)
            combined.extend(rows)
            stats.files_read += 1
            logger.debug(f"Read {len(rows)} records from {path.name}")

        stats.total_records = len(combined)
        unique = dedupe(combined)
        stats.unique_records = len(unique)

        if write_dataset(unique, output):
            stats.output_path = output
            logger.info(
                f"Merged {stats.files_read} files: {stats.total_records} records, "
                f"{stats.unique_records} unique -> {output}"
            )
        else:
            logger.warning(f"No records found in {directory}; nothing written")

        return stats
