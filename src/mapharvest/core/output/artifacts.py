"""
Per-query dataset artifacts.

One CSV file per query: a header row in first-record key order, one row
per record. Fields are quoted by the csv module, so commas inside names
and addresses survive a round trip.
"""

from __future__ import annotations

import csv
import logging
import re
from pathlib import Path
from typing import Any, Iterable

logger = logging.getLogger(__name__)


ARTIFACT_SUFFIX = ".csv"
INDEX_PATTERN = re.compile(r"^(.*)_(\d+)$")


def artifact_name(global_index: int, prefix: str = "restaurants") -> str:
    """File name for the artifact of the query at ``global_index``."""
    return f"{prefix}_{global_index}{ARTIFACT_SUFFIX}"


def write_dataset(rows: Iterable[dict[str, Any]], path: Path) -> bool:
    """Write rows to ``path`` as CSV.

    Args:
        rows: Records; the first one fixes the column order
        path: Output file

    Returns:
        True if a file was written, False for an empty dataset
    """
    rows = list(rows)
    if not rows:
        logger.debug(f"No rows to write for {path}")
        return False

    path.parent.mkdir(parents=True, exist_ok=True)
    fieldnames = list(rows[0].keys())

    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(rows)

    logger.debug(f"Wrote {len(rows)} rows to {path}")
    return True


def read_dataset(path: Path) -> list[dict[str, str]]:
    """Read a CSV artifact back into rows keyed by header."""
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.DictReader(f))


def _artifact_order(path: Path) -> tuple[str, int, str]:
    match = INDEX_PATTERN.match(path.stem)
    if match:
        return match.group(1), int(match.group(2)), path.name
    return path.stem, -1, path.name


def list_artifacts(directory: Path) -> list[Path]:
    """Artifacts in ``directory``, ordered by the query index in their names.

    ``restaurants_2.csv`` comes before ``restaurants_10.csv``, so merge order
    follows query order. Names without an index sort by name.
    """
    if not directory.is_dir():
        return []
    return sorted(
        (p for p in directory.iterdir() if p.is_file() and p.suffix == ARTIFACT_SUFFIX),
        key=_artifact_order,
    )
