"""Output - per-query CSV artifacts and the deduplicating merge."""

from .artifacts import artifact_name, list_artifacts, read_dataset, write_dataset
from .merge import MergeReducer, MergeStats, dedupe, record_key

__all__ = [
    "artifact_name",
    "list_artifacts",
    "read_dataset",
    "write_dataset",
    "MergeReducer",
    "MergeStats",
    "dedupe",
    "record_key",
]
