"""Fetch utilities - bounded retries for page interactions."""

from .retries import RetryExecutor, attempt_timeout_ms

__all__ = [
    "RetryExecutor",
    "attempt_timeout_ms",
]
