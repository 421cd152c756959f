"""CLI command modules."""

from . import harvest

__all__ = [
    "harvest",
]
