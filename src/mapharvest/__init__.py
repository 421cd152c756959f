"""
mapharvest - Map listings harvester.

Drives an infinite-scroll map results feed and its detail panel across many
geographic queries, then merges the per-query results into one deduplicated
CSV dataset.
"""

__version__ = "0.1.0"
__app_name__ = "mapharvest"
