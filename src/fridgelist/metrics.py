"""Prometheus metrics definitions for fridgelist."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

GATEWAY_CALLS = Counter(
    "fridgelist_gateway_calls_total",
    "Number of fridge API calls by operation and outcome",
    ["operation", "outcome"],
)

GATEWAY_LATENCY = Histogram(
    "fridgelist_gateway_call_duration_seconds",
    "Latency of fridge API calls",
    ["operation"],
)

CACHE_OPERATIONS = Counter(
    "fridgelist_cache_operations_total",
    "Number of local cache operations by operation and outcome",
    ["operation", "outcome"],
)

ITEMS_SYNCED = Counter(
    "fridgelist_items_synced_total",
    "Number of purchased items pushed to the fridge API",
)

__all__ = [
    "GATEWAY_CALLS",
    "GATEWAY_LATENCY",
    "CACHE_OPERATIONS",
    "ITEMS_SYNCED",
]
