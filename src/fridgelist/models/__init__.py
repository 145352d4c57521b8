"""Pydantic models defining shared data contracts."""

from fridgelist.models.shopping import (
    ListResponse,
    ListSnapshot,
    PurchaseEntry,
    ShoppingItem,
    SyncAcknowledgement,
    SyncResponse,
)

__all__ = [
    "ListResponse",
    "ListSnapshot",
    "PurchaseEntry",
    "ShoppingItem",
    "SyncAcknowledgement",
    "SyncResponse",
]
