"""Test doubles and builders shared across the suite."""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional, Sequence

from fridgelist.errors import FridgelistError
from fridgelist.models.shopping import (
    ListSnapshot,
    PurchaseEntry,
    ShoppingItem,
    SyncAcknowledgement,
)
from fridgelist.results import Result


def item_payload(
    item_id: int = 1,
    name: str = "Milk",
    *,
    remaining: float = 2.0,
    unit: str = "L",
    unit_price: float = 1.5,
    purchased: bool = False,
    purchased_quantity: Optional[float] = None,
) -> Dict[str, Any]:
    """Build an item in the fridge API wire format."""

    return {
        "id": item_id,
        "ingredient_id": 100 + item_id,
        "ingredient_nom": name,
        "quantite": remaining,
        "unite": unit,
        "prix_unitaire": unit_price,
        "prix_estime": remaining * unit_price,
        "image": None,
        "categorie": "Dairy",
        "achete": purchased,
        "quantite_achetee": remaining if purchased_quantity is None else purchased_quantity,
        "quantite_restante": remaining,
    }


def make_item(item_id: int = 1, name: str = "Milk", **kwargs: Any) -> ShoppingItem:
    return ShoppingItem.model_validate(item_payload(item_id, name, **kwargs))


def make_snapshot(*items: ShoppingItem, total: Optional[float] = None) -> ListSnapshot:
    ordered = tuple(sorted(items, key=lambda item: item.name))
    estimate = total if total is not None else sum(item.estimated_price for item in items)
    return ListSnapshot(items=ordered, total_estimate=estimate, source="remote")


class FakeGateway:
    """Scriptable stand-in for the fridge API client."""

    def __init__(self) -> None:
        self.snapshot = ListSnapshot()
        self.fetch_error: Optional[FridgelistError] = None
        self.sync_error: Optional[FridgelistError] = None
        self.delete_error: Optional[FridgelistError] = None
        self.health_error: Optional[FridgelistError] = None
        self.modified_count: Optional[int] = None
        self.fetch_gate: Optional[threading.Event] = None
        self.calls: List[str] = []
        self.submitted: List[List[PurchaseEntry]] = []
        self.deleted: List[int] = []
        self.configured_with: Optional[tuple[str, str]] = None

    def check_health(self) -> Result[bool]:
        self.calls.append("check_health")
        if self.health_error is not None:
            return Result.failure(self.health_error)
        return Result.success(True)

    def fetch_list(self) -> Result[ListSnapshot]:
        self.calls.append("fetch_list")
        if self.fetch_gate is not None:
            self.fetch_gate.wait(timeout=5)
        if self.fetch_error is not None:
            return Result.failure(self.fetch_error)
        return Result.success(self.snapshot)

    def submit_purchases(self, entries: Sequence[PurchaseEntry]) -> Result[SyncAcknowledgement]:
        self.calls.append("submit_purchases")
        if self.sync_error is not None:
            return Result.failure(self.sync_error)
        self.submitted.append(list(entries))
        count = len(entries) if self.modified_count is None else self.modified_count
        return Result.success(SyncAcknowledgement(modified_count=count, message="ok"))

    def delete_item(self, item_id: int) -> Result[bool]:
        self.calls.append("delete_item")
        if self.delete_error is not None:
            return Result.failure(self.delete_error)
        self.deleted.append(item_id)
        return Result.success(True)

    def reconfigure(self, base_url: str, api_key: str) -> None:
        self.configured_with = (base_url, api_key)
