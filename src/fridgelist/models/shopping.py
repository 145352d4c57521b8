"""Shopping list models and their wire representation."""

from __future__ import annotations

import time
from typing import Any, Iterable, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

COMPLETE_TOLERANCE = 0.01

SnapshotSource = Literal["remote", "cache"]


def now_millis() -> int:
    return int(time.time() * 1000)


def _as_quantity(value: Any) -> float:
    # Raised as ValueError so pydantic reports it as a validation error.
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"quantity must be a number, got {type(value).__name__}")
    return float(value)


class ShoppingItem(BaseModel):
    """Single ingredient to buy, as served by the fridge API.

    Python attribute names are English; the French wire names used by the API are
    declared as aliases so ``model_validate`` accepts API payloads directly and
    ``model_dump(by_alias=True)`` reproduces them.
    """

    id: int
    ingredient_id: int = Field(alias="ingredient_id")
    name: str = Field(alias="ingredient_nom")
    needed_quantity: float = Field(default=0.0, ge=0, alias="quantite")
    unit: str = Field(default="", alias="unite")
    unit_price: float = Field(default=0.0, ge=0, alias="prix_unitaire")
    estimated_price: float = Field(default=0.0, ge=0, alias="prix_estime")
    image_ref: Optional[str] = Field(default=None, alias="image")
    category: Optional[str] = Field(default=None, alias="categorie")
    purchased: bool = Field(default=False, alias="achete")
    purchased_quantity: float = Field(default=0.0, ge=0, alias="quantite_achetee")
    remaining_quantity: float = Field(default=0.0, ge=0, alias="quantite_restante")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _fill_quantities(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        payload = dict(data)

        def _pick(*keys: str) -> Any:
            for key in keys:
                if payload.get(key) is not None:
                    return payload[key]
            return None

        needed = _pick("quantite", "needed_quantity") or 0.0
        remaining = _pick("quantite_restante", "remaining_quantity")
        if remaining is None:
            remaining = needed
        remaining = max(0.0, _as_quantity(remaining))
        payload.pop("remaining_quantity", None)
        payload["quantite_restante"] = remaining

        if _pick("quantite_achetee", "purchased_quantity") is None:
            payload.pop("purchased_quantity", None)
            payload["quantite_achetee"] = remaining
        return payload

    @property
    def purchased_total(self) -> float:
        if self.unit_price <= 0:
            return 0.0
        return self.purchased_quantity * self.unit_price

    @property
    def is_complete(self) -> bool:
        return self.remaining_quantity <= COMPLETE_TOLERANCE

    @property
    def remaining_total(self) -> float:
        return self.remaining_quantity * self.unit_price

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


def sort_items(items: Iterable[ShoppingItem]) -> Tuple[ShoppingItem, ...]:
    return tuple(sorted(items, key=lambda item: (item.name, item.id)))


def estimate_remaining_total(items: Iterable[ShoppingItem]) -> float:
    """Sum of ``remaining_quantity * unit_price`` over items not yet purchased."""

    return sum(item.remaining_total for item in items if not item.purchased)


class ListSnapshot(BaseModel):
    """Immutable point-in-time copy of the shopping list."""

    items: Tuple[ShoppingItem, ...] = Field(default_factory=tuple)
    total_estimate: float = Field(default=0.0)
    saved_at: int = Field(default_factory=now_millis, description="Milliseconds since epoch.")
    source: SnapshotSource = Field(default="remote")

    model_config = ConfigDict(frozen=True)

    @property
    def count(self) -> int:
        return len(self.items)

    @classmethod
    def from_cache(cls, items: Iterable[ShoppingItem], saved_at: Optional[int] = None) -> "ListSnapshot":
        ordered = sort_items(items)
        return cls(
            items=ordered,
            total_estimate=estimate_remaining_total(ordered),
            saved_at=saved_at if saved_at is not None else now_millis(),
            source="cache",
        )


class ListResponse(BaseModel):
    """Body of ``GET /courses``."""

    success: bool = True
    items: List[ShoppingItem] = Field(default_factory=list)
    count: int = 0
    total_estime: float = 0.0

    def to_snapshot(self) -> ListSnapshot:
        return ListSnapshot(
            items=sort_items(self.items),
            total_estimate=self.total_estime,
            source="remote",
        )


class PurchaseEntry(BaseModel):
    """One line of the ``POST /courses/sync`` payload."""

    id: int
    purchased_quantity: float = Field(ge=0, alias="quantite_achetee")
    purchased: bool = Field(alias="achete")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @classmethod
    def from_item(cls, item: ShoppingItem) -> "PurchaseEntry":
        return cls(id=item.id, purchased_quantity=item.purchased_quantity, purchased=item.purchased)


class SyncResponse(BaseModel):
    """Body of ``POST /courses/sync``."""

    success: bool = True
    message: str = ""
    items_modifies: int = 0


class SyncAcknowledgement(BaseModel):
    """Server acknowledgement of a purchase sync."""

    modified_count: int
    message: str = ""

    model_config = ConfigDict(frozen=True)


__all__ = [
    "COMPLETE_TOLERANCE",
    "ShoppingItem",
    "ListSnapshot",
    "ListResponse",
    "PurchaseEntry",
    "SyncResponse",
    "SyncAcknowledgement",
    "estimate_remaining_total",
    "sort_items",
    "now_millis",
]
