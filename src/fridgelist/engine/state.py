"""Observable list state published by the reconciliation engine."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Optional, Tuple

from fridgelist.models.shopping import ShoppingItem, estimate_remaining_total, sort_items


class LoadStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    LOAD_FAILED = "load_failed"


@dataclass(frozen=True)
class ListState:
    """Everything a presentation layer needs to render the list.

    Aggregates are derived from ``items`` whenever membership or quantities change
    and are never persisted.
    """

    items: Tuple[ShoppingItem, ...] = ()
    status: LoadStatus = LoadStatus.IDLE
    is_loading: bool = False
    error: Optional[str] = None
    success_message: Optional[str] = None
    total_estimate: float = 0.0
    purchased_count: int = 0
    remaining_count: int = 0
    has_local_data: bool = False

    def find(self, item_id: int) -> Optional[ShoppingItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def with_items(self, items: Iterable[ShoppingItem], **changes: object) -> "ListState":
        """Return a copy holding ``items`` with recomputed aggregates."""

        ordered = sort_items(items)
        return replace(
            self,
            items=ordered,
            total_estimate=estimate_remaining_total(ordered),
            purchased_count=sum(1 for item in ordered if item.purchased),
            remaining_count=sum(1 for item in ordered if not item.purchased),
            **changes,
        )

    def with_item(self, updated: ShoppingItem) -> "ListState":
        return self.with_items(
            updated if item.id == updated.id else item for item in self.items
        )

    def without(self, item_ids: Iterable[int], **changes: object) -> "ListState":
        dropped = set(item_ids)
        return self.with_items((item for item in self.items if item.id not in dropped), **changes)


__all__ = ["ListState", "LoadStatus"]
