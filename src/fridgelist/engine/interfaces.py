"""Collaborator contracts consumed by the reconciliation engine."""

from __future__ import annotations

from typing import Iterable, List, Protocol, Sequence

from fridgelist.models.shopping import (
    ListSnapshot,
    PurchaseEntry,
    ShoppingItem,
    SyncAcknowledgement,
)
from fridgelist.results import Result


class ShoppingGateway(Protocol):
    """Remote side of the list. Implementations must not raise."""

    def check_health(self) -> Result[bool]:
        """Succeed when the server is reachable."""

    def fetch_list(self) -> Result[ListSnapshot]:
        """Return the authoritative list."""

    def submit_purchases(self, entries: Sequence[PurchaseEntry]) -> Result[SyncAcknowledgement]:
        """Push purchased quantities."""

    def delete_item(self, item_id: int) -> Result[bool]:
        """Remove one item remotely."""

    def reconfigure(self, base_url: str, api_key: str) -> None:
        """Switch server or credentials."""


class ShoppingCache(Protocol):
    """Local persistent side of the list. Implementations must not raise."""

    def replace_all(self, items: Iterable[ShoppingItem]) -> Result[int]:
        ...

    def upsert(self, item: ShoppingItem) -> Result[ShoppingItem]:
        ...

    def delete_all(self) -> Result[int]:
        ...

    def delete_purchased(self) -> Result[int]:
        ...

    def get_all(self) -> Result[List[ShoppingItem]]:
        ...

    def exists(self) -> Result[bool]:
        ...

    def snapshot(self) -> Result[ListSnapshot]:
        ...


__all__ = ["ShoppingGateway", "ShoppingCache"]
