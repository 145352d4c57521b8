"""Cache-first reconciliation between the local cache and the fridge API."""

from __future__ import annotations

import logging
import math
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Callable, Iterable, List, Optional, Sequence, TypeVar

from fridgelist.errors import PolicyError
from fridgelist.models.shopping import (
    ListSnapshot,
    PurchaseEntry,
    ShoppingItem,
    SyncAcknowledgement,
)
from fridgelist.results import Result

from .interfaces import ShoppingCache, ShoppingGateway
from .state import ListState, LoadStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")
StateListener = Callable[[ListState], None]


def clamp_quantity(quantity: float, remaining: float) -> float:
    """Bound a purchased amount to ``[0, remaining]``."""

    return min(max(quantity, 0.0), max(remaining, 0.0))


def merge_local_edits(
    fresh: Sequence[ShoppingItem],
    local: Iterable[ShoppingItem],
) -> List[ShoppingItem]:
    """Carry unsynced purchases from cached rows onto a fresh server list.

    Only rows marked purchased count as local edits, and only when the item is still
    present remotely; the purchased quantity is clamped again to the remaining amount
    the server now reports. Every other row takes the server's values.
    """

    edits = {item.id: item for item in local if item.purchased}
    merged: List[ShoppingItem] = []
    for item in fresh:
        edited = edits.get(item.id)
        if edited is None:
            merged.append(item)
            continue
        merged.append(
            item.model_copy(
                update={
                    "purchased": edited.purchased,
                    "purchased_quantity": clamp_quantity(
                        edited.purchased_quantity, item.remaining_quantity
                    ),
                }
            )
        )
    return merged


class ReconciliationEngine:
    """Owns the in-memory shopping list and decides when to trust cache or server.

    Reads are cache-first with a fire-and-forget refresh, local edits are applied to
    memory first and written through to the cache afterwards, and purchases are
    pruned locally only once the server has accepted them.

    All cache work runs on one background worker thread, so cache writes issued by
    this engine are applied in submission order. The network side of a background
    refresh runs on a separate worker and never holds up cache reads. Callers still
    serialize their own intents; the engine does not guard against two concurrent
    edits of one item.
    """

    def __init__(self, gateway: ShoppingGateway, cache: ShoppingCache) -> None:
        self._gateway = gateway
        self._cache = cache
        self._worker: Optional[threading.Thread] = None
        self._executor = ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix="fridgelist-cache",
            initializer=self._register_worker,
        )
        self._refresher = ThreadPoolExecutor(max_workers=1, thread_name_prefix="fridgelist-refresh")
        # Bumped whenever the cache is rewritten from a newer source than a pending
        # background fetch: forced fetch, sync prune, clear.
        self._cache_version = 0
        self._state_lock = threading.RLock()
        self._state = ListState()
        self._listeners: List[StateListener] = []

    def __enter__(self) -> "ReconciliationEngine":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def state(self) -> ListState:
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call ``listener`` with the current state now and after every transition."""

        with self._state_lock:
            self._listeners.append(listener)
            current = self._state
        self._deliver(listener, current)

        def unsubscribe() -> None:
            with self._state_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _transition(self, change: Callable[[ListState], ListState]) -> ListState:
        with self._state_lock:
            self._state = change(self._state)
            current = self._state
            listeners = list(self._listeners)
        for listener in listeners:
            self._deliver(listener, current)
        return current

    def _deliver(self, listener: StateListener, state: ListState) -> None:
        try:
            listener(state)
        except Exception:  # pragma: no cover - listener bugs must not break intents
            logger.exception("State listener %r failed", listener)

    def _register_worker(self) -> None:
        self._worker = threading.current_thread()

    def _on_cache(self, operation: Callable[..., Result[T]], *args: object) -> Result[T]:
        """Run a cache call on the worker and wait for it."""

        if threading.current_thread() is self._worker:
            return operation(*args)
        return self._executor.submit(operation, *args).result()

    def _write_through(self, item: ShoppingItem) -> None:
        stored = self._cache.upsert(item)
        if not stored.ok:
            # Memory stays ahead of the cache until the next full refresh.
            logger.warning(
                "Cache write for item %s failed, memory and cache diverge: %s",
                item.id,
                stored.error,
            )

    def _schedule_write_through(self, item: ShoppingItem) -> None:
        self._executor.submit(self._write_through, item)

    def _bump_cache_version(self) -> None:
        with self._state_lock:
            self._cache_version += 1

    def flush(self) -> None:
        """Block until every refresh and cache task scheduled so far has finished."""

        self._refresher.submit(lambda: None).result()
        self._executor.submit(lambda: None).result()

    def close(self) -> None:
        """Wait for pending refreshes and cache work, then stop both workers."""

        self._refresher.shutdown(wait=True)
        self._executor.shutdown(wait=True)

    def _begin_load(self) -> None:
        self._transition(
            lambda state: replace(state, status=LoadStatus.LOADING, is_loading=True, error=None)
        )

    def _finish_load(
        self,
        snapshot: ListSnapshot,
        *,
        has_local_data: bool,
        success_message: Optional[str] = None,
    ) -> None:
        def change(state: ListState) -> ListState:
            loaded = state.with_items(
                snapshot.items,
                status=LoadStatus.LOADED,
                is_loading=False,
                error=None,
                has_local_data=has_local_data,
            )
            loaded = replace(loaded, total_estimate=snapshot.total_estimate)
            if success_message is not None:
                loaded = replace(loaded, success_message=success_message)
            return loaded

        self._transition(change)

    def _fail_load(self, message: str) -> None:
        self._transition(
            lambda state: replace(
                state, status=LoadStatus.LOAD_FAILED, is_loading=False, error=message
            )
        )

    def get_list(self) -> Result[ListSnapshot]:
        """Return the cached list when there is one, otherwise fetch it.

        With a populated cache the cached snapshot is returned at once and a refresh is
        scheduled in the background; that refresh's outcome is never reported back.
        """

        self._begin_load()
        exists = self._on_cache(self._cache.exists)
        if not exists.ok:
            logger.warning("Cache existence check failed, trying the server: %s", exists.error)
        elif exists.unwrap():
            cached = self._on_cache(self._cache.snapshot)
            if cached.ok:
                snapshot = cached.unwrap()
                logger.debug("Serving %s item(s) from the local cache", snapshot.count)
                self._finish_load(snapshot, has_local_data=True)
                self._refresher.submit(self._background_refresh, self._cache_version)
                return cached
            logger.warning("Cached list unreadable, trying the server: %s", cached.error)

        return self._load_from_server(failure_prefix=None)

    def fetch_list_from_server(self) -> Result[ListSnapshot]:
        """Force a download that overwrites the cache.

        On failure the cache is left alone and nothing is read from it; falling back
        to :meth:`load_cached` is the caller's decision.
        """

        self._begin_load()
        return self._load_from_server(failure_prefix="Could not fetch the list")

    def load_cached(self) -> Result[ListSnapshot]:
        """Load whatever the cache holds without touching the network."""

        self._begin_load()
        cached = self._on_cache(self._cache.snapshot)
        if not cached.ok:
            self._fail_load(f"Could not read the local cache: {cached.error}")
            return cached
        snapshot = cached.unwrap()
        self._finish_load(snapshot, has_local_data=snapshot.count > 0)
        return cached

    def _load_from_server(self, *, failure_prefix: Optional[str]) -> Result[ListSnapshot]:
        fetched = self._gateway.fetch_list()
        if not fetched.ok:
            logger.error("Loading the list failed: %s", fetched.error)
            message = str(fetched.error)
            self._fail_load(f"{failure_prefix}: {message}" if failure_prefix else message)
            return fetched

        snapshot = fetched.unwrap()
        self._bump_cache_version()
        stored = self._on_cache(self._cache.replace_all, snapshot.items)
        if not stored.ok:
            logger.warning("Fetched list could not be cached: %s", stored.error)
        logger.info("Loaded %s item(s) from the server", snapshot.count)
        self._finish_load(
            snapshot,
            has_local_data=stored.ok and snapshot.count > 0,
            success_message=(
                f"List fetched: {snapshot.count} item(s)" if failure_prefix else None
            ),
        )
        return fetched

    def _background_refresh(self, version: int) -> None:
        try:
            fetched = self._gateway.fetch_list()
            if not fetched.ok:
                logger.info("Background refresh skipped, keeping cached list: %s", fetched.error)
                return
            stored = self._on_cache(self._store_refreshed, fetched.unwrap().items, version)
            if not stored.ok:
                logger.info("Background refresh could not update the cache: %s", stored.error)
        except Exception:  # pragma: no cover - background task must never propagate
            logger.exception("Background refresh crashed")

    def _store_refreshed(self, items: Sequence[ShoppingItem], version: int) -> Result[int]:
        if version != self._cache_version:
            logger.debug("Background refresh dropped, the cache was rewritten meanwhile")
            return Result.success(0)
        local = self._cache.get_all()
        cached_rows = local.unwrap() if local.ok else []
        merged = merge_local_edits(items, cached_rows)
        stored = self._cache.replace_all(merged)
        if stored.ok:
            logger.debug("Background refresh cached %s item(s)", len(merged))
        return stored

    def _require_item(self, item_id: int) -> Result[ShoppingItem]:
        item = self._state.find(item_id)
        if item is None:
            return Result.failure(PolicyError(f"Item {item_id} is not on the list"))
        return Result.success(item)

    def toggle_purchased(self, item_id: int) -> Result[ShoppingItem]:
        """Flip the purchased flag and reset the purchased amount to what remains."""

        found = self._require_item(item_id)
        if not found.ok:
            return found
        item = found.unwrap()
        updated = item.model_copy(
            update={
                "purchased": not item.purchased,
                "purchased_quantity": item.remaining_quantity,
            }
        )
        self._transition(lambda state: state.with_item(updated))
        self._schedule_write_through(updated)
        return Result.success(updated)

    def change_quantity(self, item_id: int, quantity: float) -> Result[ShoppingItem]:
        """Record how much of an item was bought, bounded by what remains."""

        try:
            requested = float(quantity)
        except (TypeError, ValueError):
            return Result.failure(PolicyError(f"Invalid quantity: {quantity!r}"))
        if math.isnan(requested):
            return Result.failure(PolicyError("Quantity must be a number"))

        found = self._require_item(item_id)
        if not found.ok:
            return found
        item = found.unwrap()
        updated = item.model_copy(
            update={"purchased_quantity": clamp_quantity(requested, item.remaining_quantity)}
        )
        self._transition(lambda state: state.with_item(updated))
        self._schedule_write_through(updated)
        return Result.success(updated)

    def _fail_intent(self, message: str) -> None:
        self._transition(lambda state: replace(state, is_loading=False, error=message))

    def sync(self) -> Result[SyncAcknowledgement]:
        """Push purchased items, then drop them from memory and from the cache."""

        purchased = [item for item in self._state.items if item.purchased]
        if not purchased:
            error = PolicyError("No purchased items to sync")
            self._fail_intent(str(error))
            return Result.failure(error)

        self._transition(lambda state: replace(state, is_loading=True, error=None))
        entries = [PurchaseEntry.from_item(item) for item in purchased]
        acknowledged = self._gateway.submit_purchases(entries)
        if not acknowledged.ok:
            logger.error("Sync failed: %s", acknowledged.error)
            self._fail_intent(f"Sync failed: {acknowledged.error}")
            return acknowledged

        ack = acknowledged.unwrap()
        if ack.modified_count != len(entries):
            logger.info(
                "Server acknowledged %s modification(s) for %s submitted item(s)",
                ack.modified_count,
                len(entries),
            )
        synced_ids = [item.id for item in purchased]
        self._transition(
            lambda state: state.without(
                synced_ids,
                is_loading=False,
                success_message=f"{ack.modified_count} item(s) synced",
            )
        )
        self._bump_cache_version()
        pruned = self._on_cache(self._cache.delete_purchased)
        if not pruned.ok:
            logger.warning("Synced items could not be pruned from the cache: %s", pruned.error)
        return acknowledged

    def delete_item(self, item_id: int) -> Result[bool]:
        """Delete an item remotely and forget it in memory.

        The cached row stays until the next full refresh replaces the table.
        """

        item = self._state.find(item_id)
        label = item.name if item is not None else f"Item {item_id}"

        self._transition(lambda state: replace(state, is_loading=True, error=None))
        deleted = self._gateway.delete_item(item_id)
        if not deleted.ok:
            logger.error("Deleting item %s failed: %s", item_id, deleted.error)
            self._fail_intent(f"Delete failed: {deleted.error}")
            return deleted

        self._transition(
            lambda state: state.without(
                [item_id],
                is_loading=False,
                success_message=f"{label} removed from the list",
            )
        )
        return deleted

    def clear(self) -> Result[None]:
        """Empty the cache and the in-memory list. Always succeeds."""

        self._bump_cache_version()
        cleared = self._on_cache(self._cache.delete_all)
        if not cleared.ok:
            logger.warning("Clearing the local cache failed: %s", cleared.error)
        self._transition(lambda state: ListState(success_message="Local cache cleared"))
        return Result.success(None)

    def reconfigure(self, base_url: str, api_key: str) -> None:
        self._gateway.reconfigure(base_url, api_key)

    def check_health(self) -> Result[bool]:
        return self._gateway.check_health()

    def clear_error(self) -> None:
        self._transition(lambda state: replace(state, error=None))

    def clear_success_message(self) -> None:
        self._transition(lambda state: replace(state, success_message=None))


__all__ = ["ReconciliationEngine", "clamp_quantity", "merge_local_edits"]
