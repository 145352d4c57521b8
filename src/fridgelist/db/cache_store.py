"""Local SQLite cache of the shopping list."""
# mypy: ignore-errors

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, Iterable, List, Optional, TypeVar

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fridgelist.config import get_settings
from fridgelist.errors import CacheError
from fridgelist.metrics import CACHE_OPERATIONS
from fridgelist.models.shopping import ListSnapshot, ShoppingItem, now_millis
from fridgelist.results import Result

from .models import CachedItemORM
from .repository import create_cache_engine, create_session_factory, session_scope

logger = logging.getLogger(__name__)

T = TypeVar("T")
CacheListener = Callable[[List[ShoppingItem]], None]


def _to_model(row: CachedItemORM) -> ShoppingItem:
    return ShoppingItem.model_validate(
        {
            "id": row.id,
            "ingredient_id": row.ingredient_id,
            "ingredient_nom": row.ingredient_nom,
            "quantite": row.quantite,
            "unite": row.unite,
            "prix_unitaire": row.prix_unitaire,
            "prix_estime": row.prix_estime,
            "image": row.image,
            "categorie": row.categorie,
            "achete": row.achete,
            "quantite_achetee": row.quantite_achetee,
            "quantite_restante": row.quantite_restante,
        }
    )


def _to_row(item: ShoppingItem, timestamp: int) -> CachedItemORM:
    return CachedItemORM(timestamp=timestamp, **item.to_wire())


def _ordered_rows(session: Session, *, purchased: Optional[bool] = None) -> List[ShoppingItem]:
    stmt = select(CachedItemORM)
    if purchased is not None:
        stmt = stmt.where(CachedItemORM.achete == purchased)
    stmt = stmt.order_by(CachedItemORM.ingredient_nom.asc(), CachedItemORM.id.asc())
    return [_to_model(row) for row in session.execute(stmt).scalars().all()]


class LocalCacheStore:
    """Persistent table of shopping list entries keyed by item id.

    All operations hold one re-entrant lock, so writers are serialized and a reader
    never observes the table between the delete and the insert of ``replace_all``.
    Failures come back as ``CacheError`` results and roll the transaction back.
    """

    def __init__(self, database_path: Optional[Path] = None) -> None:
        self.database_path = database_path or get_settings().database_path
        try:
            self._engine = create_cache_engine(self.database_path)
        except (SQLAlchemyError, OSError) as exc:
            raise CacheError("open", str(exc)) from exc
        self._session_factory = create_session_factory(self._engine)
        self._lock = threading.RLock()
        self._listeners: List[CacheListener] = []

    def _run(self, operation: str, work: Callable[[Session], T], *, write: bool = False) -> Result[T]:
        with self._lock:
            try:
                with session_scope(self._session_factory) as session:
                    value = work(session)
            except (SQLAlchemyError, ValueError) as exc:
                CACHE_OPERATIONS.labels(operation, "error").inc()
                logger.warning(
                    "Cache %s failed: %s", operation, exc, extra={"operation": operation}
                )
                return Result.failure(CacheError(operation, str(exc)))
            CACHE_OPERATIONS.labels(operation, "success").inc()
            if write:
                self._publish()
            return Result.success(value)

    def replace_all(self, items: Iterable[ShoppingItem]) -> Result[int]:
        """Atomically swap the table contents for ``items``."""

        rows = list(items)

        def work(session: Session) -> int:
            timestamp = now_millis()
            session.execute(delete(CachedItemORM))
            session.add_all([_to_row(item, timestamp) for item in rows])
            session.flush()
            return len(rows)

        result = self._run("replace_all", work, write=True)
        if result.ok:
            logger.debug("Cache replaced with %s item(s)", len(rows))
        return result

    def upsert(self, item: ShoppingItem) -> Result[ShoppingItem]:
        def work(session: Session) -> ShoppingItem:
            session.merge(_to_row(item, now_millis()))
            return item

        return self._run("upsert", work, write=True)

    def delete_all(self) -> Result[int]:
        return self._run(
            "delete_all",
            lambda session: session.execute(delete(CachedItemORM)).rowcount,
            write=True,
        )

    def delete_purchased(self) -> Result[int]:
        """Drop rows already pushed to the server as purchased."""

        return self._run(
            "delete_purchased",
            lambda session: session.execute(
                delete(CachedItemORM).where(CachedItemORM.achete == True)  # noqa: E712
            ).rowcount,
            write=True,
        )

    def get_all(self) -> Result[List[ShoppingItem]]:
        """Return every row, ordered by ingredient name."""

        return self._run("get_all", _ordered_rows)

    def get_purchased(self) -> Result[List[ShoppingItem]]:
        return self._run("get_purchased", lambda session: _ordered_rows(session, purchased=True))

    def get_unpurchased(self) -> Result[List[ShoppingItem]]:
        return self._run("get_unpurchased", lambda session: _ordered_rows(session, purchased=False))

    def exists(self) -> Result[bool]:
        return self._run(
            "exists",
            lambda session: session.scalar(select(CachedItemORM.id).limit(1)) is not None,
        )

    def count(self) -> Result[int]:
        return self._run(
            "count",
            lambda session: int(session.scalar(select(func.count()).select_from(CachedItemORM)) or 0),
        )

    def last_update_timestamp(self) -> Result[Optional[int]]:
        return self._run(
            "last_update_timestamp",
            lambda session: session.scalar(select(func.max(CachedItemORM.timestamp))),
        )

    def snapshot(self) -> Result[ListSnapshot]:
        """Read the whole table as a cache-derived ``ListSnapshot``."""

        def work(session: Session) -> ListSnapshot:
            items = _ordered_rows(session)
            saved_at = session.scalar(select(func.max(CachedItemORM.timestamp)))
            return ListSnapshot.from_cache(items, saved_at=saved_at)

        return self._run("snapshot", work)

    def subscribe(self, listener: CacheListener) -> Callable[[], None]:
        """Register ``listener`` for a fresh row list after every write.

        The current rows are pushed immediately. Returns a callable that unsubscribes.
        """

        with self._lock:
            self._listeners.append(listener)
            current = self.get_all()
            if current.ok:
                self._notify(listener, current.unwrap())

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _publish(self) -> None:
        if not self._listeners:
            return
        current = self.get_all()
        if not current.ok:
            return
        rows = current.unwrap()
        for listener in list(self._listeners):
            self._notify(listener, list(rows))

    def _notify(self, listener: CacheListener, rows: List[ShoppingItem]) -> None:
        try:
            listener(rows)
        except Exception:  # pragma: no cover - listener bugs must not break writes
            logger.exception("Cache listener %r failed", listener)

    def close(self) -> None:
        self._engine.dispose()


__all__ = ["LocalCacheStore", "CacheListener"]
