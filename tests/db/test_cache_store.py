"""Unit tests for the local SQLite cache store."""

from __future__ import annotations

import threading

import pytest

from fridgelist.db.cache_store import LocalCacheStore
from fridgelist.errors import CacheError
from tests.fakes import make_item


def test_replace_all_and_ordered_read(cache):
    cache.replace_all([make_item(3, "Yogurt"), make_item(1, "Apples"), make_item(2, "Milk")])

    items = cache.get_all().unwrap()

    assert [item.name for item in items] == ["Apples", "Milk", "Yogurt"]
    assert cache.count().unwrap() == 3
    assert cache.exists().unwrap() is True


def test_replace_all_drops_previous_rows(cache):
    cache.replace_all([make_item(1, "Milk"), make_item(2, "Eggs")])

    cache.replace_all([make_item(5, "Butter")])

    assert [item.id for item in cache.get_all().unwrap()] == [5]


def test_failed_replace_keeps_previous_rows(cache):
    cache.replace_all([make_item(1, "Milk")])

    result = cache.replace_all([make_item(7, "Eggs"), make_item(7, "Eggs again")])

    assert not result.ok
    assert isinstance(result.error, CacheError)
    assert [item.id for item in cache.get_all().unwrap()] == [1]


def test_upsert_inserts_then_overwrites(cache):
    milk = make_item(1, "Milk")
    cache.upsert(milk)
    cache.upsert(milk.model_copy(update={"purchased": True, "purchased_quantity": 1.5}))

    rows = cache.get_all().unwrap()

    assert len(rows) == 1
    assert rows[0].purchased is True
    assert rows[0].purchased_quantity == 1.5


def test_delete_purchased_only_removes_purchased(cache):
    cache.replace_all(
        [
            make_item(1, "Milk", purchased=True),
            make_item(2, "Eggs"),
            make_item(3, "Bread", purchased=True),
        ]
    )

    removed = cache.delete_purchased().unwrap()

    assert removed == 2
    assert [item.id for item in cache.get_unpurchased().unwrap()] == [2]
    assert cache.get_purchased().unwrap() == []


def test_delete_all_and_empty_checks(cache):
    assert cache.exists().unwrap() is False
    assert cache.last_update_timestamp().unwrap() is None

    cache.replace_all([make_item(1, "Milk")])
    assert cache.last_update_timestamp().unwrap() is not None

    cache.delete_all()

    assert cache.exists().unwrap() is False
    assert cache.count().unwrap() == 0


def test_snapshot_estimates_unpurchased_total(cache):
    cache.replace_all(
        [
            make_item(1, "Milk", remaining=2.0, unit_price=1.5),
            make_item(2, "Eggs", remaining=6.0, unit_price=0.25, purchased=True),
            make_item(3, "Salt", remaining=1.0, unit_price=0.0),
        ]
    )

    snapshot = cache.snapshot().unwrap()

    assert snapshot.source == "cache"
    assert snapshot.count == 3
    assert snapshot.total_estimate == pytest.approx(3.0)
    assert snapshot.saved_at == cache.last_update_timestamp().unwrap()


def test_rows_survive_reopening(tmp_path):
    path = tmp_path / "persist.db"
    first = LocalCacheStore(path)
    first.replace_all([make_item(1, "Milk", purchased=True, purchased_quantity=0.5)])
    first.close()

    second = LocalCacheStore(path)
    rows = second.get_all().unwrap()
    second.close()

    assert rows[0].purchased is True
    assert rows[0].purchased_quantity == 0.5


def test_subscription_pushes_after_each_write(cache):
    cache.replace_all([make_item(1, "Milk")])
    seen = []

    unsubscribe = cache.subscribe(lambda rows: seen.append([item.id for item in rows]))
    cache.upsert(make_item(2, "Eggs"))
    cache.delete_all()
    unsubscribe()
    cache.upsert(make_item(3, "Bread"))

    assert seen == [[1], [2, 1], []]


def test_readers_never_see_empty_table_during_replace(cache):
    batch = [make_item(1, "Milk"), make_item(2, "Eggs"), make_item(3, "Bread")]
    cache.replace_all(batch)
    stop = threading.Event()
    observed = []

    def writer() -> None:
        for _ in range(100):
            cache.replace_all(batch)
        stop.set()

    def reader() -> None:
        while True:
            observed.append(cache.count().unwrap())
            observed.append(len(cache.get_all().unwrap()))
            if stop.is_set():
                break

    threads = [threading.Thread(target=writer), threading.Thread(target=reader)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert observed
    assert min(observed) == 3
