"""Shared pytest fixtures for the fridgelist test suite."""

from __future__ import annotations

from typing import Generator

import pytest

from fridgelist.config import get_settings
from fridgelist.db.cache_store import LocalCacheStore
from fridgelist.engine import ReconciliationEngine
from tests.fakes import FakeGateway


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Ensure each test uses an isolated SQLite cache and no ambient credentials."""

    db_path = tmp_path / "test_fridgelist.db"
    monkeypatch.setenv("FRIDGELIST_DATABASE_PATH", str(db_path))
    monkeypatch.delenv("FRIDGELIST_API_URL", raising=False)
    monkeypatch.delenv("FRIDGELIST_API_KEY", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def cache(tmp_path) -> Generator[LocalCacheStore, None, None]:
    """Return a cache store backed by a throwaway SQLite file."""

    store = LocalCacheStore(tmp_path / "cache.db")
    yield store
    store.close()


@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
def engine(gateway, cache) -> Generator[ReconciliationEngine, None, None]:
    """Engine wired to the fake gateway and the real cache store."""

    instance = ReconciliationEngine(gateway, cache)
    yield instance
    instance.close()
