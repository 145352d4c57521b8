"""Local persistence for the shopping list cache."""

from fridgelist.db.cache_store import LocalCacheStore

__all__ = ["LocalCacheStore"]
