"""
Query cache driven by the invalidation bus.

Each entry pairs a query key with an async fetcher. An invalidation that
matches the key marks the entry stale; the next read re-runs the fetcher.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional

from ..common.entities import utc_now_iso
from ..common.namespaces import QueryKey
from .invalidation import InvalidationBus, InvalidationEvent

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[Any]]


@dataclass
class CacheEntry:
    key: QueryKey
    fetcher: Fetcher
    value: Any = None
    stale: bool = True
    fetched_at: Optional[str] = None
    fetch_count: int = 0
    invalidation_count: int = 0
    callback: Optional[Callable[[InvalidationEvent], Awaitable[None]]] = None


class QueryCache:
    """Stale-while-invalidated cache of query results."""

    def __init__(self, bus: InvalidationBus):
        self.bus = bus
        self._entries: Dict[QueryKey, CacheEntry] = {}

    def register(self, query_key: Iterable[str], fetcher: Fetcher) -> CacheEntry:
        """
        Register (or replace) the fetcher for query_key.

        The entry starts stale, so the first get() fetches.
        """
        key = tuple(query_key)
        existing = self._entries.get(key)
        if existing is not None:
            existing.fetcher = fetcher
            existing.stale = True
            return existing

        entry = CacheEntry(key=key, fetcher=fetcher)
        self._entries[key] = entry

        async def on_invalidate(event: InvalidationEvent) -> None:
            entry.stale = True
            entry.invalidation_count += 1
            logger.debug(f"Query {key} invalidated ({event.source})")

        self.bus.subscribe(key, on_invalidate)
        entry.callback = on_invalidate
        return entry

    def unregister(self, query_key: Iterable[str]) -> None:
        key = tuple(query_key)
        entry = self._entries.pop(key, None)
        if entry is not None:
            self.bus.unsubscribe(key, entry.callback)

    async def get(self, query_key: Iterable[str]) -> Any:
        """
        Current value for query_key, re-fetching when stale.

        Raises:
            KeyError: If query_key was never registered
        """
        key = tuple(query_key)
        entry = self._entries.get(key)
        if entry is None:
            raise KeyError(f"Query {key} is not registered")
        if entry.stale:
            # Clear first: an invalidation during the fetch marks it stale again
            entry.stale = False
            try:
                entry.value = await entry.fetcher()
            except Exception:
                entry.stale = True
                raise
            entry.fetched_at = utc_now_iso()
            entry.fetch_count += 1
        return entry.value

    def is_stale(self, query_key: Iterable[str]) -> bool:
        entry = self._entries.get(tuple(query_key))
        return entry is None or entry.stale

    def entry(self, query_key: Iterable[str]) -> Optional[CacheEntry]:
        return self._entries.get(tuple(query_key))

    def __len__(self) -> int:
        return len(self._entries)
