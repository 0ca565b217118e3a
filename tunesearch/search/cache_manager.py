"""Time-bounded cache of ranked search results."""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from ..storage import CACHE_NAMESPACE, KeyValueStore
from ..utils import utc_now
from .models import CacheEntry, ScoredResult

logger = logging.getLogger(__name__)

INDEX_KEY = f"{CACHE_NAMESPACE}__index__"


class ResultCache:
    """Ranked result sets keyed by normalized query.

    Validity is a pure time comparison; stale entries are not evicted on read
    and stay in storage until overwritten, cleared, or pushed out by the
    optional capacity bound.
    """

    def __init__(
        self,
        store: KeyValueStore,
        ttl_minutes: float = 60.0,
        max_entries: Optional[int] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.ttl = timedelta(minutes=ttl_minutes)
        self.max_entries = max_entries
        self.clock = clock
        self._index_lock = asyncio.Lock()

        self.stats = {
            "gets": 0,
            "hits": 0,
            "stale": 0,
            "misses": 0,
            "puts": 0,
            "evictions": 0,
        }

    @staticmethod
    def _storage_key(key: str) -> str:
        return f"{CACHE_NAMESPACE}{key}"

    def is_valid(self, entry: CacheEntry) -> bool:
        """True while the entry is younger than the TTL."""
        return (self.clock() - entry.written_at) < self.ttl

    async def get(self, key: str) -> Optional[CacheEntry]:
        """Return the stored entry for ``key``, valid or not."""
        self.stats["gets"] += 1
        data = await self.store.get(self._storage_key(key))
        if data is None:
            self.stats["misses"] += 1
            return None

        entry = CacheEntry.from_dict(data)
        if self.is_valid(entry):
            self.stats["hits"] += 1
        else:
            self.stats["stale"] += 1
        return entry

    async def put(self, key: str, results: List[ScoredResult]) -> CacheEntry:
        """Overwrite the entry for ``key`` with ``results``."""
        entry = CacheEntry(key=key, results=list(results), written_at=self.clock())
        await self.store.put(self._storage_key(key), entry.to_dict())
        self.stats["puts"] += 1

        if self.max_entries is not None:
            async with self._index_lock:
                await self._track_and_evict(key)

        logger.debug(f"Cached {len(entry.results)} results for '{key}'")
        return entry

    async def _track_and_evict(self, key: str):
        """Keep a write-order index and drop the oldest keys beyond capacity."""
        index = await self.store.get(INDEX_KEY) or []
        if key in index:
            index.remove(key)
        index.append(key)

        while len(index) > self.max_entries:
            oldest = index.pop(0)
            await self.store.delete(self._storage_key(oldest))
            self.stats["evictions"] += 1
            logger.debug(f"Evicted cached results for '{oldest}'")

        await self.store.put(INDEX_KEY, index)

    async def delete(self, key: str) -> bool:
        """Delete one entry."""
        return await self.store.delete(self._storage_key(key))

    async def clear(self) -> int:
        """Remove every cached result set."""
        removed = await self.store.delete_prefix(CACHE_NAMESPACE)
        logger.info(f"Cleared {removed} cache keys")
        return removed

    def get_stats(self) -> Dict:
        """Get cache statistics."""
        hit_rate = self.stats["hits"] / self.stats["gets"] if self.stats["gets"] > 0 else 0.0
        return {
            **self.stats,
            "hit_rate": hit_rate,
            "ttl_minutes": self.ttl.total_seconds() / 60,
            "max_entries": self.max_entries,
        }
