"""Bounded most-recently-used log of past queries."""

import asyncio
import logging
from datetime import datetime
from typing import Callable, List

from ..errors import StorageError
from ..storage import HISTORY_NAMESPACE, KeyValueStore
from ..utils import utc_now
from .models import HistoryEntry

logger = logging.getLogger(__name__)

HISTORY_KEY = f"{HISTORY_NAMESPACE}entries"


class SearchHistoryLedger:
    """Past queries keyed on their exact, non-normalized text.

    Storage keeps the most recent entries; ``list()`` presents them by
    popularity instead.
    """

    def __init__(
        self,
        store: KeyValueStore,
        max_entries: int = 10,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.max_entries = max_entries
        self.clock = clock
        self._lock = asyncio.Lock()

    async def entries(self) -> List[HistoryEntry]:
        """Stored entries, most recent first."""
        data = await self.store.get(HISTORY_KEY) or []
        return [HistoryEntry.from_dict(item) for item in data]

    async def record(self, query: str) -> None:
        """Count one use of ``query``; persistence failures are logged only."""
        try:
            async with self._lock:
                await self._record(query)
        except StorageError as e:
            logger.warning(f"Could not record search history for '{query}': {e}")

    async def _record(self, query: str) -> None:
        entries = await self.entries()
        now = self.clock()

        current = HistoryEntry(query=query, last_seen_at=now)
        for index, entry in enumerate(entries):
            if entry.query == query:
                current.occurrence_count = entry.occurrence_count + 1
                del entries[index]
                break

        # The entry being recorded leads; the stable sort keeps it ahead of ties
        entries.insert(0, current)
        entries.sort(key=lambda e: e.last_seen_at, reverse=True)
        del entries[self.max_entries:]

        await self.store.put(HISTORY_KEY, [entry.to_dict() for entry in entries])

    async def list(self) -> List[str]:
        """Queries ordered by how often they were searched."""
        entries = await self.entries()
        entries.sort(key=lambda e: e.occurrence_count, reverse=True)
        return [entry.query for entry in entries]

    async def clear(self) -> None:
        """Bulk-remove the whole history."""
        await self.store.delete(HISTORY_KEY)
        logger.info("Search history cleared")
