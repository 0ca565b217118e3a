"""Application context wiring the search engine together."""

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

import httpx

from .config import TuneSearchConfig
from .search import (
    RelevanceScorer,
    ResultCache,
    ScoredResult,
    SearchHistoryLedger,
    SearchOrchestrator,
    YouTubeDataClient,
)
from .storage import KeyValueStore, create_store
from .utils import utc_now

logger = logging.getLogger(__name__)


class TuneSearch:
    """Owns every long-lived search component.

    Create one instance at startup and call :meth:`cleanup` (or use it as an
    async context manager) at shutdown. Nothing here is module-level state.
    """

    def __init__(
        self,
        config: TuneSearchConfig,
        store: Optional[KeyValueStore] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.config = config
        self.clock = clock
        self.store = store or create_store(config.storage.backend, config.storage.path)
        self.client = YouTubeDataClient(config.api, http_client=http_client)
        self.cache = ResultCache(
            self.store,
            ttl_minutes=config.search.cache_ttl_minutes,
            max_entries=config.search.cache_max_entries,
            clock=clock,
        )
        self.history_ledger = SearchHistoryLedger(
            self.store, max_entries=config.search.history_max_entries, clock=clock
        )
        self.orchestrator = SearchOrchestrator(
            config=config.search,
            search_transport=self.client,
            detail_transport=self.client,
            cache=self.cache,
            history=self.history_ledger,
            store=self.store,
            scorer=RelevanceScorer(clock=clock),
            clock=clock,
        )
        self._cleanup_completed = False

        if not config.api.api_key and not config.search.demo_mode:
            logger.warning("No YouTube API key configured; live searches will be rejected")

    async def __aenter__(self) -> "TuneSearch":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.cleanup()

    async def search(self, query: str, record_history: bool = True) -> List[ScoredResult]:
        """Search, rank and cache results for ``query``."""
        return await self.orchestrator.search(query, record_history=record_history)

    async def history(self) -> List[str]:
        """Past queries, most searched first."""
        return await self.history_ledger.list()

    async def clear_history(self) -> None:
        await self.history_ledger.clear()

    async def clear_cache(self) -> int:
        return await self.cache.clear()

    async def get_statistics(self) -> Dict:
        """Get search, cache and transport statistics."""
        return {
            "orchestrator": self.orchestrator.get_statistics(),
            "transport": self.client.get_statistics(),
        }

    async def cleanup(self):
        """Drain background work and release network and storage resources."""
        if self._cleanup_completed:
            return
        self._cleanup_completed = True

        await self.orchestrator.drain()
        await self.client.aclose()
        await self.store.close()
        logger.info("Cleanup completed")
