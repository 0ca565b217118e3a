"""Search pipeline: normalize, cache lookup, fetch, enrich, score, cache write."""

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional, Set

from ..config import SearchConfig
from ..data_transformer import DataTransformer
from ..errors import ErrorKind, SearchError
from ..storage import KeyValueStore
from ..utils import normalize_query, utc_now
from .cache_manager import ResultCache
from .history import SearchHistoryLedger
from .models import ScoredResult, TrackCandidate, TrackClassification
from .providers.base import DetailTransport, SearchFilters, SearchTransport
from .result_ranker import RelevanceScorer

logger = logging.getLogger(__name__)

MAX_QUERY_LENGTH = 500

# Canned results served in demo mode, for environments without API credentials
DEMO_RESULTS = (
    ScoredResult(
        candidate=TrackCandidate(
            external_id="mock1",
            title="Mock Song 1",
            channel_name="Mock Artist",
            duration_seconds=180,
            thumbnail_url="https://via.placeholder.com/150",
            classification=TrackClassification.ALBUM_TRACK,
            album_guess="Mock Album",
        ),
        relevance_score=0.5,
    ),
    ScoredResult(
        candidate=TrackCandidate(
            external_id="mock2",
            title="Mock Song 2",
            channel_name="Mock Artist 2",
            duration_seconds=240,
            thumbnail_url="https://via.placeholder.com/150",
            classification=TrackClassification.ALBUM_TRACK,
            album_guess="Mock Album 2",
        ),
        relevance_score=0.7,
    ),
)


class SearchOrchestrator:
    """The only component that talks to the external API and the store.

    Concurrent searches for the same normalized query share one in-flight
    fetch when ``dedupe_in_flight`` is enabled; otherwise each call fetches
    on its own and the last cache write wins.
    """

    def __init__(
        self,
        config: SearchConfig,
        search_transport: SearchTransport,
        detail_transport: DetailTransport,
        cache: ResultCache,
        history: SearchHistoryLedger,
        store: KeyValueStore,
        scorer: Optional[RelevanceScorer] = None,
        transformer: Optional[DataTransformer] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.config = config
        self.search_transport = search_transport
        self.detail_transport = detail_transport
        self.cache = cache
        self.history = history
        self.store = store
        self.scorer = scorer or RelevanceScorer(clock=clock)
        self.transformer = transformer or DataTransformer()

        self.filters = SearchFilters(
            category_id=config.category_id,
            order=config.order,
            max_results=config.max_results,
            region_code=config.region_code,
            relevance_language=config.relevance_language,
        )

        self._in_flight: Dict[str, asyncio.Task] = {}
        self._background_tasks: Set[asyncio.Task] = set()

        self.stats = {
            "searches": 0,
            "demo_searches": 0,
            "cache_hits": 0,
            "live_fetches": 0,
            "empty_results": 0,
            "deduplicated": 0,
            "failures": 0,
        }

    async def search(self, raw_query: str, record_history: bool = True) -> List[ScoredResult]:
        """Return ranked results for ``raw_query``.

        Raises SearchError for invalid queries and for transport or storage
        failures. Nothing is retried here; a caller that retries should pass
        ``record_history=False`` on repeat attempts so one use counts once.
        """
        if self.config.demo_mode:
            self.stats["demo_searches"] += 1
            logger.info(f"Demo mode: returning canned results for '{raw_query}'")
            return list(DEMO_RESULTS)

        self._validate(raw_query)
        self.stats["searches"] += 1

        if record_history:
            self._spawn_background(self.history.record(raw_query), f"history:{raw_query}")

        key = normalize_query(raw_query)
        if not key:
            raise SearchError.invalid_request(
                f"Query '{raw_query}' has no searchable terms", status_code=None
            )

        if not self.config.dedupe_in_flight:
            return await self._search_normalized(key)

        task = self._in_flight.get(key)
        if task is not None:
            self.stats["deduplicated"] += 1
            logger.debug(f"Joining in-flight search for '{key}'")
        else:
            task = asyncio.create_task(self._search_normalized(key))
            self._in_flight[key] = task
            task.add_done_callback(lambda t, k=key: self._finish_in_flight(k, t))

        # Shield so one abandoned caller does not cancel the fetch for the others
        return list(await asyncio.shield(task))

    @staticmethod
    def _validate(raw_query: str):
        if not isinstance(raw_query, str) or not raw_query.strip():
            raise SearchError.invalid_request("Search query cannot be empty", status_code=None)
        if len(raw_query.strip()) > MAX_QUERY_LENGTH:
            raise SearchError.invalid_request(
                f"Search query is too long (max {MAX_QUERY_LENGTH} characters)", status_code=None
            )

    def _finish_in_flight(self, key: str, task: asyncio.Task):
        self._in_flight.pop(key, None)
        # Every caller may have been cancelled; the failure was logged in _search_normalized
        if not task.cancelled():
            task.exception()

    async def _search_normalized(self, key: str) -> List[ScoredResult]:
        try:
            entry = await self.cache.get(key)
            if entry is not None and self.cache.is_valid(entry):
                self.stats["cache_hits"] += 1
                logger.info(f"Cache hit for '{key}' ({len(entry.results)} results)")
                return entry.results

            if entry is not None:
                logger.debug(f"Cached results for '{key}' are stale, refetching")

            return await self._fetch_and_rank(key)

        except SearchError as e:
            self.stats["failures"] += 1
            logger.error(f"Search for '{key}' failed ({e.kind.value}): {e.message}")
            if e.kind is ErrorKind.UNAUTHORIZED:
                await self._clear_session()
            raise

    async def _fetch_and_rank(self, key: str) -> List[ScoredResult]:
        self.stats["live_fetches"] += 1

        hits = await self.search_transport.search_by_query(key, self.filters)
        ids = list(dict.fromkeys(hit.external_id for hit in hits))
        if not ids:
            # Empty results are never cached so the next call retries live
            self.stats["empty_results"] += 1
            logger.info(f"No results for '{key}'")
            return []

        items = await self.detail_transport.fetch_details(ids)
        candidates = self.transformer.to_candidates(ids, items)

        if self.config.enforce_duration_filter:
            candidates = self._filter_by_duration(candidates)

        ranked = self.scorer.rank(candidates, key)
        if ranked:
            await self.cache.put(key, ranked)

        logger.info(f"Fetched and ranked {len(ranked)} results for '{key}'")
        return ranked

    def _filter_by_duration(self, candidates: List[TrackCandidate]) -> List[TrackCandidate]:
        low = self.config.min_duration_seconds
        high = self.config.max_duration_seconds
        kept = [c for c in candidates if low <= c.duration_seconds <= high]
        if len(kept) != len(candidates):
            logger.debug(f"Duration filter dropped {len(candidates) - len(kept)} candidates")
        return kept

    async def _clear_session(self):
        logger.warning("Unauthorized response, clearing stored session state")
        await self.store.clear_session()

    def _spawn_background(self, coro: Awaitable, name: str):
        """Run ``coro`` without blocking the caller; failures only reach the log."""
        task = asyncio.ensure_future(coro)
        self._background_tasks.add(task)

        def _done(t: asyncio.Task):
            self._background_tasks.discard(t)
            if t.cancelled():
                return
            exc = t.exception()
            if exc is not None:
                logger.warning(f"Background task {name} failed: {exc}")

        task.add_done_callback(_done)

    async def drain(self):
        """Wait for pending best-effort tasks."""
        if self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    def get_statistics(self) -> Dict:
        return {
            **self.stats,
            "in_flight": len(self._in_flight),
            "pending_background_tasks": len(self._background_tasks),
            "cache": self.cache.get_stats(),
        }
