"""YouTube Data API v3 transport using httpx."""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional, Sequence

import httpx

from ...config import ApiConfig
from ...errors import SearchError
from ..models import SearchHit
from .base import DetailTransport, SearchFilters, SearchTransport, TransportStatistics

logger = logging.getLogger(__name__)

# Quota cost per endpoint as documented by the Data API
SEARCH_LIST_UNITS = 100
VIDEOS_LIST_UNITS = 1


class YouTubeDataClient(SearchTransport, DetailTransport):
    """Talks to ``search.list`` and ``videos.list``.

    Every failure leaves this class as a :class:`SearchError`; callers never
    see raw httpx exceptions or status codes.
    """

    def __init__(self, api_config: ApiConfig, http_client: Optional[httpx.AsyncClient] = None):
        self.api_config = api_config
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(
            base_url=api_config.base_url,
            timeout=httpx.Timeout(
                connect=10.0,
                read=api_config.timeout_seconds,
                write=10.0,
                pool=5.0,
            ),
            limits=httpx.Limits(
                max_connections=api_config.max_concurrent_requests * 2,
                max_keepalive_connections=api_config.max_concurrent_requests,
            ),
        )
        self._request_semaphore = asyncio.Semaphore(api_config.max_concurrent_requests)
        self.search_stats = TransportStatistics("search")
        self.detail_stats = TransportStatistics("videos")

    async def search_by_query(self, text: str, filters: SearchFilters) -> List[SearchHit]:
        """Search videos in the configured category, ordered by view count."""
        params = {
            "part": "snippet",
            "q": text,
            "type": "video",
            "videoCategoryId": filters.category_id,
            "order": filters.order,
            "maxResults": str(filters.max_results),
        }
        if filters.region_code:
            params["regionCode"] = filters.region_code
        if filters.relevance_language:
            params["relevanceLanguage"] = filters.relevance_language

        payload = await self._get("/search", params, self.search_stats, SEARCH_LIST_UNITS)

        hits = []
        for item in payload.get("items", []):
            video_id = (item.get("id") or {}).get("videoId")
            if not video_id:
                continue
            hits.append(SearchHit(external_id=video_id, snippet=item.get("snippet") or {}))

        logger.info(f"YouTube search for '{text}' returned {len(hits)} hits")
        return hits

    async def fetch_details(self, ids: Sequence[str]) -> List[Dict[str, Any]]:
        """Fetch snippet, contentDetails and statistics for all ids in one call."""
        if not ids:
            return []

        params = {
            "part": "snippet,contentDetails,statistics",
            "id": ",".join(ids),
            "maxResults": str(len(ids)),
        }
        payload = await self._get("/videos", params, self.detail_stats, VIDEOS_LIST_UNITS)
        items = payload.get("items", [])
        logger.debug(f"Fetched details for {len(items)} of {len(ids)} videos")
        return items

    async def _get(
        self,
        path: str,
        params: Dict[str, str],
        stats: TransportStatistics,
        api_units: int,
    ) -> Dict[str, Any]:
        """Issue one GET and map any failure onto the error taxonomy."""
        request_params = dict(params)
        if self.api_config.api_key:
            request_params["key"] = self.api_config.api_key

        start_time = time.time()
        async with self._request_semaphore:
            try:
                response = await self.http_client.get(path, params=request_params)
            except httpx.RequestError as e:
                stats.update(False, time.time() - start_time)
                logger.error(f"Request to {path} failed: {e}")
                raise SearchError.unknown(f"Network error contacting YouTube: {e}") from e

        response_time = time.time() - start_time
        if response.is_error:
            stats.update(False, response_time, api_units)
            error = SearchError.from_status(response.status_code, self._error_message(response))
            logger.error(
                f"YouTube {path} returned {response.status_code} ({error.kind.value}): {error.message}"
            )
            raise error

        stats.update(True, response_time, api_units)
        try:
            payload = response.json()
        except ValueError as e:
            raise SearchError.unknown(f"Malformed response from YouTube {path}") from e
        if not isinstance(payload, dict):
            raise SearchError.unknown(f"Unexpected response shape from YouTube {path}")
        return payload

    @staticmethod
    def _error_message(response: httpx.Response) -> Optional[str]:
        """Pull ``error.message`` out of a Data API error body, if any."""
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict) and isinstance(error.get("message"), str):
                return error["message"]
            if isinstance(body.get("detail"), str):
                return body["detail"]
        return None

    def get_statistics(self) -> Dict[str, Any]:
        """Get transport performance and quota statistics."""
        return {
            "search": self.search_stats.as_dict(),
            "videos": self.detail_stats.as_dict(),
            "estimated_api_units": (
                self.search_stats.estimated_api_units + self.detail_stats.estimated_api_units
            ),
        }

    async def aclose(self):
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self.http_client.aclose()
            logger.debug("HTTP client closed")
