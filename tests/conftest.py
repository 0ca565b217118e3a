"""Shared fixtures: a controllable clock, fake transports and raw API payloads."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

import pytest

from tunesearch.search.models import SearchHit
from tunesearch.search.providers.base import DetailTransport, SearchFilters, SearchTransport
from tunesearch.storage import MemoryStore


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class FakeSearchTransport(SearchTransport):
    """Returns a fixed list of ids, optionally after a gate opens."""

    def __init__(self, ids: Sequence[str] = (), error: Optional[Exception] = None):
        self.ids = list(ids)
        self.error = error
        self.gate: Optional[asyncio.Event] = None
        self.calls: List[str] = []
        self.filters: List[SearchFilters] = []

    async def search_by_query(self, text: str, filters: SearchFilters) -> List[SearchHit]:
        self.calls.append(text)
        self.filters.append(filters)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return [SearchHit(external_id=video_id) for video_id in self.ids]


class FakeDetailTransport(DetailTransport):
    """Serves ``videos.list`` items from a prepared list."""

    def __init__(self, items: Sequence[Dict[str, Any]] = (), error: Optional[Exception] = None):
        self.items = list(items)
        self.error = error
        self.calls: List[List[str]] = []

    async def fetch_details(self, ids: Sequence[str]) -> List[Dict[str, Any]]:
        self.calls.append(list(ids))
        if self.error is not None:
            raise self.error
        return [item for item in self.items if item["id"] in ids]


def make_video_item(
    video_id: str,
    title: str = "Test Song",
    views: int = 1000,
    published_at: str = "2024-05-01T12:00:00Z",
    duration: str = "PT3M30S",
    channel: str = "Test Artist",
    tags: Sequence[str] = (),
    description: str = "",
) -> Dict[str, Any]:
    """Build one ``videos.list`` item the way the Data API returns it."""
    return {
        "id": video_id,
        "snippet": {
            "title": title,
            "channelTitle": channel,
            "publishedAt": published_at,
            "description": description,
            "tags": list(tags),
            "thumbnails": {
                "default": {"url": f"https://i.ytimg.com/vi/{video_id}/default.jpg"},
                "high": {"url": f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg"},
            },
        },
        "contentDetails": {"duration": duration},
        "statistics": {"viewCount": str(views)},
    }


@pytest.fixture
def clock():
    """A frozen clock at 2024-06-01 12:00 UTC."""
    return FakeClock()


@pytest.fixture
def store():
    """In-memory key-value store."""
    return MemoryStore()


@pytest.fixture
def video_item():
    """Factory for raw ``videos.list`` items."""
    return make_video_item
