"""Unit tests for the YouTube Data API transport."""

import sys
from pathlib import Path

import httpx
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from tunesearch.config import ApiConfig
from tunesearch.errors import ErrorKind, SearchError
from tunesearch.search.providers.base import SearchFilters
from tunesearch.search.providers.youtube import YouTubeDataClient

BASE_URL = "https://www.googleapis.com/youtube/v3"


def make_client(handler, api_key="test-key"):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=BASE_URL)
    return YouTubeDataClient(ApiConfig(api_key=api_key), http_client=http_client)


class TestYouTubeDataClient:
    """Test cases for YouTubeDataClient."""

    @pytest.mark.asyncio
    async def test_search_by_query(self):
        """Test the search.list request and hit parsing."""
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(
                200,
                json={
                    "items": [
                        {"id": {"videoId": "a"}, "snippet": {"title": "A"}},
                        {"id": {"channelId": "not-a-video"}},
                        {"id": {"videoId": "b"}, "snippet": {"title": "B"}},
                    ]
                },
            )

        client = make_client(handler)
        hits = await client.search_by_query("bamba", SearchFilters(region_code="AR", relevance_language="es"))

        assert [hit.external_id for hit in hits] == ["a", "b"]
        assert hits[0].snippet == {"title": "A"}

        params = requests[0].url.params
        assert requests[0].url.path == "/youtube/v3/search"
        assert params["q"] == "bamba"
        assert params["part"] == "snippet"
        assert params["type"] == "video"
        assert params["videoCategoryId"] == "10"
        assert params["order"] == "viewCount"
        assert params["maxResults"] == "10"
        assert params["regionCode"] == "AR"
        assert params["relevanceLanguage"] == "es"
        assert params["key"] == "test-key"

    @pytest.mark.asyncio
    async def test_optional_filters_omitted(self):
        """Test that unset region and language are not sent."""
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"items": []})

        client = make_client(handler, api_key="")
        assert await client.search_by_query("bamba", SearchFilters()) == []

        params = requests[0].url.params
        assert "regionCode" not in params
        assert "relevanceLanguage" not in params
        assert "key" not in params

    @pytest.mark.asyncio
    async def test_fetch_details(self, video_item):
        """Test the videos.list request."""
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"items": [video_item("a"), video_item("b")]})

        client = make_client(handler)
        items = await client.fetch_details(["a", "b"])

        assert [item["id"] for item in items] == ["a", "b"]
        assert requests[0].url.path == "/youtube/v3/videos"
        assert requests[0].url.params["id"] == "a,b"
        assert requests[0].url.params["part"] == "snippet,contentDetails,statistics"

    @pytest.mark.asyncio
    async def test_fetch_details_no_ids(self):
        """Test that no request is made for an empty id list."""

        def handler(request):
            raise AssertionError("no request expected")

        client = make_client(handler)
        assert await client.fetch_details([]) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status,kind",
        [
            (400, ErrorKind.INVALID_REQUEST),
            (401, ErrorKind.UNAUTHORIZED),
            (403, ErrorKind.QUOTA_EXCEEDED),
            (404, ErrorKind.NOT_FOUND),
            (500, ErrorKind.SERVER_ERROR),
            (503, ErrorKind.SERVER_ERROR),
            (418, ErrorKind.UNKNOWN),
        ],
    )
    async def test_status_mapping(self, status, kind):
        """Test that error statuses become SearchError kinds."""

        def handler(request):
            return httpx.Response(status, json={"error": {"code": status, "message": "backend says no"}})

        client = make_client(handler)
        with pytest.raises(SearchError) as exc_info:
            await client.search_by_query("bamba", SearchFilters())

        assert exc_info.value.kind is kind
        assert exc_info.value.status_code == status
        assert exc_info.value.message == "backend says no"

    @pytest.mark.asyncio
    async def test_error_without_body_uses_default_message(self):
        """Test the default message when the body carries none."""

        def handler(request):
            return httpx.Response(403, text="Forbidden")

        client = make_client(handler)
        with pytest.raises(SearchError) as exc_info:
            await client.fetch_details(["a"])

        assert exc_info.value.kind is ErrorKind.QUOTA_EXCEEDED
        assert exc_info.value.message == "Access forbidden or API quota exceeded"

    @pytest.mark.asyncio
    async def test_network_error(self):
        """Test that transport failures map to UNKNOWN."""

        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)
        with pytest.raises(SearchError) as exc_info:
            await client.search_by_query("bamba", SearchFilters())

        assert exc_info.value.kind is ErrorKind.UNKNOWN
        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_malformed_json(self):
        """Test that a non-JSON success body maps to UNKNOWN."""

        def handler(request):
            return httpx.Response(200, text="<html>")

        client = make_client(handler)
        with pytest.raises(SearchError) as exc_info:
            await client.search_by_query("bamba", SearchFilters())

        assert exc_info.value.kind is ErrorKind.UNKNOWN

    @pytest.mark.asyncio
    async def test_statistics(self, video_item):
        """Test request and quota accounting."""

        def handler(request):
            if request.url.path.endswith("/search"):
                return httpx.Response(200, json={"items": [{"id": {"videoId": "a"}}]})
            return httpx.Response(200, json={"items": [video_item("a")]})

        client = make_client(handler)
        await client.search_by_query("bamba", SearchFilters())
        await client.fetch_details(["a"])

        stats = client.get_statistics()
        assert stats["search"]["total_calls"] == 1
        assert stats["videos"]["failed_calls"] == 0
        assert stats["videos"]["success_rate"] == 1.0
        assert stats["estimated_api_units"] == 101

    @pytest.mark.asyncio
    async def test_aclose_leaves_injected_client_open(self):
        """Test that only an owned client is closed."""
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        client = YouTubeDataClient(ApiConfig(), http_client=http_client)

        await client.aclose()

        assert not http_client.is_closed
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_aclose_closes_owned_client(self):
        """Test that a self-created client is closed."""
        client = YouTubeDataClient(ApiConfig())
        await client.aclose()
        assert client.http_client.is_closed
