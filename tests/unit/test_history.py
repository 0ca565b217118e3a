"""Unit tests for history.py."""

import asyncio
import logging
import sys
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from tunesearch.errors import StorageError
from tunesearch.search.history import HISTORY_KEY, SearchHistoryLedger


class TestSearchHistoryLedger:
    """Test cases for SearchHistoryLedger."""

    @pytest.fixture
    def ledger(self, store, clock):
        """Create a ledger holding at most 10 entries."""
        return SearchHistoryLedger(store, max_entries=10, clock=clock)

    @pytest.mark.asyncio
    async def test_bounded_to_most_recent(self, ledger, clock):
        """Test that 15 distinct queries leave only the 10 most recent."""
        for i in range(15):
            await ledger.record(f"query {i}")
            clock.advance(seconds=1)

        entries = await ledger.entries()
        assert len(await ledger.list()) == 10
        assert [e.query for e in entries] == [f"query {i}" for i in range(14, 4, -1)]

    @pytest.mark.asyncio
    async def test_repeat_increments_count(self, ledger, clock):
        """Test that one query recorded three times is one entry."""
        for _ in range(3):
            await ledger.record("Song A")
            clock.advance(seconds=1)

        entries = await ledger.entries()
        assert len(entries) == 1
        assert entries[0].occurrence_count == 3
        assert entries[0].last_seen_at == clock.now.replace(second=2)

    @pytest.mark.asyncio
    async def test_keys_on_exact_text(self, ledger):
        """Test that differently cased queries are distinct entries."""
        await ledger.record("Song A")
        await ledger.record("song a")

        assert sorted(await ledger.list()) == ["Song A", "song a"]

    @pytest.mark.asyncio
    async def test_repeat_moves_to_front(self, ledger, clock):
        """Test that re-recording refreshes recency."""
        await ledger.record("first")
        clock.advance(seconds=1)
        await ledger.record("second")
        clock.advance(seconds=1)
        await ledger.record("first")

        entries = await ledger.entries()
        assert [e.query for e in entries] == ["first", "second"]

    @pytest.mark.asyncio
    async def test_same_timestamp_keeps_newest(self, ledger):
        """Test that entries sharing a timestamp never evict the one just recorded."""
        for i in range(15):
            await ledger.record(f"query {i}")

        entries = await ledger.entries()
        assert [e.query for e in entries] == [f"query {i}" for i in range(14, 4, -1)]
        assert "query 0" not in await ledger.list()

    @pytest.mark.asyncio
    async def test_same_timestamp_repeat_moves_to_front(self, ledger):
        """Test that a repeat under a frozen clock still leads and counts twice."""
        await ledger.record("first")
        await ledger.record("second")
        await ledger.record("first")

        entries = await ledger.entries()
        assert [e.query for e in entries] == ["first", "second"]
        assert entries[0].occurrence_count == 2

    @pytest.mark.asyncio
    async def test_list_orders_by_frequency(self, ledger, clock):
        """Test that list() presents the most searched queries first."""
        for query in ["a", "b", "b", "c", "b", "c"]:
            await ledger.record(query)
            clock.advance(seconds=1)

        assert await ledger.list() == ["b", "c", "a"]

    @pytest.mark.asyncio
    async def test_concurrent_records_are_not_lost(self, ledger):
        """Test that concurrent updates are serialized."""
        await asyncio.gather(*(ledger.record("same") for _ in range(5)))

        entries = await ledger.entries()
        assert entries[0].occurrence_count == 5

    @pytest.mark.asyncio
    async def test_storage_failure_is_swallowed(self, store, clock, caplog):
        """Test that persistence failures are only logged."""
        store.put = AsyncMock(side_effect=StorageError("disk full"))
        ledger = SearchHistoryLedger(store, clock=clock)

        with caplog.at_level(logging.WARNING):
            await ledger.record("bamba")

        assert "disk full" in caplog.text
        assert await ledger.list() == []

    @pytest.mark.asyncio
    async def test_clear(self, ledger, store):
        """Test bulk removal."""
        await ledger.record("bamba")
        await ledger.clear()

        assert await ledger.list() == []
        assert await store.get(HISTORY_KEY) is None

    @pytest.mark.asyncio
    async def test_custom_bound(self, store, clock):
        """Test a non-default bound."""
        ledger = SearchHistoryLedger(store, max_entries=3, clock=clock)
        for i in range(5):
            await ledger.record(str(i))
            clock.advance(seconds=1)

        assert len(await ledger.entries()) == 3
