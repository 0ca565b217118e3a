"""Base interfaces for the external search and detail transports."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from ..models import SearchHit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchFilters:
    """Fixed constraints applied to every search call."""

    category_id: str = "10"  # Music
    order: str = "viewCount"
    max_results: int = 10
    region_code: Optional[str] = None
    relevance_language: Optional[str] = None


class SearchTransport(ABC):
    """Searches the external catalogue by free text."""

    @abstractmethod
    async def search_by_query(self, text: str, filters: SearchFilters) -> List[SearchHit]:
        """Return hits for ``text``; raise SearchError on failure."""
        pass


class DetailTransport(ABC):
    """Fetches snippet, content details and statistics for video ids."""

    @abstractmethod
    async def fetch_details(self, ids: Sequence[str]) -> List[Dict[str, Any]]:
        """Return one raw details item per known id; raise SearchError on failure."""
        pass


class TransportStatistics:
    """Call counters kept by transport implementations."""

    def __init__(self, name: str):
        self.name = name
        self.total_calls = 0
        self.failed_calls = 0
        self.estimated_api_units = 0
        self.average_response_time = 0.0

    def update(self, successful: bool, response_time: float, api_units: int = 0):
        """Update statistics after one call."""
        self.total_calls += 1
        if not successful:
            self.failed_calls += 1
        self.estimated_api_units += api_units

        # Update average response time with moving average
        if self.total_calls == 1:
            self.average_response_time = response_time
        else:
            alpha = 0.1  # Smoothing factor
            self.average_response_time = (
                alpha * response_time + (1 - alpha) * self.average_response_time
            )

    def as_dict(self) -> Dict[str, Any]:
        success_rate = (
            (self.total_calls - self.failed_calls) / self.total_calls
            if self.total_calls > 0 else 0.0
        )
        return {
            "transport": self.name,
            "total_calls": self.total_calls,
            "failed_calls": self.failed_calls,
            "success_rate": success_rate,
            "estimated_api_units": self.estimated_api_units,
            "average_response_time": self.average_response_time,
        }
