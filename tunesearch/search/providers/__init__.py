"""Transports for the external video catalogue."""

from .base import DetailTransport, SearchFilters, SearchTransport
from .youtube import YouTubeDataClient

__all__ = ["DetailTransport", "SearchFilters", "SearchTransport", "YouTubeDataClient"]
