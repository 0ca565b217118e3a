"""Search ranking and caching engine."""

from .cache_manager import ResultCache
from .fuzzy_matcher import FuzzyMatcher
from .history import SearchHistoryLedger
from .models import CacheEntry, HistoryEntry, ScoredResult, TrackCandidate, TrackClassification
from .orchestrator import SearchOrchestrator
from .providers.base import DetailTransport, SearchFilters, SearchTransport
from .providers.youtube import YouTubeDataClient
from .result_ranker import RelevanceScorer

__all__ = [
    "CacheEntry",
    "DetailTransport",
    "FuzzyMatcher",
    "HistoryEntry",
    "RelevanceScorer",
    "ResultCache",
    "ScoredResult",
    "SearchFilters",
    "SearchHistoryLedger",
    "SearchOrchestrator",
    "SearchTransport",
    "TrackCandidate",
    "TrackClassification",
    "YouTubeDataClient",
]
