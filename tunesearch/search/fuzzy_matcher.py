"""Fuzzy title matching based on edit distance."""

import logging
import unicodedata
from typing import Dict

import jellyfish

logger = logging.getLogger(__name__)


class FuzzyMatcher:
    """Normalized Levenshtein distance between a query and a title.

    Levenshtein is fully deterministic, so equal inputs always produce equal
    distances and no tie-breaking randomness leaks into the ranking.
    """

    def __init__(self, strip_accents: bool = False, max_cache_size: int = 10000):
        self.strip_accents = strip_accents
        self.max_cache_size = max_cache_size
        self._distance_cache: Dict[tuple, float] = {}

    def _prepare(self, text: str) -> str:
        prepared = (text or "").lower().strip()
        if self.strip_accents:
            prepared = unicodedata.normalize("NFKD", prepared)
            prepared = "".join(c for c in prepared if not unicodedata.combining(c))
        return prepared

    def distance(self, query: str, title: str) -> float:
        """Return 0.0 for identical strings up to 1.0 for fully dissimilar ones."""
        norm_query = self._prepare(query)
        norm_title = self._prepare(title)

        cache_key = (norm_query, norm_title)
        if cache_key in self._distance_cache:
            return self._distance_cache[cache_key]

        max_len = max(len(norm_query), len(norm_title))
        if max_len == 0:
            result = 0.0
        else:
            edits = jellyfish.levenshtein_distance(norm_query, norm_title)
            result = min(1.0, edits / max_len)

        if len(self._distance_cache) >= self.max_cache_size:
            self._distance_cache.clear()
        self._distance_cache[cache_key] = result
        return result

    def similarity(self, query: str, title: str) -> float:
        """Return ``1 - distance``."""
        return 1.0 - self.distance(query, title)

    def clear_caches(self):
        """Clear the internal distance cache."""
        self._distance_cache.clear()
