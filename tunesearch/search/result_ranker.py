"""Relevance scoring and ranking of track candidates."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional

from ..utils import utc_now
from .fuzzy_matcher import FuzzyMatcher
from .models import ScoredResult, TrackCandidate

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400.0
# One second, expressed in days; floor for the recency denominator
MIN_AGE_DAYS = 1.0 / SECONDS_PER_DAY


@dataclass(frozen=True)
class RankingWeights:
    """Weights of the composite relevance score."""

    views: float = 0.5
    recency: float = 0.3
    title_match: float = 0.2
    fuzzy: float = 0.1
    semantic_boost: float = 1.5


@dataclass(frozen=True)
class ScoreBreakdown:
    """Every term of one candidate's score."""

    view_term: float
    recency_term: float
    title_match_ratio: float
    semantic_boost: float
    base: float
    fuzzy_bonus: float

    @property
    def total(self) -> float:
        return self.base + self.fuzzy_bonus


class RelevanceScorer:
    """Combines popularity, recency, term match, semantic hints and fuzzy similarity."""

    SEMANTIC_MARKERS = ("official audio", "topic")

    def __init__(
        self,
        clock: Callable[[], datetime] = utc_now,
        weights: Optional[RankingWeights] = None,
        fuzzy_matcher: Optional[FuzzyMatcher] = None,
    ):
        self.clock = clock
        self.weights = weights or RankingWeights()
        self.fuzzy_matcher = fuzzy_matcher or FuzzyMatcher()

    def _recency_term(self, published_at: Optional[datetime], now: datetime) -> float:
        if published_at is None:
            return 0.0
        # Naive timestamps on either side are taken as UTC
        if published_at.tzinfo is None:
            published_at = published_at.replace(tzinfo=timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        age_days = (now - published_at).total_seconds() / SECONDS_PER_DAY
        # Just-published or future-dated videos would otherwise divide by zero
        age_days = max(age_days, MIN_AGE_DAYS)
        return (1.0 / age_days) * self.weights.recency

    @staticmethod
    def title_match_ratio(title: str, normalized_query: str) -> float:
        """Share of query terms that appear as whole words in the title."""
        terms = normalized_query.split()
        if not terms:
            return 0.0
        title_words = set(title.lower().split())
        matched = sum(1 for term in terms if term in title_words)
        return matched / len(terms)

    def _semantic_boost(self, candidate: TrackCandidate) -> float:
        texts = [candidate.title.lower()] + [tag.lower() for tag in candidate.tags]
        for text in texts:
            if any(marker in text for marker in self.SEMANTIC_MARKERS):
                return self.weights.semantic_boost
        return 1.0

    def breakdown(
        self, candidate: TrackCandidate, normalized_query: str, now: Optional[datetime] = None
    ) -> ScoreBreakdown:
        """Compute each scoring term for one candidate."""
        now = now or self.clock()

        view_term = candidate.view_count * self.weights.views
        recency_term = self._recency_term(candidate.published_at, now)
        match_ratio = self.title_match_ratio(candidate.title, normalized_query)

        base = view_term + recency_term + match_ratio * self.weights.title_match
        boost = self._semantic_boost(candidate)
        base *= boost

        distance = self.fuzzy_matcher.distance(normalized_query, candidate.title)
        fuzzy_bonus = (1.0 - distance) * self.weights.fuzzy

        return ScoreBreakdown(
            view_term=view_term,
            recency_term=recency_term,
            title_match_ratio=match_ratio,
            semantic_boost=boost,
            base=base,
            fuzzy_bonus=fuzzy_bonus,
        )

    def score(
        self, candidate: TrackCandidate, normalized_query: str, now: Optional[datetime] = None
    ) -> float:
        """Return the composite relevance score."""
        return self.breakdown(candidate, normalized_query, now).total

    def rank(
        self, candidates: Iterable[TrackCandidate], normalized_query: str
    ) -> List[ScoredResult]:
        """Score every candidate and sort descending.

        The sort is stable, so equal scores keep their fetch order.
        """
        now = self.clock()
        scored = [
            ScoredResult(candidate=candidate, relevance_score=self.score(candidate, normalized_query, now))
            for candidate in candidates
        ]
        scored.sort(key=lambda result: result.relevance_score, reverse=True)

        if scored:
            logger.debug(
                f"Ranked {len(scored)} candidates for '{normalized_query}', "
                f"top score {scored[0].relevance_score:.3f}"
            )
        return scored
