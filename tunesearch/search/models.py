"""Data model shared by the search pipeline."""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

UNKNOWN_ALBUM = "Desconocido"


class TrackClassification(str, Enum):
    """Heuristic type tag derived from the title."""

    OFFICIAL_VIDEO = "official-video"
    ALBUM_TRACK = "album-track"


@dataclass(frozen=True)
class TrackCandidate:
    """One search hit after detail enrichment, prior to scoring."""

    external_id: str
    title: str
    channel_name: str
    published_at: Optional[datetime] = None
    view_count: int = 0
    tags: Tuple[str, ...] = ()
    duration_seconds: int = 0
    thumbnail_url: str = ""
    classification: TrackClassification = TrackClassification.ALBUM_TRACK
    album_guess: str = UNKNOWN_ALBUM


@dataclass(frozen=True)
class ScoredResult:
    """A candidate together with its relevance score.

    Scores are computed once per fetch and persisted with the cache entry.
    """

    candidate: TrackCandidate
    relevance_score: float

    @property
    def id(self) -> str:
        return self.candidate.external_id

    @property
    def title(self) -> str:
        return self.candidate.title

    @property
    def artist(self) -> str:
        return self.candidate.channel_name

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        data = asdict(self.candidate)
        data["published_at"] = (
            self.candidate.published_at.isoformat() if self.candidate.published_at else None
        )
        data["tags"] = list(self.candidate.tags)
        data["classification"] = self.candidate.classification.value
        data["relevance_score"] = self.relevance_score
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScoredResult":
        published_at = data.get("published_at")
        candidate = TrackCandidate(
            external_id=data["external_id"],
            title=data.get("title", ""),
            channel_name=data.get("channel_name", ""),
            published_at=datetime.fromisoformat(published_at) if published_at else None,
            view_count=int(data.get("view_count", 0)),
            tags=tuple(data.get("tags", ())),
            duration_seconds=int(data.get("duration_seconds", 0)),
            thumbnail_url=data.get("thumbnail_url", ""),
            classification=TrackClassification(
                data.get("classification", TrackClassification.ALBUM_TRACK.value)
            ),
            album_guess=data.get("album_guess", UNKNOWN_ALBUM),
        )
        return cls(candidate=candidate, relevance_score=float(data["relevance_score"]))


@dataclass
class CacheEntry:
    """Ranked results stored under one normalized query."""

    key: str
    results: List[ScoredResult]
    written_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "results": [result.to_dict() for result in self.results],
            "written_at": self.written_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheEntry":
        return cls(
            key=data["key"],
            results=[ScoredResult.from_dict(item) for item in data.get("results", [])],
            written_at=datetime.fromisoformat(data["written_at"]),
        )


@dataclass
class HistoryEntry:
    """A past query keyed on its exact text."""

    query: str
    last_seen_at: datetime
    occurrence_count: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query,
            "last_seen_at": self.last_seen_at.isoformat(),
            "occurrence_count": self.occurrence_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryEntry":
        return cls(
            query=data["query"],
            last_seen_at=datetime.fromisoformat(data["last_seen_at"]),
            occurrence_count=int(data.get("occurrence_count", 1)),
        )


@dataclass
class SearchHit:
    """Minimal search.list item: the id plus its snippet."""

    external_id: str
    snippet: Dict[str, Any] = field(default_factory=dict)
