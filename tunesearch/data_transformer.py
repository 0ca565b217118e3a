"""Data transformation from raw YouTube payloads to track candidates."""

import logging
import re
from typing import Any, Dict, Iterable, List, Optional

from .search.models import UNKNOWN_ALBUM, TrackCandidate, TrackClassification
from .utils import parse_duration, parse_timestamp

logger = logging.getLogger(__name__)

THUMBNAIL_PRIORITY = ("maxres", "standard", "high", "medium", "default")

_ALBUM_DESCRIPTION_RE = re.compile(r"(?:Álbum|Album):\s*([^\n]+)", re.IGNORECASE)
_ALBUM_WORD_RE = re.compile(r"album", re.IGNORECASE)


class DataTransformer:
    """Turns ``videos.list`` items into :class:`TrackCandidate` objects."""

    @staticmethod
    def safe_int(value: Any) -> int:
        """Safely convert value to a non-negative integer."""
        try:
            number = int(value) if value is not None else 0
        except (ValueError, TypeError):
            return 0
        return max(number, 0)

    @staticmethod
    def best_thumbnail(thumbnails: Optional[Dict[str, Any]]) -> str:
        """Pick the highest-quality thumbnail URL available."""
        if not isinstance(thumbnails, dict):
            return ""
        for quality in THUMBNAIL_PRIORITY:
            payload = thumbnails.get(quality)
            if isinstance(payload, dict) and payload.get("url"):
                return payload["url"]
        return ""

    @staticmethod
    def classify(title: str) -> TrackClassification:
        # Heuristic only: "official audio" uploads are tagged as videos
        if "official audio" in (title or "").lower():
            return TrackClassification.OFFICIAL_VIDEO
        return TrackClassification.ALBUM_TRACK

    @staticmethod
    def guess_album(description: str, tags: Iterable[str]) -> str:
        """Best-effort album name from the description, then the tags."""
        match = _ALBUM_DESCRIPTION_RE.search(description or "")
        if match and match.group(1).strip():
            return match.group(1).strip()

        for tag in tags:
            if "album" in tag.lower():
                guess = _ALBUM_WORD_RE.sub("", tag, count=1).strip()
                if guess:
                    return guess

        return UNKNOWN_ALBUM

    def to_candidate(self, item: Dict[str, Any]) -> Optional[TrackCandidate]:
        """Build a candidate from one details item; None if it has no id."""
        external_id = item.get("id")
        if not external_id:
            logger.debug("Skipping details item without id")
            return None

        snippet = item.get("snippet") or {}
        content_details = item.get("contentDetails") or {}
        statistics = item.get("statistics") or {}

        title = snippet.get("title") or ""
        tags = tuple(tag for tag in (snippet.get("tags") or []) if isinstance(tag, str))

        return TrackCandidate(
            external_id=external_id,
            title=title,
            channel_name=snippet.get("channelTitle") or "",
            published_at=parse_timestamp(snippet.get("publishedAt")),
            view_count=self.safe_int(statistics.get("viewCount")),
            tags=tags,
            duration_seconds=parse_duration(content_details.get("duration") or ""),
            thumbnail_url=self.best_thumbnail(snippet.get("thumbnails")),
            classification=self.classify(title),
            album_guess=self.guess_album(snippet.get("description") or "", tags),
        )

    def to_candidates(self, ids: List[str], items: List[Dict[str, Any]]) -> List[TrackCandidate]:
        """Build candidates in search-hit order, skipping ids without details."""
        by_id = {item.get("id"): item for item in items if item.get("id")}
        candidates = []
        for external_id in ids:
            item = by_id.get(external_id)
            if item is None:
                logger.debug(f"No details returned for video {external_id}")
                continue
            candidate = self.to_candidate(item)
            if candidate is not None:
                candidates.append(candidate)
        return candidates
