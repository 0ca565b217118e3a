"""Utilities and helper functions."""

import logging
import re
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Optional

import isodate

logger = logging.getLogger(__name__)


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = "tunesearch.log",
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
    console_output: bool = True,
) -> None:
    """Setup logging configuration.

    Parameters
    ----------
    level: int
        Logging level.
    log_file: str
        Path to the log file. ``None`` disables file logging.
    max_bytes: int
        Maximum size in bytes before rotating the log file.
    backup_count: int
        Number of rotated log files to keep.
    console_output: bool
        Whether to also log to the console.
    """

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level)

    if log_file:
        file_handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    # Suppress noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def utc_now() -> datetime:
    """Default clock: timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp such as ``2024-01-31T12:00:00Z``."""
    if not value:
        return None
    try:
        parsed = isodate.parse_datetime(value)
    except (isodate.ISO8601Error, ValueError) as e:
        logger.warning(f"Failed to parse timestamp '{value}': {e}")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_duration(duration_str: str) -> int:
    """Parse an ISO 8601 ``PT[nH][nM][nS]`` token into seconds.

    Malformed input yields 0 and a warning, never an exception.
    """
    if not duration_str or not isinstance(duration_str, str):
        logger.warning(f"Missing duration token: {duration_str!r}")
        return 0

    token = duration_str.strip().upper()
    if not token.startswith("PT") or token == "PT":
        logger.warning(f"Unrecognized duration token: {duration_str!r}")
        return 0

    try:
        duration = isodate.parse_duration(token)
        return int(duration.total_seconds())
    except (isodate.ISO8601Error, ValueError, AttributeError) as e:
        logger.warning(f"Failed to parse duration '{duration_str}': {e}")
        return 0


def format_duration(seconds: int) -> str:
    """Format seconds into a human-readable string (HH:MM:SS)."""
    if seconds < 0:
        return "00:00"
    hours, remainder = divmod(seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours > 0:
        return f"{hours:02}:{minutes:02}:{seconds:02}"
    else:
        return f"{minutes:02}:{seconds:02}"


# Spanish articles and conjunctions dropped from queries
STOP_WORDS = ("a", "el", "la", "los", "las", "de", "del", "que", "y", "o")

_PUNCTUATION_RE = re.compile(r"[,.\-!?:;]")
_STOP_WORDS_RE = re.compile(r"\b(?:" + "|".join(STOP_WORDS) + r")\b")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_query(raw: Optional[str]) -> str:
    """Reduce a raw query to the canonical key used for caching and searching."""
    if not raw:
        return ""

    normalized = raw.lower()
    normalized = _PUNCTUATION_RE.sub(" ", normalized)
    normalized = _STOP_WORDS_RE.sub("", normalized)
    normalized = _WHITESPACE_RE.sub(" ", normalized).strip()

    return normalized
