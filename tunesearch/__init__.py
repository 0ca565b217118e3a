"""
TuneSearch

YouTube music search with composite relevance ranking, a TTL result cache
and a bounded search history.
"""

__version__ = "1.0.0"
__author__ = "TuneSearch Team"

from .config import TuneSearchConfig
from .errors import ErrorKind, SearchError
from .main import TuneSearch

__all__ = ["ErrorKind", "SearchError", "TuneSearch", "TuneSearchConfig"]
