"""
SongFinder

Lyrics and video-search lookups behind pluggable providers, exact or fuzzy
matching strategies, and single-flight caching.
"""

__version__ = "1.0.0"
__author__ = "SongFinder Team"

from .config import SongFinderConfig
from .exceptions import (
    SongFinderError,
    TransportError,
    UnsupportedProviderError,
    UnsupportedStrategyError,
    ValidationError,
)
from .finder import SongFinder
from .sanitizer import Query, sanitize

__all__ = [
    "SongFinderConfig",
    "SongFinder",
    "Query",
    "sanitize",
    "SongFinderError",
    "TransportError",
    "UnsupportedProviderError",
    "UnsupportedStrategyError",
    "ValidationError",
]
