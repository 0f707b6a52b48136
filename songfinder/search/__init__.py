"""Lookup providers, matching strategies and caching."""

from .cache_manager import CachedSearchProvider, CachedSearchStrategy, SingleFlightCache
from .fuzzy_matcher import FuzzyMatcher
from .providers.base import LookupResult, ProviderKind, SearchProvider
from .providers.factory import ProviderFactory
from .providers.lyrics import LyricsSearchProvider
from .providers.youtube import YouTubeSearchProvider
from .strategies import (
    ExactSearchStrategy,
    FuzzySearchStrategy,
    SearchStrategy,
    StrategyFactory,
    StrategyKind,
)

__all__ = [
    "SearchProvider",
    "LookupResult",
    "ProviderKind",
    "ProviderFactory",
    "YouTubeSearchProvider",
    "LyricsSearchProvider",
    "SearchStrategy",
    "StrategyKind",
    "StrategyFactory",
    "ExactSearchStrategy",
    "FuzzySearchStrategy",
    "FuzzyMatcher",
    "SingleFlightCache",
    "CachedSearchProvider",
    "CachedSearchStrategy",
]
