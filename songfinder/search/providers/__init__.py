"""Search providers for lyrics and video links."""

from .base import LookupResult, ProviderKind, SearchProvider
from .factory import ProviderFactory, parse_provider_kind
from .lyrics import LyricsSearchProvider, format_lyrics
from .youtube import YouTubeSearchProvider

__all__ = [
    "LookupResult",
    "ProviderKind",
    "SearchProvider",
    "ProviderFactory",
    "parse_provider_kind",
    "LyricsSearchProvider",
    "format_lyrics",
    "YouTubeSearchProvider",
]
