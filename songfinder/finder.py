"""Song lookup orchestration over cached providers and strategies."""

import asyncio
import logging
from typing import Dict, Optional, Union

import httpx

from .config import SongFinderConfig
from .sanitizer import Query
from .search.cache_manager import CachedSearchProvider, CachedSearchStrategy
from .search.providers.base import LookupResult, ProviderKind, SearchProvider
from .search.providers.factory import ProviderFactory, parse_provider_kind
from .search.strategies import (
    SearchStrategy,
    StrategyFactory,
    StrategyKind,
    parse_strategy_kind,
)

logger = logging.getLogger(__name__)

LYRICS_NOT_FOUND = '{"error":"Lyrics not found"}'


class SongFinder:
    """Holds one long-lived provider and strategy per tag.

    Caches live as long as the finder, so every caller sharing a finder
    shares its cached results.
    """

    def __init__(
        self, config: Optional[SongFinderConfig] = None, client: Optional[httpx.AsyncClient] = None
    ):
        self.config = config or SongFinderConfig()
        self.provider_factory = ProviderFactory(self.config.providers, client=client)
        self.strategy_factory = StrategyFactory(self.config.matching)

        self.providers: Dict[ProviderKind, SearchProvider] = {
            kind: self._with_cache(self.provider_factory.create(kind)) for kind in ProviderKind
        }
        self.strategies: Dict[StrategyKind, SearchStrategy] = {
            kind: self._with_cache(self.strategy_factory.create(kind)) for kind in StrategyKind
        }

    def _with_cache(self, component):
        if not self.config.cache.enabled:
            return component
        if isinstance(component, SearchStrategy):
            return CachedSearchStrategy(component, self.config.cache)
        return CachedSearchProvider(component, self.config.cache)

    def provider(self, tag: Union[str, ProviderKind]) -> SearchProvider:
        return self.providers[parse_provider_kind(tag)]

    def strategy(self, tag: Union[str, StrategyKind]) -> SearchStrategy:
        return self.strategies[parse_strategy_kind(tag)]

    async def find(self, provider_tag: Union[str, ProviderKind], artist, song) -> LookupResult:
        """Look up a raw artist/song pair with one provider."""
        provider = self.provider(provider_tag)
        query = Query(artist, song)
        logger.info(f"Searching {provider.name} for: {query}")
        return await provider.search(query)

    async def resolve(
        self,
        strategy_tag: Union[str, StrategyKind],
        artist,
        song,
        provider_tag: Union[str, ProviderKind] = ProviderKind.LYRICS,
    ) -> LookupResult:
        """Look up a raw artist/song pair through a matching strategy."""
        strategy = self.strategy(strategy_tag)
        provider = self.provider(provider_tag)
        query = Query(artist, song)
        logger.info(f"Resolving '{query}' with {strategy.kind.value} strategy via {provider.name}")
        return await strategy.resolve(query, provider)

    async def song_details(self, artist, song) -> Dict[str, str]:
        """Video link and lyrics for one song, in the service's response shape."""
        query = Query(artist, song)
        video, lyrics = await asyncio.gather(
            self.providers[ProviderKind.YOUTUBE].search(query),
            self.providers[ProviderKind.LYRICS].search(query),
        )
        return {
            "song": query.song,
            "artist": query.artist,
            "youtubeSearch": video.value,
            "lyrics": lyrics.value if lyrics.found else LYRICS_NOT_FOUND,
        }

    @staticmethod
    def status() -> Dict[str, str]:
        return {"status": "Application is running"}

    def get_statistics(self) -> Dict:
        return {kind.value: provider.get_statistics() for kind, provider in self.providers.items()}

    async def aclose(self) -> None:
        for provider in self.providers.values():
            await provider.aclose()
