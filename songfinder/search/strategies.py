"""Match strategies deciding whether a provider result answers a query."""

import dataclasses
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional, Union

from ..config import MatchingConfig
from ..exceptions import UnsupportedStrategyError, ValidationError
from ..sanitizer import Query
from .fuzzy_matcher import FuzzyMatcher
from .providers.base import LookupResult, SearchProvider

logger = logging.getLogger(__name__)


class StrategyKind(str, Enum):
    """Tags of the available strategy implementations."""

    EXACT = "exact"
    FUZZY = "fuzzy"


class SearchStrategy(ABC):
    """Resolves a query through a provider under a matching policy."""

    kind: StrategyKind

    def __init__(self):
        self.logger = logging.getLogger(f"{__name__}.{self.kind.value}")

    @abstractmethod
    async def resolve(self, query: Query, provider: SearchProvider) -> LookupResult:
        """Return the provider result if it matches ``query``, else not-found."""

    def _not_found(self, query: Query, provider: SearchProvider, **metadata) -> LookupResult:
        return LookupResult.not_found(
            provider.name, query.artist, query.song, strategy=self.kind.value, **metadata
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class ExactSearchStrategy(SearchStrategy):
    """Accepts only results reporting exactly the queried artist and song."""

    kind = StrategyKind.EXACT

    async def resolve(self, query: Query, provider: SearchProvider) -> LookupResult:
        result = await provider.search(query)

        if result.found and result.matches(query):
            return result

        if result.found:
            self.logger.debug(
                f"Rejected '{result.artist} - {result.song}' for exact query '{query}'"
            )
        return self._not_found(query, provider)


class FuzzySearchStrategy(SearchStrategy):
    """Accepts results whose reported identification is similar enough.

    When the provider has nothing for the query as typed, one more attempt is
    made with punctuation stripped.
    """

    kind = StrategyKind.FUZZY

    def __init__(
        self, config: Optional[MatchingConfig] = None, matcher: Optional[FuzzyMatcher] = None
    ):
        super().__init__()
        self.config = config or MatchingConfig()
        self.matcher = matcher or FuzzyMatcher(self.config)

    def _retry_query(self, query: Query) -> Optional[Query]:
        if not self.config.retry_simplified:
            return None
        try:
            simplified = query.simplified()
        except ValidationError:
            return None
        return None if simplified == query else simplified

    async def resolve(self, query: Query, provider: SearchProvider) -> LookupResult:
        result = await provider.search(query)

        if not result.found:
            retry_query = self._retry_query(query)
            if retry_query is not None:
                self.logger.debug(f"Retrying '{query}' as '{retry_query}'")
                result = await provider.search(retry_query)

        if not result.found:
            return self._not_found(query, provider)

        match = self.matcher.match_artist_song(
            query.artist, query.song, result.artist, result.song
        )
        if not self.matcher.is_match(match):
            self.logger.debug(
                f"'{result.artist} - {result.song}' scored {match.score:.3f} for '{query}'"
            )
            return self._not_found(query, provider, similarity=match.score)

        return dataclasses.replace(
            result,
            metadata={**result.metadata, "strategy": self.kind.value, "similarity": match.score},
        )


def parse_strategy_kind(tag: Union[str, StrategyKind]) -> StrategyKind:
    """Resolve a tag, ignoring case.

    Raises:
        UnsupportedStrategyError: for anything outside ``StrategyKind``.
    """
    if isinstance(tag, StrategyKind):
        return tag
    if isinstance(tag, str):
        try:
            return StrategyKind(tag.strip().lower())
        except ValueError:
            pass
    raise UnsupportedStrategyError(tag)


class StrategyFactory:
    """Creates a fresh strategy for a tag."""

    def __init__(self, config: Optional[MatchingConfig] = None):
        self.config = config or MatchingConfig()

    def create(self, tag: Union[str, StrategyKind]) -> SearchStrategy:
        kind = parse_strategy_kind(tag)

        if kind is StrategyKind.EXACT:
            return ExactSearchStrategy()
        if kind is StrategyKind.FUZZY:
            return FuzzySearchStrategy(self.config)

        raise UnsupportedStrategyError(tag)

    @staticmethod
    def available() -> List[str]:
        return [kind.value for kind in StrategyKind]
