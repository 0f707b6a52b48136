"""Base interface for search providers."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict

from ...sanitizer import Query

logger = logging.getLogger(__name__)


class ProviderKind(str, Enum):
    """Tags of the available provider implementations."""

    YOUTUBE = "youtube"
    LYRICS = "lyrics"


@dataclass(frozen=True)
class LookupResult:
    """Outcome of one lookup, shared by every provider.

    ``value`` holds the search link for the video provider and the formatted
    lyrics for the lyrics provider. ``artist`` and ``song`` are what the
    provider reports the value belongs to.
    """

    provider: str
    found: bool
    value: str = ""
    artist: str = ""
    song: str = ""
    metadata: Dict = field(default_factory=dict, hash=False)
    created_at: datetime = field(default_factory=datetime.now, compare=False)

    @classmethod
    def not_found(cls, provider: str, artist: str = "", song: str = "", **metadata) -> "LookupResult":
        return cls(provider=provider, found=False, artist=artist, song=song, metadata=metadata)

    def matches(self, query: Query) -> bool:
        """Case-sensitive comparison of the reported identification."""
        return self.artist == query.artist and self.song == query.song


class SearchProvider(ABC):
    """Abstract base class for all search providers."""

    kind: ProviderKind

    def __init__(self, config=None):
        self.config = config
        self.provider_name = self.kind.value
        self.logger = logging.getLogger(f"{__name__}.{self.provider_name}")

        # Provider statistics
        self.total_searches = 0
        self.successful_searches = 0
        self.average_response_time = 0.0

    @property
    def name(self) -> str:
        return self.provider_name

    @abstractmethod
    async def search(self, query: Query) -> LookupResult:
        """Look up ``query`` and report found or not-found."""

    async def aclose(self) -> None:
        """Release any resources held by the provider."""

    def get_statistics(self) -> Dict:
        """Get provider performance statistics."""
        success_rate = (
            self.successful_searches / self.total_searches if self.total_searches > 0 else 0.0
        )

        return {
            "provider": self.provider_name,
            "total_searches": self.total_searches,
            "successful_searches": self.successful_searches,
            "success_rate": success_rate,
            "average_response_time": self.average_response_time,
        }

    def update_statistics(self, search_successful: bool, response_time: float):
        """Update provider statistics."""
        self.total_searches += 1
        if search_successful:
            self.successful_searches += 1

        # Update average response time with moving average
        if self.total_searches == 1:
            self.average_response_time = response_time
        else:
            alpha = 0.1  # Smoothing factor
            self.average_response_time = (
                alpha * response_time + (1 - alpha) * self.average_response_time
            )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
