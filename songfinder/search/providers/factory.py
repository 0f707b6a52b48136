"""Maps provider tags to provider instances."""

import logging
from typing import List, Optional, Union

import httpx

from ...config import ProviderConfig
from ...exceptions import UnsupportedProviderError
from .base import ProviderKind, SearchProvider
from .lyrics import LyricsSearchProvider
from .youtube import YouTubeSearchProvider

logger = logging.getLogger(__name__)


def parse_provider_kind(tag: Union[str, ProviderKind]) -> ProviderKind:
    """Resolve a tag, ignoring case.

    Raises:
        UnsupportedProviderError: for anything outside ``ProviderKind``.
    """
    if isinstance(tag, ProviderKind):
        return tag
    if isinstance(tag, str):
        try:
            return ProviderKind(tag.strip().lower())
        except ValueError:
            pass
    raise UnsupportedProviderError(tag)


class ProviderFactory:
    """Creates a fresh provider for a tag.

    The factory holds only configuration; the same tag always yields an
    equivalent provider.
    """

    def __init__(
        self, config: Optional[ProviderConfig] = None, client: Optional[httpx.AsyncClient] = None
    ):
        self.config = config or ProviderConfig()
        self.client = client

    def create(self, tag: Union[str, ProviderKind]) -> SearchProvider:
        kind = parse_provider_kind(tag)

        if kind is ProviderKind.YOUTUBE:
            return YouTubeSearchProvider(self.config)
        if kind is ProviderKind.LYRICS:
            return LyricsSearchProvider(self.config, client=self.client)

        raise UnsupportedProviderError(tag)

    @staticmethod
    def available() -> List[str]:
        return [kind.value for kind in ProviderKind]
