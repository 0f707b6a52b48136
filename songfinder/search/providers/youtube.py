"""YouTube search-link provider."""

import logging
import time
from urllib.parse import quote, urlparse

from ...config import ProviderConfig
from ...exceptions import TransportError
from ...sanitizer import Query
from .base import LookupResult, ProviderKind, SearchProvider

logger = logging.getLogger(__name__)


class YouTubeSearchProvider(SearchProvider):
    """Builds a YouTube results-page link for a query.

    No request is made; a link can always be built, so every result is
    found.
    """

    kind = ProviderKind.YOUTUBE

    def __init__(self, config: ProviderConfig = None):
        super().__init__(config or ProviderConfig())
        self.search_url = self.config.video_search_url

    def build_search_url(self, query: Query) -> str:
        parsed = urlparse(self.search_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise TransportError(f"Malformed video search URL: {self.search_url!r}")

        search_query = quote(query.search_terms, safe="")
        return f"{self.search_url}?search_query={search_query}"

    async def search(self, query: Query) -> LookupResult:
        start_time = time.time()
        url = self.build_search_url(query)
        self.update_statistics(True, time.time() - start_time)

        self.logger.debug(f"Built video search link for '{query}'")
        return LookupResult(
            provider=self.provider_name,
            found=True,
            value=url,
            artist=query.artist,
            song=query.song,
        )
