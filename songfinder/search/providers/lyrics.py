"""Lyrics provider backed by the lyrics.ovh API."""

import logging
import re
import time
from typing import Any, Optional
from urllib.parse import quote

import httpx
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from ...config import ProviderConfig
from ...exceptions import TransportError
from ...sanitizer import Query, ensure_safe_segment
from .base import LookupResult, ProviderKind, SearchProvider

logger = logging.getLogger(__name__)

LINE_BREAK = "<br>"
_NEWLINES = re.compile(r"\n+")


def format_lyrics(raw: str) -> str:
    """Turn raw lyrics into a single line with ``<br>`` separators.

    Carriage returns are dropped, every run of newlines becomes one
    ``<br>`` and the result is trimmed.
    """
    text = raw.replace("\r", "")
    text = _NEWLINES.sub(LINE_BREAK, text)
    return text.strip()


def _is_transient(exc: BaseException) -> bool:
    """Timeouts, connection problems and 5xx responses are worth retrying."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return isinstance(exc, httpx.TransportError)


class LyricsSearchProvider(SearchProvider):
    """Fetches lyrics for an artist/song pair.

    Remote failures never escape ``search``: an error status, a timeout or a
    malformed body all produce a not-found result.
    """

    kind = ProviderKind.LYRICS

    def __init__(self, config: ProviderConfig = None, client: Optional[httpx.AsyncClient] = None):
        super().__init__(config or ProviderConfig())
        self.base_url = self.config.lyrics_api_url.rstrip("/")

        self._owns_client = client is None
        self.http_client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(self.config.lyrics_timeout_seconds),
            headers={"User-Agent": self.config.lyrics_user_agent},
            follow_redirects=True,
        )

    def build_lyrics_url(self, query: Query) -> str:
        artist = ensure_safe_segment(query.artist, "artist")
        song = ensure_safe_segment(query.song, "song")
        return f"{self.base_url}/{quote(artist, safe='')}/{quote(song, safe='')}"

    async def search(self, query: Query) -> LookupResult:
        url = self.build_lyrics_url(query)
        start_time = time.time()

        try:
            payload = await self._fetch_json(url)
            raw_lyrics = self._extract_lyrics(payload)
        except TransportError as e:
            self.update_statistics(False, time.time() - start_time)
            self.logger.warning(f"Lyrics lookup failed for '{query}': {e}")
            return LookupResult.not_found(
                self.provider_name, query.artist, query.song, reason=str(e)
            )

        formatted = format_lyrics(raw_lyrics)
        self.update_statistics(bool(formatted), time.time() - start_time)

        if not formatted:
            self.logger.info(f"Empty lyrics returned for '{query}'")
            return LookupResult.not_found(
                self.provider_name, query.artist, query.song, reason="empty lyrics"
            )

        self.logger.debug(f"Found lyrics for '{query}' ({len(formatted)} chars)")
        return LookupResult(
            provider=self.provider_name,
            found=True,
            value=formatted,
            artist=query.artist,
            song=query.song,
        )

    async def _fetch_json(self, url: str) -> Any:
        """GET ``url`` with retries and decode the JSON body.

        Raises:
            TransportError: when the request ultimately fails or the body is
                not JSON.
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.config.lyrics_max_attempts),
            wait=wait_exponential(multiplier=self.config.lyrics_backoff_seconds, max=10),
            retry=retry_if_exception(_is_transient),
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    response = await self.http_client.get(url)
                    response.raise_for_status()
        except httpx.TimeoutException as e:
            raise TransportError(f"request timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            raise TransportError(f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"request failed: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise TransportError("malformed response body") from e

    @staticmethod
    def _extract_lyrics(payload: Any) -> str:
        if not isinstance(payload, dict):
            raise TransportError("malformed response body")
        lyrics = payload.get("lyrics")
        if not isinstance(lyrics, str):
            raise TransportError("response has no lyrics field")
        return lyrics

    async def aclose(self) -> None:
        if self._owns_client:
            await self.http_client.aclose()
