"""Shared fixtures: in-memory providers standing in for remote sources."""

import asyncio

import pytest

from songfinder.search.providers.base import LookupResult, ProviderKind, SearchProvider


class StubProvider(SearchProvider):
    """Records every call and answers from a small script.

    ``reported`` overrides the artist/song the result claims to be for,
    ``missing`` lists (artist, song) pairs answered with not-found and
    ``fail_times`` makes the first N calls raise.
    """

    kind = ProviderKind.LYRICS

    def __init__(self, reported=None, missing=(), delay=0.0, fail_times=0):
        super().__init__()
        self.reported = reported
        self.missing = set(missing)
        self.delay = delay
        self.fail_times = fail_times
        self.calls = []

    @property
    def call_count(self):
        return len(self.calls)

    async def search(self, query):
        self.calls.append(query)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_times > 0:
            self.fail_times -= 1
            raise RuntimeError("upstream exploded")
        if (query.artist, query.song) in self.missing:
            return LookupResult.not_found(self.provider_name, query.artist, query.song)

        artist, song = self.reported or (query.artist, query.song)
        return LookupResult(
            provider=self.provider_name,
            found=True,
            value=f"lyrics for {artist} - {song}",
            artist=artist,
            song=song,
        )


@pytest.fixture
def stub_provider_cls():
    return StubProvider


@pytest.fixture
def stub_provider():
    return StubProvider()


@pytest.fixture
def slow_provider():
    return StubProvider(delay=0.05)
