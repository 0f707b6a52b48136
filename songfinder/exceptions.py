"""Error types raised by the lookup layer."""


class SongFinderError(Exception):
    """Base class for all song finder errors."""


class ValidationError(SongFinderError):
    """Raised when a query field is missing or unsafe."""

    def __init__(self, field_name: str, message: str):
        super().__init__(message)
        self.field_name = field_name


class UnsupportedProviderError(SongFinderError):
    """Raised for a provider tag outside the known set."""

    def __init__(self, tag):
        super().__init__(f"Unsupported provider: {tag}")
        self.tag = tag


class UnsupportedStrategyError(SongFinderError):
    """Raised for a strategy tag outside the known set."""

    def __init__(self, tag):
        super().__init__(f"Unsupported strategy: {tag}")
        self.tag = tag


class TransportError(SongFinderError):
    """Upstream call failed or could not be built.

    Providers convert this into a not-found result; it only escapes a
    provider when the request itself cannot be constructed.
    """
