"""Validation and normalization of artist/song query fields."""

import re
import unicodedata
from dataclasses import dataclass

from .exceptions import ValidationError

MAX_FIELD_LENGTH = 200

# Besides letters: ASCII digits, space and . , ' ( ) -
_SAFE_EXTRA = frozenset("0123456789 .,'()-")
_PUNCTUATION = re.compile(r"[^\w\s]|_")
_WHITESPACE = re.compile(r"\s+")


def _has_control_character(value: str) -> bool:
    return any(unicodedata.category(char) == "Cc" for char in value)


def sanitize(value, field_name: str) -> str:
    """Normalize a raw query field and reject unsafe values.

    The value is trimmed, NFKC-normalized and trimmed again so that
    visually-equivalent encodings collapse to one canonical string. Case is
    preserved. Calling ``sanitize`` on its own output returns it unchanged.

    Control characters are rejected wherever they appear, including the
    ends of the raw value, so trimming never hides them.

    Raises:
        ValidationError: if the value is missing, empty, longer than
            ``MAX_FIELD_LENGTH`` or contains a control character.
    """
    if value is None:
        raise ValidationError(field_name, f"{field_name} is required")
    if not isinstance(value, str):
        raise ValidationError(field_name, f"{field_name} must be a string")

    if _has_control_character(value):
        raise ValidationError(field_name, f"Invalid {field_name}")

    normalized = unicodedata.normalize("NFKC", value.strip()).strip()

    if not normalized or len(normalized) > MAX_FIELD_LENGTH:
        raise ValidationError(field_name, f"Invalid {field_name}")
    if _has_control_character(normalized):
        raise ValidationError(field_name, f"Invalid {field_name}")

    return normalized


def ensure_safe_segment(value: str, field_name: str) -> str:
    """Check a sanitized value before it becomes a literal URL path segment.

    Only letters (``str.isalpha``), ASCII digits, space and ``. , ' ( ) -``
    are allowed; numeric symbols such as roman numerals or fractions are not.
    """
    if not value or not all(char.isalpha() or char in _SAFE_EXTRA for char in value):
        raise ValidationError(field_name, f"{field_name} contains unsupported characters")
    return value


def simplify(value: str) -> str:
    """Drop punctuation and collapse whitespace."""
    stripped = _PUNCTUATION.sub("", value)
    return _WHITESPACE.sub(" ", stripped).strip()


@dataclass(frozen=True)
class Query:
    """An artist/song pair that has passed sanitization.

    Both fields are sanitized on construction, so every ``Query`` instance is
    safe to use as a cache key or provider input.
    """

    artist: str
    song: str

    def __post_init__(self):
        object.__setattr__(self, "artist", sanitize(self.artist, "artist"))
        object.__setattr__(self, "song", sanitize(self.song, "song"))

    @classmethod
    def create(cls, artist, song) -> "Query":
        return cls(artist, song)

    def simplified(self) -> "Query":
        """Return the punctuation-free variant of this query.

        Raises:
            ValidationError: if simplification leaves a field empty.
        """
        return Query(simplify(self.artist), simplify(self.song))

    @property
    def search_terms(self) -> str:
        return f"{self.artist} {self.song}"

    def __str__(self) -> str:
        return f"{self.artist} - {self.song}"
