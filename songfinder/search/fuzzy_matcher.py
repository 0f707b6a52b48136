"""Fuzzy matching for artist/song name variations and typos."""

import logging
import re
import unicodedata
from dataclasses import dataclass
from difflib import SequenceMatcher
from typing import Optional

import jellyfish

from ..config import MatchingConfig

logger = logging.getLogger(__name__)


@dataclass
class FuzzyMatch:
    """Result of comparing a query pair against a candidate pair."""

    score: float
    artist_score: float
    song_score: float
    normalized_query: str = ""
    normalized_candidate: str = ""


class FuzzyMatcher:
    """Similarity scoring with several string metrics and name normalization."""

    def __init__(self, config: Optional[MatchingConfig] = None) -> None:
        self.config = config or MatchingConfig()
        self.min_similarity_threshold = self.config.min_similarity
        self.artist_weight = self.config.artist_weight

        self._load_normalization_patterns()

    def _load_normalization_patterns(self):
        """Load patterns for text normalization."""

        # Common artist name variations
        self.artist_normalizations = {
            # Articles
            r"^the\s+": "",
            r"^a\s+": "",
            r"^an\s+": "",
            # Punctuation and symbols
            r"[&]": "and",
            r"[\.,\-_]": " ",
            r"['\"]": "",
            r"\s+": " ",
            # Common abbreviations
            r"\bft\.?\b": "featuring",
            r"\bfeat\.?\b": "featuring",
            r"\bvs\.?\b": "versus",
        }

        # Common song title variations
        self.song_normalizations = {
            # Remove parentheticals that don't affect matching
            r"\s*\([^)]*(?:remix|edit|version|mix|remaster)[^)]*\)": "",
            r"\s*\([^)]*(?:live|acoustic|demo|instrumental)[^)]*\)": "",
            r"\s*\[[^\]]*(?:remix|edit|version|mix|remaster)[^\]]*\]": "",
            # Normalize punctuation
            r"['\"]": "",
            r"[\-_]": " ",
            r"\s+": " ",
        }

    def normalize_text(self, text: str, text_type: str = "general") -> str:
        """Lowercase, strip accents and apply name-specific rewrites."""
        normalized = unicodedata.normalize("NFKD", text.lower().strip())
        normalized = "".join(c for c in normalized if not unicodedata.combining(c))

        if text_type == "artist":
            patterns = self.artist_normalizations
        elif text_type == "song":
            patterns = self.song_normalizations
        else:
            patterns = {**self.artist_normalizations, **self.song_normalizations}

        for pattern, replacement in patterns.items():
            normalized = re.sub(pattern, replacement, normalized, flags=re.IGNORECASE)

        return normalized.strip()

    def calculate_similarity(self, text1: str, text2: str, text_type: str = "general") -> float:
        """Weighted blend of sequence, Jaro-Winkler, Levenshtein and token similarity."""
        if not text1 or not text2:
            return 0.0

        if text1.lower() == text2.lower():
            return 1.0

        norm1 = self.normalize_text(text1, text_type)
        norm2 = self.normalize_text(text2, text_type)

        if not norm1 or not norm2:
            return 0.0
        if norm1 == norm2:
            return 0.95

        similarities = [
            ("sequence", SequenceMatcher(None, norm1, norm2).ratio()),
            ("jaro_winkler", jellyfish.jaro_winkler_similarity(norm1, norm2)),
        ]

        lev_distance = jellyfish.levenshtein_distance(norm1, norm2)
        max_len = max(len(norm1), len(norm2))
        similarities.append(("levenshtein", 1.0 - (lev_distance / max_len)))

        if " " in norm1 or " " in norm2:
            similarities.append(("token", self._calculate_token_similarity(norm1, norm2)))

        weights = {"sequence": 0.3, "jaro_winkler": 0.4, "levenshtein": 0.2, "token": 0.1}
        weighted_sum = sum(weights[method] * score for method, score in similarities)
        total_weight = sum(weights[method] for method, _ in similarities)

        return weighted_sum / total_weight

    def _calculate_token_similarity(self, text1: str, text2: str) -> float:
        """Calculate similarity based on token overlap."""
        tokens1 = set(text1.split())
        tokens2 = set(text2.split())

        if not tokens1 or not tokens2:
            return 0.0

        intersection = tokens1.intersection(tokens2)
        union = tokens1.union(tokens2)
        jaccard = len(intersection) / len(union)

        # Bonus for ordered similarity
        ordered_bonus = 0.0
        list1, list2 = text1.split(), text2.split()
        if len(list1) == len(list2):
            matches = sum(1 for a, b in zip(list1, list2) if a == b)
            ordered_bonus = min(matches / len(list1) * 0.2, 1.0 - jaccard)

        return jaccard + ordered_bonus

    def phonetic_similarity(self, text1: str, text2: str) -> float:
        """Compare Metaphone encodings of the normalized texts."""
        metaphone1 = jellyfish.metaphone(self.normalize_text(text1))
        metaphone2 = jellyfish.metaphone(self.normalize_text(text2))

        if not metaphone1 or not metaphone2:
            return 0.0
        if metaphone1 == metaphone2:
            return 1.0
        return SequenceMatcher(None, metaphone1, metaphone2).ratio()

    def score(self, query: str, candidate: str, text_type: str = "general") -> float:
        """String similarity blended with phonetic similarity (80/20)."""
        string_sim = self.calculate_similarity(query, candidate, text_type)
        if string_sim == 1.0:
            return 1.0
        return string_sim * 0.8 + self.phonetic_similarity(query, candidate) * 0.2

    def match_artist_song(
        self, query_artist: str, query_song: str, candidate_artist: str, candidate_song: str
    ) -> FuzzyMatch:
        """Score a candidate pair against the query pair, artist weighted higher."""
        artist_score = self.score(query_artist, candidate_artist, "artist")
        song_score = self.score(query_song, candidate_song, "song")
        combined = artist_score * self.artist_weight + song_score * (1 - self.artist_weight)

        return FuzzyMatch(
            score=combined,
            artist_score=artist_score,
            song_score=song_score,
            normalized_query=f"{self.normalize_text(query_artist, 'artist')} - "
            f"{self.normalize_text(query_song, 'song')}",
            normalized_candidate=f"{self.normalize_text(candidate_artist, 'artist')} - "
            f"{self.normalize_text(candidate_song, 'song')}",
        )

    def is_match(self, match: FuzzyMatch) -> bool:
        return match.score >= self.min_similarity_threshold
