"""
================================================================================
Books/Film API - Record Matcher
================================================================================
Pairwise similarity between NormalizedRecords.

  - Equal non-empty ISBNs: 0.95 outright
  - Otherwise: 0.7 * title similarity + 0.3 * author similarity

Title similarity is normalized Levenshtein similarity (rapidfuzz). Author
similarity is the share of authors in `a` that have a counterpart in `b`
scoring above 0.8, over the larger of the two author sets.
================================================================================
"""

from typing import FrozenSet

from rapidfuzz.distance import Levenshtein

from .models import NormalizedRecord


ISBN_MATCH_SCORE = 0.95
TITLE_WEIGHT = 0.7
AUTHOR_WEIGHT = 0.3
AUTHOR_MATCH_THRESHOLD = 0.8


class RecordMatcher:
    """Scores how likely two records describe the same work."""

    def __init__(
        self,
        isbn_match_score: float = ISBN_MATCH_SCORE,
        title_weight: float = TITLE_WEIGHT,
        author_weight: float = AUTHOR_WEIGHT,
        author_match_threshold: float = AUTHOR_MATCH_THRESHOLD,
    ):
        self.isbn_match_score = isbn_match_score
        self.title_weight = title_weight
        self.author_weight = author_weight
        self.author_match_threshold = author_match_threshold

    @staticmethod
    def string_similarity(a: str, b: str) -> float:
        """1 - levenshtein(a, b) / max(len(a), len(b)); two empty strings score 1.0."""
        return Levenshtein.normalized_similarity(a, b)

    def author_similarity(self, a: FrozenSet[str], b: FrozenSet[str]) -> float:
        if not a or not b:
            return 0.0
        matched = sum(
            1 for author in a
            if any(self.string_similarity(author, other) > self.author_match_threshold for other in b)
        )
        return matched / max(len(a), len(b))

    def score(self, a: NormalizedRecord, b: NormalizedRecord) -> float:
        if a.isbn and b.isbn and a.isbn == b.isbn:
            return self.isbn_match_score
        title = self.string_similarity(a.title, b.title)
        authors = self.author_similarity(a.authors, b.authors)
        return self.title_weight * title + self.author_weight * authors


_default_matcher = RecordMatcher()


def string_similarity(a: str, b: str) -> float:
    return RecordMatcher.string_similarity(a, b)


def author_similarity(a: FrozenSet[str], b: FrozenSet[str]) -> float:
    return _default_matcher.author_similarity(a, b)


def score(a: NormalizedRecord, b: NormalizedRecord) -> float:
    """Convenience function for RecordMatcher().score()."""
    return _default_matcher.score(a, b)
