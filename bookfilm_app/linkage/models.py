"""
================================================================================
Books/Film API - Record Linkage Models
================================================================================
Comparable projections of provider records, and the clusters built from them.

Provider payloads are heterogeneous:
  - Google Books:  {"items": [{"volumeInfo": {...}}]}
  - Open Library:  {"docs": [{...}]}
  - LIBRIS:        {"xsearch": {"list": [{...}]}}

SourceShape names every shape the linkage engine understands. Anything else
is UNKNOWN and passes through untouched.
================================================================================
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional


# =============================================================================
# ENUMS
# =============================================================================

class SourceShape(str, Enum):
    """Known provider payload shapes, keyed by source display name."""
    GOOGLE_BOOKS = "Google Books"
    OPEN_LIBRARY = "Open Library"
    LIBRIS = "LIBRIS (Swedish National Library)"
    UNKNOWN = "unknown"

    @classmethod
    def for_source(cls, source_name: Optional[str]) -> 'SourceShape':
        for shape in cls:
            if shape is not cls.UNKNOWN and shape.value == source_name:
                return shape
        return cls.UNKNOWN


# Canonical election order (higher wins); unlisted sources rank 0
SOURCE_PRIORITY: Dict[str, int] = {
    SourceShape.GOOGLE_BOOKS.value: 3,
    SourceShape.OPEN_LIBRARY.value: 2,
    SourceShape.LIBRIS.value: 1,
}


def source_priority(source_name: str) -> int:
    return SOURCE_PRIORITY.get(source_name, 0)


# =============================================================================
# DATA MODELS
# =============================================================================

@dataclass(frozen=True)
class NormalizedRecord:
    """
    Provider-agnostic projection of one result item.

    title and authors are already normalized (lowercase, no punctuation,
    single spaces); isbn is digits (plus a trailing X) only.
    """
    source_name: str
    title: str
    authors: FrozenSet[str] = frozenset()
    isbn: Optional[str] = None

    # Original provider item, returned untouched for canonical records
    raw_item: Any = field(default=None, compare=False, repr=False)

    # Position of the provider result list this record came from
    origin_index: int = 0

    @property
    def priority(self) -> int:
        return source_priority(self.source_name)


@dataclass
class Cluster:
    """Records judged to describe the same work, plus the elected representative."""
    members: List[NormalizedRecord]
    canonical: NormalizedRecord

    @property
    def size(self) -> int:
        return len(self.members)

    @property
    def duplicates(self) -> List[NormalizedRecord]:
        return [m for m in self.members if m is not self.canonical]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'title': self.canonical.title,
            'isbn': self.canonical.isbn,
            'canonical_source': self.canonical.source_name,
            'duplicate_sources': [d.source_name for d in self.duplicates],
        }


@dataclass
class SourceResult:
    """One provider's answer in an aggregated search."""
    source: str
    results: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        data = {'source': self.source, 'results': self.results}
        if self.error is not None:
            data['error'] = self.error
        return data


@dataclass
class SourceCounts:
    """Per-provider item counts before and after deduplication."""
    original_count: int
    deduplicated_count: int

    @property
    def removed_duplicates(self) -> int:
        return self.original_count - self.deduplicated_count

    def to_dict(self) -> Dict[str, int]:
        return {
            'original_count': self.original_count,
            'deduplicated_count': self.deduplicated_count,
            'removed_duplicates': self.removed_duplicates,
        }


@dataclass
class DeduplicationReport:
    """Output of SearchDeduplicator.deduplicate()."""
    results: List[SourceResult]
    clusters: List[Cluster] = field(default_factory=list)
    counts: Dict[str, SourceCounts] = field(default_factory=dict)

    @property
    def removed_duplicates(self) -> int:
        """Records folded into their cluster's canonical item."""
        return sum(len(c.duplicates) for c in self.clusters)

    @property
    def merged(self) -> List[Cluster]:
        return [c for c in self.clusters if c.duplicates]
