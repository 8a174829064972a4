"""
Record linkage: normalization and pairwise scoring of book records.
"""

from .matcher import RecordMatcher, score
from .models import (
    Cluster,
    DeduplicationReport,
    NormalizedRecord,
    SourceCounts,
    SourceResult,
    SourceShape,
    source_priority,
)
from .normalizer import RecordNormalizer, normalize, normalize_isbn, normalize_text

__all__ = [
    'Cluster',
    'DeduplicationReport',
    'NormalizedRecord',
    'RecordMatcher',
    'RecordNormalizer',
    'SourceCounts',
    'SourceResult',
    'SourceShape',
    'normalize',
    'normalize_isbn',
    'normalize_text',
    'score',
    'source_priority',
]
