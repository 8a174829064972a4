"""
================================================================================
Books/Film API - Cross-Source Deduplicator
================================================================================
Collapses the same book found by several providers into one canonical item.

Process:
  1. Normalize every item of every successful book result
  2. Greedy clustering: each unclaimed record seeds a cluster and claims
     every later unclaimed record scoring >= threshold against the seed
     (seed-relative, so clusters are not transitive closures)
  3. Elect a canonical record per cluster by source priority
     (Google Books > Open Library > LIBRIS > anything else; ties keep the
     first-seen record)
  4. Rebuild each payload with only the canonical items it won, plus a
     `deduplication` block with per-source counts

Errored results and unknown sources pass through unchanged. Items that cannot
be normalized (no title) are dropped from the rebuilt payloads.
================================================================================
"""

import logging
from typing import Dict, List, Optional, Tuple

from bookfilm_app.linkage.matcher import RecordMatcher
from bookfilm_app.linkage.models import (
    Cluster,
    DeduplicationReport,
    NormalizedRecord,
    SourceCounts,
    SourceResult,
    SourceShape,
)
from bookfilm_app.linkage.normalizer import RecordNormalizer, extract_items, replace_items


logger = logging.getLogger(__name__)

DEFAULT_SIMILARITY_THRESHOLD = 0.8

# id(record) -> (result index, item position)
_Positions = Dict[int, Tuple[int, int]]


class SearchDeduplicator:
    """
    Deduplicates book results across providers.

    Usage:
        dedup = SearchDeduplicator()
        report = dedup.deduplicate([SourceResult("Google Books", payload), ...])
        report.results  # payload copies holding canonical items only
    """

    def __init__(
        self,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
        normalizer: Optional[RecordNormalizer] = None,
        matcher: Optional[RecordMatcher] = None,
    ):
        self.similarity_threshold = similarity_threshold
        self.normalizer = normalizer or RecordNormalizer()
        self.matcher = matcher or RecordMatcher()

    # =========================================================================
    # CLUSTERING
    # =========================================================================

    def cluster(
        self,
        records: List[NormalizedRecord],
        threshold: Optional[float] = None
    ) -> List[Cluster]:
        """
        Greedy seed-relative clustering.

        Every record lands in exactly one cluster; cluster order follows the
        order of the seeds in `records`.
        """
        threshold = self.similarity_threshold if threshold is None else threshold
        claimed = [False] * len(records)
        clusters: List[Cluster] = []

        for i, seed in enumerate(records):
            if claimed[i]:
                continue
            claimed[i] = True
            members = [seed]

            for j in range(i + 1, len(records)):
                if claimed[j]:
                    continue
                if self.matcher.score(seed, records[j]) >= threshold:
                    members.append(records[j])
                    claimed[j] = True

            clusters.append(Cluster(members=members, canonical=self.select_canonical(members)))

        return clusters

    @staticmethod
    def select_canonical(members: List[NormalizedRecord]) -> NormalizedRecord:
        # sorted() is stable: equal priorities keep input order
        return sorted(members, key=lambda record: -record.priority)[0]

    # =========================================================================
    # DEDUPLICATION
    # =========================================================================

    def collect_records(self, results: List[SourceResult]) -> Tuple[List[NormalizedRecord], _Positions]:
        """
        Normalize all items of all participating results, in result order.

        Returns:
            (records, positions) where positions maps id(record) to its
            (result index, item position)
        """
        records: List[NormalizedRecord] = []
        positions: _Positions = {}

        for index, result in enumerate(results):
            items = self._participating_items(result)
            if items is None:
                continue
            for position, item in enumerate(items):
                record = self.normalizer.normalize(item, result.source, origin_index=index)
                if record is not None:
                    records.append(record)
                    positions[id(record)] = (index, position)

        return records, positions

    def deduplicate(
        self,
        results: List[SourceResult],
        threshold: Optional[float] = None
    ) -> DeduplicationReport:
        """
        Deduplicate provider results.

        Args:
            results: Provider results in presentation order
            threshold: Similarity threshold (default: instance threshold)

        Returns:
            DeduplicationReport with rebuilt results, clusters and counts
        """
        records, positions = self.collect_records(results)
        clusters = self.cluster(records, threshold)

        # Each participating result keeps only the canonical items it won,
        # in original item order
        kept: Dict[int, List[Tuple[int, object]]] = {
            index: [] for index, result in enumerate(results)
            if self._participating_items(result) is not None
        }
        for cluster in clusters:
            index, position = positions[id(cluster.canonical)]
            kept[index].append((position, cluster.canonical.raw_item))

        rebuilt: List[SourceResult] = []
        counts: Dict[str, SourceCounts] = {}
        for index, result in enumerate(results):
            if index not in kept:
                rebuilt.append(result)
                continue

            shape = SourceShape.for_source(result.source)
            original_items = extract_items(shape, result.results)
            items = [item for _, item in sorted(kept[index], key=lambda pair: pair[0])]

            source_counts = SourceCounts(
                original_count=len(original_items),
                deduplicated_count=len(items),
            )
            counts[result.source] = source_counts

            payload = replace_items(shape, result.results, items)
            payload['deduplication'] = source_counts.to_dict()
            rebuilt.append(SourceResult(source=result.source, results=payload))

        report = DeduplicationReport(results=rebuilt, clusters=clusters, counts=counts)
        if report.removed_duplicates:
            logger.info(
                f"Deduplicated {len(records)} records into {len(clusters)} clusters "
                f"({report.removed_duplicates} duplicates removed)"
            )
        return report

    @staticmethod
    def _participating_items(result: SourceResult) -> Optional[list]:
        if not result.ok or result.results is None:
            return None
        shape = SourceShape.for_source(result.source)
        if shape is SourceShape.UNKNOWN:
            return None
        return extract_items(shape, result.results)


def deduplicate_book_results(
    results: List[SourceResult],
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD
) -> List[SourceResult]:
    """Convenience function returning only the rebuilt results."""
    return SearchDeduplicator(similarity_threshold).deduplicate(results).results
