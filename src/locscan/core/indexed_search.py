"""
Word-level inverted index over normalized resource values.

A resource that shares no word with a candidate has similarity 0 and can never
be accepted, so restricting the scan to resources that share at least one word
returns the same best match as a full linear scan. Values are also bucketed by
normalized length so the matcher's length pre-filter can skip whole buckets.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


class WordIndex:
    def __init__(self, normalized: Mapping[str, str], cache_size: int = 1000, bucket_size: int = 10):
        """
        Args:
            normalized: resource key -> normalized value, in dictionary order
            cache_size: maximum number of cached queries
            bucket_size: width of a length bucket (10 groups 0-9, 10-19, ...)
        """
        self._entries: List[Tuple[str, str]] = list(normalized.items())
        self._postings: Dict[str, set[int]] = defaultdict(set)
        self.bucket_size = bucket_size
        self.length_buckets: Dict[int, List[int]] = defaultdict(list)
        for pos, (_, value) in enumerate(self._entries):
            for word in value.split():
                self._postings[word].add(pos)
            self.length_buckets[len(value) // bucket_size].append(pos)
        self._sorted_bucket_ids = sorted(self.length_buckets)

        self._cache_size = cache_size
        self._cache: Dict[Tuple[str, Optional[int]], List[Tuple[str, str]]] = {}
        self._cache_hits = 0
        self._cache_misses = 0
        logger.debug(
            "word index built: %d entries, %d distinct words, %d length buckets",
            len(self._entries),
            len(self._postings),
            len(self._sorted_bucket_ids),
        )

    def __len__(self) -> int:
        return len(self._entries)

    def positions_by_length(self, query_len: int, max_delta: int) -> set[int]:
        """Positions whose normalized length is within ``max_delta`` of ``query_len``."""
        lo = max(0, query_len - max_delta)
        hi = query_len + max_delta
        result: set[int] = set()
        for bucket_id in self._sorted_bucket_ids:
            if bucket_id < lo // self.bucket_size:
                continue
            if bucket_id > hi // self.bucket_size:
                break
            for pos in self.length_buckets[bucket_id]:
                if lo <= len(self._entries[pos][1]) <= hi:
                    result.add(pos)
        return result

    def candidates(self, query: str, max_length_delta: Optional[int] = None) -> List[Tuple[str, str]]:
        """(key, normalized value) pairs sharing a word with ``query``, in dictionary order.

        With ``max_length_delta`` set, values whose length differs from the
        query's by more than that are left out.
        """
        cache_key = (query, max_length_delta)
        if cache_key in self._cache:
            self._cache_hits += 1
            return self._cache[cache_key]
        self._cache_misses += 1

        positions: set[int] = set()
        for word in set(query.split()):
            positions |= self._postings.get(word, set())
        if max_length_delta is not None and positions:
            positions &= self.positions_by_length(len(query), max_length_delta)
        result = [self._entries[pos] for pos in sorted(positions)]

        # FIFO: drop the oldest half when full
        if len(self._cache) >= self._cache_size:
            for key in list(self._cache.keys())[: self._cache_size // 2]:
                del self._cache[key]
        self._cache[cache_key] = result
        return result

    def get_cache_stats(self) -> Dict[str, int]:
        return {
            "hits": self._cache_hits,
            "misses": self._cache_misses,
            "size": len(self._cache),
        }
