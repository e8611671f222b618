from __future__ import annotations

from collections import Counter
from typing import Mapping, Tuple

from rapidfuzz import fuzz, process

from locscan.core.text_builder import normalize_text


def similarity(a: str, b: str) -> float:
    """Multiset Jaccard overlap of the word bags of two normalized strings."""
    words_a = a.split()
    words_b = b.split()
    intersection = sum((Counter(words_a) & Counter(words_b)).values())
    denom = len(words_a) + len(words_b) - intersection
    if denom == 0:
        return 0.0
    return intersection / denom


class FuzzySearcher:
    """Closest resource string by RapidFuzz token ratio, used for hints only."""

    def __init__(self, resources: Mapping[str, str]):
        self._choices = {key: normalize_text(value) for key, value in resources.items()}

    def search(self, query: str) -> Tuple[str, float]:
        norm = normalize_text(query)
        if not norm or not self._choices:
            return "", 0.0
        hit = process.extractOne(norm, self._choices, scorer=fuzz.token_sort_ratio)
        if hit is None:
            return "", 0.0
        _, score, key = hit
        return str(key), float(score) / 100.0
