from __future__ import annotations

import logging
import time
from typing import Callable, Iterable, List, Mapping, Tuple

from locscan.core.config import MatchConfig
from locscan.core.indexed_search import WordIndex
from locscan.core.models import MatchOutcome, MatchResult, UnmatchedResult
from locscan.core.search import FuzzySearcher, similarity
from locscan.core.smart_match import build_sentence_candidates
from locscan.core.text_builder import generate_suggested_id, normalize_text

logger = logging.getLogger(__name__)


class ResourceMatcher:
    """Match extracted text fragments against a key -> value resource dictionary."""

    def __init__(self, resources: Mapping[str, str], config: MatchConfig | None = None):
        self.config = config or MatchConfig()
        self.resources = dict(resources)
        # normalized once; dictionary order decides ties
        self._normalized = {key: normalize_text(value) for key, value in self.resources.items()}
        self._index = WordIndex(self._normalized) if self.config.use_word_index else None
        self._searcher = FuzzySearcher(self.resources) if self.config.suggest_closest else None
        self.log_callback: Callable[[str], None] | None = None

    def set_logger(self, callback: Callable[[str], None] | None) -> None:
        self.log_callback = callback

    def log(self, msg: str) -> None:
        logger.debug(msg)
        if self.log_callback:
            self.log_callback(msg)

    def _iter_resources(self, norm_candidate: str) -> Iterable[Tuple[str, str]]:
        if self._index is not None:
            return self._index.candidates(norm_candidate, self.config.max_length_delta)
        return self._normalized.items()

    def best_match(self, candidate: str) -> Tuple[str, float]:
        """Return ``(key, score)`` of the most similar resource, ``("", 0.0)`` if none."""
        norm = normalize_text(candidate)
        best_key = ""
        best_score = 0.0
        max_delta = self.config.max_length_delta
        for key, value in self._iter_resources(norm):
            if abs(len(value) - len(norm)) > max_delta:
                continue
            score = similarity(norm, value)
            if score > best_score:
                best_key, best_score = key, score
                if score >= 1.0:
                    break
        return best_key, best_score

    def match_text(self, text: str) -> List[MatchResult]:
        """Accepted matches for one extracted text (the text itself or sentence combinations)."""
        accepted: List[MatchResult] = []
        for candidate in build_sentence_candidates(text):
            key, score = self.best_match(candidate)
            if key and score >= self.config.threshold:
                self.log(f"[MATCH] {candidate!r} -> {key} (score={score:.3f})")
                accepted.append(MatchResult(text=candidate, string_id=key, score=score))
        return accepted

    def _unmatched(self, text: str) -> UnmatchedResult:
        closest = None
        if self._searcher is not None:
            key, score = self._searcher.search(text)
            if key and score >= self.config.closest_min_score:
                closest = {"stringId": key, "score": round(score, 4)}
        return UnmatchedResult(text=text, suggested_id=generate_suggested_id(text), closest=closest)

    def match(self, extracted_texts: Iterable[str]) -> MatchOutcome:
        start = time.time()
        outcome = MatchOutcome()
        count = 0
        for text in extracted_texts:
            count += 1
            accepted = self.match_text(text)
            if accepted:
                outcome.matched.extend(accepted)
            else:
                outcome.unmatched.append(self._unmatched(text))

        elapsed = time.time() - start
        self.log(
            f"[MATCH] {count} texts vs {len(self.resources)} resources: "
            f"{len(outcome.matched)} matched, {len(outcome.unmatched)} unmatched in {elapsed:.3f}s"
        )
        if self._index is not None:
            stats = self._index.get_cache_stats()
            self.log(f"[CACHE] hits={stats['hits']}, misses={stats['misses']}")
        return outcome


def match_strings(
    extracted_texts: Iterable[str],
    resources: Mapping[str, str],
    config: MatchConfig | None = None,
) -> MatchOutcome:
    return ResourceMatcher(resources, config).match(extracted_texts)
