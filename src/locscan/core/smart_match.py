"""
Candidate generation for resource matching.

OCR output is often over- or under-segmented relative to the resource file:
one extracted block can hold several resource strings, or one resource string
can be split across sentences. Every contiguous run of sentences is therefore
tried as a candidate of its own.
"""

from __future__ import annotations

import re
from typing import List


_SENTENCE_BOUNDARY_RE = re.compile(r"(?<=[.!?])\s+")


def split_sentences(text: str) -> List[str]:
    """Split after ``.``, ``!`` or ``?`` when whitespace follows."""
    return [part for part in _SENTENCE_BOUNDARY_RE.split(text) if part.strip()]


def build_sentence_candidates(text: str) -> List[str]:
    """Return the candidates to match for one extracted text.

    A single sentence yields the text itself. Several sentences yield every
    contiguous slice ``units[i..j]`` joined by a space, ordered by ``(i, j)``.
    """
    units = split_sentences(text)
    if len(units) <= 1:
        return [text]

    candidates: List[str] = []
    seen: set[str] = set()
    for i in range(len(units)):
        for j in range(i, len(units)):
            combined = " ".join(units[i:j + 1])
            if combined in seen:
                continue
            seen.add(combined)
            candidates.append(combined)
    return candidates
