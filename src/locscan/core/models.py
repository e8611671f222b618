from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping


NO_TEXT_DETECTED = "No text detected in image"
NO_MEANINGFUL_TEXT = "No meaningful text detected in image"
SENTINEL_TEXTS = frozenset({NO_TEXT_DETECTED, NO_MEANINGFUL_TEXT})


@dataclass(frozen=True)
class BoundingBox:
    x: float
    y: float
    width: float
    height: float

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(f"bounding box has negative size: {self.width}x{self.height}")

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2.0

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "BoundingBox":
        return cls(
            x=float(raw.get("x", 0)),
            y=float(raw.get("y", 0)),
            width=float(raw.get("width", 0)),
            height=float(raw.get("height", 0)),
        )


@dataclass(frozen=True)
class WordBox:
    """One token as recognized by the OCR engine (confidence on a 0-100 scale)."""

    text: str
    confidence: float
    bounding_box: BoundingBox

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "WordBox":
        box = raw.get("bounding_box") or raw.get("boundingBox") or raw.get("bbox") or {}
        if not isinstance(box, BoundingBox):
            if not isinstance(box, Mapping):
                raise TypeError(f"bounding box must be an object, got {type(box).__name__}")
            box = BoundingBox.from_dict(box)
        return cls(
            text=str(raw.get("text", "")),
            confidence=float(raw.get("confidence", 0.0)),
            bounding_box=box,
        )


@dataclass(frozen=True)
class TextBlock:
    text: str
    confidence: str

    @property
    def is_sentinel(self) -> bool:
        return self.text in SENTINEL_TEXTS

    def to_dict(self) -> Dict[str, str]:
        return {"text": self.text, "confidence": self.confidence}


@dataclass(frozen=True)
class ResourceEntry:
    key: str
    value: str


@dataclass(frozen=True)
class MatchResult:
    text: str
    string_id: str
    score: float = 1.0

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "stringId": self.string_id, "score": round(self.score, 4)}


@dataclass(frozen=True)
class UnmatchedResult:
    text: str
    suggested_id: str
    closest: Dict[str, Any] | None = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"text": self.text, "suggestedId": self.suggested_id}
        if self.closest:
            data["closest"] = dict(self.closest)
        return data


@dataclass
class MatchOutcome:
    matched: List[MatchResult] = field(default_factory=list)
    unmatched: List[UnmatchedResult] = field(default_factory=list)

    @property
    def matched_ids(self) -> List[str]:
        """String ids in match order, de-duplicated; this is what code search consumes."""
        seen: set[str] = set()
        ids: List[str] = []
        for item in self.matched:
            if item.string_id not in seen:
                seen.add(item.string_id)
                ids.append(item.string_id)
        return ids

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matched": [m.to_dict() for m in self.matched],
            "unmatched": [u.to_dict() for u in self.unmatched],
        }


def extracted_texts(items: Iterable[Any], dedupe: bool = False) -> List[str]:
    """Normalize loosely shaped extracted items into plain strings.

    Accepts strings, mappings with a ``text`` key and ``TextBlock`` values.
    Blank entries and the grouper's placeholder blocks are dropped.
    """
    texts: List[str] = []
    seen: set[str] = set()
    for item in items:
        if isinstance(item, TextBlock):
            raw = item.text
        elif isinstance(item, Mapping):
            raw = item.get("text", "")
        else:
            raw = item
        if not isinstance(raw, str):
            continue
        text = raw.strip()
        if not text or text in SENTINEL_TEXTS:
            continue
        if dedupe:
            if text in seen:
                continue
            seen.add(text)
        texts.append(text)
    return texts
