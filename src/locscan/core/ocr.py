from __future__ import annotations

import functools
import logging
import os
import shutil
from pathlib import Path
from typing import Any, Iterable, List, Sequence, Union

from PIL import Image, UnidentifiedImageError
import pytesseract
from pytesseract import Output

from locscan.core.config import GroupingConfig
from locscan.core.models import (
    NO_MEANINGFUL_TEXT,
    NO_TEXT_DETECTED,
    BoundingBox,
    TextBlock,
    WordBox,
)

logger = logging.getLogger(__name__)


class OCRError(RuntimeError):
    pass


class OCREngine:
    """Tesseract adapter producing positioned ``WordBox`` values."""

    def __init__(self, lang: str = "en", tesseract_cmd: str | None = None, psm: int = 11):
        self.lang = lang
        self.psm = psm
        self._tesseract_cmd = tesseract_cmd
        self._ready = False

    def _locate_tesseract(self) -> None:
        if self._ready:
            return
        candidate_env = os.getenv("TESSERACT_CMD") or os.getenv("TESSERACT_PATH")
        candidates = [
            self._tesseract_cmd,
            candidate_env,
            shutil.which("tesseract"),
            Path(r"C:\\Program Files\\Tesseract-OCR\\tesseract.exe"),
            Path("/usr/bin/tesseract"),
            Path("/usr/local/bin/tesseract"),
            Path("/opt/homebrew/bin/tesseract"),
        ]
        for candidate in candidates:
            if not candidate:
                continue
            resolved = shutil.which(str(candidate)) or (str(candidate) if Path(candidate).exists() else None)
            if resolved:
                pytesseract.pytesseract.tesseract_cmd = resolved
                logger.info("using tesseract at %s", resolved)
                self._ready = True
                return
        logger.warning("tesseract executable not found (lang=%s)", self.lang)
        raise OCRError("tesseract executable not found; install it or set TESSERACT_CMD")

    def _tesseract_lang(self) -> str:
        return "eng" if self.lang.startswith("en") else self.lang

    def recognize_words(self, image_input: Union[str, Path, Image.Image]) -> List[WordBox]:
        self._locate_tesseract()
        try:
            image = image_input if isinstance(image_input, Image.Image) else Image.open(str(image_input))
        except (OSError, UnidentifiedImageError) as exc:
            logger.warning("cannot open image %s: %s", image_input, exc)
            raise OCRError(f"cannot open image {image_input}: {exc}") from exc

        config = f"--oem 1 --psm {self.psm}"
        try:
            data = pytesseract.image_to_data(
                image, lang=self._tesseract_lang(), config=config, output_type=Output.DICT
            )
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError) as exc:
            logger.warning("tesseract failed: %s", exc)
            raise OCRError(f"tesseract failed: {exc}") from exc

        words: List[WordBox] = []
        for text, conf, left, top, width, height in zip(
            data.get("text", []),
            data.get("conf", []),
            data.get("left", []),
            data.get("top", []),
            data.get("width", []),
            data.get("height", []),
        ):
            if not text or text.strip() == "":
                continue
            try:
                conf_val = float(conf)
            except (TypeError, ValueError):
                continue
            # -1 marks layout rows (page/block/line), not words
            if conf_val < 0:
                continue
            box = BoundingBox(x=int(left), y=int(top), width=max(int(width), 0), height=max(int(height), 0))
            words.append(WordBox(text=text.strip(), confidence=conf_val, bounding_box=box))
        logger.debug("tesseract returned %d words", len(words))
        return words

    def recognize_blocks(
        self,
        image_input: Union[str, Path, Image.Image],
        config: GroupingConfig | None = None,
    ) -> List[TextBlock]:
        return WordGrouper(config).group(self.recognize_words(image_input))


class WordGrouper:
    """Rebuild lines and paragraphs from a flat list of OCR word boxes."""

    def __init__(self, config: GroupingConfig | None = None):
        self.config = config or GroupingConfig()

    def _is_noise(self, word: WordBox) -> bool:
        cfg = self.config
        return (
            len(word.text) <= cfg.noise_max_length
            and word.confidence < cfg.noise_min_confidence
            and word.text.lower() not in cfg.short_word_whitelist
        )

    def group(self, words: Sequence[WordBox]) -> List[TextBlock]:
        if not words:
            return [TextBlock(NO_TEXT_DETECTED, "0.0")]

        kept = [w for w in words if not self._is_noise(w)]
        if not kept:
            logger.debug("all %d words dropped as noise", len(words))
            return [TextBlock(NO_MEANINGFUL_TEXT, "0.0")]

        cfg = self.config
        avg_height = sum(w.bounding_box.height for w in kept) / len(kept)
        line_threshold = avg_height * cfg.line_threshold_ratio
        para_threshold = avg_height * cfg.paragraph_threshold_ratio
        logger.debug(
            "grouping %d words (avg height %.1f, line %.1f, paragraph %.1f)",
            len(kept), avg_height, line_threshold, para_threshold,
        )

        ordered = _reading_order(kept, line_threshold)
        lines = self._group_lines(ordered, line_threshold)
        paragraphs = self._group_paragraphs(lines, para_threshold)
        return [_render_paragraph(p) for p in paragraphs]

    def _group_lines(self, words: List[WordBox], line_threshold: float) -> List[List[WordBox]]:
        lines: List[List[WordBox]] = []
        for word in words:
            if not lines:
                lines.append([word])
                continue
            prev = lines[-1][-1].bounding_box
            box = word.bounding_box
            v_dist = abs(box.center_y - prev.center_y)
            h_gap = box.x - prev.right
            if v_dist > line_threshold or h_gap > self.config.horizontal_threshold:
                lines.append([word])
            else:
                lines[-1].append(word)
        return lines

    def _group_paragraphs(self, lines: List[List[WordBox]], para_threshold: float) -> List[List[List[WordBox]]]:
        paragraphs: List[List[List[WordBox]]] = []
        for line in lines:
            if not paragraphs:
                paragraphs.append([line])
                continue
            prev_line = paragraphs[-1][-1]
            spacing = _line_top(line) - _line_top(prev_line)
            overlap = _horizontal_overlap_ratio(prev_line, line)
            if spacing > para_threshold or overlap < self.config.min_overlap_ratio:
                paragraphs.append([line])
            else:
                paragraphs[-1].append(line)
        return paragraphs


def _reading_order(words: List[WordBox], line_threshold: float) -> List[WordBox]:
    def compare(a: WordBox, b: WordBox) -> int:
        dy = a.bounding_box.center_y - b.bounding_box.center_y
        if abs(dy) <= line_threshold:
            dx = a.bounding_box.x - b.bounding_box.x
            return -1 if dx < 0 else (1 if dx > 0 else 0)
        return -1 if dy < 0 else 1

    return sorted(words, key=functools.cmp_to_key(compare))


def _line_top(line: Iterable[WordBox]) -> float:
    return min(w.bounding_box.y for w in line)


def _line_span(line: Iterable[WordBox]) -> tuple[float, float]:
    boxes = [w.bounding_box for w in line]
    return min(b.x for b in boxes), max(b.right for b in boxes)


def _horizontal_overlap_ratio(prev_line: List[WordBox], line: List[WordBox]) -> float:
    """Overlap of the two lines' x spans relative to the width of ``line``."""
    prev_x0, prev_x1 = _line_span(prev_line)
    x0, x1 = _line_span(line)
    width = x1 - x0
    if width <= 0:
        return 0.0
    overlap = max(0.0, min(prev_x1, x1) - max(prev_x0, x0))
    return overlap / width


def _render_paragraph(paragraph: List[List[WordBox]]) -> TextBlock:
    text = "\n".join(" ".join(w.text for w in line) for line in paragraph)
    confs = [w.confidence for line in paragraph for w in line]
    avg_conf = sum(confs) / len(confs)
    return TextBlock(text=text, confidence=f"{avg_conf:.2f}")


def group_ocr_words(words: Sequence[WordBox], config: GroupingConfig | None = None) -> List[TextBlock]:
    return WordGrouper(config).group(words)


def words_from_dicts(raw_words: Iterable[Any]) -> List[WordBox]:
    """Build ``WordBox`` values from JSON-like mappings, skipping blank text."""
    words: List[WordBox] = []
    for raw in raw_words:
        if not isinstance(raw, dict):
            continue
        word = WordBox.from_dict(raw)
        if word.text.strip():
            words.append(word)
    return words
