from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence

from locscan.core.config import AppConfig
from locscan.core.matcher import ResourceMatcher
from locscan.core.models import MatchOutcome, TextBlock, extracted_texts

logger = logging.getLogger(__name__)


@dataclass
class ScanReport:
    extracted_texts: List[str]
    outcome: MatchOutcome

    @property
    def summary(self) -> Dict[str, int]:
        return {
            "extractedCount": len(self.extracted_texts),
            "matchedCount": len(self.outcome.matched),
            "unmatchedCount": len(self.outcome.unmatched),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary,
            "extractedTexts": list(self.extracted_texts),
            **self.outcome.to_dict(),
        }


def build_report(
    blocks: Sequence[TextBlock | str | Mapping[str, Any]],
    resources: Mapping[str, str],
    config: AppConfig | None = None,
) -> ScanReport:
    """Match grouped OCR output against a resource map and collect the result."""
    cfg = config or AppConfig()
    texts = extracted_texts(blocks, dedupe=cfg.dedupe_extracted)
    outcome = ResourceMatcher(resources, cfg.matching).match(texts)
    report = ScanReport(extracted_texts=texts, outcome=outcome)
    logger.info("report: %s", report.summary)
    return report


def save_report(report: ScanReport, output: Path) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps(report.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")
