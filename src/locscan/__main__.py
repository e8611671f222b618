from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from locscan.core.config import AppConfig, ConfigError, load_config
from locscan.core.matcher import ResourceMatcher
from locscan.core.models import extracted_texts
from locscan.core.ocr import OCREngine, OCRError, WordGrouper, words_from_dicts
from locscan.core.report import build_report, save_report
from locscan.core.search import FuzzySearcher
from locscan.core.text_builder import ResourceFormatError, load_resource_map

logger = logging.getLogger("locscan")


class InputError(ValueError):
    """A --words or --texts file that cannot be read as the expected JSON."""


def _print_json(payload: object) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _load_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise InputError(f"{path} is not valid JSON: {exc}") from exc


def cmd_demo(args: argparse.Namespace, cfg: AppConfig) -> None:
    resources = {
        "welcome_message": "Welcome to our application",
        "signin_prompt": "Sign in to your account",
        "signin_continue": "Sign in to continue",
        "continue_google": "Continue with Google",
    }
    texts = [
        "Welcome to our application",
        "Sign in. To continue.",
        "Forgot your password?",
        "Privacy Policy",
    ]
    report = build_report(texts, resources, cfg)
    _print_json(report.to_dict())


def cmd_group(args: argparse.Namespace, cfg: AppConfig) -> None:
    raw = _load_json(Path(args.words))
    if isinstance(raw, dict):
        raw = raw.get("words", [])
    try:
        words = words_from_dicts(raw if isinstance(raw, list) else [])
    except (TypeError, ValueError) as exc:
        raise InputError(f"bad word box in {args.words}: {exc}") from exc
    blocks = WordGrouper(cfg.grouping).group(words)
    _print_json([b.to_dict() for b in blocks])


def cmd_match(args: argparse.Namespace, cfg: AppConfig) -> None:
    resources = load_resource_map(Path(args.resources))
    if args.texts:
        raw = _load_json(Path(args.texts))
        items = raw if isinstance(raw, list) else []
    else:
        items = args.text
    texts = extracted_texts(items, dedupe=cfg.dedupe_extracted)
    outcome = ResourceMatcher(resources, cfg.matching).match(texts)
    _print_json(outcome.to_dict())


def cmd_scan(args: argparse.Namespace, cfg: AppConfig) -> None:
    resources = load_resource_map(Path(args.resources))
    engine = OCREngine(lang=args.lang or cfg.ocr_lang, tesseract_cmd=cfg.tesseract_cmd, psm=cfg.tesseract_psm)
    blocks = engine.recognize_blocks(Path(args.image), cfg.grouping)
    report = build_report(blocks, resources, cfg)

    output = Path(args.output) if args.output else cfg.report_path
    if output:
        save_report(report, output)
        print(f"OK: {output}")
    else:
        _print_json(report.to_dict())


def cmd_search(args: argparse.Namespace, cfg: AppConfig) -> None:
    resources = load_resource_map(Path(args.resources))
    matcher = ResourceMatcher(resources, cfg.matching)
    key, score = matcher.best_match(args.query)
    if key and score >= cfg.matching.threshold:
        print(f"Match: {key}  score={score:.3f}")
        print(resources[key])
        return
    best, fuzzy_score = FuzzySearcher(resources).search(args.query)
    if not best:
        print("No resource strings loaded")
        return
    print(f"Closest: {best}  score={fuzzy_score:.3f}")
    print(resources[best])


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="locscan")
    parser.add_argument("--config", help="JSON settings file")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="cmd", required=True)

    demo = sub.add_parser("demo", help="run the matcher on built-in sample data")
    demo.set_defaults(func=cmd_demo)

    group = sub.add_parser("group", help="group OCR word boxes (JSON) into text blocks")
    group.add_argument("--words", required=True, help="JSON list of {text, confidence, boundingBox}")
    group.set_defaults(func=cmd_group)

    match = sub.add_parser("match", help="match texts against a resource file")
    match.add_argument("--resources", required=True, help="strings.xml or JSON resource file")
    match.add_argument("--texts", help="JSON list of strings or {text, confidence} items")
    match.add_argument("text", nargs="*", help="texts to match when --texts is not given")
    match.set_defaults(func=cmd_match)

    scan = sub.add_parser("scan", help="OCR a screenshot and match it against a resource file")
    scan.add_argument("--image", required=True, help="screenshot path")
    scan.add_argument("--resources", required=True, help="strings.xml or JSON resource file")
    scan.add_argument("--lang", help="OCR language, e.g. en")
    scan.add_argument("--output", help="write the JSON report here")
    scan.set_defaults(func=cmd_scan)

    search = sub.add_parser("search", help="look up one string in a resource file")
    search.add_argument("--resources", required=True)
    search.add_argument("query")
    search.set_defaults(func=cmd_search)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    try:
        cfg = load_config(Path(args.config) if args.config else None)
        args.func(args, cfg)
    except (ResourceFormatError, ConfigError, InputError, FileNotFoundError) as exc:
        logger.error("%s", exc)
        return 2
    except OCRError as exc:
        logger.error("OCR failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
