from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict


SHORT_WORD_WHITELIST = frozenset(
    {"of", "in", "on", "at", "to", "by", "is", "it", "an", "as", "be", "up", "do", "go"}
)


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class GroupingConfig:
    horizontal_threshold: float = 40.0
    line_threshold_ratio: float = 0.6  # x average word height
    paragraph_threshold_ratio: float = 1.5  # x average word height
    min_overlap_ratio: float = 0.2
    noise_max_length: int = 2
    noise_min_confidence: float = 70.0
    short_word_whitelist: frozenset[str] = SHORT_WORD_WHITELIST


@dataclass(frozen=True)
class MatchConfig:
    threshold: float = 0.8  # 0.75 in earlier tuning rounds
    max_length_delta: int = 100
    use_word_index: bool = False
    suggest_closest: bool = False
    closest_min_score: float = 0.5


@dataclass
class AppConfig:
    ocr_lang: str = "en"
    tesseract_cmd: str | None = None
    tesseract_psm: int = 11
    grouping: GroupingConfig = field(default_factory=GroupingConfig)
    matching: MatchConfig = field(default_factory=MatchConfig)
    dedupe_extracted: bool = True
    report_path: Path | None = None


def _coerce(value: Any, default: Any, name: str) -> Any:
    # JSON booleans only
    if isinstance(default, bool):
        if not isinstance(value, bool):
            raise ConfigError(f"'{name}' must be true or false, got {value!r}")
        return value
    if isinstance(default, frozenset):
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ConfigError(f"'{name}' must be a list of strings, got {value!r}")
        return frozenset(v.lower() for v in value)
    if isinstance(default, (int, float)):
        if isinstance(value, bool):
            raise ConfigError(f"'{name}' must be a number, got {value!r}")
        try:
            return type(default)(value)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"invalid value for '{name}': {value!r}") from exc
    return value


def _build_section(cls, raw: Any, section: str):
    if raw is None:
        return cls()
    if not isinstance(raw, dict):
        raise ConfigError(f"'{section}' must be an object")
    known = {f.name: f for f in fields(cls)}
    unknown = sorted(set(raw) - set(known))
    if unknown:
        raise ConfigError(f"unknown keys in '{section}': {', '.join(unknown)}")
    values: Dict[str, Any] = {
        name: _coerce(value, known[name].default, f"{section}.{name}") for name, value in raw.items()
    }
    return cls(**values)


def _resolve_command(cmd: str | None, base_dir: Path) -> str | None:
    # bare executable names are looked up on PATH by the OCR adapter
    if not cmd:
        return None
    if "/" not in cmd and "\\" not in cmd:
        return cmd
    pp = Path(cmd)
    return str(pp if pp.is_absolute() else (base_dir / pp).resolve())


def load_config(path: Path | None) -> AppConfig:
    if path is None:
        return AppConfig()
    if not path.exists():
        raise FileNotFoundError(
            f"Settings file not found: {path}\n"
            "Create it with a JSON object, for example:\n"
            '  {"ocr_lang": "en", "matching": {"threshold": 0.8}}\n'
            "or run without --config to use the defaults."
        )
    try:
        raw: Dict[str, Any] = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"settings file is not valid JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError("settings file must contain a JSON object")

    base_dir = path.resolve().parent

    def resolve_path(p: str | None) -> Path | None:
        if not p:
            return None
        pp = Path(p)
        if pp.is_absolute():
            return pp
        return (base_dir / pp).resolve()

    grouping = _build_section(GroupingConfig, raw.get("grouping"), "grouping")
    matching = _build_section(MatchConfig, raw.get("matching"), "matching")
    if not 0.0 < matching.threshold <= 1.0:
        raise ConfigError(f"matching.threshold must be in (0, 1], got {matching.threshold}")

    return AppConfig(
        ocr_lang=str(raw.get("ocr_lang", "en")),
        tesseract_cmd=_resolve_command(raw.get("tesseract_cmd"), base_dir),
        tesseract_psm=_coerce(raw.get("tesseract_psm", 11), 11, "tesseract_psm"),
        grouping=grouping,
        matching=matching,
        dedupe_extracted=_coerce(raw.get("dedupe_extracted", True), True, "dedupe_extracted"),
        report_path=resolve_path(raw.get("report_path")),
    )
