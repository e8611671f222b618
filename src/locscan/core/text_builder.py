from __future__ import annotations

import json
import logging
import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Dict, List, Mapping

from locscan.core.models import ResourceEntry

logger = logging.getLogger(__name__)


_PLACEHOLDER_RE = re.compile(r"%\d+\$[sd]")
_WHITESPACE_RE = re.compile(r"\s+")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9 ]")
_NON_WORD_RE = re.compile(r"[^\w\s]", re.ASCII)

SUGGESTED_ID_MAX_LEN = 30


class ResourceFormatError(ValueError):
    pass


def normalize_text(text: str) -> str:
    """Canonical form used for every comparison: placeholders unified, [a-z0-9 ] only."""
    text = _PLACEHOLDER_RE.sub("placeholder", text)
    text = _WHITESPACE_RE.sub(" ", text.lower())
    text = _NON_ALNUM_RE.sub("", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def generate_suggested_id(text: str) -> str:
    slug = _NON_WORD_RE.sub("", text.lower())
    slug = _WHITESPACE_RE.sub("_", slug)
    return slug[:SUGGESTED_ID_MAX_LEN]


def detect_resource_format(content: str) -> str | None:
    stripped = content.lstrip("\ufeff").strip()
    if stripped.startswith("<"):
        return "xml"
    if stripped.startswith("{"):
        return "json"
    return None


def parse_xml_resources(content: str) -> Dict[str, str]:
    """Read Android style ``<string name="key">value</string>`` entries."""
    try:
        root = ET.fromstring(content.lstrip("\ufeff").strip())
    except ET.ParseError as exc:
        raise ResourceFormatError(f"invalid XML resource file: {exc}") from exc

    mapping: Dict[str, str] = {}
    for node in root.iter("string"):
        name = (node.get("name") or "").strip()
        value = collapse_whitespace("".join(node.itertext()))
        if not name or not value:
            continue
        if name in mapping:
            logger.warning("duplicate resource key %r, keeping the first value", name)
            continue
        mapping[name] = value
    return mapping


def _flatten_json(obj: Mapping[str, Any], prefix: str, out: Dict[str, str]) -> None:
    for key, value in obj.items():
        full_key = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, str):
            text = collapse_whitespace(value)
            if text:
                out[full_key] = text
        elif isinstance(value, dict):
            _flatten_json(value, full_key, out)


def parse_json_resources(content: str) -> Dict[str, str]:
    """Read a flat ``{key: value}`` object; nested objects become dotted keys."""
    try:
        obj = json.loads(content.lstrip("\ufeff"))
    except json.JSONDecodeError as exc:
        raise ResourceFormatError(f"invalid JSON resource file: {exc}") from exc
    if not isinstance(obj, dict):
        raise ResourceFormatError("JSON resource file must contain an object at the top level")
    mapping: Dict[str, str] = {}
    _flatten_json(obj, "", mapping)
    return mapping


def parse_resources(content: str) -> Dict[str, str]:
    fmt = detect_resource_format(content)
    if fmt == "xml":
        return parse_xml_resources(content)
    if fmt == "json":
        return parse_json_resources(content)
    raise ResourceFormatError("Unsupported resource file format (expected XML or JSON)")


def load_resource_map(path: Path) -> Dict[str, str]:
    mapping = parse_resources(path.read_text(encoding="utf-8"))
    logger.info("loaded %d resource strings from %s", len(mapping), path.name)
    return mapping


def resource_entries(mapping: Mapping[str, str]) -> List[ResourceEntry]:
    return [ResourceEntry(key=k, value=v) for k, v in mapping.items()]
