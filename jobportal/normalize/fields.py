from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable
from typing import Any

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_whitespace(text: str | None) -> str:
    return _WHITESPACE_RE.sub(" ", text or "").strip()


def normalize_skill(skill: str) -> str:
    return normalize_whitespace(skill).lower()


def dedupe_preserving_order(items: Iterable[str]) -> list[str]:
    """Drop blanks and case-insensitive duplicates, keeping the first spelling seen."""
    seen: set[str] = set()
    output: list[str] = []
    for item in items:
        text = normalize_whitespace(item)
        key = text.lower()
        if not text or key in seen:
            continue
        seen.add(key)
        output.append(text)
    return output


def parse_json_list(raw: Any, *, field_name: str = "value") -> list[str]:
    """Parse a stored list field (JSON text, list, or junk) into a list of strings.

    Malformed data never raises: it is logged and treated as an empty list.
    """
    if raw is None:
        return []
    value = raw
    if isinstance(raw, (bytes, bytearray)):
        value = raw.decode("utf-8", errors="replace")
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return []
        try:
            value = json.loads(stripped)
        except ValueError:
            logger.warning("json_list_parse_failed field=%s", field_name)
            return []
    if not isinstance(value, list):
        logger.warning("json_list_unexpected_type field=%s type=%s", field_name, type(value).__name__)
        return []
    return dedupe_preserving_order(str(item) for item in value if isinstance(item, (str, int, float)))


def dump_json_list(items: Iterable[str] | None) -> str:
    return json.dumps(dedupe_preserving_order(items or []), ensure_ascii=False)


def skills_overlap(left: str, right: str) -> bool:
    """Case-insensitive substring overlap in either direction."""
    a = normalize_skill(left)
    b = normalize_skill(right)
    if not a or not b:
        return False
    return a in b or b in a
