from __future__ import annotations

import json
import re
from pathlib import Path

from .provider import VocabularyProvider

_CATEGORIES = ("technical", "soft", "action")


class LocalVocabulary(VocabularyProvider):
    def __init__(self, vocabulary_path: str | Path | None = None) -> None:
        path = Path(vocabulary_path) if vocabulary_path else Path(__file__).with_name("vocabulary.json")
        raw = self._load(path)
        self._terms = {
            category: tuple(str(term).strip() for term in raw.get(category, []) if str(term).strip())
            for category in _CATEGORIES
        }
        self._patterns = tuple(
            re.compile(str(pattern), re.IGNORECASE) for pattern in raw.get("requirement_patterns", [])
        )

    @staticmethod
    def _load(path: Path) -> dict:
        with path.open("r", encoding="utf-8") as handle:
            raw = json.load(handle)
        if not isinstance(raw, dict):
            raise RuntimeError(f"Invalid vocabulary file '{path}': expected a mapping.")
        return raw

    def terms(self, category: str) -> tuple[str, ...]:
        return self._terms.get(category, tuple())

    def requirement_patterns(self) -> tuple[re.Pattern[str], ...]:
        return self._patterns
