from __future__ import annotations

import re
from typing import Protocol


class VocabularyProvider(Protocol):
    def terms(self, category: str) -> tuple[str, ...]:
        """Return the ordered vocabulary for a keyword category."""

    def requirement_patterns(self) -> tuple[re.Pattern[str], ...]:
        """Return compiled requirement-phrase patterns, in priority order."""
