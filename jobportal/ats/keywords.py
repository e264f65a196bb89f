from __future__ import annotations

import asyncio
import json
import logging
import re
from collections.abc import Sequence

from pydantic import BaseModel, Field

from jobportal.ai.types import CompletionClient
from jobportal.normalize.fields import dedupe_preserving_order
from jobportal.schemas.resume import KeywordSet
from jobportal.taxonomy import VocabularyProvider, get_default_vocabulary

logger = logging.getLogger(__name__)

AI_MIN_DESCRIPTION_CHARS = 50
# Matched on word boundaries; every other vocabulary term is a plain substring.
_BOUNDED_TERMS = frozenset({"ai"})
_FENCE_RE = re.compile(r"```(?:json)?|`", re.IGNORECASE)
_KEYWORD_SYSTEM_PROMPT = "You extract skills from job postings. Reply with a single JSON object and nothing else."


class _AIKeywordPayload(BaseModel):
    technical: list[str] = Field(default_factory=list)
    soft: list[str] = Field(default_factory=list)


def _term_pattern(term: str) -> re.Pattern[str]:
    escaped = re.escape(term.lower())
    if term.lower() in _BOUNDED_TERMS:
        return re.compile(rf"(?<![a-z0-9]){escaped}(?![a-z0-9])")
    return re.compile(escaped)


def _contains(text: str, term: str) -> bool:
    return bool(_term_pattern(term).search(text))


def extract_keywords_fallback(
    title: str | None,
    description: str | None,
    requirements: str | None = None,
    skills: Sequence[str] | None = None,
    *,
    vocabulary: VocabularyProvider | None = None,
) -> KeywordSet:
    """Deterministic keyword extraction over the bundled vocabularies."""
    vocab = vocabulary or get_default_vocabulary()
    text = " ".join(part for part in (title, description, requirements) if part).lower()
    structured = dedupe_preserving_order(skills or [])
    structured_lower = [skill.lower() for skill in structured]

    technical = [
        term
        for term in vocab.terms("technical")
        if _contains(text, term) or any(_contains(skill, term) for skill in structured_lower)
    ]
    soft = [term for term in vocab.terms("soft") if _contains(text, term)]
    action = [verb for verb in vocab.terms("action") if _contains(text, verb)]

    requirements_found: list[str] = []
    for pattern in vocab.requirement_patterns():
        requirements_found.extend(match.group(0).strip() for match in pattern.finditer(text))

    return KeywordSet(
        technical=dedupe_preserving_order([*technical, *structured]),
        soft=dedupe_preserving_order(soft),
        action=dedupe_preserving_order(action),
        requirements=dedupe_preserving_order(requirements_found),
        source="fallback",
    )


def _keyword_prompt(title: str, description: str) -> str:
    return (
        f"Job: {title}\n"
        f"Text: {description[:200]}\n"
        'JSON only: {"technical":["skill1","skill2"],"soft":["skill1","skill2"]}'
    )


def _keyword_list(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if isinstance(item, (str, int, float)) and not isinstance(item, bool)]


def parse_keyword_payload(raw: str) -> _AIKeywordPayload:
    cleaned = _FENCE_RE.sub("", raw or "").strip()
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start < 0 or end <= start:
        raise ValueError("no JSON object in completion")
    parsed = json.loads(cleaned[start : end + 1])
    if not isinstance(parsed, dict):
        raise ValueError("completion JSON is not an object")
    payload = _AIKeywordPayload.model_validate(
        {
            "technical": _keyword_list(parsed.get("technical")),
            "soft": _keyword_list(parsed.get("soft")),
        }
    )
    if not payload.technical and not payload.soft:
        raise ValueError("completion JSON has no keywords")
    return payload


async def extract_keywords(
    title: str | None,
    description: str | None,
    requirements: str | None = None,
    skills: Sequence[str] | None = None,
    *,
    client: CompletionClient | None = None,
    timeout_s: float = 8.0,
    vocabulary: VocabularyProvider | None = None,
) -> KeywordSet:
    """Extract a KeywordSet, enhancing the deterministic baseline with a completion when available."""
    baseline = extract_keywords_fallback(title, description, requirements, skills, vocabulary=vocabulary)
    description_text = (description or "").strip()
    if client is None or len(description_text) <= AI_MIN_DESCRIPTION_CHARS:
        return baseline

    try:
        raw = await asyncio.wait_for(
            client.complete(
                _keyword_prompt(title or "", description_text),
                max_tokens=80,
                system_prompt=_KEYWORD_SYSTEM_PROMPT,
                budget_s=timeout_s,
            ),
            timeout=timeout_s,
        )
        payload = parse_keyword_payload(raw)
    except Exception as exc:  # noqa: BLE001 - deterministic baseline is the contract
        logger.warning("keyword_extraction_ai_failed title=%s: %s", (title or "")[:60], exc)
        return baseline

    return KeywordSet(
        technical=dedupe_preserving_order([*payload.technical, *baseline.technical]),
        soft=dedupe_preserving_order([*payload.soft, *baseline.soft]),
        action=baseline.action,
        requirements=baseline.requirements,
        source="ai",
    )
