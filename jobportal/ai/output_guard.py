from __future__ import annotations

import asyncio
import logging
import re

from jobportal.ai.types import CompletionClient

logger = logging.getLogger(__name__)

# Openings that mark reasoning prose rather than the requested content.
BLOCKED_OPENINGS: tuple[str, ...] = (
    "the user",
    "they want",
    "we need",
    "we are",
    "we should",
    "let me",
    "i understand",
    "here is",
    "here's",
    "based on",
    "as an ai",
    "sure",
    "okay",
    "the prompt",
    "since the user",
    "no explanation",
    "just the",
)

META_REFERENCES: tuple[str, ...] = (
    "the user",
    "the prompt",
    "as an ai",
    "i will",
    "i'll",
    "let me",
    "you asked",
    "your request",
)

_LABEL_RE = re.compile(
    r"^(?:summary|professional summary|output|result|answer|bullet|better version)\s*:\s*",
    re.IGNORECASE,
)
_INLINE_SPACE_RE = re.compile(r"[ \t]+")
_BLANK_LINES_RE = re.compile(r"\n{3,}")
_QUOTES = "\"'`“”‘’"
_TERMINATORS = (".", "!", ")")


def clean_generated_text(raw: str | None) -> str:
    lines = [_INLINE_SPACE_RE.sub(" ", line).strip() for line in (raw or "").splitlines()]
    text = _BLANK_LINES_RE.sub("\n\n", "\n".join(lines)).strip()
    text = text.strip(_QUOTES).strip()
    text = _LABEL_RE.sub("", text).strip()
    return text.strip(_QUOTES).strip()


def rejection_reason(
    text: str,
    *,
    min_chars: int,
    max_chars: int,
    require_terminal: bool = True,
) -> str | None:
    """Return why a cleaned completion is unusable, or None when it passes."""
    if len(text) < min_chars:
        return "too_short"
    if len(text) > max_chars:
        return "too_long"

    lowered = text.lower()
    for opening in BLOCKED_OPENINGS:
        if re.match(rf"{re.escape(opening)}(?![a-z])", lowered):
            return "blocked_opening"
    for phrase in META_REFERENCES:
        if re.search(rf"(?<![a-z]){re.escape(phrase)}(?![a-z])", lowered):
            return "meta_reference"

    if not (text[0].isupper() or text[0].isdigit()):
        return "bad_sentence_start"
    if require_terminal and not text.endswith(_TERMINATORS):
        return "bad_sentence_end"
    return None


def accept_generated_text(
    raw: str | None,
    *,
    min_chars: int,
    max_chars: int,
    require_terminal: bool = True,
) -> str | None:
    """Accept a raw completion as user-facing prose, or return None to force the template path.

    Rules, applied after trimming whitespace, wrapping quotes and a leading
    "Summary:"-style label:
      - length must be within [min_chars, max_chars];
      - must not open with a reasoning phrase (BLOCKED_OPENINGS);
      - must not contain a first/second-person meta reference (META_REFERENCES);
      - must start with an uppercase letter or digit;
      - must end with ".", "!" or ")" unless require_terminal is False.
    """
    text = clean_generated_text(raw)
    reason = rejection_reason(text, min_chars=min_chars, max_chars=max_chars, require_terminal=require_terminal)
    if reason is not None:
        logger.info("generated_text_rejected reason=%s chars=%s", reason, len(text))
        return None
    return text


async def guarded_completion(
    client: CompletionClient | None,
    prompt: str,
    *,
    max_tokens: int,
    timeout_s: float,
    min_chars: int,
    max_chars: int,
    system_prompt: str | None = None,
    require_terminal: bool = True,
    purpose: str = "text",
) -> str | None:
    """Race one completion against a timer and return accepted prose, or None on any failure."""
    if client is None:
        return None
    try:
        raw = await asyncio.wait_for(
            client.complete(prompt, max_tokens=max_tokens, system_prompt=system_prompt, budget_s=timeout_s),
            timeout=timeout_s,
        )
    except Exception as exc:  # noqa: BLE001 - every failure mode falls back to templates
        logger.warning("generation_failed purpose=%s: %s", purpose, exc)
        return None
    return accept_generated_text(raw, min_chars=min_chars, max_chars=max_chars, require_terminal=require_terminal)
