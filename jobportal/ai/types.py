from __future__ import annotations

from typing import Protocol


class CompletionError(RuntimeError):
    """Base class for every generative-text failure; callers fall back on any of them."""

    code = "completion_failed"


class CompletionAuthError(CompletionError):
    code = "auth_failed"


class CompletionRateLimited(CompletionError):
    code = "rate_limited"


class CompletionTimeout(CompletionError):
    code = "timeout"


class CompletionMalformed(CompletionError):
    code = "malformed_response"


class CompletionUnavailable(CompletionError):
    code = "unavailable"


class CompletionClient(Protocol):
    async def complete(
        self,
        prompt: str,
        *,
        max_tokens: int,
        system_prompt: str | None = None,
        budget_s: float | None = None,
    ) -> str: ...
