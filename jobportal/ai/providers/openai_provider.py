from __future__ import annotations

import logging

import openai
from openai import AsyncOpenAI

from jobportal.ai.config import AIConfig
from jobportal.ai.types import (
    CompletionAuthError,
    CompletionError,
    CompletionMalformed,
    CompletionRateLimited,
    CompletionTimeout,
)

logger = logging.getLogger(__name__)

_APP_HEADERS = {
    "HTTP-Referer": "https://jobportal.local",
    "X-Title": "Job Portal Resume Builder",
}


def build_async_client(config: AIConfig, *, max_retries: int = 0) -> AsyncOpenAI:
    return AsyncOpenAI(
        api_key=config.api_key,
        base_url=config.base_url or None,
        timeout=config.timeout_s,
        max_retries=max_retries,
        default_headers=_APP_HEADERS,
    )


class OpenAICompletionProvider:
    """Single-model completion client on any OpenAI-compatible chat endpoint."""

    def __init__(
        self,
        *,
        model: str,
        client: AsyncOpenAI,
        temperature: float = 0.3,
    ):
        self.model = model
        self._client = client
        self._temperature = temperature

    async def complete(
        self,
        prompt: str,
        *,
        max_tokens: int,
        system_prompt: str | None = None,
        budget_s: float | None = None,
    ) -> str:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        options = {}
        if budget_s is not None:
            options["timeout"] = budget_s

        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self._temperature,
                max_tokens=max_tokens,
                **options,
            )
        except (openai.AuthenticationError, openai.PermissionDeniedError) as exc:
            raise CompletionAuthError(f"model={self.model}: {exc}") from exc
        except openai.RateLimitError as exc:
            raise CompletionRateLimited(f"model={self.model}: {exc}") from exc
        except openai.APITimeoutError as exc:
            raise CompletionTimeout(f"model={self.model}: {exc}") from exc
        except openai.OpenAIError as exc:
            raise CompletionError(f"model={self.model}: {exc}") from exc

        choices = getattr(response, "choices", None) or []
        content = choices[0].message.content if choices else None
        text = (content or "").strip()
        if not text:
            logger.debug("completion_empty model=%s", self.model)
            raise CompletionMalformed(f"model={self.model}: empty completion")
        return text
