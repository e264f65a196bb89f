from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from jobportal.ai.types import CompletionClient, CompletionError, CompletionUnavailable

logger = logging.getLogger(__name__)


class FallbackCompletionClient:
    """Try the primary model, then each fallback model once, each under its own timeout.

    When the caller passes budget_s, the time left is shared among the models not yet
    tried, so a hanging primary cannot use up the whole budget.
    """

    def __init__(self, clients: Sequence[tuple[str, CompletionClient]], *, timeout_s: float):
        if not clients:
            raise ValueError("FallbackCompletionClient needs at least one client")
        self._clients = tuple(clients)
        self._timeout_s = timeout_s

    @property
    def models(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self._clients)

    async def complete(
        self,
        prompt: str,
        *,
        max_tokens: int,
        system_prompt: str | None = None,
        budget_s: float | None = None,
    ) -> str:
        loop = asyncio.get_running_loop()
        deadline = None if budget_s is None else loop.time() + budget_s
        for index, (name, client) in enumerate(self._clients):
            timeout_s = self._timeout_s
            if deadline is not None:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    logger.warning("completion_budget_exhausted model=%s budget_s=%s", name, budget_s)
                    break
                timeout_s = min(timeout_s, remaining / (len(self._clients) - index))
            try:
                return await asyncio.wait_for(
                    client.complete(prompt, max_tokens=max_tokens, system_prompt=system_prompt, budget_s=timeout_s),
                    timeout=timeout_s,
                )
            except asyncio.TimeoutError:
                logger.warning("completion_model_timeout model=%s timeout_s=%.2f", name, timeout_s)
            except CompletionError as exc:
                logger.warning("completion_model_failed model=%s code=%s: %s", name, exc.code, exc)
        raise CompletionUnavailable(f"all models failed: {', '.join(self.models)}")
