from __future__ import annotations

import logging
from functools import lru_cache

from jobportal.ai.config import load_ai_config
from jobportal.ai.fallback import FallbackCompletionClient
from jobportal.ai.providers.openai_provider import OpenAICompletionProvider, build_async_client
from jobportal.ai.types import CompletionClient
from jobportal.core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


def _looks_like_placeholder(value: str) -> bool:
    lower = value.strip().lower()
    return lower.startswith("your_") or lower.startswith("replace_") or lower in {"changeme", "todo"}


def generation_enabled(settings: Settings) -> bool:
    if not settings.ai_generation_enabled:
        return False
    api_key = (settings.ai_api_key or "").strip()
    return bool(api_key) and not _looks_like_placeholder(api_key)


@lru_cache(maxsize=4)
def _build_client(settings: Settings) -> CompletionClient:
    config = load_ai_config(settings)
    shared = build_async_client(config)
    chain = [
        (model, OpenAICompletionProvider(model=model, client=shared, temperature=config.temperature))
        for model in (config.model, *config.fallback_models)
    ]
    logger.info("completion_client_ready models=%s", ",".join(model for model, _ in chain))
    return FallbackCompletionClient(chain, timeout_s=config.timeout_s)


def get_completion_client(settings: Settings | None = None) -> CompletionClient | None:
    """Return the configured completion chain, or None when generation is off."""
    current = settings or default_settings
    if not generation_enabled(current):
        return None
    return _build_client(current)
