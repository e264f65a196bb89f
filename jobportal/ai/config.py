from __future__ import annotations

from dataclasses import dataclass

from jobportal.core.config import Settings


@dataclass(frozen=True)
class AIConfig:
    api_key: str
    base_url: str | None
    model: str
    fallback_models: tuple[str, ...]
    timeout_s: float
    temperature: float = 0.3


def load_ai_config(settings: Settings) -> AIConfig:
    return AIConfig(
        api_key=(settings.ai_api_key or "").strip(),
        base_url=settings.ai_base_url,
        model=settings.ai_model,
        fallback_models=tuple(model for model in settings.ai_fallback_models if model and model != settings.ai_model),
        timeout_s=settings.ai_timeout_s,
    )
