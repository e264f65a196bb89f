from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, None)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_env_list(name: str, default: list[str]) -> tuple[str, ...]:
    raw = _get_env(name, None)
    if raw is None:
        return tuple(default)
    values = [item.strip() for item in raw.split(",")]
    clean = [item for item in values if item]
    return tuple(clean) if clean else tuple(default)


@dataclass(frozen=True)
class Settings:
    api_key: str | None
    rate_limit: str
    rate_limit_enabled: bool
    log_level: str
    sentry_dsn: str | None
    cors_allowed_origins: tuple[str, ...]
    portal_db_path: str
    recommendation_candidate_limit: int
    trending_window_days: int
    ai_generation_enabled: bool
    ai_api_key: str | None
    ai_base_url: str | None
    ai_model: str
    ai_fallback_models: tuple[str, ...]
    ai_timeout_s: float
    ai_keyword_timeout_s: float
    ai_summary_timeout_s: float
    ai_skills_timeout_s: float


def load_settings() -> Settings:
    return Settings(
        api_key=_get_env("API_KEY"),
        rate_limit=_get_env("RATE_LIMIT", "60/minute") or "60/minute",
        rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
        log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
        sentry_dsn=_get_env("SENTRY_DSN"),
        cors_allowed_origins=_get_env_list(
            "CORS_ALLOWED_ORIGINS",
            [
                "http://localhost:5173",
                "http://127.0.0.1:5173",
                "http://localhost:3000",
            ],
        ),
        portal_db_path=_get_env("PORTAL_DB_PATH", "data/portal.db") or "data/portal.db",
        recommendation_candidate_limit=_get_env_int("RECOMMENDATION_CANDIDATE_LIMIT", 200),
        trending_window_days=_get_env_int("TRENDING_WINDOW_DAYS", 7),
        ai_generation_enabled=_get_env_bool("AI_GENERATION_ENABLED", True),
        ai_api_key=_get_env("AI_API_KEY") or _get_env("OPENROUTER_API_KEY") or _get_env("OPENAI_API_KEY"),
        ai_base_url=_get_env("AI_BASE_URL", "https://openrouter.ai/api/v1"),
        ai_model=_get_env("AI_MODEL", "meta-llama/llama-3.2-3b-instruct:free") or "meta-llama/llama-3.2-3b-instruct:free",
        ai_fallback_models=_get_env_list(
            "AI_FALLBACK_MODELS",
            [
                "qwen/qwen-2.5-7b-instruct:free",
                "google/gemma-2-9b-it:free",
            ],
        ),
        ai_timeout_s=_get_env_float("AI_TIMEOUT_S", 8.0),
        ai_keyword_timeout_s=_get_env_float("AI_KEYWORD_TIMEOUT_S", 8.0),
        ai_summary_timeout_s=_get_env_float("AI_SUMMARY_TIMEOUT_S", 5.0),
        ai_skills_timeout_s=_get_env_float("AI_SKILLS_TIMEOUT_S", 3.0),
    )


settings = load_settings()

if settings.recommendation_candidate_limit <= 0:
    raise RuntimeError("RECOMMENDATION_CANDIDATE_LIMIT must be a positive integer.")
