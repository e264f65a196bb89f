from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Sequence

from jobportal.core.scoring import clamp, get_scoring_value
from jobportal.normalize.fields import dedupe_preserving_order, skills_overlap
from jobportal.schemas.portal import CompanyInfo

_LEVEL_ORDER = ("internship", "entry", "senior", "lead")
_DEFAULT_BANDS: dict[str, dict[str, int]] = {
    "internship": {"min": 0, "max": 1},
    "entry": {"min": 0, "max": 2},
    "mid": {"min": 2, "max": 5},
    "senior": {"min": 5, "max": 10},
    "lead": {"min": 8, "max": 15},
}
_DEFAULT_TITLE_MARKERS: dict[str, list[str]] = {
    "internship": ["intern"],
    "entry": ["junior", "entry"],
    "senior": ["senior", "sr."],
    "lead": ["lead", "principal", "architect"],
}
_DEFAULT_RECENCY_BUCKETS = (
    {"max_days": 7, "score": 1.0},
    {"max_days": 30, "score": 0.8},
    {"max_days": 60, "score": 0.6},
    {"max_days": 90, "score": 0.4},
)
_DEFAULT_TECH_INDUSTRIES = ("technology", "software", "it", "fintech", "healthtech")
_SHORT_INDUSTRY_KEYWORD_CHARS = 2


def _type_value(job_type: Any) -> str:
    raw = getattr(job_type, "value", job_type)
    return str(raw or "").strip().lower()


def matched_job_skills(seeker_skills: Sequence[str], job_skills: Sequence[str]) -> list[str]:
    user = dedupe_preserving_order(seeker_skills)
    required = dedupe_preserving_order(job_skills)
    if not user or not required:
        return []
    return [skill for skill in required if any(skills_overlap(skill, own) for own in user)]


def skills_match_fraction(seeker_skills: Sequence[str], job_skills: Sequence[str]) -> float:
    required = dedupe_preserving_order(job_skills)
    if not required or not dedupe_preserving_order(seeker_skills):
        return 0.0
    matched = matched_job_skills(seeker_skills, required)
    return clamp(len(matched) / len(required), 0.0, 1.0)


def experience_level(title: str, job_type: Any) -> str:
    """Infer the experience level a posting expects from its title and type."""
    markers = get_scoring_value("recommendation.experience.title_markers", _DEFAULT_TITLE_MARKERS)
    title_lower = (title or "").lower()
    if _type_value(job_type) == "internship":
        return "internship"
    for level in _LEVEL_ORDER:
        if any(marker in title_lower for marker in markers.get(level, [])):
            return level
    return str(get_scoring_value("recommendation.experience.default_level", "mid"))


def experience_band(level: str) -> tuple[int, int]:
    bands = get_scoring_value("recommendation.experience.bands", _DEFAULT_BANDS)
    band = bands.get(level) or _DEFAULT_BANDS["mid"]
    return int(band["min"]), int(band["max"])


def experience_match(seeker_years: int, band_min: int, band_max: int) -> float:
    under_penalty = float(get_scoring_value("recommendation.experience.under_penalty_per_year", 0.2))
    over_penalty = float(get_scoring_value("recommendation.experience.over_penalty_per_year", 0.1))
    over_floor = float(get_scoring_value("recommendation.experience.over_floor", 0.3))

    years = max(0, int(seeker_years or 0))
    if band_min <= years <= band_max:
        return 1.0
    if years < band_min:
        gap = band_min - years
        return clamp(max(0.0, 1 - gap * under_penalty), 0.0, 1.0)
    excess = years - band_max
    return clamp(max(over_floor, 1 - excess * over_penalty), 0.0, 1.0)


def is_remote(job_location: str | None, job_type: Any) -> bool:
    return _type_value(job_type) == "remote" or "remote" in (job_location or "").lower()


def location_match(seeker_location: str | None, job_location: str | None, job_type: Any) -> float:
    if is_remote(job_location, job_type):
        return float(get_scoring_value("recommendation.location.remote", 1.0))

    seeker = (seeker_location or "").strip().lower()
    job = (job_location or "").strip().lower()
    if not seeker or not job:
        return float(get_scoring_value("recommendation.location.unknown", 0.5))

    if seeker == job:
        return float(get_scoring_value("recommendation.location.exact", 1.0))
    if seeker in job or job in seeker:
        return float(get_scoring_value("recommendation.location.partial", 0.8))

    seeker_parts = [part.strip() for part in seeker.split(",")]
    job_parts = [part.strip() for part in job.split(",")]
    if len(seeker_parts) > 1 and len(job_parts) > 1 and seeker_parts[-1] and seeker_parts[-1] == job_parts[-1]:
        return float(get_scoring_value("recommendation.location.same_region", 0.6))

    return float(get_scoring_value("recommendation.location.mismatch", 0.2))


def days_since(posted_at: datetime | None, now: datetime) -> float | None:
    if posted_at is None:
        return None
    posted = posted_at if posted_at.tzinfo else posted_at.replace(tzinfo=timezone.utc)
    current = now if now.tzinfo else now.replace(tzinfo=timezone.utc)
    return (current - posted).total_seconds() / 86400.0


def recency_score(posted_at: datetime | None, now: datetime) -> float:
    age_days = days_since(posted_at, now)
    if age_days is None:
        return float(get_scoring_value("recommendation.recency.unknown", 0.5))
    buckets = get_scoring_value("recommendation.recency.buckets", _DEFAULT_RECENCY_BUCKETS)
    for bucket in buckets:
        if age_days <= float(bucket["max_days"]):
            return float(bucket["score"])
    return float(get_scoring_value("recommendation.recency.stale", 0.2))


def _industry_has_keyword(industry: str, keyword: str) -> bool:
    keyword = keyword.strip().lower()
    if not keyword:
        return False
    if len(keyword) <= _SHORT_INDUSTRY_KEYWORD_CHARS:
        # "it" names IT, not "Hospitality" or "Retail".
        return re.search(rf"(?<![a-z0-9]){re.escape(keyword)}(?![a-z0-9])", industry) is not None
    return keyword in industry


def industry_bonus(company: CompanyInfo | None) -> float:
    industry = (company.industry if company else None) or ""
    industry = industry.strip().lower()
    if not industry:
        return 0.0
    tech_keywords = get_scoring_value("recommendation.industry_bonus.tech_keywords", _DEFAULT_TECH_INDUSTRIES)
    if any(_industry_has_keyword(industry, str(keyword)) for keyword in tech_keywords):
        return float(get_scoring_value("recommendation.industry_bonus.tech_points", 5))
    return float(get_scoring_value("recommendation.industry_bonus.other_points", 2))
