from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime, timezone
from typing import TypeVar

from jobportal.core.scoring import clamp, get_scoring_value, round_half_up
from jobportal.matching import factors
from jobportal.normalize.fields import dedupe_preserving_order, skills_overlap
from jobportal.schemas.portal import JobPosting, JobStatus, SeekerProfile
from jobportal.schemas.recommendation import (
    ExperienceFactor,
    IndustryBonus,
    LocationFactor,
    MatchBreakdown,
    MatchResult,
    RankedJobs,
    RecencyFactor,
    SimilarJob,
    SkillsFactor,
    TrendingJob,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _weight(name: str, default: float) -> float:
    return float(get_scoring_value(f"recommendation.weights.{name}", default))


def _guarded(factor: str, job_id: int, compute: Callable[[], T], fallback: T) -> T:
    try:
        return compute()
    except Exception as exc:  # noqa: BLE001 - one bad factor must not abort ranking
        logger.warning("recommendation_factor_failed factor=%s job=%s: %s", factor, job_id, exc)
        return fallback


def _skills_factor(profile: SeekerProfile, job: JobPosting) -> SkillsFactor:
    def compute() -> SkillsFactor:
        fraction = factors.skills_match_fraction(profile.skills, job.skills)
        return SkillsFactor(
            fraction=fraction,
            points=fraction * _weight("skills", 40),
            matched_skills=factors.matched_job_skills(profile.skills, job.skills),
        )

    return _guarded("skills", job.id, compute, SkillsFactor(fraction=0.0, points=0.0))


def _experience_factor(profile: SeekerProfile, job: JobPosting) -> ExperienceFactor:
    def compute() -> ExperienceFactor:
        level = factors.experience_level(job.title, job.type)
        band_min, band_max = factors.experience_band(level)
        fraction = factors.experience_match(profile.experience_years, band_min, band_max)
        return ExperienceFactor(
            fraction=fraction,
            points=fraction * _weight("experience", 25),
            seeker_years=profile.experience_years,
            level=level,
            band_min=band_min,
            band_max=band_max,
        )

    fallback = ExperienceFactor(
        fraction=0.0,
        points=0.0,
        seeker_years=profile.experience_years,
        level="unknown",
        band_min=0,
        band_max=0,
    )
    return _guarded("experience", job.id, compute, fallback)


def _location_factor(profile: SeekerProfile, job: JobPosting) -> LocationFactor:
    def compute() -> LocationFactor:
        fraction = factors.location_match(profile.location, job.location, job.type)
        return LocationFactor(
            fraction=fraction,
            points=fraction * _weight("location", 15),
            job_location=job.location,
            remote=factors.is_remote(job.location, job.type),
        )

    return _guarded("location", job.id, compute, LocationFactor(fraction=0.0, points=0.0, job_location=job.location))


def _recency_factor(job: JobPosting, now: datetime) -> RecencyFactor:
    def compute() -> RecencyFactor:
        fraction = factors.recency_score(job.posted_at, now)
        return RecencyFactor(
            fraction=fraction,
            points=fraction * _weight("recency", 10),
            days_since_posted=factors.days_since(job.posted_at, now),
        )

    return _guarded("recency", job.id, compute, RecencyFactor(fraction=0.0, points=0.0))


def _industry_factor(job: JobPosting) -> IndustryBonus:
    industry = job.company.industry if job.company else None

    def compute() -> IndustryBonus:
        return IndustryBonus(points=factors.industry_bonus(job.company), industry=industry)

    return _guarded("industry", job.id, compute, IndustryBonus(points=0.0, industry=industry))


def score_job(profile: SeekerProfile, job: JobPosting, *, now: datetime) -> MatchResult:
    breakdown = MatchBreakdown(
        skills=_skills_factor(profile, job),
        experience=_experience_factor(profile, job),
        location=_location_factor(profile, job),
        recency=_recency_factor(job, now),
        industry=_industry_factor(job),
    )
    raw_total = (
        breakdown.skills.points
        + breakdown.experience.points
        + breakdown.location.points
        + breakdown.recency.points
        + breakdown.industry.points
    )
    total = clamp(round_half_up(raw_total, 2), 0.0, 100.0)
    return MatchResult(job=job, score=total, breakdown=breakdown)


def recommend(
    profile: SeekerProfile,
    candidate_jobs: Iterable[JobPosting],
    excluded_job_ids: Iterable[int] = (),
    *,
    now: datetime | None = None,
) -> RankedJobs:
    """Score every eligible job against the seeker and rank by total score.

    Jobs that are not open, past their deadline, or already applied to are
    dropped before scoring. Ties keep the input order. The caller paginates.
    """
    current = now or datetime.now(timezone.utc)
    excluded = set(excluded_job_ids)
    eligible = [job for job in candidate_jobs if job.id not in excluded and job.is_eligible(current)]

    scored = [score_job(profile, job, now=current) for job in eligible]
    scored.sort(key=lambda result: result.score, reverse=True)
    return RankedJobs(results=scored, total=len(scored))


def rank_trending(
    jobs: Iterable[JobPosting],
    application_counts: Mapping[int, int],
    *,
    limit: int = 10,
    now: datetime | None = None,
) -> list[TrendingJob]:
    current = now or datetime.now(timezone.utc)
    trending = [
        TrendingJob(job=job, application_count=max(0, int(application_counts.get(job.id, 0))))
        for job in jobs
        if job.is_eligible(current)
    ]
    trending.sort(key=lambda item: item.application_count, reverse=True)
    return trending[: max(0, limit)]


def skill_similarity(left: Iterable[str], right: Iterable[str]) -> float:
    """Jaccard-like overlap where a skill matches by bidirectional substring."""
    a = dedupe_preserving_order(left)
    b = dedupe_preserving_order(right)
    if not a or not b:
        return 0.0
    matched = sum(1 for skill in a if any(skills_overlap(skill, other) for other in b))
    union = len(a) + len(b) - matched
    if union <= 0:
        return 0.0
    return clamp(matched / union, 0.0, 1.0)


def _first_title_token(title: str) -> str:
    parts = (title or "").strip().lower().split()
    return parts[0] if parts else ""


def _is_related(reference: JobPosting, candidate: JobPosting) -> bool:
    token = _first_title_token(reference.title)
    if token and token in (candidate.title or "").lower():
        return True
    if reference.category and candidate.category and reference.category.lower() == candidate.category.lower():
        return True
    return reference.type == candidate.type


def rank_similar(
    reference: JobPosting,
    candidates: Iterable[JobPosting],
    *,
    limit: int = 5,
) -> list[SimilarJob]:
    similar = [
        SimilarJob(job=job, similarity=round_half_up(skill_similarity(reference.skills, job.skills), 4))
        for job in candidates
        if job.id != reference.id and job.status == JobStatus.OPEN and _is_related(reference, job)
    ]
    similar.sort(key=lambda item: item.similarity, reverse=True)
    return similar[: max(0, limit)]
