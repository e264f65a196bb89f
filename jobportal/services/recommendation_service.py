from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta, timezone

from jobportal.core.config import settings
from jobportal.db import portal_store
from jobportal.matching import rank_similar, rank_trending, recommend
from jobportal.schemas.recommendation import (
    Pagination,
    RecommendationMetadata,
    RecommendationPage,
    SimilarJobsResponse,
    TrendingJobsResponse,
)

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def get_recommendations(
    seeker_id: int,
    *,
    page: int = 1,
    limit: int = 10,
    now: datetime | None = None,
) -> RecommendationPage:
    """Rank open jobs for a seeker and return one page of results.

    Raises NotFoundError when the seeker has no profile.
    """
    current = now or _utc_now()
    page = max(1, page)
    limit = max(1, limit)

    profile = portal_store.get_seeker_profile(seeker_id)
    applied_ids = [record.job_id for record in portal_store.list_applications_by_seeker(seeker_id)]
    candidates = portal_store.list_open_jobs(
        exclude_ids=applied_ids,
        limit=settings.recommendation_candidate_limit,
        now=current,
    )

    ranked = recommend(profile, candidates, applied_ids, now=current)
    offset = (page - 1) * limit
    logger.info(
        "recommendations_ranked seeker=%s candidates=%s eligible=%s page=%s",
        seeker_id,
        len(candidates),
        ranked.total,
        page,
    )
    return RecommendationPage(
        recommendations=ranked.results[offset : offset + limit],
        pagination=Pagination(
            page=page,
            limit=limit,
            total=ranked.total,
            total_pages=math.ceil(ranked.total / limit),
        ),
        metadata=RecommendationMetadata(
            seeker_skills=profile.skills,
            experience_years=profile.experience_years,
            total_applied_jobs=len(applied_ids),
        ),
    )


def get_trending_jobs(*, limit: int = 10, now: datetime | None = None) -> TrendingJobsResponse:
    current = now or _utc_now()
    since = current - timedelta(days=max(1, settings.trending_window_days))
    counts = portal_store.count_recent_applications(since)
    jobs = portal_store.list_open_jobs(limit=settings.recommendation_candidate_limit, now=current)
    return TrendingJobsResponse(trending_jobs=rank_trending(jobs, counts, limit=max(1, limit), now=current))


def get_similar_jobs(job_id: int, *, limit: int = 5, now: datetime | None = None) -> SimilarJobsResponse:
    reference = portal_store.get_job(job_id)
    candidates = portal_store.list_open_jobs(
        exclude_ids=[job_id],
        limit=settings.recommendation_candidate_limit,
        now=now or _utc_now(),
    )
    return SimilarJobsResponse(
        reference_job_id=reference.id,
        similar_jobs=rank_similar(reference, candidates, limit=max(1, limit)),
    )
