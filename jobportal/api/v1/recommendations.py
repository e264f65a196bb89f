from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from jobportal.core.errors import NotFoundError
from jobportal.core.security import require_api_key
from jobportal.schemas.recommendation import RecommendationPage, SimilarJobsResponse, TrendingJobsResponse
from jobportal.services import recommendation_service

router = APIRouter(dependencies=[Depends(require_api_key)])


def _not_found(exc: NotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.get("/recommendations", response_model=RecommendationPage)
def recommendations(
    seeker_id: int = Query(ge=1),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
):
    try:
        return recommendation_service.get_recommendations(seeker_id, page=page, limit=limit)
    except NotFoundError as exc:
        raise _not_found(exc) from exc


@router.get("/recommendations/trending", response_model=TrendingJobsResponse)
def trending_jobs(limit: int = Query(default=10, ge=1, le=100)):
    return recommendation_service.get_trending_jobs(limit=limit)


@router.get("/recommendations/similar/{job_id}", response_model=SimilarJobsResponse)
def similar_jobs(job_id: int, limit: int = Query(default=5, ge=1, le=50)):
    try:
        return recommendation_service.get_similar_jobs(job_id, limit=limit)
    except NotFoundError as exc:
        raise _not_found(exc) from exc
