from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from jobportal.ai.factory import get_completion_client
from jobportal.ai.types import CompletionClient
from jobportal.core.config import settings
from jobportal.core.errors import NotFoundError
from jobportal.core.rate_limit import rate_limit
from jobportal.core.security import require_api_key
from jobportal.db import portal_store
from jobportal.schemas.resume import (
    AnalyzeResumeRequest,
    ATSAnalysis,
    BulletOptimizeRequest,
    BulletOptimizeResponse,
    ContentSuggestions,
    ContentSuggestionsRequest,
    CoverLetterRequest,
    CoverLetterResponse,
    GenerateResumeRequest,
    GenerateResumeResponse,
    JobSearchHit,
    KeywordsResponse,
    ResumeTemplate,
    SkillSuggestionsRequest,
    SkillSuggestionsResponse,
    SummaryOptimizeRequest,
    SummaryOptimizeResponse,
)
from jobportal.services import content_service, job_search_service, resume_builder_service

router = APIRouter(prefix="/resume-builder", dependencies=[Depends(require_api_key)])


def completion_client() -> CompletionClient | None:
    return get_completion_client(settings)


def _not_found(exc: NotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.post("/generate", response_model=GenerateResumeResponse)
@rate_limit()
async def generate_resume(
    request: Request,
    payload: GenerateResumeRequest,
    client: CompletionClient | None = Depends(completion_client),
):
    _ = request
    try:
        return await resume_builder_service.generate_resume(payload, client=client)
    except NotFoundError as exc:
        raise _not_found(exc) from exc


@router.post("/analyze", response_model=ATSAnalysis)
@rate_limit()
async def analyze_resume(
    request: Request,
    payload: AnalyzeResumeRequest,
    client: CompletionClient | None = Depends(completion_client),
):
    _ = request
    try:
        return await resume_builder_service.analyze_resume(payload, client=client)
    except NotFoundError as exc:
        raise _not_found(exc) from exc


@router.get("/keywords/{job_id}", response_model=KeywordsResponse)
async def job_keywords(job_id: int, client: CompletionClient | None = Depends(completion_client)):
    try:
        return await resume_builder_service.job_keywords(job_id, client=client)
    except NotFoundError as exc:
        raise _not_found(exc) from exc


@router.post("/suggestions", response_model=ContentSuggestions)
def content_suggestions(payload: ContentSuggestionsRequest):
    return content_service.content_suggestions(payload)


@router.get("/templates", response_model=list[ResumeTemplate])
def templates():
    return content_service.resume_templates()


@router.post("/optimize/bullet", response_model=BulletOptimizeResponse)
@rate_limit()
async def optimize_bullet(
    request: Request,
    payload: BulletOptimizeRequest,
    client: CompletionClient | None = Depends(completion_client),
):
    _ = request
    return await content_service.optimize_bullet(payload, client=client)


@router.post("/optimize/summary", response_model=SummaryOptimizeResponse)
@rate_limit()
async def optimize_summary(
    request: Request,
    payload: SummaryOptimizeRequest,
    client: CompletionClient | None = Depends(completion_client),
):
    _ = request
    return await content_service.optimize_summary(payload, client=client)


@router.post("/ai/skills", response_model=SkillSuggestionsResponse)
@rate_limit()
async def skill_suggestions(
    request: Request,
    payload: SkillSuggestionsRequest,
    client: CompletionClient | None = Depends(completion_client),
):
    _ = request
    return await content_service.suggest_skills(payload, client=client)


@router.post("/generate/cover-letter", response_model=CoverLetterResponse)
@rate_limit()
async def cover_letter(
    request: Request,
    payload: CoverLetterRequest,
    client: CompletionClient | None = Depends(completion_client),
):
    _ = request
    return await content_service.generate_cover_letter(payload, client=client)


@router.get("/jobs/search", response_model=list[JobSearchHit])
def search_jobs(
    query: str = Query(min_length=1, max_length=200),
    limit: int = Query(default=20, ge=1, le=100),
):
    jobs = portal_store.list_open_jobs(limit=settings.recommendation_candidate_limit)
    matches = job_search_service.search_jobs(query, jobs, limit=limit)
    return [job_search_service.to_hit(job) for job in matches]
