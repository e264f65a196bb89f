from __future__ import annotations

from pydantic import BaseModel, Field

from .portal import JobPosting


class FactorScore(BaseModel):
    fraction: float = Field(ge=0.0, le=1.0)
    points: float = Field(ge=0.0)


class SkillsFactor(FactorScore):
    matched_skills: list[str] = Field(default_factory=list)


class ExperienceFactor(FactorScore):
    seeker_years: int
    level: str
    band_min: int
    band_max: int


class LocationFactor(FactorScore):
    job_location: str | None = None
    remote: bool = False


class RecencyFactor(FactorScore):
    days_since_posted: float | None = None


class IndustryBonus(BaseModel):
    points: float = Field(ge=0.0)
    industry: str | None = None


class MatchBreakdown(BaseModel):
    skills: SkillsFactor
    experience: ExperienceFactor
    location: LocationFactor
    recency: RecencyFactor
    industry: IndustryBonus


class MatchResult(BaseModel):
    job: JobPosting
    score: float = Field(ge=0.0, le=100.0)
    breakdown: MatchBreakdown


class RankedJobs(BaseModel):
    results: list[MatchResult] = Field(default_factory=list)
    total: int = 0


class TrendingJob(BaseModel):
    job: JobPosting
    application_count: int = 0


class SimilarJob(BaseModel):
    job: JobPosting
    similarity: float = Field(ge=0.0, le=1.0)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class RecommendationMetadata(BaseModel):
    seeker_skills: list[str] = Field(default_factory=list)
    experience_years: int = 0
    total_applied_jobs: int = 0


class RecommendationPage(BaseModel):
    recommendations: list[MatchResult] = Field(default_factory=list)
    pagination: Pagination
    metadata: RecommendationMetadata


class TrendingJobsResponse(BaseModel):
    trending_jobs: list[TrendingJob] = Field(default_factory=list)


class SimilarJobsResponse(BaseModel):
    reference_job_id: int
    similar_jobs: list[SimilarJob] = Field(default_factory=list)
