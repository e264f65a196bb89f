from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

Priority = Literal["critical", "high", "medium", "low"]
KeywordSource = Literal["ai", "fallback"]


class KeywordSet(BaseModel):
    technical: list[str] = Field(default_factory=list)
    soft: list[str] = Field(default_factory=list)
    action: list[str] = Field(default_factory=list)
    requirements: list[str] = Field(default_factory=list)
    source: KeywordSource = "fallback"

    def categories(self) -> dict[str, list[str]]:
        return {
            "technical": list(self.technical),
            "soft": list(self.soft),
            "action": list(self.action),
            "requirements": list(self.requirements),
        }


class Optimization(BaseModel):
    type: str
    priority: Priority
    message: str
    impact: str = ""


class ATSBreakdown(BaseModel):
    skills: float = Field(ge=0.0, le=1.0)
    completeness: float = Field(ge=0.0, le=1.0)
    keywords: float = Field(ge=0.0, le=1.0)
    format: float = Field(ge=0.0, le=1.0)


class ATSScore(BaseModel):
    total: int = Field(ge=0, le=100)
    optimizations: list[Optimization] = Field(default_factory=list, max_length=5)
    breakdown: ATSBreakdown


class FormattingReport(BaseModel):
    score: int = Field(ge=0, le=100)
    issues: list[str] = Field(default_factory=list)


class KeywordCoverage(BaseModel):
    found: list[str] = Field(default_factory=list)
    missing: list[str] = Field(default_factory=list, max_length=10)
    score: int = Field(ge=0, le=100)
    evaluated: bool = False


class SectionPresence(BaseModel):
    contact: bool = False
    summary: bool = False
    experience: bool = False
    education: bool = False
    skills: bool = False

    def present_count(self) -> int:
        return sum(1 for value in self.model_dump().values() if value)


class Recommendation(BaseModel):
    type: Priority
    message: str
    action: str


class ATSAnalysis(BaseModel):
    overall_score: int = Field(ge=0, le=100)
    formatting: FormattingReport
    keywords: KeywordCoverage
    sections: SectionPresence
    recommendations: list[Recommendation] = Field(default_factory=list, max_length=5)


class PersonalInfo(BaseModel):
    name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    summary: str = ""


class ExperienceEntry(BaseModel):
    title: str
    company: str = ""
    duration: str = ""
    bullets: list[str] = Field(default_factory=list)


class TargetJobRef(BaseModel):
    id: int
    title: str
    company: str | None = None


class ResumeSections(BaseModel):
    experience: list[dict[str, Any]] = Field(default_factory=list)
    education: list[dict[str, Any]] = Field(default_factory=list)


class OptimizedResume(BaseModel):
    personal_info: PersonalInfo
    skills: list[str] = Field(default_factory=list, max_length=15)
    experience: list[ExperienceEntry] = Field(default_factory=list)
    education: list[dict[str, Any]] = Field(default_factory=list)
    template: str = "modern"
    ats_score: int = Field(ge=0, le=100)
    ats_optimizations: list[Optimization] = Field(default_factory=list, max_length=5)
    target_job: TargetJobRef | None = None
    notes: list[str] = Field(default_factory=list)


class GenerateResumeRequest(BaseModel):
    seeker_id: int
    job_id: int | None = None
    template_id: str = Field(default="modern", min_length=1, max_length=40)
    sections: ResumeSections = Field(default_factory=ResumeSections)


class GenerateResumeResponse(BaseModel):
    resume: OptimizedResume
    optimizations: list[Optimization] = Field(default_factory=list)
    score: int


class AnalyzeResumeRequest(BaseModel):
    resume_text: str = Field(min_length=1, max_length=120000)
    job_id: int | None = None

    @field_validator("resume_text")
    @classmethod
    def _require_text(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("resume_text is required")
        return value


class KeywordsResponse(BaseModel):
    job_id: int
    title: str
    company: str | None = None
    keywords: KeywordSet


class ContentSuggestionsRequest(BaseModel):
    job_title: str = Field(default="Professional", max_length=200)
    experience: int = Field(default=1, ge=0, le=60)
    skills: list[str] = Field(default_factory=list, max_length=100)
    industry: str = Field(default="Technology", max_length=120)


class ContentSuggestions(BaseModel):
    bullet_points: list[str] = Field(default_factory=list)
    summary_templates: list[str] = Field(default_factory=list)
    skill_suggestions: list[str] = Field(default_factory=list)
    action_verbs: list[str] = Field(default_factory=list)


class SkillSuggestionsRequest(BaseModel):
    current_skills: list[str] = Field(default_factory=list, max_length=100)
    job_title: str = Field(default="Software Developer", max_length=200)
    industry: str = Field(default="Technology", max_length=120)


class SkillSuggestionsResponse(BaseModel):
    current_skills: list[str] = Field(default_factory=list)
    suggested_skills: list[str] = Field(default_factory=list)
    source: KeywordSource = "fallback"


class BulletOptimizeRequest(BaseModel):
    current_bullet: str = Field(min_length=1, max_length=1000)
    job_title: str = Field(default="Software Developer", max_length=200)
    company: str = Field(default="Company", max_length=200)
    job_skills: list[str] = Field(default_factory=list, max_length=50)


class BulletOptimizeResponse(BaseModel):
    original_bullet: str
    optimized_bullet: str
    source: KeywordSource = "fallback"


class JobDetails(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    company: str | None = Field(default=None, max_length=200)


class SummaryOptimizeRequest(BaseModel):
    current_summary: str = Field(min_length=1, max_length=5000)
    job_title: str = Field(default="Professional", max_length=200)
    skills: list[str] = Field(default_factory=list, max_length=100)
    experience: int = Field(default=2, ge=0, le=60)
    job_details: JobDetails | None = None

    @field_validator("current_summary")
    @classmethod
    def _require_summary(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("current_summary cannot be empty")
        return value


class SummaryOptimizeResponse(BaseModel):
    original_summary: str
    optimized_summary: str
    improvement_suggestions: list[str] = Field(default_factory=list)
    source: KeywordSource = "fallback"


class CoverLetterResumeData(BaseModel):
    name: str = ""
    skills: list[str] = Field(default_factory=list, max_length=100)


class CoverLetterRequest(BaseModel):
    resume_data: CoverLetterResumeData
    job_title: str = Field(min_length=1, max_length=200)
    company: str = Field(min_length=1, max_length=200)
    job_description: str = Field(default="", max_length=120000)


class CoverLetterResponse(BaseModel):
    cover_letter: str
    job_title: str
    company: str
    source: KeywordSource = "fallback"


class ResumeTemplate(BaseModel):
    id: str
    name: str
    description: str
    ats_score: int = Field(ge=0, le=100)
    features: list[str] = Field(default_factory=list)


class JobSearchHit(BaseModel):
    id: int
    title: str
    company: str | None = None
    location: str | None = None
    snippet: str = ""
