from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from jobportal.ai.output_guard import guarded_completion
from jobportal.ai.types import CompletionClient
from jobportal.ats.analyzer import analyze_ats
from jobportal.ats.keywords import extract_keywords, extract_keywords_fallback
from jobportal.ats.scorer import score_resume
from jobportal.core.config import settings
from jobportal.core.scoring import get_scoring_value
from jobportal.db import portal_store
from jobportal.normalize.fields import dedupe_preserving_order, normalize_whitespace, skills_overlap
from jobportal.schemas.portal import JobPosting, SeekerProfile
from jobportal.schemas.resume import (
    AnalyzeResumeRequest,
    ATSAnalysis,
    ExperienceEntry,
    GenerateResumeRequest,
    GenerateResumeResponse,
    KeywordSet,
    KeywordsResponse,
    OptimizedResume,
    PersonalInfo,
    ResumeSections,
    TargetJobRef,
)

logger = logging.getLogger(__name__)

FALLBACK_NOTE = "note: generated using fallback templates"
_DEFAULT_ACTION_VERBS = ("Developed", "Implemented", "Designed", "Led", "Managed", "Optimized")
_SUMMARY_SYSTEM_PROMPT = (
    "You are a resume writer. Write professional summaries directly. Examples:\n\n"
    "Input: Frontend Developer, React, 3 years\n"
    "Output: Frontend Developer with 3+ years experience in React development, passionate about creating "
    "intuitive user interfaces. Skilled in modern JavaScript frameworks and responsive design principles.\n\n"
    "Now write only the summary for the given input:"
)


def _setting(name: str, default: int) -> int:
    return int(get_scoring_value(f"resume_builder.{name}", default))


def _company_name(job: JobPosting | None) -> str | None:
    if job is None or job.company is None:
        return None
    return job.company.name or None


def template_summary(profile: SeekerProfile, target_job: JobPosting | None, keywords: KeywordSet) -> str:
    relevant = keywords.technical[:5] if target_job is not None else profile.skills[:5]
    summary = f"Experienced professional with {profile.experience_years}+ years of expertise in "
    if relevant:
        summary += ", ".join(relevant[:3])
        if len(relevant) > 3:
            summary += f", and {', '.join(relevant[3:])}"
    else:
        summary += "software development and technology solutions"
    summary += ". "

    if target_job is not None:
        summary += f"Seeking to leverage proven skills in {target_job.title} role "
        company = _company_name(target_job)
        if company:
            summary += f"at {company} "
        summary += "to drive innovation and deliver exceptional results."
    else:
        summary += "Passionate about delivering high-quality solutions and driving business growth through technology."
    return summary


async def generate_summary(
    profile: SeekerProfile,
    target_job: JobPosting | None,
    keywords: KeywordSet,
    *,
    client: CompletionClient | None = None,
) -> tuple[str, bool]:
    """Return (summary, generated) where generated is False when the template was used."""
    top_skills = ", ".join(profile.skills[:4]) or "general software development"
    role = target_job.title if target_job else "Professional"
    prompt = f"{role}, {top_skills}, {profile.experience_years} years"
    company = _company_name(target_job)
    if company:
        prompt += f", applying to {company}"

    generated = await guarded_completion(
        client,
        prompt,
        max_tokens=80,
        timeout_s=settings.ai_summary_timeout_s,
        min_chars=_setting("summary_min_chars", 30),
        max_chars=_setting("summary_max_chars", 600),
        system_prompt=_SUMMARY_SYSTEM_PROMPT,
        purpose="resume_summary",
    )
    if generated:
        return generated, True
    return template_summary(profile, target_job, keywords), False


def optimize_skills(
    user_skills: Sequence[str],
    job_skills: Sequence[str],
    keywords: KeywordSet,
) -> list[str]:
    """Matched skills first, then the rest, then a few job skills the seeker lacks."""
    user = dedupe_preserving_order(user_skills)
    wanted = dedupe_preserving_order([*job_skills, *keywords.technical])

    matched = [skill for skill in user if any(skills_overlap(skill, job_skill) for job_skill in wanted)]
    others = [skill for skill in user if skill not in matched]
    missing = [job_skill for job_skill in wanted if not any(skills_overlap(skill, job_skill) for skill in user)]
    suggested = missing[: _setting("max_suggested_skills", 3)]

    return dedupe_preserving_order([*matched, *others, *suggested])[: _setting("max_skills", 15)]


def _template_bullets(keywords: KeywordSet, fallback_skills: Sequence[str]) -> list[str]:
    verbs = dedupe_preserving_order([*keywords.action, *_DEFAULT_ACTION_VERBS])
    tech = (keywords.technical or list(fallback_skills))[: _setting("max_bullet_keywords", 3)]
    tech_text = ", ".join(tech) if tech else "modern technologies"
    return [
        f"{verbs[0]} scalable web applications using {tech_text}",
        f"{verbs[1]} responsive user interfaces that improved user engagement by 25%",
        f"{verbs[2]} and maintained RESTful APIs serving 10,000+ daily users",
        f"{verbs[3]} cross-functional team of 5 developers in agile environment",
    ]


def _entry_text(entry: dict[str, Any], *keys: str) -> str:
    for key in keys:
        value = entry.get(key)
        if isinstance(value, str) and value.strip():
            return normalize_whitespace(value)
    return ""


def optimize_experience(
    profile: SeekerProfile,
    keywords: KeywordSet,
    entries: Sequence[dict[str, Any]] = (),
) -> list[ExperienceEntry]:
    templated = _template_bullets(keywords, profile.skills)
    if not entries:
        return [
            ExperienceEntry(
                title="Software Developer",
                company="Previous Company",
                duration="2022 - Present",
                bullets=templated,
            )
        ]

    optimized: list[ExperienceEntry] = []
    for entry in entries:
        raw_bullets = entry.get("bullets")
        existing = [str(item) for item in raw_bullets if str(item).strip()] if isinstance(raw_bullets, list) else []
        bullets = dedupe_preserving_order([*existing, *templated])[: max(len(templated), len(existing))]
        optimized.append(
            ExperienceEntry(
                title=_entry_text(entry, "title", "position") or "Professional",
                company=_entry_text(entry, "company", "employer"),
                duration=_entry_text(entry, "duration", "dates"),
                bullets=bullets,
            )
        )
    return optimized


async def build_optimized_resume(
    profile: SeekerProfile,
    target_job: JobPosting | None,
    template_id: str = "modern",
    sections: ResumeSections | None = None,
    *,
    client: CompletionClient | None = None,
) -> OptimizedResume:
    """Assemble an ATS-optimized resume; every step has a template path so this always completes."""
    sections = sections or ResumeSections()
    if target_job is not None:
        keywords = extract_keywords_fallback(
            target_job.title,
            target_job.description,
            target_job.requirements,
            target_job.skills,
        )
        job_skills = target_job.skills
    else:
        keywords = KeywordSet()
        job_skills = []

    summary, generated = await generate_summary(profile, target_job, keywords, client=client)
    skills = optimize_skills(profile.skills, job_skills, keywords)
    experience = optimize_experience(profile, keywords, sections.experience)
    ats = score_resume(
        skills,
        job_skills,
        keywords if target_job is not None else None,
        summary,
        has_education=bool(sections.education),
        has_experience=bool(sections.experience),
    )

    notes: list[str] = []
    if not generated:
        notes.append(FALLBACK_NOTE)
    logger.info(
        "resume_built seeker=%s job=%s ats=%s summary_source=%s",
        profile.user_id,
        target_job.id if target_job else None,
        ats.total,
        "ai" if generated else "fallback",
    )

    return OptimizedResume(
        personal_info=PersonalInfo(
            name=profile.name,
            email=profile.email,
            phone=profile.phone,
            address=profile.location or "",
            summary=summary,
        ),
        skills=skills,
        experience=experience,
        education=list(sections.education),
        template=template_id,
        ats_score=ats.total,
        ats_optimizations=ats.optimizations,
        target_job=(
            TargetJobRef(id=target_job.id, title=target_job.title, company=_company_name(target_job))
            if target_job is not None
            else None
        ),
        notes=notes,
    )


async def generate_resume(
    request: GenerateResumeRequest,
    *,
    client: CompletionClient | None = None,
) -> GenerateResumeResponse:
    profile = portal_store.get_seeker_profile(request.seeker_id)
    target_job = portal_store.get_job(request.job_id) if request.job_id is not None else None
    resume = await build_optimized_resume(
        profile,
        target_job,
        request.template_id,
        request.sections,
        client=client,
    )
    return GenerateResumeResponse(resume=resume, optimizations=resume.ats_optimizations, score=resume.ats_score)


async def job_keywords(job_id: int, *, client: CompletionClient | None = None) -> KeywordsResponse:
    job = portal_store.get_job(job_id)
    keywords = await extract_keywords(
        job.title,
        job.description,
        job.requirements,
        job.skills,
        client=client,
        timeout_s=settings.ai_keyword_timeout_s,
    )
    return KeywordsResponse(job_id=job.id, title=job.title, company=_company_name(job), keywords=keywords)


async def analyze_resume(
    request: AnalyzeResumeRequest,
    *,
    client: CompletionClient | None = None,
) -> ATSAnalysis:
    keywords = None
    if request.job_id is not None:
        keywords = (await job_keywords(request.job_id, client=client)).keywords
    return analyze_ats(request.resume_text, keywords)
