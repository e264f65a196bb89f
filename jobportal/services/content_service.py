from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Sequence

from jobportal.ai.output_guard import guarded_completion
from jobportal.ai.types import CompletionClient
from jobportal.core.config import settings
from jobportal.normalize.fields import dedupe_preserving_order
from jobportal.schemas.resume import (
    BulletOptimizeRequest,
    BulletOptimizeResponse,
    ContentSuggestions,
    ContentSuggestionsRequest,
    CoverLetterRequest,
    CoverLetterResponse,
    ResumeTemplate,
    SkillSuggestionsRequest,
    SkillSuggestionsResponse,
    SummaryOptimizeRequest,
    SummaryOptimizeResponse,
)

logger = logging.getLogger(__name__)

WRITER_SYSTEM_PROMPT = (
    "You are a professional resume writer. Give ONLY the requested content, "
    "with no explanations, reasoning or preamble."
)

_ROLE_SKILLS: dict[str, tuple[str, ...]] = {
    "frontend": ("React", "Vue.js", "TypeScript", "Webpack", "Jest", "Sass"),
    "backend": ("Node.js", "Python", "Docker", "PostgreSQL", "Redis", "GraphQL"),
    "fullstack": ("JavaScript", "React", "Node.js", "MongoDB", "AWS", "Git"),
    "mobile": ("React Native", "Flutter", "Swift", "Firebase", "API Integration"),
    "data": ("Python", "SQL", "Pandas", "Machine Learning", "Tableau", "Statistics"),
    "devops": ("Docker", "Kubernetes", "AWS", "CI/CD", "Terraform", "Monitoring"),
    "manager": ("Leadership", "Agile", "Strategic Planning", "Budget Management", "Team Building"),
    "designer": ("Figma", "Adobe Creative Suite", "Prototyping", "User Research", "Design Systems"),
}
_DEFAULT_ROLE_SKILLS = ("Git", "Agile", "Problem Solving", "Communication", "Testing")

_BASE_VERBS = ("Achieved", "Managed", "Led", "Improved", "Created", "Delivered")
_INDUSTRY_VERBS: dict[str, tuple[str, ...]] = {
    "technology": ("Developed", "Engineered", "Architected", "Optimized", "Automated", "Integrated"),
    "marketing": ("Strategized", "Launched", "Increased", "Generated", "Analyzed", "Campaigned"),
    "finance": ("Analyzed", "Forecasted", "Managed", "Optimized", "Calculated", "Audited"),
    "healthcare": ("Treated", "Diagnosed", "Implemented", "Coordinated", "Improved", "Managed"),
}
_ROLE_VERBS: dict[str, tuple[str, ...]] = {
    "manager": ("Led", "Directed", "Coordinated", "Supervised", "Organized", "Facilitated"),
    "developer": ("Developed", "Coded", "Built", "Programmed", "Debugged", "Deployed"),
    "designer": ("Designed", "Created", "Crafted", "Conceptualized", "Prototyped", "Visualized"),
}

_SKILL_NOISE = ("suggest", "add", "should", "need", "skills")
_SKILL_CHARS_RE = re.compile(r"[^\w\s,.\-+#]")
_LIST_MARKER_RE = re.compile(r"^[\d.\-\s]+")

_TEMPLATES: tuple[ResumeTemplate, ...] = (
    ResumeTemplate(
        id="minimalist",
        name="Minimalist",
        description="Clean design with maximum ATS compatibility",
        ats_score=98,
        features=["Maximum ATS Score", "Clean Layout", "Universal Appeal"],
    ),
    ResumeTemplate(
        id="technical",
        name="Technical Specialist",
        description="Perfect for technical and engineering roles",
        ats_score=96,
        features=["Skills Focused", "Project Highlights", "Technical Optimized"],
    ),
    ResumeTemplate(
        id="modern",
        name="Modern Professional",
        description="Contemporary design for modern professionals",
        ats_score=95,
        features=["ATS Optimized", "Clean Layout", "Professional"],
    ),
    ResumeTemplate(
        id="executive",
        name="Executive",
        description="Sophisticated design for leadership roles",
        ats_score=90,
        features=["Leadership Focus", "Results-Oriented", "Executive Style"],
    ),
    ResumeTemplate(
        id="creative",
        name="Creative Professional",
        description="Stylish design for creative industries",
        ats_score=85,
        features=["Visual Appeal", "Creative Layout", "Portfolio Ready"],
    ),
)


def resume_templates() -> list[ResumeTemplate]:
    return [template.model_copy(deep=True) for template in _TEMPLATES]


def fallback_skill_suggestions(job_title: str, current_skills: Sequence[str], *, limit: int = 5) -> list[str]:
    title = (job_title or "").lower()
    relevant = next((skills for key, skills in _ROLE_SKILLS.items() if key in title), _DEFAULT_ROLE_SKILLS)
    existing = {skill.strip().lower() for skill in current_skills}
    return [skill for skill in relevant if skill.lower() not in existing][:limit]


def parse_skill_completion(raw: str, current_skills: Sequence[str], *, limit: int = 5) -> list[str]:
    existing = {skill.strip().lower() for skill in current_skills}
    candidates: list[str] = []
    for piece in re.split(r"[,\n]", _SKILL_CHARS_RE.sub("", raw or "")):
        skill = _LIST_MARKER_RE.sub("", piece).strip().strip(".").strip()
        lowered = skill.lower()
        if not (1 < len(skill) < 25):
            continue
        if lowered in existing or any(noise in lowered for noise in _SKILL_NOISE):
            continue
        candidates.append(skill)
    return dedupe_preserving_order(candidates)[:limit]


async def suggest_skills(
    request: SkillSuggestionsRequest,
    *,
    client: CompletionClient | None = None,
) -> SkillSuggestionsResponse:
    current = dedupe_preserving_order(request.current_skills)
    if client is not None:
        prompt = (
            f"{request.job_title} needs these skills (just list 4 names):\n"
            f"Current: {', '.join(current[:3])}\n"
            "Add 4 more skills:"
        )
        try:
            raw = await asyncio.wait_for(
                client.complete(
                    prompt,
                    max_tokens=30,
                    system_prompt=WRITER_SYSTEM_PROMPT,
                    budget_s=settings.ai_skills_timeout_s,
                ),
                timeout=settings.ai_skills_timeout_s,
            )
            suggested = parse_skill_completion(raw, current)
            if suggested:
                return SkillSuggestionsResponse(current_skills=current, suggested_skills=suggested, source="ai")
            logger.info("skill_suggestions_ai_empty title=%s", request.job_title)
        except Exception as exc:  # noqa: BLE001 - role table is the fallback
            logger.warning("skill_suggestions_ai_failed title=%s: %s", request.job_title, exc)

    return SkillSuggestionsResponse(
        current_skills=current,
        suggested_skills=fallback_skill_suggestions(request.job_title, current),
        source="fallback",
    )


def template_bullets(job_title: str, skills: Sequence[str], experience: int) -> list[str]:
    """Achievement bullets with metrics scaled to years of experience."""
    skill1 = skills[0] if skills else "modern technology"
    skill2 = skills[1] if len(skills) > 1 else (skills[0] if skills else "development tools")

    base_metric = max(15, min(experience * 10, 50))
    if experience < 2:
        user_count = "1,000"
    elif experience < 4:
        user_count = "5,000"
    else:
        user_count = "10,000"
    team_size = min(experience + 2, 8)

    return [
        f"Built scalable {skill1} application serving {user_count}+ daily active users with 99.9% uptime",
        f"Developed efficient {skill2} components reducing page load time by {base_metric}% and improving user engagement",
        f"Led team of {team_size} developers implementing {skill1} architecture that increased system performance by {base_metric + 10}%",
        f"Optimized {skill1} workflows cutting deployment time from hours to minutes using automated CI/CD pipeline",
        f"Created reusable {skill2} component library adopted by {experience // 2 + 2} development teams across organization",
    ]


def summary_templates(job_title: str, experience: int, skills: Sequence[str]) -> list[str]:
    primary = skills[0] if skills else "technology"
    secondary = skills[1] if len(skills) > 1 else "development"
    years = "1 year" if experience == 1 else f"{experience} years"
    return [
        f"{job_title} with {years} of experience in {primary} and {secondary}. "
        "Focused on building efficient, scalable solutions that deliver business value.",
        f"{years} {job_title} specializing in {primary} development. "
        "Proven ability to deliver high-quality solutions and collaborate effectively with cross-functional teams.",
        f"Dedicated {job_title} with expertise in {primary} and passion for {secondary}. "
        f"{years} of experience creating user-centered applications and driving technical innovation.",
    ]


def contextual_action_verbs(industry: str | None, job_title: str | None) -> list[str]:
    verbs = list(_BASE_VERBS)
    verbs.extend(_INDUSTRY_VERBS.get((industry or "").strip().lower(), ()))
    title = (job_title or "").lower()
    role = next((key for key in _ROLE_VERBS if key in title), None)
    if role:
        verbs.extend(_ROLE_VERBS[role])
    return dedupe_preserving_order(verbs)


def content_suggestions(request: ContentSuggestionsRequest) -> ContentSuggestions:
    skills = dedupe_preserving_order(request.skills)
    return ContentSuggestions(
        bullet_points=template_bullets(request.job_title, skills, request.experience),
        summary_templates=summary_templates(request.job_title, request.experience, skills),
        skill_suggestions=fallback_skill_suggestions(request.job_title, skills),
        action_verbs=contextual_action_verbs(request.industry, request.job_title),
    )


def fallback_bullet(current_bullet: str) -> str:
    clean = re.sub(r"^(i |my |the )", "", current_bullet.strip(), flags=re.IGNORECASE).strip()
    return f"Optimized {clean} to deliver measurable business impact"


async def optimize_bullet(
    request: BulletOptimizeRequest,
    *,
    client: CompletionClient | None = None,
) -> BulletOptimizeResponse:
    prompt = (
        f'Improve this work bullet:\n"{request.current_bullet}"\n\n'
        f"For {request.job_title} role. Make it:\n"
        "- Specific\n- Include impact/result\n- Professional\n- One sentence\n\n"
        "Better version:"
    )
    improved = await guarded_completion(
        client,
        prompt,
        max_tokens=60,
        timeout_s=settings.ai_summary_timeout_s,
        min_chars=16,
        max_chars=300,
        system_prompt=WRITER_SYSTEM_PROMPT,
        require_terminal=False,
        purpose="bullet",
    )
    return BulletOptimizeResponse(
        original_bullet=request.current_bullet,
        optimized_bullet=improved or fallback_bullet(request.current_bullet),
        source="ai" if improved else "fallback",
    )


def fallback_summary(job_title: str, experience: int, skills: Sequence[str], company: str) -> str:
    top_skills = ", ".join(skills[:2])
    skills_text = f" specializing in {top_skills}" if top_skills else ""
    exp_text = f"{experience}+ years " if experience > 0 else ""
    return (
        f"{exp_text}{job_title}{skills_text} passionate about creating innovative solutions for {company}. "
        "Dedicated to delivering high-quality code and exceptional user experiences."
    )


async def optimize_summary(
    request: SummaryOptimizeRequest,
    *,
    client: CompletionClient | None = None,
) -> SummaryOptimizeResponse:
    details = request.job_details
    job_title = details.title if details else request.job_title
    company = (details.company if details else None) or "the company"
    skills = dedupe_preserving_order(request.skills)

    prompt = (
        f"{job_title} at {company}, {request.experience} years experience, skills: {', '.join(skills[:2])}\n\n"
        "Write 2-sentence professional summary:"
    )
    generated = await guarded_completion(
        client,
        prompt,
        max_tokens=80,
        timeout_s=settings.ai_summary_timeout_s,
        min_chars=30,
        max_chars=600,
        system_prompt=WRITER_SYSTEM_PROMPT,
        purpose="summary",
    )

    suggestions: list[str] = []
    if details:
        suggestions = [
            f"Tailored for {details.title} position",
            f"Optimized for {details.company or 'target company'}",
            "Enhanced with relevant keywords and skills",
        ]
    return SummaryOptimizeResponse(
        original_summary=request.current_summary,
        optimized_summary=generated or fallback_summary(job_title, request.experience, skills, company),
        improvement_suggestions=suggestions,
        source="ai" if generated else "fallback",
    )


def template_cover_letter(name: str, skills: Sequence[str], job_title: str, company: str) -> str:
    signature = name.strip() or "Candidate"
    top_skills = ", ".join(skills[:3]) or "my core skills"
    return (
        "Dear Hiring Manager,\n\n"
        f"I am writing to express my strong interest in the {job_title} position at {company}. "
        f"With proven expertise in {top_skills}, I am confident in my ability to contribute effectively to your team.\n\n"
        "My professional background demonstrates a track record of delivering high-quality solutions and driving results. "
        f"I am particularly drawn to {company}'s commitment to innovation and excellence in the industry.\n\n"
        "I would welcome the opportunity to discuss how my skills and experience align with your team's needs. "
        "Thank you for your consideration.\n\n"
        f"Sincerely,\n{signature}"
    )


async def generate_cover_letter(
    request: CoverLetterRequest,
    *,
    client: CompletionClient | None = None,
) -> CoverLetterResponse:
    skills = dedupe_preserving_order(request.resume_data.skills)
    prompt = (
        f"Cover letter for {request.resume_data.name or 'the candidate'}:\n"
        f"Position: {request.job_title} at {request.company}\n"
        f"Skills: {', '.join(skills[:3])}\n"
        "Write professional 100-word letter:"
    )
    letter = await guarded_completion(
        client,
        prompt,
        max_tokens=200,
        timeout_s=settings.ai_timeout_s,
        min_chars=150,
        max_chars=3000,
        system_prompt=WRITER_SYSTEM_PROMPT,
        require_terminal=False,
        purpose="cover_letter",
    )
    return CoverLetterResponse(
        cover_letter=letter or template_cover_letter(request.resume_data.name, skills, request.job_title, request.company),
        job_title=request.job_title,
        company=request.company,
        source="ai" if letter else "fallback",
    )
