from __future__ import annotations

import logging
from collections.abc import Sequence

from jobportal.core.scoring import clamp, get_scoring_value, round_half_up
from jobportal.normalize.fields import dedupe_preserving_order, skills_overlap
from jobportal.schemas.resume import ATSBreakdown, ATSScore, KeywordSet, Optimization

logger = logging.getLogger(__name__)


def _value(path: str, default: float) -> float:
    return float(get_scoring_value(f"ats.{path}", default))


def _has_skill(user_skills: Sequence[str], required: str) -> bool:
    return any(skills_overlap(own, required) for own in user_skills)


def skills_subscore(
    user_skills: Sequence[str],
    job_skills: Sequence[str],
    keywords: KeywordSet | None,
) -> tuple[float, list[Optimization]]:
    required = dedupe_preserving_order([*(job_skills or []), *((keywords.technical if keywords else []) or [])])
    if not required:
        return _value("skills.empty_requirements_score", 0.8), []

    user = dedupe_preserving_order(user_skills or [])
    matched = [skill for skill in required if _has_skill(user, skill)]
    score = clamp(len(matched) / len(required), 0.0, 1.0)

    optimizations: list[Optimization] = []
    if score < _value("skills.optimization_threshold", 0.6):
        missing = [skill for skill in required if skill not in matched][:3]
        optimizations.append(
            Optimization(
                type="skills",
                priority="high",
                message=f"Add these key skills: {', '.join(missing)}",
                impact="High impact on ATS ranking",
            )
        )
    return score, optimizations


def completeness_subscore(
    has_education: bool,
    has_experience: bool,
    summary: str | None,
) -> tuple[float, list[Optimization]]:
    score = 0.0
    optimizations: list[Optimization] = []

    if has_experience:
        score += _value("completeness.experience", 0.4)
    else:
        optimizations.append(
            Optimization(
                type="experience",
                priority="high",
                message="Add work experience section",
                impact="Critical for ATS parsing",
            )
        )

    if has_education:
        score += _value("completeness.education", 0.3)
    else:
        optimizations.append(
            Optimization(
                type="education",
                priority="medium",
                message="Add education section",
                impact="Improves ATS compatibility",
            )
        )

    min_chars = int(get_scoring_value("ats.completeness.summary_min_chars", 50))
    if summary and len(summary.strip()) > min_chars:
        score += _value("completeness.summary", 0.3)
    else:
        optimizations.append(
            Optimization(
                type="summary",
                priority="medium",
                message="Add professional summary (50+ words)",
                impact="Helps ATS understand your profile",
            )
        )

    return clamp(score, 0.0, 1.0), optimizations


def keyword_subscore(summary: str | None, keywords: KeywordSet | None) -> tuple[float, list[Optimization]]:
    # No job context at all is neutral; a job with no technical terms matches nothing.
    if keywords is None or not (summary or "").strip():
        return _value("keywords.neutral_score", 0.5), []
    technical = dedupe_preserving_order(keywords.technical)

    summary_lower = (summary or "").lower()
    matched = sum(1 for keyword in technical if keyword.lower() in summary_lower)
    saturation = max(1, int(get_scoring_value("ats.keywords.saturation_count", 5)))
    score = min(matched / saturation, 1.0)

    optimizations: list[Optimization] = []
    if score < _value("keywords.optimization_threshold", 0.6):
        optimizations.append(
            Optimization(
                type="keywords",
                priority="medium",
                message="Include more job-relevant keywords in summary",
                impact="Improves keyword matching score",
            )
        )
    return score, optimizations


def score_resume(
    user_skills: Sequence[str] | None,
    job_skills: Sequence[str] | None,
    keywords: KeywordSet | None,
    summary: str | None,
    has_education: bool,
    has_experience: bool,
) -> ATSScore:
    """Score a structured resume for ATS compatibility. Absent inputs fall back to neutral defaults."""
    skills_score, skills_opts = skills_subscore(user_skills or [], job_skills or [], keywords)
    completeness, completeness_opts = completeness_subscore(has_education, has_experience, summary)
    keyword_score, keyword_opts = keyword_subscore(summary, keywords)
    format_score = _value("format_score", 0.8)

    total = (
        skills_score * _value("weights.skills", 40)
        + completeness * _value("weights.completeness", 25)
        + keyword_score * _value("weights.keywords", 20)
        + format_score * _value("weights.format", 15)
    )
    max_optimizations = int(get_scoring_value("ats.max_optimizations", 5))
    optimizations = [*skills_opts, *completeness_opts, *keyword_opts][:max_optimizations]

    logger.debug(
        "ats_score skills=%.2f completeness=%.2f keywords=%.2f total=%.2f",
        skills_score,
        completeness,
        keyword_score,
        total,
    )
    return ATSScore(
        total=int(clamp(round_half_up(total), 0, 100)),
        optimizations=optimizations,
        breakdown=ATSBreakdown(
            skills=skills_score,
            completeness=completeness,
            keywords=keyword_score,
            format=format_score,
        ),
    )
