from __future__ import annotations

from jobportal.core.scoring import clamp, get_scoring_value, round_half_up
from jobportal.normalize.fields import dedupe_preserving_order
from jobportal.schemas.resume import (
    ATSAnalysis,
    FormattingReport,
    KeywordCoverage,
    KeywordSet,
    Recommendation,
    SectionPresence,
)

_SECTION_MARKERS: dict[str, tuple[str, ...]] = {
    "summary": ("summary", "objective"),
    "experience": ("experience", "work"),
    "education": ("education", "degree"),
    "skills": ("skills", "technical"),
}


def _value(path: str, default: float) -> float:
    return float(get_scoring_value(f"analyzer.{path}", default))


def analyze_formatting(resume_text: str) -> FormattingReport:
    issues: list[str] = []
    score = 100.0
    max_line = int(_value("max_line_chars", 100))

    if "\t" in resume_text:
        issues.append("Avoid using tabs - use spaces instead")
        score -= _value("tab_penalty", 10)
    if any(len(line) > max_line for line in resume_text.split("\n")):
        issues.append(f"Some lines are too long - keep under {max_line} characters")
        score -= _value("long_line_penalty", 5)

    return FormattingReport(score=int(clamp(score, 0, 100)), issues=issues)


def analyze_keywords(resume_text: str, keywords: KeywordSet | None) -> KeywordCoverage:
    wanted = dedupe_preserving_order([*(keywords.technical if keywords else []), *(keywords.soft if keywords else [])])
    if not wanted:
        return KeywordCoverage(score=int(_value("neutral_keyword_score", 50)), evaluated=False)

    lowered = resume_text.lower()
    found = [keyword for keyword in wanted if keyword.lower() in lowered]
    missing = [keyword for keyword in wanted if keyword not in found]
    score = round_half_up(len(found) / len(wanted) * 100)
    return KeywordCoverage(found=found, missing=missing[:10], score=int(clamp(score, 0, 100)), evaluated=True)


def analyze_sections(resume_text: str) -> SectionPresence:
    lowered = resume_text.lower()
    flags = {name: any(marker in lowered for marker in markers) for name, markers in _SECTION_MARKERS.items()}
    return SectionPresence(contact="@" in lowered and "phone" in lowered, **flags)


def overall_score(formatting: FormattingReport, keywords: KeywordCoverage, sections: SectionPresence) -> int:
    section_score = sections.present_count() * 20
    total = (
        formatting.score * _value("weights.formatting", 0.2)
        + keywords.score * _value("weights.keywords", 0.4)
        + section_score * _value("weights.sections", 0.4)
    )
    return int(clamp(round_half_up(total), 0, 100))


def build_recommendations(
    overall: int,
    keywords: KeywordCoverage,
    sections: SectionPresence,
) -> list[Recommendation]:
    recommendations: list[Recommendation] = []
    if overall < _value("critical_threshold", 70):
        recommendations.append(
            Recommendation(
                type="critical",
                message="Resume needs significant optimization for ATS compatibility",
                action="Focus on keyword optimization and formatting",
            )
        )
    if keywords.score < _value("keyword_threshold", 60) and keywords.missing:
        recommendations.append(
            Recommendation(
                type="high",
                message=f"Add missing keywords: {', '.join(keywords.missing[:5])}",
                action="Include relevant keywords naturally in your content",
            )
        )
    if not sections.summary:
        recommendations.append(
            Recommendation(
                type="medium",
                message="Add a professional summary section",
                action="Include 2-3 sentences highlighting your key qualifications",
            )
        )
    return recommendations[:5]


def analyze_ats(resume_text: str, keywords: KeywordSet | None = None) -> ATSAnalysis:
    text = resume_text or ""
    formatting = analyze_formatting(text)
    coverage = analyze_keywords(text, keywords)
    sections = analyze_sections(text)
    overall = overall_score(formatting, coverage, sections)
    return ATSAnalysis(
        overall_score=overall,
        formatting=formatting,
        keywords=coverage,
        sections=sections,
        recommendations=build_recommendations(overall, coverage, sections),
    )
