from __future__ import annotations

import re
from collections.abc import Iterable

from jobportal.schemas.portal import JobPosting
from jobportal.schemas.resume import JobSearchHit

_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")


def normalize_text(text: str | None) -> str:
    if not isinstance(text, str):
        return ""
    return _NON_ALNUM_RE.sub("", text.lower()).strip()


def search_jobs(query: str, jobs: Iterable[JobPosting], *, limit: int = 20) -> list[JobPosting]:
    """Title matches first, then jobs matched only through a tag. Input order is kept within each group."""
    needle = normalize_text(query)
    if not needle:
        return []

    title_matches: list[JobPosting] = []
    tag_matches: list[JobPosting] = []
    for job in jobs:
        if needle in normalize_text(job.title):
            title_matches.append(job)
        elif any(needle in normalize_text(tag) for tag in job.tags):
            tag_matches.append(job)
    return [*title_matches, *tag_matches][: max(0, limit)]


def to_hit(job: JobPosting) -> JobSearchHit:
    description = job.description or ""
    snippet = description if len(description) <= 200 else f"{description[:200]}..."
    return JobSearchHit(
        id=job.id,
        title=job.title,
        company=job.company.name if job.company and job.company.name else None,
        location=job.location,
        snippet=snippet,
    )
