from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from jobportal.normalize.fields import dedupe_preserving_order, normalize_whitespace


class EmploymentType(str, Enum):
    FULL_TIME = "full_time"
    PART_TIME = "part_time"
    CONTRACT = "contract"
    INTERNSHIP = "internship"
    REMOTE = "remote"


class JobStatus(str, Enum):
    DRAFT = "draft"
    OPEN = "open"
    CLOSED = "closed"


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class CompanyInfo(BaseModel):
    name: str = ""
    industry: str | None = None
    size: str | None = None
    location: str | None = None


class SeekerProfile(BaseModel):
    user_id: int
    name: str = ""
    email: str = ""
    phone: str = ""
    location: str | None = None
    experience_years: int = 0
    skills: list[str] = Field(default_factory=list)
    bio: str = ""

    @field_validator("experience_years", mode="before")
    @classmethod
    def _coerce_experience(cls, value: object) -> int:
        try:
            years = int(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return 0
        return max(0, years)

    @field_validator("skills", mode="before")
    @classmethod
    def _normalize_skills(cls, value: object) -> list[str]:
        if not isinstance(value, list):
            return []
        return dedupe_preserving_order(str(item) for item in value if item is not None)

    @field_validator("location")
    @classmethod
    def _normalize_location(cls, value: str | None) -> str | None:
        cleaned = normalize_whitespace(value)
        return cleaned or None


class JobPosting(BaseModel):
    id: int
    company_id: int | None = None
    title: str
    description: str = ""
    requirements: str = ""
    location: str | None = None
    type: EmploymentType = EmploymentType.FULL_TIME
    status: JobStatus = JobStatus.DRAFT
    skills: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    category: str | None = None
    posted_at: datetime | None = None
    deadline: datetime | None = None
    company: CompanyInfo | None = None

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower().replace("-", "_").replace(" ", "_")
        return value

    @field_validator("skills", "tags", mode="before")
    @classmethod
    def _normalize_lists(cls, value: object) -> list[str]:
        if not isinstance(value, list):
            return []
        return dedupe_preserving_order(str(item) for item in value if item is not None)

    @field_validator("posted_at", "deadline")
    @classmethod
    def _normalize_timestamps(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)

    def is_eligible(self, now: datetime) -> bool:
        if self.status != JobStatus.OPEN:
            return False
        if self.deadline is None:
            return True
        return self.deadline >= _as_utc(now)


class ApplicationRecord(BaseModel):
    job_id: int
    seeker_id: int
    applied_at: datetime | None = None
