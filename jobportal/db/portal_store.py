from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from jobportal.core.config import settings
from jobportal.core.errors import NotFoundError
from jobportal.normalize.fields import dump_json_list, parse_json_list
from jobportal.schemas.portal import (
    ApplicationRecord,
    CompanyInfo,
    JobPosting,
    JobStatus,
    SeekerProfile,
)

logger = logging.getLogger(__name__)

_EMPLOYMENT_TYPES = {"full_time", "part_time", "contract", "internship", "remote"}
_JOB_STATUSES = {status.value for status in JobStatus}

_JOB_COLUMNS = """
    j.id, j.company_id, j.title, j.description, j.requirements, j.location, j.type, j.status,
    j.skills_json, j.tags_json, j.category, j.posted_at, j.deadline,
    c.name AS company_name, c.industry AS company_industry, c.size AS company_size,
    c.location AS company_location
"""


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _get_db_path() -> Path:
    return Path(settings.portal_db_path)


def _connect() -> sqlite3.Connection:
    conn = sqlite3.connect(_get_db_path())
    conn.row_factory = sqlite3.Row
    return conn


def _to_iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _parse_timestamp(raw: Any, *, field_name: str) -> datetime | None:
    if raw in (None, ""):
        return None
    try:
        parsed = datetime.fromisoformat(str(raw))
    except ValueError:
        logger.warning("timestamp_parse_failed field=%s value=%r", field_name, raw)
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def init_db() -> None:
    db_path = _get_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS companies (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                industry TEXT,
                size TEXT,
                location TEXT
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS seeker_profiles (
                user_id INTEGER PRIMARY KEY,
                name TEXT NOT NULL DEFAULT '',
                email TEXT NOT NULL DEFAULT '',
                phone TEXT NOT NULL DEFAULT '',
                location TEXT,
                experience_years INTEGER NOT NULL DEFAULT 0,
                skills_json TEXT,
                bio TEXT NOT NULL DEFAULT ''
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS jobs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                company_id INTEGER REFERENCES companies (id),
                title TEXT NOT NULL,
                description TEXT NOT NULL DEFAULT '',
                requirements TEXT NOT NULL DEFAULT '',
                location TEXT,
                type TEXT NOT NULL DEFAULT 'full_time',
                status TEXT NOT NULL DEFAULT 'draft',
                skills_json TEXT,
                tags_json TEXT,
                category TEXT,
                posted_at TEXT,
                deadline TEXT
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS applications (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                job_id INTEGER NOT NULL REFERENCES jobs (id),
                seeker_id INTEGER NOT NULL,
                applied_at TEXT NOT NULL
            )
            """
        )
        conn.execute("CREATE INDEX IF NOT EXISTS idx_jobs_status ON jobs (status)")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_applications_seeker ON applications (seeker_id)")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_applications_applied_at ON applications (applied_at)")
        conn.commit()


def _row_to_job(row: sqlite3.Row) -> JobPosting:
    company = None
    if row["company_name"] is not None:
        company = CompanyInfo(
            name=row["company_name"] or "",
            industry=row["company_industry"],
            size=row["company_size"],
            location=row["company_location"],
        )
    job_type = (row["type"] or "full_time").strip().lower().replace("-", "_")
    status = (row["status"] or "draft").strip().lower()
    return JobPosting(
        id=row["id"],
        company_id=row["company_id"],
        title=row["title"] or "",
        description=row["description"] or "",
        requirements=row["requirements"] or "",
        location=row["location"],
        type=job_type if job_type in _EMPLOYMENT_TYPES else "full_time",
        status=status if status in _JOB_STATUSES else JobStatus.DRAFT,
        skills=parse_json_list(row["skills_json"], field_name=f"jobs.{row['id']}.skills"),
        tags=parse_json_list(row["tags_json"], field_name=f"jobs.{row['id']}.tags"),
        category=row["category"],
        posted_at=_parse_timestamp(row["posted_at"], field_name="jobs.posted_at"),
        deadline=_parse_timestamp(row["deadline"], field_name="jobs.deadline"),
        company=company,
    )


def get_seeker_profile(user_id: int) -> SeekerProfile:
    with _connect() as conn:
        row = conn.execute("SELECT * FROM seeker_profiles WHERE user_id = ?", (user_id,)).fetchone()
    if row is None:
        raise NotFoundError("seeker", user_id)
    return SeekerProfile(
        user_id=row["user_id"],
        name=row["name"] or "",
        email=row["email"] or "",
        phone=row["phone"] or "",
        location=row["location"],
        experience_years=row["experience_years"],
        skills=parse_json_list(row["skills_json"], field_name=f"seeker_profiles.{user_id}.skills"),
        bio=row["bio"] or "",
    )


def get_job(job_id: int) -> JobPosting:
    with _connect() as conn:
        row = conn.execute(
            f"SELECT {_JOB_COLUMNS} FROM jobs j LEFT JOIN companies c ON c.id = j.company_id WHERE j.id = ?",
            (job_id,),
        ).fetchone()
    if row is None:
        raise NotFoundError("job", job_id)
    return _row_to_job(row)


def list_open_jobs(
    *,
    exclude_ids: Iterable[int] = (),
    limit: int | None = None,
    now: datetime | None = None,
) -> list[JobPosting]:
    """Open jobs whose deadline has not passed, newest first."""
    current = now or _utc_now()
    excluded = sorted({int(job_id) for job_id in exclude_ids})
    params: list[Any] = [JobStatus.OPEN.value, _to_iso(current)]
    query = (
        f"SELECT {_JOB_COLUMNS} FROM jobs j LEFT JOIN companies c ON c.id = j.company_id "
        "WHERE j.status = ? AND (j.deadline IS NULL OR j.deadline >= ?)"
    )
    if excluded:
        query += f" AND j.id NOT IN ({', '.join('?' for _ in excluded)})"
        params.extend(excluded)
    query += " ORDER BY j.posted_at DESC, j.id DESC"
    if limit is not None:
        query += " LIMIT ?"
        params.append(max(0, int(limit)))

    with _connect() as conn:
        rows = conn.execute(query, params).fetchall()
    return [job for job in (_row_to_job(row) for row in rows) if job.is_eligible(current)]


def list_jobs(*, limit: int | None = None) -> list[JobPosting]:
    query = f"SELECT {_JOB_COLUMNS} FROM jobs j LEFT JOIN companies c ON c.id = j.company_id ORDER BY j.id"
    params: list[Any] = []
    if limit is not None:
        query += " LIMIT ?"
        params.append(max(0, int(limit)))
    with _connect() as conn:
        rows = conn.execute(query, params).fetchall()
    return [_row_to_job(row) for row in rows]


def list_applications_by_seeker(user_id: int) -> list[ApplicationRecord]:
    with _connect() as conn:
        rows = conn.execute(
            "SELECT job_id, seeker_id, applied_at FROM applications WHERE seeker_id = ? ORDER BY id",
            (user_id,),
        ).fetchall()
    return [
        ApplicationRecord(
            job_id=row["job_id"],
            seeker_id=row["seeker_id"],
            applied_at=_parse_timestamp(row["applied_at"], field_name="applications.applied_at"),
        )
        for row in rows
    ]


def count_recent_applications(since: datetime) -> dict[int, int]:
    with _connect() as conn:
        rows = conn.execute(
            """
            SELECT job_id, COUNT(*) AS total
            FROM applications
            WHERE applied_at >= ?
            GROUP BY job_id
            """,
            (_to_iso(since),),
        ).fetchall()
    return {int(row["job_id"]): int(row["total"]) for row in rows}


def save_company(company: CompanyInfo, *, company_id: int | None = None) -> int:
    with sqlite3.connect(_get_db_path()) as conn:
        cursor = conn.execute(
            "INSERT OR REPLACE INTO companies (id, name, industry, size, location) VALUES (?, ?, ?, ?, ?)",
            (company_id, company.name, company.industry, company.size, company.location),
        )
        conn.commit()
        return int(cursor.lastrowid)


def save_seeker_profile(profile: SeekerProfile) -> None:
    with sqlite3.connect(_get_db_path()) as conn:
        conn.execute(
            """
            INSERT OR REPLACE INTO seeker_profiles (
                user_id, name, email, phone, location, experience_years, skills_json, bio
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                profile.user_id,
                profile.name,
                profile.email,
                profile.phone,
                profile.location,
                profile.experience_years,
                dump_json_list(profile.skills),
                profile.bio,
            ),
        )
        conn.commit()


def save_job(job: JobPosting) -> int:
    with sqlite3.connect(_get_db_path()) as conn:
        cursor = conn.execute(
            """
            INSERT OR REPLACE INTO jobs (
                id, company_id, title, description, requirements, location, type, status,
                skills_json, tags_json, category, posted_at, deadline
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                job.id,
                job.company_id,
                job.title,
                job.description,
                job.requirements,
                job.location,
                job.type.value,
                job.status.value,
                dump_json_list(job.skills),
                dump_json_list(job.tags),
                job.category,
                _to_iso(job.posted_at),
                _to_iso(job.deadline),
            ),
        )
        conn.commit()
        return int(cursor.lastrowid)


def save_application(application: ApplicationRecord) -> None:
    with sqlite3.connect(_get_db_path()) as conn:
        conn.execute(
            "INSERT INTO applications (job_id, seeker_id, applied_at) VALUES (?, ?, ?)",
            (application.job_id, application.seeker_id, _to_iso(application.applied_at or _utc_now())),
        )
        conn.commit()
