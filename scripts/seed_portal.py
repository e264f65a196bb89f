from __future__ import annotations

import argparse
import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from jobportal.db import portal_store
from jobportal.schemas.portal import ApplicationRecord, CompanyInfo, JobPosting, SeekerProfile


def _resolve_days_ago(record: dict[str, Any], field: str, now: datetime) -> None:
    key = f"{field}_days_ago"
    if key in record:
        record[field] = now - timedelta(days=float(record.pop(key)))


def seed(path: Path) -> dict[str, int]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    now = datetime.now(timezone.utc)
    portal_store.init_db()

    counts = {"companies": 0, "jobs": 0, "seekers": 0, "applications": 0}
    for company in payload.get("companies", []):
        company_id = company.pop("id", None)
        portal_store.save_company(CompanyInfo.model_validate(company), company_id=company_id)
        counts["companies"] += 1
    for job in payload.get("jobs", []):
        _resolve_days_ago(job, "posted_at", now)
        _resolve_days_ago(job, "deadline", now)
        portal_store.save_job(JobPosting.model_validate(job))
        counts["jobs"] += 1
    for seeker in payload.get("seekers", []):
        portal_store.save_seeker_profile(SeekerProfile.model_validate(seeker))
        counts["seekers"] += 1
    for application in payload.get("applications", []):
        _resolve_days_ago(application, "applied_at", now)
        portal_store.save_application(ApplicationRecord.model_validate(application))
        counts["applications"] += 1
    return counts


def main() -> None:
    parser = argparse.ArgumentParser(description="Load demo companies, jobs, seekers and applications into the portal store.")
    parser.add_argument("--fixture", default="data/portal_seed.json", help="Seed JSON path")
    args = parser.parse_args()

    counts = seed(Path(args.fixture))
    stored_jobs = len(portal_store.list_jobs())
    print(
        f"Seeded {portal_store._get_db_path()}: "
        + ", ".join(f"{name}={total}" for name, total in counts.items())
        + f", jobs_in_store={stored_jobs}"
    )


if __name__ == "__main__":
    main()
