import io
import sqlite3
import sys
import tempfile
import unittest
from contextlib import redirect_stdout
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import patch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from jobportal.core.errors import NotFoundError  # noqa: E402
from jobportal.db import portal_store  # noqa: E402
from jobportal.schemas.portal import (  # noqa: E402
    ApplicationRecord,
    CompanyInfo,
    EmploymentType,
    JobPosting,
    SeekerProfile,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class PortalStoreTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.db_path = Path(self._tmp.name) / "portal.db"
        self._patcher = patch("jobportal.db.portal_store._get_db_path", return_value=self.db_path)
        self._patcher.start()
        portal_store.init_db()

    def tearDown(self):
        self._patcher.stop()
        self._tmp.cleanup()

    def _job(self, job_id, **overrides):
        data = {
            "id": job_id,
            "company_id": 1,
            "title": f"Job {job_id}",
            "status": "open",
            "skills": ["python"],
            "posted_at": NOW - timedelta(days=job_id),
        }
        data.update(overrides)
        return JobPosting(**data)

    def test_profile_round_trip_and_missing_seeker(self):
        portal_store.save_seeker_profile(
            SeekerProfile(user_id=5, name="Sam", location="Dallas, TX", experience_years=4, skills=["Go", "go", "SQL"])
        )
        profile = portal_store.get_seeker_profile(5)
        self.assertEqual(profile.skills, ["Go", "SQL"])
        self.assertEqual(profile.experience_years, 4)

        with self.assertRaises(NotFoundError) as ctx:
            portal_store.get_seeker_profile(99)
        self.assertEqual(str(ctx.exception), "seeker 99 not found")

    def test_job_joins_company(self):
        portal_store.save_company(CompanyInfo(name="Acme", industry="Software"), company_id=1)
        portal_store.save_job(self._job(1, type=EmploymentType.REMOTE, tags=["frontend"]))
        job = portal_store.get_job(1)
        self.assertEqual(job.company.name, "Acme")
        self.assertEqual(job.type, EmploymentType.REMOTE)
        self.assertEqual(job.tags, ["frontend"])
        self.assertEqual(job.posted_at, NOW - timedelta(days=1))
        with self.assertRaises(NotFoundError):
            portal_store.get_job(404)

    def test_open_jobs_filter_and_order(self):
        portal_store.save_job(self._job(1))
        portal_store.save_job(self._job(2, status="closed"))
        portal_store.save_job(self._job(3, deadline=NOW - timedelta(hours=1)))
        portal_store.save_job(self._job(4, deadline=NOW + timedelta(days=2)))
        portal_store.save_job(self._job(5))

        jobs = portal_store.list_open_jobs(now=NOW)
        self.assertEqual([job.id for job in jobs], [1, 4, 5])
        self.assertEqual([job.id for job in portal_store.list_open_jobs(exclude_ids=[4], now=NOW)], [1, 5])
        self.assertEqual(len(portal_store.list_open_jobs(limit=1, now=NOW)), 1)
        self.assertEqual(len(portal_store.list_jobs()), 5)

    def test_malformed_stored_values_degrade(self):
        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                "INSERT INTO jobs (id, title, status, type, skills_json, posted_at) VALUES (?, ?, ?, ?, ?, ?)",
                (7, "Broken", "open", "gig", "react, node", "yesterday"),
            )
            conn.commit()
        with self.assertLogs("jobportal", level="WARNING"):
            job = portal_store.get_job(7)
        self.assertEqual(job.skills, [])
        self.assertEqual(job.type, EmploymentType.FULL_TIME)
        self.assertIsNone(job.posted_at)

    def test_applications(self):
        portal_store.save_application(ApplicationRecord(job_id=1, seeker_id=9, applied_at=NOW - timedelta(days=1)))
        portal_store.save_application(ApplicationRecord(job_id=1, seeker_id=8, applied_at=NOW - timedelta(days=2)))
        portal_store.save_application(ApplicationRecord(job_id=2, seeker_id=9, applied_at=NOW - timedelta(days=30)))

        self.assertEqual([item.job_id for item in portal_store.list_applications_by_seeker(9)], [1, 2])
        self.assertEqual(portal_store.count_recent_applications(NOW - timedelta(days=7)), {1: 2})

    def test_seed_fixture_loads(self):
        from scripts.seed_portal import seed

        counts = seed(PROJECT_ROOT / "data" / "portal_seed.json")
        self.assertEqual(counts, {"companies": 2, "jobs": 3, "seekers": 1, "applications": 1})
        self.assertEqual(portal_store.get_job(2).company.name, "Acme Software")
        self.assertEqual(portal_store.get_seeker_profile(1).skills, ["Python", "React", "Node.js", "Docker"])
        self.assertEqual(len(portal_store.list_open_jobs()), 3)

    def test_seed_command_reports_stored_jobs(self):
        from scripts.seed_portal import main

        portal_store.save_job(self._job(9))
        fixture = str(PROJECT_ROOT / "data" / "portal_seed.json")
        with patch("sys.argv", ["seed_portal", "--fixture", fixture]), redirect_stdout(io.StringIO()) as out:
            main()
        self.assertIn("jobs=3", out.getvalue())
        self.assertIn("jobs_in_store=4", out.getvalue())


if __name__ == "__main__":
    unittest.main()
