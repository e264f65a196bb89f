import dataclasses
import os
import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import patch

os.environ.setdefault("AI_GENERATION_ENABLED", "0")
os.environ.setdefault("RATE_LIMIT_ENABLED", "0")

from fastapi.testclient import TestClient  # noqa: E402

from jobportal.api.v1.resume_builder import completion_client  # noqa: E402
from jobportal.core.config import settings  # noqa: E402
from jobportal.db import portal_store  # noqa: E402
from jobportal.main import app  # noqa: E402
from jobportal.schemas.portal import ApplicationRecord, CompanyInfo, JobPosting, SeekerProfile  # noqa: E402

API_KEY = "test-key"
HEADERS = {"X-API-Key": API_KEY}


def _seed():
    now = datetime.now(timezone.utc)
    portal_store.save_company(CompanyInfo(name="Acme", industry="Software", location="Dallas, TX"), company_id=1)
    jobs = [
        JobPosting(
            id=1,
            company_id=1,
            title="Senior Backend Engineer",
            description="Own Python services and Docker deployments on PostgreSQL.",
            location="Dallas, TX",
            status="open",
            skills=["python", "docker", "postgresql"],
            posted_at=now - timedelta(days=2),
        ),
        JobPosting(
            id=2,
            company_id=1,
            title="Frontend Developer",
            description=(
                "Build React and TypeScript interfaces with Node tooling. "
                "Strong communication and 2+ years experience required."
            ),
            location="Remote",
            type="remote",
            status="open",
            skills=["react", "typescript", "node"],
            tags=["frontend", "react"],
            posted_at=now - timedelta(days=10),
        ),
        JobPosting(
            id=3,
            title="Junior Data Analyst",
            description="SQL reporting.",
            location="Austin, TX",
            status="open",
            skills=["sql", "python"],
            posted_at=now - timedelta(days=1),
        ),
        JobPosting(
            id=4,
            title="Frontend Engineer",
            location="Dallas, TX",
            status="open",
            skills=["react"],
            posted_at=now - timedelta(days=20),
        ),
        JobPosting(id=5, title="Frontend Lead", status="closed", skills=["react"], tags=["react"]),
    ]
    for job in jobs:
        portal_store.save_job(job)
    portal_store.save_seeker_profile(
        SeekerProfile(
            user_id=1,
            name="Jane Doe",
            email="jane@example.com",
            phone="555-0100",
            location="Dallas, TX",
            experience_years=3,
            skills=["Python", "React", "Node.js", "Docker"],
        )
    )
    portal_store.save_application(ApplicationRecord(job_id=3, seeker_id=1, applied_at=now - timedelta(days=1)))
    portal_store.save_application(ApplicationRecord(job_id=3, seeker_id=2, applied_at=now - timedelta(days=2)))
    portal_store.save_application(ApplicationRecord(job_id=1, seeker_id=2, applied_at=now - timedelta(days=3)))


class PortalApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        app.dependency_overrides[completion_client] = lambda: None
        cls.client = TestClient(app)

    @classmethod
    def tearDownClass(cls):
        app.dependency_overrides.pop(completion_client, None)

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        db_path = Path(self._tmp.name) / "portal.db"
        self._patchers = [
            patch("jobportal.db.portal_store._get_db_path", return_value=db_path),
            patch("jobportal.core.security.settings", dataclasses.replace(settings, api_key=API_KEY)),
        ]
        for patcher in self._patchers:
            patcher.start()
        portal_store.init_db()
        _seed()

    def tearDown(self):
        for patcher in reversed(self._patchers):
            patcher.stop()
        self._tmp.cleanup()

    def test_health(self):
        response = self.client.get("/v1/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "healthy")

    def test_api_key_is_required(self):
        response = self.client.get("/v1/recommendations", params={"seeker_id": 1})
        self.assertEqual(response.status_code, 401)

    def test_recommendations_page(self):
        response = self.client.get("/v1/recommendations", params={"seeker_id": 1}, headers=HEADERS)
        self.assertEqual(response.status_code, 200)
        body = response.json()
        ids = [item["job"]["id"] for item in body["recommendations"]]
        self.assertEqual(sorted(ids), [1, 2, 4])
        self.assertNotIn(3, ids)
        scores = [item["score"] for item in body["recommendations"]]
        self.assertEqual(scores, sorted(scores, reverse=True))
        self.assertEqual(body["pagination"], {"page": 1, "limit": 10, "total": 3, "total_pages": 1})
        self.assertEqual(body["metadata"]["total_applied_jobs"], 1)
        self.assertEqual(body["metadata"]["experience_years"], 3)
        self.assertIn("matched_skills", body["recommendations"][0]["breakdown"]["skills"])

    def test_recommendations_pagination(self):
        response = self.client.get(
            "/v1/recommendations",
            params={"seeker_id": 1, "page": 2, "limit": 2},
            headers=HEADERS,
        )
        body = response.json()
        self.assertEqual(len(body["recommendations"]), 1)
        self.assertEqual(body["pagination"]["total_pages"], 2)

    def test_recommendations_errors(self):
        missing = self.client.get("/v1/recommendations", params={"seeker_id": 99}, headers=HEADERS)
        self.assertEqual(missing.status_code, 404)
        invalid = self.client.get("/v1/recommendations", params={"seeker_id": 0}, headers=HEADERS)
        self.assertEqual(invalid.status_code, 422)

    def test_trending(self):
        response = self.client.get("/v1/recommendations/trending", params={"limit": 2}, headers=HEADERS)
        self.assertEqual(response.status_code, 200)
        trending = response.json()["trending_jobs"]
        self.assertEqual([(item["job"]["id"], item["application_count"]) for item in trending], [(3, 2), (1, 1)])

    def test_similar(self):
        response = self.client.get("/v1/recommendations/similar/2", headers=HEADERS)
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["reference_job_id"], 2)
        self.assertEqual([item["job"]["id"] for item in body["similar_jobs"]], [4])
        self.assertEqual(self.client.get("/v1/recommendations/similar/999", headers=HEADERS).status_code, 404)

    def test_generate_resume(self):
        response = self.client.post(
            "/v1/resume-builder/generate",
            json={"seeker_id": 1, "job_id": 2, "template_id": "minimalist"},
            headers=HEADERS,
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["resume"]["target_job"]["id"], 2)
        self.assertEqual(body["resume"]["template"], "minimalist")
        self.assertIn("note: generated using fallback templates", body["resume"]["notes"])
        self.assertEqual(body["score"], body["resume"]["ats_score"])
        self.assertLessEqual(len(body["resume"]["skills"]), 15)

    def test_generate_resume_not_found(self):
        for payload in ({"seeker_id": 99}, {"seeker_id": 1, "job_id": 999}):
            with self.subTest(payload=payload):
                response = self.client.post("/v1/resume-builder/generate", json=payload, headers=HEADERS)
                self.assertEqual(response.status_code, 404)

    def test_analyze_resume(self):
        resume_text = (
            "Jane Doe\njane@example.com | phone 555-0100\nSummary\nReact engineer with strong communication.\n"
            "Experience\nAcme\nEducation\nBS\nSkills\nReact, TypeScript"
        )
        response = self.client.post(
            "/v1/resume-builder/analyze",
            json={"resume_text": resume_text, "job_id": 2},
            headers=HEADERS,
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["keywords"]["evaluated"])
        self.assertIn("react", body["keywords"]["found"])
        self.assertTrue(body["sections"]["contact"])

        blank = self.client.post("/v1/resume-builder/analyze", json={"resume_text": "   "}, headers=HEADERS)
        self.assertEqual(blank.status_code, 422)

    def test_job_keywords(self):
        response = self.client.get("/v1/resume-builder/keywords/2", headers=HEADERS)
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["company"], "Acme")
        self.assertEqual(body["keywords"]["source"], "fallback")
        self.assertIn("react", body["keywords"]["technical"])
        self.assertEqual(self.client.get("/v1/resume-builder/keywords/999", headers=HEADERS).status_code, 404)

    def test_content_endpoints_use_templates(self):
        suggestions = self.client.post(
            "/v1/resume-builder/suggestions",
            json={"job_title": "Frontend Developer", "experience": 3, "skills": ["React"]},
            headers=HEADERS,
        )
        self.assertEqual(suggestions.status_code, 200)
        self.assertEqual(len(suggestions.json()["bullet_points"]), 5)

        templates = self.client.get("/v1/resume-builder/templates", headers=HEADERS)
        self.assertEqual(templates.json()[0]["id"], "minimalist")

        bullet = self.client.post(
            "/v1/resume-builder/optimize/bullet",
            json={"current_bullet": "I built the login page"},
            headers=HEADERS,
        )
        self.assertEqual(bullet.json()["source"], "fallback")

        summary = self.client.post(
            "/v1/resume-builder/optimize/summary",
            json={"current_summary": "I code.", "job_details": {"title": "Frontend Developer", "company": "Acme"}},
            headers=HEADERS,
        )
        self.assertEqual(len(summary.json()["improvement_suggestions"]), 3)

        skills = self.client.post(
            "/v1/resume-builder/ai/skills",
            json={"current_skills": ["React"], "job_title": "Frontend Developer"},
            headers=HEADERS,
        )
        self.assertEqual(skills.json()["source"], "fallback")

        letter = self.client.post(
            "/v1/resume-builder/generate/cover-letter",
            json={"resume_data": {"name": "Jane", "skills": ["React"]}, "job_title": "Frontend Developer", "company": "Acme"},
            headers=HEADERS,
        )
        self.assertEqual(letter.status_code, 200)
        self.assertIn("Acme", letter.json()["cover_letter"])

    def test_job_search(self):
        response = self.client.get("/v1/resume-builder/jobs/search", params={"query": "react"}, headers=HEADERS)
        self.assertEqual(response.status_code, 200)
        self.assertEqual([hit["id"] for hit in response.json()], [2])

        by_title = self.client.get("/v1/resume-builder/jobs/search", params={"query": "frontend"}, headers=HEADERS)
        self.assertEqual([hit["id"] for hit in by_title.json()], [2, 4])


if __name__ == "__main__":
    unittest.main()
