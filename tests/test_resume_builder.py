import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from jobportal.schemas.portal import CompanyInfo, JobPosting, SeekerProfile  # noqa: E402
from jobportal.schemas.resume import KeywordSet, ResumeSections  # noqa: E402
from jobportal.services.resume_builder_service import (  # noqa: E402
    FALLBACK_NOTE,
    build_optimized_resume,
    optimize_experience,
    optimize_skills,
    template_summary,
)

GENERATED_SUMMARY = (
    "Frontend Developer with 3+ years building React and TypeScript interfaces for high-traffic products. "
    "Known for accessible design systems and fast, well-tested releases."
)


class StaticClient:
    def __init__(self, reply):
        self.reply = reply
        self.calls = 0

    async def complete(self, prompt, *, max_tokens, system_prompt=None, budget_s=None):
        self.calls += 1
        return self.reply


def _profile(**overrides):
    data = {
        "user_id": 1,
        "name": "Jane Doe",
        "email": "jane@example.com",
        "phone": "555-0100",
        "location": "Dallas, TX",
        "experience_years": 3,
        "skills": ["React", "Node.js", "Docker"],
    }
    data.update(overrides)
    return SeekerProfile(**data)


def _target_job():
    return JobPosting(
        id=2,
        title="Frontend Developer",
        description="Build React and TypeScript interfaces with a collaborative product team.",
        status="open",
        skills=["react", "typescript"],
        company=CompanyInfo(name="Acme", industry="Software"),
    )


class ResumeHelperTests(unittest.TestCase):
    def test_template_summary_for_target_job(self):
        keywords = KeywordSet(technical=["typescript", "react"])
        summary = template_summary(_profile(), _target_job(), keywords)
        self.assertTrue(summary.startswith("Experienced professional with 3+ years of expertise in typescript, react."))
        self.assertIn("Frontend Developer role at Acme to drive innovation", summary)

    def test_template_summary_without_skills(self):
        summary = template_summary(_profile(skills=[]), None, KeywordSet())
        self.assertIn("software development and technology solutions", summary)
        self.assertTrue(summary.endswith("through technology."))

    def test_template_summary_lists_extra_skills(self):
        profile = _profile(skills=["A1", "B2", "C3", "D4", "E5", "F6"])
        summary = template_summary(profile, None, KeywordSet())
        self.assertIn("A1, B2, C3, and D4, E5.", summary)

    def test_optimize_skills_orders_matched_first(self):
        skills = optimize_skills(["Python", "Docker", "Go"], ["docker", "aws"], KeywordSet(technical=["kubernetes"]))
        self.assertEqual(skills, ["Docker", "Python", "Go", "aws", "kubernetes"])

    def test_optimize_skills_caps_list(self):
        user = [f"skill{index}" for index in range(20)]
        self.assertEqual(len(optimize_skills(user, ["rust"], KeywordSet())), 15)

    def test_optimize_experience(self):
        default = optimize_experience(_profile(), KeywordSet())
        self.assertEqual(len(default), 1)
        self.assertEqual(default[0].title, "Software Developer")
        self.assertIn("React, Node.js, Docker", default[0].bullets[0])

        entries = [{"position": "Engineer", "employer": "Initech", "bullets": ["Shipped billing v2"]}]
        optimized = optimize_experience(_profile(), KeywordSet(action=["Built"]), entries)
        self.assertEqual(optimized[0].title, "Engineer")
        self.assertEqual(optimized[0].company, "Initech")
        self.assertEqual(optimized[0].bullets[0], "Shipped billing v2")
        self.assertTrue(optimized[0].bullets[1].startswith("Built scalable web applications"))
        self.assertEqual(len(optimized[0].bullets), 4)


class BuildResumeTests(unittest.IsolatedAsyncioTestCase):
    async def test_template_path_without_client(self):
        resume = await build_optimized_resume(_profile(), _target_job())
        self.assertEqual(resume.notes, [FALLBACK_NOTE])
        self.assertIn("at Acme", resume.personal_info.summary)
        self.assertEqual(resume.personal_info.address, "Dallas, TX")
        self.assertEqual(resume.skills[0], "React")
        self.assertIn("typescript", resume.skills)
        self.assertEqual(resume.target_job.company, "Acme")
        self.assertEqual(resume.template, "modern")
        self.assertLessEqual(len(resume.ats_optimizations), 5)
        self.assertTrue(0 <= resume.ats_score <= 100)

    async def test_generated_summary_is_used(self):
        client = StaticClient(GENERATED_SUMMARY)
        sections = ResumeSections(
            experience=[{"title": "Engineer", "company": "Initech", "bullets": []}],
            education=[{"degree": "BS"}],
        )
        resume = await build_optimized_resume(_profile(), _target_job(), "technical", sections, client=client)
        self.assertEqual(client.calls, 1)
        self.assertEqual(resume.personal_info.summary, GENERATED_SUMMARY)
        self.assertEqual(resume.notes, [])
        self.assertEqual(resume.template, "technical")
        self.assertEqual(resume.education, [{"degree": "BS"}])
        self.assertNotIn("experience", [item.type for item in resume.ats_optimizations])

    async def test_meta_completion_falls_back(self):
        client = StaticClient("As an AI, I will write a summary for the user about their skills.")
        resume = await build_optimized_resume(_profile(), None, client=client)
        self.assertEqual(resume.notes, [FALLBACK_NOTE])
        self.assertIsNone(resume.target_job)
        self.assertTrue(resume.personal_info.summary.startswith("Experienced professional with 3+ years"))

    async def test_no_target_job_keeps_keyword_density_neutral(self):
        resume = await build_optimized_resume(_profile(), None)
        self.assertNotIn("keywords", [item.type for item in resume.ats_optimizations])

    async def test_skills_are_capped(self):
        profile = _profile(skills=[f"skill{index}" for index in range(25)])
        resume = await build_optimized_resume(profile, _target_job())
        self.assertEqual(len(resume.skills), 15)


if __name__ == "__main__":
    unittest.main()
