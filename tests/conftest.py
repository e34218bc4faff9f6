from __future__ import annotations

import json
import os
from typing import Any, Callable

os.environ.setdefault("SCREENING_LOG_FILE", "false")

import pytest

from resume_screener.auth import Actor
from resume_screener.bootstrap import AppContext, build_context
from resume_screener.completion import MockCompletionService
from resume_screener.config import Settings
from resume_screener.models import (
    Application,
    EmploymentType,
    ExperienceLevel,
    JobPosting,
    Resume,
    Role,
)


@pytest.fixture
def completion() -> MockCompletionService:
    # No fallback: every screening in a test must be scripted explicitly
    return MockCompletionService(fallback=None)


@pytest.fixture
def ctx(completion: MockCompletionService, tmp_path) -> AppContext:
    return build_context(Settings(reports_dir=tmp_path / "reports"), completion=completion)


@pytest.fixture
def analysis() -> Callable[..., str]:
    """Build completion text for a given overall score."""
    def make(overall: Any = 75, fenced: bool = False, **fields: Any) -> str:
        payload = {
            "overallScore": overall,
            "skillMatchScore": 80,
            "experienceMatchScore": 70,
            "educationMatchScore": 70,
            "matchedSkills": ["Java", "SQL"],
            "missingSkills": [],
            "strengths": "Solid core skills",
            "weaknesses": "No production experience",
            "summary": "Good match for an entry role.",
            "keyHighlights": ["Java", "SQL"],
        }
        payload.update(fields)
        text = json.dumps(payload)
        return f"```json\n{text}\n```" if fenced else text

    return make


@pytest.fixture
def recruiter(ctx: AppContext) -> Actor:
    return Actor.of(ctx.users.register_user("rita@acme.example", "Rita Recruiter", Role.RECRUITER))


@pytest.fixture
def other_recruiter(ctx: AppContext) -> Actor:
    return Actor.of(ctx.users.register_user("omar@other.example", "Omar Other", Role.RECRUITER))


@pytest.fixture
def make_candidate(ctx: AppContext) -> Callable[..., tuple[Actor, Resume]]:
    counter = {"n": 0}

    def make(skills: list[str] | None = None, years: int | None = 0, **parsed: Any) -> tuple[Actor, Resume]:
        counter["n"] += 1
        n = counter["n"]
        actor = Actor.of(ctx.users.register_user(f"cand{n}@example.com", f"Candidate {n}", Role.CANDIDATE))
        data = {"full_name": f"Candidate {n}", "skills": skills or ["Java", "SQL", "AWS"],
                "total_experience_years": years}
        data.update(parsed)
        resume = ctx.resumes.register_resume(actor, f"Resume text of candidate {n}", data)
        return actor, resume

    return make


@pytest.fixture
def candidate(make_candidate) -> tuple[Actor, Resume]:
    return make_candidate()


@pytest.fixture
def job(ctx: AppContext, recruiter: Actor) -> JobPosting:
    return ctx.jobs.create_job(
        recruiter,
        title="Backend Engineer",
        description="Build services in Java with SQL databases.",
        required_skills=["Java", "SQL"],
        experience_level=ExperienceLevel.ENTRY,
        employment_type=EmploymentType.FULL_TIME,
    )


@pytest.fixture
def application(ctx: AppContext, job: JobPosting, candidate) -> Application:
    actor, resume = candidate
    return ctx.applications.apply(job.id, resume.id, "Hello", actor)
