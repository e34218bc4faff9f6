"""
Offline screening run.

Runs: load seed → register users/jobs/resumes → apply → batch screen per job → report.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from resume_screener.auth import Actor
from resume_screener.bootstrap import AppContext, build_context
from resume_screener.config import Settings, ensure_dirs, load_settings
from resume_screener.errors import ScreeningError
from resume_screener.log import get_logger
from resume_screener.models import Role
from resume_screener.report import build_screening_report, write_screening_report

log = get_logger(__name__)


def load_seed(path: Path) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    for section in ("users", "jobs", "resumes", "applications"):
        data.setdefault(section, [])
    return data


def populate(ctx: AppContext, seed: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Create seed entities; returns key -> record maps per section."""
    users: dict[str, Any] = {}
    for u in seed["users"]:
        users[u["key"]] = ctx.users.register_user(
            u["email"], u.get("full_name", u["key"]), u["role"], u.get("company_name"),
        )

    jobs: dict[str, Any] = {}
    for j in seed["jobs"]:
        owner = Actor.of(users[j["owner"]])
        jobs[j["key"]] = ctx.jobs.create_job(
            owner,
            title=j["title"],
            description=j.get("description", ""),
            required_skills=j.get("required_skills", []),
            experience_level=j.get("experience_level", "MID"),
            employment_type=j.get("employment_type", "FULL_TIME"),
            location=j.get("location"),
            salary_range=j.get("salary_range"),
            company_name=j.get("company_name"),
        )

    resumes: dict[str, Any] = {}
    for r in seed["resumes"]:
        owner = Actor.of(users[r["owner"]])
        resumes[r["key"]] = ctx.resumes.register_resume(
            owner, r.get("raw_text", ""), r.get("parsed"), file_name=r.get("file_name"),
        )

    applications: list[Any] = []
    for a in seed["applications"]:
        resume = resumes[a["resume"]]
        candidate = Actor.of(ctx.users.get_user(resume.owner_id))
        try:
            applications.append(ctx.applications.apply(
                jobs[a["job"]].id, resume.id, a.get("cover_letter"), candidate,
            ))
        except ScreeningError as exc:
            log.warning("Skipped application %s → %s: %s", a["resume"], a["job"], exc)

    return {"users": users, "jobs": jobs, "resumes": resumes, "applications": {a.id: a for a in applications}}


def run(
    seed_path: Path,
    *,
    settings: Settings | None = None,
    ctx: AppContext | None = None,
    write_report: bool = True,
) -> dict[str, Any]:
    settings = settings or (ctx.settings if ctx else load_settings())
    ensure_dirs(settings)
    ctx = ctx or build_context(settings)

    seed = load_seed(seed_path)
    created = populate(ctx, seed)
    names = {u.id: u.full_name for u in created["users"].values()}
    log.info(
        "Seeded %d users, %d jobs, %d resumes, %d applications",
        len(created["users"]), len(created["jobs"]), len(created["resumes"]),
        len(created["applications"]),
    )

    summary: dict[str, Any] = {"jobs": [], "screened": 0, "failed": 0, "report_paths": []}
    for job in created["jobs"].values():
        recruiter = Actor(user_id=job.owner_id, role=Role.RECRUITER)
        applications = ctx.applications.get_applications_for_job(job.id, recruiter)
        results = ctx.screening.batch_screen_applications(job.id, recruiter)
        stats = ctx.screening.get_screening_statistics(job.id)

        content = build_screening_report(
            ctx.jobs.get_job_by_id(job.id),
            stats,
            ctx.screening.get_top_candidates(job.id),
            ctx.applications.get_applications_for_job(job.id, recruiter),
            candidate_names=names,
            top=settings.top_candidates_limit,
        )
        report_path = None
        if write_report:
            report_path = write_screening_report(content, job.id, settings.reports_dir)
            summary["report_paths"].append(str(report_path))

        failed = len(applications) - stats.total_screened
        summary["screened"] += len(results)
        summary["failed"] += failed
        summary["jobs"].append({
            "job_id": job.id,
            "title": job.title,
            "applications": len(applications),
            "screened": len(results),
            "average_score": stats.average_score,
            "report_path": str(report_path) if report_path else None,
            "report_preview": content[:2000] + "..." if len(content) > 2000 else content,
        })

    log.info(
        "Run complete — jobs=%d, screened=%d, failed=%d",
        len(summary["jobs"]), summary["screened"], summary["failed"],
    )
    return summary
