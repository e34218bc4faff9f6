"""Job postings: creation, cached reads, owner-only mutation."""
from __future__ import annotations

from dataclasses import replace
from typing import Any

from resume_screener import cache as regions
from resume_screener.auth import Actor, require_owner, require_role
from resume_screener.cache import CacheManager
from resume_screener.errors import Conflict, NotFound, ValidationError
from resume_screener.log import get_logger
from resume_screener.models import (
    EmploymentType,
    ExperienceLevel,
    JobPosting,
    Page,
    Role,
    as_enum,
    utcnow,
)
from resume_screener.store import EntityStore

log = get_logger(__name__)

_UPDATABLE = (
    "title", "description", "required_skills", "experience_level",
    "employment_type", "location", "salary_range", "company_name",
)


def _normalize(s: str | None) -> str:
    return (s or "").lower().strip()


def _clean_skills(skills: list[str] | None) -> list[str]:
    cleaned = [s.strip() for s in (skills or []) if s and s.strip()]
    return list(dict.fromkeys(cleaned))


class JobPostingService:
    def __init__(self, store: EntityStore, cache: CacheManager) -> None:
        self.store = store
        self.cache = cache

    def _evict_job(self, job_id: int, owner_id: int) -> None:
        self.cache.evict(regions.JOBS, job_id)
        self.cache.clear(regions.ACTIVE_JOBS_LIST)
        self.cache.evict(regions.USER_JOBS, owner_id)

    def _load(self, job_id: int) -> JobPosting:
        job = self.store.get_job(job_id)
        if job is None:
            raise NotFound(f"Job not found with id: {job_id}")
        return job

    def _owned(self, job_id: int, actor: Actor) -> JobPosting:
        job = self._load(job_id)
        require_owner(job.owner_id, actor, "You don't have permission to modify this job posting")
        return job

    # ── mutations ────────────────────────────────────────────────────────

    def create_job(
        self,
        recruiter: Actor,
        title: str,
        description: str,
        required_skills: list[str],
        experience_level: ExperienceLevel,
        employment_type: EmploymentType,
        location: str | None = None,
        salary_range: str | None = None,
        company_name: str | None = None,
    ) -> JobPosting:
        require_role(recruiter, Role.RECRUITER, "create job postings")
        skills = _clean_skills(required_skills)
        if not (title or "").strip():
            raise ValidationError("Job title is required")
        if not (description or "").strip():
            raise ValidationError("Job description is required")
        if not skills:
            raise ValidationError("At least one skill is required")

        job = self.store.save_job(JobPosting(
            id=None,
            owner_id=recruiter.user_id,
            title=title.strip(),
            description=description.strip(),
            required_skills=skills,
            experience_level=as_enum(ExperienceLevel, experience_level),
            employment_type=as_enum(EmploymentType, employment_type),
            location=location,
            salary_range=salary_range,
            company_name=company_name,
        ))
        self._evict_job(job.id, job.owner_id)
        log.info("Job posting created: %d by user %d", job.id, recruiter.user_id)
        return job

    def update_job(self, job_id: int, recruiter: Actor, **changes: Any) -> JobPosting:
        """Apply non-empty changes; blank strings and empty lists are ignored."""
        unknown = set(changes) - set(_UPDATABLE)
        if unknown:
            raise ValidationError(f"Unknown job fields: {', '.join(sorted(unknown))}")
        job = self._owned(job_id, recruiter)

        updates: dict[str, Any] = {}
        for name, value in changes.items():
            if value is None or (isinstance(value, str) and not value.strip()):
                continue
            if name in ("title", "description"):
                if value.strip():
                    updates[name] = value.strip()
            elif name == "required_skills":
                skills = _clean_skills(value)
                if skills:
                    updates[name] = skills
            elif name == "experience_level":
                updates[name] = as_enum(ExperienceLevel, value)
            elif name == "employment_type":
                updates[name] = as_enum(EmploymentType, value)
            else:
                updates[name] = value

        job = self.store.save_job(replace(job, updated_at=utcnow(), **updates))
        self._evict_job(job.id, job.owner_id)
        log.info("Job posting updated: %d (%s)", job_id, ", ".join(sorted(updates)) or "no changes")
        return job

    def deactivate_job(self, job_id: int, recruiter: Actor) -> JobPosting:
        job = self._owned(job_id, recruiter)
        job = self.store.save_job(replace(job, active=False, updated_at=utcnow()))
        self._evict_job(job.id, job.owner_id)
        log.info("Job posting deactivated: %d", job_id)
        return job

    def delete_job(self, job_id: int, recruiter: Actor) -> None:
        job = self._owned(job_id, recruiter)
        applications = self.store.count_applications_by_job(job_id)
        if applications:
            raise Conflict(
                f"Job {job_id} has {applications} application(s); deactivate it instead"
            )
        self.store.delete_job(job_id)
        self._evict_job(job.id, job.owner_id)
        log.info("Job posting deleted: %d", job_id)

    # ── reads ────────────────────────────────────────────────────────────

    def get_job_by_id(self, job_id: int) -> JobPosting:
        return self.cache.get_or_load(regions.JOBS, job_id, lambda: self._load(job_id))

    def get_active_jobs_by_user(self, user_id: int) -> list[JobPosting]:
        return self.cache.get_or_load(
            regions.USER_JOBS, user_id, lambda: self.store.list_active_jobs_by_owner(user_id)
        )

    def get_all_active_jobs(self) -> list[JobPosting]:
        return self.cache.get_or_load(
            regions.ACTIVE_JOBS_LIST, "all", lambda: self.store.list_jobs(lambda j: j.active)
        )

    # Paginated and searched reads are never cached

    def list_active_jobs(self, page: int = 0, size: int = 20) -> Page:
        jobs = self.store.list_jobs(lambda j: j.active)
        jobs.sort(key=lambda j: (j.created_at, j.id), reverse=True)
        return Page.of(jobs, page, size)

    def search_jobs(
        self,
        keyword: str | None = None,
        location: str | None = None,
        experience_level: str | None = None,
        employment_type: str | None = None,
        page: int = 0,
        size: int = 20,
    ) -> Page:
        kw = _normalize(keyword)
        loc = _normalize(location)
        level = experience_level.strip().upper() if experience_level and experience_level.strip() else None
        etype = employment_type.strip().upper() if employment_type and employment_type.strip() else None

        def matches(j: JobPosting) -> bool:
            if not j.active:
                return False
            if kw:
                haystack = " ".join([j.title, j.description, " ".join(j.required_skills)]).lower()
                if kw not in haystack:
                    return False
            if loc and loc not in _normalize(j.location):
                return False
            if level and j.experience_level.value != level:
                return False
            if etype and j.employment_type.value != etype:
                return False
            return True

        return Page.of(self.store.list_jobs(matches), page, size)
