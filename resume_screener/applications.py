"""Application lifecycle: apply, recruiter status transitions, withdrawal.

Status graph::

    PENDING -> UNDER_REVIEW -> SHORTLISTED | REJECTED | INTERVIEWED | HIRED
    SHORTLISTED -> INTERVIEWED | REJECTED | HIRED
    INTERVIEWED -> HIRED | REJECTED
    any non-terminal -> WITHDRAWN   (candidate only, via withdraw)

REJECTED, HIRED and WITHDRAWN are terminal.
"""
from __future__ import annotations

from dataclasses import replace

from resume_screener import cache as regions
from resume_screener.auth import Actor, require_owner, require_role
from resume_screener.cache import CacheManager
from resume_screener.errors import Conflict, DuplicateKeyError, NotFound
from resume_screener.jobs import JobPostingService
from resume_screener.log import get_logger
from resume_screener.models import (
    Application,
    ApplicationStatus,
    JobPosting,
    Page,
    Role,
    as_enum,
    utcnow,
)
from resume_screener.store import EntityStore

log = get_logger(__name__)

S = ApplicationStatus

ALLOWED_TRANSITIONS: dict[ApplicationStatus, frozenset[ApplicationStatus]] = {
    S.PENDING: frozenset({S.UNDER_REVIEW}),
    S.UNDER_REVIEW: frozenset({S.SHORTLISTED, S.REJECTED, S.INTERVIEWED, S.HIRED}),
    S.SHORTLISTED: frozenset({S.INTERVIEWED, S.REJECTED, S.HIRED}),
    S.INTERVIEWED: frozenset({S.HIRED, S.REJECTED}),
    S.REJECTED: frozenset(),
    S.HIRED: frozenset(),
    S.WITHDRAWN: frozenset(),
}


def can_transition(current: ApplicationStatus, target: ApplicationStatus) -> bool:
    return current == target or target in ALLOWED_TRANSITIONS[current]


class ApplicationService:
    def __init__(self, store: EntityStore, cache: CacheManager, jobs: JobPostingService) -> None:
        self.store = store
        self.cache = cache
        self.jobs = jobs

    # ── helpers ──────────────────────────────────────────────────────────

    def get_application_entity(self, application_id: int) -> Application:
        """Uncached read straight from the store."""
        application = self.store.get_application(application_id)
        if application is None:
            raise NotFound(f"Application not found with id: {application_id}")
        return application

    def _owned_job(self, job_id: int, recruiter: Actor, message: str) -> JobPosting:
        job = self.jobs.get_job_by_id(job_id)
        require_owner(job.owner_id, recruiter, message)
        return job

    def _evict_status_change(self, application: Application) -> None:
        self.cache.evict(regions.APPLICATIONS, application.id)
        self.cache.clear(regions.CANDIDATE_APPLICATIONS)
        self.cache.clear(regions.JOB_APPLICATIONS)

    # ── mutations ────────────────────────────────────────────────────────

    def apply(
        self,
        job_id: int,
        resume_id: int,
        cover_letter: str | None,
        candidate: Actor,
    ) -> Application:
        require_role(candidate, Role.CANDIDATE, "apply to jobs")
        job = self.jobs.get_job_by_id(job_id)
        if not job.active:
            raise Conflict("This job posting is no longer active")
        resume = self.store.get_resume(resume_id)
        if resume is None:
            raise NotFound(f"Resume not found with id: {resume_id}")
        require_owner(resume.owner_id, candidate, "You can only apply with your own resumes")
        if self.store.exists_application(job_id, candidate.user_id):
            raise Conflict("You have already applied to this job")

        try:
            application = self.store.save_application(Application(
                id=None,
                job_id=job_id,
                candidate_id=candidate.user_id,
                resume_id=resume_id,
                cover_letter=cover_letter,
            ))
        except DuplicateKeyError as exc:
            # Lost a race with a concurrent apply for the same job
            raise Conflict("You have already applied to this job") from exc

        self.cache.evict(regions.CANDIDATE_APPLICATIONS, candidate.user_id)
        self.cache.evict(regions.JOB_APPLICATIONS, job_id)
        log.info(
            "Application created: %d for job: %d by candidate: %d",
            application.id, job_id, candidate.user_id,
        )
        return application

    def transition_status(
        self,
        application_id: int,
        new_status: ApplicationStatus,
        recruiter: Actor,
    ) -> Application:
        new_status = as_enum(ApplicationStatus, new_status)
        application = self.get_application_entity(application_id)
        self._owned_job(
            application.job_id, recruiter, "You can only update applications for your own jobs"
        )
        if new_status == S.WITHDRAWN:
            raise Conflict("Only the candidate can withdraw an application")
        if not can_transition(application.status, new_status):
            raise Conflict(
                f"Cannot move application {application_id} from "
                f"{application.status.value} to {new_status.value}"
            )

        now = utcnow()
        screened_at = application.screened_at
        if new_status == S.UNDER_REVIEW and screened_at is None:
            screened_at = now
        application = self.store.save_application(
            replace(application, status=new_status, screened_at=screened_at, updated_at=now)
        )
        self._evict_status_change(application)
        log.info(
            "Application status updated: %d to status: %s by recruiter: %d",
            application_id, new_status.value, recruiter.user_id,
        )
        return application

    def withdraw(self, application_id: int, candidate: Actor) -> Application:
        application = self.get_application_entity(application_id)
        require_owner(
            application.candidate_id, candidate, "You can only withdraw your own applications"
        )
        if application.status == S.WITHDRAWN:
            return application
        if application.status.is_terminal:
            raise Conflict(
                f"Cannot withdraw an application that is already {application.status.value}"
            )

        application = self.store.save_application(
            replace(application, status=S.WITHDRAWN, updated_at=utcnow())
        )
        self.cache.evict(regions.APPLICATIONS, application_id)
        self.cache.evict(regions.CANDIDATE_APPLICATIONS, candidate.user_id)
        self.cache.evict(regions.JOB_APPLICATIONS, application.job_id)
        log.info("Application withdrawn: %d by candidate: %d", application_id, candidate.user_id)
        return application

    def mark_screened(self, application_id: int) -> Application:
        """Record that a screening result now exists for the application.

        Moves PENDING to UNDER_REVIEW; later statuses are kept. ``screened_at``
        is stamped the first time only.
        """
        application = self.get_application_entity(application_id)
        now = utcnow()
        status = S.UNDER_REVIEW if application.status == S.PENDING else application.status
        if status == application.status and application.screened_at is not None:
            return application
        application = self.store.save_application(replace(
            application,
            status=status,
            screened_at=application.screened_at or now,
            updated_at=now,
        ))
        self.cache.evict(regions.APPLICATIONS, application.id)
        self.cache.evict(regions.CANDIDATE_APPLICATIONS, application.candidate_id)
        self.cache.evict(regions.JOB_APPLICATIONS, application.job_id)
        return application

    # ── reads ────────────────────────────────────────────────────────────

    def get_application_by_id(self, application_id: int) -> Application:
        return self.cache.get_or_load(
            regions.APPLICATIONS, application_id,
            lambda: self.get_application_entity(application_id),
        )

    def get_candidate_applications(self, candidate: Actor) -> list[Application]:
        return self.cache.get_or_load(
            regions.CANDIDATE_APPLICATIONS, candidate.user_id,
            lambda: self.store.list_applications_by_candidate(candidate.user_id),
        )

    def get_applications_for_job(self, job_id: int, recruiter: Actor) -> list[Application]:
        self._owned_job(job_id, recruiter, "You can only view applications for your own jobs")
        return self.cache.get_or_load(
            regions.JOB_APPLICATIONS, job_id,
            lambda: self.store.list_applications_by_job(job_id),
        )

    def get_applications_for_job_page(
        self, job_id: int, recruiter: Actor, page: int = 0, size: int = 20
    ) -> Page:
        self._owned_job(job_id, recruiter, "You can only view applications for your own jobs")
        return Page.of(self.store.list_applications_by_job(job_id), page, size)

    def get_applications_by_status(
        self, job_id: int, status: ApplicationStatus, recruiter: Actor
    ) -> list[Application]:
        self._owned_job(job_id, recruiter, "You can only view applications for your own jobs")
        status = as_enum(ApplicationStatus, status)
        return [a for a in self.store.list_applications_by_job(job_id) if a.status == status]

    def count_applications_for_job(self, job_id: int) -> int:
        return self.store.count_applications_by_job(job_id)
