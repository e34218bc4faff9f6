"""Screening engine: score an application once, in single or batch mode.

The "already screened" check, the completion call and the insert all run
under a per-application lock, and the store's unique index on
``application_id`` backs it up. Either guard turns a second screening of the
same application into ``Conflict``.
"""
from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from typing import Hashable, Iterator

from resume_screener import cache as regions
from resume_screener.analysis import AnalysisParser, build_screening_prompt
from resume_screener.applications import ApplicationService
from resume_screener.auth import Actor, require_owner
from resume_screener.cache import CacheManager
from resume_screener.completion import CompletionService
from resume_screener.errors import (
    Conflict,
    DuplicateKeyError,
    InternalError,
    NotFound,
    ScoringError,
    ScreeningError,
    StoreError,
)
from resume_screener.log import get_logger
from resume_screener.models import (
    Application,
    Recommendation,
    ScreeningResult,
    ScreeningStatistics,
    as_enum,
)
from resume_screener.statistics import compute_statistics
from resume_screener.store import EntityStore

log = get_logger(__name__)

ALREADY_SCREENED = "This application has already been screened"


class KeyedLocks:
    """One lock per key, dropped again once nobody holds or waits on it."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[Hashable, list] = {}  # key -> [lock, users]

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        lock: threading.Lock = entry[0]
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


class ScreeningService:
    def __init__(
        self,
        store: EntityStore,
        cache: CacheManager,
        applications: ApplicationService,
        completion: CompletionService,
        parser: AnalysisParser,
    ) -> None:
        self.store = store
        self.cache = cache
        self.applications = applications
        self.completion = completion
        self.parser = parser
        self._locks = KeyedLocks()

    # ── screening ────────────────────────────────────────────────────────

    def screen_application(self, application: Application) -> ScreeningResult:
        """Score one application. Callers have already checked ownership."""
        with self._locks.hold(application.id):
            start = time.monotonic()
            if self.store.exists_screening_result(application.id):
                raise Conflict(ALREADY_SCREENED)
            log.info("Screening application %d for job %d", application.id, application.job_id)

            job = self.store.get_job(application.job_id)
            if job is None:
                raise NotFound(f"Job not found with id: {application.job_id}")
            resume = self.store.get_resume(application.resume_id)
            if resume is None:
                raise NotFound(f"Resume not found with id: {application.resume_id}")

            prompt = build_screening_prompt(job, resume)
            raw = self._complete(prompt)
            analysis = self.parser.parse(raw)
            processing_ms = int((time.monotonic() - start) * 1000)

            result = ScreeningResult(
                id=None,
                application_id=application.id,
                job_id=job.id,
                resume_id=resume.id,
                match_score=int(analysis.overall_score),
                recommendation=analysis.recommendation,
                skill_match_score=_as_int(analysis.skill_match_score),
                experience_match_score=_as_int(analysis.experience_match_score),
                education_match_score=_as_int(analysis.education_match_score),
                matched_skills=analysis.matched_skills,
                missing_skills=analysis.missing_skills,
                strengths=analysis.strengths,
                weaknesses=analysis.weaknesses,
                analysis=analysis.summary,
                key_highlights=analysis.key_highlights,
                processing_time_ms=processing_ms,
            )
            try:
                result = self.store.insert_screening_result(result)
            except DuplicateKeyError as exc:
                raise Conflict(ALREADY_SCREENED) from exc
            except StoreError as exc:
                raise InternalError(f"Could not store screening result: {exc}") from exc

            self.applications.mark_screened(application.id)
            self.cache.evict(regions.SCREENING_RESULTS, application.id)
            self.cache.evict(regions.JOB_SCREENING_RESULTS, job.id)
            self.cache.evict(regions.SCREENING_STATS, job.id)

        log.info(
            "Screening completed: Score=%d, Recommendation=%s, Time=%dms",
            result.match_score, result.recommendation.value, processing_ms,
        )
        return result

    def _complete(self, prompt: str) -> str:
        try:
            return self.completion.complete(prompt)
        except ScoringError:
            raise
        except Exception as exc:
            raise ScoringError(f"Completion service failed: {exc}") from exc

    def screen_application_by_id(self, application_id: int, recruiter: Actor) -> ScreeningResult:
        """Ownership-checked entry point for a single screen."""
        application = self.applications.get_application_entity(application_id)
        job = self.applications.jobs.get_job_by_id(application.job_id)
        require_owner(job.owner_id, recruiter, "You can only screen applications for your own jobs")
        return self.screen_application(application)

    def batch_screen_applications(self, job_id: int, recruiter: Actor) -> list[ScreeningResult]:
        """Screen every unscreened application of a job; failures are skipped."""
        log.info("Batch screening applications for job %d", job_id)
        applications = self.applications.get_applications_for_job(job_id, recruiter)
        results: list[ScreeningResult] = []

        for app in applications:
            if self.store.exists_screening_result(app.id):
                log.info("Skipping already screened application: %d", app.id)
                continue
            try:
                application = self.applications.get_application_entity(app.id)
                results.append(self.screen_application(application))
            except ScreeningError as exc:
                log.error("Error screening application %d: %s", app.id, exc)
            except Exception:
                log.exception("Unexpected error screening application %d", app.id)

        self.cache.evict(regions.JOB_SCREENING_RESULTS, job_id)
        self.cache.evict(regions.SCREENING_STATS, job_id)
        log.info("Batch screening completed: %d results", len(results))
        return results

    # ── reads ────────────────────────────────────────────────────────────

    def application_already_screened(self, application_id: int) -> bool:
        return self.store.exists_screening_result(application_id)

    def get_screening_result_by_application_id(self, application_id: int) -> ScreeningResult:
        """Stored result or NotFound; never triggers scoring."""
        def load() -> ScreeningResult:
            result = self.store.get_screening_result_by_application(application_id)
            if result is None:
                raise NotFound(f"No screening result for application: {application_id}")
            return result

        return self.cache.get_or_load(regions.SCREENING_RESULTS, application_id, load)

    def get_screening_result(self, result_id: int) -> ScreeningResult:
        def load() -> ScreeningResult:
            result = self.store.get_screening_result(result_id)
            if result is None:
                raise NotFound(f"Screening result not found: {result_id}")
            return result

        return self.cache.get_or_load(regions.SCREENING_RESULTS_BY_ID, result_id, load)

    def get_screening_results_by_job_id(self, job_id: int) -> list[ScreeningResult]:
        return self.cache.get_or_load(
            regions.JOB_SCREENING_RESULTS, job_id,
            lambda: self.store.list_screening_results_by_job(job_id),
        )

    def get_top_candidates(self, job_id: int, limit: int | None = None) -> list[ScreeningResult]:
        ranked = sorted(
            self.get_screening_results_by_job_id(job_id),
            key=lambda r: (-r.match_score, r.id),
        )
        return ranked[:limit] if limit is not None else ranked

    def get_candidates_by_recommendation(
        self, job_id: int, recommendation: Recommendation
    ) -> list[ScreeningResult]:
        recommendation = as_enum(Recommendation, recommendation)
        return [
            r for r in self.store.list_screening_results_by_job(job_id)
            if r.recommendation == recommendation
        ]

    def get_screening_statistics(self, job_id: int) -> ScreeningStatistics:
        return self.cache.get_or_load(
            regions.SCREENING_STATS, job_id,
            lambda: compute_statistics(self.store.list_screening_results_by_job(job_id)),
        )


def _as_int(score: float | None) -> int | None:
    return int(score) if score is not None else None
