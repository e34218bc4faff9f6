"""Wire the store, caches, completion service and services together."""
from __future__ import annotations

from dataclasses import dataclass

from resume_screener.analysis import AnalysisParser
from resume_screener.applications import ApplicationService
from resume_screener.cache import CacheManager
from resume_screener.completion import CompletionService, get_completion_service
from resume_screener.config import Settings, load_settings
from resume_screener.jobs import JobPostingService
from resume_screener.log import get_logger
from resume_screener.resumes import ResumeService
from resume_screener.screening import ScreeningService
from resume_screener.store import EntityStore
from resume_screener.users import UserService

log = get_logger(__name__)


@dataclass
class AppContext:
    settings: Settings
    store: EntityStore
    cache: CacheManager
    completion: CompletionService
    parser: AnalysisParser
    users: UserService
    jobs: JobPostingService
    resumes: ResumeService
    applications: ApplicationService
    screening: ScreeningService


def build_context(
    settings: Settings | None = None,
    *,
    completion: CompletionService | None = None,
    store: EntityStore | None = None,
) -> AppContext:
    settings = settings or load_settings()
    store = store or EntityStore()
    cache = CacheManager(enabled=settings.cache_enabled)
    completion = completion or get_completion_service(settings.completion)
    parser = AnalysisParser()

    jobs = JobPostingService(store, cache)
    applications = ApplicationService(store, cache, jobs)
    ctx = AppContext(
        settings=settings,
        store=store,
        cache=cache,
        completion=completion,
        parser=parser,
        users=UserService(store),
        jobs=jobs,
        resumes=ResumeService(store, cache),
        applications=applications,
        screening=ScreeningService(store, cache, applications, completion, parser),
    )
    log.debug("Context ready: completion=%s cache=%s", type(completion).__name__, settings.cache_enabled)
    return ctx
