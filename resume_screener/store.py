"""In-process entity store with unique indexes and a single store lock.

Every public call runs under one re-entrant lock, so each call is atomic with
respect to the others. Records are copied on the way in and out: callers never
hold a reference to the stored row and must ``save`` to change it.
"""
from __future__ import annotations

import copy
import itertools
import threading
from typing import Any, Callable, Generic, Iterable, TypeVar

from resume_screener.errors import DuplicateKeyError, StoreError
from resume_screener.log import get_logger
from resume_screener.models import (
    Application,
    JobPosting,
    Resume,
    ScreeningResult,
    User,
)

log = get_logger(__name__)

T = TypeVar("T")


class _Table(Generic[T]):
    def __init__(self, name: str, unique: dict[str, Callable[[T], tuple]] | None = None) -> None:
        self.name = name
        self.rows: dict[int, T] = {}
        self._ids = itertools.count(1)
        self._unique = unique or {}
        self._index: dict[str, dict[tuple, int]] = {k: {} for k in self._unique}

    def insert_or_update(self, row: T) -> T:
        row = copy.deepcopy(row)
        row_id = getattr(row, "id")
        if row_id is None:
            row_id = next(self._ids)
            setattr(row, "id", row_id)
        elif row_id not in self.rows:
            raise StoreError(f"{self.name}: cannot update missing row {row_id}")

        # Check every index before touching any of them
        new_keys: dict[str, tuple] = {}
        for index, key_fn in self._unique.items():
            key = key_fn(row)
            owner = self._index[index].get(key)
            if owner is not None and owner != row_id:
                raise DuplicateKeyError(f"{self.name}.{index}", key)
            new_keys[index] = key

        old = self.rows.get(row_id)
        if old is not None:
            for index, key_fn in self._unique.items():
                self._index[index].pop(key_fn(old), None)
        for index, key in new_keys.items():
            self._index[index][key] = row_id
        self.rows[row_id] = row
        return copy.deepcopy(row)

    def get(self, row_id: int) -> T | None:
        row = self.rows.get(row_id)
        return copy.deepcopy(row) if row is not None else None

    def lookup(self, index: str, key: tuple) -> T | None:
        row_id = self._index[index].get(key)
        return self.get(row_id) if row_id is not None else None

    def delete(self, row_id: int) -> bool:
        row = self.rows.pop(row_id, None)
        if row is None:
            return False
        for index, key_fn in self._unique.items():
            self._index[index].pop(key_fn(row), None)
        return True

    def select(self, predicate: Callable[[T], bool]) -> list[T]:
        return [copy.deepcopy(r) for _, r in sorted(self.rows.items()) if predicate(r)]

    def count(self, predicate: Callable[[T], bool]) -> int:
        return sum(1 for r in self.rows.values() if predicate(r))


class EntityStore:
    """Durable-record contract for users, jobs, resumes, applications, results."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._users: _Table[User] = _Table("users", {"email": lambda u: (u.email.lower(),)})
        self._jobs: _Table[JobPosting] = _Table("job_postings")
        self._resumes: _Table[Resume] = _Table("resumes")
        self._applications: _Table[Application] = _Table(
            "applications", {"job_candidate": lambda a: (a.job_id, a.candidate_id)}
        )
        self._results: _Table[ScreeningResult] = _Table(
            "screening_results", {"application": lambda r: (r.application_id,)}
        )

    def _run(self, fn: Callable[..., Any], *args: Any) -> Any:
        with self._lock:
            return fn(*args)

    # ── users ────────────────────────────────────────────────────────────

    def save_user(self, user: User) -> User:
        return self._run(self._users.insert_or_update, user)

    def get_user(self, user_id: int) -> User | None:
        return self._run(self._users.get, user_id)

    # ── job postings ─────────────────────────────────────────────────────

    def save_job(self, job: JobPosting) -> JobPosting:
        return self._run(self._jobs.insert_or_update, job)

    def get_job(self, job_id: int) -> JobPosting | None:
        return self._run(self._jobs.get, job_id)

    def delete_job(self, job_id: int) -> bool:
        return self._run(self._jobs.delete, job_id)

    def list_jobs(self, predicate: Callable[[JobPosting], bool] = lambda j: True) -> list[JobPosting]:
        return self._run(self._jobs.select, predicate)

    def list_active_jobs_by_owner(self, owner_id: int) -> list[JobPosting]:
        return self.list_jobs(lambda j: j.owner_id == owner_id and j.active)

    # ── resumes ──────────────────────────────────────────────────────────

    def save_resume(self, resume: Resume) -> Resume:
        return self._run(self._resumes.insert_or_update, resume)

    def get_resume(self, resume_id: int) -> Resume | None:
        return self._run(self._resumes.get, resume_id)

    def delete_resume(self, resume_id: int) -> bool:
        return self._run(self._resumes.delete, resume_id)

    def list_resumes_by_owner(self, owner_id: int) -> list[Resume]:
        return self._run(self._resumes.select, lambda r: r.owner_id == owner_id)

    # ── applications ─────────────────────────────────────────────────────

    def save_application(self, application: Application) -> Application:
        return self._run(self._applications.insert_or_update, application)

    def get_application(self, application_id: int) -> Application | None:
        return self._run(self._applications.get, application_id)

    def exists_application(self, job_id: int, candidate_id: int) -> bool:
        return self._run(self._applications.lookup, "job_candidate", (job_id, candidate_id)) is not None

    def list_applications_by_job(self, job_id: int) -> list[Application]:
        return self._run(self._applications.select, lambda a: a.job_id == job_id)

    def list_applications_by_candidate(self, candidate_id: int) -> list[Application]:
        return self._run(self._applications.select, lambda a: a.candidate_id == candidate_id)

    def count_applications_by_job(self, job_id: int) -> int:
        return self._run(self._applications.count, lambda a: a.job_id == job_id)

    def count_applications_by_resume(self, resume_id: int) -> int:
        return self._run(self._applications.count, lambda a: a.resume_id == resume_id)

    # ── screening results ────────────────────────────────────────────────

    def insert_screening_result(self, result: ScreeningResult) -> ScreeningResult:
        """Insert-only: results are immutable once stored."""
        if result.id is not None:
            raise StoreError("screening results cannot be updated")
        return self._run(self._results.insert_or_update, result)

    def get_screening_result(self, result_id: int) -> ScreeningResult | None:
        return self._run(self._results.get, result_id)

    def get_screening_result_by_application(self, application_id: int) -> ScreeningResult | None:
        return self._run(self._results.lookup, "application", (application_id,))

    def exists_screening_result(self, application_id: int) -> bool:
        return self.get_screening_result_by_application(application_id) is not None

    def list_screening_results_by_job(self, job_id: int) -> list[ScreeningResult]:
        return self._run(self._results.select, lambda r: r.job_id == job_id)

    def list_screening_results_for_applications(self, application_ids: Iterable[int]) -> list[ScreeningResult]:
        wanted = set(application_ids)
        return self._run(self._results.select, lambda r: r.application_id in wanted)
