"""Named read-through cache regions with explicit eviction.

Services call ``get_or_load`` on reads and ``evict`` / ``clear`` after every
store write that could change a cached value. Values are deep-copied in and
out so a caller mutating a returned object never changes the cached copy.
"""
from __future__ import annotations

import copy
import threading
from typing import Any, Callable, Hashable, TypeVar

from resume_screener.log import get_logger

log = get_logger(__name__)

T = TypeVar("T")

JOBS = "jobs"
ACTIVE_JOBS_LIST = "activeJobsList"
USER_JOBS = "userJobs"
APPLICATIONS = "applications"
CANDIDATE_APPLICATIONS = "candidateApplications"
JOB_APPLICATIONS = "jobApplications"
SCREENING_RESULTS = "screeningResults"
SCREENING_RESULTS_BY_ID = "screeningResultsById"
JOB_SCREENING_RESULTS = "jobScreeningResults"
SCREENING_STATS = "screeningStats"
USER_RESUMES = "userResumes"

REGIONS: tuple[str, ...] = (
    JOBS, ACTIVE_JOBS_LIST, USER_JOBS,
    APPLICATIONS, CANDIDATE_APPLICATIONS, JOB_APPLICATIONS,
    SCREENING_RESULTS, SCREENING_RESULTS_BY_ID, JOB_SCREENING_RESULTS, SCREENING_STATS,
    USER_RESUMES,
)

_MISSING = object()


class CacheRegion:
    def __init__(self, name: str, enabled: bool = True) -> None:
        self.name = name
        self.enabled = enabled
        self._data: dict[Hashable, Any] = {}
        self._lock = threading.Lock()
        # Bumped on every eviction; a load that started before an eviction
        # must not populate the region afterwards.
        self._generation = 0
        self.hits = 0
        self.misses = 0

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def get(self, key: Hashable, default: Any = None) -> Any:
        with self._lock:
            value = self._data.get(key, _MISSING)
            if value is _MISSING:
                self.misses += 1
                return default
            self.hits += 1
            return copy.deepcopy(value)

    def set(self, key: Hashable, value: Any) -> None:
        if not self.enabled:
            return
        with self._lock:
            self._data[key] = copy.deepcopy(value)

    def set_if_current(self, key: Hashable, value: Any, generation: int) -> bool:
        if not self.enabled:
            return False
        with self._lock:
            if generation != self._generation:
                log.debug("Skipped stale populate of %s[%r]", self.name, key)
                return False
            self._data[key] = copy.deepcopy(value)
            return True

    def evict(self, key: Hashable) -> None:
        with self._lock:
            self._generation += 1
            if self._data.pop(key, _MISSING) is not _MISSING:
                log.debug("Evicted %s[%r]", self.name, key)

    def clear(self) -> None:
        with self._lock:
            self._generation += 1
            if self._data:
                log.debug("Cleared %s (%d entries)", self.name, len(self._data))
            self._data.clear()

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._data

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


class CacheManager:
    """Holds one CacheRegion per cached query."""

    def __init__(self, enabled: bool = True, regions: tuple[str, ...] = REGIONS) -> None:
        self.enabled = enabled
        self._regions = {name: CacheRegion(name, enabled) for name in regions}

    def region(self, name: str) -> CacheRegion:
        try:
            return self._regions[name]
        except KeyError:
            raise KeyError(f"Unknown cache region: {name}") from None

    def get_or_load(self, name: str, key: Hashable, loader: Callable[[], T]) -> T:
        """Return the cached value or compute it, populate, and return it."""
        region = self.region(name)
        generation = region.generation
        value = region.get(key, _MISSING)
        if value is not _MISSING:
            return value
        value = loader()
        region.set_if_current(key, value, generation)
        return value

    def evict(self, name: str, key: Hashable) -> None:
        self.region(name).evict(key)

    def clear(self, name: str) -> None:
        self.region(name).clear()

    def clear_all(self) -> None:
        for region in self._regions.values():
            region.clear()
