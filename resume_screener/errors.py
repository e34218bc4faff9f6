"""Typed errors raised by the screening core.

The outward API layer maps these onto its own status codes; the core only
guarantees the kind of failure.
"""
from __future__ import annotations


class ScreeningError(Exception):
    """Base class for every error the core raises on purpose."""


class NotFound(ScreeningError):
    """A referenced job, resume, application or result does not exist."""


class Forbidden(ScreeningError):
    """The acting user does not own the resource or lacks the role."""


class Conflict(ScreeningError):
    """Duplicate application, inactive job, already screened, bad transition."""


class ValidationError(ScreeningError):
    """Malformed input, e.g. a job without required skills."""


class ScoringError(ScreeningError):
    """The completion service failed or returned an unusable analysis."""


class InternalError(ScreeningError):
    """Storage failure."""


class StoreError(Exception):
    """Raised by the entity store."""


class DuplicateKeyError(StoreError):
    """A unique index rejected the write."""

    def __init__(self, index: str, key: tuple) -> None:
        super().__init__(f"duplicate key {key!r} for unique index {index!r}")
        self.index = index
        self.key = key


class ConfigurationError(ValueError):
    """Settings cannot produce a working service, e.g. no API key."""
