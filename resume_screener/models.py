"""Data models for users, jobs, resumes, applications and screening results."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, TypeVar

from resume_screener.errors import ValidationError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


E = TypeVar("E", bound=Enum)


def as_enum(enum_cls: type[E], value: Any) -> E:
    """Convert user input to an enum member; bad values are a ValidationError."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value.strip().upper() if isinstance(value, str) else value)
    except (TypeError, ValueError) as exc:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(
            f"Invalid {enum_cls.__name__}: {value!r} (expected one of: {allowed})"
        ) from exc


class Role(str, Enum):
    RECRUITER = "RECRUITER"
    CANDIDATE = "CANDIDATE"


class ExperienceLevel(str, Enum):
    ENTRY = "ENTRY"
    MID = "MID"
    SENIOR = "SENIOR"
    LEAD = "LEAD"


class EmploymentType(str, Enum):
    FULL_TIME = "FULL_TIME"
    PART_TIME = "PART_TIME"
    CONTRACT = "CONTRACT"
    INTERNSHIP = "INTERNSHIP"


class ApplicationStatus(str, Enum):
    PENDING = "PENDING"
    UNDER_REVIEW = "UNDER_REVIEW"
    SHORTLISTED = "SHORTLISTED"
    REJECTED = "REJECTED"
    INTERVIEWED = "INTERVIEWED"
    HIRED = "HIRED"
    WITHDRAWN = "WITHDRAWN"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES: frozenset[ApplicationStatus] = frozenset(
    {ApplicationStatus.REJECTED, ApplicationStatus.HIRED, ApplicationStatus.WITHDRAWN}
)


class Recommendation(str, Enum):
    STRONG_FIT = "STRONG_FIT"
    GOOD_FIT = "GOOD_FIT"
    MODERATE_FIT = "MODERATE_FIT"
    POOR_FIT = "POOR_FIT"


@dataclass
class User:
    id: int | None
    email: str
    full_name: str
    role: Role
    company_name: str | None = None
    active: bool = True
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class JobPosting:
    id: int | None
    owner_id: int
    title: str
    description: str
    required_skills: list[str]
    experience_level: ExperienceLevel
    employment_type: EmploymentType
    location: str | None = None
    salary_range: str | None = None
    company_name: str | None = None
    active: bool = True
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class Education:
    degree: str | None = None
    institution: str | None = None
    year: str | None = None
    field: str | None = None


@dataclass
class ParsedResumeData:
    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    skills: list[str] = field(default_factory=list)
    total_experience_years: int | None = None
    education: list[Education] = field(default_factory=list)
    summary: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ParsedResumeData":
        """Accept both snake_case and the camelCase keys parsers tend to emit."""
        def pick(*keys: str) -> Any:
            for k in keys:
                if data.get(k) is not None:
                    return data[k]
            return None

        years = pick("total_experience_years", "totalExperienceYears")
        if years is not None:
            try:
                years = int(years)
            except (TypeError, ValueError) as exc:
                raise ValidationError(f"Invalid total experience years: {years!r}") from exc
        education = [
            e if isinstance(e, Education) else Education(
                degree=e.get("degree"),
                institution=e.get("institution"),
                year=str(e["year"]) if e.get("year") is not None else None,
                field=e.get("field"),
            )
            for e in (pick("education") or [])
        ]
        return cls(
            full_name=pick("full_name", "fullName", "name"),
            email=pick("email"),
            phone=pick("phone"),
            skills=[str(s) for s in (pick("skills") or [])],
            total_experience_years=years,
            education=education,
            summary=pick("summary"),
        )


@dataclass
class Resume:
    id: int | None
    owner_id: int
    raw_text: str
    parsed_data: ParsedResumeData | None = None
    file_name: str | None = None
    title: str | None = None
    uploaded_at: datetime = field(default_factory=utcnow)


@dataclass
class Application:
    id: int | None
    job_id: int
    candidate_id: int
    resume_id: int
    status: ApplicationStatus = ApplicationStatus.PENDING
    cover_letter: str | None = None
    applied_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    screened_at: datetime | None = None


@dataclass
class ScreeningResult:
    id: int | None
    application_id: int
    job_id: int
    resume_id: int
    match_score: int
    recommendation: Recommendation
    skill_match_score: int | None = None
    experience_match_score: int | None = None
    education_match_score: int | None = None
    matched_skills: list[str] = field(default_factory=list)
    missing_skills: list[str] = field(default_factory=list)
    strengths: str | None = None
    weaknesses: str | None = None
    analysis: str | None = None
    key_highlights: list[str] = field(default_factory=list)
    processing_time_ms: int = 0
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class ScreeningStatistics:
    total_screened: int
    strong_fit: int
    good_fit: int
    moderate_fit: int
    poor_fit: int
    average_score: float


@dataclass
class Page:
    """One slice of a paginated read."""
    items: list[Any]
    page: int
    size: int
    total: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.size - 1) // self.size if self.size else 0

    @classmethod
    def of(cls, items: list[Any], page: int, size: int) -> "Page":
        if page < 0 or size <= 0:
            raise ValidationError("page must be >= 0 and size must be > 0")
        start = page * size
        return cls(items=items[start:start + size], page=page, size=size, total=len(items))
