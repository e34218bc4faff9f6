"""Build screening prompts and turn completion text into a validated analysis."""
from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass, field
from typing import Any

from resume_screener.errors import ScoringError
from resume_screener.log import get_logger
from resume_screener.models import (
    JobPosting,
    ParsedResumeData,
    Recommendation,
    Resume,
)

log = get_logger(__name__)

NOT_SPECIFIED = "Not specified"
UNKNOWN = "Unknown"

# Inclusive lower bounds, checked top-down
RECOMMENDATION_THRESHOLDS: tuple[tuple[float, Recommendation], ...] = (
    (80.0, Recommendation.STRONG_FIT),
    (60.0, Recommendation.GOOD_FIT),
    (40.0, Recommendation.MODERATE_FIT),
)

_PROMPT_TEMPLATE = """\
You are an expert technical recruiter. Analyze how well this candidate matches the job requirements.

JOB POSTING:
Title: {title}
Required Skills: {required_skills}
Experience Level: {experience_level}
Description: {description}

CANDIDATE PROFILE:
Name: {name}
Skills: {skills}
Total Experience: {years} years
Education: {education}

Provide your analysis in the following JSON format (return ONLY JSON):
{{
    "overallScore": 0-100,
    "skillMatchScore": 0-100,
    "experienceMatchScore": 0-100,
    "educationMatchScore": 0-100,
    "matchedSkills": ["skill1", "skill2"],
    "missingSkills": ["skill3", "skill4"],
    "strengths": "Brief description of candidate strengths",
    "weaknesses": "Brief description of gaps or concerns",
    "summary": "2-3 sentence overall assessment",
    "keyHighlights": ["highlight1", "highlight2"]
}}

Scoring guidelines:
- overallScore: Weighted average (skills: 40%, experience: 35%, education: 25%)
- skillMatchScore: Percentage of required skills the candidate has
- experienceMatchScore: How well experience level matches (fresher for entry-level can be 70-80)
- educationMatchScore: Relevance and quality of education

Be objective and specific. Consider projects as valid experience for freshers.
"""

_FENCE_RE = re.compile(r"^\s*```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?\s*```\s*$", re.DOTALL)


def recommendation_for(score: float) -> Recommendation:
    for lower, tier in RECOMMENDATION_THRESHOLDS:
        if score >= lower:
            return tier
    return Recommendation.POOR_FIT


def format_education(data: ParsedResumeData) -> str:
    if not data.education:
        return NOT_SPECIFIED
    edu = data.education[0]
    return "{} from {} ({})".format(
        edu.degree or UNKNOWN,
        edu.institution or UNKNOWN,
        edu.year or UNKNOWN,
    )


def build_screening_prompt(job: JobPosting, resume: Resume) -> str:
    """Deterministic: the same job and resume always give the same prompt."""
    data = resume.parsed_data or ParsedResumeData()
    return _PROMPT_TEMPLATE.format(
        title=job.title,
        required_skills=", ".join(job.required_skills),
        experience_level=job.experience_level.value,
        description=job.description,
        name=data.full_name or NOT_SPECIFIED,
        skills=", ".join(data.skills) if data.skills else NOT_SPECIFIED,
        years=data.total_experience_years if data.total_experience_years is not None else 0,
        education=format_education(data),
    )


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` (or bare ```) wrapper."""
    text = (text or "").strip()
    m = _FENCE_RE.match(text)
    if m:
        return m.group(1).strip()
    return text


@dataclass
class ScreeningAnalysis:
    overall_score: float
    skill_match_score: float | None = None
    experience_match_score: float | None = None
    education_match_score: float | None = None
    matched_skills: list[str] = field(default_factory=list)
    missing_skills: list[str] = field(default_factory=list)
    strengths: str | None = None
    weaknesses: str | None = None
    summary: str | None = None
    key_highlights: list[str] = field(default_factory=list)

    @property
    def recommendation(self) -> Recommendation:
        return recommendation_for(self.overall_score)


class AnalysisParser:
    """Parses completion text into ScreeningAnalysis.

    Built once at startup and shared by the screening service.
    """

    def parse(self, raw: str) -> ScreeningAnalysis:
        payload = self._load_json(strip_code_fences(raw))
        if not isinstance(payload, dict):
            raise ScoringError("Analysis must be a JSON object")

        overall = self._score(payload, "overallScore", required=True)
        return ScreeningAnalysis(
            overall_score=overall,
            skill_match_score=self._score(payload, "skillMatchScore"),
            experience_match_score=self._score(payload, "experienceMatchScore"),
            education_match_score=self._score(payload, "educationMatchScore"),
            matched_skills=self._strings(payload.get("matchedSkills")),
            missing_skills=self._strings(payload.get("missingSkills")),
            strengths=self._text(payload.get("strengths")),
            weaknesses=self._text(payload.get("weaknesses")),
            summary=self._text(payload.get("summary")),
            key_highlights=self._strings(payload.get("keyHighlights")),
        )

    @staticmethod
    def _load_json(text: str) -> Any:
        if not text:
            raise ScoringError("Completion returned an empty analysis")
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            pass
        # Tolerate prose around the object
        start = text.find("{")
        end = text.rfind("}") + 1
        if start == -1 or end == 0:
            raise ScoringError("Completion did not return JSON")
        try:
            return json.loads(text[start:end])
        except json.JSONDecodeError as exc:
            log.debug("Unparsable analysis: %.200s", text)
            raise ScoringError(f"Could not parse analysis JSON: {exc}") from exc

    @staticmethod
    def _score(payload: dict[str, Any], key: str, required: bool = False) -> float | None:
        value = payload.get(key)
        if value is None:
            if required:
                raise ScoringError(f"Analysis is missing {key}")
            return None
        if isinstance(value, bool):
            raise ScoringError(f"{key} must be a number, got {value!r}")
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise ScoringError(f"{key} must be a number, got {value!r}") from None
        if math.isnan(number) or not 0 <= number <= 100:
            raise ScoringError(f"{key} must be between 0 and 100, got {value!r}")
        return number

    @staticmethod
    def _strings(value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [value] if value.strip() else []
        if isinstance(value, list):
            return [str(v) for v in value if v is not None and str(v).strip()]
        raise ScoringError(f"Expected a list of strings, got {type(value).__name__}")

    @staticmethod
    def _text(value: Any) -> str | None:
        if value is None:
            return None
        if isinstance(value, list):
            return "; ".join(str(v) for v in value)
        return str(value)
