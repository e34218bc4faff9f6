"""Offline completion service for tests and runs without an API key."""
from __future__ import annotations

import json
import re
import threading
from typing import Callable, Iterable, Union

from resume_screener.completion.base import CompletionService
from resume_screener.log import get_logger

log = get_logger(__name__)

Scripted = Union[str, BaseException, Callable[[str], str]]

_REQUIRED_RE = re.compile(r"^\s*Required Skills:\s*(.*)$", re.MULTILINE)
_SKILLS_RE = re.compile(r"^\s*Skills:\s*(.*)$", re.MULTILINE)
_YEARS_RE = re.compile(r"^\s*Total Experience:\s*(\d+)", re.MULTILINE)
_EDUCATION_RE = re.compile(r"^\s*Education:\s*(.*)$", re.MULTILINE)


def _split(line: str) -> list[str]:
    return [s.strip() for s in line.split(",") if s.strip()]


def heuristic_analysis(prompt: str) -> str:
    """Score a screening prompt with plain skill overlap, as JSON text."""
    req_m = _REQUIRED_RE.search(prompt)
    skills_m = _SKILLS_RE.search(prompt)
    years_m = _YEARS_RE.search(prompt)
    edu_m = _EDUCATION_RE.search(prompt)

    required = _split(req_m.group(1)) if req_m else []
    have = {s.lower() for s in _split(skills_m.group(1))} if skills_m else set()
    matched = [s for s in required if s.lower() in have]
    missing = [s for s in required if s.lower() not in have]

    skill = round(100 * len(matched) / len(required)) if required else 0
    years = int(years_m.group(1)) if years_m else 0
    experience = min(100, 50 + 10 * years)
    education = 50 if not edu_m or edu_m.group(1).strip() == "Not specified" else 75
    overall = round(0.40 * skill + 0.35 * experience + 0.25 * education)

    return json.dumps({
        "overallScore": overall,
        "skillMatchScore": skill,
        "experienceMatchScore": experience,
        "educationMatchScore": education,
        "matchedSkills": matched,
        "missingSkills": missing,
        "strengths": f"Covers {len(matched)} of {len(required)} required skills.",
        "weaknesses": ("Missing: " + ", ".join(missing)) if missing else "No major gaps.",
        "summary": "Offline heuristic assessment based on skill overlap and experience.",
        "keyHighlights": matched[:3],
    })


class MockCompletionService(CompletionService):
    """Replays scripted replies in order, then falls back to a heuristic.

    A scripted item may be a string (returned), an exception (raised) or a
    callable taking the prompt.
    """

    def __init__(self, responses: Iterable[Scripted] = (), fallback: Callable[[str], str] | None = heuristic_analysis) -> None:
        self._responses = list(responses)
        self._fallback = fallback
        self._lock = threading.Lock()
        self.prompts: list[str] = []

    def queue(self, *responses: Scripted) -> None:
        with self._lock:
            self._responses.extend(responses)

    @property
    def calls(self) -> int:
        with self._lock:
            return len(self.prompts)

    def complete(self, prompt: str) -> str:
        with self._lock:
            self.prompts.append(prompt)
            item: Scripted | None = self._responses.pop(0) if self._responses else None

        if item is None:
            if self._fallback is None:
                raise RuntimeError("MockCompletionService has no scripted response left")
            log.debug("MockCompletionService using fallback analysis")
            return self._fallback(prompt)
        if isinstance(item, BaseException):
            raise item
        if callable(item):
            return item(prompt)
        return item
