"""Per-job screening statistics: tier counts and mean match score."""
from __future__ import annotations

from collections import Counter
from typing import Iterable

from resume_screener.models import Recommendation, ScreeningResult, ScreeningStatistics


def compute_statistics(results: Iterable[ScreeningResult]) -> ScreeningStatistics:
    """Full rescan of a job's results; average is 0.0 when there are none."""
    results = list(results)
    tiers = Counter(r.recommendation for r in results)
    average = sum(r.match_score for r in results) / len(results) if results else 0.0
    return ScreeningStatistics(
        total_screened=len(results),
        strong_fit=tiers[Recommendation.STRONG_FIT],
        good_fit=tiers[Recommendation.GOOD_FIT],
        moderate_fit=tiers[Recommendation.MODERATE_FIT],
        poor_fit=tiers[Recommendation.POOR_FIT],
        average_score=float(average),
    )
