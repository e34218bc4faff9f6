"""Markdown screening report for one job posting."""
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from resume_screener.log import get_logger
from resume_screener.models import (
    Application,
    JobPosting,
    Recommendation,
    ScreeningResult,
    ScreeningStatistics,
)

log = get_logger(__name__)

_BADGES: dict[Recommendation, str] = {
    Recommendation.STRONG_FIT: "\U0001f7e2",
    Recommendation.GOOD_FIT: "\U0001f535",
    Recommendation.MODERATE_FIT: "\U0001f7e1",
    Recommendation.POOR_FIT: "\U0001f534",
}


def _short(text: str | None, limit: int = 80) -> str:
    text = (text or "").strip().replace("\n", " ")
    return text[:limit] + ("…" if len(text) > limit else "")


def _label(tier: Recommendation) -> str:
    return tier.value.replace("_", " ").title()


def build_screening_report(
    job: JobPosting,
    stats: ScreeningStatistics,
    ranked: list[ScreeningResult],
    applications: list[Application],
    *,
    candidate_names: dict[int, str] | None = None,
    top: int = 10,
) -> str:
    candidate_names = candidate_names or {}
    by_app = {a.id: a for a in applications}
    date = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    lines: list[str] = [f"# Screening Report — {job.title} — {date}", ""]

    screened_ids = {r.application_id for r in ranked}
    unscreened = sum(1 for a in applications if a.id not in screened_ids)
    lines.append(
        f"**{len(applications)}** applications | **{stats.total_screened}** screened | "
        f"**{unscreened}** awaiting screening | average score **{stats.average_score:.1f}**"
    )
    lines.append("")
    lines.append(f"- **Required skills:** {', '.join(job.required_skills)}")
    lines.append(f"- **Level:** {job.experience_level.value} — {job.employment_type.value}")
    lines.append("")

    lines.append("## Recommendation Breakdown")
    lines.append("")
    lines.append("| Tier | Count |")
    lines.append("|------|------:|")
    for tier, count in (
        (Recommendation.STRONG_FIT, stats.strong_fit),
        (Recommendation.GOOD_FIT, stats.good_fit),
        (Recommendation.MODERATE_FIT, stats.moderate_fit),
        (Recommendation.POOR_FIT, stats.poor_fit),
    ):
        lines.append(f"| {_BADGES[tier]} {_label(tier)} | {count} |")
    lines.append("")

    shown = ranked[:top]
    if shown:
        lines.append("## Top Candidates")
        lines.append("")
        for r in shown:
            app = by_app.get(r.application_id)
            name = candidate_names.get(app.candidate_id, f"Candidate {app.candidate_id}") if app else "Unknown"
            status = app.status.value if app else "?"
            lines.append(f"### {_BADGES[r.recommendation]} {name} — {r.match_score}/100")
            lines.append(f"- **Recommendation:** {_label(r.recommendation)} — _{status}_")
            subs = [
                f"{label} {value}" for label, value in (
                    ("skills", r.skill_match_score),
                    ("experience", r.experience_match_score),
                    ("education", r.education_match_score),
                ) if value is not None
            ]
            if subs:
                lines.append(f"- **Sub-scores:** {', '.join(subs)}")
            if r.matched_skills:
                lines.append(f"- **Matched:** {', '.join(r.matched_skills[:6])}")
            if r.missing_skills:
                lines.append(f"- **Missing:** {', '.join(r.missing_skills[:6])}")
            if r.analysis:
                lines.append(f"- **Summary:** {_short(r.analysis, 200)}")
            lines.append("")

        lines.append("---")
        lines.append("")
        lines.append("## Quick Reference")
        lines.append("")
        lines.append("| # | Candidate | Score | Tier | Status | Time |")
        lines.append("|--:|-----------|------:|------|--------|-----:|")
        for i, r in enumerate(shown, 1):
            app = by_app.get(r.application_id)
            name = candidate_names.get(app.candidate_id, f"Candidate {app.candidate_id}") if app else "Unknown"
            status = app.status.value if app else "?"
            lines.append(
                f"| {i} | {_short(name, 30)} | {r.match_score} | {_label(r.recommendation)} "
                f"| {status} | {r.processing_time_ms} ms |"
            )
        lines.append("")

    if unscreened:
        lines.append("---")
        lines.append("")
        lines.append("## Not Screened")
        lines.append("")
        lines.append("These applications have no result yet. The completion service may have")
        lines.append("failed for them; re-run batch screening to retry.")
        lines.append("")
        for a in applications:
            if a.id not in screened_ids:
                name = candidate_names.get(a.candidate_id, f"Candidate {a.candidate_id}")
                lines.append(f"- Application {a.id} — {name} — _{a.status.value}_")
        lines.append("")

    log.info("Built screening report for job %d: %d screened", job.id, stats.total_screened)
    return "\n".join(lines)


def write_screening_report(content: str, job_id: int, reports_dir: Path) -> Path:
    reports_dir.mkdir(parents=True, exist_ok=True)
    date = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    path = reports_dir / f"screening_job{job_id}_{date}.md"
    path.write_text(content, encoding="utf-8")
    log.info("Report written → %s", path)
    return path
