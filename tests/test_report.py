from resume_screener.models import Application, ApplicationStatus, Recommendation, ScreeningResult
from resume_screener.report import build_screening_report, write_screening_report
from resume_screener.statistics import compute_statistics


def _result(app_id, score, tier):
    return ScreeningResult(
        id=app_id, application_id=app_id, job_id=1, resume_id=app_id,
        match_score=score, recommendation=tier, skill_match_score=score,
        matched_skills=["Java"], missing_skills=["AWS"], analysis="Solid.",
    )


def test_report_lists_ranked_candidates_and_unscreened(job):
    apps = [
        Application(id=1, job_id=job.id, candidate_id=10, resume_id=1, status=ApplicationStatus.UNDER_REVIEW),
        Application(id=2, job_id=job.id, candidate_id=11, resume_id=2, status=ApplicationStatus.UNDER_REVIEW),
        # Moved by hand, never scored
        Application(id=3, job_id=job.id, candidate_id=12, resume_id=3, status=ApplicationStatus.SHORTLISTED),
    ]
    ranked = [_result(2, 91, Recommendation.STRONG_FIT), _result(1, 47, Recommendation.MODERATE_FIT)]

    text = build_screening_report(
        job, compute_statistics(ranked), ranked, apps,
        candidate_names={10: "Ada", 11: "Bo", 12: "Cy"},
    )

    assert text.startswith("# Screening Report")
    assert "**3** applications | **2** screened | **1** awaiting screening" in text
    assert text.index("Bo") < text.index("Ada")
    assert "| 1 | Bo | 91 | Strong Fit | UNDER_REVIEW |" in text
    assert "- **Missing:** AWS" in text
    assert "## Not Screened" in text
    assert "Cy" in text.split("## Not Screened")[1]


def test_report_for_job_without_results(job):
    text = build_screening_report(job, compute_statistics([]), [], [])
    assert "## Top Candidates" not in text
    assert "## Not Screened" not in text
    assert "average score **0.0**" in text


def test_write_report(tmp_path, job):
    path = write_screening_report("# hi", job.id, tmp_path / "nested")
    assert path.name.startswith(f"screening_job{job.id}_")
    assert path.read_text(encoding="utf-8") == "# hi"
