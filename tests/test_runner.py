from pathlib import Path

import pytest

from resume_screener.bootstrap import build_context
from resume_screener.completion import MockCompletionService
from resume_screener.config import CONFIG_DIR, Settings
from resume_screener.models import ApplicationStatus, Recommendation
from resume_screener.runner import load_seed, populate, run

SEED = CONFIG_DIR / "seed.example.yaml"


@pytest.fixture
def settings(tmp_path):
    return Settings(reports_dir=tmp_path / "reports")


def test_populate_links_seed_records(settings):
    ctx = build_context(settings, completion=MockCompletionService())
    created = populate(ctx, load_seed(SEED))

    assert set(created["users"]) == {"rita", "arjun", "lena", "sam"}
    assert len(created["applications"]) == 4
    backend = created["jobs"]["backend"]
    assert backend.required_skills == ["Java", "SQL", "Spring Boot", "AWS"]
    assert created["resumes"]["arjun_cv"].parsed_data.total_experience_years == 4


def test_seed_with_duplicate_application_is_skipped(settings, tmp_path):
    seed = load_seed(SEED)
    seed["applications"].append({"job": "backend", "resume": "arjun_cv"})
    ctx = build_context(settings, completion=MockCompletionService())
    assert len(populate(ctx, seed)["applications"]) == 4


def test_offline_run_screens_every_application(settings):
    ctx = build_context(settings, completion=MockCompletionService())
    summary = run(SEED, ctx=ctx)

    assert summary["screened"] == 4
    assert summary["failed"] == 0
    assert len(summary["report_paths"]) == 2
    for p in summary["report_paths"]:
        assert Path(p).parent == settings.reports_dir
        assert Path(p).read_text(encoding="utf-8").startswith("# Screening Report")

    backend = next(j for j in summary["jobs"] if j["title"].startswith("Backend"))
    top = ctx.screening.get_top_candidates(backend["job_id"])
    assert top[0].recommendation == Recommendation.STRONG_FIT
    assert top[-1].recommendation == Recommendation.POOR_FIT
    assert "Arjun Mehta" in backend["report_preview"]
    assert "## Not Screened" not in backend["report_preview"]
    for app in ctx.store.list_applications_by_job(backend["job_id"]):
        assert app.status == ApplicationStatus.UNDER_REVIEW


def test_failed_screens_are_counted_and_reported(settings):
    # The first application screened gets an unusable reply
    ctx = build_context(settings, completion=MockCompletionService(["no json here"]))
    summary = run(SEED, ctx=ctx, write_report=False)

    assert summary["screened"] == 3
    assert summary["failed"] == 1
    assert summary["report_paths"] == []
    backend = summary["jobs"][0]
    assert backend["report_path"] is None
    assert "## Not Screened" in backend["report_preview"]
    assert "_PENDING_" in backend["report_preview"]
