from resume_screener.models import Recommendation, ScreeningResult
from resume_screener.statistics import compute_statistics


def _r(score, tier):
    return ScreeningResult(
        id=None, application_id=score, job_id=1, resume_id=1,
        match_score=score, recommendation=tier,
    )


def test_no_results_gives_zeros():
    stats = compute_statistics([])
    assert stats.total_screened == 0
    assert stats.average_score == 0.0
    assert (stats.strong_fit, stats.good_fit, stats.moderate_fit, stats.poor_fit) == (0, 0, 0, 0)


def test_counts_and_mean():
    stats = compute_statistics([
        _r(90, Recommendation.STRONG_FIT),
        _r(65, Recommendation.GOOD_FIT),
        _r(61, Recommendation.GOOD_FIT),
        _r(20, Recommendation.POOR_FIT),
    ])
    assert stats.total_screened == 4
    assert stats.strong_fit == 1
    assert stats.good_fit == 2
    assert stats.moderate_fit == 0
    assert stats.poor_fit == 1
    assert stats.average_score == 59.0


def test_cached_statistics_follow_new_screens(ctx, completion, job, recruiter, make_candidate, analysis):
    assert ctx.screening.get_screening_statistics(job.id).total_screened == 0

    apps = []
    for _ in range(2):
        actor, resume = make_candidate()
        apps.append(ctx.applications.apply(job.id, resume.id, None, actor))

    completion.queue(analysis(85))
    ctx.screening.screen_application(apps[0])
    stats = ctx.screening.get_screening_statistics(job.id)
    assert (stats.total_screened, stats.strong_fit, stats.average_score) == (1, 1, 85.0)

    completion.queue(analysis(44.9))
    ctx.screening.batch_screen_applications(job.id, recruiter)
    stats = ctx.screening.get_screening_statistics(job.id)
    assert stats.total_screened == 2
    assert stats.moderate_fit == 1
    assert stats.average_score == 64.5
