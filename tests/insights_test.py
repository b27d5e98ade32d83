"""
Unit tests for dashboard insight messages.
"""
from orthocompanion.analytics import AnalyticsSnapshot, BenchmarkComparison
from orthocompanion.insights import build_insights


def _snapshot(**overrides):
    values = dict(
        time_to_mcid_days=None,
        trajectory_slope_per_week=None,
        pain_function_correlation=None,
        weeks_since_baseline=0,
        plateau_detected=False,
    )
    values.update(overrides)
    return AnalyticsSnapshot(**values)


def test_empty_snapshot_reports_not_enough_data():
    insights = build_insights(_snapshot())
    assert [i.title for i in insights] == ["Time to MCID", "Recovery Trajectory"]
    assert "not yet achieved" in insights[0].message
    assert "Complete more assessments" in insights[1].message
    assert all(i.kind == "info" for i in insights)


def test_full_snapshot_messages():
    snapshot = _snapshot(
        time_to_mcid_days=30,
        trajectory_slope_per_week=-2.5,
        pain_function_correlation=0.82,
        weeks_since_baseline=6,
        plateau_detected=True,
    )
    comparison = BenchmarkComparison(mean=46.0, percentile=50, interpretation="above_average")
    insights = build_insights(snapshot, comparison)

    by_title = {i.title: i for i in insights}
    assert "30 days (4 weeks)" in by_title["Time to MCID"].message
    assert by_title["Recovery Trajectory"].kind == "success"
    assert "2.5% per week" in by_title["Recovery Trajectory"].message
    assert by_title["Plateau detected"].kind == "warning"
    assert "r = 0.82" in by_title["Pain and function"].message
    assert "at 6 weeks" in by_title["Great progress!"].message


def test_worsening_trajectory_is_a_warning():
    insights = build_insights(_snapshot(trajectory_slope_per_week=3.0))
    assert insights[1].kind == "warning"


def test_weak_correlation_is_not_reported():
    insights = build_insights(_snapshot(pain_function_correlation=0.2))
    assert "Pain and function" not in [i.title for i in insights]


def test_flat_trajectory_is_reported_as_stable():
    insight = build_insights(_snapshot(trajectory_slope_per_week=0.0))[1]
    assert insight.kind == "info"
    assert "stable" in insight.message
    assert "wrong direction" not in insight.message
