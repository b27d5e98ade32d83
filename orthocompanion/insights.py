"""
Plain-language dashboard insights built from an analytics snapshot.

Every field of `AnalyticsSnapshot` may be missing while a patient is early in
recovery; each missing value turns into a "not enough data yet" message rather
than an error.
"""
# orthocompanion/insights.py

from dataclasses import dataclass
from typing import List, Optional

from orthocompanion.analytics import MCID_THRESHOLD, AnalyticsSnapshot, BenchmarkComparison

STRONG_CORRELATION = 0.5

BENCHMARK_MESSAGES = {
    'excellent': ("Outstanding progress!",
                  "Your recovery is in the top 25% compared to similar patients at this stage."),
    'above_average': ("Great progress!",
                      "You're performing better than average for patients with similar treatment "
                      "at {weeks} weeks."),
    'average': ("On track:",
                "Your recovery is progressing similarly to other patients with your treatment type."),
    'below_average': ("Opportunity for improvement:",
                      "Your scores are higher than average. Discuss your exercise adherence and pain "
                      "management with your care team."),
}


@dataclass(frozen=True)
class Insight:
    """One dashboard message. `kind` is success, info or warning."""
    kind: str
    title: str
    message: str


def _mcid_insight(snapshot: AnalyticsSnapshot) -> Insight:
    days = snapshot.time_to_mcid_days
    if days is None:
        return Insight("info", "Time to MCID",
                       "MCID not yet achieved. Keep tracking your progress - meaningful improvement "
                       "typically occurs within 8-12 weeks.")
    return Insight("success", "Time to MCID",
                   f"You achieved meaningful improvement ({MCID_THRESHOLD}-point ODI reduction) in {days} days "
                   f"({days // 7} weeks).")


def _trajectory_insight(snapshot: AnalyticsSnapshot) -> Insight:
    slope = snapshot.trajectory_slope_per_week
    if slope is None:
        return Insight("info", "Recovery Trajectory", "Complete more assessments to see your recovery trajectory.")
    if slope < 0:
        return Insight("success", "Recovery Trajectory",
                       f"Your disability score is improving by {abs(slope):.1f}% per week.")
    if slope == 0:
        return Insight("info", "Recovery Trajectory", "Your disability score has been stable over recent assessments.")
    return Insight("warning", "Recovery Trajectory",
                   f"Your scores show {abs(slope):.1f}% of change per week in the wrong direction.")


def build_insights(snapshot: AnalyticsSnapshot, comparison: Optional[BenchmarkComparison] = None) -> List[Insight]:
    """Builds the ordered list of dashboard insights.

    Args:
        snapshot: The patient's computed analytics.
        comparison: The benchmark comparison, if one is available.
    """
    insights = [_mcid_insight(snapshot), _trajectory_insight(snapshot)]

    if snapshot.plateau_detected:
        insights.append(Insight(
            "warning", "Plateau detected",
            "Your progress has slowed. Consider discussing with your physical therapist about adjusting "
            "your exercise program."))

    correlation = snapshot.pain_function_correlation
    if correlation is not None and abs(correlation) >= STRONG_CORRELATION:
        direction = "rises and falls with" if correlation > 0 else "moves against"
        insights.append(Insight(
            "info", "Pain and function",
            f"Your disability score {direction} your pain level (r = {correlation:.2f})."))

    if comparison is not None:
        title, template = BENCHMARK_MESSAGES[comparison.interpretation]
        insights.append(Insight("info", title, template.format(weeks=snapshot.weeks_since_baseline)))
    return insights
