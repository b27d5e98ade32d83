"""
Outcomes analytics for ODI recovery tracking.

Turns a patient's Oswestry Disability Index history and VAS pain readings into the
progress signals shown on the dashboard:
- Time to MCID (days until a 10-point improvement over baseline)
- Trajectory slope (ODI points per week over the last four assessments)
- Pain/function correlation (Pearson r between ODI and rescaled VAS)
- Weeks since baseline
- Plateau detection (last four assessments all within 5 points of each other)
- Population benchmark banding

The computations are pure functions over the fetched series. `compute_analytics`
wraps them with the storage round trip: fetch both series, summarise, then a
best-effort write of the snapshot that never affects the returned result.
"""
# orthocompanion/analytics.py

import logging
import math
from dataclasses import asdict, dataclass
from datetime import date
from typing import Iterable, List, Optional, Protocol, Sequence, Tuple

import numpy as np

from orthocompanion.models import BenchmarkRow, OdiAssessment, PainScore
from orthocompanion.storage import DataAccessError

logger = logging.getLogger(__name__)

MCID_THRESHOLD = 10
TRAJECTORY_WINDOW = 4
PLATEAU_WINDOW = 4
PLATEAU_THRESHOLD = 5
MAX_PAIRING_GAP_DAYS = 3
MIN_CORRELATION_POINTS = 3
PAIN_SCALE_FACTOR = 10

# (upper percentile bound attribute, reported percentile, interpretation)
BENCHMARK_BANDS = (
    ('percentile_25', 25, 'excellent'),
    ('percentile_50', 50, 'above_average'),
    ('percentile_75', 75, 'average'),
)
WORST_BAND = (90, 'below_average')


class AnalyticsStore(Protocol):
    """Storage operations the analytics engine depends on."""

    def fetch_assessments(self, patient_id: str) -> List[OdiAssessment]: ...

    def fetch_pain_scores(self, patient_id: str) -> List[PainScore]: ...

    def upsert_analytics_snapshot(self, patient_id: str, metric_date: date, snapshot: "AnalyticsSnapshot") -> None: ...

    def fetch_benchmark(self, treatment_type: str, max_weeks: int) -> Optional[BenchmarkRow]: ...


@dataclass(frozen=True)
class AnalyticsSnapshot:
    """Derived progress metrics for one patient on one day"""
    time_to_mcid_days: Optional[int]
    trajectory_slope_per_week: Optional[float]
    pain_function_correlation: Optional[float]
    weeks_since_baseline: int
    plateau_detected: bool

    def to_record(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class BenchmarkComparison:
    """Where a score falls against the population benchmark"""
    mean: float
    percentile: int
    interpretation: str


def sort_assessments(assessments: Iterable[OdiAssessment]) -> List[OdiAssessment]:
    return sorted(assessments, key=lambda a: a.assessment_date)


def sort_pain_scores(pain_scores: Iterable[PainScore]) -> List[PainScore]:
    return sorted(pain_scores, key=lambda s: s.recorded_date)


def find_baseline(assessments: Sequence[OdiAssessment]) -> Optional[OdiAssessment]:
    """Returns the first flagged baseline, falling back to the earliest assessment.

    Args:
        assessments: Assessments sorted ascending by date.
    """
    if not assessments:
        return None
    for assessment in assessments:
        if assessment.is_baseline:
            return assessment
    return assessments[0]


def _days_between(start: date, end: date) -> float:
    return (end - start).total_seconds() / 86400


def time_to_mcid_days(assessments: Sequence[OdiAssessment]) -> Optional[int]:
    """Days from baseline to the first assessment that improves by `MCID_THRESHOLD` points.

    Returns None with fewer than two assessments or when no assessment reaches the
    threshold. Records dated before a flagged baseline are not scanned.
    """
    if len(assessments) < 2:
        return None
    ordered = sort_assessments(assessments)
    baseline = find_baseline(ordered)

    for assessment in ordered:
        if assessment.assessment_date < baseline.assessment_date:
            continue
        improvement = baseline.percentage_score - assessment.percentage_score
        if improvement >= MCID_THRESHOLD:
            return math.ceil(_days_between(baseline.assessment_date, assessment.assessment_date))
    return None


def trajectory_slope_per_week(assessments: Sequence[OdiAssessment]) -> Optional[float]:
    """Least-squares ODI change per week over the most recent assessments.

    The slope is fitted against the index of each point in the window and then
    rescaled by the calendar time the window spans. Negative means improving.
    Returns None when the window has fewer than two points or spans no time.
    """
    if len(assessments) < 2:
        return None
    window = sort_assessments(assessments)[-TRAJECTORY_WINDOW:]
    n = len(window)
    if n < 2:
        return None

    scores = np.array([assessment.percentage_score for assessment in window], dtype=float)
    slope = float(np.polyfit(np.arange(n), scores, 1)[0])

    weeks_elapsed = _days_between(window[0].assessment_date, window[-1].assessment_date) / 7
    if weeks_elapsed <= 0:
        logger.debug("Trajectory window spans no time, slope unavailable")
        return None
    return slope * (n - 1) / weeks_elapsed


def _nearest_pain_score(target: date, pain_scores: Sequence[PainScore]) -> PainScore:
    # min() keeps the first of equally distant readings, so the earlier one wins.
    return min(pain_scores, key=lambda s: abs(_days_between(target, s.recorded_date)))


def match_pain_scores(assessments: Sequence[OdiAssessment],
                      pain_scores: Sequence[PainScore]) -> List[Tuple[float, float]]:
    """Pairs each assessment with its nearest pain reading on the 0-100 scale.

    Pairs more than `MAX_PAIRING_GAP_DAYS` apart are dropped.

    Returns:
        A list of (percentage_score, rescaled_pain_score) tuples in assessment order.
    """
    if not pain_scores:
        return []
    ordered_pain = sort_pain_scores(pain_scores)
    pairs = []
    for assessment in sort_assessments(assessments):
        nearest = _nearest_pain_score(assessment.assessment_date, ordered_pain)
        gap = abs(_days_between(assessment.assessment_date, nearest.recorded_date))
        if gap <= MAX_PAIRING_GAP_DAYS:
            pairs.append((assessment.percentage_score, nearest.pain_score * PAIN_SCALE_FACTOR))
    return pairs


def pearson_correlation(pairs: Sequence[Tuple[float, float]]) -> Optional[float]:
    """Pearson r for (x, y) pairs, or None when either series has no variance."""
    if len(pairs) < 2:
        return None
    xs = np.array([x for x, _ in pairs], dtype=float)
    ys = np.array([y for _, y in pairs], dtype=float)
    # Constant series are detected on the values, not on a rounded variance.
    if np.ptp(xs) == 0 or np.ptp(ys) == 0:
        return None
    r = float(np.corrcoef(xs, ys)[0, 1])
    return max(-1.0, min(1.0, r))


def pain_function_correlation(assessments: Sequence[OdiAssessment],
                              pain_scores: Sequence[PainScore]) -> Optional[float]:
    """Correlation between ODI percentage and time-matched VAS pain readings."""
    if len(assessments) < MIN_CORRELATION_POINTS or len(pain_scores) < MIN_CORRELATION_POINTS:
        return None
    pairs = match_pain_scores(assessments, pain_scores)
    if len(pairs) < MIN_CORRELATION_POINTS:
        return None
    return pearson_correlation(pairs)


def weeks_since_baseline(assessments: Sequence[OdiAssessment], today: Optional[date] = None) -> int:
    """Whole weeks elapsed since the baseline assessment, never negative."""
    if not assessments:
        return 0
    baseline = find_baseline(sort_assessments(assessments))
    today = today or date.today()
    weeks = math.floor(_days_between(baseline.assessment_date, today) / 7)
    return max(0, weeks)


def detect_plateau(assessments: Sequence[OdiAssessment]) -> bool:
    """True when each step between the last four scores is under `PLATEAU_THRESHOLD`."""
    if len(assessments) < PLATEAU_WINDOW:
        return False
    recent = sort_assessments(assessments)[-PLATEAU_WINDOW:]
    changes = [
        abs(current.percentage_score - previous.percentage_score)
        for previous, current in zip(recent, recent[1:])
    ]
    return all(change < PLATEAU_THRESHOLD for change in changes)


def summarize(assessments: Sequence[OdiAssessment], pain_scores: Sequence[PainScore],
              today: Optional[date] = None) -> AnalyticsSnapshot:
    """Computes every snapshot field from the two series without touching storage."""
    ordered = sort_assessments(assessments)
    ordered_pain = sort_pain_scores(pain_scores)
    return AnalyticsSnapshot(
        time_to_mcid_days=time_to_mcid_days(ordered),
        trajectory_slope_per_week=trajectory_slope_per_week(ordered),
        pain_function_correlation=pain_function_correlation(ordered, ordered_pain),
        weeks_since_baseline=weeks_since_baseline(ordered, today=today),
        plateau_detected=detect_plateau(ordered),
    )


def save_snapshot(store: AnalyticsStore, patient_id: str, snapshot: AnalyticsSnapshot, metric_date: date) -> bool:
    """Attempts to persist a snapshot. Failures are logged and reported, never raised.

    Returns:
        bool: True if the write succeeded.
    """
    try:
        store.upsert_analytics_snapshot(patient_id, metric_date, snapshot)
    except Exception:
        logger.exception("Could not save analytics snapshot for patient %s", patient_id)
        return False
    return True


def compute_analytics(store: AnalyticsStore, patient_id: str, today: Optional[date] = None) -> AnalyticsSnapshot:
    """Fetches a patient's series, computes the snapshot and caches it in storage.

    Args:
        store: The storage collaborator.
        patient_id: The patient to analyse.
        today: Reference date for elapsed-time metrics and the snapshot key.

    Raises:
        DataAccessError: If either series cannot be fetched.
    """
    today = today or date.today()
    assessments = store.fetch_assessments(patient_id)
    pain_scores = store.fetch_pain_scores(patient_id)

    snapshot = summarize(assessments, pain_scores, today=today)
    logger.debug("Analytics for %s on %s: %s", patient_id, today.isoformat(), snapshot)
    save_snapshot(store, patient_id, snapshot, today)
    return snapshot


def classify_against_benchmark(score: float, row: BenchmarkRow) -> BenchmarkComparison:
    """Bands a score against a benchmark row. Lower ODI scores get better bands."""
    for attribute, percentile, interpretation in BENCHMARK_BANDS:
        if score <= getattr(row, attribute):
            return BenchmarkComparison(mean=row.mean_score, percentile=percentile, interpretation=interpretation)
    percentile, interpretation = WORST_BAND
    return BenchmarkComparison(mean=row.mean_score, percentile=percentile, interpretation=interpretation)


def get_benchmark_comparison(store: AnalyticsStore, score: float, treatment_type: str,
                             weeks_since_treatment: int) -> Optional[BenchmarkComparison]:
    """Compares a score with the latest benchmark row at or before `weeks_since_treatment`.

    Returns:
        The comparison, or None if no benchmark row applies or the lookup fails.
    """
    try:
        row = store.fetch_benchmark(treatment_type, weeks_since_treatment)
    except DataAccessError:
        logger.exception("Error fetching benchmark for %s at week %s", treatment_type, weeks_since_treatment)
        return None
    if row is None:
        logger.info("No %s benchmark at or before week %s", treatment_type, weeks_since_treatment)
        return None
    return classify_against_benchmark(score, row)


def benchmark_treatment_for(treatment_type: Optional[str]) -> str:
    """Maps a patient's treatment type onto a benchmark table."""
    return 'post_surgery' if treatment_type == 'post_surgery' else 'conservative'
