"""
This module defines the Oswestry Disability Index (ODI) questionnaire and its scoring.

The ODI has ten sections, each answered by choosing one of six statements scored
0 (no disability) to 5 (maximum disability). The total (0-50) is reported as a
percentage, and the percentage is banded into a disability level.
"""
# orthocompanion/odi.py

from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional, Tuple

from orthocompanion.models import OdiAssessment

MAX_SECTION_SCORE = 5

# (section key, title, statements ordered from score 0 to score 5)
ODI_SECTIONS: List[Tuple[str, str, List[str]]] = [
    ("pain_intensity", "Pain Intensity", [
        "I have no pain at the moment",
        "The pain is very mild at the moment",
        "The pain is moderate at the moment",
        "The pain is fairly severe at the moment",
        "The pain is very severe at the moment",
        "The pain is the worst imaginable at the moment",
    ]),
    ("personal_care", "Personal Care (Washing, Dressing, etc.)", [
        "I can look after myself normally without causing extra pain",
        "I can look after myself normally but it causes extra pain",
        "It is painful to look after myself and I am slow and careful",
        "I need some help but manage most of my personal care",
        "I need help every day in most aspects of self care",
        "I do not get dressed, wash with difficulty, and stay in bed",
    ]),
    ("lifting", "Lifting", [
        "I can lift heavy weights without extra pain",
        "I can lift heavy weights but it gives extra pain",
        "Pain prevents me from lifting heavy weights off the floor, but I can manage if they are conveniently placed",
        "Pain prevents me from lifting heavy weights, but I can manage light to medium weights if they are "
        "conveniently positioned",
        "I can lift very light weights",
        "I cannot lift or carry anything",
    ]),
    ("walking", "Walking", [
        "Pain does not prevent me walking any distance",
        "Pain prevents me from walking more than 1 mile",
        "Pain prevents me from walking more than 1/2 mile",
        "Pain prevents me from walking more than 100 yards",
        "I can only walk using a stick or crutches",
        "I am in bed most of the time",
    ]),
    ("sitting", "Sitting", [
        "I can sit in any chair as long as I like",
        "I can only sit in my favorite chair as long as I like",
        "Pain prevents me sitting more than one hour",
        "Pain prevents me from sitting more than 30 minutes",
        "Pain prevents me from sitting more than 10 minutes",
        "Pain prevents me from sitting at all",
    ]),
    ("standing", "Standing", [
        "I can stand as long as I want without extra pain",
        "I can stand as long as I want but it gives me extra pain",
        "Pain prevents me from standing for more than 1 hour",
        "Pain prevents me from standing for more than 30 minutes",
        "Pain prevents me from standing for more than 10 minutes",
        "Pain prevents me from standing at all",
    ]),
    ("sleeping", "Sleeping", [
        "My sleep is never disturbed by pain",
        "My sleep is occasionally disturbed by pain",
        "Because of pain I have less than 6 hours sleep",
        "Because of pain I have less than 4 hours sleep",
        "Because of pain I have less than 2 hours sleep",
        "Pain prevents me from sleeping at all",
    ]),
    ("sex_life", "Sex Life (if applicable)", [
        "My sex life is normal and causes no extra pain",
        "My sex life is normal but causes some extra pain",
        "My sex life is nearly normal but is very painful",
        "My sex life is severely restricted by pain",
        "My sex life is nearly absent because of pain",
        "Pain prevents any sex life at all",
    ]),
    ("social_life", "Social Life", [
        "My social life is normal and gives me no extra pain",
        "My social life is normal but increases the degree of pain",
        "Pain has no significant effect on my social life apart from limiting my more energetic interests",
        "Pain has restricted my social life and I do not go out as often",
        "Pain has restricted my social life to my home",
        "I have no social life because of pain",
    ]),
    ("traveling", "Traveling", [
        "I can travel anywhere without pain",
        "I can travel anywhere but it gives me extra pain",
        "Pain is bad but I manage journeys over two hours",
        "Pain restricts me to journeys of less than one hour",
        "Pain restricts me to short necessary journeys under 30 minutes",
        "Pain prevents me from traveling except to receive treatment",
    ]),
]

SECTION_KEYS = [key for key, _, _ in ODI_SECTIONS]
MAX_TOTAL_SCORE = MAX_SECTION_SCORE * len(ODI_SECTIONS)

# Upper percentage bound (inclusive) for each disability level.
DISABILITY_LEVELS = (
    (20, "minimal"),
    (40, "moderate"),
    (60, "severe"),
    (80, "crippled"),
)


def score_responses(responses: Dict[str, int]) -> Tuple[int, float]:
    """Scores a completed questionnaire.

    Args:
        responses: Section key to chosen statement index (0-5).

    Returns:
        The total score (0-50) and the percentage score (0-100).

    Raises:
        ValueError: If a section is unanswered or an answer is out of range.
    """
    missing = [key for key in SECTION_KEYS if responses.get(key) is None]
    if missing:
        raise ValueError(f"Please answer all sections before submitting (missing: {', '.join(missing)})")
    total = 0
    for key in SECTION_KEYS:
        value = int(responses[key])
        if not 0 <= value <= MAX_SECTION_SCORE:
            raise ValueError(f"Answer for {key} must be between 0 and {MAX_SECTION_SCORE}, got {value}")
        total += value
    return total, total * 100 / MAX_TOTAL_SCORE


def disability_level(percentage: float) -> str:
    for upper_bound, level in DISABILITY_LEVELS:
        if percentage <= upper_bound:
            return level
    return "bed_bound"


def build_assessment(patient_id: str, responses: Dict[str, int],
                     assessment_date: Optional[date] = None) -> OdiAssessment:
    """Scores `responses` and wraps them in an `OdiAssessment` dated today by default."""
    total, percentage = score_responses(responses)
    return OdiAssessment(
        patient_id=patient_id,
        assessment_date=assessment_date or date.today(),
        percentage_score=percentage,
        section_scores={key: int(responses[key]) for key in SECTION_KEYS},
        total_score=total,
        disability_level=disability_level(percentage),
    )
