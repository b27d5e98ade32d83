"""
Unit tests for ODI questionnaire scoring.
"""
from datetime import date

import pytest

from orthocompanion import odi


def _responses(value):
    return {key: value for key in odi.SECTION_KEYS}


def test_questionnaire_has_ten_sections_of_six_statements():
    assert len(odi.ODI_SECTIONS) == 10
    assert all(len(options) == 6 for _, _, options in odi.ODI_SECTIONS)


def test_score_extremes():
    assert odi.score_responses(_responses(0)) == (0, 0.0)
    assert odi.score_responses(_responses(5)) == (50, 100.0)


def test_score_mixed_responses():
    responses = _responses(2)
    responses["walking"] = 4
    responses["sleeping"] = 1
    assert odi.score_responses(responses) == (21, 42.0)


def test_missing_section_raises():
    responses = _responses(1)
    responses["traveling"] = None
    with pytest.raises(ValueError, match="traveling"):
        odi.score_responses(responses)


def test_out_of_range_answer_raises():
    responses = _responses(1)
    responses["lifting"] = 6
    with pytest.raises(ValueError):
        odi.score_responses(responses)


@pytest.mark.parametrize("percentage, level", [
    (0, "minimal"),
    (20, "minimal"),
    (22, "moderate"),
    (40, "moderate"),
    (60, "severe"),
    (80, "crippled"),
    (82, "bed_bound"),
])
def test_disability_levels(percentage, level):
    assert odi.disability_level(percentage) == level


def test_build_assessment():
    assessment = odi.build_assessment("p1", _responses(3), assessment_date=date(2025, 3, 1))
    assert assessment.patient_id == "p1"
    assert assessment.assessment_date == date(2025, 3, 1)
    assert assessment.total_score == 30
    assert assessment.percentage_score == 60.0
    assert assessment.disability_level == "severe"
    assert assessment.section_scores["pain_intensity"] == 3
    assert assessment.is_baseline is False
