"""
Pytest configuration file for the OrthoCompanion test suite.

This file defines shared fixtures used across the test files:
- A Fernet encryptor with a throwaway key, so tests never touch the production key.
- An isolated `RecoveryStore` backed by a temporary records file.
- A store with an enrolled, signed-in patient.
- Small builders for assessment and pain-score series.
"""
from datetime import date, timedelta

import pytest
from cryptography.fernet import Fernet

from orthocompanion.models import OdiAssessment, PainScore
from orthocompanion.storage import RecoveryStore

START = date(2025, 1, 6)


def make_assessments(scores, start=START, step_days=7, patient_id="p1", baseline_index=None):
    """
    Builds a series of ODI assessments, one every `step_days` days.

    Args:
        scores (list): Percentage scores in chronological order.
        start (date): Date of the first assessment.
        step_days (int or list): Spacing between assessments, or explicit day offsets.
        patient_id (str): Owner of the assessments.
        baseline_index (int, optional): Index of the assessment flagged as baseline.

    Returns:
        list: `OdiAssessment` objects.
    """
    if isinstance(step_days, int):
        offsets = [i * step_days for i in range(len(scores))]
    else:
        offsets = list(step_days)
    return [
        OdiAssessment(
            patient_id=patient_id,
            assessment_date=start + timedelta(days=offset),
            percentage_score=score,
            is_baseline=(index == baseline_index),
        )
        for index, (score, offset) in enumerate(zip(scores, offsets))
    ]


def make_pain_scores(scores, offsets, start=START, patient_id="p1"):
    """Builds VAS readings on `start + offset` days."""
    return [
        PainScore(patient_id=patient_id, recorded_date=start + timedelta(days=offset), pain_score=score)
        for score, offset in zip(scores, offsets)
    ]


@pytest.fixture
def encryptor():
    """Provides a Fernet instance with a fresh key for test isolation."""
    return Fernet(Fernet.generate_key())


@pytest.fixture
def store(tmp_path, encryptor):
    """Provides an empty `RecoveryStore` writing to a temporary file."""
    return RecoveryStore(data_file=str(tmp_path / "records.json"), encryptor=encryptor)


@pytest.fixture
def patient_store(store):
    """
    Provides a store with patient 'p1' enrolled and signed in.

    Yields:
        tuple: The `RecoveryStore` and the patient id.
    """
    assert store.register_patient("p1", "Alex Rivera", "post_surgery", condition="L4-L5 discectomy",
                                  surgery_date="2025-01-01") is True
    store.sign_in("p1")
    return store, "p1"
