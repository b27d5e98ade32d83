"""
Unit tests for the `RecoveryStore`.

These tests cover enrolment and sessions, the per-patient access rule, the
encrypted round trip to disk, recovery from a corrupt records file, the analytics
snapshot cache and the benchmark table.
"""
from datetime import date

import pytest

from conftest import make_assessments
from orthocompanion.analytics import AnalyticsSnapshot
from orthocompanion.encryption import get_encryptor, load_key
from orthocompanion.models import CheckIn, PainScore, PatientProfile
from orthocompanion.storage import DataAccessError, RecoveryStore


def _snapshot(weeks=1):
    return AnalyticsSnapshot(
        time_to_mcid_days=None,
        trajectory_slope_per_week=-2.5,
        pain_function_correlation=None,
        weeks_since_baseline=weeks,
        plateau_detected=False,
    )


def test_register_patient_and_sign_in(store):
    assert store.register_patient("p1", "Alex Rivera", "post_surgery") is True
    profile = store.sign_in("p1")
    assert isinstance(profile, PatientProfile)
    assert profile.first_name == "Alex"
    assert store.current_patient_id == "p1"
    store.sign_out()
    assert store.current_patient_id is None


def test_register_patient_rejects_duplicates_and_bad_treatment(store):
    assert store.register_patient("p1", "Alex", "chronic") is True
    assert store.register_patient("p1", "Alex Again", "chronic") is False
    assert store.register_patient("p2", "Sam", "astrology") == 'invalid_treatment'


def test_sign_in_unknown_patient_returns_none(store):
    assert store.sign_in("nobody") is None
    assert store.current_patient_id is None


def test_reads_require_signed_in_patient(store):
    store.register_patient("p1", "Alex", "chronic")
    with pytest.raises(DataAccessError):
        store.fetch_assessments("p1")


def test_reads_of_another_patient_are_rejected(patient_store):
    store, _ = patient_store
    store.register_patient("p2", "Sam", "chronic")
    with pytest.raises(DataAccessError):
        store.fetch_pain_scores("p2")


def test_first_assessment_becomes_baseline(patient_store):
    store, patient_id = patient_store
    first, second = make_assessments([60, 50])
    store.add_assessment(second)
    store.add_assessment(first)
    stored = store.fetch_assessments(patient_id)
    assert [a.percentage_score for a in stored] == [60.0, 50.0]
    assert [a.is_baseline for a in stored] == [False, True]


def test_add_pain_score_validates_range(patient_store):
    store, patient_id = patient_store
    with pytest.raises(ValueError):
        store.add_pain_score(PainScore(patient_id, "2025-01-06", 11))
    store.add_pain_score(PainScore(patient_id, "2025-01-08", 4))
    store.add_pain_score(PainScore(patient_id, "2025-01-06", 6))
    assert [s.pain_score for s in store.fetch_pain_scores(patient_id)] == [6, 4]


def test_data_round_trips_through_encrypted_file(patient_store, encryptor):
    store, patient_id = patient_store
    for assessment in make_assessments([62, 54]):
        store.add_assessment(assessment)

    reopened = RecoveryStore(data_file=store.data_file, encryptor=encryptor)
    reopened.sign_in(patient_id)
    assert [a.percentage_score for a in reopened.fetch_assessments(patient_id)] == [62.0, 54.0]
    with open(store.data_file) as f:
        assert "percentage_score" not in f.read()


def test_corrupt_file_starts_fresh(tmp_path, encryptor):
    data_file = tmp_path / "bad.json"
    data_file.write_text("invalid-data", encoding="utf-8")
    fresh = RecoveryStore(data_file=str(data_file), encryptor=encryptor)
    assert fresh._data["patients"] == {}
    assert len(fresh._data["benchmarks"]) == 8


def test_upsert_snapshot_overwrites_same_day(patient_store):
    store, patient_id = patient_store
    store.upsert_analytics_snapshot(patient_id, date(2025, 2, 1), _snapshot(weeks=3))
    store.upsert_analytics_snapshot(patient_id, date(2025, 2, 1), _snapshot(weeks=4))
    store.upsert_analytics_snapshot(patient_id, date(2025, 1, 25), _snapshot(weeks=2))
    history = store.fetch_analytics_history(patient_id)
    assert [(row["metric_date"], row["weeks_since_baseline"]) for row in history] == [
        ("2025-01-25", 2),
        ("2025-02-01", 4),
    ]


def test_fetch_benchmark_selects_latest_eligible_row(store):
    row = store.fetch_benchmark("post_surgery", 13)
    assert row.weeks_post_treatment == 12
    assert row.percentile_50 == 32.0
    assert store.fetch_benchmark("post_surgery", 100).weeks_post_treatment == 24
    assert store.fetch_benchmark("post_surgery", -1) is None
    assert store.fetch_benchmark("physical_therapy", 10) is None
    assert store.fetch_benchmark("unknown", 10) is None


def test_update_patient(patient_store):
    store, patient_id = patient_store
    assert store.update_patient(patient_id, {"full_name": "Alex R.", "treatment_type": "chronic"}) is True
    assert store.get_patient(patient_id).treatment_type == "chronic"
    assert store.update_patient(patient_id, {"treatment_type": "bogus"}) is False
    assert store.get_patient(patient_id).full_name == "Alex R."


def test_delete_patient_cascades(patient_store):
    store, patient_id = patient_store
    store.add_assessment(make_assessments([50])[0])
    store.upsert_analytics_snapshot(patient_id, date(2025, 2, 1), _snapshot())
    assert store.delete_patient(patient_id) is True
    assert patient_id not in store._data["patients"]
    assert store.sign_in(patient_id) is None


def test_chat_messages_sorted_and_cleared(patient_store):
    store, patient_id = patient_store
    assert store.clear_chat_messages(patient_id) is False
    store.add_chat_message(patient_id, {"timestamp": "2025-01-02T10:00:00", "sender": "patient", "text": "b"})
    store.add_chat_message(patient_id, {"timestamp": "2025-01-01T10:00:00", "sender": "assistant", "text": "a"})
    assert [m["text"] for m in store.get_chat_messages(patient_id)] == ["a", "b"]
    assert [m["text"] for m in store.get_chat_messages(patient_id, limit=1)] == ["b"]
    assert store.clear_chat_messages(patient_id) is True
    assert store.get_chat_messages(patient_id) == []


def test_get_encryptor_generates_then_reuses_key(tmp_path):
    key_file = str(tmp_path / "secret.key")
    first = get_encryptor(key_file)
    token = first.encrypt(b"odi")
    assert load_key(key_file)
    assert get_encryptor(key_file).decrypt(token) == b"odi"


def test_store_uses_key_file_encryptor_by_default(tmp_path, monkeypatch):
    monkeypatch.setattr("orthocompanion.storage.get_encryptor",
                        lambda: get_encryptor(str(tmp_path / "secret.key")))
    data_file = str(tmp_path / "records.json")
    RecoveryStore(data_file=data_file).register_patient("p1", "Alex", "chronic")
    assert "p1" in RecoveryStore(data_file=data_file)._data["patients"]


def test_check_ins_round_trip_in_date_order(patient_store):
    store, patient_id = patient_store
    store.add_check_in(CheckIn(patient_id, "2025-01-08", 3, mobility_score=70,
                               functional_activities={"walked": True, "exercises": True}))
    store.add_check_in(CheckIn(patient_id, "2025-01-07", 6, pain_location={"back": True},
                               pain_character=["Dull", "Stiff"], sleep_duration=5.5))

    check_ins = store.fetch_check_ins(patient_id)
    assert [c.pain_level for c in check_ins] == [6, 3]
    assert check_ins[0].pain_location == {"knee": False, "hip": False, "back": True}
    assert check_ins[0].pain_character == ["Dull", "Stiff"]
    assert check_ins[0].sleep_duration == 5.5
    assert check_ins[1].activities_completed == 2
    assert store.has_checked_in(patient_id, date(2025, 1, 8)) is True
    assert store.has_checked_in(patient_id, date(2025, 1, 9)) is False


@pytest.mark.parametrize("overrides", [
    {"pain_level": 11},
    {"mobility_score": 101},
    {"mood_rating": 0},
    {"sleep_quality": 6},
    {"sleep_duration": -1},
    {"pain_character": ["Tingling"]},
])
def test_add_check_in_rejects_out_of_range_answers(patient_store, overrides):
    store, patient_id = patient_store
    values = {"pain_level": 4}
    values.update(overrides)
    with pytest.raises(ValueError):
        store.add_check_in(CheckIn(patient_id, "2025-01-07", **values))
    assert store.fetch_check_ins(patient_id) == []


def test_check_ins_require_signed_in_patient(patient_store):
    store, patient_id = patient_store
    store.sign_out()
    with pytest.raises(DataAccessError):
        store.add_check_in(CheckIn(patient_id, "2025-01-07", 4))
