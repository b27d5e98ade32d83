"""
This module provides data management for the OrthoCompanion application.

It defines the `RecoveryStore` class, which is responsible for:
- Loading and saving application data to an encrypted JSON file (`records.json`).
- Enrolling patients and tracking the signed-in patient.
- Restricting every per-patient read and write to the signed-in patient.
- Storing ODI assessments, VAS pain scores, daily check-ins, assistant chat history and cached
  analytics snapshots.
- Serving the read-only population benchmark table.
"""
# orthocompanion/storage.py

import json
import logging
from datetime import date, datetime

from cryptography.fernet import InvalidToken

from orthocompanion import config
from orthocompanion.encryption import get_encryptor
from orthocompanion.models import (
    BENCHMARK_TREATMENT_TYPES,
    PAIN_CHARACTERS,
    TREATMENT_TYPES,
    BenchmarkRow,
    CheckIn,
    OdiAssessment,
    PainScore,
    PatientProfile,
)

logger = logging.getLogger(__name__)

# Published post-surgery ODI reference cohort.
DEFAULT_BENCHMARKS = [
    {"treatment_type": "post_surgery", "weeks_post_treatment": 0, "mean_score": 65.0, "std_dev_score": 12.5,
     "percentile_25": 58.0, "percentile_50": 66.0, "percentile_75": 74.0, "sample_size": 250},
    {"treatment_type": "post_surgery", "weeks_post_treatment": 2, "mean_score": 58.0, "std_dev_score": 11.8,
     "percentile_25": 50.0, "percentile_50": 58.0, "percentile_75": 66.0, "sample_size": 248},
    {"treatment_type": "post_surgery", "weeks_post_treatment": 4, "mean_score": 52.0, "std_dev_score": 11.2,
     "percentile_25": 44.0, "percentile_50": 52.0, "percentile_75": 60.0, "sample_size": 245},
    {"treatment_type": "post_surgery", "weeks_post_treatment": 6, "mean_score": 46.0, "std_dev_score": 10.5,
     "percentile_25": 38.0, "percentile_50": 46.0, "percentile_75": 54.0, "sample_size": 242},
    {"treatment_type": "post_surgery", "weeks_post_treatment": 8, "mean_score": 40.0, "std_dev_score": 9.8,
     "percentile_25": 33.0, "percentile_50": 40.0, "percentile_75": 48.0, "sample_size": 238},
    {"treatment_type": "post_surgery", "weeks_post_treatment": 12, "mean_score": 32.0, "std_dev_score": 9.2,
     "percentile_25": 26.0, "percentile_50": 32.0, "percentile_75": 39.0, "sample_size": 235},
    {"treatment_type": "post_surgery", "weeks_post_treatment": 16, "mean_score": 26.0, "std_dev_score": 8.5,
     "percentile_25": 20.0, "percentile_50": 26.0, "percentile_75": 32.0, "sample_size": 230},
    {"treatment_type": "post_surgery", "weeks_post_treatment": 24, "mean_score": 18.0, "std_dev_score": 7.8,
     "percentile_25": 13.0, "percentile_50": 18.0, "percentile_75": 24.0, "sample_size": 225},
]


# (field, lowest, highest) for the numeric answers of a daily check-in.
CHECK_IN_RANGES = (
    ('pain_level', 0, 10),
    ('mobility_score', 0, 100),
    ('mood_rating', 1, 5),
    ('sleep_quality', 1, 5),
    ('sleep_duration', 0, 24),
)


class DataAccessError(Exception):
    """Raised when patient data cannot be read or written by the current session."""


def _empty_patient_record(profile: dict) -> dict:
    return {
        "profile": profile,
        "odi_assessments": [],
        "pain_scores": [],
        "check_ins": [],
        "analytics_metrics": {},
        "chat": [],
    }


class RecoveryStore:
    """Manages all persisted data for the OrthoCompanion application."""
    def __init__(self, data_file=None, encryptor=None):
        """Initializes the store and loads data from disk.

        Args:
            data_file (str, optional): Path of the encrypted records file. Defaults to `config.DATA_FILE`.
            encryptor (optional): Object with `encrypt`/`decrypt`. Defaults to a Fernet built from `config.KEY_FILE`.
        """
        self.data_file = data_file or config.DATA_FILE
        self._encryptor = encryptor or get_encryptor()
        self.current_patient_id = None
        self._data = self._load_data()
        self._ensure_defaults()

    def _load_data(self):
        """Loads and decrypts data from the records file.

        Returns:
            dict: The loaded data, or a new dataset if the file doesn't exist or is corrupt.
        """
        try:
            with open(self.data_file, 'r') as f:
                encrypted_data = f.read()
            if not encrypted_data:
                return {"patients": {}}
            decrypted_data = self._encryptor.decrypt(encrypted_data.encode()).decode()
            data = json.loads(decrypted_data)
        except (FileNotFoundError, InvalidToken, json.JSONDecodeError) as e:
            logger.warning("Could not load data file %s (%r), starting with a new dataset", self.data_file, e)
            return {"patients": {}}
        data.setdefault('patients', {})
        return data

    def _save_data(self):
        """Encrypts and saves the current data to the records file."""
        data_to_encrypt = json.dumps(self._data, indent=4)
        encrypted_data = self._encryptor.encrypt(data_to_encrypt.encode())
        with open(self.data_file, 'w') as f:
            f.write(encrypted_data.decode())

    def _ensure_defaults(self):
        """Ensures patient records carry every section and the benchmark table is seeded."""
        for patient in self._data.setdefault('patients', {}).values():
            patient.setdefault('odi_assessments', [])
            patient.setdefault('pain_scores', [])
            patient.setdefault('check_ins', [])
            patient.setdefault('analytics_metrics', {})
            patient.setdefault('chat', [])
        if not self._data.get('benchmarks'):
            self._data['benchmarks'] = [dict(row) for row in DEFAULT_BENCHMARKS]

    def _patient_record(self, patient_id: str) -> dict:
        """Returns the stored record for `patient_id` after checking the session may access it.

        Raises:
            DataAccessError: If no patient is signed in, a different patient is signed in,
                or the patient does not exist.
        """
        if self.current_patient_id is None:
            raise DataAccessError("No patient is signed in")
        if self.current_patient_id != patient_id:
            raise DataAccessError(f"Session for {self.current_patient_id} may not access {patient_id}")
        record = self._data['patients'].get(patient_id)
        if record is None:
            raise DataAccessError(f"Unknown patient {patient_id}")
        return record

    # Enrolment and session

    def register_patient(self, patient_id, full_name, treatment_type, condition="", surgery_date=None):
        """Enrols a new patient.

        Returns:
            str or bool: 'invalid_treatment', False if the patient already exists, True for success.
        """
        if treatment_type not in TREATMENT_TYPES:
            return 'invalid_treatment'
        if patient_id in self._data['patients']:
            return False
        profile = PatientProfile(patient_id, full_name, treatment_type, condition=condition, surgery_date=surgery_date)
        self._data['patients'][patient_id] = _empty_patient_record(profile.to_record())
        self._save_data()
        logger.info("Registered patient %s (%s)", patient_id, treatment_type)
        return True

    def sign_in(self, patient_id):
        """Starts a session for an enrolled patient.

        Returns:
            PatientProfile or None: The patient's profile, or None if not enrolled.
        """
        record = self._data['patients'].get(patient_id)
        if not record:
            return None
        self.current_patient_id = patient_id
        return PatientProfile.from_record(record['profile'])

    def sign_out(self):
        """Ends the current session."""
        self.current_patient_id = None

    def get_patient(self, patient_id) -> PatientProfile:
        return PatientProfile.from_record(self._patient_record(patient_id)['profile'])

    def update_patient(self, patient_id, details: dict) -> bool:
        """Updates profile fields. Unknown treatment types are rejected.

        Returns:
            bool: True if the profile was updated.
        """
        profile = self._patient_record(patient_id)['profile']
        treatment_type = details.get('treatment_type', profile.get('treatment_type'))
        if treatment_type not in TREATMENT_TYPES:
            return False
        for field in ('full_name', 'condition', 'surgery_date'):
            if field in details:
                profile[field] = details[field]
        profile['treatment_type'] = treatment_type
        self._save_data()
        return True

    def delete_patient(self, patient_id) -> bool:
        """Deletes a patient together with every record they own and ends their session."""
        self._patient_record(patient_id)
        del self._data['patients'][patient_id]
        self.current_patient_id = None
        self._save_data()
        logger.info("Deleted patient %s and all associated records", patient_id)
        return True

    # Assessments and pain scores

    def add_assessment(self, assessment: OdiAssessment) -> OdiAssessment:
        """Stores an ODI assessment. A patient's first assessment becomes their baseline."""
        record = self._patient_record(assessment.patient_id)
        if not record['odi_assessments']:
            assessment.is_baseline = True
        record['odi_assessments'].append(assessment.to_record())
        self._save_data()
        return assessment

    def fetch_assessments(self, patient_id) -> list:
        """Returns the patient's ODI assessments ordered by date."""
        rows = self._patient_record(patient_id)['odi_assessments']
        return sorted((OdiAssessment.from_record(row) for row in rows), key=lambda a: a.assessment_date)

    def add_pain_score(self, pain_score: PainScore) -> PainScore:
        """Stores a VAS pain reading. Scores outside 0-10 are rejected.

        Raises:
            ValueError: If the score is out of range.
        """
        if not 0 <= pain_score.pain_score <= 10:
            raise ValueError(f"Pain score must be between 0 and 10, got {pain_score.pain_score}")
        record = self._patient_record(pain_score.patient_id)
        record['pain_scores'].append(pain_score.to_record())
        self._save_data()
        return pain_score

    def fetch_pain_scores(self, patient_id) -> list:
        """Returns the patient's VAS pain readings ordered by date."""
        rows = self._patient_record(patient_id)['pain_scores']
        return sorted((PainScore.from_record(row) for row in rows), key=lambda s: s.recorded_date)

    # Daily check-ins

    def add_check_in(self, check_in: CheckIn) -> CheckIn:
        """Stores a daily check-in.

        Raises:
            ValueError: If a rating is outside its scale.
        """
        for field, low, high in CHECK_IN_RANGES:
            value = getattr(check_in, field)
            if not low <= value <= high:
                raise ValueError(f"{field} must be between {low} and {high}, got {value}")
        unknown = set(check_in.pain_character) - set(PAIN_CHARACTERS)
        if unknown:
            raise ValueError(f"Unknown pain character: {', '.join(sorted(unknown))}")
        record = self._patient_record(check_in.patient_id)
        record['check_ins'].append(check_in.to_record())
        self._save_data()
        return check_in

    def fetch_check_ins(self, patient_id) -> list:
        """Returns the patient's daily check-ins ordered by date."""
        rows = self._patient_record(patient_id)['check_ins']
        return sorted((CheckIn.from_record(row) for row in rows), key=lambda c: c.check_in_date)

    def has_checked_in(self, patient_id, on_date: date) -> bool:
        return any(c.check_in_date == on_date for c in self.fetch_check_ins(patient_id))

    # Analytics cache

    def upsert_analytics_snapshot(self, patient_id, metric_date: date, snapshot) -> None:
        """Stores a snapshot keyed by (patient, date), replacing any earlier one for that date."""
        record = self._patient_record(patient_id)
        entry = snapshot.to_record()
        entry['metric_date'] = metric_date.isoformat()
        entry['created_at'] = datetime.now().isoformat()
        record['analytics_metrics'][metric_date.isoformat()] = entry
        self._save_data()

    def fetch_analytics_history(self, patient_id) -> list:
        """Returns cached snapshots ordered by metric date."""
        metrics = self._patient_record(patient_id)['analytics_metrics']
        return [metrics[key] for key in sorted(metrics)]

    def fetch_benchmark(self, treatment_type, max_weeks):
        """Returns the benchmark row with the greatest `weeks_post_treatment` not exceeding `max_weeks`.

        Returns:
            BenchmarkRow or None: The matching row, or None if nothing qualifies.
        """
        if treatment_type not in BENCHMARK_TREATMENT_TYPES:
            return None
        candidates = [
            row for row in self._data['benchmarks']
            if row['treatment_type'] == treatment_type and row['weeks_post_treatment'] <= max_weeks
        ]
        if not candidates:
            return None
        best = max(candidates, key=lambda row: row['weeks_post_treatment'])
        return BenchmarkRow.from_record(best)

    # Assistant chat history

    def add_chat_message(self, patient_id, message: dict) -> dict:
        self._patient_record(patient_id)['chat'].append(message)
        self._save_data()
        return message

    def get_chat_messages(self, patient_id, limit=None) -> list:
        """Retrieves the patient's assistant conversation in timestamp order."""
        thread = list(self._patient_record(patient_id)['chat'])
        thread.sort(key=lambda item: item.get("timestamp", ""))
        if limit is not None:
            return thread[-limit:]
        return thread

    def clear_chat_messages(self, patient_id) -> bool:
        record = self._patient_record(patient_id)
        if not record['chat']:
            return False
        record['chat'] = []
        self._save_data()
        return True
