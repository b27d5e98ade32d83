"""
This module defines the primary data models for the OrthoCompanion application.

These classes structure the records managed by the `RecoveryStore` and consumed by
the analytics engine. Each model converts to and from the plain dictionaries that
are persisted in the encrypted records file.
"""
# orthocompanion/models.py

from datetime import date, datetime
import uuid

TREATMENT_TYPES = ('surgery_planned', 'post_surgery', 'injury_recovery', 'chronic')
BENCHMARK_TREATMENT_TYPES = ('post_surgery', 'conservative', 'physical_therapy')

PAIN_LOCATIONS = ('knee', 'hip', 'back')
PAIN_CHARACTERS = ('Sharp', 'Dull', 'Throbbing', 'Burning', 'Stiff')
FUNCTIONAL_ACTIVITIES = {
    'bed_independent': "Got out of bed independently",
    'walked': "Walked for 15 minutes",
    'exercises': "Completed prescribed exercises",
    'pain_managed': "Managed pain without extra medication",
    'bathed': "Showered/bathed independently",
}


def parse_date(value) -> date:
    """Normalises an ISO string, datetime or date into a `date`."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


class PatientProfile:
    """Represents a patient enrolled in recovery tracking.

    Attributes:
        patient_id (str): A unique identifier for the patient.
        full_name (str): The patient's full name.
        treatment_type (str): One of `TREATMENT_TYPES`.
        condition (str): Free-text description of the condition being treated.
        surgery_date (str): ISO date of surgery, if any.
        created_at (str): ISO timestamp of enrolment.
    """
    def __init__(self, patient_id, full_name, treatment_type, condition="", surgery_date=None, created_at=None):
        self.patient_id = patient_id
        self.full_name = full_name
        self.treatment_type = treatment_type
        self.condition = condition
        self.surgery_date = surgery_date
        self.created_at = created_at or datetime.now().isoformat()

    @property
    def first_name(self) -> str:
        return (self.full_name or "").split(" ")[0] or "there"

    @classmethod
    def from_record(cls, record: dict) -> "PatientProfile":
        return cls(
            patient_id=record['patient_id'],
            full_name=record.get('full_name', ''),
            treatment_type=record.get('treatment_type', 'chronic'),
            condition=record.get('condition', ''),
            surgery_date=record.get('surgery_date'),
            created_at=record.get('created_at'),
        )

    def to_record(self) -> dict:
        return dict(self.__dict__)


class OdiAssessment:
    """Represents one completed Oswestry Disability Index questionnaire.

    Attributes:
        patient_id (str): The ID of the patient who completed the questionnaire.
        assessment_date (date): The calendar date of the assessment.
        percentage_score (float): Disability percentage, 0-100 (lower is better).
        is_baseline (bool): True if this record anchors improvement calculations.
        section_scores (dict): Per-section answers (0-5), keyed by section name.
        total_score (int): Sum of section answers, 0-50.
        disability_level (str): Banded description of `percentage_score`.
        assessment_id (str): A unique identifier for the assessment.
    """
    def __init__(self, patient_id, assessment_date, percentage_score, is_baseline=False, section_scores=None,
                 total_score=None, disability_level=None, assessment_id=None):
        self.assessment_id = assessment_id or str(uuid.uuid4())
        self.patient_id = patient_id
        self.assessment_date = parse_date(assessment_date)
        self.percentage_score = float(percentage_score)
        self.is_baseline = bool(is_baseline)
        self.section_scores = dict(section_scores or {})
        self.total_score = total_score
        self.disability_level = disability_level

    @classmethod
    def from_record(cls, record: dict) -> "OdiAssessment":
        return cls(
            patient_id=record.get('patient_id'),
            assessment_date=record['assessment_date'],
            percentage_score=record['percentage_score'],
            is_baseline=record.get('is_baseline', False),
            section_scores=record.get('section_scores'),
            total_score=record.get('total_score'),
            disability_level=record.get('disability_level'),
            assessment_id=record.get('assessment_id'),
        )

    def to_record(self) -> dict:
        record = dict(self.__dict__)
        record['assessment_date'] = self.assessment_date.isoformat()
        return record

    def __repr__(self):
        return f"OdiAssessment({self.assessment_date.isoformat()}, {self.percentage_score}, baseline={self.is_baseline})"


class PainScore:
    """Represents a single Visual Analog Scale pain reading.

    Attributes:
        patient_id (str): The ID of the patient.
        recorded_date (date): The calendar date of the reading.
        pain_score (int): Self-reported pain, 0 (none) to 10 (worst imaginable).
        pain_location (str): Where the pain is felt.
        pain_description (str): Free-text description.
        score_id (str): A unique identifier for the reading.
    """
    def __init__(self, patient_id, recorded_date, pain_score, pain_location="lower_back", pain_description="",
                 score_id=None):
        self.score_id = score_id or str(uuid.uuid4())
        self.patient_id = patient_id
        self.recorded_date = parse_date(recorded_date)
        self.pain_score = int(pain_score)
        self.pain_location = pain_location
        self.pain_description = pain_description

    @classmethod
    def from_record(cls, record: dict) -> "PainScore":
        return cls(
            patient_id=record.get('patient_id'),
            recorded_date=record['recorded_date'],
            pain_score=record['pain_score'],
            pain_location=record.get('pain_location', 'lower_back'),
            pain_description=record.get('pain_description', ''),
            score_id=record.get('score_id'),
        )

    def to_record(self) -> dict:
        record = dict(self.__dict__)
        record['recorded_date'] = self.recorded_date.isoformat()
        return record


class CheckIn:
    """Represents a daily recovery check-in (patient-reported outcome measures).

    Attributes:
        patient_id (str): The ID of the patient.
        check_in_date (date): The calendar date of the check-in.
        pain_level (int): Pain today, 0-10.
        pain_location (dict): Body area (one of `PAIN_LOCATIONS`) to whether it hurts.
        pain_character (list): Descriptors chosen from `PAIN_CHARACTERS`.
        mobility_score (int): Self-rated overall mobility, 0-100.
        functional_activities (dict): Activity key (see `FUNCTIONAL_ACTIVITIES`) to whether it was done.
        mood_rating (int): Mood, 1 (very low) to 5 (very good).
        sleep_quality (int): Sleep quality, 1-5.
        sleep_duration (float): Hours slept.
        notes (str): Free-text notes.
        check_in_id (str): A unique identifier for the check-in.
        created_at (str): ISO timestamp of submission.
    """
    def __init__(self, patient_id, check_in_date, pain_level, pain_location=None, pain_character=None,
                 mobility_score=50, functional_activities=None, mood_rating=3, sleep_quality=3, sleep_duration=7.0,
                 notes="", check_in_id=None, created_at=None):
        self.check_in_id = check_in_id or str(uuid.uuid4())
        self.patient_id = patient_id
        self.check_in_date = parse_date(check_in_date)
        self.pain_level = int(pain_level)
        self.pain_location = {area: bool((pain_location or {}).get(area)) for area in PAIN_LOCATIONS}
        self.pain_character = list(pain_character or [])
        self.mobility_score = int(mobility_score)
        self.functional_activities = {
            key: bool((functional_activities or {}).get(key)) for key in FUNCTIONAL_ACTIVITIES
        }
        self.mood_rating = int(mood_rating)
        self.sleep_quality = int(sleep_quality)
        self.sleep_duration = float(sleep_duration)
        self.notes = notes
        self.created_at = created_at or datetime.now().isoformat()

    @property
    def activities_completed(self) -> int:
        return sum(self.functional_activities.values())

    @classmethod
    def from_record(cls, record: dict) -> "CheckIn":
        return cls(
            patient_id=record.get('patient_id'),
            check_in_date=record['check_in_date'],
            pain_level=record['pain_level'],
            pain_location=record.get('pain_location'),
            pain_character=record.get('pain_character'),
            mobility_score=record.get('mobility_score', 50),
            functional_activities=record.get('functional_activities'),
            mood_rating=record.get('mood_rating', 3),
            sleep_quality=record.get('sleep_quality', 3),
            sleep_duration=record.get('sleep_duration', 7.0),
            notes=record.get('notes', ''),
            check_in_id=record.get('check_in_id'),
            created_at=record.get('created_at'),
        )

    def to_record(self) -> dict:
        record = dict(self.__dict__)
        record['check_in_date'] = self.check_in_date.isoformat()
        return record


class BenchmarkRow:
    """Represents one population reference point for ODI outcomes.

    Attributes:
        treatment_type (str): One of `BENCHMARK_TREATMENT_TYPES`.
        weeks_post_treatment (int): Weeks since treatment at which the cohort was measured.
        mean_score (float): Mean ODI percentage of the cohort.
        std_dev_score (float): Standard deviation of the cohort's ODI percentage.
        percentile_25 (float): 25th percentile ODI percentage.
        percentile_50 (float): Median ODI percentage.
        percentile_75 (float): 75th percentile ODI percentage.
        sample_size (int): Number of patients in the cohort.
    """
    def __init__(self, treatment_type, weeks_post_treatment, mean_score, std_dev_score, percentile_25, percentile_50,
                 percentile_75, sample_size=0):
        self.treatment_type = treatment_type
        self.weeks_post_treatment = int(weeks_post_treatment)
        self.mean_score = float(mean_score)
        self.std_dev_score = float(std_dev_score)
        self.percentile_25 = float(percentile_25)
        self.percentile_50 = float(percentile_50)
        self.percentile_75 = float(percentile_75)
        self.sample_size = int(sample_size)

    @classmethod
    def from_record(cls, record: dict) -> "BenchmarkRow":
        return cls(**record)

    def to_record(self) -> dict:
        return dict(self.__dict__)
