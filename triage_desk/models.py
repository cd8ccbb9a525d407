"""
Domain models for the emergency triage desk.
"""

import json
import uuid
from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator, model_validator

from triage_desk.triage import TriageLevel, compute_triage


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(UTC)


def normalize_choices(value: object) -> list[str]:
    """
    Coerce a multi-choice field into a list of strings.

    The hosted store returns these columns either as a list, a bare scalar
    ("morning") or a JSON-encoded list ('["morning"]').
    """
    if value is None or value == "":
        return []
    if isinstance(value, str):
        try:
            decoded = json.loads(value)
        except ValueError:
            return [value]
        if isinstance(decoded, list):
            return [str(item) for item in decoded]
        if isinstance(decoded, str):
            return [decoded] if decoded else []
        return [value]
    if isinstance(value, (list, tuple, set, frozenset)):
        return [str(item) for item in value]
    return [str(value)]


class PreferredTime(StrEnum):
    MORNING = "morning"
    AFTERNOON = "afternoon"


class Weekday(StrEnum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"


class Dentist(StrEnum):
    NEREA = "Nerea"
    TAMARA = "Tamara"
    JULEY_ANN = "Juley-Ann"
    DOMINIQUE = "Dominique"
    ELIA = "Elia"


class PatientStatus(StrEnum):
    UNTOUCHED = ""
    WAITING = "waiting"  # Contacted at least once, not booked yet
    SCHEDULED = "scheduled"  # Appointment booked


class ContactMethod(StrEnum):
    PHONE = "Phone"
    WHATSAPP = "WhatsApp"
    SMS = "SMS"
    EMAIL = "Email"


class Gender(StrEnum):
    FEMALE = "female"
    MALE = "male"
    OTHER = "other"
    PREFER_NOT_TO_SAY = "prefer_not_to_say"


class TriageInputs(BaseModel):
    """The four severity/eligibility answers collected at intake."""

    pain: int = Field(default=0, ge=0, le=2)
    symptom: int = Field(default=0, ge=0, le=3)
    systemic: int = Field(default=0, ge=0, le=2)
    existing_patient: bool = False


class TriagePreview(BaseModel):
    triage_score: int
    triage_level: TriageLevel


class EmergencyPatientCreate(TriageInputs):
    user_id: str
    reason: str
    preferred_time: list[PreferredTime] = []
    availability: list[Weekday] = []
    preferred_dentist: Dentist | None = None

    @field_validator("preferred_time", "availability", mode="before")
    @classmethod
    def _coerce_choices(cls, value: object) -> list[str]:
        return normalize_choices(value)

    @field_validator("preferred_dentist", mode="before")
    @classmethod
    def _empty_dentist(cls, value: object) -> object:
        return value or None

    @field_validator("reason")
    @classmethod
    def _reason_required(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("reason must not be blank")
        return value


class EmergencyPatient(BaseModel):
    """An emergency queue entry. Triage fields are derived, never edited."""

    id: str = Field(default_factory=_new_id)
    user_id: str  # Registered patient id in the directory
    name: str
    phone: str
    reason: str
    preferred_time: list[str] = []
    availability: list[str] = []
    preferred_dentist: Dentist | None = None
    existing_patient: bool = False
    pain: int = 0
    symptom: int = 0
    systemic: int = 0
    triage_score: int = 0
    triage_level: TriageLevel = TriageLevel.ROUTINE
    scheduled_time: datetime | None = None
    created_at: datetime = Field(default_factory=_utcnow)

    @field_validator("preferred_time", "availability", mode="before")
    @classmethod
    def _coerce_choices(cls, value: object) -> list[str]:
        return normalize_choices(value)

    @field_validator("preferred_dentist", mode="before")
    @classmethod
    def _empty_dentist(cls, value: object) -> object:
        return value or None

    @model_validator(mode="after")
    def _derive_triage(self) -> "EmergencyPatient":
        result = compute_triage(
            self.pain, self.symptom, self.systemic, self.existing_patient
        )
        given = self.model_fields_set
        if "triage_score" in given and self.triage_score != result.score:
            raise ValueError(
                f"triage_score {self.triage_score} does not match inputs "
                f"(expected {result.score})"
            )
        if "triage_level" in given and self.triage_level != result.level:
            raise ValueError(
                f"triage_level {self.triage_level} does not match inputs "
                f"(expected {result.level})"
            )
        # Assigning on a non-frozen model does not re-run validators
        self.triage_score = result.score
        self.triage_level = result.level
        return self


class ContactLogCreate(BaseModel):
    method: ContactMethod = ContactMethod.PHONE
    notes: str

    @field_validator("notes")
    @classmethod
    def _notes_required(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("notes must not be blank")
        return value


class ContactLogEntry(BaseModel):
    """A single contact attempt. Immutable once recorded."""

    model_config = {"frozen": True}

    id: str = Field(default_factory=_new_id)
    patient_id: str
    method: ContactMethod
    notes: str
    timestamp: datetime = Field(default_factory=_utcnow)


class QueueFilters(BaseModel):
    """Filter fields for the emergency queue. Empty means match everything."""

    preferred_time: list[str] = []
    availability: list[str] = []
    status: PatientStatus = PatientStatus.UNTOUCHED
    triage_level: TriageLevel | None = None
    preferred_dentist: Dentist | None = None

    @field_validator("preferred_time", "availability", mode="before")
    @classmethod
    def _coerce_choices(cls, value: object) -> list[str]:
        return normalize_choices(value)

    @field_validator("triage_level", "preferred_dentist", mode="before")
    @classmethod
    def _empty_is_unset(cls, value: object) -> object:
        return value or None


class FilterPresetCreate(BaseModel):
    name: str
    filters: QueueFilters = QueueFilters()

    @field_validator("name")
    @classmethod
    def _name_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value


class FilterPreset(BaseModel):
    """A named filter snapshot owned by one staff user. Never updated."""

    model_config = {"frozen": True}

    id: str = Field(default_factory=_new_id)
    user_id: str
    name: str
    filters: QueueFilters
    created_at: datetime = Field(default_factory=_utcnow)


class AppointmentCreate(BaseModel):
    patient_id: str
    appointment_time: datetime
    location: str = ""
    notes: str = ""


class ScheduleRequest(BaseModel):
    appointment_time: datetime
    location: str = ""
    notes: str | None = None  # Defaults to the emergency reason


class Appointment(BaseModel):
    id: str = Field(default_factory=_new_id)
    patient_id: str  # Registered patient id
    appointment_time: datetime
    location: str = ""
    notes: str = ""


class RegisteredPatient(BaseModel):
    """A patient in the clinic directory."""

    id: str = Field(default_factory=_new_id)
    full_name: str
    email: str | None = None
    sedula_nr: str | None = None
    phone_number: str = ""
    preferred_lang: str = "en"
    notes: str = ""
    address: str = ""
    date_of_birth: str | None = None
    gender: Gender = Gender.FEMALE


class PatientRegistration(BaseModel):
    secret_token: str | None = None
    email: str
    password: str
    full_name: str
    sedula_nr: str
    phone_number: str = ""
    preferred_lang: str = "en"
    notes: str = ""
    address: str = ""
    date_of_birth: str | None = None
    gender: Gender = Gender.FEMALE


class StaffUser(BaseModel):
    """An identity known to the auth provider."""

    id: str = Field(default_factory=_new_id)
    email: str
    password: str | None = Field(default=None, exclude=True)


class QueueRow(BaseModel):
    """An emergency patient with its read-time derived fields."""

    patient: EmergencyPatient
    status: PatientStatus
    contact_attempts: int
    contact_history: list[ContactLogEntry]
