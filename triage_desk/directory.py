from collections.abc import Iterable
from datetime import UTC, date, datetime

from triage_desk.models import Appointment, RegisteredPatient


def search_registered_patients(
    patients: Iterable[RegisteredPatient], query: str = ""
) -> list[RegisteredPatient]:
    """Case-insensitive substring match on full name. Empty query returns all."""
    needle = query.strip().lower()
    if not needle:
        return list(patients)
    return [p for p in patients if needle in p.full_name.lower()]


def utc_day(moment: datetime) -> date:
    """Calendar day of a timestamp in UTC. Naive timestamps are taken as UTC."""
    if moment.tzinfo is None:
        return moment.date()
    return moment.astimezone(UTC).date()


def filter_appointments(
    appointments: Iterable[Appointment],
    patient_id: str | None = None,
    on_date: date | None = None,
) -> list[Appointment]:
    """Narrow the appointment overview by patient and/or calendar day."""
    return [
        appt
        for appt in appointments
        if (not patient_id or appt.patient_id == patient_id)
        and (on_date is None or utc_day(appt.appointment_time) == on_date)
    ]
