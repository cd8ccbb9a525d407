"""
Emergency queue filtering and status derivation.

Statuses are derived at read time from the patient's scheduled_time and
whether any contact attempt exists for it; they are never stored.
"""

from collections.abc import Collection, Iterable

from triage_desk.exceptions import InvalidTransitionError
from triage_desk.models import (
    EmergencyPatient,
    PatientStatus,
    QueueFilters,
    normalize_choices,
)


def derive_status(
    patient: EmergencyPatient, contacted_ids: Collection[str]
) -> PatientStatus:
    if patient.scheduled_time is not None:
        return PatientStatus.SCHEDULED
    if patient.id in contacted_ids:
        return PatientStatus.WAITING
    return PatientStatus.UNTOUCHED


def _intersects(wanted: Iterable[str], have: object) -> bool:
    return not set(wanted).isdisjoint(normalize_choices(have))


def matches_filters(
    patient: EmergencyPatient,
    filters: QueueFilters,
    contacted_ids: Collection[str],
) -> bool:
    """Return True when the patient satisfies every non-empty filter field."""
    if filters.preferred_time and not _intersects(
        filters.preferred_time, patient.preferred_time
    ):
        return False

    if filters.availability and not _intersects(
        filters.availability, patient.availability
    ):
        return False

    if filters.status == PatientStatus.WAITING:
        if patient.scheduled_time is not None or patient.id not in contacted_ids:
            return False
    elif filters.status == PatientStatus.SCHEDULED:
        if patient.scheduled_time is None:
            return False

    if filters.triage_level and patient.triage_level != filters.triage_level:
        return False

    if (
        filters.preferred_dentist
        and patient.preferred_dentist != filters.preferred_dentist
    ):
        return False

    return True


def filter_queue(
    patients: Iterable[EmergencyPatient],
    filters: QueueFilters,
    contacted_ids: Collection[str],
) -> list[EmergencyPatient]:
    """Filter the queue, keeping the input order."""
    return [p for p in patients if matches_filters(p, filters, contacted_ids)]


def ensure_can_schedule(
    patient: EmergencyPatient, contacted_ids: Collection[str]
) -> None:
    status = derive_status(patient, contacted_ids)
    if status != PatientStatus.WAITING:
        raise InvalidTransitionError(
            f"Patient {patient.id} must be waiting to be scheduled "
            f"(current status: {status.value or 'untouched'})"
        )


def ensure_can_remove(
    patient: EmergencyPatient, contacted_ids: Collection[str]
) -> None:
    status = derive_status(patient, contacted_ids)
    if status != PatientStatus.SCHEDULED:
        raise InvalidTransitionError(
            f"Patient {patient.id} must be scheduled before removal "
            f"(current status: {status.value or 'untouched'})"
        )
