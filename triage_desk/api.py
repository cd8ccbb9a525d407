import logging
from datetime import UTC, date, datetime

from fastapi import APIRouter, FastAPI, Header, HTTPException, Query, status
from pydantic import ValidationError

from triage_desk.config import get_settings
from triage_desk.contact_log import aggregate_contact_logs
from triage_desk.database import get_db
from triage_desk.directory import filter_appointments, search_registered_patients
from triage_desk.exceptions import (
    InvalidTransitionError,
    RecordNotFoundError,
    RegistrationError,
)
from triage_desk.logging_config import configure_logging
from triage_desk.models import (
    Appointment,
    AppointmentCreate,
    ContactLogCreate,
    ContactLogEntry,
    EmergencyPatient,
    EmergencyPatientCreate,
    FilterPreset,
    FilterPresetCreate,
    PatientRegistration,
    QueueFilters,
    QueueRow,
    RegisteredPatient,
    ScheduleRequest,
    StaffUser,
    TriageInputs,
    TriagePreview,
)
from triage_desk.queue import (
    derive_status,
    ensure_can_remove,
    ensure_can_schedule,
    filter_queue,
)
from triage_desk.registration import register_patient
from triage_desk.triage import compute_triage

logger = logging.getLogger(__name__)

router = APIRouter()


def _not_found(error: RecordNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))


def _current_user(user_id: str | None) -> StaffUser:
    """Resolve the signed-in user from the X-User-Id header."""
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="You must be logged in",
        )
    user = get_db().users.get(user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Unknown user {user_id}",
        )
    return user


@router.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/triage/preview")
async def preview_triage(inputs: TriageInputs) -> TriagePreview:
    """Live score/level preview for the intake form."""
    result = compute_triage(
        inputs.pain, inputs.symptom, inputs.systemic, inputs.existing_patient
    )
    return TriagePreview(triage_score=result.score, triage_level=result.level)


@router.get("/emergency-patients")
async def list_emergency_patients(
    preferred_time: list[str] = Query(default=[]),
    availability: list[str] = Query(default=[]),
    status_filter: str = Query(default="", alias="status"),
    triage_level: str = "",
    preferred_dentist: str = "",
    preset_id: str | None = None,
    x_user_id: str | None = Header(default=None),
) -> list[QueueRow]:
    """
    The emergency queue, filtered, with derived status and contact history.
    A preset_id replaces the individual filter parameters and, like the other
    preset routes, is only honoured for the preset's owner.
    """
    db = get_db()

    if preset_id:
        user = _current_user(x_user_id)
        try:
            preset = db.presets.require(preset_id)
        except RecordNotFoundError as e:
            raise _not_found(e) from e
        if preset.user_id != user.id:
            logger.warning("User %s tried to load preset %s", user.id, preset_id)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Presets can only be loaded by their owner",
            )
        filters = preset.filters
    else:
        try:
            filters = QueueFilters(
                preferred_time=preferred_time,
                availability=availability,
                status=status_filter,
                triage_level=triage_level,
                preferred_dentist=preferred_dentist,
            )
        except ValidationError as e:
            raise HTTPException(
                status_code=422,
                detail=e.errors(include_url=False, include_context=False),
            ) from e

    summary = aggregate_contact_logs(db.contact_logs.all())
    contacted = summary.contacted_ids

    return [
        QueueRow(
            patient=patient,
            status=derive_status(patient, contacted),
            contact_attempts=summary.count_for(patient.id),
            contact_history=summary.history_for(patient.id),
        )
        for patient in filter_queue(db.patients.all(), filters, contacted)
    ]


@router.post("/emergency-patients", status_code=status.HTTP_201_CREATED)
async def create_emergency_patient(payload: EmergencyPatientCreate) -> EmergencyPatient:
    """
    Add a registered patient to the emergency queue.
    Name and phone are copied from the directory; triage is derived from the answers.
    """
    db = get_db()

    registered = db.registered_patients.get(payload.user_id)
    if registered is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Registered patient {payload.user_id} not found",
        )

    patient = EmergencyPatient(
        user_id=registered.id,
        name=registered.full_name,
        phone=registered.phone_number,
        reason=payload.reason,
        preferred_time=payload.preferred_time,
        availability=payload.availability,
        preferred_dentist=payload.preferred_dentist,
        existing_patient=payload.existing_patient,
        pain=payload.pain,
        symptom=payload.symptom,
        systemic=payload.systemic,
    )
    db.patients.put(patient.id, patient)

    logger.info(
        "Added emergency patient %s with triage level %s (score %d)",
        patient.id,
        patient.triage_level.value,
        patient.triage_score,
    )
    return patient


@router.post(
    "/emergency-patients/{patient_id}/contact-logs",
    status_code=status.HTTP_201_CREATED,
)
async def log_contact(patient_id: str, payload: ContactLogCreate) -> ContactLogEntry:
    db = get_db()

    if patient_id not in db.patients:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Emergency patient {patient_id} not found",
        )

    entry = ContactLogEntry(
        patient_id=patient_id,
        method=payload.method,
        notes=payload.notes,
        timestamp=datetime.now(UTC),
    )
    db.contact_logs.put(entry.id, entry)

    logger.info("Logged %s contact for patient %s", entry.method.value, patient_id)
    return entry


@router.get("/contact-logs")
async def list_contact_logs(patient_id: str | None = None) -> list[ContactLogEntry]:
    entries = get_db().contact_logs.all()
    if patient_id:
        entries = [e for e in entries if e.patient_id == patient_id]
    return entries


@router.post(
    "/emergency-patients/{patient_id}/schedule",
    status_code=status.HTTP_201_CREATED,
)
async def schedule_emergency_patient(
    patient_id: str, payload: ScheduleRequest
) -> Appointment:
    """
    Book an appointment for a waiting emergency patient and mark it scheduled.
    """
    db = get_db()

    try:
        patient = db.patients.require(patient_id)
    except RecordNotFoundError as e:
        raise _not_found(e) from e

    contacted = aggregate_contact_logs(db.contact_logs.all()).contacted_ids
    try:
        ensure_can_schedule(patient, contacted)
    except InvalidTransitionError as e:
        logger.warning("Rejected scheduling: %s", e)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e

    appointment = Appointment(
        patient_id=patient.user_id,
        appointment_time=payload.appointment_time,
        location=payload.location,
        notes=patient.reason if payload.notes is None else payload.notes,
    )
    db.appointments.put(appointment.id, appointment)
    db.patients.put(
        patient.id,
        patient.model_copy(update={"scheduled_time": appointment.appointment_time}),
    )

    logger.info(
        "Scheduled emergency patient %s for %s",
        patient.id,
        appointment.appointment_time.isoformat(),
    )
    return appointment


@router.delete("/emergency-patients/{patient_id}")
async def remove_emergency_patient(patient_id: str) -> dict[str, str]:
    """Archive a scheduled patient and drop it from the active queue."""
    db = get_db()

    try:
        patient = db.patients.require(patient_id)
    except RecordNotFoundError as e:
        raise _not_found(e) from e

    contacted = aggregate_contact_logs(db.contact_logs.all()).contacted_ids
    try:
        ensure_can_remove(patient, contacted)
    except InvalidTransitionError as e:
        logger.warning("Rejected removal: %s", e)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e

    db.archive_patient(patient_id)
    logger.info("Archived emergency patient %s", patient_id)
    return {
        "status": "archived",
        "message": f"Patient {patient_id} archived and removed from the queue",
    }


@router.get("/presets")
async def list_presets(
    x_user_id: str | None = Header(default=None),
) -> list[FilterPreset]:
    user = _current_user(x_user_id)
    return get_db().get_presets_for_user(user.id)


@router.post("/presets", status_code=status.HTTP_201_CREATED)
async def save_preset(
    payload: FilterPresetCreate, x_user_id: str | None = Header(default=None)
) -> FilterPreset:
    user = _current_user(x_user_id)

    preset = FilterPreset(user_id=user.id, name=payload.name, filters=payload.filters)
    get_db().presets.put(preset.id, preset)

    logger.info("Saved filter preset %s for user %s", preset.id, user.id)
    return preset


@router.delete("/presets/{preset_id}")
async def delete_preset(
    preset_id: str, x_user_id: str | None = Header(default=None)
) -> dict[str, str]:
    user = _current_user(x_user_id)
    db = get_db()

    try:
        preset = db.presets.require(preset_id)
    except RecordNotFoundError as e:
        raise _not_found(e) from e

    if preset.user_id != user.id:
        logger.warning("User %s tried to delete preset %s", user.id, preset_id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Presets can only be deleted by their owner",
        )

    db.presets.delete(preset_id)
    logger.info("Deleted filter preset %s", preset_id)
    return {"status": "deleted", "message": f"Preset {preset_id} deleted"}


@router.get("/appointments")
async def list_appointments(
    patient_id: str | None = None,
    on_date: date | None = Query(default=None, alias="date"),
) -> list[Appointment]:
    return filter_appointments(get_db().appointments.all(), patient_id, on_date)


@router.post("/appointments", status_code=status.HTTP_201_CREATED)
async def create_appointment(payload: AppointmentCreate) -> Appointment:
    db = get_db()

    if payload.patient_id not in db.registered_patients:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Registered patient {payload.patient_id} not found",
        )

    appointment = Appointment(**payload.model_dump())
    db.appointments.put(appointment.id, appointment)

    logger.info("Created appointment %s", appointment.id)
    return appointment


@router.delete("/appointments/{appointment_id}")
async def delete_appointment(appointment_id: str) -> dict[str, str]:
    db = get_db()

    try:
        db.appointments.require(appointment_id)
    except RecordNotFoundError as e:
        raise _not_found(e) from e

    db.appointments.delete(appointment_id)
    logger.info("Deleted appointment %s", appointment_id)
    return {"status": "deleted", "message": f"Appointment {appointment_id} deleted"}


@router.get("/registered-patients")
async def list_registered_patients(query: str = "") -> list[RegisteredPatient]:
    return search_registered_patients(get_db().registered_patients.all(), query)


@router.post("/registered-patients/register")
async def register_new_patient(payload: PatientRegistration) -> dict[str, str | bool]:
    try:
        patient = register_patient(get_db(), payload, get_settings())
    except RegistrationError as e:
        logger.warning("Patient registration rejected: %s", e)
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return {"success": True, "user_id": patient.id}


def create_app() -> FastAPI:
    configure_logging(get_settings().log_level)
    app = FastAPI(title="triage-desk")
    app.include_router(router)
    return app
