"""
Patient registration.

Creates the auth identity and the clinic directory record for a new
patient. Callers must present the shared registration secret.
"""

import hmac
import logging

from triage_desk.config import Settings
from triage_desk.database import Database
from triage_desk.exceptions import RegistrationError
from triage_desk.models import PatientRegistration, RegisteredPatient, StaffUser

logger = logging.getLogger(__name__)


def _check_secret(presented: str | None, settings: Settings) -> None:
    expected = settings.register_patient_secret
    if not expected:
        raise RegistrationError("Server misconfigured", status_code=500)
    if not presented or not hmac.compare_digest(presented, expected):
        raise RegistrationError("Unauthorized", status_code=401)


def register_patient(
    db: Database, registration: PatientRegistration, settings: Settings
) -> RegisteredPatient:
    """
    Register a new patient.

    Raises RegistrationError with status 401 for a bad secret, 500 when no
    secret is configured and 400 when the identity cannot be created.
    """
    _check_secret(registration.secret_token, settings)

    email = registration.email.strip()
    if not email or not registration.password:
        raise RegistrationError("User creation failed: email and password are required")
    if db.get_user_by_email(email) is not None:
        raise RegistrationError(
            "A user with this email address has already been registered"
        )

    user = StaffUser(email=email, password=registration.password)
    patient = RegisteredPatient(
        id=user.id,
        full_name=registration.full_name,
        email=email,
        sedula_nr=registration.sedula_nr,
        phone_number=registration.phone_number,
        preferred_lang=registration.preferred_lang,
        notes=registration.notes,
        address=registration.address,
        date_of_birth=registration.date_of_birth,
        gender=registration.gender,
    )
    db.users.put(user.id, user)
    db.registered_patients.put(patient.id, patient)

    logger.info("Registered patient %s", patient.id)
    return patient
