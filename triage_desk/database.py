from __future__ import annotations

import json
import logging
from collections.abc import Iterator, MutableMapping
from pathlib import Path
from typing import Generic, TypeVar

from triage_desk.config import get_settings
from triage_desk.exceptions import RecordNotFoundError
from triage_desk.models import (
    Appointment,
    ContactLogEntry,
    EmergencyPatient,
    FilterPreset,
    RegisteredPatient,
    StaffUser,
)

logger = logging.getLogger(__name__)

K = TypeVar("K")
V = TypeVar("V")


class InMemoryKeyValueDatabase(Generic[K, V]):
    """
    Simple in-memory key/value collection. Iteration follows insertion order.
    """

    def __init__(self, kind: str = "record") -> None:
        self.kind = kind
        self._store: MutableMapping[K, V] = {}

    def put(self, key: K, value: V) -> None:
        self._store[key] = value

    def get(self, key: K) -> V | None:
        return self._store.get(key)

    def require(self, key: K) -> V:
        """Get a record or raise RecordNotFoundError."""
        value = self._store.get(key)
        if value is None:
            raise RecordNotFoundError(self.kind, str(key))
        return value

    def delete(self, key: K) -> None:
        self._store.pop(key, None)

    def all(self) -> list[V]:
        return list(self._store.values())

    def clear(self) -> None:
        self._store.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._store

    def __iter__(self) -> Iterator[V]:
        return iter(self._store.values())

    def __len__(self) -> int:
        return len(self._store)


class Database:
    """Container for all collections."""

    def __init__(self) -> None:
        self.patients: InMemoryKeyValueDatabase[str, EmergencyPatient] = (
            InMemoryKeyValueDatabase("Emergency patient")
        )
        self.archived_patients: InMemoryKeyValueDatabase[str, EmergencyPatient] = (
            InMemoryKeyValueDatabase("Archived patient")
        )
        self.contact_logs: InMemoryKeyValueDatabase[str, ContactLogEntry] = (
            InMemoryKeyValueDatabase("Contact log")
        )
        self.presets: InMemoryKeyValueDatabase[str, FilterPreset] = (
            InMemoryKeyValueDatabase("Filter preset")
        )
        self.appointments: InMemoryKeyValueDatabase[str, Appointment] = (
            InMemoryKeyValueDatabase("Appointment")
        )
        self.registered_patients: InMemoryKeyValueDatabase[
            str, RegisteredPatient
        ] = InMemoryKeyValueDatabase("Registered patient")
        self.users: InMemoryKeyValueDatabase[str, StaffUser] = (
            InMemoryKeyValueDatabase("User")
        )

    def collections(self) -> list[InMemoryKeyValueDatabase]:
        return [
            self.patients,
            self.archived_patients,
            self.contact_logs,
            self.presets,
            self.appointments,
            self.registered_patients,
            self.users,
        ]

    def clear(self) -> None:
        for collection in self.collections():
            collection.clear()

    def get_presets_for_user(self, user_id: str) -> list[FilterPreset]:
        """Get a user's presets, newest first."""
        return [p for p in reversed(self.presets.all()) if p.user_id == user_id]

    def get_user_by_email(self, email: str) -> StaffUser | None:
        wanted = email.strip().lower()
        for user in self.users.all():
            if user.email.lower() == wanted:
                return user
        return None

    def archive_patient(self, patient_id: str) -> EmergencyPatient:
        """Copy the patient into the archive, then drop it from the queue."""
        patient = self.patients.require(patient_id)
        self.archived_patients.put(patient.id, patient)
        self.patients.delete(patient.id)
        return patient


_db: Database | None = None


def get_db() -> Database:
    """Get the global database instance."""
    global _db
    if _db is None:
        _db = Database()
    return _db


def load_sample_data(db: Database | None = None, path: Path | None = None) -> None:
    """Load staff users and the patient directory from sample_data.json."""
    if db is None:
        db = get_db()

    if path is None:
        path = get_settings().sample_data_path

    with open(path) as f:
        data = json.load(f)

    for user_data in data.get("users", []):
        user = StaffUser(**user_data)
        db.users.put(user.id, user)

    for patient_data in data.get("registered_patients", []):
        patient = RegisteredPatient(**patient_data)
        db.registered_patients.put(patient.id, patient)

    logger.info(
        "Loaded %d users and %d registered patients from %s",
        len(db.users),
        len(db.registered_patients),
        path,
    )
