"""
Exception types for the triage desk.

All of them inherit from TriageDeskError so callers can catch the family.
"""


class TriageDeskError(Exception):
    """Base exception for triage desk errors."""


class TriageInputError(TriageDeskError, ValueError):
    """Raised when a severity input is outside its allowed range."""

    def __init__(self, field: str, value: object, allowed: range) -> None:
        self.field = field
        self.value = value
        self.allowed = allowed
        super().__init__(
            f"{field} must be an integer in {allowed.start}..{allowed.stop - 1}, "
            f"got {value!r}"
        )


class ConfigurationError(TriageDeskError):
    """Raised when settings cannot be loaded or are invalid."""


class RecordNotFoundError(TriageDeskError):
    """Raised when a record id does not exist in its collection."""

    def __init__(self, kind: str, record_id: str) -> None:
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} {record_id} not found")


class InvalidTransitionError(TriageDeskError):
    """Raised when a queue action does not fit the patient's current status."""


class RegistrationError(TriageDeskError):
    """
    Raised when registering a new patient fails.

    Carries the HTTP status the registration endpoint should answer with.
    """

    def __init__(self, message: str, status_code: int = 400) -> None:
        self.status_code = status_code
        super().__init__(message)
