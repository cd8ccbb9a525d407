"""
Triage scoring for emergency dental intake.

The score is the sum of three ordinal severity answers plus one point for
existing patients. The level comes from TRIAGE_THRESHOLDS, an ordered table
of (minimum score, level) pairs checked from the highest threshold down.
Scores below every threshold fall through to the routine level.
"""

from dataclasses import dataclass
from enum import StrEnum

from triage_desk.exceptions import TriageInputError


class TriageLevel(StrEnum):
    CRITICAL = "1"
    URGENT = "2"
    SEMI_URGENT = "3"
    LOW_URGENCY = "4"
    ROUTINE = "5"


PAIN_RANGE = range(0, 3)
SYMPTOM_RANGE = range(0, 4)
SYSTEMIC_RANGE = range(0, 3)

TRIAGE_THRESHOLDS: tuple[tuple[int, TriageLevel], ...] = (
    (6, TriageLevel.CRITICAL),
    (4, TriageLevel.URGENT),
    (3, TriageLevel.SEMI_URGENT),
    (2, TriageLevel.LOW_URGENCY),
)
FALLBACK_LEVEL = TriageLevel.ROUTINE

MAX_SCORE = PAIN_RANGE[-1] + SYMPTOM_RANGE[-1] + SYSTEMIC_RANGE[-1] + 1


@dataclass(frozen=True)
class TriageResult:
    score: int
    level: TriageLevel


def _check(field: str, value: int, allowed: range) -> int:
    # bool is an int subclass; True/False are not severity answers
    if isinstance(value, bool) or not isinstance(value, int) or value not in allowed:
        raise TriageInputError(field, value, allowed)
    return value


def triage_score(
    pain: int, symptom: int, systemic: int, existing_patient: bool
) -> int:
    """Sum the severity answers, rejecting anything outside their ranges."""
    total = (
        _check("pain", pain, PAIN_RANGE)
        + _check("symptom", symptom, SYMPTOM_RANGE)
        + _check("systemic", systemic, SYSTEMIC_RANGE)
    )
    return total + (1 if existing_patient else 0)


def triage_level_for_score(score: int) -> TriageLevel:
    for minimum, level in TRIAGE_THRESHOLDS:
        if score >= minimum:
            return level
    return FALLBACK_LEVEL


def compute_triage(
    pain: int, symptom: int, systemic: int, existing_patient: bool
) -> TriageResult:
    """
    Compute the triage score and level for one intake.

    Raises TriageInputError when an ordinal input is out of range.
    """
    score = triage_score(pain, symptom, systemic, existing_patient)
    return TriageResult(score=score, level=triage_level_for_score(score))
