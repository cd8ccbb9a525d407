from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from triage_desk.models import ContactLogEntry


@dataclass
class ContactLogSummary:
    """
    Contact attempts grouped by patient.

    Patients without attempts are absent from both mappings.
    """

    counts: dict[str, int] = field(default_factory=dict)
    histories: dict[str, list[ContactLogEntry]] = field(default_factory=dict)

    @property
    def contacted_ids(self) -> set[str]:
        return set(self.counts)

    def count_for(self, patient_id: str) -> int:
        return self.counts.get(patient_id, 0)

    def history_for(self, patient_id: str) -> list[ContactLogEntry]:
        return list(self.histories.get(patient_id, []))


def aggregate_contact_logs(entries: Iterable[ContactLogEntry]) -> ContactLogSummary:
    """Group contact log entries by patient, keeping their input order."""
    summary = ContactLogSummary()
    for entry in entries:
        summary.counts[entry.patient_id] = summary.counts.get(entry.patient_id, 0) + 1
        summary.histories.setdefault(entry.patient_id, []).append(entry)
    return summary
