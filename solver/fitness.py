"""Konfliktbewertung eines Stundenplans.

Harte Konflikte (Raum, Dozent, Gruppe) werden paarweise gezählt: zwei
Einträge, die dieselbe Ressource am selben Tag zu überlappenden Zeiten
belegen, ergeben genau einen Konflikt. Präferenzkonflikte (weich) werden
je Eintrag gezählt.

Die Bewertung ist eine reine Funktion ohne geteilten Zustand und darf
parallel für mehrere Partikel aufgerufen werden.
"""

from collections import defaultdict
from typing import Callable, Literal

from pydantic import BaseModel

from config.schema import FitnessWeights
from models.catalog import Catalog
from solver.encoding import ScheduleEntry


class ResourceConflict(BaseModel):
    """Zwei Einträge belegen dieselbe Ressource gleichzeitig."""

    kind: Literal["room", "lecturer", "class_group"]
    resource_id: str
    day: int
    section_a: str
    section_b: str
    description: str


class PreferenceViolation(BaseModel):
    """Eintrag liegt außerhalb der Zeitwünsche der Lehrperson."""

    section_id: str
    lecturer_id: str
    day: int
    time_slot_id: str
    start_time: str
    description: str


class ConflictReport(BaseModel):
    """Kategorisierte Konflikte eines Stundenplans."""

    room_conflicts: list[ResourceConflict] = []
    lecturer_conflicts: list[ResourceConflict] = []
    class_group_conflicts: list[ResourceConflict] = []
    preference_conflicts: list[PreferenceViolation] = []
    hard_total: int = 0
    total: int = 0

    @classmethod
    def from_conflicts(
        cls,
        room: list[ResourceConflict],
        lecturer: list[ResourceConflict],
        class_group: list[ResourceConflict],
        preference: list[PreferenceViolation],
    ) -> "ConflictReport":
        hard = len(room) + len(lecturer) + len(class_group)
        return cls(
            room_conflicts=room,
            lecturer_conflicts=lecturer,
            class_group_conflicts=class_group,
            preference_conflicts=preference,
            hard_total=hard,
            total=hard + len(preference),
        )

    @property
    def messages(self) -> list[str]:
        """Alle Konflikte als lesbare Zeilen (harte zuerst)."""
        return [
            c.description
            for c in (
                self.room_conflicts
                + self.lecturer_conflicts
                + self.class_group_conflicts
            )
        ] + [p.description for p in self.preference_conflicts]

    def counts(self) -> dict[str, int]:
        return {
            "room": len(self.room_conflicts),
            "lecturer": len(self.lecturer_conflicts),
            "class_group": len(self.class_group_conflicts),
            "preference": len(self.preference_conflicts),
        }


_KIND_LABELS = {
    "room": "Raum",
    "lecturer": "Dozent",
    "class_group": "Gruppe",
}


def find_overlaps(
    timetable: list[ScheduleEntry],
    key: Callable[[ScheduleEntry], str],
) -> list[tuple[str, ScheduleEntry, ScheduleEntry]]:
    """Alle überlappenden Paare je (Ressource, Tag).

    Innerhalb einer Gruppe wird nach Beginn sortiert; sobald ein späterer
    Eintrag nach dem Ende von `a` beginnt, kann keiner mehr überlappen.
    """
    groups: dict[tuple[str, int], list[ScheduleEntry]] = defaultdict(list)
    for e in timetable:
        groups[(key(e), e.day)].append(e)

    pairs: list[tuple[str, ScheduleEntry, ScheduleEntry]] = []
    for (resource, _day), entries in groups.items():
        if len(entries) < 2:
            continue
        entries.sort(key=lambda e: e.start_minute)
        for i, a in enumerate(entries):
            for b in entries[i + 1:]:
                if b.start_minute >= a.end_minute:
                    break
                pairs.append((resource, a, b))
    return pairs


class FitnessEvaluator:
    """Bewertet Stundenpläne: ConflictReport + skalare Fitness (kleiner = besser)."""

    def __init__(self, catalog: Catalog, weights: FitnessWeights) -> None:
        self.weights = weights
        self._preferences: dict[str, frozenset[tuple[int, str]]] = {
            lec.id: lec.preferred_set
            for lec in catalog.lecturers
            if lec.has_preferences
        }

    def evaluate(self, timetable: list[ScheduleEntry]) -> tuple[float, ConflictReport]:
        """Gibt (fitness, report) zurück."""
        report = ConflictReport.from_conflicts(
            room=self._resource_conflicts(timetable, "room", lambda e: e.room_id),
            lecturer=self._resource_conflicts(timetable, "lecturer", lambda e: e.lecturer_id),
            class_group=self._resource_conflicts(timetable, "class_group", lambda e: e.class_group_id),
            preference=self._preference_conflicts(timetable),
        )
        return self.fitness_of(report), report

    def fitness_of(self, report: ConflictReport) -> float:
        return (
            report.hard_total * self.weights.weight_hard
            + len(report.preference_conflicts) * self.weights.weight_preference
        )

    def _resource_conflicts(
        self,
        timetable: list[ScheduleEntry],
        kind: str,
        key: Callable[[ScheduleEntry], str],
    ) -> list[ResourceConflict]:
        label = _KIND_LABELS[kind]
        conflicts: list[ResourceConflict] = []
        for resource, a, b in find_overlaps(timetable, key):
            conflicts.append(ResourceConflict(
                kind=kind,
                resource_id=resource,
                day=a.day,
                section_a=a.section_id,
                section_b=b.section_id,
                description=(
                    f"Konflikt [{label} {resource}] am {a.day_name}: "
                    f"{a.section_id} ({a.start_time}-{a.end_time}, Raum {a.room_id}) ↔ "
                    f"{b.section_id} ({b.start_time}-{b.end_time}, Raum {b.room_id})"
                ),
            ))
        return conflicts

    def _preference_conflicts(self, timetable: list[ScheduleEntry]) -> list[PreferenceViolation]:
        violations: list[PreferenceViolation] = []
        for e in timetable:
            preferred = self._preferences.get(e.lecturer_id)
            if preferred is None or (e.day, e.time_slot_id) in preferred:
                continue
            violations.append(PreferenceViolation(
                section_id=e.section_id,
                lecturer_id=e.lecturer_id,
                day=e.day,
                time_slot_id=e.time_slot_id,
                start_time=e.start_time,
                description=(
                    f"Präferenz: Dozent {e.lecturer_id} wünscht nicht "
                    f"{e.day_name} {e.start_time} (Angebot {e.section_id})"
                ),
            ))
        return violations
