"""Kodierung: Partikelposition (Vektor reeller Zahlen) ↔ Stundenplan.

Jedes Angebot belegt zwei Dimensionen:
  [2i]     Wahl des Start-Slots unter allen Slots, ab denen die SKS-Dauer
           lückenlos am selben Tag (im selben Abschnitt) Platz hat
  [2i + 1] Wahl des Raums

Die Positionen liegen direkt im Indexraum [0, N-1]; Dekodieren heißt
Runden + Begrenzen + Nachschlagen. Das Dekodieren ist rein und
deterministisch: gleiche Position → gleicher Stundenplan.
"""

from typing import Optional

import numpy as np
from pydantic import BaseModel

from models.catalog import Catalog, CatalogError
from models.course_section import CourseSection
from models.timeslot import TimeSlot


class ScheduleEntry(BaseModel):
    """Ein Angebot mit zugewiesenem Zeitslot und Raum."""

    section_id: str
    course_id: str
    class_group_id: str
    day: int              # 0-basiert (0=Mo)
    day_name: str
    lecturer_id: str
    time_slot_id: str     # Start-Slot
    room_id: str
    program_id: str
    semester: int
    credit_hours: int
    start_time: str       # "HH:MM"
    end_time: str
    start_minute: int
    end_minute: int

    def overlaps(self, other: "ScheduleEntry") -> bool:
        """Gleicher Tag und [start, end) schneiden sich."""
        return (
            self.day == other.day
            and self.start_minute < other.end_minute
            and other.start_minute < self.end_minute
        )


# Spaltenreihenfolge für den CSV-Export
EXPORT_FIELDS: list[str] = [
    "section_id",
    "course_id",
    "class_group_id",
    "day",
    "lecturer_id",
    "time_slot_id",
    "room_id",
    "program_id",
    "semester",
    "credit_hours",
    "start_time",
    "end_time",
]


class ScheduleEncoder:
    """Bidirektionale Abbildung Position ↔ Stundenplan für einen Katalog."""

    def __init__(self, catalog: Catalog) -> None:
        self.catalog = catalog
        self._slots: list[TimeSlot] = list(catalog.time_slots)
        self._candidates: list[list[int]] = [
            self._start_candidates(s) for s in catalog.sections
        ]
        if catalog.sections and not catalog.rooms:
            raise CatalogError("Keine Räume im Katalog – Kodierung unmöglich")

        n_rooms = len(catalog.rooms)
        upper: list[float] = []
        for cands in self._candidates:
            upper.append(len(cands) - 1)
            upper.append(n_rooms - 1)
        self.dimension = 2 * len(catalog.sections)
        self.lower = np.zeros(self.dimension, dtype=float)
        self.upper = np.array(upper, dtype=float)

    # ─── Kandidaten ───────────────────────────────────────────────────────────

    def _fits(self, start: int, span: int) -> bool:
        if start + span > len(self._slots):
            return False
        for k in range(start, start + span - 1):
            if not self._slots[k].is_followed_by(self._slots[k + 1]):
                return False
        return True

    def _start_candidates(self, section: CourseSection) -> list[int]:
        """Slot-Indizes, ab denen das Angebot ohne Tages-/Pausengrenze passt."""
        fits = [i for i in range(len(self._slots)) if self._fits(i, section.span)]
        if not fits:
            raise CatalogError(
                f"Angebot {section.id}: {section.credit_hours} SKS passen in keinen Tagesblock"
            )
        if section.session is not None:
            restricted = [i for i in fits if self._slots[i].session == section.session]
            if restricted:
                return restricted
        return fits

    def candidate_slots(self, section_index: int) -> list[TimeSlot]:
        return [self._slots[i] for i in self._candidates[section_index]]

    # ─── Dekodieren ───────────────────────────────────────────────────────────

    def to_indices(self, position: np.ndarray) -> np.ndarray:
        """Runden + Begrenzen auf gültige Indizes (NaN → 0)."""
        position = np.asarray(position, dtype=float)
        if position.shape != (self.dimension,):
            raise ValueError(
                f"Position hat Form {position.shape}, erwartet ({self.dimension},)"
            )
        cleaned = np.nan_to_num(position, nan=0.0)
        return np.clip(np.rint(cleaned), self.lower, self.upper).astype(int)

    def decode(self, position: np.ndarray) -> list[ScheduleEntry]:
        """Position → Stundenplan (ein Eintrag pro Angebot, Katalogreihenfolge)."""
        idx = self.to_indices(position)
        rooms = self.catalog.rooms
        timetable: list[ScheduleEntry] = []
        for i, section in enumerate(self.catalog.sections):
            start_idx = self._candidates[i][idx[2 * i]]
            first = self._slots[start_idx]
            last = self._slots[start_idx + section.span - 1]
            room = rooms[idx[2 * i + 1]]
            timetable.append(ScheduleEntry(
                section_id=section.id,
                course_id=section.course_id,
                class_group_id=section.class_group_id,
                day=first.day,
                day_name=first.day_name,
                lecturer_id=section.lecturer_id,
                time_slot_id=first.id,
                room_id=room.id,
                program_id=section.program_id,
                semester=section.semester,
                credit_hours=section.credit_hours,
                start_time=first.start_time,
                end_time=last.end_time,
                start_minute=first.start_minute,
                end_minute=last.end_minute,
            ))
        return timetable

    # ─── Kodieren ─────────────────────────────────────────────────────────────

    def encode(self, timetable: list[ScheduleEntry]) -> np.ndarray:
        """Stundenplan → Position (Umkehrung von decode)."""
        if len(timetable) != len(self.catalog.sections):
            raise ValueError(
                f"Stundenplan hat {len(timetable)} Einträge, Katalog {len(self.catalog.sections)}"
            )
        slot_pos = {ts.id: k for k, ts in enumerate(self._slots)}
        room_pos = {r.id: k for k, r in enumerate(self.catalog.rooms)}
        position = np.zeros(self.dimension, dtype=float)
        for i, (section, entry) in enumerate(zip(self.catalog.sections, timetable)):
            if entry.section_id != section.id:
                raise ValueError(
                    f"Eintrag {i}: Angebot {entry.section_id} statt {section.id}"
                )
            try:
                position[2 * i] = self._candidates[i].index(slot_pos[entry.time_slot_id])
                position[2 * i + 1] = room_pos[entry.room_id]
            except (KeyError, ValueError) as e:
                raise ValueError(
                    f"Eintrag {entry.section_id}: Slot/Raum nicht kodierbar ({e})"
                ) from e
        return position

    # ─── Zufallspositionen ────────────────────────────────────────────────────

    def initial_positions(
        self,
        rng: np.random.Generator,
        count: int,
        strategy: str = "uniform",
    ) -> np.ndarray:
        """Erzeugt `count` Startpositionen innerhalb der Grenzen.

        uniform:         gleichverteilt je Dimension
        latin_hypercube: je Dimension wird [0,1) in `count` Schichten geteilt,
                         jede Schicht erhält genau ein Partikel
        """
        if strategy == "latin_hypercube":
            strata = np.stack(
                [rng.permutation(count) for _ in range(self.dimension)], axis=1
            ) if self.dimension else np.zeros((count, 0))
            unit = (strata + rng.random((count, self.dimension))) / count
            return self.lower + unit * (self.upper - self.lower)
        if strategy != "uniform":
            raise ValueError(f"Unbekannte Initialisierung: {strategy}")
        return rng.uniform(self.lower, self.upper, size=(count, self.dimension))

    def clamp(self, position: np.ndarray, out: Optional[np.ndarray] = None) -> np.ndarray:
        """Begrenzt eine Position auf die gültigen Bereiche (kein Umlauf)."""
        return np.clip(position, self.lower, self.upper, out=out)
