"""Gemeinsame Hilfsfunktionen für Excel- und Konsolen-Export."""

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Union

from models.timeslot import TimeSlot
from solver.encoding import ScheduleEntry
from solver.fitness import ConflictReport

# ─── Farbpalette (RRGGBB, ohne #) ─────────────────────────────────────────────

COLORS: dict[str, str] = {
    "entry":    "B3D4FF",
    "evening":  "D4B3FF",
    "conflict": "FF9999",
    "free":     "F5F5F5",
    "pause":    "DDDDDD",
    "header":   "4472C4",
    "ok":       "CCFFCC",
    "warn":     "FFEECC",
}


def today_str() -> str:
    """Gibt das heutige Datum als DD.MM.YYYY zurück."""
    return date.today().strftime("%d.%m.%Y")


# ─── Zeitraster-Hilfsfunktionen ───────────────────────────────────────────────

@dataclass(frozen=True)
class UnitRow:
    """Eine Zeile im Wochenraster: n-te Einheit eines Tages."""

    unit_no: int
    start_time: str
    end_time: str
    session: str


@dataclass(frozen=True)
class BreakRow:
    """Pause zwischen zwei Tagesabschnitten."""

    label: str


def build_time_grid_rows(time_slots: list[TimeSlot]) -> list[Union[UnitRow, BreakRow]]:
    """Gibt geordnete Zeilen (Einheiten + Pausen) anhand des ersten Tages zurück.

    Alle Tage haben dasselbe Raster, daher reicht Tag 0.
    """
    if not time_slots:
        return []
    first_day = time_slots[0].day
    rows: list[Union[UnitRow, BreakRow]] = []
    prev: TimeSlot | None = None
    for ts in time_slots:
        if ts.day != first_day:
            break
        if prev is not None and not prev.is_followed_by(ts):
            rows.append(BreakRow(label=f"{prev.end_time}–{ts.start_time}"))
        rows.append(UnitRow(
            unit_no=unit_number(ts.id),
            start_time=ts.start_time,
            end_time=ts.end_time,
            session=ts.session,
        ))
        prev = ts
    return rows


def unit_number(slot_id: str) -> int:
    """Laufende Einheit innerhalb des Tages, z.B. "2_4" → 4."""
    return int(slot_id.rsplit("_", 1)[1])


def covered_units(entry: ScheduleEntry) -> list[int]:
    """Alle Einheiten, die ein Eintrag ab seinem Start-Slot belegt."""
    first = unit_number(entry.time_slot_id)
    return list(range(first, first + entry.credit_hours))


def build_grid(entries: list[ScheduleEntry]) -> dict[tuple[int, int], list[ScheduleEntry]]:
    """Baut {(day, unit_no): [entries]}; mehrstündige Einträge in jeder Einheit."""
    grid: dict[tuple[int, int], list[ScheduleEntry]] = defaultdict(list)
    for e in entries:
        for unit in covered_units(e):
            grid[(e.day, unit)].append(e)
    return grid


# ─── Konflikte ────────────────────────────────────────────────────────────────

def conflicting_sections(report: ConflictReport) -> set[str]:
    """IDs aller Angebote, die an einem harten Konflikt beteiligt sind."""
    ids: set[str] = set()
    for c in report.room_conflicts + report.lecturer_conflicts + report.class_group_conflicts:
        ids.add(c.section_a)
        ids.add(c.section_b)
    return ids


# ─── Zelleninhalt-Formatierung ────────────────────────────────────────────────

def format_entry(entry: ScheduleEntry, mode: str = "group") -> str:
    """Formatiert einen einzelnen Eintrag als Zelleninhalt.

    mode='group':    "Veranstaltung\nDozent · Raum"
    mode='lecturer': "Veranstaltung\nGruppe · Raum"
    mode='room':     "Gruppe\nVeranstaltung"
    """
    if mode == "group":
        return f"{entry.course_id}\n{entry.lecturer_id} · {entry.room_id}"
    elif mode == "lecturer":
        return f"{entry.course_id}\n{entry.class_group_id} · {entry.room_id}"
    elif mode == "room":
        return f"{entry.class_group_id}\n{entry.course_id}"
    return entry.course_id


def format_entries(entries: list[ScheduleEntry], mode: str = "group") -> str:
    """Formatiert mehrere Einträge für eine Zelle (getrennt durch ──).

    Mehrere Einträge in einer Zelle bedeuten immer einen Konflikt.
    """
    if not entries:
        return ""
    if len(entries) == 1:
        return format_entry(entries[0], mode)
    return "\n──\n".join(format_entry(e, mode) for e in entries)
