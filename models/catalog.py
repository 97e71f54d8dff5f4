"""Catalog: Vollständiger Veranstaltungskatalog + Machbarkeits-Check (Pydantic v2)."""

from collections import Counter
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from config.schema import PlannerConfig
from models.class_group import ClassGroup
from models.course_section import CourseSection
from models.lecturer import Lecturer
from models.room import Room
from models.timeslot import TimeSlot, build_time_slots


class CatalogError(ValueError):
    """Fehlerhafte Eingabedaten für den Katalog."""


class FeasibilityReport(BaseModel):
    """Ergebnis des Machbarkeits-Checks.

    errors: Anfrage ist ungültig, es wird kein Lauf gestartet.
    warnings: Konfliktfreier Plan wahrscheinlich unmöglich, Optimierung läuft trotzdem.
    """

    is_feasible: bool
    errors: list[str]
    warnings: list[str]

    def print_rich(self) -> None:
        """Gibt den Report formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel

        console = Console()
        if self.is_feasible:
            status = "[bold green]✓ GÜLTIG[/bold green]"
        else:
            status = "[bold red]✗ UNGÜLTIG[/bold red]"

        lines = [status]
        if self.errors:
            lines.append("\n[red bold]Fehler (kritisch):[/red bold]")
            for e in self.errors:
                lines.append(f"  [red]• {e}[/red]")
        if self.warnings:
            lines.append("\n[yellow bold]Warnungen:[/yellow bold]")
            for w in self.warnings:
                lines.append(f"  [yellow]• {w}[/yellow]")
        if not self.errors and not self.warnings:
            lines.append("[dim]Keine Probleme gefunden.[/dim]")

        console.print(Panel("\n".join(lines), title="Machbarkeits-Check", border_style="cyan"))


class Catalog(BaseModel):
    """Unveränderlicher Katalog: Angebote, Dozenten, Räume, Zeitslots, Gruppen.

    Wird einmal aus den Eingabedaten aufgebaut; die Reihenfolge von
    `sections` bestimmt die Reihenfolge der Einträge im Stundenplan.
    """

    sections: list[CourseSection]
    lecturers: list[Lecturer]
    rooms: list[Room]
    time_slots: list[TimeSlot]
    class_groups: list[ClassGroup]

    # ─── Aufbau ───

    @classmethod
    def build(
        cls,
        config: PlannerConfig,
        sections: list[CourseSection],
        lecturers: list[Lecturer],
        class_groups: Optional[list[ClassGroup]] = None,
    ) -> "Catalog":
        """Baut den Katalog aus Konfiguration (Zeitraster, Räume) und Eingabedaten.

        Dozenten ohne Präferenz-Datensatz werden ergänzt (has_preferences=False),
        fehlende Gruppen werden aus den Angeboten abgeleitet.
        """
        known = {lec.id for lec in lecturers}
        all_lecturers = list(lecturers)
        for section in sections:
            if section.lecturer_id not in known:
                known.add(section.lecturer_id)
                all_lecturers.append(Lecturer(id=section.lecturer_id, has_preferences=False))

        groups = list(class_groups or [])
        known_groups = {g.id for g in groups}
        for section in sections:
            if section.class_group_id not in known_groups:
                known_groups.add(section.class_group_id)
                groups.append(ClassGroup(
                    id=section.class_group_id,
                    program_id=section.program_id,
                    semester=section.semester,
                ))

        rooms = [
            Room(id=r.id, name=r.name or r.id, capacity=r.capacity)
            for r in config.rooms.rooms
        ]
        return cls(
            sections=list(sections),
            lecturers=all_lecturers,
            rooms=rooms,
            time_slots=build_time_slots(config.time_grid),
            class_groups=groups,
        )

    # ─── Lookups ───

    def lecturer_map(self) -> dict[str, Lecturer]:
        return {lec.id: lec for lec in self.lecturers}

    def get_section(self, section_id: str) -> CourseSection:
        for s in self.sections:
            if s.id == section_id:
                return s
        raise KeyError(f"Angebot '{section_id}' nicht im Katalog")

    @property
    def session_names(self) -> set[str]:
        return {ts.session for ts in self.time_slots}

    def max_contiguous_units(self, session: Optional[str] = None) -> int:
        """Längster lückenloser Slot-Block an einem Tag (optional je Abschnitt)."""
        best = 0
        run = 0
        prev: Optional[TimeSlot] = None
        for ts in self.time_slots:
            if session is not None and ts.session != session:
                prev = None
                run = 0
                continue
            if prev is not None and prev.is_followed_by(ts):
                run += 1
            else:
                run = 1
            best = max(best, run)
            prev = ts
        return best

    # ─── Übersicht ───

    def summary(self) -> str:
        """Kurze Übersicht über den Katalog."""
        total_units = sum(s.credit_hours for s in self.sections)
        capacity = len(self.rooms) * len(self.time_slots)
        with_prefs = sum(1 for lec in self.lecturers if lec.has_preferences)
        lines = [
            f"Angebote: {len(self.sections)} ({total_units} SKS-Einheiten)",
            f"Dozenten: {len(self.lecturers)} ({with_prefs} mit Zeitwünschen)",
            f"Gruppen: {len(self.class_groups)}",
            f"Räume: {len(self.rooms)}",
            f"Zeitslots: {len(self.time_slots)} "
            f"({len({ts.day for ts in self.time_slots})} Tage)",
            f"Raum-Slot-Kapazität: {capacity} Einheiten "
            f"({total_units / capacity * 100:.1f}% belegt)" if capacity else "",
        ]
        return "\n".join(l for l in lines if l)

    # ─── Machbarkeits-Check ───

    def validate_feasibility(self) -> FeasibilityReport:
        """Prüft, ob eine Optimierung gestartet werden darf.

        Fehler:
        1. Leere Angebote, Räume, Zeitslots oder fehlende Präferenzdaten
        2. Doppelte Angebots-IDs
        3. Unbekannter Abschnitt / SKS passt in keinen Tagesblock
        Warnungen (Lauf findet trotzdem statt):
        4. Gesamtbedarf > Raum-Slot-Kapazität
        5. Gruppe oder Dozent mit mehr Einheiten als Slots pro Woche
        6. Dozenten ohne Zeitwünsche
        """
        errors: list[str] = []
        warnings: list[str] = []

        # ── 1. Leere Eingaben ───────────────────────────────────────────
        if not self.sections:
            errors.append("Keine Lehrveranstaltungen im Katalog.")
        if not self.rooms:
            errors.append("Keine Räume konfiguriert.")
        if not self.time_slots:
            errors.append("Zeitraster enthält keine Zeitslots.")
        if not any(lec.has_preferences for lec in self.lecturers):
            errors.append("Keine Dozenten-Präferenzen vorhanden.")

        # ── 2. Doppelte IDs ─────────────────────────────────────────────
        dupes = [sid for sid, n in Counter(s.id for s in self.sections).items() if n > 1]
        if dupes:
            errors.append(f"Doppelte Angebots-IDs: {', '.join(sorted(dupes))}")

        # ── 3. SKS passt nicht ins Raster ───────────────────────────────
        sessions = self.session_names
        longest = self.max_contiguous_units()
        for s in self.sections:
            if s.session is not None and s.session not in sessions:
                errors.append(
                    f"Angebot {s.id}: Unbekannter Abschnitt '{s.session}' "
                    f"(verfügbar: {', '.join(sorted(sessions))})"
                )
            elif s.credit_hours > longest:
                errors.append(
                    f"Angebot {s.id}: {s.credit_hours} SKS passen in keinen Tagesblock "
                    f"(maximal {longest} zusammenhängende Einheiten)"
                )
            elif s.session is not None and s.credit_hours > self.max_contiguous_units(s.session):
                warnings.append(
                    f"Angebot {s.id}: {s.credit_hours} SKS passen nicht in Abschnitt "
                    f"'{s.session}' – es werden alle Abschnitte zugelassen."
                )

        # ── 4. Gesamtkapazität ──────────────────────────────────────────
        total_units = sum(s.credit_hours for s in self.sections)
        capacity = len(self.rooms) * len(self.time_slots)
        if capacity and total_units > capacity:
            warnings.append(
                f"Gesamtbedarf ({total_units} Einheiten) > Raum-Slot-Kapazität "
                f"({capacity}) – harte Konflikte sind unvermeidbar."
            )

        # ── 5. Gruppen / Dozenten überbucht ─────────────────────────────
        slots_per_week = len(self.time_slots)
        group_need: Counter = Counter()
        lecturer_need: Counter = Counter()
        for s in self.sections:
            group_need[s.class_group_id] += s.credit_hours
            lecturer_need[s.lecturer_id] += s.credit_hours
        for gid, need in sorted(group_need.items()):
            if need > slots_per_week:
                warnings.append(
                    f"Gruppe {gid}: {need} Einheiten bei nur {slots_per_week} Slots pro Woche."
                )
        for lid, need in sorted(lecturer_need.items()):
            if need > slots_per_week:
                warnings.append(
                    f"Dozent {lid}: {need} Einheiten bei nur {slots_per_week} Slots pro Woche."
                )

        # ── 6. Dozenten ohne Wünsche ────────────────────────────────────
        without = [lec.id for lec in self.lecturers if not lec.has_preferences]
        if without and len(without) < len(self.lecturers):
            warnings.append(
                f"Keine Zeitwünsche für {len(without)} Dozent(en) "
                f"({', '.join(without[:6])}{'...' if len(without) > 6 else ''}) – "
                f"Präferenzprüfung entfällt."
            )

        return FeasibilityReport(
            is_feasible=len(errors) == 0,
            errors=errors,
            warnings=warnings,
        )

    # ─── Persistenz ────────────────────────────────────────────────────────

    def save_json(self, path: Path) -> None:
        """Speichert den Katalog als JSON-Datei."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.model_dump_json(indent=2))

    @classmethod
    def load_json(cls, path: Path) -> "Catalog":
        """Lädt einen Katalog aus einer JSON-Datei."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"JSON-Datei nicht gefunden: {path}")
        with open(path, "r", encoding="utf-8") as f:
            return cls.model_validate_json(f.read())
