"""Testdaten-Generator für den Vorlesungsplaner.

Erzeugt einen realistischen Katalog (Studiengänge × Semester × Gruppen) samt
Zeitwünschen der Dozenten und schreibt ihn bei Bedarf als CSV-Dateien, die
data/csv_import.py wieder einlesen kann.

Absichtliche Engpässe:
  1. Abendgruppen: Gruppen mit Suffix "M" (malam) haben nur Abend-Angebote
  2. Vielbeschäftigte Dozenten: wenige Personen tragen viele Angebote
  3. Zeitwünsche: etwa ein Drittel der Dozenten will nur vormittags
"""

import csv
import random
from pathlib import Path
from typing import Optional

from config.schema import PlannerConfig
from data.csv_import import COURSE_COLUMNS, preference_columns
from models.catalog import Catalog
from models.course_section import CourseSection
from models.lecturer import Lecturer
from models.timeslot import build_time_slots

# ─── Namens-Listen ────────────────────────────────────────────────────────────

_FIRST_NAMES = [
    "Andreas", "Birgit", "Christian", "Eva", "Franz", "Iris", "Jürgen",
    "Kathrin", "Lena", "Markus", "Olga", "Peter", "Sandra", "Tobias",
    "Ulrike", "Yusuf", "Zoe", "Monika", "Rainer", "Helmut",
]

_LAST_NAMES = [
    "Müller", "Schmidt", "Schneider", "Fischer", "Weber", "Meyer",
    "Wagner", "Becker", "Schulz", "Hoffmann", "Schäfer", "Koch",
    "Bauer", "Richter", "Klein", "Wolf", "Schröder", "Neumann",
]

# Studiengang-Kürzel → Veranstaltungs-Präfix
_PROGRAMS: dict[str, str] = {
    "INF": "IN",
    "WIN": "WI",
    "BWL": "BW",
}

_CREDIT_HOURS = [2, 2, 3, 3, 3, 4]


class FakeDataGenerator:
    """Generiert Angebote und Zeitwünsche passend zur PlannerConfig."""

    def __init__(
        self,
        config: PlannerConfig,
        seed: Optional[int] = None,
        semesters: int = 2,
        courses_per_group: int = 4,
        num_lecturers: int = 8,
        evening_groups: bool = True,
    ) -> None:
        self.config = config
        self.rng = random.Random(seed)
        self.semesters = semesters
        self.courses_per_group = courses_per_group
        self.num_lecturers = num_lecturers
        self.evening_groups = evening_groups

    # ─── Dozenten ─────────────────────────────────────────────────────────────

    def _generate_lecturers(self) -> list[Lecturer]:
        """Dozenten mit Zeitwünschen auf Abschnittsebene."""
        time_grid = self.config.time_grid
        columns = preference_columns(time_grid)
        morning = time_grid.sessions[0].name
        slots_by_block: dict[tuple[int, str], list[str]] = {}
        for ts in build_time_slots(time_grid):
            slots_by_block.setdefault((ts.day, ts.session), []).append(ts.id)

        lecturers = []
        for i in range(1, self.num_lecturers + 1):
            name = f"{self.rng.choice(_LAST_NAMES)}, {self.rng.choice(_FIRST_NAMES)}"
            only_morning = self.rng.random() < 0.33
            blocks = [
                (day, session)
                for day, session in columns.values()
                if (session == morning or not only_morning) and self.rng.random() < 0.7
            ]
            preferred = [
                (day, slot_id)
                for day, session in blocks
                for slot_id in slots_by_block[(day, session)]
            ]
            lecturers.append(Lecturer(id=f"D{i:02d}", name=name, preferred_slots=preferred))
        return lecturers

    # ─── Angebote ─────────────────────────────────────────────────────────────

    def _generate_sections(self, lecturers: list[Lecturer]) -> list[CourseSection]:
        sessions = [s.name for s in self.config.time_grid.sessions]
        evening = sessions[-1] if len(sessions) > 1 else None
        # Ein Drittel der Dozenten trägt die Hälfte der Angebote
        busy = lecturers[: max(1, len(lecturers) // 3)]

        sections = []
        for program, prefix in _PROGRAMS.items():
            for semester in range(1, self.semesters + 1):
                variants = [("P", None)]
                if self.evening_groups and evening is not None:
                    variants.append(("M", evening))
                for suffix, session in variants:
                    group = f"{program}-{semester}{suffix}"
                    for c in range(1, self.courses_per_group + 1):
                        course_id = f"{prefix}-{semester}{c:02d}"
                        pool = busy if self.rng.random() < 0.5 else lecturers
                        sections.append(CourseSection(
                            id=f"{group}-{course_id}",
                            course_id=course_id,
                            lecturer_id=self.rng.choice(pool).id,
                            class_group_id=group,
                            program_id=program,
                            semester=semester,
                            credit_hours=self.rng.choice(_CREDIT_HOURS),
                            session=session,
                        ))
        return sections

    # ─── Vollständiger Datensatz ──────────────────────────────────────────────

    def generate(self) -> Catalog:
        """Erzeugt den vollständigen Katalog."""
        lecturers = self._generate_lecturers()
        sections = self._generate_sections(lecturers)
        return Catalog.build(self.config, sections, lecturers)

    # ─── Ausgabe ──────────────────────────────────────────────────────────────

    def write_csv(self, catalog: Catalog, directory: Path) -> tuple[Path, Path]:
        """Schreibt courses.csv und preferences.csv; gibt beide Pfade zurück."""
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        course_path = directory / "courses.csv"
        pref_path = directory / "preferences.csv"

        with open(course_path, "w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(COURSE_COLUMNS + ["session"])
            for s in catalog.sections:
                writer.writerow([
                    s.id, s.course_id, s.lecturer_id, s.class_group_id,
                    s.program_id, s.semester, s.credit_hours, s.session or "",
                ])

        columns = preference_columns(self.config.time_grid)
        # Slot-IDs sind wochenweit eindeutig ("Tag_Einheit")
        slot_block = {ts.id: (ts.day, ts.session) for ts in catalog.time_slots}
        with open(pref_path, "w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(["lecturer_id", "name"] + list(columns))
            for lec in catalog.lecturers:
                if not lec.has_preferences:
                    continue
                blocks = {
                    slot_block[slot_id]
                    for _day, slot_id in lec.preferred_slots
                    if slot_id in slot_block
                }
                writer.writerow(
                    [lec.id, lec.name or ""]
                    + ["1" if block in blocks else "0" for block in columns.values()]
                )
        return course_path, pref_path

    def print_summary(self, catalog: Catalog) -> None:
        """Gibt eine Rich-Tabelle mit Übersicht der erzeugten Daten aus."""
        from rich import box
        from rich.console import Console
        from rich.table import Table

        console = Console()
        table = Table(title="Erzeugte Testdaten", box=box.ROUNDED)
        table.add_column("Kategorie", style="bold cyan")
        table.add_column("Anzahl", justify="right")
        table.add_column("Details")

        with_session = sum(1 for s in catalog.sections if s.session)
        table.add_row("Angebote", str(len(catalog.sections)),
                      f"{with_session} mit festem Abschnitt")
        table.add_row("Gruppen", str(len(catalog.class_groups)),
                      f"{len({g.program_id for g in catalog.class_groups})} Studiengänge")
        table.add_row("Dozenten", str(len(catalog.lecturers)), "")
        table.add_row("Räume", str(len(catalog.rooms)), "")
        table.add_row("Zeitslots", str(len(catalog.time_slots)), "")

        console.print(table)
