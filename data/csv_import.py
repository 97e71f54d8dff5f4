"""CSV-Import für Lehrveranstaltungen und Dozenten-Zeitwünsche.

Veranstaltungs-CSV (eine Zeile pro Angebot):
    id,course_id,lecturer_id,class_group_id,program_id,semester,credit_hours[,session]

Zeitwunsch-CSV (breites Format, eine Zeile pro Lehrperson):
    lecturer_id[,name],Mo_vormittag,Mo_abend,Di_vormittag,...
Ein wahrer Wert ("1", "true", "ja", "x") bedeutet: alle Einheiten dieses
Abschnitts an diesem Tag sind erwünscht.

Verwendet nur stdlib csv.
"""

import csv
import io
import logging
from pathlib import Path
from typing import Iterable, Optional

from pydantic import ValidationError

from config.schema import PlannerConfig, TimeGridConfig
from models.catalog import Catalog, CatalogError
from models.course_section import CourseSection
from models.lecturer import Lecturer
from models.timeslot import build_time_slots

logger = logging.getLogger(__name__)

COURSE_COLUMNS = [
    "id",
    "course_id",
    "lecturer_id",
    "class_group_id",
    "program_id",
    "semester",
    "credit_hours",
]

_TRUE_VALUES = {"1", "true", "ja", "yes", "x", "y", "wahr"}
_FALSE_VALUES = {"", "0", "false", "nein", "no", "n", "falsch", "-"}


def _read_text(path: Path) -> str:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Datei nicht gefunden: {path}")
    # utf-8-sig: Excel schreibt gern ein BOM an den Anfang
    return path.read_text(encoding="utf-8-sig")


def _rows(text: str, required: Iterable[str], source: str) -> list[tuple[int, dict[str, str]]]:
    """(Zeilennummer in der Datei, Zeile) für alle nicht-leeren Datenzeilen."""
    reader = csv.DictReader(io.StringIO(text))
    header = [h.strip() for h in (reader.fieldnames or [])]
    missing = [c for c in required if c not in header]
    if missing:
        raise CatalogError(f"{source}: Spalten fehlen: {', '.join(missing)}")
    reader.fieldnames = header
    rows: list[tuple[int, dict[str, str]]] = []
    for row in reader:
        if not any((v or "").strip() for v in row.values() if isinstance(v, str)):
            continue
        # line_num zählt physische Zeilen, auch übersprungene
        rows.append((
            reader.line_num,
            {k: (v or "").strip() for k, v in row.items() if k is not None},
        ))
    return rows


# ─── Veranstaltungen ──────────────────────────────────────────────────────────

def parse_course_csv(text: str, source: str = "Veranstaltungen") -> list[CourseSection]:
    """Parst den Inhalt einer Veranstaltungs-CSV.

    Raises:
        CatalogError: fehlende Spalten oder ungültige Zeile (mit Zeilennummer)
    """
    sections: list[CourseSection] = []
    for line_no, row in _rows(text, COURSE_COLUMNS, source):
        try:
            sections.append(CourseSection(
                id=row["id"],
                course_id=row["course_id"],
                lecturer_id=row["lecturer_id"],
                class_group_id=row["class_group_id"],
                program_id=row["program_id"],
                semester=row["semester"],
                credit_hours=row["credit_hours"],
                session=row.get("session") or None,
            ))
        except ValidationError as e:
            fields = ", ".join(str(err["loc"][0]) for err in e.errors())
            raise CatalogError(f"{source}, Zeile {line_no}: ungültige Werte ({fields})") from e
    logger.debug(f"{len(sections)} Angebote aus {source} gelesen")
    return sections


def load_courses_csv(path: Path) -> list[CourseSection]:
    """Lädt Angebote aus einer CSV-Datei."""
    return parse_course_csv(_read_text(path), source=Path(path).name)


# ─── Zeitwünsche ──────────────────────────────────────────────────────────────

def _parse_flag(value: str, where: str) -> bool:
    v = value.strip().lower()
    if v in _TRUE_VALUES:
        return True
    if v in _FALSE_VALUES:
        return False
    raise CatalogError(f"{where}: '{value}' ist kein Ja/Nein-Wert")


def preference_columns(time_grid: TimeGridConfig) -> dict[str, tuple[int, str]]:
    """Spaltenname → (Tag, Abschnitt), z.B. "Mo_abend" → (0, "abend")."""
    return {
        f"{day_name}_{session.name}": (day, session.name)
        for day, day_name in enumerate(time_grid.day_names)
        for session in time_grid.sessions
    }


def parse_preference_csv(
    text: str,
    time_grid: TimeGridConfig,
    source: str = "Zeitwünsche",
) -> list[Lecturer]:
    """Parst Zeitwünsche im breiten Format und expandiert sie zu (Tag, Slot)-Paaren.

    Unbekannte Spalten werden mit Warnung ignoriert. Eine Lehrperson darf
    nur einmal vorkommen.
    """
    columns = preference_columns(time_grid)
    slots_by_block: dict[tuple[int, str], list[str]] = {}
    for ts in build_time_slots(time_grid):
        slots_by_block.setdefault((ts.day, ts.session), []).append(ts.id)

    rows = _rows(text, ["lecturer_id"], source)
    if rows:
        unknown = [c for c in rows[0][1] if c not in columns and c not in ("lecturer_id", "name")]
        for col in unknown:
            logger.warning(f"{source}: unbekannte Spalte '{col}' wird ignoriert")

    lecturers: list[Lecturer] = []
    seen: set[str] = set()
    for line_no, row in rows:
        lecturer_id = row["lecturer_id"]
        where = f"{source}, Zeile {line_no}"
        if not lecturer_id:
            raise CatalogError(f"{where}: lecturer_id fehlt")
        if lecturer_id in seen:
            raise CatalogError(f"{where}: Dozent {lecturer_id} doppelt")
        seen.add(lecturer_id)

        preferred: list[tuple[int, str]] = []
        for column, (day, session) in columns.items():
            if column in row and _parse_flag(row[column], f"{where}, Spalte {column}"):
                preferred.extend((day, slot_id) for slot_id in slots_by_block[(day, session)])
        lecturers.append(Lecturer(
            id=lecturer_id,
            name=row.get("name") or None,
            preferred_slots=preferred,
        ))
    logger.debug(f"{len(lecturers)} Zeitwunsch-Datensätze aus {source} gelesen")
    return lecturers


def load_preferences_csv(path: Path, time_grid: TimeGridConfig) -> list[Lecturer]:
    """Lädt Zeitwünsche aus einer CSV-Datei."""
    return parse_preference_csv(_read_text(path), time_grid, source=Path(path).name)


def load_catalog(
    config: PlannerConfig,
    course_path: Path,
    preference_path: Optional[Path] = None,
) -> Catalog:
    """Baut den vollständigen Katalog aus Konfiguration und CSV-Dateien."""
    sections = load_courses_csv(course_path)
    lecturers = (
        load_preferences_csv(preference_path, config.time_grid)
        if preference_path is not None
        else []
    )
    catalog = Catalog.build(config, sections, lecturers)
    logger.info(
        f"Katalog geladen: {len(catalog.sections)} Angebote, "
        f"{len(catalog.lecturers)} Dozenten, {len(catalog.rooms)} Räume"
    )
    return catalog
