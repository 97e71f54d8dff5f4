"""CSV-Export des Stundenplans.

Eine Kopfzeile, danach eine Zeile pro Eintrag in Stundenplan-Reihenfolge.
Jeder Wert steht in Anführungszeichen, eingebettete Anführungszeichen
werden verdoppelt.
"""

import csv
import io
from pathlib import Path

from solver.encoding import EXPORT_FIELDS, ScheduleEntry


def to_csv_text(timetable: list[ScheduleEntry]) -> str:
    """Stundenplan als CSV-Text."""
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(EXPORT_FIELDS)
    for entry in timetable:
        writer.writerow([str(getattr(entry, field)) for field in EXPORT_FIELDS])
    return buf.getvalue()


def write_csv(timetable: list[ScheduleEntry], output_path: Path) -> Path:
    """Schreibt den Stundenplan als CSV-Datei (UTF-8)."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8", newline="") as f:
        f.write(to_csv_text(timetable))
    return output_path
