"""Excel-Export für den Vorlesungsplan (openpyxl)."""

from pathlib import Path
from typing import Optional

from models.catalog import Catalog
from solver.encoding import ScheduleEntry
from solver.result import OptimizationResult

from export.helpers import (
    COLORS, BreakRow, UnitRow, build_grid, build_time_grid_rows,
    conflicting_sections, format_entries, today_str, unit_number,
)


class ExcelExporter:
    """Exportiert ein OptimizationResult in eine Excel-Datei.

    Sheets: Übersicht, ein Raster je Studiengruppe (optional je Dozent),
    Konflikte.
    """

    # Spaltenbreiten (Excel-Einheiten)
    COL_STD_W  = 6
    COL_ZEIT_W = 15
    COL_DAY_W  = 22

    # Zeilenhöhen (Punkte)
    ROW_HEADER_H  = 22
    ROW_UNIT_H    = 40
    ROW_PAUSE_H   = 12

    def __init__(
        self,
        result: OptimizationResult,
        catalog: Catalog,
        institution_name: str = "",
        day_names: Optional[list[str]] = None,
    ):
        self.result     = result
        self.catalog    = catalog
        self.institution_name = institution_name
        self.day_names  = day_names or list(dict.fromkeys(ts.day_name for ts in catalog.time_slots))
        self.days       = list(range(len(self.day_names)))
        self._conflicted = conflicting_sections(result.conflicts)

    # ─── Öffentliche API ──────────────────────────────────────────────────────

    def export(self, output_path: Path, include_lecturers: bool = False) -> Path:
        """Erstellt die Excel-Datei mit allen Sheets."""
        from openpyxl import Workbook
        wb = Workbook()
        wb.remove(wb.active)   # Leeres Standard-Sheet entfernen

        self._sheet_uebersicht(wb)

        for group in sorted(self.catalog.class_groups, key=lambda g: g.id):
            self._sheet_raster(
                wb, f"Gruppe {group.id}", self.result.get_group_schedule(group.id), "group"
            )

        if include_lecturers:
            for lec in sorted(self.catalog.lecturers, key=lambda l: l.id):
                entries = self.result.get_lecturer_schedule(lec.id)
                if entries:
                    self._sheet_raster(wb, f"Dozent {lec.id}", entries, "lecturer")

        self._sheet_konflikte(wb)

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        wb.save(output_path)
        return output_path

    # ─── Style-Helpers ────────────────────────────────────────────────────────

    def _fill(self, hex_color: str):
        from openpyxl.styles import PatternFill
        return PatternFill(start_color=hex_color, end_color=hex_color, fill_type="solid")

    def _center_align(self, wrap: bool = True):
        from openpyxl.styles import Alignment
        return Alignment(wrap_text=wrap, horizontal="center", vertical="center")

    def _thin_border(self):
        from openpyxl.styles import Border, Side
        s = Side(border_style="thin", color="BBBBBB")
        return Border(left=s, right=s, top=s, bottom=s)

    def _header_cells(self, ws, row: int, headers: list[str]) -> None:
        from openpyxl.styles import Font
        fill = self._fill(COLORS["header"])
        border = self._thin_border()
        for col, text in enumerate(headers, 1):
            c = ws.cell(row=row, column=col, value=text)
            c.fill = fill
            c.font = Font(bold=True, color="FFFFFF", size=10)
            c.border = border

    def _setup_sheet(self, ws) -> None:
        """Setzt Spaltenbreiten für ein Rasterblatt."""
        from openpyxl.utils import get_column_letter
        ws.column_dimensions["A"].width = self.COL_STD_W
        ws.column_dimensions["B"].width = self.COL_ZEIT_W
        for col in range(3, 3 + len(self.days)):
            ws.column_dimensions[get_column_letter(col)].width = self.COL_DAY_W

    def _cell_color(self, entries: list[ScheduleEntry], session: str) -> str:
        """Konflikt rot, spätere Tagesabschnitte violett, sonst blau."""
        if not entries:
            return COLORS["free"]
        if len(entries) > 1 or any(e.section_id in self._conflicted for e in entries):
            return COLORS["conflict"]
        slots = self.catalog.time_slots
        if slots and session != slots[0].session:
            return COLORS["evening"]
        return COLORS["entry"]

    # ─── Sheet: Raster ────────────────────────────────────────────────────────

    def _sheet_raster(self, wb, title: str, entries: list[ScheduleEntry], mode: str) -> None:
        """Wochenraster; mehrstündige Einträge werden vertikal verbunden."""
        from openpyxl.styles import Font

        ws = wb.create_sheet(title=title[:31])
        self._setup_sheet(ws)
        self._header_cells(ws, 1, ["Std.", "Zeit"] + self.day_names)
        ws.row_dimensions[1].height = self.ROW_HEADER_H

        grid = build_grid(entries)
        border = self._thin_border()
        unit_rows: dict[int, int] = {}   # unit_no → Excel-Zeile
        excel_row = 2

        for row_obj in build_time_grid_rows(self.catalog.time_slots):
            if isinstance(row_obj, UnitRow):
                unit_rows[row_obj.unit_no] = excel_row
                c = ws.cell(row=excel_row, column=1, value=row_obj.unit_no)
                c.alignment = self._center_align(wrap=False)
                c.border = border
                c.font = Font(bold=True, size=9)
                c = ws.cell(
                    row=excel_row, column=2,
                    value=f"{row_obj.start_time}–{row_obj.end_time}",
                )
                c.alignment = self._center_align(wrap=False)
                c.border = border
                c.font = Font(size=8)

                for day in self.days:
                    here = grid.get((day, row_obj.unit_no), [])
                    c = ws.cell(row=excel_row, column=day + 3, value=format_entries(here, mode))
                    c.fill = self._fill(self._cell_color(here, row_obj.session))
                    c.alignment = self._center_align()
                    c.border = border
                    c.font = Font(size=8)
                ws.row_dimensions[excel_row].height = self.ROW_UNIT_H

            elif isinstance(row_obj, BreakRow):
                ws.merge_cells(
                    start_row=excel_row, start_column=1,
                    end_row=excel_row, end_column=2 + len(self.days),
                )
                c = ws.cell(row=excel_row, column=1, value=f"── Pause {row_obj.label} ──")
                c.fill = self._fill(COLORS["pause"])
                c.alignment = self._center_align(wrap=False)
                c.font = Font(italic=True, size=8, color="666666")
                ws.row_dimensions[excel_row].height = self.ROW_PAUSE_H

            excel_row += 1

        # Mehrstündige Einträge ohne Überschneidung zusammenführen
        for e in entries:
            if e.credit_hours < 2:
                continue
            first = unit_number(e.time_slot_id)
            last = first + e.credit_hours - 1
            cells = [grid.get((e.day, u), []) for u in range(first, last + 1)]
            if any(len(c) != 1 for c in cells):
                continue
            row1, row2 = unit_rows.get(first), unit_rows.get(last)
            if row1 is None or row2 is None:
                continue
            ws.merge_cells(
                start_row=row1, start_column=e.day + 3,
                end_row=row2, end_column=e.day + 3,
            )

    # ─── Sheet: Übersicht ─────────────────────────────────────────────────────

    def _sheet_uebersicht(self, wb) -> None:
        from openpyxl.styles import Font
        ws = wb.create_sheet(title="Übersicht", index=0)
        res = self.result
        border = self._thin_border()

        row = 1
        ws.cell(row=row, column=1, value=self.institution_name or "Vorlesungsplan").font = Font(bold=True, size=14)
        row += 1
        ws.cell(row=row, column=1, value=f"Erstellt: {today_str()}")
        status = "abgebrochen" if res.cancelled else ("OK" if res.success else "Fehler")
        ws.cell(row=row, column=3, value=f"Status: {status}")
        ws.cell(row=row, column=4, value=f"Zeit: {res.elapsed_seconds:.1f}s")
        if res.fitness is not None:
            ws.cell(row=row, column=5, value=f"Fitness: {res.fitness:.1f}")
        row += 2

        # Konfliktzahlen
        self._header_cells(ws, row, ["Konfliktart", "Anzahl"])
        row += 1
        labels = {
            "room": "Raum",
            "lecturer": "Dozent",
            "class_group": "Gruppe",
            "preference": "Zeitwunsch",
        }
        for kind, count in res.conflicts.counts().items():
            ws.cell(row=row, column=1, value=labels[kind]).border = border
            c = ws.cell(row=row, column=2, value=count)
            c.border = border
            c.fill = self._fill(COLORS["ok"] if count == 0 else COLORS["warn"])
            row += 1
        row += 1

        # Läufe
        ws.cell(row=row, column=1, value="Bestwerte je Lauf").font = Font(bold=True)
        row += 1
        self._header_cells(ws, row, ["Lauf", "Fitness"])
        row += 1
        for i, value in enumerate(res.all_best_fitness, 1):
            ws.cell(row=row, column=1, value=i).border = border
            c = ws.cell(row=row, column=2, value=value)
            c.border = border
            if res.best_run is not None and i - 1 == res.best_run:
                c.font = Font(bold=True)
            row += 1
        row += 1

        # Gruppen
        ws.cell(row=row, column=1, value="Studiengruppen").font = Font(bold=True)
        row += 1
        self._header_cells(ws, row, ["Gruppe", "Studiengang", "Semester", "Angebote", "SKS"])
        row += 1
        for group in sorted(self.catalog.class_groups, key=lambda g: g.id):
            entries = res.get_group_schedule(group.id)
            ws.cell(row=row, column=1, value=group.id).border = border
            ws.cell(row=row, column=2, value=group.program_id).border = border
            ws.cell(row=row, column=3, value=group.semester).border = border
            ws.cell(row=row, column=4, value=len(entries)).border = border
            ws.cell(row=row, column=5, value=sum(e.credit_hours for e in entries)).border = border
            row += 1

        ws.column_dimensions["A"].width = 16
        ws.column_dimensions["B"].width = 14
        ws.column_dimensions["C"].width = 18
        ws.column_dimensions["D"].width = 12
        ws.column_dimensions["E"].width = 14

    # ─── Sheet: Konflikte ─────────────────────────────────────────────────────

    def _sheet_konflikte(self, wb) -> None:
        from openpyxl.styles import Font
        ws = wb.create_sheet(title="Konflikte")
        border = self._thin_border()
        report = self.result.conflicts

        self._header_cells(ws, 1, ["Art", "Ressource", "Angebot A", "Angebot B", "Beschreibung"])
        row = 2
        for c in report.room_conflicts + report.lecturer_conflicts + report.class_group_conflicts:
            values = [c.kind, c.resource_id, c.section_a, c.section_b, c.description]
            for col, value in enumerate(values, 1):
                cell = ws.cell(row=row, column=col, value=value)
                cell.border = border
                cell.fill = self._fill(COLORS["conflict"])
            row += 1
        for p in report.preference_conflicts:
            values = ["preference", p.lecturer_id, p.section_id, "", p.description]
            for col, value in enumerate(values, 1):
                cell = ws.cell(row=row, column=col, value=value)
                cell.border = border
                cell.fill = self._fill(COLORS["warn"])
            row += 1
        if row == 2:
            ws.cell(row=row, column=1, value="Keine Konflikte.").font = Font(italic=True)

        ws.column_dimensions["A"].width = 12
        ws.column_dimensions["B"].width = 14
        ws.column_dimensions["C"].width = 20
        ws.column_dimensions["D"].width = 20
        ws.column_dimensions["E"].width = 90
