"""Tests für Katalog, Machbarkeits-Check, CSV-Import und Testdaten-Generator."""

from pathlib import Path

import pytest

from config.schema import PlannerConfig, RoomConfig, RoomDef, SessionDef, TimeGridConfig
from config.defaults import default_planner_config
from data.csv_import import (
    load_catalog,
    parse_course_csv,
    parse_preference_csv,
    preference_columns,
)
from data.fake_data import FakeDataGenerator
from models import Catalog, CatalogError, CourseSection, Lecturer


# ─── Hilfsfunktionen ──────────────────────────────────────────────────────────

def make_config(units: int = 4, rooms: int = 2, evening: int = 0) -> PlannerConfig:
    """Kleines Raster: Mo+Di, ein Vormittag mit `units` Einheiten (optional Abend)."""
    sessions = [SessionDef(name="vormittag", start_time="08:00", num_units=units)]
    if evening:
        sessions.append(SessionDef(name="abend", start_time="18:00", num_units=evening))
    return PlannerConfig(
        time_grid=TimeGridConfig(day_names=["Mo", "Di"], unit_minutes=40, sessions=sessions),
        rooms=RoomConfig(rooms=[RoomDef(id=f"R{i}") for i in range(1, rooms + 1)]),
    )


def make_section(sid: str, lecturer: str = "L1", group: str = "G1",
                 credit_hours: int = 1, session=None) -> CourseSection:
    return CourseSection(
        id=sid, course_id=f"C-{sid}", lecturer_id=lecturer, class_group_id=group,
        program_id="INF", semester=1, credit_hours=credit_hours, session=session,
    )


def make_catalog(sections, lecturers=None, config=None) -> Catalog:
    config = config or make_config()
    if lecturers is None:
        lecturers = [Lecturer(id="L1", preferred_slots=[(0, "0_1")])]
    return Catalog.build(config, sections, lecturers)


COURSE_CSV = (
    "id,course_id,lecturer_id,class_group_id,program_id,semester,credit_hours,session\n"
    "J1,MK-101,D1,IF-1A,INF,1,2,vormittag\n"
    "J2,MK-102,D2,IF-1A,INF,1,3,\n"
    "J3,MK-201,D1,IF-3B,INF,3,1,abend\n"
)

PREF_CSV = (
    "lecturer_id,name,Mo_vormittag,Mo_abend,Di_vormittag,Di_abend\n"
    "D1,\"Weber, Eva\",1,0,ja,x\n"
)


# ─── Katalog ──────────────────────────────────────────────────────────────────

class TestCatalogBuild:
    def test_missing_lecturers_added_without_preferences(self):
        """Dozenten ohne Präferenz-Datensatz werden ergänzt, aber nie bestraft."""
        cat = make_catalog([make_section("A", lecturer="L1"), make_section("B", lecturer="L2")])
        by_id = cat.lecturer_map()
        assert by_id["L1"].has_preferences
        assert not by_id["L2"].has_preferences
        assert by_id["L2"].prefers(3, "irgendwas")

    def test_class_groups_derived_from_sections(self):
        cat = make_catalog([make_section("A", group="G1"), make_section("B", group="G2")])
        assert sorted(g.id for g in cat.class_groups) == ["G1", "G2"]
        assert cat.class_groups[0].program_id == "INF"

    def test_rooms_and_slots_from_config(self):
        cat = make_catalog([make_section("A")], config=make_config(units=3, rooms=4))
        assert len(cat.rooms) == 4
        assert cat.rooms[0].name == "R1"
        assert len(cat.time_slots) == 2 * 3

    def test_section_order_is_preserved(self):
        cat = make_catalog([make_section(s) for s in "CAB"])
        assert [s.id for s in cat.sections] == ["C", "A", "B"]

    def test_preferred_slots_deduplicated(self):
        lec = Lecturer(id="X", preferred_slots=[(0, "0_1"), (0, "0_1"), (1, "1_2")])
        assert lec.preferred_slots == ((0, "0_1"), (1, "1_2"))

    def test_get_section(self):
        cat = make_catalog([make_section("A")])
        assert cat.get_section("A").course_id == "C-A"
        with pytest.raises(KeyError):
            cat.get_section("fehlt")

    def test_max_contiguous_units(self):
        cat = make_catalog([make_section("A")], config=make_config(units=4, evening=2))
        assert cat.max_contiguous_units() == 4
        assert cat.max_contiguous_units("abend") == 2

    def test_json_roundtrip(self, tmp_path: Path):
        cat = make_catalog([make_section("A", credit_hours=2)])
        cat.save_json(tmp_path / "catalog.json")
        loaded = Catalog.load_json(tmp_path / "catalog.json")
        assert loaded == cat


class TestFeasibility:
    def test_valid_catalog(self):
        report = make_catalog([make_section("A"), make_section("B")]).validate_feasibility()
        assert report.is_feasible
        assert report.errors == []

    def test_empty_sections_is_error(self):
        report = make_catalog([]).validate_feasibility()
        assert not report.is_feasible
        assert any("Lehrveranstaltungen" in e for e in report.errors)

    def test_no_rooms_is_error(self):
        report = make_catalog([make_section("A")], config=make_config(rooms=0)).validate_feasibility()
        assert not report.is_feasible

    def test_no_preferences_is_error(self):
        report = make_catalog([make_section("A")], lecturers=[]).validate_feasibility()
        assert not report.is_feasible
        assert any("Präferenzen" in e for e in report.errors)

    def test_duplicate_ids_is_error(self):
        report = make_catalog([make_section("A"), make_section("A")]).validate_feasibility()
        assert any("Doppelte" in e for e in report.errors)

    def test_span_too_long_is_error(self):
        """5 SKS passen nicht in einen Block mit 4 Einheiten."""
        report = make_catalog([make_section("A", credit_hours=5)]).validate_feasibility()
        assert not report.is_feasible

    def test_unknown_session_is_error(self):
        report = make_catalog([make_section("A", session="nacht")]).validate_feasibility()
        assert any("nacht" in e for e in report.errors)

    def test_overbooked_is_warning_only(self):
        """Mehr Bedarf als Kapazität: Warnung, aber Lauf erlaubt."""
        sections = [make_section(f"S{i}", credit_hours=4) for i in range(5)]
        report = make_catalog(sections, config=make_config(rooms=1)).validate_feasibility()
        assert report.is_feasible
        assert any("Kapazität" in w for w in report.warnings)
        assert any("Gruppe G1" in w for w in report.warnings)

    def test_lecturers_without_preferences_warned(self):
        cat = make_catalog([make_section("A", lecturer="L1"), make_section("B", lecturer="L9")])
        report = cat.validate_feasibility()
        assert report.is_feasible
        assert any("L9" in w for w in report.warnings)


# ─── CSV-Import ───────────────────────────────────────────────────────────────

class TestCourseCsv:
    def test_parse_rows(self):
        sections = parse_course_csv(COURSE_CSV)
        assert [s.id for s in sections] == ["J1", "J2", "J3"]
        assert sections[0].credit_hours == 2
        assert sections[0].session == "vormittag"
        assert sections[1].session is None
        assert sections[2].semester == 3

    def test_session_column_optional(self):
        text = (
            "id,course_id,lecturer_id,class_group_id,program_id,semester,credit_hours\n"
            "J1,MK-101,D1,IF-1A,INF,1,2\n"
        )
        assert parse_course_csv(text)[0].session is None

    def test_missing_column(self):
        with pytest.raises(CatalogError, match="credit_hours"):
            parse_course_csv("id,course_id,lecturer_id,class_group_id,program_id,semester\n")

    def test_invalid_row_reports_line(self):
        text = COURSE_CSV + "J4,MK-103,D1,IF-1A,INF,1,null,\n"
        with pytest.raises(CatalogError, match="Zeile 5"):
            parse_course_csv(text)

    def test_blank_lines_ignored(self):
        assert len(parse_course_csv(COURSE_CSV + ",,,,,,,\n")) == 3

    def test_line_number_counts_skipped_lines(self):
        """Leer- und Kommazeilen zählen bei der Zeilennummer mit."""
        text = COURSE_CSV + "\n,,,,,,,\n" + "J4,MK-103,D1,IF-1A,INF,1,null,\n"
        with pytest.raises(CatalogError, match="Zeile 7"):
            parse_course_csv(text)


class TestPreferenceCsv:
    def test_columns_from_time_grid(self):
        cols = preference_columns(make_config(evening=2).time_grid)
        assert list(cols) == ["Mo_vormittag", "Mo_abend", "Di_vormittag", "Di_abend"]
        assert cols["Di_abend"] == (1, "abend")

    def test_blocks_expanded_to_slots(self):
        """Ein Ja-Wert öffnet alle Einheiten dieses Abschnitts an diesem Tag."""
        grid = make_config(units=2, evening=2).time_grid
        [lec] = parse_preference_csv(PREF_CSV, grid)
        assert lec.id == "D1"
        assert lec.name == "Weber, Eva"
        assert lec.preferred_slots == (
            (0, "0_1"), (0, "0_2"),
            (1, "1_1"), (1, "1_2"),
            (1, "1_3"), (1, "1_4"),
        )

    def test_invalid_flag(self):
        grid = make_config(evening=2).time_grid
        text = "lecturer_id,Mo_vormittag\nD1,vielleicht\n"
        with pytest.raises(CatalogError, match="Mo_vormittag"):
            parse_preference_csv(text, grid)

    def test_duplicate_lecturer(self):
        grid = make_config().time_grid
        text = "lecturer_id,Mo_vormittag\nD1,1\nD1,0\n"
        with pytest.raises(CatalogError, match="doppelt"):
            parse_preference_csv(text, grid)

    def test_duplicate_lecturer_after_blank_line(self):
        grid = make_config().time_grid
        text = "lecturer_id,Mo_vormittag\nD1,1\n\nD1,0\n"
        with pytest.raises(CatalogError, match="Zeile 4: Dozent D1 doppelt"):
            parse_preference_csv(text, grid)

    def test_load_catalog_from_files(self, tmp_path: Path):
        (tmp_path / "courses.csv").write_text(COURSE_CSV, encoding="utf-8")
        (tmp_path / "prefs.csv").write_text(PREF_CSV, encoding="utf-8")
        cat = load_catalog(make_config(evening=2), tmp_path / "courses.csv", tmp_path / "prefs.csv")
        assert len(cat.sections) == 3
        lecturers = cat.lecturer_map()
        assert lecturers["D1"].has_preferences
        assert not lecturers["D2"].has_preferences
        assert cat.validate_feasibility().is_feasible

    def test_load_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_catalog(make_config(), tmp_path / "fehlt.csv")


# ─── Testdaten-Generator ──────────────────────────────────────────────────────

class TestFakeData:
    def test_reproducible(self):
        a = FakeDataGenerator(default_planner_config(), seed=7).generate()
        b = FakeDataGenerator(default_planner_config(), seed=7).generate()
        assert a == b

    def test_generated_catalog_is_valid(self):
        cat = FakeDataGenerator(default_planner_config(), seed=1).generate()
        report = cat.validate_feasibility()
        assert report.is_feasible, report.errors
        # 3 Studiengänge × 2 Semester × (Tag + Abend) × 4 Veranstaltungen
        assert len(cat.sections) == 48
        assert any(s.session == "abend" for s in cat.sections)

    def test_csv_roundtrip(self, tmp_path: Path):
        """Geschriebene CSVs lassen sich wieder zum gleichen Katalog einlesen."""
        config = default_planner_config()
        gen = FakeDataGenerator(config, seed=3)
        cat = gen.generate()
        course_path, pref_path = gen.write_csv(cat, tmp_path)
        loaded = load_catalog(config, course_path, pref_path)
        assert loaded.sections == cat.sections
        assert {l.id: l.preferred_set for l in loaded.lecturers} == {
            l.id: l.preferred_set for l in cat.lecturers
        }
