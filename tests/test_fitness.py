"""Tests für die Konfliktbewertung."""

import pytest

from config.schema import FitnessWeights, PlannerConfig, RoomConfig, RoomDef, SessionDef, TimeGridConfig
from models import Catalog, CourseSection, Lecturer
from models.timeslot import format_minutes
from solver.encoding import ScheduleEntry
from solver.fitness import ConflictReport, FitnessEvaluator, find_overlaps


UNIT = 40
DAY_START = 8 * 60


def entry(sid: str, day: int = 0, unit: int = 1, span: int = 1, room: str = "R1",
          lecturer: str = "L1", group: str = "G1") -> ScheduleEntry:
    """Eintrag direkt aufbauen, ohne Umweg über eine Partikelposition."""
    start = DAY_START + (unit - 1) * UNIT
    end = start + span * UNIT
    return ScheduleEntry(
        section_id=sid, course_id=f"C-{sid}", class_group_id=group,
        day=day, day_name=["Mo", "Di"][day], lecturer_id=lecturer,
        time_slot_id=f"{day}_{unit}", room_id=room, program_id="INF",
        semester=1, credit_hours=span,
        start_time=format_minutes(start), end_time=format_minutes(end),
        start_minute=start, end_minute=end,
    )


def make_evaluator(lecturers, weights=None) -> FitnessEvaluator:
    config = PlannerConfig(
        time_grid=TimeGridConfig(day_names=["Mo", "Di"], unit_minutes=UNIT, sessions=[
            SessionDef(name="vormittag", start_time="08:00", num_units=4),
        ]),
        rooms=RoomConfig(rooms=[RoomDef(id="R1"), RoomDef(id="R2")]),
    )
    section = CourseSection(
        id="X", course_id="C-X", lecturer_id="L1", class_group_id="G1",
        program_id="INF", semester=1, credit_hours=1,
    )
    catalog = Catalog.build(config, [section], lecturers)
    return FitnessEvaluator(catalog, weights or FitnessWeights())


ALL_SLOTS = [(d, f"{d}_{u}") for d in range(2) for u in range(1, 5)]


# ─── Überlappungen ────────────────────────────────────────────────────────────

class TestOverlaps:
    def test_three_overlapping_entries_give_three_pairs(self):
        tt = [entry("A"), entry("B"), entry("C")]
        pairs = find_overlaps(tt, lambda e: e.room_id)
        assert len(pairs) == 3
        assert {(a.section_id, b.section_id) for _, a, b in pairs} == {
            ("A", "B"), ("A", "C"), ("B", "C"),
        }

    def test_adjacent_entries_do_not_conflict(self):
        """Ende == Beginn ist keine Überschneidung."""
        tt = [entry("A", unit=1, span=2), entry("B", unit=3)]
        assert find_overlaps(tt, lambda e: e.room_id) == []

    def test_different_days_do_not_conflict(self):
        tt = [entry("A", day=0), entry("B", day=1)]
        assert find_overlaps(tt, lambda e: e.room_id) == []

    def test_multi_unit_overlap(self):
        tt = [entry("A", unit=1, span=3), entry("B", unit=3)]
        [(resource, a, b)] = find_overlaps(tt, lambda e: e.room_id)
        assert resource == "R1"
        assert (a.section_id, b.section_id) == ("A", "B")

    def test_long_entry_overlaps_later_ones_after_gap(self):
        """Sortierung nach Beginn: ein langer Eintrag erreicht auch spätere."""
        tt = [entry("C", unit=4), entry("A", unit=1, span=4), entry("B", unit=2)]
        assert len(find_overlaps(tt, lambda e: e.room_id)) == 2


# ─── Harte Konflikte ──────────────────────────────────────────────────────────

class TestHardConflicts:
    def test_conflict_free(self):
        ev = make_evaluator([Lecturer(id="L1", preferred_slots=ALL_SLOTS)])
        tt = [
            entry("A", room="R1", lecturer="L1", group="G1"),
            entry("B", room="R2", lecturer="L2", group="G2"),
        ]
        fitness, report = ev.evaluate(tt)
        assert fitness == 0
        assert report.total == 0

    def test_each_resource_counted_separately(self):
        """Gleicher Raum, gleiche Person, gleiche Gruppe: drei harte Konflikte."""
        ev = make_evaluator([Lecturer(id="L1", preferred_slots=ALL_SLOTS)])
        _, report = ev.evaluate([entry("A"), entry("B")])
        assert report.counts() == {"room": 1, "lecturer": 1, "class_group": 1, "preference": 0}
        assert report.hard_total == 3

    def test_conflict_description(self):
        ev = make_evaluator([Lecturer(id="L1", preferred_slots=ALL_SLOTS)])
        _, report = ev.evaluate([
            entry("A", lecturer="L2", group="G1"),
            entry("B", lecturer="L3", group="G2"),
        ])
        [c] = report.room_conflicts
        assert c.kind == "room"
        assert c.resource_id == "R1"
        assert "Raum R1" in c.description
        assert "A" in c.description and "B" in c.description


# ─── Präferenzen ──────────────────────────────────────────────────────────────

class TestPreferences:
    def test_start_slot_outside_wishes(self):
        ev = make_evaluator([Lecturer(id="L1", preferred_slots=[(0, "0_1")])])
        _, report = ev.evaluate([entry("A", unit=1), entry("B", unit=2, room="R2", group="G2")])
        [v] = report.preference_conflicts
        assert v.section_id == "B"
        assert v.time_slot_id == "0_2"

    def test_only_start_slot_checked(self):
        """Ein mehrstündiger Eintrag zählt nur über seinen Start-Slot."""
        ev = make_evaluator([Lecturer(id="L1", preferred_slots=[(0, "0_1")])])
        _, report = ev.evaluate([entry("A", unit=1, span=3)])
        assert report.preference_conflicts == []

    def test_lecturer_without_record_never_charged(self):
        ev = make_evaluator([Lecturer(id="L1", preferred_slots=[(0, "0_1")])])
        _, report = ev.evaluate([entry("A", unit=3, lecturer="L7")])
        assert report.preference_conflicts == []

    def test_empty_wishes_charge_every_slot(self):
        """Datensatz vorhanden, aber keine Zeiten gewünscht."""
        ev = make_evaluator([
            Lecturer(id="L1", preferred_slots=ALL_SLOTS),
            Lecturer(id="L2", preferred_slots=[]),
        ])
        _, report = ev.evaluate([entry("A", lecturer="L2")])
        assert len(report.preference_conflicts) == 1


# ─── Fitness ──────────────────────────────────────────────────────────────────

class TestFitness:
    def test_weighted_sum(self):
        """Fitness = harte × 100 + Präferenz × 10 (Default-Gewichte)."""
        ev = make_evaluator([Lecturer(id="L1", preferred_slots=[(0, "0_1")])])
        tt = [
            entry("A", unit=2, room="R1", lecturer="L1", group="G1"),
            entry("B", unit=2, room="R1", lecturer="L2", group="G2"),
        ]
        fitness, report = ev.evaluate(tt)
        assert report.hard_total == 1
        assert len(report.preference_conflicts) == 1
        assert fitness == pytest.approx(110.0)

    def test_custom_weights(self):
        ev = make_evaluator(
            [Lecturer(id="L1", preferred_slots=[(0, "0_1")])],
            FitnessWeights(weight_hard=3, weight_preference=1),
        )
        fitness, _ = ev.evaluate([entry("A", unit=2), entry("B", unit=2, lecturer="L5", group="G5")])
        assert fitness == pytest.approx(3 + 1)

    def test_total_is_sum_of_categories(self):
        ev = make_evaluator([Lecturer(id="L1", preferred_slots=[(1, "1_1")])])
        tt = [entry("A"), entry("B"), entry("C", room="R2")]
        _, report = ev.evaluate(tt)
        assert report.total == sum(report.counts().values())
        assert report.hard_total == report.total - len(report.preference_conflicts)

    def test_hard_conflict_outweighs_any_single_preference(self):
        ev = make_evaluator([Lecturer(id="L1", preferred_slots=[(0, "0_1")])])
        hard, _ = ev.evaluate([entry("A", lecturer="L2"), entry("B", lecturer="L3", group="G2")])
        soft, _ = ev.evaluate([entry("A", unit=3)])
        assert hard > soft

    def test_evaluate_is_pure(self):
        ev = make_evaluator([Lecturer(id="L1", preferred_slots=[(0, "0_1")])])
        tt = [entry("A"), entry("B", unit=3)]
        assert ev.evaluate(tt) == ev.evaluate(list(tt))

    def test_without_preference_weight_only_hard_conflicts_count(self):
        """Präferenzgewicht 0: Fitness 0 genau dann, wenn keine harten Konflikte."""
        ev = make_evaluator(
            [Lecturer(id="L1", preferred_slots=[(0, "0_1")])],
            FitnessWeights(weight_hard=100, weight_preference=0),
        )
        fitness, report = ev.evaluate([entry("A", unit=3), entry("B", unit=4, group="G2")])
        assert len(report.preference_conflicts) == 2
        assert report.hard_total == 0
        assert fitness == 0

        fitness, report = ev.evaluate([entry("A"), entry("B", lecturer="L2", group="G2")])
        assert report.hard_total == 1
        assert fitness > 0


class TestConflictReport:
    def test_empty_report(self):
        report = ConflictReport()
        assert report.total == 0
        assert report.messages == []

    def test_messages_hard_first(self):
        ev = make_evaluator([Lecturer(id="L1", preferred_slots=[(0, "0_1")])])
        _, report = ev.evaluate([entry("A", unit=2), entry("B", unit=2, room="R2", group="G2")])
        msgs = report.messages
        assert len(msgs) == report.total
        assert msgs[0].startswith("Konflikt [Dozent L1]")
        assert msgs[-1].startswith("Präferenz")
