"""Tests für die Kodierung Partikelposition ↔ Stundenplan."""

import numpy as np
import pytest

from config.schema import PlannerConfig, RoomConfig, RoomDef, SessionDef, TimeGridConfig
from models import Catalog, CatalogError, CourseSection, Lecturer
from solver.encoding import ScheduleEncoder


# ─── Hilfsfunktionen ──────────────────────────────────────────────────────────

def make_config(rooms: int = 2) -> PlannerConfig:
    """Mo+Di, Vormittag 4 Einheiten + Abend 2 Einheiten."""
    return PlannerConfig(
        time_grid=TimeGridConfig(day_names=["Mo", "Di"], unit_minutes=40, sessions=[
            SessionDef(name="vormittag", start_time="08:00", num_units=4),
            SessionDef(name="abend", start_time="18:00", num_units=2),
        ]),
        rooms=RoomConfig(rooms=[RoomDef(id=f"R{i}") for i in range(1, rooms + 1)]),
    )


def make_section(sid: str, credit_hours: int = 1, session=None) -> CourseSection:
    return CourseSection(
        id=sid, course_id=f"C-{sid}", lecturer_id="L1", class_group_id="G1",
        program_id="INF", semester=1, credit_hours=credit_hours, session=session,
    )


def make_encoder(sections, rooms: int = 2) -> ScheduleEncoder:
    catalog = Catalog.build(
        make_config(rooms), sections, [Lecturer(id="L1", preferred_slots=[(0, "0_1")])]
    )
    return ScheduleEncoder(catalog)


# ─── Kandidaten ───────────────────────────────────────────────────────────────

class TestCandidates:
    def test_dimension_and_bounds(self):
        enc = make_encoder([make_section("A"), make_section("B", credit_hours=2)], rooms=3)
        assert enc.dimension == 4
        np.testing.assert_array_equal(enc.lower, np.zeros(4))
        # A: 12 Slots; B: je Tag 3 Starts vormittags + 1 abends = 8
        np.testing.assert_array_equal(enc.upper, [11, 2, 7, 2])

    def test_span_never_crosses_session_break(self):
        """Mehrstündige Angebote bleiben in einem lückenlosen Block."""
        enc = make_encoder([make_section("A", credit_hours=2)])
        starts = [ts.id for ts in enc.candidate_slots(0)]
        assert starts == ["0_1", "0_2", "0_3", "0_5", "1_1", "1_2", "1_3", "1_5"]

    def test_session_restricts_candidates(self):
        enc = make_encoder([make_section("A", credit_hours=2, session="abend")])
        assert [ts.id for ts in enc.candidate_slots(0)] == ["0_5", "1_5"]

    def test_session_too_short_falls_back_to_all_blocks(self):
        enc = make_encoder([make_section("A", credit_hours=3, session="abend")])
        assert [ts.id for ts in enc.candidate_slots(0)] == ["0_1", "0_2", "1_1", "1_2"]

    def test_span_fits_nowhere(self):
        with pytest.raises(CatalogError):
            make_encoder([make_section("A", credit_hours=5)])

    def test_no_rooms(self):
        with pytest.raises(CatalogError):
            make_encoder([make_section("A")], rooms=0)


# ─── Dekodieren ───────────────────────────────────────────────────────────────

class TestDecode:
    def test_decode_is_deterministic(self):
        enc = make_encoder([make_section("A"), make_section("B", credit_hours=2)])
        pos = np.array([3.4, 0.6, 5.5, 1.2])
        assert enc.decode(pos) == enc.decode(pos.copy())

    def test_decode_lower_and_upper_bound(self):
        enc = make_encoder([make_section("A", credit_hours=2)])
        first = enc.decode(enc.lower)[0]
        assert (first.time_slot_id, first.room_id) == ("0_1", "R1")
        last = enc.decode(enc.upper)[0]
        assert (last.time_slot_id, last.room_id) == ("1_5", "R2")

    def test_entry_fields(self):
        enc = make_encoder([make_section("A", credit_hours=2)])
        [e] = enc.decode(np.array([1.0, 1.0]))
        assert e.section_id == "A"
        assert e.course_id == "C-A"
        assert e.day == 0
        assert e.day_name == "Mo"
        assert e.start_time == "08:40"
        assert e.end_time == "10:00"
        assert e.end_minute - e.start_minute == 2 * 40
        assert e.room_id == "R2"

    def test_out_of_range_values_clamped(self):
        enc = make_encoder([make_section("A")])
        assert enc.decode(np.array([-50.0, 99.0])) == enc.decode(np.array([0.0, 1.0]))
        assert enc.decode(np.array([np.inf, -np.inf])) == enc.decode(enc.upper * [1, 0])

    def test_nan_treated_as_zero(self):
        enc = make_encoder([make_section("A")])
        assert enc.decode(np.array([np.nan, np.nan])) == enc.decode(enc.lower)

    def test_wrong_shape(self):
        enc = make_encoder([make_section("A")])
        with pytest.raises(ValueError):
            enc.decode(np.zeros(3))

    def test_one_entry_per_section_in_catalog_order(self):
        enc = make_encoder([make_section(s) for s in "CAB"])
        tt = enc.decode(np.zeros(6))
        assert [e.section_id for e in tt] == ["C", "A", "B"]


# ─── Kodieren ─────────────────────────────────────────────────────────────────

class TestEncode:
    def test_encode_inverts_decode(self):
        enc = make_encoder([make_section("A"), make_section("B", credit_hours=2)])
        tt = enc.decode(np.array([7.0, 1.0, 2.0, 0.0]))
        np.testing.assert_array_equal(enc.encode(tt), [7.0, 1.0, 2.0, 0.0])

    def test_encode_rejects_foreign_timetable(self):
        enc = make_encoder([make_section("A"), make_section("B")])
        tt = enc.decode(np.zeros(4))
        with pytest.raises(ValueError):
            enc.encode(tt[:1])
        with pytest.raises(ValueError):
            enc.encode(list(reversed(tt)))

    def test_encode_rejects_non_candidate_slot(self):
        """Abend-Angebot kann nicht vormittags kodiert werden."""
        enc = make_encoder([make_section("A", session="abend")])
        [e] = enc.decode(np.zeros(2))
        moved = e.model_copy(update={"time_slot_id": "0_1"})
        with pytest.raises(ValueError):
            enc.encode([moved])


# ─── Startpositionen ──────────────────────────────────────────────────────────

class TestInitialPositions:
    def test_uniform_within_bounds(self):
        enc = make_encoder([make_section("A"), make_section("B", credit_hours=2)])
        pos = enc.initial_positions(np.random.default_rng(1), 50)
        assert pos.shape == (50, 4)
        assert np.all(pos >= enc.lower) and np.all(pos <= enc.upper)

    def test_latin_hypercube_one_particle_per_stratum(self):
        enc = make_encoder([make_section("A"), make_section("B")])
        n = 10
        pos = enc.initial_positions(np.random.default_rng(2), n, "latin_hypercube")
        unit = (pos - enc.lower) / (enc.upper - enc.lower)
        strata = np.floor(unit * n).astype(int)
        for d in range(enc.dimension):
            assert sorted(strata[:, d]) == list(range(n))

    def test_same_seed_same_positions(self):
        enc = make_encoder([make_section("A")])
        a = enc.initial_positions(np.random.default_rng(5), 5)
        b = enc.initial_positions(np.random.default_rng(5), 5)
        np.testing.assert_array_equal(a, b)

    def test_unknown_strategy(self):
        enc = make_encoder([make_section("A")])
        with pytest.raises(ValueError):
            enc.initial_positions(np.random.default_rng(0), 3, "sobol")
