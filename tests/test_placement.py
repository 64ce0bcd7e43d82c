"""Tests for the placement engine."""

from __future__ import annotations

import copy

import pytest

from timetable.constraints import ConstraintManager
from timetable.data.models import SLOT_CAPACITY, Day, LockType, Merge, SlotKey, Week
from timetable.errors import NotFoundError, PlacementError
from timetable.merges import MergeManager
from timetable.placement import PlacementEngine


@pytest.fixture
def engine(school) -> PlacementEngine:
    return PlacementEngine(school)


def occupied_keys(timetable, week, lesson_id):
    """(class_id, key, is_start) triples of one lesson, in slot order."""
    return sorted(
        ((class_id, key, entry.is_start) for class_id, key, entry in timetable.iter_entries(week)
         if entry.lesson_id == lesson_id),
        key=lambda t: t[1],
    )


class TestPlace:
    """Tests for successful placements."""

    def test_single_period(self, school, engine, add_lesson, week, sat):
        lesson = add_lesson("L1")
        outcome = engine.place(week, "C1", sat, 2, lesson)
        assert outcome.ok
        assert outcome.value == SlotKey(sat, 2)
        assert occupied_keys(school, week, "L1") == [("C1", SlotKey(sat, 2), True)]

    def test_two_period_lesson_in_merged_cell(self, school, engine, add_lesson, week, sat):
        """A 2-period lesson at Sat 1 fills Sat_1 (start) and Sat_2."""
        lesson = add_lesson("L1", periods=2)
        MergeManager(school).merge(week, "C1", sat, [1, 2])

        assert engine.place(week, "C1", sat, 1, lesson).ok

        assert [(e.lesson_id, e.is_start) for e in school.slot(week, "C1", SlotKey(sat, 1))] == [("L1", True)]
        assert [(e.lesson_id, e.is_start) for e in school.slot(week, "C1", SlotKey(sat, 2))] == [("L1", False)]
        assert "L1" not in [l.id for l in school.unplaced_lessons(week)]

    @pytest.mark.parametrize("periods,start", [(2, 1), (3, 2), (4, 1)])
    def test_occupies_contiguous_run(self, school, engine, add_lesson, week, periods, start):
        lesson = add_lesson("L1", periods=periods)
        day = Day.TUESDAY
        MergeManager(school).merge(week, "C1", day, list(range(start, start + periods)))

        engine.place(week, "C1", day, start, lesson)

        occupied = occupied_keys(school, week, "L1")
        assert [key for _, key, _ in occupied] == [SlotKey(day, start + i) for i in range(periods)]
        assert {class_id for class_id, _, _ in occupied} == {"C1"}
        assert [is_start for _, _, is_start in occupied] == [True] + [False] * (periods - 1)

    def test_two_lessons_share_a_slot(self, school, engine, add_lesson, week, sat):
        a = add_lesson("L1", teacher_id="T1")
        b = add_lesson("L2", teacher_id="T2")
        assert engine.place(week, "C1", sat, 1, a).ok
        assert engine.place(week, "C1", sat, 1, b).ok
        assert len(school.slot(week, "C1", SlotKey(sat, 1))) == 2

    def test_weeks_are_independent(self, school, engine, add_lesson, sat):
        lesson = add_lesson("L1")
        engine.place(Week.A, "C1", sat, 1, lesson)
        assert school.slot(Week.B, "C1", SlotKey(sat, 1)) == []


class TestPlaceFailures:
    """Tests for rejected placements; nothing is written on failure."""

    def test_wrong_class(self, school, engine, add_lesson, week, sat):
        lesson = add_lesson("L1", class_id="C1")
        outcome = engine.place(week, "C2", sat, 1, lesson)
        assert outcome.error == PlacementError.WRONG_CLASS
        assert school.placed_lesson_ids(week) == set()

    def test_insufficient_space_without_merge(self, school, engine, add_lesson, week, sat):
        lesson = add_lesson("L1", periods=2)
        outcome = engine.place(week, "C1", sat, 1, lesson)
        assert outcome.error == PlacementError.INSUFFICIENT_SPACE
        assert "2" in outcome.message
        assert school.placed_lesson_ids(week) == set()

    def test_insufficient_space_merge_too_short(self, school, engine, add_lesson, week, sat):
        lesson = add_lesson("L1", periods=3)
        MergeManager(school).merge(week, "C1", sat, [1, 2])
        assert engine.place(week, "C1", sat, 1, lesson).error == PlacementError.INSUFFICIENT_SPACE

    def test_slot_full(self, school, engine, add_lesson, week, sat):
        lessons = [add_lesson(f"L{i}", teacher_id="T2") for i in range(SLOT_CAPACITY + 1)]
        for lesson in lessons[:SLOT_CAPACITY]:
            assert engine.place(week, "C1", sat, 1, lesson).ok
        before = copy.deepcopy(school.schedule)

        outcome = engine.place(week, "C1", sat, 1, lessons[-1])

        assert outcome.error == PlacementError.SLOT_FULL
        assert school.schedule == before

    def test_slot_full_on_later_period_writes_nothing(self, school, engine, add_lesson, week, sat):
        """The second covered cell is full; the first must stay untouched."""
        fillers = [add_lesson(f"F{i}", teacher_id="T2") for i in range(2)]
        for filler in fillers:
            assert engine.place(week, "C1", sat, 2, filler).ok
        school.merges[week].append(Merge(class_id="C1", day=sat, start_period=1, count=2))
        lesson = add_lesson("L1", periods=2)

        assert engine.place(week, "C1", sat, 1, lesson).error == PlacementError.SLOT_FULL
        assert school.slot(week, "C1", SlotKey(sat, 1)) == []

    def test_already_placed_in_week(self, school, engine, add_lesson, week, sat):
        lesson = add_lesson("L7")
        assert engine.place(week, "C1", sat, 1, lesson).ok

        outcome = engine.place(week, "C1", sat, 1, lesson)

        assert outcome.error == PlacementError.ALREADY_PLACED
        assert [e.lesson_id for e in school.slot(week, "C1", SlotKey(sat, 1))] == ["L7"]

    def test_already_placed_elsewhere_in_week(self, school, engine, add_lesson, week, sat):
        lesson = add_lesson("L7")
        engine.place(week, "C1", sat, 1, lesson)
        assert engine.place(week, "C1", Day.MONDAY, 1, lesson).error == PlacementError.ALREADY_PLACED
        assert occupied_keys(school, week, "L7") == [("C1", SlotKey(sat, 1), True)]

    def test_inner_merged_cell_refused(self, school, engine, add_lesson, week, sat):
        MergeManager(school).merge(week, "C1", sat, [1, 2, 3])
        lesson = add_lesson("L9")

        outcome = engine.place(week, "C1", sat, 2, lesson)

        assert outcome.error == PlacementError.INSUFFICIENT_SPACE
        assert "period 1" in outcome.message
        assert school.placed_lesson_ids(week) == set()
        assert engine.place(week, "C1", sat, 1, lesson).ok

    def test_slot_locked_by_class(self, school, engine, add_lesson, week, sat):
        lesson = add_lesson("L1")
        ConstraintManager(school).toggle(LockType.CLASS, "C1", sat, 1)
        assert engine.place(week, "C1", sat, 1, lesson).error == PlacementError.SLOT_LOCKED

    def test_slot_locked_by_teacher(self, school, engine, add_lesson, week, sat):
        lesson = add_lesson("L1", teacher_id="T1")
        ConstraintManager(school).toggle(LockType.TEACHER, "T1", sat, 1)
        assert engine.place(week, "C1", sat, 1, lesson).error == PlacementError.SLOT_LOCKED

    def test_lock_inside_span(self, school, engine, add_lesson, week, sat):
        lesson = add_lesson("L1", periods=2)
        MergeManager(school).merge(week, "C1", sat, [1, 2])
        ConstraintManager(school).toggle(LockType.TEACHER, "T1", sat, 2)
        assert engine.place(week, "C1", sat, 1, lesson).error == PlacementError.SLOT_LOCKED
        assert school.slot(week, "C1", SlotKey(sat, 1)) == []

    def test_first_failing_check_reported(self, school, engine, add_lesson, week, sat):
        """Wrong class wins over a locked and full target."""
        lesson = add_lesson("L1", class_id="C1")
        ConstraintManager(school).toggle(LockType.CLASS, "C2", sat, 1)
        assert engine.place(week, "C2", sat, 1, lesson).error == PlacementError.WRONG_CLASS

    def test_full_checked_before_locked(self, school, engine, add_lesson, week, sat):
        fillers = [add_lesson(f"F{i}", teacher_id="T2") for i in range(2)]
        for filler in fillers:
            engine.place(week, "C1", sat, 1, filler)
        lesson = add_lesson("L1")
        ConstraintManager(school).toggle(LockType.CLASS, "C1", sat, 1)
        assert engine.place(week, "C1", sat, 1, lesson).error == PlacementError.SLOT_FULL


class TestRemove:
    """Tests for removing placements."""

    def test_place_then_remove_restores_state(self, school, engine, add_lesson, week, sat):
        other = add_lesson("L0", teacher_id="T2")
        engine.place(week, "C1", sat, 2, other)
        lesson = add_lesson("L1", periods=2)
        MergeManager(school).merge(week, "C1", Day.SUNDAY, [1, 2])
        before = copy.deepcopy(school.schedule)

        engine.place(week, "C1", Day.SUNDAY, 1, lesson)
        outcome = engine.remove(week, "C1", "L1", SlotKey(Day.SUNDAY, 1))

        assert outcome.ok
        assert school.schedule == before

    def test_repeated_place_then_remove_restores_state(self, school, engine, add_lesson, week, sat):
        lesson = add_lesson("L7")
        before = copy.deepcopy(school.schedule)

        engine.place(week, "C1", sat, 1, lesson)
        engine.place(week, "C1", sat, 1, lesson)
        engine.remove(week, "C1", "L7", SlotKey(sat, 1))

        assert school.schedule == before

    def test_remove_keeps_other_entries(self, school, engine, add_lesson, week, sat):
        a = add_lesson("L1", teacher_id="T1")
        b = add_lesson("L2", teacher_id="T2")
        engine.place(week, "C1", sat, 1, a)
        engine.place(week, "C1", sat, 1, b)
        engine.remove(week, "C1", "L1", SlotKey(sat, 1))
        assert [e.lesson_id for e in school.slot(week, "C1", SlotKey(sat, 1))] == ["L2"]

    def test_remove_deletes_empty_slot_records(self, school, engine, add_lesson, week, sat):
        lesson = add_lesson("L1")
        engine.place(week, "C1", sat, 1, lesson)
        engine.remove(week, "C1", "L1", SlotKey(sat, 1))
        assert SlotKey(sat, 1) not in school.class_schedule(week, "C1")

    def test_remove_unknown_lesson(self, engine, week, sat):
        outcome = engine.remove(week, "C1", "missing", SlotKey(sat, 1))
        assert outcome.error == NotFoundError.LESSON

    def test_remove_missing_container(self, engine, add_lesson, week, sat):
        add_lesson("L1")
        outcome = engine.remove(week, "C9", "L1", SlotKey(sat, 1))
        assert outcome.error == NotFoundError.SCHEDULE

    def test_unplace(self, school, engine, add_lesson, week, sat):
        lesson = add_lesson("L1")
        engine.place(week, "C1", sat, 3, lesson)
        assert engine.find_start(week, "L1") == ("C1", SlotKey(sat, 3))
        assert engine.unplace(week, "L1").ok
        assert engine.find_start(week, "L1") is None
        assert "unplaced" in school.change_log[0].description

    def test_unplace_not_placed(self, engine, add_lesson, week):
        add_lesson("L1")
        assert engine.unplace(week, "L1").error == NotFoundError.SCHEDULE


class TestMove:
    """Tests for drag-moves with soft-conflict confirmation."""

    def test_move_from_unplaced(self, school, engine, add_lesson, week, sat):
        add_lesson("L1")
        outcome = engine.move(week, "L1", "C1", sat, 1)
        assert outcome.ok
        assert outcome.conflict is None
        assert engine.find_start(week, "L1") == ("C1", SlotKey(sat, 1))
        assert school.change_log[0].description.startswith('Lesson "Lesson L1" placed')

    def test_move_between_cells(self, school, engine, add_lesson, week, sat):
        lesson = add_lesson("L1")
        engine.place(week, "C1", sat, 1, lesson)
        outcome = engine.move(week, "L1", "C1", Day.MONDAY, 4, origin=("C1", SlotKey(sat, 1)))
        assert outcome.ok
        assert school.slot(week, "C1", SlotKey(sat, 1)) == []
        assert engine.find_start(week, "L1") == ("C1", SlotKey(Day.MONDAY, 4))

    def test_move_within_full_slot_frees_own_entry(self, school, engine, add_lesson, week, sat):
        """Dropping a lesson back onto its own full cell succeeds."""
        a = add_lesson("L1", teacher_id="T1")
        b = add_lesson("L2", teacher_id="T2")
        engine.place(week, "C1", sat, 1, a)
        engine.place(week, "C1", sat, 1, b)
        outcome = engine.move(week, "L1", "C1", sat, 1, origin=("C1", SlotKey(sat, 1)))
        assert outcome.ok

    def test_failed_move_restores_origin(self, school, engine, add_lesson, week, sat):
        lesson = add_lesson("L1")
        engine.place(week, "C1", sat, 1, lesson)
        ConstraintManager(school).toggle(LockType.CLASS, "C1", sat, 2)
        before = copy.deepcopy(school.schedule)

        outcome = engine.move(week, "L1", "C1", sat, 2, origin=("C1", SlotKey(sat, 1)))

        assert outcome.error == PlacementError.SLOT_LOCKED
        assert school.schedule == before

    def test_conflict_without_confirmation_is_declined(self, school, engine, add_lesson, week, sat):
        busy = add_lesson("L1", class_id="C1", teacher_id="T1")
        engine.place(week, "C1", sat, 1, busy)
        add_lesson("L2", class_id="C2", teacher_id="T1")

        outcome = engine.move(week, "L2", "C2", sat, 1)

        assert not outcome.ok
        assert outcome.error is None
        assert outcome.conflict.teacher == ["C1"]
        assert "L2" not in school.placed_lesson_ids(week)

    def test_declined_move_restores_origin(self, school, engine, add_lesson, week, sat):
        busy = add_lesson("L1", class_id="C1", teacher_id="T1")
        engine.place(week, "C1", sat, 1, busy)
        lesson = add_lesson("L2", class_id="C2", teacher_id="T1")
        engine.place(week, "C2", sat, 2, lesson)

        outcome = engine.move(week, "L2", "C2", sat, 1, origin=("C2", SlotKey(sat, 2)), confirm=lambda r: False)

        assert not outcome.ok
        assert engine.find_start(week, "L2") == ("C2", SlotKey(sat, 2))

    def test_confirmed_conflict_is_placed(self, school, engine, add_lesson, week, sat):
        busy = add_lesson("L1", class_id="C1", teacher_id="T1")
        engine.place(week, "C1", sat, 1, busy)
        add_lesson("L2", class_id="C2", teacher_id="T1")
        seen = []

        outcome = engine.move(week, "L2", "C2", sat, 1, confirm=lambda r: seen.append(r) or True)

        assert outcome.ok
        assert outcome.conflict is seen[0]
        assert "L2" in school.placed_lesson_ids(week)

    def test_move_unknown_lesson(self, engine, week, sat):
        assert engine.move(week, "missing", "C1", sat, 1).error == NotFoundError.LESSON

    def test_move_without_origin_relocates_placed_lesson(self, school, engine, add_lesson, week, sat):
        lesson = add_lesson("L7")
        engine.place(week, "C1", sat, 1, lesson)

        outcome = engine.move(week, "L7", "C1", Day.MONDAY, 1)

        assert outcome.ok
        assert occupied_keys(school, week, "L7") == [("C1", SlotKey(Day.MONDAY, 1), True)]

    def test_move_without_origin_to_inner_merged_cell_keeps_placement(self, school, engine, add_lesson, week, sat):
        lesson = add_lesson("L7")
        engine.place(week, "C1", Day.MONDAY, 1, lesson)
        MergeManager(school).merge(week, "C1", sat, [1, 2])

        outcome = engine.move(week, "L7", "C1", sat, 2)

        assert outcome.error == PlacementError.INSUFFICIENT_SPACE
        assert occupied_keys(school, week, "L7") == [("C1", SlotKey(Day.MONDAY, 1), True)]
