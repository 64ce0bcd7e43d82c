"""Tests for merge selection, creation and removal."""

from __future__ import annotations

import pytest

from timetable.constraints import ConstraintManager
from timetable.data.models import Day, LockType, Merge, SlotKey, Week
from timetable.errors import MergeError, NotFoundError
from timetable.merges import MergeManager, MergeSelection
from timetable.placement import PlacementEngine


@pytest.fixture
def merges(school) -> MergeManager:
    return MergeManager(school)


def _select(merges, selection, week, class_id, day, *periods):
    for period in periods:
        outcome = merges.select(selection, week, class_id, day, period)
        assert outcome.ok, outcome.message
    return selection


class TestSelect:
    """Tests for cell clicks building a selection."""

    def test_click_toggles_period(self, merges, week, sat):
        selection = MergeSelection()
        merges.select(selection, week, "C1", sat, 2)
        merges.select(selection, week, "C1", sat, 3)
        assert selection.periods == [2, 3]
        merges.select(selection, week, "C1", sat, 2)
        assert selection.periods == [3]

    def test_other_class_restarts_with_warning(self, merges, week, sat):
        selection = _select(merges, MergeSelection(), week, "C1", sat, 1, 2)

        outcome = merges.select(selection, week, "C2", sat, 3)

        assert outcome.ok
        assert outcome.warning == MergeError.CROSS_CLASS_SELECTION
        assert selection.class_id == "C2"
        assert selection.periods == [3]

    def test_other_day_restarts_with_warning(self, merges, week, sat):
        selection = _select(merges, MergeSelection(), week, "C1", sat, 1)
        outcome = merges.select(selection, week, "C1", Day.SUNDAY, 1)
        assert outcome.warning == MergeError.CROSS_CLASS_SELECTION
        assert selection.day is Day.SUNDAY

    def test_occupied_cell_refused(self, school, merges, add_lesson, week, sat):
        PlacementEngine(school).place(week, "C1", sat, 1, add_lesson("L1"))
        outcome = merges.select(MergeSelection(), week, "C1", sat, 1)
        assert outcome.error == MergeError.CELL_OCCUPIED

    def test_locked_cell_refused(self, school, merges, week, sat):
        ConstraintManager(school).toggle(LockType.CLASS, "C1", sat, 1)
        outcome = merges.select(MergeSelection(), week, "C1", sat, 1)
        assert outcome.error == MergeError.CELL_LOCKED

    def test_merged_cell_selects_merge_for_removal(self, merges, week, sat):
        merges.merge(week, "C1", sat, [2, 3])
        selection = _select(merges, MergeSelection(), week, "C1", sat, 1)

        outcome = merges.select(selection, week, "C1", sat, 3)

        assert outcome.ok
        assert selection.is_removal
        assert selection.periods == []
        assert selection.merge_to_remove == Merge(class_id="C1", day=sat, start_period=2, count=2)


class TestFinalize:
    """Tests for committing a selection."""

    def test_creates_merge(self, school, merges, week, sat):
        selection = _select(merges, MergeSelection(), week, "C1", sat, 3, 2)

        outcome = merges.finalize(selection)

        assert outcome.ok
        assert school.merges[week] == [Merge(class_id="C1", day=sat, start_period=2, count=2)]
        assert selection.is_empty
        assert school.change_log[0].description == '2 periods merged for class "C1" on Sat.'

    def test_merge_is_per_week(self, school, merges, sat):
        merges.merge(Week.A, "C1", sat, [1, 2])
        assert school.merges[Week.B] == []
        assert merges.colspan(Week.B, "C1", sat, 1) == 1

    def test_non_consecutive_refused(self, school, merges, week, sat):
        selection = _select(merges, MergeSelection(), week, "C1", sat, 1, 3)
        outcome = merges.finalize(selection)
        assert outcome.error == MergeError.NON_CONSECUTIVE_SELECTION
        assert school.merges[week] == []

    def test_single_period_refused(self, merges, week, sat):
        selection = _select(merges, MergeSelection(), week, "C1", sat, 1)
        assert merges.finalize(selection).error == MergeError.NON_CONSECUTIVE_SELECTION

    def test_empty_selection_refused(self, merges):
        assert merges.finalize(MergeSelection()).error == MergeError.NON_CONSECUTIVE_SELECTION

    def test_cell_filled_after_selection_refused(self, school, merges, add_lesson, week, sat):
        selection = _select(merges, MergeSelection(), week, "C1", sat, 1, 2)
        PlacementEngine(school).place(week, "C1", sat, 2, add_lesson("L1"))
        assert merges.finalize(selection).error == MergeError.CELL_OCCUPIED
        assert school.merges[week] == []

    def test_declined_confirmation_changes_nothing(self, school, merges, week, sat):
        selection = _select(merges, MergeSelection(), week, "C1", sat, 1, 2)
        asked = []

        outcome = merges.finalize(selection, confirm=lambda q: asked.append(q) or False)

        assert not outcome.ok
        assert outcome.error is None
        assert asked == ["Merge 2 selected periods?"]
        assert school.merges[week] == []

    def test_finalize_removal(self, school, merges, week, sat):
        merges.merge(week, "C1", sat, [1, 2, 3])
        selection = _select(merges, MergeSelection(), week, "C1", sat, 2)

        outcome = merges.finalize(selection, confirm=lambda q: True)

        assert outcome.ok
        assert school.merges[week] == []
        assert selection.is_empty

    def test_stale_removal_reports_missing_merge(self, school, merges, week, sat):
        merges.merge(week, "C1", sat, [1, 2])
        selection = _select(merges, MergeSelection(), week, "C1", sat, 1)
        school.merges[week].clear()
        assert merges.finalize(selection).error == NotFoundError.MERGE


class TestLookup:
    """Tests for merge lookup and colspan."""

    def test_colspan(self, merges, week, sat):
        merges.merge(week, "C1", sat, [2, 3, 4])
        assert merges.colspan(week, "C1", sat, 1) == 1
        assert merges.colspan(week, "C1", sat, 2) == 3
        assert merges.colspan(week, "C1", sat, 3) == 1
        assert merges.colspan(week, "C2", sat, 2) == 1

    def test_addressable(self, merges, week, sat):
        merges.merge(week, "C1", sat, [1, 2])
        assert merges.is_addressable(week, "C1", sat, 1)
        assert not merges.is_addressable(week, "C1", sat, 2)
        assert merges.is_addressable(week, "C1", sat, 3)

    def test_overlapping_merge_refused(self, school, merges, week, sat):
        merges.merge(week, "C1", sat, [1, 2])
        outcome = merges.merge(week, "C1", sat, [2, 3])
        assert outcome.error == MergeError.CELL_OCCUPIED
        assert len(school.merges[week]) == 1


class TestUnmerge:
    """Tests for removing the merge under a cell."""

    def test_unmerge_inner_cell(self, school, merges, week, sat):
        merges.merge(week, "C1", sat, [1, 2])
        assert merges.unmerge(week, "C1", sat, 2).ok
        assert school.merges[week] == []

    def test_unmerge_unmerged_cell(self, merges, week, sat):
        assert merges.unmerge(week, "C1", sat, 1).error == NotFoundError.MERGE

    def test_placement_in_merge_needs_colspan(self, school, merges, add_lesson, week, sat):
        """Without the merge a 2-period lesson has no cell wide enough."""
        engine = PlacementEngine(school)
        lesson = add_lesson("L1", periods=2)
        merges.merge(week, "C1", sat, [1, 2])
        assert engine.place(week, "C1", sat, 1, lesson).ok
        assert [e.is_start for e in school.slot(week, "C1", SlotKey(sat, 2))] == [False]
