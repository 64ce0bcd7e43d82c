"""
Merged cells.

A merge joins consecutive periods of one class on one day into a single
placement cell. Its ``count`` is the colspan the placement engine checks a
lesson's length against. Merges belong to one week.

Merges are built from a selection: the operator clicks cells of one
class/day, then finalizes. Clicking a cell that is already part of a merge
selects that merge for removal instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Optional

from .constraints import ConstraintManager
from .data.models import Day, Merge, SlotKey, Week
from .errors import MergeError, NotFoundError, Outcome

if TYPE_CHECKING:
    from .model import Timetable

logger = logging.getLogger(__name__)


@dataclass
class MergeSelection:
    """
    Working set of cells being merged, or a merge pending removal.

    Scoped to one (week, class_id, day). ``periods`` keeps click order.
    """
    week: Optional[Week] = None
    class_id: Optional[str] = None
    day: Optional[Day] = None
    periods: list[int] = field(default_factory=list)
    merge_to_remove: Optional[Merge] = None

    @property
    def is_empty(self) -> bool:
        return not self.periods and self.merge_to_remove is None

    @property
    def is_removal(self) -> bool:
        return self.merge_to_remove is not None

    def clear(self) -> None:
        self.week = None
        self.class_id = None
        self.day = None
        self.periods = []
        self.merge_to_remove = None

    def scoped_to(self, week: Week, class_id: str, day: Day) -> bool:
        return self.week == week and self.class_id == class_id and self.day == day


class MergeManager:
    """Creates, removes and looks up merged cells."""

    def __init__(self, timetable: Timetable):
        self.timetable = timetable
        self.constraints = ConstraintManager(timetable)

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def merge_at(self, week: Week, class_id: str, day: Day, period: int) -> Optional[Merge]:
        """The merge covering a cell, if any."""
        day = Day.parse(day)
        for merge in self.timetable.merges[Week(week)]:
            if merge.covers(class_id, day, period):
                return merge
        return None

    def merge_starting_at(self, week: Week, class_id: str, day: Day, period: int) -> Optional[Merge]:
        """The merge whose first period is this cell, if any."""
        day = Day.parse(day)
        for merge in self.timetable.merges[Week(week)]:
            if merge.class_id == class_id and merge.day == day and merge.start_period == period:
                return merge
        return None

    def colspan(self, week: Week, class_id: str, day: Day, period: int) -> int:
        """Periods a cell can accept: the merge count at a merge start, else 1."""
        merge = self.merge_starting_at(week, class_id, day, period)
        return merge.count if merge else 1

    def is_addressable(self, week: Week, class_id: str, day: Day, period: int) -> bool:
        """False for the inner cells of a merge, which render as part of its start cell."""
        merge = self.merge_at(week, class_id, day, period)
        return merge is None or merge.start_period == period

    # -------------------------------------------------------------------------
    # Selection
    # -------------------------------------------------------------------------

    def _cell_error(self, week: Week, class_id: str, day: Day, period: int) -> Optional[MergeError]:
        if self.constraints.is_locked(class_id, day, period):
            return MergeError.CELL_LOCKED
        if self.timetable.slot(week, class_id, SlotKey(day, period)):
            return MergeError.CELL_OCCUPIED
        return None

    def select(
        self,
        selection: MergeSelection,
        week: Week,
        class_id: str,
        day: Day,
        period: int,
    ) -> Outcome:
        """
        Apply a cell click to the selection.

        Locked or occupied cells are refused. A cell inside an existing merge
        replaces the selection with that merge, pending removal. Otherwise the
        period is toggled; a click on another class or day starts a fresh
        selection and reports CROSS_CLASS_SELECTION as a warning.
        """
        week, day = Week(week), Day.parse(day)

        error = self._cell_error(week, class_id, day, period)
        if error is not None:
            return Outcome.failure(error, "Occupied or locked cells cannot be merged.")

        existing = self.merge_at(week, class_id, day, period)
        if existing is not None:
            selection.clear()
            selection.week, selection.class_id, selection.day = week, class_id, day
            selection.merge_to_remove = existing
            return Outcome.success("Cell is already merged; finalize to split it.", value=existing)

        warning = None
        if not selection.is_empty and not selection.scoped_to(week, class_id, day):
            warning = MergeError.CROSS_CLASS_SELECTION
            selection.clear()
        elif selection.is_removal:
            selection.clear()

        selection.week, selection.class_id, selection.day = week, class_id, day
        if period in selection.periods:
            selection.periods.remove(period)
        else:
            selection.periods.append(period)
        return Outcome.success(warning=warning, value=list(selection.periods))

    # -------------------------------------------------------------------------
    # Finalize
    # -------------------------------------------------------------------------

    def finalize(
        self,
        selection: MergeSelection,
        confirm: Optional[Callable[[str], bool]] = None,
    ) -> Outcome:
        """
        Commit the selection: split the pending merge, or create a new one.

        ``confirm`` receives a question and must return True to proceed;
        without it the operation is treated as confirmed.
        """
        if selection.is_removal:
            return self._remove(selection, confirm)

        periods = sorted(selection.periods)
        consecutive = all(b == a + 1 for a, b in zip(periods, periods[1:]))
        if (
            len(periods) < 2
            or not consecutive
            or selection.week is None
            or selection.class_id is None
            or selection.day is None
        ):
            return Outcome.failure(
                MergeError.NON_CONSECUTIVE_SELECTION,
                "Only two or more consecutive periods of one class and day can be merged.",
            )

        week, class_id, day = selection.week, selection.class_id, selection.day
        for period in periods:
            error = self._cell_error(week, class_id, day, period)
            if error is not None:
                return Outcome.failure(error, "Occupied or locked cells cannot be merged.")
            if self.merge_at(week, class_id, day, period) is not None:
                return Outcome.failure(MergeError.CELL_OCCUPIED, "Cell is already part of a merge.")

        if confirm is not None and not confirm(f"Merge {len(periods)} selected periods?"):
            return Outcome.declined()

        merge = Merge(class_id=class_id, day=day, start_period=periods[0], count=len(periods))
        self.timetable.merges[week].append(merge)
        selection.clear()

        self.timetable.log_change(
            f'{merge.count} periods merged for class "{self.timetable.class_name(class_id)}" on {day.value}.'
        )
        logger.debug("Merged %s %s periods %d-%d in week %s",
                     class_id, day.value, merge.start_period, merge.end_period, week.value)
        return Outcome.success(value=merge)

    def _remove(self, selection: MergeSelection, confirm: Optional[Callable[[str], bool]]) -> Outcome:
        merge = selection.merge_to_remove
        merges = self.timetable.merges[selection.week]
        if merge not in merges:
            selection.clear()
            return Outcome.failure(NotFoundError.MERGE, "Merge no longer exists.")

        if confirm is not None and not confirm("Split the merged periods?"):
            return Outcome.declined()

        merges.remove(merge)
        selection.clear()
        self.timetable.log_change(
            f'Merge for class "{self.timetable.class_name(merge.class_id)}" on {merge.day.value} removed.'
        )
        return Outcome.success(value=merge)

    def merge(self, week: Week, class_id: str, day: Day, periods: list[int]) -> Outcome:
        """Select the given periods of one class/day and finalize in one call."""
        selection = MergeSelection()
        for period in periods:
            outcome = self.select(selection, week, class_id, day, period)
            if not outcome.ok:
                return outcome
            if selection.is_removal:
                return Outcome.failure(MergeError.CELL_OCCUPIED, "Cell is already part of a merge.")
        return self.finalize(selection)

    def unmerge(self, week: Week, class_id: str, day: Day, period: int) -> Outcome:
        """Remove the merge covering a cell."""
        week = Week(week)
        merge = self.merge_at(week, class_id, day, period)
        if merge is None:
            return Outcome.failure(NotFoundError.MERGE, "Cell is not merged.")
        selection = MergeSelection(week=week, class_id=class_id, day=merge.day, merge_to_remove=merge)
        return self._remove(selection, None)
