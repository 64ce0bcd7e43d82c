"""
Placing lessons into, and removing them from, the weekly grid.

A lesson of ``periods`` length occupies that many consecutive cells of its
own class on one day, with ``is_start`` set only on the first entry. A cell
holds at most SLOT_CAPACITY entries.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Optional

from .conflicts import ConflictDetector, ConflictReport
from .constraints import ConstraintManager
from .data.models import PERIODS_PER_DAY, SLOT_CAPACITY, Day, Lesson, PlacementEntry, SlotKey, Week, slot_keys
from .errors import NotFoundError, Outcome, PlacementError
from .merges import MergeManager

if TYPE_CHECKING:
    from .model import Timetable

logger = logging.getLogger(__name__)

_MESSAGES = {
    PlacementError.WRONG_CLASS: "A lesson can only be placed in its own class.",
    PlacementError.ALREADY_PLACED: "This lesson is already placed in this week.",
    PlacementError.INSUFFICIENT_SPACE: "The lesson needs {needed} periods but this cell spans only {colspan}.",
    PlacementError.SLOT_FULL: "This slot is full.",
    PlacementError.SLOT_LOCKED: "This slot is locked.",
}


class PlacementEngine:
    """
    Places and removes lessons in one timetable.

    Usage:
        engine = PlacementEngine(timetable)
        outcome = engine.place(Week.A, "c1", Day.SATURDAY, 1, lesson)
        if not outcome:
            print(outcome.error, outcome.message)
    """

    def __init__(self, timetable: Timetable):
        self.timetable = timetable
        self.constraints = ConstraintManager(timetable)
        self.merges = MergeManager(timetable)
        self.conflicts = ConflictDetector(timetable)

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def check(
        self,
        week: Week,
        class_id: str,
        day: Day,
        start_period: int,
        lesson: Lesson,
    ) -> Optional[PlacementError]:
        """First rule a placement would break, or None if it is allowed."""
        week, day = Week(week), Day.parse(day)
        if lesson.class_id != class_id:
            return PlacementError.WRONG_CLASS
        if lesson.id in self.timetable.placed_lesson_ids(week):
            return PlacementError.ALREADY_PLACED

        # inner cells of a merge belong to its start cell
        if not self.merges.is_addressable(week, class_id, day, start_period):
            return PlacementError.INSUFFICIENT_SPACE
        if lesson.periods > self.merges.colspan(week, class_id, day, start_period):
            return PlacementError.INSUFFICIENT_SPACE

        for key in slot_keys(day, start_period, lesson.periods):
            if len(self.timetable.slot(week, class_id, key)) >= SLOT_CAPACITY:
                return PlacementError.SLOT_FULL
            if self.constraints.is_locked(lesson.class_id, day, key.period, lesson_id=lesson.id):
                return PlacementError.SLOT_LOCKED
        return None

    def _failure(self, error: PlacementError, week: Week, class_id: str, day: Day,
                 start_period: int, lesson: Lesson) -> Outcome:
        if error == PlacementError.INSUFFICIENT_SPACE and not self.merges.is_addressable(
            week, class_id, day, start_period
        ):
            merge = self.merges.merge_at(week, class_id, day, start_period)
            return Outcome.failure(
                error, f"This cell is part of the merge starting at period {merge.start_period}."
            )
        message = _MESSAGES[error].format(
            needed=lesson.periods,
            colspan=self.merges.colspan(week, class_id, day, start_period),
        )
        return Outcome.failure(error, message)

    # -------------------------------------------------------------------------
    # Place / Remove
    # -------------------------------------------------------------------------

    def place(
        self,
        week: Week,
        class_id: str,
        day: Day,
        start_period: int,
        lesson: Lesson,
    ) -> Outcome:
        """
        Put a lesson at (day, start_period) of its class.

        Nothing is written unless every check passes. Soft conflicts are not
        checked here; see ``move`` and ``ConflictDetector.detect``.
        """
        week, day = Week(week), Day.parse(day)
        error = self.check(week, class_id, day, start_period, lesson)
        if error is not None:
            return self._failure(error, week, class_id, day, start_period, lesson)

        self._write(week, class_id, day, start_period, lesson)
        logger.debug("Placed %s in %s at %s_%d (week %s)",
                     lesson.id, class_id, day.value, start_period, week.value)
        return Outcome.success(value=SlotKey(day, start_period))

    def _write(self, week: Week, class_id: str, day: Day, start_period: int, lesson: Lesson) -> None:
        class_schedule = self.timetable.schedule[week].setdefault(class_id, {})
        for i, key in enumerate(slot_keys(day, start_period, lesson.periods)):
            class_schedule.setdefault(key, []).append(
                PlacementEntry(lesson_id=lesson.id, is_start=(i == 0))
            )

    def remove(self, week: Week, class_id: str, lesson_id: str, start_key: SlotKey) -> Outcome:
        """Take a lesson out of every cell of its span starting at ``start_key``."""
        week = Week(week)
        class_schedule = self.timetable.class_schedule(week, class_id)
        lesson = self.timetable.get_lesson(lesson_id)
        if lesson is None:
            logger.warning("Remove failed: unknown lesson %s", lesson_id)
            return Outcome.failure(NotFoundError.LESSON, f"Unknown lesson: {lesson_id}")
        if class_schedule is None:
            logger.warning("Remove failed: no schedule for class %s in week %s", class_id, week.value)
            return Outcome.failure(NotFoundError.SCHEDULE, f"No schedule for class: {class_id}")

        last_period = min(start_key.period + lesson.periods - 1, PERIODS_PER_DAY)
        for period in range(start_key.period, last_period + 1):
            key = SlotKey(start_key.day, period)
            if key not in class_schedule:
                continue
            kept = [e for e in class_schedule[key] if e.lesson_id != lesson_id]
            if kept:
                class_schedule[key] = kept
            else:
                del class_schedule[key]

        logger.debug("Removed %s from %s at %s (week %s)", lesson_id, class_id, start_key, week.value)
        return Outcome.success()

    def find_start(self, week: Week, lesson_id: str) -> Optional[tuple[str, SlotKey]]:
        """(class_id, key) of the lesson's starting cell in a week."""
        for class_id, key, entry in self.timetable.iter_entries(week):
            if entry.lesson_id == lesson_id and entry.is_start:
                return class_id, key
        return None

    def unplace(self, week: Week, lesson_id: str) -> Outcome:
        """Return a placed lesson to the unplaced list."""
        if self.timetable.get_lesson(lesson_id) is None:
            return Outcome.failure(NotFoundError.LESSON, f"Unknown lesson: {lesson_id}")
        start = self.find_start(week, lesson_id)
        if start is None:
            return Outcome.failure(NotFoundError.SCHEDULE, "Lesson is not placed in this week.")
        class_id, key = start
        outcome = self.remove(week, class_id, lesson_id, key)
        if outcome:
            lesson = self.timetable.get_lesson(lesson_id)
            self.timetable.log_change(f'Lesson "{lesson.name}" returned to the unplaced list.')
        return outcome

    # -------------------------------------------------------------------------
    # Drag-move
    # -------------------------------------------------------------------------

    def move(
        self,
        week: Week,
        lesson_id: str,
        class_id: str,
        day: Day,
        start_period: int,
        origin: Optional[tuple[str, SlotKey]] = None,
        confirm: Optional[Callable[[ConflictReport], bool]] = None,
    ) -> Outcome:
        """
        Drop a lesson at a cell, from the unplaced list or from ``origin``.

        Without ``origin``, a lesson already placed in the week is moved from
        its current start cell. The origin placement is lifted first so the
        lesson does not block its own destination. Hard rules are then checked; a soft conflict at the
        destination is passed to ``confirm``. Without a callback, or when it
        answers False, the outcome carries the conflict report. Whenever the
        move does not complete, the origin placement is restored.
        """
        week, day = Week(week), Day.parse(day)
        lesson = self.timetable.get_lesson(lesson_id)
        if lesson is None:
            return Outcome.failure(NotFoundError.LESSON, f"Unknown lesson: {lesson_id}")

        saved = None
        if origin is None:
            origin = self.find_start(week, lesson_id)
        if origin is not None:
            origin_class, origin_key = origin
            current = self.timetable.class_schedule(week, origin_class) or {}
            saved = {key: list(entries) for key, entries in current.items()}
            removed = self.remove(week, origin_class, lesson_id, origin_key)
            if not removed:
                return removed

        def restore() -> None:
            if saved is not None:
                self.timetable.schedule[week][origin[0]] = saved

        error = self.check(week, class_id, day, start_period, lesson)
        if error is not None:
            restore()
            return self._failure(error, week, class_id, day, start_period, lesson)

        report = self.conflicts.detect(lesson, day, start_period, class_id, week)
        if report is not None and (confirm is None or not confirm(report)):
            restore()
            return Outcome.declined(report.describe(), conflict=report)

        outcome = self.place(week, class_id, day, start_period, lesson)
        outcome.conflict = report
        self.timetable.log_change(
            f'Lesson "{lesson.name}" placed in class "{self.timetable.class_name(class_id)}" '
            f"on {day.value} period {start_period}."
        )
        return outcome
