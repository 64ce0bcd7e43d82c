"""
Greedy auto-placement of unplaced lessons.

A single deterministic pass with no backtracking: lessons in stored order,
days in timetable order, periods ascending. The first position that is
unlocked, empty and free of teacher/room conflicts wins. Lessons with no
such position stay unplaced. This is not an optimizer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from .data.models import DAYS, PERIODS_PER_DAY, Day, Lesson, SlotKey, Week, slot_keys
from .placement import PlacementEngine

if TYPE_CHECKING:
    from .model import Timetable

logger = logging.getLogger(__name__)


@dataclass
class AutoPlacement:
    """Where the auto-scheduler put one lesson."""
    lesson_id: str
    class_id: str
    key: SlotKey


@dataclass
class AutoScheduleResult:
    """Outcome of one auto-scheduling pass."""
    week: Week
    placements: list[AutoPlacement] = field(default_factory=list)
    unplaced: list[str] = field(default_factory=list)

    @property
    def placed_count(self) -> int:
        return len(self.placements)

    def to_dict(self) -> dict:
        return {
            "week": self.week.value,
            "placedCount": self.placed_count,
            "placements": [
                {"lessonId": p.lesson_id, "classId": p.class_id, "slot": str(p.key)}
                for p in self.placements
            ],
            "unplaced": list(self.unplaced),
        }


class AutoScheduler:
    """
    Places currently unplaced lessons of one week.

    Stricter than manual placement: a target cell must be empty (manual
    placement allows two entries), and any teacher or room conflict rejects
    the position instead of asking for confirmation.

    Usage:
        result = AutoScheduler(timetable).run(Week.A)
        print(result.placed_count)
    """

    def __init__(self, timetable: Timetable):
        self.timetable = timetable
        self.placement = PlacementEngine(timetable)
        self._running = False

    def run(self, week: Optional[Week] = None) -> AutoScheduleResult:
        """
        Run one pass over the week (the active week by default).

        Raises:
            RuntimeError: If called again while a pass is running
        """
        if self._running:
            raise RuntimeError("Auto-scheduler is already running")
        self._running = True
        try:
            return self._run(Week(week) if week is not None else self.timetable.active_week)
        finally:
            self._running = False

    def _run(self, week: Week) -> AutoScheduleResult:
        result = AutoScheduleResult(week=week)

        for lesson in self.timetable.unplaced_lessons(week):
            key = self.find_position(week, lesson)
            if key is None:
                result.unplaced.append(lesson.id)
                continue
            outcome = self.placement.place(week, lesson.class_id, key.day, key.period, lesson)
            if not outcome:
                result.unplaced.append(lesson.id)
                continue
            result.placements.append(AutoPlacement(lesson.id, lesson.class_id, key))

        if result.placed_count:
            self.timetable.log_change(f"{result.placed_count} lessons placed automatically.")
        logger.info("Auto-scheduler placed %d lessons in week %s; %d left unplaced",
                    result.placed_count, week.value, len(result.unplaced))
        return result

    def find_position(self, week: Week, lesson: Lesson) -> Optional[SlotKey]:
        """First valid start cell for the lesson, or None."""
        class_id = lesson.class_id
        for day in DAYS:
            for period in range(1, PERIODS_PER_DAY + 1):
                if not self.placement.merges.is_addressable(week, class_id, day, period):
                    continue
                colspan =self.placement.merges.colspan(week, class_id, day, period)
                if lesson.periods > colspan:
                    continue
                if self._is_free(week, lesson, day, period):
                    return SlotKey(day, period)
        return None

    def _is_free(self, week: Week, lesson: Lesson, day: Day, start_period: int) -> bool:
        class_id = lesson.class_id
        for key in slot_keys(day, start_period, lesson.periods):
            if self.placement.constraints.is_locked(class_id, day, key.period, lesson.id):
                return False
            if self.timetable.slot(week, class_id, key):
                return False
        return self.placement.conflicts.detect(lesson, day, start_period, class_id, week) is None
