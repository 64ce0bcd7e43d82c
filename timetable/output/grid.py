"""
Read-only grid views for rendering.

Joins the schedule of a week with lessons, teachers, classes and merges into
rows of cells. Renderers consume these views and route every change back
through the placement, merge and constraint managers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from ..conflicts import ConflictDetector
from ..constraints import ConstraintManager
from ..data.models import DAYS, PERIODS_PER_DAY, Day, SlotKey, Week
from ..merges import MergeManager

if TYPE_CHECKING:
    from ..model import Timetable


@dataclass
class LessonView:
    """A lesson as drawn inside a cell."""
    lesson_id: str
    name: str
    teacher_name: str
    class_name: str
    color: Optional[str] = None
    conflict: bool = False
    highlighted: bool = False


@dataclass
class GridCell:
    """One drawn cell; ``colspan`` > 1 for merged or multi-period cells."""
    day: Day
    period: int
    colspan: int = 1
    locked: bool = False
    merged: bool = False
    lessons: list[LessonView] = field(default_factory=list)

    @property
    def key(self) -> SlotKey:
        return SlotKey(self.day, self.period)


@dataclass
class ClassRow:
    class_id: str
    class_name: str
    field: str
    field_color: Optional[str]
    cells: list[GridCell] = field(default_factory=list)


def _lesson_view(timetable: Timetable, detector: ConflictDetector, week: Week,
                 class_id: str, key: SlotKey, lesson_id: str) -> Optional[LessonView]:
    lesson = timetable.get_lesson(lesson_id)
    if lesson is None:
        return None
    teacher = timetable.get_teacher(lesson.teacher_id)
    return LessonView(
        lesson_id=lesson.id,
        name=lesson.name,
        teacher_name=teacher.name if teacher else "(no name)",
        class_name=timetable.class_name(lesson.class_id),
        color=timetable.lesson_colors.get(lesson.id),
        conflict=detector.has_conflict(week, class_id, key, lesson.id),
        highlighted=timetable.is_highlighted(lesson),
    )


def build_class_grid(timetable: Timetable, week: Optional[Week] = None) -> list[ClassRow]:
    """
    One row per class, sorted by name, with the cells of every day.

    A cell spans its merge's count, or else the period count of the lesson
    that starts in it; the cells it covers are not emitted separately. Only
    lessons starting in a cell are listed in it.
    """
    week = Week(week) if week is not None else timetable.active_week
    detector = ConflictDetector(timetable)
    constraints = ConstraintManager(timetable)
    merges = MergeManager(timetable)
    rows: list[ClassRow] = []

    for cls in sorted(timetable.classes, key=lambda c: c.name):
        row = ClassRow(
            class_id=cls.id,
            class_name=cls.name,
            field=cls.field,
            field_color=timetable.field_colors.get(cls.field),
        )
        for day in DAYS:
            covered: set[int] = set()
            for period in range(1, PERIODS_PER_DAY + 1):
                if period in covered:
                    continue
                key = SlotKey(day, period)
                entries = timetable.slot(week, cls.id, key)
                merge = merges.merge_starting_at(week, cls.id, day, period)

                colspan = 1
                if merge is not None:
                    colspan = merge.count
                else:
                    start = next((e for e in entries if e.is_start), None)
                    lesson = timetable.get_lesson(start.lesson_id) if start else None
                    if lesson is not None:
                        colspan = lesson.periods
                colspan = min(colspan, PERIODS_PER_DAY - period + 1)

                cell = GridCell(
                    day=day,
                    period=period,
                    colspan=colspan,
                    locked=constraints.is_locked(cls.id, day, period),
                    merged=merge is not None,
                )
                for entry in entries:
                    if entry.is_start:
                        view = _lesson_view(timetable, detector, week, cls.id, key, entry.lesson_id)
                        if view is not None:
                            cell.lessons.append(view)
                row.cells.append(cell)
                covered.update(range(period + 1, period + colspan))
        rows.append(row)
    return rows


def build_teacher_grid(
    timetable: Timetable,
    teacher_id: str,
    week: Optional[Week] = None,
) -> dict[SlotKey, list[LessonView]]:
    """Every slot of the week mapped to the teacher's lessons in it, across all classes."""
    week = Week(week) if week is not None else timetable.active_week
    detector = ConflictDetector(timetable)
    grid: dict[SlotKey, list[LessonView]] = {
        SlotKey(day, period): []
        for day in DAYS
        for period in range(1, PERIODS_PER_DAY + 1)
    }
    for class_id, key, entry in timetable.iter_entries(week):
        lesson = timetable.get_lesson(entry.lesson_id)
        if lesson is None or lesson.teacher_id != teacher_id:
            continue
        view = _lesson_view(timetable, detector, week, class_id, key, lesson.id)
        view.class_name = timetable.class_name(class_id, "")
        grid[key].append(view)
    return grid
