"""
Statistics and validation for a timetable week.

This module aggregates lesson and hour counts, per-teacher load, and the
week-wide conflict audit into reports for display.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from ..conflicts import AuditConflict, ConflictDetector
from ..data.models import Week
from ..merges import MergeManager

if TYPE_CHECKING:
    from ..model import Timetable


# =============================================================================
# Constants
# =============================================================================

# Periods to clock-hours
HOUR_MULTIPLIER = 2


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class ScheduleStats:
    """Lesson and hour totals for one week."""
    total_lessons: int
    placed_lessons: int
    total_hours: int
    placed_hours: int

    @property
    def remaining_lessons(self) -> int:
        return self.total_lessons - self.placed_lessons

    @property
    def remaining_hours(self) -> int:
        return self.total_hours - self.placed_hours

    def to_dict(self) -> dict:
        return {
            "totalLessons": self.total_lessons,
            "placedLessons": self.placed_lessons,
            "remainingLessons": self.remaining_lessons,
            "totalHours": self.total_hours,
            "placedHours": self.placed_hours,
            "remainingHours": self.remaining_hours,
        }


@dataclass
class TeacherLoad:
    """Placed versus required hours for one teacher."""
    teacher_id: str
    name: str
    placed_hours: int = 0
    required_hours: int = 0

    def to_dict(self) -> dict:
        return {
            "teacherId": self.teacher_id,
            "name": self.name,
            "placedHours": self.placed_hours,
            "requiredHours": self.required_hours,
        }


@dataclass
class ValidationReport:
    """Stats, teacher loads and conflicts of one week."""
    week: Week
    stats: ScheduleStats
    teacher_loads: list[TeacherLoad] = field(default_factory=list)
    conflicts: list[AuditConflict] = field(default_factory=list)

    @property
    def is_conflict_free(self) -> bool:
        return not self.conflicts

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "week": self.week.value,
            "stats": self.stats.to_dict(),
            "teacherLoads": [load.to_dict() for load in self.teacher_loads],
            "conflicts": [conflict.to_dict() for conflict in self.conflicts],
        }


# =============================================================================
# Stats Reporter
# =============================================================================

class StatsReporter:
    """
    Calculator for week statistics.

    Usage:
        reporter = StatsReporter(timetable)
        report = reporter.validate(Week.A)
        print(generate_report(report))
    """

    def __init__(self, timetable: Timetable):
        self.timetable = timetable
        self.merges = MergeManager(timetable)
        self.conflicts = ConflictDetector(timetable)

    def _week(self, week: Optional[Week]) -> Week:
        return Week(week) if week is not None else self.timetable.active_week

    def summary(self, week: Optional[Week] = None) -> ScheduleStats:
        """
        Lesson and hour totals.

        Placed hours use each placed lesson's own period count.
        """
        week = self._week(week)
        placed_ids = self.timetable.placed_lesson_ids(week)
        placed = [l for l in self.timetable.lessons if l.id in placed_ids]

        return ScheduleStats(
            total_lessons=len(self.timetable.lessons),
            placed_lessons=len(placed_ids),
            total_hours=sum(l.periods for l in self.timetable.lessons) * HOUR_MULTIPLIER,
            placed_hours=sum(l.periods for l in placed) * HOUR_MULTIPLIER,
        )

    def teacher_loads(self, week: Optional[Week] = None) -> list[TeacherLoad]:
        """
        Per-teacher hours, sorted by teacher name.

        A placement is credited at its starting cell. When that cell starts a
        merge, the teacher is credited the merge's full length rather than
        the lesson's own period count.
        """
        week = self._week(week)
        loads = {
            t.id: TeacherLoad(teacher_id=t.id, name=t.name)
            for t in self.timetable.teachers
        }

        for lesson in self.timetable.lessons:
            if lesson.teacher_id in loads:
                loads[lesson.teacher_id].required_hours += lesson.periods * HOUR_MULTIPLIER

        for class_id, key, entry in self.timetable.iter_entries(week):
            if not entry.is_start:
                continue
            lesson = self.timetable.get_lesson(entry.lesson_id)
            if lesson is None or lesson.teacher_id not in loads:
                continue
            merge = self.merges.merge_starting_at(week, class_id, key.day, key.period)
            occupied = merge.count if merge else lesson.periods
            loads[lesson.teacher_id].placed_hours += occupied * HOUR_MULTIPLIER

        return sorted(loads.values(), key=lambda load: load.name)

    def validate(self, week: Optional[Week] = None) -> ValidationReport:
        """Full report: stats, teacher loads and the conflict audit."""
        week = self._week(week)
        return ValidationReport(
            week=week,
            stats=self.summary(week),
            teacher_loads=self.teacher_loads(week),
            conflicts=self.conflicts.audit_week(week),
        )


def generate_report(report: ValidationReport) -> str:
    """Format a validation report as plain text."""
    stats = report.stats
    lines = [
        "=" * 60,
        f"TIMETABLE VALIDATION - WEEK {report.week.value}",
        "=" * 60,
        "",
        "OVERVIEW",
        "-" * 40,
        f"  Lessons:  {stats.placed_lessons}/{stats.total_lessons} placed "
        f"({stats.remaining_lessons} remaining)",
        f"  Hours:    {stats.placed_hours}/{stats.total_hours} placed "
        f"({stats.remaining_hours} remaining)",
        "",
        "TEACHER LOAD",
        "-" * 40,
    ]
    if report.teacher_loads:
        for load in report.teacher_loads:
            lines.append(f"  {load.name:<30} {load.placed_hours:>3} / {load.required_hours}")
    else:
        lines.append("  No teachers defined.")

    lines.extend(["", "CONFLICTS", "-" * 40])
    if report.conflicts:
        for conflict in report.conflicts:
            lines.append(f"  * {conflict.describe()}")
    else:
        lines.append("  No conflicts found.")
    lines.append("")
    return "\n".join(lines)
