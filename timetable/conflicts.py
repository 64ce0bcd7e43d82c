"""
Teacher and room double-booking detection.

Conflicts are soft: a manual placement that causes one is allowed once the
operator confirms it. The auto-scheduler, by contrast, refuses any position
``detect`` flags.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional

from .data.models import PERIODS_PER_DAY, Day, Lesson, SlotKey, Week, all_slot_keys

if TYPE_CHECKING:
    from .model import Timetable


class ConflictKind(str, Enum):
    TEACHER = "teacher"
    ROOM = "room"


@dataclass
class ConflictReport:
    """Names of the other classes a candidate placement collides with."""
    teacher: list[str] = field(default_factory=list)
    room: list[str] = field(default_factory=list)

    def describe(self) -> str:
        parts = []
        if self.teacher:
            parts.append(f"Teacher conflict with class: {', '.join(self.teacher)}.")
        if self.room:
            parts.append(f"Room conflict with class: {', '.join(self.room)}.")
        return " ".join(parts)

    def to_dict(self) -> dict:
        return {"teacher": list(self.teacher), "room": list(self.room)}


@dataclass(frozen=True)
class AuditConflict:
    """A teacher or room booked more than once in one slot of a week."""
    kind: ConflictKind
    resource_id: str
    resource_name: str
    day: Day
    period: int
    class_names: tuple[str, ...]

    def describe(self) -> str:
        return (
            f"{self.kind.value.capitalize()} conflict: {self.resource_name} on "
            f"{self.day.full_name} period {self.period} in classes: {', '.join(self.class_names)}"
        )

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "resourceId": self.resource_id,
            "resourceName": self.resource_name,
            "day": self.day.value,
            "period": self.period,
            "classNames": list(self.class_names),
        }


def _unique(items: list[str]) -> list[str]:
    return list(dict.fromkeys(items))


class ConflictDetector:
    """
    Finds cross-class double bookings of teachers and rooms.

    Usage:
        detector = ConflictDetector(timetable)
        report = detector.detect(lesson, Day.SATURDAY, 1, "c1", Week.A)
        conflicts = detector.audit_week(Week.A)
    """

    def __init__(self, timetable: Timetable):
        self.timetable = timetable

    def detect(
        self,
        lesson: Lesson,
        day: Day,
        start_period: int,
        current_class_id: str,
        week: Week,
    ) -> Optional[ConflictReport]:
        """
        Check a candidate placement against every other class in the week.

        Returns:
            None when nothing collides, else the deduplicated class names
            sharing the lesson's teacher and/or room at a covered period
        """
        if lesson is None:
            return None
        day, week = Day.parse(day), Week(week)
        teacher_hits: list[str] = []
        room_hits: list[str] = []

        last_period = min(start_period + lesson.periods - 1, PERIODS_PER_DAY)
        for period in range(start_period, last_period + 1):
            key = SlotKey(day, period)
            for class_id, class_schedule in self.timetable.schedule[week].items():
                if class_id == current_class_id:
                    continue
                for entry in class_schedule.get(key, []):
                    other = self.timetable.get_lesson(entry.lesson_id)
                    if other is None:
                        continue
                    if lesson.teacher_id and lesson.teacher_id == other.teacher_id:
                        teacher_hits.append(self.timetable.class_name(class_id))
                    if lesson.room_id and lesson.room_id == other.room_id:
                        room_hits.append(self.timetable.class_name(class_id))

        if not teacher_hits and not room_hits:
            return None
        return ConflictReport(teacher=_unique(teacher_hits), room=_unique(room_hits))

    def has_conflict(self, week: Week, class_id: str, key: SlotKey, lesson_id: str) -> bool:
        """Per-cell flag: does the lesson starting at ``key`` collide with another class?"""
        lesson = self.timetable.get_lesson(lesson_id)
        if lesson is None:
            return False
        return self.detect(lesson, key.day, key.period, class_id, week) is not None

    def audit_week(self, week: Week) -> list[AuditConflict]:
        """
        Every slot of the week where a teacher or room is booked more than once.

        All entries count, not only lesson starts, since a multi-period lesson
        can collide at any period it covers. Teacher conflicts come first, in
        slot order, followed by room conflicts.
        """
        week = Week(week)
        teacher_conflicts: list[AuditConflict] = []
        room_conflicts: list[AuditConflict] = []

        for key in all_slot_keys():
            occupants: list[tuple[Lesson, str]] = []
            for class_id, class_schedule in self.timetable.schedule[week].items():
                for entry in class_schedule.get(key, []):
                    lesson = self.timetable.get_lesson(entry.lesson_id)
                    if lesson is not None:
                        occupants.append((lesson, class_id))

            by_teacher: dict[str, list[str]] = defaultdict(list)
            by_room: dict[str, list[str]] = defaultdict(list)
            for lesson, class_id in occupants:
                by_teacher[lesson.teacher_id].append(class_id)
                if lesson.room_id:
                    by_room[lesson.room_id].append(class_id)

            for teacher_id, class_ids in by_teacher.items():
                if len(class_ids) > 1:
                    teacher = self.timetable.get_teacher(teacher_id)
                    teacher_conflicts.append(AuditConflict(
                        kind=ConflictKind.TEACHER,
                        resource_id=teacher_id,
                        resource_name=teacher.name if teacher else "?",
                        day=key.day,
                        period=key.period,
                        class_names=tuple(_unique(
                            [self.timetable.class_name(c, "(unknown)") for c in class_ids]
                        )),
                    ))
            for room_id, class_ids in by_room.items():
                if len(class_ids) > 1:
                    room = self.timetable.get_room(room_id)
                    room_conflicts.append(AuditConflict(
                        kind=ConflictKind.ROOM,
                        resource_id=room_id,
                        resource_name=room.name if room else "?",
                        day=key.day,
                        period=key.period,
                        class_names=tuple(_unique(
                            [self.timetable.class_name(c, "(unknown)") for c in class_ids]
                        )),
                    ))

        return list(dict.fromkeys(teacher_conflicts + room_conflicts))
