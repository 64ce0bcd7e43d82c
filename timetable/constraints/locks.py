"""
Hard blackout rules.

A lock forbids placing anything for one teacher or one class in one
(day, period) slot. Locks are week-independent: the same set applies to
week A and week B.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from ..data.models import Day, Lock, LockType, SlotKey

if TYPE_CHECKING:
    from ..model import Timetable

logger = logging.getLogger(__name__)


class ConstraintManager:
    """
    Maintains the lock set of a timetable.

    Consulted as a hard precondition by the placement engine, the merge
    manager and the auto-scheduler.

    Usage:
        manager = ConstraintManager(timetable)
        manager.toggle(LockType.TEACHER, "t1", Day.SATURDAY, 1)
        manager.is_locked("c1", Day.SATURDAY, 1, lesson_id="l1")
    """

    def __init__(self, timetable: Timetable):
        self.timetable = timetable

    def toggle(self, lock_type: LockType, entity_id: str, day: Day, period: int) -> bool:
        """
        Add the lock if absent, otherwise remove it.

        Returns:
            True if the slot is locked after the call
        """
        lock = Lock(type=LockType(lock_type), id=entity_id, day=day, period=period)
        if lock in self.timetable.locks:
            self.timetable.locks.remove(lock)
            logger.debug("Unlocked %s %s at %s", lock.type.value, entity_id, lock.key)
            return False
        self.timetable.locks.append(lock)
        logger.debug("Locked %s %s at %s", lock.type.value, entity_id, lock.key)
        return True

    def is_locked(
        self,
        class_id: str,
        day: Day,
        period: int,
        lesson_id: Optional[str] = None,
    ) -> bool:
        """
        Whether the slot is blocked for the class, or for the teacher of
        ``lesson_id`` when that id resolves to a lesson.
        """
        day = Day.parse(day)
        lesson = self.timetable.get_lesson(lesson_id) if lesson_id else None
        teacher_id = lesson.teacher_id if lesson else None

        for lock in self.timetable.locks:
            if lock.day != day or lock.period != period:
                continue
            if lock.type == LockType.CLASS and lock.id == class_id:
                return True
            if lock.type == LockType.TEACHER and teacher_id is not None and lock.id == teacher_id:
                return True
        return False

    def locks_for(self, lock_type: LockType, entity_id: str) -> list[SlotKey]:
        """Locked slots of one teacher or class, in timetable order."""
        lock_type = LockType(lock_type)
        return sorted(
            lock.key for lock in self.timetable.locks if lock.type == lock_type and lock.id == entity_id
        )
