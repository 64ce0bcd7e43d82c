"""Shared fixtures: a small school with two teachers, three classes and one room."""

from __future__ import annotations

import pytest

from timetable.data.models import Day, Lesson, Week
from timetable.model import Timetable


@pytest.fixture
def school() -> Timetable:
    """Teachers T1/T2, classes C1-C3 (named after their IDs), room R1."""
    tt = Timetable()
    tt.add_teacher("Alice Ahmadi", id="T1")
    tt.add_teacher("Bahram Bagheri", id="T2")
    tt.add_class("C1", field="Math", id="C1")
    tt.add_class("C2", field="Science", id="C2")
    tt.add_class("C3", id="C3")
    tt.add_room("Lab", id="R1")
    return tt


@pytest.fixture
def add_lesson(school):
    """Factory adding a lesson to the school and returning it."""
    def _add(
        lesson_id: str,
        class_id: str = "C1",
        teacher_id: str = "T1",
        periods: int = 1,
        room_id: str | None = None,
        name: str | None = None,
    ) -> Lesson:
        outcome = school.add_lesson(
            name or f"Lesson {lesson_id}",
            teacher_id=teacher_id,
            class_id=class_id,
            room_id=room_id,
            periods=periods,
            id=lesson_id,
        )
        assert outcome.ok, outcome.message
        return outcome.value
    return _add


@pytest.fixture
def week() -> Week:
    return Week.A


@pytest.fixture
def sat() -> Day:
    return Day.SATURDAY
