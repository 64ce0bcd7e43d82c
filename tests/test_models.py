"""Tests for the data models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from timetable.data.models import (
    DAYS,
    DEFAULT_FIELD,
    ClassGroup,
    Day,
    Lesson,
    Lock,
    LockType,
    Merge,
    PlacementEntry,
    SlotKey,
    TimetableSnapshot,
    Week,
    all_slot_keys,
    color_from_string,
    slot_keys,
)


class TestDay:
    """Tests for day parsing and ordering."""

    def test_six_days_in_timetable_order(self):
        assert DAYS == [Day.SATURDAY, Day.SUNDAY, Day.MONDAY, Day.TUESDAY, Day.WEDNESDAY, Day.THURSDAY]
        assert Day.SATURDAY.index == 0
        assert Day.THURSDAY.index == 5

    @pytest.mark.parametrize("raw", ["Sat", "sat", " SAT ", "saturday", "Saturday", "شنبه"])
    def test_parse_aliases(self, raw):
        """Short values, English names and Persian names resolve to the same day."""
        assert Day.parse(raw) is Day.SATURDAY

    def test_parse_persian_with_zero_width_joiner(self):
        assert Day.parse("سه‌شنبه") is Day.TUESDAY
        assert Day.parse("پنج شنبه") is Day.THURSDAY

    def test_parse_unknown_day(self):
        with pytest.raises(ValueError, match="Unknown day"):
            Day.parse("Friday")

    def test_full_name(self):
        assert Day.WEDNESDAY.full_name == "Wednesday"


class TestSlotKey:
    """Tests for the structured slot key."""

    def test_string_form(self):
        assert str(SlotKey(Day.SATURDAY, 1)) == "Sat_1"

    def test_parse_string_form(self):
        assert SlotKey.parse("Wed_4") == SlotKey(Day.WEDNESDAY, 4)

    def test_parse_persian_key(self):
        """Older snapshots key slots by Persian day names."""
        assert SlotKey.parse("شنبه_2") == SlotKey(Day.SATURDAY, 2)

    @pytest.mark.parametrize("raw", ["Sat", "Sat_", "_1", "Sat_x"])
    def test_parse_malformed(self, raw):
        with pytest.raises(ValueError):
            SlotKey.parse(raw)

    @pytest.mark.parametrize("period", [0, 5])
    def test_period_out_of_range(self, period):
        with pytest.raises(ValueError, match="period"):
            SlotKey(Day.SATURDAY, period)

    def test_day_coerced_from_string(self):
        assert SlotKey("Mon", 2).day is Day.MONDAY

    def test_hashable_and_equal(self):
        assert {SlotKey(Day.SUNDAY, 3): "x"}[SlotKey("Sun", 3)] == "x"

    def test_ordering_follows_timetable(self):
        keys = [SlotKey(Day.SUNDAY, 1), SlotKey(Day.SATURDAY, 4), SlotKey(Day.SATURDAY, 1)]
        assert sorted(keys) == [SlotKey(Day.SATURDAY, 1), SlotKey(Day.SATURDAY, 4), SlotKey(Day.SUNDAY, 1)]

    def test_shifted(self):
        assert SlotKey(Day.MONDAY, 1).shifted(2) == SlotKey(Day.MONDAY, 3)

    def test_slot_keys_run(self):
        assert slot_keys(Day.SATURDAY, 2, 3) == [
            SlotKey(Day.SATURDAY, 2), SlotKey(Day.SATURDAY, 3), SlotKey(Day.SATURDAY, 4),
        ]

    def test_all_slot_keys(self):
        keys = all_slot_keys()
        assert len(keys) == 24
        assert keys[0] == SlotKey(Day.SATURDAY, 1)
        assert keys[-1] == SlotKey(Day.THURSDAY, 4)


class TestEntities:
    """Tests for entity validation."""

    def test_class_blank_field_defaults(self):
        assert ClassGroup(id="c1", name="10-A").field == DEFAULT_FIELD
        assert ClassGroup(id="c1", name="10-A", field="  ").field == DEFAULT_FIELD
        assert ClassGroup(id="c1", name="10-A", field=None).field == DEFAULT_FIELD

    def test_lesson_from_camel_case(self):
        lesson = Lesson.model_validate(
            {"id": "l1", "name": "Math", "teacherId": "t1", "classId": "c1", "roomId": None, "periods": 2}
        )
        assert lesson.teacher_id == "t1"
        assert lesson.class_id == "c1"
        assert lesson.room_id is None
        assert lesson.periods == 2

    def test_lesson_blank_room_is_none(self):
        lesson = Lesson(id="l1", name="Math", teacher_id="t1", class_id="c1", room_id="")
        assert lesson.room_id is None

    def test_lesson_periods_must_be_positive(self):
        with pytest.raises(ValidationError):
            Lesson(id="l1", name="Math", teacher_id="t1", class_id="c1", periods=0)

    def test_lesson_assignment_validated(self):
        lesson = Lesson(id="l1", name="Math", teacher_id="t1", class_id="c1")
        with pytest.raises(ValidationError):
            lesson.periods = -1

    def test_placement_entry_aliases(self):
        entry = PlacementEntry.model_validate({"lessonId": "l1", "isStart": True})
        assert entry.lesson_id == "l1"
        assert entry.is_start is True
        assert entry.model_dump(by_alias=True) == {"lessonId": "l1", "isStart": True}

    @pytest.mark.parametrize("count", [1, 5])
    def test_merge_count_bounds(self, count):
        with pytest.raises(ValidationError):
            Merge(class_id="c1", day=Day.SATURDAY, start_period=1, count=count)

    @pytest.mark.parametrize("start_period,count", [(3, 4), (4, 2), (2, 4)])
    def test_merge_must_end_within_day(self, start_period, count):
        with pytest.raises(ValidationError, match="runs past period 4"):
            Merge(class_id="c1", day=Day.SATURDAY, start_period=start_period, count=count)

    def test_merge_ending_on_last_period(self):
        assert Merge(class_id="c1", day=Day.SATURDAY, start_period=3, count=2).end_period == 4

    def test_merge_covers(self):
        merge = Merge.model_validate({"classId": "c1", "day": "Sat", "startPeriod": 2, "count": 2})
        assert merge.end_period == 3
        assert merge.covers("c1", Day.SATURDAY, 3)
        assert not merge.covers("c1", Day.SATURDAY, 1)
        assert not merge.covers("c2", Day.SATURDAY, 2)

    def test_lock_is_hashable_value(self):
        a = Lock(type=LockType.TEACHER, id="t1", day="Sat", period=1)
        b = Lock(type="teacher", id="t1", day=Day.SATURDAY, period=1)
        assert a == b
        assert len({a, b}) == 1
        assert a.key == SlotKey(Day.SATURDAY, 1)


class TestSnapshot:
    """Tests for the tolerant snapshot model."""

    def test_empty_snapshot_defaults(self):
        snapshot = TimetableSnapshot.model_validate({})
        assert snapshot.teachers == []
        assert snapshot.schedule == {}
        assert snapshot.constraints.unavailable == []
        assert snapshot.active_week is Week.A
        assert snapshot.settings.bw_print is False

    def test_null_sections_default(self):
        snapshot = TimetableSnapshot.model_validate({
            "schedule": None,
            "merges": None,
            "constraints": None,
            "activeHighlights": None,
            "changeLog": None,
            "settings": None,
        })
        assert snapshot.merges == {}
        assert snapshot.active_highlights == []
        assert snapshot.change_log == []

    def test_unknown_keys_ignored(self):
        snapshot = TimetableSnapshot.model_validate({"activeView": "full", "draggedElementInfo": None})
        assert "activeView" not in snapshot.model_dump(by_alias=True)

    def test_json_uses_camel_case(self):
        json_text = TimetableSnapshot(active_week=Week.B).to_json()
        assert '"activeWeek": "B"' in json_text
        assert '"changeLog"' in json_text


class TestColors:
    """Tests for the stable color hash."""

    def test_known_value(self):
        assert color_from_string("a") == "#e18080"

    def test_stable_and_pastel(self):
        color = color_from_string("Mathematics")
        assert color == color_from_string("Mathematics")
        assert len(color) == 7
        for i in (1, 3, 5):
            assert int(color[i:i + 2], 16) >= 0x80

    def test_handles_persian_text(self):
        assert color_from_string("ریاضی").startswith("#")
