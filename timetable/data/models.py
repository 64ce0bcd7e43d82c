"""
Pydantic models for the school timetable data model.

Mirrors the JSON snapshot written by the timetable editor.

Slot conventions:
- Days are the six school days, Saturday through Thursday
- Periods are numbered 1-4 within each day
- A slot is addressed by a (day, period) SlotKey, per class and per week

Example keys:
- Saturday, first period = SlotKey(Day.SATURDAY, 1) -> "Sat_1"
- Wednesday, last period = SlotKey(Day.WEDNESDAY, 4) -> "Wed_4"
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


# =============================================================================
# Constants and Enums
# =============================================================================

PERIODS_PER_DAY = 4
SLOT_CAPACITY = 2
CHANGE_LOG_LIMIT = 100
DEFAULT_FIELD = "General"


class Week(str, Enum):
    """One of the two alternating weekly patterns."""
    A = "A"
    B = "B"


class Day(str, Enum):
    """School day, in timetable order."""
    SATURDAY = "Sat"
    SUNDAY = "Sun"
    MONDAY = "Mon"
    TUESDAY = "Tue"
    WEDNESDAY = "Wed"
    THURSDAY = "Thu"

    @property
    def index(self) -> int:
        """Position of the day within the week (0 = Saturday)."""
        return DAYS.index(self)

    @property
    def full_name(self) -> str:
        return self.name.capitalize()

    @classmethod
    def parse(cls, value: Any) -> "Day":
        """
        Resolve a day from its short value, English name or Persian name.

        Older snapshots store Persian day names; those are mapped onto the
        same enum so schedules keyed by them keep loading.
        """
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        try:
            return cls(text)
        except ValueError:
            pass
        day = _DAY_ALIASES.get(text.lower())
        if day is None:
            raise ValueError(f"Unknown day: {value!r}")
        return day


DAYS: list[Day] = list(Day)

_DAY_ALIASES: dict[str, Day] = {
    **{day.name.lower(): day for day in Day},
    **{day.value.lower(): day for day in Day},
    "شنبه": Day.SATURDAY,
    "یکشنبه": Day.SUNDAY,
    "دوشنبه": Day.MONDAY,
    "سه‌شنبه": Day.TUESDAY,
    "سه شنبه": Day.TUESDAY,
    "چهارشنبه": Day.WEDNESDAY,
    "پنج‌شنبه": Day.THURSDAY,
    "پنج شنبه": Day.THURSDAY,
}


class LockType(str, Enum):
    """Entity a lock applies to."""
    TEACHER = "teacher"
    CLASS = "class"


class HighlightType(str, Enum):
    """Entity a display highlight applies to."""
    TEACHER = "teacher"
    CLASS = "class"
    ROOM = "room"


# Type aliases for documentation
PeriodNumber = Annotated[int, Field(ge=1, le=PERIODS_PER_DAY, description="Period within the day (1-4)")]


# =============================================================================
# Slot Keys
# =============================================================================

@dataclass(frozen=True)
class SlotKey:
    """A (day, period) cell address within one class's week."""
    day: Day
    period: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "day", Day.parse(self.day))
        if not 1 <= self.period <= PERIODS_PER_DAY:
            raise ValueError(f"period must be between 1 and {PERIODS_PER_DAY}, got {self.period}")

    def __str__(self) -> str:
        return f"{self.day.value}_{self.period}"

    def __lt__(self, other: "SlotKey") -> bool:
        return (self.day.index, self.period) < (other.day.index, other.period)

    def shifted(self, offset: int) -> "SlotKey":
        """Key ``offset`` periods later on the same day."""
        return SlotKey(self.day, self.period + offset)

    @classmethod
    def parse(cls, text: str) -> "SlotKey":
        """Parse the ``"day_period"`` form used by persisted snapshots."""
        day, _, period = str(text).rpartition("_")
        if not day or not period.isdigit():
            raise ValueError(f"Malformed slot key: {text!r}")
        return cls(Day.parse(day), int(period))


def slot_keys(day: Day, start_period: int, count: int) -> list[SlotKey]:
    """Keys covered by a run of ``count`` periods starting at ``start_period``."""
    return [SlotKey(day, start_period + i) for i in range(count)]


def all_slot_keys() -> list[SlotKey]:
    """Every slot of a week in timetable order."""
    return [SlotKey(day, period) for day in DAYS for period in range(1, PERIODS_PER_DAY + 1)]


# =============================================================================
# Core Entity Models
# =============================================================================

class Teacher(BaseModel):
    """Teacher entity."""
    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    id: str = Field(min_length=1, description="Unique identifier (personnel code)")
    name: str = Field(min_length=1, description="Full name")

    def __str__(self) -> str:
        return f"{self.name} ({self.id})"


class Room(BaseModel):
    """Room/facility."""
    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    id: str = Field(min_length=1, description="Unique identifier")
    name: str = Field(default="", description="Room name/number")

    def __str__(self) -> str:
        return self.name or self.id


class ClassGroup(BaseModel):
    """
    Student class.
    Named 'ClassGroup' to avoid collision with Python's 'class' keyword.
    """
    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    id: str = Field(min_length=1, description="Unique identifier")
    name: str = Field(min_length=1, description="Class name (e.g., '10-Math')")
    field: str = Field(default=DEFAULT_FIELD, description="Subject track, used for grouping and coloring")

    @field_validator("field", mode="before")
    @classmethod
    def default_blank_field(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_FIELD
        return value

    def __str__(self) -> str:
        return self.name


class Lesson(BaseModel):
    """Lesson to be placed; occupies ``periods`` consecutive periods of one day."""
    model_config = ConfigDict(extra="ignore", validate_assignment=True, populate_by_name=True)

    id: str = Field(min_length=1, description="Unique identifier")
    name: str = Field(min_length=1, description="Lesson name")
    teacher_id: str = Field(alias="teacherId", description="Teacher ID")
    class_id: str = Field(alias="classId", description="Class ID")
    room_id: Optional[str] = Field(default=None, alias="roomId", description="Room ID, if a specific room is needed")
    periods: int = Field(default=1, ge=1, description="Consecutive periods required")

    @field_validator("room_id", mode="before")
    @classmethod
    def blank_room_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def __str__(self) -> str:
        return f"Lesson {self.id}: {self.name} for {self.class_id}"


class PlacementEntry(BaseModel):
    """One lesson's occupation of one slot."""
    model_config = ConfigDict(populate_by_name=True)

    lesson_id: str = Field(alias="lessonId")
    is_start: bool = Field(default=False, alias="isStart")


class Merge(BaseModel):
    """Consecutive periods of one class/day that act as a single cell."""
    model_config = ConfigDict(populate_by_name=True)

    class_id: str = Field(alias="classId")
    day: Day
    start_period: PeriodNumber = Field(alias="startPeriod")
    count: int = Field(ge=2, le=PERIODS_PER_DAY)

    @field_validator("day", mode="before")
    @classmethod
    def parse_day(cls, value: Any) -> Day:
        return Day.parse(value)

    @model_validator(mode="after")
    def validate_span(self) -> "Merge":
        """Ensure the merge ends within the day."""
        if self.end_period > PERIODS_PER_DAY:
            raise ValueError(
                f"merge from period {self.start_period} over {self.count} periods "
                f"runs past period {PERIODS_PER_DAY}"
            )
        return self

    @property
    def end_period(self) -> int:
        """Last period covered by the merge."""
        return self.start_period + self.count - 1

    def covers(self, class_id: str, day: Day, period: int) -> bool:
        return (
            self.class_id == class_id
            and self.day == day
            and self.start_period <= period <= self.end_period
        )


class Lock(BaseModel):
    """Blackout: the teacher or class may not be placed in this slot, in either week."""
    model_config = ConfigDict(frozen=True)

    type: LockType
    id: str
    day: Day
    period: PeriodNumber

    @field_validator("day", mode="before")
    @classmethod
    def parse_day(cls, value: Any) -> Day:
        return Day.parse(value)

    @property
    def key(self) -> SlotKey:
        return SlotKey(self.day, self.period)


class Highlight(BaseModel):
    """Entity whose lessons are emphasized in the rendered grid."""
    model_config = ConfigDict(frozen=True)

    type: HighlightType
    id: str


class ChangeLogEntry(BaseModel):
    """A single human-readable change record."""
    time: str = Field(description="ISO-8601 timestamp")
    description: str


class Settings(BaseModel):
    """Display settings persisted with the timetable."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    bw_print: bool = Field(default=False, alias="bwPrint")
    integrated_view: bool = Field(default=False, alias="integratedView")


# =============================================================================
# Snapshot Model
# =============================================================================

class ConstraintSet(BaseModel):
    """Persisted lock container."""
    model_config = ConfigDict(extra="ignore")

    unavailable: list[Lock] = Field(default_factory=list)


class TimetableSnapshot(BaseModel):
    """
    Serialized form of the whole timetable.

    Every field is optional so snapshots from older versions still load;
    UI-only keys (drag state, merge mode, active view) are ignored.
    Schedules are keyed by the ``"day_period"`` string form of SlotKey.
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    teachers: list[Teacher] = Field(default_factory=list)
    lessons: list[Lesson] = Field(default_factory=list)
    classes: list[ClassGroup] = Field(default_factory=list)
    rooms: list[Room] = Field(default_factory=list)
    constraints: ConstraintSet = Field(default_factory=ConstraintSet)
    schedule: dict[Week, dict[str, dict[str, list[PlacementEntry]]]] = Field(default_factory=dict)
    merges: dict[Week, list[Merge]] = Field(default_factory=dict)
    change_log: list[ChangeLogEntry] = Field(default_factory=list, alias="changeLog")
    lesson_colors: dict[str, str] = Field(default_factory=dict, alias="lessonColors")
    field_colors: dict[str, str] = Field(default_factory=dict, alias="fieldColors")
    active_highlights: list[Highlight] = Field(default_factory=list, alias="activeHighlights")
    settings: Settings = Field(default_factory=Settings)
    active_week: Week = Field(default=Week.A, alias="activeWeek")

    @field_validator("constraints", "settings", mode="before")
    @classmethod
    def null_to_default(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator(
        "teachers", "lessons", "classes", "rooms", "change_log", "active_highlights", mode="before"
    )
    @classmethod
    def null_to_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("schedule", "merges", "lesson_colors", "field_colors", mode="before")
    @classmethod
    def null_to_dict(cls, value: Any) -> Any:
        return {} if value is None else value

    def to_json(self) -> str:
        """Serialize with the editor's camelCase keys."""
        return self.model_dump_json(by_alias=True, indent=2)


# =============================================================================
# Color Helper
# =============================================================================

def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def color_from_string(text: str) -> str:
    """
    Derive a stable pastel hex color from a string.

    Uses the same 32-bit rolling hash as the editor so colors stored in
    older snapshots match the ones generated here.
    """
    hash_ = 0
    for ch in text:
        hash_ = ord(ch) + (_to_int32(_to_int32(hash_) << 5) - hash_)
    color = "#"
    for i in range(3):
        value = (_to_int32(hash_) >> (i * 8)) & 0xFF
        color += f"{(value & 0x7F) | 0x80:02x}"
    return color
