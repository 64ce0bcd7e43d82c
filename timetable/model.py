"""
The Timetable aggregate.

One ``Timetable`` object owns every entity and the per-week placement state.
The engine components (constraints, merges, placement, conflicts, the
auto-scheduler and the reporters) take it in their constructor and never
keep state of their own, so independent timetables can coexist.
"""

from __future__ import annotations

import copy
import itertools
import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Iterator, Optional

from .data.models import (
    CHANGE_LOG_LIMIT,
    ChangeLogEntry,
    ClassGroup,
    ConstraintSet,
    Highlight,
    HighlightType,
    Lesson,
    Lock,
    Merge,
    PlacementEntry,
    Room,
    Settings,
    SlotKey,
    Teacher,
    TimetableSnapshot,
    Week,
    color_from_string,
)
from .errors import NotFoundError, Outcome

logger = logging.getLogger(__name__)

ClassSchedule = dict[SlotKey, list[PlacementEntry]]


# =============================================================================
# Identifier Generation
# =============================================================================

class IdGenerator:
    """
    Monotonic id source.

    Ids are ``prefix + counter``; a candidate that is already taken is
    skipped, so ids loaded from older snapshots never collide with new ones.
    """

    def __init__(self, taken: Iterable[str] = ()):
        self._taken = set(taken)
        self._counter = itertools.count(1)

    def reserve(self, id_: str) -> None:
        self._taken.add(id_)

    def next(self, prefix: str) -> str:
        while True:
            candidate = f"{prefix}{next(self._counter)}"
            if candidate not in self._taken:
                self._taken.add(candidate)
                return candidate


# =============================================================================
# Timetable Aggregate
# =============================================================================

class Timetable:
    """
    In-memory timetable: entities, locks, and per-week schedules and merges.

    ``schedule[week][class_id][slot_key]`` is the ordered list of placement
    entries in that cell. ``merges[week]`` lists the merged cells of a week.
    Locks apply to both weeks.
    """

    def __init__(
        self,
        teachers: Optional[list[Teacher]] = None,
        lessons: Optional[list[Lesson]] = None,
        classes: Optional[list[ClassGroup]] = None,
        rooms: Optional[list[Room]] = None,
        locks: Optional[list[Lock]] = None,
        settings: Optional[Settings] = None,
    ):
        self.teachers: list[Teacher] = list(teachers or [])
        self.lessons: list[Lesson] = list(lessons or [])
        self.classes: list[ClassGroup] = list(classes or [])
        self.rooms: list[Room] = list(rooms or [])
        self.locks: list[Lock] = list(locks or [])
        self.schedule: dict[Week, dict[str, ClassSchedule]] = {week: {} for week in Week}
        self.merges: dict[Week, list[Merge]] = {week: [] for week in Week}
        self.change_log: list[ChangeLogEntry] = []
        self.lesson_colors: dict[str, str] = {}
        self.field_colors: dict[str, str] = {}
        self.highlights: list[Highlight] = []
        self.settings: Settings = settings or Settings()
        self.active_week: Week = Week.A

        for cls in self.classes:
            self._ensure_containers(cls.id)

        self.ids = IdGenerator(
            [t.id for t in self.teachers]
            + [l.id for l in self.lessons]
            + [c.id for c in self.classes]
            + [r.id for r in self.rooms]
        )

    # -------------------------------------------------------------------------
    # Lookup Methods
    # -------------------------------------------------------------------------

    def get_teacher(self, teacher_id: Optional[str]) -> Optional[Teacher]:
        """Get teacher by ID."""
        return next((t for t in self.teachers if t.id == teacher_id), None)

    def get_lesson(self, lesson_id: Optional[str]) -> Optional[Lesson]:
        """Get lesson by ID."""
        return next((l for l in self.lessons if l.id == lesson_id), None)

    def get_class(self, class_id: Optional[str]) -> Optional[ClassGroup]:
        """Get class by ID."""
        return next((c for c in self.classes if c.id == class_id), None)

    def get_room(self, room_id: Optional[str]) -> Optional[Room]:
        """Get room by ID."""
        return next((r for r in self.rooms if r.id == room_id), None)

    def find_class_by_name(self, name: str) -> Optional[ClassGroup]:
        return next((c for c in self.classes if c.name == name), None)

    def class_name(self, class_id: str, default: str = "(deleted class)") -> str:
        cls = self.get_class(class_id)
        return cls.name if cls else default

    # -------------------------------------------------------------------------
    # Schedule Access
    # -------------------------------------------------------------------------

    def class_schedule(self, week: Week, class_id: str) -> Optional[ClassSchedule]:
        """The slot map of one class in one week, or None if it has no container."""
        return self.schedule[Week(week)].get(class_id)

    def slot(self, week: Week, class_id: str, key: SlotKey) -> list[PlacementEntry]:
        """Entries in one cell; an empty list when the cell or container is absent."""
        class_schedule = self.class_schedule(week, class_id)
        if class_schedule is None:
            return []
        return class_schedule.get(key, [])

    def iter_entries(self, week: Week) -> Iterator[tuple[str, SlotKey, PlacementEntry]]:
        """Yield (class_id, key, entry) for every placement entry of a week."""
        for class_id, class_schedule in self.schedule[Week(week)].items():
            for key, entries in class_schedule.items():
                for entry in entries:
                    yield class_id, key, entry

    def placed_lesson_ids(self, week: Week) -> set[str]:
        """IDs of lessons with at least one entry in the week."""
        return {entry.lesson_id for _, _, entry in self.iter_entries(week)}

    def unplaced_lessons(self, week: Optional[Week] = None) -> list[Lesson]:
        """
        Lessons not placed, in stored order.

        With a week, lessons absent from that week; without one, lessons
        absent from both weeks.
        """
        if week is not None:
            placed = self.placed_lesson_ids(week)
        else:
            placed = self.placed_lesson_ids(Week.A) | self.placed_lesson_ids(Week.B)
        return [l for l in self.lessons if l.id not in placed]

    def _ensure_containers(self, class_id: str) -> None:
        for week in Week:
            self.schedule[week].setdefault(class_id, {})

    def _purge_lessons(self, lesson_ids: set[str]) -> None:
        """Drop every entry of the given lessons from both weeks."""
        if not lesson_ids:
            return
        for week in Week:
            for class_schedule in self.schedule[week].values():
                for key in list(class_schedule):
                    kept = [e for e in class_schedule[key] if e.lesson_id not in lesson_ids]
                    if kept:
                        class_schedule[key] = kept
                    else:
                        del class_schedule[key]

    # -------------------------------------------------------------------------
    # Entity Management
    # -------------------------------------------------------------------------

    def add_teacher(self, name: str, id: Optional[str] = None, record: bool = True) -> Teacher:
        """
        Add a teacher; ``id`` defaults to a generated one.

        ``record=False`` skips the change-log entry, for bulk imports that log once.
        """
        if id is None:
            id = self.ids.next("t")
        else:
            self.ids.reserve(id)
        teacher = Teacher(id=id, name=name)
        self.teachers.append(teacher)
        if record:
            self.log_change(f'Teacher "{name}" added.')
        return teacher

    def add_room(self, name: str, id: Optional[str] = None) -> Room:
        if id is None:
            id = self.ids.next("r")
        else:
            self.ids.reserve(id)
        room = Room(id=id, name=name)
        self.rooms.append(room)
        self.log_change(f'Room "{name}" added.')
        return room

    def add_class(
        self, name: str, field: Optional[str] = None, id: Optional[str] = None, record: bool = True
    ) -> ClassGroup:
        """Add a class and its empty schedule containers in both weeks."""
        if id is None:
            id = self.ids.next("c")
        else:
            self.ids.reserve(id)
        cls = ClassGroup(id=id, name=name, field=field)
        self.classes.append(cls)
        self._ensure_containers(cls.id)
        self.assign_colors()
        if record:
            self.log_change(f'Class "{name}" added.')
        return cls

    def add_lesson(
        self,
        name: str,
        teacher_id: str,
        class_id: str,
        room_id: Optional[str] = None,
        periods: int = 1,
        id: Optional[str] = None,
        record: bool = True,
    ) -> Outcome:
        """Add a lesson. The outcome's ``value`` is the new Lesson."""
        if self.get_teacher(teacher_id) is None:
            return Outcome.failure(NotFoundError.TEACHER, f"Unknown teacher: {teacher_id}")
        if self.get_class(class_id) is None:
            return Outcome.failure(NotFoundError.CLASS, f"Unknown class: {class_id}")
        if room_id is not None and self.get_room(room_id) is None:
            return Outcome.failure(NotFoundError.ROOM, f"Unknown room: {room_id}")

        if id is None:
            id = self.ids.next("l")
        else:
            self.ids.reserve(id)
        lesson = Lesson(
            id=id, name=name, teacher_id=teacher_id, class_id=class_id, room_id=room_id, periods=periods
        )
        self.lessons.append(lesson)
        self.assign_colors()
        if record:
            self.log_change(f'Lesson "{name}" added.')
        return Outcome.success(value=lesson)

    def update_teacher(self, teacher_id: str, name: str) -> Outcome:
        teacher = self.get_teacher(teacher_id)
        if teacher is None:
            return Outcome.failure(NotFoundError.TEACHER)
        teacher.name = name
        self.log_change(f'Teacher "{name}" edited.')
        return Outcome.success(value=teacher)

    def update_room(self, room_id: str, name: str) -> Outcome:
        room = self.get_room(room_id)
        if room is None:
            return Outcome.failure(NotFoundError.ROOM)
        room.name = name
        self.log_change(f'Room "{name}" edited.')
        return Outcome.success(value=room)

    def update_class(self, class_id: str, name: Optional[str] = None, field: Optional[str] = None) -> Outcome:
        cls = self.get_class(class_id)
        if cls is None:
            return Outcome.failure(NotFoundError.CLASS)
        if name is not None:
            cls.name = name
        if field is not None:
            cls.field = field
        self.assign_colors()
        self.log_change(f'Class "{cls.name}" edited.')
        return Outcome.success(value=cls)

    def update_lesson(self, lesson_id: str, **changes: Any) -> Outcome:
        """
        Edit a lesson's name, teacher_id, class_id, room_id or periods.

        Changing the class or the period count of a placed lesson removes its
        placements in both weeks, since the old span no longer fits it.
        """
        lesson = self.get_lesson(lesson_id)
        if lesson is None:
            return Outcome.failure(NotFoundError.LESSON)

        unknown = set(changes) - {"name", "teacher_id", "class_id", "room_id", "periods"}
        if unknown:
            raise TypeError(f"Cannot edit lesson fields: {', '.join(sorted(unknown))}")

        if "teacher_id" in changes and self.get_teacher(changes["teacher_id"]) is None:
            return Outcome.failure(NotFoundError.TEACHER, f"Unknown teacher: {changes['teacher_id']}")
        if "class_id" in changes and self.get_class(changes["class_id"]) is None:
            return Outcome.failure(NotFoundError.CLASS, f"Unknown class: {changes['class_id']}")
        if changes.get("room_id") is not None and self.get_room(changes["room_id"]) is None:
            return Outcome.failure(NotFoundError.ROOM, f"Unknown room: {changes['room_id']}")

        # Validate on a copy first so a bad value leaves the lesson untouched
        updated = Lesson.model_validate({**lesson.model_dump(), **changes})

        reshaped = updated.class_id != lesson.class_id or updated.periods != lesson.periods
        if reshaped:
            self._purge_lessons({lesson.id})

        for name in changes:
            setattr(lesson, name, getattr(updated, name))

        self.assign_colors()
        self.log_change(f'Lesson "{lesson.name}" edited.')
        return Outcome.success(value=lesson)

    def delete_teacher(self, teacher_id: str) -> Outcome:
        """Delete a teacher with all of their lessons and placements."""
        teacher = self.get_teacher(teacher_id)
        if teacher is None:
            return Outcome.failure(NotFoundError.TEACHER)
        self.teachers.remove(teacher)
        removed = self._delete_lessons_where(lambda l: l.teacher_id == teacher_id)
        self.locks = [k for k in self.locks if not (k.type == "teacher" and k.id == teacher_id)]
        logger.info("Deleted teacher %s with %d lessons", teacher_id, len(removed))
        self.log_change(f'Teacher "{teacher.name}" and all related lessons deleted.')
        return Outcome.success(value=removed)

    def delete_class(self, class_id: str) -> Outcome:
        """Delete a class with its lessons, schedule containers and merges."""
        cls = self.get_class(class_id)
        if cls is None:
            return Outcome.failure(NotFoundError.CLASS)
        self.classes.remove(cls)
        removed = self._delete_lessons_where(lambda l: l.class_id == class_id)
        for week in Week:
            self.schedule[week].pop(class_id, None)
            self.merges[week] = [m for m in self.merges[week] if m.class_id != class_id]
        self.locks = [k for k in self.locks if not (k.type == "class" and k.id == class_id)]
        logger.info("Deleted class %s with %d lessons", class_id, len(removed))
        self.log_change(f'Class "{cls.name}" and all related lessons deleted.')
        return Outcome.success(value=removed)

    def delete_room(self, room_id: str) -> Outcome:
        """Delete a room; lessons that used it keep their placements but lose the room."""
        room = self.get_room(room_id)
        if room is None:
            return Outcome.failure(NotFoundError.ROOM)
        self.rooms.remove(room)
        for lesson in self.lessons:
            if lesson.room_id == room_id:
                lesson.room_id = None
        self.log_change(f'Room "{room.name}" deleted.')
        return Outcome.success()

    def delete_lesson(self, lesson_id: str) -> Outcome:
        lesson = self.get_lesson(lesson_id)
        if lesson is None:
            return Outcome.failure(NotFoundError.LESSON)
        self._delete_lessons_where(lambda l: l.id == lesson_id)
        self.log_change(f'Lesson "{lesson.name}" deleted.')
        return Outcome.success()

    def _delete_lessons_where(self, predicate) -> list[str]:
        doomed = {l.id for l in self.lessons if predicate(l)}
        self.lessons = [l for l in self.lessons if l.id not in doomed]
        for lesson_id in doomed:
            self.lesson_colors.pop(lesson_id, None)
        self._purge_lessons(doomed)
        self.highlights = [h for h in self.highlights if self._highlight_target_exists(h)]
        return sorted(doomed)

    # -------------------------------------------------------------------------
    # Week Operations
    # -------------------------------------------------------------------------

    def copy_week(self, source: Week = Week.A, target: Week = Week.B) -> None:
        """Overwrite ``target``'s schedule and merges with a copy of ``source``'s."""
        source, target = Week(source), Week(target)
        if source == target:
            return
        self.schedule[target] = copy.deepcopy(self.schedule[source])
        self.merges[target] = [m.model_copy() for m in self.merges[source]]
        logger.info("Copied week %s to week %s", source.value, target.value)
        self.log_change(f"Week {source.value} schedule copied to week {target.value}.")

    def clear_week(self, week: Week) -> None:
        """Remove every placement and merge of one week."""
        week = Week(week)
        for class_id in self.schedule[week]:
            self.schedule[week][class_id] = {}
        self.merges[week] = []
        logger.info("Cleared week %s", week.value)
        self.log_change(f"Week {week.value} schedule cleared.")

    # -------------------------------------------------------------------------
    # Change Log, Colors, Highlights
    # -------------------------------------------------------------------------

    def log_change(self, description: str) -> None:
        """Record a change, newest first, keeping the most recent entries only."""
        self.change_log.insert(
            0,
            ChangeLogEntry(time=datetime.now(timezone.utc).isoformat(), description=description),
        )
        del self.change_log[CHANGE_LOG_LIMIT:]

    def assign_colors(self) -> None:
        """Give every lesson and class field a color, keeping existing ones."""
        for lesson in self.lessons:
            if lesson.id not in self.lesson_colors:
                self.lesson_colors[lesson.id] = color_from_string(lesson.name + lesson.teacher_id)
        for cls in self.classes:
            if cls.field and cls.field not in self.field_colors:
                self.field_colors[cls.field] = color_from_string(cls.field)

    def add_highlight(self, highlight_type: HighlightType, entity_id: str) -> bool:
        """Highlight an entity; returns False if it was already highlighted."""
        highlight = Highlight(type=highlight_type, id=entity_id)
        if highlight in self.highlights:
            return False
        self.highlights.append(highlight)
        return True

    def remove_highlight(self, highlight_type: HighlightType, entity_id: str) -> None:
        highlight = Highlight(type=highlight_type, id=entity_id)
        self.highlights = [h for h in self.highlights if h != highlight]

    def clear_highlights(self) -> None:
        self.highlights = []

    def is_highlighted(self, lesson: Lesson) -> bool:
        for h in self.highlights:
            if h.type == HighlightType.TEACHER and lesson.teacher_id == h.id:
                return True
            if h.type == HighlightType.CLASS and lesson.class_id == h.id:
                return True
            if h.type == HighlightType.ROOM and lesson.room_id == h.id:
                return True
        return False

    def _highlight_target_exists(self, highlight: Highlight) -> bool:
        if highlight.type == HighlightType.TEACHER:
            return self.get_teacher(highlight.id) is not None
        if highlight.type == HighlightType.CLASS:
            return self.get_class(highlight.id) is not None
        return self.get_room(highlight.id) is not None

    # -------------------------------------------------------------------------
    # Snapshot Conversion
    # -------------------------------------------------------------------------

    @classmethod
    def from_snapshot(cls, snapshot: TimetableSnapshot) -> "Timetable":
        """
        Build a timetable from a validated snapshot.

        Missing substructures default to empty. Schedule keys are parsed from
        their ``"day_period"`` string form; a malformed key raises ValueError.
        """
        timetable = cls(
            teachers=[t.model_copy() for t in snapshot.teachers],
            lessons=[l.model_copy() for l in snapshot.lessons],
            classes=[c.model_copy() for c in snapshot.classes],
            rooms=[r.model_copy() for r in snapshot.rooms],
            locks=list(dict.fromkeys(snapshot.constraints.unavailable)),
            settings=snapshot.settings.model_copy(),
        )
        for week, classes in snapshot.schedule.items():
            for class_id, slots in classes.items():
                class_schedule = timetable.schedule[week].setdefault(class_id, {})
                for raw_key, entries in slots.items():
                    if entries:
                        class_schedule[SlotKey.parse(raw_key)] = [e.model_copy() for e in entries]
        for week, merges in snapshot.merges.items():
            timetable.merges[week] = [m.model_copy() for m in merges]

        timetable.change_log = [e.model_copy() for e in snapshot.change_log[:CHANGE_LOG_LIMIT]]
        timetable.lesson_colors = dict(snapshot.lesson_colors)
        timetable.field_colors = dict(snapshot.field_colors)
        timetable.highlights = list(snapshot.active_highlights)
        timetable.active_week = snapshot.active_week
        timetable.assign_colors()
        return timetable

    def to_snapshot(self) -> TimetableSnapshot:
        """Serialize into the snapshot model."""
        schedule = {
            week: {
                class_id: {str(key): list(entries) for key, entries in sorted(slots.items())}
                for class_id, slots in classes.items()
            }
            for week, classes in self.schedule.items()
        }
        return TimetableSnapshot(
            teachers=list(self.teachers),
            lessons=list(self.lessons),
            classes=list(self.classes),
            rooms=list(self.rooms),
            constraints=ConstraintSet(unavailable=list(self.locks)),
            schedule=schedule,
            merges={week: list(merges) for week, merges in self.merges.items()},
            change_log=list(self.change_log),
            lesson_colors=dict(self.lesson_colors),
            field_colors=dict(self.field_colors),
            active_highlights=list(self.highlights),
            settings=self.settings,
            active_week=self.active_week,
        )

    def summary(self) -> dict[str, Any]:
        """Get entity counts."""
        return {
            "teachers": len(self.teachers),
            "classes": len(self.classes),
            "rooms": len(self.rooms),
            "lessons": len(self.lessons),
            "locks": len(self.locks),
            "merges": {week.value: len(self.merges[week]) for week in Week},
        }
