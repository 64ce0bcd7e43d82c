"""Load, validate and save timetable snapshots as JSON files."""

from __future__ import annotations

import json
import logging
from collections import Counter, defaultdict
from pathlib import Path
from typing import TYPE_CHECKING, Union

from pydantic import ValidationError

from .models import TimetableSnapshot

if TYPE_CHECKING:
    from ..model import Timetable

logger = logging.getLogger(__name__)


class DataValidationError(Exception):
    """Raised when a timetable snapshot fails validation."""
    pass


def parse_snapshot(data: Union[str, bytes, dict]) -> TimetableSnapshot:
    """
    Parse raw snapshot content into the snapshot model.

    Args:
        data: JSON text or an already decoded dictionary

    Returns:
        Validated snapshot; missing sections are filled with defaults

    Raises:
        DataValidationError: If the content is not valid JSON or fails validation
    """
    try:
        if isinstance(data, (str, bytes)):
            data = json.loads(data)
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise DataValidationError("Snapshot must be a JSON object")
        snapshot = TimetableSnapshot.model_validate(data)
    except json.JSONDecodeError as e:
        raise DataValidationError(f"Invalid JSON: {e}") from e
    except ValidationError as e:
        raise DataValidationError(f"Invalid snapshot: {e}") from e

    validate_snapshot(snapshot)
    return snapshot


def validate_snapshot(snapshot: TimetableSnapshot) -> None:
    """
    Check references, duplicate IDs and overlapping merges inside a snapshot.

    Placement entries pointing at unknown lessons are tolerated (the engine
    skips them), but lessons must reference known teachers and classes.

    Raises:
        DataValidationError: If validation fails
    """
    errors = []

    def check_duplicates(items: list, name: str):
        for id_, count in Counter(item.id for item in items).items():
            if count > 1:
                errors.append(f"Duplicate {name} ID: {id_}")

    check_duplicates(snapshot.teachers, "teacher")
    check_duplicates(snapshot.lessons, "lesson")
    check_duplicates(snapshot.classes, "class")
    check_duplicates(snapshot.rooms, "room")

    teacher_ids = {t.id for t in snapshot.teachers}
    class_ids = {c.id for c in snapshot.classes}
    room_ids = {r.id for r in snapshot.rooms}

    for lesson in snapshot.lessons:
        if lesson.teacher_id not in teacher_ids:
            errors.append(f"Lesson {lesson.id} references unknown teacher: {lesson.teacher_id}")
        if lesson.class_id not in class_ids:
            errors.append(f"Lesson {lesson.id} references unknown class: {lesson.class_id}")
        if lesson.room_id is not None and lesson.room_id not in room_ids:
            errors.append(f"Lesson {lesson.id} references unknown room: {lesson.room_id}")

    for week, merges in snapshot.merges.items():
        by_row = defaultdict(list)
        for merge in merges:
            by_row[(merge.class_id, merge.day)].append(merge)
        for (class_id, day), row in by_row.items():
            row.sort(key=lambda m: m.start_period)
            for previous, merge in zip(row, row[1:]):
                if merge.start_period <= previous.end_period:
                    errors.append(
                        f"Overlapping merges for class {class_id} on {day.value} in week {week.value}: "
                        f"periods {previous.start_period}-{previous.end_period} and "
                        f"{merge.start_period}-{merge.end_period}"
                    )

    if errors:
        raise DataValidationError("; ".join(errors))


def load_snapshot(path: Union[str, Path]) -> Timetable:
    """
    Load a timetable from a JSON snapshot file.

    Args:
        path: Path to the JSON file

    Returns:
        A new Timetable built from the snapshot

    Raises:
        FileNotFoundError: If the file doesn't exist
        DataValidationError: If the content is corrupt or fails validation
    """
    from ..model import Timetable

    path = Path(path)
    with open(path, encoding="utf-8") as f:
        snapshot = parse_snapshot(f.read())

    try:
        timetable = Timetable.from_snapshot(snapshot)
    except ValueError as e:
        raise DataValidationError(f"Invalid schedule key: {e}") from e

    logger.info("Loaded %s: %d lessons, %d classes", path, len(timetable.lessons), len(timetable.classes))
    return timetable


def save_snapshot(timetable: Timetable, path: Union[str, Path]) -> Path:
    """Write a timetable to a JSON snapshot file and return the path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(timetable.to_snapshot().to_json(), encoding="utf-8")
    logger.debug("Saved snapshot to %s", path)
    return path
