"""
Tabular import of teachers and of lessons with their classes.

Rows are dictionaries keyed by column header, as produced by
``csv.DictReader`` or a spreadsheet export. Headers are matched
case-insensitively after trimming, against English names and the Persian
headers of the school's personnel and curriculum sheets.
"""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional, Union

from ..errors import ImportValidationError
from .models import DEFAULT_FIELD

if TYPE_CHECKING:
    from ..model import Timetable

logger = logging.getLogger(__name__)

Row = Mapping[str, Any]


# =============================================================================
# Column Matching
# =============================================================================

TEACHER_ID_COLUMNS = ["کد پرسنلی", "personnel code", "teacher id", "teacher_id"]
FIRST_NAME_COLUMNS = ["نام", "first name", "first_name", "name"]
LAST_NAME_COLUMNS = ["نام خانوادگی", "last name", "last_name", "family name"]
CLASS_COLUMNS = ["کلاس", "class"]
LESSON_NAME_COLUMNS = ["نام درس", "lesson", "lesson name", "lesson_name"]
PERIODS_COLUMNS = ["تعداد زنگ", "periods"]
FIELD_COLUMNS = ["رشته", "field"]


def find_column(row: Row, candidates: Iterable[str]) -> Optional[str]:
    """
    Actual header of ``row`` matching the first candidate that is present.

    Comparison trims and lowercases both sides; candidates are tried in
    order, so earlier ones take precedence over later ones.
    """
    normalized: dict[str, str] = {}
    for key in row:
        if key is None:
            continue
        normalized.setdefault(str(key).strip().lower(), key)
    for candidate in candidates:
        match = normalized.get(candidate.strip().lower())
        if match is not None:
            return match
    return None


def _cell(row: Row, candidates: Iterable[str]) -> str:
    key = find_column(row, candidates)
    if key is None:
        return ""
    value = row.get(key)
    return "" if value is None else str(value).strip()


def _parse_periods(raw: str) -> int:
    """Leading integer of a period count; anything invalid or below 1 counts as 1."""
    digits = ""
    for ch in raw.strip():
        if ch.isdigit():
            digits += ch
        else:
            break
    periods = int(digits) if digits else 0
    return periods if periods > 0 else 1


# =============================================================================
# Row Records
# =============================================================================

@dataclass
class TeacherRecord:
    external_id: str
    name: str


@dataclass
class LessonRecord:
    class_name: str
    lesson_name: str
    teacher_external_id: str
    periods: int = 1
    field: str = DEFAULT_FIELD


@dataclass
class ImportIssue:
    """A rejected row; ``row`` is the 1-based data row number."""
    row: int
    error: ImportValidationError
    message: str

    def __str__(self) -> str:
        return f"Row {self.row}: {self.message}"


@dataclass
class RowResult:
    """Either a parsed record or the issue that rejected the row."""
    record: Optional[Union[TeacherRecord, LessonRecord]] = None
    issue: Optional[ImportIssue] = None

    @property
    def ok(self) -> bool:
        return self.issue is None


@dataclass
class ImportReport:
    """Counts and collected issues of one import."""
    added: int = 0
    classes_added: int = 0
    skipped: int = 0
    issues: list[ImportIssue] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "added": self.added,
            "classesAdded": self.classes_added,
            "skipped": self.skipped,
            "issues": [
                {"row": i.row, "error": i.error.value, "message": i.message}
                for i in self.issues
            ],
        }


def _missing(row_number: int, columns: list[str]) -> RowResult:
    return RowResult(issue=ImportIssue(
        row=row_number,
        error=ImportValidationError.MISSING_FIELD,
        message=f"Missing {', '.join(columns)}",
    ))


def parse_teacher_row(row: Row, row_number: int) -> RowResult:
    """Personnel code plus first and last name joined with a space."""
    external_id = _cell(row, TEACHER_ID_COLUMNS)
    name = f"{_cell(row, FIRST_NAME_COLUMNS)} {_cell(row, LAST_NAME_COLUMNS)}".strip()

    missing = []
    if not external_id:
        missing.append("personnel code")
    if not name:
        missing.append("name")
    if missing:
        return _missing(row_number, missing)
    return RowResult(record=TeacherRecord(external_id=external_id, name=name))


def parse_lesson_row(row: Row, row_number: int) -> RowResult:
    """Class, lesson name and teacher code are required; periods and field are optional."""
    class_name = _cell(row, CLASS_COLUMNS)
    lesson_name = _cell(row, LESSON_NAME_COLUMNS)
    teacher_id = _cell(row, TEACHER_ID_COLUMNS)

    missing = [
        label for label, value in (
            ("class", class_name),
            ("lesson name", lesson_name),
            ("personnel code", teacher_id),
        )
        if not value
    ]
    if missing:
        return _missing(row_number, missing)

    return RowResult(record=LessonRecord(
        class_name=class_name,
        lesson_name=lesson_name,
        teacher_external_id=teacher_id,
        periods=_parse_periods(_cell(row, PERIODS_COLUMNS)),
        field=_cell(row, FIELD_COLUMNS) or DEFAULT_FIELD,
    ))


# =============================================================================
# Import Operations
# =============================================================================

def import_teachers(timetable: Timetable, rows: Iterable[Row], source: str = "") -> ImportReport:
    """
    Add teachers keyed by personnel code.

    Codes that already exist are skipped, so re-importing the same sheet is
    harmless. Rejected rows are collected in the report, not raised.
    """
    report = ImportReport()
    for row_number, row in enumerate(rows, start=1):
        result = parse_teacher_row(row, row_number)
        if not result.ok:
            logger.warning("Teacher import: %s", result.issue)
            report.issues.append(result.issue)
            continue
        record = result.record
        if timetable.get_teacher(record.external_id) is not None:
            report.skipped += 1
            continue
        timetable.add_teacher(record.name, id=record.external_id, record=False)
        report.added += 1

    if report.added:
        timetable.log_change(f"{report.added} teachers imported{_from(source)}.")
    logger.info("Imported %d teachers, skipped %d, rejected %d",
                report.added, report.skipped, len(report.issues))
    return report


def import_lessons(timetable: Timetable, rows: Iterable[Row], source: str = "") -> ImportReport:
    """
    Add lessons, creating their classes by name on first use.

    A row whose teacher code is unknown is rejected. A new class takes the
    row's field; an existing class still on the default field adopts it.
    Imported lessons have no room.
    """
    report = ImportReport()
    for row_number, row in enumerate(rows, start=1):
        result = parse_lesson_row(row, row_number)
        if not result.ok:
            logger.warning("Lesson import: %s", result.issue)
            report.issues.append(result.issue)
            continue
        record = result.record

        if timetable.get_teacher(record.teacher_external_id) is None:
            issue = ImportIssue(
                row=row_number,
                error=ImportValidationError.UNKNOWN_TEACHER,
                message=(
                    f'No teacher with personnel code {record.teacher_external_id}; lesson '
                    f'"{record.lesson_name}" for class "{record.class_name}" was not imported'
                ),
            )
            logger.warning("Lesson import: %s", issue)
            report.issues.append(issue)
            continue

        cls = timetable.find_class_by_name(record.class_name)
        if cls is None:
            cls = timetable.add_class(record.class_name, field=record.field, record=False)
            report.classes_added += 1
        elif cls.field == DEFAULT_FIELD and record.field != DEFAULT_FIELD:
            cls.field = record.field

        timetable.add_lesson(
            record.lesson_name,
            teacher_id=record.teacher_external_id,
            class_id=cls.id,
            periods=record.periods,
            record=False,
        )
        report.added += 1

    timetable.assign_colors()
    if report.added or report.classes_added:
        timetable.log_change(
            f"{report.classes_added} classes and {report.added} lessons imported{_from(source)}."
        )
    logger.info("Imported %d lessons and %d classes, rejected %d",
                report.added, report.classes_added, len(report.issues))
    return report


def _from(source: str) -> str:
    return f" from {source}" if source else ""


def read_csv_rows(path: Union[str, Path]) -> list[dict[str, str]]:
    """Read a CSV file with a header row; a UTF-8 BOM is tolerated."""
    with open(path, newline="", encoding="utf-8-sig") as f:
        return list(csv.DictReader(f))
