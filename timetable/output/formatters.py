"""
Output formatters for timetable weeks.

Supports:
- Class grid (one row per class, one column per period of every day)
- Teacher grid (periods by days for one teacher)
- CSV export of placements
"""

from __future__ import annotations

import csv
import re
from io import StringIO
from pathlib import Path
from typing import TYPE_CHECKING, Optional, TextIO

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..data.models import DAYS, PERIODS_PER_DAY, SlotKey, Week
from .grid import ClassRow, GridCell, LessonView, build_class_grid, build_teacher_grid

if TYPE_CHECKING:
    from ..model import Timetable


# =============================================================================
# Cell Rendering
# =============================================================================

_HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")


def _background(color: Optional[str]) -> str:
    """Rich style for a stored color; colors rich cannot parse are dropped."""
    if color and _HEX_COLOR.match(color):
        return f"black on {color}"
    return ""


def _lesson_text(view: LessonView, bw: bool = False, show_class: bool = False) -> Text:
    label = f"{view.name}\n{view.class_name if show_class else view.teacher_name}"
    if bw:
        style = "bold" if view.highlighted else ""
    elif view.conflict:
        style = "bold white on red"
    else:
        style = _background(view.color)
        if view.highlighted:
            style = f"bold reverse {style}".strip()
    return Text(label, style=style)


def _cell_text(cell: GridCell, bw: bool = False) -> Text:
    if not cell.lessons:
        return Text("locked" if cell.locked else "", style="dim")
    text = Text()
    for i, view in enumerate(cell.lessons):
        if i:
            text.append("\n")
        text.append_text(_lesson_text(view, bw))
    return text


# =============================================================================
# Class Grid Formatter
# =============================================================================

class ClassGridFormatter:
    """
    Whole-school grid for one week.

    Merged and multi-period cells are drawn in their start column; the
    columns they cover show an arrow.
    """

    def __init__(self, width: int = 200, bw: bool = False):
        self.width = width
        self.bw = bw

    def table(self, rows: list[ClassRow], week: Week) -> Table:
        table = Table(title=f"Week {week.value}", show_header=True, header_style="bold cyan", show_lines=True)
        table.add_column("Class", style="bold")
        for day in DAYS:
            for period in range(1, PERIODS_PER_DAY + 1):
                table.add_column(f"{day.value} {period}", justify="center")

        for row in rows:
            cells: dict[SlotKey, GridCell] = {cell.key: cell for cell in row.cells}
            rendered: list[Text] = []
            for day in DAYS:
                for period in range(1, PERIODS_PER_DAY + 1):
                    cell = cells.get(SlotKey(day, period))
                    if cell is None:
                        rendered.append(Text("→", style="dim"))
                        continue
                    rendered.append(_cell_text(cell, self.bw))
            name_style = "" if self.bw else _background(row.field_color)
            table.add_row(Text(f"{row.class_name}\n{row.field}", style=name_style), *rendered)
        return table

    def format(self, timetable: Timetable, week: Optional[Week] = None) -> str:
        week = Week(week) if week is not None else timetable.active_week
        console = Console(record=True, width=self.width)
        rows = build_class_grid(timetable, week)
        if not rows:
            console.print("[yellow]No classes defined[/yellow]")
        else:
            console.print(self.table(rows, week))
        return console.export_text()


# =============================================================================
# Teacher Grid Formatter
# =============================================================================

class TeacherGridFormatter:
    """Periods by days for a single teacher, across all classes."""

    def __init__(self, width: int = 120, bw: bool = False):
        self.width = width
        self.bw = bw

    def table(self, timetable: Timetable, teacher_id: str, week: Week) -> Table:
        grid = build_teacher_grid(timetable, teacher_id, week)
        table = Table(show_header=True, header_style="bold cyan", show_lines=True)
        table.add_column("Period", style="cyan", justify="center")
        for day in DAYS:
            table.add_column(day.full_name, justify="center")

        for period in range(1, PERIODS_PER_DAY + 1):
            row = [str(period)]
            for day in DAYS:
                views = grid[SlotKey(day, period)]
                text = Text()
                for i, view in enumerate(views):
                    if i:
                        text.append("\n")
                    text.append_text(_lesson_text(view, self.bw, show_class=True))
                row.append(text)
            table.add_row(*row)
        return table

    def format(self, timetable: Timetable, teacher_id: str, week: Optional[Week] = None) -> str:
        """
        Format the teacher's week.

        Returns a short message instead of a grid when the teacher is unknown.
        """
        week = Week(week) if week is not None else timetable.active_week
        teacher = timetable.get_teacher(teacher_id)
        if teacher is None:
            return f"No teacher found: {teacher_id}"

        console = Console(record=True, width=self.width)
        console.print(Panel(
            f"[bold]{teacher.name}[/bold] ({teacher.id})",
            title=f"Teacher Schedule - Week {week.value}",
        ))
        console.print(self.table(timetable, teacher_id, week))
        return console.export_text()


# =============================================================================
# CSV Formatter
# =============================================================================

class CSVFormatter:
    """One CSV row per placed lesson, at its starting cell."""

    COLUMNS = [
        'week', 'day', 'period', 'periods', 'class_id', 'class_name',
        'lesson_id', 'lesson_name', 'teacher_id', 'teacher_name', 'room_id', 'room_name',
    ]

    def __init__(self, include_header: bool = True, delimiter: str = ','):
        self.include_header = include_header
        self.delimiter = delimiter

    def format(self, timetable: Timetable, week: Optional[Week] = None) -> str:
        buffer = StringIO()
        self.write(timetable, buffer, week)
        return buffer.getvalue()

    def write(self, timetable: Timetable, file: TextIO, week: Optional[Week] = None) -> None:
        week = Week(week) if week is not None else timetable.active_week
        writer = csv.writer(file, delimiter=self.delimiter)
        if self.include_header:
            writer.writerow(self.COLUMNS)

        starts = [
            (key, class_id, entry.lesson_id)
            for class_id, key, entry in timetable.iter_entries(week)
            if entry.is_start
        ]
        for key, class_id, lesson_id in sorted(starts, key=lambda s: (s[0].day.index, s[0].period, s[1])):
            lesson = timetable.get_lesson(lesson_id)
            if lesson is None:
                continue
            teacher = timetable.get_teacher(lesson.teacher_id)
            room = timetable.get_room(lesson.room_id)
            writer.writerow([
                week.value, key.day.value, key.period, lesson.periods,
                class_id, timetable.class_name(class_id, ''),
                lesson.id, lesson.name,
                lesson.teacher_id, teacher.name if teacher else '',
                lesson.room_id or '', room.name if room else '',
            ])


def format_class_grid(timetable: Timetable, week: Optional[Week] = None) -> str:
    """Format the whole-school grid of a week."""
    return ClassGridFormatter(bw=timetable.settings.bw_print).format(timetable, week)


def format_teacher_grid(timetable: Timetable, teacher_id: str, week: Optional[Week] = None) -> str:
    """Format one teacher's week."""
    return TeacherGridFormatter(bw=timetable.settings.bw_print).format(timetable, teacher_id, week)


def save_csv(timetable: Timetable, filepath: str | Path, week: Optional[Week] = None) -> None:
    """Save a week's placements to a CSV file."""
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, 'w', newline='', encoding='utf-8') as f:
        CSVFormatter().write(timetable, f, week)
