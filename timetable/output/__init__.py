"""Reports, grid views and formatting of timetable weeks."""

from .grid import (
    ClassRow,
    GridCell,
    LessonView,
    build_class_grid,
    build_teacher_grid,
)
from .stats import (
    # Constants
    HOUR_MULTIPLIER,
    # Data classes
    ScheduleStats,
    TeacherLoad,
    ValidationReport,
    # Calculator class
    StatsReporter,
    generate_report,
)
from .formatters import (
    # Formatter classes
    ClassGridFormatter,
    TeacherGridFormatter,
    CSVFormatter,
    # Convenience functions
    format_class_grid,
    format_teacher_grid,
    save_csv,
)

__all__ = [
    # Grid views
    "ClassRow",
    "GridCell",
    "LessonView",
    "build_class_grid",
    "build_teacher_grid",
    # Stats
    "HOUR_MULTIPLIER",
    "ScheduleStats",
    "TeacherLoad",
    "ValidationReport",
    "StatsReporter",
    "generate_report",
    # Formatters
    "ClassGridFormatter",
    "TeacherGridFormatter",
    "CSVFormatter",
    "format_class_grid",
    "format_teacher_grid",
    "save_csv",
]
