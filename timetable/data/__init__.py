"""Data models, snapshot persistence and tabular import."""

from .loader import DataValidationError, load_snapshot, parse_snapshot, save_snapshot, validate_snapshot
from .importer import (
    ImportIssue,
    ImportReport,
    find_column,
    import_lessons,
    import_teachers,
    read_csv_rows,
)

__all__ = [
    # Loader
    "DataValidationError",
    "load_snapshot",
    "parse_snapshot",
    "save_snapshot",
    "validate_snapshot",
    # Importer
    "ImportIssue",
    "ImportReport",
    "find_column",
    "import_lessons",
    "import_teachers",
    "read_csv_rows",
]
