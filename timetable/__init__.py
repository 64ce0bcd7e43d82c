"""School timetable engine: two-week grid, locks, merges, conflicts and greedy auto-placement."""

from .model import Timetable
from .constraints import ConstraintManager
from .merges import MergeManager, MergeSelection
from .placement import PlacementEngine
from .conflicts import ConflictDetector, ConflictReport, AuditConflict
from .auto_scheduler import AutoScheduler, AutoScheduleResult
from .output.stats import StatsReporter
from .data.loader import load_snapshot, save_snapshot
from .errors import Outcome, PlacementError, MergeError, NotFoundError, ImportValidationError
from .cli import app as cli_app

__all__ = [
    # Aggregate
    "Timetable",
    # Engine
    "ConstraintManager",
    "MergeManager",
    "MergeSelection",
    "PlacementEngine",
    "ConflictDetector",
    "ConflictReport",
    "AuditConflict",
    "AutoScheduler",
    "AutoScheduleResult",
    "StatsReporter",
    # Persistence
    "load_snapshot",
    "save_snapshot",
    # Outcomes
    "Outcome",
    "PlacementError",
    "MergeError",
    "NotFoundError",
    "ImportValidationError",
    # CLI
    "cli_app",
]
