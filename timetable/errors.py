"""
Named failures returned by the scheduling operations.

Expected domain violations (a full slot, a locked cell, a missing lesson)
come back as an ``Outcome`` carrying one of the enums below, so a caller can
show a message and keep going. Exceptions are reserved for corrupt input at
the persistence boundary and for programming errors.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional, Union

if TYPE_CHECKING:
    from .conflicts import ConflictReport


class PlacementError(str, Enum):
    """Why a lesson cannot be placed at a cell."""
    WRONG_CLASS = "wrong_class"
    ALREADY_PLACED = "already_placed"
    INSUFFICIENT_SPACE = "insufficient_space"
    SLOT_FULL = "slot_full"
    SLOT_LOCKED = "slot_locked"


class MergeError(str, Enum):
    """Why a merge selection or merge cannot be made."""
    CELL_OCCUPIED = "cell_occupied"
    CELL_LOCKED = "cell_locked"
    NON_CONSECUTIVE_SELECTION = "non_consecutive_selection"
    CROSS_CLASS_SELECTION = "cross_class_selection"


class NotFoundError(str, Enum):
    """Which referenced record is missing."""
    LESSON = "lesson"
    CLASS = "class"
    TEACHER = "teacher"
    ROOM = "room"
    SCHEDULE = "schedule"
    MERGE = "merge"


class ImportValidationError(str, Enum):
    """Why an import row was rejected."""
    MISSING_FIELD = "missing_field"
    UNKNOWN_TEACHER = "unknown_teacher"


FailureCode = Union[PlacementError, MergeError, NotFoundError, ImportValidationError]


@dataclass
class Outcome:
    """
    Result of a mutating operation.

    ``ok`` is False when the operation did not change state: either a named
    ``error`` was hit or, with no error, an operator declined a confirmation
    (``conflict`` then holds the soft conflict that was presented).
    """
    ok: bool
    error: Optional[FailureCode] = None
    message: str = ""
    warning: Optional[FailureCode] = None
    conflict: Optional[ConflictReport] = None
    value: Any = None

    @classmethod
    def success(cls, message: str = "", **kwargs: Any) -> Outcome:
        return cls(ok=True, message=message, **kwargs)

    @classmethod
    def failure(cls, error: FailureCode, message: str = "") -> Outcome:
        return cls(ok=False, error=error, message=message or error.value.replace("_", " "))

    @classmethod
    def declined(cls, message: str = "cancelled", conflict: Optional[ConflictReport] = None) -> Outcome:
        return cls(ok=False, message=message, conflict=conflict)

    def __bool__(self) -> bool:
        return self.ok
