"""
Constraint modules for the timetable engine.

Locks are the only hard constraint stored with a timetable; capacity and
colspan rules live with the placement engine.
"""

from .locks import ConstraintManager

__all__ = [
    "ConstraintManager",
]
