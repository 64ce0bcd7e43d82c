"""
Entry point for running the timetable CLI as a module.

Usage:
    python -m timetable init school.json
    python -m timetable validate school.json
    python -m timetable auto school.json --week A
    python -m timetable view school.json --teacher 1001
"""

from timetable.cli import main

if __name__ == "__main__":
    main()
