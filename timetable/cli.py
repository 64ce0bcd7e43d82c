"""
Command-line interface for the school timetable.

Every command works on a JSON snapshot file. Commands that change the
timetable write it back, or to ``--output`` when given.

Usage:
    python -m timetable init school.json
    python -m timetable import-teachers school.json teachers.csv
    python -m timetable import-lessons school.json lessons.csv
    python -m timetable auto school.json --week A
    python -m timetable view school.json --teacher 1001
    python -m timetable stats school.json --format report
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .auto_scheduler import AutoScheduler
from .conflicts import ConflictReport
from .constraints import ConstraintManager
from .data.importer import ImportReport, import_lessons, import_teachers, read_csv_rows
from .data.loader import DataValidationError, load_snapshot, parse_snapshot, save_snapshot
from .data.models import PERIODS_PER_DAY, Day, LockType, SlotKey, Week
from .merges import MergeManager
from .model import Timetable
from .output.formatters import format_class_grid, format_teacher_grid, save_csv
from .output.stats import StatsReporter, ValidationReport, generate_report
from .placement import PlacementEngine

# Create Typer app
app = typer.Typer(
    name="timetable",
    help="School timetable editor: placement, merges, locks, conflicts and auto-scheduling.",
    add_completion=False,
)

# Rich console for pretty output
console = Console()
err_console = Console(stderr=True)

WEEK_OPTION_HELP = "Week to work on (defaults to the snapshot's active week)"


class EntityKind(str, Enum):
    """Record types the delete command can remove."""
    TEACHER = "teacher"
    CLASS = "class"
    ROOM = "room"
    LESSON = "lesson"


# =============================================================================
# Helper Functions
# =============================================================================

def configure_logging(verbose: bool) -> None:
    """Route log records through rich; debug detail only with --verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def load_timetable(path: Path) -> Timetable:
    """Load a snapshot or exit with an error."""
    if not path.exists():
        console.print(f"[red]Error:[/red] Snapshot file not found: {path}")
        raise typer.Exit(code=1)

    try:
        return load_snapshot(path)
    except (DataValidationError, OSError) as e:
        console.print(f"[red]Error loading snapshot:[/red] {e}")
        raise typer.Exit(code=1)


def write_timetable(timetable: Timetable, path: Path, output: Optional[Path]) -> None:
    target = output or path
    save_snapshot(timetable, target)
    console.print(f"[green]Saved to:[/green] {target}")


def parse_day(value: str) -> Day:
    try:
        return Day.parse(value)
    except ValueError:
        console.print(f"[red]Error:[/red] Invalid day '{value}'")
        console.print(f"Valid days: {', '.join(d.value for d in Day)}")
        raise typer.Exit(code=1)


def resolve_week(timetable: Timetable, week: Optional[Week]) -> Week:
    return week if week is not None else timetable.active_week


def fail(message: str) -> None:
    console.print(f"[red]Error:[/red] {message}")
    raise typer.Exit(code=1)


def print_conflicts(report: ValidationReport) -> None:
    if not report.conflicts:
        console.print(f"[green]No conflicts in week {report.week.value}.[/green]")
        return

    table = Table(title=f"Conflicts - Week {report.week.value}", show_header=True, header_style="bold red")
    table.add_column("Type")
    table.add_column("Resource")
    table.add_column("Day")
    table.add_column("Period", justify="center")
    table.add_column("Classes")
    for conflict in report.conflicts:
        table.add_row(
            conflict.kind.value,
            conflict.resource_name,
            conflict.day.full_name,
            str(conflict.period),
            ", ".join(conflict.class_names),
        )
    console.print(table)


def print_import_report(report: ImportReport, what: str) -> None:
    console.print(f"[green]Added:[/green] {report.added} {what}")
    if report.classes_added:
        console.print(f"[green]Classes created:[/green] {report.classes_added}")
    if report.skipped:
        console.print(f"[dim]Skipped (already present):[/dim] {report.skipped}")
    if report.issues:
        console.print(f"[yellow]{len(report.issues)} rows rejected:[/yellow]")
        for issue in report.issues:
            console.print(f"  [yellow]*[/yellow] {issue}")


# =============================================================================
# Commands
# =============================================================================

@app.callback()
def main_options(
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable verbose logging",
    ),
) -> None:
    """School timetable editor."""
    configure_logging(verbose)


@app.command()
def init(
    snapshot: Path = typer.Argument(..., help="Path of the snapshot file to create"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file"),
) -> None:
    """
    Create an empty timetable snapshot.

    Example:
        python -m timetable init school.json
    """
    if snapshot.exists() and not force:
        fail(f"{snapshot} already exists (use --force to overwrite)")
    save_snapshot(Timetable(), snapshot)
    console.print(f"[green]Created empty timetable:[/green] {snapshot}")


@app.command()
def validate(
    snapshot: Path = typer.Argument(..., help="Path to the snapshot JSON file to validate"),
) -> None:
    """
    Validate a snapshot and audit both weeks.

    Checks for:
    - Valid JSON structure
    - Schema compliance and reference integrity
    - Teacher and room double bookings in week A and week B

    Example:
        python -m timetable validate school.json
    """
    console.print(f"\n[bold]Validating:[/bold] {snapshot}\n")

    if not snapshot.exists():
        fail(f"File not found: {snapshot}")

    # Step 1: JSON parsing
    console.print("[cyan]1. Checking JSON syntax...[/cyan]")
    raw = snapshot.read_text(encoding="utf-8")
    try:
        json.loads(raw)
        console.print("   [green]JSON syntax is valid[/green]")
    except json.JSONDecodeError as e:
        console.print(f"   [red]Invalid JSON:[/red] {e}")
        raise typer.Exit(code=1)

    # Step 2: Schema validation
    console.print("[cyan]2. Validating against schema...[/cyan]")
    try:
        timetable = Timetable.from_snapshot(parse_snapshot(raw))
        console.print("   [green]Schema validation passed[/green]")
    except (DataValidationError, ValueError) as e:
        console.print("   [red]Schema validation failed:[/red]")
        for line in str(e).split("\n"):
            console.print(f"   {line}")
        raise typer.Exit(code=1)

    # Step 3: Conflicts
    console.print("[cyan]3. Auditing conflicts...[/cyan]")
    reporter = StatsReporter(timetable)
    for week in Week:
        report = reporter.validate(week)
        if report.conflicts:
            console.print(f"   [yellow]Week {week.value}: {len(report.conflicts)} conflicts[/yellow]")
            for conflict in report.conflicts:
                console.print(f"   - {conflict.describe()}")
        else:
            console.print(f"   [green]Week {week.value}: no conflicts[/green]")

    # Summary
    console.print("\n[bold]Summary:[/bold]")
    table = Table(show_header=False, box=None)
    table.add_column("Entity", style="cyan")
    table.add_column("Count", style="white")

    summary = timetable.summary()
    table.add_row("Teachers", str(summary["teachers"]))
    table.add_row("Classes", str(summary["classes"]))
    table.add_row("Rooms", str(summary["rooms"]))
    table.add_row("Lessons", str(summary["lessons"]))
    table.add_row("Locks", str(summary["locks"]))
    table.add_row("Unplaced in both weeks", str(len(timetable.unplaced_lessons())))

    console.print(table)
    console.print("\n[green]Validation complete.[/green]\n")


@app.command()
def stats(
    snapshot: Path = typer.Argument(..., help="Path to the snapshot JSON file"),
    week: Optional[Week] = typer.Option(None, "--week", "-w", help=WEEK_OPTION_HELP, case_sensitive=False),
    format: str = typer.Option(
        "table",
        "--format", "-f",
        help="Output format: table, report, or json",
    ),
) -> None:
    """
    Show lesson and hour totals and per-teacher load for a week.

    Examples:
        python -m timetable stats school.json
        python -m timetable stats school.json --week B --format json
    """
    timetable = load_timetable(snapshot)
    report = StatsReporter(timetable).validate(resolve_week(timetable, week))

    if format == "json":
        console.print_json(json.dumps(report.to_dict(), ensure_ascii=False))
    elif format == "report":
        console.print(generate_report(report), markup=False, highlight=False)
    else:
        _show_stats_table(report)


def _show_stats_table(report: ValidationReport) -> None:
    """Show stats as tables."""
    console.print(Panel(f"[bold]Timetable Statistics - Week {report.week.value}[/bold]"))

    s = report.stats
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Metric")
    table.add_column("Placed", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Remaining", justify="right")
    table.add_row("Lessons", str(s.placed_lessons), str(s.total_lessons), str(s.remaining_lessons))
    table.add_row("Hours", str(s.placed_hours), str(s.total_hours), str(s.remaining_hours))
    console.print(table)

    load_table = Table(title="Teacher Load", show_header=True, header_style="bold cyan")
    load_table.add_column("Teacher")
    load_table.add_column("Placed", justify="right")
    load_table.add_column("Required", justify="right")
    for load in report.teacher_loads:
        color = "green" if load.placed_hours >= load.required_hours else "yellow"
        load_table.add_row(load.name, f"[{color}]{load.placed_hours}[/{color}]", str(load.required_hours))
    console.print(load_table)


@app.command()
def audit(
    snapshot: Path = typer.Argument(..., help="Path to the snapshot JSON file"),
    week: Optional[Week] = typer.Option(None, "--week", "-w", help=WEEK_OPTION_HELP, case_sensitive=False),
    as_json: bool = typer.Option(False, "--json", help="Print conflicts as JSON"),
) -> None:
    """
    List every teacher and room double booking in a week.

    Example:
        python -m timetable audit school.json --week A
    """
    timetable = load_timetable(snapshot)
    report = StatsReporter(timetable).validate(resolve_week(timetable, week))
    if as_json:
        console.print_json(json.dumps([c.to_dict() for c in report.conflicts], ensure_ascii=False))
    else:
        print_conflicts(report)


@app.command()
def view(
    snapshot: Path = typer.Argument(..., help="Path to the snapshot JSON file"),
    week: Optional[Week] = typer.Option(None, "--week", "-w", help=WEEK_OPTION_HELP, case_sensitive=False),
    teacher: Optional[str] = typer.Option(
        None,
        "--teacher", "-T",
        help="Show the week of one teacher ID",
    ),
    unplaced: bool = typer.Option(False, "--unplaced", help="List lessons unplaced in both weeks"),
) -> None:
    """
    Display the school grid, one teacher's week, or the unplaced lessons.

    Examples:
        python -m timetable view school.json
        python -m timetable view school.json --teacher 1001 --week B
    """
    timetable = load_timetable(snapshot)
    week = resolve_week(timetable, week)

    if unplaced:
        _show_unplaced(timetable)
    elif teacher:
        if timetable.get_teacher(teacher) is None:
            console.print(f"[red]Error:[/red] Teacher '{teacher}' not found")
            console.print(f"Available teachers: {', '.join(t.id for t in timetable.teachers)}")
            raise typer.Exit(code=1)
        console.print(format_teacher_grid(timetable, teacher, week), markup=False, highlight=False, soft_wrap=True)
    else:
        console.print(format_class_grid(timetable, week), markup=False, highlight=False, soft_wrap=True)


def _show_unplaced(timetable: Timetable) -> None:
    lessons = timetable.unplaced_lessons()
    if not lessons:
        console.print("[green]All lessons are placed.[/green]")
        return
    table = Table(title="Unplaced Lessons", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim")
    table.add_column("Lesson")
    table.add_column("Class")
    table.add_column("Teacher")
    table.add_column("Periods", justify="center")
    for lesson in lessons:
        teacher = timetable.get_teacher(lesson.teacher_id)
        table.add_row(
            lesson.id,
            lesson.name,
            timetable.class_name(lesson.class_id),
            teacher.name if teacher else lesson.teacher_id,
            str(lesson.periods),
        )
    console.print(table)


@app.command()
def auto(
    snapshot: Path = typer.Argument(..., help="Path to the snapshot JSON file"),
    week: Optional[Week] = typer.Option(None, "--week", "-w", help=WEEK_OPTION_HELP, case_sensitive=False),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the result here instead"),
) -> None:
    """
    Place unplaced lessons greedily into empty, conflict-free cells.

    Example:
        python -m timetable auto school.json --week A
    """
    timetable = load_timetable(snapshot)
    week = resolve_week(timetable, week)

    result = AutoScheduler(timetable).run(week)

    if result.placed_count:
        console.print(f"[green]{result.placed_count} lessons placed automatically in week {week.value}.[/green]")
    else:
        console.print("[yellow]No suitable position found for the unplaced lessons.[/yellow]")
    if result.unplaced:
        console.print(f"[dim]{len(result.unplaced)} lessons left unplaced[/dim]")

    write_timetable(timetable, snapshot, output)


@app.command()
def place(
    snapshot: Path = typer.Argument(..., help="Path to the snapshot JSON file"),
    lesson_id: str = typer.Argument(..., help="Lesson ID"),
    day: str = typer.Argument(..., help="Day (Sat, Sun, Mon, Tue, Wed, Thu)"),
    period: int = typer.Argument(..., help="Starting period (1-4)", min=1, max=4),
    week: Optional[Week] = typer.Option(None, "--week", "-w", help=WEEK_OPTION_HELP, case_sensitive=False),
    yes: bool = typer.Option(False, "--yes", "-y", help="Accept teacher/room conflicts without asking"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the result here instead"),
) -> None:
    """
    Place a lesson in its class, or move it if it is already placed.

    Example:
        python -m timetable place school.json l3 Sat 1
    """
    timetable = load_timetable(snapshot)
    week = resolve_week(timetable, week)
    target_day = parse_day(day)

    lesson = timetable.get_lesson(lesson_id)
    if lesson is None:
        fail(f"Lesson '{lesson_id}' not found")

    engine = PlacementEngine(timetable)

    def confirm(report: ConflictReport) -> bool:
        console.print(f"[yellow]Warning:[/yellow] {report.describe()}")
        return yes or typer.confirm("Place anyway?", default=False)

    outcome = engine.move(
        week,
        lesson_id,
        lesson.class_id,
        target_day,
        period,
        confirm=confirm,
    )
    if outcome.error is not None:
        fail(outcome.message)
    if not outcome.ok:
        console.print("[yellow]Not placed.[/yellow]")
        return

    console.print(f"[green]Placed[/green] {lesson.name} at {SlotKey(target_day, period)} (week {week.value})")
    write_timetable(timetable, snapshot, output)


@app.command()
def remove(
    snapshot: Path = typer.Argument(..., help="Path to the snapshot JSON file"),
    lesson_id: str = typer.Argument(..., help="Lesson ID"),
    week: Optional[Week] = typer.Option(None, "--week", "-w", help=WEEK_OPTION_HELP, case_sensitive=False),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the result here instead"),
) -> None:
    """Return a placed lesson to the unplaced list."""
    timetable = load_timetable(snapshot)
    week = resolve_week(timetable, week)

    outcome = PlacementEngine(timetable).unplace(week, lesson_id)
    if not outcome:
        fail(outcome.message)
    console.print(f"[green]Removed[/green] {lesson_id} from week {week.value}")
    write_timetable(timetable, snapshot, output)


@app.command()
def lock(
    snapshot: Path = typer.Argument(..., help="Path to the snapshot JSON file"),
    kind: LockType = typer.Argument(..., help="teacher or class", case_sensitive=False),
    entity_id: str = typer.Argument(..., help="Teacher or class ID"),
    day: str = typer.Argument(..., help="Day (Sat, Sun, Mon, Tue, Wed, Thu)"),
    period: int = typer.Argument(..., help="Period (1-4)", min=1, max=4),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the result here instead"),
) -> None:
    """
    Toggle a teacher or class lock on one slot, in both weeks.

    Example:
        python -m timetable lock school.json teacher 1001 Sat 1
    """
    timetable = load_timetable(snapshot)
    target_day = parse_day(day)

    exists = timetable.get_teacher(entity_id) if kind == LockType.TEACHER else timetable.get_class(entity_id)
    if exists is None:
        fail(f"{kind.value.capitalize()} '{entity_id}' not found")

    locked = ConstraintManager(timetable).toggle(kind, entity_id, target_day, period)
    state = "[red]locked[/red]" if locked else "[green]unlocked[/green]"
    console.print(f"{kind.value.capitalize()} {entity_id} at {SlotKey(target_day, period)}: {state}")
    write_timetable(timetable, snapshot, output)


@app.command()
def merge(
    snapshot: Path = typer.Argument(..., help="Path to the snapshot JSON file"),
    class_id: str = typer.Argument(..., help="Class ID"),
    day: str = typer.Argument(..., help="Day (Sat, Sun, Mon, Tue, Wed, Thu)"),
    periods: List[int] = typer.Argument(..., help="Two or more consecutive periods"),
    week: Optional[Week] = typer.Option(None, "--week", "-w", help=WEEK_OPTION_HELP, case_sensitive=False),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the result here instead"),
) -> None:
    """
    Merge consecutive periods of one class and day into a single cell.

    Example:
        python -m timetable merge school.json c1 Sat 1 2
    """
    timetable = load_timetable(snapshot)
    week = resolve_week(timetable, week)
    target_day = parse_day(day)
    if timetable.get_class(class_id) is None:
        fail(f"Class '{class_id}' not found")
    if any(not 1 <= p <= PERIODS_PER_DAY for p in periods):
        fail(f"Periods must be between 1 and {PERIODS_PER_DAY}")

    outcome = MergeManager(timetable).merge(week, class_id, target_day, periods)
    if not outcome:
        fail(outcome.message)
    merged = outcome.value
    console.print(
        f"[green]Merged[/green] periods {merged.start_period}-{merged.end_period} "
        f"of {timetable.class_name(class_id)} on {target_day.full_name} (week {week.value})"
    )
    write_timetable(timetable, snapshot, output)


@app.command()
def unmerge(
    snapshot: Path = typer.Argument(..., help="Path to the snapshot JSON file"),
    class_id: str = typer.Argument(..., help="Class ID"),
    day: str = typer.Argument(..., help="Day (Sat, Sun, Mon, Tue, Wed, Thu)"),
    period: int = typer.Argument(..., help="Any period inside the merge", min=1, max=4),
    week: Optional[Week] = typer.Option(None, "--week", "-w", help=WEEK_OPTION_HELP, case_sensitive=False),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the result here instead"),
) -> None:
    """Split the merged cell covering a period."""
    timetable = load_timetable(snapshot)
    week = resolve_week(timetable, week)
    target_day = parse_day(day)

    outcome = MergeManager(timetable).unmerge(week, class_id, target_day, period)
    if not outcome:
        fail(outcome.message)
    console.print(f"[green]Merge removed[/green] for {timetable.class_name(class_id)} on {target_day.full_name}")
    write_timetable(timetable, snapshot, output)


@app.command("copy-week")
def copy_week(
    snapshot: Path = typer.Argument(..., help="Path to the snapshot JSON file"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the result here instead"),
) -> None:
    """Overwrite week B's schedule and merges with a copy of week A's."""
    timetable = load_timetable(snapshot)
    if not yes and not typer.confirm("All of week B will be replaced by week A. Continue?", default=False):
        console.print("[yellow]Cancelled.[/yellow]")
        return
    timetable.copy_week(Week.A, Week.B)
    console.print("[green]Week A copied to week B.[/green]")
    write_timetable(timetable, snapshot, output)


@app.command("clear-week")
def clear_week(
    snapshot: Path = typer.Argument(..., help="Path to the snapshot JSON file"),
    week: Optional[Week] = typer.Option(None, "--week", "-w", help=WEEK_OPTION_HELP, case_sensitive=False),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the result here instead"),
) -> None:
    """Remove every placement and merge of one week."""
    timetable = load_timetable(snapshot)
    week = resolve_week(timetable, week)
    if not yes and not typer.confirm(f"All placements of week {week.value} will be removed. Continue?", default=False):
        console.print("[yellow]Cancelled.[/yellow]")
        return
    timetable.clear_week(week)
    console.print(f"[green]Week {week.value} cleared.[/green]")
    write_timetable(timetable, snapshot, output)


@app.command()
def delete(
    snapshot: Path = typer.Argument(..., help="Path to the snapshot JSON file"),
    kind: EntityKind = typer.Argument(..., help="teacher, class, room or lesson", case_sensitive=False),
    entity_id: str = typer.Argument(..., help="ID of the record to delete"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the result here instead"),
) -> None:
    """
    Delete a teacher, class, room or lesson.

    Deleting a teacher or class also deletes their lessons and every
    placement of those lessons, in both weeks.

    Example:
        python -m timetable delete school.json teacher 1001 --yes
    """
    timetable = load_timetable(snapshot)
    deleters = {
        EntityKind.TEACHER: timetable.delete_teacher,
        EntityKind.CLASS: timetable.delete_class,
        EntityKind.ROOM: timetable.delete_room,
        EntityKind.LESSON: timetable.delete_lesson,
    }

    cascades = kind in (EntityKind.TEACHER, EntityKind.CLASS)
    if cascades and not yes and not typer.confirm(
        f"All lessons of {kind.value} '{entity_id}' will be deleted too. Continue?", default=False
    ):
        console.print("[yellow]Cancelled.[/yellow]")
        return

    outcome = deleters[kind](entity_id)
    if not outcome:
        fail(f"{kind.value.capitalize()} '{entity_id}' not found")

    console.print(f"[green]Deleted[/green] {kind.value} {entity_id}")
    if cascades:
        console.print(f"[dim]{len(outcome.value)} lessons removed with it[/dim]")
    write_timetable(timetable, snapshot, output)


@app.command("import-teachers")
def import_teachers_command(
    snapshot: Path = typer.Argument(..., help="Path to the snapshot JSON file"),
    csv_file: Path = typer.Argument(..., help="CSV with personnel code, first name and last name columns", exists=True),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the result here instead"),
) -> None:
    """Import teachers from a CSV sheet; existing personnel codes are skipped."""
    timetable = load_timetable(snapshot)
    report = import_teachers(timetable, read_csv_rows(csv_file), source=csv_file.name)
    print_import_report(report, "teachers")
    write_timetable(timetable, snapshot, output)


@app.command("import-lessons")
def import_lessons_command(
    snapshot: Path = typer.Argument(..., help="Path to the snapshot JSON file"),
    csv_file: Path = typer.Argument(..., help="CSV with class, lesson name, personnel code, periods and field columns", exists=True),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the result here instead"),
) -> None:
    """Import lessons from a CSV sheet, creating classes by name."""
    timetable = load_timetable(snapshot)
    report = import_lessons(timetable, read_csv_rows(csv_file), source=csv_file.name)
    print_import_report(report, "lessons")
    write_timetable(timetable, snapshot, output)


@app.command()
def export(
    snapshot: Path = typer.Argument(..., help="Path to the snapshot JSON file"),
    csv_file: Path = typer.Argument(..., help="CSV file to write"),
    week: Optional[Week] = typer.Option(None, "--week", "-w", help=WEEK_OPTION_HELP, case_sensitive=False),
) -> None:
    """Export the placed lessons of a week as CSV."""
    timetable = load_timetable(snapshot)
    week = resolve_week(timetable, week)
    save_csv(timetable, csv_file, week)
    console.print(f"[green]Week {week.value} exported to:[/green] {csv_file}")


@app.command()
def log(
    snapshot: Path = typer.Argument(..., help="Path to the snapshot JSON file"),
    limit: int = typer.Option(20, "--limit", "-n", help="Number of entries to show", min=1),
) -> None:
    """Show the most recent changes, newest first."""
    timetable = load_timetable(snapshot)
    if not timetable.change_log:
        console.print("[dim]No changes recorded.[/dim]")
        return
    table = Table(title="Change Log", show_header=True, header_style="bold cyan")
    table.add_column("Time", style="dim")
    table.add_column("Change")
    for entry in timetable.change_log[:limit]:
        table.add_row(entry.time, Text(entry.description))
    console.print(table)


# =============================================================================
# Main Entry Point
# =============================================================================

def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
