"""Interactive CLI application."""
import logging
import os
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt, IntPrompt
from rich.table import Table

from gradediff.changeset import Changeset, SemesterMismatchError, reconcile
from gradediff.db import init_db, DEFAULT_DB_PATH
from gradediff.decoders import FormatError
from gradediff.digest import format_changeset, format_number, grade_color
from gradediff.snapshots import diff_latest, diff_snapshots, list_snapshots, save_snapshot
from gradediff.xml_decode import GradebookDecodeError, decode_gradebook

console = Console()


def configure_logging() -> None:
    level = os.environ.get("GRADEDIFF_LOG_LEVEL")
    if not level:
        return
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def show_welcome():
    console.print(Panel(
        "[bold]Gradebook Changes[/bold]\n[dim]Compare gradebook snapshots over time[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("import", "Store a gradebook snapshot (XML file)"),
        ("diff", "Changes between the two latest snapshots"),
        ("compare", "Changes between two chosen snapshots"),
        ("history", "List stored snapshots"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def show_changeset(changeset: Changeset) -> None:
    title = (
        f"{changeset.older.current_grading_period.name} -> "
        f"{changeset.newer.current_grading_period.name}"
    )
    if changeset.is_empty:
        console.print(Panel("[dim]No changes[/dim]", title=title, border_style="blue"))
        return

    grades = [c for c in changeset.course_changes if c.grade_change]
    if grades:
        table = Table(title="Grade Changes")
        table.add_column("Period", justify="right")
        table.add_column("Course", style="cyan")
        table.add_column("Before", justify="right")
        table.add_column("After", justify="right")
        table.add_column("Change", justify="right")
        for change in grades:
            gc = change.grade_change
            color = grade_color(gc.delta_pct)
            sign = "+" if gc.grade_increased else ""
            table.add_row(
                str(change.course.period),
                escape(change.course.id.name),
                f"{format_number(gc.previous_grade_pct)}% {gc.previous_letter_grade}",
                f"{format_number(gc.new_grade_pct)}% {gc.new_letter_grade}",
                f"[{color}]{sign}{format_number(round(gc.delta_pct, 2))}%[/{color}]",
            )
        console.print(table)

    console.print(Panel(escape("\n".join(format_changeset(changeset))), title=title, border_style="blue"))


def cmd_import(db_path: str):
    file_path = Prompt.ask("File path")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    snapshot_id = save_snapshot(db_path, Path(file_path).read_text())
    console.print(f"[green]Stored snapshot {snapshot_id} from {Path(file_path).name}[/green]")


def cmd_diff(db_path: str):
    changeset = diff_latest(db_path)
    if changeset is None:
        console.print("[yellow]Need at least two snapshots. Use 'import' first.[/yellow]")
        return
    show_changeset(changeset)


def cmd_compare(db_path: str):
    snapshots = list_snapshots(db_path)
    if len(snapshots) < 2:
        console.print("[yellow]Need at least two snapshots. Use 'import' first.[/yellow]")
        return
    ids = [str(s["id"]) for s in snapshots]
    older_id = IntPrompt.ask("Older snapshot", choices=ids)
    newer_id = IntPrompt.ask("Newer snapshot", choices=ids)
    show_changeset(diff_snapshots(db_path, older_id, newer_id))


def cmd_history(db_path: str):
    snapshots = list_snapshots(db_path)
    if not snapshots:
        console.print("[yellow]No snapshots stored yet.[/yellow]")
        return
    table = Table(title="Stored Snapshots")
    table.add_column("ID", justify="right")
    table.add_column("Captured")
    table.add_column("Grading Period", style="cyan")
    table.add_column("Courses", justify="right")
    for s in snapshots:
        table.add_row(str(s["id"]), s["captured_at"], s["grading_period"], str(s["course_count"]))
    console.print(table)


def compare_files(older_path: str, newer_path: str) -> int:
    """One-shot comparison of two XML files; returns a process exit code."""
    try:
        older = decode_gradebook(Path(older_path).read_text())
        newer = decode_gradebook(Path(newer_path).read_text())
        show_changeset(reconcile(older, newer))
    except (OSError, GradebookDecodeError, FormatError, SemesterMismatchError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1
    return 0


def main():
    configure_logging()
    if len(sys.argv) == 3:
        sys.exit(compare_files(sys.argv[1], sys.argv[2]))

    db_path = DEFAULT_DB_PATH
    init_db(db_path)
    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="diff").strip().lower()
        try:
            if choice == "import":
                cmd_import(db_path)
            elif choice == "diff":
                cmd_diff(db_path)
            elif choice == "compare":
                cmd_compare(db_path)
            elif choice == "history":
                cmd_history(db_path)
            elif choice in ("quit", "exit", "q"):
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
