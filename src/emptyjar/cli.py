"""CLI interface for Empty Jar."""

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from emptyjar import __version__
from emptyjar.config import Settings, get_settings
from emptyjar.errors import EmptyJarError
from emptyjar.models.app_settings import DAY_NAMES
from emptyjar.models.note import MomentType, Note
from emptyjar.models.results import MutationResult, MutationStatus
from emptyjar.services.search import NoteFilters, filter_notes
from emptyjar.services.session import Identity, JarSession, SessionManager
from emptyjar.weeks import format_date_range, week_bounds

app = typer.Typer(
    name="emptyjar",
    help="One note a week. Fill the jar, replay the year.",
    no_args_is_help=True,
)
console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """Configure logging before any command runs."""
    try:
        level = "DEBUG" if verbose else get_settings().log_level.upper()
    except Exception:
        level = "WARNING"
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def open_session(settings: Settings, replay_pending: bool = True) -> JarSession:
    """Open the guest or account session described by the configuration."""
    manager = SessionManager.from_settings(settings)
    identity = None
    if not settings.is_guest:
        identity = Identity(user_id=settings.user_id, access_token=settings.access_token)
    return manager.open(identity, replay_pending=replay_pending)


def load_session(replay_pending: bool = True) -> JarSession:
    try:
        settings = get_settings()
    except Exception as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        console.print("Make sure you have a .env file with EMPTYJAR_ settings.")
        raise typer.Exit(1)
    return open_session(settings, replay_pending=replay_pending)


def report(result: MutationResult, action: str) -> None:
    if result.status == MutationStatus.COMMITTED:
        console.print(f"[green]✓[/green] {action}")
    elif result.status == MutationStatus.QUEUED:
        console.print(f"[yellow]⏳[/yellow] {action} (offline, will sync when back online)")
    else:
        console.print(f"[red]✗ {action} failed: {result.reason}[/red]")
        raise typer.Exit(1)


def print_note(note: Note, hide: bool = False) -> None:
    start, end = week_bounds(note.week_key)
    console.print(f"[bold cyan]─── Week {note.week_key} ({format_date_range(start, end)}) ───[/bold cyan]")
    if note.title:
        console.print(f"  [bold]{note.title}[/bold]")
    console.print(f"  {'•' * 12 if hide else note.body}")
    console.print(
        f"  [dim]Mood: {note.mood_label} · {note.moment_type.label}"
        f"{' · backfill' if note.is_backfill else ''}[/dim]"
    )
    if note.tags:
        console.print(f"  [dim]Tags: {', '.join(note.tags)}[/dim]")


@app.command()
def add(
    body: str = typer.Argument(..., help="What happened this week"),
    mood: int = typer.Option(..., "--mood", "-m", min=1, max=5, help="Mood from 1 (rough) to 5 (great)"),
    week: Optional[str] = typer.Option(None, "--week", "-w", help="Week key YYYY-WW (default: this week)"),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="Optional title"),
    moment_type: MomentType = typer.Option(MomentType.OTHER, "--type", help="Kind of moment"),
    tags: Optional[list[str]] = typer.Option(None, "--tag", help="Tag (repeatable)"),
):
    """Add the note for a week."""
    session = load_session()
    week_key = week or session.current_week_key
    try:
        result = session.add_note(
            {
                "week_key": week_key,
                "body": body,
                "mood": mood,
                "title": title,
                "moment_type": moment_type,
                "tags": tags or [],
            }
        )
    except EmptyJarError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    report(result, f"Added note for week {week_key}")
    if result.note and result.note.is_backfill:
        console.print("  [dim]Marked as backfill[/dim]")


@app.command()
def edit(
    body: Optional[str] = typer.Option(None, "--body", "-b", help="New body"),
    mood: Optional[int] = typer.Option(None, "--mood", "-m", min=1, max=5, help="New mood"),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="New title"),
    moment_type: Optional[MomentType] = typer.Option(None, "--type", help="New kind of moment"),
    tags: Optional[list[str]] = typer.Option(None, "--tag", help="Replace tags (repeatable)"),
):
    """Edit this week's note."""
    session = load_session()
    note = session.get_for_week(session.current_week_key)
    if note is None:
        console.print("[yellow]No note for this week yet. Use 'emptyjar add'.[/yellow]")
        raise typer.Exit(1)

    changes = {
        name: value
        for name, value in (
            ("body", body),
            ("mood", mood),
            ("title", title),
            ("moment_type", moment_type),
            ("tags", tags),
        )
        if value is not None
    }
    if not changes:
        console.print("[yellow]Nothing to change.[/yellow]")
        raise typer.Exit(0)

    try:
        result = session.update_note(note.id, changes)
    except EmptyJarError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    report(result, f"Updated note for week {note.week_key}")


@app.command()
def delete(
    week: str = typer.Argument(..., help="Week key YYYY-WW"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete the note of a week."""
    session = load_session()
    note = session.get_for_week(week)
    if note is None:
        console.print(f"[yellow]No note for week {week}.[/yellow]")
        raise typer.Exit(1)
    if not yes and not typer.confirm(f"Delete the note for week {week}?"):
        raise typer.Exit(0)
    report(session.delete_note(note.id), f"Deleted note for week {week}")


@app.command()
def show(
    week: Optional[str] = typer.Option(None, "--week", "-w", help="Week key (default: all notes)"),
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Text to search for"),
    mood: Optional[list[int]] = typer.Option(None, "--mood", "-m", help="Only these moods"),
    tag: Optional[list[str]] = typer.Option(None, "--tag", help="Only notes with any of these tags"),
):
    """Show notes, newest first."""
    session = load_session()
    hide = session.settings.hide_notes

    if week:
        note = session.get_for_week(week)
        if note is None:
            console.print(f"[yellow]No note for week {week}.[/yellow]")
            raise typer.Exit(0)
        print_note(note, hide)
        return

    notes = filter_notes(
        session.export_notes(),
        NoteFilters(search_query=search, moods=mood or [], tags=tag or []),
    )
    if not notes:
        console.print("[yellow]No notes found.[/yellow]")
        return
    for note in notes:
        print_note(note, hide)


@app.command()
def timeline(
    year: Optional[int] = typer.Option(None, "--year", "-y", help="ISO year (default: this year)"),
):
    """Show every week of a year and which ones have a note."""
    session = load_session()
    weeks = session.weeks(year)

    table = Table(title=f"{weeks[0].year} · {sum(w.has_note for w in weeks)}/{len(weeks)} weeks")
    table.add_column("Week", style="cyan")
    table.add_column("Dates")
    table.add_column("Note")
    for info in weeks:
        marker = "🫙" if info.has_note else ("·" if info.is_past else "")
        label = f"[bold]{info.week_key}[/bold] ←" if info.is_current else info.week_key
        title = ""
        if info.note and not session.settings.hide_notes:
            title = info.note.title or info.note.body[:40]
        table.add_row(label, format_date_range(info.start_date, info.end_date), f"{marker} {title}".strip())
    console.print(table)

    if session.notes.can_replay:
        console.print("[green]Year replay unlocked![/green]")


@app.command()
def export(
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write JSON here instead of stdout"),
):
    """Export all notes as JSON, in week order."""
    session = load_session()
    data = json.dumps([n.to_dict() for n in session.export_notes()], indent=2, ensure_ascii=False)
    if output:
        output.write_text(data, encoding="utf-8")
        console.print(f"[green]✓[/green] Exported to {output}")
    else:
        console.print_json(data)


@app.command("settings")
def settings_command(
    set_values: Optional[list[str]] = typer.Option(None, "--set", help="field=value (repeatable)"),
):
    """Show or change settings."""
    session = load_session()

    if set_values:
        changes: dict = {}
        for item in set_values:
            name, _, raw = item.partition("=")
            try:
                changes[name.strip()] = json.loads(raw)
            except ValueError:
                changes[name.strip()] = raw
        try:
            result = session.update_settings(changes)
        except EmptyJarError as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)
        report(result, "Settings updated")

    current = session.settings
    table = Table(title="Settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    for name, value in current.to_row().items():
        if name == "reminder_day":
            value = f"{value} ({DAY_NAMES[value]})"
        table.add_row(name, str(value))
    console.print(table)


@app.command()
def sync():
    """Replay changes made while offline."""
    session = load_session(replay_pending=False)
    if session.is_guest:
        console.print("[yellow]Guest mode stores notes on this device only.[/yellow]")
        raise typer.Exit(0)
    pending = len(session.queue)
    if not pending:
        console.print("[green]Nothing to sync.[/green]")
        return
    result = session.sync()
    console.print(str(result))
    if result and not result.completed:
        raise typer.Exit(1)


@app.command()
def migrate(
    yes: bool = typer.Option(False, "--yes", "-y", help="Import without asking"),
):
    """Import notes written as a guest into the signed-in account."""
    session = load_session()
    if session.is_guest:
        console.print("[yellow]Sign in first (set EMPTYJAR_USER_ID).[/yellow]")
        raise typer.Exit(1)

    candidates = session.guest_notes_to_sync()
    if not candidates:
        console.print("[green]No guest notes to import.[/green]")
        return

    console.print(f"Found [cyan]{len(candidates)}[/cyan] note(s) written as a guest:")
    for note in candidates:
        console.print(f"  {note.week_key}  {note.title or note.body[:50]}")

    if yes or typer.confirm("Import them into your account? Declining discards them for good"):
        try:
            result = session.sync_guest_notes()
        except EmptyJarError as e:
            console.print(f"[red]Import failed, try again later: {e}[/red]")
            raise typer.Exit(1)
    else:
        result = session.dismiss_sync_prompt()
    console.print(str(result))


@app.command()
def reminder():
    """Check whether the weekly reminder is due."""
    session = load_session()
    if session.show_reminder():
        console.print("[bold yellow]Take 60 seconds and add this week's note.[/bold yellow]")
    else:
        current = session.settings
        console.print(
            f"[dim]No reminder now (set for {DAY_NAMES[current.reminder_day]}s "
            f"after {current.reminder_time}).[/dim]"
        )


@app.command()
def config():
    """Show current configuration."""
    try:
        settings = get_settings()
    except Exception as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        console.print("\nMake sure you have a .env file. See .env.example for reference.")
        raise typer.Exit(1)

    table = Table(title="Empty Jar Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Mode", "guest" if settings.is_guest else f"account {settings.user_id}")
    table.add_row("Cloud URL", settings.cloud_url or "[dim]not set[/dim]")
    table.add_row(
        "Cloud API key",
        f"{settings.cloud_api_key[:8]}..." if settings.cloud_api_key else "[dim]not set[/dim]",
    )
    table.add_row("Request timeout", f"{settings.request_timeout}s")
    table.add_row("Replay attempts", str(settings.replay_max_attempts))
    table.add_row("Database", str(settings.database_path))
    table.add_row("Log level", settings.log_level)

    console.print(table)


@app.command()
def version():
    """Show version information."""
    console.print(f"Empty Jar v{__version__}")


if __name__ == "__main__":
    app()
