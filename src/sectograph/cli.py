"""
Command-line interface for the Sectograph event scheduler.
"""

import logging
from collections.abc import Iterator
from configparser import ConfigParser
from contextlib import contextmanager
from dataclasses import dataclass
from dataclasses import field
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from sectograph.geometry import find_event_at
from sectograph.geometry import surface_arc
from sectograph.models import DEFAULT_COLOR
from sectograph.models import DEFAULT_CONFIG
from sectograph.models import DEFAULT_DATA_DIR
from sectograph.models import Event
from sectograph.models import SectographError
from sectograph.service import EventService
from sectograph.settings import SettingsStore
from sectograph.store import FileStore

# ---------------------------------------------------------------------------
# Typer app
# ---------------------------------------------------------------------------

app = typer.Typer(
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Recurring events on a 12-hour dial, stored locally.",
)

console = Console()

_DATETIME_FORMATS = ["%Y-%m-%dT%H:%M", "%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M:%S"]


# ---------------------------------------------------------------------------
# Global state shared across subcommands
# ---------------------------------------------------------------------------


@dataclass
class _State:
    config_path: Path = field(default_factory=lambda: DEFAULT_CONFIG)
    data_dir: Path | None = None
    verbose: bool = False


state = _State()


@app.callback()
def _global(
    config: Annotated[
        Path,
        typer.Option("--config", "-c", help=f"Config file path (default: {DEFAULT_CONFIG})"),
    ] = DEFAULT_CONFIG,
    data_dir: Annotated[
        Path | None,
        typer.Option("--data-dir", help=f"Data directory (default: {DEFAULT_DATA_DIR})"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose debug output"),
    ] = False,
) -> None:
    state.config_path = config
    state.data_dir = data_dir
    state.verbose = verbose
    _setup_logging(verbose)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False, console=console)],
    )


def _load_config_file(config_path: Path) -> dict[str, str]:
    if not config_path.exists():
        return {}
    parser = ConfigParser()
    parser.read(config_path)
    if "sectograph" not in parser:
        return {}
    return dict(parser["sectograph"])


def _resolve_data_dir() -> Path:
    if state.data_dir is not None:
        return state.data_dir
    configured = _load_config_file(state.config_path).get("data_dir")
    return Path(configured).expanduser() if configured else DEFAULT_DATA_DIR


def _build_service() -> EventService:
    """Wire the stores and the service together for one command run."""
    file_store = FileStore(_resolve_data_dir())
    return EventService(file_store, SettingsStore(file_store))


@contextmanager
def _reported_errors() -> Iterator[None]:
    try:
        yield
    except SectographError as e:
        console.print(f"[bold red]Error:[/] {e}")
        raise typer.Exit(1) from None
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted by user[/]")
        raise typer.Exit(130) from None


def _fmt(moment: datetime) -> str:
    return moment.strftime("%a %Y-%m-%d %H:%M")


def _repeat_label(event: Event) -> str:
    rule = event.check_repeat or event.repeat
    if rule == "never":
        return "-"
    return rule if event.is_repeating else f"{rule} [dim](repeat)[/dim]"


def _events_table(events: list[Event], with_angles: bool = False) -> Table:
    table = Table(show_header=True, header_style="bold cyan", box=None, padding=(0, 2))
    table.add_column("ID", style="dim")
    table.add_column("Description")
    table.add_column("Start")
    table.add_column("End")
    table.add_column("Repeat")
    table.add_column("Color")
    if with_angles:
        table.add_column("Sector", justify="right")
        table.add_column("Arc", justify="right")

    for ev in events:
        row = [
            ev.id or "",
            ev.description,
            _fmt(ev.start),
            _fmt(ev.end),
            _repeat_label(ev),
            ev.color,
        ]
        if with_angles:
            arc_start, arc_end = surface_arc(ev.start_angle, ev.end_angle)
            row.append(f"{ev.start_angle:g}° → {ev.end_angle:g}°")
            row.append(f"{arc_start:g}° → {arc_end:g}°")
        table.add_row(*row)
    return table


# ---------------------------------------------------------------------------
# Event subcommands
# ---------------------------------------------------------------------------

_START_OPT = Annotated[
    datetime,
    typer.Option("--start", "-s", formats=_DATETIME_FORMATS, help="Start, e.g. 2026-10-17T09:00"),
]
_END_OPT = Annotated[
    datetime,
    typer.Option("--end", "-e", formats=_DATETIME_FORMATS, help="End, e.g. 2026-10-17T10:30"),
]
_COLOR_HELP = "Display color, e.g. 0x2E8B57"
_REPEAT_HELP = "Repeat rule: never, day, week or month"


@app.command()
def add(
    description: Annotated[str, typer.Argument(help="What the event is about")],
    start: _START_OPT,
    end: _END_OPT,
    color: Annotated[str, typer.Option("--color", help=_COLOR_HELP)] = DEFAULT_COLOR,
    repeat: Annotated[str, typer.Option("--repeat", "-r", help=_REPEAT_HELP)] = "never",
) -> None:
    """Create a new event."""
    service = _build_service()
    with _reported_errors():
        created = service.create(
            Event(description=description, start=start, end=end, color=color, repeat=repeat)
        )
    console.print(f"[green]Created[/] {created.description!r} [dim]({created.id})[/dim]")


@app.command()
def edit(
    event_id: Annotated[str, typer.Argument(help="ID of the event to change")],
    description: Annotated[str | None, typer.Option("--description", "-d")] = None,
    start: Annotated[
        datetime | None, typer.Option("--start", "-s", formats=_DATETIME_FORMATS)
    ] = None,
    end: Annotated[datetime | None, typer.Option("--end", "-e", formats=_DATETIME_FORMATS)] = None,
    color: Annotated[str | None, typer.Option("--color", help=_COLOR_HELP)] = None,
    repeat: Annotated[str | None, typer.Option("--repeat", "-r", help=_REPEAT_HELP)] = None,
) -> None:
    """Change fields of an existing event; unspecified fields are kept."""
    service = _build_service()
    existing = service.get(event_id)
    if existing is None:
        console.print(f"[bold red]Error:[/] No event with ID {event_id!r}")
        raise typer.Exit(1)

    changes = {
        name: value
        for name, value in (
            ("description", description),
            ("start", start),
            ("end", end),
            ("color", color),
            ("repeat", repeat),
        )
        if value is not None
    }
    with _reported_errors():
        service.edit(replace(existing, **changes))
    console.print(f"[green]Updated[/] {event_id}")


@app.command()
def delete(
    event_id: Annotated[str, typer.Argument(help="ID of the event to delete")],
) -> None:
    """Delete an event by ID."""
    service = _build_service()
    with _reported_errors():
        remaining = service.delete(event_id)
    console.print(f"[green]Deleted[/] {event_id} [dim]({len(remaining)} event(s) left)[/dim]")


@app.command()
def clear(
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation prompt")] = False,
) -> None:
    """Delete every stored event."""
    if not yes:
        typer.confirm("Delete all events?", abort=True)
    service = _build_service()
    with _reported_errors():
        service.clear_all()
    console.print("[green]All events deleted[/]")


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------


@app.command()
def week(
    on: Annotated[
        str | None,
        typer.Option("--date", help="Any day of the week to show, YYYY-MM-DD (default: today)"),
    ] = None,
) -> None:
    """List the occurrences of one Monday-to-Sunday week."""
    from datetime import date

    if on:
        try:
            reference = date.fromisoformat(on)
        except ValueError:
            console.print(f"[bold red]Error:[/] Invalid date: {on!r}")
            raise typer.Exit(1) from None
    else:
        reference = date.today()

    service = _build_service()
    with _reported_errors():
        occurrences = service.list_for_week(reference)
    week_start, _ = EventService.week_range(reference)

    title = f"[bold]Week of {week_start:%Y-%m-%d}[/bold]"
    if not occurrences:
        console.print(Panel(Text("No events this week.", style="yellow"), title=title))
        return
    console.print(Panel(_events_table(occurrences), title=title))


@app.command()
def now(
    as_json: Annotated[
        bool, typer.Option("--json", help="Print the dial events as JSON records")
    ] = False,
) -> None:
    """Show the events on the dial right now, with their sector angles."""
    service = _build_service()
    with _reported_errors():
        actual = service.list_actual()
        theme = service.settings_store.load_settings().color_theme

    if as_json:
        console.print_json(data=[ev.to_display_dict() for ev in actual])
        return

    if not actual:
        console.print("[yellow]Nothing on the dial right now.[/]")
        return

    counts = EventService.past_current_future_counts(actual, service.clock())
    summary = Table.grid(padding=(0, 2))
    summary.add_column(style="bold")
    summary.add_column(justify="right")
    summary.add_row("Ended", str(counts.past))
    summary.add_row("Up to now", str(counts.current))
    summary.add_row("Total", str(counts.future))

    console.print(
        Panel(
            _events_table(actual, with_angles=True),
            title=f"[bold]Dial[/bold] [dim]({theme})[/dim]",
        )
    )
    console.print(Panel(summary, title="[bold]Progress[/bold]", expand=False))


@app.command()
def hit(
    x: Annotated[float, typer.Argument(help="Tap x coordinate in screen pixels")],
    y: Annotated[float, typer.Argument(help="Tap y coordinate in screen pixels")],
) -> None:
    """Report which dial events contain the tap at (X, Y)."""
    service = _build_service()
    with _reported_errors():
        hits = find_event_at(x, y, service.list_actual())

    if not hits:
        console.print(f"[yellow]No event at ({x:g}, {y:g})[/]")
        return
    for ev in hits:
        console.print(
            f"[bold]{ev.description}[/] {_fmt(ev.start)} – {ev.end:%H:%M} [dim]({ev.id})[/dim]"
        )


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@app.command()
def settings(
    auto_delete: Annotated[
        str | None,
        typer.Option("--auto-delete", help="Purge ended events after: never, day, week or month"),
    ] = None,
    color_theme: Annotated[
        str | None, typer.Option("--color-theme", help="Color theme name")
    ] = None,
) -> None:
    """Show the settings, or update them when options are given."""
    store = SettingsStore(FileStore(_resolve_data_dir()))
    current = store.load_settings()

    if auto_delete is not None or color_theme is not None:
        updated = replace(
            current,
            auto_delete=auto_delete if auto_delete is not None else current.auto_delete,
            color_theme=color_theme if color_theme is not None else current.color_theme,
        )
        with _reported_errors():
            store.save_settings(updated)
        current = updated
        console.print("[green]Settings saved[/]")

    info = Text()
    info.append("  Auto-delete: ", style="bold")
    info.append(f"{current.auto_delete}\n")
    info.append("  Color theme: ", style="bold")
    info.append(current.color_theme)
    console.print(Panel(info, title="[bold]Settings[/bold]", expand=False))


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    app()
