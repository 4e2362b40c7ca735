"""Main CLI entry point using Typer."""

import json
from pathlib import Path
from typing import Any

import anyio
import typer
from rich.console import Console
from rich.table import Table

from calendar_sync import __version__
from calendar_sync.adapters.memory import (
    InMemoryAlertSink,
    InMemoryCalendarService,
    InMemoryRecordStore,
)
from calendar_sync.conflict.models import (
    ConflictSeverity,
    DetectionReport,
    LocalRecord,
    RemoteEvent,
    ResolutionStrategy,
)
from calendar_sync.core.config import get_settings
from calendar_sync.core.engine import ConflictEngine
from calendar_sync.core.logging import configure_logging

app = typer.Typer(
    name="calendar-sync",
    help="Detect and resolve conflicts between mirrored sessions and calendar events",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()

SEVERITY_STYLES = {
    ConflictSeverity.HIGH: "bold red",
    ConflictSeverity.MEDIUM: "yellow",
    ConflictSeverity.LOW: "dim",
}


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]calendar-sync[/bold blue] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """
    Reconcile platform sessions with their mirrored calendar events.
    """
    configure_logging()


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red]Cannot read {path}: {e}[/red]")
        raise typer.Exit(code=1) from e


def load_records(path: Path) -> list[LocalRecord]:
    """Load sessions from a JSON list, in engine or database column naming."""
    rows = _read_json(path)
    return [
        LocalRecord.from_session_row(row) if "data" in row else LocalRecord.model_validate(row)
        for row in rows
    ]


def load_events(path: Path) -> list[RemoteEvent]:
    """Load events from a JSON list or a Google ``events.list`` response."""
    payload = _read_json(path)
    items = payload.get("items", []) if isinstance(payload, dict) else payload
    return [RemoteEvent.model_validate(item) for item in items]


def render_report(report: DetectionReport) -> None:
    if not report.conflicts:
        console.print("[green]No conflicts found[/green]")
        return

    table = Table(title="Calendar Conflicts")
    table.add_column("Conflict")
    table.add_column("Severity")
    table.add_column("Field")
    table.add_column("Platform")
    table.add_column("Calendar")

    for conflict in report.conflicts:
        style = SEVERITY_STYLES[conflict.severity]
        for index, diff in enumerate(conflict.differences):
            table.add_row(
                conflict.id if index == 0 else "",
                f"[{style}]{conflict.severity.value}[/{style}]" if index == 0 else "",
                diff.field.value,
                diff.local_value,
                diff.remote_value,
            )

    console.print(table)


@app.command()
def detect(
    local_file: Path = typer.Argument(..., help="JSON file with platform sessions"),
    remote_file: Path = typer.Argument(..., help="JSON file with calendar events"),
    strategy: str | None = typer.Option(
        None,
        "--strategy",
        "-s",
        help="Resolve every conflict with: keep-local, keep-remote, dismiss",
    ),
    token: str | None = typer.Option(
        None,
        "--token",
        "-t",
        envvar="GOOGLE_ACCESS_TOKEN",
        help="Calendar access token (required by keep-local)",
    ),
    user_id: str = typer.Option("cli", "--user", "-u", help="Alert recipient"),
) -> None:
    """
    Run a detection pass over two JSON snapshots.

    Nothing is written anywhere: resolution runs against in-memory copies.
    """
    records = load_records(local_file)
    events = load_events(remote_file)

    resolution: ResolutionStrategy | None = None
    if strategy is not None:
        try:
            resolution = ResolutionStrategy(strategy)
        except ValueError as e:
            console.print(f"[red]Unknown strategy: {strategy}[/red]")
            raise typer.Exit(code=2) from e
        if resolution == ResolutionStrategy.MERGE:
            console.print("[red]merge needs per-conflict fields and cannot run in bulk[/red]")
            raise typer.Exit(code=2)

    alerts = InMemoryAlertSink()
    engine = ConflictEngine(
        record_store=InMemoryRecordStore(records),
        calendar_service=InMemoryCalendarService(),
        alert_sink=alerts,
        user_id=user_id,
        settings=get_settings(),
    )

    async def run() -> None:
        report = await engine.detect(records, events)
        render_report(report)

        stats = engine.stats()
        console.print(
            f"\n[bold]{stats.total}[/bold] conflict(s): "
            f"{stats.high} high, {stats.medium} medium, {stats.low} low "
            f"({len(alerts.alerts)} alert(s) raised)"
        )

        if resolution is not None and stats.total:
            resolved = await engine.resolve_all(resolution, access_token=token)
            colour = "green" if resolved == stats.total else "yellow"
            console.print(f"[{colour}]Resolved {resolved}/{stats.total} with {resolution.value}[/{colour}]")

    anyio.run(run)


@app.command("config")
def show_config() -> None:
    """
    Show the effective configuration.
    """
    settings = get_settings()

    table = Table(title="Configuration")
    table.add_column("Setting")
    table.add_column("Value")

    for name, value in settings.model_dump().items():
        table.add_row(name, str(value))

    console.print(table)


if __name__ == "__main__":
    app()
