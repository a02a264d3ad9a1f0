"""Command-line interface for Cadence."""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Annotated

import typer

from . import context
from .exceptions import CadenceError
from .loader import load_snapshot
from .logger import setup_logger
from .models import Snapshot, naive_utc
from .report import (
    format_delays_text,
    format_schedule,
    format_utilization_text,
)
from .scheduler import (
    DelayReport,
    SchedulingConfig,
    SchedulingService,
    calculate_delay,
    worker_utilization,
)
from .scheduler.graph import build_dependency_graph, detect_cycle, find_dangling_references
from .settings import discover_settings

app = typer.Typer(
    name="cadence",
    help="Capacity-aware, dependency-respecting task scheduling across projects",
    add_completion=False,
)


class OutputFormat(str, Enum):
    """Schedule output formats."""

    TEXT = "text"
    YAML = "yaml"
    JSON = "json"


@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbosity level: 0=silent (default), 1=show decisions, 2=show checks, 3=debug",
            min=0,
            max=3,
        ),
    ] = 0,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to settings file (default: cadence_config.yaml)",
        ),
    ] = None,
) -> None:
    """Global options for cadence commands."""
    setup_logger(verbose)
    context.set_config_path(config)


def _parse_date_option(date_str: str | None, option_name: str) -> date | None:
    """Parse a YYYY-MM-DD CLI option, exiting with an error if malformed."""
    if date_str is None:
        return None

    try:
        return date.fromisoformat(date_str)
    except ValueError:
        typer.echo(
            f"Error: Invalid {option_name} '{date_str}'. Use YYYY-MM-DD format.",
            err=True,
        )
        raise typer.Exit(1) from None


def _parse_datetime_option(value: str | None, option_name: str) -> datetime | None:
    """Parse an ISO date or datetime option into naive UTC, exiting if malformed."""
    if value is None:
        return None

    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        typer.echo(
            f"Error: Invalid {option_name} '{value}'. Use YYYY-MM-DD[THH:MM] format.",
            err=True,
        )
        raise typer.Exit(1) from None
    return naive_utc(parsed)


def _load_inputs(file: Path) -> tuple[Snapshot, SchedulingConfig]:
    """Load the snapshot and its settings, exiting with an error on failure."""
    try:
        snapshot = load_snapshot(file)
        settings = discover_settings(file, context.get_config_path())
    except CadenceError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    return snapshot, settings.scheduler


def _write_output(text: str, output: Path | None) -> None:
    if output:
        output.write_text(text, encoding="utf-8")
        typer.echo(f"Output written to {output}")
    else:
        typer.echo(text, nl=False)


@app.command()
def schedule(
    file: Annotated[Path, typer.Argument(help="Path to the snapshot YAML/JSON file")] = Path(
        "snapshot.yaml"
    ),
    *,
    as_of: Annotated[
        str | None,
        typer.Option(
            "--as-of",
            help="Reference time for in-flight tasks (YYYY-MM-DD[THH:MM]). Defaults to now",
        ),
    ] = None,
    output_format: Annotated[
        OutputFormat, typer.Option("--format", "-f", help="Output format")
    ] = OutputFormat.TEXT,
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output file path")] = None,
) -> None:
    """Compute start/end dates for every task in every project."""
    now = _parse_datetime_option(as_of, "as-of time")
    snapshot, config = _load_inputs(file)

    result = SchedulingService(snapshot, now=now, config=config).schedule()
    _write_output(format_schedule(result, snapshot, output_format.value), output)


@app.command()
def check(
    file: Annotated[Path, typer.Argument(help="Path to the snapshot YAML/JSON file")] = Path(
        "snapshot.yaml"
    ),
) -> None:
    """Report dependency cycles and references to unknown tasks."""
    snapshot, _ = _load_inputs(file)
    known_ids = {task.id for task in snapshot.tasks}
    titles = {task.id: task.display_name for task in snapshot.tasks}
    found_cycle = False

    for project in snapshot.projects:
        tasks = [task for task in snapshot.tasks if task.project_id == project.id]
        cycle = detect_cycle(build_dependency_graph(tasks), [task.id for task in tasks])
        if cycle:
            found_cycle = True
            names = " -> ".join(titles.get(task_id, task_id) for task_id in cycle)
            typer.echo(f"{project.display_name}: circular dependency: {names}")
        for task_id, missing in find_dangling_references(tasks, known_ids).items():
            typer.echo(
                f"{project.display_name}: {titles[task_id]} depends on unknown "
                f"task(s) {', '.join(missing)}"
            )

    if found_cycle:
        raise typer.Exit(1)
    typer.echo("No dependency cycles found")


@app.command()
def delays(
    file: Annotated[Path, typer.Argument(help="Path to the snapshot YAML/JSON file")] = Path(
        "snapshot.yaml"
    ),
    *,
    as_of: Annotated[
        str | None,
        typer.Option(
            "--as-of",
            help="Reference time for active tasks (YYYY-MM-DD[THH:MM]). Defaults to now",
        ),
    ] = None,
) -> None:
    """Show how far in-flight tasks have slipped past their estimates."""
    now = _parse_datetime_option(as_of, "as-of time") or datetime.now(timezone.utc)
    snapshot, config = _load_inputs(file)
    workers = {worker.id: worker for worker in snapshot.workers}

    reports: list[DelayReport] = []
    for task in snapshot.tasks:
        worker = workers.get(task.assigned_to) if task.assigned_to else None
        report = calculate_delay(task, worker, now, config.delay)
        if report is not None:
            reports.append(report)

    typer.echo(format_delays_text(reports, snapshot), nl=False)


@app.command()
def capacity(
    file: Annotated[Path, typer.Argument(help="Path to the snapshot YAML/JSON file")] = Path(
        "snapshot.yaml"
    ),
    *,
    start: Annotated[str, typer.Option("--start", help="Window start (YYYY-MM-DD)")],
    end: Annotated[str, typer.Option("--end", help="Window end (YYYY-MM-DD)")],
    as_of: Annotated[
        str | None,
        typer.Option(
            "--as-of",
            help="Reference time for in-flight tasks (YYYY-MM-DD[THH:MM]). Defaults to now",
        ),
    ] = None,
) -> None:
    """Show per-worker load in a window after scheduling everything."""
    window_start = _parse_date_option(start, "start date")
    window_end = _parse_date_option(end, "end date")
    assert window_start is not None and window_end is not None
    if window_end < window_start:
        typer.echo("Error: --end must not be before --start", err=True)
        raise typer.Exit(1)

    now = _parse_datetime_option(as_of, "as-of time")
    snapshot, config = _load_inputs(file)

    result = SchedulingService(snapshot, now=now, config=config).schedule()
    assert result.ledger is not None
    rows = [
        worker_utilization(result.ledger, worker, window_start, window_end)
        for worker in snapshot.workers
    ]
    typer.echo(format_utilization_text(rows, snapshot), nl=False)


def main() -> int:
    """Main entry point."""
    # Typer handles sys.exit() internally
    app()
    return 0


if __name__ == "__main__":
    main()
