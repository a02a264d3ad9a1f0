"""Rendering of scheduling results as text, YAML or JSON."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import yaml

if TYPE_CHECKING:
    from .models import Snapshot
    from .scheduler.capacity import WorkerUtilization
    from .scheduler.core import ScheduleEntry, ScheduleResult
    from .scheduler.delay import DelayReport

OUTPUT_FORMATS = ("text", "yaml", "json")


def _entry_flags(entry: ScheduleEntry) -> str:
    flags: list[str] = []
    if entry.is_real:
        flags.append("real")
    if entry.is_simulated:
        flags.append("simulated")
    if entry.needs_assignment:
        flags.append("needs assignment")
    return f" [{', '.join(flags)}]" if flags else ""


def format_schedule_text(result: ScheduleResult, snapshot: Snapshot) -> str:
    """Human-readable schedule: one section per project."""
    project_names = {project.id: project.display_name for project in snapshot.projects}
    task_names = {task.id: task.display_name for task in snapshot.tasks}
    lines: list[str] = []

    for project_id, schedule in result.projects.items():
        lines.append(f"## {project_names.get(project_id, project_id)}")
        if not schedule.entries:
            lines.append("  (no scheduled tasks)")
        for entry in schedule.entries:
            name = task_names.get(entry.task_id, entry.task_id)
            if entry.start_date is None or entry.end_date is None:
                dates = "unscheduled"
            else:
                dates = f"{entry.start_date} -> {entry.end_date}"
            worker = entry.assigned_to or "-"
            lines.append(f"  {name}: {dates} ({worker}){_entry_flags(entry)}")
        for warning in schedule.warnings:
            lines.append(f"  ! {warning}")
        lines.append("")

    return "\n".join(lines).rstrip() + "\n"


def format_schedule(result: ScheduleResult, snapshot: Snapshot, output_format: str) -> str:
    """Render a result in one of OUTPUT_FORMATS."""
    if output_format == "text":
        return format_schedule_text(result, snapshot)
    if output_format == "yaml":
        return yaml.safe_dump(result.to_dict(), default_flow_style=False, sort_keys=False)
    if output_format == "json":
        return json.dumps(result.to_dict(), indent=2) + "\n"
    raise ValueError(f"Unknown output format: {output_format}")


def format_delays_text(reports: list[DelayReport], snapshot: Snapshot) -> str:
    """One line per in-flight task with its delay status."""
    if not reports:
        return "No in-flight tasks with delay information\n"
    task_names = {task.id: task.display_name for task in snapshot.tasks}
    lines = [
        f"{task_names.get(report.task_id, report.task_id)}: {report.status.value} "
        f"({report.label}; elapsed {report.elapsed_working_days:.1f}d, "
        f"expected {report.expected_duration:.1f}d)"
        for report in reports
    ]
    return "\n".join(lines) + "\n"


def format_utilization_text(rows: list[WorkerUtilization], snapshot: Snapshot) -> str:
    """One line per worker with committed and available points."""
    if not rows:
        return "No workers\n"
    worker_names = {worker.id: worker.display_name for worker in snapshot.workers}
    lines = [
        f"{worker_names.get(row.worker_id, row.worker_id)}: {row.committed:g}/{row.capacity:g} "
        f"points ({row.percentage}%, {row.status.value})"
        for row in rows
    ]
    return "\n".join(lines) + "\n"
