"""Core dataclasses for scheduling results."""

from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .ledger import CapacityLedger


def _default_str_list() -> list[str]:
    return []


def _default_entries() -> "list[ScheduleEntry]":
    return []


def _format_date(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class ScheduleEntry:
    """Computed dates and worker for one task.

    Dates are None when the task could not be placed (``needs_assignment``).
    """

    task_id: str
    start_date: date | None
    end_date: date | None
    assigned_to: str | None
    is_simulated: bool = False  # Worker chosen by best-fit search
    is_real: bool = False  # Dates observed from the movement log
    needs_assignment: bool = False  # No worker could take the task

    def to_dict(self) -> dict[str, Any]:
        """Plain-data form for YAML/JSON output."""
        return {
            "task_id": self.task_id,
            "start_date": _format_date(self.start_date),
            "end_date": _format_date(self.end_date),
            "assigned_to": self.assigned_to,
            "is_simulated": self.is_simulated,
            "is_real": self.is_real,
            "needs_assignment": self.needs_assignment,
        }


@dataclass(frozen=True)
class ScheduledInterval:
    """Entry in the cross-project index used for dependency lookups."""

    start_date: date
    end_date: date
    assigned_to: str | None
    is_real: bool = False


@dataclass
class ProjectSchedule:
    """Schedule entries and warnings for a single project."""

    project_id: str
    entries: list[ScheduleEntry] = field(default_factory=_default_entries)
    warnings: list[str] = field(default_factory=_default_str_list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "project_id": self.project_id,
            "entries": [entry.to_dict() for entry in self.entries],
            "warnings": list(self.warnings),
        }


@dataclass
class ScheduleResult:
    """Complete result of one scheduling run, keyed by project ID.

    ``ledger`` holds the capacity committed during the run for utilization
    reporting; it is not part of the serialized result.
    """

    projects: dict[str, ProjectSchedule]
    ledger: "CapacityLedger | None" = None

    def entries_for(self, project_id: str) -> list[ScheduleEntry]:
        schedule = self.projects.get(project_id)
        return list(schedule.entries) if schedule else []

    def warnings_for(self, project_id: str) -> list[str]:
        schedule = self.projects.get(project_id)
        return list(schedule.warnings) if schedule else []

    def entry_for(self, task_id: str) -> ScheduleEntry | None:
        """Find a task's entry in any project."""
        for schedule in self.projects.values():
            for entry in schedule.entries:
                if entry.task_id == task_id:
                    return entry
        return None

    def all_entries(self) -> list[ScheduleEntry]:
        return [entry for schedule in self.projects.values() for entry in schedule.entries]

    def all_warnings(self) -> list[str]:
        return [warning for schedule in self.projects.values() for warning in schedule.warnings]

    def to_dict(self) -> dict[str, Any]:
        return {
            "projects": [schedule.to_dict() for schedule in self.projects.values()],
        }
