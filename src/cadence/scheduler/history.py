"""Reconcile already-started tasks with their observed status history."""

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from cadence.logger import get_logger
from cadence.models import Movement, Task, TaskStatus, Worker

logger = get_logger()


@dataclass(frozen=True)
class RealInterval:
    """Dates derived from the movement log instead of simulation."""

    start_date: date
    end_date: date
    provisional: bool = False  # End is "now" because the expected length is unknown


def _status_changes(task: Task) -> list[Movement]:
    """Status transitions, oldest first (reassignments are ignored)."""
    changes = [entry for entry in task.movement_history if entry.is_status_change]
    return sorted(changes, key=lambda entry: entry.timestamp)


def last_transition_into(task: Task, status: TaskStatus) -> datetime | None:
    """Timestamp of the most recent move into ``status``."""
    for entry in reversed(_status_changes(task)):
        if entry.to_status == status:
            return entry.timestamp
    return None


def last_transition_out_of(task: Task, status: TaskStatus) -> datetime | None:
    """Timestamp of the most recent move out of ``status``."""
    for entry in reversed(_status_changes(task)):
        if entry.from_status == status and entry.to_status != status:
            return entry.timestamp
    return None


def expected_days(task: Task, worker: Worker | None) -> int | None:
    """Whole days the task should take: ceil(points / daily capacity)."""
    if worker is None or worker.daily_capacity <= 0 or task.story_points <= 0:
        return None
    return math.ceil(task.story_points / worker.daily_capacity)


def real_interval(task: Task, worker: Worker | None, now: datetime) -> RealInterval | None:
    """Derive a started task's real interval from its movement log.

    - active: starts at the last move into active and ends ceil(points / capacity)
      days later, or provisionally ``now`` when worker or points are unknown
    - in-review and done: start at the last move into active and end at the last
      move into in-review, when the worker's effort stopped
    - anything else: no real interval, the task is simulated

    A started task whose log lacks the needed transitions also yields None and
    falls back to simulation.
    """
    if not task.has_started:
        return None

    started = last_transition_into(task, TaskStatus.ACTIVE)
    if started is None:
        logger.checks(f"    {task.id}: {task.status.value} without a move into active")
        return None
    start = started.date()

    if task.status == TaskStatus.ACTIVE:
        days = expected_days(task, worker)
        if days is None:
            return RealInterval(start_date=start, end_date=max(start, now.date()), provisional=True)
        return RealInterval(start_date=start, end_date=start + timedelta(days=days))

    reviewed = last_transition_into(task, TaskStatus.IN_REVIEW)
    if reviewed is None:
        logger.checks(f"    {task.id}: {task.status.value} without a move into in-review")
        return None
    if reviewed < started:
        logger.checks(f"    {task.id}: reopened after review, history is not an interval")
        return None
    return RealInterval(start_date=start, end_date=reviewed.date())
