"""Delay tracking for tasks already in flight."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from cadence.models import Task, TaskStatus, Worker, naive_utc

from .calendar import is_working_day
from .config import DelayConfig
from .history import last_transition_into, last_transition_out_of


class DelayStatus(str, Enum):
    """How far a task has slipped past its expected duration."""

    ON_TRACK = "on-track"
    WARNING = "warning"
    DANGER = "danger"


@dataclass(frozen=True)
class DelayReport:
    """Elapsed versus expected working days for one task."""

    task_id: str
    delay: float
    status: DelayStatus
    label: str
    expected_duration: float
    elapsed_working_days: float


def count_elapsed_working_days(
    start: datetime, end: datetime, working_days: list[int], config: DelayConfig
) -> float:
    """Working days from ``start`` up to ``end``.

    Full working days before the end day count as 1; the end day counts the
    fraction of the working day that had passed at ``end``.
    """
    if not working_days or end < start:
        return 0.0

    count = 0.0
    current = start.date()
    last = end.date()
    while current < last:
        if is_working_day(current, working_days):
            count += 1
        current += timedelta(days=1)

    if is_working_day(last, working_days):
        hours = end.hour + end.minute / 60 - config.workday_start_hour
        count += max(0.0, min(float(config.workday_hours), hours)) / config.workday_hours

    return count


def classify_delay(delay: float, config: DelayConfig) -> tuple[DelayStatus, str]:
    """Map a delay in days onto a status and a short label."""
    if delay < config.warning_days:
        return DelayStatus.ON_TRACK, "on track"
    label = f"+{delay:.1f}d"
    if delay < config.danger_days:
        return DelayStatus.WARNING, label
    return DelayStatus.DANGER, label


def calculate_delay(
    task: Task, worker: Worker | None, now: datetime, config: DelayConfig | None = None
) -> DelayReport | None:
    """Compare a started task's elapsed working days with its estimate.

    Returns None for tasks that have not started, have no story points or no
    assigned worker, or whose history lacks a move into active.
    """
    config = config or DelayConfig()
    now = naive_utc(now)
    if not task.has_started or not task.is_estimated:
        return None
    if task.assigned_to is None or worker is None or worker.daily_capacity <= 0:
        return None

    start = last_transition_into(task, TaskStatus.ACTIVE)
    if start is None:
        return None

    if task.status == TaskStatus.ACTIVE:
        end: datetime | None = now
    else:
        end = last_transition_out_of(task, TaskStatus.ACTIVE)
    if end is None:
        return None

    elapsed = count_elapsed_working_days(start, end, worker.working_days, config)
    expected = task.story_points / worker.daily_capacity
    delay = elapsed - expected
    status, label = classify_delay(delay, config)

    return DelayReport(
        task_id=task.id,
        delay=delay,
        status=status,
        label=label,
        expected_duration=expected,
        elapsed_working_days=elapsed,
    )
