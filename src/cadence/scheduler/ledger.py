"""Capacity ledger and per-worker allocation."""

from dataclasses import dataclass
from datetime import date, timedelta

from cadence.logger import debug_enabled, get_logger
from cadence.models import POINTS_EPSILON, Task, Worker

from .calendar import DEFAULT_SEARCH_DAYS, first_working_day, is_working_day, working_days_between

logger = get_logger()

DEFAULT_MAX_ALLOCATION_DAYS = 365

# Absorbs float residue from fractional capacities (e.g. 0.1 + 0.2)
_EPSILON = POINTS_EPSILON


@dataclass(frozen=True)
class Allocation:
    """Where a task's effort lands on one worker's calendar."""

    start_date: date
    end_date: date
    daily_points: dict[date, float]  # Points placed per day

    @property
    def total_points(self) -> float:
        return sum(self.daily_points.values())


class CapacityLedger:
    """Points already committed per worker per calendar day.

    Commitments only grow within a scheduling run and never push a day past
    the worker's daily capacity: every write goes through allocate_capacity(),
    which clamps to the remaining headroom.
    """

    def __init__(self) -> None:
        self._commitments: dict[str, dict[date, float]] = {}

    def committed(self, worker_id: str, day: date) -> float:
        """Points already committed for ``worker_id`` on ``day``."""
        return self._commitments.get(worker_id, {}).get(day, 0.0)

    def headroom(self, worker: Worker, day: date) -> float:
        """Points still available for ``worker`` on ``day`` (never negative)."""
        return max(0.0, worker.daily_capacity - self.committed(worker.id, day))

    def worker_days(self, worker_id: str) -> dict[date, float]:
        """Copy of a worker's commitments, keyed by day."""
        return dict(self._commitments.get(worker_id, {}))

    def workers(self) -> list[str]:
        """IDs of workers with at least one commitment."""
        return sorted(self._commitments)

    def total_committed(self, worker_id: str, start: date, end: date) -> float:
        """Sum of a worker's commitments in the inclusive range [start, end]."""
        return sum(
            points
            for day, points in self._commitments.get(worker_id, {}).items()
            if start <= day <= end
        )

    def _add(self, worker_id: str, day: date, points: float) -> None:
        days = self._commitments.setdefault(worker_id, {})
        days[day] = days.get(day, 0.0) + points


def allocate_capacity(ledger: CapacityLedger, worker: Worker, day: date, points: float) -> float:
    """Commit up to ``points`` for ``worker`` on ``day``.

    Returns:
        The amount actually committed: min(points, remaining headroom), never negative
    """
    amount = min(max(0.0, points), ledger.headroom(worker, day))
    if amount > 0:
        ledger._add(worker.id, day, amount)  # noqa: SLF001 - ledger write path
    return amount


def plan_allocation(  # noqa: PLR0913 - search bounds are keyword-only
    points: float,
    earliest_start: date,
    ledger: CapacityLedger,
    worker: Worker,
    *,
    max_days: int = DEFAULT_MAX_ALLOCATION_DAYS,
    search_days: int = DEFAULT_SEARCH_DAYS,
) -> Allocation | None:
    """Work out where ``points`` would land without touching the ledger.

    Starting at the worker's first working day on or after ``earliest_start``,
    walk forward one calendar day at a time, skipping non-working and fully
    booked days, and greedily fill whatever headroom each day has.

    Args:
        points: Effort to place
        earliest_start: First day the task may use
        ledger: Current commitments (read only)
        worker: Worker whose calendar and budget apply
        max_days: Days examined before giving up
        search_days: Bound for finding the first working day

    Returns:
        The planned Allocation, or None if the effort does not fit within the bound
    """
    if not worker.is_schedulable or points <= _EPSILON:
        return None

    current = first_working_day(earliest_start, worker.working_days, search_days)
    if current is None:
        logger.checks(f"        {worker.id}: no working day near {earliest_start}")
        return None

    remaining = points
    placed: dict[date, float] = {}
    attempts = 0

    while remaining > _EPSILON and attempts < max_days:
        attempts += 1
        if is_working_day(current, worker.working_days):
            available = ledger.headroom(worker, current)
            if available > _EPSILON:
                amount = min(available, remaining)
                placed[current] = amount
                remaining -= amount
                if remaining <= _EPSILON:
                    break
        current += timedelta(days=1)

    if remaining > _EPSILON or not placed:
        logger.checks(
            f"        {worker.id}: {remaining:g} points left after {max_days} days"
        )
        return None

    days = sorted(placed)
    return Allocation(start_date=days[0], end_date=days[-1], daily_points=placed)


def schedule_on_worker(  # noqa: PLR0913 - search bounds are keyword-only
    task: Task,
    earliest_start: date,
    ledger: CapacityLedger,
    worker: Worker,
    *,
    max_days: int = DEFAULT_MAX_ALLOCATION_DAYS,
    search_days: int = DEFAULT_SEARCH_DAYS,
) -> Allocation | None:
    """Place a task's effort on a worker's calendar and commit it.

    Returns:
        The committed Allocation (first and last day effort was placed), or None
        if the effort could not be fully placed, in which case nothing is committed
    """
    allocation = plan_allocation(
        task.story_points,
        earliest_start,
        ledger,
        worker,
        max_days=max_days,
        search_days=search_days,
    )
    if allocation is None:
        return None

    for day, points in allocation.daily_points.items():
        allocate_capacity(ledger, worker, day, points)
        if debug_enabled():
            logger.debug(
                f"        {day}: {task.id} +{points:g} on {worker.id} "
                f"({ledger.committed(worker.id, day):g}/{worker.daily_capacity:g})"
            )

    return allocation


def debit_interval(
    ledger: CapacityLedger, worker: Worker, start: date, end: date, points: float
) -> float:
    """Spread ``points`` evenly over a worker's working days in [start, end].

    Used for intervals observed from history, so later tasks for the same worker
    start after the commitment. A range with no working days puts everything on
    ``start``. Each day is clamped to the remaining headroom.

    Returns:
        Total points committed
    """
    if points <= 0 or not worker.is_schedulable:
        return 0.0

    days = working_days_between(start, end, worker.working_days) or [start]
    share = points / len(days)
    return sum(allocate_capacity(ledger, worker, day, share) for day in days)
