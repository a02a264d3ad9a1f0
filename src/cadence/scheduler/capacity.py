"""Capacity and utilization reporting."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from enum import Enum

from cadence.models import Worker

from .calendar import count_working_days
from .ledger import CapacityLedger

NEAR_LIMIT_PERCENT = 80
OVER_CAPACITY_PERCENT = 100


class CapacityStatus(str, Enum):
    NORMAL = "normal"
    NEAR_LIMIT = "near-limit"
    OVER_CAPACITY = "over-capacity"


@dataclass(frozen=True)
class WorkerUtilization:
    """Committed versus available points for one worker over a window."""

    worker_id: str
    capacity: float
    committed: float
    percentage: int
    status: CapacityStatus

    @property
    def remaining(self) -> float:
        return max(0.0, self.capacity - self.committed)


def period_capacity(worker: Worker, start: date, end: date) -> float:
    """Points a worker can deliver in the inclusive range [start, end]."""
    if not worker.is_schedulable or start > end:
        return 0.0
    return count_working_days(start, end, worker.working_days) * worker.daily_capacity


def team_capacity(workers: Iterable[Worker], start: date, end: date) -> float:
    return sum(period_capacity(worker, start, end) for worker in workers)


def capacity_percentage(points: float, capacity: float) -> int:
    """Rounded share of capacity used; 0 when there is no capacity."""
    if capacity <= 0:
        return 0
    return round(points / capacity * 100)


def capacity_status(percentage: int) -> CapacityStatus:
    if percentage >= OVER_CAPACITY_PERCENT:
        return CapacityStatus.OVER_CAPACITY
    if percentage >= NEAR_LIMIT_PERCENT:
        return CapacityStatus.NEAR_LIMIT
    return CapacityStatus.NORMAL


def worker_utilization(
    ledger: CapacityLedger, worker: Worker, start: date, end: date
) -> WorkerUtilization:
    """Utilization of ``worker`` in [start, end] from a ledger's commitments."""
    capacity = period_capacity(worker, start, end)
    committed = ledger.total_committed(worker.id, start, end)
    percentage = capacity_percentage(committed, capacity)
    return WorkerUtilization(
        worker_id=worker.id,
        capacity=capacity,
        committed=committed,
        percentage=percentage,
        status=capacity_status(percentage),
    )
