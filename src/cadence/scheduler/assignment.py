"""Best-available-worker search for unassigned tasks."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date

from cadence.logger import get_logger
from cadence.models import Task, Worker

from .calendar import DEFAULT_SEARCH_DAYS, max_date
from .ledger import DEFAULT_MAX_ALLOCATION_DAYS, Allocation, CapacityLedger, plan_allocation

logger = get_logger()


@dataclass(frozen=True)
class WorkerChoice:
    """A worker picked by best-fit search and the simulated placement."""

    worker: Worker
    allocation: Allocation


def candidate_tiers(
    workers: Sequence[Worker], preferred_ids: Sequence[str], *, prefer_preferred: bool = True
) -> list[list[Worker]]:
    """Split the worker universe into search tiers.

    The first tier holds the preferred workers (in preference order), the second
    everyone else (in universe order). Workers that cannot receive allocation
    are left out of both.
    """
    eligible = [worker for worker in workers if worker.is_schedulable]
    if not prefer_preferred:
        return [eligible]

    by_id = {worker.id: worker for worker in eligible}
    preferred_order = [
        worker_id for worker_id in dict.fromkeys(preferred_ids) if worker_id in by_id
    ]
    preferred = [by_id[worker_id] for worker_id in preferred_order]
    others = [worker for worker in eligible if worker.id not in preferred_order]
    return [tier for tier in (preferred, others) if tier]


def _evaluate_tier(  # noqa: PLR0913 - search bounds are keyword-only
    task: Task,
    earliest_start: date,
    ledger: CapacityLedger,
    tier: Sequence[Worker],
    *,
    start_floors: Mapping[str, date],
    max_days: int,
    search_days: int,
) -> WorkerChoice | None:
    best: WorkerChoice | None = None

    for worker in tier:
        start_at = max_date(earliest_start, start_floors.get(worker.id)) or earliest_start
        allocation = plan_allocation(
            task.story_points,
            start_at,
            ledger,
            worker,
            max_days=max_days,
            search_days=search_days,
        )
        if allocation is None:
            logger.checks(f"        {worker.id}: cannot complete {task.id}")
            continue

        logger.checks(
            f"        {worker.id}: start={allocation.start_date}, end={allocation.end_date}"
        )
        if best is None or (allocation.start_date, allocation.end_date) < (
            best.allocation.start_date,
            best.allocation.end_date,
        ):
            best = WorkerChoice(worker=worker, allocation=allocation)

    return best


def find_best_available_worker(  # noqa: PLR0913 - search bounds are keyword-only
    task: Task,
    earliest_start: date,
    ledger: CapacityLedger,
    workers: Sequence[Worker],
    preferred_ids: Sequence[str],
    *,
    start_floors: Mapping[str, date] | None = None,
    prefer_preferred: bool = True,
    max_days: int = DEFAULT_MAX_ALLOCATION_DAYS,
    search_days: int = DEFAULT_SEARCH_DAYS,
) -> WorkerChoice | None:
    """Simulate the task on every eligible worker and keep the earliest starter.

    Nothing is committed to ``ledger``. Candidates must be able to complete the
    whole task within the search bound. Among those, the earliest start wins,
    then the earliest end, then candidate order. The preferred tier is searched
    first; the rest of the universe is only tried if nobody there succeeds.

    Args:
        task: Task without a fixed assignee
        earliest_start: Earliest day from dependencies and project start
        ledger: Shared commitments (read only here)
        workers: The whole worker universe
        preferred_ids: The project's preferred workers
        start_floors: Per-worker earliest start (e.g. after work already in flight)
        prefer_preferred: Search the preferred tier first
        max_days: Allocation walk bound
        search_days: First-working-day search bound

    Returns:
        The chosen worker and simulated allocation, or None if nobody fits
    """
    floors = start_floors or {}
    logger.checks(f"      Finding worker for {task.id} from {earliest_start}")

    for tier in candidate_tiers(workers, preferred_ids, prefer_preferred=prefer_preferred):
        choice = _evaluate_tier(
            task,
            earliest_start,
            ledger,
            tier,
            start_floors=floors,
            max_days=max_days,
            search_days=search_days,
        )
        if choice is not None:
            logger.checks(f"      Best worker for {task.id}: {choice.worker.id}")
            return choice

    logger.checks(f"      No worker can take {task.id}")
    return None
