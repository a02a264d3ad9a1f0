"""Per-project input filtering ahead of scheduling."""

from collections.abc import Mapping, Sequence

from cadence.logger import get_logger
from cadence.models import Task, Worker

logger = get_logger()


class SchedulerInputValidator:
    """Decides which of a project's tasks can enter scheduling.

    Excluded tasks are reported through warnings rather than exceptions so one
    bad record never stops the rest of the run.
    """

    def __init__(self, workers: Mapping[str, Worker]):
        """Initialize with the worker universe.

        Args:
            workers: Worker ID -> Worker
        """
        self.workers = workers

    def check_assignee(self, task: Task) -> str | None:
        """Return a warning if the task's fixed worker cannot take work, else None."""
        if task.assigned_to is None:
            return None
        worker = self.workers.get(task.assigned_to)
        if worker is None:
            return (
                f'Task "{task.display_name}" is assigned to unknown worker "{task.assigned_to}"'
            )
        if not worker.working_days:
            return f"Worker {worker.display_name} has no working days configured"
        if worker.daily_capacity <= 0:
            return f"Worker {worker.display_name} has an invalid daily capacity"
        return None

    def filter_project_tasks(self, tasks: Sequence[Task]) -> tuple[list[Task], list[str]]:
        """Filter one project's tasks.

        - Not-started tasks without story points are excluded and counted once.
        - Started tasks are kept without points; their dates come from history.
        - Tasks whose fixed worker is unknown or has no calendar/capacity are excluded.

        Returns:
            Tuple of (tasks to schedule, warnings)
        """
        valid: list[Task] = []
        warnings: list[str] = []
        unestimated = 0

        for task in tasks:
            if not task.is_estimated and not task.has_started:
                unestimated += 1
                logger.checks(f"    Skipping {task.id}: no story points")
                continue

            problem = self.check_assignee(task)
            if problem is not None:
                warnings.append(problem)
                logger.checks(f"    Skipping {task.id}: {problem}")
                continue

            valid.append(task)

        if unestimated:
            warnings.append(f"{unestimated} task(s) without story points")

        return valid, warnings
