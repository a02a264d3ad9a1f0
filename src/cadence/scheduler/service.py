"""Multi-project scheduling service."""

from collections.abc import Sequence
from datetime import date, datetime, timedelta, timezone

from cadence.exceptions import CircularDependencyError
from cadence.logger import get_logger
from cadence.models import Project, Snapshot, Task, Worker, naive_utc

from .assignment import find_best_available_worker
from .calendar import compare_dates, max_date
from .config import SchedulingConfig
from .core import ProjectSchedule, ScheduledInterval, ScheduleEntry, ScheduleResult
from .graph import ensure_acyclic, find_dangling_references
from .history import real_interval
from .ledger import Allocation, CapacityLedger, debit_interval, schedule_on_worker
from .ordering import topological_sort
from .validator import SchedulerInputValidator

logger = get_logger()


class SchedulingService:
    """Schedules every project in a snapshot against one shared capacity ledger.

    Projects run strictly in start-date order: a worker booked by an earlier
    project is unavailable to later ones. One cross-project index of scheduled
    intervals serves dependency lookups, so precedence also holds across
    projects. Each run builds its ledger and index from scratch; the snapshot
    is never modified.
    """

    def __init__(
        self,
        snapshot: Snapshot,
        now: datetime | None = None,
        config: SchedulingConfig | None = None,
    ):
        """Initialize scheduling service.

        Args:
            snapshot: Projects, workers and tasks to schedule
            now: Reference time for in-flight tasks, converted to naive UTC
                (defaults to the current time)
            config: Optional scheduling configuration
        """
        self.snapshot = snapshot
        # Snapshot timestamps are naive UTC
        self.now = naive_utc(now or datetime.now(timezone.utc))
        self.config = config or SchedulingConfig()
        self.workers: dict[str, Worker] = {worker.id: worker for worker in snapshot.workers}
        self.validator = SchedulerInputValidator(self.workers)
        self._known_task_ids = {task.id for task in snapshot.tasks}

    def schedule(self) -> ScheduleResult:
        """Schedule all projects.

        Returns:
            ScheduleResult with per-project entries and warnings
        """
        ledger = CapacityLedger()
        index: dict[str, ScheduledInterval] = {}

        # Result keeps the snapshot's project order; scheduling order is by start date
        projects: dict[str, ProjectSchedule] = {
            project.id: ProjectSchedule(project_id=project.id)
            for project in self.snapshot.projects
        }

        tasks_by_project: dict[str, list[Task]] = {}
        for task in self.snapshot.tasks:
            if task.project_id not in projects:
                logger.checks(f"Ignoring task {task.id}: unknown project {task.project_id}")
                continue
            tasks_by_project.setdefault(task.project_id, []).append(task)

        dated: list[Project] = []
        for project in self.snapshot.projects:
            if project.start_date is None:
                projects[project.id].warnings.append(
                    f'Project "{project.display_name}" has no start date'
                )
                logger.changes(f"Project {project.id}: skipped, no start date")
            else:
                dated.append(project)

        for project in sorted(dated, key=lambda p: p.start_date or date.min):
            projects[project.id] = self._schedule_project(
                project, tasks_by_project.get(project.id, []), ledger, index
            )

        return ScheduleResult(projects=projects, ledger=ledger)

    def _schedule_project(  # noqa: PLR0912 - one branch per task outcome
        self,
        project: Project,
        tasks: Sequence[Task],
        ledger: CapacityLedger,
        index: dict[str, ScheduledInterval],
    ) -> ProjectSchedule:
        """Schedule one project's tasks into the shared ledger and index."""
        assert project.start_date is not None
        result = ProjectSchedule(project_id=project.id)
        logger.changes(f"Project {project.id}: {len(tasks)} tasks from {project.start_date}")

        valid, warnings = self.validator.filter_project_tasks(tasks)
        result.warnings.extend(warnings)
        if not valid:
            return result

        titles = {task.id: task.display_name for task in self.snapshot.tasks}
        for task_id, missing in find_dangling_references(valid, self._known_task_ids).items():
            result.warnings.append(
                f'Task "{titles[task_id]}" depends on unknown task(s) '
                f"{', '.join(missing)}; those dependencies are ignored"
            )

        try:
            ensure_acyclic(valid)
        except CircularDependencyError as e:
            result.warnings.append(str(e))
            logger.changes(f"Project {project.id}: aborted, {e}")
            return result

        order = topological_sort(valid)
        ordered_ids = {task.id for task in order}
        for task in valid:
            if task.id not in ordered_ids:
                result.warnings.append(
                    f'Task "{task.display_name}" could not be ordered by its dependencies '
                    "and was not scheduled"
                )

        entries: dict[str, ScheduleEntry] = {}

        # In-flight work first, so simulated tasks see those commitments
        for task in order:
            entry = self._reconcile(task, ledger, index)
            if entry is not None:
                entries[task.id] = entry

        for task in order:
            if task.id in entries:
                continue
            if not task.is_estimated:
                result.warnings.append(
                    f'Task "{task.display_name}" has no story points and no usable history'
                )
                continue
            entry = self._simulate(task, project, ledger, index, result.warnings)
            entries[task.id] = entry

        result.entries = [entries[task.id] for task in order if task.id in entries]
        return result

    def _reconcile(
        self,
        task: Task,
        ledger: CapacityLedger,
        index: dict[str, ScheduledInterval],
    ) -> ScheduleEntry | None:
        """Record a started task's real interval and debit its worker."""
        worker = self.workers.get(task.assigned_to) if task.assigned_to else None
        interval = real_interval(task, worker, self.now)
        if interval is None:
            return None

        if worker is not None:
            debit_interval(
                ledger, worker, interval.start_date, interval.end_date, task.story_points
            )
        index[task.id] = ScheduledInterval(
            start_date=interval.start_date,
            end_date=interval.end_date,
            assigned_to=task.assigned_to,
            is_real=True,
        )
        logger.changes(
            f"  Reconciled task {task.id} ({task.status.value}): "
            f"{interval.start_date} -> {interval.end_date}"
        )
        return ScheduleEntry(
            task_id=task.id,
            start_date=interval.start_date,
            end_date=interval.end_date,
            assigned_to=task.assigned_to,
            is_real=True,
        )

    def _simulate(  # noqa: PLR0913 - shared run state is passed explicitly
        self,
        task: Task,
        project: Project,
        ledger: CapacityLedger,
        index: dict[str, ScheduledInterval],
        warnings: list[str],
    ) -> ScheduleEntry:
        """Pick a worker for a not-yet-started task and place it on the calendar."""
        assert project.start_date is not None
        earliest = self._earliest_start(task, project.start_date, index)
        floors = self._worker_floors(index)
        logger.checks(f"    Considering {task.id}: earliest start {earliest}")

        worker: Worker | None
        allocation: Allocation | None
        is_simulated = task.assigned_to is None

        if task.assigned_to is not None:
            worker = self.workers[task.assigned_to]
            start_at = max_date(earliest, floors.get(worker.id)) or earliest
            allocation = self._place(task, start_at, ledger, worker)
        else:
            choice = find_best_available_worker(
                task,
                earliest,
                ledger,
                self.snapshot.workers,
                project.assigned_users,
                start_floors=floors,
                prefer_preferred=self.config.prefer_project_workers,
                max_days=self.config.max_allocation_days,
                search_days=self.config.working_day_search_days,
            )
            if choice is None:
                warnings.append(
                    f'Task "{task.display_name}" could not be assigned: no worker is available'
                )
                logger.changes(f"  Task {task.id} needs assignment")
                return ScheduleEntry(
                    task_id=task.id,
                    start_date=None,
                    end_date=None,
                    assigned_to=None,
                    needs_assignment=True,
                )
            worker = choice.worker
            allocation = self._place(task, choice.allocation.start_date, ledger, worker)
            if self.config.warn_on_simulated_assignment:
                warnings.append(
                    f'Task "{task.display_name}" is unassigned - simulated with '
                    f"{worker.display_name}"
                )

        if allocation is None:
            warnings.append(f'Could not schedule task "{task.display_name}"')
            logger.changes(f"  Task {task.id} could not be placed on {worker.id}")
            return ScheduleEntry(
                task_id=task.id,
                start_date=None,
                end_date=None,
                assigned_to=worker.id,
                needs_assignment=True,
            )

        index[task.id] = ScheduledInterval(
            start_date=allocation.start_date,
            end_date=allocation.end_date,
            assigned_to=worker.id,
        )
        logger.changes(
            f"  Scheduled task {task.id} on {worker.id}"
            f"{' (simulated)' if is_simulated else ''}: "
            f"{allocation.start_date} -> {allocation.end_date}"
        )

        if project.end_date and compare_dates(allocation.end_date, project.end_date) > 0:
            warnings.append(
                f'Task "{task.display_name}" extends past the project deadline '
                f"({allocation.end_date} > {project.end_date})"
            )

        return ScheduleEntry(
            task_id=task.id,
            start_date=allocation.start_date,
            end_date=allocation.end_date,
            assigned_to=worker.id,
            is_simulated=is_simulated,
        )

    def _place(
        self, task: Task, start_at: date, ledger: CapacityLedger, worker: Worker
    ) -> Allocation | None:
        return schedule_on_worker(
            task,
            start_at,
            ledger,
            worker,
            max_days=self.config.max_allocation_days,
            search_days=self.config.working_day_search_days,
        )

    @staticmethod
    def _earliest_start(
        task: Task, project_start: date, index: dict[str, ScheduledInterval]
    ) -> date:
        """Latest of the project start and the day after each scheduled dependency.

        Dependencies without a scheduled interval impose no constraint.
        """
        earliest = project_start
        for dep_id in task.dependencies:
            interval = index.get(dep_id)
            if interval is not None:
                earliest = max(earliest, interval.end_date + timedelta(days=1))
        return earliest

    @staticmethod
    def _worker_floors(index: dict[str, ScheduledInterval]) -> dict[str, date]:
        """Per worker, the day after their latest in-flight or finished task."""
        floors: dict[str, date] = {}
        for interval in index.values():
            if not interval.is_real or interval.assigned_to is None:
                continue
            day_after = interval.end_date + timedelta(days=1)
            floors[interval.assigned_to] = max(
                floors.get(interval.assigned_to, day_after), day_after
            )
        return floors


def calculate_all_projects_schedules(
    projects: Sequence[Project],
    tasks: Sequence[Task],
    workers: Sequence[Worker],
    *,
    now: datetime | None = None,
    config: SchedulingConfig | None = None,
) -> ScheduleResult:
    """Schedule every project in one pass (convenience wrapper around SchedulingService)."""
    snapshot = Snapshot(projects=list(projects), tasks=list(tasks), workers=list(workers))
    return SchedulingService(snapshot, now=now, config=config).schedule()
