"""Tests for the multi-project scheduling service."""

from datetime import date, datetime, timedelta, timezone

from cadence.models import Project, Snapshot, Task, TaskStatus, Worker
from cadence.scheduler import (
    ScheduleResult,
    SchedulingConfig,
    SchedulingService,
    calculate_all_projects_schedules,
)
from tests.conftest import MONDAY, make_project, make_task, make_worker, moves, started_task

NOW = datetime(2025, 1, 10, 12, 0)
TUESDAY = date(2025, 1, 7)
WEDNESDAY = date(2025, 1, 8)
THURSDAY = date(2025, 1, 9)


def run(
    projects: list[Project],
    tasks: list[Task],
    workers: list[Worker],
    config: SchedulingConfig | None = None,
) -> ScheduleResult:
    snapshot = Snapshot(projects=projects, tasks=tasks, workers=workers)
    return SchedulingService(snapshot, now=NOW, config=config).schedule()


class TestSingleProject:
    def test_sequential_tasks_on_one_worker(self) -> None:
        tasks = [make_task("a", assigned_to="alice"), make_task("b", assigned_to="alice")]

        result = run([make_project()], tasks, [make_worker()])

        a, b = result.entries_for("p1")
        assert (a.task_id, a.start_date, a.end_date) == ("a", MONDAY, MONDAY)
        assert (b.task_id, b.start_date, b.end_date) == ("b", TUESDAY, TUESDAY)
        assert not a.is_simulated and not b.is_simulated
        assert result.warnings_for("p1") == []

    def test_dependency_starts_after_prerequisite(self) -> None:
        tasks = [
            make_task("a", 2, assigned_to="alice"),
            make_task("b", assigned_to="bob", dependencies=["a"]),
        ]

        result = run([make_project()], tasks, [make_worker("alice"), make_worker("bob")])

        entry = result.entry_for("b")
        assert entry is not None
        assert entry.start_date == WEDNESDAY

    def test_priority_decides_order_on_shared_worker(self) -> None:
        tasks = [
            make_task("a", assigned_to="alice", priority=2),
            make_task("b", assigned_to="alice", priority=1),
        ]

        result = run([make_project()], tasks, [make_worker()])

        assert [entry.task_id for entry in result.entries_for("p1")] == ["b", "a"]
        b = result.entry_for("b")
        assert b is not None and b.start_date == MONDAY

    def test_project_starting_on_weekend(self) -> None:
        project = make_project(start_date=date(2025, 1, 11))

        result = run([project], [make_task("a", assigned_to="alice")], [make_worker()])

        entry = result.entry_for("a")
        assert entry is not None
        assert entry.start_date == date(2025, 1, 13)

    def test_dependencies_always_finish_first(self) -> None:
        tasks = [
            make_task("d", 2, dependencies=["b", "c"]),
            make_task("c", 3, dependencies=["a"]),
            make_task("b", 1, dependencies=["a"]),
            make_task("a", 2),
        ]
        workers = [make_worker("alice"), make_worker("bob", daily_capacity=2)]

        result = run([make_project()], tasks, workers)

        entries = {entry.task_id: entry for entry in result.entries_for("p1")}
        assert set(entries) == {"a", "b", "c", "d"}
        for task in tasks:
            for dep_id in task.dependencies:
                dep_end = entries[dep_id].end_date
                start = entries[task.id].start_date
                assert dep_end is not None and start is not None
                assert dep_end < start


class TestWarnings:
    def test_cycle_aborts_project(self) -> None:
        tasks = [
            make_task("a", dependencies=["b"]),
            make_task("b", dependencies=["a"]),
            make_task("c"),
        ]

        result = run([make_project()], tasks, [make_worker()])

        assert result.entries_for("p1") == []
        assert result.warnings_for("p1") == ["Circular dependency detected: A -> B -> A"]

    def test_cycle_does_not_affect_other_projects(self) -> None:
        tasks = [
            make_task("a", dependencies=["b"]),
            make_task("b", dependencies=["a"]),
            make_task("c", project_id="p2", assigned_to="alice"),
        ]

        result = run([make_project(), make_project("p2")], tasks, [make_worker()])

        entry = result.entry_for("c")
        assert entry is not None
        assert entry.start_date == MONDAY
        assert result.all_entries() == [entry]
        assert result.all_warnings() == ["Circular dependency detected: A -> B -> A"]

    def test_project_without_start_date(self) -> None:
        result = run(
            [make_project(start_date=None)], [make_task("a", assigned_to="alice")], [make_worker()]
        )

        assert result.entries_for("p1") == []
        assert result.warnings_for("p1") == ['Project "p1" has no start date']

    def test_unestimated_tasks(self) -> None:
        tasks = [make_task("a", 0), make_task("b", 0), make_task("c", assigned_to="alice")]

        result = run([make_project()], tasks, [make_worker()])

        assert [entry.task_id for entry in result.entries_for("p1")] == ["c"]
        assert result.warnings_for("p1") == ["2 task(s) without story points"]

    def test_negligible_points_count_as_unestimated(self) -> None:
        tasks = [make_task("a", 1e-12, assigned_to="alice"), make_task("b", assigned_to="alice")]

        result = run([make_project()], tasks, [make_worker()])

        entry = result.entry_for("b")
        assert entry is not None and entry.start_date == MONDAY
        assert result.entry_for("a") is None
        assert result.warnings_for("p1") == ["1 task(s) without story points"]

    def test_unreadable_start_date_skips_only_that_project(self) -> None:
        snapshot = Snapshot.model_validate(
            {
                "projects": [
                    {"id": "p1", "startDate": "soon"},
                    {"id": "p2", "startDate": "2025-01-06"},
                ],
                "workers": [make_worker()],
                "tasks": [
                    make_task("a", assigned_to="alice"),
                    make_task("b", project_id="p2", assigned_to="alice"),
                ],
            }
        )

        result = SchedulingService(snapshot, now=NOW).schedule()

        assert result.warnings_for("p1") == ['Project "p1" has no start date']
        entry = result.entry_for("b")
        assert entry is not None and entry.start_date == MONDAY

    def test_deadline_overrun(self) -> None:
        project = make_project(end_date=TUESDAY)

        result = run([project], [make_task("a", 3, assigned_to="alice")], [make_worker()])

        entry = result.entry_for("a")
        assert entry is not None
        assert entry.end_date == WEDNESDAY
        assert result.warnings_for("p1") == [
            'Task "A" extends past the project deadline (2025-01-08 > 2025-01-07)'
        ]

    def test_unknown_dependency_is_ignored(self) -> None:
        tasks = [make_task("a", assigned_to="alice", dependencies=["ghost"])]

        result = run([make_project()], tasks, [make_worker()])

        entry = result.entry_for("a")
        assert entry is not None
        assert entry.start_date == MONDAY
        assert result.warnings_for("p1") == [
            'Task "A" depends on unknown task(s) ghost; those dependencies are ignored'
        ]

    def test_unknown_worker(self) -> None:
        result = run([make_project()], [make_task("a", assigned_to="zed")], [make_worker()])

        assert result.entries_for("p1") == []
        assert result.warnings_for("p1") == ['Task "A" is assigned to unknown worker "zed"']

    def test_started_task_without_points_or_history(self) -> None:
        task = started_task("a", TaskStatus.ACTIVE, [], story_points=0)

        result = run([make_project()], [task], [make_worker()])

        assert result.entries_for("p1") == []
        assert result.warnings_for("p1") == ['Task "A" has no story points and no usable history']


class TestAssignment:
    def test_unassigned_task_is_simulated_with_project_worker(self) -> None:
        project = make_project(assigned_users=["bob"])

        result = run([project], [make_task("a")], [make_worker("alice"), make_worker("bob")])

        entry = result.entry_for("a")
        assert entry is not None
        assert entry.assigned_to == "bob"
        assert entry.is_simulated
        assert result.warnings_for("p1") == ['Task "A" is unassigned - simulated with bob']

    def test_simulated_assignment_warning_can_be_disabled(self) -> None:
        config = SchedulingConfig(warn_on_simulated_assignment=False)

        result = run([make_project()], [make_task("a")], [make_worker()], config)

        assert result.warnings_for("p1") == []
        entry = result.entry_for("a")
        assert entry is not None and entry.is_simulated

    def test_no_available_worker(self) -> None:
        result = run([make_project()], [make_task("a")], [make_worker(daily_capacity=0)])

        entry = result.entry_for("a")
        assert entry is not None
        assert entry.needs_assignment
        assert entry.start_date is None and entry.end_date is None
        assert entry.assigned_to is None
        assert result.warnings_for("p1") == [
            'Task "A" could not be assigned: no worker is available'
        ]

    def test_fixed_worker_cannot_fit_task(self) -> None:
        config = SchedulingConfig(max_allocation_days=2)

        result = run(
            [make_project()], [make_task("a", 5, assigned_to="alice")], [make_worker()], config
        )

        entry = result.entry_for("a")
        assert entry is not None
        assert entry.needs_assignment
        assert entry.assigned_to == "alice"
        assert result.warnings_for("p1") == ['Could not schedule task "A"']


class TestCrossProject:
    def test_earlier_project_books_worker_first(self) -> None:
        """Projects run in start-date order regardless of input order."""
        projects = [
            make_project("late", start_date=TUESDAY),
            make_project("early", start_date=MONDAY),
        ]
        tasks = [
            make_task("l", 2, project_id="late", assigned_to="alice"),
            make_task("e", 2, project_id="early", assigned_to="alice"),
        ]

        result = run(projects, tasks, [make_worker()])

        early, late = result.entry_for("e"), result.entry_for("l")
        assert early is not None and late is not None
        assert (early.start_date, early.end_date) == (MONDAY, TUESDAY)
        assert (late.start_date, late.end_date) == (WEDNESDAY, THURSDAY)
        assert list(result.projects) == ["late", "early"]

    def test_dependency_on_other_project(self) -> None:
        tasks = [
            make_task("a", 2, assigned_to="alice"),
            make_task("b", project_id="p2", assigned_to="bob", dependencies=["a"]),
        ]

        result = run(
            [make_project(), make_project("p2")],
            tasks,
            [make_worker("alice"), make_worker("bob")],
        )

        entry = result.entry_for("b")
        assert entry is not None
        assert entry.start_date == WEDNESDAY
        assert result.warnings_for("p2") == []

    def test_capacity_never_exceeded(self) -> None:
        tasks = [
            make_task("a", 3, assigned_to="alice"),
            make_task("b", 2.5, project_id="p2", assigned_to="alice"),
            make_task("c", 4, project_id="p2"),
        ]
        workers = [make_worker("alice", daily_capacity=2), make_worker("bob", daily_capacity=1.5)]

        result = run([make_project(), make_project("p2")], tasks, workers)

        assert result.ledger is not None
        for worker in workers:
            for points in result.ledger.worker_days(worker.id).values():
                assert points <= worker.daily_capacity + 1e-9


class TestHistory:
    def test_done_task_uses_real_dates(self) -> None:
        done = started_task(
            "a",
            TaskStatus.DONE,
            moves(
                ("not-started", "active", datetime(2025, 1, 6, 9)),
                ("active", "in-review", datetime(2025, 1, 7, 17)),
            ),
            assigned_to="alice",
        )
        follow_up = make_task("b", assigned_to="alice")

        result = run([make_project()], [done, follow_up], [make_worker()])

        real = result.entry_for("a")
        assert real is not None
        assert real.is_real
        assert (real.start_date, real.end_date) == (MONDAY, TUESDAY)

        nxt = result.entry_for("b")
        assert nxt is not None
        assert nxt.start_date == WEDNESDAY

    def test_dependent_of_active_task_waits(self) -> None:
        active = started_task(
            "a",
            TaskStatus.ACTIVE,
            moves(("not-started", "active", datetime(2025, 1, 6, 9))),
            story_points=2,
            assigned_to="alice",
        )
        dependent = make_task("b", assigned_to="bob", dependencies=["a"])

        result = run(
            [make_project()], [active, dependent], [make_worker("alice"), make_worker("bob")]
        )

        real = result.entry_for("a")
        assert real is not None and real.end_date == WEDNESDAY
        entry = result.entry_for("b")
        assert entry is not None and entry.start_date == THURSDAY

    def test_active_task_with_untimed_log_is_simulated(self) -> None:
        active = make_task(
            "a",
            2,
            status="active",
            assigned_to="alice",
            movement_history=[{"from": "not-started", "to": "active"}],
        )

        result = run([make_project()], [active], [make_worker()])

        entry = result.entry_for("a")
        assert entry is not None
        assert not entry.is_real
        assert (entry.start_date, entry.end_date) == (MONDAY, TUESDAY)


class TestRunProperties:
    def test_scheduling_is_repeatable(self) -> None:
        snapshot = Snapshot(
            projects=[make_project(assigned_users=["bob"])],
            tasks=[make_task("a", 2), make_task("b", 3, dependencies=["a"])],
            workers=[make_worker("alice"), make_worker("bob")],
        )
        service = SchedulingService(snapshot, now=NOW)

        assert service.schedule().to_dict() == service.schedule().to_dict()

    def test_aware_reference_time_is_converted_to_utc(self) -> None:
        active = started_task(
            "a", TaskStatus.ACTIVE, moves(("not-started", "active", datetime(2025, 1, 6, 9)))
        )
        snapshot = Snapshot(projects=[make_project()], tasks=[active], workers=[make_worker()])
        # 01:00 on the 10th at +02:00 is still the 9th in UTC
        now = datetime(2025, 1, 10, 1, 0, tzinfo=timezone(timedelta(hours=2)))

        service = SchedulingService(snapshot, now=now)
        result = service.schedule()

        assert service.now == datetime(2025, 1, 9, 23, 0)
        entry = result.entry_for("a")
        assert entry is not None
        assert entry.end_date == THURSDAY

    def test_functional_wrapper(self) -> None:
        result = calculate_all_projects_schedules(
            [make_project()], [make_task("a", assigned_to="alice")], [make_worker()], now=NOW
        )

        entry = result.entry_for("a")
        assert entry is not None and entry.start_date == MONDAY

    def test_to_dict(self) -> None:
        result = run([make_project()], [make_task("a", assigned_to="alice")], [make_worker()])

        assert result.to_dict() == {
            "projects": [
                {
                    "project_id": "p1",
                    "entries": [
                        {
                            "task_id": "a",
                            "start_date": "2025-01-06",
                            "end_date": "2025-01-06",
                            "assigned_to": "alice",
                            "is_simulated": False,
                            "is_real": False,
                            "needs_assignment": False,
                        }
                    ],
                    "warnings": [],
                }
            ]
        }
