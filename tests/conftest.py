"""Pytest configuration and builders for cadence tests."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date, datetime
from typing import Any

import pytest

from cadence.logger import reset_logger
from cadence.models import Movement, Project, Task, TaskStatus, Worker

# 2025-01-06 is a Monday
MONDAY = date(2025, 1, 6)
WEEKDAYS = [1, 2, 3, 4, 5]


@pytest.fixture(autouse=True)
def _silent_logger() -> Iterator[None]:  # pyright: ignore[reportUnusedFunction]
    """Keep logger state from leaking between tests."""
    reset_logger()
    yield
    reset_logger()


def make_worker(
    worker_id: str = "alice",
    daily_capacity: float = 1.0,
    working_days: list[int] | None = None,
    **kwargs: Any,
) -> Worker:
    """Build a worker (Monday-Friday, 1 point/day by default)."""
    return Worker(
        id=worker_id,
        daily_capacity=daily_capacity,
        working_days=WEEKDAYS if working_days is None else working_days,
        **kwargs,
    )


def make_project(
    project_id: str = "p1",
    start_date: date | None = MONDAY,
    assigned_users: list[str] | None = None,
    **kwargs: Any,
) -> Project:
    """Build a project starting on MONDAY by default."""
    return Project(
        id=project_id,
        start_date=start_date,
        assigned_users=assigned_users or [],
        **kwargs,
    )


def make_task(
    task_id: str,
    story_points: float = 1.0,
    *,
    project_id: str = "p1",
    dependencies: list[str] | None = None,
    assigned_to: str | None = None,
    **kwargs: Any,
) -> Task:
    """Build a not-started task in project p1 by default."""
    return Task(
        id=task_id,
        project_id=project_id,
        title=kwargs.pop("title", task_id.upper()),
        story_points=story_points,
        dependencies=dependencies or [],
        assigned_to=assigned_to,
        **kwargs,
    )


def moves(*transitions: tuple[str, str, datetime]) -> list[Movement]:
    """Build a movement log from (from, to, timestamp) tuples."""
    return [
        Movement.model_validate({"from": old, "to": new, "timestamp": when})
        for old, new, when in transitions
    ]


def started_task(
    task_id: str,
    status: TaskStatus,
    history: list[Movement],
    story_points: float = 2.0,
    **kwargs: Any,
) -> Task:
    """Build a task that is already in flight."""
    return make_task(
        task_id,
        story_points,
        status=status,
        movement_history=history,
        **kwargs,
    )
