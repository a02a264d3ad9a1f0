"""Priority-aware topological ordering (Kahn's algorithm)."""

import math
from collections import deque
from collections.abc import Iterable
from datetime import datetime

from cadence.logger import get_logger
from cadence.models import Task

logger = get_logger()


def priority_key(task: Task) -> tuple[float, datetime]:
    """Sort key for ready tasks: numeric priority ascending, then oldest first.

    Tasks without a priority sort after every prioritized task; tasks without a
    creation time sort before dated ones within the same priority.
    """
    priority = task.priority if task.priority is not None else math.inf
    return (priority, task.created_at or datetime.min)


def sort_by_priority(tasks: Iterable[Task]) -> list[Task]:
    """Stable sort by priority_key (input order breaks remaining ties)."""
    return sorted(tasks, key=priority_key)


def topological_sort(tasks: list[Task]) -> list[Task]:
    """Order tasks so every task follows its dependencies.

    In-degree counts only dependencies that reference a task inside ``tasks``;
    references to anything else never block. The ready queue is seeded with
    all zero in-degree tasks in priority order. Each time a task is emitted,
    dependents reaching zero in-degree are collected into a batch that is
    priority-sorted before joining the queue, so priority ordering holds in
    every layer of the graph and not only in the initial ready set.

    Tasks that never reach zero in-degree are left out of the result.

    Args:
        tasks: Cycle-free tasks of one project

    Returns:
        Tasks in dependency-respecting, priority-aware order
    """
    by_id = {task.id: task for task in tasks}
    in_degree: dict[str, int] = {}
    dependents: dict[str, list[Task]] = {task.id: [] for task in tasks}

    for task in tasks:
        valid_deps = [dep_id for dep_id in task.dependencies if dep_id in by_id]
        in_degree[task.id] = len(valid_deps)
        for dep_id in valid_deps:
            dependents[dep_id].append(task)

    queue = deque(sort_by_priority(task for task in tasks if in_degree[task.id] == 0))
    order: list[Task] = []

    while queue:
        task = queue.popleft()
        order.append(task)

        batch: list[Task] = []
        for dependent in dependents[task.id]:
            in_degree[dependent.id] -= 1
            if in_degree[dependent.id] == 0:
                batch.append(dependent)
        queue.extend(sort_by_priority(batch))

    if len(order) != len(tasks):
        placed = {task.id for task in order}
        missing = [task.id for task in tasks if task.id not in placed]
        logger.checks(f"Tasks left out of topological order: {', '.join(missing)}")

    return order
