"""Dependency graph construction and cycle detection."""

from collections.abc import Iterable, Iterator, Mapping, Sequence

from cadence.exceptions import CircularDependencyError
from cadence.logger import get_logger
from cadence.models import Task

logger = get_logger()

DependencyGraph = dict[str, list[str]]


def build_dependency_graph(tasks: Iterable[Task]) -> DependencyGraph:
    """Map each task ID to its raw dependency list (edges point at prerequisites)."""
    return {task.id: list(task.dependencies) for task in tasks}


def detect_cycle(
    graph: Mapping[str, Sequence[str]], roots: Iterable[str] | None = None
) -> list[str] | None:
    """Find a dependency cycle with a depth-first search.

    The search keeps a visited set and a recursion stack. When a dependency is
    already on the stack, the cycle is the path slice from that dependency's
    position through the current node, closed by repeating the dependency.

    Args:
        graph: Task ID -> dependency IDs. IDs missing from the graph are leaves.
        roots: Order in which to start searches (defaults to graph order)

    Returns:
        Task IDs forming the cycle (e.g. ``["a", "b", "a"]``), or None if acyclic
    """
    visited: set[str] = set()
    on_stack: set[str] = set()
    path: list[str] = []

    for root in roots if roots is not None else graph.keys():
        if root in visited:
            continue

        # Explicit stack of (node, remaining dependencies) replaces recursion
        visited.add(root)
        on_stack.add(root)
        path.append(root)
        stack: list[tuple[str, Iterator[str]]] = [(root, iter(graph.get(root, ())))]

        while stack:
            node, remaining = stack[-1]
            for dep_id in remaining:
                if dep_id in on_stack:
                    cycle = path[path.index(dep_id) :] + [dep_id]
                    logger.checks(f"Cycle found: {' -> '.join(cycle)}")
                    return cycle
                if dep_id not in visited:
                    visited.add(dep_id)
                    on_stack.add(dep_id)
                    path.append(dep_id)
                    stack.append((dep_id, iter(graph.get(dep_id, ()))))
                    break
            else:
                stack.pop()
                on_stack.discard(node)
                path.pop()

    return None


def ensure_acyclic(tasks: Sequence[Task]) -> DependencyGraph:
    """Build the dependency graph, raising if it contains a cycle.

    Raises:
        CircularDependencyError: carrying the offending cycle
    """
    graph = build_dependency_graph(tasks)
    cycle = detect_cycle(graph, [task.id for task in tasks])
    if cycle:
        titles = {task.id: task.display_name for task in tasks}
        names = " -> ".join(titles.get(task_id, task_id) for task_id in cycle)
        raise CircularDependencyError(cycle, f"Circular dependency detected: {names}")
    return graph


def find_dangling_references(
    tasks: Iterable[Task], known_ids: Iterable[str]
) -> dict[str, list[str]]:
    """Find dependencies that point at task IDs nobody knows about.

    Returns:
        Task ID -> unknown dependency IDs, for tasks that have any
    """
    known = set(known_ids)
    dangling: dict[str, list[str]] = {}
    for task in tasks:
        missing = [dep_id for dep_id in task.dependencies if dep_id not in known]
        if missing:
            dangling[task.id] = missing
    return dangling
