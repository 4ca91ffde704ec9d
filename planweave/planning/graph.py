"""Pure graph transforms over plan tasks.

Edges point from a prerequisite to the task depending on it. Every
function takes a task list and returns new values; inputs are never
modified.
"""

from __future__ import annotations

import logging
from collections import deque

from .models import DependencyEdge, DependencyGraph, PlanTask

logger = logging.getLogger(__name__)


def _dependents(tasks: list[PlanTask]) -> dict[str, list[str]]:
    """Map each task id to the ids of tasks depending on it, in task order."""
    known = {task.id for task in tasks}
    dependents: dict[str, list[str]] = {task.id: [] for task in tasks}
    for task in tasks:
        for dependency in task.dependencies:
            if dependency in known:
                dependents[dependency].append(task.id)
    return dependents


def build_edges(tasks: list[PlanTask]) -> list[DependencyEdge]:
    """Build the edge list of the tasks' dependencies.

    Dependencies on ids outside ``tasks`` are ignored.
    """
    known = {task.id for task in tasks}
    return [
        DependencyEdge(source=dependency, target=task.id)
        for task in tasks
        for dependency in task.dependencies
        if dependency in known
    ]


def break_cycles(tasks: list[PlanTask]) -> tuple[list[PlanTask], list[DependencyEdge]]:
    """Remove dependency edges until the graph is acyclic.

    Runs a depth-first search from every unvisited task in list order,
    keeping the current path on a recursion stack. An edge leading back
    into the stack closes a cycle and is removed as soon as it is found.
    This is first-found removal, not a minimum feedback arc set.

    Args:
        tasks: Tasks whose dependencies may contain cycles

    Returns:
        The tasks with the closing edges removed, and the removed edges
    """
    dependents = _dependents(tasks)
    visited: set[str] = set()
    on_stack: set[str] = set()
    removed: list[DependencyEdge] = []

    def visit(node: str) -> None:
        visited.add(node)
        on_stack.add(node)
        for dependent in list(dependents[node]):
            if dependent in on_stack:
                dependents[node].remove(dependent)
                removed.append(DependencyEdge(source=node, target=dependent))
            elif dependent not in visited:
                visit(dependent)
        on_stack.discard(node)

    for task in tasks:
        if task.id not in visited:
            visit(task.id)

    if not removed:
        return list(tasks), []

    closing = {(edge.source, edge.target) for edge in removed}
    for edge in removed:
        logger.debug(f"Removed dependency {edge.target} -> {edge.source} to break cycle")

    result = []
    for task in tasks:
        kept = [dep for dep in task.dependencies if (dep, task.id) not in closing]
        result.append(task if len(kept) == len(task.dependencies) else task.with_dependencies(kept))
    return result, removed


def is_acyclic(tasks: list[PlanTask]) -> bool:
    """Check whether the tasks' dependency graph has no cycles."""
    _, removed = break_cycles(tasks)
    return not removed


def limit_dependencies(tasks: list[PlanTask], max_dependencies: int) -> list[PlanTask]:
    """Clip every task to its first ``max_dependencies`` dependencies.

    Dependencies are kept in discovery order; no ranking is applied.
    """
    if max_dependencies < 1:
        raise ValueError("max_dependencies must be at least 1")

    result = []
    for task in tasks:
        if len(task.dependencies) > max_dependencies:
            logger.debug(
                f"Task '{task.description}' has {len(task.dependencies)} dependencies, "
                f"limiting to {max_dependencies}"
            )
            task = task.with_dependencies(task.dependencies[:max_dependencies])
        result.append(task)
    return result


def critical_path(tasks: list[PlanTask]) -> list[str]:
    """Find the longest root-to-sink chain of task ids.

    Enumerates paths breadth first from every task without dependencies
    and keeps the longest path ending at a task nothing depends on. Ties
    keep the first path found. Paths never revisit a task, so cyclic
    input terminates.

    Every root-to-sink path is materialized, so the cost grows with the
    number of paths: linear for chains, exponential for dense DAGs where
    each layer fans out to the next. Plans from one decomposition stay
    small enough for this to be cheap.
    """
    dependents = _dependents(tasks)
    known = set(dependents)
    roots = [task.id for task in tasks if not any(dep in known for dep in task.dependencies)]
    sinks = {task_id for task_id, children in dependents.items() if not children}

    longest: list[str] = []
    for root in roots:
        queue: deque[list[str]] = deque([[root]])
        while queue:
            path = queue.popleft()
            node = path[-1]
            if node in sinks and len(path) > len(longest):
                longest = path
            for dependent in dependents[node]:
                if dependent not in path:
                    queue.append([*path, dependent])
    return longest


def build_graph(tasks: list[PlanTask]) -> DependencyGraph:
    """Build the derived dependency graph of the tasks."""
    return DependencyGraph(edges=build_edges(tasks), critical_path=critical_path(tasks))


def topological_order(tasks: list[PlanTask]) -> list[PlanTask]:
    """Order tasks so every task follows its dependencies.

    Ties are broken by list order. Tasks caught in a cycle cannot be
    ordered and are appended in list order.
    """
    known = {task.id for task in tasks}
    remaining = list(tasks)
    emitted: set[str] = set()
    ordered: list[PlanTask] = []

    progressed = True
    while remaining and progressed:
        progressed = False
        for task in remaining:
            if all(dep in emitted or dep not in known for dep in task.dependencies):
                ordered.append(task)
                emitted.add(task.id)
                remaining.remove(task)
                progressed = True
                break

    return ordered + remaining


def render_dependency_graph(tasks: list[PlanTask]) -> str:
    """Render tasks, their dependencies and the critical path as text."""
    by_id = {task.id: task for task in tasks}

    lines = ["Dependency Graph:", "", "Tasks:"]
    lines.extend(f"- {task.id}: {task.description}" for task in tasks)

    lines.extend(["", "Dependencies:"])
    for task in tasks:
        if not task.dependencies:
            continue
        lines.append(f'- "{task.description}" depends on:')
        for dependency in task.dependencies:
            description = by_id[dependency].description if dependency in by_id else dependency
            lines.append(f'  - "{description}"')

    lines.extend(["", "Critical Path:"])
    lines.extend(f'- "{by_id[task_id].description}"' for task_id in critical_path(tasks))

    return "\n".join(lines) + "\n"
