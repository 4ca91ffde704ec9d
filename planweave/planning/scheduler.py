"""Schedulers deciding the order in which plan tasks run.

A scheduler owns the iteration over the top-level tasks of a plan. Running
a single task (capability calls, tools, subtasks) is delegated to a runner
coroutine supplied by the executor, which returns the finished task or
raises.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from planweave.core.activity_stream import ActivityStream
from planweave.core.settings import PlanweaveSettings

from . import graph
from .errors import DEPENDENCIES_NOT_SATISFIED, TaskExecutionError
from .models import Plan, PlanningStrategy, PlanStatus, PlanTask, TaskStatus

logger = logging.getLogger(__name__)

TaskRunner = Callable[[PlanTask], Awaitable[PlanTask]]


def dependencies_satisfied(plan: Plan, task: PlanTask) -> bool:
    """Whether every dependency of the task has completed."""
    for dependency_id in task.dependencies:
        dependency = plan.get_task(dependency_id)
        if dependency is None or dependency.status is not TaskStatus.COMPLETED:
            return False
    return True


def failed_task(task: PlanTask, error: BaseException) -> PlanTask:
    """Build the failed snapshot of a task whose runner raised."""
    if isinstance(error, TaskExecutionError) and error.subtasks:
        task = task.with_subtasks(error.subtasks)
    return task.with_status(TaskStatus.FAILED, error=str(error) or type(error).__name__)


class TaskScheduler(ABC):
    """Base class of schedulers."""

    name: str = "scheduler"

    @abstractmethod
    async def execute(self, plan: Plan, runner: TaskRunner, activity: ActivityStream | None = None) -> Plan:
        """Run the tasks of a plan.

        Args:
            plan: Plan in progress
            runner: Coroutine running one task
            activity: Optional progress channel

        Returns:
            The plan snapshot after the last task ran, failed when a runner raised
        """

    @staticmethod
    def _report(activity: ActivityStream | None, task: PlanTask) -> None:
        if activity:
            activity.task_update(task.id, task.status.value, description=task.description, error=task.error)


class SequentialScheduler(TaskScheduler):
    """Runs tasks one at a time in plan order.

    A task whose dependencies have not completed is failed and skipped
    without failing the plan. A task whose runner raises fails the plan and
    stops the loop.
    """

    name = "sequential"

    def order(self, plan: Plan) -> list[PlanTask]:
        """Return the top-level tasks in execution order."""
        return list(plan.tasks)

    async def execute(self, plan: Plan, runner: TaskRunner, activity: ActivityStream | None = None) -> Plan:
        for task_id in [task.id for task in self.order(plan)]:
            task = plan.get_task(task_id)
            if task is None or task.status is not TaskStatus.PENDING:
                continue

            if not dependencies_satisfied(plan, task):
                logger.debug(f"Skipping task {task.id}: dependencies not satisfied")
                task = task.with_status(TaskStatus.FAILED, error=DEPENDENCIES_NOT_SATISFIED)
                plan = plan.with_task(task)
                self._report(activity, task)
                continue

            task = task.mark_in_progress()
            plan = plan.with_task(task)
            if activity:
                activity.execution(f"Executing subtask: {task.description}", task_id=task.id)

            try:
                finished = await runner(task)
            except Exception as e:
                logger.error(f"Task {task.id} failed: {e}")
                task = failed_task(task, e)
                plan = plan.with_task(task).with_status(PlanStatus.FAILED)
                self._report(activity, task)
                break

            plan = plan.with_task(finished)
            self._report(activity, finished)

        return plan


class TopologicalScheduler(SequentialScheduler):
    """Runs tasks one at a time in a stable topological order."""

    name = "topological"

    def order(self, plan: Plan) -> list[PlanTask]:
        return graph.topological_order(plan.tasks)


class ParallelScheduler(TaskScheduler):
    """Runs waves of ready tasks concurrently.

    A task is ready once all its dependencies completed. Each wave is
    bounded by a semaphore of ``max_parallel_tasks``; results are applied
    to the plan after the wave settles.
    """

    name = "parallel"

    def __init__(self, max_parallel_tasks: int = 3):
        if max_parallel_tasks < 1:
            raise ValueError("max_parallel_tasks must be at least 1")
        self.max_parallel_tasks = max_parallel_tasks

    async def execute(self, plan: Plan, runner: TaskRunner, activity: ActivityStream | None = None) -> Plan:
        semaphore = asyncio.Semaphore(self.max_parallel_tasks)

        async def run_bounded(task: PlanTask) -> PlanTask:
            async with semaphore:
                return await runner(task)

        while True:
            pending = [task for task in plan.tasks if task.status is TaskStatus.PENDING]
            if not pending:
                break

            statuses = {task.id: task.status for task in plan.iter_tasks()}
            blocked = [
                task for task in pending if any(statuses.get(dep) is TaskStatus.FAILED for dep in task.dependencies)
            ]
            for task in blocked:
                task = task.with_status(TaskStatus.FAILED, error=DEPENDENCIES_NOT_SATISFIED)
                plan = plan.with_task(task)
                self._report(activity, task)

            ready = [task for task in pending if dependencies_satisfied(plan, task)]
            if not ready:
                if blocked:
                    continue
                logger.error(f"No runnable task among {len(pending)} pending tasks, dependency cycle suspected")
                for task in pending:
                    task = task.with_status(TaskStatus.FAILED, error=DEPENDENCIES_NOT_SATISFIED)
                    plan = plan.with_task(task)
                    self._report(activity, task)
                plan = plan.with_status(PlanStatus.FAILED)
                break

            started = [task.mark_in_progress() for task in ready]
            for task in started:
                plan = plan.with_task(task)
                if activity:
                    activity.execution(f"Executing subtask: {task.description}", task_id=task.id)

            logger.debug(f"Running wave of {len(started)} tasks")
            outcomes = await asyncio.gather(*(run_bounded(task) for task in started), return_exceptions=True)

            wave_failed = False
            for task, outcome in zip(started, outcomes):
                if isinstance(outcome, BaseException):
                    logger.error(f"Task {task.id} failed: {outcome}")
                    outcome = failed_task(task, outcome)
                    wave_failed = True
                plan = plan.with_task(outcome)
                self._report(activity, outcome)

            if wave_failed:
                plan = plan.with_status(PlanStatus.FAILED)
                break

        return plan


def scheduler_for(strategy: PlanningStrategy, settings: PlanweaveSettings | None = None) -> TaskScheduler:
    """Select the scheduler for a planning strategy.

    Args:
        strategy: Strategy of the plan
        settings: Runtime settings, defaults apply when omitted

    Returns:
        Parallel for ``parallel``, topological for ``hierarchical`` and
        ``adaptive``, sequential otherwise
    """
    if strategy is PlanningStrategy.PARALLEL:
        settings = settings or PlanweaveSettings()
        return ParallelScheduler(settings.max_parallel_tasks)
    if strategy in (PlanningStrategy.HIERARCHICAL, PlanningStrategy.ADAPTIVE):
        return TopologicalScheduler()
    return SequentialScheduler()
