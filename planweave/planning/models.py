"""Task graph domain models.

Plans and tasks are immutable: every status change produces a new value
through ``model_copy`` so readers holding an older snapshot never observe
a newer one.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from datetime import datetime
from enum import Enum
from typing import Annotated, Any
from uuid import uuid4

from pydantic import BeforeValidator, Field, field_validator, model_validator

from planweave.core.models import StrictBaseModel


class TaskStatus(Enum):
    """Status of a single task."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class PlanStatus(Enum):
    """Status of a plan."""

    CREATED = "created"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    REPLANNING = "replanning"


class PlanningStrategy(Enum):
    """How a plan is decomposed and scheduled."""

    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"
    HIERARCHICAL = "hierarchical"
    ADAPTIVE = "adaptive"


def _enum_converter(enum_type: type[Enum]):
    def convert(value: Any) -> Any:
        if isinstance(value, str):
            try:
                return enum_type(value.lower())
            except ValueError:
                return value
        return value

    convert.__name__ = f"validate_{enum_type.__name__.lower()}"
    return convert


validate_task_status = _enum_converter(TaskStatus)
validate_plan_status = _enum_converter(PlanStatus)
validate_planning_strategy = _enum_converter(PlanningStrategy)


class PlanTask(StrictBaseModel):
    """One unit of work inside a plan."""

    id: str = Field(default_factory=lambda: str(uuid4()), description="Unique identifier within the plan")
    description: str = Field(..., description="What the task does")
    dependencies: list[str] = Field(
        default_factory=list, description="IDs of tasks that must complete first, in discovery order"
    )
    status: Annotated[TaskStatus, BeforeValidator(validate_task_status)] = Field(
        default=TaskStatus.PENDING, description="Current status"
    )
    result: str | None = Field(default=None, description="Result text, set on completion")
    error: str | None = Field(default=None, description="Error message, set on failure")
    subtasks: list[PlanTask] = Field(default_factory=list, description="Nested tasks for hierarchical plans")

    # Carried through planning, not interpreted by the executor
    priority: str | None = Field(default=None, description="Priority tag")
    resource_requirements: list[str] = Field(default_factory=list, description="Tools or resources needed")
    estimated_duration: int | None = Field(default=None, ge=0, description="Estimated duration in milliseconds")

    started_at: datetime | None = Field(default=None, description="When the task started")
    finished_at: datetime | None = Field(default=None, description="When the task completed or failed")

    @field_validator("dependencies")
    @classmethod
    def validate_unique_dependencies(cls, v: list[str]) -> list[str]:
        """Drop repeated dependency ids, keeping the first occurrence."""
        return list(dict.fromkeys(v))

    def mark_in_progress(self) -> PlanTask:
        """Mark task as in progress."""
        return self.model_copy(update={"status": TaskStatus.IN_PROGRESS, "started_at": datetime.now()})

    def mark_completed(self, result: str) -> PlanTask:
        """Mark task as completed with its result."""
        return self.model_copy(
            update={"status": TaskStatus.COMPLETED, "result": result, "finished_at": datetime.now()}
        )

    def mark_failed(self, error: str) -> PlanTask:
        """Mark task as failed with an error message."""
        return self.model_copy(
            update={"status": TaskStatus.FAILED, "error": error, "finished_at": datetime.now()}
        )

    def with_status(
        self, status: TaskStatus, result: str | None = None, error: str | None = None
    ) -> PlanTask:
        """Return a copy with status, result and error replaced."""
        update: dict[str, Any] = {"status": status, "result": result, "error": error}
        if status is TaskStatus.IN_PROGRESS:
            update["started_at"] = datetime.now()
        elif status in (TaskStatus.COMPLETED, TaskStatus.FAILED):
            update["finished_at"] = datetime.now()
        return self.model_copy(update=update)

    def with_dependencies(self, dependencies: Iterable[str]) -> PlanTask:
        """Return a copy with the given dependencies, duplicates removed."""
        return self.model_copy(update={"dependencies": list(dict.fromkeys(dependencies))})

    def with_subtasks(self, subtasks: list[PlanTask]) -> PlanTask:
        """Return a copy with the given subtasks."""
        return self.model_copy(update={"subtasks": list(subtasks)})

    def iter_tree(self) -> Iterator[PlanTask]:
        """Yield this task followed by all nested subtasks, depth first."""
        yield self
        for subtask in self.subtasks:
            yield from subtask.iter_tree()


def _replace_task(tasks: list[PlanTask], task: PlanTask) -> list[PlanTask] | None:
    """Replace the task with ``task.id`` anywhere in the tree.

    Returns None when no task with that id exists.
    """
    for index, current in enumerate(tasks):
        if current.id == task.id:
            return [*tasks[:index], task, *tasks[index + 1:]]
        if current.subtasks:
            replaced = _replace_task(current.subtasks, task)
            if replaced is not None:
                return [*tasks[:index], current.with_subtasks(replaced), *tasks[index + 1:]]
    return None


class Plan(StrictBaseModel):
    """A decomposition of one objective into an ordered set of tasks."""

    id: str = Field(default_factory=lambda: str(uuid4()), description="Unique plan identifier")
    original_task: str = Field(..., description="The objective this plan decomposes")
    tasks: list[PlanTask] = Field(default_factory=list, description="Tasks in creation order")
    status: Annotated[PlanStatus, BeforeValidator(validate_plan_status)] = Field(
        default=PlanStatus.CREATED, description="Current status"
    )
    strategy: Annotated[PlanningStrategy, BeforeValidator(validate_planning_strategy)] = Field(
        default=PlanningStrategy.SEQUENTIAL, description="Strategy used to build and schedule the plan"
    )
    created_at: datetime = Field(default_factory=datetime.now, description="Creation timestamp")
    updated_at: datetime = Field(default_factory=datetime.now, description="Last update timestamp")
    revised_from: str | None = Field(default=None, description="ID of the plan this one replaces")
    replan_count: int = Field(default=0, ge=0, description="How many replans led to this plan")

    @model_validator(mode="after")
    def validate_task_graph(self) -> Plan:
        """Check id uniqueness and that dependencies stay inside the plan."""
        ids: set[str] = set()
        for task in self.iter_tasks():
            if task.id in ids:
                raise ValueError(f"Duplicate task id '{task.id}'")
            ids.add(task.id)

        for task in self.iter_tasks():
            for dependency in task.dependencies:
                if dependency == task.id:
                    raise ValueError(f"Task '{task.id}' depends on itself")
                if dependency not in ids:
                    raise ValueError(f"Task '{task.id}' depends on unknown task '{dependency}'")
        return self

    def iter_tasks(self) -> Iterator[PlanTask]:
        """Yield every task in the plan, subtasks included, depth first."""
        for task in self.tasks:
            yield from task.iter_tree()

    def all_task_ids(self) -> list[str]:
        """Return the ids of every task in the plan."""
        return [task.id for task in self.iter_tasks()]

    def get_task(self, task_id: str) -> PlanTask | None:
        """Find a task by id anywhere in the plan."""
        for task in self.iter_tasks():
            if task.id == task_id:
                return task
        return None

    @property
    def progress(self) -> float:
        """Percentage of tasks (subtasks included) that are completed."""
        tasks = list(self.iter_tasks())
        if not tasks:
            return 0.0
        completed = sum(1 for task in tasks if task.status is TaskStatus.COMPLETED)
        return completed / len(tasks) * 100

    def with_status(self, status: PlanStatus) -> Plan:
        """Return a copy of the plan with a new status."""
        return self.model_copy(update={"status": status, "updated_at": datetime.now()})

    def with_task(self, task: PlanTask) -> Plan:
        """Return a copy of the plan with the task of the same id replaced.

        Raises:
            KeyError: If the plan has no task with that id
        """
        tasks = _replace_task(self.tasks, task)
        if tasks is None:
            raise KeyError(task.id)
        return self.model_copy(update={"tasks": tasks, "updated_at": datetime.now()})

    def with_task_status(
        self,
        task_id: str,
        status: TaskStatus,
        result: str | None = None,
        error: str | None = None,
    ) -> Plan:
        """Return a copy of the plan with exactly one task's status replaced.

        Raises:
            KeyError: If the plan has no task with that id
        """
        task = self.get_task(task_id)
        if task is None:
            raise KeyError(task_id)
        return self.with_task(task.with_status(status, result=result, error=error))


class DependencyEdge(StrictBaseModel):
    """``source`` must complete before ``target`` may start."""

    source: str = Field(..., description="ID of the prerequisite task")
    target: str = Field(..., description="ID of the dependent task")


class DependencyGraph(StrictBaseModel):
    """Derived view of a plan's dependency edges."""

    edges: list[DependencyEdge] = Field(default_factory=list, description="Edges in task order")
    critical_path: list[str] = Field(default_factory=list, description="Longest root-to-sink chain of task ids")


class TaskInfoFlow(StrictBaseModel):
    """Information types a task produces and consumes."""

    task_id: str = Field(..., description="Task the flow belongs to")
    produces: frozenset[str] = Field(default_factory=frozenset, description="Information types produced")
    consumes: frozenset[str] = Field(default_factory=frozenset, description="Information types consumed")
