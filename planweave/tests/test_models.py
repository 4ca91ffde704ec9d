"""Tests for plan and task models."""

import pytest
from pydantic import ValidationError

from planweave.planning.models import (
    DependencyEdge,
    Plan,
    PlanningStrategy,
    PlanStatus,
    PlanTask,
    TaskStatus,
)

from .fakes import make_tasks


class TestPlanTask:
    """Test task model behaviour."""

    def test_defaults(self):
        """Test a new task is pending with a generated id."""
        task = PlanTask(description="Research the market")

        assert task.status is TaskStatus.PENDING
        assert task.dependencies == []
        assert task.subtasks == []
        assert len(task.id) == 36

    def test_ids_are_unique(self):
        """Test generated ids differ."""
        assert PlanTask(description="a").id != PlanTask(description="a").id

    def test_status_from_string(self):
        """Test status strings are converted to the enum."""
        assert PlanTask(description="a", status="Completed").status is TaskStatus.COMPLETED

    def test_invalid_status(self):
        """Test unknown status strings are rejected."""
        with pytest.raises(ValidationError):
            PlanTask(description="a", status="sleeping")

    def test_duplicate_dependencies_removed(self):
        """Test dependencies keep first occurrences only."""
        task = PlanTask(description="a", dependencies=["x", "y", "x"])

        assert task.dependencies == ["x", "y"]

    def test_frozen(self):
        """Test tasks are immutable."""
        task = PlanTask(description="a")

        with pytest.raises(ValidationError):
            task.status = TaskStatus.COMPLETED

    def test_mark_helpers_return_new_values(self):
        """Test status helpers leave the original untouched."""
        task = PlanTask(description="a")

        started = task.mark_in_progress()
        completed = started.mark_completed("result")
        failed = started.mark_failed("error")

        assert task.status is TaskStatus.PENDING
        assert started.status is TaskStatus.IN_PROGRESS
        assert started.started_at is not None
        assert completed.result == "result"
        assert completed.status is TaskStatus.COMPLETED
        assert failed.error == "error"
        assert failed.finished_at is not None

    def test_with_status_replaces_result_and_error(self):
        """Test with_status clears result and error when omitted."""
        task = PlanTask(description="a").mark_completed("result")

        reset = task.with_status(TaskStatus.PENDING)

        assert reset.result is None
        assert reset.error is None

    def test_with_dependencies_dedupes(self):
        """Test with_dependencies removes repeats."""
        task = PlanTask(description="a").with_dependencies(["b", "c", "b"])

        assert task.dependencies == ["b", "c"]

    def test_iter_tree(self):
        """Test depth-first iteration over nested subtasks."""
        leaf = PlanTask(id="leaf", description="leaf")
        child = PlanTask(id="child", description="child", subtasks=[leaf])
        root = PlanTask(id="root", description="root", subtasks=[child])

        assert [task.id for task in root.iter_tree()] == ["root", "child", "leaf"]


class TestPlan:
    """Test plan model behaviour."""

    def test_defaults(self):
        """Test a new plan."""
        plan = Plan(original_task="Write a report", tasks=make_tasks("a", "b"))

        assert plan.status is PlanStatus.CREATED
        assert plan.strategy is PlanningStrategy.SEQUENTIAL
        assert plan.revised_from is None
        assert plan.replan_count == 0

    def test_duplicate_ids_rejected(self):
        """Test task ids must be unique across the tree."""
        subtask = PlanTask(id="t1", description="nested")
        tasks = [PlanTask(id="t1", description="a"), PlanTask(id="t2", description="b", subtasks=[subtask])]

        with pytest.raises(ValidationError, match="Duplicate task id"):
            Plan(original_task="x", tasks=tasks)

    def test_self_dependency_rejected(self):
        """Test a task cannot depend on itself."""
        with pytest.raises(ValidationError, match="depends on itself"):
            Plan(original_task="x", tasks=[PlanTask(id="t1", description="a", dependencies=["t1"])])

    def test_unknown_dependency_rejected(self):
        """Test dependencies must stay inside the plan."""
        with pytest.raises(ValidationError, match="unknown task"):
            Plan(original_task="x", tasks=[PlanTask(id="t1", description="a", dependencies=["t9"])])

    def test_dependency_on_subtask_allowed(self):
        """Test dependencies may point to nested tasks."""
        parent = PlanTask(id="p", description="parent", subtasks=[PlanTask(id="s", description="sub")])
        other = PlanTask(id="o", description="other", dependencies=["s"])

        plan = Plan(original_task="x", tasks=[parent, other])

        assert plan.all_task_ids() == ["p", "s", "o"]

    def test_get_task_searches_subtasks(self):
        """Test lookup by id through the task tree."""
        sub = PlanTask(id="s", description="sub")
        plan = Plan(original_task="x", tasks=[PlanTask(id="p", description="parent", subtasks=[sub])])

        assert plan.get_task("s") == sub
        assert plan.get_task("missing") is None

    def test_progress(self):
        """Test progress counts completed tasks including subtasks."""
        sub = PlanTask(id="s", description="sub").mark_completed("ok")
        tasks = [
            PlanTask(id="p", description="parent", subtasks=[sub]),
            PlanTask(id="q", description="other").mark_completed("ok"),
            PlanTask(id="r", description="third"),
            PlanTask(id="u", description="fourth").mark_failed("no"),
        ]
        plan = Plan(original_task="x", tasks=tasks)

        assert plan.progress == pytest.approx(40.0)

    def test_progress_empty(self):
        """Test an empty plan has zero progress."""
        assert Plan(original_task="x").progress == 0.0

    def test_with_task_status(self):
        """Test replacing exactly one task's status."""
        plan = Plan(original_task="x", tasks=make_tasks("a", "b"))

        updated = plan.with_task_status("t2", TaskStatus.COMPLETED, result="done")

        assert updated.get_task("t2").status is TaskStatus.COMPLETED
        assert updated.get_task("t2").result == "done"
        assert updated.get_task("t1") == plan.get_task("t1")
        assert plan.get_task("t2").status is TaskStatus.PENDING
        assert updated.updated_at >= plan.updated_at

    def test_with_task_status_nested(self):
        """Test updating a nested subtask."""
        parent = PlanTask(id="p", description="parent", subtasks=[PlanTask(id="s", description="sub")])
        plan = Plan(original_task="x", tasks=[parent])

        updated = plan.with_task_status("s", TaskStatus.FAILED, error="broken")

        assert updated.get_task("s").error == "broken"
        assert updated.tasks[0].subtasks[0].status is TaskStatus.FAILED

    def test_with_task_status_unknown(self):
        """Test updating an unknown task raises KeyError."""
        plan = Plan(original_task="x", tasks=make_tasks("a"))

        with pytest.raises(KeyError):
            plan.with_task_status("nope", TaskStatus.COMPLETED)

    def test_with_status(self):
        """Test status change returns a new plan."""
        plan = Plan(original_task="x")

        failed = plan.with_status(PlanStatus.FAILED)

        assert failed.status is PlanStatus.FAILED
        assert plan.status is PlanStatus.CREATED
        assert failed.id == plan.id


class TestDependencyEdge:
    """Test dependency edges."""

    def test_edge_direction(self):
        """Test source is the prerequisite and target the dependent."""
        edge = DependencyEdge(source="a", target="b")

        assert (edge.source, edge.target) == ("a", "b")
        assert edge == DependencyEdge(source="a", target="b")
