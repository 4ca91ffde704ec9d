"""Plan executor: decomposition, execution, summaries and replanning."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import TypeVar

from pydantic import Field

from planweave.core.activity_stream import ActivityStream
from planweave.core.activity_stream import activity_stream as global_activity_stream
from planweave.core.models import StrictBaseModel
from planweave.core.settings import PlanweaveSettings
from planweave.providers import (
    GenerationResult,
    TextGenerationProvider,
    ToolCall,
    ToolExecutionProvider,
    ToolResult,
)

from .errors import DEPENDENCIES_NOT_SATISFIED, PlanningError, TaskExecutionError
from .inference.config import DependencyInferenceConfig
from .inference.engine import DependencyInferenceEngine
from .inference.vocabulary import InferenceVocabulary
from .models import Plan, PlanningStrategy, PlanStatus, PlanTask, TaskStatus
from .parsing import chain_sequentially, parse_hierarchical_plan, parse_task_descriptions
from .prompts import (
    decomposition_prompt,
    format_results,
    replanning_prompt,
    summary_prompt,
    tool_follow_up_prompt,
)
from .scheduler import failed_task, scheduler_for

T = TypeVar("T")


class PlanExecutionResult(StrictBaseModel):
    """Outcome of executing a plan."""

    summary: str = Field(..., description="Summary of the execution")
    plan: Plan = Field(..., description="Final plan snapshot")


class PlanExecutor:
    """Creates, executes and replans plans for complex tasks.

    The executor owns no model or tool runtime: every call goes through the
    ``TextGenerationProvider`` and optional ``ToolExecutionProvider`` passed
    to each operation. Plans are immutable; every operation returns a new
    snapshot.
    """

    def __init__(
        self,
        settings: PlanweaveSettings | None = None,
        inference_engine: DependencyInferenceEngine | None = None,
        activity_stream: ActivityStream | None = None,
    ):
        """Initialize the executor.

        Args:
            settings: Runtime settings, loaded from the environment when omitted
            inference_engine: Engine used by the parallel and adaptive strategies
            activity_stream: Progress channel, the global stream when omitted
        """
        self.settings = settings or PlanweaveSettings()
        self._activity = activity_stream if activity_stream is not None else global_activity_stream
        self.inference_engine = inference_engine or self._create_inference_engine()
        self._logger = logging.getLogger(f"{__name__}.plan_executor")

    def _create_inference_engine(self) -> DependencyInferenceEngine:
        vocabulary = None
        if self.settings.vocabulary_file:
            vocabulary = InferenceVocabulary.from_yaml(self.settings.vocabulary_file)
        return DependencyInferenceEngine(
            config=DependencyInferenceConfig.from_settings(self.settings),
            vocabulary=vocabulary,
            activity_stream=self._activity,
        )

    async def create_plan(
        self,
        task: str,
        generator: TextGenerationProvider,
        strategy: PlanningStrategy | None = None,
        narrative: str | None = None,
    ) -> Plan:
        """Decompose a task into a plan.

        Args:
            task: The objective to decompose
            generator: Text-generation capability
            strategy: Planning strategy, the configured default when omitted
            narrative: Ordering hints for dependency inference, the
                decomposition response when omitted

        Returns:
            A new plan in the ``created`` state

        Raises:
            PlanningError: If the capability fails or no task can be extracted
        """
        strategy = strategy or PlanningStrategy(self.settings.default_strategy)
        self._activity.planning(f"Creating {strategy.value} plan", task=task)

        try:
            response = await generator.generate(decomposition_prompt(task, strategy))
        except Exception as e:
            raise PlanningError(
                f"Failed to decompose task: {e}", cause=e, component="executor", operation="create_plan"
            ) from e

        tasks: list[PlanTask] = []
        if strategy in (PlanningStrategy.HIERARCHICAL, PlanningStrategy.ADAPTIVE):
            tasks = parse_hierarchical_plan(response.text)

        if not tasks:
            tasks = [PlanTask(description=description) for description in parse_task_descriptions(response.text)]
            if not tasks:
                raise PlanningError(
                    "Decomposition response contained no tasks", component="executor", operation="create_plan"
                )
            if strategy in (PlanningStrategy.PARALLEL, PlanningStrategy.ADAPTIVE):
                tasks = self.inference_engine.infer_dependencies(tasks, narrative=narrative or response.text)
            else:
                tasks = chain_sequentially(tasks)

        plan = Plan(original_task=task, tasks=tasks, strategy=strategy)
        self._logger.info(f"Created plan {plan.id} with {len(plan.tasks)} tasks ({strategy.value})")
        self._activity.planning(f"Created plan with {len(plan.tasks)} tasks", plan_id=plan.id)
        return plan

    async def execute_plan(
        self,
        plan: Plan,
        generator: TextGenerationProvider,
        tools: ToolExecutionProvider | None = None,
    ) -> PlanExecutionResult:
        """Execute a plan and summarize the outcome.

        The scheduler is chosen by the plan's strategy. The plan completes
        only when every task completed and no task execution failed.

        Args:
            plan: Plan to execute
            generator: Text-generation capability
            tools: Optional tool executor

        Returns:
            The summary and the final plan snapshot
        """
        self._activity.execution(f"Executing plan {plan.id}", strategy=plan.strategy.value, tasks=len(plan.tasks))
        plan = plan.with_status(PlanStatus.IN_PROGRESS)

        async def runner(task: PlanTask) -> PlanTask:
            return await self._run_task(task, generator, tools)

        scheduler = scheduler_for(plan.strategy, self.settings)
        plan = await scheduler.execute(plan, runner, self._activity)

        if plan.status is not PlanStatus.FAILED and all(
            task.status is TaskStatus.COMPLETED for task in plan.iter_tasks()
        ):
            plan = plan.with_status(PlanStatus.COMPLETED)
        self._logger.info(f"Plan {plan.id} finished as {plan.status.value} ({plan.progress:.0f}% complete)")

        summary = await self._summarize(plan, generator)
        return PlanExecutionResult(summary=summary, plan=plan)

    def update_task_status(
        self,
        plan: Plan,
        task_id: str,
        status: TaskStatus,
        result: str | None = None,
        error: str | None = None,
    ) -> Plan:
        """Return a new plan with one task's status, result and error replaced.

        Raises:
            PlanningError: If the plan has no task with that id
        """
        try:
            updated = plan.with_task_status(task_id, status, result=result, error=error)
        except KeyError as e:
            raise PlanningError(
                f"Task {task_id} not found in plan {plan.id}",
                component="executor",
                operation="update_task_status",
                plan_id=plan.id,
            ) from e

        self._activity.task_update(task_id, status.value)
        return updated

    def should_replan(self, plan: Plan) -> bool:
        """Whether the plan failed and should be replaced."""
        return plan.status is PlanStatus.FAILED

    async def replan(self, original_plan: Plan, generator: TextGenerationProvider) -> Plan:
        """Create a revised plan after a failure.

        The revised plan is brand new: fresh pending tasks chained in
        order, no completed work carried forward.

        Raises:
            PlanningError: If the capability fails or no task can be extracted
        """
        self._activity.replanning(
            f"Replanning after {original_plan.status.value} plan", plan_id=original_plan.id
        )
        prompt = replanning_prompt(original_plan, self.settings.replan_result_chars)
        try:
            response = await generator.generate(prompt)
        except Exception as e:
            raise PlanningError(
                f"Failed to replan: {e}",
                cause=e,
                component="executor",
                operation="replan",
                plan_id=original_plan.id,
            ) from e

        descriptions = parse_task_descriptions(response.text)
        if not descriptions:
            raise PlanningError(
                "Replanning response contained no tasks",
                component="executor",
                operation="replan",
                plan_id=original_plan.id,
            )

        plan = Plan(
            original_task=original_plan.original_task,
            tasks=chain_sequentially([PlanTask(description=description) for description in descriptions]),
            strategy=original_plan.strategy,
            revised_from=original_plan.id,
            replan_count=original_plan.replan_count + 1,
        )
        self._logger.info(f"Plan {original_plan.id} replaced by {plan.id} with {len(plan.tasks)} tasks")
        return plan

    async def run(
        self,
        task: str,
        generator: TextGenerationProvider,
        tools: ToolExecutionProvider | None = None,
        strategy: PlanningStrategy | None = None,
        narrative: str | None = None,
    ) -> PlanExecutionResult:
        """Plan, execute and replan until success or the replanning limit.

        Returns:
            The result of the last execution
        """
        plan = await self.create_plan(task, generator, strategy, narrative)
        result = await self.execute_plan(plan, generator, tools)

        while self.should_replan(result.plan) and result.plan.replan_count < self.settings.max_replans:
            failed = result.plan.with_status(PlanStatus.REPLANNING)
            plan = await self.replan(failed, generator)
            result = await self.execute_plan(plan, generator, tools)

        return result

    async def _run_task(
        self,
        task: PlanTask,
        generator: TextGenerationProvider,
        tools: ToolExecutionProvider | None,
    ) -> PlanTask:
        """Run one task, returning its completed snapshot.

        Raises:
            TaskExecutionError: If the capability call or a subtask failed
        """
        if task.subtasks:
            return await self._run_subtasks(task, generator, tools)

        try:
            result = await self._generate_task_result(task, generator, tools)
        except asyncio.TimeoutError as e:
            raise TaskExecutionError(
                f"Task timed out after {self.settings.task_timeout_seconds}s", task.id, cause=e
            ) from e
        except Exception as e:
            raise TaskExecutionError(str(e) or type(e).__name__, task.id, cause=e) from e

        return task.mark_completed(result)

    async def _run_subtasks(
        self,
        task: PlanTask,
        generator: TextGenerationProvider,
        tools: ToolExecutionProvider | None,
    ) -> PlanTask:
        subtasks = list(task.subtasks)
        results: list[str] = []

        for index, subtask in enumerate(subtasks):
            if subtask.status is not TaskStatus.PENDING:
                continue

            # Only sibling dependencies are checked; the parent's were checked by the scheduler
            statuses = {sibling.id: sibling.status for sibling in subtasks}
            if any(statuses.get(dep, TaskStatus.COMPLETED) is not TaskStatus.COMPLETED for dep in subtask.dependencies):
                subtasks[index] = subtask.with_status(TaskStatus.FAILED, error=DEPENDENCIES_NOT_SATISFIED)
                continue

            started = subtask.mark_in_progress()
            self._activity.execution(f"Executing subtask: {started.description}", task_id=started.id)
            try:
                finished = await self._run_task(started, generator, tools)
            except TaskExecutionError as e:
                subtasks[index] = failed_task(started, e)
                raise TaskExecutionError(e.message, task.id, cause=e, subtasks=subtasks) from e

            subtasks[index] = finished
            if finished.result:
                results.append(finished.result)

        if any(subtask.status is not TaskStatus.COMPLETED for subtask in subtasks):
            raise TaskExecutionError(
                f"Subtasks of '{task.description}' did not complete", task.id, subtasks=subtasks
            )
        return task.with_subtasks(subtasks).mark_completed("\n\n".join(results))

    async def _generate_task_result(
        self,
        task: PlanTask,
        generator: TextGenerationProvider,
        tools: ToolExecutionProvider | None,
    ) -> str:
        definitions = tools.list_tools() if tools else None
        response: GenerationResult = await self._with_timeout(generator.generate(task.description, definitions))
        if not (response.tool_calls and tools):
            return response.text

        tool_results = [await self._execute_tool(tools, call) for call in response.tool_calls]
        lines = [
            f"{r.tool_name}: {r.result}" if r.status == "success" else f"{r.tool_name} failed: {r.error}"
            for r in tool_results
        ]
        follow_up = await self._with_timeout(generator.generate(tool_follow_up_prompt(task, lines)))
        return follow_up.text

    async def _execute_tool(self, tools: ToolExecutionProvider, call: ToolCall) -> ToolResult:
        """Execute one tool call, turning tool errors into error results."""
        self._logger.debug(f"Executing tool: {call.tool_name}")
        try:
            output = await self._with_timeout(tools.execute(call.tool_name, call.parameters))
        except asyncio.TimeoutError:
            raise
        except Exception as e:
            self._logger.error(f"Tool execution failed: {call.tool_name} - {e}")
            return ToolResult(tool_name=call.tool_name, status="error", error=str(e), call_id=call.call_id)
        return ToolResult(tool_name=call.tool_name, status="success", result=output, call_id=call.call_id)

    async def _with_timeout(self, awaitable: Awaitable[T]) -> T:
        if self.settings.task_timeout_seconds is None:
            return await awaitable
        return await asyncio.wait_for(awaitable, timeout=self.settings.task_timeout_seconds)

    async def _summarize(self, plan: Plan, generator: TextGenerationProvider) -> str:
        """Ask for a summary, falling back to the local transcript."""
        try:
            response = await generator.generate(summary_prompt(plan, self.settings.summary_result_chars))
        except Exception as e:
            self._logger.warning(f"Summary generation failed for plan {plan.id}: {e}")
            self._activity.error(f"Summary generation failed: {e}", plan_id=plan.id)
            return format_results(plan, self.settings.summary_result_chars)

        self._activity.summary("Plan summary generated", plan_id=plan.id, status=plan.status.value)
        return response.text
