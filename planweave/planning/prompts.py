"""Prompt templates used by the plan executor.

Templates use ``{{name}}`` placeholders filled by :meth:`PromptTemplate.render`.
"""

from __future__ import annotations

import re
from typing import ClassVar

from planweave.utils.formatting import truncate_text

from .models import Plan, PlanningStrategy, PlanStatus, PlanTask, TaskStatus

_PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")


class PromptTemplate:
    """Base class of prompt templates."""

    template: ClassVar[str] = ""

    @classmethod
    def render(cls, **variables: object) -> str:
        """Fill the template placeholders.

        Raises:
            KeyError: If a placeholder has no matching variable
        """
        return _PLACEHOLDER.sub(lambda match: str(variables[match.group(1)]), cls.template)


class DecompositionPrompt(PromptTemplate):
    """Asks for a numbered step list decomposing a task."""

    template: ClassVar[str] = """# Task Planning

I need to break down the following complex task into manageable steps:

"{{task}}"

Please help me create a {{strategy}} plan by:

1. Analyzing what the task requires
2. Identifying the main components or stages
3. Breaking those down into specific, actionable steps
4. Determining any tools or resources needed for each step
5. Establishing dependencies between steps (what must happen before what)

Format your response as a numbered list, one step per line, for example:
1. First step
2. Second step
"""


class HierarchicalDecompositionPrompt(PromptTemplate):
    """Asks for phases, tasks and subtasks in a fixed outline format."""

    template: ClassVar[str] = """# Hierarchical Task Planning

I need to create a detailed hierarchical plan for the following complex task:

"{{task}}"

Please create a plan with:

1. Major phases of work
2. For each phase, specific tasks
3. For complex tasks, atomic subtasks
4. Which tasks could be executed in parallel
5. Relative effort for each item (low/medium/high)
6. Tools or resources needed for specific tasks

Use exactly this format:

<phases>
PHASE 1: [Name]
- Description: [Brief description]
- Estimated effort: [Low/Medium/High]

  TASK 1.1: [Name]
  - Description: [Detailed description]
  - Can run in parallel: [Yes/No]
  - Tools needed: [Comma separated tools]
  - Estimated effort: [Low/Medium/High]

    SUBTASK 1.1.1: [Name]
    - Description: [Atomic action description]
    - Estimated effort: [Low/Medium/High]
</phases>
"""


class ReplanningPrompt(PromptTemplate):
    """Asks for a revised plan after a failure."""

    template: ClassVar[str] = """# Adaptive Replanning

I was working on the following task:

"{{original_task}}"

My original plan was:
{{plan}}

So far, I've completed the following tasks:
{{completed_tasks}}

However, the following tasks failed or encountered problems:
{{failed_tasks}}

Please revise the plan by:

1. Analyzing what went wrong with the failed tasks
2. Determining if a different approach is needed
3. Creating replacement tasks or alternative paths to the goal
4. Preserving what worked well in the original plan

Format the revised plan as a numbered list, one step per line.
"""


class SummaryPrompt(PromptTemplate):
    """Asks for a summary of an executed plan."""

    template: ClassVar[str] = """I've {{outcome}} the following complex task by breaking it down:
"{{original_task}}"

Here are the results from each step:

{{results}}

Overall Status: {{status}}
Progress: {{progress}}%

Please provide a concise summary of the overall result.{{failure_note}}
"""


class ToolFollowUpPrompt(PromptTemplate):
    """Feeds tool results back to complete a task."""

    template: ClassVar[str] = """Task: {{task}}

You requested the following tools. Their results are:

{{tool_results}}

Using these results, complete the task and reply with the final result.
"""


def decomposition_prompt(task: str, strategy: PlanningStrategy) -> str:
    """Build the decomposition prompt for a strategy."""
    if strategy is PlanningStrategy.HIERARCHICAL:
        return HierarchicalDecompositionPrompt.render(task=task)
    return DecompositionPrompt.render(task=task, strategy=strategy.value)


def format_plan(plan: Plan) -> str:
    """Format a plan's tasks, statuses and dependencies for a prompt."""

    def format_task(task: PlanTask, indent: str = "") -> list[str]:
        lines = [f"{indent}- Task: {task.description} (ID: {task.id})", f"{indent}  Status: {task.status.value}"]
        if task.dependencies:
            lines.append(f"{indent}  Dependencies: {', '.join(task.dependencies)}")
        if task.subtasks:
            lines.append(f"{indent}  Subtasks:")
            for subtask in task.subtasks:
                lines.extend(format_task(subtask, f"{indent}    "))
        return lines

    lines = [f"Plan ID: {plan.id}", f"Status: {plan.status.value}", f"Progress: {round(plan.progress)}%", "", "Tasks:"]
    for task in plan.tasks:
        lines.extend(format_task(task))
    return "\n".join(lines)


def format_completed_tasks(plan: Plan, result_chars: int = 100) -> str:
    """List the completed tasks of a plan with truncated results."""
    completed = [task for task in plan.iter_tasks() if task.status is TaskStatus.COMPLETED]
    if not completed:
        return "No tasks completed yet."

    lines = []
    for task in completed:
        lines.append(f"- {task.description} (ID: {task.id})")
        if task.result:
            lines.append(f"  Result: {truncate_text(task.result, result_chars)}")
    return "\n".join(lines)


def format_failed_tasks(plan: Plan) -> str:
    """List the failed tasks of a plan with their errors."""
    failed = [task for task in plan.iter_tasks() if task.status is TaskStatus.FAILED]
    if not failed:
        return "No tasks have failed."

    lines = []
    for task in failed:
        lines.append(f"- {task.description} (ID: {task.id})")
        if task.error:
            lines.append(f"  Error: {task.error}")
    return "\n".join(lines)


def format_results(plan: Plan, result_chars: int = 200) -> str:
    """Format every task's description, status, result and error."""

    def format_task(task: PlanTask, indent: str = "") -> list[str]:
        lines = [f"{indent}STEP: {task.description}", f"{indent}STATUS: {task.status.value}"]
        if task.result:
            lines.append(f"{indent}RESULT: {truncate_text(task.result, result_chars)}")
        if task.error:
            lines.append(f"{indent}ERROR: {task.error}")
        for subtask in task.subtasks:
            lines.extend(format_task(subtask, f"{indent}  "))
        return lines

    return "\n\n".join("\n".join(format_task(task)) for task in plan.tasks)


def replanning_prompt(plan: Plan, result_chars: int = 100) -> str:
    """Build the replanning prompt for a failed plan."""
    return ReplanningPrompt.render(
        original_task=plan.original_task,
        plan=format_plan(plan),
        completed_tasks=format_completed_tasks(plan, result_chars),
        failed_tasks=format_failed_tasks(plan),
    )


def summary_prompt(plan: Plan, result_chars: int = 200) -> str:
    """Build the summary prompt for an executed plan."""
    completed = plan.status is PlanStatus.COMPLETED
    return SummaryPrompt.render(
        outcome="completed" if completed else "worked on",
        original_task=plan.original_task,
        results=format_results(plan, result_chars),
        status=plan.status.value,
        progress=round(plan.progress),
        failure_note="" if completed else "\nInclude information about what failed and why.",
    )


def tool_follow_up_prompt(task: PlanTask, tool_results: list[str]) -> str:
    """Build the follow-up prompt carrying tool results."""
    return ToolFollowUpPrompt.render(task=task.description, tool_results="\n".join(tool_results))
