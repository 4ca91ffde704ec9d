"""Parsing of decomposition responses into plan tasks."""

from __future__ import annotations

import logging
import re

from .models import PlanTask

logger = logging.getLogger(__name__)

NUMBERED_ITEM = re.compile(
    r"(?:^|\n)\s*(?:Step\s*)?(\d+)[:.)\s]+(.+?)(?=\n\s*(?:Step\s*)?\d+[:.)\s]+|$)",
    re.IGNORECASE | re.DOTALL,
)
MIN_FALLBACK_LINE_LENGTH = 11

PHASES_BLOCK = re.compile(r"<phases>(.*?)</phases>", re.IGNORECASE | re.DOTALL)
PHASE_HEADER = re.compile(r"PHASE\s+(\d+):\s+([^\n]+)", re.IGNORECASE)

PHASE_EFFORT_MS = 300_000
TASK_EFFORT_MS = 120_000
SUBTASK_EFFORT_MS = 60_000


def parse_numbered_list(text: str) -> list[str]:
    """Extract the items of a numbered list.

    Items look like ``1. text``, ``2) text`` or ``Step 3: text`` and run
    until the next numbered item.
    """
    return [match.group(2).strip() for match in NUMBERED_ITEM.finditer(text) if match.group(2).strip()]


def parse_task_descriptions(text: str) -> list[str]:
    """Extract task descriptions from a decomposition response.

    Falls back to non-empty lines longer than ten characters when the
    response has no numbered items.
    """
    items = parse_numbered_list(text)
    if items:
        return items

    logger.debug("No numbered items in decomposition response, splitting on lines")
    return [line.strip() for line in text.split("\n") if len(line.strip()) >= MIN_FALLBACK_LINE_LENGTH]


def chain_sequentially(tasks: list[PlanTask]) -> list[PlanTask]:
    """Make every task depend on its immediate predecessor."""
    return [
        task.with_dependencies([tasks[index - 1].id]) if index else task.with_dependencies([])
        for index, task in enumerate(tasks)
    ]


def effort_to_milliseconds(effort: str) -> int:
    """Map a low/medium/high effort label to an estimated duration."""
    normalized = effort.strip().lower()
    if "low" in normalized:
        return 60_000
    if "medium" in normalized:
        return 300_000
    if "high" in normalized:
        return 900_000
    return 180_000


def _field(content: str, name: str) -> str | None:
    match = re.search(rf"- {name}:\s+([^\n]+)", content, re.IGNORECASE)
    return match.group(1).strip() if match else None


def _sections(pattern: re.Pattern[str], content: str) -> list[tuple[re.Match[str], str]]:
    """Split content at each header match, pairing the header with its body."""
    matches = list(pattern.finditer(content))
    sections = []
    for index, match in enumerate(matches):
        end = matches[index + 1].start() if index + 1 < len(matches) else len(content)
        sections.append((match, content[match.end():end]))
    return sections


def _describe(name: str, content: str) -> str:
    description = _field(content, "Description")
    return f"{name}: {description}" if description else name


def _estimate(content: str, default: int) -> int:
    effort = _field(content, "Estimated effort")
    return effort_to_milliseconds(effort) if effort else default


def parse_hierarchical_plan(text: str) -> list[PlanTask]:
    """Parse a ``PHASE n / TASK n.m / SUBTASK n.m.k`` decomposition.

    Content inside ``<phases>`` tags is used when present. Phases are
    chained sequentially, as are the subtasks of each task; tasks inside
    a phase carry no dependencies on each other.

    Returns:
        The phases as top-level tasks, empty when no phase header is found
    """
    block = PHASES_BLOCK.search(text)
    content = block.group(1) if block else text

    phases = []
    for header, body in _sections(PHASE_HEADER, content):
        phase_number, phase_name = header.group(1), header.group(2).strip()
        own_body = re.split(r"\bTASK\s+\d", body, maxsplit=1, flags=re.IGNORECASE)[0]
        phase = PlanTask(
            description=_describe(phase_name, own_body),
            estimated_duration=_estimate(own_body, PHASE_EFFORT_MS),
        )
        phases.append(phase.with_subtasks(_parse_phase_tasks(body, phase_number)))

    return chain_sequentially(phases)


def _parse_phase_tasks(content: str, phase_number: str) -> list[PlanTask]:
    pattern = re.compile(rf"\bTASK\s+({phase_number}\.\d+):\s+([^\n]+)", re.IGNORECASE)
    tasks = []
    for header, body in _sections(pattern, content):
        task_number, task_name = header.group(1), header.group(2).strip()
        own_body = re.split(r"\bSUBTASK\s+", body, maxsplit=1, flags=re.IGNORECASE)[0]
        tools = _field(own_body, "Tools needed")
        parallel = _field(own_body, "Can run in parallel")
        task = PlanTask(
            description=_describe(task_name, own_body),
            estimated_duration=_estimate(own_body, TASK_EFFORT_MS),
            resource_requirements=[tool for tool in re.split(r",\s*", tools) if tool] if tools else [],
            priority="parallel" if parallel and parallel.lower() == "yes" else None,
        )
        tasks.append(task.with_subtasks(_parse_subtasks(body, task_number)))
    return tasks


def _parse_subtasks(content: str, task_number: str) -> list[PlanTask]:
    pattern = re.compile(rf"SUBTASK\s+{re.escape(task_number)}\.\d+:\s+([^\n]+)", re.IGNORECASE)
    subtasks = [
        PlanTask(
            description=_describe(header.group(1).strip(), body),
            estimated_duration=_estimate(body, SUBTASK_EFFORT_MS),
        )
        for header, body in _sections(pattern, content)
    ]
    return chain_sequentially(subtasks)
