"""Command-line interface for dependency inference.

Reads a YAML or JSON document describing tasks and prints the inferred
dependency graph::

    tasks:
      - Research the market
      - id: report
        description: Write the report based on the research
    narrative: Write the report after we research the market.
    config:
      max_dependencies_per_task: 2

Example: planweave-infer tasks.yaml --no-similarity
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from planweave.core.activity_stream import ActivityStream
from planweave.core.errors import ConfigurationError
from planweave.core.settings import read_config_file
from planweave.planning.inference.config import DependencyInferenceConfig
from planweave.planning.inference.engine import DependencyInferenceEngine
from planweave.planning.inference.vocabulary import InferenceVocabulary
from planweave.planning.models import PlanTask

logger = logging.getLogger(__name__)


def setup_logging(level: str = "WARNING") -> None:
    """Configure a stream handler for command-line use."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="planweave-infer",
        description="Infer dependencies between tasks and print the dependency graph.",
    )
    parser.add_argument("input", type=Path, help="YAML or JSON file with 'tasks' and optional 'narrative'")
    parser.add_argument("--no-similarity", action="store_true", help="Disable the content-similarity pass")
    parser.add_argument("--no-hierarchy", action="store_true", help="Disable the stage-hierarchy pass")
    parser.add_argument("--no-flow", action="store_true", help="Disable the information-flow pass")
    parser.add_argument("--max-deps", type=int, help="Maximum dependencies kept per task")
    parser.add_argument("--vocabulary", type=Path, help="YAML file overriding the inference vocabulary")
    parser.add_argument("--verbose", action="store_true", help="Include details in the activity output")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: WARNING)",
    )
    return parser


def load_tasks(document: dict[str, Any]) -> list[PlanTask]:
    """Build tasks from the ``tasks`` entry of an input document.

    Raises:
        ValueError: If the entry is missing or holds an unusable item
    """
    items = document.get("tasks")
    if not isinstance(items, list) or not items:
        raise ValueError("Input must contain a non-empty 'tasks' list")

    tasks = []
    for index, item in enumerate(items, start=1):
        if isinstance(item, str):
            tasks.append(PlanTask(id=f"task{index}", description=item))
        elif isinstance(item, dict) and isinstance(item.get("description"), str):
            tasks.append(PlanTask(id=str(item.get("id", f"task{index}")), description=item["description"]))
        else:
            raise ValueError(f"Task {index} must be a string or a mapping with a 'description'")
    return tasks


def build_config(document: dict[str, Any], args: argparse.Namespace) -> DependencyInferenceConfig:
    """Merge the document's ``config`` entry with command-line overrides."""
    values = dict(document.get("config") or {})
    if args.no_similarity:
        values["enable_content_similarity"] = False
    if args.no_hierarchy:
        values["enable_type_hierarchy"] = False
    if args.no_flow:
        values["enable_information_flow"] = False
    if args.max_deps is not None:
        values["max_dependencies_per_task"] = args.max_deps
    return DependencyInferenceConfig.model_validate(values, strict=False)


def render_table(tasks: list[PlanTask]) -> Table:
    """Build a table of tasks and the descriptions of their dependencies."""
    descriptions = {task.id: task.description for task in tasks}
    table = Table(title="Inferred Dependencies")
    table.add_column("ID", style="cyan")
    table.add_column("Task")
    table.add_column("Depends on", style="green")
    for task in tasks:
        table.add_row(task.id, task.description, "\n".join(descriptions[dep] for dep in task.dependencies) or "-")
    return table


def main(argv: list[str] | None = None) -> int:
    """Run the command-line interface.

    Returns:
        Process exit code
    """
    args = create_parser().parse_args(argv)
    setup_logging(args.log_level)
    console = Console()

    try:
        document = read_config_file(args.input)
        tasks = load_tasks(document)
        config = build_config(document, args)
        vocabulary = InferenceVocabulary.from_yaml(args.vocabulary) if args.vocabulary else None
    except (ConfigurationError, ValidationError, ValueError) as e:
        logger.error(f"Invalid input {args.input}: {e}")
        console.print(f"[red]Error:[/red] {e}", markup=True, highlight=False)
        return 1

    narrative = document.get("narrative")
    status_console = Console(stderr=True)
    activity = ActivityStream(
        output_handler=lambda text: status_console.print(text, markup=False, highlight=False), verbose=args.verbose
    )
    engine = DependencyInferenceEngine(config=config, vocabulary=vocabulary, activity_stream=activity)
    result = engine.infer(tasks, narrative=narrative if isinstance(narrative, str) else None)

    console.print(render_table(result.tasks))
    console.print(engine.visualize(result.tasks), markup=False, highlight=False)
    if result.removed_edges:
        console.print(f"[yellow]Removed {len(result.removed_edges)} edges to break cycles[/yellow]")
    return 0


if __name__ == "__main__":
    sys.exit(main())
