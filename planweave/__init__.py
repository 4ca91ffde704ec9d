"""planweave: decompose an objective into tasks, infer their dependencies, execute them."""

from planweave.planning.executor import PlanExecutionResult, PlanExecutor
from planweave.planning.inference.engine import DependencyInferenceEngine, InferenceResult
from planweave.planning.models import Plan, PlanningStrategy, PlanStatus, PlanTask, TaskStatus

__version__ = "0.1.0"

__all__ = [
    "DependencyInferenceEngine",
    "InferenceResult",
    "Plan",
    "PlanExecutionResult",
    "PlanExecutor",
    "PlanningStrategy",
    "PlanStatus",
    "PlanTask",
    "TaskStatus",
]
