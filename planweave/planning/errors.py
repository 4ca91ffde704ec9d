"""Errors raised by planning components."""

from planweave.core.errors import BaseError, ErrorContext, ExecutionError

DEPENDENCIES_NOT_SATISFIED = "Dependencies not satisfied"


class PlanningError(BaseError):
    """Raised when a plan cannot be created, replanned or updated."""

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        component: str = "planner",
        operation: str = "unknown",
        plan_id: str | None = None,
    ):
        """Initialize planning error.

        Args:
            message: Error message
            cause: Original exception that caused this error
            component: Planning component name
            operation: Operation being performed
            plan_id: ID of the plan involved, if any
        """
        context = ErrorContext.create(
            scope=plan_id or "planning",
            error_type=self.__class__.__name__,
            component=component,
            operation=operation,
        )
        super().__init__(message, context, cause)
        self.plan_id = plan_id

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message} (caused by: {self.cause})"
        return self.message


class TaskExecutionError(ExecutionError):
    """Raised when a single task cannot be executed.

    Carries the id of the failing task and, for hierarchical tasks, the
    subtask snapshots at the moment of failure.
    """

    def __init__(
        self,
        message: str,
        task_id: str,
        cause: Exception | None = None,
        subtasks: list | None = None,
    ):
        """Initialize task execution error.

        Args:
            message: Error message
            task_id: ID of the failing task
            cause: Original exception that caused this error
            subtasks: Subtask snapshots of the failing task, if any
        """
        context = ErrorContext.create(
            scope="execution",
            error_type=self.__class__.__name__,
            component="executor",
            operation="run_task",
        )
        super().__init__(message, context, cause)
        self.task_id = task_id
        self.subtasks = subtasks or []

    def __str__(self) -> str:
        return self.message
