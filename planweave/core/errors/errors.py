"""Base error classes with structured error context.

All errors raised by planweave derive from :class:`BaseError`, which keeps
the message, a structured :class:`ErrorContext` and the optional cause.
"""

import traceback
from datetime import datetime
from typing import Any

from .models import ConfigurationErrorContext, ErrorContextData


class ErrorContext:
    """Where an error happened: a strict ``ErrorContextData`` behind a small wrapper."""

    def __init__(self, context_data: ErrorContextData):
        self._data = context_data

    @classmethod
    def create(cls, scope: str, error_type: str, component: str, operation: str) -> "ErrorContext":
        """Create a context for ``component.operation``.

        Args:
            scope: Plan id, or the area of the package when no plan is involved
            error_type: Name of the error class
            component: Component raising the error
            operation: Operation being performed

        Returns:
            New ErrorContext instance
        """
        return cls(
            ErrorContextData(
                scope=scope,
                error_type=error_type,
                error_location=f"{component}.{operation}",
                component=component,
                operation=operation,
            )
        )

    @property
    def data(self) -> ErrorContextData:
        """Get the context data."""
        return self._data


class BaseError(Exception):
    """Base class for all planweave errors.

    Keeps the message, structured context and cause so errors can be
    logged and serialized uniformly.
    """

    def __init__(self, message: str, context: ErrorContext, cause: Exception | None = None):
        """Initialize error.

        Args:
            message: Error message
            context: Required error context
            cause: Optional cause exception
        """
        self.message = message
        self.context = context
        self.cause = cause
        self.timestamp = datetime.now()
        self.traceback = self._capture_traceback()

        super().__init__(message)

    def _capture_traceback(self) -> str:
        """Capture the traceback of the exception being handled, if any."""
        return traceback.format_exc()

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary.

        Returns:
            Dictionary representation of error
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
            "context": self.context.data.model_dump(),
            "cause": str(self.cause) if self.cause else None,
            "traceback": self.traceback,
        }

    def __str__(self) -> str:
        cause_str = f" (caused by: {self.cause})" if self.cause else ""
        return f"{self.__class__.__name__}: {self.message}{cause_str}"


class ExecutionError(BaseError):
    """Error raised when executing part of a plan fails."""


class ConfigurationError(BaseError):
    """Error raised when configuration is invalid or cannot be loaded."""

    def __init__(
        self,
        message: str,
        context: ErrorContext,
        config_context: ConfigurationErrorContext,
        cause: Exception | None = None,
    ):
        """Initialize configuration error.

        Args:
            message: Error message
            context: Required error context
            config_context: Required configuration error context
            cause: Optional cause exception
        """
        self.config_context = config_context
        super().__init__(message, context, cause)

    @classmethod
    def for_file(
        cls,
        message: str,
        config_file: Any,
        cause: Exception | None = None,
        key: str = "<file>",
        operation: str = "load",
    ) -> "ConfigurationError":
        """Create an error describing a problem with a configuration file.

        Args:
            message: Error message
            config_file: Path of the offending file
            cause: Optional cause exception
            key: Configuration key involved, if known
            operation: Operation being performed

        Returns:
            New ConfigurationError instance
        """
        context = ErrorContext.create(
            scope="configuration",
            error_type=cls.__name__,
            component="settings",
            operation=operation,
        )
        config_context = ConfigurationErrorContext(
            config_key=key,
            config_section=str(config_file),
            expected_type="mapping",
            actual_value=str(cause) if cause else "",
        )
        return cls(message, context, config_context, cause)
