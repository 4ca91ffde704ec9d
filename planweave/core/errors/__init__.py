"""Error hierarchy shared by all planweave components."""

from .errors import BaseError, ConfigurationError, ErrorContext, ExecutionError
from .models import ConfigurationErrorContext, ErrorContextData

__all__ = [
    "BaseError",
    "ConfigurationError",
    "ConfigurationErrorContext",
    "ErrorContext",
    "ErrorContextData",
    "ExecutionError",
]
