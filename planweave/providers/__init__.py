"""External capability protocols and their data models."""

from .base import TextGenerationProvider, ToolExecutionProvider
from .models import GenerationResult, ToolCall, ToolDefinition, ToolResult

__all__ = [
    "GenerationResult",
    "TextGenerationProvider",
    "ToolCall",
    "ToolDefinition",
    "ToolExecutionProvider",
    "ToolResult",
]
