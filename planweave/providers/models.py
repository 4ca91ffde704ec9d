"""Data exchanged with text-generation and tool-execution providers."""

from typing import Any, Literal

from pydantic import Field

from planweave.core.models import StrictBaseModel


class ToolDefinition(StrictBaseModel):
    """A tool a provider may ask to call."""

    name: str = Field(description="Name of the tool")
    description: str = Field(default="", description="What the tool does")
    parameters: dict[str, Any] = Field(default_factory=dict, description="JSON schema of the tool parameters")


class ToolCall(StrictBaseModel):
    """Structured tool call requested by the text-generation provider."""

    tool_name: str = Field(description="Name of the tool to execute")
    parameters: dict[str, Any] = Field(default_factory=dict, description="Tool parameters")
    call_id: str | None = Field(default=None, description="Unique identifier for this call")


class ToolResult(StrictBaseModel):
    """Result from executing one tool call."""

    tool_name: str = Field(description="Name of the executed tool")
    status: Literal["success", "error"] = Field(description="Execution status")
    result: Any | None = Field(default=None, description="Tool execution result")
    error: str | None = Field(default=None, description="Error message if failed")
    call_id: str | None = Field(default=None, description="Matching call identifier")


class GenerationResult(StrictBaseModel):
    """Text produced by a text-generation provider."""

    text: str = Field(description="Generated text")
    tool_calls: list[ToolCall] = Field(default_factory=list, description="Tool calls requested by the model")
