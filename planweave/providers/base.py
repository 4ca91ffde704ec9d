"""Protocols for the external capabilities the planner depends on.

The planner never talks to an LLM backend or a tool runtime directly; it
is handed objects satisfying these protocols.
"""

from typing import Any, Protocol, runtime_checkable

from .models import GenerationResult, ToolDefinition


@runtime_checkable
class TextGenerationProvider(Protocol):
    """Turns a prompt into text, optionally requesting tool calls."""

    async def generate(
        self, prompt: str, tools: list[ToolDefinition] | None = None
    ) -> GenerationResult:
        """Generate text for a prompt.

        Args:
            prompt: Prompt text
            tools: Tools the model may request, if any

        Returns:
            Generated text and any requested tool calls
        """
        ...


@runtime_checkable
class ToolExecutionProvider(Protocol):
    """Executes named tools on behalf of a task."""

    def list_tools(self) -> list[ToolDefinition]:
        """Return the tools this provider can execute."""
        ...

    async def execute(self, tool_name: str, parameters: dict[str, Any]) -> Any:
        """Execute a tool.

        Args:
            tool_name: Name of the tool
            parameters: Tool parameters

        Returns:
            Tool output
        """
        ...
