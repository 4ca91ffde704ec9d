"""Formatting utilities."""

from planweave.utils.formatting.text import indent_lines, truncate_text

__all__ = ["indent_lines", "truncate_text"]
