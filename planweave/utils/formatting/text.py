"""Text formatting utilities."""


def truncate_text(text: str, max_length: int, add_ellipsis: bool = True) -> str:
    """Truncate text to a maximum length.

    Args:
        text: Text to truncate
        max_length: Number of characters kept
        add_ellipsis: Whether to append "..." when text was cut

    Returns:
        Truncated text
    """
    if not text or len(text) <= max_length:
        return text

    truncated = text[:max_length]
    if add_ellipsis:
        truncated += "..."
    return truncated


def indent_lines(text: str, indent: str) -> str:
    """Prefix every non-empty line of text with an indent."""
    return "\n".join(f"{indent}{line}" if line else line for line in text.split("\n"))
