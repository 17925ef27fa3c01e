"""Text utility functions for script processing."""

from typing import Optional


def count_words(text: Optional[str]) -> int:
    """
    Count whitespace-separated words.

    Args:
        text: Text to count words in (None and blank text count as zero).

    Returns:
        Number of words.
    """
    if not text:
        return 0
    return len(text.split())


def truncate_text(text: str, max_chars: int = 100, suffix: str = "") -> str:
    """
    Truncate text to a maximum number of characters.

    Args:
        text: Text to truncate.
        max_chars: Maximum length of the returned text, suffix included.
        suffix: Optional marker appended when truncation happens (e.g. "...").

    Returns:
        Text no longer than max_chars.
    """
    if len(text) <= max_chars:
        return text
    return text[: max_chars - len(suffix)] + suffix
