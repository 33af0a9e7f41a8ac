"""text_utils.py — Word splitting, counting and reading-time helpers."""

import math
import re
from dataclasses import dataclass

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class TextStats:
    word_count: int
    character_count: int
    estimated_reading_time: float   # seconds


def split_words(text: str) -> list[str]:
    """Split on runs of whitespace, dropping empty tokens."""
    return [w for w in _WHITESPACE.split(text.strip()) if w]


def count_words(text: str) -> int:
    return len(split_words(text))


def text_stats(text: str, wpm: float = 300) -> TextStats:
    trimmed = text.strip()
    word_count = count_words(trimmed)
    return TextStats(
        word_count=word_count,
        character_count=len(trimmed),
        estimated_reading_time=word_count / wpm * 60,
    )


def format_reading_time(seconds: float) -> str:
    """Format seconds as '45s', '2m' or '2m 30s'."""
    seconds = math.ceil(seconds)
    if seconds < 60:
        return f"{seconds}s"
    minutes, remaining = divmod(seconds, 60)
    if remaining == 0:
        return f"{minutes}m"
    return f"{minutes}m {remaining}s"


def truncate(text: str, max_length: int, ellipsis: str = "...") -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length - len(ellipsis)] + ellipsis


def generate_title(text: str, max_length: int = 50) -> str:
    """Build a display title from the first line of some text."""
    lines = [line.strip() for line in text.strip().splitlines() if line.strip()]
    first_line = _WHITESPACE.sub(" ", lines[0]) if lines else ""
    return truncate(first_line, max_length)


def preview(text: str, word_limit: int = 20) -> str:
    words = split_words(text)
    if len(words) <= word_limit:
        return text
    return " ".join(words[:word_limit]) + "..."
