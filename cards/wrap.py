"""Greedy title wrapping for social cards."""

from __future__ import annotations

from typing import List

FIRST_LINE_MAX = 18
OTHER_LINE_MAX = 24
MAX_LINES = 4


def wrap_title(title: str, max_lines: int = MAX_LINES) -> List[str]:
    """Upper-case ``title`` and fill at most ``max_lines`` lines word by word.

    The first line holds 18 characters, later lines 24. Words are never
    split: a word longer than the limit sits alone on its line. Words left
    over once every line is filled are dropped.
    """
    words = " ".join(title.split()).upper().split(" ")
    lines: List[str] = []
    current = ""

    for word in filter(None, words):
        limit = FIRST_LINE_MAX if not lines else OTHER_LINE_MAX
        candidate = f"{current} {word}" if current else word
        if len(candidate) <= limit:
            current = candidate
            continue
        if current:
            lines.append(current)
        current = word
        if len(lines) >= max_lines:
            break

    if current and len(lines) < max_lines:
        lines.append(current)
    return lines[:max_lines]
