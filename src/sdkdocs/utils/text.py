"""Text helpers shared by the markdown parsers and the query layer."""

from __future__ import annotations

import re
from typing import List

_LINK_RE = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_CODE_RE = re.compile(r"`([^`]+)`")
_BOLD_RE = re.compile(r"\*\*([^*]+)\*\*")
_ITALIC_RE = re.compile(r"\*([^*]+)\*")

_OPENERS = "<({["
_CLOSERS = ">)}]"


def clean_markup(text: str) -> str:
    """Strip markdown links, inline code and emphasis, keeping the text."""
    text = _LINK_RE.sub(r"\1", text)
    text = _CODE_RE.sub(r"\1", text)
    text = _BOLD_RE.sub(r"\1", text)
    text = _ITALIC_RE.sub(r"\1", text)
    return text.strip()


def split_top_level(text: str, separator: str = ",") -> List[str]:
    """Split on ``separator`` only where no bracket pair is open.

    Angle, round, curly and square brackets all count as nesting, so
    ``a: Map<string, number>, b`` splits into two parts.
    """
    parts: List[str] = []
    current: List[str] = []
    depth = 0
    for char in text:
        if char in _OPENERS:
            depth += 1
        elif char in _CLOSERS:
            # "=>" in arrow types is not a closing bracket
            if not (char == ">" and current and current[-1] == "="):
                depth = max(depth - 1, 0)
        elif char == separator and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(char)

    tail = "".join(current).strip()
    if tail:
        parts.append(tail)
    return [part for part in parts if part]


def truncate(text: str, max_len: int) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
