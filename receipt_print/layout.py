"""Fixed-width text helpers for receipt columns."""

from __future__ import annotations

from typing import List

ELLIPSIS = "..."


def truncate(text: str, width: int) -> str:
    """Cut ``text`` to ``width`` columns, ending in a visible ellipsis when cut."""
    if len(text) <= width:
        return text
    if width <= len(ELLIPSIS):
        return ELLIPSIS[:width]
    return text[: width - len(ELLIPSIS)] + ELLIPSIS


def center(text: str, width: int) -> str:
    """Pad both sides; an odd leftover space goes to the right."""
    text = truncate(text, width)
    pad = width - len(text)
    left = pad // 2
    return " " * left + text + " " * (pad - left)


def right(text: str, width: int) -> str:
    text = truncate(text, width)
    return " " * (width - len(text)) + text


def pad_lr(left: str, value: str, width: int) -> str:
    """One row with ``left`` flush left and ``value`` flush right.

    The value wins when both do not fit: the left part is truncated first,
    keeping at least one space between the two.
    """
    value = truncate(value, width)
    room = width - len(value) - 1
    if room <= 0:
        return right(value, width)
    left = truncate(left, room)
    return left + " " * (width - len(left) - len(value)) + value


def wrap(text: str, width: int) -> List[str]:
    """Word-wrap ``text`` to ``width`` columns.

    Words are never split unless a single word is wider than a line, in which
    case it is hard-broken into width-sized pieces. Every word of the input
    appears in the output.
    """
    lines: List[str] = []
    current = ""
    for word in text.split():
        while len(word) > width:
            if current:
                lines.append(current)
                current = ""
            lines.append(word[:width])
            word = word[width:]
        if not word:
            continue
        if not current:
            current = word
        elif len(current) + 1 + len(word) <= width:
            current = f"{current} {word}"
        else:
            lines.append(current)
            current = word
    if current:
        lines.append(current)
    return lines


def wrap_paragraphs(text: str, width: int) -> List[str]:
    """Wrap each newline-separated paragraph on its own; blank lines are kept."""
    lines: List[str] = []
    for paragraph in text.splitlines():
        lines.extend(wrap(paragraph, width) or [""])
    return lines


def rule(width: int, char: str = "-") -> str:
    return char * width
