"""Reduce receipt text to what a printer's single-byte code page can show.

The command bytes themselves come from python-escpos; this module only makes
sure every character handed to it has exactly one byte in the selected table,
so the layout's character counts hold on paper.
"""

from __future__ import annotations

import unicodedata
from typing import Tuple

# Tables python-escpos can select on a generic Epson-compatible profile
CODE_PAGES: Tuple[str, ...] = (
    "cp437",
    "cp850",
    "cp852",
    "cp858",
    "cp860",
    "cp863",
    "cp865",
    "cp866",
    "cp1252",
)

PLACEHOLDER = "?"

_WHITESPACE = ("\t", "\r", "\n", "\u00a0")

# Closest printable stand-ins for characters most code pages lack
_SUBSTITUTES = {
    "‘": "'",
    "’": "'",
    "‚": ",",
    "“": '"',
    "”": '"',
    "„": '"',
    "–": "-",
    "—": "-",
    "−": "-",
    "…": "...",
    "•": "*",
    "×": "x",
    "€": "EUR",
    "™": "TM",
}


def check_code_page(code_page: str) -> str:
    """Return the python-escpos name for ``code_page`` (``cp437`` -> ``CP437``)."""
    if code_page not in CODE_PAGES:
        raise ValueError(f"Unsupported code page: {code_page}")
    return code_page.upper()


def _encodable(text: str, code_page: str) -> bool:
    try:
        text.encode(code_page)
    except UnicodeEncodeError:
        return False
    return True


def _substitute_char(char: str, code_page: str) -> str:
    if char in _WHITESPACE:
        return " "
    if unicodedata.category(char).startswith("C"):
        # Control and format characters would desynchronize the command stream
        return PLACEHOLDER if char not in ("\u200b", "\u200d", "\ufeff") else ""
    if _encodable(char, code_page):
        return char
    replacement = _SUBSTITUTES.get(char)
    if replacement is not None and _encodable(replacement, code_page):
        return replacement
    decomposed = unicodedata.normalize("NFKD", char)
    base = "".join(c for c in decomposed if not unicodedata.combining(c))
    if base and base != char and _encodable(base, code_page):
        return base
    return PLACEHOLDER


def to_code_page(text: str, code_page: str) -> str:
    """Reduce ``text`` to characters the code page can represent.

    Combining sequences are composed first, so "e" followed by a combining
    acute prints as the single accented letter the table has. Unsupported
    characters become a visual equivalent when one exists and a placeholder
    glyph otherwise, so nothing is dropped silently.
    """
    check_code_page(code_page)
    text = unicodedata.normalize("NFC", text)
    return "".join(_substitute_char(char, code_page) for char in text)
