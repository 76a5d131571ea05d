"""Cleanup of compose/engine output before it reaches the rich log handler.

Build tools paint progress with ANSI colours and carriage returns; the log
handler renders rich markup. Both have to be neutralised line by line.
"""

from __future__ import annotations

import re
from re import Pattern

from rich.markup import escape


ANSI_ESCAPE_RE: Pattern[str] = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")


def format_prefix(prefix: str | None) -> str:
    """Escape ``prefix`` (e.g. ``[build]``) and add a trailing space; '' if unset."""
    if not prefix or not prefix.strip():
        return ""
    return f"{escape(prefix.strip())} "


def strip_ansi(text: str) -> str:
    return ANSI_ESCAPE_RE.sub("", text)


def sanitize_line(line: str) -> str:
    """Return the last carriage-return frame of ``line``, uncoloured and markup-safe.

    ``"10%\\r50%\\r100%"`` becomes ``"100%"``.
    """
    frames = strip_ansi(line).rstrip("\r\n").split("\r")
    return escape(frames[-1])


__all__ = ["ANSI_ESCAPE_RE", "format_prefix", "sanitize_line", "strip_ansi"]
