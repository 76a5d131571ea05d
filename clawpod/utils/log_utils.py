"""Process-wide loguru setup for clawpod.

Importing this module registers two sinks once:

* a rich console sink on stderr (INFO, or DEBUG after ``set_console_level``)
* a rotating DEBUG file sink, unless ``CLAWPOD_DEBUG_LOG`` is set to ''

The final summary is printed to stdout through its own console, so it never
interleaves with log lines.
"""

from __future__ import annotations

import os
from pathlib import Path

from loguru import logger
from rich.console import Console
from rich.logging import RichHandler


CONSOLE_LEVEL = "INFO"
FILE_LEVEL = "DEBUG"
FILE_ROTATION = "5 MB"
FILE_RETENTION = 2
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}"

_console_sink_id: int | None = None


def debug_log_path() -> Path | None:
    """Resolved path of the DEBUG file sink, or None when disabled."""
    raw = os.getenv("CLAWPOD_DEBUG_LOG", "clawpod_debug.log")
    if not raw:
        return None
    return Path(raw).expanduser().resolve()


def set_console_level(level: str) -> None:
    """Replace the console sink with one at ``level``; other sinks are untouched."""
    global _console_sink_id
    if _console_sink_id is not None:
        logger.remove(_console_sink_id)
    handler = RichHandler(
        console=Console(stderr=True),
        markup=True,
        show_time=False,
        show_path=False,
    )
    _console_sink_id = logger.add(handler, level=level, format="{message}")


def _configure() -> None:
    logger.remove()
    set_console_level(CONSOLE_LEVEL)

    path = debug_log_path()
    if path is None:
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        str(path),
        level=FILE_LEVEL,
        format=_FILE_FORMAT,
        rotation=FILE_ROTATION,
        retention=FILE_RETENTION,
        enqueue=True,
    )


__all__ = ["logger", "set_console_level", "debug_log_path"]

_configure()
