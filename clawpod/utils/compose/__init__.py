"""Compose runtime helpers.

This package provides structured helpers for:
    * Running host commands with captured or live-streamed output
        (``CommandRunner``)
    * Selecting the compose backend for the run (``detect_runtime``)

Principles:
    * Keep subprocess usage behind ``CommandRunner`` so higher-level code can be
        mocked in tests.
    * Avoid side effects at import time.

Public API (re-exported):
        - CommandResult
        - CommandRunner
        - ComposeRuntime
        - RuntimeBackend
        - detect_runtime
"""

from .operations import CommandResult, CommandRunner
from .runtime import ComposeRuntime, RuntimeBackend, detect_runtime


__all__ = [
    "CommandResult",
    "CommandRunner",
    "ComposeRuntime",
    "RuntimeBackend",
    "detect_runtime",
]
