"""Subprocess execution for compose and engine commands.

All host commands go through ``CommandRunner`` so tests can swap in a fake
that records argv and returns canned results.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Sequence
from dataclasses import dataclass
import os
from pathlib import Path
import shutil
import subprocess

from clawpod.utils.log_utils import logger

from .logging_utils import format_prefix, sanitize_line, strip_ansi


__all__ = [
    "CommandResult",
    "CommandRunner",
]


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Outcome of a finished command.

    Attributes:
        argv: The command that ran.
        returncode: Exit status. ``127`` when the binary is missing, ``-1`` on timeout.
        output: Captured stdout+stderr (only the retained tail for streamed commands).
    """

    argv: tuple[str, ...]
    returncode: int
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    """Run host commands from a fixed working directory."""

    def __init__(self, cwd: Path | None = None, *, tail_lines: int = 40) -> None:
        self.cwd = cwd
        self.tail_lines = tail_lines

    def which(self, name: str) -> str | None:
        """Return the resolved path of ``name`` on PATH, if any."""
        return shutil.which(name)

    def run(self, argv: Sequence[str], *, timeout: float | None = None) -> CommandResult:
        """Run ``argv`` to completion and capture its combined output."""
        cmd = tuple(argv)
        logger.debug(f"$ {' '.join(cmd)}")
        try:
            proc = subprocess.run(
                cmd,
                cwd=self.cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            return CommandResult(cmd, -1, "Command timed out")
        except FileNotFoundError:
            return CommandResult(cmd, 127, f"Command not found: {cmd[0]}")
        return CommandResult(cmd, proc.returncode, strip_ansi(proc.stdout or ""))

    def stream(self, argv: Sequence[str], *, log_prefix: str | None = None) -> CommandResult:
        """Run ``argv`` while logging each output line as it arrives.

        Only the last ``tail_lines`` lines are retained in the result so that
        long builds do not accumulate unbounded output.
        """
        cmd = tuple(argv)
        logger.debug(f"$ {' '.join(cmd)}")
        pf = format_prefix(log_prefix)
        tail: deque[str] = deque(maxlen=self.tail_lines)
        env = {**os.environ, "PYTHONUNBUFFERED": "1"}
        try:
            with subprocess.Popen(
                cmd,
                cwd=self.cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
                env=env,
            ) as proc:
                assert proc.stdout is not None
                for raw in proc.stdout:
                    line = sanitize_line(raw)
                    if not line.strip():
                        continue
                    tail.append(strip_ansi(raw).rstrip())
                    logger.info(f"{pf}{line}")
                returncode = proc.wait()
        except FileNotFoundError:
            return CommandResult(cmd, 127, f"Command not found: {cmd[0]}")
        return CommandResult(cmd, returncode, "\n".join(tail))
