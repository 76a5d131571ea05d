"""Compose backend detection.

Candidates are probed in a fixed preference order and the first one whose
presence check succeeds wins:

    1. ``podman-compose`` (rootless-native)
    2. ``podman compose`` (podman's built-in compose subcommand)
    3. ``docker compose`` (daemon-based fallback, degraded)

Presence checks never mutate host state and each is a single bounded command.
"""

from __future__ import annotations

from dataclasses import dataclass
import enum
from pathlib import Path

from clawpod.errors import NoRuntimeFound
from clawpod.utils.log_utils import logger

from .operations import CommandRunner


__all__ = [
    "RuntimeBackend",
    "ComposeRuntime",
    "detect_runtime",
    "PRESENCE_CHECK_TIMEOUT",
]

PRESENCE_CHECK_TIMEOUT = 15.0


class RuntimeBackend(enum.Enum):
    """Supported compose backends in preference order."""

    PODMAN_COMPOSE = ("podman-compose",)
    PODMAN_PLUGIN = ("podman", "compose")
    DOCKER_COMPOSE = ("docker", "compose")

    @property
    def prefix(self) -> tuple[str, ...]:
        return self.value

    @property
    def engine(self) -> str:
        """Container engine binary used for ``ps``/``info``/``logs``."""
        return "docker" if self is RuntimeBackend.DOCKER_COMPOSE else "podman"

    @property
    def degraded(self) -> bool:
        """Whether this backend gives up the rootless guarantee."""
        return self is RuntimeBackend.DOCKER_COMPOSE


@dataclass(frozen=True, slots=True)
class ComposeRuntime:
    """The selected backend, fixed for the rest of the run."""

    backend: RuntimeBackend
    project_dir: Path | None = None

    @property
    def prefix(self) -> str:
        """Command prefix as the operator would type it."""
        return " ".join(self.backend.prefix)

    @property
    def engine(self) -> str:
        return self.backend.engine

    @property
    def degraded(self) -> bool:
        return self.backend.degraded

    def compose(self, *args: str) -> list[str]:
        """Return the full argv for a compose subcommand."""
        return [*self.backend.prefix, *args]

    def engine_cmd(self, *args: str) -> list[str]:
        """Return the full argv for a container engine subcommand."""
        return [self.engine, *args]


def _is_present(backend: RuntimeBackend, runner: CommandRunner) -> bool:
    binary = backend.prefix[0]
    if runner.which(binary) is None:
        return False
    if backend is RuntimeBackend.PODMAN_COMPOSE:
        return True
    result = runner.run([*backend.prefix, "version"], timeout=PRESENCE_CHECK_TIMEOUT)
    return result.ok


def detect_runtime(runner: CommandRunner, project_dir: Path | None = None) -> ComposeRuntime:
    """Select the first available compose backend.

    Raises:
        NoRuntimeFound: If none of the candidates is installed.
    """
    for backend in RuntimeBackend:
        if not _is_present(backend, runner):
            logger.debug(f"Compose backend not available: {' '.join(backend.prefix)}")
            continue
        runtime = ComposeRuntime(backend=backend, project_dir=project_dir)
        if backend.degraded:
            logger.warning(
                f"Podman not found, falling back to {runtime.prefix}. "
                "Containers will not run rootless."
            )
        else:
            logger.info(f"Detected: {runtime.prefix}")
        return runtime

    raise NoRuntimeFound(
        "Neither podman-compose, podman compose nor docker compose was found.",
        remediation="pip install podman-compose  (or: sudo dnf install podman-compose)",
    )
