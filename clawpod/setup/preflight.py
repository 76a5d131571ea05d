"""Execution-context checks that run before anything touches the host."""

from __future__ import annotations

import os

from clawpod.errors import UnsafeExecutionContext
from clawpod.utils.compose import CommandRunner, ComposeRuntime
from clawpod.utils.log_utils import logger


ROOTLESS_QUERY = ["podman", "info", "--format", "{{.Host.Security.Rootless}}"]
DOCKER_ROOTLESS_QUERY = ["docker", "info", "--format", "{{json .SecurityOptions}}"]

# engine -> (query argv, marker expected in its lowercased output)
_ROOTLESS_CHECKS: dict[str, tuple[list[str], str]] = {
    "podman": (ROOTLESS_QUERY, "true"),
    "docker": (DOCKER_ROOTLESS_QUERY, "name=rootless"),
}


def ensure_not_superuser(euid: int | None = None) -> None:
    """Refuse to continue when running as the host superuser.

    Args:
        euid: Effective uid to check; defaults to the current process's.

    Raises:
        UnsafeExecutionContext: If the effective uid is 0.
    """
    if euid is None:
        euid = os.geteuid()
    if euid == 0:
        raise UnsafeExecutionContext(
            "Do NOT run this as root. Rootless Podman runs under your regular user account.",
            remediation="re-run as your regular user, without sudo",
        )


def check_rootless(runtime: ComposeRuntime, runner: CommandRunner) -> bool:
    """Report whether the selected runtime's engine runs rootless. Advisory only.

    Returns:
        True if the engine confirmed rootless mode, False otherwise (including
        when the engine binary is not on PATH).
    """
    engine = runtime.engine
    if runner.which(engine) is None:
        return False
    query, marker = _ROOTLESS_CHECKS[engine]
    result = runner.run(query, timeout=15.0)
    if result.ok and marker in result.output.strip().lower():
        logger.info(f"{engine.capitalize()} is running in rootless mode")
        return True
    logger.warning(
        f"{engine.capitalize()} may not be in rootless mode. "
        f"Verify with: {engine} info | grep -i rootless"
    )
    return False
