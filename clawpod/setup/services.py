"""Gateway image build and full-stack start."""

from __future__ import annotations

from collections.abc import Callable, Sequence
import re
import time

from rich.markup import escape

from clawpod.config.settings import (
    DEFAULT_SETTLE_DELAY,
    DEPENDENCY_SERVICE,
    GATEWAY_CONTAINER,
    GATEWAY_SERVICE,
)
from clawpod.errors import BuildFailed, ServiceStartFailed, StartupVerificationWarning
from clawpod.utils.compose import CommandRunner, ComposeRuntime
from clawpod.utils.log_utils import logger


_RUNNING_RE = re.compile(r"\bup\b", re.IGNORECASE)


def build_image(
    runtime: ComposeRuntime,
    runner: CommandRunner,
    service: str = GATEWAY_SERVICE,
) -> None:
    """Build the image for ``service`` only, streaming the build output.

    Raises:
        BuildFailed: If the build exits non-zero. Never retried.
    """
    logger.info("Building OpenClaw image (this may take several minutes on first run)...")
    result = runner.stream(runtime.compose("build", service), log_prefix="[build]")
    if not result.ok:
        cwd = f"cd {runtime.project_dir} && " if runtime.project_dir else ""
        raise BuildFailed(
            f"OpenClaw image build failed (exit {result.returncode}). "
            f"Last build output:\n{result.output}",
            remediation=f"{cwd}{runtime.prefix} build {service}",
        )
    logger.info("OpenClaw image built successfully")


def gateway_status(
    runtime: ComposeRuntime,
    runner: CommandRunner,
    container: str = GATEWAY_CONTAINER,
) -> str:
    """Return the engine's status string for ``container`` (empty if unknown)."""
    result = runner.run(
        runtime.engine_cmd("ps", "--filter", f"name={container}", "--format", "{{.Status}}"),
        timeout=15.0,
    )
    return result.output.strip() if result.ok else ""


def start_services(
    runtime: ComposeRuntime,
    runner: CommandRunner,
    *,
    services: Sequence[str] = (DEPENDENCY_SERVICE, GATEWAY_SERVICE),
    container: str = GATEWAY_CONTAINER,
    settle_delay: float = DEFAULT_SETTLE_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> StartupVerificationWarning | None:
    """Start the stack and check that the gateway container reports running.

    The status check is diagnostic: a missing "Up" status yields a warning
    that is logged and returned, not an error.

    Raises:
        ServiceStartFailed: If ``compose up`` exits non-zero.
    """
    logger.info("Starting OpenClaw gateway...")
    result = runner.stream(runtime.compose("up", "-d", *services), log_prefix="[up]")
    if not result.ok:
        raise ServiceStartFailed(
            f"Failed to start services {', '.join(services)} (exit {result.returncode}).",
            remediation=f"{runtime.prefix} logs",
        )

    sleep(settle_delay)
    status = gateway_status(runtime, runner, container)
    if _RUNNING_RE.search(status):
        logger.info(f"All services started ({container}: {escape(status)})")
        return None

    warning = StartupVerificationWarning(
        f"Gateway container may not be running (status: {status or 'unknown'}).",
        remediation=f"{runtime.engine} logs {container}",
    )
    logger.warning(escape(f"{warning} Check: {warning.remediation}"))
    return warning
