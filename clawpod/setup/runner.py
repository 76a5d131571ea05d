"""Ordered, fail-fast bootstrap sequence.

Each step blocks until the previous one has finished, and any fatal error
aborts the run. The only values carried between steps are the selected
runtime and the gateway token; everything else is recomputed each run.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import time

from rich.console import Console

from clawpod.config.settings import DEPENDENCY_SERVICE, ClawpodSettings, GATEWAY_TOKEN_KEY
from clawpod.errors import DependencyTimedOut, StartupVerificationWarning
from clawpod.utils.compose import CommandRunner, ComposeRuntime, detect_runtime
from clawpod.utils.log_utils import logger
from clawpod.utils.ollama import OllamaClient

from .artifacts import ensure_model
from .preflight import check_rootless, ensure_not_superuser
from .readiness import ensure_ready, wait_until_ready
from .secrets import ensure_gateway_token
from .services import build_image, start_services
from .summary import print_devcontainer_status, print_summary


PLACEHOLDER_TOKENS = frozenset({"", "changeme"})


@dataclass(frozen=True, slots=True)
class BootstrapResult:
    """What a successful run established."""

    runtime: ComposeRuntime
    token: str
    model: str
    startup_warning: StartupVerificationWarning | None = None


def run_bootstrap(
    settings: ClawpodSettings,
    *,
    runner: CommandRunner | None = None,
    client: OllamaClient | None = None,
    console: Console | None = None,
    euid: int | None = None,
    sleep: Callable[[float], None] = time.sleep,
    show_progress: bool = True,
) -> BootstrapResult:
    """Turn an uninitialised host into a running gateway + Ollama stack.

    Args:
        settings: Configuration snapshot.
        runner: Host command runner; defaults to one rooted at the project dir.
        client: Ollama client; defaults to one bound to ``settings.ollama.url``.
        console: Destination for the final summary.
        euid: Effective uid override for the superuser check.
        sleep: Sleep function used by polling and the settle delay.
        show_progress: Render the in-place model pull status line.

    Raises:
        BootstrapError: Any fatal step failure; nothing after it runs.
    """
    logger.info("OpenClaw + Ollama - Secure Podman Setup")
    ensure_not_superuser(euid)

    runner = runner or CommandRunner(cwd=settings.project_dir)
    runtime = detect_runtime(runner, settings.project_dir)
    check_rootless(runtime, runner)

    token = ensure_gateway_token(settings.secrets_file, runner)

    build_image(runtime, runner)

    client = client or OllamaClient(settings.ollama.url, timeout=settings.readiness.probe_timeout)
    ensure_ready(
        runtime,
        runner,
        client.is_ready,
        interval=settings.readiness.interval,
        max_attempts=settings.readiness.max_attempts,
        sleep=sleep,
    )

    model = settings.ollama.model
    ensure_model(
        client,
        model,
        pull_hint=f"{runtime.prefix} exec {DEPENDENCY_SERVICE} ollama pull {model}",
        show_progress=show_progress,
    )

    warning = start_services(runtime, runner, settle_delay=settings.settle_delay, sleep=sleep)

    print_summary(
        console or Console(),
        runtime=runtime,
        gateway_url=settings.gateway_url,
        token=token,
        model=model,
        project_dir=settings.project_dir,
    )
    return BootstrapResult(runtime=runtime, token=token, model=model, startup_warning=warning)


def run_post_start(
    settings: ClawpodSettings,
    *,
    client: OllamaClient | None = None,
    console: Console | None = None,
    sleep: Callable[[float], None] = time.sleep,
    show_progress: bool = True,
) -> bool:
    """Dev container hook: wait for Ollama, pull the model once, print status.

    Returns:
        True if the model had to be pulled.

    Raises:
        DependencyTimedOut: If Ollama is not reachable within the budget.
        ArtifactPullFailed: If the model pull fails.
    """
    logger.info("OpenClaw Dev Container - Post-Start")
    if (settings.gateway_token_env or "").strip() in PLACEHOLDER_TOKENS:
        logger.warning("No token set. Generate one and add to .devcontainer/.env:")
        logger.warning(f"    {GATEWAY_TOKEN_KEY}=$(openssl rand -hex 32)")

    url = settings.ollama.devcontainer_url
    client = client or OllamaClient(url, timeout=settings.readiness.probe_timeout)

    logger.info("Waiting for Ollama...")
    tracker = wait_until_ready(
        client.is_ready,
        name=DEPENDENCY_SERVICE,
        interval=settings.readiness.devcontainer_interval,
        max_attempts=settings.readiness.max_attempts,
        sleep=sleep,
    )
    if not tracker.ready:
        raise DependencyTimedOut(
            f"Ollama at {url} not ready after {tracker.attempts} attempts.",
            remediation=f"curl {url}/api/tags",
        )
    logger.info("Ollama is ready")

    pulled = ensure_model(client, settings.ollama.model, show_progress=show_progress)

    print_devcontainer_status(
        console or Console(),
        gateway_url=settings.gateway_url,
        ollama_url=url,
        model=settings.ollama.model,
    )
    return pulled
