"""Dependency bring-up and bounded readiness polling.

The poller issues at most ``max_attempts`` probes with a fixed pause between
them and stops at the first success. A probe that raises counts as "not ready
yet"; only running out of attempts is terminal.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import enum
import time

from rich.markup import escape
from tenacity import RetryCallState, Retrying, retry_if_result, stop_after_attempt, wait_fixed

from clawpod.config.settings import DEFAULT_POLL_ATTEMPTS, DEFAULT_POLL_INTERVAL, DEPENDENCY_SERVICE
from clawpod.errors import DependencyTimedOut, ServiceStartFailed
from clawpod.utils.compose import CommandRunner, ComposeRuntime
from clawpod.utils.log_utils import logger


Probe = Callable[[], bool]


class ReadinessState(enum.Enum):
    UNKNOWN = "unknown"
    POLLING = "polling"
    READY = "ready"
    TIMED_OUT = "timed-out"


@dataclass
class ReadinessTracker:
    """Readiness of one dependency within a single run.

    Once ``READY`` the state never changes again.
    """

    name: str
    state: ReadinessState = ReadinessState.UNKNOWN
    attempts: int = 0

    def record(self, success: bool) -> ReadinessState:
        if self.state is ReadinessState.READY:
            return self.state
        self.attempts += 1
        self.state = ReadinessState.READY if success else ReadinessState.POLLING
        return self.state

    def expire(self) -> ReadinessState:
        if self.state is not ReadinessState.READY:
            self.state = ReadinessState.TIMED_OUT
        return self.state

    @property
    def ready(self) -> bool:
        return self.state is ReadinessState.READY


def wait_until_ready(
    probe: Probe,
    *,
    name: str = DEPENDENCY_SERVICE,
    interval: float = DEFAULT_POLL_INTERVAL,
    max_attempts: int = DEFAULT_POLL_ATTEMPTS,
    sleep: Callable[[float], None] = time.sleep,
) -> ReadinessTracker:
    """Poll ``probe`` until it returns True or the attempt budget runs out.

    Args:
        probe: Zero-argument callable returning True once the dependency serves requests.
        name: Dependency name used in log lines.
        interval: Fixed pause in seconds between attempts.
        max_attempts: Maximum number of probes.
        sleep: Sleep function, injectable for tests.

    Returns:
        The tracker, in state ``READY`` or ``TIMED_OUT``.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
    if interval <= 0:
        raise ValueError(f"interval must be positive, got {interval}")

    tracker = ReadinessTracker(name=name)

    def _attempt() -> bool:
        try:
            ok = bool(probe())
        except Exception as e:  # connection refused etc. just means "not yet"
            logger.debug(f"Readiness probe for {name} raised: {escape(str(e))}")
            ok = False
        tracker.record(ok)
        return ok

    def _before_sleep(retry_state: RetryCallState) -> None:
        logger.debug(
            f"{name} not ready (attempt {retry_state.attempt_number}/{max_attempts}); "
            f"retrying in {interval:g}s"
        )

    retrying = Retrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_fixed(interval),
        retry=retry_if_result(lambda ready: not ready),
        retry_error_callback=lambda _state: False,
        before_sleep=_before_sleep,
        sleep=sleep,
    )
    if not retrying(_attempt):
        tracker.expire()
    return tracker


def ensure_ready(
    runtime: ComposeRuntime,
    runner: CommandRunner,
    probe: Probe,
    *,
    service: str = DEPENDENCY_SERVICE,
    interval: float = DEFAULT_POLL_INTERVAL,
    max_attempts: int = DEFAULT_POLL_ATTEMPTS,
    sleep: Callable[[float], None] = time.sleep,
) -> ReadinessState:
    """Start ``service`` from a clean slate and block until it is ready.

    Raises:
        ServiceStartFailed: If ``compose up`` for the service fails.
        DependencyTimedOut: If the probe never succeeds within the budget.
    """
    logger.info("Cleaning up any existing containers...")
    down = runner.run(runtime.compose("down", "--remove-orphans"))
    if not down.ok:
        logger.debug(f"Ignoring failed teardown (exit {down.returncode})")

    logger.info(f"Starting {service} service...")
    up = runner.stream(runtime.compose("up", "-d", service), log_prefix=f"[{service}]")
    if not up.ok:
        raise ServiceStartFailed(
            f"Failed to start {service} (exit {up.returncode}).",
            step="dependency start",
            remediation=f"{runtime.prefix} logs {service}",
        )

    logger.info(f"Waiting for {service} to become healthy...")
    tracker = wait_until_ready(
        probe, name=service, interval=interval, max_attempts=max_attempts, sleep=sleep
    )
    if not tracker.ready:
        raise DependencyTimedOut(
            f"{service} failed to start: not ready after {tracker.attempts} attempts "
            f"(~{interval * max_attempts:g}s).",
            remediation=f"{runtime.prefix} logs {service}",
        )
    logger.info(f"{service} is healthy (attempt {tracker.attempts})")
    return tracker.state
