from __future__ import annotations

from typing import Any

import pytest

from clawpod.errors import DependencyTimedOut, ServiceStartFailed
from clawpod.setup.readiness import (
    ReadinessState,
    ReadinessTracker,
    ensure_ready,
    wait_until_ready,
)
from clawpod.utils.compose import ComposeRuntime, RuntimeBackend


class CountingProbe:
    def __init__(self, succeed_on: int | None = None, raise_until: int = 0) -> None:
        self.succeed_on = succeed_on
        self.raise_until = raise_until
        self.calls = 0

    def __call__(self) -> bool:
        self.calls += 1
        if self.calls <= self.raise_until:
            raise ConnectionRefusedError("not listening yet")
        return self.succeed_on is not None and self.calls >= self.succeed_on


def test_always_failing_probe_times_out_after_exact_budget() -> None:
    probe = CountingProbe(succeed_on=None)
    sleeps: list[float] = []

    tracker = wait_until_ready(probe, interval=3.0, max_attempts=30, sleep=sleeps.append)

    assert tracker.state is ReadinessState.TIMED_OUT
    assert probe.calls == 30
    assert tracker.attempts == 30
    assert sleeps == [3.0] * 29


@pytest.mark.parametrize("k", [1, 2, 7])
def test_polling_stops_at_first_success(k: int) -> None:
    probe = CountingProbe(succeed_on=k)
    sleeps: list[float] = []

    tracker = wait_until_ready(probe, interval=3.0, max_attempts=10, sleep=sleeps.append)

    assert tracker.state is ReadinessState.READY
    assert probe.calls == k
    assert len(sleeps) == k - 1


def test_probe_errors_count_as_not_ready() -> None:
    probe = CountingProbe(succeed_on=4, raise_until=2)

    tracker = wait_until_ready(probe, interval=1.0, max_attempts=5, sleep=lambda _: None)

    assert tracker.ready
    assert probe.calls == 4


def test_probe_errors_until_budget_exhausted_time_out() -> None:
    probe = CountingProbe(succeed_on=None, raise_until=100)

    tracker = wait_until_ready(probe, interval=1.0, max_attempts=3, sleep=lambda _: None)

    assert tracker.state is ReadinessState.TIMED_OUT
    assert probe.calls == 3


@pytest.mark.parametrize("interval,attempts", [(0.0, 3), (-1.0, 3), (1.0, 0)])
def test_unbounded_or_empty_budget_rejected(interval: float, attempts: int) -> None:
    with pytest.raises(ValueError):
        wait_until_ready(lambda: True, interval=interval, max_attempts=attempts)


def test_tracker_is_monotonic_once_ready() -> None:
    tracker = ReadinessTracker(name="ollama")
    assert tracker.state is ReadinessState.UNKNOWN

    tracker.record(False)
    assert tracker.state is ReadinessState.POLLING
    tracker.record(True)
    tracker.record(False)
    tracker.expire()

    assert tracker.state is ReadinessState.READY
    assert tracker.attempts == 2


def _runtime() -> ComposeRuntime:
    return ComposeRuntime(backend=RuntimeBackend.PODMAN_COMPOSE)


def test_ensure_ready_tears_down_then_starts_dependency(make_runner: Any) -> None:
    runner = make_runner()
    runner.set_result(["podman-compose", "down", "--remove-orphans"], 1, "no such project")
    probe = CountingProbe(succeed_on=3)

    state = ensure_ready(
        _runtime(), runner, probe, interval=3.0, max_attempts=5, sleep=lambda _: None
    )

    assert state is ReadinessState.READY
    assert runner.argvs == [
        ("podman-compose", "down", "--remove-orphans"),
        ("podman-compose", "up", "-d", "ollama"),
    ]
    assert probe.calls == 3


def test_ensure_ready_timeout_names_logs_command(make_runner: Any) -> None:
    runner = make_runner()
    probe = CountingProbe(succeed_on=None)

    with pytest.raises(DependencyTimedOut) as excinfo:
        ensure_ready(
            _runtime(), runner, probe, interval=3.0, max_attempts=4, sleep=lambda _: None
        )

    assert probe.calls == 4
    assert excinfo.value.remediation == "podman-compose logs ollama"


def test_ensure_ready_start_failure_skips_polling(make_runner: Any) -> None:
    runner = make_runner()
    runner.set_result(["podman-compose", "up", "-d", "ollama"], 1)
    probe = CountingProbe(succeed_on=1)

    with pytest.raises(ServiceStartFailed):
        ensure_ready(_runtime(), runner, probe, sleep=lambda _: None)

    assert probe.calls == 0
