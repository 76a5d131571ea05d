from __future__ import annotations

from typing import Any

import pytest

from clawpod.errors import UnsafeExecutionContext
from clawpod.setup.preflight import (
    DOCKER_ROOTLESS_QUERY,
    ROOTLESS_QUERY,
    check_rootless,
    ensure_not_superuser,
)
from clawpod.utils.compose import ComposeRuntime, RuntimeBackend


def test_superuser_is_rejected() -> None:
    with pytest.raises(UnsafeExecutionContext) as excinfo:
        ensure_not_superuser(euid=0)
    assert excinfo.value.step == "preflight"


def test_regular_user_passes() -> None:
    ensure_not_superuser(euid=1000)


def test_defaults_to_process_euid(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("clawpod.setup.preflight.os.geteuid", lambda: 0)
    with pytest.raises(UnsafeExecutionContext):
        ensure_not_superuser()


def _runtime(backend: RuntimeBackend = RuntimeBackend.PODMAN_COMPOSE) -> ComposeRuntime:
    return ComposeRuntime(backend=backend)


def test_rootless_confirmed(make_runner: Any) -> None:
    runner = make_runner(binaries={"podman"})
    runner.set_result(ROOTLESS_QUERY, 0, "true\n")

    assert check_rootless(_runtime(), runner) is True
    assert runner.argvs == [tuple(ROOTLESS_QUERY)]


def test_rootful_podman_only_warns(make_runner: Any, log_records: list[dict[str, Any]]) -> None:
    runner = make_runner(binaries={"podman"})
    runner.set_result(ROOTLESS_QUERY, 0, "false\n")

    assert check_rootless(_runtime(), runner) is False
    assert any(
        r["level"].name == "WARNING" and "rootless" in r["message"] for r in log_records
    )


def test_rootless_check_skipped_without_engine(make_runner: Any) -> None:
    runner = make_runner(binaries={"docker"})

    assert check_rootless(_runtime(RuntimeBackend.PODMAN_PLUGIN), runner) is False
    assert runner.calls == []


def test_docker_fallback_queries_docker(make_runner: Any) -> None:
    runner = make_runner(binaries={"podman", "docker"})
    runner.set_result(DOCKER_ROOTLESS_QUERY, 0, '["name=seccomp,profile=builtin","name=rootless"]')

    assert check_rootless(_runtime(RuntimeBackend.DOCKER_COMPOSE), runner) is True
    assert runner.argvs == [tuple(DOCKER_ROOTLESS_QUERY)]


def test_rootful_docker_only_warns(make_runner: Any, log_records: list[dict[str, Any]]) -> None:
    runner = make_runner(binaries={"docker"})
    runner.set_result(DOCKER_ROOTLESS_QUERY, 0, '["name=seccomp,profile=builtin"]')

    assert check_rootless(_runtime(RuntimeBackend.DOCKER_COMPOSE), runner) is False
    assert any("docker info" in r["message"] for r in log_records)
