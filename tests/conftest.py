"""Shared fakes for host commands and the Ollama API."""

from __future__ import annotations

from collections.abc import Generator, Iterable, Iterator, Sequence
from pathlib import Path
from typing import Any

from loguru import logger
import pytest

from clawpod.config.settings import (
    ClawpodSettings,
    OllamaSettings,
    ReadinessSettings,
)
from clawpod.utils.compose import CommandResult, CommandRunner
from clawpod.utils.ollama import OllamaClient


class FakeRunner(CommandRunner):
    """Records every command and answers from a table of canned results."""

    def __init__(self, *, binaries: Iterable[str] = ()) -> None:
        super().__init__(cwd=None)
        self.binaries = set(binaries)
        self.results: dict[tuple[str, ...], tuple[int, str]] = {}
        self.calls: list[tuple[str, tuple[str, ...]]] = []

    def set_result(self, argv: Sequence[str], returncode: int, output: str = "") -> None:
        self.results[tuple(argv)] = (returncode, output)

    def which(self, name: str) -> str | None:
        return f"/usr/bin/{name}" if name in self.binaries else None

    def _result(self, argv: Sequence[str]) -> CommandResult:
        returncode, output = self.results.get(tuple(argv), (0, ""))
        return CommandResult(tuple(argv), returncode, output)

    def run(self, argv: Sequence[str], *, timeout: float | None = None) -> CommandResult:
        self.calls.append(("run", tuple(argv)))
        return self._result(argv)

    def stream(self, argv: Sequence[str], *, log_prefix: str | None = None) -> CommandResult:
        self.calls.append(("stream", tuple(argv)))
        return self._result(argv)

    @property
    def argvs(self) -> list[tuple[str, ...]]:
        return [argv for _, argv in self.calls]


class FakeOllama(OllamaClient):
    """In-memory Ollama: becomes ready after N probes and 'downloads' on pull."""

    def __init__(
        self,
        *,
        ready_after: int | None = 1,
        models: Iterable[str] = (),
        pull_events: list[dict[str, Any]] | None = None,
        install_on_pull: bool = True,
    ) -> None:
        super().__init__("http://127.0.0.1:11434")
        self.ready_after = ready_after
        self.probes = 0
        self.models = list(models)
        self.pull_events = (
            pull_events
            if pull_events is not None
            else [
                {"status": "pulling manifest"},
                {"status": "verifying sha256 digest"},
                {"status": "success"},
            ]
        )
        self.install_on_pull = install_on_pull
        self.pull_calls: list[str] = []

    def is_ready(self) -> bool:
        self.probes += 1
        return self.ready_after is not None and self.probes >= self.ready_after

    def list_models(self) -> list[str]:
        return list(self.models)

    def pull(self, name: str) -> Iterator[dict[str, Any]]:
        self.pull_calls.append(name)
        yield from self.pull_events
        if self.install_on_pull:
            self.models.append(f"{name}:latest")


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner(binaries={"podman-compose", "podman"})


@pytest.fixture
def make_runner() -> type[FakeRunner]:
    return FakeRunner


@pytest.fixture
def make_ollama() -> type[FakeOllama]:
    return FakeOllama


@pytest.fixture
def log_records() -> Generator[list[dict[str, Any]], None, None]:
    """Capture loguru records emitted during the test."""
    records: list[dict[str, Any]] = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)


@pytest.fixture
def settings(tmp_path: Path) -> ClawpodSettings:
    """Settings rooted in a temporary project directory with fast polling."""
    return ClawpodSettings(
        env_file=tmp_path / "clawpod.env",
        project_dir=tmp_path,
        secrets_file=tmp_path / ".env",
        ollama=OllamaSettings(
            url="http://127.0.0.1:11434",
            devcontainer_url="http://ollama:11434",
            model="phi4-mini",
        ),
        readiness=ReadinessSettings(
            interval=3.0,
            max_attempts=5,
            probe_timeout=1.0,
            devcontainer_interval=2.0,
        ),
        settle_delay=5.0,
    )
