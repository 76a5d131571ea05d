"""Bootstrap settings: paths, Ollama endpoints, model name and polling knobs.

Values come from the process environment first and an optional `clawpod.env`
second (python-dotenv, no override). The snapshot is frozen and cached per
settings file; pass `reload=True` to re-read it.

The gateway token lives in a separate secrets file that is read and written
by `clawpod.setup.secrets` only and is never loaded into the environment.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import os
from pathlib import Path

from dotenv import load_dotenv


_DEFAULT_ENV_PATH = Path.cwd() / "clawpod.env"

GATEWAY_SERVICE = "openclaw"
GATEWAY_CONTAINER = "openclaw-gateway"
DEPENDENCY_SERVICE = "ollama"
GATEWAY_TOKEN_KEY = "OPENCLAW_GATEWAY_TOKEN"
# The gateway is published on loopback only; this tool never widens it.
GATEWAY_URL = "http://127.0.0.1:18789"

DEFAULT_OLLAMA_URL = "http://127.0.0.1:11434"
DEFAULT_DEVCONTAINER_OLLAMA_URL = "http://ollama:11434"
DEFAULT_MODEL = "phi4-mini"
DEFAULT_POLL_INTERVAL = 3.0
DEFAULT_POLL_ATTEMPTS = 30
DEFAULT_DEVCONTAINER_POLL_INTERVAL = 2.0
DEFAULT_SETTLE_DELAY = 5.0
DEFAULT_PROBE_TIMEOUT = 5.0


def _coerce_positive_int(value: str | None, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _coerce_positive_float(value: str | None, default: float) -> float:
    if value is None or value == "":
        return default
    try:
        parsed = float(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


@dataclass(frozen=True)
class ReadinessSettings:
    interval: float
    max_attempts: int
    probe_timeout: float
    devcontainer_interval: float


@dataclass(frozen=True)
class OllamaSettings:
    url: str
    devcontainer_url: str
    model: str


@dataclass(frozen=True)
class ClawpodSettings:
    """Top-level snapshot of configuration values."""

    env_file: Path
    project_dir: Path
    secrets_file: Path
    ollama: OllamaSettings
    readiness: ReadinessSettings
    settle_delay: float
    # Injected by the dev container; only inspected by the post-start hook.
    gateway_token_env: str | None = None

    @property
    def gateway_url(self) -> str:
        return GATEWAY_URL


def _resolve_env_path(env_file: os.PathLike[str] | str | None) -> Path:
    if env_file is None:
        return _DEFAULT_ENV_PATH
    return Path(env_file).resolve()


@lru_cache(maxsize=4)
def _load_settings(env_path: Path) -> ClawpodSettings:
    # Existing environment variables take precedence over file defaults.
    load_dotenv(dotenv_path=env_path, override=False)

    project_dir = Path(os.getenv("CLAWPOD_PROJECT_DIR") or Path.cwd()).expanduser().resolve()
    secrets_raw = os.getenv("CLAWPOD_SECRETS_FILE")
    secrets_file = (
        Path(secrets_raw).expanduser().resolve() if secrets_raw else project_dir / ".env"
    )

    ollama = OllamaSettings(
        url=os.getenv("CLAWPOD_OLLAMA_URL") or DEFAULT_OLLAMA_URL,
        devcontainer_url=os.getenv("CLAWPOD_DEVCONTAINER_OLLAMA_URL")
        or DEFAULT_DEVCONTAINER_OLLAMA_URL,
        model=os.getenv("CLAWPOD_MODEL") or DEFAULT_MODEL,
    )

    readiness = ReadinessSettings(
        interval=_coerce_positive_float(os.getenv("CLAWPOD_POLL_INTERVAL"), DEFAULT_POLL_INTERVAL),
        max_attempts=_coerce_positive_int(
            os.getenv("CLAWPOD_POLL_ATTEMPTS"), DEFAULT_POLL_ATTEMPTS
        ),
        probe_timeout=_coerce_positive_float(
            os.getenv("CLAWPOD_PROBE_TIMEOUT"), DEFAULT_PROBE_TIMEOUT
        ),
        devcontainer_interval=_coerce_positive_float(
            os.getenv("CLAWPOD_DEVCONTAINER_POLL_INTERVAL"), DEFAULT_DEVCONTAINER_POLL_INTERVAL
        ),
    )

    return ClawpodSettings(
        env_file=env_path,
        project_dir=project_dir,
        secrets_file=secrets_file,
        ollama=ollama,
        readiness=readiness,
        settle_delay=_coerce_positive_float(
            os.getenv("CLAWPOD_SETTLE_DELAY"), DEFAULT_SETTLE_DELAY
        ),
        gateway_token_env=os.getenv(GATEWAY_TOKEN_KEY),
    )


def get_settings(
    env_file: os.PathLike[str] | str | None = None,
    *,
    reload: bool = False,
) -> ClawpodSettings:
    """Return the cached settings snapshot.

    Args:
        env_file: Optional explicit path to a settings file. When omitted
            `clawpod.env` in the working directory is used if present.
        reload: When True the cached snapshot is cleared before loading.
    """
    env_path = _resolve_env_path(env_file)
    if reload:
        _load_settings.cache_clear()
    return _load_settings(env_path)
