"""Gateway token provisioning.

The secrets file is a `KEY=VALUE` env file read by the compose project. The
token is generated once and then reused on every run; the file is always left
readable and writable by its owner only.
"""

from __future__ import annotations

from collections.abc import Callable
import os
from pathlib import Path
import re
import secrets as _secrets
import stat
from typing import Optional

from dotenv import dotenv_values, set_key
from rich.markup import escape

from clawpod.config.settings import GATEWAY_TOKEN_KEY
from clawpod.errors import SecretProvisioningFailed
from clawpod.utils.compose import CommandRunner
from clawpod.utils.log_utils import logger


TOKEN_BYTES = 32
SECRETS_FILE_MODE = stat.S_IRUSR | stat.S_IWUSR  # 0o600

_TOKEN_RE = re.compile(rf"[0-9a-f]{{{TOKEN_BYTES * 2}}}")

_HEADER = (
    "# OpenClaw Podman Environment - AUTO-GENERATED\n"
    "# Keep this file secure (chmod 600). Never commit to version control.\n"
    "\n"
    "# Gateway authentication token (REQUIRED)\n"
)

TokenSource = Callable[[CommandRunner], Optional[str]]


def _from_openssl(runner: CommandRunner) -> str | None:
    if runner.which("openssl") is None:
        return None
    result = runner.run(["openssl", "rand", "-hex", str(TOKEN_BYTES)], timeout=10.0)
    return result.output.strip() if result.ok else None


def _from_python(_: CommandRunner) -> str | None:
    return _secrets.token_hex(TOKEN_BYTES)


def _from_urandom(_: CommandRunner) -> str | None:
    with open("/dev/urandom", "rb") as fh:
        data = fh.read(TOKEN_BYTES)
    return data.hex() if len(data) == TOKEN_BYTES else None


# Strongest source first.
TOKEN_SOURCES: tuple[TokenSource, ...] = (_from_openssl, _from_python, _from_urandom)


def is_valid_token(value: str | None) -> bool:
    """Return True for exactly 32 bytes rendered as lowercase hex."""
    return bool(value) and _TOKEN_RE.fullmatch(value or "") is not None


def generate_token(
    runner: CommandRunner | None = None,
    sources: tuple[TokenSource, ...] = TOKEN_SOURCES,
) -> str:
    """Return a fresh 64-character hex token from the first usable source.

    A source whose output is not exactly 32 bytes of hex is skipped.

    Raises:
        SecretProvisioningFailed: If no source produced a valid token.
    """
    runner = runner or CommandRunner()
    for source in sources:
        try:
            candidate = source(runner)
        except OSError as e:
            name = getattr(source, "__name__", source)
            logger.debug(f"Token source {name} unavailable: {escape(str(e))}")
            continue
        if candidate is not None:
            candidate = candidate.strip().lower()
        if is_valid_token(candidate):
            return candidate  # type: ignore[return-value]
        logger.debug(f"Token source {getattr(source, '__name__', source)} gave no usable output")
    raise SecretProvisioningFailed(
        "Could not generate a gateway token: no entropy source available.",
        remediation=f"set {GATEWAY_TOKEN_KEY}=$(openssl rand -hex 32) in the secrets file",
    )


def read_token(path: Path) -> str | None:
    """Return the stored token, or None if the file or key is missing/empty."""
    if not path.is_file():
        return None
    value = dotenv_values(path).get(GATEWAY_TOKEN_KEY)
    return value.strip() if value and value.strip() else None


def _write_token(path: Path, token: str) -> None:
    if not path.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, SECRETS_FILE_MODE)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(_HEADER)
    # Only the token line is touched; other keys in the file are kept.
    set_key(str(path), GATEWAY_TOKEN_KEY, token, quote_mode="never")


def ensure_gateway_token(path: Path, runner: CommandRunner | None = None) -> str:
    """Guarantee ``path`` holds a gateway token and is owner read/write only.

    An existing non-empty token is reused as-is. Calling this repeatedly with a
    valid token only re-asserts the file permissions.

    Returns:
        The gateway token.
    """
    try:
        token = read_token(path)
        if token:
            logger.info(f"Existing {escape(path.name)} found, preserving gateway token")
        else:
            token = generate_token(runner)
            _write_token(path, token)
            logger.info("Generated new gateway authentication token")
        os.chmod(path, SECRETS_FILE_MODE)
    except (OSError, UnicodeDecodeError) as e:
        raise SecretProvisioningFailed(
            f"Could not read or write secrets file {path}: {e}",
            remediation=f"check ownership and permissions of {path.parent}",
        ) from e
    logger.info(f"Environment file ready: {escape(str(path))} (mode 600)")
    return token
