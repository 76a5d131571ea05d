"""Minimal blocking client for the Ollama HTTP API.

Only the endpoints the bootstrap needs are covered:

    * ``GET /api/tags``  - list local models (doubles as the readiness probe)
    * ``POST /api/pull`` - pull a model, answered with an NDJSON status stream
"""

from __future__ import annotations

from collections.abc import Iterator
import json
from typing import Any

import requests
from rich.markup import escape

from clawpod.utils.log_utils import logger


__all__ = ["OllamaClient", "OllamaError", "model_matches"]


class OllamaError(RuntimeError):
    """Raised when the Ollama API is unreachable or answers with an error."""


def model_matches(listed: str, target: str) -> bool:
    """Return True if a listed model name refers to ``target``.

    Ollama lists models with an explicit tag (``phi4-mini:latest``) even when
    they were pulled by bare name.
    """
    if listed == target:
        return True
    if ":" not in target:
        return listed == f"{target}:latest"
    return False


class OllamaClient:
    """Thin wrapper around a ``requests.Session`` bound to one Ollama server."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 5.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def list_models(self) -> list[str]:
        """Return the names of locally available models."""
        try:
            response = self.session.get(self._url("/api/tags"), timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as e:
            raise OllamaError(f"Failed to list models at {self.base_url}: {e}") from e
        if not isinstance(payload, dict):
            raise OllamaError(f"Unexpected model listing from {self.base_url}: {payload!r}")
        models = payload.get("models") or []
        return [str(m.get("name", "")) for m in models if isinstance(m, dict) and m.get("name")]

    def has_model(self, name: str) -> bool:
        return any(model_matches(listed, name) for listed in self.list_models())

    def is_ready(self) -> bool:
        """Readiness probe: the model listing endpoint answers successfully."""
        try:
            self.list_models()
        except OllamaError as e:
            logger.debug(f"Ollama not ready yet: {escape(str(e))}")
            return False
        return True

    def pull(self, name: str) -> Iterator[dict[str, Any]]:
        """Start a model pull and yield each status object from the stream.

        The stream ends when the server closes the response; that is the only
        completion signal.

        Raises:
            OllamaError: On transport errors, non-2xx responses, undecodable
                lines, or an ``error`` object in the stream.
        """
        try:
            with self.session.post(
                self._url("/api/pull"),
                json={"name": name},
                stream=True,
                timeout=(self.timeout, None),
            ) as response:
                response.raise_for_status()
                for raw in response.iter_lines(decode_unicode=True):
                    if not raw:
                        continue
                    try:
                        event = json.loads(raw)
                    except json.JSONDecodeError as e:
                        raise OllamaError(f"Unexpected pull stream line: {raw!r}") from e
                    if not isinstance(event, dict):
                        continue
                    if event.get("error"):
                        raise OllamaError(str(event["error"]))
                    yield event
        except requests.RequestException as e:
            raise OllamaError(f"Model pull request for '{name}' failed: {e}") from e
