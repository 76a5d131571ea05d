"""One-time model download against a ready Ollama server."""

from __future__ import annotations

import json

from rich.markup import escape
from tqdm import tqdm

from clawpod.errors import ArtifactPullFailed
from clawpod.utils.log_utils import logger
from clawpod.utils.ollama import OllamaClient, OllamaError, model_matches


def _default_pull_hint(client: OllamaClient, model: str) -> str:
    body = json.dumps({"name": model})
    return f"curl {client.base_url}/api/pull -d '{body}'"


def ensure_model(
    client: OllamaClient,
    model: str,
    *,
    pull_hint: str | None = None,
    show_progress: bool = True,
) -> bool:
    """Make sure ``model`` is available on the server, pulling it if needed.

    While pulling, only the ``status`` field of each stream object is shown,
    rewriting a single progress line in place.

    Args:
        client: Client bound to the ready server.
        model: Model identifier, e.g. ``phi4-mini``.
        pull_hint: Command suggested to the operator if the pull fails.
        show_progress: Render the in-place status line.

    Returns:
        True if a pull was performed, False if the model was already present.

    Raises:
        ArtifactPullFailed: If the registry cannot be queried, the pull stream
            reports an error, or the model is still missing once the stream ends.
    """
    hint = pull_hint or _default_pull_hint(client, model)
    try:
        if client.has_model(model):
            logger.info(f"{escape(model)} model already available")
            return False
    except OllamaError as e:
        raise ArtifactPullFailed(f"Could not list models: {e}", remediation=hint) from e

    logger.info(f"Pulling {escape(model)} model... this may take a while on first run")
    try:
        with tqdm(
            bar_format="        {desc}",
            leave=True,
            dynamic_ncols=True,
            disable=not show_progress,
        ) as line:
            for event in client.pull(model):
                status = event.get("status")
                if isinstance(status, str) and status:
                    line.set_description_str(status)
        available = client.list_models()
    except OllamaError as e:
        raise ArtifactPullFailed(f"Pulling {model} failed: {e}", remediation=hint) from e

    logger.info(f"Available models: {escape(', '.join(available)) or '<none>'}")
    if not any(model_matches(name, model) for name in available):
        raise ArtifactPullFailed(
            f"Pull stream for {model} ended but the model is not listed.",
            remediation=hint,
        )
    logger.info(f"{escape(model)} model downloaded")
    return True
