"""Final human-readable reports. Output only, no side effects."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.rule import Rule

from clawpod.config.settings import DEPENDENCY_SERVICE, GATEWAY_TOKEN_KEY
from clawpod.utils.compose import ComposeRuntime


SECURITY_HIGHLIGHTS: tuple[str, ...] = (
    "Rootless Podman (no host root privileges)",
    "All Linux capabilities dropped (cap_drop: ALL)",
    "no-new-privileges enabled",
    "Read-only root filesystem (OpenClaw container)",
    "Gateway bound to 127.0.0.1 only (not exposed externally)",
    "Token authentication required",
    "Resource limits enforced (memory + CPU)",
    "Minimal /28 network subnet",
)

ALTERNATIVE_MODELS: tuple[tuple[str, str], ...] = (
    ("phi4", "Full Phi-4"),
    ("phi3.5", "Phi-3.5"),
    ("phi4-mini:3.8b", "Phi-4 Mini 3.8B"),
)


def print_summary(
    console: Console,
    *,
    runtime: ComposeRuntime,
    gateway_url: str,
    token: str,
    model: str,
    project_dir: Path | None = None,
) -> None:
    """Print the endpoint, token, model, security checklist and operator commands."""
    prefix = escape(runtime.prefix)
    cd = f"cd {escape(str(project_dir))} && " if project_dir else ""

    console.print()
    console.print(Rule(style="green"))
    console.print("[bold green] OpenClaw is running securely with Podman![/]")
    console.print(Rule(style="green"))
    console.print()
    console.print(f"  Gateway:    [cyan]{gateway_url}[/]", soft_wrap=True)
    console.print(f"  Auth Token: [yellow]{token}[/]", soft_wrap=True)
    console.print(f"  LLM Model:  [cyan]{escape(model)} (via Ollama)[/]", soft_wrap=True)
    console.print()
    if runtime.degraded:
        console.print(
            f"  [bold yellow]Note:[/] running on {prefix}; containers are not rootless.",
            soft_wrap=True,
        )
        console.print()
    console.print("  Security highlights:")
    for item in SECURITY_HIGHLIGHTS:
        console.print(f"    - {item}", soft_wrap=True)
    console.print()
    console.print("  Commands:")
    console.print(f"    Logs:       [cyan]{cd}{prefix} logs -f[/]", soft_wrap=True)
    console.print(f"    Stop:       [cyan]{prefix} down[/]", soft_wrap=True)
    console.print(f"    Restart:    [cyan]{prefix} restart[/]", soft_wrap=True)
    console.print(
        f"    CLI:        [cyan]{prefix} --profile cli run --rm openclaw-cli doctor[/]",
        soft_wrap=True,
    )
    console.print(
        f"    Pull model: [cyan]{prefix} exec {DEPENDENCY_SERVICE} ollama pull <model>[/]",
        soft_wrap=True,
    )
    console.print()
    console.print("  Alternative Phi models you can pull:")
    for name, label in ALTERNATIVE_MODELS:
        console.print(
            f"    {prefix} exec {DEPENDENCY_SERVICE} ollama pull {name:<16} # {label}",
            soft_wrap=True,
        )
    console.print()
    console.print(Rule(style="green"))


def print_devcontainer_status(
    console: Console,
    *,
    gateway_url: str,
    ollama_url: str,
    model: str,
) -> None:
    """Print the dev container post-start status block.

    The token value is not shown here; only the variable that holds it.
    """
    console.print()
    console.print(Rule("OpenClaw is running!", style="green"))
    console.print()
    console.print(f"  Gateway:  [cyan]{gateway_url}[/]", soft_wrap=True)
    console.print(f"  Token:    [yellow]${GATEWAY_TOKEN_KEY}[/]", soft_wrap=True)
    console.print(f"  Model:    [cyan]{escape(model)} (via Ollama)[/]", soft_wrap=True)
    console.print()
    console.print("  Useful commands:")
    console.print(f"    curl {ollama_url}/api/tags    # List models", soft_wrap=True)
    console.print(f"    curl {gateway_url}/          # Check gateway", soft_wrap=True)
    console.print()
    console.print(Rule(style="green"))
