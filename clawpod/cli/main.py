from __future__ import annotations

from collections.abc import Callable
from functools import wraps
from typing import ParamSpec, TypeVar

from rich.markup import escape
import typer  # type: ignore[import]

from clawpod.config import get_settings
from clawpod.errors import BootstrapError
from clawpod.setup import run_bootstrap, run_post_start
from clawpod.utils.log_utils import logger, set_console_level


app = typer.Typer(
    help="Rootless OpenClaw + Ollama bootstrap",
    add_completion=False,
)


_P = ParamSpec("_P")
_T = TypeVar("_T")


def _report(err: BootstrapError) -> None:
    logger.error(f"{escape(err.step)} failed: {escape(str(err))}")
    if err.remediation:
        logger.error(f"Try: {escape(err.remediation)}")


def _fail_fast(handler: Callable[_P, _T]) -> Callable[_P, _T]:
    @wraps(handler)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _T:
        try:
            return handler(*args, **kwargs)
        except BootstrapError as err:
            _report(err)
            raise typer.Exit(code=1) from err
        except KeyboardInterrupt as err:
            logger.info("Interrupted by user")
            raise typer.Exit(code=130) from err

    return wrapper


@app.callback(invoke_without_command=True)
@_fail_fast
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug output (probe attempts, skipped sources) on the console.",
    ),
) -> None:
    """Provision secrets, build the gateway, start Ollama, pull the model and start the stack."""
    if verbose:
        set_console_level("DEBUG")
    if ctx.invoked_subcommand is not None:
        return
    run_bootstrap(get_settings())


@app.command("post-start")
@_fail_fast
def post_start_command() -> None:
    """Dev container hook: wait for Ollama, pull the model if missing, print status."""
    run_post_start(get_settings())


if __name__ == "__main__":
    app()
