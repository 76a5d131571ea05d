"""Bootstrap steps, from preflight checks to the final summary.

Public entrypoints:
    - run_bootstrap(settings)   full host bootstrap
    - run_post_start(settings)  dev container post-start hook
"""

from .runner import BootstrapResult, run_bootstrap, run_post_start


__all__ = ["BootstrapResult", "run_bootstrap", "run_post_start"]
