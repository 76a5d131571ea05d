"""Configuration helpers for clawpod.

Expose `get_settings` as the canonical accessor for environment-driven
configuration. Modules should avoid reading the environment directly and
instead import from this package to retrieve typed snapshots.
"""

from .settings import ClawpodSettings, get_settings


__all__ = ["ClawpodSettings", "get_settings"]
