"""Rootless bootstrap for a local OpenClaw gateway backed by Ollama."""

__version__ = "0.1.0"
