"""Shared helpers: logging, compose runtimes and the Ollama HTTP client."""
