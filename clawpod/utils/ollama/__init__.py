"""Blocking Ollama API client used for readiness probing and model pulls."""

from .client import OllamaClient, OllamaError, model_matches


__all__ = ["OllamaClient", "OllamaError", "model_matches"]
