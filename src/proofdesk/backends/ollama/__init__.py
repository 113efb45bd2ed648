"""Ollama chat backend."""

from .backend import OllamaBackend

__all__ = ["OllamaBackend"]
