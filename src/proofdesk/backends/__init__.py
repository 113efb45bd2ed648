"""
LLM backends for Proofdesk.

To add a new backend:
1. Create a new folder under backends/ with __init__.py and backend.py
2. Add an entry to BACKEND_REGISTRY below
3. Add its id to config.LLM_BACKENDS

Usage:
    from proofdesk.backends import create_backend

    backend = create_backend("openai")
    if backend.start():
        completion, error = backend.chat(messages)
"""

from dataclasses import dataclass
from typing import Callable, Dict, Optional

from .base import Completion, LLMBackend


@dataclass
class BackendInfo:
    """Metadata for an LLM backend."""
    id: str                    # Config identifier (e.g., "openai")
    name: str                  # Display name (e.g., "OpenAI-compatible")
    description: str           # Short description for the CLI
    factory: Callable[[], LLMBackend]  # Function to create instance


def _create_openai() -> LLMBackend:
    from .openai_compat import OpenAICompatBackend
    return OpenAICompatBackend()


def _create_ollama() -> LLMBackend:
    from .ollama import OllamaBackend
    return OllamaBackend()


# ============================================================================
# BACKEND REGISTRY - Add new backends here
# ============================================================================
BACKEND_REGISTRY: Dict[str, BackendInfo] = {
    "openai": BackendInfo(
        id="openai",
        name="OpenAI-compatible",
        description="Any /v1/chat/completions server (vLLM, LM Studio, llama.cpp...)",
        factory=_create_openai,
    ),
    "ollama": BackendInfo(
        id="ollama",
        name="Ollama",
        description="Ollama server via /api/chat",
        factory=_create_ollama,
    ),
}


def create_backend(backend_type: str) -> LLMBackend:
    """
    Factory function to create an LLM backend instance.

    Args:
        backend_type: Backend ID from BACKEND_REGISTRY

    Returns:
        An instance of the requested backend.

    Raises:
        ValueError: If backend_type is not recognized.
    """
    if backend_type not in BACKEND_REGISTRY:
        available = ", ".join(BACKEND_REGISTRY.keys())
        raise ValueError(f"Unknown backend: {backend_type}. Available: {available}")

    return BACKEND_REGISTRY[backend_type].factory()


def get_backend_info(backend_type: str) -> Optional[BackendInfo]:
    """Get metadata for a backend type."""
    return BACKEND_REGISTRY.get(backend_type)


__all__ = [
    "LLMBackend",
    "Completion",
    "BackendInfo",
    "BACKEND_REGISTRY",
    "create_backend",
    "get_backend_info",
]
