"""
Base LLM backend interface for Proofdesk.

All chat-completion backends must inherit from LLMBackend
and implement the required methods.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

# Shared constants
ERROR_TRUNCATE_LENGTH = 200  # Upstream error bodies are cut to this length
DEFAULT_CONNECT_TIMEOUT = 10  # Default connection timeout in seconds


@dataclass
class Completion:
    """Text returned by one chat-completion call."""
    content: str
    model: str = "unknown"


class LLMBackend(ABC):
    """
    Abstract base class for chat-completion backends.

    Backends never raise for transport or upstream failures: chat() returns
    (None, error_message) and callers decide how to surface it.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name of the backend."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Clean up resources when shutting down."""
        pass

    @abstractmethod
    def running(self) -> bool:
        """Check if the backend service is reachable."""
        pass

    @abstractmethod
    def start(self) -> bool:
        """
        Verify backend availability and log the outcome.

        Returns True if backend is ready, False otherwise.
        """
        pass

    @abstractmethod
    def chat(
        self, messages: List[dict], temperature: Optional[float] = None
    ) -> Tuple[Optional[Completion], Optional[str]]:
        """
        Send chat messages and return the model's reply.

        Args:
            messages: OpenAI-format messages (role/content dicts).
            temperature: Sampling temperature; None uses the configured value.

        Returns:
            Tuple of (completion, error_message).
            On success, error_message is None.
            On error, completion is None.
        """
        pass

    # ─────────────────────────────────────────────────────────────────
    # Shared utilities
    # ─────────────────────────────────────────────────────────────────

    def _get_timeout(self, timeout_config: int) -> Union[int, Tuple[int, None]]:
        """
        Get timeout value for requests.

        Args:
            timeout_config: Timeout from config (0 = unlimited read)

        Returns:
            Timeout value: int if configured, or (connect_timeout, None) for unlimited read
        """
        if timeout_config > 0:
            return timeout_config
        return (DEFAULT_CONNECT_TIMEOUT, None)

    def _truncate_error(self, error) -> str:
        """Truncate error message to consistent length."""
        return str(error)[:ERROR_TRUNCATE_LENGTH]
