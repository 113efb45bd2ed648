"""
Ollama backend implementation.

Uses Ollama's native /api/chat endpoint in non-streaming mode.
"""

from typing import List, Optional, Tuple

import requests

from ..base import Completion, LLMBackend
from ...config import get_config
from ...utils import log, SERVICE_CHECK_TIMEOUT


class OllamaBackend(LLMBackend):
    """LLM backend using a local or LAN Ollama server."""

    def __init__(self):
        self._session = requests.Session()

    @property
    def name(self) -> str:
        return "Ollama"

    def close(self) -> None:
        """Clean up resources."""
        try:
            self._session.close()
        except Exception:
            pass

    def running(self) -> bool:
        """Check if Ollama server is running."""
        config = get_config()
        try:
            r = self._session.get(
                config.ollama.base_url,
                timeout=SERVICE_CHECK_TIMEOUT
            )
            return r.status_code == 200
        except requests.RequestException:
            return False

    def start(self) -> bool:
        """Check Ollama availability."""
        config = get_config()
        if self.running():
            log(f"Ollama ready ({config.ollama.model})", "OK")
            return True

        log("Ollama not running - start with: ollama serve", "WARN")
        return False

    def chat(
        self, messages: List[dict], temperature: Optional[float] = None
    ) -> Tuple[Optional[Completion], Optional[str]]:
        """Send messages to /api/chat."""
        config = get_config()

        options = {
            "temperature": config.llm.temperature if temperature is None else temperature,
        }
        # Only set num_ctx if specified (0 = use model default)
        if config.ollama.num_ctx > 0:
            options["num_ctx"] = config.ollama.num_ctx

        try:
            r = self._session.post(
                config.ollama.base_url.rstrip("/") + "/api/chat",
                json={
                    "model": config.ollama.model,
                    "messages": messages,
                    "stream": False,
                    "keep_alive": config.ollama.keep_alive,
                    "options": options,
                },
                timeout=self._get_timeout(config.llm.timeout)
            )
        except requests.exceptions.Timeout:
            return None, f"LLM request timed out after {config.llm.timeout}s"
        except requests.exceptions.ConnectionError:
            return None, "Ollama not responding"
        except requests.RequestException as e:
            return None, self._truncate_error(e)

        if not r.ok:
            return None, f"LLM returned {r.status_code}: {self._truncate_error(r.text or '')}"

        try:
            data = r.json()
        except ValueError:
            return None, "Invalid response from Ollama"
        if not isinstance(data, dict):
            return None, "Invalid response format"

        message = data.get("message") or {}
        content = message.get("content") or ""
        return Completion(content=content, model=data.get("model") or config.ollama.model), None
