# SPDX-License-Identifier: MIT
# Copyright (c) 2025-2026 Soroush Yousefpour
"""
OpenAI-compatible backend implementation.

Talks to any server exposing POST /v1/chat/completions (vLLM, LM Studio,
llama.cpp server, hosted OpenAI-style APIs).
"""

from typing import List, Optional, Tuple

import requests

from ...config import get_config
from ...utils import SERVICE_CHECK_TIMEOUT, log
from ..base import Completion, LLMBackend

CHAT_PATH = "/v1/chat/completions"
MODELS_PATH = "/v1/models"


class OpenAICompatBackend(LLMBackend):
    """LLM backend using an OpenAI-compatible chat-completion API."""

    def __init__(self):
        self._session = requests.Session()

    @property
    def name(self) -> str:
        return "OpenAI-compatible"

    def close(self) -> None:
        """Clean up resources."""
        try:
            self._session.close()
        except Exception:
            pass

    def running(self) -> bool:
        """Check if the server answers on its models endpoint."""
        try:
            r = self._session.get(
                self._url(MODELS_PATH),
                headers=self._headers(),
                timeout=SERVICE_CHECK_TIMEOUT
            )
            return r.status_code == 200
        except requests.RequestException:
            return False

    def start(self) -> bool:
        """Check server availability and report the model in use."""
        config = get_config()
        if not self.running():
            log(f"LLM server not reachable at {config.openai.base_url}", "WARN")
            return False

        model_ok, model_info = self._check_model()
        if model_ok:
            log(f"LLM server ready ({model_info})", "OK")
            return True

        log(f"LLM server: {model_info}", "WARN")
        return False

    def chat(
        self, messages: List[dict], temperature: Optional[float] = None
    ) -> Tuple[Optional[Completion], Optional[str]]:
        """Send messages to /v1/chat/completions."""
        config = get_config()

        payload = {
            "messages": messages,
            "temperature": config.llm.temperature if temperature is None else temperature,
            "stream": False,
        }
        if config.openai.model:
            payload["model"] = config.openai.model
        if config.openai.max_tokens > 0:
            payload["max_tokens"] = config.openai.max_tokens

        timeout = self._get_timeout(config.llm.timeout)

        try:
            r = self._session.post(
                self._url(CHAT_PATH),
                json=payload,
                headers=self._headers(),
                timeout=timeout
            )
        except requests.exceptions.Timeout:
            log(f"LLM request timed out after {config.llm.timeout}s", "ERR")
            return None, f"LLM request timed out after {config.llm.timeout}s"
        except requests.exceptions.ConnectionError as e:
            log(f"LLM connection error: {e}", "ERR")
            return None, "LLM server not responding"
        except requests.RequestException as e:
            log(f"Unexpected LLM error: {type(e).__name__}: {e}", "ERR")
            return None, self._truncate_error(e)

        if not r.ok:
            body = self._truncate_error(r.text or "")
            log(f"LLM HTTP error {r.status_code}", "ERR")
            return None, f"LLM returned {r.status_code}: {body}"

        try:
            data = r.json()
        except ValueError as e:
            log(f"Invalid JSON response from LLM server: {e}", "ERR")
            return None, "Invalid response from LLM server"

        if not isinstance(data, dict):
            return None, "Invalid response format"

        content = ""
        choices = data.get("choices") or []
        if choices and isinstance(choices[0], dict):
            message = choices[0].get("message") or {}
            content = message.get("content") or ""
        if not content:
            log("LLM returned empty content", "WARN")

        return Completion(content=content, model=data.get("model") or "unknown"), None

    # ─────────────────────────────────────────────────────────────────
    # Private methods
    # ─────────────────────────────────────────────────────────────────

    def _url(self, path: str) -> str:
        return get_config().openai.base_url.rstrip("/") + path

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        api_key = get_config().openai.api_key
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        return headers

    def _check_model(self) -> Tuple[bool, str]:
        """Check if the configured model is served."""
        config = get_config()

        try:
            r = self._session.get(
                self._url(MODELS_PATH),
                headers=self._headers(),
                timeout=SERVICE_CHECK_TIMEOUT
            )
            if r.status_code != 200:
                return False, "Cannot list models"

            models = r.json().get("data", [])
            if not models:
                return False, "No models loaded"

            model_ids = [m.get("id", "") for m in models]

            if config.openai.model:
                if config.openai.model in model_ids:
                    return True, config.openai.model
                return False, f"Model '{config.openai.model}' not found. Available: {', '.join(model_ids[:3])}"

            return True, model_ids[0] or "unknown"

        except Exception as e:
            return False, str(e)[:50]
