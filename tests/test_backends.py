# SPDX-License-Identifier: MIT
# Copyright (c) 2025-2026 Soroush Yousefpour
"""
Unit tests for the backend registry and the HTTP backends.

HTTP sessions are replaced with mocks; no server is contacted.
"""

from unittest.mock import MagicMock

import pytest
import requests

from proofdesk.backends import (
    BACKEND_REGISTRY,
    LLMBackend,
    create_backend,
    get_backend_info,
)
from proofdesk.backends.ollama import OllamaBackend
from proofdesk.backends.openai_compat import OpenAICompatBackend
from proofdesk.config import LLM_BACKENDS, get_config

MESSAGES = [
    {"role": "system", "content": "sys"},
    {"role": "user", "content": "hello"},
]


def _response(status=200, json_data=None, text="", json_error=False):
    r = MagicMock()
    r.status_code = status
    r.ok = 200 <= status < 300
    r.text = text
    if json_error:
        r.json.side_effect = ValueError("no json")
    else:
        r.json.return_value = json_data
    return r


def _with_session(backend, post=None, get=None):
    backend._session = MagicMock()
    if post is not None:
        if isinstance(post, Exception):
            backend._session.post.side_effect = post
        else:
            backend._session.post.return_value = post
    if get is not None:
        if isinstance(get, Exception):
            backend._session.get.side_effect = get
        else:
            backend._session.get.return_value = get
    return backend


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class TestBackendRegistry:
    def test_registry_matches_config_ids(self):
        assert set(BACKEND_REGISTRY) == set(LLM_BACKENDS)

    def test_backend_id_matches_key(self):
        for key, info in BACKEND_REGISTRY.items():
            assert info.id == key

    def test_backend_info_has_required_fields(self):
        for info in BACKEND_REGISTRY.values():
            assert info.name
            assert info.description
            assert callable(info.factory)

    def test_create_backend(self):
        backend = create_backend("openai")
        assert isinstance(backend, OpenAICompatBackend)
        assert isinstance(backend, LLMBackend)
        backend.close()

    def test_create_backend_raises_for_unknown(self):
        with pytest.raises(ValueError):
            create_backend("nonexistent")

    def test_error_message_lists_available_backends(self):
        with pytest.raises(ValueError, match="openai, ollama"):
            create_backend("nonexistent")

    def test_get_backend_info(self):
        assert get_backend_info("ollama").name == "Ollama"
        assert get_backend_info("nope") is None


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

class TestTimeouts:
    def test_configured_timeout(self):
        assert OpenAICompatBackend()._get_timeout(30) == 30

    def test_zero_means_unlimited_read(self):
        assert OpenAICompatBackend()._get_timeout(0) == (10, None)

    def test_truncate_error(self):
        assert len(OpenAICompatBackend()._truncate_error("x" * 500)) == 200


# ---------------------------------------------------------------------------
# OpenAI-compatible backend
# ---------------------------------------------------------------------------

class TestOpenAICompatChat:
    def test_success(self):
        data = {"model": "qwen2.5", "choices": [{"message": {"content": "Bonjour."}}]}
        backend = _with_session(OpenAICompatBackend(), post=_response(json_data=data))

        completion, error = backend.chat(MESSAGES)

        assert error is None
        assert completion.content == "Bonjour."
        assert completion.model == "qwen2.5"

    def test_request_shape(self):
        backend = _with_session(OpenAICompatBackend(), post=_response(json_data={"choices": []}))
        backend.chat(MESSAGES)

        args, kwargs = backend._session.post.call_args
        assert args[0] == "http://localhost:8002/v1/chat/completions"
        payload = kwargs["json"]
        assert payload["messages"] == MESSAGES
        assert payload["temperature"] == 0.3
        assert payload["stream"] is False
        assert "model" not in payload
        assert "max_tokens" not in payload
        assert "Authorization" not in kwargs["headers"]
        assert kwargs["timeout"] == 120

    def test_model_key_and_max_tokens(self):
        config = get_config()
        config.openai.model = "mistral"
        config.openai.api_key = "sk-test"
        config.openai.max_tokens = 512
        backend = _with_session(OpenAICompatBackend(), post=_response(json_data={"choices": []}))

        backend.chat(MESSAGES, temperature=0.0)

        _, kwargs = backend._session.post.call_args
        assert kwargs["json"]["model"] == "mistral"
        assert kwargs["json"]["max_tokens"] == 512
        assert kwargs["json"]["temperature"] == 0.0
        assert kwargs["headers"]["Authorization"] == "Bearer sk-test"

    def test_base_url_trailing_slash(self):
        get_config().openai.base_url = "http://gpu-box:8000/"
        backend = _with_session(OpenAICompatBackend(), post=_response(json_data={"choices": []}))
        backend.chat(MESSAGES)
        assert backend._session.post.call_args[0][0] == "http://gpu-box:8000/v1/chat/completions"

    def test_missing_content_and_model(self):
        backend = _with_session(OpenAICompatBackend(), post=_response(json_data={"choices": []}))
        completion, error = backend.chat(MESSAGES)
        assert error is None
        assert completion.content == ""
        assert completion.model == "unknown"

    def test_timeout(self):
        backend = _with_session(OpenAICompatBackend(), post=requests.exceptions.Timeout())
        completion, error = backend.chat(MESSAGES)
        assert completion is None
        assert error == "LLM request timed out after 120s"

    def test_connection_error(self):
        backend = _with_session(OpenAICompatBackend(), post=requests.exceptions.ConnectionError("refused"))
        completion, error = backend.chat(MESSAGES)
        assert completion is None
        assert error == "LLM server not responding"

    def test_http_error(self):
        backend = _with_session(OpenAICompatBackend(), post=_response(status=500, text="model crashed"))
        completion, error = backend.chat(MESSAGES)
        assert completion is None
        assert error == "LLM returned 500: model crashed"

    def test_invalid_json(self):
        backend = _with_session(OpenAICompatBackend(), post=_response(json_error=True))
        assert backend.chat(MESSAGES) == (None, "Invalid response from LLM server")

    def test_non_object_json(self):
        backend = _with_session(OpenAICompatBackend(), post=_response(json_data=["x"]))
        assert backend.chat(MESSAGES) == (None, "Invalid response format")


class TestOpenAICompatStatus:
    def test_running(self):
        backend = _with_session(OpenAICompatBackend(), get=_response(status=200))
        assert backend.running() is True
        assert backend._session.get.call_args[0][0] == "http://localhost:8002/v1/models"

    def test_not_running(self):
        backend = _with_session(OpenAICompatBackend(), get=requests.exceptions.ConnectionError())
        assert backend.running() is False

    def test_start_with_configured_model(self):
        get_config().openai.model = "mistral"
        models = {"data": [{"id": "llama"}, {"id": "mistral"}]}
        backend = _with_session(OpenAICompatBackend(), get=_response(json_data=models))
        assert backend.start() is True

    def test_start_with_missing_model(self):
        get_config().openai.model = "mistral"
        models = {"data": [{"id": "llama"}]}
        backend = _with_session(OpenAICompatBackend(), get=_response(json_data=models))
        assert backend.start() is False

    def test_start_without_model_uses_first(self):
        models = {"data": [{"id": "llama"}]}
        backend = _with_session(OpenAICompatBackend(), get=_response(json_data=models))
        assert backend._check_model() == (True, "llama")

    def test_close(self):
        backend = _with_session(OpenAICompatBackend())
        backend.close()
        backend._session.close.assert_called_once()


# ---------------------------------------------------------------------------
# Ollama backend
# ---------------------------------------------------------------------------

class TestOllamaChat:
    def test_success(self):
        data = {"model": "llama3.2", "message": {"role": "assistant", "content": "Hallo."}}
        backend = _with_session(OllamaBackend(), post=_response(json_data=data))

        completion, error = backend.chat(MESSAGES)

        assert error is None
        assert completion.content == "Hallo."
        assert completion.model == "llama3.2"

    def test_request_shape(self):
        backend = _with_session(OllamaBackend(), post=_response(json_data={"message": {}}))
        backend.chat(MESSAGES)

        args, kwargs = backend._session.post.call_args
        assert args[0] == "http://localhost:11434/api/chat"
        payload = kwargs["json"]
        assert payload["model"] == "gemma3:4b-it-qat"
        assert payload["messages"] == MESSAGES
        assert payload["stream"] is False
        assert payload["keep_alive"] == "60m"
        assert payload["options"] == {"temperature": 0.3}

    def test_num_ctx_sent_when_set(self):
        get_config().ollama.num_ctx = 8192
        backend = _with_session(OllamaBackend(), post=_response(json_data={"message": {}}))
        backend.chat(MESSAGES)
        assert backend._session.post.call_args[1]["json"]["options"]["num_ctx"] == 8192

    def test_model_falls_back_to_config(self):
        backend = _with_session(OllamaBackend(), post=_response(json_data={"message": {"content": "x"}}))
        completion, _ = backend.chat(MESSAGES)
        assert completion.model == "gemma3:4b-it-qat"

    def test_connection_error(self):
        backend = _with_session(OllamaBackend(), post=requests.exceptions.ConnectionError())
        assert backend.chat(MESSAGES) == (None, "Ollama not responding")

    def test_timeout(self):
        backend = _with_session(OllamaBackend(), post=requests.exceptions.Timeout())
        assert backend.chat(MESSAGES) == (None, "LLM request timed out after 120s")

    def test_http_error(self):
        backend = _with_session(OllamaBackend(), post=_response(status=404, text="model not found"))
        assert backend.chat(MESSAGES) == (None, "LLM returned 404: model not found")

    def test_running(self):
        backend = _with_session(OllamaBackend(), get=_response(status=200))
        assert backend.running() is True
