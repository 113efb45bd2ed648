# SPDX-License-Identifier: MIT
# Copyright (c) 2025-2026 Soroush Yousefpour
"""
Shared fixtures.

Every test gets its own config directory under tmp_path and never touches
~/.proofdesk/. Environment overrides are cleared so a developer's shell
does not leak into the results.
"""

from typing import Callable, List, Optional, Tuple, Union

import pytest

from proofdesk.backends.base import Completion, LLMBackend


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    from proofdesk import config as cfg_mod

    cfg_dir = tmp_path / ".proofdesk"
    monkeypatch.setattr(cfg_mod, "CONFIG_DIR", cfg_dir)
    monkeypatch.setattr(cfg_mod, "CONFIG_FILE", cfg_dir / "config.toml")
    monkeypatch.setattr(cfg_mod, "_config", None)
    for var in ("LLM_BASE_URL", "LLM_MODEL", "LLM_API_KEY", "PORT"):
        monkeypatch.delenv(var, raising=False)
    return cfg_mod


class FakeBackend(LLMBackend):
    """In-memory backend: returns canned replies and records every call."""

    def __init__(
        self,
        reply: Union[str, Callable[[List[dict]], str]] = "",
        error: Optional[str] = None,
        model: str = "fake-model",
    ):
        self.reply = reply
        self.error = error
        self.model = model
        self.calls: List[List[dict]] = []
        self.closed = False

    @property
    def name(self) -> str:
        return "Fake"

    def close(self) -> None:
        self.closed = True

    def running(self) -> bool:
        return self.error is None

    def start(self) -> bool:
        return self.running()

    def chat(
        self, messages: List[dict], temperature: Optional[float] = None
    ) -> Tuple[Optional[Completion], Optional[str]]:
        self.calls.append(messages)
        if self.error:
            return None, self.error
        content = self.reply(messages) if callable(self.reply) else self.reply
        return Completion(content=content, model=self.model), None


@pytest.fixture
def fake_backend():
    """Factory for FakeBackend instances."""
    return FakeBackend
