# SPDX-License-Identifier: MIT
# Copyright (c) 2025-2026 Soroush Yousefpour
"""OpenAI-compatible chat-completion backend."""

from .backend import OpenAICompatBackend

__all__ = ["OpenAICompatBackend"]
