# SPDX-License-Identifier: MIT
# Copyright (c) 2025-2026 Soroush Yousefpour
"""
Editing pipeline for Proofdesk.

Joins the prompt builders, the configured LLM backend and the response
sanitizer. The server and the CLI both go through this class.

Usage:
    from proofdesk.editor import Editor

    editor = Editor()
    response, error = editor.process(ProcessRequest(input_text="..."))
    editor.close()
"""

import time
from typing import Optional, Tuple

from .backends import LLMBackend, create_backend
from .config import get_config
from .prompts import (
    build_explain_system_prompt,
    build_explain_user_prompt,
    build_messages,
    build_process_system_prompt,
    build_process_user_prompt,
)
from .sanitize import parse_explain_output, parse_process_output
from .schema import (
    ExplainMeta,
    ExplainRequest,
    ExplainResponse,
    ProcessMeta,
    ProcessRequest,
    ProcessResponse,
)
from .utils import log, preview


class Editor:
    """
    Unified editing interface.

    Wraps the configured backend and turns requests into responses.
    """

    def __init__(self, backend: Optional[LLMBackend] = None):
        if backend is not None:
            self._backend = backend
            return
        config = get_config()
        try:
            self._backend = create_backend(config.llm.backend)
            log(f"LLM backend: {self._backend.name}", "INFO")
        except ValueError as e:
            log(f"Failed to create LLM backend '{config.llm.backend}': {e}", "ERR")
            raise

    def close(self) -> None:
        """Clean up backend resources."""
        self._backend.close()

    def running(self) -> bool:
        """Check if the LLM backend is reachable."""
        return self._backend.running()

    def start(self) -> bool:
        """Verify backend availability."""
        return self._backend.start()

    def process(self, req: ProcessRequest) -> Tuple[Optional[ProcessResponse], Optional[str]]:
        """
        Produce the corrected (or translated) text.

        Returns:
            Tuple of (response, error_message).
            On success, error_message is None.
            On LLM failure, response is None.
        """
        config = get_config()
        messages = build_messages(
            build_process_system_prompt(req, signature=config.email.signature),
            build_process_user_prompt(req),
        )

        log(f"Process [{req.mode}/{req.tone_preset}/{req.rewrite_strength}]: {preview(req.input_text)}", "AI")
        start = time.monotonic()
        completion, error = self._backend.chat(messages)
        latency_ms = int((time.monotonic() - start) * 1000)

        if error:
            log(f"Process failed after {latency_ms}ms: {error}", "ERR")
            return None, error

        parsed = parse_process_output(completion.content)
        if parsed.parse_warning:
            log("Process output was not JSON, using raw text", "WARN")
        log(f"Process complete in {latency_ms}ms: {len(req.input_text)} -> {len(parsed.corrected_text)} chars", "OK")

        return ProcessResponse(
            output_markdown=parsed.corrected_text,
            explanation=parsed.explanation,
            meta=ProcessMeta(
                target_lang=req.target_lang,
                rewrite_strength=req.rewrite_strength,
                tone_preset=req.tone_preset,
                model=completion.model,
                latency_ms=latency_ms,
            ),
            parse_warning=parsed.parse_warning,
        ), None

    def explain(self, req: ExplainRequest) -> Tuple[Optional[ExplainResponse], Optional[str]]:
        """
        Produce the structured list of changes and learning points.

        Returns:
            Tuple of (response, error_message), like process().
        """
        config = get_config()
        limits = config.limits
        messages = build_messages(
            build_explain_system_prompt(req, limits.max_changes, limits.max_learning_items),
            build_explain_user_prompt(req),
        )

        start = time.monotonic()
        completion, error = self._backend.chat(messages)
        latency_ms = int((time.monotonic() - start) * 1000)

        if error:
            log(f"Explain failed after {latency_ms}ms: {error}", "ERR")
            return None, error

        parsed = parse_explain_output(
            completion.content, limits.max_changes, limits.max_learning_items
        )
        if parsed.parse_warning:
            log("Explain output was not JSON, no explanations available", "WARN")
        else:
            log(f"Explain complete in {latency_ms}ms: {len(parsed.changes)} changes, {len(parsed.learning)} lessons", "OK")

        return ExplainResponse(
            changes=parsed.changes,
            learning=parsed.learning,
            meta=ExplainMeta(model=completion.model, latency_ms=latency_ms),
            parse_warning=parsed.parse_warning,
        ), None

    @property
    def name(self) -> str:
        """Get the name of the current backend."""
        return self._backend.name

    @property
    def backend(self) -> LLMBackend:
        """Get the underlying backend."""
        return self._backend
