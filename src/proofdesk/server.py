# SPDX-License-Identifier: MIT
# Copyright (c) 2025-2026 Soroush Yousefpour
"""
HTTP server for Proofdesk (FastAPI).

Routes:
    POST /api/process   Corrected / translated text
    POST /api/explain   Structured changes and learning points
    GET  /api/health    Liveness and backend name
    GET  /api/options   Enumerations, labels and limits for the UI
    GET  /              Web UI (any other non-API path serves it too)

Handlers are plain (sync) functions, so FastAPI runs them on its worker
thread pool and the UI's two parallel calls do not block each other.

Run:
    proofdesk serve --host 127.0.0.1 --port 3001
"""

import threading
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse

from .config import get_config
from .editor import Editor
from .schema import (
    ErrorResponse,
    ExplainRequest,
    ExplainResponse,
    ProcessRequest,
    ProcessResponse,
    options_payload,
    validate_input,
)
from .utils import log
from .web import INDEX_HTML

MAX_BODY_BYTES = 1024 * 1024

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request body"
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part != "body"]
    where = ".".join(loc)
    msg = first.get("msg", "invalid value")
    return f"{where}: {msg}" if where else msg


class BodyLimitMiddleware:
    """
    Reject request bodies above max_bytes with 413.

    Checks Content-Length up front, then counts the bytes actually received,
    so chunked uploads without a length header are capped too. The body is
    buffered (at most max_bytes) and replayed to the app.
    """

    def __init__(self, app, max_bytes: int = MAX_BODY_BYTES):
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers") or [])
        length = headers.get(b"content-length", b"")
        if length.isdigit() and int(length) > self.max_bytes:
            await self._reject(scope, receive, send)
            return

        chunks = []
        received = 0
        while True:
            message = await receive()
            if message["type"] != "http.request":
                # Client went away before the body was complete
                return
            chunk = message.get("body", b"")
            received += len(chunk)
            if received > self.max_bytes:
                await self._reject(scope, receive, send)
                return
            chunks.append(chunk)
            if not message.get("more_body", False):
                break

        body = b"".join(chunks)
        replayed = False

        async def replay():
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        await self.app(scope, replay, send)

    async def _reject(self, scope, receive, send):
        response = _error(413, f"Request body too large (max {self.max_bytes // (1024 * 1024)}mb)")
        await response(scope, receive, send)


def create_app(editor: Optional[Editor] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        editor: Editing pipeline to use. When None, one is created from the
            configured backend on startup (or on first request).
    """
    config = get_config()
    editor_lock = threading.Lock()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = app.state.editor is None
        if owned:
            app.state.editor = Editor()
            app.state.editor.start()
        yield
        if owned and app.state.editor is not None:
            app.state.editor.close()
            app.state.editor = None

    app = FastAPI(lifespan=lifespan, title="Proofdesk", version="0.1.0")
    app.state.editor = editor

    if config.server.cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_middleware(BodyLimitMiddleware, max_bytes=MAX_BODY_BYTES)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return _error(400, _validation_message(exc))

    def _editor(request: Request) -> Editor:
        state = request.app.state
        if state.editor is None:
            with editor_lock:
                if state.editor is None:
                    state.editor = Editor()
        return state.editor

    @app.post(
        "/api/process",
        response_model=ProcessResponse,
        response_model_exclude_none=True,
        responses=ERROR_RESPONSES,
    )
    def process(body: ProcessRequest, request: Request):
        error = validate_input(
            body.input_text, body.mode, body.target_lang, config.limits.input_max_chars
        )
        if error:
            log(f"Rejected /api/process: {error}", "WARN")
            return _error(400, error)

        response, llm_error = _editor(request).process(body)
        if llm_error:
            return _error(502, f"LLM error: {llm_error}")
        return response

    @app.post(
        "/api/explain",
        response_model=ExplainResponse,
        response_model_exclude_none=True,
        responses=ERROR_RESPONSES,
    )
    def explain(body: ExplainRequest, request: Request):
        error = validate_input(
            body.input_text, body.mode, body.target_lang, config.limits.input_max_chars
        )
        if error:
            log(f"Rejected /api/explain: {error}", "WARN")
            return _error(400, error)

        response, llm_error = _editor(request).explain(body)
        if llm_error:
            return _error(502, f"LLM error: {llm_error}")
        return response

    @app.get("/api/health")
    def health(request: Request):
        return {"status": "ok", "backend": _editor(request).name}

    @app.get("/api/options")
    def options():
        return options_payload(config.limits.input_max_chars)

    @app.get("/", response_class=HTMLResponse)
    def index():
        return HTMLResponse(content=INDEX_HTML)

    # Single-page fallback: every other GET outside /api serves the UI
    @app.get("/{path:path}", include_in_schema=False)
    def spa_fallback(path: str):
        if path == "api" or path.startswith("api/"):
            return _error(404, "Not found")
        return HTMLResponse(content=INDEX_HTML)

    return app


def run_server(host: Optional[str] = None, port: Optional[int] = None) -> None:
    """Start the server with uvicorn (blocking)."""
    import uvicorn

    config = get_config()
    host = host or config.server.host
    port = port or config.server.port

    log(f"API server running on http://{host}:{port}", "APP")
    uvicorn.run(create_app(), host=host, port=port, log_level="info")
