# SPDX-License-Identifier: MIT
# Copyright (c) 2025-2026 Soroush Yousefpour
"""
CLI for Proofdesk.

Usage:
    proofdesk                   Status + help (default)
    proofdesk serve             Start the web UI and API server
    proofdesk process "text"    Correct or translate text, print the result
    proofdesk explain "text"    List the changes and learning points
    proofdesk backend           Show current + list available
    proofdesk backend <name>    Switch LLM backend in config
    proofdesk config            Show config summary
    proofdesk config edit       Open config.toml in $EDITOR
    proofdesk config path       Print path to config file
    proofdesk doctor            Check system health
    proofdesk version           Show version

Text for process/explain comes from the arguments, --file <path>, or stdin.
"""

import os
import shutil
import sys
from pathlib import Path
from typing import Optional, Tuple

from pydantic import ValidationError

from .backends import BACKEND_REGISTRY
from .config import get_config, update_config_field
from .schema import (
    LANG_LABELS,
    REWRITE_STEPS,
    TONE_LABELS,
    ExplainRequest,
    ProcessRequest,
    validate_input,
)
from .utils import split_subject

# Color constants
C_RESET = "\033[0m"
C_BOLD = "\033[1m"
C_DIM = "\033[2m"
C_RED = "\033[91m"
C_GREEN = "\033[92m"
C_YELLOW = "\033[93m"
C_CYAN = "\033[96m"

# Flags that take a value, mapped to request field names
VALUE_FLAGS = {
    "--mode": "mode",
    "--tone": "tone_preset",
    "--rewrite": "rewrite_strength",
    "--lang": "target_lang",
    "--instructions": "custom_instructions",
    "--file": "file",
    "--host": "host",
    "--port": "port",
}
BOOL_FLAGS = {
    "--email": "email_mode",
    "--json": "json",
}


def _fail(message: str, hint: Optional[str] = None):
    print(f"{C_RED}{message}{C_RESET}", file=sys.stderr)
    if hint:
        print(f"{C_DIM}{hint}{C_RESET}", file=sys.stderr)
    sys.exit(1)


def _get_config_path() -> Path:
    """Return the config file path."""
    from . import config
    return config.CONFIG_FILE


def _parse_args(args: list) -> Tuple[dict, list]:
    """Split args into (options, positional). Exits on unknown or incomplete flags."""
    opts = {}
    positional = []
    i = 0
    while i < len(args):
        arg = args[i]
        if arg in VALUE_FLAGS:
            if i + 1 >= len(args):
                _fail(f"Missing value for {arg}")
            opts[VALUE_FLAGS[arg]] = args[i + 1]
            i += 2
            continue
        if arg in BOOL_FLAGS:
            opts[BOOL_FLAGS[arg]] = True
        elif arg.startswith("--"):
            _fail(f"Unknown option: {arg}", "Run 'proofdesk help' for usage.")
        else:
            positional.append(arg)
        i += 1
    return opts, positional


def _read_input(opts: dict, positional: list) -> str:
    """Input text from --file, arguments, or stdin (in that order)."""
    path = opts.pop("file", None)
    if path:
        try:
            return Path(path).expanduser().read_text(encoding="utf-8")
        except OSError as e:
            _fail(f"Cannot read {path}: {e}")
    if positional:
        return " ".join(positional)
    if not sys.stdin.isatty():
        return sys.stdin.read()
    _fail("No input text", "Pass text as an argument, with --file, or on stdin.")
    return ""


def _build_request(model, opts: dict, text: str):
    """Validate options into a request model, exiting with a readable error."""
    fields = {k: v for k, v in opts.items() if k in model.model_fields}
    try:
        req = model(input_text=text, **fields)
    except ValidationError as e:
        first = e.errors()[0]
        where = ".".join(str(p) for p in first.get("loc", ()))
        _fail(f"Invalid {where}: {first.get('msg', 'invalid value')}")

    error = validate_input(req.input_text, req.mode, req.target_lang, get_config().limits.input_max_chars)
    if error:
        _fail(error)
    return req


def _make_editor():
    from .editor import Editor
    try:
        return Editor()
    except ValueError as e:
        _fail(str(e), "Run 'proofdesk backend' to see available backends.")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_serve(args: list):
    """Start the API server and web UI."""
    opts, _ = _parse_args(args)
    port = None
    if "port" in opts:
        try:
            port = int(opts["port"])
        except ValueError:
            _fail(f"Invalid port: {opts['port']}")

    from .server import run_server
    run_server(host=opts.get("host"), port=port)


def cmd_process(args: list):
    """Correct or translate text and print the Markdown result."""
    opts, positional = _parse_args(args)
    as_json = opts.pop("json", False)
    text = _read_input(opts, positional)
    req = _build_request(ProcessRequest, opts, text)

    editor = _make_editor()
    try:
        response, error = editor.process(req)
    finally:
        editor.close()

    if error:
        _fail(f"LLM error: {error}")

    if as_json:
        print(response.model_dump_json(by_alias=True, exclude_none=True, indent=2))
        return

    if response.parse_warning:
        print(f"{C_YELLOW}{response.parse_warning}{C_RESET}", file=sys.stderr)

    subject, body = split_subject(response.output_markdown)
    if subject:
        print(f"{C_DIM}Subject:{C_RESET} {C_BOLD}{subject}{C_RESET}", file=sys.stderr)
        print(body)
    else:
        print(response.output_markdown)


def cmd_explain(args: list):
    """Print the changes and learning points for a text."""
    opts, positional = _parse_args(args)
    as_json = opts.pop("json", False)
    text = _read_input(opts, positional)
    req = _build_request(ExplainRequest, opts, text)

    editor = _make_editor()
    try:
        response, error = editor.explain(req)
    finally:
        editor.close()

    if error:
        _fail(f"LLM error: {error}")

    if as_json:
        print(response.model_dump_json(by_alias=True, exclude_none=True, indent=2))
        return

    if response.parse_warning:
        print(f"{C_YELLOW}{response.parse_warning}{C_RESET}", file=sys.stderr)
        return

    print()
    print(f"  {C_BOLD}Changes{C_RESET} {C_DIM}({len(response.changes)}){C_RESET}")
    print()
    for change in response.changes:
        marker = f" {C_YELLOW}important{C_RESET}" if change.severity == "important" else ""
        print(f"  {C_CYAN}{change.category}{C_RESET}{marker}")
        print(f"    {C_RED}- {change.before}{C_RESET}")
        print(f"    {C_GREEN}+ {change.after}{C_RESET}")
        if change.explanation:
            print(f"    {C_DIM}{change.explanation}{C_RESET}")
        print()

    if response.learning:
        print(f"  {C_BOLD}Learning{C_RESET}")
        print()
        for item in response.learning:
            print(f"  {C_CYAN}{item.title}{C_RESET}")
            print(f"    {item.explanation}")
            if item.example_before and item.example_after:
                print(f"    {C_DIM}{item.example_before} -> {item.example_after}{C_RESET}")
            print()


def cmd_backend(args: list):
    """Show or switch backend."""
    config = get_config()

    if not args:
        current = config.llm.backend
        print(f"  {C_DIM}current:{C_RESET} {C_CYAN}{current}{C_RESET}")
        print()
        print(f"  {C_BOLD}Available:{C_RESET}")
        for bid, info in BACKEND_REGISTRY.items():
            marker = f" {C_GREEN}(active){C_RESET}" if bid == current else ""
            print(f"    {C_CYAN}{bid}{C_RESET}  {C_DIM}{info.description}{C_RESET}{marker}")
        return

    new_backend = args[0]
    if new_backend not in BACKEND_REGISTRY:
        available = ", ".join(sorted(BACKEND_REGISTRY))
        _fail(f"Unknown backend: {new_backend}", f"Available: {available}")

    if not update_config_field("llm", "backend", new_backend):
        sys.exit(1)

    print(f"{C_GREEN}Backend set to:{C_RESET} {new_backend}")
    print(f"{C_DIM}Restart 'proofdesk serve' to apply{C_RESET}")


def cmd_config(args: list):
    """Show, edit, or print path to config."""
    if not args or args[0] == "show":
        config = get_config()
        backend_url = config.ollama.base_url if config.llm.backend == "ollama" else config.openai.base_url
        model = config.ollama.model if config.llm.backend == "ollama" else (config.openai.model or "server default")
        signature = config.email.signature or f"{C_DIM}none{C_RESET}"
        print()
        print(f"  {C_DIM}Server{C_RESET}      http://{config.server.host}:{config.server.port}")
        print(f"  {C_DIM}Backend{C_RESET}     {C_CYAN}{config.llm.backend}{C_RESET}  {C_DIM}{backend_url}{C_RESET}")
        print(f"  {C_DIM}Model{C_RESET}       {model}")
        print(f"  {C_DIM}Timeout{C_RESET}     {config.llm.timeout}s")
        print(f"  {C_DIM}Max input{C_RESET}   {config.limits.input_max_chars} chars")
        print(f"  {C_DIM}Signature{C_RESET}   {signature}")
        print()
        print(f"  {C_DIM}{_get_config_path()}{C_RESET}")
        print()
        return

    if args[0] == "edit":
        get_config()  # creates the default file when missing
        editor = os.environ.get("EDITOR") or shutil.which("nano") or "vi"
        os.execvp(editor, [editor, str(_get_config_path())])
        return

    if args[0] == "path":
        print(_get_config_path())
        return

    _fail(f"Unknown config subcommand: {args[0]}", "Usage: proofdesk config [show|edit|path]")


def _doctor_pass(msg: str):
    print(f"  {C_GREEN}✓{C_RESET} {msg}")


def _doctor_fail(msg: str, hint: str = ""):
    print(f"  {C_RED}✗{C_RESET} {msg}")
    if hint:
        print(f"    {C_DIM}{hint}{C_RESET}")


def cmd_doctor(args: list):
    """Check system health."""
    ok = True

    print()
    print(f"  {C_BOLD}Core{C_RESET}")
    print()

    v = sys.version_info
    if v >= (3, 11):
        _doctor_pass(f"Python {v.major}.{v.minor}.{v.micro}")
    else:
        _doctor_fail(f"Python {v.major}.{v.minor}.{v.micro}", "Python 3.11+ required")
        ok = False

    missing_pkgs = []
    for pkg in ["fastapi", "uvicorn", "pydantic", "requests"]:
        try:
            __import__(pkg)
        except ImportError:
            missing_pkgs.append(pkg)
    if not missing_pkgs:
        _doctor_pass("Python packages")
    else:
        _doctor_fail(f"Missing packages: {', '.join(missing_pkgs)}", "Run: pip install -e .")
        ok = False

    config = get_config()
    if _get_config_path().exists():
        _doctor_pass(f"Config {_get_config_path()}")
    else:
        _doctor_fail(f"Config not found: {_get_config_path()}")
        ok = False

    print()
    print(f"  {C_BOLD}LLM{C_RESET}")
    print()

    editor = _make_editor()
    try:
        if editor.running():
            _doctor_pass(f"{editor.name} server reachable")
        else:
            url = config.ollama.base_url if config.llm.backend == "ollama" else config.openai.base_url
            _doctor_fail(f"{editor.name} server not reachable at {url}", "Check [openai]/[ollama] base_url or LLM_BASE_URL")
            ok = False
    finally:
        editor.close()

    print()
    if ok:
        print(f"  {C_GREEN}All checks passed{C_RESET}")
    else:
        print(f"  {C_YELLOW}Some checks failed{C_RESET}")
    print()
    if not ok:
        sys.exit(1)


def cmd_version():
    """Show version."""
    try:
        from proofdesk import __version__
        print(f"Proofdesk {__version__}")
    except Exception:
        print("Proofdesk (version unknown)")


def _print_help():
    """Print grouped help listing."""
    tones = ", ".join(TONE_LABELS)
    langs = ", ".join(LANG_LABELS)
    rewrites = ", ".join(REWRITE_STEPS)
    groups = [
        ("Server", [
            ("proofdesk serve",             "Start web UI + API (--host, --port)"),
        ]),
        ("Text", [
            ("proofdesk process <text>",    "Print corrected / translated text"),
            ("proofdesk explain <text>",    "Print changes and learning points"),
        ]),
        ("Settings", [
            ("proofdesk backend [name]",    "Show or switch LLM backend"),
            ("proofdesk config [edit|path]", "Show config, open in $EDITOR, or print path"),
        ]),
        ("Maintenance", [
            ("proofdesk doctor",            "Check system health"),
            ("proofdesk version",           "Show version"),
        ]),
        ("Options", [
            ("--mode",                      "proofread | translate_proofread"),
            ("--tone",                      tones),
            ("--rewrite",                   rewrites),
            ("--lang",                      f"{langs} (required with translate_proofread)"),
            ("--email",                     "Add greeting and closing"),
            ("--instructions",              "Extra instructions for the model"),
            ("--file",                      "Read text from a file"),
            ("--json",                      "Print the raw API response"),
        ]),
    ]
    width = max(len(c) for _, cmds in groups for c, _ in cmds)
    for group_name, cmds in groups:
        print(f"  {C_BOLD}{group_name}{C_RESET}")
        for cmd, desc in cmds:
            print(f"    {C_CYAN}{cmd:<{width}}{C_RESET}  {C_DIM}{desc}{C_RESET}")
        print()


def cmd_default():
    """Default: status + help."""
    config = get_config()
    info = BACKEND_REGISTRY.get(config.llm.backend)
    backend = info.name if info else config.llm.backend

    print()
    print(f"  {C_BOLD}╭────────────────────────────────────────╮{C_RESET}")
    print(f"  {C_BOLD}│{C_RESET}  {C_CYAN}Proofdesk{C_RESET} · Writing assistant          {C_BOLD}│{C_RESET}")
    print(f"  {C_BOLD}╰────────────────────────────────────────╯{C_RESET}")
    print()
    print(f"  Server:  {C_DIM}http://{config.server.host}:{config.server.port}{C_RESET}")
    print(f"  Backend: {C_CYAN}{backend}{C_RESET}")
    print(f"  Config:  {C_DIM}{_get_config_path()}{C_RESET}")
    print()

    _print_help()


def cli_main():
    """Entry point for the proofdesk CLI."""
    args = sys.argv[1:]

    if not args:
        cmd_default()
        return

    cmd = args[0]
    rest = args[1:]

    if cmd == "serve":
        cmd_serve(rest)
    elif cmd == "process":
        cmd_process(rest)
    elif cmd == "explain":
        cmd_explain(rest)
    elif cmd == "backend":
        cmd_backend(rest)
    elif cmd == "config":
        cmd_config(rest)
    elif cmd == "doctor":
        cmd_doctor(rest)
    elif cmd == "version":
        cmd_version()
    elif cmd in ("-h", "--help", "help"):
        _print_help()
    else:
        _fail(f"Unknown command: {cmd}", "Run 'proofdesk' for usage.")
