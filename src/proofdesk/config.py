# SPDX-License-Identifier: MIT
# Copyright (c) 2025-2026 Soroush Yousefpour
"""
Configuration management for Proofdesk.

Loads settings from ~/.proofdesk/config.toml with sensible defaults.
A few environment variables (LLM_BASE_URL, LLM_MODEL, LLM_API_KEY, PORT)
override the file so the server can be pointed elsewhere without editing it.
"""

import fcntl
import os
import re
import sys
import threading
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Optional
from urllib.parse import urlparse

CONFIG_DIR = Path.home() / ".proofdesk"
CONFIG_FILE = CONFIG_DIR / "config.toml"

# Available LLM backends
LLM_BACKENDS = ("openai", "ollama")
LLMBackendType = Literal["openai", "ollama"]

# Default configuration
DEFAULT_CONFIG = """# Proofdesk Configuration
# Edit this file to customize behavior

[server]
# Interface and port for the web UI and API
host = "127.0.0.1"
port = 3001

# Allow cross-origin requests (needed when the UI is served from another origin)
cors = true

[llm]
# LLM backend: "openai" (any OpenAI-compatible server) or "ollama"
backend = "openai"

# Sampling temperature for both calls
temperature = 0.3

# Request timeout in seconds (0 = no read limit)
timeout = 120

[openai]
# Base URL of the OpenAI-compatible server (/v1/chat/completions is appended)
base_url = "http://localhost:8002"

# Model name sent with each request (empty = let the server pick)
model = ""

# Bearer token (empty = no Authorization header)
api_key = ""

# Maximum tokens to generate (0 = server default)
max_tokens = 0

[ollama]
# Ollama server URL (/api/chat is appended)
base_url = "http://localhost:11434"

# Model for both calls
model = "gemma3:4b-it-qat"

# Keep model hot in memory between requests
keep_alive = "60m"

# Context window size (0 = use model default)
num_ctx = 0

[limits]
# Soft input limit shown in the UI; the API rejects input above 1.5x this value
input_max_chars = 12000

# Maximum number of change items returned by /api/explain
max_changes = 25

# Maximum number of learning items returned by /api/explain
max_learning_items = 5

[email]
# Name written under the closing formula in email mode (empty = closing formula only)
signature = ""
"""


@dataclass
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 3001
    cors: bool = True


@dataclass
class LLMConfig:
    """Settings shared by all LLM backends."""
    backend: LLMBackendType = "openai"
    temperature: float = 0.3
    timeout: int = 120


@dataclass
class OpenAIConfig:
    """OpenAI-compatible backend settings."""
    base_url: str = "http://localhost:8002"
    model: str = ""
    api_key: str = ""
    max_tokens: int = 0


@dataclass
class OllamaConfig:
    """Ollama backend settings."""
    base_url: str = "http://localhost:11434"
    model: str = "gemma3:4b-it-qat"
    keep_alive: str = "60m"
    num_ctx: int = 0


@dataclass
class LimitsConfig:
    input_max_chars: int = 12000
    max_changes: int = 25
    max_learning_items: int = 5


@dataclass
class EmailConfig:
    signature: str = ""


@dataclass
class Config:
    server: ServerConfig = field(default_factory=ServerConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    openai: OpenAIConfig = field(default_factory=OpenAIConfig)
    ollama: OllamaConfig = field(default_factory=OllamaConfig)
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    email: EmailConfig = field(default_factory=EmailConfig)


def load_config() -> Config:
    """Load configuration from file, creating default if missing."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)

    # Create default config if it doesn't exist
    if not CONFIG_FILE.exists():
        CONFIG_FILE.write_text(DEFAULT_CONFIG, encoding='utf-8')

    # Load and parse config
    data = {}
    try:
        with open(CONFIG_FILE, 'rb') as f:
            data = tomllib.load(f)
    except Exception as e:
        print(f"Config parse error: {e}", file=sys.stderr)

    # Build config object with defaults
    config = Config()

    if 'server' in data:
        config.server = ServerConfig(
            host=data['server'].get('host', config.server.host),
            port=data['server'].get('port', config.server.port),
            cors=data['server'].get('cors', config.server.cors),
        )

    if 'llm' in data:
        config.llm = LLMConfig(
            backend=data['llm'].get('backend', config.llm.backend),
            temperature=data['llm'].get('temperature', config.llm.temperature),
            timeout=data['llm'].get('timeout', config.llm.timeout),
        )

    if 'openai' in data:
        config.openai = OpenAIConfig(
            base_url=data['openai'].get('base_url', config.openai.base_url),
            model=data['openai'].get('model', config.openai.model),
            api_key=data['openai'].get('api_key', config.openai.api_key),
            max_tokens=data['openai'].get('max_tokens', config.openai.max_tokens),
        )

    if 'ollama' in data:
        config.ollama = OllamaConfig(
            base_url=data['ollama'].get('base_url', config.ollama.base_url),
            model=data['ollama'].get('model', config.ollama.model),
            keep_alive=data['ollama'].get('keep_alive', config.ollama.keep_alive),
            num_ctx=data['ollama'].get('num_ctx', config.ollama.num_ctx),
        )

    if 'limits' in data:
        config.limits = LimitsConfig(
            input_max_chars=data['limits'].get('input_max_chars', config.limits.input_max_chars),
            max_changes=data['limits'].get('max_changes', config.limits.max_changes),
            max_learning_items=data['limits'].get('max_learning_items', config.limits.max_learning_items),
        )

    if 'email' in data:
        config.email = EmailConfig(
            signature=data['email'].get('signature', config.email.signature),
        )

    _apply_env_overrides(config)

    # Validate and sanitize config values
    _validate_config(config)

    return config


def _apply_env_overrides(config: Config):
    """Environment variables win over the file."""
    base_url = os.environ.get("LLM_BASE_URL")
    if base_url:
        config.openai.base_url = base_url

    model = os.environ.get("LLM_MODEL")
    if model:
        config.openai.model = model

    api_key = os.environ.get("LLM_API_KEY")
    if api_key:
        config.openai.api_key = api_key

    port = os.environ.get("PORT")
    if port:
        try:
            config.server.port = int(port)
        except ValueError:
            print(f"Config warning: Invalid PORT '{port}', ignoring", file=sys.stderr)


def _is_valid_url(url: str) -> bool:
    """Check if a string is a valid HTTP/HTTPS URL."""
    try:
        result = urlparse(url)
        return result.scheme in ("http", "https") and bool(result.netloc)
    except (ValueError, AttributeError):
        return False


def _validate_config(config: Config):
    """Validate and sanitize configuration values."""
    if not _is_valid_url(config.openai.base_url):
        print(f"Config warning: Invalid openai base_url '{config.openai.base_url}', using default", file=sys.stderr)
        config.openai.base_url = "http://localhost:8002"

    if not _is_valid_url(config.ollama.base_url):
        print(f"Config warning: Invalid ollama base_url '{config.ollama.base_url}', using default", file=sys.stderr)
        config.ollama.base_url = "http://localhost:11434"

    if config.llm.backend not in LLM_BACKENDS:
        print(f"Config warning: Invalid LLM backend '{config.llm.backend}', using 'openai'", file=sys.stderr)
        config.llm.backend = "openai"

    if not isinstance(config.llm.temperature, (int, float)) or not 0.0 <= config.llm.temperature <= 2.0:
        print("Config warning: temperature must be between 0.0 and 2.0, using 0.3", file=sys.stderr)
        config.llm.temperature = 0.3

    if isinstance(config.llm.timeout, float):
        config.llm.timeout = int(config.llm.timeout)
    if config.llm.timeout < 0:
        print("Config warning: timeout cannot be negative, using 120", file=sys.stderr)
        config.llm.timeout = 120

    if not 1 <= config.server.port <= 65535:
        print(f"Config warning: Invalid port {config.server.port}, using 3001", file=sys.stderr)
        config.server.port = 3001

    if config.openai.max_tokens < 0:
        config.openai.max_tokens = 0

    if config.ollama.num_ctx < 0:
        config.ollama.num_ctx = 0

    if config.limits.input_max_chars < 100:
        print("Config warning: input_max_chars must be at least 100, using 12000", file=sys.stderr)
        config.limits.input_max_chars = 12000

    if config.limits.max_changes < 1:
        print("Config warning: max_changes must be positive, using 25", file=sys.stderr)
        config.limits.max_changes = 25
    elif config.limits.max_changes > 100:
        print("Config warning: max_changes clamped to 100", file=sys.stderr)
        config.limits.max_changes = 100

    if config.limits.max_learning_items < 1:
        print("Config warning: max_learning_items must be positive, using 5", file=sys.stderr)
        config.limits.max_learning_items = 5
    elif config.limits.max_learning_items > 20:
        print("Config warning: max_learning_items clamped to 20", file=sys.stderr)
        config.limits.max_learning_items = 20


# Global config instance with thread-safe initialization
_config: Optional[Config] = None
_config_lock = threading.Lock()


def get_config() -> Config:
    """Get the global configuration instance (thread-safe)."""
    global _config
    if _config is None:
        with _config_lock:
            # Double-check locking pattern for thread safety
            if _config is None:
                _config = load_config()
    return _config


# ---------------------------------------------------------------------------
# TOML section helper used by update_config_field
# ---------------------------------------------------------------------------

def _replace_in_section(content: str, section: str, key: str, new_value: str) -> str:
    """Replace a key's value within a specific TOML section.

    new_value must already be serialized to its TOML string representation
    (e.g. '"quoted"' for strings, 'true'/'false' for bools, '42' for ints).

    If the key doesn't exist in the section, it is appended under the header.
    """
    lines = content.splitlines(keepends=True)
    in_section = False
    section_header_idx = None
    for i, line in enumerate(lines):
        stripped = line.strip()
        if stripped.startswith("[") and stripped.endswith("]"):
            in_section = stripped == f"[{section}]"
            if in_section:
                section_header_idx = i
            continue
        if in_section:
            # Callable replacement so backslashes in new_value stay literal
            for value_pattern in (r'"[^"]*"', r'(?:true|false)', r'[-+]?[0-9]*\.?[0-9]+'):
                new_line = re.sub(
                    rf'^(\s*{key}\s*=\s*){value_pattern}',
                    lambda m: m.group(1) + new_value,
                    line,
                )
                if new_line != line:
                    lines[i] = new_line
                    return "".join(lines)

    # Key not found in section - append it after the section header
    if section_header_idx is not None:
        lines.insert(section_header_idx + 1, f"{key} = {new_value}\n")
        return "".join(lines)

    # Section not found at all - append a new section at the end of the file
    lines.append(f"\n[{section}]\n")
    lines.append(f"{key} = {new_value}\n")
    return "".join(lines)


def _serialize_toml_value(value) -> str:
    """Serialize a Python value to its TOML string representation."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def update_config_field(section: str, key: str, value) -> bool:
    """Update a single config field in-memory AND persist to TOML.

    value may be a bool, int, float, or str. Serialization is handled
    automatically so callers pass Python-native values directly.
    """
    config = get_config()
    section_obj = getattr(config, section, None)
    with _config_lock:
        if section_obj is not None and hasattr(section_obj, key):
            setattr(section_obj, key, value)
    try:
        fd = os.open(str(CONFIG_FILE), os.O_RDWR | os.O_CREAT, 0o644)
        try:
            fcntl.flock(fd, fcntl.LOCK_EX)
            content = CONFIG_FILE.read_text(encoding='utf-8')
            content = _replace_in_section(content, section, key, _serialize_toml_value(value))
            CONFIG_FILE.write_text(content, encoding='utf-8')
        finally:
            fcntl.flock(fd, fcntl.LOCK_UN)
            os.close(fd)
        return True
    except Exception as e:
        print(f"Config write failed: {e}", file=sys.stderr)
        return False
