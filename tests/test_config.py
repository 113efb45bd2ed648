# SPDX-License-Identifier: MIT
# Copyright (c) 2025-2026 Soroush Yousefpour
"""
Unit tests for config.py.

All tests use the temporary config directory set up in conftest.py.
"""

import tomllib

from proofdesk import config as cfg_mod


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _load_config_from(toml_content: str | None = None):
    """Write toml_content (if any) to the isolated config file and load it."""
    if toml_content is not None:
        cfg_mod.CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        cfg_mod.CONFIG_FILE.write_text(toml_content, encoding="utf-8")
    return cfg_mod.load_config()


# ---------------------------------------------------------------------------
# Basic loading
# ---------------------------------------------------------------------------

class TestLoadConfig:
    def test_missing_file_returns_defaults(self):
        """Missing config file should write defaults and return a valid Config."""
        config = _load_config_from(None)
        assert cfg_mod.CONFIG_FILE.exists()
        assert config.llm.backend == "openai"
        assert config.server.port == 3001

    def test_default_file_is_valid_toml(self):
        _load_config_from(None)
        with open(cfg_mod.CONFIG_FILE, "rb") as f:
            data = tomllib.load(f)
        assert data["llm"]["backend"] == "openai"
        assert data["limits"]["input_max_chars"] == 12000

    def test_valid_toml_loads_values(self):
        toml = """
[llm]
backend = "ollama"
temperature = 0.5
timeout = 30

[ollama]
model = "llama3.2"
num_ctx = 8192

[email]
signature = "Jane Doe"
"""
        config = _load_config_from(toml)
        assert config.llm.backend == "ollama"
        assert config.llm.temperature == 0.5
        assert config.llm.timeout == 30
        assert config.ollama.model == "llama3.2"
        assert config.ollama.num_ctx == 8192
        assert config.email.signature == "Jane Doe"

    def test_missing_keys_keep_defaults(self):
        config = _load_config_from('[openai]\nmodel = "qwen"\n')
        assert config.openai.model == "qwen"
        assert config.openai.base_url == "http://localhost:8002"
        assert config.openai.max_tokens == 0

    def test_invalid_toml_returns_defaults(self, capsys):
        """Corrupt TOML must not crash; should fall back to defaults."""
        config = _load_config_from("[[[ not valid toml")
        assert config.llm.backend == "openai"
        assert "Config parse error" in capsys.readouterr().err


# ---------------------------------------------------------------------------
# Default values
# ---------------------------------------------------------------------------

class TestDefaultValues:
    def test_server_defaults(self):
        config = cfg_mod.Config()
        assert config.server.host == "127.0.0.1"
        assert config.server.port == 3001
        assert config.server.cors is True

    def test_llm_defaults(self):
        config = cfg_mod.Config()
        assert config.llm.backend == "openai"
        assert config.llm.temperature == 0.3
        assert config.llm.timeout == 120

    def test_limits_defaults(self):
        config = cfg_mod.Config()
        assert config.limits.input_max_chars == 12000
        assert config.limits.max_changes == 25
        assert config.limits.max_learning_items == 5

    def test_signature_empty_by_default(self):
        assert cfg_mod.Config().email.signature == ""


# ---------------------------------------------------------------------------
# Environment overrides
# ---------------------------------------------------------------------------

class TestEnvOverrides:
    def test_llm_base_url(self, monkeypatch):
        monkeypatch.setenv("LLM_BASE_URL", "http://gpu-box:8000")
        config = _load_config_from(None)
        assert config.openai.base_url == "http://gpu-box:8000"

    def test_model_and_key(self, monkeypatch):
        monkeypatch.setenv("LLM_MODEL", "mistral-small")
        monkeypatch.setenv("LLM_API_KEY", "sk-test")
        config = _load_config_from(None)
        assert config.openai.model == "mistral-small"
        assert config.openai.api_key == "sk-test"

    def test_port(self, monkeypatch):
        monkeypatch.setenv("PORT", "8080")
        config = _load_config_from(None)
        assert config.server.port == 8080

    def test_invalid_port_ignored(self, monkeypatch, capsys):
        monkeypatch.setenv("PORT", "eighty")
        config = _load_config_from(None)
        assert config.server.port == 3001
        assert "Invalid PORT" in capsys.readouterr().err

    def test_env_wins_over_file(self, monkeypatch):
        monkeypatch.setenv("LLM_BASE_URL", "http://env:1234")
        config = _load_config_from('[openai]\nbase_url = "http://file:5678"\n')
        assert config.openai.base_url == "http://env:1234"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class TestValidation:
    def test_invalid_backend_falls_back(self, capsys):
        config = _load_config_from('[llm]\nbackend = "gpt-cloud"\n')
        assert config.llm.backend == "openai"
        assert "Invalid LLM backend" in capsys.readouterr().err

    def test_invalid_url_falls_back(self):
        config = _load_config_from('[openai]\nbase_url = "not a url"\n')
        assert config.openai.base_url == "http://localhost:8002"

    def test_temperature_out_of_range(self):
        config = _load_config_from("[llm]\ntemperature = 5.0\n")
        assert config.llm.temperature == 0.3

    def test_negative_timeout(self):
        config = _load_config_from("[llm]\ntimeout = -1\n")
        assert config.llm.timeout == 120

    def test_float_timeout_truncated(self):
        config = _load_config_from("[llm]\ntimeout = 45.7\n")
        assert config.llm.timeout == 45

    def test_invalid_port(self):
        config = _load_config_from("[server]\nport = 70000\n")
        assert config.server.port == 3001

    def test_limits_clamped(self):
        toml = """
[limits]
max_changes = 500
max_learning_items = 0
input_max_chars = 10
"""
        config = _load_config_from(toml)
        assert config.limits.max_changes == 100
        assert config.limits.max_learning_items == 5
        assert config.limits.input_max_chars == 12000


# ---------------------------------------------------------------------------
# Singleton and persistence
# ---------------------------------------------------------------------------

class TestGetConfig:
    def test_returns_same_instance(self):
        assert cfg_mod.get_config() is cfg_mod.get_config()


class TestTomlHelpers:
    CONTENT = """[llm]
backend = "openai"
temperature = 0.3

[ollama]
model = "gemma3:4b-it-qat"
"""

    def test_replace_existing_key(self):
        out = cfg_mod._replace_in_section(self.CONTENT, "llm", "backend", '"ollama"')
        data = tomllib.loads(out)
        assert data["llm"] == {"backend": "ollama", "temperature": 0.3}
        assert data["ollama"]["model"] == "gemma3:4b-it-qat"

    def test_replace_is_section_scoped(self):
        out = cfg_mod._replace_in_section(self.CONTENT, "ollama", "model", '"qwen3:8b"')
        data = tomllib.loads(out)
        assert data["ollama"]["model"] == "qwen3:8b"
        assert "model" not in data["llm"]

    def test_replace_number(self):
        out = cfg_mod._replace_in_section(self.CONTENT, "llm", "temperature", "0.7")
        assert tomllib.loads(out)["llm"]["temperature"] == 0.7

    def test_replace_appends_missing_key(self):
        out = cfg_mod._replace_in_section(self.CONTENT, "ollama", "keep_alive", '"5m"')
        data = tomllib.loads(out)
        assert data["ollama"]["keep_alive"] == "5m"
        assert data["ollama"]["model"] == "gemma3:4b-it-qat"

    def test_replace_appends_missing_section(self):
        out = cfg_mod._replace_in_section(self.CONTENT, "email", "signature", '"Jane"')
        assert "[email]" in out
        assert tomllib.loads(out)["email"]["signature"] == "Jane"

    def test_serialize_values(self):
        assert cfg_mod._serialize_toml_value(True) == "true"
        assert cfg_mod._serialize_toml_value(42) == "42"
        assert cfg_mod._serialize_toml_value('say "hi"') == '"say \\"hi\\""'


class TestUpdateConfigField:
    def test_updates_memory_and_file(self):
        config = cfg_mod.get_config()
        assert cfg_mod.update_config_field("llm", "backend", "ollama") is True
        assert config.llm.backend == "ollama"

        with open(cfg_mod.CONFIG_FILE, "rb") as f:
            data = tomllib.load(f)
        assert data["llm"]["backend"] == "ollama"

    def test_persists_across_reload(self):
        cfg_mod.get_config()
        cfg_mod.update_config_field("email", "signature", "Jane Doe")
        assert cfg_mod.load_config().email.signature == "Jane Doe"
