"""
Tests for operable.py: settings precedence, flag parsing, logging setup and
the fatal startup path.
"""

import json
import logging
import os
import sys
from unittest.mock import patch

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import operable
from operable import Settings, _load_config, configure_logging, parse_serve_flags, resolve_settings
from toolcore.errors import ConfigurationError


# =========================================================================
# Tests: configuration
# =========================================================================

class TestSettings:

    def test_defaults(self):
        assert resolve_settings({}, {}, {}) == Settings(
            mode="stdio",
            addr=":8080",
            base_url="http://localhost:8080",
            call_timeout=120.0,
            request_timeout=30.0,
        )

    def test_config_file_values(self):
        settings = resolve_settings({}, {}, {
            "mode": "sse",
            "addr": ":9000",
            "call_timeout_seconds": 60,
            "request_timeout_seconds": 10,
        })
        assert settings.mode == "sse"
        assert settings.addr == ":9000"
        assert settings.call_timeout == 60.0
        assert settings.request_timeout == 10.0

    def test_flags_override_config_file(self):
        settings = resolve_settings({"mode": "stdio", "addr": ":7000"}, {}, {"mode": "sse", "addr": ":9000"})
        assert settings.mode == "stdio"
        assert settings.addr == ":7000"

    def test_environment_overrides_config_file(self):
        settings = resolve_settings(
            {},
            {"OPERABLE_CALL_TIMEOUT": "15", "OPERABLE_REQUEST_TIMEOUT": "5"},
            {"call_timeout_seconds": 60, "request_timeout_seconds": 10},
        )
        assert settings.call_timeout == 15.0
        assert settings.request_timeout == 5.0

    def test_unknown_mode(self):
        with pytest.raises(ConfigurationError) as exc_info:
            resolve_settings({"mode": "grpc"}, {}, {})
        assert str(exc_info.value) == "Unknown mode: grpc. Supported modes are 'stdio' and 'sse'."

    def test_bad_timeout(self):
        with pytest.raises(ConfigurationError):
            resolve_settings({}, {"OPERABLE_CALL_TIMEOUT": "soon"}, {})
        with pytest.raises(ConfigurationError):
            resolve_settings({}, {"OPERABLE_REQUEST_TIMEOUT": "0"}, {})

    def test_load_config(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"mode": "sse"}))
        assert _load_config(path) == {"mode": "sse"}

    def test_unreadable_config_ignored(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json")
        assert _load_config(path) == {}
        assert _load_config(tmp_path / "missing.json") == {}


class TestFlags:

    def test_space_and_equals_forms(self):
        assert parse_serve_flags(["--mode", "sse", "--addr=:9000", "--base-url", "http://x"]) == {
            "mode": "sse",
            "addr": ":9000",
            "base_url": "http://x",
        }

    def test_unknown_flag(self):
        with pytest.raises(ConfigurationError):
            parse_serve_flags(["--port", "1"])

    def test_missing_value(self):
        with pytest.raises(ConfigurationError):
            parse_serve_flags(["--mode"])


class TestLogging:

    def test_level_from_environment(self):
        with patch("logging.basicConfig") as mock_config:
            configure_logging({"OPERABLE_LOG_LEVEL": "debug"})
        kwargs = mock_config.call_args.kwargs
        assert kwargs["level"] == logging.DEBUG
        assert kwargs["stream"] is sys.stderr
        assert kwargs["format"] == "%(name)s: %(message)s"

    def test_invalid_level_falls_back(self):
        with patch("logging.basicConfig") as mock_config:
            configure_logging({"OPERABLE_LOG_LEVEL": "chatty"})
        assert mock_config.call_args.kwargs["level"] == logging.WARNING


# =========================================================================
# Tests: commands
# =========================================================================

class TestMain:

    @pytest.fixture(autouse=True)
    def _isolated(self, monkeypatch, tmp_path):
        for var in (
            "GOOGLE_APPLICATION_CREDENTIALS",
            "GOOGLE_CLIENT_ID",
            "GOOGLE_CLIENT_SECRET",
            "GOOGLE_REFRESH_TOKEN",
            "OPERABLE_CALL_TIMEOUT",
            "OPERABLE_REQUEST_TIMEOUT",
        ):
            monkeypatch.delenv(var, raising=False)
        monkeypatch.setattr(operable, "_CONFIG_FILE", tmp_path / "config.json")

    def test_missing_credentials_exits_1(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            operable.main(["serve"])
        assert exc_info.value.code == 1
        err = capsys.readouterr().err
        assert "Error:" in err
        assert "GOOGLE_APPLICATION_CREDENTIALS" in err

    def test_unknown_command(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            operable.main(["frobnicate"])
        assert exc_info.value.code == 1
        assert "Unknown command: frobnicate" in capsys.readouterr().err

    def test_tools_lists_registry(self, monkeypatch, capsys):
        monkeypatch.setenv("GOOGLE_APPLICATION_CREDENTIALS", "/tmp/sa.json")
        operable.main(["tools"])
        out = capsys.readouterr().out
        assert out.startswith("list_active_issues: Lists active issues from GCP Error Reporting")
        assert "get_error_docs:" in out
        assert "project_id (string, required)" in out

    def test_call_prints_result(self, monkeypatch, capsys):
        monkeypatch.setenv("GOOGLE_CLIENT_ID", "id")
        monkeypatch.setenv("GOOGLE_CLIENT_SECRET", "secret")
        operable.main(["call", "get_error_docs", '{"error_code": "NOT_FOUND"}'])
        assert capsys.readouterr().out.startswith("# Resource Not Found Error\n")

    def test_call_error_exits_1(self, monkeypatch, capsys):
        monkeypatch.setenv("GOOGLE_APPLICATION_CREDENTIALS", "/tmp/sa.json")
        with pytest.raises(SystemExit) as exc_info:
            operable.main(["call", "get_error_docs", "{}"])
        assert exc_info.value.code == 1
        assert "either error_code or error_message must be provided" in capsys.readouterr().err

    def test_call_rejects_bad_json(self, monkeypatch, capsys):
        monkeypatch.setenv("GOOGLE_APPLICATION_CREDENTIALS", "/tmp/sa.json")
        with pytest.raises(SystemExit) as exc_info:
            operable.main(["call", "get_error_docs", "[1, 2]"])
        assert exc_info.value.code == 1
        assert "Arguments must be a JSON object" in capsys.readouterr().err
