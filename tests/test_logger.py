"""Tests for logger.py -- setup_logging(), JsonFormatter and RedactingFilter.

Strategy: Mock logging.basicConfig to verify setup_logging passes correct args,
since pytest's log capture plugin interferes with actual basicConfig calls.
"""

import json
import logging
import sys
from unittest.mock import patch

from github_cms_mcp.logger import (
    REDACTED,
    JsonFormatter,
    RedactingFilter,
    setup_logging,
)

SECRET = "ghp_supersecret"


def _record(msg, *args, exc_info=None):
    return logging.LogRecord(
        name="github_cms_mcp.test",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=args,
        exc_info=exc_info,
    )


class TestSetupLogging:
    @patch("github_cms_mcp.logger.logging.basicConfig")
    def test_cli_mode_logs_to_stderr(self, mock_basic):
        setup_logging(mode="cli")

        handlers = mock_basic.call_args[1]["handlers"]
        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.StreamHandler)
        assert handlers[0].stream is sys.stderr

    @patch("github_cms_mcp.logger.logging.basicConfig")
    def test_mcp_mode_logs_to_file_only(self, mock_basic, tmp_path):
        log_file = tmp_path / "mcp.log"
        setup_logging(mode="mcp", log_file=str(log_file))

        handlers = mock_basic.call_args[1]["handlers"]
        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.FileHandler)
        assert handlers[0].baseFilename == str(log_file)
        handlers[0].close()

    @patch("github_cms_mcp.logger.logging.basicConfig")
    def test_cli_mode_with_log_file_adds_file_handler(
        self, mock_basic, tmp_path
    ):
        setup_logging(mode="cli", log_file=str(tmp_path / "cli.log"))

        handlers = mock_basic.call_args[1]["handlers"]
        assert len(handlers) == 2
        assert isinstance(handlers[1], logging.FileHandler)
        handlers[1].close()

    @patch("github_cms_mcp.logger.logging.basicConfig")
    def test_debug_overrides_level(self, mock_basic, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        setup_logging(mode="cli", debug=True)
        assert mock_basic.call_args[1]["level"] == logging.DEBUG

    @patch("github_cms_mcp.logger.logging.basicConfig")
    def test_default_levels(self, mock_basic, monkeypatch, tmp_path):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        setup_logging(mode="cli")
        assert mock_basic.call_args[1]["level"] == logging.INFO

        setup_logging(mode="mcp", log_file=str(tmp_path / "x.log"))
        assert mock_basic.call_args[1]["level"] == logging.WARNING
        mock_basic.call_args[1]["handlers"][0].close()

    @patch("github_cms_mcp.logger.logging.basicConfig")
    def test_json_format(self, mock_basic):
        setup_logging(mode="cli", debug_format="json")
        handler = mock_basic.call_args[1]["handlers"][0]
        assert isinstance(handler.formatter, JsonFormatter)

    @patch("github_cms_mcp.logger.logging.basicConfig")
    def test_every_handler_redacts(self, mock_basic, tmp_path):
        setup_logging(
            mode="cli", log_file=str(tmp_path / "x.log"), secrets=[SECRET]
        )
        handlers = mock_basic.call_args[1]["handlers"]
        for handler in handlers:
            assert any(
                isinstance(f, RedactingFilter) for f in handler.filters
            )
        handlers[1].close()


class TestJsonFormatter:
    def test_fields(self):
        output = JsonFormatter().format(_record("hello %s", "world"))
        entry = json.loads(output)
        assert entry["msg"] == "hello world"
        assert entry["level"] == "WARNING"
        assert entry["logger"] == "github_cms_mcp.test"
        assert "exc" not in entry

    def test_exception_included(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = _record("failed", exc_info=sys.exc_info())
        entry = json.loads(JsonFormatter().format(record))
        assert "RuntimeError: boom" in entry["exc"]


class TestRedactingFilter:
    def test_message_args_redacted(self):
        record = _record("token is %s", SECRET)
        assert RedactingFilter([SECRET]).filter(record)
        assert record.getMessage() == f"token is {REDACTED}"

    def test_plain_message_untouched(self):
        record = _record("nothing to hide %d", 3)
        RedactingFilter([SECRET]).filter(record)
        assert record.args == (3,)
        assert record.getMessage() == "nothing to hide 3"

    def test_exception_text_redacted(self):
        try:
            raise ValueError(f"bad header Bearer {SECRET}")
        except ValueError:
            record = _record("request failed", exc_info=sys.exc_info())

        RedactingFilter([SECRET]).filter(record)
        formatted = logging.Formatter().format(record)
        assert SECRET not in formatted
        assert REDACTED in formatted

    def test_no_secrets_is_noop(self):
        record = _record("value %s", "x")
        assert RedactingFilter([]).filter(record)
        assert record.args == ("x",)

    def test_empty_secret_ignored(self):
        assert RedactingFilter(["", None]).redact("abc") == "abc"


class TestConfiguredLevel:
    @patch("github_cms_mcp.logger.logging.basicConfig")
    def test_config_level_used_without_env(self, mock_basic, monkeypatch, tmp_path):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        setup_logging(mode="mcp", log_file=str(tmp_path / "x.log"), level="debug")
        assert mock_basic.call_args[1]["level"] == logging.DEBUG
        mock_basic.call_args[1]["handlers"][0].close()

    @patch("github_cms_mcp.logger.logging.basicConfig")
    def test_env_beats_config_level(self, mock_basic, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        setup_logging(mode="cli", level="DEBUG")
        assert mock_basic.call_args[1]["level"] == logging.ERROR
