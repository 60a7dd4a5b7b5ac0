"""Tests for the JSON-lines logging setup."""

import json
import logging
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from remediation.logging_config import JSONFormatter, resolve_level, setup_logging


def _last_record(capsys):
    lines = capsys.readouterr().err.strip().splitlines()
    return json.loads(lines[-1])


class TestSetupLogging:
    def test_emits_json_on_stderr(self, capsys):
        logger = setup_logging("tests.logging.json", level="INFO")
        logger.info("hello %s", "world")
        record = _last_record(capsys)
        assert record["message"] == "hello world"
        assert record["level"] == "INFO"
        assert record["logger"] == "tests.logging.json"
        assert "timestamp" in record

    def test_extra_fields(self, capsys):
        logger = setup_logging("tests.logging.extra", level="INFO")
        logger.warning("escaped", extra={"context": "log", "path": "/tmp/x", "ignored": 1})
        record = _last_record(capsys)
        assert record["context"] == "log"
        assert record["path"] == "/tmp/x"
        assert "ignored" not in record

    def test_stdout_untouched(self, capsys):
        logger = setup_logging("tests.logging.stdout", level="INFO")
        logger.info("message")
        assert capsys.readouterr().out == ""

    def test_newlines_stay_on_one_line(self, capsys):
        logger = setup_logging("tests.logging.newline", level="INFO")
        logger.info("line1\nline2")
        err = capsys.readouterr().err
        assert err.count("\n") == 1

    def test_no_duplicate_handlers(self):
        first = setup_logging("tests.logging.reuse")
        second = setup_logging("tests.logging.reuse")
        assert first is second
        assert len(second.handlers) == 1

    def test_level_updated_on_reuse(self):
        setup_logging("tests.logging.relevel", level="INFO")
        logger = setup_logging("tests.logging.relevel", level="ERROR")
        assert logger.level == logging.ERROR

    def test_level_from_env(self, monkeypatch):
        monkeypatch.setenv("REMEDIATION_LOG_LEVEL", "warning")
        logger = setup_logging("tests.logging.env")
        assert logger.level == logging.WARNING

    def test_exception_included(self, capsys):
        logger = setup_logging("tests.logging.exc", level="INFO")
        try:
            raise OSError("boom")
        except OSError:
            logger.exception("failed")
        record = _last_record(capsys)
        assert "OSError: boom" in record["exception"]


class TestResolveLevel:
    def test_explicit_wins(self, monkeypatch):
        monkeypatch.setenv("REMEDIATION_LOG_LEVEL", "ERROR")
        assert resolve_level("debug") == "DEBUG"

    def test_generic_env_fallback(self, monkeypatch):
        monkeypatch.delenv("REMEDIATION_LOG_LEVEL", raising=False)
        monkeypatch.setenv("LOG_LEVEL", "warning")
        assert resolve_level() == "WARNING"

    def test_default(self, monkeypatch):
        monkeypatch.delenv("REMEDIATION_LOG_LEVEL", raising=False)
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        assert resolve_level() == "INFO"


class TestJSONFormatter:
    def test_format(self):
        record = logging.LogRecord("n", logging.ERROR, __file__, 1, "msg", None, None)
        data = json.loads(JSONFormatter().format(record))
        assert data["level"] == "ERROR"
        assert data["message"] == "msg"

    def test_string_extras_neutralized(self):
        record = logging.LogRecord("n", logging.WARNING, __file__, 1, "msg", None, None)
        record.path = "evil\nFAKE ENTRY <x>"
        record.exit_code = 2
        data = json.loads(JSONFormatter().format(record))
        assert data["path"] == "evil_FAKE ENTRY &ltx&gt"
        assert data["exit_code"] == 2

    def test_os_family_field(self, capsys):
        logger = setup_logging("tests.logging.family", level="INFO")
        logger.error("unsupported", extra={"os_family": "posix"})
        assert _last_record(capsys)["os_family"] == "posix"
