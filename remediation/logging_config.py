"""Structured logging for the remediation command-line tools.

Every log record is emitted as a single JSON object on *stderr*, so that
encoded output written to *stdout* stays clean and pipeable.

The library functions in :mod:`remediation.encode` and
:mod:`remediation.file_utils` never log; only the CLI layer does.

Usage
-----
::

    from remediation.logging_config import setup_logging

    logger = setup_logging(__name__)
    logger.error("cannot canonicalize path", extra={"path": user_path, "exit_code": 2})
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone

from remediation.encode import log_content_encoder

EXTRA_FIELDS = ("context", "path", "base_dir", "os_family", "exit_code")


class JSONFormatter(logging.Formatter):
    """Emit each log record as a single JSON line.

    String extra fields usually carry user-supplied paths, so they pass
    through :func:`log_content_encoder` before they are written.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        for key in EXTRA_FIELDS:
            val = getattr(record, key, None)
            if isinstance(val, str):
                val = log_content_encoder(val)
            if val is not None:
                log_entry[key] = val
        return json.dumps(log_entry, default=str)


class _StderrHandler(logging.Handler):
    """Handler that looks up ``sys.stderr`` when a record is emitted.

    ``StreamHandler(sys.stderr)`` would pin the stream at construction
    time, which hides output from pytest's ``capsys``.
    """

    terminator = "\n"

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            sys.stderr.write(msg + self.terminator)
            sys.stderr.flush()
        except Exception:
            self.handleError(record)


def resolve_level(level: str | None = None) -> str:
    """Pick the effective level name.

    Precedence: explicit *level*, ``REMEDIATION_LOG_LEVEL``, ``LOG_LEVEL``,
    then ``INFO``.
    """
    raw = (
        level
        or os.environ.get("REMEDIATION_LOG_LEVEL")
        or os.environ.get("LOG_LEVEL")
        or "INFO"
    )
    return raw.upper()


def setup_logging(
    name: str = "",
    level: str | None = None,
) -> logging.Logger:
    """Configure and return a logger with JSON-lines output on *stderr*.

    Parameters
    ----------
    name : str
        Logger name, typically ``__name__`` of the calling module.
    level : str | None
        Override log level (``DEBUG``, ``INFO``, ``WARNING``, ``ERROR``, ``CRITICAL``).
        When the logger was already configured, a non-``None`` *level*
        still updates its threshold.
    """
    resolved_level = getattr(logging, resolve_level(level), logging.INFO)

    logger = logging.getLogger(name)
    if logger.handlers:
        if level is not None:
            logger.setLevel(resolved_level)
        return logger

    logger.setLevel(resolved_level)

    handler = _StderrHandler()
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)
    logger.propagate = False

    return logger
