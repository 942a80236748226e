"""
Signet logging.

Three sinks on the ``signet`` logger:
- stderr, colored and human readable
- logs/app.jsonl, INFO and up, one JSON object per line
- logs/errors.jsonl, ERROR and up

Signing tokens are bearer credentials. They are masked in access lines, in
request paths, and in any redacted content.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
import re
import sys
import uuid

from typing import Any

from pythonjsonlogger import json as jsonlogger

from api.middleware.request_context import get_request_context, loggable_path
from core.constants import (
    LOG_BACKUP_COUNT_APP,
    LOG_BACKUP_COUNT_ERRORS,
    LOG_MAX_SIZE,
    LOG_TOKEN_PREFIX_LENGTH,
    LOGGER_INSTANCE_ID_LENGTH,
    PROJECT_ROOT,
    get_settings,
)

REDACTIONS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"(/sign/[A-Za-z0-9_-]{%d})[A-Za-z0-9_-]+" % LOG_TOKEN_PREFIX_LENGTH), r"\1..."),
    (re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"), "[EMAIL]"),
    (re.compile(r"\b(?:\d{4}[- ]?){3}\d{4}\b"), "[CARD]"),
    (re.compile(r"\b(?:password|secret|token)\s*[:=]\s*\S+", re.IGNORECASE), "[REDACTED]"),
]


class MinLevelFilter(logging.Filter):
    def __init__(self, level: int):
        super().__init__()
        self.level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= self.level


class ConsoleFormatter(logging.Formatter):
    """``HH:MM:SS [LEVEL] logger - message`` with the level colored."""

    RESET = "\x1b[0m"
    COLORS = {
        logging.DEBUG: "\x1b[38;20m",
        logging.INFO: "\x1b[32;20m",
        logging.WARNING: "\x1b[33;20m",
        logging.ERROR: "\x1b[31;20m",
        logging.CRITICAL: "\x1b[31;1m",
    }

    def _paint(self, text: str, level: int) -> str:
        color = self.COLORS.get(level)
        return f"{color}{text}{self.RESET}" if color else text

    def format(self, record: logging.LogRecord) -> str:
        stamp = self.formatTime(record, "%H:%M:%S")
        level = self._paint(f"[{record.levelname}]", record.levelno)

        if record.name == "uvicorn.access" and isinstance(record.args, tuple) and len(record.args) == 5:
            client, method, path, http_version, status = record.args
            code = int(str(status))
            status_level = logging.ERROR if code >= 500 else logging.WARNING if code >= 400 else logging.INFO
            request_line = f"{method} {loggable_path(str(path))} HTTP/{http_version}"
            message = f'{client} - "{request_line}" {self._paint(str(status), status_level)}'
        else:
            message = record.getMessage()
            if record.exc_info:
                message = f"{message}\n{self.formatException(record.exc_info)}"
        return f"{stamp} {level} {record.name} - {message}"


def configure_uvicorn_logging() -> None:
    """Send uvicorn's access and error logs through ConsoleFormatter."""
    logging.getLogger("uvicorn").handlers = []
    for name in ("uvicorn.access", "uvicorn.error"):
        uv_logger = logging.getLogger(name)
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(ConsoleFormatter())
        uv_logger.handlers = [handler]
        uv_logger.setLevel(logging.INFO)
        uv_logger.propagate = False


def _json_file_handler(filename: str, level: int, backups: int, fmt: str) -> logging.Handler:
    log_dir = PROJECT_ROOT / "logs"
    log_dir.mkdir(exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        log_dir / filename, maxBytes=LOG_MAX_SIZE, backupCount=backups, encoding="utf-8"
    )
    handler.setLevel(level)
    handler.addFilter(MinLevelFilter(level))
    handler.setFormatter(jsonlogger.JsonFormatter(fmt, timestamp=True))
    return handler


def setup_logging(name: str = "signet", debug: bool | None = None) -> logging.Logger:
    """(Re)build the handlers of ``name``. ``debug`` defaults to the DEBUG env var."""
    if debug is None:
        debug = os.getenv("DEBUG", "false").lower() in ("1", "true", "yes")

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.DEBUG if debug else logging.INFO)
    console.setFormatter(ConsoleFormatter())

    log = logging.getLogger(name)
    log.setLevel(logging.DEBUG)
    log.handlers = [
        console,
        _json_file_handler(
            "app.jsonl",
            logging.INFO,
            LOG_BACKUP_COUNT_APP,
            "%(timestamp)s %(levelname)s %(name)s %(message)s %(request_id)s %(document_id)s",
        ),
        _json_file_handler(
            "errors.jsonl",
            logging.ERROR,
            LOG_BACKUP_COUNT_ERRORS,
            "%(timestamp)s %(levelname)s %(name)s %(message)s %(request_id)s",
        ),
    ]
    return log


def redact_content(text: str) -> str:
    for pattern, replacement in REDACTIONS:
        text = pattern.sub(replacement, text)
    return text


def mask_token(token: str | None) -> str:
    """Loggable stand-in for a signing token."""
    if not token:
        return "<none>"
    return f"{token[:LOG_TOKEN_PREFIX_LENGTH]}..."


class AppLogger:
    """``logger.info("msg", key=value)``: keyword arguments become JSON fields.

    Every record also carries the logger instance id and, inside a request,
    the request context (request id, masked path, user, document).
    """

    def __init__(self, name: str = "signet"):
        self.logger = setup_logging(name)
        self.instance_id = uuid.uuid4().hex[:LOGGER_INSTANCE_ID_LENGTH]

    def _fields(self, fields: dict[str, Any]) -> dict[str, Any]:
        fields.setdefault("instance_id", self.instance_id)
        ctx = get_request_context()
        if ctx:
            for key, value in ctx.to_log_context().items():
                fields.setdefault(key, value)
        return fields

    def debug(self, message: str, **fields: Any) -> None:
        self.logger.debug(message, extra=self._fields(fields))

    def info(self, message: str, **fields: Any) -> None:
        self.logger.info(message, extra=self._fields(fields))

    def warning(self, message: str, **fields: Any) -> None:
        self.logger.warning(message, extra=self._fields(fields))

    def error(self, message: str, exc_info: bool = False, **fields: Any) -> None:
        self.logger.error(message, extra=self._fields(fields), exc_info=exc_info)

    def should_log_content(self) -> bool:
        try:
            return bool(get_settings().enable_content_logging)
        except ValueError:
            # Unreadable settings: keep redacting
            return False

    def content(self, text: str) -> str:
        """``text`` verbatim with ENABLE_CONTENT_LOGGING, redacted otherwise."""
        return text if self.should_log_content() else redact_content(text)


logger = AppLogger()
