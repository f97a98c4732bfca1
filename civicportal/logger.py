"""
Structured JSON Logging Module.

Every component of the portal client logs through an injected
``StructuredLogger``: one JSON object per line on stdout and in a
rotating ``portal.log``.  Audit events carry ``extra={"event": ...}``.

Credentials never reach a handler: any ``extra`` key naming a password,
OTP or token is replaced with ``"[REDACTED]"`` by the formatter.
"""

import json
import logging
import re
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional, TextIO, Union

REDACTED: str = "[REDACTED]"

_SENSITIVE_KEYS: frozenset[str] = frozenset({
    "password",
    "confirm_password",
    "current_password",
    "new_password",
    "otp",
    "code",
    "token",
    "refresh_token",
    "access_token",
    "authorization",
})


_RE_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def _is_sensitive(key: str) -> bool:
    # Wire keys are camelCase (refreshToken); match them as snake_case.
    normalized = _RE_CAMEL_BOUNDARY.sub("_", key).lower().replace("-", "_")
    return normalized in _SENSITIVE_KEYS


def _json_safe(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    return str(value)


class JSONFormatter(logging.Formatter):
    """Formats log records as one JSON object per line.

    Keys: ``timestamp`` (ISO-8601, UTC), ``level``, ``logger_name``,
    ``message``, then ``extra`` for caller-supplied fields and
    ``exception`` when a traceback is attached.
    """

    _STANDARD_ATTRS: frozenset[str] = frozenset(
        logging.LogRecord(
            name="", level=0, pathname="", lineno=0, msg="", args=(), exc_info=None
        ).__dict__.keys()
    ) | {"message", "asctime"}

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger_name": record.name,
            "message": record.getMessage(),
        }

        extra_fields: dict[str, Any] = {
            key: REDACTED if _is_sensitive(key) else _json_safe(value)
            for key, value in record.__dict__.items()
            if key not in self._STANDARD_ATTRS
        }
        if extra_fields:
            entry["extra"] = extra_fields

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            entry["exception"] = record.exc_text

        return json.dumps(entry, ensure_ascii=False)


class StructuredLogger:
    """Injectable logger wrapper.

    Usage::

        log = StructuredLogger(name="auth")
        log.info("User logged in", extra={"event": "LOGIN"})

    Handlers are attached once per logger *name*; constructing a second
    wrapper with the same name reuses them.  ``log_file``,
    ``max_bytes`` and ``backup_count`` default to ``AppConfig``.
    """

    def __init__(
        self,
        name: str = "civicportal",
        level: int = logging.INFO,
        stream: Union[TextIO, None] = None,
        log_file: Optional[str] = None,
        max_bytes: Optional[int] = None,
        backup_count: Optional[int] = None,
    ) -> None:
        # Lazy import: config imports nothing from here, but services import both.
        from civicportal.config import get_config

        self._logger: logging.Logger = logging.getLogger(name)
        self._logger.setLevel(level)

        if self._logger.handlers:
            return

        cfg = get_config()
        formatter = JSONFormatter()

        console = logging.StreamHandler(stream or sys.stdout)
        console.setLevel(level)
        console.setFormatter(formatter)
        self._logger.addHandler(console)

        target = Path(log_file or cfg.LOG_FILE)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            rotating = RotatingFileHandler(
                filename=str(target),
                maxBytes=max_bytes if max_bytes is not None else cfg.LOG_MAX_BYTES,
                backupCount=backup_count if backup_count is not None else cfg.LOG_BACKUP_COUNT,
                encoding="utf-8",
            )
        except OSError as exc:
            self._logger.warning(
                "Could not open log file '%s' (%s); logging to console only.", target, exc,
            )
            return
        rotating.setLevel(level)
        rotating.setFormatter(formatter)
        self._logger.addHandler(rotating)

    @property
    def logger(self) -> logging.Logger:
        """The underlying ``logging.Logger``."""
        return self._logger

    def debug(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._logger.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._logger.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._logger.error(msg, *args, **kwargs)

    def critical(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._logger.critical(msg, *args, **kwargs)


def get_logger(name: str = "civicportal") -> StructuredLogger:
    """Return a ``StructuredLogger`` for *name*."""
    return StructuredLogger(name=name)
