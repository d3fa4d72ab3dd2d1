"""Structured JSON logger matching Go slog format.

Every line is a single JSON object:
{"time":"2026-10-19T09:12:44.118204+00:00","level":"INFO","source":{"function":"build","file":"builder.py","line":88},"msg":"document built","page_count":3}
"""

import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

# Fields attached to every log line emitted in the current context
_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})


class StructuredFormatter(logging.Formatter):
    """Render records as slog-style JSON lines."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "time": datetime.now(timezone.utc).astimezone().isoformat(),
            "level": record.levelname,
            "source": {
                "function": record.funcName,
                "file": os.path.basename(record.pathname),
                "line": record.lineno,
            },
            "msg": record.getMessage(),
        }

        ctx_fields = _log_context.get()
        if ctx_fields:
            entry.update(ctx_fields)

        if hasattr(record, "extra_fields"):
            entry.update(record.extra_fields)

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class StructuredLogger:
    """Logger that emits structured JSON with keyword fields."""

    def __init__(self, name: str = "app", level: str | None = None):
        self._logger = logging.getLogger(name)
        level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
        self._logger.setLevel(getattr(logging, level_name, logging.INFO))

        self._logger.handlers.clear()
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
        self._logger.addHandler(handler)
        self._logger.propagate = False

    def _log(
        self,
        level: int,
        msg: str,
        stacklevel: int = 3,
        exc_info: bool = False,
        **fields: Any,
    ) -> None:
        extra = {"extra_fields": fields} if fields else {}
        self._logger.log(
            level, msg, stacklevel=stacklevel, exc_info=exc_info, extra=extra
        )

    def debug(self, msg: str, **fields: Any) -> None:
        self._log(logging.DEBUG, msg, **fields)

    def info(self, msg: str, **fields: Any) -> None:
        self._log(logging.INFO, msg, **fields)

    def warn(self, msg: str, **fields: Any) -> None:
        self._log(logging.WARNING, msg, **fields)

    def error(self, msg: str, exc_info: bool = False, **fields: Any) -> None:
        """Log an error; pass exc_info=True inside an except block to keep the traceback."""
        self._log(logging.ERROR, msg, exc_info=exc_info, **fields)


def set_context(**fields: Any) -> None:
    """Attach fields to all subsequent log lines in this context.

    Example:
        set_context(conversion_id="3f2a...", file_name="report.pdf")
        logger.info("conversion started")  # carries both fields
    """
    current = _log_context.get()
    _log_context.set({**current, **fields})


def clear_context() -> None:
    _log_context.set({})


logger = StructuredLogger("pdf_xml_server")
