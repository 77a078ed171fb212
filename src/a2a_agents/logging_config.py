"""Logging setup for agent processes: one JSON object per record by default."""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

# Attributes every LogRecord carries; anything else came in through ``extra=``.
_RECORD_ATTRIBUTES = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime"}

TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# Libraries whose INFO output drowns out the agent's own records.
NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


class JsonFormatter(logging.Formatter):
    """Render a record as compact JSON.

    ``static_fields`` are stamped on every record (e.g. the agent name) and
    structured ``extra=`` values are copied to the top level; values that do
    not serialize are stored as their ``repr``.
    """

    def __init__(self, static_fields: Optional[Mapping[str, Any]] = None):
        super().__init__()
        self.static_fields = dict(static_fields or {})

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(self.static_fields)

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key.startswith("_") or key in _RECORD_ATTRIBUTES or key in payload:
                continue
            payload[key] = _json_safe(value)

        return json.dumps(payload, separators=(",", ":"))


def _json_safe(value: Any) -> Any:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return repr(value)
    return value


def _resolve_level(name: str) -> int:
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def _make_formatter(fmt: str, static_fields: Mapping[str, Any]) -> logging.Formatter:
    if fmt == "text":
        return logging.Formatter(TEXT_FORMAT)
    return JsonFormatter(static_fields)


def configure_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    fmt: Optional[str] = None,
    agent_name: Optional[str] = None,
) -> None:
    """Install handlers on the root logger.

    Arguments override the ``LOG_LEVEL``, ``LOG_FILE`` and ``LOG_FORMAT``
    (``json`` or ``text``) environment variables. Existing root handlers are
    replaced so repeated calls do not duplicate output.
    """
    level = level or os.getenv("LOG_LEVEL", "INFO")
    log_file = log_file or os.getenv("LOG_FILE")
    fmt = (fmt or os.getenv("LOG_FORMAT", "json")).strip().lower()
    static_fields = {"agent": agent_name} if agent_name else {}

    root_logger = logging.getLogger()
    root_logger.setLevel(_resolve_level(level))

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(_make_formatter(fmt, static_fields))
    root_logger.addHandler(console_handler)

    if log_file:
        try:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            file_handler = logging.FileHandler(log_file)
        except OSError as e:
            root_logger.warning("Could not set up file logging to %s: %s", log_file, e)
        else:
            # Files are always JSON so they stay machine readable.
            file_handler.setFormatter(JsonFormatter(static_fields))
            root_logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
