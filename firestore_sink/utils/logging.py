"""
Logging setup for the Firestore sink.

Writers and the runner log with `extra=` fields (batch number, document
counts, durations). Both formatters surface those fields: the console one as
trailing `key=value` pairs, the JSON one as top-level keys.

Usage:
    from firestore_sink.utils.logging import configure_logging, get_logger

    configure_logging(level="INFO", json_logs=False)
    log = get_logger(__name__)
    log.info("[COMMIT] batch 1", extra={"batch": 1, "documents": 25})
"""

from __future__ import annotations

import json
import logging
import logging.config
from typing import IO, Any, Dict, Optional

# Attributes every LogRecord carries; anything else came in through `extra=`.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "extra"}

# Client libraries that flood DEBUG output with transport details.
QUIET_LOGGERS = ("google", "grpc", "urllib3")


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    fields = {k: v for k, v in vars(record).items() if k not in _RESERVED_ATTRS}
    # Older call sites pass a nested dict as `extra={"extra": {...}}`.
    nested = getattr(record, "extra", None)
    if isinstance(nested, dict):
        fields.update(nested)
    return fields


def _json_formatter(record: logging.LogRecord) -> str:
    """Serialize a record and its extra fields to one JSON line."""
    payload: Dict[str, Any] = {
        "level": record.levelname,
        "logger": record.name,
        "message": record.getMessage(),
    }
    if record.exc_info:
        payload["exc_info"] = logging.Formatter().formatException(record.exc_info)
    payload.update(_extra_fields(record))
    return json.dumps(payload, default=str)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        return _json_formatter(record)


class ConsoleFormatter(logging.Formatter):
    """Human-readable lines with extra fields appended as key=value."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            datefmt="%H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = _extra_fields(record)
        if not fields:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in fields.items())
        # keep a traceback (if any) below the key=value pairs
        head, sep, tail = line.partition("\n")
        return f"{head} | {pairs}{sep}{tail}"


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
    stream: Optional[IO[str]] = None,
) -> None:
    """
    Install a single root handler.

    Parameters
    ----------
    level : str
        Level name for the root logger and its handler.
    json_logs : bool
        Emit one JSON object per line instead of console lines.
    stream : IO[str] | None
        Destination; stderr when omitted.
    """
    handler: Dict[str, Any] = {
        "class": "logging.StreamHandler",
        "formatter": "json" if json_logs else "console",
        "level": level.upper(),
    }
    if stream is not None:
        handler["stream"] = stream

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "console": {"()": ConsoleFormatter},
                "json": {"()": JsonFormatter},
            },
            "handlers": {"default": handler},
            "root": {"handlers": ["default"], "level": level.upper()},
            "loggers": {name: {"level": "WARNING"} for name in QUIET_LOGGERS},
        }
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "ConsoleFormatter", "JsonFormatter"]
