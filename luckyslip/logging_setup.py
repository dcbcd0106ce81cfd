"""Logging configuration."""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

PLAIN_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# LogRecord attributes that are not user-supplied `extra` data
_RESERVED_ATTRS = frozenset(
    (
        "args", "asctime", "created", "exc_info", "exc_text", "filename",
        "funcName", "levelname", "levelno", "lineno", "module", "msecs",
        "message", "msg", "name", "pathname", "process", "processName",
        "relativeCreated", "stack_info", "taskName", "thread", "threadName",
    )
)


class JsonFormatter(logging.Formatter):
    """Render log records as single-line JSON with UTC timestamps."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict[str, Any] = {
            "timestamp": created.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "level": record.levelname,
            "logger": record.name,
        }

        # Structured data passed via `extra`
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                payload[key] = value

        payload["message"] = record.getMessage()
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=str)


def setup_logging(
    level: str = "INFO",
    json_format: bool = False,
    handler: Optional[logging.Handler] = None,
) -> logging.Logger:
    """
    Configure the package logger.

    Calling this again replaces the handler installed by the previous call.

    Args:
        level: Logging level name.
        json_format: Emit single-line JSON instead of plain text.
        handler: Handler to install. Defaults to a stderr stream handler.

    Returns:
        The configured "luckyslip" logger.
    """
    logger = logging.getLogger("luckyslip")
    logger.setLevel(level.upper())

    for existing in list(logger.handlers):
        if getattr(existing, "_luckyslip_handler", False):
            logger.removeHandler(existing)

    handler = handler or logging.StreamHandler()
    handler.setFormatter(JsonFormatter() if json_format else logging.Formatter(PLAIN_FORMAT))
    handler._luckyslip_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    return logger
