"""
wcpilot/core/logging.py

Purpose: Logging configuration

- JSON lines in production, colored single lines in development
- Per-call context through `extra={...}`: user_id, instance_name,
  event_type, plan
- Secrets (API keys, credential hashes, tokens) are never passed in
"""

import logging
import sys
import json
from datetime import datetime, timezone
from typing import Any, Dict

from wcpilot.core.config import settings

CONTEXT_FIELDS = ("user_id", "instance_name", "event_type", "plan")

# Short labels for the development formatter
CONTEXT_LABELS = {"user_id": "user", "instance_name": "instance", "event_type": "event", "plan": "plan"}

NOISY_LOGGERS = ("httpx", "httpcore", "motor", "pymongo", "uvicorn.access")

COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
RESET = "\033[0m"


def record_context(record: logging.LogRecord) -> Dict[str, Any]:
    return {field: getattr(record, field) for field in CONTEXT_FIELDS if hasattr(record, field)}


class StructuredFormatter(logging.Formatter):
    """
    One JSON object per line, for log shippers.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
            **record_context(record),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class DevelopmentFormatter(logging.Formatter):
    """
    [HH:MM:SS] LEVEL    logger: message [user=..., instance=...]
    """

    def format(self, record: logging.LogRecord) -> str:
        color = COLORS.get(record.levelname, RESET)
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{color}[{timestamp}] {record.levelname:<8}{RESET} {record.name}: {record.getMessage()}"

        context = record_context(record)
        if context:
            line += " [" + ", ".join(f"{CONTEXT_LABELS[k]}={v}" for k, v in context.items()) + "]"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging() -> logging.Logger:
    """
    Installs a single stdout handler on the root logger. Safe to call
    more than once.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter() if settings.is_production else DevelopmentFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger = logging.getLogger("wcpilot")
    logger.debug(f"Logging configured ({settings.ENVIRONMENT}, level {settings.LOG_LEVEL})")
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Logger under the "wcpilot" namespace.
    """
    if name == "wcpilot" or name.startswith("wcpilot."):
        return logging.getLogger(name)
    return logging.getLogger(f"wcpilot.{name}")
