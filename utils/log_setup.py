"""
Logging setup for entry points (bench.py, embedding applications).

Library modules only call logging.getLogger(__name__); nothing here runs on
import. configure_logging() attaches one stream handler to the root logger,
either human-readable text or one JSON object per line. Structured payloads
passed as extra={"validation": {...}} are included in the JSON output.
"""

import json
import logging
import sys
from typing import Optional

import config

STRUCTURED_FIELDS = ("validation",)


class JsonFormatter(logging.Formatter):
    """Format records as single-line JSON."""

    def __init__(self, app_name: str = "trading-psychology-metrics", datefmt: str = "%Y-%m-%d %H:%M:%S"):
        super().__init__(datefmt=datefmt)
        self.app_name = app_name

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "component": record.name,
            "function": record.funcName,
            "lineno": record.lineno,
            "message": record.getMessage(),
            "app_name": self.app_name,
        }
        for name in STRUCTURED_FIELDS:
            if hasattr(record, name):
                payload[name] = getattr(record, name)
        if record.exc_info:
            payload["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> logging.Logger:
    """
    Configure the root logger once. Safe to call repeatedly.

    Args:
        level: Log level name; defaults to config.LOG_LEVEL
        fmt: "json" or "text"; defaults to config.LOG_FORMAT
    """
    root = logging.getLogger()
    level = (level or config.LOG_LEVEL).upper()
    fmt = (fmt or config.LOG_FORMAT).lower()
    root.setLevel(getattr(logging, level, logging.INFO))

    if getattr(root, "_metrics_configured", False):
        return root

    handler = logging.StreamHandler(sys.stderr)
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "[%(asctime)s] %(levelname)s %(name)s - %(message)s", "%Y-%m-%d %H:%M:%S"
        ))
    root.addHandler(handler)
    root._metrics_configured = True
    return root
