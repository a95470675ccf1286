"""
Logging Configuration — One root handler, text or JSON.

Log lines carry a bracketed subsystem tag in the message itself
(``[git]``, ``[github]``, ``[mirrors]``, ``[action]``, ``[webhook]``,
``[archive]``, ``[ssh]``). Structured fields passed through ``extra=``
(``repo``, ``action``, ``event``, ``status``) show up as JSON keys.

## Environment Variables

- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
- LOG_FORMAT: json, text (default: text)

## Usage

    from doppelganger.logging_config import setup_logging

    setup_logging()                 # from the environment
    setup_logging(level="DEBUG")    # --debug
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import IO, Any, Dict, Optional

# Third-party loggers that would otherwise repeat our own request log
QUIET_LOGGERS = ("httpx", "httpcore", "werkzeug")


class JSONFormatter(logging.Formatter):
    """One JSON object per line, timestamped from the record."""

    EXTRA_FIELDS = ("repo", "action", "event", "status")

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (key, getattr(record, key))
            for key in self.EXTRA_FIELDS
            if hasattr(record, key)
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class HumanFormatter(logging.Formatter):
    """
    ``15:04:05 WARNING mirrors    [mirrors] message``

    The level is colored only when writing to a terminal.
    """

    LEVEL_COLORS = {
        logging.DEBUG: "\033[2m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }
    RESET = "\033[0m"

    def __init__(self, use_color: bool = False):
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        level = f"{record.levelname:<7}"
        if self.use_color and record.levelno in self.LEVEL_COLORS:
            level = f"{self.LEVEL_COLORS[record.levelno]}{level}{self.RESET}"

        source = record.name.rsplit(".", 1)[-1][:10]
        line = f"{stamp} {level} {source:<10} {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(
    level: Optional[str] = None,
    format_type: Optional[str] = None,
    stream: Optional[IO[str]] = None,
) -> None:
    """
    Replace the root handlers with a single stream handler.

    Args:
        level: Log level name; falls back to LOG_LEVEL, then INFO.
        format_type: ``json`` or ``text``; falls back to LOG_FORMAT, then text.
        stream: Where to write (default: stderr).
    """
    level_name = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    numeric_level = logging.getLevelName(level_name)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    stream = stream or sys.stderr
    if (format_type or os.environ.get("LOG_FORMAT") or "text").lower() == "json":
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = HumanFormatter(use_color=stream.isatty())

    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    logging.getLogger(__name__).debug(
        f"Logging configured: level={logging.getLevelName(numeric_level)}, "
        f"format={type(formatter).__name__}"
    )
