"""Logging setup for BlogPilot.

Every record from the ``blogpilot`` loggers, and from ``httpx`` whose request
lines carry the Gemini ``key=`` query parameter, goes through a
``RedactingFilter`` before reaching the rotating log file or the console.
"""

from __future__ import annotations

import logging
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Loggers that share the BlogPilot handlers
CAPTURED_LOGGERS = ("blogpilot", "httpx")

_SENSITIVE_PATTERNS = [
    (re.compile(r"shpat_[a-zA-Z0-9]+"), "[SHOPIFY_TOKEN]"),
    (re.compile(r"AIza[0-9A-Za-z_\-]{35}"), "[GOOGLE_API_KEY]"),
    (re.compile(r"Bearer [a-zA-Z0-9._-]+"), "Bearer [REDACTED]"),
    (re.compile(r"key=[a-zA-Z0-9._-]+"), "key=[REDACTED]"),
]


def sanitize_for_log(text: str) -> str:
    """Replace Shopify tokens, Google API keys, bearer tokens and ``key=`` params."""
    for pattern, replacement in _SENSITIVE_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def truncate_output(output: str, max_length: int = 5000) -> str:
    """Shorten long model output, noting how much was cut."""
    if len(output) <= max_length:
        return output
    return output[:max_length] + f"\n... [truncated, {len(output) - max_length} more chars]"


class RedactingFilter(logging.Filter):
    """Formats the record's message once and scrubs credentials from it."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = sanitize_for_log(record.getMessage())
        record.args = None
        return True


def setup_logging(
    log_dir: str | Path = "logs",
    level: str = "INFO",
    *,
    log_file: str = "blogpilot.log",
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
    console: bool = False,
) -> logging.Logger:
    """Attach the BlogPilot handlers to the captured loggers.

    Calling it again replaces the handlers, so the CLI can reconfigure once
    settings are loaded.

    Args:
        log_dir: Directory for the log file, created if missing.
        level: Level name; unknown names fall back to INFO.
        log_file: File name inside ``log_dir``.
        max_bytes: Size at which the file rotates.
        backup_count: Rotated files to keep.
        console: Also write to stderr.

    Returns:
        The ``blogpilot`` logger.
    """
    log_path = Path(log_dir) / log_file
    log_path.parent.mkdir(parents=True, exist_ok=True)
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    redactor = RedactingFilter()

    handlers: list[logging.Handler] = [
        RotatingFileHandler(
            log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
    ]
    if console:
        handlers.append(logging.StreamHandler())
    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        handler.addFilter(redactor)

    for name in CAPTURED_LOGGERS:
        captured = logging.getLogger(name)
        for old in list(captured.handlers):
            old.close()
            captured.removeHandler(old)
        captured.setLevel(log_level)
        for handler in handlers:
            captured.addHandler(handler)

    logger = logging.getLogger("blogpilot")
    logger.info("Logging to %s at %s", log_path, logging.getLevelName(log_level))
    return logger
