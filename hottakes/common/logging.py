"""Structured logging setup for Hot Takes.

Every log line includes: timestamp, level, module tag, message, and structured data.
Secrets are automatically redacted from log output.

Usage:
    from hottakes.common.logging import get_logger
    logger = get_logger("SETTLE")
    logger.info("Prediction settled", extra={"data": {"prediction_id": "p1"}})
"""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import UTC, datetime

from hottakes.common.config import get_settings

# Module tags for structured logging
MODULE_TAGS = {
    "LIFECYCLE",
    "VOTE",
    "RESOLVE",
    "SETTLE",
    "STORE",
    "API",
    "SYSTEM",
    "TEST",
}

# Regex to find secret-looking values in JSON strings
_SECRET_KEY_PATTERN = re.compile(
    r'"([^"]*(?:key|secret|password|token|private|credential)[^"]*)":\s*"([^"]*)"',
    re.IGNORECASE,
)


def _redact_secrets(text: str) -> str:
    """Replace values of secret-looking keys with [REDACTED] in a string."""
    return _SECRET_KEY_PATTERN.sub(r'"\1": "[REDACTED]"', text)


class StructuredFormatter(logging.Formatter):
    """Formats log records as structured, human-readable lines.

    Output format:
        2026-02-15T10:30:00Z | INFO | SETTLE | Prediction settled | {"prediction_id": "p1"}
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
        level = record.levelname
        module_tag = getattr(record, "module_tag", "SYSTEM")

        # Include request ID when available (set by RequestIdMiddleware)
        try:
            from hottakes.common.middleware import request_id_var

            rid = request_id_var.get("")
        except ImportError:
            rid = ""

        data = getattr(record, "data", None)
        if data is not None:
            try:
                data_str = json.dumps(data, default=str)
                data_str = _redact_secrets(data_str)
            except (TypeError, ValueError):
                data_str = str(data)
        else:
            data_str = ""

        message = _redact_secrets(record.getMessage())

        parts = [timestamp, level]
        if rid:
            parts.append(f"rid={rid[:8]}")
        parts.extend([module_tag, message])
        if data_str:
            parts.append(data_str)

        return " | ".join(parts)


class ModuleTagLogger(logging.LoggerAdapter):
    """Logger adapter that injects module_tag and supports structured data.

    Usage:
        logger = get_logger("VOTE")
        logger.info("Vote cast", extra={"data": {"side": "hot"}})
    """

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        extra = kwargs.get("extra", {})
        extra["module_tag"] = self.extra.get("module_tag", "SYSTEM")
        kwargs["extra"] = extra
        return msg, kwargs


# Cache loggers to avoid duplicate handlers
_loggers: dict[str, ModuleTagLogger] = {}

# Level applied to every hottakes logger; None until first use
_level: int | None = None


def _parse_level(level: str) -> int:
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        msg = f"Unknown log level: {level!r}"
        raise ValueError(msg)
    return numeric


def configure_log_level(level: str) -> None:
    """Set the level of every hottakes logger, including ones created later.

    Args:
        level: Standard level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    global _level
    _level = _parse_level(level)
    for adapter in _loggers.values():
        adapter.logger.setLevel(_level)


def _current_level() -> int:
    if _level is None:
        configure_log_level(get_settings().log_level)
    return _level


def get_logger(module_tag: str) -> ModuleTagLogger:
    """Get a structured logger with the given module tag.

    Args:
        module_tag: One of the MODULE_TAGS (VOTE, RESOLVE, SETTLE, etc.)

    Returns:
        A logger adapter that injects the module tag into every log line.
    """
    if module_tag in _loggers:
        return _loggers[module_tag]

    logger = logging.getLogger(f"hottakes.{module_tag.lower()}")

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)
        logger.propagate = False
    logger.setLevel(_current_level())

    adapter = ModuleTagLogger(logger, {"module_tag": module_tag})
    _loggers[module_tag] = adapter
    return adapter
