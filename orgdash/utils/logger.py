"""Logging configuration and log redaction"""

import logging
import re
import sys
from typing import Any, Optional

REDACTED = "***REDACTED***"

_SENSITIVE_KEYS = ("authorization", "token", "api_key", "apikey", "password", "secret", "session", "cookie")

_SENSITIVE_PATTERNS = (
    re.compile(r"(?i)(bearer\s+)[A-Za-z0-9_\-\.]+"),
    re.compile(r"(?i)((?:access_)?token=)[^&\s]+"),
    re.compile(r"\bgh[pousr]_[A-Za-z0-9]{8,}\b"),
    re.compile(r"\bgithub_pat_[A-Za-z0-9_]{8,}\b"),
)


def setup_logger(
    name: str,
    level: int = logging.INFO,
    format_string: Optional[str] = None
) -> logging.Logger:
    """
    Set up a logger with consistent formatting

    Args:
        name: Logger name
        level: Logging level
        format_string: Custom format string

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    # Create console handler
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    # Create formatter
    if format_string is None:
        format_string = (
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    formatter = logging.Formatter(format_string)
    handler.setFormatter(formatter)

    # Add handler to logger
    logger.addHandler(handler)

    return logger


def _is_sensitive_key(key: str) -> bool:
    lowered = key.lower()
    return any(marker in lowered for marker in _SENSITIVE_KEYS)


def _scrub_text(text: str) -> str:
    for pattern in _SENSITIVE_PATTERNS:
        if pattern.groups:
            text = pattern.sub(lambda m: f"{m.group(1)}{REDACTED}", text)
        else:
            text = pattern.sub(REDACTED, text)
    return text


def sanitize_for_log(value: Any, key: Optional[str] = None) -> Any:
    """
    Return a copy of ``value`` that is safe to write to logs

    Values under credential-like keys are replaced wholesale; strings
    anywhere else have bearer tokens and ``token=`` query fragments masked.
    """
    if key is not None and _is_sensitive_key(key) and value is not None:
        return REDACTED
    if isinstance(value, dict):
        return {k: sanitize_for_log(v, key=str(k)) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(sanitize_for_log(item) for item in value)
    if isinstance(value, str):
        return _scrub_text(value)
    return value


def sanitize_log_extra(**fields: Any) -> dict[str, Any]:
    """Build a redacted ``extra`` mapping for structured log calls"""
    return {name: sanitize_for_log(value, key=name) for name, value in fields.items()}
