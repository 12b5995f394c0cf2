"""Logging helpers shared across the indexer.

Provides structured ``extra`` payloads, URL redaction and a small timer so
that HTTP and store calls log in a consistent shape.
"""
from __future__ import annotations

import logging
import os
import re
import time
import urllib.parse
from typing import Any, Dict, Optional

from constants import Constants

_SENSITIVE_PARAMS = {"api_key", "apikey", "token", "access_token", "password", "key"}
_REDACTED = "[REDACTED]"


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the root logger once, honouring ADDONINDEX_LOG_LEVEL."""
    level_name = (level or os.environ.get(Constants.ENV_LOG_LEVEL) or "INFO").upper()
    level_value = getattr(logging, level_name, logging.INFO)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=Constants.LOG_FORMAT, level=level_value)
    root.setLevel(level_value)


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True if DEBUG records would be emitted by ``logger``."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build a logging ``extra`` dict, dropping fields that are None."""
    return {k: v for k, v in fields.items() if v is not None}


def redact(text: str) -> str:
    """Mask anything that looks like a credential assignment in free text."""
    if not text:
        return text
    pattern = r"(?i)\b(" + "|".join(sorted(_SENSITIVE_PARAMS)) + r")=([^&\s]+)"
    return re.sub(pattern, lambda m: f"{m.group(1)}={_REDACTED}", text)


def safe_url(url: str) -> str:
    """Strip user info and sensitive query values from a URL for logging."""
    if not url:
        return url
    try:
        parts = urllib.parse.urlsplit(url)
    except ValueError:
        return redact(url)
    netloc = parts.hostname or ""
    if parts.port:
        netloc = f"{netloc}:{parts.port}"
    query = urllib.parse.parse_qsl(parts.query, keep_blank_values=True)
    cleaned = [(k, _REDACTED if k.lower() in _SENSITIVE_PARAMS else v) for k, v in query]
    return urllib.parse.urlunsplit(
        (parts.scheme, netloc, parts.path, urllib.parse.urlencode(cleaned), parts.fragment)
    )


class Timer:
    """Context manager measuring elapsed wall time."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def __exit__(self, *exc: Any) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> int:
        """Elapsed milliseconds, measured up to now while still running."""
        end = self._end if self._end is not None else time.perf_counter()
        return int((end - self._start) * 1000)
