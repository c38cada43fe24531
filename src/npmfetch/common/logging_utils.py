"""Logging helpers shared by the registry client, unpacker and CLI.

Structured fields are attached through ``extra=extra_context(...)`` so that
log handlers can pick them up without parsing messages.
"""

from __future__ import annotations

import logging
import os
import re
import time
import urllib.parse
from typing import Any, Dict, Optional

from ..constants import Constants

_SENSITIVE_QUERY_KEYS = ("token", "auth", "password", "secret", "key")
_BASIC_AUTH_RE = re.compile(r"(Basic\s+)[A-Za-z0-9+/=]+", re.IGNORECASE)
_URL_CREDENTIALS_RE = re.compile(r"(://)([^/@\s]+)@")


def configure_logging() -> None:
    """Configure the root logger from the environment.

    The level comes from ``NPMFETCH_LOG_LEVEL`` (default INFO). Existing
    handlers on the root logger are replaced so repeated calls do not
    duplicate output.
    """
    level_name = os.environ.get(Constants.LOG_LEVEL_ENV, "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(level)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra`` mapping, dropping fields whose value is None."""
    return {key: value for key, value in fields.items() if value is not None}


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records from ``logger`` would be emitted."""
    return logger.isEnabledFor(logging.DEBUG)


def redact(text: Optional[str]) -> str:
    """Mask credentials embedded in free text (URLs, Basic auth headers)."""
    if not text:
        return ""
    masked = _URL_CREDENTIALS_RE.sub(r"\1[REDACTED]@", text)
    return _BASIC_AUTH_RE.sub(r"\1[REDACTED]", masked)


def safe_url(url: str) -> str:
    """Return ``url`` with userinfo and sensitive query values redacted."""
    try:
        parts = urllib.parse.urlsplit(url)
    except ValueError:
        return redact(url)

    netloc = parts.netloc
    if "@" in netloc:
        netloc = "[REDACTED]@" + netloc.rsplit("@", 1)[1]

    query = parts.query
    if query:
        pairs = urllib.parse.parse_qsl(query, keep_blank_values=True)
        query = "&".join(
            f"{k}=[REDACTED]" if any(s in k.lower() for s in _SENSITIVE_QUERY_KEYS) else f"{k}={v}"
            for k, v in pairs
        )
    return urllib.parse.urlunsplit((parts.scheme, netloc, parts.path, query, parts.fragment))


class Timer:
    """Context manager measuring wall-clock duration."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> float:
        """Elapsed milliseconds, measured up to now while still running."""
        end = self._end if self._end is not None else time.perf_counter()
        return round((end - self._start) * 1000.0, 2)
