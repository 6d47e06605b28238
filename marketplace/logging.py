"""
Logging for the marketplace client.

    from marketplace.logging import get_logger
    logger = get_logger(__name__)

Level comes from LOG_LEVEL (default INFO). MARKET_ENV=production drops
timestamps, since the hosting platform adds its own.
"""

import logging
import os
import sys
from functools import cache
from urllib.parse import urlsplit

_FORMATS = {
    "production": "%(levelname)s - %(name)s - %(message)s",
    "default": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}

# Request-level chatter from the HTTP stack
_QUIET_LOGGERS = ("httpx", "httpcore")


def _configure_root_logger() -> None:
    root = logging.getLogger()
    if root.handlers:
        return

    level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)
    env = os.environ.get("MARKET_ENV", "").lower()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_FORMATS.get(env, _FORMATS["default"])))
    root.setLevel(level)
    root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


_configure_root_logger()


@cache
def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def _escape(value) -> str:
    """Neutralize line breaks so logged values cannot forge entries (CWE-117)."""
    return str(value).replace("\r", "\\r").replace("\n", "\\n").replace("\x00", "")


def sanitize_id_for_logging(part_id: str | None) -> str:
    """First 8 characters of an id, "N/A" when empty."""
    return _escape(part_id)[:8] if part_id else "N/A"


def sanitize_string_for_logging(value: str | None, max_length: int = 50) -> str:
    if not value:
        return "N/A"
    safe = _escape(value)
    return safe if len(safe) <= max_length else f"{safe[:max_length]}..."


def sanitize_url_for_logging(url: str | None) -> str:
    """URL without its query string (search terms and filters stay out of logs)."""
    if not url:
        return "N/A"
    parts = urlsplit(str(url))
    base = f"{parts.scheme}://{parts.netloc}" if parts.netloc else ""
    return _escape(base + parts.path)
