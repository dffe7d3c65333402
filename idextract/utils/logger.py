"""Centralized logging setup for the identifier extraction service.

Provides one stdout handler with a consistent format, plus a session
adapter that tags every record of an upload with its session id.
"""

import logging
import sys
from collections.abc import MutableMapping
from typing import Any

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger with a standard format.

    Args:
        level: Logging level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()

    if root.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)
    root.setLevel(numeric_level)


def get_logger(name: str) -> logging.Logger:
    """Get a named logger instance.

    Args:
        name: Logger name, typically ``__name__`` of the calling module.

    Returns:
        Configured logger instance.
    """
    return logging.getLogger(name)


class SessionLoggerAdapter(logging.LoggerAdapter):
    """Prefixes messages with ``[session <id>]`` and records the id."""

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        session_id = self.extra["session_id"] if self.extra else "-"
        extra = dict(kwargs.get("extra") or {})
        extra.setdefault("session_id", session_id)
        kwargs["extra"] = extra
        return f"[session {session_id}] {msg}", kwargs


def get_session_logger(name: str, session_id: str) -> SessionLoggerAdapter:
    """Get a logger that tags every record with an upload session id.

    Args:
        name: Logger name, typically ``__name__`` of the calling module.
        session_id: Identifier of the upload session.

    Returns:
        Logger adapter bound to the session.
    """
    return SessionLoggerAdapter(get_logger(name), {"session_id": session_id})
