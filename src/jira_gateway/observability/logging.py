"""Shared logging utilities for consistent gateway observability.

Interactive hosts usually own stderr, so the handler target and level can be moved
with environment variables:

- ``JIRA_GATEWAY_LOG_FILE``: append log records to this file instead of stderr.
- ``JIRA_GATEWAY_LOG_LEVEL``: level name (``DEBUG``, ``INFO``, ...). Defaults to INFO.

Usage example:
    from jira_gateway.observability.logging import get_logger

    logger = get_logger("jira_gateway.infrastructure.dispatcher")
    logger.info("Falling back from %s to %s", "v3", "v2")
"""

from __future__ import annotations

import logging
import os
import time

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"
_LOG_FILE_ENV = "JIRA_GATEWAY_LOG_FILE"
_LOG_LEVEL_ENV = "JIRA_GATEWAY_LOG_LEVEL"


def _resolve_level() -> int:
    name = os.getenv(_LOG_LEVEL_ENV, "").strip().upper()
    if not name:
        return logging.INFO
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def _build_handler() -> logging.Handler:
    log_file = os.getenv(_LOG_FILE_ENV, "").strip()
    if log_file:
        return logging.FileHandler(log_file, encoding="utf-8")
    return logging.StreamHandler()


def get_logger(name: str) -> logging.Logger:
    """Return a standard logger configured for UTC timestamps.

    Args:
        name: Logger name (use a stable module-qualified name).

    Returns:
        A logger with a single handler (stderr or ``JIRA_GATEWAY_LOG_FILE``) and a
        consistent UTC format.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = _build_handler()
        formatter = logging.Formatter(fmt=_LOG_FORMAT, datefmt=_LOG_DATE_FORMAT)
        formatter.converter = time.gmtime
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(_resolve_level())
        logger.propagate = False
    return logger
