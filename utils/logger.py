"""
Logging for the billing modules.

Each module calls ``get_logger(__name__)``. Records go to the
``billing_docs`` logger, which owns a single stderr handler and does not
propagate to the root logger. BILLING_LOG_LEVEL sets the starting level by
name (DEBUG, INFO, WARNING, ERROR); anything else means INFO.
"""

import logging
import os
import sys

NAMESPACE = "billing_docs"

BRIEF_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
DEBUG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s.%(funcName)s:%(lineno)d: %(message)s"

_handler: logging.Handler | None = None


def parse_level(value: int | str) -> int:
    """Accept ``logging.DEBUG`` or ``"debug"``; raise ValueError for unknown names."""
    if isinstance(value, int):
        return value
    level = logging.getLevelName(value.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {value!r}")
    return level


def _formatter(level: int) -> logging.Formatter:
    return logging.Formatter(DEBUG_FORMAT if level <= logging.DEBUG else BRIEF_FORMAT)


def _level_from_env() -> int:
    name = os.getenv("BILLING_LOG_LEVEL", "")
    if not name:
        return logging.INFO
    try:
        return parse_level(name)
    except ValueError:
        sys.stderr.write(f"Ignoring BILLING_LOG_LEVEL={name!r}, using INFO\n")
        return logging.INFO


def configure_logging(level: int | str | None = None) -> logging.Logger:
    """Install the stderr handler once and return the namespace logger."""
    global _handler

    namespace = logging.getLogger(NAMESPACE)
    if _handler is not None:
        return namespace

    level = _level_from_env() if level is None else parse_level(level)

    _handler = logging.StreamHandler(sys.stderr)
    _handler.setFormatter(_formatter(level))
    namespace.addHandler(_handler)
    namespace.setLevel(level)
    namespace.propagate = False
    return namespace


def get_logger(name: str) -> logging.Logger:
    namespace = configure_logging()
    if name == NAMESPACE or name.startswith(f"{NAMESPACE}."):
        return logging.getLogger(name)
    return namespace.getChild(name)


def set_log_level(level: int | str) -> None:
    """Change the level at runtime; DEBUG also switches to the detailed format."""
    level = parse_level(level)
    namespace = configure_logging()
    namespace.setLevel(level)
    if _handler is not None:
        _handler.setFormatter(_formatter(level))
