"""Centralized logging configuration for spendlens.

Usage:
    from spendlens.runtime import get_logger
    logger = get_logger(__name__)

    logger.debug("Rule hit details")
    logger.info("Batch coverage")
    logger.warning("Fallback unavailable")

Environment variables:
    SPENDLENS_LOG_LEVEL: Set log level (DEBUG, INFO, WARNING, ERROR). Default: INFO
"""

import logging
import os
import sys

LOGGER_NAMESPACE = "spendlens"

# Default log level, can be overridden by environment variable
DEFAULT_LOG_LEVEL = logging.INFO

LOG_FORMAT = "%(levelname)s [%(name)s] %(message)s"
LOG_FORMAT_DEBUG = "%(levelname)s [%(name)s:%(lineno)d] %(message)s"

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
}

_logging_configured = False


def _resolve_level(level: int | str | None) -> int:
    if level is None:
        return _LEVELS.get(os.environ.get("SPENDLENS_LOG_LEVEL", "").upper(), DEFAULT_LOG_LEVEL)
    if isinstance(level, int):
        return level
    try:
        return _LEVELS[level.upper()]
    except KeyError:
        raise ValueError(f"Unknown log level: {level!r}") from None


def _formatter(level: int) -> logging.Formatter:
    return logging.Formatter(LOG_FORMAT_DEBUG if level == logging.DEBUG else LOG_FORMAT)


def configure_logging(level: int | str | None = None) -> None:
    """Attach a stderr handler to the spendlens logger namespace once.

    Args:
        level: Log level to use. If None, reads SPENDLENS_LOG_LEVEL or
               falls back to DEFAULT_LOG_LEVEL.
    """
    global _logging_configured

    if _logging_configured:
        return

    resolved = _resolve_level(level)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_formatter(resolved))

    root_logger = logging.getLogger(LOGGER_NAMESPACE)
    root_logger.setLevel(resolved)
    root_logger.addHandler(handler)
    root_logger.propagate = False

    _logging_configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the spendlens namespace.

    Args:
        name: Module name, typically __name__
    """
    configure_logging()

    if name == LOGGER_NAMESPACE or name.startswith(f"{LOGGER_NAMESPACE}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


def set_log_level(level: int | str) -> None:
    """Change the level at runtime (the CLI's ``--verbose``); DEBUG adds line numbers.

    Accepts a ``logging`` constant or a name such as ``"debug"``.
    """
    configure_logging()
    resolved = _resolve_level(level)
    logger = logging.getLogger(LOGGER_NAMESPACE)
    logger.setLevel(resolved)
    for handler in logger.handlers:
        handler.setFormatter(_formatter(resolved))
