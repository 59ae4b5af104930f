"""Runtime infrastructure for spendlens.

This package provides process/runtime services including:
- Logging setup via get_logger()
- Path resolution via get_paths(), ProjectPaths
- Rule and preference loading from TOML files
- The HTTP fallback simplifier client

Usage:
    from spendlens.runtime import get_logger, get_paths

    logger = get_logger(__name__)
    paths = get_paths()
    print(paths.root, paths.description_rules)
"""

from spendlens.runtime.description_rules import load_description_preferences, load_description_rule_table
from spendlens.runtime.fallback_client import (
    FallbackServiceUnavailable,
    FallbackSimplifier,
    HttpFallbackSimplifier,
)
from spendlens.runtime.logging import (
    DEFAULT_LOG_LEVEL,
    LOG_FORMAT,
    LOG_FORMAT_DEBUG,
    configure_logging,
    get_logger,
    set_log_level,
)
from spendlens.runtime.paths import ProjectPaths, get_paths, reset_paths

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "set_log_level",
    "DEFAULT_LOG_LEVEL",
    "LOG_FORMAT",
    "LOG_FORMAT_DEBUG",
    # Rules
    "load_description_rule_table",
    "load_description_preferences",
    # Fallback
    "FallbackServiceUnavailable",
    "FallbackSimplifier",
    "HttpFallbackSimplifier",
    # Paths
    "get_paths",
    "reset_paths",
    "ProjectPaths",
]
