"""Centralized path management for spendlens.

The project root holds user configuration (``config/``). It is taken from
the SPENDLENS_HOME environment variable, or the current working directory.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


def _get_project_root() -> Path:
    """Determine the project root directory."""
    env_root = os.environ.get("SPENDLENS_HOME", "").strip()
    return Path(env_root).expanduser() if env_root else Path.cwd()


@dataclass
class ProjectPaths:
    """Container for project-related paths."""

    root: Path = field(default_factory=_get_project_root)

    def __post_init__(self) -> None:
        self.root = self.root.resolve()

    # --- Configuration paths ---
    @property
    def config(self) -> Path:
        """Configuration directory (config/)."""
        return self.root / "config"

    @property
    def description_rules(self) -> Path:
        """User description simplification rules TOML file."""
        return self.config / "description_rules.toml"

    @property
    def description_preferences(self) -> Path:
        """User label overrides keyed by sanitized description."""
        return self.config / "description_preferences.toml"

    @property
    def default_description_rules(self) -> Path:
        """Packaged default description rules TOML file."""
        return Path(__file__).resolve().parents[1] / "description" / "rules" / "default_rules.toml"


_paths: ProjectPaths | None = None


def get_paths() -> ProjectPaths:
    """Get the singleton ProjectPaths instance."""
    global _paths
    if _paths is None:
        _paths = ProjectPaths()
    return _paths


def reset_paths() -> None:
    """Forget the singleton so the next get_paths() re-reads the environment."""
    global _paths
    _paths = None
