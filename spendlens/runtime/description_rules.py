"""Runtime loaders for description rules and user label preferences."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

from spendlens.description.rule_table import DescriptionRuleTable, build_description_rule_table
from spendlens.description.sanitize import description_key, sanitize_description
from spendlens.runtime.logging import get_logger
from spendlens.runtime.paths import get_paths

logger = get_logger(__name__)


def _load_toml(path: Path) -> dict[str, Any]:
    """Load TOML file and return parsed dict; missing files map to empty dict."""
    try:
        import tomllib
    except ImportError:
        import tomli as tomllib  # type: ignore[no-redef]

    if not path.exists():
        return {}

    with open(path, "rb") as f:
        data = tomllib.load(f)
    return data if isinstance(data, dict) else {}


@lru_cache(maxsize=8)
def load_description_rule_table(rule_paths: tuple[str, ...] | None = None) -> DescriptionRuleTable:
    """Load packaged default rules plus the project's rule file.

    Args:
        rule_paths: Explicit layer files, lowest precedence first. Every
            listed file must exist. If None, uses the packaged defaults and
            config/description_rules.toml when present.

    Raises:
        FileNotFoundError: an explicitly listed file is missing.
        ValueError: a rule file contains an invalid rule.
    """
    p = get_paths()
    if rule_paths is None:
        files = [p.default_description_rules, p.description_rules]
    else:
        files = [Path(path) for path in rule_paths]
        for path in files:
            if not path.exists():
                raise FileNotFoundError(f"Description rules file not found: {path}")

    configs = tuple(_load_toml(path) for path in files)
    table = build_description_rule_table(configs)
    logger.debug(
        "Loaded %d merchant, %d operation, %d transfer rules from %s",
        len(table.merchants),
        len(table.operations),
        len(table.transfers),
        [str(path) for path in files],
    )
    return table


@lru_cache(maxsize=4)
def load_description_preferences(config_path: str | None = None) -> dict[str, str]:
    """Load user label overrides from ``[preferences]``.

    Keys are stored as ``description_key`` of the sanitized description, so
    one entry covers every date, amount and card variant of a row.
    """
    path = Path(config_path) if config_path is not None else get_paths().description_preferences
    config = _load_toml(path)
    raw = config.get("preferences", {})
    if not isinstance(raw, dict):
        raise ValueError(f"[preferences] must be a table in {path}")

    preferences: dict[str, str] = {}
    for key, value in raw.items():
        key_str = description_key(sanitize_description(key))
        value_str = str(value).strip()
        if key_str and value_str:
            preferences[key_str] = value_str
    return preferences
