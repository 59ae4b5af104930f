"""Architecture boundary checks between pure, runtime and orchestration layers.

Pure packages (domain, receipt, description) do no I/O beyond reading
packaged data: they must not import runtime, application, cli or httpx.
Runtime must not import application or cli.
"""

from __future__ import annotations

import ast
from pathlib import Path

import pytest

_ROOT = Path(__file__).resolve().parents[1]

PURE_PACKAGES = ("domain", "receipt", "description")
FORBIDDEN_FROM_PURE = ("spendlens.runtime", "spendlens.application", "spendlens.cli", "httpx")
FORBIDDEN_FROM_RUNTIME = ("spendlens.application", "spendlens.cli")


def _imports(path: Path) -> list[str]:
    tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    result: list[str] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                result.append(alias.name)
        elif isinstance(node, ast.ImportFrom):
            base = "." * node.level + (node.module or "")
            result.append(base)
    return result


def _violations(package: str, forbidden: tuple[str, ...]) -> list[str]:
    violations: list[str] = []
    for path in sorted((_ROOT / package).rglob("*.py")):
        for mod in _imports(path):
            if any(mod == prefix or mod.startswith(f"{prefix}.") for prefix in forbidden):
                violations.append(f"{path.relative_to(_ROOT)}: {mod}")
    return violations


@pytest.mark.parametrize("package", PURE_PACKAGES)
def test_pure_packages_do_not_import_runtime(package: str) -> None:
    violations = _violations(package, FORBIDDEN_FROM_PURE)
    assert not violations, "Pure -> runtime import violations:\n" + "\n".join(violations)


def test_runtime_does_not_import_orchestrators() -> None:
    violations = _violations("runtime", FORBIDDEN_FROM_RUNTIME)
    assert not violations, "Runtime -> orchestrator import violations:\n" + "\n".join(violations)


def test_pure_packages_use_absolute_imports() -> None:
    relative = [
        f"{path.relative_to(_ROOT)}: {mod}"
        for package in PURE_PACKAGES
        for path in sorted((_ROOT / package).rglob("*.py"))
        for mod in _imports(path)
        if mod.startswith(".")
    ]
    assert not relative, "Relative imports:\n" + "\n".join(relative)
