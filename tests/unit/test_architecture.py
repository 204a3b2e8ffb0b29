"""Tests to verify the layer boundaries of the govgate package."""

import ast
from pathlib import Path

import pytest

PACKAGE_ROOT = Path(__file__).parent.parent.parent / "govgate"

THIRD_PARTY_FRAMEWORKS = ("fastapi", "starlette", "sqlalchemy", "asyncpg", "httpx", "typer")


def imported_modules(path: Path) -> list[str]:
    tree = ast.parse(path.read_text(encoding="utf-8"))
    modules: list[str] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.ImportFrom) and node.module:
            modules.append(node.module)
        elif isinstance(node, ast.Import):
            modules.extend(alias.name for alias in node.names)
    return modules


@pytest.fixture
def package_path() -> Path:
    """Return the govgate package directory."""
    return PACKAGE_ROOT


def test_main_layers_exist(package_path: Path) -> None:
    for layer in ["domain", "application", "infrastructure", "api", "bootstrap", "config"]:
        assert (package_path / layer / "__init__.py").is_file(), f"Missing layer: {layer}"


def test_domain_imports_only_domain(package_path: Path) -> None:
    violations = []
    for path in (package_path / "domain").rglob("*.py"):
        for module in imported_modules(path):
            if module.startswith("govgate.") and not module.startswith("govgate.domain"):
                violations.append(f"{path.name}: {module}")
    assert violations == []


def test_domain_and_application_are_framework_free(package_path: Path) -> None:
    violations = []
    for layer in ["domain", "application"]:
        for path in (package_path / layer).rglob("*.py"):
            for module in imported_modules(path):
                if module.split(".")[0] in THIRD_PARTY_FRAMEWORKS:
                    violations.append(f"{layer}/{path.name}: {module}")
    assert violations == []


def test_application_does_not_import_outer_layers(package_path: Path) -> None:
    forbidden = ("govgate.infrastructure", "govgate.api", "govgate.bootstrap")
    violations = []
    for path in (package_path / "application").rglob("*.py"):
        for module in imported_modules(path):
            if module.startswith(forbidden):
                violations.append(f"{path.name}: {module}")
    assert violations == []
