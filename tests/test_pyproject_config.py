"""Tests for pyproject.toml configuration.

Verifies packaging metadata (dependencies, entry point, bundled hook) and
code quality tool settings.
"""

import tomllib
from pathlib import Path

import pytest


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def pyproject(project_root: Path) -> dict:
    """Return parsed pyproject.toml."""
    with open(project_root / "pyproject.toml", "rb") as f:
        return tomllib.load(f)


class TestPackaging:
    def test_runtime_dependencies(self, pyproject: dict) -> None:
        """Every third-party import of the package is declared."""
        names = {dep.split(">")[0].split("=")[0].strip().lower() for dep in pyproject["project"]["dependencies"]}
        assert {"click", "libtmux", "pyyaml", "requests"} <= names

    def test_test_extra(self, pyproject: dict) -> None:
        test_deps = " ".join(pyproject["project"]["optional-dependencies"]["test"])
        assert "pytest" in test_deps
        assert "time-machine" in test_deps

    def test_console_script(self, pyproject: dict) -> None:
        assert pyproject["project"]["scripts"]["orchestrix"] == "orchestrix.cli:cli"

    def test_hook_script_is_package_data(self, pyproject: dict, project_root: Path) -> None:
        assert "hooks/*.py" in pyproject["tool"]["setuptools"]["package-data"]["orchestrix"]
        assert (project_root / "src" / "orchestrix" / "hooks" / "acp-stop-hook.py").exists()

    def test_version_matches_package(self, pyproject: dict) -> None:
        from orchestrix import __version__
        assert pyproject["project"]["version"] == __version__


class TestToolConfiguration:
    def test_mypy_python_version(self, pyproject: dict) -> None:
        """mypy should target the minimum supported Python."""
        mypy_config = pyproject["tool"]["mypy"]
        assert mypy_config["python_version"] >= "3.11"

    def test_black_settings(self, pyproject: dict) -> None:
        black_config = pyproject["tool"]["black"]
        assert 79 <= black_config["line-length"] <= 120, "Line length should be reasonable"
        assert "py311" in black_config["target-version"]

    def test_flake8_matches_black(self, pyproject: dict) -> None:
        """flake8 max-line-length should match black's line-length."""
        flake8_config = pyproject["tool"]["flake8"]
        assert flake8_config["max-line-length"] == pyproject["tool"]["black"]["line-length"]
