"""Shared pytest fixtures for the Taqyon test suite.

Provides reusable fixtures for:
- Fake Qt 6 installation trees (complete and partial)
- Locators isolated from the real machine
- Project specs for the common framework/language combinations
- Small Python scripts standing in for npm, the build helper and the app
"""

from __future__ import annotations

import sys
import textwrap
from collections.abc import Callable, Iterable
from pathlib import Path

import pytest

from taqyon.config import (
    BackendOptions,
    DevConfig,
    Framework,
    FrontendLanguage,
    ProjectSpec,
)
from taqyon.toolchain import QT_REQUIRED_MODULES, ToolchainLocator

ALL_PACKAGES: tuple[str, ...] = tuple(
    pkg for module in QT_REQUIRED_MODULES for pkg in module.packages
)


# ---------------------------------------------------------------------------
# Fake Qt installations
# ---------------------------------------------------------------------------


def make_qt_root(
    root: Path,
    packages: Iterable[str] = ALL_PACKAGES,
    cmake_subdir: str = "lib/cmake",
) -> Path:
    """Create a directory that looks like a Qt 6 install to the locator."""
    cmake_dir = root / cmake_subdir
    for pkg in ("Qt6", *packages):
        pkg_dir = cmake_dir / pkg
        pkg_dir.mkdir(parents=True, exist_ok=True)
        (pkg_dir / f"{pkg}Config.cmake").write_text("# fake\n", encoding="utf-8")
    return root


@pytest.fixture
def qt_root_factory() -> Callable[..., Path]:
    return make_qt_root


@pytest.fixture
def qt_root(tmp_path: Path) -> Path:
    """A complete fake Qt 6 installation."""
    return make_qt_root(tmp_path / "Qt" / "6.7.2" / "gcc_64")


@pytest.fixture
def partial_qt_root(tmp_path: Path) -> Path:
    """A fake Qt 6 installation without WebEngine and Positioning."""
    return make_qt_root(
        tmp_path / "partial-qt",
        packages=("Qt6Core", "Qt6Gui", "Qt6Widgets", "Qt6WebChannel"),
    )


@pytest.fixture
def fake_home(tmp_path: Path) -> Path:
    home = tmp_path / "home"
    home.mkdir()
    return home


@pytest.fixture
def empty_locator(fake_home: Path) -> ToolchainLocator:
    """A locator that cannot see any installation on the real machine."""
    return ToolchainLocator(home=fake_home, platform="linux", env={}, system_roots=[])


@pytest.fixture
def locator_for(fake_home: Path) -> Callable[[Path], ToolchainLocator]:
    """Build a locator whose only candidate is the given root (via QT6_DIR)."""

    def _make(root: Path) -> ToolchainLocator:
        return ToolchainLocator(
            home=fake_home, platform="linux", env={"QT6_DIR": str(root)}, system_roots=[]
        )

    return _make


# ---------------------------------------------------------------------------
# Project specs
# ---------------------------------------------------------------------------


@pytest.fixture
def react_ts_spec() -> ProjectSpec:
    return ProjectSpec(
        name="demo",
        framework=Framework.REACT,
        frontend_language=FrontendLanguage.TS,
    )


@pytest.fixture
def vue_js_spec() -> ProjectSpec:
    return ProjectSpec(name="vue-demo", framework=Framework.VUE, frontend_language=FrontendLanguage.JS)


@pytest.fixture
def backend_only_spec() -> ProjectSpec:
    return ProjectSpec(
        name="native",
        frontend_enabled=False,
        backend_options=BackendOptions(logging_enabled=False, dev_server_enabled=True),
    )


# ---------------------------------------------------------------------------
# Development session helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def fast_dev_config() -> DevConfig:
    """Short timeouts so process-supervision tests finish quickly."""
    return DevConfig(
        port_min=20000,
        port_max=29999,
        ready_timeout=10.0,
        poll_interval=0.05,
        terminate_grace=2.0,
    )


@pytest.fixture
def write_script(tmp_path: Path) -> Callable[[str, str], list[str]]:
    """Write a Python script and return the argv that runs it."""

    def _write(name: str, body: str) -> list[str]:
        path = tmp_path / "scripts" / f"{name}.py"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(body), encoding="utf-8")
        return [sys.executable, str(path)]

    return _write


@pytest.fixture
def dev_project(tmp_path: Path) -> Path:
    """A minimal generated-project layout for ``taqyon dev``."""
    root = tmp_path / "proj"
    (root / "src").mkdir(parents=True)
    (root / "src-taqyon").mkdir()
    (root / "package.json").write_text('{"name": "proj"}\n', encoding="utf-8")
    return root
