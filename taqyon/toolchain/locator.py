"""Qt 6 toolchain discovery.

Searches the platform-conventional install roots for a Qt 6 SDK, validates
operator-supplied paths, and probes which capability modules an installation
provides.  Nothing here raises for a missing or incomplete toolchain: callers
receive a :class:`ToolchainDescriptor` and decide whether to prompt again,
warn, or abort.
"""

from __future__ import annotations

import os
import re
import sys
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Capability modules
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class QtModule:
    """A capability module and the CMake packages that prove it is installed."""

    name: str
    label: str
    packages: tuple[str, ...]


QT_REQUIRED_MODULES: tuple[QtModule, ...] = (
    QtModule("Core", "Qt Core", ("Qt6Core", "Qt6Gui")),
    QtModule("Widgets", "Qt Widgets", ("Qt6Widgets",)),
    QtModule("WebEngine", "Qt WebEngine", ("Qt6WebEngineCore", "Qt6WebEngineWidgets")),
    QtModule("WebChannel", "Qt WebChannel", ("Qt6WebChannel",)),
    QtModule("Positioning", "Qt Positioning", ("Qt6Positioning",)),
)

MODULE_LABELS: dict[str, str] = {m.name: m.label for m in QT_REQUIRED_MODULES}

# Relative locations of the CMake package directory inside a Qt root.
_CMAKE_SUBDIRS: tuple[str, ...] = (
    "lib/cmake",
    "lib/x86_64-linux-gnu/cmake",
    "lib/aarch64-linux-gnu/cmake",
    "lib64/cmake",
)

_MARKER_PACKAGE = "Qt6"
_VERSION_RE = re.compile(r"^6(\.\d+)*$")

_ARCH_PREFERENCES: dict[str, tuple[str, ...]] = {
    "darwin": ("macos", "clang_64"),
    "win32": ("msvc2022_64", "msvc2019_64", "mingw_64", "llvm-mingw_64", "msvc2022_arm64"),
    "linux": ("gcc_64", "linux_gcc_64", "gcc_arm64", "linux_gcc_arm64"),
}

_SYSTEM_ROOTS: dict[str, tuple[str, ...]] = {
    "darwin": (
        "/opt/homebrew/opt/qt6",
        "/opt/homebrew/opt/qt",
        "/usr/local/opt/qt6",
        "/usr/local/opt/qt",
    ),
    "win32": (),
    "linux": (
        "/home/linuxbrew/.linuxbrew/opt/qt6",
        "/usr/lib/qt6",
        "/usr/local/Qt6",
        "/opt/qt6",
        "/usr",
    ),
}

_ENV_VARS: tuple[str, ...] = ("QT6_DIR", "QTDIR")


# ---------------------------------------------------------------------------
# Descriptor
# ---------------------------------------------------------------------------


class ToolchainDescriptor(BaseModel):
    """Result of a toolchain lookup.

    ``root_path`` is ``None`` when no installation was found or validated; in
    that case every module is reported missing.
    """

    model_config = ConfigDict(frozen=True)

    root_path: Path | None = Field(default=None)
    module_status: dict[str, bool] = Field(default_factory=dict)

    @property
    def found(self) -> bool:
        return self.root_path is not None

    @property
    def missing_modules(self) -> list[str]:
        return [name for name, present in self.module_status.items() if not present]

    @property
    def complete(self) -> bool:
        return self.found and not self.missing_modules

    @classmethod
    def absent(cls) -> "ToolchainDescriptor":
        return cls(root_path=None, module_status={m.name: False for m in QT_REQUIRED_MODULES})


# ---------------------------------------------------------------------------
# Filesystem probes
# ---------------------------------------------------------------------------


def find_cmake_dir(root: Path) -> Path | None:
    """Return the directory holding ``Qt6/Qt6Config.cmake`` under *root*, if any."""
    for sub in _CMAKE_SUBDIRS:
        cmake_dir = root / sub
        if (cmake_dir / _MARKER_PACKAGE / f"{_MARKER_PACKAGE}Config.cmake").is_file():
            return cmake_dir
    return None


def module_status(root: str | Path) -> dict[str, bool]:
    """Probe every capability module under *root*.

    All modules are checked; the caller gets the complete picture in one call.
    """
    cmake_dir = find_cmake_dir(Path(root))
    status: dict[str, bool] = {}
    for module in QT_REQUIRED_MODULES:
        if cmake_dir is None:
            status[module.name] = False
            continue
        status[module.name] = all(
            (cmake_dir / pkg / f"{pkg}Config.cmake").is_file() for pkg in module.packages
        )
    return status


def _normalize_root(path: Path) -> Path:
    """Map a path pointing at ``<root>/lib/cmake/Qt6`` back to ``<root>``."""
    for sub in _CMAKE_SUBDIRS:
        tail = (*Path(sub).parts, _MARKER_PACKAGE)
        if len(path.parts) > len(tail) and path.parts[-len(tail):] == tail:
            return path.parents[len(tail) - 1]
    return path


def _version_key(name: str) -> tuple[int, ...]:
    return tuple(int(part) for part in name.split("."))


def _platform_family(platform: str) -> str:
    if platform.startswith("win"):
        return "win32"
    if platform == "darwin":
        return "darwin"
    return "linux"


# ---------------------------------------------------------------------------
# Locator
# ---------------------------------------------------------------------------


class ToolchainLocator:
    """Finds and validates Qt 6 installations.

    The search order is fixed per platform, so repeated calls against an
    unchanged filesystem and environment return the same root:

    1. ``QT6_DIR`` / ``QTDIR`` environment variables.
    2. ``~/Qt/<version>/<arch>`` (and ``C:\\Qt`` on Windows), newest version
       first, known architectures in preference order before any others.
    3. Package-manager prefixes and standard system locations.
    """

    def __init__(
        self,
        home: str | Path | None = None,
        platform: str | None = None,
        env: Mapping[str, str] | None = None,
        system_roots: Sequence[str | Path] | None = None,
    ) -> None:
        self.home = Path(home) if home is not None else Path.home()
        self.platform = _platform_family(platform or sys.platform)
        self.env = dict(os.environ if env is None else env)
        if system_roots is None:
            system_roots = _SYSTEM_ROOTS[self.platform]
        self.system_roots = [Path(p) for p in system_roots]

    # -- Public API --------------------------------------------------------

    def locate(self) -> ToolchainDescriptor:
        """Return the first installation found, or an absent descriptor."""
        for candidate in self.candidates():
            if find_cmake_dir(candidate) is not None:
                return self.describe(candidate)
        return ToolchainDescriptor.absent()

    def validate(self, path: str | Path | None) -> ToolchainDescriptor:
        """Check an operator-supplied path; absent descriptor when it is not a Qt 6 root."""
        if path is None or not str(path).strip():
            return ToolchainDescriptor.absent()
        candidate = Path(os.path.abspath(Path(str(path).strip()).expanduser()))
        root = _normalize_root(candidate)
        if find_cmake_dir(root) is None:
            return ToolchainDescriptor.absent()
        return self.describe(root)

    def describe(self, root: Path) -> ToolchainDescriptor:
        root = Path(os.path.abspath(root))
        return ToolchainDescriptor(root_path=root, module_status=module_status(root))

    def module_status(self, path: str | Path) -> dict[str, bool]:
        return module_status(path)

    # -- Search order ------------------------------------------------------

    def candidates(self) -> Iterator[Path]:
        """Yield candidate roots in search order (may contain non-existent paths)."""
        seen: set[Path] = set()
        for path in self._iter_candidates():
            if path not in seen:
                seen.add(path)
                yield path

    def _iter_candidates(self) -> Iterator[Path]:
        for var in _ENV_VARS:
            value = self.env.get(var)
            if value:
                yield _normalize_root(Path(value).expanduser())

        qt_homes = [self.home / "Qt"]
        if self.platform == "win32":
            qt_homes.append(Path("C:/Qt"))
        for qt_home in qt_homes:
            yield from self._installer_roots(qt_home)

        yield from self.system_roots

    def _installer_roots(self, qt_home: Path) -> Iterator[Path]:
        """Yield ``<qt_home>/<version>/<arch>`` roots laid out by the Qt online installer."""
        if not qt_home.is_dir():
            return
        versions = sorted(
            (d for d in qt_home.iterdir() if d.is_dir() and _VERSION_RE.match(d.name)),
            key=lambda d: _version_key(d.name),
            reverse=True,
        )
        preferred = _ARCH_PREFERENCES[self.platform]
        for version_dir in versions:
            for arch in preferred:
                yield version_dir / arch
            others = sorted(
                d.name for d in version_dir.iterdir() if d.is_dir() and d.name not in preferred
            )
            for arch in others:
                yield version_dir / arch


# ---------------------------------------------------------------------------
# Operator guidance
# ---------------------------------------------------------------------------


def missing_labels(missing: Iterable[str]) -> list[str]:
    """Map module names to labels, deduplicated, preserving order."""
    labels: list[str] = []
    for name in missing:
        label = MODULE_LABELS.get(name, name)
        if label not in labels:
            labels.append(label)
    return labels


def remediation_hints(missing: Iterable[str] = ()) -> list[str]:
    """Return the Qt install guidance, listing each missing module label once."""
    lines: list[str] = []
    labels = missing_labels(missing)
    if labels:
        lines.append(f"Missing modules: {', '.join(labels)}")
    lines.extend(
        [
            "Install Qt 6 with the required desktop modules via:",
            "- Qt Online Installer: https://www.qt.io/download-qt-installer",
            "- Qt Maintenance Tool (Add/Remove Components)",
            "- CLI (aqtinstall) example:",
            "    python -m pip install aqtinstall",
            "    aqt install-qt <os> desktop <version> <arch> -m qtwebengine qtwebchannel qtpositioning",
            "  Examples:",
            "    mac:    aqt install-qt mac desktop 6.6.0 clang_64 -m qtwebengine qtwebchannel qtpositioning",
            "    win:    aqt install-qt windows desktop 6.6.0 msvc2019_64 -m qtwebengine qtwebchannel qtpositioning",
            "    linux:  aqt install-qt linux desktop 6.6.0 gcc_64 -m qtwebengine qtwebchannel qtpositioning",
        ]
    )
    return lines
