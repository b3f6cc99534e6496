"""Build helper script generation.

Writes ``build.sh`` and ``build.bat`` next to the backend sources.  Both
scripts behave the same when run standalone:

1. use the toolchain path hardcoded at generation time, if any;
2. otherwise read ``qt6Path`` from the project's ``.taqyonrc``;
3. otherwise prompt, and exit 1 with manual instructions on empty input;
4. if ``build/CMakeCache.txt`` was configured against a different source
   directory, offer to delete it or abort;
5. run ``cmake`` configure + build and exit with its status.
"""

from __future__ import annotations

import sys
from pathlib import Path

from taqyon.config import RECORD_FILENAME
from taqyon.utils import make_executable

from .templates import TemplateRenderer

POSIX_SCRIPT = "build.sh"
WINDOWS_SCRIPT = "build.bat"


def is_windows(platform: str | None = None) -> bool:
    return (platform or sys.platform).startswith("win")


def build_script_name(platform: str | None = None) -> str:
    """Name of the build helper for the given (default: current) platform."""
    return WINDOWS_SCRIPT if is_windows(platform) else POSIX_SCRIPT


class ScriptGenerator:
    """Emits the POSIX and Windows build helpers."""

    def __init__(
        self,
        renderer: TemplateRenderer | None = None,
        platform: str | None = None,
    ) -> None:
        self.renderer = renderer or TemplateRenderer()
        self.platform = platform or sys.platform

    def emit(self, dest_dir: str | Path, toolchain_path: str | Path | None = None) -> Path:
        """Write both scripts into *dest_dir*.

        Args:
            dest_dir: The backend directory (the scripts read ``../.taqyonrc``).
            toolchain_path: Qt root to hardcode.  ``None`` leaves resolution
                to the record and the interactive prompt at run time.

        Returns:
            Path of the script for this generator's platform.
        """
        dest = Path(dest_dir)
        context = {
            "qt_path": str(toolchain_path) if toolchain_path else "",
            "record_filename": RECORD_FILENAME,
        }

        posix = self.renderer.render_to_file(
            f"scripts/{POSIX_SCRIPT}.j2", dest / POSIX_SCRIPT, context, newline="\n"
        )
        make_executable(posix)
        windows = self.renderer.render_to_file(
            f"scripts/{WINDOWS_SCRIPT}.j2", dest / WINDOWS_SCRIPT, context, newline="\r\n"
        )
        return windows if is_windows(self.platform) else posix
