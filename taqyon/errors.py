"""Exception hierarchy shared by the generator and the dev orchestrator.

Generation errors abort the current session but leave already-written files
in place; re-running the generator is resumable because injected files are
only written when absent.  Orchestration errors are converted into a process
exit code by :meth:`taqyon.dev.DevOrchestrator.run`.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from taqyon.toolchain.locator import ToolchainDescriptor


class TaqyonError(Exception):
    """Base class for every error raised by Taqyon."""


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


class ConfigurationError(TaqyonError):
    """A configuration input is missing or malformed. Not retried."""


class TemplateNotFoundError(ConfigurationError):
    """The requested template directory does not exist."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        super().__init__(f"Template directory not found: {self.path}")


class GenerationError(TaqyonError):
    """A generation step failed part-way through the tree."""

    def __init__(self, step: str, message: str) -> None:
        self.step = step
        super().__init__(f"{step} scaffolding failed: {message}")


class ToolchainNotFound(TaqyonError):
    """No Qt 6 installation could be located and the operator declined to continue."""

    def __init__(self, descriptor: "ToolchainDescriptor | None" = None) -> None:
        self.descriptor = descriptor
        super().__init__(
            "Qt6 was not detected. Install Qt6 or pass its path explicitly."
        )


class ToolchainIncomplete(TaqyonError):
    """Qt 6 was found but lacks required modules and the operator declined to continue."""

    def __init__(self, descriptor: "ToolchainDescriptor") -> None:
        self.descriptor = descriptor
        missing = ", ".join(descriptor.missing_modules)
        super().__init__(
            f"Qt6 at {descriptor.root_path} is missing modules: {missing}"
        )


# ---------------------------------------------------------------------------
# Development session
# ---------------------------------------------------------------------------


class OrchestrationError(TaqyonError):
    """Raised when a development session cannot continue."""

    exit_code: int = 1


class ProcessLaunchFailure(OrchestrationError):
    """An executable the session needs is absent or cannot be started."""

    def __init__(self, message: str, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else None
        super().__init__(message)


class FrontendNotReady(OrchestrationError):
    """The frontend dev server did not accept connections in time."""

    def __init__(self, port: int, timeout: float) -> None:
        self.port = port
        self.timeout = timeout
        super().__init__(
            f"Frontend dev server did not start listening on port {port} "
            f"within {timeout:g}s"
        )


class ChildProcessFailure(OrchestrationError):
    """A supervised child exited; its code becomes the session's exit code."""

    def __init__(self, name: str, exit_code: int) -> None:
        self.name = name
        self.exit_code = exit_code
        super().__init__(f"{name} exited with code {exit_code}")
