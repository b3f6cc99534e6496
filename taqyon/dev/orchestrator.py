"""Development session: frontend dev server and native app as a coupled pair.

``DevOrchestrator.run`` walks a fixed sequence of states::

    PICKING_PORT -> LAUNCHING_FRONTEND -> WAITING_FOR_PORT -> BUILDING_BACKEND
        -> LAUNCHING_BACKEND -> PAIRED_RUNNING -> TORN_DOWN

``TORN_DOWN`` is entered from whichever state the session stops in; every
child still running at that point is terminated (then killed after the grace
period).  The frontend exiting before the pair is running aborts the session
with the frontend's exit code.

Usage::

    python -m taqyon dev --project ./demo
"""

from __future__ import annotations

import asyncio
import random
import shutil
import sys
from asyncio.subprocess import Process
from collections.abc import Awaitable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from taqyon.config import BACKEND_DIR, FRONTEND_DIR, MANIFEST_FILENAME, DevConfig
from taqyon.errors import (
    ChildProcessFailure,
    OrchestrationError,
    ProcessLaunchFailure,
)
from taqyon.scaffolder.scripts import build_script_name, is_windows
from taqyon.utils import console, load_json, print_error

from .ports import pick_port, wait_for_port

FRONTEND = "Frontend dev server"
BUILD = "Backend build"
BACKEND = "Application"


class DevState(str, Enum):
    PICKING_PORT = "picking_port"
    LAUNCHING_FRONTEND = "launching_frontend"
    WAITING_FOR_PORT = "waiting_for_port"
    BUILDING_BACKEND = "building_backend"
    LAUNCHING_BACKEND = "launching_backend"
    PAIRED_RUNNING = "paired_running"
    TORN_DOWN = "torn_down"


def session_exit_code(code: int | None) -> int:
    """Map a child's return code to a process exit status (signals -> 128+n)."""
    if code is None:
        return 1
    if code < 0:
        return 128 - code
    return code


async def terminate_process(proc: Process, grace: float) -> None:
    """SIGTERM *proc*, then SIGKILL if it has not exited after *grace* seconds."""
    if proc.returncode is not None:
        return
    try:
        proc.terminate()
    except ProcessLookupError:
        return
    try:
        await asyncio.wait_for(proc.wait(), timeout=grace)
    except asyncio.TimeoutError:
        try:
            proc.kill()
        except ProcessLookupError:
            return
        await proc.wait()


# ---------------------------------------------------------------------------
# Project layout
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProjectLayout:
    """Paths of a generated project, checked before anything is spawned."""

    root: Path
    frontend_dir: Path
    backend_dir: Path
    app_name: str

    @classmethod
    def load(cls, project_root: str | Path) -> "ProjectLayout":
        root = Path(project_root).resolve()
        frontend_dir = root / FRONTEND_DIR
        backend_dir = root / BACKEND_DIR
        if not frontend_dir.is_dir():
            raise OrchestrationError(f"Frontend directory not found at: {frontend_dir}")
        if not backend_dir.is_dir():
            raise OrchestrationError(f"Backend directory not found at: {backend_dir}")

        manifest = root / MANIFEST_FILENAME
        try:
            name = load_json(manifest).get("name")
        except (OSError, ValueError) as exc:
            raise OrchestrationError(f"Cannot read {manifest}: {exc}") from exc
        if not isinstance(name, str) or not name:
            raise OrchestrationError(f"{manifest} has no 'name' field")
        return cls(root=root, frontend_dir=frontend_dir, backend_dir=backend_dir, app_name=name)

    def binary_path(self, platform: str | None = None) -> Path:
        suffix = ".exe" if is_windows(platform) else ""
        return self.backend_dir / "build" / "bin" / f"{self.app_name}{suffix}"

    def build_script(self, platform: str | None = None) -> Path:
        return self.backend_dir / build_script_name(platform)


# ---------------------------------------------------------------------------
# Process pair
# ---------------------------------------------------------------------------


@dataclass
class ProcessPair:
    """The frontend and backend children; when one exits the other is stopped."""

    frontend: Process
    backend: Process

    async def supervise(self) -> tuple[str, int | None]:
        """Wait for the first child to exit.

        Returns:
            ``(name, returncode)`` of the child that exited first.
        """
        waiters = {
            asyncio.ensure_future(self.backend.wait()): BACKEND,
            asyncio.ensure_future(self.frontend.wait()): FRONTEND,
        }
        try:
            done, _ = await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in waiters:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*waiters, return_exceptions=True)
        # Backend first when both are already done.
        first = next(task for task in waiters if task in done)
        return waiters[first], first.result()


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class DevOrchestrator:
    """Runs one development session against a generated project.

    Attributes:
        config: Port range, timeouts and grace period.
        history: States entered during the last :meth:`run`, in order.
        port: The port chosen for the frontend dev server.
    """

    def __init__(
        self,
        config: DevConfig | None = None,
        *,
        platform: str | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config or DevConfig.from_env()
        self.platform = platform or sys.platform
        self.rng = rng
        self.history: list[DevState] = []
        self.port: int | None = None
        self._children: list[Process] = []

    # -- Commands (overridable) -------------------------------------------

    def frontend_command(self, layout: ProjectLayout, port: int) -> list[str]:
        npm = shutil.which("npm") or "npm"
        return [
            npm, "run", "--prefix", str(layout.frontend_dir), "dev",
            "--", "--port", str(port), "--strictPort",
        ]

    def build_command(self, layout: ProjectLayout) -> list[str]:
        script = layout.build_script(self.platform)
        if not script.is_file():
            raise ProcessLaunchFailure(f"Build helper not found: {script}", script)
        if is_windows(self.platform):
            return ["cmd", "/c", str(script)]
        return [shutil.which("bash") or "/bin/bash", str(script)]

    def backend_command(self, layout: ProjectLayout, port: int) -> list[str]:
        binary = layout.binary_path(self.platform)
        if not binary.is_file():
            raise ProcessLaunchFailure(
                "Application executable not found. Make sure to build successfully first.",
                binary,
            )
        return [str(binary), "--dev-server", f"http://localhost:{port}", "--verbose"]

    # -- Session ----------------------------------------------------------

    async def run(self, project_root: str | Path) -> int:
        """Run the session and return its exit code.

        Orchestration errors are printed and converted into an exit code;
        cancellation tears both children down and propagates.
        """
        self.history = []
        self._children = []
        try:
            return await self._run(Path(project_root))
        except OrchestrationError as exc:
            print_error(str(exc))
            return session_exit_code(exc.exit_code)
        finally:
            await self._teardown()

    async def _run(self, project_root: Path) -> int:
        layout = ProjectLayout.load(project_root)

        self._enter(DevState.PICKING_PORT)
        self.port = port = pick_port(self.config, self.rng).port
        console.print(f"Using dev server: http://localhost:{port}")

        self._enter(DevState.LAUNCHING_FRONTEND)
        frontend = await self._spawn(FRONTEND, self.frontend_command(layout, port), layout.root)

        self._enter(DevState.WAITING_FOR_PORT)
        await self._race_frontend(
            frontend,
            wait_for_port(
                port,
                timeout=self.config.ready_timeout,
                interval=self.config.poll_interval,
            ),
        )

        self._enter(DevState.BUILDING_BACKEND)
        build = await self._spawn(BUILD, self.build_command(layout), layout.backend_dir)
        code = await self._race_frontend(frontend, build.wait())
        if code != 0:
            raise ChildProcessFailure(BUILD, session_exit_code(code))

        self._enter(DevState.LAUNCHING_BACKEND)
        command = self.backend_command(layout, port)
        backend = await self._spawn(BACKEND, command, Path(command[0]).parent)

        self._enter(DevState.PAIRED_RUNNING)
        name, code = await ProcessPair(frontend, backend).supervise()
        console.print(f"{name} exited with code {code}; stopping the other process.")
        return session_exit_code(code)

    # -- Internal ----------------------------------------------------------

    def _enter(self, state: DevState) -> None:
        self.history.append(state)
        console.print(f"[dim]dev: {state.value}[/dim]")

    async def _spawn(self, name: str, cmd: list[str], cwd: Path) -> Process:
        try:
            proc = await asyncio.create_subprocess_exec(*cmd, cwd=str(cwd))
        except OSError as exc:
            raise ProcessLaunchFailure(f"Could not start {name} ({cmd[0]}): {exc}", cmd[0]) from exc
        self._children.append(proc)
        return proc

    async def _race_frontend(self, frontend: Process, step: Awaitable[Any]) -> Any:
        """Await *step*, aborting if the frontend exits first."""
        step_task = asyncio.ensure_future(step)
        exit_task = asyncio.ensure_future(frontend.wait())
        try:
            done, _ = await asyncio.wait(
                {step_task, exit_task}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for task in (step_task, exit_task):
                if not task.done():
                    task.cancel()
            await asyncio.gather(step_task, exit_task, return_exceptions=True)

        if step_task in done:
            return step_task.result()
        # The session never ran, so a clean frontend exit still counts as failure.
        code = session_exit_code(exit_task.result()) or 1
        raise ChildProcessFailure(FRONTEND, code)

    async def _teardown(self) -> None:
        children, self._children = self._children, []
        await asyncio.gather(
            *(terminate_process(proc, self.config.terminate_grace) for proc in children)
        )
        self._enter(DevState.TORN_DOWN)
