"""Main scaffolding orchestrator.

Takes a ``ProjectSpec`` and generates a project directory with an optional
web frontend (``src/``), an optional Qt backend (``src-taqyon/``), the
``.taqyonrc`` toolchain record, build helper scripts, ``package.json`` and
``README.md``.

Generation is sequential.  A failing step raises and leaves already-written
files in place; bridge and loader files are only injected when absent, so a
second run over the same destination picks up where the first stopped.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from taqyon.config import (
    BACKEND_DIR,
    FRONTEND_DIR,
    MANIFEST_FILENAME,
    PROJECT_VERSION,
    RECORD_FILENAME,
    Framework,
    FrontendLanguage,
    ProjectSpec,
)
from taqyon.errors import (
    GenerationError,
    TaqyonError,
    ToolchainIncomplete,
    ToolchainNotFound,
)
from taqyon.toolchain import (
    ToolchainDescriptor,
    ToolchainLocator,
    ToolchainRecord,
    remediation_hints,
)
from taqyon.utils import (
    command_exists,
    console,
    print_header,
    print_success,
    print_summary_table,
    print_warning,
    run_command,
    save_json,
)

from .composer import TemplateComposer, patch_vite_base
from .manifest import build_manifest, readme_commands
from .scripts import ScriptGenerator
from .templates import TemplateRenderer

#: Called with the preflight result when Qt is missing or incomplete; return
#: ``True`` to continue anyway.
ToolchainConfirm = Callable[[ToolchainDescriptor], bool]
#: Asks the operator for a Qt path when detection fails; ``None``/empty skips.
QtPathPrompt = Callable[[], "str | None"]

BRIDGE_NAME = "qwebchannel-bridge"
LOADER_NAME = "qwebchannel-loader.js"


@dataclass
class GenerationResult:
    """What a generation session produced."""

    project_root: Path
    toolchain: ToolchainDescriptor | None = None
    build_script: Path | None = None
    injected: list[Path] = field(default_factory=list)

    @property
    def qt6_path(self) -> Path | None:
        if self.toolchain is None:
            return None
        return self.toolchain.root_path


class ProjectGenerator:
    """Drives one generation session for a :class:`ProjectSpec`.

    Args:
        spec: What to generate.
        locator: Toolchain search (defaults to the platform search order).
        composer: Template library access.
        qt_path: Operator-supplied Qt root; validated, and used instead of
            the search when valid.
        confirm_toolchain: Decides whether to continue when Qt is missing
            or incomplete.  ``None`` warns and continues.
        ask_qt_path: Asked for a Qt root when the search finds nothing.
        platform: Target platform for manifest spelling (default: current).
    """

    def __init__(
        self,
        spec: ProjectSpec,
        *,
        locator: ToolchainLocator | None = None,
        composer: TemplateComposer | None = None,
        renderer: TemplateRenderer | None = None,
        qt_path: str | Path | None = None,
        confirm_toolchain: ToolchainConfirm | None = None,
        ask_qt_path: QtPathPrompt | None = None,
        platform: str | None = None,
    ) -> None:
        self.spec = spec
        self.locator = locator or ToolchainLocator()
        self.composer = composer or TemplateComposer()
        self.renderer = renderer or TemplateRenderer()
        self.script_gen = ScriptGenerator(self.renderer, platform=platform)
        self.qt_path = qt_path
        self.confirm_toolchain = confirm_toolchain
        self.ask_qt_path = ask_qt_path
        self.platform = platform

    # -- Public API --------------------------------------------------------

    async def generate(self, output_dir: str | Path) -> GenerationResult:
        """Generate the project under ``<output_dir>/<spec.name>``.

        Raises:
            ToolchainNotFound / ToolchainIncomplete: The operator declined to
                continue without a complete Qt installation.
            TemplateNotFoundError: The framework/language template is missing.
            GenerationError: A step failed part-way through.
        """
        project_root = Path(output_dir) / self.spec.name
        result = GenerationResult(project_root=project_root)
        console.print(f"\n[bold blue]Creating project:[/bold blue] {self.spec.name}")

        # 1. Toolchain preflight (before anything is written)
        result.toolchain = await self.preflight()

        await asyncio.to_thread(project_root.mkdir, parents=True, exist_ok=True)

        # 2. Frontend
        if self.spec.frontend_enabled:
            result.injected = await asyncio.to_thread(self._scaffold_frontend, project_root)
        else:
            console.print("Frontend scaffolding skipped.")

        # 3. Backend, record and build helpers
        if self.spec.backend_enabled:
            result.build_script = await asyncio.to_thread(
                self._scaffold_backend, project_root, result.toolchain
            )
        else:
            console.print("Backend scaffolding skipped.")

        # 4. Manifest and README
        await asyncio.to_thread(self._write_manifest, project_root)
        await asyncio.to_thread(self._write_readme, project_root, result.qt6_path)

        self._print_final_summary(result)
        return result

    # -- Preflight ---------------------------------------------------------

    async def preflight(self) -> ToolchainDescriptor | None:
        """Resolve and report the Qt toolchain for backend projects.

        Returns ``None`` when the backend is disabled.
        """
        print_header("Preflight checks")
        if not self.spec.backend_enabled:
            console.print("  Backend scaffolding skipped; backend checks not required.")
            return None

        if command_exists("cmake"):
            rc, out, _ = await run_command(["cmake", "--version"], timeout=10)
            version = out.splitlines()[0] if rc == 0 and out else "version unknown"
            console.print(f"  CMake: [green]OK[/green] ({version})")
        else:
            console.print("  CMake: [red]NOT FOUND[/red]")
            console.print("  Install CMake from https://cmake.org/download/ or your package manager.")

        descriptor = self._resolve_toolchain()

        if not descriptor.found:
            console.print("  Qt6: [red]NOT DETECTED[/red]")
        else:
            console.print(f"  Qt6: {descriptor.root_path}")
            if descriptor.missing_modules:
                console.print("  Qt modules: [yellow]INCOMPLETE[/yellow]")
            else:
                console.print("  Qt modules: [green]OK[/green]")

        if not descriptor.complete:
            for line in remediation_hints(descriptor.missing_modules):
                console.print(f"  {line}", markup=False)
            if self.confirm_toolchain is not None and not self.confirm_toolchain(descriptor):
                if not descriptor.found:
                    raise ToolchainNotFound(descriptor)
                raise ToolchainIncomplete(descriptor)
            print_warning("Continuing with an incomplete Qt toolchain.")
        return descriptor

    def _resolve_toolchain(self) -> ToolchainDescriptor:
        if self.qt_path:
            descriptor = self.locator.validate(self.qt_path)
            if descriptor.found:
                return descriptor
            print_warning(f"The provided Qt6 path could not be validated: {self.qt_path}")

        descriptor = self.locator.locate()
        if descriptor.found or self.ask_qt_path is None:
            return descriptor

        print_warning("Qt6 was not detected automatically.")
        user_path = self.ask_qt_path()
        if not user_path:
            return descriptor
        validated = self.locator.validate(user_path)
        if not validated.found:
            print_warning("The provided Qt6 path could not be validated.")
        return validated

    # -- Frontend ----------------------------------------------------------

    def _scaffold_frontend(self, root: Path) -> list[Path]:
        spec = self.spec
        frontend_dir = root / FRONTEND_DIR
        template_dir = self.composer.frontend_template_dir(spec.framework, spec.frontend_language)

        if spec.substitutes_frontend:
            self.composer.compose(
                template_dir,
                frontend_dir,
                {"projectName": spec.name, "projectVersion": PROJECT_VERSION},
            )
        else:
            self.composer.compose_verbatim(template_dir, frontend_dir)
        console.print(
            f"Copied {spec.framework.value} ({spec.frontend_language.value}) template "
            f"from {template_dir} to {frontend_dir}"
        )

        try:
            injected = self._inject_bridge_files(template_dir, frontend_dir)
            if spec.framework is Framework.SVELTE:
                for name in ("vite.config.js", "vite.config.ts"):
                    if patch_vite_base(frontend_dir / name):
                        console.print(f"Patched {name} to set base: './' for file-based loading.")
        except OSError as exc:
            raise GenerationError("Frontend", str(exc)) from exc

        if not (frontend_dir / "package.json").exists():
            raise GenerationError(
                "Frontend",
                f"{FRONTEND_DIR}/package.json was not created. Frontend template is incomplete.",
            )
        console.print(f"Frontend scaffolding complete: {FRONTEND_DIR}/ ({spec.framework.value})")
        return injected

    def _inject_bridge_files(self, template_dir: Path, frontend_dir: Path) -> list[Path]:
        """Place the QWebChannel bridge and loader unless a previous run already did."""
        injected: list[Path] = []
        shared = self.composer.shared_frontend_dir

        if self.spec.frontend_language is FrontendLanguage.TS:
            bridge_src = template_dir / "src" / f"{BRIDGE_NAME}.ts"
            bridge_dest = frontend_dir / "src" / f"{BRIDGE_NAME}.ts"
        else:
            bridge_src = shared / f"{BRIDGE_NAME}.js"
            bridge_dest = frontend_dir / "src" / f"{BRIDGE_NAME}.js"
        if self.composer.inject(bridge_src, bridge_dest):
            injected.append(bridge_dest)
            console.print(f"Injected {bridge_dest.name} into {FRONTEND_DIR}/src.")

        loader_dest = frontend_dir / "public" / LOADER_NAME
        if self.composer.inject(shared / LOADER_NAME, loader_dest):
            injected.append(loader_dest)
            console.print(f"Injected {LOADER_NAME} into {FRONTEND_DIR}/public.")
        return injected

    # -- Backend -----------------------------------------------------------

    def _scaffold_backend(self, root: Path, toolchain: ToolchainDescriptor | None) -> Path:
        spec = self.spec
        backend_dir = root / BACKEND_DIR
        qt_path = toolchain.root_path.as_posix() if toolchain and toolchain.found else ""
        options = spec.backend_options

        placeholders = {
            "projectName": spec.name,
            "projectVersion": PROJECT_VERSION,
            "qt6Path": qt_path,
            "enableLogging": "1" if options.logging_enabled else "0",
            "enableDevServer": "1" if options.dev_server_enabled else "0",
        }
        try:
            self.composer.compose(self.composer.backend_template_dir, backend_dir, placeholders)
            console.print(f"Copied backend template files to {BACKEND_DIR}/ with placeholder replacement.")

            record = ToolchainRecord.load(root).with_path(qt_path or None)
            record.save(root)
            if qt_path:
                console.print(f"Qt6 found at: {qt_path}")
            else:
                print_warning(
                    f"Qt6 path not resolved: {RECORD_FILENAME} records null and the build "
                    "helper will ask for the path on first build."
                )

            # The record stays the single source of truth so `taqyon setup-qt` takes effect.
            script = self.script_gen.emit(backend_dir, None)
        except TaqyonError:
            raise
        except OSError as exc:
            raise GenerationError("Backend", str(exc)) from exc

        console.print(f"Created build helper script: {BACKEND_DIR}/{script.name}")
        for entry in sorted(backend_dir.iterdir()):
            console.print(f"  {BACKEND_DIR}/{entry.name}", markup=False)
        console.print("Backend scaffolding complete.")
        return script

    # -- Manifest / README -------------------------------------------------

    def _write_manifest(self, root: Path) -> Path:
        try:
            return save_json(build_manifest(self.spec, self.platform), root / MANIFEST_FILENAME)
        except OSError as exc:
            raise GenerationError("Manifest", str(exc)) from exc

    def _write_readme(self, root: Path, qt6_path: Path | None) -> Path:
        spec = self.spec
        context = {
            "name": spec.name,
            "frontend_enabled": spec.frontend_enabled,
            "backend_enabled": spec.backend_enabled,
            "frontend_dir": FRONTEND_DIR,
            "backend_dir": BACKEND_DIR,
            "framework_label": spec.framework.label,
            "language_label": spec.frontend_language.label,
            "qt6_path": str(qt6_path) if qt6_path else "",
            "record_filename": RECORD_FILENAME,
            "commands": readme_commands(spec),
        }
        try:
            return self.renderer.render_to_file("README.md.j2", root / "README.md", context)
        except OSError as exc:
            raise GenerationError("README", str(exc)) from exc

    # -- Output ------------------------------------------------------------

    def _print_final_summary(self, result: GenerationResult) -> None:
        spec = self.spec
        summary = {
            "Project": str(result.project_root),
            "Frontend": spec.template_dir_name if spec.frontend_enabled else "skipped",
            "Backend": "Qt" if spec.backend_enabled else "skipped",
        }
        if spec.backend_enabled:
            summary["Qt6"] = str(result.qt6_path) if result.qt6_path else "not detected"
        print_summary_table(summary, title="Project scaffolded")

        print_success("Project scaffolded successfully!")
        console.print(f"Navigate to your project with: cd {spec.name}")
        console.print("Run 'npm install' to install dependencies if needed")
        if spec.backend_enabled and result.qt6_path is None:
            print_warning("IMPORTANT: Qt6 was not detected during scaffolding!")
            console.print("You have three options to resolve this:")
            console.print("1. Install Qt6 from https://www.qt.io/download-qt-installer")
            console.print("2. When running 'npm run app:build', you'll be prompted for the Qt6 path")
            console.print(f"3. Run 'taqyon setup-qt <path>' or edit {RECORD_FILENAME}")
        console.print("\nRun 'npm start' to start development")
