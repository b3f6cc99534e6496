"""Command-line entry point.

Usage::

    taqyon create demo --framework react --language ts
    taqyon dev --project ./demo
    taqyon setup-qt ~/Qt/6.7.2/gcc_64 --project ./demo
    taqyon check-qt --project ./demo
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

from taqyon.config import RECORD_FILENAME, DevConfig, Framework, FrontendLanguage
from taqyon.dev import DevOrchestrator
from taqyon.errors import TaqyonError
from taqyon.prompts import ask_project_spec, ask_qt_path, confirm_toolchain, spec_from_answers
from taqyon.scaffolder import ProjectGenerator
from taqyon.toolchain import MODULE_LABELS, ToolchainLocator, ToolchainRecord, remediation_hints
from taqyon.utils import console, print_error, print_success, print_summary_table, print_warning

# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------


def _create(args: argparse.Namespace) -> int:
    preset: dict[str, Any] = {}
    if args.name:
        preset["name"] = args.name
    if args.no_frontend:
        preset["frontend_enabled"] = False
    if args.no_backend:
        preset["backend_enabled"] = False
    if args.framework:
        preset["framework"] = args.framework
    if args.language:
        preset["frontend_language"] = args.language
    if args.no_logging:
        preset["logging_enabled"] = False
    if args.no_dev_server:
        preset["dev_server_enabled"] = False

    console.print("[bold]Taqyon - Project Scaffolding[/bold]")
    if args.yes:
        spec = spec_from_answers(preset)
    else:
        spec = ask_project_spec(preset)

    generator = ProjectGenerator(
        spec,
        qt_path=args.qt_path,
        confirm_toolchain=None if args.yes else confirm_toolchain,
        ask_qt_path=None if args.yes else ask_qt_path,
    )
    asyncio.run(generator.generate(args.output))
    return 0


def _dev(args: argparse.Namespace) -> int:
    orchestrator = DevOrchestrator(DevConfig.from_env())
    return asyncio.run(orchestrator.run(args.project))


def _setup_qt(args: argparse.Namespace) -> int:
    locator = ToolchainLocator()
    if args.path:
        descriptor = locator.validate(args.path)
        if not descriptor.found:
            print_error(f"Not a Qt6 installation (no lib/cmake/Qt6 found): {args.path}")
            return 1
    else:
        descriptor = locator.locate()
        if not descriptor.found:
            print_error("Qt6 was not detected. Pass the installation path explicitly.")
            for line in remediation_hints():
                console.print(f"  {line}", markup=False)
            return 1

    project = Path(args.project)
    record = ToolchainRecord.load(project).with_path(descriptor.root_path.as_posix())
    path = record.save(project)
    print_success(f"Recorded Qt6 path {record.qt6_path} in {path}")
    if not descriptor.complete:
        print_warning("The Qt6 installation is missing required modules.")
        for line in remediation_hints(descriptor.missing_modules):
            console.print(f"  {line}", markup=False)
    return 0


def _check_qt(args: argparse.Namespace) -> int:
    record = ToolchainRecord.load(args.project)
    if not record.qt6_path:
        print_error(f"No Qt6 path recorded in {RECORD_FILENAME}. Run 'taqyon setup-qt <path>'.")
        return 1

    descriptor = ToolchainLocator().validate(record.qt6_path)
    if not descriptor.found:
        print_error(f"Recorded Qt6 path is not a Qt6 installation: {record.qt6_path}")
        return 1

    rows = {
        MODULE_LABELS.get(name, name): "[green]OK[/green]" if present else "[red]MISSING[/red]"
        for name, present in descriptor.module_status.items()
    }
    print_summary_table(rows, title=f"Qt6 at {descriptor.root_path}")
    if not descriptor.complete:
        for line in remediation_hints(descriptor.missing_modules):
            console.print(f"  {line}", markup=False)
        return 1
    print_success("Qt6 installation is complete.")
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="taqyon",
        description="Taqyon -- Qt desktop apps with a web frontend",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  taqyon create demo --framework react --language ts\n"
            "  taqyon dev --project ./demo\n"
            "  taqyon setup-qt ~/Qt/6.7.2/gcc_64\n"
        ),
    )
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create", help="Scaffold a new project")
    create.add_argument("name", nargs="?", help="Project name (asked when omitted)")
    create.add_argument(
        "--output", "-o", default=".", help="Parent directory for the project (default: .)"
    )
    create.add_argument("--framework", choices=[fw.value for fw in Framework])
    create.add_argument("--language", choices=[lang.value for lang in FrontendLanguage])
    create.add_argument("--no-frontend", action="store_true", help="Skip the web frontend")
    create.add_argument("--no-backend", action="store_true", help="Skip the Qt backend")
    create.add_argument("--no-logging", action="store_true", help="Build the backend without --log")
    create.add_argument(
        "--no-dev-server", action="store_true", help="Build the backend without --dev-server"
    )
    create.add_argument("--qt-path", default=None, help="Qt6 installation root")
    create.add_argument(
        "--yes", "-y", action="store_true",
        help="Do not ask; use defaults and continue past toolchain problems",
    )
    create.set_defaults(func=_create)

    dev = sub.add_parser("dev", help="Run the frontend dev server and the app together")
    dev.add_argument("--project", "-p", default=".", help="Project root (default: .)")
    dev.set_defaults(func=_dev)

    setup = sub.add_parser("setup-qt", help=f"Record the Qt6 path in {RECORD_FILENAME}")
    setup.add_argument("path", nargs="?", help="Qt6 installation root (detected when omitted)")
    setup.add_argument("--project", "-p", default=".", help="Project root (default: .)")
    setup.set_defaults(func=_setup_qt)

    check = sub.add_parser("check-qt", help="Check the recorded Qt6 installation")
    check.add_argument("--project", "-p", default=".", help="Project root (default: .)")
    check.set_defaults(func=_check_qt)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``taqyon`` and ``python -m taqyon``."""
    args = build_parser().parse_args(argv)
    try:
        code = args.func(args)
    except TaqyonError as exc:
        print_error(str(exc))
        code = 1
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
        code = 130
    sys.exit(code)


if __name__ == "__main__":
    main()
