"""Root ``package.json`` generation.

Declares the commands an operator runs in a generated project.  Spelling
differs between the POSIX and Windows shell families; the set of commands is
the same.
"""

from __future__ import annotations

from typing import Any

from taqyon.config import BACKEND_DIR, FRONTEND_DIR, PROJECT_VERSION, ProjectSpec

from .scripts import is_windows

_NOT_FOUND = "Application executable not found. Make sure to build successfully first."

# (variant suffix, binary arguments)
_RUN_VARIANTS: tuple[tuple[str, str], ...] = (
    ("", ""),
    (":verbose", "--verbose"),
    (":dev", "--dev-server http://127.0.0.1:5173 --verbose"),
    (":log", "--log app.log --verbose"),
)


def _posix_run(name: str, args: str) -> str:
    call = f"./{name} {args}".rstrip()
    return (
        f"if [ -f {BACKEND_DIR}/build/bin/{name} ]; then "
        f"cd {BACKEND_DIR}/build/bin && {call}; "
        f"else echo '{_NOT_FOUND}'; fi"
    )


def _windows_run(name: str, args: str) -> str:
    call = f"{name}.exe {args}".rstrip()
    return (
        f"if exist {BACKEND_DIR}\\build\\bin\\{name}.exe "
        f"(cd {BACKEND_DIR}\\build\\bin && {call}) "
        f"else (echo {_NOT_FOUND})"
    )


def build_scripts(spec: ProjectSpec, platform: str | None = None) -> dict[str, str]:
    """Return the ``scripts`` table for *spec*."""
    windows = is_windows(platform)
    run = _windows_run if windows else _posix_run
    name = spec.name
    scripts: dict[str, str] = {}

    if spec.frontend_enabled:
        scripts["frontend:dev"] = f"npm run --if-present --prefix {FRONTEND_DIR} dev"
        scripts["frontend:build"] = f"npm run --if-present --prefix {FRONTEND_DIR} build"

    if spec.backend_enabled:
        scripts["app:build"] = (
            f"cd {BACKEND_DIR} && .\\build.bat"
            if windows
            else f"cd {BACKEND_DIR} && chmod +x ./build.sh && ./build.sh"
        )
        for suffix, args in _RUN_VARIANTS:
            scripts[f"app:run{suffix}"] = run(name, args)
        scripts["app:help"] = run(name, "--help")

    if spec.frontend_enabled and spec.backend_enabled:
        if windows:
            scripts["start"] = (
                f"npm run build && set ABSOLUTE_PATH=%cd%\\{FRONTEND_DIR}\\dist && "
                + run(name, '--verbose --frontend-path "%ABSOLUTE_PATH%"')
            )
        else:
            scripts["start"] = (
                f'npm run build && ABSOLUTE_PATH="$(pwd)/{FRONTEND_DIR}/dist" && '
                + run(name, '--verbose --frontend-path "$ABSOLUTE_PATH"')
            )
        scripts["build"] = "npm run frontend:build && npm run app:build"
        scripts["dev"] = "taqyon dev"
    elif spec.frontend_enabled:
        scripts["start"] = f"npm run --if-present --prefix {FRONTEND_DIR}"
        scripts["build"] = f"npm run --if-present --prefix {FRONTEND_DIR} build"
        scripts["dev"] = f"npm run --if-present --prefix {FRONTEND_DIR} dev"
    else:
        scripts["start"] = "npm run app:build && npm run app:run"
        scripts["build"] = "npm run app:build"

    if spec.backend_enabled:
        scripts["setup:qt"] = "taqyon setup-qt"
        scripts["test:qt"] = "taqyon check-qt"
        if windows:
            scripts["verify:qt"] = (
                f"cd {BACKEND_DIR} && cmake -S . -B build -L | "
                'findstr /c:"WebEngineWidgets_FOUND:BOOL=TRUE" '
                "&& echo Qt WebEngine is properly configured! "
                "|| echo ERROR: Qt WebEngine is not properly configured."
            )
        else:
            scripts["verify:qt"] = (
                f"cd {BACKEND_DIR} && mkdir -p build && cd build && cmake -L .. | "
                "grep -q 'WebEngineWidgets_FOUND:BOOL=TRUE' "
                "&& echo 'Qt WebEngine is properly configured!' "
                "|| echo 'ERROR: Qt WebEngine is not properly configured. "
                "Make sure Qt is installed with WebEngine support.'"
            )
    return scripts


def build_manifest(spec: ProjectSpec, platform: str | None = None) -> dict[str, Any]:
    """Return the full ``package.json`` document for *spec*."""
    return {
        "name": spec.name,
        "version": PROJECT_VERSION,
        "description": "Taqyon project with Qt/C++ backend and JS frontend",
        "private": True,
        "scripts": build_scripts(spec, platform),
    }


def readme_commands(spec: ProjectSpec) -> list[tuple[str, str]]:
    """``(command, description)`` pairs listed in the generated README."""
    commands = [
        ("npm start", "Run the application"),
        ("npm run build", "Build the project"),
    ]
    if spec.frontend_enabled and spec.backend_enabled:
        commands.append(("npm run dev", "Run the frontend dev server and the app together"))
    if spec.frontend_enabled:
        commands.append(("npm run frontend:dev", "Run frontend development server"))
        commands.append(("npm run frontend:build", "Build frontend"))
    if spec.backend_enabled:
        commands.append(("npm run app:build", "Build backend"))
        commands.append(("npm run app:run", "Run backend"))
        commands.append(("npm run setup:qt -- <path>", "Record the Qt6 installation path"))
        commands.append(("npm run test:qt", "Check the recorded Qt6 installation"))
    return commands
