"""Tests for the build helper scripts (taqyon.scaffolder.scripts).

Covers:
- emit() writes both scripts and returns the platform one
- Rendered content (record lookup, hardcoded path, cache check, line endings)
- The batch helper's record reader, run under the current interpreter
- Running the generated build.sh against a fake cmake:
  record lookup, prompt, empty input, stale cache refusal / deletion,
  exit-status propagation
"""

from __future__ import annotations

import os
import shutil
import stat
import subprocess
import sys
from pathlib import Path

import pytest

from taqyon.scaffolder.scripts import (
    POSIX_SCRIPT,
    WINDOWS_SCRIPT,
    ScriptGenerator,
    build_script_name,
)
from taqyon.scaffolder.templates import TemplateRenderer
from taqyon.toolchain import ToolchainRecord

# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


class TestEmit:
    @pytest.mark.unit
    def test_writes_both_scripts(self, tmp_path: Path):
        script = ScriptGenerator(platform="linux").emit(tmp_path)
        assert script == tmp_path / POSIX_SCRIPT
        assert (tmp_path / POSIX_SCRIPT).is_file()
        assert (tmp_path / WINDOWS_SCRIPT).is_file()

    @pytest.mark.unit
    def test_returns_batch_on_windows(self, tmp_path: Path):
        assert ScriptGenerator(platform="win32").emit(tmp_path) == tmp_path / WINDOWS_SCRIPT

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "platform, expected",
        [("linux", "build.sh"), ("darwin", "build.sh"), ("win32", "build.bat"), ("cygwin", "build.sh")],
    )
    def test_build_script_name(self, platform, expected):
        assert build_script_name(platform) == expected

    @pytest.mark.unit
    @pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
    def test_posix_script_executable(self, tmp_path: Path):
        ScriptGenerator(platform="linux").emit(tmp_path)
        mode = (tmp_path / POSIX_SCRIPT).stat().st_mode
        assert mode & stat.S_IXUSR

    @pytest.mark.unit
    def test_line_endings(self, tmp_path: Path):
        ScriptGenerator().emit(tmp_path)
        sh = (tmp_path / POSIX_SCRIPT).read_bytes()
        bat = (tmp_path / WINDOWS_SCRIPT).read_bytes()
        assert b"\r\n" not in sh
        assert bat.count(b"\r\n") == bat.count(b"\n")

    @pytest.mark.unit
    def test_record_lookup_when_not_hardcoded(self, tmp_path: Path):
        ScriptGenerator().emit(tmp_path)
        sh = (tmp_path / POSIX_SCRIPT).read_text(encoding="utf-8")
        bat = (tmp_path / WINDOWS_SCRIPT).read_text(encoding="utf-8")
        assert 'QT_PATH=""' in sh
        assert 'RC_PATH="$SCRIPT_DIR/../.taqyonrc"' in sh
        assert "qt6Path" in sh
        assert 'set "QT_PATH="' in bat
        assert "if not defined PYTHON set \"PYTHON=python\"" in bat
        assert "%PYTHON% -c" in bat
        assert "powershell" not in bat.lower()

    @pytest.mark.unit
    def test_batch_record_reader_runs_under_python(self, tmp_path: Path):
        ScriptGenerator().emit(tmp_path)
        bat = (tmp_path / WINDOWS_SCRIPT).read_text(encoding="utf-8")
        code = bat.split('%PYTHON% -c "', 1)[1].split('" "%RC_PATH%"', 1)[0]

        ToolchainRecord(qt6_path="C:/Qt/6.7.2/msvc2019_64").save(tmp_path)
        rc_path = tmp_path / ".taqyonrc"
        found = subprocess.run(
            [sys.executable, "-c", code, str(rc_path)], capture_output=True, text=True
        )
        assert found.returncode == 0
        assert found.stdout == "C:/Qt/6.7.2/msvc2019_64"

        ToolchainRecord().save(tmp_path)
        empty = subprocess.run(
            [sys.executable, "-c", code, str(rc_path)], capture_output=True, text=True
        )
        assert empty.stdout == ""

    @pytest.mark.unit
    def test_hardcoded_path_is_quoted(self, tmp_path: Path):
        ScriptGenerator().emit(tmp_path, '/opt/my "qt"/$HOME')
        sh = (tmp_path / POSIX_SCRIPT).read_text(encoding="utf-8")
        assert 'QT_PATH="/opt/my \\"qt\\"/\\$HOME"' in sh

    @pytest.mark.unit
    def test_batch_percent_escaped(self, tmp_path: Path):
        ScriptGenerator().emit(tmp_path, "C:/Qt/100%/msvc2019_64")
        bat = (tmp_path / WINDOWS_SCRIPT).read_text(encoding="utf-8")
        assert 'set "QT_PATH=C:/Qt/100%%/msvc2019_64"' in bat

    @pytest.mark.unit
    def test_batch_cache_check(self, tmp_path: Path):
        ScriptGenerator().emit(tmp_path)
        bat = (tmp_path / WINDOWS_SCRIPT).read_text(encoding="utf-8")
        assert "CMAKE_HOME_DIRECTORY:" in bat
        assert "Delete build directory and reconfigure? (y/N): " in bat
        assert "\\=/" in bat


class TestRenderer:
    @pytest.mark.unit
    def test_strict_undefined(self):
        from jinja2 import UndefinedError

        with pytest.raises(UndefinedError):
            TemplateRenderer().render("scripts/build.sh.j2", {})


# ---------------------------------------------------------------------------
# Running build.sh
# ---------------------------------------------------------------------------

FAKE_CMAKE = """#!/bin/bash
echo "$@" >> "$CMAKE_LOG"
exit "${FAKE_CMAKE_RC:-0}"
"""


@pytest.fixture
def backend(tmp_path: Path) -> Path:
    backend_dir = tmp_path / "proj" / "src-taqyon"
    backend_dir.mkdir(parents=True)
    ScriptGenerator(platform="linux").emit(backend_dir)
    return backend_dir


@pytest.fixture
def run_build(tmp_path: Path):
    bin_dir = tmp_path / "fake-bin"
    bin_dir.mkdir()
    cmake = bin_dir / "cmake"
    cmake.write_text(FAKE_CMAKE, encoding="utf-8")
    cmake.chmod(0o755)
    log = tmp_path / "cmake.log"

    def _run(script: Path, stdin: str = "", rc: int = 0) -> tuple[subprocess.CompletedProcess, list[str]]:
        env = {
            **os.environ,
            "PATH": f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}",
            "PYTHON": sys.executable,
            "CMAKE_LOG": str(log),
            "FAKE_CMAKE_RC": str(rc),
        }
        proc = subprocess.run(
            ["bash", str(script)],
            input=stdin,
            capture_output=True,
            text=True,
            env=env,
            timeout=30,
        )
        calls = log.read_text(encoding="utf-8").splitlines() if log.exists() else []
        return proc, calls

    return _run


posix_only = pytest.mark.skipif(
    sys.platform.startswith("win") or shutil.which("bash") is None,
    reason="requires bash",
)


@posix_only
@pytest.mark.integration
class TestBuildScript:
    def test_uses_recorded_path(self, backend, run_build):
        ToolchainRecord(qt6_path="/opt/qt6").save(backend.parent)
        proc, calls = run_build(backend / POSIX_SCRIPT)
        assert proc.returncode == 0, proc.stdout + proc.stderr
        assert "Using Qt6 path: /opt/qt6" in proc.stdout
        assert calls[0] == f"-B {backend}/build -DCMAKE_PREFIX_PATH=/opt/qt6"
        assert calls[1] == f"--build {backend}/build"

    def test_hardcoded_path_beats_record(self, backend, run_build):
        ToolchainRecord(qt6_path="/from/record").save(backend.parent)
        ScriptGenerator(platform="linux").emit(backend, "/hardcoded/qt")
        proc, calls = run_build(backend / POSIX_SCRIPT)
        assert proc.returncode == 0
        assert calls[0].endswith("-DCMAKE_PREFIX_PATH=/hardcoded/qt")

    def test_prompts_when_record_null(self, backend, run_build):
        ToolchainRecord().save(backend.parent)
        proc, calls = run_build(backend / POSIX_SCRIPT, stdin="/typed/qt\n")
        assert proc.returncode == 0
        assert "Qt6 was not detected during project creation." in proc.stdout
        assert calls[0].endswith("-DCMAKE_PREFIX_PATH=/typed/qt")

    def test_prompt_expands_tilde(self, backend, run_build):
        proc, calls = run_build(backend / POSIX_SCRIPT, stdin="~/Qt/6.7.2/gcc_64\n")
        assert proc.returncode == 0
        home = os.environ["HOME"]
        assert calls[0].endswith(f"-DCMAKE_PREFIX_PATH={home}/Qt/6.7.2/gcc_64")

    def test_empty_answer_exits_1(self, backend, run_build):
        proc, calls = run_build(backend / POSIX_SCRIPT, stdin="")
        assert proc.returncode == 1
        assert "No Qt6 path provided." in proc.stdout
        assert "cmake -B build" in proc.stdout
        assert calls == []

    def test_malformed_record_falls_back_to_prompt(self, backend, run_build):
        (backend.parent / ".taqyonrc").write_text("{broken", encoding="utf-8")
        proc, calls = run_build(backend / POSIX_SCRIPT, stdin="")
        assert proc.returncode == 1
        assert calls == []

    def test_cmake_failure_propagates(self, backend, run_build):
        ToolchainRecord(qt6_path="/opt/qt6").save(backend.parent)
        proc, calls = run_build(backend / POSIX_SCRIPT, rc=7)
        assert proc.returncode == 7
        assert len(calls) == 1

    def test_stale_cache_refused(self, backend, run_build):
        ToolchainRecord(qt6_path="/opt/qt6").save(backend.parent)
        cache = backend / "build" / "CMakeCache.txt"
        cache.parent.mkdir()
        cache.write_text("CMAKE_HOME_DIRECTORY:INTERNAL=/elsewhere/src-taqyon\n", encoding="utf-8")
        proc, calls = run_build(backend / POSIX_SCRIPT, stdin="n\n")
        assert proc.returncode == 1
        assert "CMake cache points to: /elsewhere/src-taqyon" in proc.stdout
        assert cache.exists()
        assert calls == []

    def test_stale_cache_deleted_on_yes(self, backend, run_build):
        ToolchainRecord(qt6_path="/opt/qt6").save(backend.parent)
        cache = backend / "build" / "CMakeCache.txt"
        cache.parent.mkdir()
        cache.write_text("CMAKE_HOME_DIRECTORY:INTERNAL=/elsewhere/src-taqyon\n", encoding="utf-8")
        proc, calls = run_build(backend / POSIX_SCRIPT, stdin="Y\n")
        assert proc.returncode == 0
        assert not cache.exists()
        assert len(calls) == 2

    def test_cache_comparison_is_case_sensitive(self, backend, run_build):
        ToolchainRecord(qt6_path="/opt/qt6").save(backend.parent)
        cache = backend / "build" / "CMakeCache.txt"
        cache.parent.mkdir()
        cache.write_text(
            f"CMAKE_HOME_DIRECTORY:INTERNAL={str(backend).upper()}\n", encoding="utf-8"
        )
        proc, _ = run_build(backend / POSIX_SCRIPT, stdin="n\n")
        assert proc.returncode == 1

    def test_matching_cache_reused(self, backend, run_build):
        ToolchainRecord(qt6_path="/opt/qt6").save(backend.parent)
        cache = backend / "build" / "CMakeCache.txt"
        cache.parent.mkdir()
        source_dir = subprocess.run(
            ["bash", "-c", 'cd "$1" && pwd', "_", str(backend)],
            capture_output=True, text=True, check=True,
        ).stdout.strip()
        cache.write_text(f"CMAKE_HOME_DIRECTORY:INTERNAL={source_dir}\n", encoding="utf-8")
        proc, calls = run_build(backend / POSIX_SCRIPT)
        assert proc.returncode == 0
        assert cache.exists()
        assert len(calls) == 2
