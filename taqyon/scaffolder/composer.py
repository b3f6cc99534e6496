"""Plain-token template composition.

Mirrors a template directory into a destination, replacing a fixed set of
named placeholder tokens (``projectName``, ``qt6Path`` ...) in file contents
and, optionally, file names.  Matching is exact-token: ``projectName`` is
replaced but ``myprojectName`` and ``projectNameSuffix`` are left alone.

The template library is deliberately not Jinja2: framework templates carry
their own ``{{ }}`` syntax (Vue, Svelte, JSX), so only bare identifier tokens
are recognised.
"""

from __future__ import annotations

import re
import shutil
from collections.abc import Mapping
from pathlib import Path

from taqyon.config import Framework, FrontendLanguage
from taqyon.errors import TemplateNotFoundError

# ---------------------------------------------------------------------------
# Template library discovery
# ---------------------------------------------------------------------------

_DEFAULT_LIBRARY_DIR = Path(__file__).parent / "library"

PLACEHOLDER_TOKENS: tuple[str, ...] = (
    "projectName",
    "projectVersion",
    "qt6Path",
    "enableLogging",
    "enableDevServer",
)

_IDENT_CHAR = r"A-Za-z0-9_"


def _token_pattern(tokens: list[str]) -> re.Pattern[str]:
    # Longest first so overlapping tokens never shadow each other.
    alternation = "|".join(re.escape(t) for t in sorted(tokens, key=len, reverse=True))
    return re.compile(rf"(?<![{_IDENT_CHAR}])({alternation})(?![{_IDENT_CHAR}])")


def substitute(text: str, placeholders: Mapping[str, str]) -> str:
    """Replace every exact-token occurrence of each placeholder in *text*.

    Single pass: a substituted value is never scanned again.
    """
    if not placeholders:
        return text
    pattern = _token_pattern(list(placeholders))
    return pattern.sub(lambda m: str(placeholders[m.group(1)]), text)


# ---------------------------------------------------------------------------
# TemplateComposer
# ---------------------------------------------------------------------------


class TemplateComposer:
    """Copies template trees into a project, with or without substitution.

    Every method creates the intermediate destination directories it needs.
    """

    def __init__(self, library_dir: str | Path | None = None) -> None:
        self.library_dir = Path(library_dir) if library_dir is not None else _DEFAULT_LIBRARY_DIR

    # -- Library paths -----------------------------------------------------

    def frontend_template_dir(
        self, framework: Framework | str, language: FrontendLanguage | str
    ) -> Path:
        fw = framework.value if isinstance(framework, Framework) else framework
        lang = language.value if isinstance(language, FrontendLanguage) else language
        return self.library_dir / "frontend" / f"{fw}-{lang}"

    @property
    def shared_frontend_dir(self) -> Path:
        return self.library_dir / "frontend" / "shared"

    @property
    def backend_template_dir(self) -> Path:
        return self.library_dir / "src-taqyon"

    # -- Composition -------------------------------------------------------

    def compose(
        self,
        template_root: str | Path,
        dest_root: str | Path,
        placeholders: Mapping[str, str],
        *,
        rename_files: bool = False,
        overwrite: bool = True,
    ) -> list[Path]:
        """Mirror *template_root* into *dest_root*, substituting placeholders.

        Files that do not decode as UTF-8 are copied byte-for-byte.

        Args:
            template_root: Template directory to read.
            dest_root: Destination directory (created if missing).
            placeholders: Token -> value bindings.
            rename_files: Also substitute tokens in file and directory names.
            overwrite: When ``False``, files that already exist are skipped.

        Returns:
            Paths written, in traversal order.

        Raises:
            TemplateNotFoundError: If *template_root* is not a directory.
        """
        src_root = self._require_dir(template_root)
        out_root = Path(dest_root)
        out_root.mkdir(parents=True, exist_ok=True)

        written: list[Path] = []
        for src in sorted(src_root.rglob("*")):
            rel = src.relative_to(src_root)
            if rename_files:
                rel = Path(*(substitute(part, placeholders) for part in rel.parts))
            dest = out_root / rel

            if src.is_dir():
                dest.mkdir(parents=True, exist_ok=True)
                continue
            if dest.exists() and not overwrite:
                continue

            dest.parent.mkdir(parents=True, exist_ok=True)
            data = src.read_bytes()
            try:
                text = data.decode("utf-8")
            except UnicodeDecodeError:
                dest.write_bytes(data)
            else:
                dest.write_bytes(substitute(text, placeholders).encode("utf-8"))
            shutil.copymode(src, dest)
            written.append(dest)
        return written

    def compose_verbatim(
        self,
        template_root: str | Path,
        dest_root: str | Path,
        *,
        overwrite: bool = True,
    ) -> list[Path]:
        """Mirror *template_root* into *dest_root* without touching file contents."""
        src_root = self._require_dir(template_root)
        out_root = Path(dest_root)
        out_root.mkdir(parents=True, exist_ok=True)

        written: list[Path] = []
        for src in sorted(src_root.rglob("*")):
            dest = out_root / src.relative_to(src_root)
            if src.is_dir():
                dest.mkdir(parents=True, exist_ok=True)
                continue
            if dest.exists() and not overwrite:
                continue
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(src, dest)
            written.append(dest)
        return written

    def inject(self, source: str | Path, dest: str | Path) -> bool:
        """Copy *source* to *dest* unless *dest* already exists.

        Used for the bridge and loader files so that a second generation run
        never replaces a file a previous (possibly partial) run placed.

        Returns:
            ``True`` if the file was written.
        """
        src = Path(source)
        out = Path(dest)
        if out.exists() or not src.is_file():
            return False
        out.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src, out)
        return True

    # -- Internal ----------------------------------------------------------

    @staticmethod
    def _require_dir(path: str | Path) -> Path:
        p = Path(path)
        if not p.is_dir():
            raise TemplateNotFoundError(p)
        return p


# ---------------------------------------------------------------------------
# Framework-specific patches
# ---------------------------------------------------------------------------

_SVELTE_PLUGINS_RE = re.compile(r"defineConfig\(\s*\{([\s\S]*?)plugins:")


def patch_vite_base(config_path: str | Path) -> bool:
    """Set ``base: './'`` in a Vite config that has no ``base`` key.

    Packaged builds are loaded from ``file://`` URLs, so asset paths must be
    relative.

    Returns:
        ``True`` if the file was changed.
    """
    path = Path(config_path)
    if not path.is_file():
        return False
    content = path.read_text(encoding="utf-8")
    if "base:" in content:
        return False
    patched, count = _SVELTE_PLUGINS_RE.subn(
        lambda m: "defineConfig({\n  base: './',\n" + m.group(1).lstrip("\n") + "plugins:",
        content,
        count=1,
    )
    if not count:
        return False
    path.write_text(patched, encoding="utf-8")
    return True
