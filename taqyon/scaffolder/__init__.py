"""Taqyon scaffolder -- generates desktop project structures.

Takes a ``ProjectSpec`` and writes a project directory with a web frontend
(React, Vue or Svelte; JavaScript or TypeScript) under ``src/``, a Qt/C++
backend under ``src-taqyon/``, build helper scripts and a root
``package.json``.

Quick usage::

    from taqyon.config import Framework, FrontendLanguage, ProjectSpec
    from taqyon.scaffolder import ProjectGenerator

    spec = ProjectSpec(
        name="demo",
        framework=Framework.REACT,
        frontend_language=FrontendLanguage.TS,
    )
    result = await ProjectGenerator(spec).generate("/tmp/output")
"""

from taqyon.scaffolder.composer import TemplateComposer, patch_vite_base, substitute
from taqyon.scaffolder.generator import GenerationResult, ProjectGenerator
from taqyon.scaffolder.manifest import build_manifest, build_scripts
from taqyon.scaffolder.scripts import ScriptGenerator, build_script_name
from taqyon.scaffolder.templates import TemplateRenderer

__all__ = [
    "GenerationResult",
    "ProjectGenerator",
    "ScriptGenerator",
    "TemplateComposer",
    "TemplateRenderer",
    "build_manifest",
    "build_script_name",
    "build_scripts",
    "patch_vite_base",
    "substitute",
]
