"""Taqyon -- scaffolding and development tooling for Qt desktop apps with a web frontend.

Subpackages:
    toolchain   - Qt 6 discovery and the ``.taqyonrc`` record
    scaffolder  - Template composition, build helpers, project generation
    dev         - The ``taqyon dev`` session orchestrator
"""

__version__ = "0.1.0"
