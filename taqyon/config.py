"""Taqyon configuration.

Typed configuration for both halves of the tool: the immutable
``ProjectSpec`` that drives generation, and the ``DevConfig`` tuning knobs
for development sessions.  All settings are Pydantic v2 models so they are
validated at construction time and can be built from environment variables
without boiler-plate.
"""

from __future__ import annotations

import os
import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

#: Version string written into every generated project.
PROJECT_VERSION = "1.0.0"

FRONTEND_DIR = "src"
BACKEND_DIR = "src-taqyon"
RECORD_FILENAME = ".taqyonrc"
MANIFEST_FILENAME = "package.json"

_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def validate_project_name(value: str) -> str:
    """Return the stripped project name or raise ``ValueError``."""
    value = value.strip()
    if not value:
        raise ValueError("Project name is required.")
    if not _NAME_RE.match(value):
        raise ValueError(
            "Project name may only contain letters, digits, '.', '-' and '_' "
            "and must start with a letter or digit."
        )
    return value


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class Framework(str, Enum):
    """Frontend framework templates shipped with Taqyon."""

    REACT = "react"
    VUE = "vue"
    SVELTE = "svelte"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class FrontendLanguage(str, Enum):
    """Frontend source language."""

    JS = "js"
    TS = "ts"

    @property
    def label(self) -> str:
        return "TypeScript" if self is FrontendLanguage.TS else "JavaScript"


# ---------------------------------------------------------------------------
# Project specification
# ---------------------------------------------------------------------------


class BackendOptions(BaseModel):
    """Feature switches compiled into the generated Qt backend."""

    model_config = ConfigDict(frozen=True)

    logging_enabled: bool = Field(default=True)
    dev_server_enabled: bool = Field(default=True)


class ProjectSpec(BaseModel):
    """Validated description of the project to generate.

    Produced by the prompt flow (or the CLI flags) and consumed read-only by
    the generator.  ``framework`` and ``frontend_language`` are ignored when
    the frontend is disabled.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Project name, also the backend binary name")
    frontend_enabled: bool = Field(default=True)
    backend_enabled: bool = Field(default=True)
    framework: Framework = Field(default=Framework.REACT)
    frontend_language: FrontendLanguage = Field(default=FrontendLanguage.JS)
    backend_options: BackendOptions = Field(default_factory=BackendOptions)

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        return validate_project_name(value)

    @model_validator(mode="after")
    def _check_parts(self) -> "ProjectSpec":
        if not (self.frontend_enabled or self.backend_enabled):
            raise ValueError("At least one of frontend or backend must be enabled.")
        return self

    @property
    def template_dir_name(self) -> str:
        """Frontend template directory name, e.g. ``react-ts``."""
        return f"{self.framework.value}-{self.frontend_language.value}"

    @property
    def substitutes_frontend(self) -> bool:
        """Whether the frontend template family supports placeholder substitution.

        Vue templates are copied verbatim.
        """
        return self.framework in (Framework.REACT, Framework.SVELTE)


# ---------------------------------------------------------------------------
# Development session
# ---------------------------------------------------------------------------


class DevConfig(BaseModel):
    """Tuning knobs for ``taqyon dev``."""

    host: str = Field(default="127.0.0.1")
    port_min: int = Field(default=5173, ge=1024, le=65535)
    port_max: int = Field(default=5273, ge=1024, le=65535)
    max_port_attempts: int = Field(default=5, ge=1)
    fallback_port: int = Field(default=5173, ge=1024, le=65535)
    ready_timeout: float = Field(default=60.0, gt=0, description="Seconds to wait for the frontend port")
    poll_interval: float = Field(default=0.25, gt=0)
    terminate_grace: float = Field(
        default=5.0, gt=0, description="Seconds between SIGTERM and SIGKILL on teardown"
    )

    @model_validator(mode="after")
    def _check_range(self) -> "DevConfig":
        if self.port_min > self.port_max:
            raise ValueError("port_min must not exceed port_max")
        return self

    @classmethod
    def from_env(cls) -> "DevConfig":
        """Build a ``DevConfig`` from environment variables.

        Recognised variables (all optional):
            TAQYON_HOST, TAQYON_PORT_MIN, TAQYON_PORT_MAX,
            TAQYON_PORT_ATTEMPTS, TAQYON_FALLBACK_PORT, TAQYON_READY_TIMEOUT.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("TAQYON_HOST"):
            kwargs["host"] = os.environ["TAQYON_HOST"]
        if os.environ.get("TAQYON_PORT_MIN"):
            kwargs["port_min"] = int(os.environ["TAQYON_PORT_MIN"])
        if os.environ.get("TAQYON_PORT_MAX"):
            kwargs["port_max"] = int(os.environ["TAQYON_PORT_MAX"])
        if os.environ.get("TAQYON_PORT_ATTEMPTS"):
            kwargs["max_port_attempts"] = int(os.environ["TAQYON_PORT_ATTEMPTS"])
        if os.environ.get("TAQYON_FALLBACK_PORT"):
            kwargs["fallback_port"] = int(os.environ["TAQYON_FALLBACK_PORT"])
        if os.environ.get("TAQYON_READY_TIMEOUT"):
            kwargs["ready_timeout"] = float(os.environ["TAQYON_READY_TIMEOUT"])
        return cls(**kwargs)
