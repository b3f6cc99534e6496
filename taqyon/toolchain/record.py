"""The persisted ``.taqyonrc`` toolchain record.

A single JSON object, ``{"qt6Path": <string or null>}``, at the project root.
It is read by the generated build helper scripts and by ``taqyon setup-qt`` /
``taqyon check-qt``.  Each session loads it once and writes it back
atomically, so concurrent readers never see a torn file.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from taqyon.config import RECORD_FILENAME
from taqyon.errors import ConfigurationError
from taqyon.utils import atomic_write_text


class ToolchainRecord(BaseModel):
    """Value object for ``.taqyonrc``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    qt6_path: str | None = Field(default=None, alias="qt6Path")

    @classmethod
    def path_for(cls, project_root: str | Path) -> Path:
        return Path(project_root) / RECORD_FILENAME

    @classmethod
    def load(cls, project_root: str | Path) -> "ToolchainRecord":
        """Load the record from *project_root*; a missing file yields an empty record.

        Raises:
            ConfigurationError: If the file exists but is not a valid record.
        """
        path = cls.path_for(project_root)
        if not path.exists():
            return cls()
        raw = path.read_text(encoding="utf-8")
        if not raw.strip():
            return cls()
        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError("expected a JSON object")
            return cls.model_validate(data)
        except (ValueError, ValidationError) as exc:
            raise ConfigurationError(f"Malformed toolchain record {path}: {exc}") from exc

    def save(self, project_root: str | Path) -> Path:
        """Write the record atomically and return its path."""
        content = json.dumps(self.model_dump(by_alias=True), indent=2) + "\n"
        return atomic_write_text(self.path_for(project_root), content)

    def with_path(self, qt6_path: str | Path | None) -> "ToolchainRecord":
        return self.model_copy(update={"qt6_path": str(qt6_path) if qt6_path else None})
