"""Qt 6 toolchain discovery and the persisted toolchain record.

Key classes:
    ToolchainLocator     - Searches install roots, validates paths, probes modules
    ToolchainDescriptor  - Root path plus per-module presence
    ToolchainRecord      - The ``.taqyonrc`` value read by build helpers
"""

from .locator import (
    MODULE_LABELS,
    QT_REQUIRED_MODULES,
    QtModule,
    ToolchainDescriptor,
    ToolchainLocator,
    missing_labels,
    module_status,
    remediation_hints,
)
from .record import ToolchainRecord

__all__ = [
    "MODULE_LABELS",
    "QT_REQUIRED_MODULES",
    "QtModule",
    "ToolchainDescriptor",
    "ToolchainLocator",
    "ToolchainRecord",
    "missing_labels",
    "module_status",
    "remediation_hints",
]
