#!/usr/bin/env python3
"""
Profile Migration Data Model

Immutable values passed between migration stages. Each stage returns a new
descriptor with its own field populated instead of mutating a shared record.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path, PurePath
from typing import Any, Dict, Optional, Tuple

REGISTRY_HEADER = "Windows Registry Editor Version 5.00"

# Ordered export lines; always holds at least REGISTRY_HEADER once filtered
RegistryDocument = Tuple[str, ...]

# Ordered pattern strings read from a text source
FilterList = Tuple[str, ...]


class ProfileType(Enum):
    """Classification of the legacy profile store."""
    MANAGED = "managed"
    ARCHIVED = "archived"
    ALREADY_MIGRATED = "already_migrated"


@dataclass(frozen=True)
class FileEntry:
    """A single entry of a recursive data listing."""
    relative_path: PurePath
    is_directory: bool = False

    @property
    def name(self) -> str:
        """Leaf name used for name-set filtering."""
        return self.relative_path.name


@dataclass(frozen=True)
class ProfileDescriptor:
    """What the locator found, plus what later stages derived from it."""
    profile_type: ProfileType
    user: str
    settings_source: Optional[Path] = None
    data_source: Optional[Path] = None
    registry_document: RegistryDocument = ()
    data_set: Tuple[FileEntry, ...] = field(default_factory=tuple)
    working_directory: Optional[Path] = None

    def with_data_set(self, entries) -> "ProfileDescriptor":
        return replace(self, data_set=tuple(entries))

    def with_registry_document(self, lines) -> "ProfileDescriptor":
        return replace(self, registry_document=tuple(lines))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "type": self.profile_type.value,
            "user": self.user,
            "settings_source": str(self.settings_source) if self.settings_source else None,
            "data_source": str(self.data_source) if self.data_source else None,
            "registry_document": list(self.registry_document),
            "data_set": [
                {"path": entry.relative_path.as_posix(), "directory": entry.is_directory}
                for entry in self.data_set
            ],
        }


def has_settings(document: RegistryDocument) -> bool:
    """True when anything beyond the header (and blank lines) survived."""
    return any(
        line.strip() and line.strip() != REGISTRY_HEADER
        for line in document
    )
