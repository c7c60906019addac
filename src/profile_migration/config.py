#!/usr/bin/env python3
"""
Profile Migration Configuration

Site layout and per-run options. Deployment-specific path templates are
supplied here rather than baked into the locator.
"""

from __future__ import annotations

import json
import logging
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from common.exceptions import ValidationError

from .filter_list import read_filter_list
from .models import FilterList

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ArchiveNames:
    """File names of the two archives in an archived store."""
    settings: str = "settings.zip"
    data: str = "data.zip"


@dataclass(frozen=True)
class LocatorConfig:
    """Where the legacy stores live for a given root share and user."""
    managed_root: str = "{root}/Managed/{user}"
    archived_root: str = "{root}/Archived/{user}"
    archive_names: ArchiveNames = field(default_factory=ArchiveNames)
    settings_file: str = "settings.reg"
    data_directory: str = "Data"

    def managed_store(self, root: Path, user: str) -> Path:
        return self._expand(self.managed_root, root, user)

    def archived_store(self, root: Path, user: str) -> Path:
        return self._expand(self.archived_root, root, user)

    @staticmethod
    def _expand(template: str, root: Path, user: str) -> Path:
        try:
            return Path(template.format(root=root, user=user))
        except (KeyError, IndexError, ValueError) as e:
            raise ValidationError(f"Invalid path template: {template}", cause=e)


@dataclass(frozen=True)
class MigrationConfig:
    """Complete configuration for a migration run."""
    locator: LocatorConfig = field(default_factory=LocatorConfig)
    key_prefix: str = "HKEY_USERS\\LegacyProfile"
    hive_prefix: str = "HKEY_CURRENT_USER"
    local_profile: Path = field(default_factory=Path.home)
    temp_directory: Path = field(default_factory=lambda: Path(tempfile.gettempdir()))
    importer: List[str] = field(default_factory=lambda: ["reg.exe", "import"])

    # JSON key -> attribute
    LOCATOR_KEYS = {
        "managedRoot": "managed_root",
        "archivedRoot": "archived_root",
        "settingsFile": "settings_file",
        "dataDirectory": "data_directory",
    }
    TOP_LEVEL_KEYS = {
        "keyPrefix": "key_prefix",
        "hivePrefix": "hive_prefix",
        "localProfile": "local_profile",
        "tempDirectory": "temp_directory",
        "importer": "importer",
    }

    def import_file(self, user: str) -> Path:
        """Per-user registry import file; doubles as the completion marker."""
        return self.temp_directory / f"{user}-ProfileMigration.reg"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MigrationConfig":
        """Build a config from camelCase keys, rejecting unknown ones."""
        known = set(cls.LOCATOR_KEYS) | set(cls.TOP_LEVEL_KEYS) | {"archiveNames"}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValidationError(f"Unknown configuration keys: {', '.join(unknown)}")

        locator_kwargs: Dict[str, Any] = {
            attr: data[key] for key, attr in cls.LOCATOR_KEYS.items() if key in data
        }
        if "archiveNames" in data:
            names = data["archiveNames"]
            if not isinstance(names, dict) or set(names) - {"settings", "data"}:
                raise ValidationError("archiveNames must be an object with 'settings' and/or 'data'")
            locator_kwargs["archive_names"] = ArchiveNames(**names)

        kwargs: Dict[str, Any] = {
            attr: data[key] for key, attr in cls.TOP_LEVEL_KEYS.items() if key in data
        }
        for path_attr in ("local_profile", "temp_directory"):
            if path_attr in kwargs:
                kwargs[path_attr] = Path(kwargs[path_attr]).expanduser()
        if "importer" in kwargs:
            importer = kwargs["importer"]
            if isinstance(importer, str):
                importer = importer.split()
            if not importer:
                raise ValidationError("importer must name a command")
            kwargs["importer"] = list(importer)

        return cls(locator=LocatorConfig(**locator_kwargs), **kwargs)

    @classmethod
    def load(cls, path: Optional[Path]) -> "MigrationConfig":
        """Load configuration from a JSON file, or defaults when no path is given."""
        if path is None:
            return cls()

        path = Path(path)
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise ValidationError("Configuration file not found", path=path, cause=e)
        except (OSError, json.JSONDecodeError) as e:
            raise ValidationError("Configuration file is unreadable", path=path, cause=e)

        if not isinstance(data, dict):
            raise ValidationError("Configuration must be a JSON object", path=path)

        logger.debug(f"Loaded configuration from {path}")
        return cls.from_dict(data)


@dataclass
class MigrationOptions:
    """Per-run choices coming from the command line."""
    include_settings: Optional[Path] = None
    exclude_settings: Optional[Path] = None
    include_data: Optional[Path] = None
    exclude_data: Optional[Path] = None
    force: bool = False
    passthru: bool = False

    def filter_sources(self) -> Dict[str, Optional[Path]]:
        return {
            "include_settings": self.include_settings,
            "exclude_settings": self.exclude_settings,
            "include_data": self.include_data,
            "exclude_data": self.exclude_data,
        }

    def validate(self) -> None:
        """Fail before any side effect if a named filter source is missing."""
        for option, path in self.filter_sources().items():
            if path is not None and not Path(path).is_file():
                raise ValidationError(f"Filter source for {option} does not exist", path=path)

    def read_filters(self) -> Dict[str, FilterList]:
        """
        Read every named filter source.

        Raises:
            FilterError: If a source cannot be read or decoded.
        """
        return {option: read_filter_list(path) for option, path in self.filter_sources().items()}
