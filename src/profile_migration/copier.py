#!/usr/bin/env python3
"""
Profile Copier

Copies the filtered data set into the local profile. Listings do not
guarantee that a directory precedes its files, so all directories are
created before any file is copied.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from common.exceptions import ApplyError

from .models import FileEntry

logger = logging.getLogger(__name__)


@dataclass
class CopyResult:
    """Counts of what was materialized."""
    directories: int = 0
    files: int = 0


class ProfileCopier:
    """Materializes a FileEntry set from a source tree into a target tree."""

    def __init__(self, target: Path):
        self.target = Path(target)

    def copy(self, source: Path, entries: Iterable[FileEntry]) -> CopyResult:
        """
        Copy entries from ``source`` into the target profile.

        Existing files are overwritten.

        Raises:
            ApplyError: If a directory cannot be created or a file copied.
        """
        source = Path(source)
        entries = list(entries)
        result = CopyResult()

        for entry in entries:
            if not entry.is_directory:
                continue
            destination = self.target / entry.relative_path
            try:
                destination.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise ApplyError(f"Cannot create directory {destination}", cause=e)
            result.directories += 1

        for entry in entries:
            if entry.is_directory:
                continue
            destination = self.target / entry.relative_path
            try:
                destination.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(source / entry.relative_path, destination)
            except OSError as e:
                raise ApplyError(f"Cannot copy {entry.relative_path} to {destination}", cause=e)
            logger.debug(f"Copied {entry.relative_path}")
            result.files += 1

        logger.info(
            f"Copied {result.files} files and {result.directories} directories into {self.target}"
        )
        return result
