#!/usr/bin/env python3
"""
Archive Stager

Unpacks the settings and data archives of an archived store into a
run-private working directory.
"""

from __future__ import annotations

import logging
import shutil
import zipfile
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

from common.decorators import handle_errors
from common.exceptions import StagingError

logger = logging.getLogger(__name__)


class WorkingDirectory:
    """
    Uniquely named scratch directory owned by one migration run.

    The name carries a timestamp suffix, so a stale directory left by an
    earlier failed run is never reused. Removal happens at most once.
    """

    PREFIX = "ProfileMigration"

    def __init__(self, parent: Path, user: str = ""):
        self.parent = Path(parent)
        self.user = user
        self._path: Optional[Path] = None
        self._removed = False

    @property
    def path(self) -> Path:
        """Directory path, created on first access."""
        if self._path is None:
            self._path = self._create()
        return self._path

    @property
    def exists(self) -> bool:
        return self._path is not None and not self._removed

    def _create(self) -> Path:
        suffix = datetime.now().strftime("%Y%m%d%H%M%S%f")
        name = "-".join(part for part in (self.PREFIX, self.user, suffix) if part)
        path = self.parent / name
        try:
            path.mkdir(parents=True, exist_ok=False)
        except OSError as e:
            raise StagingError(path, "cannot create working directory", cause=e)
        logger.debug(f"Created working directory {path}")
        return path

    def cleanup(self) -> bool:
        """Remove the directory. Returns True if this call removed it."""
        if self._path is None or self._removed:
            return False
        self._removed = True
        return self._remove(self._path)

    @staticmethod
    @handle_errors(OSError, default=False, log_level=logging.WARNING,
                   message="Could not remove working directory")
    def _remove(path: Path) -> bool:
        shutil.rmtree(path)
        logger.info(f"Removed working directory {path}")
        return True


class ArchiveStager:
    """Copies and extracts the two archives of an archived store."""

    SETTINGS_DIR = "settings"
    DATA_DIR = "data"

    def __init__(self, working_directory: WorkingDirectory):
        self.working_directory = working_directory

    def stage(self, settings_archive: Path, data_archive: Path) -> Tuple[Path, Path]:
        """
        Extract both archives.

        Returns:
            (settings directory, data directory) inside the working directory.

        Raises:
            StagingError: If either archive cannot be copied or extracted.
        """
        settings_dir = self._extract(Path(settings_archive), self.SETTINGS_DIR)
        data_dir = self._extract(Path(data_archive), self.DATA_DIR)
        return settings_dir, data_dir

    def _extract(self, archive: Path, name: str) -> Path:
        root = self.working_directory.path
        local_copy = root / f"{name}{archive.suffix or '.zip'}"
        destination = root / name

        try:
            shutil.copyfile(archive, local_copy)
        except OSError as e:
            raise StagingError(archive, "copy failed", cause=e)

        try:
            with zipfile.ZipFile(local_copy) as zf:
                self._check_members(zf, destination, archive)
                zf.extractall(destination)
        except zipfile.BadZipFile as e:
            raise StagingError(archive, "not a valid zip archive", cause=e)
        except (OSError, RuntimeError, NotImplementedError, zipfile.LargeZipFile) as e:
            # Encrypted members raise RuntimeError, unknown compression NotImplementedError
            raise StagingError(archive, "extraction failed", cause=e)
        finally:
            local_copy.unlink(missing_ok=True)

        logger.info(f"Extracted {archive.name} to {destination}")
        return destination

    @staticmethod
    def _check_members(zf: zipfile.ZipFile, destination: Path, archive: Path) -> None:
        base = destination.resolve()
        for member in zf.namelist():
            target = (destination / member).resolve()
            if target != base and base not in target.parents:
                raise StagingError(archive, f"member escapes extraction directory: {member}")
