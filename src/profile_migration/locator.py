#!/usr/bin/env python3
"""
Profile Locator

Probes the root share for a user's legacy profile store and classifies it.

Detection order:
- Managed store (ready-to-use registry export, no staging)
- Archived store (settings and data zip archives, staged locally)
- Neither: the profile was already migrated
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from common.exceptions import ValidationError

from .config import LocatorConfig
from .models import ProfileDescriptor, ProfileType
from .stager import ArchiveStager, WorkingDirectory

logger = logging.getLogger(__name__)


class ProfileLocator:
    """
    Finds and classifies the legacy store for one user.

    Staging an archived store writes into ``working_directory``; the caller
    owns that directory and removes it when the run ends.
    """

    def __init__(
        self,
        config: LocatorConfig,
        working_directory: WorkingDirectory,
        stager: Optional[ArchiveStager] = None,
    ):
        self.config = config
        self.working_directory = working_directory
        self.stager = stager or ArchiveStager(working_directory)

    def locate(self, root: Path, user: str) -> ProfileDescriptor:
        """
        Classify the legacy store under ``root``.

        Raises:
            ValidationError: If the root is missing or a store is incomplete.
            StagingError: If an archived store cannot be extracted.
        """
        root = Path(root)
        if not root.is_dir():
            raise ValidationError("Profile root does not exist", path=root)

        managed = self.config.managed_store(root, user)
        if managed.is_dir():
            return self._managed(managed, user)

        archived = self.config.archived_store(root, user)
        if archived.is_dir():
            return self._archived(archived, user)

        logger.info(f"No legacy store found for {user}; profile already migrated")
        return ProfileDescriptor(profile_type=ProfileType.ALREADY_MIGRATED, user=user)

    def _managed(self, store: Path, user: str) -> ProfileDescriptor:
        settings = store / self.config.settings_file
        if not settings.is_file():
            raise ValidationError("Managed store has no settings file", path=settings)

        logger.info(f"Found managed store for {user} at {store}")
        return ProfileDescriptor(
            profile_type=ProfileType.MANAGED,
            user=user,
            settings_source=settings,
            data_source=store / self.config.data_directory,
        )

    def _archived(self, store: Path, user: str) -> ProfileDescriptor:
        names = self.config.archive_names
        settings_archive = store / names.settings
        data_archive = store / names.data

        for archive in (settings_archive, data_archive):
            if not archive.is_file():
                raise ValidationError("Archived store is missing an archive", path=archive)

        logger.info(f"Found archived store for {user} at {store}; staging archives")
        settings_dir, data_dir = self.stager.stage(settings_archive, data_archive)

        return ProfileDescriptor(
            profile_type=ProfileType.ARCHIVED,
            user=user,
            settings_source=settings_dir / self.config.settings_file,
            data_source=data_dir,
            working_directory=self.working_directory.path,
        )
