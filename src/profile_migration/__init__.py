"""
Roaming Profile Migration

Migrates one user's roaming profile from a legacy store into the local
profile on first use:
- Legacy store detection (managed or archived)
- Archive staging
- Registry export filtering and import
- Data set filtering and copy
"""

from .config import ArchiveNames, LocatorConfig, MigrationConfig, MigrationOptions
from .models import (
    REGISTRY_HEADER,
    FileEntry,
    ProfileDescriptor,
    ProfileType,
)
from .registry_filter import filter_registry, include_keys, exclude_keys
from .data_filter import filter_data_set, list_tree, name_set
from .locator import ProfileLocator
from .stager import ArchiveStager, WorkingDirectory
from .copier import ProfileCopier
from .registry_applier import RegistryApplier
from .orchestrator import MigrationOrchestrator, MigrationResult, MigrationState

__all__ = [
    "ArchiveNames",
    "LocatorConfig",
    "MigrationConfig",
    "MigrationOptions",
    "REGISTRY_HEADER",
    "FileEntry",
    "ProfileDescriptor",
    "ProfileType",
    "filter_registry",
    "include_keys",
    "exclude_keys",
    "filter_data_set",
    "list_tree",
    "name_set",
    "ProfileLocator",
    "ArchiveStager",
    "WorkingDirectory",
    "ProfileCopier",
    "RegistryApplier",
    "MigrationOrchestrator",
    "MigrationResult",
    "MigrationState",
]
