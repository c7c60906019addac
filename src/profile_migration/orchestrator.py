#!/usr/bin/env python3
"""
Migration Orchestrator

Sequences locate -> data -> settings for one user and guarantees that the
working directory is removed however the run ends.
"""

from __future__ import annotations

import getpass
import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set

from common.decorators import timed
from common.exceptions import MigrationError
from common.logging_config import LogContext

from .config import MigrationConfig, MigrationOptions
from .copier import ProfileCopier
from .data_filter import filter_data_set, list_tree
from .locator import ProfileLocator
from .models import FilterList, ProfileDescriptor, ProfileType
from .registry_applier import RegistryApplier
from .registry_filter import filter_registry, read_registry_export
from .stager import WorkingDirectory

logger = logging.getLogger(__name__)


class MigrationState(Enum):
    """Stages of a migration run."""
    START = auto()
    LOCATED = auto()
    DATA_STAGED = auto()
    DATA_FILTERED = auto()
    DATA_APPLIED = auto()
    SETTINGS_STAGED = auto()
    SETTINGS_FILTERED = auto()
    SETTINGS_APPLIED = auto()
    DONE = auto()
    ABORTED = auto()


STAGE_ORDER = [
    MigrationState.START,
    MigrationState.LOCATED,
    MigrationState.DATA_STAGED,
    MigrationState.DATA_FILTERED,
    MigrationState.DATA_APPLIED,
    MigrationState.SETTINGS_STAGED,
    MigrationState.SETTINGS_FILTERED,
    MigrationState.SETTINGS_APPLIED,
    MigrationState.DONE,
]

# Valid state transitions map
# Format: {current_state: {allowed next states}}
VALID_TRANSITIONS: Dict[MigrationState, Set[MigrationState]] = {
    current: {following, MigrationState.ABORTED}
    for current, following in zip(STAGE_ORDER, STAGE_ORDER[1:])
}
# Marker from a previous run
VALID_TRANSITIONS[MigrationState.START].add(MigrationState.DONE)
# No legacy store left
VALID_TRANSITIONS[MigrationState.LOCATED].add(MigrationState.DONE)


class StateTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""
    pass


@dataclass
class MigrationResult:
    """Outcome of a run."""
    state: MigrationState
    descriptor: Optional[ProfileDescriptor] = None
    history: List[MigrationState] = field(default_factory=list)
    skipped: bool = False

    @property
    def succeeded(self) -> bool:
        return self.state == MigrationState.DONE


class MigrationOrchestrator:
    """
    Runs one profile migration.

    Transitions are strictly linear; any stage error moves the run to
    ABORTED, removes the working directory and re-raises the error.
    """

    def __init__(
        self,
        root: Path,
        config: Optional[MigrationConfig] = None,
        options: Optional[MigrationOptions] = None,
        user: Optional[str] = None,
        working_directory: Optional[WorkingDirectory] = None,
        locator: Optional[ProfileLocator] = None,
        copier: Optional[ProfileCopier] = None,
        applier: Optional[RegistryApplier] = None,
    ):
        self.root = Path(root)
        self.config = config or MigrationConfig()
        self.options = options or MigrationOptions()
        self.user = user or getpass.getuser()

        self.working_directory = working_directory or WorkingDirectory(
            self.config.temp_directory, self.user
        )
        self.locator = locator or ProfileLocator(self.config.locator, self.working_directory)
        self.copier = copier or ProfileCopier(self.config.local_profile)
        self.applier = applier or RegistryApplier(
            self.config.import_file(self.user), self.config.importer
        )

        self._state = MigrationState.START
        self._history: List[MigrationState] = [MigrationState.START]
        self._filters: Dict[str, FilterList] = {}

    @property
    def state(self) -> MigrationState:
        return self._state

    @property
    def history(self) -> List[MigrationState]:
        return list(self._history)

    def can_transition(self, target: MigrationState) -> bool:
        return target in VALID_TRANSITIONS.get(self._state, set())

    def _advance(self, target: MigrationState) -> None:
        if not self.can_transition(target):
            raise StateTransitionError(
                f"Cannot move from {self._state.name} to {target.name} for user {self.user}"
            )
        logger.info(f"Migration {self.user}: {self._state.name} -> {target.name}")
        self._state = target
        self._history.append(target)

    def _result(self, descriptor: Optional[ProfileDescriptor], skipped: bool = False) -> MigrationResult:
        return MigrationResult(
            state=self._state,
            descriptor=descriptor,
            history=self.history,
            skipped=skipped,
        )

    @timed
    def run(self) -> MigrationResult:
        """
        Execute the migration.

        Returns:
            MigrationResult in state DONE.

        Raises:
            ValidationError, FilterError: A filter source is missing or
                unreadable. Raised before any stage runs.
            MigrationError: The first stage error; the run is ABORTED.
        """
        if self._state != MigrationState.START:
            raise StateTransitionError(f"Migration for {self.user} has already run")

        self.options.validate()
        self._filters = self.options.read_filters()

        marker = self.applier.import_file
        if marker.exists() and not self.options.force:
            logger.info(f"Marker {marker} found; profile for {self.user} was already migrated")
            self._advance(MigrationState.DONE)
            return self._result(
                ProfileDescriptor(ProfileType.ALREADY_MIGRATED, self.user), skipped=True
            )

        descriptor: Optional[ProfileDescriptor] = None
        try:
            with LogContext(user=self.user):
                descriptor = self._stage(MigrationState.LOCATED, self._locate, descriptor)

                if descriptor.profile_type == ProfileType.ALREADY_MIGRATED:
                    self._advance(MigrationState.DONE)
                    return self._result(descriptor, skipped=True)

                for state, step in self._steps():
                    descriptor = self._stage(state, step, descriptor)

                self._advance(MigrationState.DONE)
                logger.info(f"Profile migration for {self.user} complete")
                return self._result(descriptor)
        finally:
            self.working_directory.cleanup()

    def _steps(self):
        return [
            (MigrationState.DATA_STAGED, self._stage_data),
            (MigrationState.DATA_FILTERED, self._filter_data),
            (MigrationState.DATA_APPLIED, self._apply_data),
            (MigrationState.SETTINGS_STAGED, self._stage_settings),
            (MigrationState.SETTINGS_FILTERED, self._filter_settings),
            (MigrationState.SETTINGS_APPLIED, self._apply_settings),
        ]

    def _stage(
        self,
        state: MigrationState,
        step: Callable[[Optional[ProfileDescriptor]], ProfileDescriptor],
        descriptor: Optional[ProfileDescriptor],
    ) -> ProfileDescriptor:
        with LogContext(stage=state.name):
            try:
                result = step(descriptor)
            except MigrationError as e:
                logger.error(f"Stage {state.name} failed for {self.user}: {e}")
                self._advance(MigrationState.ABORTED)
                raise
            except OSError as e:
                logger.error(f"Stage {state.name} failed for {self.user}: {e}")
                self._advance(MigrationState.ABORTED)
                raise MigrationError(
                    f"Unexpected I/O error during {state.name}",
                    details={"stage": state.name},
                    cause=e,
                ) from e
            self._advance(state)
            return result

    # Stage implementations --------------------------------------------------

    def _locate(self, _descriptor) -> ProfileDescriptor:
        return self.locator.locate(self.root, self.user)

    def _stage_data(self, descriptor: ProfileDescriptor) -> ProfileDescriptor:
        source = descriptor.data_source
        if source is None or not source.is_dir():
            logger.warning(f"No data directory at {source}; nothing to copy")
            return descriptor.with_data_set([])
        return descriptor.with_data_set(list_tree(source))

    def _filter_data(self, descriptor: ProfileDescriptor) -> ProfileDescriptor:
        if not descriptor.data_set:
            return descriptor
        selected = filter_data_set(
            descriptor.data_source,
            self._filters["include_data"],
            self._filters["exclude_data"],
            listing=descriptor.data_set,
        )
        return descriptor.with_data_set(selected)

    def _apply_data(self, descriptor: ProfileDescriptor) -> ProfileDescriptor:
        if descriptor.data_set:
            self.copier.copy(descriptor.data_source, descriptor.data_set)
        return descriptor

    def _stage_settings(self, descriptor: ProfileDescriptor) -> ProfileDescriptor:
        return descriptor.with_registry_document(read_registry_export(descriptor.settings_source))

    def _filter_settings(self, descriptor: ProfileDescriptor) -> ProfileDescriptor:
        document = filter_registry(
            descriptor.registry_document,
            self._filters["include_settings"],
            self._filters["exclude_settings"],
            key_prefix=self.config.key_prefix,
            hive_prefix=self.config.hive_prefix,
        )
        return descriptor.with_registry_document(document)

    def _apply_settings(self, descriptor: ProfileDescriptor) -> ProfileDescriptor:
        self.applier.apply(descriptor.registry_document)
        return descriptor
