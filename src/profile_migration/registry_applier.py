#!/usr/bin/env python3
"""
Registry Applier

Writes the filtered registry document to the per-user import file and runs
the system registry importer on it.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import List, Optional

from common.exceptions import ApplyError
from utils.atomic_write import atomic_write_text

from .models import RegistryDocument, has_settings

logger = logging.getLogger(__name__)

# regedit reads and writes UTF-16LE with a byte order mark and CRLF lines
REGISTRY_ENCODING = "utf-16-le"
REGISTRY_BOM = "\ufeff"
REGISTRY_NEWLINE = "\r\n"


def serialize(document: RegistryDocument) -> str:
    return REGISTRY_BOM + REGISTRY_NEWLINE.join(document) + REGISTRY_NEWLINE


class RegistryApplier:
    """Imports a registry document through an external importer command."""

    def __init__(self, import_file: Path, importer: List[str], timeout: Optional[float] = None):
        self.import_file = Path(import_file)
        self.importer = list(importer)
        self.timeout = timeout

    def write(self, document: RegistryDocument) -> Path:
        """Serialize the document to the import file."""
        try:
            atomic_write_text(self.import_file, serialize(document), encoding=REGISTRY_ENCODING)
        except OSError as e:
            raise ApplyError(f"Cannot write registry import file {self.import_file}", cause=e)
        return self.import_file

    def apply(self, document: RegistryDocument) -> bool:
        """
        Write and import the document.

        A document without settings is written but not imported.

        Returns:
            True if the importer ran, False if there was nothing to import.

        Raises:
            ApplyError: If the importer is missing or exits non-zero.
        """
        self.write(document)

        if not has_settings(document):
            logger.info("No registry settings to import")
            return False

        cmd = self.importer + [str(self.import_file)]
        logger.info(f"Importing registry settings: {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            self._discard()
            raise ApplyError(f"Registry importer could not be run: {e}", cause=e)

        if result.returncode != 0:
            self._discard()
            message = (result.stderr or "").strip() or "no error output"
            raise ApplyError(
                f"Registry import failed: {message}",
                exit_code=result.returncode,
            )

        logger.info("Registry settings imported")
        return True

    def _discard(self) -> None:
        # A failed import must not leave a completion marker behind
        try:
            self.import_file.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove {self.import_file}: {e}")
