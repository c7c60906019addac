"""
Atomic file operations for profile migration.

Ensures file writes are atomic - either complete successfully or no change.
Uses write-to-temp-then-rename pattern so an interrupted run never leaves
a half-written registry import file behind.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Union


def _fsync_directory(directory: Path) -> None:
    """Sync parent directory so the rename is persisted."""
    try:
        dir_fd = os.open(str(directory), os.O_RDONLY | os.O_DIRECTORY)
        try:
            os.fsync(dir_fd)
        finally:
            os.close(dir_fd)
    except (OSError, AttributeError):
        # O_DIRECTORY not available on all platforms
        pass


def atomic_write_bytes(path: Union[str, Path], content: bytes, mode: int = 0o600) -> None:
    """
    Write binary content to file atomically.

    Args:
        path: Destination file path
        content: Binary content to write
        mode: File permissions (default 0o600, per-user files)
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    # Temp file in the same directory keeps the rename on one filesystem
    fd, temp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp"
    )

    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())

        os.chmod(temp_path, mode)
        os.replace(temp_path, path)
        _fsync_directory(path.parent)

    except Exception:
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise


def atomic_write_text(
    path: Union[str, Path],
    content: str,
    encoding: str = "utf-8",
    mode: int = 0o600,
) -> None:
    """
    Write text content to file atomically.

    Args:
        path: Destination file path
        content: Text content to write
        encoding: Text encoding used for the bytes on disk
        mode: File permissions (default 0o600)
    """
    atomic_write_bytes(path, content.encode(encoding), mode)
