#!/usr/bin/env python3
"""
Data Set Filter

Decides which files of the legacy data tree are copied. Patterns are paths
relative to the data root; everything beneath each pattern is enumerated and
reduced to a set of leaf names. Membership is decided by leaf name alone, so
two unrelated entries that share a name are treated the same.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Set

from .models import FileEntry

logger = logging.getLogger(__name__)


def list_tree(root: Path) -> List[FileEntry]:
    """Full recursive listing of ``root``, relative to it, in sorted order."""
    root = Path(root)
    entries = [
        FileEntry(relative_path=item.relative_to(root), is_directory=item.is_dir())
        for item in root.rglob("*")
    ]
    entries.sort(key=lambda entry: entry.relative_path.as_posix())
    return entries


def _anchor(root: Path, pattern: str) -> Optional[Path]:
    """Anchor path for a pattern, or None if it points outside ``root``."""
    anchor = root / pattern.strip().replace("\\", "/").strip("/")
    base = root.resolve()
    resolved = anchor.resolve()
    if resolved != base and base not in resolved.parents:
        return None
    return anchor


def name_set(root: Path, patterns: Sequence[str]) -> Set[str]:
    """
    Leaf names of everything beneath each pattern's anchor.

    A file anchor contributes its own name. Missing anchors, and anchors
    outside ``root``, are skipped.
    """
    root = Path(root)
    names: Set[str] = set()

    for pattern in patterns:
        anchor = _anchor(root, pattern)
        if anchor is None:
            logger.warning(f"Data pattern '{pattern}' points outside {root}; skipped")
        elif anchor.is_file():
            names.add(anchor.name)
        elif anchor.is_dir():
            names.update(item.name for item in anchor.rglob("*"))
        else:
            logger.warning(f"Data pattern '{pattern}' does not exist under {root}")

    return names


def filter_data_set(
    root: Path,
    include: Sequence[str],
    exclude: Optional[Sequence[str]] = None,
    listing: Optional[Sequence[FileEntry]] = None,
) -> List[FileEntry]:
    """
    Select the entries of the data tree to copy.

    Args:
        root: Data root the patterns are relative to
        include: Patterns to copy; without any, nothing is copied
        exclude: Patterns removed from the included set
        listing: Precomputed listing of ``root`` (listed on demand otherwise)

    Returns:
        Entries of the listing whose leaf names survive both filters.
    """
    if not include:
        logger.warning("No data include patterns given; no files will be migrated")
        return []

    if listing is None:
        listing = list_tree(root)

    included_names = name_set(root, include)
    selected = [entry for entry in listing if entry.name in included_names]

    if exclude:
        excluded_names = name_set(root, exclude)
        selected = [entry for entry in selected if entry.name not in excluded_names]

    logger.info(f"Data filter selected {len(selected)} of {len(listing)} entries")
    return selected
