#!/usr/bin/env python3
"""
Registry Line Filter

Transforms the lines of a registry export in a single ordered pass:

1. Prefix rewrite - the key prefix used by the export tool is replaced with
   the real hive prefix on every line.
2. Include gating - only key blocks named by an include pattern survive.
   Inclusion is opt-in: without patterns only the header remains.
3. Exclude gating - key blocks named by an exclude pattern are dropped,
   after include, so an exclude always wins.

A key block is a ``[``-prefixed key line plus the value lines that follow
it up to the next key line. Patterns are hive-relative key paths such as
``\\Software\\Vendor``; a pattern matches that key and every subkey beneath
it, case-insensitively.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable, Iterator, Sequence, Tuple

from common.exceptions import FilterError

from .models import REGISTRY_HEADER, RegistryDocument

logger = logging.getLogger(__name__)

UTF16_BOMS = (b"\xff\xfe", b"\xfe\xff")


def read_registry_export(path: Path) -> RegistryDocument:
    """
    Read a registry export into ordered lines.

    regedit writes UTF-16 with a BOM; UTF-8 exports are accepted too.

    Raises:
        FilterError: If the export cannot be read or decoded.
    """
    try:
        raw = Path(path).read_bytes()
        if raw.startswith(UTF16_BOMS):
            text = raw.decode("utf-16")
        else:
            text = raw.decode("utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise FilterError(path, cause=e)

    return tuple(text.splitlines())


def is_key_line(line: str) -> bool:
    return line.startswith("[")


def key_path(line: str) -> str:
    """Key path of a key line, without brackets or the deletion marker."""
    path = line.strip()
    if path.startswith("["):
        path = path[1:]
    if path.endswith("]"):
        path = path[:-1]
    return path.lstrip("-")


def normalize_pattern(pattern: str) -> str:
    """Hive-relative pattern with exactly one leading backslash and none trailing."""
    pattern = pattern.strip().strip("[]").strip("\\")
    return f"\\{pattern}" if pattern else ""


def key_matches(path: str, patterns: Iterable[str], hive_prefix: str) -> bool:
    """
    True if the key path is, or lies beneath, ``hive_prefix + pattern``.

    The bare hive key never matches; an empty pattern is ignored.
    """
    path = path.lower()
    for pattern in patterns:
        suffix = normalize_pattern(pattern)
        if not suffix:
            continue
        target = f"{hive_prefix}{suffix}".lower()
        if path == target or path.startswith(target + "\\"):
            return True
    return False


def rewrite_prefix(
    lines: Iterable[str],
    key_prefix: str,
    hive_prefix: str,
) -> RegistryDocument:
    """Replace every occurrence of the export key prefix with the hive prefix."""
    if not key_prefix or key_prefix == hive_prefix:
        return tuple(lines)
    return tuple(line.replace(key_prefix, hive_prefix) for line in lines)


def mark_blocks(
    lines: Iterable[str],
    drop_block: Callable[[str], bool],
) -> Iterator[Tuple[bool, str]]:
    """
    Pair every line with its block's deleting flag.

    The flag is recomputed on key lines only; value lines, and the
    preamble before the first key line, inherit the current value.
    """
    deleting = False
    for line in lines:
        if is_key_line(line):
            deleting = drop_block(key_path(line))
        yield deleting, line


def _kept(marked: Iterable[Tuple[bool, str]]) -> RegistryDocument:
    return tuple(line for deleting, line in marked if not deleting)


def ensure_header(lines: Sequence[str]) -> RegistryDocument:
    if lines and lines[0].strip() == REGISTRY_HEADER:
        return tuple(lines)
    return (REGISTRY_HEADER,) + tuple(lines)


def include_keys(
    lines: Iterable[str],
    patterns: Sequence[str],
    hive_prefix: str,
) -> RegistryDocument:
    """Keep only key blocks named by one of the patterns."""
    if not patterns:
        logger.warning("No settings include patterns given; no registry settings will be migrated")
        return (REGISTRY_HEADER,)

    kept = _kept(mark_blocks(lines, lambda path: not key_matches(path, patterns, hive_prefix)))
    return ensure_header(kept)


def exclude_keys(
    lines: Iterable[str],
    patterns: Sequence[str],
    hive_prefix: str,
) -> RegistryDocument:
    """Drop key blocks named by one of the patterns."""
    if not patterns:
        return tuple(lines)
    return _kept(mark_blocks(lines, lambda path: key_matches(path, patterns, hive_prefix)))


def filter_registry(
    lines: Iterable[str],
    include: Sequence[str],
    exclude: Sequence[str],
    key_prefix: str,
    hive_prefix: str,
) -> RegistryDocument:
    """
    Run prefix rewrite, include gating and exclude gating in order.

    Args:
        lines: Export lines in file order
        include: Hive-relative key patterns to keep
        exclude: Hive-relative key patterns to drop, even if included
        key_prefix: Key prefix written by the export tool
        hive_prefix: Real hive prefix the keys are imported under

    Returns:
        The filtered document, always starting with the header line.
    """
    document = rewrite_prefix(lines, key_prefix, hive_prefix)
    document = include_keys(document, include, hive_prefix)
    document = exclude_keys(document, exclude, hive_prefix)

    kept_blocks = sum(1 for line in document if is_key_line(line))
    logger.info(f"Registry filter kept {kept_blocks} key blocks")
    return document
