"""Reading include/exclude pattern files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from common.exceptions import FilterError

from .models import FilterList

logger = logging.getLogger(__name__)


def read_filter_list(path: Optional[Path]) -> FilterList:
    """
    Read one pattern per line, ignoring blank lines.

    Args:
        path: Pattern file, or None when the option was not given.

    Returns:
        Patterns in file order; empty when no path is given.

    Raises:
        FilterError: If the file cannot be read or decoded.
    """
    if path is None:
        return ()

    try:
        text = Path(path).read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise FilterError(path, cause=e)

    patterns = tuple(line.strip() for line in text.splitlines() if line.strip())
    logger.debug(f"Read {len(patterns)} patterns from {path}")
    return patterns
