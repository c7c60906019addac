"""
Error Handling Decorators

Provides decorators for consistent error handling across the migration stages.
"""

from __future__ import annotations

import functools
import logging
import time
from typing import Type, Callable, Any, Optional

logger = logging.getLogger(__name__)


def handle_errors(
    *exception_types: Type[Exception],
    default: Any = None,
    log_level: int = logging.ERROR,
    reraise: bool = False,
    message: Optional[str] = None,
):
    """
    Decorator to handle exceptions consistently.

    Args:
        exception_types: Exception types to catch (default: Exception)
        default: Value to return on error
        log_level: Logging level for errors
        reraise: Whether to re-raise after logging
        message: Custom error message prefix

    Example:
        @handle_errors(OSError, default=False, log_level=logging.WARNING)
        def remove_leftovers(path):
            ...
    """
    if not exception_types:
        exception_types = (Exception,)

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except exception_types as e:
                prefix = message or f"{func.__name__} failed"
                logger.log(
                    log_level,
                    f"{prefix}: {e}",
                    exc_info=log_level >= logging.ERROR,
                )
                if reraise:
                    raise
                return default
        return wrapper
    return decorator


def timed(func: Callable) -> Callable:
    """
    Decorator to log function execution time.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed = time.perf_counter() - start
            logger.debug(f"{func.__name__} completed in {elapsed:.3f}s")
    return wrapper
