"""
Profile Migration Common Utilities

Shared exceptions, logging and decorators for the migration tools.
"""

from .exceptions import (
    MigrationError, ValidationError, StagingError, FilterError, ApplyError,
)
from .decorators import handle_errors, timed
from .logging_config import setup_logging, LogContext, JSONFormatter, ColoredFormatter

__all__ = [
    # Exceptions
    "MigrationError", "ValidationError", "StagingError", "FilterError", "ApplyError",
    # Decorators
    "handle_errors", "timed",
    # Logging
    "setup_logging", "LogContext", "JSONFormatter", "ColoredFormatter",
]
