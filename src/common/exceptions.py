"""
Profile Migration Exception Hierarchy

Provides clear, actionable error messages with structured information
for logging, user feedback, and programmatic error handling.
"""

from typing import Optional, Dict, Any


class MigrationError(Exception):
    """
    Base exception for all profile migration errors.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        details: Additional context as key-value pairs
        cause: Original exception that caused this error
        recoverable: Whether the error is recoverable
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        recoverable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        self.cause = cause
        self.recoverable = recoverable

    def __str__(self):
        s = f"[{self.code}] {self.message}"
        if self.details:
            s += f" (details: {self.details})"
        if self.cause:
            s += f" caused by: {self.cause}"
        return s

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


# =============================================================================
# Input validation errors
# =============================================================================

class ValidationError(MigrationError):
    """Missing or invalid input path, filter source or configuration."""
    def __init__(
        self,
        message: str,
        path: Optional[Any] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(
            message,
            code="VALIDATION_FAILED",
            details={"path": str(path)} if path is not None else None,
            cause=cause,
        )


# =============================================================================
# Staging errors
# =============================================================================

class StagingError(MigrationError):
    """Archive copy or extraction failed."""
    def __init__(self, archive: Any, reason: str, cause: Optional[Exception] = None):
        super().__init__(
            f"Failed to stage archive '{archive}': {reason}",
            code="STAGING_FAILED",
            details={"archive": str(archive), "reason": reason},
            cause=cause,
        )


# =============================================================================
# Filter errors
# =============================================================================

class FilterError(MigrationError):
    """Pattern source or registry export could not be read."""
    def __init__(self, source: Any, cause: Optional[Exception] = None):
        super().__init__(
            f"Cannot read filter source: {source}",
            code="FILTER_SOURCE_UNREADABLE",
            details={"source": str(source)},
            cause=cause,
        )


# =============================================================================
# Apply errors
# =============================================================================

class ApplyError(MigrationError):
    """Copying files or importing registry settings failed."""
    def __init__(
        self,
        message: str,
        exit_code: Optional[int] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(
            message,
            code="APPLY_FAILED",
            details={"exit_code": exit_code} if exit_code is not None else None,
            cause=cause,
        )
