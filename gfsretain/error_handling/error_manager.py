"""Error Manager Module for gfsretain.

This module defines the exception types raised while scanning and pruning a
backup folder, and the ErrorManager that keeps a record of the recoverable
errors encountered during a run so they can be summarised at the end.
"""

import logging
from typing import Dict, List, Optional, Any
from enum import Enum
from dataclasses import dataclass
from datetime import datetime

logger = logging.getLogger("gfsretain.errors")


class RetentionError(Exception):
    """Base class for all gfsretain errors."""


class MissingDirectoryError(RetentionError, FileNotFoundError):
    """Raised when a backup folder does not exist."""

    def __init__(self, msg: str = "Directory not found", path: Optional[str] = None):
        super().__init__(msg)
        self.path = path


class UnreadableDirectoryError(RetentionError, OSError):
    """Raised when a backup folder exists but cannot be listed."""

    def __init__(self, path: str, cause: OSError):
        super().__init__(f"Cannot list directory '{path}': {cause}")
        self.path = path
        self.cause = cause


class UnparseableFilenameError(RetentionError, ValueError):
    """Raised when host or timestamp cannot be extracted from a filename."""

    def __init__(self, filename: str, reason: str):
        super().__init__(f"Cannot parse '{filename}': {reason}")
        self.filename = filename
        self.reason = reason


class DeletionFailureError(RetentionError, OSError):
    """Raised when a single backup file could not be removed."""

    def __init__(self, backup_name: str, cause: OSError):
        super().__init__(f"Failed to delete '{backup_name}': {cause}")
        self.backup_name = backup_name
        self.cause = cause


class ConfigurationError(RetentionError):
    """Raised when the settings file is missing or invalid."""


class ErrorSeverity(Enum):
    """Enum for different error severity levels."""
    LOW = 1      # Single entry skipped, run continues
    MEDIUM = 2   # An action failed but the run continues
    HIGH = 3     # Part of the run could not be completed
    CRITICAL = 4 # Run cannot proceed


class ErrorCategory(Enum):
    """Enum for different categories of errors."""
    STORAGE = "storage"
    PARSING = "parsing"
    DELETION = "deletion"
    CONFIGURATION = "configuration"


_SEVERITY_LEVELS = {
    ErrorSeverity.LOW: logging.WARNING,
    ErrorSeverity.MEDIUM: logging.ERROR,
    ErrorSeverity.HIGH: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}


@dataclass
class ErrorEvent:
    """Class representing an error event."""
    timestamp: datetime
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    details: Optional[Dict] = None
    error: Optional[Exception] = None


class ErrorManager:
    """Class for recording the errors encountered during a retention run."""

    def __init__(self, log: Optional[logging.Logger] = None):
        """Initialize the error manager.

        Args:
            log: Logger used to report errors (defaults to gfsretain.errors)
        """
        self.logger = log or logger
        self.error_history: List[ErrorEvent] = []

    def handle_error(self, category: ErrorCategory, severity: ErrorSeverity,
                     message: str, details: Optional[Dict] = None,
                     error: Optional[Exception] = None) -> ErrorEvent:
        """Record and log a new error event.

        Args:
            category: Category of the error
            severity: Severity level of the error
            message: Error description
            details: Additional error details
            error: Exception that caused the event, if any

        Returns:
            ErrorEvent: The recorded event
        """
        event = ErrorEvent(
            timestamp=datetime.now(),
            category=category,
            severity=severity,
            message=message,
            details=details,
            error=error
        )
        self.error_history.append(event)
        self.logger.debug(f"Recorded {category.value} error ({severity.name}): {message}")
        return event

    def has_errors(self, category: Optional[ErrorCategory] = None) -> bool:
        """Check whether any error (optionally of one category) was recorded."""
        if category is None:
            return bool(self.error_history)
        return any(e.category == category for e in self.error_history)

    def log_summary(self) -> None:
        """Log one line per recorded error category with its count."""
        counts: Dict[ErrorCategory, int] = {}
        for event in self.error_history:
            counts[event.category] = counts.get(event.category, 0) + 1
        for category, count in counts.items():
            worst = max(
                (e.severity for e in self.error_history if e.category == category),
                key=lambda s: s.value
            )
            self.logger.log(_SEVERITY_LEVELS[worst], f"{count} {category.value} error(s) during run")

    def get_error_history(self, category: Optional[ErrorCategory] = None,
                          severity: Optional[ErrorSeverity] = None) -> List[Dict[str, Any]]:
        """Get error history with optional filtering.

        Args:
            category: Filter by error category
            severity: Filter by error severity

        Returns:
            List of historical errors matching the filters
        """
        filtered_history = self.error_history
        if category:
            filtered_history = [e for e in filtered_history if e.category == category]
        if severity:
            filtered_history = [e for e in filtered_history if e.severity == severity]

        return [{
            'timestamp': error.timestamp.isoformat(),
            'category': error.category.value,
            'severity': error.severity.value,
            'message': error.message,
            'details': error.details
        } for error in filtered_history]
