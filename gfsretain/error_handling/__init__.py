"""Error Handling Module for gfsretain.

This module provides the exception taxonomy of the retention run and the
ErrorManager that records recoverable errors (skipped filenames, failed
deletions) so the run can continue and report them at the end.
"""

from .error_manager import (
    ErrorManager,
    ErrorCategory,
    ErrorSeverity,
    ErrorEvent,
    RetentionError,
    MissingDirectoryError,
    UnreadableDirectoryError,
    UnparseableFilenameError,
    DeletionFailureError,
    ConfigurationError
)

__all__ = [
    'ErrorManager',
    'ErrorCategory',
    'ErrorSeverity',
    'ErrorEvent',
    'RetentionError',
    'MissingDirectoryError',
    'UnreadableDirectoryError',
    'UnparseableFilenameError',
    'DeletionFailureError',
    'ConfigurationError'
]
