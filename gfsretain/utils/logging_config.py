"""Logging configuration for gfsretain.

This module sets up console logging for the run report and, when a log
directory is configured, rotating log files for the application log and
the deletion audit trail.
"""

import os
import sys
import json
import logging
from datetime import datetime
from typing import Dict, Any, Optional

from concurrent_log_handler import ConcurrentRotatingFileHandler

DEFAULT_CONSOLE_LEVEL = logging.INFO
DEFAULT_FILE_LEVEL = logging.DEBUG

CONSOLE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
AUDIT_FORMAT = '%(asctime)s - %(name)s - AUDIT - %(message)s'


class AuditFilter(logging.Filter):
    """Filter that only allows audit records to pass through."""

    def filter(self, record):
        """Check if record has audit attribute."""
        return getattr(record, 'audit', False)


class ConsoleFilter(logging.Filter):
    """Filter that keeps audit records off the console."""

    def filter(self, record):
        return not getattr(record, 'audit', False)


class LoggingManager:
    """Manages logging configuration for the application."""

    def __init__(self):
        """Initialize the logging manager."""
        self._configured = False
        self.log_dir: Optional[str] = None
        self.max_file_size = 10 * 1024 * 1024  # 10 MB
        self.backup_count = 5
        self.console_level = DEFAULT_CONSOLE_LEVEL
        self.file_level = DEFAULT_FILE_LEVEL
        self.handlers = []

    def configure(self, settings: Optional[Dict[str, Any]] = None, force: bool = False):
        """Configure logging with the specified settings.

        Args:
            settings: Dictionary containing logging settings. If None, default settings are used.
            force: Reconfigure even if logging was already set up
        """
        if self._configured and not force:
            return

        if settings:
            self._apply_settings(settings)

        app_logger = logging.getLogger('gfsretain')
        app_logger.setLevel(min(self.console_level, self.file_level) if self.log_dir else self.console_level)

        # Remove handlers installed by a previous configure()
        for handler in self.handlers:
            app_logger.removeHandler(handler)
            handler.close()
        self.handlers = []

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(self.console_level)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        console_handler.addFilter(ConsoleFilter())
        self._add_handler(app_logger, console_handler)

        if self.log_dir:
            os.makedirs(self.log_dir, exist_ok=True)

            file_handler = ConcurrentRotatingFileHandler(
                filename=os.path.join(self.log_dir, 'gfsretain.log'),
                maxBytes=self.max_file_size,
                backupCount=self.backup_count,
                encoding='utf-8'
            )
            file_handler.setLevel(self.file_level)
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
            self._add_handler(app_logger, file_handler)

            audit_handler = ConcurrentRotatingFileHandler(
                filename=os.path.join(self.log_dir, 'audit.log'),
                maxBytes=self.max_file_size,
                backupCount=self.backup_count,
                encoding='utf-8'
            )
            audit_handler.setLevel(logging.INFO)
            audit_handler.setFormatter(logging.Formatter(AUDIT_FORMAT))
            audit_handler.addFilter(AuditFilter())
            self._add_handler(app_logger, audit_handler)

        self._configured = True
        app_logger.debug("Logging system initialized")

    def _add_handler(self, target: logging.Logger, handler: logging.Handler):
        target.addHandler(handler)
        self.handlers.append(handler)

    def _apply_settings(self, settings: Dict[str, Any]):
        """Apply settings from the provided dictionary.

        Args:
            settings: Dictionary containing logging settings
        """
        if 'log_dir' in settings:
            log_dir = settings['log_dir']
            self.log_dir = os.path.expanduser(str(log_dir)) if log_dir else None

        if 'max_file_size' in settings:
            self.max_file_size = settings['max_file_size']

        if 'backup_count' in settings:
            self.backup_count = settings['backup_count']

        if 'console_level' in settings:
            self.console_level = self._parse_level(settings['console_level'])

        if 'file_level' in settings:
            self.file_level = self._parse_level(settings['file_level'])

    def _parse_level(self, level) -> int:
        """Parse a log level string to its integer value.

        Args:
            level: String or integer log level

        Returns:
            int: Logging level
        """
        if isinstance(level, int):
            return level

        level_map = {
            'debug': logging.DEBUG,
            'info': logging.INFO,
            'warning': logging.WARNING,
            'error': logging.ERROR,
            'critical': logging.CRITICAL
        }

        return level_map.get(level.lower(), logging.INFO)

    def log_audit_event(self, event_type: str, details: Dict[str, Any], username: Optional[str] = None):
        """Log an audit event.

        Args:
            event_type: Type of event (e.g., "delete_backup")
            details: Dictionary with event details
            username: Username associated with the event
        """
        audit_record = {
            "timestamp": datetime.now().isoformat(),
            "event_type": event_type,
            "username": username or os.environ.get("USER", "system"),
            "details": details
        }
        get_logger('audit').info(json.dumps(audit_record), extra={'audit': True})

    def shutdown(self):
        """Close the handlers installed by configure()."""
        app_logger = logging.getLogger('gfsretain')
        for handler in self.handlers:
            app_logger.removeHandler(handler)
            handler.close()
        self.handlers = []
        self._configured = False


# Create a singleton instance
logging_manager = LoggingManager()


def configure_logging(settings: Optional[Dict[str, Any]] = None, force: bool = False):
    """Configure the logging system with the specified settings.

    Args:
        settings: Dictionary containing logging settings. If None, default settings are used.
        force: Reconfigure even if logging was already set up
    """
    logging_manager.configure(settings, force=force)


def log_audit_event(event_type: str, details: Dict[str, Any], username: Optional[str] = None):
    """Log an audit event through the shared logging manager."""
    logging_manager.log_audit_event(event_type, details, username)


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a module.

    Args:
        name: Module name

    Returns:
        logging.Logger: Logger instance
    """
    return logging.getLogger(f"gfsretain.{name}")
